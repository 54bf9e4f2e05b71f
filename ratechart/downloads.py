"""
Per machine download tracking of master charts.

Machines fetch the active chart of their society (fetch_for_machine),
which marks the group's master as downloaded for that machine.  Admins
read the status of a group (get_status) and clear it for selected
machines (reset_download) so that their next poll fetches the chart
again.
"""
import logging

from django.db import DatabaseError

from .exceptions import NotFoundError, StorageError, ValidationError
from .engine import clean_channel, clean_ids
from .models import Machine, Society
from .store import RateChartStore
from . import utils


logger = logging.getLogger(__name__)

CSV_HEADER = "Clr,Fat,Snf,Rate"


class DownloadStatusTracker(object):

    def __init__(self, store=None):
        self.store = store or RateChartStore()

    def _run(self, operation, *args):
        try:
            with self.store.atomic() as tx:
                return operation(tx, *args)
        except DatabaseError as err:
            logger.error("Download status transaction failed: %s" % err)
            raise StorageError(str(err)) from err

    def get_status(self, chart_id):
        '''
        Download status of every machine of every society in the group of
        chart_id:

        {"chartId": ..., "totalMachines": ..., "totalDownloaded": ...,
         "perSociety": {society_id: {"societyName", "societyIdentifier",
                                     "totalMachines", "downloaded",
                                     "machines": [...]}}}
        '''
        return self._run(self._get_status, chart_id)

    def _get_status(self, tx, chart_id):
        master = self.store.get_master(tx, chart_id)
        group = self.store.group_headers(tx, master.id)
        society_ids = [h.society_id for h in group]
        records = {
            r.machine_id: r
            for r in tx.download_records().filter(chart_id=master.id)
        }

        per_society = {}
        for header in group:
            society = header.society
            per_society[society.id] = {
                "societyName": society.name,
                "societyIdentifier": society.identifier,
                "headerId": header.id,
                "totalMachines": 0,
                "downloaded": 0,
                "machines": []
            }
        total = 0
        downloaded = 0
        for machine in self.store.machines_for_societies(tx, society_ids):
            record = records.get(machine.id)
            done = record is not None and record.downloaded
            entry = per_society[machine.society_id]
            entry["totalMachines"] += 1
            entry["machines"].append({
                "id": machine.id,
                "machineId": machine.machine_id,
                "downloaded": done,
                "downloadedAt": record.downloaded_at if done else None
            })
            total += 1
            if done:
                entry["downloaded"] += 1
                downloaded += 1

        return {
            "chartId": master.id,
            "channel": master.channel,
            "totalMachines": total,
            "totalDownloaded": downloaded,
            "perSociety": per_society
        }

    def reset_download(self, chart_ids, machine_ids):
        '''
        Mark the given machines as not having downloaded the groups of
        chart_ids (any header id of a group may be given).  Other machines
        keep their status.

        Returns the number of records reset.
        '''
        chart_ids = clean_ids(chart_ids, "chart")
        machine_ids = clean_ids(machine_ids, "machine")
        count = self._run(self._reset_download, chart_ids, machine_ids)
        logger.info("Reset download status of %d machines for charts %s"
                    " (%d records)" % (len(machine_ids), chart_ids, count))
        return count

    def _reset_download(self, tx, chart_ids, machine_ids):
        masters = set()
        for chart_id in chart_ids:
            masters.add(self.store.get_master(tx, chart_id).id)
        return self.store.reset_downloads(tx, masters, machine_ids)

    def fetch_for_machine(self, society_identifier, machine_id, channel,
                          ip_address=None):
        '''
        Rate chart of the society's active chart for channel, as CSV text,
        for the given machine.  Records the download.

        Raises NotFoundError when the society, machine or an active chart
        does not exist.
        '''
        channel = clean_channel(channel)
        if not society_identifier or not machine_id:
            raise ValidationError("Society and machine id are required")
        master, rows = self._run(self._fetch_for_machine,
                                 society_identifier, machine_id, channel,
                                 ip_address)
        logger.info("Machine %s of society %s downloaded chart %s "
                    "(%d records)" % (machine_id, society_identifier,
                                      master.id, len(rows)))
        lines = [CSV_HEADER]
        lines.extend("%s,%s,%s,%s" % (row.clr, row.fat, row.snf, row.rate)
                     for row in rows)
        return "\n".join(lines) + "\n"

    def _fetch_for_machine(self, tx, society_identifier, machine_id,
                           channel, ip_address):
        try:
            society = Society.objects.using(tx.using).get(
                identifier=society_identifier)
        except Society.DoesNotExist:
            raise NotFoundError("Price chart not found.")
        machine = self._find_machine(tx, society, machine_id)
        header = self.store.find_active_header(tx, society.id, channel)
        if header is None:
            raise NotFoundError("Price chart not found.")
        master = self.store.get_master(tx, header.id)
        rows = self.store.data_rows(tx, master.id)
        if not rows:
            raise NotFoundError("Price chart not found.")
        self.store.record_download(tx, machine, master, ip_address)
        return master, rows

    def _find_machine(self, tx, society, machine_id):
        '''
        The society's machine registered under machine_id or one of its
        variants (see utils.machine_id_variants), preferring the closest.
        '''
        variants = utils.machine_id_variants(machine_id)
        machines = dict(
            (m.machine_id, m)
            for m in Machine.objects.using(tx.using).filter(
                society=society, machine_id__in=variants)
        )
        for variant in variants:
            if variant in machines:
                return machines[variant]
        raise NotFoundError("Price chart not found.")
