"""
Persistence primitives for chart headers and chart data rows.

Every method takes a Transaction handle, obtained from
RateChartStore.atomic(), and refuses to run outside of it.  Sequences of
calls made with the same handle commit or roll back together.
"""
import logging
from contextlib import contextmanager

from django.db import DEFAULT_DB_ALIAS, transaction
from django.utils import timezone

from .exceptions import MasterInUseError, NotFoundError, StorageError
from .models import (
    ChartDataRow,
    ChartHeader,
    Machine,
    MachineDownloadRecord,
    Society
)


logger = logging.getLogger(__name__)

INSERT_BATCH_SIZE = 500


class Transaction(object):
    '''
    Handle for one database transaction on one database alias.
    '''

    def __init__(self, using):
        self.using = using

    def check(self):
        if not transaction.get_connection(self.using).in_atomic_block:
            raise StorageError(
                "Rate chart store used outside of a transaction")

    def headers(self):
        self.check()
        return ChartHeader.objects.using(self.using)

    def rows(self):
        self.check()
        return ChartDataRow.objects.using(self.using)

    def download_records(self):
        self.check()
        return MachineDownloadRecord.objects.using(self.using)


class RateChartStore(object):

    def __init__(self, using=None):
        self.using = using or DEFAULT_DB_ALIAS

    @contextmanager
    def atomic(self):
        with transaction.atomic(using=self.using):
            yield Transaction(self.using)

    # Lookups

    def get_header(self, tx, header_id, lock=False):
        headers = tx.headers()
        if lock:
            headers = headers.select_for_update()
        try:
            return headers.get(id=header_id)
        except (ChartHeader.DoesNotExist, ValueError, TypeError):
            raise NotFoundError("Rate chart %s not found" % header_id)

    def get_master(self, tx, header_id, lock=False):
        '''
        Master header of the group which header_id belongs to.
        '''
        header = self.get_header(tx, header_id, lock=lock)
        if header.is_master:
            return header
        return self.get_header(tx, header.shared_chart_id, lock=lock)

    def find_header(self, tx, society_id, channel, lock=False):
        headers = tx.headers().filter(society_id=society_id, channel=channel)
        if lock:
            headers = headers.select_for_update()
        return headers.first()

    def find_active_header(self, tx, society_id, channel, lock=False):
        header = self.find_header(tx, society_id, channel, lock=lock)
        if header is not None and header.is_active:
            return header
        return None

    def find_headers(self, tx, society_ids, channel, lock=False):
        headers = tx.headers().filter(society_id__in=society_ids,
                                      channel=channel).order_by("id")
        if lock:
            headers = headers.select_for_update()
        return list(headers)

    def references(self, tx, master_id, lock=False):
        headers = tx.headers().filter(
            shared_chart_id=master_id).order_by("id")
        if lock:
            headers = headers.select_for_update()
        return list(headers)

    def group_headers(self, tx, master_id, lock=False):
        '''
        The master followed by its shared references, in id order.
        '''
        headers = tx.headers().filter(id=master_id) | \
            tx.headers().filter(shared_chart_id=master_id)
        headers = headers.select_related("society").order_by("id")
        if lock:
            headers = headers.select_for_update()
        return list(headers)

    def data_rows(self, tx, master_id):
        return list(tx.rows().filter(chart_id=master_id).order_by(
            "fat", "snf", "id"))

    def existing_society_ids(self, tx, society_ids):
        tx.check()
        return set(Society.objects.using(tx.using).filter(
            id__in=society_ids).values_list("id", flat=True))

    def machines_for_societies(self, tx, society_ids):
        tx.check()
        return list(Machine.objects.using(tx.using).filter(
            society_id__in=society_ids).select_related(
                "society").order_by("society_id", "id"))

    # Mutations

    def delete_header_and_cascade(self, tx, header):
        '''
        Delete a shared reference, or a master together with its data rows
        and download records.  A master which is still referenced is never
        deleted.
        '''
        if header.is_master:
            remaining = self.references(tx, header.id)
            if remaining:
                raise MasterInUseError(
                    "Rate chart %s is shared by %d other societies" % (
                        header.id, len(remaining)),
                    conflicts=describe(remaining))
            rows, _ = tx.rows().filter(chart_id=header.id).delete()
            tx.download_records().filter(chart_id=header.id).delete()
            tx.headers().filter(id=header.id).delete()
            logger.debug("Deleted master chart %s and %s data rows"
                         % (header.id, rows))
        else:
            tx.headers().filter(id=header.id).delete()
            logger.debug("Deleted shared chart %s (master %s)"
                         % (header.id, header.shared_chart_id))

    def insert_headers(self, tx, society_ids, channel, provenance,
                       shared_chart_id=None):
        '''
        Insert one header per society, in the order given.  The first
        header is the master candidate of a new group.
        '''
        headers = tx.headers()
        return [
            headers.create(society_id=society_id,
                           channel=channel,
                           shared_chart_id=shared_chart_id,
                           **provenance)
            for society_id in society_ids
        ]

    def insert_data_rows(self, tx, master, rows):
        if not master.is_master:
            raise StorageError(
                "Data rows can only belong to a master chart, "
                "%s is shared" % master.id)
        return tx.rows().bulk_create([
            ChartDataRow(chart_id=master.id, clr=row.clr, fat=row.fat,
                         snf=row.snf, rate=row.rate)
            for row in rows
        ], batch_size=INSERT_BATCH_SIZE)

    def relink_shared_references(self, tx, society_ids, channel, master_id):
        return tx.headers().filter(
            society_id__in=society_ids,
            channel=channel
        ).exclude(id=master_id).update(shared_chart_id=master_id)

    def promote_successor(self, tx, master):
        '''
        Make the lowest id shared reference of master's group the new
        master.  The data rows, the remaining references and the download
        records move to it, leaving master without dependants.

        Returns the promoted header, or None if master is unshared.
        '''
        remaining = self.references(tx, master.id, lock=True)
        if not remaining:
            return None
        successor = remaining[0]
        tx.headers().filter(id=successor.id).update(shared_chart_id=None)
        tx.headers().filter(shared_chart_id=master.id).update(
            shared_chart_id=successor.id)
        tx.rows().filter(chart_id=master.id).update(chart_id=successor.id)
        tx.download_records().filter(chart_id=master.id).update(
            chart_id=successor.id)
        successor.refresh_from_db(using=tx.using)
        master.refresh_from_db(using=tx.using)
        logger.info("Promoted chart %s to master in place of %s"
                    % (successor.id, master.id))
        return successor

    def set_status(self, tx, header_ids, status):
        return tx.headers().filter(id__in=header_ids).update(status=status)

    def reset_downloads(self, tx, chart_ids, machine_ids):
        return tx.download_records().filter(
            chart_id__in=chart_ids,
            machine_id__in=machine_ids
        ).update(downloaded=False, downloaded_at=None)

    def record_download(self, tx, machine, master, ip_address=None):
        tx.check()
        record, _ = MachineDownloadRecord.objects.using(
            tx.using).update_or_create(
                machine=machine, chart=master,
                defaults={
                    "downloaded": True,
                    "downloaded_at": timezone.now(),
                    "ip_address": ip_address
                })
        return record

    def delete_group(self, tx, master):
        references = self.references(tx, master.id, lock=True)
        tx.headers().filter(shared_chart_id=master.id).delete()
        self.delete_header_and_cascade(tx, master)
        return len(references) + 1


def describe(headers):
    '''
    Conflict entries for a list of headers, as reported to the caller.
    '''
    return [
        {
            "societyId": header.society_id,
            "societyName": header.society.name,
            "chartId": header.id,
            "currentFileName": header.file_name
        }
        for header in headers
    ]
