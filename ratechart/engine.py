"""
Assignment engine: uploads, assignments, removals and status changes of
rate chart groups.

Each public method is one unit of work executed in a single transaction.
Parse errors are raised before the transaction is opened; database errors
roll the whole transaction back and are re-raised as StorageError.
"""
import logging

from django.conf import settings
from django.db import DatabaseError
from django.utils import timezone

from .exceptions import (
    ConflictError,
    MasterInUseError,
    NotFoundError,
    StorageError,
    ValidationError
)
from .models import Channel, ChartStatus
from .parser import DEFAULT_EXTENSIONS, parse_rate_chart
from .store import RateChartStore, describe
from . import utils


logger = logging.getLogger(__name__)

PROMOTE = "promote"
REFUSE = "refuse"
REMOVAL_POLICIES = (PROMOTE, REFUSE)


def clean_channel(channel):
    value = Channel.normalise(channel)
    if value is None:
        raise ValidationError(
            "Valid channel (COW, BUFFALO or MIXED) is required")
    return value


def clean_ids(value, what):
    try:
        ids = utils.parse_ids(value)
    except (TypeError, ValueError):
        raise ValidationError("Invalid %s ids: %s" % (what, value))
    if not ids:
        raise ValidationError("At least one %s id is required" % what)
    return ids


class AssignmentEngine(object):
    '''
    Orchestrates uploads and (re)assignments of chart groups so that each
    (society, channel) has at most one chart, every group has exactly one
    master owning the data rows, and data rows disappear together with the
    last header of their group.
    '''

    def __init__(self, store=None, removal_policy=None):
        self.store = store or RateChartStore()
        if removal_policy is None:
            removal_policy = getattr(
                settings, "RATECHART_MASTER_REMOVAL_POLICY", PROMOTE)
        if removal_policy not in REMOVAL_POLICIES:
            raise ValueError(
                "Unknown master removal policy: %s" % removal_policy)
        self.removal_policy = removal_policy

    def _run(self, operation, *args):
        '''
        Run operation(tx, *args) in one transaction.  The atomic block has
        already rolled back by the time a DatabaseError reaches the except
        clause.
        '''
        try:
            with self.store.atomic() as tx:
                return operation(tx, *args)
        except DatabaseError as err:
            logger.error("Rate chart transaction failed: %s" % err)
            raise StorageError(str(err)) from err

    def _check_societies(self, tx, society_ids):
        found = self.store.existing_society_ids(tx, society_ids)
        missing = [s for s in society_ids if s not in found]
        if missing:
            raise NotFoundError("Societies not found: %s" % ", ".join(
                str(s) for s in missing))

    def _discard(self, tx, headers):
        '''
        Remove headers which are about to be replaced.  References go first
        so that a master being discarded with its own references leaves no
        dependants behind; a master still shared by other societies is
        handled according to the removal policy.
        '''
        ordered = sorted(headers, key=lambda h: (h.is_master, h.id))
        for header in ordered:
            if header.is_master:
                self._remove_master(tx, header)
            else:
                self.store.delete_header_and_cascade(tx, header)

    def _remove_master(self, tx, master):
        '''
        Returns the promoted successor, if any.
        '''
        remaining = self.store.references(tx, master.id, lock=True)
        successor = None
        if remaining:
            if self.removal_policy == REFUSE:
                logger.warning(
                    "Refused to remove chart %s: still shared by %s"
                    % (master.id, [h.society_id for h in remaining]))
                raise MasterInUseError(
                    "Rate chart %s is shared by %d other societies; "
                    "remove them first" % (master.id, len(remaining)),
                    conflicts=describe(remaining))
            successor = self.store.promote_successor(tx, master)
        self.store.delete_header_and_cascade(tx, master)
        return successor

    # Upload

    def upload(self, content, file_name, society_ids, channel,
               uploaded_by=""):
        '''
        Replace the charts of every given society for channel with the
        uploaded table.  The first society's header becomes the master and
        owns the data rows; the others reference it.

        Returns a dict with recordCount, channel, societyCount, societyIds
        and chartId (the new master).
        '''
        if not file_name:
            raise ValidationError("File name is required")
        society_ids = clean_ids(society_ids, "society")
        channel = clean_channel(channel)
        max_size = getattr(settings, "RATECHART_MAX_UPLOAD_SIZE",
                           5 * 1024 * 1024)
        if max_size and len(content) > max_size:
            raise ValidationError(
                "File is larger than %d bytes" % max_size)
        rows = parse_rate_chart(
            content, file_name,
            accepted_extensions=getattr(
                settings, "RATECHART_ACCEPTED_EXTENSIONS",
                DEFAULT_EXTENSIONS))

        provenance = {
            "file_name": file_name,
            "uploaded_by": uploaded_by or "",
            "uploaded_at": timezone.now(),
            "record_count": len(rows),
            "checksum": utils.calc_checksum(content),
            "status": ChartStatus.ACTIVE,
        }
        master = self._run(self._upload, society_ids, channel, rows,
                           provenance)

        logger.info("Rate chart %s uploaded: %d records for %s channel, "
                    "%d societies (master %s)"
                    % (file_name, len(rows), channel, len(society_ids),
                       master.id))
        return {
            "recordCount": len(rows),
            "channel": channel.value,
            "societyCount": len(society_ids),
            "societyIds": society_ids,
            "chartId": master.id
        }

    def _upload(self, tx, society_ids, channel, rows, provenance):
        self._check_societies(tx, society_ids)

        # A single society that only referenced a shared chart just drops
        # its reference; the master and its other societies stay as they
        # are.  A discarded master that others still share is handed over
        # (or refused) according to the removal policy.
        existing = self.store.find_headers(tx, society_ids, channel,
                                           lock=True)
        self._discard(tx, existing)

        headers = self.store.insert_headers(tx, society_ids, channel,
                                            provenance)
        master = headers[0]
        self.store.insert_data_rows(tx, master, rows)
        if len(headers) > 1:
            self.store.relink_shared_references(
                tx, society_ids[1:], channel, master.id)
        return master

    # Assign

    def assign(self, chart_id, society_ids, replace_existing=False):
        '''
        Share an existing chart group with more societies.

        Societies which already have an active chart for the channel are
        conflicts: unless replace_existing is set, ConflictError is raised
        and nothing is written.  Societies already in the group are left
        alone.  The master header and its rows are never changed.

        Returns a dict with assignedCount, chartId and skipped.
        '''
        society_ids = clean_ids(society_ids, "society")
        result = self._run(self._assign, chart_id, society_ids,
                           bool(replace_existing))
        logger.info("Rate chart %s assigned to %d societies (replaced %d)"
                    % (result["chartId"], result["assignedCount"],
                       result["replacedCount"]))
        return result

    def _assign(self, tx, chart_id, society_ids, replace_existing):
        master = self.store.get_master(tx, chart_id, lock=True)
        self._check_societies(tx, society_ids)

        existing = self.store.find_headers(tx, society_ids, master.channel,
                                           lock=True)
        skipped = [h.society_id for h in existing
                   if h.master_id == master.id]
        others = [h for h in existing if h.master_id != master.id]
        conflicts = [h for h in others if h.is_active]
        if conflicts and not replace_existing:
            logger.warning("Assignment of chart %s refused, conflicts: %s"
                           % (master.id, [h.society_id for h in conflicts]))
            raise ConflictError(
                "%d societies already have a %s rate chart" % (
                    len(conflicts), master.channel),
                conflicts=describe(conflicts))

        self._discard(tx, others)

        targets = [s for s in society_ids if s not in skipped]
        provenance = {
            "file_name": master.file_name,
            "uploaded_by": master.uploaded_by,
            "uploaded_at": master.uploaded_at,
            "record_count": master.record_count,
            "checksum": master.checksum,
            "status": master.status,
        }
        self.store.insert_headers(tx, targets, master.channel, provenance,
                                  shared_chart_id=master.id)
        return {
            "chartId": master.id,
            "assignedCount": len(targets),
            "replacedCount": len(conflicts),
            "skipped": skipped
        }

    # Remove

    def remove_society(self, header_id, society_id):
        '''
        Remove one society's header from its group.

        Removing a shared reference leaves the group's data alone.  Removing
        the last header of a group deletes the data rows too.  Removing a
        master which other societies still share promotes the lowest id
        reference to master (RATECHART_MASTER_REMOVAL_POLICY = "promote",
        the default) or raises MasterInUseError ("refuse").

        Returns a dict with removed, promotedChartId and groupDeleted.
        '''
        try:
            society_id = int(society_id)
        except (TypeError, ValueError):
            raise ValidationError("Invalid society id: %s" % society_id)
        result = self._run(self._remove_society, header_id, society_id)
        logger.info("Society %s removed from rate chart %s%s"
                    % (society_id, header_id,
                       " (group deleted)" if result["groupDeleted"] else ""))
        return result

    def _remove_society(self, tx, header_id, society_id):
        header = self.store.get_header(tx, header_id, lock=True)
        if header.society_id != society_id:
            raise NotFoundError("Rate chart %s is not assigned to society %s"
                                % (header_id, society_id))
        promoted = None
        group_deleted = False
        if header.is_master:
            promoted = self._remove_master(tx, header)
            group_deleted = promoted is None
        else:
            self.store.delete_header_and_cascade(tx, header)
        return {
            "removed": header.id,
            "promotedChartId": promoted.id if promoted else None,
            "groupDeleted": group_deleted
        }

    def delete_group(self, chart_id):
        '''
        Delete a whole chart group: every header, the data rows and the
        download records.  Any header id of the group may be given.
        '''
        count = self._run(self._delete_group, chart_id)
        logger.info("Rate chart group of %s deleted (%d headers)"
                    % (chart_id, count))
        return count

    def _delete_group(self, tx, chart_id):
        master = self.store.get_master(tx, chart_id, lock=True)
        return self.store.delete_group(tx, master)

    # Status

    def toggle_status(self, chart_id, header_ids=None):
        '''
        Flip the status of every header of a chart group in one update.

        header_ids, if given, is the group as the caller last saw it; when
        it no longer matches the stored group nothing is changed.

        Returns the new status.
        '''
        status = self._run(self._toggle_status, chart_id, header_ids)
        logger.info("Rate chart group of %s is now %s" % (chart_id, status))
        return status

    def _toggle_status(self, tx, chart_id, header_ids):
        master = self.store.get_master(tx, chart_id, lock=True)
        group = self.store.group_headers(tx, master.id, lock=True)
        ids = [h.id for h in group]
        if header_ids is not None:
            try:
                expected = set(utils.parse_ids(header_ids))
            except (TypeError, ValueError):
                raise ValidationError("Invalid header ids: %s" % header_ids)
            if expected != set(ids):
                raise ValidationError(
                    "Chart group %s has changed, reload and try again"
                    % master.id)
        if master.is_active:
            status = ChartStatus.INACTIVE
        else:
            status = ChartStatus.ACTIVE
        self.store.set_status(tx, ids, status)
        return status.value

    # Reads

    def list_groups(self, society_id=None, channel=None):
        '''
        Chart groups computed from the headers: one entry per master with
        the societies and header ids of the group.  Filtering by society
        returns the groups that society belongs to.
        '''
        if channel is not None:
            channel = clean_channel(channel)
        if society_id is not None:
            try:
                society_id = int(society_id)
            except (TypeError, ValueError):
                raise ValidationError("Invalid society id: %s" % society_id)
        return self._run(self._list_groups, society_id, channel)

    def _list_groups(self, tx, society_id, channel):
        headers = tx.headers().select_related("society").order_by("id")
        if channel is not None:
            headers = headers.filter(channel=channel)
        groups = {}
        for header in headers:
            if header.is_master:
                groups.setdefault(header.id, {}).update({
                    "chartId": header.id,
                    "fileName": header.file_name,
                    "channel": header.channel,
                    "status": header.status,
                    "uploadedBy": header.uploaded_by,
                    "uploadedAt": header.uploaded_at,
                    "recordCount": header.record_count,
                })
            group = groups.setdefault(header.master_id, {})
            group.setdefault("societies", []).append({
                "societyId": header.society_id,
                "societyName": header.society.name,
                "societyIdentifier": header.society.identifier,
                "headerId": header.id,
                "shared": not header.is_master,
            })
            group.setdefault("chartRecordIds", []).append(header.id)
        result = list(groups.values())
        if society_id is not None:
            result = [
                g for g in result
                if any(s["societyId"] == society_id for s in g["societies"])
            ]
        return result

    def get_chart_data(self, chart_id):
        '''
        Returns (master header, data rows) of the group chart_id belongs to.
        '''
        return self._run(self._get_chart_data, chart_id)

    def _get_chart_data(self, tx, chart_id):
        master = self.store.get_master(tx, chart_id)
        return master, self.store.data_rows(tx, master.id)
