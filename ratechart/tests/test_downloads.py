from django.db import connection
from django.test import TestCase
from django.test.utils import CaptureQueriesContext

from ..downloads import DownloadStatusTracker
from ..engine import AssignmentEngine
from ..exceptions import NotFoundError, ValidationError
from ..models import Machine, MachineDownloadRecord

from . import BUFFALO_CSV, COW_CSV, SocietyFixturesMixin


class FetchForMachineTest(SocietyFixturesMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.engine = AssignmentEngine()
        self.tracker = DownloadStatusTracker()
        self.chart_id = self.engine.upload(
            COW_CSV, "cow.csv", [10, 11], "COW")["chartId"]

    def test_fetch_returns_csv_and_records_download(self):
        content = self.tracker.fetch_for_machine(
            "S-10", "M1", "COW", ip_address="10.0.0.5")
        lines = content.splitlines()
        self.assertEqual(lines[0], "Clr,Fat,Snf,Rate")
        self.assertEqual(len(lines), 3)
        self.assertTrue(lines[1].endswith("32.50"))
        self.assertTrue(content.endswith("\n"))

        record = MachineDownloadRecord.objects.get(machine=self.machine_a)
        self.assertTrue(record.downloaded)
        self.assertEqual(record.chart_id, self.chart_id)
        self.assertEqual(record.ip_address, "10.0.0.5")
        self.assertIsNotNone(record.downloaded_at)

    def test_reference_society_gets_master_rows(self):
        content = self.tracker.fetch_for_machine("S-11", "M3", "cow")
        self.assertEqual(len(content.splitlines()), 3)
        record = MachineDownloadRecord.objects.get(machine=self.machine_c)
        self.assertEqual(record.chart_id, self.chart_id)

    def test_device_channel_codes(self):
        self.engine.upload(BUFFALO_CSV, "buf.csv", [10], "BUFFALO")
        content = self.tracker.fetch_for_machine("S-10", "M2", "BUF")
        self.assertEqual(len(content.splitlines()), 4)

    def test_registered_machine_id_variants(self):
        stripped = Machine.objects.create(
            machine_id="7", society=self.societies[10])
        lettered = Machine.objects.create(
            machine_id="m102", society=self.societies[10])
        self.tracker.fetch_for_machine("S-10", "M00007", "COW")
        self.tracker.fetch_for_machine("S-10", "Mm00102", "COW")
        self.assertTrue(MachineDownloadRecord.objects.get(
            machine=stripped).downloaded)
        self.assertTrue(MachineDownloadRecord.objects.get(
            machine=lettered).downloaded)

    def test_exact_machine_id_is_preferred(self):
        Machine.objects.create(machine_id="1", society=self.societies[10])
        self.tracker.fetch_for_machine("S-10", "M1", "COW")
        record = MachineDownloadRecord.objects.get()
        self.assertEqual(record.machine_id, self.machine_a.id)

    def test_repeated_fetch_keeps_one_record(self):
        self.tracker.fetch_for_machine("S-10", "M1", "COW")
        self.tracker.fetch_for_machine("S-10", "M1", "COW")
        self.assertEqual(MachineDownloadRecord.objects.filter(
            machine=self.machine_a).count(), 1)

    def test_not_found(self):
        with self.assertRaises(NotFoundError):
            self.tracker.fetch_for_machine("S-99", "M1", "COW")
        with self.assertRaises(NotFoundError):
            self.tracker.fetch_for_machine("S-10", "M3", "COW")
        with self.assertRaises(NotFoundError):
            self.tracker.fetch_for_machine("S-10", "M1", "MIXED")
        with self.assertRaises(ValidationError):
            self.tracker.fetch_for_machine("S-10", "M1", "GOAT")
        self.assertEqual(MachineDownloadRecord.objects.count(), 0)

    def test_inactive_chart_is_not_served(self):
        self.engine.toggle_status(self.chart_id)
        with self.assertRaises(NotFoundError):
            self.tracker.fetch_for_machine("S-11", "M3", "COW")


class DownloadStatusTest(SocietyFixturesMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.engine = AssignmentEngine()
        self.tracker = DownloadStatusTracker()
        self.chart_id = self.engine.upload(
            COW_CSV, "cow.csv", [10, 11], "COW")["chartId"]

    def test_status(self):
        self.tracker.fetch_for_machine("S-10", "M1", "COW")
        status = self.tracker.get_status(self.chart_id)
        self.assertEqual(status["chartId"], self.chart_id)
        self.assertEqual(status["totalMachines"], 3)
        self.assertEqual(status["totalDownloaded"], 1)

        society = status["perSociety"][10]
        self.assertEqual(society["societyIdentifier"], "S-10")
        self.assertEqual(society["totalMachines"], 2)
        self.assertEqual(society["downloaded"], 1)
        machines = dict((m["machineId"], m) for m in society["machines"])
        self.assertTrue(machines["M1"]["downloaded"])
        self.assertIsNotNone(machines["M1"]["downloadedAt"])
        self.assertFalse(machines["M2"]["downloaded"])
        self.assertIsNone(machines["M2"]["downloadedAt"])
        self.assertEqual(status["perSociety"][11]["downloaded"], 0)

    def test_status_through_reference(self):
        reference_id = self.engine.list_groups()[0]["chartRecordIds"][1]
        self.assertNotEqual(reference_id, self.chart_id)
        status = self.tracker.get_status(reference_id)
        self.assertEqual(status["chartId"], self.chart_id)

    def test_status_queries_do_not_grow_with_the_group(self):
        with CaptureQueriesContext(connection) as small:
            self.tracker.get_status(self.chart_id)
        self.engine.assign(self.chart_id, [12, 13, 14])
        with CaptureQueriesContext(connection) as large:
            status = self.tracker.get_status(self.chart_id)
        self.assertEqual(len(status["perSociety"]), 5)
        self.assertEqual(len(large.captured_queries),
                         len(small.captured_queries))

    def test_reset_only_selected_machines(self):
        for machine in ["M1", "M2"]:
            self.tracker.fetch_for_machine("S-10", machine, "COW")
        self.tracker.fetch_for_machine("S-11", "M3", "COW")

        reference_id = self.engine.list_groups()[0]["chartRecordIds"][1]
        count = self.tracker.reset_download(
            [reference_id], [self.machine_a.id, self.machine_c.id])
        self.assertEqual(count, 2)

        status = self.tracker.get_status(self.chart_id)
        self.assertEqual(status["totalDownloaded"], 1)
        record = MachineDownloadRecord.objects.get(machine=self.machine_b)
        self.assertTrue(record.downloaded)
        record = MachineDownloadRecord.objects.get(machine=self.machine_a)
        self.assertFalse(record.downloaded)
        self.assertIsNone(record.downloaded_at)

    def test_reset_requires_ids(self):
        with self.assertRaises(ValidationError):
            self.tracker.reset_download([], [self.machine_a.id])
        with self.assertRaises(ValidationError):
            self.tracker.reset_download([self.chart_id], "a,b")
        with self.assertRaises(NotFoundError):
            self.tracker.reset_download([self.chart_id + 100],
                                        [self.machine_a.id])

    def test_promotion_moves_download_records(self):
        self.tracker.fetch_for_machine("S-11", "M3", "COW")
        result = self.engine.remove_society(self.chart_id, 10)
        successor = result["promotedChartId"]
        record = MachineDownloadRecord.objects.get(machine=self.machine_c)
        self.assertEqual(record.chart_id, successor)
        status = self.tracker.get_status(successor)
        self.assertEqual(status["totalMachines"], 1)
        self.assertEqual(status["totalDownloaded"], 1)

    def test_group_deletion_removes_records(self):
        self.tracker.fetch_for_machine("S-10", "M1", "COW")
        self.engine.delete_group(self.chart_id)
        self.assertEqual(MachineDownloadRecord.objects.count(), 0)
