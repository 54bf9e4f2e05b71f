from django.test import SimpleTestCase

from ..utils import calc_checksum, machine_id_variants, parse_ids


class ParseIdsTest(SimpleTestCase):

    def test_parse_ids(self):
        self.assertEqual(parse_ids("12, 10,,12"), [12, 10])
        self.assertEqual(parse_ids([3, "4", 3]), [3, 4])
        self.assertEqual(parse_ids(7), [7])
        self.assertEqual(parse_ids(None), [])
        with self.assertRaises(ValueError):
            parse_ids("10,x")


class MachineIdVariantsTest(SimpleTestCase):

    def test_numeric(self):
        self.assertEqual(machine_id_variants("M00001"),
                         ["M00001", "00001", "1"])
        self.assertEqual(machine_id_variants("M1"), ["M1", "1"])

    def test_letter_and_number(self):
        self.assertEqual(machine_id_variants("Mm00102"),
                         ["Mm00102", "m102", "m00102"])

    def test_alphanumeric(self):
        self.assertEqual(machine_id_variants("Mdf"), ["Mdf", "df"])

    def test_unprefixed_ids_match_exactly(self):
        self.assertEqual(machine_id_variants("00001"), ["00001"])
        self.assertEqual(machine_id_variants("M"), ["M"])
        self.assertEqual(machine_id_variants("M-01"), ["M-01"])


class ChecksumTest(SimpleTestCase):

    def test_checksum(self):
        self.assertEqual(calc_checksum("abc", "md5"),
                         "900150983cd24fb0d6963f7d28e17f72")
        self.assertEqual(calc_checksum(b"abc"), calc_checksum("abc"))
        self.assertEqual(len(calc_checksum("abc", "xxh3_64")), 16)
        self.assertIsNone(calc_checksum("abc", "sha0"))
