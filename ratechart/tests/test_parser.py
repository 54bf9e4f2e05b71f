from decimal import Decimal

from django.test import SimpleTestCase

from ..exceptions import ValidationError
from ..parser import ChartRow, parse_rate_chart

from . import BUFFALO_CSV, COW_CSV


class ParseRateChartTest(SimpleTestCase):

    def test_parse(self):
        rows = parse_rate_chart(COW_CSV, "cow.csv")
        self.assertEqual(rows, [
            ChartRow(Decimal("25.5"), Decimal("3.5"), Decimal("8.5"),
                     Decimal("32.50")),
            ChartRow(Decimal("26.0"), Decimal("4.0"), Decimal("9.0"),
                     Decimal("35.00")),
        ])

    def test_column_order_does_not_matter(self):
        rows = parse_rate_chart(BUFFALO_CSV, "buffalo.csv")
        self.assertEqual(len(rows), 3)
        self.assertEqual(rows[0].clr, Decimal("28.0"))
        self.assertEqual(rows[0].fat, Decimal("6.0"))
        self.assertEqual(rows[2].rate, Decimal("52.50"))

    def test_extra_columns_blank_lines_and_quotes(self):
        content = (
            '"CLR","FAT","SNF","RATE","NOTE"\r\n'
            '\r\n'
            '"25.5","3.5","8.5","32.50","first"\r\n'
            '   \n'
            '26,4,9,35,second\n'
        )
        rows = parse_rate_chart(content.encode("utf-8"), "chart.CSV")
        self.assertEqual(len(rows), 2)
        self.assertEqual(rows[1].rate, Decimal("35.00"))

    def test_duplicate_keys_are_kept(self):
        content = "CLR,FAT,SNF,RATE\n25,3.5,8.5,30\n25,3.5,8.5,31\n"
        rows = parse_rate_chart(content, "dup.csv")
        self.assertEqual([r.rate for r in rows],
                         [Decimal("30.00"), Decimal("31.00")])

    def test_missing_headers(self):
        content = "CLR,FAT,PRICE\n25,3.5,30\n"
        with self.assertRaises(ValidationError) as cm:
            parse_rate_chart(content, "bad.csv")
        self.assertEqual(cm.exception.missing_headers, ["SNF", "RATE"])
        self.assertEqual(cm.exception.row_errors, [])
        self.assertIn("SNF, RATE", str(cm.exception))

    def test_headers_are_case_sensitive(self):
        content = "clr,fat,snf,rate\n25,3.5,8.5,30\n"
        with self.assertRaises(ValidationError) as cm:
            parse_rate_chart(content, "lower.csv")
        self.assertEqual(cm.exception.missing_headers,
                         ["CLR", "FAT", "SNF", "RATE"])

    def test_row_errors_are_aggregated(self):
        content = (
            "CLR,FAT,SNF,RATE\n"
            "25,3.5,8.5,30\n"
            "25,3.5,8.5\n"
            "\n"
            "25,,8.5,30\n"
            "25,3.5,abc,30\n"
        )
        with self.assertRaises(ValidationError) as cm:
            parse_rate_chart(content, "errors.csv")
        errors = [(e.line, e.message) for e in cm.exception.row_errors]
        self.assertEqual(errors, [
            (3, "column count mismatch"),
            (5, "missing field"),
            (6, "non-numeric value"),
        ])

    def test_one_bad_rate_rejects_everything(self):
        lines = ["CLR,FAT,SNF,RATE"]
        lines += ["%d,3.5,8.5,30" % (20 + i) for i in range(9)]
        lines.append("30,3.5,8.5,thirty")
        with self.assertRaises(ValidationError) as cm:
            parse_rate_chart("\n".join(lines), "ten.csv")
        self.assertEqual(len(cm.exception.row_errors), 1)
        self.assertEqual(cm.exception.row_errors[0].line, 11)

    def test_non_finite_numbers_are_rejected(self):
        content = "CLR,FAT,SNF,RATE\nNaN,3.5,8.5,30\n25,3.5,8.5,Infinity\n"
        with self.assertRaises(ValidationError) as cm:
            parse_rate_chart(content, "nan.csv")
        self.assertEqual([e.message for e in cm.exception.row_errors],
                         ["non-numeric value", "non-numeric value"])

    def test_out_of_range_value(self):
        content = "CLR,FAT,SNF,RATE\n25,3.5,8.5,1e12\n"
        with self.assertRaises(ValidationError) as cm:
            parse_rate_chart(content, "huge.csv")
        self.assertTrue(
            cm.exception.row_errors[0].message.startswith("value out of"))

    def test_header_only(self):
        with self.assertRaises(ValidationError):
            parse_rate_chart("CLR,FAT,SNF,RATE\n\n", "empty.csv")

    def test_extension_is_checked(self):
        with self.assertRaises(ValidationError) as cm:
            parse_rate_chart(COW_CSV, "cow.xlsx")
        self.assertIn(".csv", str(cm.exception))
        with self.assertRaises(ValidationError):
            parse_rate_chart(COW_CSV, "cow")

    def test_other_extensions_can_be_accepted(self):
        rows = parse_rate_chart(COW_CSV, "cow.txt",
                                accepted_extensions=[".csv", ".txt"])
        self.assertEqual(len(rows), 2)

    def test_byte_order_mark_is_ignored(self):
        for content in ["\ufeff" + COW_CSV,
                        ("\ufeff" + COW_CSV).encode("utf-8")]:
            rows = parse_rate_chart(content, "bom.csv")
            self.assertEqual(len(rows), 2)

    def test_binary_content_is_rejected(self):
        with self.assertRaises(ValidationError) as cm:
            parse_rate_chart(b"PK\x03\x04\x00\x00binary", "chart.csv")
        self.assertEqual(str(cm.exception), "File is not a text table")
        with self.assertRaises(ValidationError):
            parse_rate_chart(b"\xff\xfe\xfa\xfb", "chart.csv")
