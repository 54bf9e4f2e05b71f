"""
Parsing and validation of uploaded rate chart tables.

An upload is comma separated text.  The first non-blank line is the
header and must name at least the CLR, FAT, SNF and RATE columns, in any
order.  Every following non-blank line supplies one value per header
column.  Parsing is all or nothing: a single bad row rejects the whole
file, and every problem found is reported together.
"""
import csv
import os
from collections import namedtuple
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from .exceptions import RowError, ValidationError


REQUIRED_HEADERS = ("CLR", "FAT", "SNF", "RATE")

DEFAULT_EXTENSIONS = (".csv",)

# Matches the precision of the chart_data_rows columns
_LIMITS = {
    "CLR": Decimal("1E6"),
    "FAT": Decimal("1E6"),
    "SNF": Decimal("1E6"),
    "RATE": Decimal("1E10"),
}
_CENTS = Decimal("0.01")

ChartRow = namedtuple("ChartRow", ["clr", "fat", "snf", "rate"])


def check_file_name(file_name, accepted_extensions=DEFAULT_EXTENSIONS):
    _, ext = os.path.splitext(file_name or "")
    accepted = [e.lower() for e in accepted_extensions]
    if ext.lower() not in accepted:
        raise ValidationError(
            "Only %s files are allowed" % ", ".join(accepted))


def _split(line):
    values = next(csv.reader([line], skipinitialspace=True))
    return [v.strip().strip('"').strip() for v in values]


def _to_number(value, column):
    try:
        number = Decimal(value)
    except InvalidOperation:
        return None
    if not number.is_finite():
        return None
    if abs(number) >= _LIMITS[column]:
        raise OverflowError(column)
    number = number.quantize(_CENTS, rounding=ROUND_HALF_UP)
    if abs(number) >= _LIMITS[column]:
        raise OverflowError(column)
    return number


def decode(content):
    if isinstance(content, str):
        return content[1:] if content.startswith("\ufeff") else content
    if b"\x00" in content:
        raise ValidationError("File is not a text table")
    try:
        return content.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise ValidationError("File is not a text table")


def parse_rate_chart(content, file_name=None,
                     accepted_extensions=DEFAULT_EXTENSIONS):
    """
    Parse the text (or bytes) of an uploaded rate chart.

    Returns a list of ChartRow tuples of Decimals, in file order.  Rows
    with the same (CLR, FAT, SNF) key are all kept.

    Raises ValidationError listing the missing headers, or listing every
    bad row by line number.
    """
    if file_name is not None:
        check_file_name(file_name, accepted_extensions)

    text = decode(content)
    lines = [
        (number, line)
        for number, line in enumerate(text.splitlines(), start=1)
        if line.strip()
    ]
    if len(lines) < 2:
        raise ValidationError(
            "File must contain a header row and at least one data row")

    _, header_line = lines[0]
    try:
        header = _split(header_line)
    except csv.Error:
        raise ValidationError("File is not a text table")
    missing = [h for h in REQUIRED_HEADERS if h not in header]
    if missing:
        raise ValidationError(
            "Missing required headers: %s. Required: %s" % (
                ", ".join(missing), ", ".join(REQUIRED_HEADERS)),
            missing_headers=missing)
    positions = {h: header.index(h) for h in REQUIRED_HEADERS}

    rows = []
    errors = []
    for number, line in lines[1:]:
        try:
            values = _split(line)
        except csv.Error:
            errors.append(RowError(number, "column count mismatch"))
            continue
        if len(values) != len(header):
            errors.append(RowError(number, "column count mismatch"))
            continue
        fields = {h: values[i] for h, i in positions.items()}
        if not all(fields.values()):
            errors.append(RowError(number, "missing field"))
            continue
        try:
            parsed = {h: _to_number(v, h) for h, v in fields.items()}
        except OverflowError as err:
            errors.append(RowError(number, "value out of range: %s" % err))
            continue
        if any(v is None for v in parsed.values()):
            errors.append(RowError(number, "non-numeric value"))
            continue
        rows.append(ChartRow(clr=parsed["CLR"], fat=parsed["FAT"],
                             snf=parsed["SNF"], rate=parsed["RATE"]))

    if errors:
        raise ValidationError(
            "Validation failed: %s" % "; ".join(
                "line %d: %s" % (e.line, e.message) for e in errors),
            row_errors=errors)

    return rows
