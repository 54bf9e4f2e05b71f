import hashlib
import re
import xxhash

from django.conf import settings


def calc_checksum(data, algorithm=None):
    """
    Calculate checksum of uploaded chart content
    """
    if algorithm is None:
        algorithm = getattr(settings, "RATECHART_CHECKSUM", "xxh3_64")
    if isinstance(data, str):
        data = data.encode("utf-8")

    if algorithm == "xxh3_64":
        checksum = xxhash.xxh3_64(data).hexdigest()
    elif algorithm == "md5":
        checksum = hashlib.md5(data).hexdigest()
    else:
        checksum = None

    return checksum


def parse_ids(value):
    """
    Society, machine or chart ids given either as a list or as a comma
    joined string.  Duplicates are dropped, order is kept.

    Raises ValueError for anything which isn't an integer id.
    """
    if value is None:
        return []
    if isinstance(value, (int, str)):
        value = str(value).split(",")
    ids = []
    for item in value:
        if isinstance(item, str):
            item = item.strip()
            if not item:
                continue
        item = int(item)
        if item not in ids:
            ids.append(item)
    return ids


def machine_id_variants(machine_id):
    """
    Stored forms a device's machine id may have been registered under.

    Devices send an "M" prefixed id (M00001, Mm00001, Ma00005) while the
    machine may have been registered with the prefix dropped, with leading
    zeros stripped, or as a plain number.  The id as sent comes first.
    """
    variants = [machine_id]
    rest = machine_id[1:]
    if not machine_id.startswith("M") or not re.match(r"^[a-zA-Z0-9]+$",
                                                      rest):
        return variants

    stripped = rest.lstrip("0")
    if rest[0].isalpha() and rest[1:].isdigit():
        # m00001 -> m1
        candidates = [rest[0].lower() + (rest[1:].lstrip("0") or "0"), rest]
    elif rest[0].isalpha():
        candidates = [rest]
    else:
        candidates = [rest, stripped or "0"]
    candidates.append(stripped)

    for candidate in candidates:
        if candidate and candidate not in variants:
            variants.append(candidate)
    return variants
