"""
Errors raised by the rate chart parser, store and engine
"""
from collections import namedtuple


RowError = namedtuple("RowError", ["line", "message"])


class RateChartError(Exception):
    pass


class ValidationError(RateChartError):
    """
    Malformed upload.  Always carries every problem found, never a partial
    result.
    """

    def __init__(self, message, row_errors=None, missing_headers=None):
        self.row_errors = list(row_errors or [])
        self.missing_headers = list(missing_headers or [])
        super().__init__(message)

    def as_dict(self):
        return {
            "error": str(self),
            "missing_headers": self.missing_headers,
            "row_errors": [
                {"line": e.line, "message": e.message}
                for e in self.row_errors
            ]
        }


class ConflictError(RateChartError):
    """
    One or more target societies already have an active chart for the
    channel.  conflicts is a list of dicts with societyId, societyName and
    currentFileName, so the caller can ask whether to replace them.
    """

    def __init__(self, message, conflicts=None):
        self.conflicts = list(conflicts or [])
        super().__init__(message)

    @property
    def society_ids(self):
        return [c["societyId"] for c in self.conflicts]


class MasterInUseError(ConflictError):
    """
    Removing a master header which other societies still share, while the
    "refuse" master removal policy is configured
    """


class NotFoundError(RateChartError):
    pass


class StorageError(RateChartError):
    """
    The transaction failed and was rolled back.  The message of the
    underlying database error is kept verbatim.
    """
