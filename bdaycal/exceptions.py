"""
Exception hierarchy for birthday sync runs
"""


class BirthdaySyncError(Exception):
    """Base class for every error that terminates a sync run"""


class ConfigurationError(BirthdaySyncError):
    """Invalid or missing configuration value"""


class ConnectivityError(BirthdaySyncError):
    """A DAV target stayed unreachable after all retries"""

    def __init__(self, target: str, attempts: int):
        self.target = target
        self.attempts = attempts
        super().__init__(f"{target} not reachable after {attempts} attempt(s)")


class SourceUnavailable(BirthdaySyncError):
    """The address book could not be listed or read"""


class StoreError(BirthdaySyncError):
    """Transport or HTTP failure against a DAV collection"""

    def __init__(self, message: str, url: str, status: int = None):
        self.url = url
        self.status = status
        super().__init__(message)


class DataIntegrityError(BirthdaySyncError):
    """Duplicate or missing identifier within one run"""


class RecordParseError(ValueError):
    """A single vCard or iCalendar record could not be used; the record is skipped"""
