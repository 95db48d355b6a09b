"""Error types shared by the core and adapters.

Configuration errors are fatal at startup. Everything else is raised at a
per-rule or per-book boundary where the caller logs it and moves on.
"""

from __future__ import annotations


class ShinkanError(Exception):
    """Base class for all errors raised by shinkan."""


class ConfigReadError(ShinkanError):
    """A configuration file could not be read."""


class ConfigParseError(ShinkanError):
    """A configuration file was read but its contents are not usable."""


class InvalidFieldName(ShinkanError):
    """A filter rule names a field that books do not have."""


class InvalidConditionKind(ShinkanError):
    """A filter rule uses an unknown condition type."""


class InvalidCode(ShinkanError):
    """A classification code is not four digits."""


class FeedError(ShinkanError):
    """The new-releases feed could not be fetched or parsed."""


class DetailFetchError(ShinkanError):
    """The book-data API request failed."""


class NotificationError(ShinkanError):
    """A notification could not be delivered."""


class RecorderError(ShinkanError):
    """The book record store could not be read or written."""


class UploadError(ShinkanError):
    """The feed archive could not be uploaded."""
