"""Custom exceptions for the :mod:`stubsync` package.

Parse and sync problems are never raised; they are reported on
``StubParseResult`` / ``SyncState``. These exceptions cover the cases where a
caller asked for something that cannot be done at all.
"""


class StubSyncError(Exception):
    """Base exception for stubsync errors."""


class ConfigurationError(StubSyncError, ValueError):
    """Stubs configuration file could not be read or validated."""


class MetadataDecodeError(StubSyncError, ValueError):
    """Frontmatter block exists but is not valid YAML, so it cannot be rewritten."""


class InvalidLineError(StubSyncError, ValueError):
    """Target line is outside the document body."""


class DocumentAccessError(StubSyncError, PermissionError):
    """Document path is outside the configured root or has an unsupported suffix."""


__all__ = [
    "StubSyncError",
    "ConfigurationError",
    "MetadataDecodeError",
    "InvalidLineError",
    "DocumentAccessError",
]
