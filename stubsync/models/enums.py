"""Enumeration types for stubsync."""

from enum import StrEnum


class ToolName(StrEnum):
    """Available stub tools."""

    STUBS_SYNC = "stubs_sync"
    STUBS_LIST = "stubs_list"
    STUBS_ADD = "stubs_add"
    STUBS_REMOVE = "stubs_remove"
    STUBS_UPDATE = "stubs_update"
    STUBS_RESOLVE_ORPHAN = "stubs_resolve_orphan"
    ANCHORS_DUPLICATES = "anchors_duplicates"
    ANCHORS_GENERATE = "anchors_generate"


class StubSyntax(StrEnum):
    """Encoding a stub entry was written in."""

    EXPLICIT = "explicit"  # {type: link, description: "..."}
    COMPACT = "compact"  # {link: "...", anchor: "^stub-x"}
    STRUCTURED = "structured"  # {link: {description: "...", priority: high}}


class AnchorIdStyle(StrEnum):
    """How new anchor tokens are generated."""

    RANDOM = "random"  # ^stub-a1b2c3
    TYPE_PREFIXED = "type-prefixed"  # ^stub-link-a1b2
    TYPE_ONLY = "type-only"  # ^link-a1b2c3
    SEQUENTIAL = "sequential"  # ^stub-001


class PropertyType(StrEnum):
    """Value type of a structured property."""

    STRING = "string"
    ENUM = "enum"
    ARRAY = "array"
    BOOLEAN = "boolean"
    NUMBER = "number"


class ParseErrorType(StrEnum):
    """Parse problems that drop the entry."""

    INVALID_FORMAT = "invalid_format"
    INVALID_ENTRY = "invalid_entry"
    MISSING_DESCRIPTION = "missing_description"
    INVALID_VALUE = "invalid_value"


class ParseWarningType(StrEnum):
    """Parse problems that keep the entry."""

    UNKNOWN_TYPE = "unknown_type"
    UNKNOWN_PROPERTY = "unknown_property"
    INVALID_PROPERTY_VALUE = "invalid_property_value"


class SyncErrorType(StrEnum):
    """Problems reported on a SyncState."""

    PARSE_ERROR = "parse_error"
    ANCHOR_COLLISION = "anchor_collision"
    INVALID_ANCHOR_FORMAT = "invalid_anchor_format"
    YAML_ERROR = "yaml_error"


class Severity(StrEnum):
    """Severity of a SyncError."""

    ERROR = "error"
    WARNING = "warning"


class OrphanedStubStrategy(StrEnum):
    """Resolution for a stub whose anchor is missing from the body."""

    DELETE = "delete"  # Drop the frontmatter entry
    REINSERT = "reinsert"  # Put the token back at a given line


class OrphanedAnchorStrategy(StrEnum):
    """Resolution for a body anchor with no frontmatter entry."""

    CREATE_STUB = "create_stub"  # Add a frontmatter entry for it
    DELETE = "delete"  # Strip the token from the body
    CONVERT = "convert"  # ^stub-x -> ^x, a plain untracked block reference


class SortOrder(StrEnum):
    """Ordering of stubs in list views."""

    TYPE = "type"  # Grouped by type, array order within groups
    ASC = "asc"  # First to last anchor position
    DESC = "desc"  # Last to first anchor position
