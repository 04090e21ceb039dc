"""Stub, anchor and sync-state models.

All of these are rebuilt from raw document text on every sync; nothing here is
cached or persisted. Linking mutates ``Stub.anchor_resolved`` and the
``Anchor.has_stub`` fields in place, and the same instances are shared between
``stubs``/``anchors`` and the ``linked``/``orphaned_*`` lists of a SyncState.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, Field

from .enums import ParseErrorType, ParseWarningType, Severity, StubSyntax, SyncErrorType

# ============ STUBS ============


class Stub(BaseModel):
    """A gap recorded in the frontmatter stubs array."""

    id: str = Field(..., description="Deterministic id from type, description and index")
    type: str = Field(..., description="Stub type key (may be unknown to the configuration)")
    description: str = Field(..., min_length=1, description="Stub description")
    anchor: str | None = Field(default=None, description="Anchor token, e.g. ^stub-abc123")
    anchor_resolved: bool = Field(
        default=False, description="Whether the anchor was found in the body"
    )
    properties: dict[str, Any] = Field(default_factory=dict, description="Level-2 properties")
    syntax: StubSyntax = Field(..., description="Entry encoding used in frontmatter")
    index: int = Field(..., ge=0, description="Position in the frontmatter array")
    warnings: list[str] = Field(default_factory=list, description="Parse warnings for this entry")


# ============ ANCHORS ============


class AnchorPosition(BaseModel):
    """Zero-indexed location of an anchor token."""

    line: int = Field(..., ge=0)
    column: int = Field(..., ge=0)
    offset: int = Field(..., ge=0, description="Absolute character offset")


class Anchor(BaseModel):
    """An inline ^type-id token found in the document body."""

    id: str = Field(..., description="The full token, e.g. ^stub-abc123")
    position: AnchorPosition
    line_content: str = Field(..., description="Text of the line holding the token")
    is_end_of_line: bool = Field(..., description="Only whitespace follows the token")
    has_stub: bool = Field(default=False, description="Linked to a frontmatter stub")
    stub_type: str | None = None
    stub_description: str | None = None


class LinkedPair(BaseModel):
    """A stub and the anchor its token resolved to."""

    stub: Stub
    anchor: Anchor


# ============ PARSE RESULTS ============


class StubParseError(BaseModel):
    """Entry-level problem that drops the entry."""

    type: ParseErrorType
    message: str
    index: int | None = None


class StubParseWarning(BaseModel):
    """Entry-level problem that keeps the entry."""

    type: ParseWarningType
    message: str
    index: int | None = None
    stub_type: str | None = None
    property: str | None = None


class StubParseResult(BaseModel):
    """Output of the structured entry parser."""

    stubs: list[Stub] = Field(default_factory=list)
    errors: list[StubParseError] = Field(default_factory=list)
    warnings: list[StubParseWarning] = Field(default_factory=list)


# ============ SYNC STATE ============


class SyncError(BaseModel):
    """A recoverable problem found while syncing."""

    type: SyncErrorType
    message: str
    severity: Severity = Severity.ERROR
    index: int | None = Field(default=None, description="Stubs array index, if any")
    line: int | None = Field(default=None, description="Document line, if any")


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class SyncState(BaseModel):
    """Complete, freshly derived sync snapshot for one document."""

    stubs: list[Stub] = Field(default_factory=list)
    anchors: list[Anchor] = Field(default_factory=list)
    linked: list[LinkedPair] = Field(default_factory=list)
    orphaned_stubs: list[Stub] = Field(default_factory=list)
    orphaned_anchors: list[Anchor] = Field(default_factory=list)
    last_sync_time: datetime = Field(default_factory=_utcnow)
    errors: list[SyncError] = Field(default_factory=list)

    @property
    def unlinked_stubs(self) -> list[Stub]:
        """Stubs that intentionally carry no anchor."""
        return [stub for stub in self.stubs if stub.anchor is None]

    @property
    def has_orphans(self) -> bool:
        return bool(self.orphaned_stubs or self.orphaned_anchors)

    def content_dump(self) -> dict[str, Any]:
        """Serialized state without the timestamp (for comparing two syncs)."""
        return self.model_dump(mode="json", exclude={"last_sync_time"})
