"""Response models for stubsync."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, Field

from .stubs import Anchor, SyncState


class ToolResult(BaseModel):
    """Result of a tool handler."""

    data: dict[str, Any] = Field(default_factory=dict, description="Tool output payload")

    @property
    def is_error(self) -> bool:
        return "error" in self.data


class UsageInfo(BaseModel):
    """Request timing."""

    latency_ms: int = Field(default=0, ge=0)


class MCPResponse(BaseModel):
    """Tool execution response."""

    success: bool
    result: Any = None
    error: str | None = None
    usage: UsageInfo = Field(default_factory=UsageInfo)


class HealthResponse(BaseModel):
    """Health check response."""

    status: str
    version: str
    timestamp: datetime
    docs_root: str


class MutationResult(BaseModel):
    """Outcome of a read-then-write operation on one document."""

    changed: bool = Field(..., description="Whether the document text was rewritten")
    sync: SyncState = Field(..., description="Sync state of the resulting text")
    anchor_id: str | None = Field(default=None, description="Token created or affected")


class DuplicateAnchorsResult(BaseModel):
    """Result of anchors_duplicates tool."""

    duplicates: dict[str, list[Anchor]] = Field(default_factory=dict)
    count: int = Field(default=0, ge=0, description="Number of duplicated tokens")
