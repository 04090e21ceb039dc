"""Request models (Pydantic *Params classes) for the stub tools."""

from typing import Any, Literal

from pydantic import BaseModel, Field, field_validator, model_validator

from .enums import SortOrder, ToolName


def _not_blank(value: str | None) -> str | None:
    if value is not None and not value.strip():
        raise ValueError("description must not be blank")
    return value


# ============ CORE REQUEST MODELS ============


class MCPRequest(BaseModel):
    """Tool execution request."""

    tool: ToolName = Field(..., description="The stub tool to execute")
    params: dict[str, Any] = Field(default_factory=dict, description="Tool parameters")


class DocumentParams(BaseModel):
    """Parameters shared by every tool: which document to work on."""

    path: str = Field(..., min_length=1, description="Document path relative to the docs root")


# ============ READ TOOLS ============


class SyncParams(DocumentParams):
    """Parameters for stubs_sync tool."""


class ListStubsParams(DocumentParams):
    """Parameters for stubs_list tool."""

    stub_types: list[str] = Field(
        default_factory=list, description="Only these types (empty = all)"
    )
    filter_text: str = Field(default="", description="Case-insensitive text filter")
    sort_order: SortOrder = Field(default=SortOrder.TYPE)


class DuplicateAnchorsParams(DocumentParams):
    """Parameters for anchors_duplicates tool."""


class GenerateAnchorParams(DocumentParams):
    """Parameters for anchors_generate tool."""

    stub_type: str | None = Field(default=None, description="Stub type for typed id styles")


# ============ MUTATION TOOLS ============


class AddStubParams(DocumentParams):
    """Parameters for stubs_add tool."""

    stub_type: str = Field(..., min_length=1)
    description: str = Field(..., min_length=1)
    line: int | None = Field(
        default=None,
        ge=0,
        description="Document line to anchor the stub at; omit for an unanchored stub",
    )
    anchor: str | None = Field(
        default=None, description="Explicit token to use instead of generating one"
    )
    properties: dict[str, Any] = Field(default_factory=dict)

    _description_not_blank = field_validator("description")(_not_blank)


class RemoveStubParams(DocumentParams):
    """Parameters for stubs_remove tool.

    Exactly one selector: ``anchor``, ``index``, or ``stub_type`` + ``description``.
    """

    anchor: str | None = None
    index: int | None = Field(default=None, ge=0)
    stub_type: str | None = None
    description: str | None = None
    remove_anchor: bool = Field(
        default=True, description="Also strip the token from the body"
    )

    @model_validator(mode="after")
    def _one_selector(self) -> "RemoveStubParams":
        selectors = [
            self.anchor is not None,
            self.index is not None,
            self.stub_type is not None or self.description is not None,
        ]
        if sum(selectors) != 1:
            raise ValueError("give exactly one of: anchor, index, stub_type+description")
        if (self.stub_type is None) != (self.description is None):
            raise ValueError("stub_type and description must be given together")
        return self


class UpdateStubParams(DocumentParams):
    """Parameters for stubs_update tool."""

    anchor: str | None = None
    index: int | None = Field(default=None, ge=0)
    description: str | None = Field(default=None, min_length=1)
    properties: dict[str, Any] | None = None
    new_anchor: str | None = None
    stub_type: str | None = Field(default=None, min_length=1, description="Change the stub type")

    _description_not_blank = field_validator("description")(_not_blank)

    @model_validator(mode="after")
    def _one_selector(self) -> "UpdateStubParams":
        if (self.anchor is None) == (self.index is None):
            raise ValueError("give exactly one of: anchor, index")
        return self


class ResolveOrphanParams(DocumentParams):
    """Parameters for stubs_resolve_orphan tool."""

    kind: Literal["stub", "anchor"] = Field(..., description="Orphaned stub or orphaned anchor")
    item_id: str = Field(..., description="Stub id or anchor token")
    strategy: str = Field(..., description="delete | reinsert | create_stub | convert")
    line: int | None = Field(default=None, ge=0, description="Target line for reinsert")
    stub_type: str | None = Field(default=None, description="Type for create_stub")
    description: str | None = Field(default=None, description="Description for create_stub")

    _description_not_blank = field_validator("description")(_not_blank)
