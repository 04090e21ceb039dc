"""Stubs configuration models.

The configuration is the user-defined vocabulary the engine reads but never
writes: stub types (level 1), structured properties (level 2), anchor naming
and the frontmatter key holding the stubs array.
"""

import re
from typing import Any

from pydantic import BaseModel, Field, field_validator

from .enums import AnchorIdStyle, PropertyType

_PREFIX_RE = re.compile(r"^[a-zA-Z]+$")


class StubTypeDefinition(BaseModel):
    """A stub type the user can put in frontmatter (e.g. ``link``, ``question``)."""

    id: str = Field(..., description="Unique identifier for this stub type")
    key: str = Field(..., description="YAML key used in frontmatter")
    display_name: str = Field(..., description="Name shown in UIs")
    color: str = Field(default="#7f8c8d", description="Hex color for highlighting")
    icon: str | None = Field(default=None, description="Icon name")
    description: str | None = Field(default=None, description="Tooltip text")
    default_stub_description: str | None = Field(
        default=None, description="Description used when none is given"
    )
    defaults: dict[str, Any] = Field(
        default_factory=dict, description="Default level-2 property values"
    )
    sort_order: int = Field(default=0, description="Lower sorts first")


class StructuredPropertyDefinition(BaseModel):
    """A level-2 property that may appear on a stub entry."""

    id: str = Field(..., description="Unique identifier")
    key: str = Field(..., description="Property key in YAML")
    display_name: str = Field(..., description="Name shown in UIs")
    type: PropertyType = Field(..., description="Value type")
    enum_values: list[str] | None = Field(
        default=None, description="Allowed values for enum properties"
    )
    required: bool = Field(default=False, description="Required in structured syntax")
    default_value: Any = Field(default=None, description="Default when unspecified")
    description: str | None = Field(default=None, description="Help text")
    sort_order: int = Field(default=0, description="Lower sorts first")


class AnchorSettings(BaseModel):
    """Anchor token naming."""

    prefix: str = Field(default="stub", description="Token prefix, letters only")
    id_style: AnchorIdStyle = Field(default=AnchorIdStyle.RANDOM)
    random_id_length: int = Field(default=6, ge=1, le=32)

    @field_validator("prefix")
    @classmethod
    def _prefix_is_scannable(cls, value: str) -> str:
        # Tokens are scanned as ^[a-zA-Z]+-...; any other prefix would never be found.
        if not _PREFIX_RE.match(value):
            raise ValueError(f"anchor prefix must contain only letters, got {value!r}")
        return value

    @property
    def token_prefix(self) -> str:
        """The literal every tracked token starts with, e.g. ``^stub-``."""
        return f"^{self.prefix}-"


class StubsConfiguration(BaseModel):
    """Root stubs configuration."""

    enabled: bool = True
    frontmatter_key: str = Field(default="stubs", min_length=1)
    stub_types: dict[str, StubTypeDefinition] = Field(default_factory=dict)
    structured_properties: dict[str, StructuredPropertyDefinition] = Field(
        default_factory=dict
    )
    anchors: AnchorSettings = Field(default_factory=AnchorSettings)

    # ============ LOOKUPS ============

    def get_stub_type(self, key: str) -> StubTypeDefinition | None:
        """Get stub type definition by its YAML key."""
        for stub_type in self.stub_types.values():
            if stub_type.key == key:
                return stub_type
        return None

    def get_property(self, key: str) -> StructuredPropertyDefinition | None:
        """Get structured property definition by its YAML key."""
        for prop in self.structured_properties.values():
            if prop.key == key:
                return prop
        return None

    def is_valid_stub_type(self, key: str) -> bool:
        return self.get_stub_type(key) is not None

    @property
    def type_keys(self) -> list[str]:
        return [t.key for t in self.stub_types.values()]

    @property
    def property_keys(self) -> list[str]:
        return [p.key for p in self.structured_properties.values()]

    def sorted_stub_types(self) -> list[StubTypeDefinition]:
        return sorted(self.stub_types.values(), key=lambda t: t.sort_order)

    def sorted_properties(self) -> list[StructuredPropertyDefinition]:
        return sorted(self.structured_properties.values(), key=lambda p: p.sort_order)


# ============ DEFAULT VOCABULARY ============

# (key, display name, color, icon, tooltip, default description, stub_form)
_DEFAULT_TYPES: list[tuple[str, str, str, str, str, str, str]] = [
    ("link", "Citation Needed", "#e67e22", "link",
     "Content needs a citation or reference", "Citation needed", "persistent"),
    ("clarify", "Clarify", "#3498db", "help-circle",
     "Content is ambiguous and needs clarification", "Needs clarification", "transient"),
    ("expand", "Expand", "#2ecc71", "plus-circle",
     "Section needs more detail or content", "Expand this section", "transient"),
    ("question", "Question", "#9b59b6", "message-circle",
     "Open question that needs research or decision", "Open question", "transient"),
    ("verify", "Verify", "#f39c12", "check-circle",
     "Content needs fact-checking or verification", "Needs verification", "transient"),
    ("controversy", "Controversy", "#e74c3c", "alert-triangle",
     "Conflicting perspectives or unresolved disagreement", "Disputed content", "blocking"),
    ("blocker", "Blocker", "#c0392b", "octagon",
     "Cannot proceed until this is resolved", "Blocking issue", "blocking"),
    ("todo", "Todo", "#7f8c8d", "check-square",
     "Task reminder or action item", "TODO", "transient"),
]


def default_stub_types() -> dict[str, StubTypeDefinition]:
    return {
        key: StubTypeDefinition(
            id=key,
            key=key,
            display_name=display_name,
            color=color,
            icon=icon,
            description=tooltip,
            default_stub_description=default_description,
            defaults={"stub_form": stub_form},
            sort_order=order,
        )
        for order, (key, display_name, color, icon, tooltip, default_description, stub_form)
        in enumerate(_DEFAULT_TYPES, start=1)
    }


def default_structured_properties() -> dict[str, StructuredPropertyDefinition]:
    return {
        "stub_form": StructuredPropertyDefinition(
            id="stub_form",
            key="stub_form",
            display_name="Form",
            type=PropertyType.ENUM,
            enum_values=["transient", "persistent", "blocking", "structural"],
            default_value="transient",
            description="Expected lifecycle and severity of the stub",
            sort_order=1,
        ),
        "priority": StructuredPropertyDefinition(
            id="priority",
            key="priority",
            display_name="Priority",
            type=PropertyType.ENUM,
            enum_values=["low", "medium", "high", "critical"],
            description="Urgency level for resolution",
            sort_order=2,
        ),
        "assignees": StructuredPropertyDefinition(
            id="assignees",
            key="assignees",
            display_name="Assignees",
            type=PropertyType.ARRAY,
            description="People responsible for resolution (wikilinks)",
            sort_order=3,
        ),
        "references": StructuredPropertyDefinition(
            id="references",
            key="references",
            display_name="References",
            type=PropertyType.ARRAY,
            description="Related documents or external links",
            sort_order=4,
        ),
    }


def default_configuration() -> StubsConfiguration:
    """Build a fresh default configuration (safe to mutate)."""
    return StubsConfiguration(
        stub_types=default_stub_types(),
        structured_properties=default_structured_properties(),
    )
