"""Pydantic models for stubsync.

This module re-exports all models. Import from submodules directly for
narrower imports:

    from stubsync.models.enums import StubSyntax
    from stubsync.models.stubs import SyncState
"""

# ============ CONFIGURATION ============
from .config import (
    AnchorSettings,
    StructuredPropertyDefinition,
    StubsConfiguration,
    StubTypeDefinition,
    default_configuration,
)

# ============ ENUMS ============
from .enums import (
    AnchorIdStyle,
    OrphanedAnchorStrategy,
    OrphanedStubStrategy,
    ParseErrorType,
    ParseWarningType,
    PropertyType,
    Severity,
    SortOrder,
    StubSyntax,
    SyncErrorType,
    ToolName,
)

# ============ REQUEST MODELS ============
from .requests import (
    AddStubParams,
    DocumentParams,
    DuplicateAnchorsParams,
    GenerateAnchorParams,
    ListStubsParams,
    MCPRequest,
    RemoveStubParams,
    ResolveOrphanParams,
    SyncParams,
    UpdateStubParams,
)

# ============ RESPONSE MODELS ============
from .responses import (
    DuplicateAnchorsResult,
    HealthResponse,
    MCPResponse,
    MutationResult,
    ToolResult,
    UsageInfo,
)

# ============ DATA MODEL ============
from .stubs import (
    Anchor,
    AnchorPosition,
    LinkedPair,
    Stub,
    StubParseError,
    StubParseResult,
    StubParseWarning,
    SyncError,
    SyncState,
)

__all__ = [
    # Configuration
    "AnchorSettings",
    "StructuredPropertyDefinition",
    "StubsConfiguration",
    "StubTypeDefinition",
    "default_configuration",
    # Enums
    "AnchorIdStyle",
    "OrphanedAnchorStrategy",
    "OrphanedStubStrategy",
    "ParseErrorType",
    "ParseWarningType",
    "PropertyType",
    "Severity",
    "SortOrder",
    "StubSyntax",
    "SyncErrorType",
    "ToolName",
    # Request models
    "AddStubParams",
    "DocumentParams",
    "DuplicateAnchorsParams",
    "GenerateAnchorParams",
    "ListStubsParams",
    "MCPRequest",
    "RemoveStubParams",
    "ResolveOrphanParams",
    "SyncParams",
    "UpdateStubParams",
    # Response models
    "DuplicateAnchorsResult",
    "HealthResponse",
    "MCPResponse",
    "MutationResult",
    "ToolResult",
    "UsageInfo",
    # Data model
    "Anchor",
    "AnchorPosition",
    "LinkedPair",
    "Stub",
    "StubParseError",
    "StubParseResult",
    "StubParseWarning",
    "SyncError",
    "SyncState",
]
