"""Tool handlers for the stub engine.

Each handler is a standalone async function that takes:
- params: dict[str, Any] - Tool parameters from the MCP call
- ctx: HandlerContext - Configuration, codec and document resolver

And returns:
- ToolResult with data (``{"error": ...}`` for calls that could not be served)
"""

from ...models import ToolName
from .base import HANDLED_ERRORS, HandlerContext, HandlerFunc, error_result, parse_params
from .stubs import (
    handle_anchors_duplicates,
    handle_anchors_generate,
    handle_stubs_add,
    handle_stubs_list,
    handle_stubs_remove,
    handle_stubs_resolve_orphan,
    handle_stubs_sync,
    handle_stubs_update,
)

TOOL_HANDLERS: dict[ToolName, HandlerFunc] = {
    ToolName.STUBS_SYNC: handle_stubs_sync,
    ToolName.STUBS_LIST: handle_stubs_list,
    ToolName.STUBS_ADD: handle_stubs_add,
    ToolName.STUBS_REMOVE: handle_stubs_remove,
    ToolName.STUBS_UPDATE: handle_stubs_update,
    ToolName.STUBS_RESOLVE_ORPHAN: handle_stubs_resolve_orphan,
    ToolName.ANCHORS_DUPLICATES: handle_anchors_duplicates,
    ToolName.ANCHORS_GENERATE: handle_anchors_generate,
}

# Tools that write the document; the server runs these one at a time per path
MUTATING_TOOLS = frozenset(
    {
        ToolName.STUBS_ADD,
        ToolName.STUBS_REMOVE,
        ToolName.STUBS_UPDATE,
        ToolName.STUBS_RESOLVE_ORPHAN,
    }
)

__all__ = [
    # Base
    "HANDLED_ERRORS",
    "HandlerContext",
    "HandlerFunc",
    "error_result",
    "parse_params",
    # Registry
    "TOOL_HANDLERS",
    "MUTATING_TOOLS",
    # Stub handlers
    "handle_stubs_sync",
    "handle_stubs_list",
    "handle_stubs_add",
    "handle_stubs_remove",
    "handle_stubs_update",
    "handle_stubs_resolve_orphan",
    # Anchor handlers
    "handle_anchors_duplicates",
    "handle_anchors_generate",
]
