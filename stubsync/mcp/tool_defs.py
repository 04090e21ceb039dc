"""MCP tool definitions for stubsync.

This module contains all tool definitions returned by the tools/list method.
Each tool definition includes the schema for its input parameters.

Tool Categories:
    - Read: stubs_sync, stubs_list, anchors_duplicates, anchors_generate
    - Mutation: stubs_add, stubs_remove, stubs_update, stubs_resolve_orphan
"""

_PATH = {"type": "string", "description": "Document path relative to the docs root"}
_ANCHOR = {"type": "string", "description": "Anchor token, e.g. ^stub-a1b2c3"}

TOOL_DEFINITIONS: list[dict] = [
    # ============ Read Tools ============
    {
        "name": "stubs_sync",
        "description": "Parse a document's frontmatter stubs and inline anchors, link them and report orphans and errors.",
        "inputSchema": {
            "type": "object",
            "properties": {"path": _PATH},
            "required": ["path"],
        },
    },
    {
        "name": "stubs_list",
        "description": "List stubs, optionally filtered by type or text and sorted by type or anchor position.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "path": _PATH,
                "stub_types": {
                    "type": "array",
                    "items": {"type": "string"},
                    "description": "Only these stub types (empty = all)",
                },
                "filter_text": {
                    "type": "string",
                    "description": "Case-insensitive match on description, type or anchor",
                },
                "sort_order": {
                    "type": "string",
                    "enum": ["type", "asc", "desc"],
                    "default": "type",
                },
            },
            "required": ["path"],
        },
    },
    {
        "name": "anchors_duplicates",
        "description": "Find anchor tokens that appear more than once in the document body.",
        "inputSchema": {
            "type": "object",
            "properties": {"path": _PATH},
            "required": ["path"],
        },
    },
    {
        "name": "anchors_generate",
        "description": "Generate an anchor token that is not yet used in the document. Does not modify the document.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "path": _PATH,
                "stub_type": {
                    "type": "string",
                    "description": "Stub type, used by the type-prefixed and type-only id styles",
                },
            },
            "required": ["path"],
        },
    },
    # ============ Mutation Tools ============
    {
        "name": "stubs_add",
        "description": "Add a stub to the frontmatter. With a line, also append a new anchor token to that body line.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "path": _PATH,
                "stub_type": {"type": "string", "description": "Stub type key, e.g. link"},
                "description": {"type": "string"},
                "line": {
                    "type": "integer",
                    "minimum": 0,
                    "description": "Zero-indexed document line to anchor the stub at",
                },
                "anchor": {**_ANCHOR, "description": "Token to use instead of a generated one"},
                "properties": {
                    "type": "object",
                    "description": "Structured properties (priority, assignees, ...)",
                },
            },
            "required": ["path", "stub_type", "description"],
        },
    },
    {
        "name": "stubs_remove",
        "description": "Remove one stub entry, selected by anchor, index, or stub_type + description. Other entries keep their formatting.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "path": _PATH,
                "anchor": _ANCHOR,
                "index": {"type": "integer", "minimum": 0, "description": "Position in the stubs array"},
                "stub_type": {"type": "string"},
                "description": {"type": "string"},
                "remove_anchor": {
                    "type": "boolean",
                    "default": True,
                    "description": "Also strip the token from the body",
                },
            },
            "required": ["path"],
        },
    },
    {
        "name": "stubs_update",
        "description": "Update a stub's description, properties, type or anchor, selected by anchor or index. Set a property to null to remove it.",
        "inputSchema": {
            "type": "object",
            "properties": {
                "path": _PATH,
                "anchor": _ANCHOR,
                "index": {"type": "integer", "minimum": 0},
                "description": {"type": "string"},
                "properties": {"type": "object"},
                "new_anchor": {**_ANCHOR, "description": "Rename the token (frontmatter and body)"},
                "stub_type": {"type": "string"},
            },
            "required": ["path"],
        },
    },
    {
        "name": "stubs_resolve_orphan",
        "description": "Resolve an orphaned stub (delete | reinsert) or an orphaned anchor (create_stub | delete | convert).",
        "inputSchema": {
            "type": "object",
            "properties": {
                "path": _PATH,
                "kind": {"type": "string", "enum": ["stub", "anchor"]},
                "item_id": {"type": "string", "description": "Stub id or anchor token"},
                "strategy": {
                    "type": "string",
                    "enum": ["delete", "reinsert", "create_stub", "convert"],
                },
                "line": {"type": "integer", "minimum": 0, "description": "Target line for reinsert"},
                "stub_type": {"type": "string", "description": "Type for create_stub"},
                "description": {"type": "string", "description": "Description for create_stub"},
            },
            "required": ["path", "kind", "item_id", "strategy"],
        },
    },
]


def get_tool_definition(name: str) -> dict | None:
    return next((tool for tool in TOOL_DEFINITIONS if tool["name"] == name), None)
