"""JSON-RPC plumbing and tool schemas for the ``/mcp`` endpoint in server.py."""

from .jsonrpc import (
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    SERVER_ERROR,
    jsonrpc_error,
    jsonrpc_response,
    tool_call_result,
)
from .tool_defs import TOOL_DEFINITIONS, get_tool_definition

__all__ = [
    "TOOL_DEFINITIONS",
    "get_tool_definition",
    "jsonrpc_error",
    "jsonrpc_response",
    "tool_call_result",
    "INVALID_PARAMS",
    "INVALID_REQUEST",
    "METHOD_NOT_FOUND",
    "PARSE_ERROR",
    "SERVER_ERROR",
]
