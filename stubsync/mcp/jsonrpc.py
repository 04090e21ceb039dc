"""JSON-RPC 2.0 helpers for the MCP transport.

Builds JSON-RPC 2.0 responses and errors and wraps tool results in the MCP
``tools/call`` content envelope.

See: https://www.jsonrpc.org/specification
"""

import json
from typing import Any

from ..models import ToolResult

# Standard JSON-RPC error codes
PARSE_ERROR = -32700
INVALID_REQUEST = -32600
METHOD_NOT_FOUND = -32601
INVALID_PARAMS = -32602
INTERNAL_ERROR = -32603
SERVER_ERROR = -32000  # Base for application-specific errors

JSONRPC_VERSION = "2.0"


def jsonrpc_response(id: Any, result: Any) -> dict:
    """Create a JSON-RPC 2.0 success response.

    Args:
        id: Request ID (must match the request)
        result: The result payload

    Returns:
        JSON-RPC 2.0 response dict
    """
    return {"jsonrpc": JSONRPC_VERSION, "id": id, "result": result}


def jsonrpc_error(id: Any, code: int, message: str, data: Any = None) -> dict:
    """Create a JSON-RPC 2.0 error response.

    Args:
        id: Request ID (None when the request could not be parsed)
        code: One of the error codes above
        message: Human-readable error message
        data: Optional extra detail

    Returns:
        JSON-RPC 2.0 error response dict
    """
    error: dict[str, Any] = {"code": code, "message": message}
    if data is not None:
        error["data"] = data
    return {"jsonrpc": JSONRPC_VERSION, "id": id, "error": error}


def tool_call_result(result: ToolResult) -> dict:
    """Wrap a ToolResult as an MCP ``tools/call`` result.

    Tool-level failures stay inside the result (``isError``) rather than
    becoming JSON-RPC errors, so clients can show them to the model.
    """
    return {
        "content": [{"type": "text", "text": json.dumps(result.data, ensure_ascii=False)}],
        "isError": result.is_error,
    }
