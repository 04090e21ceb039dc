"""FastAPI MCP server for stubsync."""

import asyncio
import json
import logging
import time
import weakref
from collections.abc import AsyncGenerator
from contextlib import asynccontextmanager
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from fastapi import FastAPI, HTTPException, Request, Response
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from . import __version__
from .config import get_stubs_configuration, settings
from .engine.core.frontmatter import get_default_codec
from .engine.document import FileDocument
from .engine.handlers import MUTATING_TOOLS, TOOL_HANDLERS, HandlerContext
from .errors import DocumentAccessError, StubSyncError
from .mcp import (
    INVALID_PARAMS,
    INVALID_REQUEST,
    METHOD_NOT_FOUND,
    PARSE_ERROR,
    SERVER_ERROR,
    TOOL_DEFINITIONS,
    jsonrpc_error,
    jsonrpc_response,
    tool_call_result,
)
from .models import HealthResponse, MCPRequest, MCPResponse, ToolName, ToolResult, UsageInfo

logger = logging.getLogger(__name__)

SERVER_NAME = "stubsync"
PROTOCOL_VERSION = "2024-11-05"
DOCUMENT_SUFFIXES = {".md", ".markdown", ".txt"}


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncGenerator[None, None]:
    """Application lifespan handler for startup/shutdown."""
    logger.info(f"Starting stubsync MCP server v{__version__} (docs root: {settings.docs_root})")

    if not settings.debug and settings.cors_allowed_origins == "*":
        logger.warning(
            "CORS is configured to allow all origins ('*'). "
            "Set STUBSYNC_CORS_ALLOWED_ORIGINS to specific origins when exposing the server."
        )

    # Fail at startup rather than on the first tool call
    get_stubs_configuration()

    yield
    logger.info("Stopping stubsync MCP server")


app = FastAPI(
    title="stubsync MCP Server",
    description="Keeps frontmatter stubs and inline ^stub anchors of Markdown documents in sync",
    version=__version__,
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins_list,
    allow_methods=["GET", "POST", "OPTIONS"],
    allow_headers=["Content-Type"],
)


# ============ EXCEPTION HANDLERS ============


@app.exception_handler(HTTPException)
async def http_exception_handler(request: Request, exc: HTTPException):
    """Handle HTTP exceptions with consistent response format."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "success": False,
            "error": exc.detail,
            "usage": {"latency_ms": 0},
        },
    )


@app.exception_handler(Exception)
async def general_exception_handler(request: Request, exc: Exception):
    """Handle unexpected exceptions with sanitized error messages."""
    logger.error(f"Unhandled exception: {exc}", exc_info=True)
    return JSONResponse(
        status_code=500,
        content={
            "success": False,
            "error": "An internal server error occurred. Please try again.",
            "usage": {"latency_ms": 0},
        },
    )


def sanitize_error_message(error: Exception) -> str:
    """Return a client-safe message for an exception raised during a tool call.

    Errors raised by the engine itself describe the caller's mistake and are
    passed through; anything else is logged and replaced by a generic message.
    """
    if isinstance(error, StubSyncError):
        return str(error)

    logger.error(f"Tool execution error: {error}", exc_info=True)
    return "An error occurred processing your request. Please try again."


# ============ DOCUMENT ACCESS ============


def resolve_document_path(path: str) -> Path:
    """Map a request path to a file under the docs root.

    Raises:
        DocumentAccessError: If the path escapes the docs root or has an
            unsupported suffix
    """
    root = settings.docs_root.resolve()
    candidate = (root / path).resolve()

    if not candidate.is_relative_to(root):
        raise DocumentAccessError(f"Path is outside the docs root: {path}")
    if candidate.suffix.lower() not in DOCUMENT_SUFFIXES:
        allowed = ", ".join(sorted(DOCUMENT_SUFFIXES))
        raise DocumentAccessError(f"Unsupported document type: {path} (allowed: {allowed})")
    return candidate


def open_document(path: str) -> FileDocument:
    return FileDocument(resolve_document_path(path))


def get_handler_context() -> HandlerContext:
    return HandlerContext(
        config=get_stubs_configuration(),
        codec=get_default_codec(),
        open_document=open_document,
    )


# One writer at a time per document; a lock lives only while a call holds it
_document_locks: weakref.WeakValueDictionary[str, asyncio.Lock] = weakref.WeakValueDictionary()


def _lock_for(path: str) -> asyncio.Lock:
    try:
        key = str(resolve_document_path(path))
    except DocumentAccessError:
        key = path
    lock = _document_locks.get(key)
    if lock is None:
        lock = _document_locks[key] = asyncio.Lock()
    return lock


async def execute_tool(tool: ToolName, params: dict[str, Any]) -> ToolResult:
    """Run a tool handler, serializing mutations of the same document."""
    handler = TOOL_HANDLERS[tool]
    ctx = get_handler_context()

    if tool in MUTATING_TOOLS and isinstance(params.get("path"), str):
        async with _lock_for(params["path"]):
            return await handler(params, ctx)
    return await handler(params, ctx)


# ============ HEALTH ENDPOINTS ============


@app.get("/health", response_model=HealthResponse, tags=["Health"])
async def health_check() -> HealthResponse:
    """Health check endpoint (lightweight liveness check)."""
    return HealthResponse(
        status="healthy",
        version=__version__,
        timestamp=datetime.now(timezone.utc),
        docs_root=str(settings.docs_root),
    )


@app.get("/", tags=["Health"])
async def root():
    """Root endpoint with API info."""
    return {
        "name": "stubsync MCP Server",
        "version": __version__,
        "docs": "/docs",
        "health": "/health",
        "tools": [tool.value for tool in ToolName],
    }


# ============ MCP ENDPOINTS ============


@app.post("/v1/mcp", response_model=MCPResponse, tags=["MCP"])
async def mcp_endpoint(request: MCPRequest) -> MCPResponse:
    """
    Execute a stub tool.

    Args:
        request: The MCP request with tool and parameters

    Returns:
        MCPResponse with result or error
    """
    start_time = time.perf_counter()

    try:
        result = await execute_tool(request.tool, request.params)
        latency_ms = int((time.perf_counter() - start_time) * 1000)

        if result.is_error:
            return MCPResponse(
                success=False,
                result=result.data,
                error=str(result.data["error"]),
                usage=UsageInfo(latency_ms=latency_ms),
            )
        return MCPResponse(
            success=True,
            result=result.data,
            usage=UsageInfo(latency_ms=latency_ms),
        )

    except Exception as e:
        latency_ms = int((time.perf_counter() - start_time) * 1000)
        return MCPResponse(
            success=False,
            error=sanitize_error_message(e),
            usage=UsageInfo(latency_ms=latency_ms),
        )


# ============ MCP TRANSPORT (JSON-RPC) ============


@app.post("/mcp", tags=["MCP Transport"])
async def mcp_transport_endpoint(request: Request):
    """
    MCP HTTP endpoint (JSON-RPC format).

    Supports initialize, ping, tools/list and tools/call, single or batched.

    Config example:
    ```json
    {"mcpServers": {"stubsync": {"type": "http", "url": "http://127.0.0.1:8000/mcp"}}}
    ```
    """
    try:
        body = await request.json()
    except json.JSONDecodeError:
        return JSONResponse(jsonrpc_error(None, PARSE_ERROR, "Parse error"), status_code=400)

    # Handle batch requests
    if isinstance(body, list):
        responses = []
        for req in body:
            resp = await _handle_request(req)
            if resp:  # Skip notifications (no id)
                responses.append(resp)
        return JSONResponse(responses) if responses else Response(status_code=204)

    # Handle single request
    response = await _handle_request(body)
    return JSONResponse(response) if response else Response(status_code=204)


async def _handle_request(body: Any) -> dict | None:
    """Handle a single JSON-RPC request."""
    if not isinstance(body, dict):
        return jsonrpc_error(None, INVALID_REQUEST, "Invalid request")

    method = body.get("method")
    id = body.get("id")
    params = body.get("params") or {}

    if id is None:  # Notification - no response
        return None

    if method == "initialize":
        return jsonrpc_response(
            id,
            {
                "protocolVersion": PROTOCOL_VERSION,
                "serverInfo": {"name": SERVER_NAME, "version": __version__},
                "capabilities": {"tools": {}},
            },
        )
    elif method == "tools/list":
        return jsonrpc_response(id, {"tools": TOOL_DEFINITIONS})
    elif method == "tools/call":
        return await _handle_call_tool(id, params)
    elif method == "ping":
        return jsonrpc_response(id, {})
    else:
        return jsonrpc_error(id, METHOD_NOT_FOUND, f"Method not found: {method}")


async def _handle_call_tool(id: Any, params: dict) -> dict:
    """Handle MCP tools/call request."""
    tool_name = params.get("name")
    arguments = params.get("arguments") or {}

    try:
        tool = ToolName(tool_name)
    except ValueError:
        return jsonrpc_error(id, INVALID_PARAMS, f"Unknown tool: {tool_name}")
    if not isinstance(arguments, dict):
        return jsonrpc_error(id, INVALID_PARAMS, "Tool arguments must be an object")

    try:
        result = await execute_tool(tool, arguments)
    except Exception as e:
        return jsonrpc_error(id, SERVER_ERROR, sanitize_error_message(e))

    return jsonrpc_response(id, tool_call_result(result))
