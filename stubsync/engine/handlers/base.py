"""Base infrastructure for tool handlers.

This module provides the common types and utilities used by all handler modules.
Each handler receives a HandlerContext with shared state and returns a ToolResult.
"""

from collections.abc import Callable, Coroutine
from dataclasses import dataclass
from typing import Any, TypeVar

from pydantic import BaseModel, ValidationError

from ...errors import StubSyncError
from ...models import StubsConfiguration, ToolResult
from ..core.frontmatter import FrontmatterCodec
from ..document import DocumentIO

ParamsT = TypeVar("ParamsT", bound=BaseModel)

# Failures a handler reports as {"error": ...} instead of raising.
# pydantic's ValidationError is a ValueError.
HANDLED_ERRORS = (StubSyncError, ValueError, FileNotFoundError)


@dataclass
class HandlerContext:
    """Context object passed to all handlers.

    Contains the configuration and the collaborators handlers need, so the
    handlers stay independent of the server.
    """

    # Stub vocabulary and anchor naming
    config: StubsConfiguration

    # Frontmatter decode/transform primitive
    codec: FrontmatterCodec

    # Maps a request path to a document; raises DocumentAccessError for bad paths
    open_document: Callable[[str], DocumentIO]


# Type alias for handler functions
HandlerFunc = Callable[
    [dict[str, Any], HandlerContext],
    Coroutine[Any, Any, ToolResult],
]


def parse_params(model: type[ParamsT], params: dict[str, Any]) -> ParamsT:
    """Validate raw tool params into their Params model.

    Raises:
        ValidationError: If the params do not fit the model
    """
    return model.model_validate(params)


def error_result(error: Exception | str) -> ToolResult:
    """Build the ToolResult for a failed call."""
    if isinstance(error, FileNotFoundError):
        return ToolResult(data={"error": "Document not found"})
    if isinstance(error, ValidationError):
        message = "; ".join(
            f"{'.'.join(str(part) for part in e['loc']) or 'params'}: {e['msg']}"
            for e in error.errors()
        )
        return ToolResult(data={"error": f"Invalid parameters: {message}"})
    return ToolResult(data={"error": str(error)})
