"""Stub tool handlers.

Handles:
- stubs_sync: Parse and link a document's stubs and anchors
- stubs_list: Filtered, sorted stub listing
- stubs_add: Add a stub, optionally anchored at a line
- stubs_remove: Remove a stub entry (and its anchor)
- stubs_update: Update a stub in place
- stubs_resolve_orphan: Apply an orphan resolution strategy
- anchors_duplicates: Report tokens used more than once in the body
- anchors_generate: Generate a token unique within the document
"""

import logging
from typing import Any

from ...models import (
    AddStubParams,
    DuplicateAnchorsParams,
    DuplicateAnchorsResult,
    GenerateAnchorParams,
    ListStubsParams,
    OrphanedAnchorStrategy,
    OrphanedStubStrategy,
    RemoveStubParams,
    ResolveOrphanParams,
    SortOrder,
    SyncParams,
    SyncState,
    ToolResult,
    UpdateStubParams,
)
from .. import operations
from ..core.anchors import find_duplicate_anchors, generate_anchor_id, is_scannable_token
from ..store import StubsViewState, count_by_type, sorted_visible_stubs, visible_stubs_by_type
from .base import HANDLED_ERRORS, HandlerContext, error_result, parse_params

logger = logging.getLogger(__name__)


def _summary(state: SyncState) -> dict[str, int]:
    return {
        "stubs": len(state.stubs),
        "anchors": len(state.anchors),
        "linked": len(state.linked),
        "orphaned_stubs": len(state.orphaned_stubs),
        "orphaned_anchors": len(state.orphaned_anchors),
        "unlinked_stubs": len(state.unlinked_stubs),
        "errors": len(state.errors),
    }


def _check_token(token: str | None, name: str) -> None:
    if token is not None and not is_scannable_token(token):
        raise ValueError(f'{name} "{token}" is not a valid anchor token (^type-id)')


# ============ READ TOOLS ============


async def handle_stubs_sync(
    params: dict[str, Any],
    ctx: HandlerContext,
) -> ToolResult:
    """Sync a document.

    Args:
        params: Dict containing:
            - path: Document path relative to the docs root

    Returns:
        ToolResult with the full SyncState and a count summary
    """
    try:
        request = parse_params(SyncParams, params)
        document = ctx.open_document(request.path)
        state = await operations.sync_document(document, ctx.config, ctx.codec)
    except HANDLED_ERRORS as e:
        return error_result(e)

    return ToolResult(
        data={
            "path": request.path,
            "summary": _summary(state),
            **state.model_dump(mode="json"),
        }
    )


async def handle_stubs_list(
    params: dict[str, Any],
    ctx: HandlerContext,
) -> ToolResult:
    """List stubs with type / text filters and a sort order.

    Args:
        params: Dict containing:
            - path: Document path
            - stub_types: Only these types (optional)
            - filter_text: Case-insensitive match on description, type or anchor (optional)
            - sort_order: "type" (grouped), "asc" or "desc" by anchor position

    Returns:
        ToolResult with the matching stubs, grouped when sorting by type
    """
    try:
        request = parse_params(ListStubsParams, params)
        document = ctx.open_document(request.path)
        state = await operations.sync_document(document, ctx.config, ctx.codec)
    except HANDLED_ERRORS as e:
        return error_result(e)

    view = StubsViewState(
        sync=state,
        config=ctx.config,
        filter_text=request.filter_text,
        active_type_filters=frozenset(request.stub_types),
        sort_order=request.sort_order,
    )
    stubs = sorted_visible_stubs(view)

    data: dict[str, Any] = {
        "path": request.path,
        "sort_order": request.sort_order.value,
        "total": len(stubs),
        "stubs": [s.model_dump(mode="json") for s in stubs],
        "count_by_type": count_by_type(view),
    }
    if request.sort_order == SortOrder.TYPE:
        data["by_type"] = {
            key: [s.id for s in group]
            for key, group in visible_stubs_by_type(view).items()
            if group
        }
    return ToolResult(data=data)


async def handle_anchors_duplicates(
    params: dict[str, Any],
    ctx: HandlerContext,
) -> ToolResult:
    """Report anchor tokens that appear more than once in the body."""
    try:
        request = parse_params(DuplicateAnchorsParams, params)
        document = ctx.open_document(request.path)
        state = await operations.sync_document(document, ctx.config, ctx.codec)
    except HANDLED_ERRORS as e:
        return error_result(e)

    duplicates = find_duplicate_anchors(state.anchors)
    result = DuplicateAnchorsResult(duplicates=duplicates, count=len(duplicates))
    return ToolResult(data=result.model_dump(mode="json"))


async def handle_anchors_generate(
    params: dict[str, Any],
    ctx: HandlerContext,
) -> ToolResult:
    """Generate an anchor token not yet used in the document.

    The document is not modified.
    """
    try:
        request = parse_params(GenerateAnchorParams, params)
        document = ctx.open_document(request.path)
        state = await operations.sync_document(document, ctx.config, ctx.codec)
    except HANDLED_ERRORS as e:
        return error_result(e)

    existing = {a.id for a in state.anchors} | {s.anchor for s in state.stubs if s.anchor}
    token = generate_anchor_id(ctx.config.anchors, request.stub_type, existing)
    return ToolResult(
        data={"anchor_id": token, "id_style": ctx.config.anchors.id_style.value}
    )


# ============ MUTATION TOOLS ============


async def handle_stubs_add(
    params: dict[str, Any],
    ctx: HandlerContext,
) -> ToolResult:
    """Add a stub.

    Args:
        params: Dict containing:
            - path: Document path
            - stub_type: Stub type key
            - description: Stub description
            - line: Body line to anchor at (optional; unanchored when omitted)
            - anchor: Token to use instead of a generated one (optional)
            - properties: Level-2 properties (optional)

    Returns:
        ToolResult with MutationResult (changed, sync, anchor_id)
    """
    try:
        request = parse_params(AddStubParams, params)
        _check_token(request.anchor, "anchor")
        if not ctx.config.is_valid_stub_type(request.stub_type):
            logger.warning(f'Adding stub with unknown type "{request.stub_type}"')
        document = ctx.open_document(request.path)
        result = await operations.add_stub(
            document,
            request.stub_type,
            request.description,
            line=request.line,
            anchor=request.anchor,
            properties=request.properties,
            config=ctx.config,
            codec=ctx.codec,
        )
    except HANDLED_ERRORS as e:
        return error_result(e)

    return ToolResult(data=result.model_dump(mode="json"))


async def handle_stubs_remove(
    params: dict[str, Any],
    ctx: HandlerContext,
) -> ToolResult:
    """Remove a stub entry by anchor, index, or type + description."""
    try:
        request = parse_params(RemoveStubParams, params)
        document = ctx.open_document(request.path)
        result = await operations.remove_stub(
            document,
            anchor=request.anchor,
            index=request.index,
            stub_type=request.stub_type,
            description=request.description,
            remove_anchor=request.remove_anchor,
            config=ctx.config,
            codec=ctx.codec,
        )
    except HANDLED_ERRORS as e:
        return error_result(e)

    return ToolResult(data=result.model_dump(mode="json"))


async def handle_stubs_update(
    params: dict[str, Any],
    ctx: HandlerContext,
) -> ToolResult:
    """Update description, properties, type or anchor of one stub."""
    try:
        request = parse_params(UpdateStubParams, params)
        _check_token(request.new_anchor, "new_anchor")
        document = ctx.open_document(request.path)
        result = await operations.update_stub(
            document,
            anchor=request.anchor,
            index=request.index,
            description=request.description,
            properties=request.properties,
            new_anchor=request.new_anchor,
            stub_type=request.stub_type,
            config=ctx.config,
            codec=ctx.codec,
        )
    except HANDLED_ERRORS as e:
        return error_result(e)

    return ToolResult(data=result.model_dump(mode="json"))


async def handle_stubs_resolve_orphan(
    params: dict[str, Any],
    ctx: HandlerContext,
) -> ToolResult:
    """Resolve an orphaned stub or an orphaned anchor.

    Args:
        params: Dict containing:
            - path: Document path
            - kind: "stub" or "anchor"
            - item_id: Stub id (or its token) / anchor token
            - strategy: delete | reinsert (stubs); create_stub | delete | convert (anchors)
            - line: Target line for reinsert
            - stub_type, description: For create_stub

    Returns:
        ToolResult with MutationResult; unknown ids leave the document untouched
    """
    try:
        request = parse_params(ResolveOrphanParams, params)
        document = ctx.open_document(request.path)
        if request.kind == "stub":
            result = await operations.resolve_orphaned_stub(
                document,
                request.item_id,
                OrphanedStubStrategy(request.strategy),
                line=request.line,
                config=ctx.config,
                codec=ctx.codec,
            )
        else:
            result = await operations.resolve_orphaned_anchor(
                document,
                request.item_id,
                OrphanedAnchorStrategy(request.strategy),
                stub_type=request.stub_type,
                description=request.description,
                config=ctx.config,
                codec=ctx.codec,
            )
    except HANDLED_ERRORS as e:
        return error_result(e)

    return ToolResult(data=result.model_dump(mode="json"))
