"""Synchronization engine.

Keeps frontmatter stubs and inline ^stub-* anchors in step. The frontmatter
is the source of truth; inline anchors are references into the body. A sync
is a pure function of the document text and the configuration: everything is
re-derived from scratch on every call.
"""

import logging
from dataclasses import dataclass, field

from ...errors import MetadataDecodeError
from ...models.config import StubsConfiguration, default_configuration
from ...models.enums import Severity, SyncErrorType
from ...models.stubs import Anchor, AnchorPosition, LinkedPair, Stub, SyncError, SyncState
from .anchors import find_duplicate_anchors, get_valid_anchors, is_scannable_token
from .entries import parse_stubs_frontmatter
from .frontmatter import FrontmatterCodec, get_default_codec, split_frontmatter

logger = logging.getLogger(__name__)


@dataclass
class LinkResult:
    linked: list[LinkedPair] = field(default_factory=list)
    orphaned_stubs: list[Stub] = field(default_factory=list)
    orphaned_anchors: list[Anchor] = field(default_factory=list)
    errors: list[SyncError] = field(default_factory=list)


def perform_sync(
    document_text: str,
    config: StubsConfiguration | None = None,
    codec: FrontmatterCodec | None = None,
) -> SyncState:
    """Parse stubs and anchors from a document and link them.

    Never raises: decode and parse problems are reported in ``SyncState.errors``.

    Args:
        document_text: Full document text, frontmatter included
        config: Stubs configuration (defaults when omitted)
        codec: Frontmatter decoder (shared YAML codec when omitted)

    Returns:
        A fresh SyncState in whole-document coordinates
    """
    config = config or default_configuration()
    codec = codec or get_default_codec()

    split = split_frontmatter(document_text)
    if not split.has_frontmatter:
        return SyncState()

    errors: list[SyncError] = []

    try:
        frontmatter = codec.decode(split.raw)
    except MetadataDecodeError as e:
        logger.warning(f"Frontmatter could not be decoded: {e}")
        frontmatter = {}
        errors.append(SyncError(type=SyncErrorType.YAML_ERROR, message=str(e)))

    parsed = parse_stubs_frontmatter(frontmatter, config)
    for error in parsed.errors:
        errors.append(
            SyncError(type=SyncErrorType.PARSE_ERROR, message=error.message, index=error.index)
        )
    for warning in parsed.warnings:
        errors.append(
            SyncError(
                type=SyncErrorType.PARSE_ERROR,
                message=warning.message,
                severity=Severity.WARNING,
                index=warning.index,
            )
        )

    anchors = [
        _shift_anchor(anchor, split.content_start, split.body_line_offset)
        for anchor in get_valid_anchors(split.body)
    ]

    result = link_stubs_and_anchors(parsed.stubs, anchors, config)
    errors.extend(result.errors)
    errors.extend(_duplicate_anchor_errors(anchors))

    state = SyncState(
        stubs=parsed.stubs,
        anchors=anchors,
        linked=result.linked,
        orphaned_stubs=result.orphaned_stubs,
        orphaned_anchors=result.orphaned_anchors,
        errors=errors,
    )
    logger.debug(
        f"Sync: {len(state.stubs)} stubs, {len(state.anchors)} anchors, "
        f"{len(state.linked)} linked, {len(state.orphaned_stubs)} orphaned stubs, "
        f"{len(state.orphaned_anchors)} orphaned anchors"
    )
    return state


def _shift_anchor(anchor: Anchor, offset: int, lines: int) -> Anchor:
    """Move a body-relative anchor into whole-document coordinates."""
    anchor.position = AnchorPosition(
        line=anchor.position.line + lines,
        column=anchor.position.column,
        offset=anchor.position.offset + offset,
    )
    return anchor


# ============ LINKING ============


def link_stubs_and_anchors(
    stubs: list[Stub], anchors: list[Anchor], config: StubsConfiguration
) -> LinkResult:
    """Link stubs to anchors by token, marking both sides in place.

    The first anchor carrying a token is the one stubs link to. A stub with no
    anchor is neither linked nor orphaned.
    """
    result = LinkResult()

    lookup: dict[str, Anchor] = {}
    for anchor in anchors:
        lookup.setdefault(anchor.id, anchor)

    for stub in stubs:
        if stub.anchor is None:
            continue

        if not is_scannable_token(stub.anchor):
            result.errors.append(
                SyncError(
                    type=SyncErrorType.INVALID_ANCHOR_FORMAT,
                    severity=Severity.WARNING,
                    index=stub.index,
                    message=(
                        f'Anchor "{stub.anchor}" at index {stub.index} can never match '
                        "an inline anchor"
                    ),
                )
            )

        anchor = lookup.get(stub.anchor)
        if anchor is None:
            result.orphaned_stubs.append(stub)
            continue

        if anchor.has_stub:
            result.orphaned_stubs.append(stub)
            result.errors.append(
                SyncError(
                    type=SyncErrorType.ANCHOR_COLLISION,
                    index=stub.index,
                    line=anchor.position.line,
                    message=(
                        f'Anchor "{stub.anchor}" at index {stub.index} is already '
                        f'linked to "{anchor.stub_description}"'
                    ),
                )
            )
            continue

        stub.anchor_resolved = True
        anchor.has_stub = True
        anchor.stub_type = stub.type
        anchor.stub_description = stub.description
        result.linked.append(LinkedPair(stub=stub, anchor=anchor))

    prefix = config.anchors.token_prefix
    result.orphaned_anchors = [
        anchor for anchor in anchors if anchor.id.startswith(prefix) and not anchor.has_stub
    ]
    return result


def _duplicate_anchor_errors(anchors: list[Anchor]) -> list[SyncError]:
    errors = []
    for token, group in find_duplicate_anchors(anchors).items():
        lines = ", ".join(str(a.position.line) for a in group)
        errors.append(
            SyncError(
                type=SyncErrorType.ANCHOR_COLLISION,
                severity=Severity.WARNING,
                line=group[1].position.line,
                message=f'Anchor "{token}" appears {len(group)} times (lines {lines})',
            )
        )
    return errors
