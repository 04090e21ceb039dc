"""Mutation operations on a single document.

Adds and updates go through the frontmatter codec's decode / mutate /
re-encode transform; removals use line-level surgery so the rest of the block
keeps its formatting; body edits only ever touch text after the frontmatter.

The async operations read the document once, compute the new text and write
it back once, and are meant to be awaited one at a time per document. Every
operation returns a MutationResult carrying the sync state of the text it
left behind.
"""

import logging
from collections.abc import Callable, Mapping, MutableMapping
from typing import Any

from ruamel.yaml.comments import CommentedMap

from ..errors import InvalidLineError
from ..models.config import StubsConfiguration, default_configuration
from ..models.enums import OrphanedAnchorStrategy, OrphanedStubStrategy
from ..models.responses import MutationResult
from ..models.stubs import Stub, SyncState
from .core.anchors import (
    generate_anchor_id,
    get_valid_anchors,
    insert_anchor_at_line,
    remove_anchor_from_content,
    replace_anchor_in_content,
)
from .core.entries import (
    ANCHOR_KEY,
    DESCRIPTION_KEY,
    TYPE_KEY,
    CompactEntry,
    ExplicitEntry,
    RejectedEntry,
    StructuredEntry,
    build_stub_entry,
    classify_entry,
)
from .core.frontmatter import FrontmatterCodec, get_default_codec, split_frontmatter
from .core.surgery import (
    remove_stub_entry_at_index,
    remove_stub_entry_by_anchor,
    remove_stub_entry_by_type_and_description,
)
from .core.sync import perform_sync
from .document import DocumentIO

logger = logging.getLogger(__name__)

_RESERVED_KEYS = (TYPE_KEY, DESCRIPTION_KEY, ANCHOR_KEY)


def _defaults(
    config: StubsConfiguration | None, codec: FrontmatterCodec | None
) -> tuple[StubsConfiguration, FrontmatterCodec]:
    return config or default_configuration(), codec or get_default_codec()


# ============ TEXT TRANSFORMS: BODY ============


def edit_body(text: str, edit: Callable[[str], str]) -> str:
    """Apply ``edit`` to the body only, leaving the frontmatter block untouched."""
    split = split_frontmatter(text)
    return text[: split.content_start] + edit(split.body)


def body_line_range(text: str) -> range:
    """Whole-document line numbers that belong to the body."""
    split = split_frontmatter(text)
    return range(split.body_line_offset, text.count("\n") + 1)


def _check_body_line(text: str, line: int) -> None:
    lines = body_line_range(text)
    if line not in lines:
        raise InvalidLineError(
            f"Line {line} is outside the document body (lines {lines.start}-{lines.stop - 1})"
        )


# ============ TEXT TRANSFORMS: FRONTMATTER ============


def add_stub_entry(
    text: str,
    entry: Mapping[str, Any],
    config: StubsConfiguration | None = None,
    codec: FrontmatterCodec | None = None,
) -> str:
    """Append one element to the stubs array, creating the block or array if needed."""
    config, codec = _defaults(config, codec)
    key = config.frontmatter_key

    def append(data: MutableMapping[str, Any]) -> None:
        stubs = data.get(key)
        if not isinstance(stubs, list):
            if stubs is not None:
                logger.warning(f'"{key}" is a {type(stubs).__name__}, replacing it with a list')
            stubs = []
            data[key] = stubs
        stubs.append(dict(entry))

    return codec.transform(text, append)


def add_stub_to_frontmatter(
    text: str,
    stub_type: str,
    description: str,
    anchor: str | None = None,
    properties: Mapping[str, Any] | None = None,
    config: StubsConfiguration | None = None,
    codec: FrontmatterCodec | None = None,
) -> str:
    return add_stub_entry(
        text, build_stub_entry(stub_type, description, anchor, properties), config, codec
    )


def update_stub_entry(
    text: str,
    *,
    anchor: str | None = None,
    index: int | None = None,
    description: str | None = None,
    properties: Mapping[str, Any] | None = None,
    new_anchor: str | None = None,
    stub_type: str | None = None,
    config: StubsConfiguration | None = None,
    codec: FrontmatterCodec | None = None,
) -> str:
    """Rewrite one stubs array element in whatever encoding it already uses.

    The element is located by its anchor token or by array index. Properties
    are merged into the existing ones; a ``None`` value removes a property.
    Returns the text unchanged when no element matches.

    Raises:
        ValueError: If ``description`` is given but blank
    """
    if description is not None and not description.strip():
        raise ValueError("Stub description must not be blank")
    config, codec = _defaults(config, codec)
    split = split_frontmatter(text)
    if not split.has_frontmatter:
        return text

    stubs = codec.decode(split.raw).get(config.frontmatter_key)
    if not isinstance(stubs, list) or _find_entry(stubs, config, anchor, index) is None:
        return text

    def rewrite(data: MutableMapping[str, Any]) -> None:
        entries = data[config.frontmatter_key]
        position = _find_entry(entries, config, anchor, index)
        classified = classify_entry(entries[position], position, config)
        entries[position] = _rewrite_entry(
            entries[position],
            classified,
            description=description,
            properties=properties or {},
            new_anchor=new_anchor,
            stub_type=stub_type,
        )

    return codec.transform(text, rewrite)


def update_stub_anchor(
    text: str,
    old_anchor: str,
    new_anchor: str,
    config: StubsConfiguration | None = None,
    codec: FrontmatterCodec | None = None,
) -> str:
    """Point the element that uses ``old_anchor`` at ``new_anchor`` (frontmatter only)."""
    return update_stub_entry(
        text, anchor=old_anchor, new_anchor=new_anchor, config=config, codec=codec
    )


def _find_entry(
    entries: list[Any],
    config: StubsConfiguration,
    anchor: str | None,
    index: int | None,
) -> int | None:
    if index is not None:
        if not 0 <= index < len(entries):
            return None
        if isinstance(classify_entry(entries[index], index, config), RejectedEntry):
            return None
        return index

    for position, raw in enumerate(entries):
        classified = classify_entry(raw, position, config)
        if not isinstance(classified, RejectedEntry) and classified.anchor == anchor:
            return position
    return None


def _merge_properties(target: MutableMapping[str, Any], properties: Mapping[str, Any]) -> None:
    for key, value in properties.items():
        if key in _RESERVED_KEYS:
            continue
        if value is None:
            target.pop(key, None)
        else:
            target[key] = value


def _rename_key(mapping: Mapping[str, Any], old: str, new: str) -> CommentedMap:
    renamed = CommentedMap()
    for key, value in mapping.items():
        renamed[new if key == old else key] = value
    return renamed


def _rewrite_entry(
    raw: MutableMapping[str, Any],
    classified: ExplicitEntry | CompactEntry | StructuredEntry,
    *,
    description: str | None,
    properties: Mapping[str, Any],
    new_anchor: str | None,
    stub_type: str | None,
) -> MutableMapping[str, Any]:
    match classified:
        case ExplicitEntry():
            if stub_type:
                raw[TYPE_KEY] = stub_type
            if description:
                raw[DESCRIPTION_KEY] = description
            if new_anchor:
                raw[ANCHOR_KEY] = new_anchor
            _merge_properties(raw, properties)
            return raw

        case CompactEntry(type_key=type_key):
            if properties:
                # Compact syntax has no room for a property block: go structured
                body = CommentedMap()
                body[DESCRIPTION_KEY] = description or classified.description
                anchor = new_anchor or classified.anchor
                if anchor:
                    body[ANCHOR_KEY] = anchor
                for key, value in raw.items():
                    if key not in (type_key, ANCHOR_KEY):
                        body[key] = value
                _merge_properties(body, properties)
                structured = CommentedMap()
                structured[stub_type or type_key] = body
                return structured

            if description:
                raw[type_key] = description
            if new_anchor:
                raw[ANCHOR_KEY] = new_anchor
            return _rename_key(raw, type_key, stub_type) if stub_type else raw

        case StructuredEntry(type_key=type_key):
            body = raw[type_key]
            if description:
                body[DESCRIPTION_KEY] = description
            if new_anchor:
                if ANCHOR_KEY in raw and ANCHOR_KEY not in body:
                    raw[ANCHOR_KEY] = new_anchor
                else:
                    body[ANCHOR_KEY] = new_anchor
            _merge_properties(body, properties)
            return _rename_key(raw, type_key, stub_type) if stub_type else raw


# ============ ASYNC OPERATIONS ============


async def _commit(
    document: DocumentIO,
    before: str,
    after: str,
    config: StubsConfiguration,
    codec: FrontmatterCodec,
    anchor_id: str | None = None,
) -> MutationResult:
    changed = after != before
    if changed:
        await document.write(after)
    return MutationResult(
        changed=changed, sync=perform_sync(after, config, codec), anchor_id=anchor_id
    )


async def sync_document(
    document: DocumentIO,
    config: StubsConfiguration | None = None,
    codec: FrontmatterCodec | None = None,
) -> SyncState:
    """Read a document and sync it."""
    config, codec = _defaults(config, codec)
    return perform_sync(await document.read(), config, codec)


def _tokens_in_use(text: str, config: StubsConfiguration, codec: FrontmatterCodec) -> set[str]:
    """Tokens in the body plus tokens already claimed by stubs."""
    state = perform_sync(text, config, codec)
    split = split_frontmatter(text)
    tokens = {a.id for a in get_valid_anchors(split.body)}
    tokens.update(stub.anchor for stub in state.stubs if stub.anchor)
    return tokens


async def insert_stub_at_line(
    document: DocumentIO,
    line: int,
    stub_type: str,
    description: str,
    properties: Mapping[str, Any] | None = None,
    anchor: str | None = None,
    config: StubsConfiguration | None = None,
    codec: FrontmatterCodec | None = None,
) -> MutationResult:
    """Anchor a new stub at the end of a body line.

    Generates a token unique within the document unless ``anchor`` is given,
    appends it to ``line`` and adds the matching frontmatter entry.

    Raises:
        InvalidLineError: If ``line`` is not a body line
    """
    config, codec = _defaults(config, codec)
    text = await document.read()
    _check_body_line(text, line)

    token = anchor or generate_anchor_id(
        config.anchors, stub_type, _tokens_in_use(text, config, codec)
    )
    updated = insert_anchor_at_line(text, line, token)
    updated = add_stub_to_frontmatter(
        updated, stub_type, description, token, properties, config, codec
    )
    logger.info(f"Inserted {stub_type} stub {token} at line {line}")
    return await _commit(document, text, updated, config, codec, anchor_id=token)


async def add_stub(
    document: DocumentIO,
    stub_type: str,
    description: str,
    line: int | None = None,
    anchor: str | None = None,
    properties: Mapping[str, Any] | None = None,
    config: StubsConfiguration | None = None,
    codec: FrontmatterCodec | None = None,
) -> MutationResult:
    """Add a stub; anchored at ``line`` when one is given, otherwise frontmatter only."""
    if line is not None:
        return await insert_stub_at_line(
            document, line, stub_type, description, properties, anchor, config, codec
        )

    config, codec = _defaults(config, codec)
    text = await document.read()
    updated = add_stub_to_frontmatter(text, stub_type, description, anchor, properties, config, codec)
    logger.info(f"Added {stub_type} stub to frontmatter")
    return await _commit(document, text, updated, config, codec, anchor_id=anchor)


async def remove_stub(
    document: DocumentIO,
    *,
    anchor: str | None = None,
    index: int | None = None,
    stub_type: str | None = None,
    description: str | None = None,
    remove_anchor: bool = True,
    config: StubsConfiguration | None = None,
    codec: FrontmatterCodec | None = None,
) -> MutationResult:
    """Remove one stub entry, selected by token, by array index or by type + description.

    With ``remove_anchor`` the entry's token is also stripped from the body.
    A selector that matches nothing leaves the document untouched.
    """
    config, codec = _defaults(config, codec)
    key = config.frontmatter_key
    text = await document.read()

    if anchor is not None:
        token = anchor
        updated = remove_stub_entry_by_anchor(text, anchor, key)
    elif index is not None:
        stub = _stub_at(perform_sync(text, config, codec).stubs, index)
        token = stub.anchor if stub else None
        updated = remove_stub_entry_at_index(text, index, key)
    elif stub_type is not None and description is not None:
        stub = next(
            (
                s
                for s in perform_sync(text, config, codec).stubs
                if s.type == stub_type and s.description == description
            ),
            None,
        )
        token = stub.anchor if stub else None
        updated = remove_stub_entry_by_type_and_description(text, stub_type, description, key)
    else:
        raise ValueError("remove_stub needs anchor, index, or stub_type and description")

    if remove_anchor and token and updated != text:
        updated = edit_body(updated, lambda body: remove_anchor_from_content(body, token))

    if updated != text:
        logger.info(f"Removed stub {token or ''}".rstrip())
    return await _commit(document, text, updated, config, codec, anchor_id=token)


def _stub_at(stubs: list[Stub], index: int) -> Stub | None:
    return next((s for s in stubs if s.index == index), None)


async def update_stub(
    document: DocumentIO,
    *,
    anchor: str | None = None,
    index: int | None = None,
    description: str | None = None,
    properties: Mapping[str, Any] | None = None,
    new_anchor: str | None = None,
    stub_type: str | None = None,
    config: StubsConfiguration | None = None,
    codec: FrontmatterCodec | None = None,
) -> MutationResult:
    """Update one stub in place; a new anchor token is also renamed in the body."""
    config, codec = _defaults(config, codec)
    text = await document.read()

    old_token = anchor
    if old_token is None and index is not None:
        stub = _stub_at(perform_sync(text, config, codec).stubs, index)
        old_token = stub.anchor if stub else None

    updated = update_stub_entry(
        text,
        anchor=anchor,
        index=index,
        description=description,
        properties=properties,
        new_anchor=new_anchor,
        stub_type=stub_type,
        config=config,
        codec=codec,
    )
    if new_anchor and old_token and updated != text:
        updated = edit_body(
            updated, lambda body: replace_anchor_in_content(body, old_token, new_anchor)
        )

    if updated != text:
        logger.info(f"Updated stub {new_anchor or old_token or index}")
    return await _commit(document, text, updated, config, codec, anchor_id=new_anchor or old_token)


# ============ ORPHAN RESOLUTION ============


async def resolve_orphaned_stub(
    document: DocumentIO,
    stub_id: str,
    strategy: OrphanedStubStrategy,
    line: int | None = None,
    config: StubsConfiguration | None = None,
    codec: FrontmatterCodec | None = None,
) -> MutationResult:
    """Resolve a stub whose anchor is missing from the body.

    ``stub_id`` may be the stub's id or its anchor token. Ids that are not
    currently orphaned leave the document untouched.

    Raises:
        InvalidLineError: For ``reinsert`` without a body line
    """
    config, codec = _defaults(config, codec)
    text = await document.read()
    state = perform_sync(text, config, codec)

    stub = next((s for s in state.orphaned_stubs if stub_id in (s.id, s.anchor)), None)
    if stub is None or stub.anchor is None:
        return MutationResult(changed=False, sync=state)

    match OrphanedStubStrategy(strategy):
        case OrphanedStubStrategy.DELETE:
            updated = remove_stub_entry_by_anchor(text, stub.anchor, config.frontmatter_key)
        case OrphanedStubStrategy.REINSERT:
            if line is None:
                raise InvalidLineError("reinsert needs a target line")
            _check_body_line(text, line)
            updated = insert_anchor_at_line(text, line, stub.anchor)

    logger.info(f"Resolved orphaned stub {stub.anchor} with {strategy}")
    return await _commit(document, text, updated, config, codec, anchor_id=stub.anchor)


async def resolve_orphaned_anchor(
    document: DocumentIO,
    anchor_id: str,
    strategy: OrphanedAnchorStrategy,
    stub_type: str | None = None,
    description: str | None = None,
    config: StubsConfiguration | None = None,
    codec: FrontmatterCodec | None = None,
) -> MutationResult:
    """Resolve a body anchor that no stub points at.

    Raises:
        ValueError: For ``create_stub`` without a type, or without a description
            when the type has no default one
    """
    config, codec = _defaults(config, codec)
    text = await document.read()
    state = perform_sync(text, config, codec)

    if not any(a.id == anchor_id for a in state.orphaned_anchors):
        return MutationResult(changed=False, sync=state)

    match OrphanedAnchorStrategy(strategy):
        case OrphanedAnchorStrategy.CREATE_STUB:
            if not stub_type:
                raise ValueError("create_stub needs a stub type")
            type_config = config.get_stub_type(stub_type)
            description = description or (
                type_config.default_stub_description if type_config else None
            )
            if not description:
                raise ValueError(f'No description given and "{stub_type}" has no default')
            updated = add_stub_to_frontmatter(
                text, stub_type, description, anchor_id, config=config, codec=codec
            )
            result_token = anchor_id
        case OrphanedAnchorStrategy.DELETE:
            updated = edit_body(text, lambda body: remove_anchor_from_content(body, anchor_id))
            result_token = anchor_id
        case OrphanedAnchorStrategy.CONVERT:
            # ^stub-abc -> ^abc: a plain block reference the engine no longer tracks
            result_token = "^" + anchor_id[len(config.anchors.token_prefix):]
            updated = edit_body(
                text, lambda body: replace_anchor_in_content(body, anchor_id, result_token)
            )

    logger.info(f"Resolved orphaned anchor {anchor_id} with {strategy}")
    return await _commit(document, text, updated, config, codec, anchor_id=result_token)
