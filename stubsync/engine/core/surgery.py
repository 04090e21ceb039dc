"""Line-level removal of stubs array entries.

Removal edits the frontmatter text directly instead of going through a YAML
round trip, so everything outside the removed element (comments, quoting,
blank lines, key order) stays byte-for-byte the same.
"""

import json
import logging
import re
from dataclasses import dataclass

from .frontmatter import split_frontmatter

logger = logging.getLogger(__name__)

_ITEM_RE = re.compile(r"^([ \t]*)-(?:[ \t]|$)")


@dataclass(frozen=True)
class EntrySpan:
    """Line range ``[start, end)`` of one array element."""

    start: int
    end: int


@dataclass(frozen=True)
class StubsBlock:
    """Where the stubs array lives inside a document's lines."""

    lines: list[str]
    key_line: int
    entries: list[EntrySpan]

    def entry_text(self, span: EntrySpan) -> str:
        return "\n".join(line.rstrip("\r") for line in self.lines[span.start : span.end])


def _indent_width(line: str) -> int:
    return len(line) - len(line.lstrip(" \t"))


def _is_filler(line: str) -> bool:
    """Blank and comment-only lines sit between elements without ending the array."""
    stripped = line.strip()
    return not stripped or stripped.startswith("#")


def locate_stubs_block(text: str, key: str = "stubs") -> StubsBlock | None:
    """Find the top-level ``key:`` line and the line spans of its elements.

    Lines keep their ``\\r`` when the document uses CRLF endings; matching is
    done on the line without it.

    Returns:
        StubsBlock, or None when there is no frontmatter or no such key
    """
    split = split_frontmatter(text)
    if not split.has_frontmatter:
        return None

    lines = text.split("\n")
    closing = split.body_line_offset - 1
    key_re = re.compile(rf"^{re.escape(key)}[ \t]*:(?:[ \t]|$)")

    key_line = next(
        (i for i in range(1, closing) if key_re.match(lines[i].rstrip("\r"))), None
    )
    if key_line is None:
        return None

    entries: list[EntrySpan] = []
    indent: int | None = None
    start: int | None = None
    end = 0

    def close_entry() -> None:
        nonlocal start
        if start is not None:
            entries.append(EntrySpan(start, end))
            start = None

    for i in range(key_line + 1, closing):
        line = lines[i].rstrip("\r")
        if _is_filler(line):
            continue

        item = _ITEM_RE.match(line)
        if indent is None:
            if not item:
                break
            indent = len(item.group(1))

        if item and len(item.group(1)) == indent:
            close_entry()
            start, end = i, i + 1
        elif _indent_width(line) > indent and start is not None:
            end = i + 1
        else:
            # Next top-level key
            break

    close_entry()
    return StubsBlock(lines=lines, key_line=key_line, entries=entries)


def _delete_span(block: StubsBlock, span: EntrySpan, key: str) -> str:
    lines = list(block.lines)
    del lines[span.start : span.end]
    text = "\n".join(lines)

    remaining = locate_stubs_block(text, key)
    if remaining is not None and not remaining.entries:
        # Last element gone: drop the key line too
        del lines[remaining.key_line]
        text = "\n".join(lines)
    return text


# ============ MATCHERS ============


def anchor_matcher(token: str) -> re.Pattern[str]:
    """An ``anchor:`` line holding the (optionally quoted) token."""
    t = re.escape(token)
    return re.compile(
        rf"(?m)^[ \t]*(?:-[ \t]+)?anchor[ \t]*:[ \t]*[\"']?{t}[\"']?[ \t]*(?:#.*)?$"
    )


def description_renderings(description: str) -> list[str]:
    """Plain, double-quoted and single-quoted YAML spellings of a description."""
    return [
        description,
        json.dumps(description, ensure_ascii=False),
        "'" + description.replace("'", "''") + "'",
    ]


def entry_matches_type_and_description(entry: str, stub_type: str, description: str) -> bool:
    """Whether an element's text encodes this type and description in any syntax."""
    t = re.escape(stub_type)
    type_value = rf"[\"']?{t}[\"']?"

    for rendering in description_renderings(description):
        d = re.escape(rendering)
        compact = rf"(?m)^[ \t]*(?:-[ \t]+)?{t}[ \t]*:[ \t]*{d}[ \t]*$"
        if re.search(compact, entry):
            return True

        description_line = rf"(?m)^[ \t]*(?:-[ \t]+)?description[ \t]*:[ \t]*{d}[ \t]*$"
        if not re.search(description_line, entry):
            continue

        structured = rf"(?m)^[ \t]*(?:-[ \t]+)?{t}[ \t]*:[ \t]*$"
        explicit = rf"(?m)^[ \t]*(?:-[ \t]+)?type[ \t]*:[ \t]*{type_value}[ \t]*$"
        if re.search(structured, entry) or re.search(explicit, entry):
            return True

    return False


# ============ REMOVAL ============


def remove_stub_entry_by_anchor(text: str, token: str, key: str = "stubs") -> str:
    """Remove the first element whose ``anchor`` is ``token``.

    Returns the text unchanged when nothing matches.
    """
    block = locate_stubs_block(text, key)
    if block is None:
        return text

    pattern = anchor_matcher(token)
    for span in block.entries:
        if pattern.search(block.entry_text(span)):
            logger.debug(f"Removing stub entry for {token} (lines {span.start}-{span.end - 1})")
            return _delete_span(block, span, key)

    return text


def remove_stub_entry_by_type_and_description(
    text: str, stub_type: str, description: str, key: str = "stubs"
) -> str:
    """Remove the first element with this type and description (any syntax)."""
    block = locate_stubs_block(text, key)
    if block is None:
        return text

    for span in block.entries:
        if entry_matches_type_and_description(block.entry_text(span), stub_type, description):
            return _delete_span(block, span, key)

    return text


def remove_stub_entry_at_index(text: str, index: int, key: str = "stubs") -> str:
    """Remove the element at array position ``index``."""
    block = locate_stubs_block(text, key)
    if block is None or not 0 <= index < len(block.entries):
        return text
    return _delete_span(block, block.entries[index], key)
