"""Anchor scanning, generation and body edits.

Anchors are inline ``^type-id`` tokens (the same shape as Obsidian block ids).
Every token matching the grammar is scanned, whatever its prefix; the sync
engine decides which ones it tracks.
"""

import logging
import re
import secrets
import string
from collections.abc import Iterable
from typing import NamedTuple

from ...models.config import AnchorSettings
from ...models.enums import AnchorIdStyle
from ...models.stubs import Anchor, AnchorPosition

logger = logging.getLogger(__name__)

ANCHOR_PATTERN = re.compile(r"\^[a-zA-Z]+-[a-zA-Z0-9_-]+")
ANCHOR_FULL_PATTERN = re.compile(r"\^[a-zA-Z]+-[a-zA-Z0-9_-]+\Z")

RANDOM_ALPHABET = string.ascii_lowercase + string.digits
FENCE_MARKERS = ("```", "~~~")

# Characters that may continue a token; used to avoid matching a prefix of a longer one
_TOKEN_TAIL = r"(?![A-Za-z0-9_-])"
_LETTERS_RE = re.compile(r"^[a-zA-Z]+$")
_ID_PART_RE = re.compile(r"^[a-zA-Z0-9_-]+$")


class AnchorValidation(NamedTuple):
    valid: bool
    reason: str | None = None


# ============ DETECTION ============


def parse_inline_anchors(content: str) -> list[Anchor]:
    """Scan every line for anchor tokens (no code filtering).

    Args:
        content: Text to scan (usually the body after the frontmatter)

    Returns:
        Anchors in document order with zero-indexed line/column/offset
    """
    anchors: list[Anchor] = []
    offset = 0

    for line_num, line in enumerate(content.split("\n")):
        for match in ANCHOR_PATTERN.finditer(line):
            anchors.append(
                Anchor(
                    id=match.group(0),
                    position=AnchorPosition(
                        line=line_num, column=match.start(), offset=offset + match.start()
                    ),
                    line_content=line,
                    is_end_of_line=not line[match.end():].strip(),
                )
            )
        offset += len(line) + 1

    return anchors


def code_block_lines(content: str) -> set[int]:
    """Line numbers inside fenced code regions, fences included."""
    inside: set[int] = set()
    fence: str | None = None

    for line_num, line in enumerate(content.split("\n")):
        stripped = line.strip()
        marker = next((m for m in FENCE_MARKERS if stripped.startswith(m)), None)

        if fence is None:
            if marker is not None:
                fence = marker
                inside.add(line_num)
        else:
            inside.add(line_num)
            # Only the same fence character closes the region
            if marker == fence:
                fence = None

    return inside


def filter_anchors_in_code_blocks(anchors: list[Anchor], content: str) -> list[Anchor]:
    excluded = code_block_lines(content)
    return [a for a in anchors if a.position.line not in excluded]


def is_in_inline_code(line: str, start: int, end: int) -> bool:
    """Whether ``line[start:end]`` sits between a pair of backticks."""
    return line.count("`", 0, start) % 2 == 1 and "`" in line[end:]


def filter_anchors_in_inline_code(anchors: list[Anchor]) -> list[Anchor]:
    return [
        a
        for a in anchors
        if not is_in_inline_code(
            a.line_content, a.position.column, a.position.column + len(a.id)
        )
    ]


def get_valid_anchors(content: str) -> list[Anchor]:
    """Scan ``content`` and drop tokens inside fenced or inline code."""
    anchors = parse_inline_anchors(content)
    anchors = filter_anchors_in_code_blocks(anchors, content)
    return filter_anchors_in_inline_code(anchors)


def find_anchor_by_id(anchors: Iterable[Anchor], anchor_id: str) -> Anchor | None:
    return next((a for a in anchors if a.id == anchor_id), None)


# ============ GENERATION ============


def random_alphanumeric(length: int) -> str:
    return "".join(secrets.choice(RANDOM_ALPHABET) for _ in range(length))


def generate_anchor_id(
    settings: AnchorSettings,
    stub_type: str | None = None,
    existing: Iterable[str] | None = None,
) -> str:
    """Generate a new anchor token according to the configured id style.

    Args:
        settings: Anchor settings (prefix, id style, random length)
        stub_type: Stub type key, used by the typed styles
        existing: Tokens already in use; the result is never one of them

    Returns:
        A token like ``^stub-a1b2c3``
    """
    taken = set(existing or ())
    prefix = settings.prefix
    length = settings.random_id_length

    match settings.id_style:
        case AnchorIdStyle.TYPE_PREFIXED if stub_type:
            base = f"^{prefix}-{stub_type}-{random_alphanumeric(4)}"
        case AnchorIdStyle.TYPE_ONLY if stub_type and _LETTERS_RE.match(stub_type):
            base = f"^{stub_type}-{random_alphanumeric(length)}"
        case AnchorIdStyle.SEQUENTIAL:
            base = f"^{prefix}-{next_sequential_id(taken, prefix)}"
        case _:
            base = f"^{prefix}-{random_alphanumeric(length)}"

    return ensure_unique_anchor_id(base, taken)


def next_sequential_id(existing: Iterable[str], prefix: str) -> str:
    """Next zero-padded number after the highest ``^{prefix}-NNN`` in use."""
    pattern = re.compile(rf"^\^{re.escape(prefix)}-(\d+)$")
    highest = 0
    for token in existing:
        match = pattern.match(token)
        if match:
            highest = max(highest, int(match.group(1)))
    return str(highest + 1).zfill(3)


def ensure_unique_anchor_id(base: str, existing: set[str]) -> str:
    """Append 1, 2, ... to ``base`` until it is not in ``existing``."""
    candidate = base
    suffix = 1
    while candidate in existing:
        candidate = f"{base}{suffix}"
        suffix += 1
    return candidate


# ============ VALIDATION ============


def is_scannable_token(token: str) -> bool:
    """Whether the scanner could ever find ``token`` in a body."""
    return bool(ANCHOR_FULL_PATTERN.match(token))


def is_valid_stub_anchor(token: str, settings: AnchorSettings) -> AnchorValidation:
    """Check that ``token`` is a well-formed token with the configured prefix."""
    prefix = settings.token_prefix

    if not token.startswith(prefix):
        return AnchorValidation(False, f'Anchor must start with "{prefix}"')

    id_part = token[len(prefix):]
    if not id_part:
        return AnchorValidation(False, "Anchor ID cannot be empty")

    if not _ID_PART_RE.match(id_part):
        return AnchorValidation(
            False, "Anchor ID can only contain letters, numbers, hyphens, and underscores"
        )

    return AnchorValidation(True)


def find_duplicate_anchors(anchors: Iterable[Anchor]) -> dict[str, list[Anchor]]:
    """Group anchors by token, keeping only tokens that occur more than once."""
    groups: dict[str, list[Anchor]] = {}
    for anchor in anchors:
        groups.setdefault(anchor.id, []).append(anchor)
    return {token: group for token, group in groups.items() if len(group) > 1}


# ============ BODY EDITS ============


def insert_anchor_at_line(content: str, line_number: int, token: str) -> str:
    """Append `` token`` to a line. Out-of-range lines leave the text unchanged."""
    lines = content.split("\n")
    if line_number < 0 or line_number >= len(lines):
        logger.debug(f"Line {line_number} out of range; anchor {token} not inserted")
        return content
    lines[line_number] = f"{lines[line_number].rstrip()} {token}"
    return "\n".join(lines)


def remove_anchor_from_content(content: str, token: str) -> str:
    """Remove every occurrence of ``token`` along with the spaces before it.

    Never crosses a line break and never touches a longer token that merely
    starts with ``token``.
    """
    pattern = re.compile(rf"[ \t]*{re.escape(token)}{_TOKEN_TAIL}")
    return pattern.sub("", content)


def replace_anchor_in_content(content: str, old_token: str, new_token: str) -> str:
    pattern = re.compile(rf"{re.escape(old_token)}{_TOKEN_TAIL}")
    return pattern.sub(lambda _: new_token, content)


# ============ POSITIONS ============


def offset_to_position(content: str, offset: int) -> AnchorPosition:
    """Line/column for an absolute offset (clamped to the end of the text)."""
    offset = max(0, min(offset, len(content)))
    line = content.count("\n", 0, offset)
    line_start = content.rfind("\n", 0, offset) + 1
    return AnchorPosition(line=line, column=offset - line_start, offset=offset)


def position_to_offset(content: str, line: int, column: int) -> int:
    """Absolute offset for a line/column (clamped to the line and the text)."""
    lines = content.split("\n")
    line = max(0, min(line, len(lines) - 1))
    offset = sum(len(text) + 1 for text in lines[:line])
    return offset + max(0, min(column, len(lines[line])))
