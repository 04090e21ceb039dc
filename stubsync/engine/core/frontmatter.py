"""Frontmatter block handling.

Splits a document into its leading ``---`` YAML block and the body, and
provides the decode / transform codec the sync engine and the add/update
operations go through. Decoding uses ruamel.yaml's safe loader so stub
properties come back as plain Python values; transforms use the round-trip
loader so comments, key order and quoting of untouched keys survive.
"""

import io
import logging
from collections.abc import Callable, MutableMapping
from dataclasses import dataclass
from typing import Any, Protocol

from ruamel.yaml import YAML
from ruamel.yaml.comments import CommentedMap
from ruamel.yaml.error import YAMLError

from ...errors import MetadataDecodeError

logger = logging.getLogger(__name__)

FRONTMATTER_DELIMITER = "---"

FrontmatterMutator = Callable[[MutableMapping[str, Any]], None]


@dataclass(frozen=True)
class FrontmatterSplit:
    """A document split at its frontmatter block.

    Attributes:
        has_frontmatter: Whether a complete ``---`` ... ``---`` block opens the document
        raw: YAML text between the delimiters (without them)
        body: Everything after the closing delimiter line
        content_start: Character offset where the body starts
        body_line_offset: Number of lines before the body (block lines incl. delimiters)
    """

    has_frontmatter: bool
    raw: str
    body: str
    content_start: int
    body_line_offset: int


def split_frontmatter(text: str) -> FrontmatterSplit:
    """Locate the frontmatter block at the start of ``text``.

    The block must open on the very first line. A missing closing delimiter
    means there is no block at all.
    """
    lines = text.split("\n")
    if lines[0].rstrip() != FRONTMATTER_DELIMITER:
        return FrontmatterSplit(False, "", text, 0, 0)

    closing = next(
        (idx for idx in range(1, len(lines)) if lines[idx].rstrip() == FRONTMATTER_DELIMITER),
        None,
    )
    if closing is None:
        return FrontmatterSplit(False, "", text, 0, 0)

    raw = "\n".join(lines[1:closing])
    head_length = len("\n".join(lines[: closing + 1]))
    # Closing line's newline belongs to the block when there is one
    content_start = head_length + 1 if closing + 1 < len(lines) else head_length
    return FrontmatterSplit(
        has_frontmatter=True,
        raw=raw,
        body=text[content_start:],
        content_start=content_start,
        body_line_offset=closing + 1,
    )


# ============ CODEC ============


class FrontmatterCodec(Protocol):
    """Decode/encode primitive for the metadata block.

    ``decode`` turns block text into a mapping. ``transform`` decodes the block
    of a whole document, lets the caller mutate it in memory, re-encodes it and
    returns the new document text (creating a block when there is none).
    """

    def decode(self, raw: str) -> dict[str, Any]: ...

    def transform(self, text: str, mutator: FrontmatterMutator) -> str: ...


class YamlFrontmatterCodec:
    """ruamel.yaml-backed frontmatter codec."""

    def __init__(self, width: int = 4096):
        self._safe = YAML(typ="safe", pure=True)
        self._round_trip = YAML()
        self._round_trip.preserve_quotes = True
        self._round_trip.indent(mapping=2, sequence=4, offset=2)
        self._round_trip.width = width

    def decode(self, raw: str) -> dict[str, Any]:
        """Decode block text into a dict.

        Raises:
            MetadataDecodeError: If the text is not valid YAML
        """
        try:
            data = self._safe.load(raw)
        except YAMLError as e:
            raise MetadataDecodeError(f"Invalid frontmatter YAML: {e}") from e
        if data is None:
            return {}
        if not isinstance(data, dict):
            logger.warning(f"Frontmatter is a {type(data).__name__}, not a mapping; ignoring it")
            return {}
        return data

    def transform(self, text: str, mutator: FrontmatterMutator) -> str:
        """Apply ``mutator`` to the frontmatter of ``text`` and return the new text.

        Raises:
            MetadataDecodeError: If an existing block is not a valid YAML mapping
        """
        split = split_frontmatter(text)
        if split.has_frontmatter:
            try:
                data = self._round_trip.load(split.raw)
            except YAMLError as e:
                raise MetadataDecodeError(f"Invalid frontmatter YAML: {e}") from e
            if data is None:
                data = CommentedMap()
            elif not isinstance(data, MutableMapping):
                raise MetadataDecodeError("Frontmatter is not a mapping; refusing to rewrite it")
            body = split.body
        else:
            data = CommentedMap()
            body = text

        mutator(data)
        return f"{FRONTMATTER_DELIMITER}\n{self.encode(data)}{FRONTMATTER_DELIMITER}\n{body}"

    def encode(self, data: MutableMapping[str, Any]) -> str:
        """Dump a mapping as block YAML ending in a newline ("" when empty)."""
        if not data:
            return ""
        buffer = io.StringIO()
        self._round_trip.dump(data, buffer)
        return buffer.getvalue()


_default_codec: YamlFrontmatterCodec | None = None


def get_default_codec() -> YamlFrontmatterCodec:
    """Get or create the shared YAML codec (lazy initialization)."""
    global _default_codec
    if _default_codec is None:
        _default_codec = YamlFrontmatterCodec()
    return _default_codec
