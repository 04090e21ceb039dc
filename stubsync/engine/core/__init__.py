"""Engine core module.

Pure, synchronous building blocks of the stub engine:
- Frontmatter splitting and the YAML decode/transform codec
- Structured entry parsing (explicit, compact and structured encodings)
- Anchor scanning, generation and body edits
- Line-level removal of stubs array entries
- Synchronization and linking
"""

from .anchors import (
    ANCHOR_PATTERN,
    AnchorValidation,
    find_anchor_by_id,
    find_duplicate_anchors,
    generate_anchor_id,
    get_valid_anchors,
    insert_anchor_at_line,
    is_valid_stub_anchor,
    offset_to_position,
    parse_inline_anchors,
    position_to_offset,
    remove_anchor_from_content,
    replace_anchor_in_content,
)
from .entries import (
    build_stub_entry,
    classify_entry,
    generate_stub_id,
    parse_stubs,
    parse_stubs_frontmatter,
)
from .frontmatter import (
    FrontmatterCodec,
    FrontmatterSplit,
    YamlFrontmatterCodec,
    get_default_codec,
    split_frontmatter,
)
from .surgery import (
    remove_stub_entry_at_index,
    remove_stub_entry_by_anchor,
    remove_stub_entry_by_type_and_description,
)
from .sync import link_stubs_and_anchors, perform_sync

__all__ = [
    # Frontmatter
    "FrontmatterCodec",
    "FrontmatterSplit",
    "YamlFrontmatterCodec",
    "get_default_codec",
    "split_frontmatter",
    # Entry parsing
    "build_stub_entry",
    "classify_entry",
    "generate_stub_id",
    "parse_stubs",
    "parse_stubs_frontmatter",
    # Anchors
    "ANCHOR_PATTERN",
    "AnchorValidation",
    "find_anchor_by_id",
    "find_duplicate_anchors",
    "generate_anchor_id",
    "get_valid_anchors",
    "insert_anchor_at_line",
    "is_valid_stub_anchor",
    "offset_to_position",
    "parse_inline_anchors",
    "position_to_offset",
    "remove_anchor_from_content",
    "replace_anchor_in_content",
    # Removal
    "remove_stub_entry_at_index",
    "remove_stub_entry_by_anchor",
    "remove_stub_entry_by_type_and_description",
    # Sync
    "link_stubs_and_anchors",
    "perform_sync",
]
