from __future__ import annotations

import asyncio
import re

import pytest

from stubsync.engine.document import FileDocument, MemoryDocument
from stubsync.engine.operations import (
    add_stub,
    body_line_range,
    insert_stub_at_line,
    remove_stub,
    resolve_orphaned_anchor,
    resolve_orphaned_stub,
    update_stub,
)
from stubsync.errors import InvalidLineError
from stubsync.models import OrphanedAnchorStrategy, OrphanedStubStrategy, StubSyntax

PLAIN = "Line zero\nLine one\n"

# Whole-document line numbers in the mixed document fixture
PRICING_HEADING_LINE = 15


def by_anchor(result, token):
    return next(s for s in result.sync.stubs if s.anchor == token)


# ============ ADD / INSERT ============


def test_add_without_frontmatter_creates_block() -> None:
    doc = MemoryDocument(PLAIN)

    result = asyncio.run(add_stub(doc, "link", "Cite it"))

    assert result.changed
    assert doc.writes == 1
    assert doc.text.startswith("---\nstubs:\n")
    assert doc.text.endswith("---\n" + PLAIN)
    assert [(s.type, s.description, s.anchor) for s in result.sync.stubs] == [
        ("link", "Cite it", None)
    ]


def test_insert_at_line_links_new_stub() -> None:
    doc = MemoryDocument(PLAIN)

    result = asyncio.run(insert_stub_at_line(doc, 0, "link", "Cite it"))

    assert re.fullmatch(r"\^stub-[a-z0-9]{6}", result.anchor_id)
    assert f"Line zero {result.anchor_id}\n" in doc.text
    assert len(result.sync.linked) == 1
    assert result.sync.linked[0].stub.description == "Cite it"


def test_insert_keeps_existing_frontmatter(example_a) -> None:
    doc = MemoryDocument(example_a)

    result = asyncio.run(
        add_stub(doc, "todo", "Follow up", line=5, anchor="^stub-new1", properties={"priority": "low"})
    )

    assert "Some text ^link-ab12 here. ^stub-new1" in doc.text
    assert len(result.sync.linked) == 2
    assert by_anchor(result, "^stub-new1").properties["priority"] == "low"
    assert result.sync.errors == []


def test_generated_token_avoids_tokens_in_use(monkeypatch) -> None:
    from stubsync.engine.core import anchors

    monkeypatch.setattr(anchors, "random_alphanumeric", lambda length: "a" * length)
    doc = MemoryDocument("---\nstubs:\n  - link: a\n    anchor: ^stub-aaaaaa\n---\nBody\n")

    result = asyncio.run(insert_stub_at_line(doc, 5, "link", "b"))

    assert result.anchor_id == "^stub-aaaaaa1"


@pytest.mark.parametrize("line", [0, 3, 99, -1])
def test_insert_outside_body_raises(example_a, line) -> None:
    doc = MemoryDocument(example_a)

    with pytest.raises(InvalidLineError):
        asyncio.run(insert_stub_at_line(doc, line, "link", "x"))
    assert doc.writes == 0


def test_body_line_range(example_a) -> None:
    assert body_line_range(example_a) == range(5, 7)
    assert body_line_range(PLAIN) == range(0, 3)


# ============ REMOVE ============


def test_remove_by_anchor_strips_body_token(mixed_document) -> None:
    doc = MemoryDocument(mixed_document)

    result = asyncio.run(remove_stub(doc, anchor="^stub-cite01"))

    assert result.changed
    assert "^stub-cite01" not in doc.text
    assert "OAuth is the standard.\n" in doc.text
    assert "title: Pricing notes\n" in doc.text
    assert "tags: [draft]\n" in doc.text
    assert len(result.sync.stubs) == 3


def test_remove_can_keep_body_token(mixed_document) -> None:
    doc = MemoryDocument(mixed_document)

    result = asyncio.run(remove_stub(doc, anchor="^stub-cite01", remove_anchor=False))

    assert "OAuth is the standard. ^stub-cite01" in doc.text
    assert "^stub-cite01" in [a.id for a in result.sync.orphaned_anchors]


def test_remove_by_index(mixed_document) -> None:
    doc = MemoryDocument(mixed_document)

    result = asyncio.run(remove_stub(doc, index=2))

    assert "Who owns the rollout?" not in doc.text
    assert [s.type for s in result.sync.stubs] == ["link", "controversy", "todo"]


def test_remove_by_type_and_description(mixed_document) -> None:
    doc = MemoryDocument(mixed_document)

    result = asyncio.run(remove_stub(doc, stub_type="todo", description="Write the summary"))

    assert result.anchor_id == "^stub-gone99"
    assert result.sync.orphaned_stubs == []


def test_remove_missing_target_does_not_write(mixed_document) -> None:
    doc = MemoryDocument(mixed_document)

    result = asyncio.run(remove_stub(doc, anchor="^stub-nothere"))

    assert not result.changed
    assert doc.writes == 0
    assert doc.text == mixed_document


def test_remove_needs_a_selector(mixed_document) -> None:
    with pytest.raises(ValueError):
        asyncio.run(remove_stub(MemoryDocument(mixed_document)))


# ============ UPDATE ============


def test_update_description_keeps_encoding(mixed_document) -> None:
    doc = MemoryDocument(mixed_document)

    result = asyncio.run(update_stub(doc, anchor="^stub-cite01", description="Cite RFC 6749"))

    stub = by_anchor(result, "^stub-cite01")
    assert stub.description == "Cite RFC 6749"
    assert stub.syntax == StubSyntax.COMPACT
    assert "title: Pricing notes" in doc.text
    assert len(result.sync.linked) == 2


def test_update_compact_with_properties_becomes_structured(mixed_document) -> None:
    doc = MemoryDocument(mixed_document)

    result = asyncio.run(
        update_stub(doc, anchor="^stub-cite01", properties={"priority": "high"})
    )

    stub = by_anchor(result, "^stub-cite01")
    assert stub.syntax == StubSyntax.STRUCTURED
    assert stub.description == "Add citation for OAuth spec"
    assert stub.properties["priority"] == "high"
    assert stub.anchor_resolved


def test_update_new_anchor_renames_body_token(mixed_document) -> None:
    doc = MemoryDocument(mixed_document)

    result = asyncio.run(update_stub(doc, anchor="^stub-price1", new_anchor="^stub-price2"))

    assert "^stub-price1" not in doc.text
    assert "The tiers are contested. ^stub-price2" in doc.text
    assert result.anchor_id == "^stub-price2"
    assert len(result.sync.linked) == 2


def test_update_none_removes_property(mixed_document) -> None:
    doc = MemoryDocument(mixed_document)

    asyncio.run(update_stub(doc, anchor="^stub-price1", properties={"priority": "low"}))
    assert "priority: low" in doc.text

    result = asyncio.run(update_stub(doc, anchor="^stub-price1", properties={"priority": None}))

    assert "priority" not in by_anchor(result, "^stub-price1").properties
    assert "priority" not in doc.text


def test_update_by_index_changes_type(mixed_document) -> None:
    doc = MemoryDocument(mixed_document)

    result = asyncio.run(update_stub(doc, index=2, stub_type="clarify"))

    stub = result.sync.stubs[2]
    assert stub.type == "clarify"
    assert stub.description == "Who owns the rollout?"
    assert stub.syntax == StubSyntax.EXPLICIT


def test_update_unknown_anchor_is_noop(mixed_document) -> None:
    doc = MemoryDocument(mixed_document)

    result = asyncio.run(update_stub(doc, anchor="^stub-nothere", description="x"))

    assert not result.changed
    assert doc.writes == 0


# ============ ORPHANS ============


def test_orphaned_stub_delete(mixed_document) -> None:
    doc = MemoryDocument(mixed_document)

    result = asyncio.run(resolve_orphaned_stub(doc, "^stub-gone99", OrphanedStubStrategy.DELETE))

    assert result.changed
    assert result.sync.orphaned_stubs == []
    assert len(result.sync.stubs) == 3


def test_orphaned_stub_delete_by_stub_id(mixed_document) -> None:
    doc = MemoryDocument(mixed_document)
    stub_id = asyncio.run(resolve_orphaned_stub(doc, "unknown", "delete")).sync.orphaned_stubs[0].id

    result = asyncio.run(resolve_orphaned_stub(doc, stub_id, "delete"))

    assert result.sync.orphaned_stubs == []


def test_orphaned_stub_reinsert(mixed_document) -> None:
    doc = MemoryDocument(mixed_document)

    result = asyncio.run(
        resolve_orphaned_stub(
            doc, "^stub-gone99", OrphanedStubStrategy.REINSERT, line=PRICING_HEADING_LINE
        )
    )

    assert "# Pricing ^stub-gone99\n" in doc.text
    assert result.sync.orphaned_stubs == []
    assert len(result.sync.linked) == 3


def test_orphaned_stub_reinsert_needs_line(mixed_document) -> None:
    with pytest.raises(InvalidLineError):
        asyncio.run(
            resolve_orphaned_stub(
                MemoryDocument(mixed_document), "^stub-gone99", OrphanedStubStrategy.REINSERT
            )
        )


def test_unknown_orphan_is_noop(mixed_document) -> None:
    doc = MemoryDocument(mixed_document)

    stub_result = asyncio.run(resolve_orphaned_stub(doc, "^stub-cite01", "delete"))
    anchor_result = asyncio.run(resolve_orphaned_anchor(doc, "^stub-cite01", "delete"))

    assert not stub_result.changed and not anchor_result.changed
    assert doc.writes == 0


def test_orphaned_anchor_create_stub_uses_type_default(mixed_document) -> None:
    doc = MemoryDocument(mixed_document)

    result = asyncio.run(
        resolve_orphaned_anchor(
            doc, "^stub-stray1", OrphanedAnchorStrategy.CREATE_STUB, stub_type="link"
        )
    )

    created = by_anchor(result, "^stub-stray1")
    assert created.description == "Citation needed"
    assert result.sync.orphaned_anchors == []
    assert len(result.sync.linked) == 3


def test_orphaned_anchor_create_stub_needs_type(mixed_document) -> None:
    with pytest.raises(ValueError):
        asyncio.run(
            resolve_orphaned_anchor(
                MemoryDocument(mixed_document), "^stub-stray1", OrphanedAnchorStrategy.CREATE_STUB
            )
        )


def test_orphaned_anchor_delete(mixed_document) -> None:
    doc = MemoryDocument(mixed_document)

    result = asyncio.run(resolve_orphaned_anchor(doc, "^stub-stray1", OrphanedAnchorStrategy.DELETE))

    assert "A stray marker sits here.\n" in doc.text
    assert result.sync.orphaned_anchors == []
    assert len(result.sync.stubs) == 4


def test_orphaned_anchor_convert(mixed_document) -> None:
    doc = MemoryDocument(mixed_document)

    result = asyncio.run(
        resolve_orphaned_anchor(doc, "^stub-stray1", OrphanedAnchorStrategy.CONVERT)
    )

    assert result.anchor_id == "^stray1"
    assert "A stray marker ^stray1 sits here." in doc.text
    assert result.sync.orphaned_anchors == []


# ============ FILES ============


def test_file_document_round_trip(tmp_path, mixed_document) -> None:
    path = tmp_path / "notes.md"
    path.write_text(mixed_document, encoding="utf-8")
    doc = FileDocument(path)

    asyncio.run(remove_stub(doc, anchor="^stub-price1"))

    text = path.read_text(encoding="utf-8")
    assert "^stub-price1" not in text
    assert "^stub-cite01" in text


def test_file_document_keeps_crlf(tmp_path) -> None:
    path = tmp_path / "crlf.md"
    path.write_bytes(b"first\r\nsecond\r\n")

    text = asyncio.run(FileDocument(path).read())

    assert text == "first\r\nsecond\r\n"


@pytest.mark.parametrize("description", ["", "   "])
def test_blank_descriptions_never_reach_the_document(mixed_document, description) -> None:
    doc = MemoryDocument(mixed_document)

    with pytest.raises(ValueError):
        asyncio.run(update_stub(doc, anchor="^stub-cite01", description=description))
    with pytest.raises(ValueError):
        asyncio.run(insert_stub_at_line(doc, PRICING_HEADING_LINE, "todo", description))

    assert doc.writes == 0
    assert doc.text == mixed_document
