from __future__ import annotations

from stubsync.engine.core.surgery import (
    locate_stubs_block,
    remove_stub_entry_at_index,
    remove_stub_entry_by_anchor,
    remove_stub_entry_by_type_and_description,
)
from stubsync.engine.core.sync import perform_sync

LINK_ENTRY = """  - link: "cite x"
    anchor: "^stub-aaa"
"""

QUESTION_ENTRY = """  - question:
      description: Why?
      priority: high
      anchor: ^stub-bbb
"""

VERIFY_ENTRY = """  - type: verify
    description: 'It''s true'
    anchor: "^stub-ccc"
"""

HEAD = "---\ntitle: Doc  # keep this comment\nstubs:\n"
TAIL = "tags: [a, b]\n---\nBody ^stub-aaa\n"
DOC = HEAD + LINK_ENTRY + QUESTION_ENTRY + VERIFY_ENTRY + TAIL


def test_locate_collects_each_element() -> None:
    block = locate_stubs_block(DOC)

    assert block is not None
    assert block.key_line == 2
    assert [(span.start, span.end) for span in block.entries] == [(3, 5), (5, 9), (9, 12)]


def test_remove_by_anchor_deletes_exactly_that_element() -> None:
    result = remove_stub_entry_by_anchor(DOC, "^stub-bbb")
    assert result == HEAD + LINK_ENTRY + VERIFY_ENTRY + TAIL


def test_remove_by_anchor_matches_quoted_tokens() -> None:
    result = remove_stub_entry_by_anchor(DOC, "^stub-ccc")
    assert result == HEAD + LINK_ENTRY + QUESTION_ENTRY + TAIL


def test_remove_by_anchor_ignores_token_prefixes() -> None:
    assert remove_stub_entry_by_anchor(DOC, "^stub-aa") == DOC


def test_remove_by_type_and_description_in_each_syntax() -> None:
    assert (
        remove_stub_entry_by_type_and_description(DOC, "link", "cite x")
        == HEAD + QUESTION_ENTRY + VERIFY_ENTRY + TAIL
    )
    assert (
        remove_stub_entry_by_type_and_description(DOC, "question", "Why?")
        == HEAD + LINK_ENTRY + VERIFY_ENTRY + TAIL
    )
    assert (
        remove_stub_entry_by_type_and_description(DOC, "verify", "It's true")
        == HEAD + LINK_ENTRY + QUESTION_ENTRY + TAIL
    )


def test_type_must_match_too() -> None:
    assert remove_stub_entry_by_type_and_description(DOC, "todo", "cite x") == DOC


def test_regex_metacharacters_in_description() -> None:
    doc = (
        "---\nstubs:\n"
        '  - verify: "95% confidence (p<0.05)"\n'
        '    anchor: "^stub-p1"\n'
        '  - verify: "95% confidence"\n'
        '    anchor: "^stub-p2"\n'
        "---\nBody\n"
    )

    first = remove_stub_entry_by_type_and_description(doc, "verify", "95% confidence (p<0.05)")
    assert first == (
        "---\nstubs:\n"
        '  - verify: "95% confidence"\n'
        '    anchor: "^stub-p2"\n'
        "---\nBody\n"
    )

    second = remove_stub_entry_by_type_and_description(doc, "verify", "95% confidence")
    assert second == (
        "---\nstubs:\n"
        '  - verify: "95% confidence (p<0.05)"\n'
        '    anchor: "^stub-p1"\n'
        "---\nBody\n"
    )


def test_removing_last_element_drops_the_key_line() -> None:
    doc = "---\ntitle: T\nstubs:\n" + LINK_ENTRY + "---\nBody\n"
    assert remove_stub_entry_by_anchor(doc, "^stub-aaa") == "---\ntitle: T\n---\nBody\n"


def test_remove_at_index() -> None:
    assert remove_stub_entry_at_index(DOC, 1) == HEAD + LINK_ENTRY + VERIFY_ENTRY + TAIL
    assert remove_stub_entry_at_index(DOC, 3) == DOC


def test_missing_target_is_a_noop() -> None:
    assert remove_stub_entry_by_anchor(DOC, "^stub-zzz") == DOC
    assert remove_stub_entry_by_anchor("No frontmatter ^stub-aaa", "^stub-aaa") == (
        "No frontmatter ^stub-aaa"
    )
    assert remove_stub_entry_by_anchor("---\ntitle: T\n---\nBody", "^stub-aaa") == (
        "---\ntitle: T\n---\nBody"
    )


def test_blank_line_between_elements() -> None:
    doc = (
        "---\nstubs:\n"
        "  - link: a\n    anchor: ^stub-1\n"
        "\n"
        "  - link: b\n    anchor: ^stub-2\n"
        "other: x\n---\nBody ^stub-2\n"
    )

    result = remove_stub_entry_by_anchor(doc, "^stub-1")

    assert "^stub-1" not in result
    state = perform_sync(result)
    assert [s.description for s in state.stubs] == ["b"]
    assert len(state.linked) == 1


def test_elements_at_column_zero() -> None:
    doc = "---\nstubs:\n- link: a\n  anchor: ^stub-1\n- link: b\nnext: 1\n---\n"
    assert remove_stub_entry_by_anchor(doc, "^stub-1") == "---\nstubs:\n- link: b\nnext: 1\n---\n"


def test_custom_key() -> None:
    doc = "---\ngaps:\n  - link: a\n    anchor: ^stub-1\n---\n"
    assert remove_stub_entry_by_anchor(doc, "^stub-1", key="gaps") == "---\n---\n"
    assert remove_stub_entry_by_anchor(doc, "^stub-1") == doc


def test_comment_between_elements_keeps_later_elements() -> None:
    doc = (
        "---\ntitle: T\nstubs:\n"
        "  - link: first\n    anchor: ^stub-aaa\n"
        "# keep the rest\n"
        "  - todo: second\n    anchor: ^stub-bbb\n"
        "---\nA ^stub-aaa\nB ^stub-bbb\n"
    )

    block = locate_stubs_block(doc)
    assert len(block.entries) == 2

    result = remove_stub_entry_by_anchor(doc, "^stub-aaa")

    state = perform_sync(result)
    assert [s.description for s in state.stubs] == ["second"]
    assert state.errors == []
    assert "# keep the rest\n" in result


def test_key_line_stays_while_elements_remain() -> None:
    doc = (
        "---\nstubs:\n"
        "  - link: first\n    anchor: ^stub-aaa\n"
        "  # trailing note\n"
        "  - todo: second\n"
        "---\nBody\n"
    )

    result = remove_stub_entry_at_index(doc, 0)

    assert result.startswith("---\nstubs:\n")
    assert [s.description for s in perform_sync(result).stubs] == ["second"]


def test_crlf_document() -> None:
    doc = "---\r\nstubs:\r\n  - link: first\r\n    anchor: ^stub-aaa\r\n---\r\nBody ^stub-aaa\r\n"
    assert len(perform_sync(doc).stubs) == 1

    assert remove_stub_entry_by_anchor(doc, "^stub-aaa") == "---\r\n---\r\nBody ^stub-aaa\r\n"
    assert remove_stub_entry_by_type_and_description(doc, "link", "first") == (
        "---\r\n---\r\nBody ^stub-aaa\r\n"
    )


def test_anchor_match_needs_the_anchor_key_itself() -> None:
    doc = (
        "---\nstubs:\n"
        "  - link:\n      description: first\n      see_anchor: ^stub-bbb\n"
        "  - todo: second\n    anchor: ^stub-bbb\n"
        "---\nBody ^stub-bbb\n"
    )

    result = remove_stub_entry_by_anchor(doc, "^stub-bbb")

    assert [s.description for s in perform_sync(result).stubs] == ["first"]


def test_anchor_with_trailing_comment() -> None:
    doc = "---\nstubs:\n  - link: a\n    anchor: ^stub-1  # placed by hand\n---\nBody\n"
    assert remove_stub_entry_by_anchor(doc, "^stub-1") == "---\n---\nBody\n"
