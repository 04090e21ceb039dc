from __future__ import annotations

import pytest

from stubsync.engine.core.entries import (
    CompactEntry,
    RejectedEntry,
    build_stub_entry,
    classify_entry,
    find_stub_type_key,
    generate_stub_id,
    parse_stubs,
    parse_stubs_frontmatter,
)
from stubsync.models import (
    ParseErrorType,
    ParseWarningType,
    PropertyType,
    StructuredPropertyDefinition,
    StubSyntax,
)


def test_explicit_entry_keeps_extra_keys_as_properties(config) -> None:
    result = parse_stubs(
        [{"type": "link", "description": "Cite RFC 6749", "anchor": "^stub-a1", "priority": "high"}],
        config,
    )

    assert result.errors == []
    stub = result.stubs[0]
    assert stub.syntax == StubSyntax.EXPLICIT
    assert stub.type == "link"
    assert stub.description == "Cite RFC 6749"
    assert stub.anchor == "^stub-a1"
    assert stub.properties == {"stub_form": "persistent", "priority": "high"}


def test_compact_entry_uses_sibling_anchor(config) -> None:
    result = parse_stubs([{"question": "Why now?", "anchor": "^stub-q1"}], config)

    stub = result.stubs[0]
    assert stub.syntax == StubSyntax.COMPACT
    assert stub.type == "question"
    assert stub.description == "Why now?"
    assert stub.anchor == "^stub-q1"
    assert stub.properties == {"stub_form": "transient"}


def test_structured_entry_overrides_type_defaults(config) -> None:
    result = parse_stubs(
        [
            {
                "controversy": {
                    "description": "Pricing model disagreement",
                    "stub_form": "structural",
                    "anchor": "^stub-pricing",
                }
            }
        ],
        config,
    )

    stub = result.stubs[0]
    assert stub.syntax == StubSyntax.STRUCTURED
    assert stub.anchor == "^stub-pricing"
    assert stub.properties == {"stub_form": "structural"}


def test_structured_entry_falls_back_to_sibling_anchor(config) -> None:
    result = parse_stubs(
        [{"link": {"description": "Cite it"}, "anchor": "^stub-side"}], config
    )
    assert result.stubs[0].anchor == "^stub-side"


@pytest.mark.parametrize("value", [None, "", []])
def test_absent_or_empty_value_is_not_an_error(config, value) -> None:
    result = parse_stubs(value, config)
    assert result.stubs == []
    assert result.errors == []
    assert result.warnings == []


def test_missing_key_is_not_an_error(config) -> None:
    result = parse_stubs_frontmatter({"title": "No stubs"}, config)
    assert result.stubs == [] and result.errors == []


def test_non_list_value_is_invalid_format(config) -> None:
    result = parse_stubs({"link": "not a list"}, config)
    assert result.stubs == []
    assert [e.type for e in result.errors] == [ParseErrorType.INVALID_FORMAT]


def test_bad_entry_does_not_affect_siblings(config) -> None:
    result = parse_stubs(["just text", {"link": "Still parsed"}], config)

    assert [e.type for e in result.errors] == [ParseErrorType.INVALID_ENTRY]
    assert result.errors[0].index == 0
    assert len(result.stubs) == 1
    assert result.stubs[0].index == 1


def test_structured_without_description_is_dropped(config) -> None:
    result = parse_stubs([{"link": {"priority": "high"}}], config)
    assert result.stubs == []
    assert result.errors[0].type == ParseErrorType.MISSING_DESCRIPTION


@pytest.mark.parametrize(
    "entry",
    [
        {"link": "   "},
        {"type": "link", "description": ""},
        {"link": {"description": "  "}},
    ],
)
def test_blank_descriptions_are_rejected_in_every_encoding(config, entry) -> None:
    result = parse_stubs([entry], config)
    assert result.stubs == []
    assert result.errors[0].type == ParseErrorType.MISSING_DESCRIPTION


def test_explicit_non_string_description_is_invalid_value(config) -> None:
    result = parse_stubs([{"type": "link", "description": 42}], config)
    assert result.errors[0].type == ParseErrorType.INVALID_VALUE


def test_list_value_under_type_key_is_invalid_value(config) -> None:
    result = parse_stubs([{"link": ["a", "b"]}], config)
    assert result.errors[0].type == ParseErrorType.INVALID_VALUE


def test_entry_with_only_reserved_keys_has_no_type(config) -> None:
    result = parse_stubs([{"anchor": "^stub-x", "description": "orphan text"}], config)
    assert result.errors[0].type == ParseErrorType.INVALID_ENTRY


def test_unknown_type_is_kept_with_warning(config) -> None:
    result = parse_stubs([{"mystery": "Something odd"}], config)

    assert len(result.stubs) == 1
    assert result.stubs[0].type == "mystery"
    assert result.stubs[0].properties == {}
    assert [w.type for w in result.warnings] == [ParseWarningType.UNKNOWN_TYPE]
    assert result.stubs[0].warnings


def test_invalid_enum_value_is_dropped_with_warning(config) -> None:
    result = parse_stubs([{"link": {"description": "d", "priority": "urgent"}}], config)

    stub = result.stubs[0]
    assert "priority" not in stub.properties
    assert result.warnings[0].type == ParseWarningType.INVALID_PROPERTY_VALUE
    assert result.warnings[0].property == "priority"


def test_unknown_property_is_preserved_with_warning(config) -> None:
    result = parse_stubs([{"link": "d", "owner": "sam"}], config)

    assert result.stubs[0].properties["owner"] == "sam"
    assert result.warnings[0].type == ParseWarningType.UNKNOWN_PROPERTY


def test_boolean_is_not_a_number(config) -> None:
    config.structured_properties["effort"] = StructuredPropertyDefinition(
        id="effort", key="effort", display_name="Effort", type=PropertyType.NUMBER
    )
    result = parse_stubs(
        [
            {"link": {"description": "a", "effort": True}},
            {"link": {"description": "b", "effort": 3}},
        ],
        config,
    )

    assert "effort" not in result.stubs[0].properties
    assert result.stubs[1].properties["effort"] == 3


def test_array_property_accepts_lists_only(config) -> None:
    result = parse_stubs(
        [{"todo": {"description": "d", "assignees": "[[Sam]]", "references": ["[[Spec]]"]}}],
        config,
    )
    props = result.stubs[0].properties
    assert "assignees" not in props
    assert props["references"] == ["[[Spec]]"]


def test_anchor_must_be_a_caret_string(config) -> None:
    result = parse_stubs([{"link": "d", "anchor": "stub-1"}, {"link": "e", "anchor": 7}], config)
    assert [s.anchor for s in result.stubs] == [None, None]
    # The anchor key is never treated as a property
    assert all("anchor" not in s.properties for s in result.stubs)


def test_type_key_detection_skips_property_keys(config) -> None:
    assert find_stub_type_key(["priority", "custom"], config) == "custom"
    assert find_stub_type_key(["owner", "link"], config) == "link"
    assert find_stub_type_key(["anchor", "description"], config) is None
    assert find_stub_type_key([1, "anchor"], config) is None


def test_explicit_wins_over_compact(config) -> None:
    entry = classify_entry({"type": "link", "description": "d", "question": "q"}, 0, config)
    assert not isinstance(entry, (CompactEntry, RejectedEntry))
    assert entry.type_key == "link"
    assert entry.properties == {"question": "q"}


def test_stub_id_is_deterministic_and_index_dependent() -> None:
    first = generate_stub_id("link", "Cite it", 0)
    assert first == generate_stub_id("link", "Cite it", 0)
    assert first != generate_stub_id("link", "Cite it", 1)
    assert first.startswith("stub-link-")
    assert len(first) == len("stub-link-") + 8


def test_built_entries_parse_back(config) -> None:
    plain = build_stub_entry("link", "Cite it", "^stub-abc")
    rich = build_stub_entry("todo", "Do it", None, {"priority": "low"})

    assert plain == {"link": "Cite it", "anchor": "^stub-abc"}
    assert rich == {"todo": {"description": "Do it", "priority": "low"}}

    result = parse_stubs([plain, rich], config)
    assert [(s.type, s.description, s.anchor) for s in result.stubs] == [
        ("link", "Cite it", "^stub-abc"),
        ("todo", "Do it", None),
    ]
    assert result.stubs[1].properties["priority"] == "low"


@pytest.mark.parametrize("description", ["", "  \t"])
def test_building_an_entry_needs_a_description(description) -> None:
    with pytest.raises(ValueError):
        build_stub_entry("link", description)
