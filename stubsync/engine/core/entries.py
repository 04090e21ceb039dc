"""Structured entry parser for the frontmatter stubs array.

Three entry encodings are accepted, tried in this order:

Explicit syntax:
    - type: link
      description: "Add citation for OAuth spec"
      anchor: "^stub-abc123"

Compact syntax:
    - link: "Add citation for OAuth spec"
      anchor: "^stub-abc123"

Structured syntax:
    - controversy:
        description: "Pricing model disagreement"
        stub_form: blocking
        anchor: "^stub-pricing"

Every entry is classified into one of the entry dataclasses below (or a
RejectedEntry) and only then turned into a Stub, so the precedence rule lives
in one function and a new encoding is one more dataclass plus one more case.
"""

import hashlib
import logging
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from ...models.config import StructuredPropertyDefinition, StubsConfiguration
from ...models.enums import ParseErrorType, ParseWarningType, PropertyType, StubSyntax
from ...models.stubs import Stub, StubParseError, StubParseResult, StubParseWarning

logger = logging.getLogger(__name__)

ANCHOR_KEY = "anchor"
DESCRIPTION_KEY = "description"
TYPE_KEY = "type"

# ============ ENTRY VARIANTS ============


@dataclass(frozen=True)
class ExplicitEntry:
    """``{type: link, description: ..., <properties>}``"""

    type_key: str
    description: str
    anchor: str | None
    properties: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class CompactEntry:
    """``{link: "description", anchor: ..., <properties>}``"""

    type_key: str
    description: str
    anchor: str | None
    properties: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class StructuredEntry:
    """``{link: {description: ..., anchor: ..., <properties>}}``"""

    type_key: str
    description: str
    anchor: str | None
    properties: dict[str, Any] = field(default_factory=dict)


@dataclass(frozen=True)
class RejectedEntry:
    """An entry that cannot become a stub."""

    error: StubParseError


StubEntry = ExplicitEntry | CompactEntry | StructuredEntry | RejectedEntry


# ============ MAIN PARSER ============


def parse_stubs_frontmatter(
    frontmatter: Mapping[str, Any], config: StubsConfiguration
) -> StubParseResult:
    """Parse the stubs array found at ``config.frontmatter_key``."""
    return parse_stubs(frontmatter.get(config.frontmatter_key), config)


def parse_stubs(value: Any, config: StubsConfiguration) -> StubParseResult:
    """Parse a decoded stubs array into Stub records.

    Args:
        value: Whatever the frontmatter holds at the stubs key (None if absent)
        config: Stubs configuration

    Returns:
        StubParseResult with stubs, entry-dropping errors and entry-keeping warnings
    """
    result = StubParseResult()

    # Key absent, null or empty
    if value is None or value == "":
        return result

    if not isinstance(value, list):
        result.errors.append(
            StubParseError(
                type=ParseErrorType.INVALID_FORMAT,
                message=(
                    f'"{config.frontmatter_key}" must be an array, '
                    f"got {type(value).__name__}"
                ),
            )
        )
        return result

    for index, raw_entry in enumerate(value):
        warnings: list[StubParseWarning] = []
        entry = classify_entry(raw_entry, index, config)

        match entry:
            case RejectedEntry(error=error):
                result.errors.append(error)
                continue
            case ExplicitEntry():
                syntax = StubSyntax.EXPLICIT
            case CompactEntry():
                syntax = StubSyntax.COMPACT
            case StructuredEntry():
                syntax = StubSyntax.STRUCTURED

        type_config = config.get_stub_type(entry.type_key)
        if type_config is None:
            warnings.append(
                StubParseWarning(
                    type=ParseWarningType.UNKNOWN_TYPE,
                    index=index,
                    stub_type=entry.type_key,
                    message=f'Unknown stub type "{entry.type_key}" at index {index}',
                )
            )

        validated = validate_properties(entry.properties, config, warnings, index)
        defaults = dict(type_config.defaults) if type_config else {}

        result.stubs.append(
            Stub(
                id=generate_stub_id(entry.type_key, entry.description, index),
                type=entry.type_key,
                description=entry.description,
                anchor=entry.anchor,
                properties={**defaults, **validated},
                syntax=syntax,
                index=index,
                warnings=[w.message for w in warnings],
            )
        )
        result.warnings.extend(warnings)

    logger.debug(
        f"Parsed {len(result.stubs)} stubs "
        f"({len(result.errors)} errors, {len(result.warnings)} warnings)"
    )
    return result


# ============ CLASSIFICATION ============


def classify_entry(entry: Any, index: int, config: StubsConfiguration) -> StubEntry:
    """Decide which encoding a raw array element uses.

    Precedence: explicit, then compact, then structured.
    """
    if not isinstance(entry, Mapping):
        return _reject(ParseErrorType.INVALID_ENTRY, index, f"Entry at index {index} must be an object")

    # Explicit: {type: "link", description: "..."}
    if isinstance(entry.get(TYPE_KEY), str) and DESCRIPTION_KEY in entry:
        description = entry[DESCRIPTION_KEY]
        if not isinstance(description, str):
            return _reject(
                ParseErrorType.INVALID_VALUE,
                index,
                f"Entry at index {index} has non-string description",
            )
        if not description.strip():
            return _missing_description(index)
        return ExplicitEntry(
            type_key=entry[TYPE_KEY],
            description=description,
            anchor=extract_anchor(entry),
            properties={
                str(k): v
                for k, v in entry.items()
                if k not in (TYPE_KEY, DESCRIPTION_KEY, ANCHOR_KEY)
            },
        )

    type_key = find_stub_type_key(list(entry.keys()), config)
    if type_key is None:
        keys = ", ".join(str(k) for k in entry.keys())
        return _reject(
            ParseErrorType.INVALID_ENTRY,
            index,
            f"Entry at index {index} has no recognized stub type key. Keys found: {keys}",
        )

    value = entry[type_key]
    siblings = {str(k): v for k, v in entry.items() if k not in (type_key, ANCHOR_KEY)}

    # Compact: {link: "description", anchor: "^stub-x"}
    if isinstance(value, str):
        if not value.strip():
            return _missing_description(index)
        return CompactEntry(
            type_key=type_key,
            description=value,
            anchor=extract_anchor(entry),
            properties=siblings,
        )

    # Structured: {link: {description: "...", anchor: "...", priority: high}}
    if isinstance(value, Mapping):
        description = value.get(DESCRIPTION_KEY)
        if not isinstance(description, str) or not description.strip():
            return _missing_description(index, structured=True)
        body = {
            str(k): v for k, v in value.items() if k not in (DESCRIPTION_KEY, ANCHOR_KEY)
        }
        return StructuredEntry(
            type_key=type_key,
            description=description,
            anchor=extract_anchor(value) or extract_anchor(entry),
            properties={**siblings, **body},
        )

    return _reject(
        ParseErrorType.INVALID_VALUE,
        index,
        f'Value for "{type_key}" at index {index} must be a string or object',
    )


def find_stub_type_key(keys: list[Any], config: StubsConfiguration) -> str | None:
    """Find the key naming the stub type.

    First key matching a configured type wins; otherwise the first key that is
    not ``anchor``, ``description`` or a known property key.
    """
    string_keys = [k for k in keys if isinstance(k, str)]
    type_keys = set(config.type_keys)

    for key in string_keys:
        if key in type_keys:
            return key

    reserved = {ANCHOR_KEY, DESCRIPTION_KEY, *config.property_keys}
    for key in string_keys:
        if key not in reserved:
            return key

    return None


def extract_anchor(mapping: Mapping[str, Any]) -> str | None:
    """Return the ``anchor`` value when it is a ^token string."""
    anchor = mapping.get(ANCHOR_KEY)
    if isinstance(anchor, str) and anchor.startswith("^"):
        return anchor
    return None


def _reject(error_type: ParseErrorType, index: int, message: str) -> RejectedEntry:
    return RejectedEntry(StubParseError(type=error_type, index=index, message=message))


def _missing_description(index: int, structured: bool = False) -> RejectedEntry:
    kind = "Structured stub" if structured else "Stub"
    return _reject(
        ParseErrorType.MISSING_DESCRIPTION,
        index,
        f'{kind} at index {index} missing required "description" property',
    )


# ============ PROPERTY VALIDATION ============


def validate_properties(
    props: Mapping[str, Any],
    config: StubsConfiguration,
    warnings: list[StubParseWarning],
    index: int,
) -> dict[str, Any]:
    """Validate level-2 properties against the configured schema.

    Unknown keys are kept with an ``unknown_property`` warning. Values of the
    wrong shape are dropped with an ``invalid_property_value`` warning.
    """
    validated: dict[str, Any] = {}

    for key, value in props.items():
        definition = config.get_property(key)

        if definition is None:
            warnings.append(
                StubParseWarning(
                    type=ParseWarningType.UNKNOWN_PROPERTY,
                    index=index,
                    property=key,
                    message=f'Unknown property "{key}" at index {index}',
                )
            )
            validated[key] = value
            continue

        problem = check_property_value(value, definition)
        if problem is None:
            validated[key] = value
        else:
            warnings.append(
                StubParseWarning(
                    type=ParseWarningType.INVALID_PROPERTY_VALUE,
                    index=index,
                    property=key,
                    message=f"{problem} at index {index}",
                )
            )

    return validated


def check_property_value(value: Any, definition: StructuredPropertyDefinition) -> str | None:
    """Return a problem description, or None when the value fits the definition."""
    key = definition.key
    match definition.type:
        case PropertyType.STRING:
            if not isinstance(value, str):
                return f'"{key}" must be a string'
        case PropertyType.ENUM:
            if not isinstance(value, str):
                return f'"{key}" must be a string'
            if definition.enum_values and value not in definition.enum_values:
                return f'"{key}" must be one of: {", ".join(definition.enum_values)}'
        case PropertyType.ARRAY:
            if not isinstance(value, (list, tuple)):
                return f'"{key}" must be an array'
        case PropertyType.BOOLEAN:
            if not isinstance(value, bool):
                return f'"{key}" must be a boolean'
        case PropertyType.NUMBER:
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                return f'"{key}" must be a number'
    return None


# ============ IDENTITY & SERIALIZATION ============


def generate_stub_id(stub_type: str, description: str, index: int) -> str:
    """Deterministic stub id from type, description and array position."""
    digest = hashlib.sha256(f"{stub_type}:{description}:{index}".encode()).hexdigest()
    return f"stub-{stub_type}-{digest[:8]}"


def build_stub_entry(
    stub_type: str,
    description: str,
    anchor: str | None = None,
    properties: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """Build the array element for a new stub.

    Compact syntax when there are no properties, structured syntax otherwise.

    Raises:
        ValueError: If ``description`` is blank, since the parser would reject it
    """
    if not description or not description.strip():
        raise ValueError("Stub description must not be blank")
    if not properties:
        entry: dict[str, Any] = {stub_type: description}
        if anchor:
            entry[ANCHOR_KEY] = anchor
        return entry

    body: dict[str, Any] = {DESCRIPTION_KEY: description}
    if anchor:
        body[ANCHOR_KEY] = anchor
    body.update({k: v for k, v in properties.items() if k not in (DESCRIPTION_KEY, ANCHOR_KEY)})
    return {stub_type: body}
