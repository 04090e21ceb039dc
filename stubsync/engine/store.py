"""View state for stub listings.

An immutable ``StubsViewState`` snapshot, a small ``StubsStore`` that swaps
snapshots and notifies subscribers, and pure selector functions that derive
grouped / filtered / sorted views from a snapshot on demand.
"""

import logging
import math
from collections.abc import Callable
from dataclasses import dataclass, field, replace
from typing import Any

from ..models.config import StubsConfiguration
from ..models.enums import SortOrder
from ..models.stubs import Anchor, LinkedPair, Stub, SyncState

logger = logging.getLogger(__name__)

Listener = Callable[["StubsViewState"], None]

_NEXT_SORT_ORDER = {
    SortOrder.TYPE: SortOrder.ASC,
    SortOrder.ASC: SortOrder.DESC,
    SortOrder.DESC: SortOrder.TYPE,
}


@dataclass(frozen=True)
class StubsViewState:
    """Snapshot of everything a stub list view needs."""

    sync: SyncState = field(default_factory=SyncState)
    config: StubsConfiguration | None = None
    filter_text: str = ""
    active_type_filters: frozenset[str] = frozenset()
    hidden_types: frozenset[str] = frozenset()
    expanded_types: frozenset[str] = frozenset()
    selected_stub_id: str | None = None
    sort_order: SortOrder = SortOrder.TYPE
    loading: bool = False
    error: str | None = None


def _toggle(items: frozenset[str], key: str) -> frozenset[str]:
    return items - {key} if key in items else items | {key}


class StubsStore:
    """Holds the current view state and notifies subscribers on every change."""

    def __init__(self, state: StubsViewState | None = None):
        self._state = state or StubsViewState()
        self._listeners: list[Listener] = []

    @property
    def state(self) -> StubsViewState:
        return self._state

    def subscribe(self, listener: Listener) -> Callable[[], None]:
        """Register ``listener``; it is called with each new state.

        Returns:
            A function that unsubscribes the listener
        """
        self._listeners.append(listener)

        def unsubscribe() -> None:
            if listener in self._listeners:
                self._listeners.remove(listener)

        return unsubscribe

    def set_state(self, **changes: Any) -> StubsViewState:
        """Replace the snapshot with a copy carrying ``changes`` and notify."""
        self._state = replace(self._state, **changes)
        for listener in list(self._listeners):
            listener(self._state)
        return self._state

    # ============ ACTIONS ============

    def update_sync_state(self, sync: SyncState) -> StubsViewState:
        return self.set_state(sync=sync)

    def update_config(self, config: StubsConfiguration, expand_all: bool = False) -> StubsViewState:
        expanded = frozenset(config.type_keys) if expand_all else self._state.expanded_types
        return self.set_state(config=config, expanded_types=expanded)

    def select_stub(self, stub_id: str | None) -> StubsViewState:
        return self.set_state(selected_stub_id=stub_id)

    def set_filter_text(self, text: str) -> StubsViewState:
        return self.set_state(filter_text=text)

    def toggle_type_filter(self, type_key: str) -> StubsViewState:
        return self.set_state(active_type_filters=_toggle(self._state.active_type_filters, type_key))

    def set_type_filters(self, type_keys: list[str]) -> StubsViewState:
        return self.set_state(active_type_filters=frozenset(type_keys))

    def clear_type_filters(self) -> StubsViewState:
        return self.set_state(active_type_filters=frozenset())

    def toggle_type_visibility(self, type_key: str) -> StubsViewState:
        return self.set_state(hidden_types=_toggle(self._state.hidden_types, type_key))

    def toggle_type_expanded(self, type_key: str) -> StubsViewState:
        return self.set_state(expanded_types=_toggle(self._state.expanded_types, type_key))

    def expand_all_types(self) -> StubsViewState:
        config = self._state.config
        keys = config.type_keys if config else []
        return self.set_state(expanded_types=frozenset(keys))

    def collapse_all_types(self) -> StubsViewState:
        return self.set_state(expanded_types=frozenset())

    def set_sort_order(self, order: SortOrder) -> StubsViewState:
        return self.set_state(sort_order=SortOrder(order))

    def cycle_sort_order(self) -> StubsViewState:
        """type -> asc -> desc -> type"""
        return self.set_state(sort_order=_NEXT_SORT_ORDER[self._state.sort_order])

    def set_loading(self, loading: bool) -> StubsViewState:
        return self.set_state(loading=loading)

    def set_error(self, error: str | None) -> StubsViewState:
        if error:
            logger.warning(f"Stub view error: {error}")
        return self.set_state(error=error)

    def clear(self) -> StubsViewState:
        """Reset document-specific state (sync, selection, filter text, error)."""
        return self.set_state(sync=SyncState(), selected_stub_id=None, filter_text="", error=None)


# ============ SELECTORS ============


def _group_by_type(stubs: list[Stub], config: StubsConfiguration | None) -> dict[str, list[Stub]]:
    # Configured types first (even when empty), unknown types after in first-seen order
    grouped: dict[str, list[Stub]] = {}
    if config is not None:
        for stub_type in config.sorted_stub_types():
            grouped[stub_type.key] = []
    for stub in stubs:
        grouped.setdefault(stub.type, []).append(stub)
    return grouped


def stubs_by_type(state: StubsViewState) -> dict[str, list[Stub]]:
    return _group_by_type(state.sync.stubs, state.config)


def filtered_stubs(state: StubsViewState) -> list[Stub]:
    """Stubs matching the active type filters and the search text."""
    stubs = state.sync.stubs

    if state.active_type_filters:
        stubs = [s for s in stubs if s.type in state.active_type_filters]

    search = state.filter_text.strip().lower()
    if search:
        stubs = [
            s
            for s in stubs
            if search in s.description.lower()
            or search in s.type.lower()
            or (s.anchor is not None and search in s.anchor.lower())
        ]

    return stubs


def visible_stubs(state: StubsViewState) -> list[Stub]:
    return [s for s in filtered_stubs(state) if s.type not in state.hidden_types]


def stub_position(stub: Stub, anchors: list[Anchor]) -> float:
    """Document offset of the stub's anchor; unanchored stubs sort last."""
    if stub.anchor is None:
        return math.inf
    anchor = next((a for a in anchors if a.id == stub.anchor), None)
    return anchor.position.offset if anchor else math.inf


def _sort_by_position(stubs: list[Stub], anchors: list[Anchor], order: SortOrder) -> list[Stub]:
    if order == SortOrder.TYPE:
        return list(stubs)
    positions = {s.id: stub_position(s, anchors) for s in stubs}
    placed = [s for s in stubs if positions[s.id] != math.inf]
    unplaced = [s for s in stubs if positions[s.id] == math.inf]
    # Unplaced stubs stay last in both directions
    placed.sort(key=lambda s: positions[s.id], reverse=order == SortOrder.DESC)
    return placed + unplaced


def sorted_visible_stubs(state: StubsViewState) -> list[Stub]:
    """Visible stubs, ordered by anchor position unless grouping by type."""
    return _sort_by_position(visible_stubs(state), state.sync.anchors, state.sort_order)


def visible_stubs_by_type(state: StubsViewState) -> dict[str, list[Stub]]:
    grouped = _group_by_type(visible_stubs(state), state.config)
    return {
        key: _sort_by_position(stubs, state.sync.anchors, state.sort_order)
        for key, stubs in grouped.items()
    }


def count_by_type(state: StubsViewState) -> dict[str, int]:
    return {key: len(stubs) for key, stubs in stubs_by_type(state).items()}


def orphan_counts(state: StubsViewState) -> tuple[int, int]:
    """(orphaned stubs, orphaned anchors)"""
    return len(state.sync.orphaned_stubs), len(state.sync.orphaned_anchors)


def has_orphans(state: StubsViewState) -> bool:
    return state.sync.has_orphans


def stub_by_id(state: StubsViewState, stub_id: str) -> Stub | None:
    return next((s for s in state.sync.stubs if s.id == stub_id), None)


def selected_stub(state: StubsViewState) -> Stub | None:
    if state.selected_stub_id is None:
        return None
    return stub_by_id(state, state.selected_stub_id)


def selected_anchor(state: StubsViewState) -> Anchor | None:
    stub = selected_stub(state)
    if stub is None or stub.anchor is None:
        return None
    return anchor_by_id(state, stub.anchor)


def anchor_by_id(state: StubsViewState, anchor_id: str) -> Anchor | None:
    return next((a for a in state.sync.anchors if a.id == anchor_id), None)


def stub_by_anchor_id(state: StubsViewState, anchor_id: str) -> Stub | None:
    return next((s for s in state.sync.stubs if s.anchor == anchor_id), None)


def linked_pair_for(state: StubsViewState, stub_id: str) -> LinkedPair | None:
    return next((p for p in state.sync.linked if p.stub.id == stub_id), None)


def is_type_expanded(state: StubsViewState, type_key: str) -> bool:
    return type_key in state.expanded_types


def is_type_visible(state: StubsViewState, type_key: str) -> bool:
    return type_key not in state.hidden_types
