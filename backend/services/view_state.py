"""Dashboard view state and its transitions.

The state of one search cycle is a single immutable value. Every change
goes through a function that returns a new ViewState, so the aggregation
output can be tested without any presentation code.
"""

from dataclasses import dataclass, field, replace
from typing import Optional


@dataclass(frozen=True)
class ViewState:
    loading: bool = False
    error: Optional[str] = None
    auth_required: bool = False
    config_missing: tuple = ()
    epics: tuple = ()
    expanded_epics: frozenset = field(default_factory=frozenset)
    collapsed_charts: frozenset = field(default_factory=frozenset)
    hovered_segment: Optional[tuple] = None

    def to_dict(self) -> dict:
        return {
            "loading": self.loading,
            "error": self.error,
            "authRequired": self.auth_required,
            "configMissing": list(self.config_missing),
            "epics": list(self.epics),
            "expandedEpics": sorted(str(epic_id) for epic_id in self.expanded_epics),
            "collapsedCharts": sorted(self.collapsed_charts),
            "hoveredSegment": list(self.hovered_segment) if self.hovered_segment else None
        }


def search_started(state: ViewState) -> ViewState:
    """Start a new cycle; results of the previous one are dropped."""
    return replace(
        state,
        loading=True,
        error=None,
        auth_required=False,
        config_missing=(),
        epics=(),
        hovered_segment=None
    )


def search_succeeded(state: ViewState, epics: list, auth_required: bool = False) -> ViewState:
    return replace(
        state,
        loading=False,
        error=None,
        auth_required=auth_required,
        epics=tuple(epics)
    )


def search_failed(state: ViewState, error: str, auth_required: bool = False) -> ViewState:
    return replace(state, loading=False, error=error, auth_required=auth_required)


def config_missing(state: ViewState, missing: list) -> ViewState:
    return replace(
        state,
        loading=False,
        error=f"Missing configuration: {', '.join(missing)}",
        config_missing=tuple(missing)
    )


def toggle_epic(state: ViewState, epic_id) -> ViewState:
    """Expand a collapsed epic card or collapse an expanded one."""
    return replace(state, expanded_epics=state.expanded_epics ^ {epic_id})


def toggle_chart(state: ViewState, chart_key: str) -> ViewState:
    return replace(state, collapsed_charts=state.collapsed_charts ^ {chart_key})


def hover_segment(state: ViewState, chart_key: str, segment_key) -> ViewState:
    return replace(state, hovered_segment=(chart_key, segment_key))


def clear_hover(state: ViewState) -> ViewState:
    return replace(state, hovered_segment=None)
