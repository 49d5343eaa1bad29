"""Workflow state lookup built from the user's canonical workflow."""

from typing import Optional

# Workflow states the dashboard charts, in pipeline order
TRACKED_STATES = (
    "Backlog",
    "Ready for Development",
    "In Development",
    "In Review",
    "Ready for Release",
    "Complete",
)

COMPLETE_STATE = "complete"


def normalize_state_name(name) -> str:
    return (name or "").strip().lower()


TRACKED_STATE_KEYS = tuple(normalize_state_name(name) for name in TRACKED_STATES)


class WorkflowIndex:
    """Bidirectional id/name mapping for one workflow.

    Attributes:
        id_to_name: state id -> display name
        name_to_id: lowercase-trimmed name -> state id
        state_order: state ids in workflow order, no duplicates
    """

    def __init__(self, id_to_name: dict, name_to_id: dict, state_order: list):
        self.id_to_name = id_to_name
        self.name_to_id = name_to_id
        self.state_order = state_order

    def state_name(self, state_id) -> Optional[str]:
        return self.id_to_name.get(state_id)

    def state_id(self, name) -> Optional[object]:
        return self.name_to_id.get(normalize_state_name(name))

    def is_tracked(self, state_id) -> bool:
        """Check if a state is one of the charted pipeline states."""
        return normalize_state_name(self.id_to_name.get(state_id)) in TRACKED_STATE_KEYS

    def is_complete(self, state_id) -> bool:
        return normalize_state_name(self.id_to_name.get(state_id)) == COMPLETE_STATE

    def tracked_state_ids(self) -> list:
        """State ids of the tracked states present in this workflow.

        Ordered by the pipeline order in TRACKED_STATES, not by the
        workflow's own ordering.
        """
        ids = []
        for key in TRACKED_STATE_KEYS:
            state_id = self.name_to_id.get(key)
            if state_id is not None:
                ids.append(state_id)
        return ids

    def to_dict(self) -> dict:
        return {
            "idToName": {str(k): v for k, v in self.id_to_name.items()},
            "nameToId": dict(self.name_to_id),
            "stateOrder": list(self.state_order),
            "trackedStateIds": self.tracked_state_ids()
        }


def build_index(workflow) -> WorkflowIndex:
    """Build the state index for a workflow.

    Args:
        workflow: Either a Shortcut workflow dict ({id, name, states}) or a
            persisted WorkflowConfig

    States outside TRACKED_STATES stay in the index but are never charted.
    A duplicate state id keeps its first position and name.
    """
    if workflow is None:
        states = []
    elif isinstance(workflow, dict):
        states = workflow.get("states") or []
    else:
        states = workflow.states or []

    id_to_name = {}
    name_to_id = {}
    state_order = []

    for state in states:
        state_id = state.get("id")
        if state_id is None or state_id in id_to_name:
            continue
        name = state.get("name", "")
        id_to_name[state_id] = name
        state_order.append(state_id)
        key = normalize_state_name(name)
        if key and key not in name_to_id:
            name_to_id[key] = state_id

    return WorkflowIndex(id_to_name, name_to_id, state_order)
