"""Epic dashboard service: one search cycle from config to chart data."""

import logging

from services import view_state
from services.chart_geometry import layout_bars, layout_pie
from services.epic_metrics import summarize_epic
from services.epic_resolver import resolve_epics
from services.member_names import MemberNameCache
from services.workflow_index import build_index

logger = logging.getLogger(__name__)


class EpicDashboardService:
    """Builds the dashboard view for the tracked epics."""

    def __init__(self, client, config, max_workers: int = 6):
        self.client = client
        self.config = config
        self.max_workers = max_workers

    def _owner_ids(self, epics: list) -> list:
        owner_ids = []
        seen = set()
        for epic in epics:
            for story in epic.get("stories") or []:
                for owner_id in story.get("owner_ids") or []:
                    if owner_id not in seen:
                        seen.add(owner_id)
                        owner_ids.append(owner_id)
        return owner_ids

    def _build_epic_view(self, epic: dict, index, names: MemberNameCache) -> dict:
        """Epic card data: remote fields, aggregations and chart geometry."""
        tracked = self.config.find_epic(epic["name"])
        roster = tracked.team if tracked else []

        view = {
            "id": epic.get("id"),
            "name": epic.get("name"),
            "remoteName": epic.get("remoteName"),
            "notFound": bool(epic.get("notFound")),
            "team": roster
        }

        if epic.get("notFound"):
            return view

        view.update({
            "state": epic.get("state"),
            "description": epic.get("description"),
            "appUrl": epic.get("app_url"),
            "stats": epic.get("stats"),
            "ownerNames": [names.resolve(owner_id) for owner_id in epic.get("owner_ids") or []]
        })

        # Stories failed to load: keep the epic, skip the charts
        if "stories" not in epic:
            view["storiesLoaded"] = False
            return view

        summary = summarize_epic(epic, index, names.resolve, roster)
        view.update(summary)
        view["storiesLoaded"] = True
        view["stories"] = [
            {
                "id": story.get("id"),
                "name": story.get("name"),
                "storyType": story.get("story_type"),
                "workflowStateId": story.get("workflow_state_id"),
                "stateName": index.state_name(story.get("workflow_state_id")),
                "owners": [names.resolve(owner_id) for owner_id in story.get("owner_ids") or []],
                "appUrl": story.get("app_url")
            }
            for story in epic["stories"]
        ]
        view["charts"] = {
            "statePie": layout_pie(summary["stateSegments"]),
            "stateBars": layout_bars(summary["stateSegments"]),
            "typePie": layout_pie(summary["typeSegments"]),
            "ownerBars": layout_bars(summary["ownerSegments"]),
            "rosterBars": layout_bars(summary["rosterSegments"])
        }
        return view

    def run(self, state: view_state.ViewState = None) -> view_state.ViewState:
        """Run one search cycle.

        Raises:
            ConfigMissingError: if the token, workflow or epic list is unset
        """
        self.config.require_complete()

        state = view_state.search_started(state or view_state.ViewState())

        index = build_index(self.config.workflow)
        names = [epic.name for epic in self.config.epics]

        result = resolve_epics(names, self.client, max_workers=self.max_workers)

        member_names = MemberNameCache(self.client, max_workers=self.max_workers)
        member_names.prefetch(self._owner_ids(result.resolved))

        epics = [self._build_epic_view(epic, index, member_names) for epic in result.epics]

        auth_required = result.auth_failed or member_names.auth_failed
        if auth_required:
            logger.warning("Shortcut rejected the API token during the search cycle")

        return view_state.search_succeeded(state, epics, auth_required=auth_required)
