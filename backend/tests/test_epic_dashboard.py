"""Tests for EpicDashboardService."""

import pytest

from services.config_store import ConfigMissingError, DashboardConfig, TrackedEpic, parse_workflow
from services.epic_dashboard import EpicDashboardService
from services.shortcut_client import ShortcutAPIError, ShortcutAuthError

from conftest import COMPLETE, IN_DEV


@pytest.fixture
def dashboard_config(api_token, workflow_config):
    return DashboardConfig(
        api_token=api_token,
        workflow=parse_workflow(workflow_config),
        epics=[
            TrackedEpic(name="Checkout Redesign", team=["Ana"]),
            TrackedEpic(name="Unknown Epic", team=["Dave"])
        ]
    )


class TestRun:
    """Test a full search cycle."""

    def test_requires_complete_config(self, mock_shortcut_client):
        service = EpicDashboardService(mock_shortcut_client, DashboardConfig())

        with pytest.raises(ConfigMissingError):
            service.run()
        mock_shortcut_client.search_epics.assert_not_called()

    def test_epics_in_configured_order(self, mock_shortcut_client, dashboard_config):
        state = EpicDashboardService(mock_shortcut_client, dashboard_config).run()

        assert [e["name"] for e in state.epics] == ["Checkout Redesign", "Unknown Epic"]
        assert state.loading is False
        assert state.auth_required is False

    def test_checkout_redesign_summary(self, mock_shortcut_client, dashboard_config):
        """Counts and roster follow the resolved stories."""
        state = EpicDashboardService(mock_shortcut_client, dashboard_config).run()
        epic = state.epics[0]

        assert epic["notFound"] is False
        assert epic["stateCounts"] == {str(IN_DEV): 2, str(COMPLETE): 1}
        assert epic["rosterOpenCounts"] == {"Ana": 1}
        assert epic["ownerCounts"] == {"Ana Lee": 2}
        assert epic["ownerNames"] == ["Ana Lee"]
        assert epic["stories"][0]["stateName"] == "In Development"
        assert set(epic["charts"]) == {"statePie", "stateBars", "typePie", "ownerBars", "rosterBars"}

    def test_not_found_epic_has_no_charts(self, mock_shortcut_client, dashboard_config):
        state = EpicDashboardService(mock_shortcut_client, dashboard_config).run()
        missing = state.epics[1]

        assert missing["notFound"] is True
        assert missing["id"] == "not-found-Unknown Epic"
        assert "charts" not in missing
        assert missing["team"] == ["Dave"]

    def test_story_failure_keeps_epic(self, mock_shortcut_client, dashboard_config):
        mock_shortcut_client.get_stories.side_effect = ShortcutAPIError("boom", status_code=500)

        state = EpicDashboardService(mock_shortcut_client, dashboard_config).run()

        assert state.epics[0]["notFound"] is False
        assert state.epics[0]["storiesLoaded"] is False

    def test_member_lookup_failure_uses_raw_id(self, mock_shortcut_client, dashboard_config):
        mock_shortcut_client.get_user.side_effect = ShortcutAPIError("boom", status_code=500)

        state = EpicDashboardService(mock_shortcut_client, dashboard_config).run()

        assert state.epics[0]["ownerCounts"] == {"user-ana": 2}
        assert state.auth_required is False

    def test_auth_failure_flags_state(self, mock_shortcut_client, dashboard_config):
        """Auth failures are surfaced once on the view state."""
        mock_shortcut_client.search_epics.side_effect = ShortcutAuthError("bad token", status_code=401)

        state = EpicDashboardService(mock_shortcut_client, dashboard_config).run()

        assert state.auth_required is True
        assert all(e["notFound"] for e in state.epics)

    def test_roster_found_when_remote_casing_differs(self, mock_shortcut_client, dashboard_config, sample_epic):
        """The configured team is used even if Shortcut spells the epic differently."""
        mock_shortcut_client.search_epics.side_effect = lambda query: (
            [dict(sample_epic, name="CHECKOUT REDESIGN")] if query == "Checkout Redesign" else []
        )

        state = EpicDashboardService(mock_shortcut_client, dashboard_config).run()
        epic = state.epics[0]

        assert epic["name"] == "Checkout Redesign"
        assert epic["remoteName"] == "CHECKOUT REDESIGN"
        assert epic["team"] == ["Ana"]
        assert epic["rosterOpenCounts"] == {"Ana": 1}
