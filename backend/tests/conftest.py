"""Shared fixtures for Epic Dashboard tests."""

import pytest
from unittest.mock import Mock
import sys
import os

sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..'))

BACKLOG = 500000001
READY_FOR_DEV = 500000002
IN_DEV = 500000003
IN_REVIEW = 500000004
READY_FOR_RELEASE = 500000005
COMPLETE = 500000006
ABANDONED = 500000007


@pytest.fixture
def api_token():
    return "sc-test-token-1234"


@pytest.fixture
def sample_workflow():
    """Shortcut workflow with the six tracked states plus an extra one."""
    return {
        "id": 500000000,
        "name": "Engineering",
        "states": [
            {"id": BACKLOG, "name": "Backlog"},
            {"id": READY_FOR_DEV, "name": "Ready for Development"},
            {"id": IN_DEV, "name": "In Development"},
            {"id": IN_REVIEW, "name": "In Review"},
            {"id": READY_FOR_RELEASE, "name": "Ready for Release"},
            {"id": COMPLETE, "name": "Complete"},
            {"id": ABANDONED, "name": "Abandoned"}
        ]
    }


@pytest.fixture
def workflow_config(sample_workflow):
    """Workflow in the persisted config layout."""
    return {
        "workflow_id": sample_workflow["id"],
        "workflow_name": sample_workflow["name"],
        "states": sample_workflow["states"]
    }


@pytest.fixture
def sample_epic():
    """Shortcut epic search result."""
    return {
        "id": 101,
        "name": "Checkout Redesign",
        "state": "in progress",
        "owner_ids": ["user-ana"],
        "stats": {"num_stories_total": 3},
        "app_url": "https://app.shortcut.com/acme/epic/101"
    }


@pytest.fixture
def sample_stories():
    """Two stories in development and one complete."""
    return [
        {
            "id": 1001,
            "name": "Build payment form",
            "workflow_state_id": IN_DEV,
            "owner_ids": ["user-ana"],
            "story_type": "feature"
        },
        {
            "id": 1002,
            "name": "Fix address validation",
            "workflow_state_id": IN_DEV,
            "owner_ids": [],
            "story_type": "bug"
        },
        {
            "id": 1003,
            "name": "Remove old checkout",
            "workflow_state_id": COMPLETE,
            "owner_ids": ["user-ana"],
            "story_type": "chore"
        }
    ]


@pytest.fixture
def member_names():
    return {
        "user-ana": "Ana Lee",
        "user-dave": "Dave Smith",
        "user-dan": "Dan Brown",
        "user-dandre": "Dandre Jones"
    }


@pytest.fixture
def resolve_name(member_names):
    """Name resolver that falls back to the raw id."""
    return lambda owner_id: member_names.get(owner_id, owner_id)


@pytest.fixture
def mock_shortcut_client(sample_epic, sample_stories, sample_workflow, member_names):
    """Client double serving the sample data."""
    client = Mock()
    client.search_epics.side_effect = lambda query: (
        [sample_epic] if query.lower() == "checkout redesign" else []
    )
    client.get_stories.return_value = sample_stories
    client.list_workflows.return_value = [sample_workflow]
    client.get_user.side_effect = lambda user_id: {
        "id": user_id,
        "displayName": member_names.get(user_id, user_id)
    }
    return client


@pytest.fixture
def config_path(tmp_path):
    return str(tmp_path / "config" / "dashboard-config.json")


@pytest.fixture
def app(config_path):
    """Create Flask test app."""
    from app import create_app
    app = create_app({
        "TESTING": True,
        "DASHBOARD_CONFIG_PATH": config_path,
        "LEGACY_DATA_DIR": None
    })
    return app


@pytest.fixture
def client(app):
    """Create Flask test client."""
    return app.test_client()


@pytest.fixture
def auth_headers(api_token):
    return {"Authorization": f"Bearer {api_token}"}
