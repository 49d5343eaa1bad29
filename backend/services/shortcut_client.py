"""Shortcut API client.

Thin wrapper over the Shortcut REST API (v3). Every call is authenticated
with the user's API token and bounded by a request timeout.
"""

import logging
import os
from typing import Optional

import requests

logger = logging.getLogger(__name__)

DEFAULT_API_BASE = "https://api.app.shortcut.com/api/v3"
DEFAULT_TIMEOUT = 30

AUTH_ERROR_MARKERS = ("token", "unauthorized", "authentication")


class ShortcutAPIError(Exception):
    """Raised when the Shortcut API cannot be reached or returns an error."""

    def __init__(self, message: str, status_code: Optional[int] = None, payload=None):
        super().__init__(message)
        self.status_code = status_code
        self.payload = payload


class ShortcutAuthError(ShortcutAPIError):
    """Raised when the Shortcut API rejects the token."""


def is_auth_error(status_code: Optional[int], payload=None) -> bool:
    """Check whether a failed response means the token needs replacing.

    A 401/403 always counts. Otherwise the error payload is searched for
    token-flavored wording, since Shortcut sometimes reports a bad token
    with a 400 and a message.
    """
    if status_code in (401, 403):
        return True
    if payload is None:
        return False
    text = str(payload).lower()
    return any(marker in text for marker in AUTH_ERROR_MARKERS)


def _error_payload(response):
    try:
        return response.json()
    except ValueError:
        return response.text


class ShortcutClient:
    """Client for the Shortcut endpoints the dashboard needs."""

    def __init__(self, token: str, base_url: str = None, timeout: float = None):
        self.token = token
        self.base_url = (base_url or os.environ.get("SHORTCUT_API_BASE", DEFAULT_API_BASE)).rstrip("/")
        if timeout is None:
            timeout = float(os.environ.get("SHORTCUT_TIMEOUT", DEFAULT_TIMEOUT))
        self.timeout = timeout

    def _request(self, endpoint: str, params: Optional[dict] = None):
        """Make authenticated request to the Shortcut API."""
        try:
            response = requests.get(
                f"{self.base_url}{endpoint}",
                headers={
                    "Shortcut-Token": self.token,
                    "Content-Type": "application/json"
                },
                params=params,
                timeout=self.timeout
            )
        except requests.exceptions.Timeout as e:
            raise ShortcutAPIError(f"Request to {endpoint} timed out", status_code=504) from e
        except requests.exceptions.RequestException as e:
            raise ShortcutAPIError(f"Failed to connect to Shortcut: {e}") from e

        if response.status_code >= 400:
            payload = _error_payload(response)
            if is_auth_error(response.status_code, payload):
                raise ShortcutAuthError(
                    f"Shortcut rejected the API token ({response.status_code})",
                    status_code=response.status_code,
                    payload=payload
                )
            raise ShortcutAPIError(
                f"Shortcut API error: {response.status_code}",
                status_code=response.status_code,
                payload=payload
            )

        try:
            return response.json()
        except ValueError as e:
            raise ShortcutAPIError(
                f"Shortcut returned a non-JSON body for {endpoint}",
                status_code=response.status_code
            ) from e

    def search_epics(self, query: str) -> list:
        """Search epics by name.

        Matching against the epic name is left to the caller; Shortcut
        search is fuzzy and may return unrelated epics.
        """
        data = self._request("/search/epics", params={"query": query or "", "page_size": 25})
        if isinstance(data, dict):
            data = data.get("data", [])
        if not isinstance(data, list):
            raise ShortcutAPIError("Unexpected epic search response from Shortcut")
        return data

    def search_epics_raw(self, query: str) -> dict:
        """Search epics and return the response body unchanged."""
        return self._request("/search/epics", params={"query": query or "", "page_size": 25})

    def get_epic(self, epic_id) -> dict:
        return self._request(f"/epics/{epic_id}")

    def get_stories(self, epic_id) -> list:
        """Get the stories of an epic, excluding archived ones."""
        stories = self._request(f"/epics/{epic_id}/stories")
        if not isinstance(stories, list):
            raise ShortcutAPIError(f"Unexpected story list for epic {epic_id}")
        return [story for story in stories if not story.get("archived")]

    def get_user(self, user_id) -> dict:
        """Get a workspace member.

        Returns:
            Dict with id and displayName (profile name, falling back to
            the mention name, then the raw id)
        """
        member = self._request(f"/members/{user_id}")
        if not isinstance(member, dict):
            raise ShortcutAPIError(f"Unexpected member response for {user_id}")
        profile = member.get("profile") or {}
        display_name = profile.get("name") or profile.get("mention_name") or str(user_id)
        return {
            "id": member.get("id", user_id),
            "displayName": display_name,
            "mentionName": profile.get("mention_name")
        }

    def get_member_raw(self, user_id) -> dict:
        return self._request(f"/members/{user_id}")

    def list_workflows(self) -> list:
        return self._request("/workflows")

    def get_workflow(self, workflow_id) -> Optional[dict]:
        """Find a workflow by id among all workflows."""
        for workflow in self.list_workflows():
            if str(workflow.get("id")) == str(workflow_id):
                return workflow
        return None

    def get_current_member(self) -> dict:
        """Get the member that owns the token, used to validate it."""
        return self._request("/member")
