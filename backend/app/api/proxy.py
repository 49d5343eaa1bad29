"""Shortcut pass-through endpoints.

Each endpoint forwards the request to the Shortcut API with the caller's
token and returns the JSON unchanged.
"""

from flask import Blueprint, request, jsonify
from services.shortcut_client import ShortcutClient, ShortcutAPIError

bp = Blueprint("proxy", __name__, url_prefix="/api")


def get_shortcut_token():
    """Extract the Shortcut token from the Authorization header."""
    auth_header = request.headers.get("Authorization", "")
    if auth_header.startswith("Bearer "):
        token = auth_header[len("Bearer "):].strip()
        return token or None
    return None


def error_response(error: ShortcutAPIError, fallback: str):
    """JSON error with the upstream status (500 if there was none)."""
    return jsonify({"error": error.payload or fallback}), error.status_code or 500


@bp.route("/search/epics", methods=["GET"])
def search_epics():
    """Search epics by name.

    Query params:
        - query: Search string passed to Shortcut as-is
    """
    token = get_shortcut_token()

    if not token:
        return jsonify({"error": "Authorization token required"}), 401

    try:
        client = ShortcutClient(token)
        return jsonify(client.search_epics_raw(request.args.get("query", "")))
    except ShortcutAPIError as e:
        return error_response(e, "Failed to search epics")


@bp.route("/epics/<epic_id>", methods=["GET"])
def get_epic(epic_id):
    token = get_shortcut_token()

    if not token:
        return jsonify({"error": "Authorization token required"}), 401

    try:
        client = ShortcutClient(token)
        return jsonify(client.get_epic(epic_id))
    except ShortcutAPIError as e:
        return error_response(e, "Failed to fetch epic")


@bp.route("/epics/<epic_id>/stories", methods=["GET"])
def get_epic_stories(epic_id):
    """Get stories for an epic, archived stories removed."""
    token = get_shortcut_token()

    if not token:
        return jsonify({"error": "Authorization token required"}), 401

    try:
        client = ShortcutClient(token)
        return jsonify(client.get_stories(epic_id))
    except ShortcutAPIError as e:
        return error_response(e, "Failed to fetch stories")


@bp.route("/workflows", methods=["GET"])
def list_workflows():
    token = get_shortcut_token()

    if not token:
        return jsonify({"error": "Authorization token required"}), 401

    try:
        client = ShortcutClient(token)
        return jsonify(client.list_workflows())
    except ShortcutAPIError as e:
        return error_response(e, "Failed to fetch workflows")


@bp.route("/users/<user_id>", methods=["GET"])
def get_user(user_id):
    """Get a Shortcut member by id."""
    token = get_shortcut_token()

    if not token:
        return jsonify({"error": "Authorization token required"}), 401

    try:
        client = ShortcutClient(token)
        return jsonify(client.get_member_raw(user_id))
    except ShortcutAPIError as e:
        return error_response(e, "Failed to fetch user")
