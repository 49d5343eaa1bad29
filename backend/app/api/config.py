"""Dashboard configuration endpoints.

Stores the Shortcut token, workflow mapping and tracked epics in a local
JSON file. This is intended for local use only - not for hosted
deployments.
"""

import os

from flask import Blueprint, current_app, request, jsonify
from app import get_config_store
from app.api.proxy import get_shortcut_token
from services.config_store import (
    ConfigError,
    UnknownEpicError,
    parse_workflow,
    workflow_from_remote,
)
from services.shortcut_client import ShortcutClient, ShortcutAPIError, ShortcutAuthError
from services.workflow_index import build_index

bp = Blueprint("config", __name__, url_prefix="/api/config")


def _store():
    return get_config_store(current_app)


def _epics_response(config):
    return jsonify({"data": [
        {"name": epic.name, "team": epic.team} for epic in config.epics
    ]})


@bp.route("", methods=["GET"])
def get_config():
    """Get the stored configuration.

    Query params:
        - reveal: "1" to include the full token (masked by default)
    """
    config = _store().load()
    reveal = request.args.get("reveal") == "1"
    data = config.to_dict(mask_token=not reveal)
    data["missing"] = config.missing_parts()
    return jsonify({"data": data})


@bp.route("", methods=["DELETE"])
def clear_config():
    """Clear all stored configuration."""
    _store().clear()
    return jsonify({"data": {"cleared": True}})


@bp.route("/token", methods=["PUT"])
def save_token():
    """Save the Shortcut API token.

    Expects JSON body with:
        - token: Shortcut API token
    """
    data = request.get_json(silent=True)

    if not data or not (data.get("token") or "").strip():
        return jsonify({"error": "Missing required field: token"}), 400

    config = _store().set_token(data["token"])
    return jsonify({"data": config.to_dict(mask_token=True)})


@bp.route("/workflow", methods=["GET"])
def get_workflow():
    config = _store().load()
    if config.workflow is None:
        return jsonify({"error": "No workflow configured"}), 404
    return jsonify({"data": config.to_dict()["workflow"]})


@bp.route("/workflow", methods=["PUT"])
def save_workflow():
    """Select the canonical workflow.

    Expects JSON body with either:
        - workflow_id only: the workflow is looked up in Shortcut using the
          Authorization header token or the stored token
        - workflow_id, workflow_name and states: stored as given
    """
    data = request.get_json(silent=True)

    if not data or data.get("workflow_id") is None:
        return jsonify({"error": "Missing required field: workflow_id"}), 400

    store = _store()

    if data.get("states"):
        workflow = parse_workflow(data)
    else:
        token = get_shortcut_token() or store.load().api_token
        if not token:
            return jsonify({"error": "Authorization token required"}), 401
        try:
            remote = ShortcutClient(token).get_workflow(data["workflow_id"])
        except ShortcutAuthError:
            return jsonify({"error": "Invalid credentials", "authRequired": True}), 401
        except ShortcutAPIError as e:
            return jsonify({"error": str(e)}), e.status_code or 500
        if remote is None:
            return jsonify({"error": f"Workflow {data['workflow_id']} not found"}), 404
        workflow = workflow_from_remote(remote)

    config = store.set_workflow(workflow)
    current_app.logger.info(
        f"Workflow set to '{workflow.workflow_name}' with {len(workflow.states)} states"
    )
    return jsonify({"data": config.to_dict()["workflow"]})


@bp.route("/workflow/index", methods=["GET"])
def get_workflow_index():
    """Get the state id/name lookup built from the stored workflow."""
    config = _store().load()
    if config.workflow is None:
        return jsonify({"error": "No workflow configured"}), 404
    return jsonify({"data": build_index(config.workflow).to_dict()})


@bp.route("/epics", methods=["GET"])
def list_epics():
    return _epics_response(_store().load())


@bp.route("/epics", methods=["POST"])
def add_epic():
    """Track a new epic.

    Expects JSON body with:
        - name: Epic name as it appears in Shortcut
        - team: Optional list of team member names
    """
    data = request.get_json(silent=True)

    if not data:
        return jsonify({"error": "Missing request body"}), 400

    try:
        config = _store().add_epic(data.get("name"), data.get("team"))
    except ConfigError as e:
        return jsonify({"error": str(e)}), 400

    return _epics_response(config), 201


@bp.route("/epics", methods=["PUT"])
def replace_epics():
    """Replace the whole epic list (used for bulk edits and reordering)."""
    data = request.get_json(silent=True)

    if not data or not isinstance(data.get("epics"), list):
        return jsonify({"error": "Missing required field: epics"}), 400

    try:
        config = _store().replace_epics(data["epics"])
    except ConfigError as e:
        return jsonify({"error": str(e)}), 400

    return _epics_response(config)


@bp.route("/epics/<path:name>", methods=["PUT"])
def update_epic(name):
    """Rename an epic and/or replace its team.

    Expects JSON body with optional fields:
        - name: New epic name
        - team: New team member list
    """
    data = request.get_json(silent=True)

    if not data:
        return jsonify({"error": "Missing request body"}), 400

    try:
        config = _store().update_epic(name, new_name=data.get("name"), team=data.get("team"))
    except UnknownEpicError as e:
        return jsonify({"error": str(e)}), 404
    except ConfigError as e:
        return jsonify({"error": str(e)}), 400

    return _epics_response(config)


@bp.route("/epics/<path:name>", methods=["DELETE"])
def remove_epic(name):
    try:
        config = _store().remove_epic(name)
    except UnknownEpicError as e:
        return jsonify({"error": str(e)}), 404

    return _epics_response(config)


@bp.route("/epics/<path:name>/move", methods=["POST"])
def move_epic(name):
    """Move an epic to a new position in the list.

    Expects JSON body with:
        - position: Zero-based target index
    """
    data = request.get_json(silent=True)

    if not data or not isinstance(data.get("position"), int):
        return jsonify({"error": "Missing required field: position"}), 400

    try:
        config = _store().move_epic(name, data["position"])
    except UnknownEpicError as e:
        return jsonify({"error": str(e)}), 404

    return _epics_response(config)


@bp.route("/epics-file", methods=["GET"])
def get_epics_file():
    """Get the epic list in epics.yml format."""
    return jsonify({"content": _store().export_epics_yaml()})


@bp.route("/epics-file", methods=["PUT"])
def save_epics_file():
    """Replace the epic list from epics.yml content.

    Expects JSON body with:
        - content: YAML text with an `epics` list of {name, team}
    """
    data = request.get_json(silent=True)

    if not data or data.get("content") is None:
        return jsonify({"error": "Content is required"}), 400

    try:
        config = _store().import_epics_yaml(data["content"])
    except ConfigError as e:
        return jsonify({"error": str(e)}), 400

    return _epics_response(config)


def _legacy_directory(requested):
    """Resolve a requested legacy directory inside LEGACY_DATA_DIR.

    Returns None when migration is disabled or the path escapes the
    configured directory.
    """
    root = current_app.config.get("LEGACY_DATA_DIR")
    if not root or not isinstance(requested or "", str):
        return None

    root = os.path.realpath(root)
    directory = os.path.realpath(os.path.join(root, requested or ""))
    if os.path.commonpath([root, directory]) != root:
        return None
    return directory


@bp.route("/migrate", methods=["POST"])
def migrate_legacy():
    """Import a legacy install's .env, shortcut.yml and epics.yml.

    Only directories under LEGACY_DATA_DIR (EPIC_DASHBOARD_LEGACY_DIR) are
    read; migration is disabled when it is not set.

    Expects optional JSON body with:
        - directory: Path of the legacy install, relative to LEGACY_DATA_DIR
    """
    data = request.get_json(silent=True)
    if not isinstance(data, dict):
        data = {}

    if not current_app.config.get("LEGACY_DATA_DIR"):
        return jsonify({"error": "Legacy migration is disabled"}), 403

    directory = _legacy_directory(data.get("directory"))
    if directory is None:
        return jsonify({"error": "Directory is outside the legacy data directory"}), 403

    try:
        result = _store().migrate_legacy_files(directory)
    except (IOError, ConfigError) as e:
        return jsonify({"error": f"Failed to migrate legacy files: {e}"}), 500

    return jsonify({"data": result})
