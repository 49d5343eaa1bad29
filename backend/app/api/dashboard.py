"""Epic dashboard endpoint."""

from flask import Blueprint, current_app, jsonify
from app import get_config_store
from app.api.proxy import get_shortcut_token
from services import view_state
from services.config_store import ConfigMissingError
from services.epic_dashboard import EpicDashboardService
from services.shortcut_client import ShortcutClient

bp = Blueprint("dashboard", __name__, url_prefix="/api/dashboard")


@bp.route("", methods=["GET"])
def get_dashboard():
    """Resolve the tracked epics and return their cards and chart data.

    Uses the Authorization header token if present, otherwise the stored
    token.

    Returns:
        - epics: One card per tracked epic, in configured order
        - authRequired: True if Shortcut rejected the token
        - configMissing: Setup steps still required (412 response)
    """
    config = get_config_store(current_app).load()

    header_token = get_shortcut_token()
    if header_token:
        config.api_token = header_token

    try:
        config.require_complete()
    except ConfigMissingError as e:
        state = view_state.config_missing(view_state.ViewState(), e.missing)
        return jsonify({"data": state.to_dict(), "error": str(e)}), 412

    try:
        client = ShortcutClient(config.api_token)
        service = EpicDashboardService(client, config)
        state = service.run()
    except Exception as e:
        current_app.logger.exception("Dashboard search failed")
        state = view_state.search_failed(view_state.ViewState(), str(e))
        return jsonify({"data": state.to_dict(), "error": str(e)}), 500

    return jsonify({"data": state.to_dict()})
