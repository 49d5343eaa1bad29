"""Authentication API endpoints."""

from flask import Blueprint, request, jsonify
from services.shortcut_client import ShortcutClient, ShortcutAPIError, ShortcutAuthError

bp = Blueprint("auth", __name__, url_prefix="/api/auth")


@bp.route("/validate", methods=["POST"])
def validate_token():
    """Validate a Shortcut API token by fetching the member that owns it.

    Expects JSON body with:
        - token: Shortcut API token

    Returns member info on success.
    """
    data = request.get_json(silent=True)

    if not data:
        return jsonify({"error": "Missing request body"}), 400

    token = (data.get("token") or "").strip()

    if not token:
        return jsonify({"error": "Missing required field: token"}), 400

    try:
        member = ShortcutClient(token).get_current_member()
    except ShortcutAuthError:
        return jsonify({"error": "Invalid credentials"}), 401
    except ShortcutAPIError as e:
        if e.status_code == 504:
            return jsonify({"error": "Connection to Shortcut timed out"}), 504
        return jsonify({"error": str(e)}), e.status_code or 500

    workspace = member.get("workspace2") or {}

    return jsonify({
        "data": {
            "valid": True,
            "user": {
                "id": member.get("id"),
                "name": member.get("name"),
                "mentionName": member.get("mention_name"),
                "workspace": workspace.get("url_slug")
            }
        }
    })
