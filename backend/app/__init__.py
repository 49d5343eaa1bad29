"""Flask application factory."""

import logging
import os
from flask import Flask
from flask_cors import CORS

from services.config_store import ConfigStore

DEFAULT_CORS_ORIGINS = ["http://localhost:5173", "http://127.0.0.1:5173"]
PROJECT_ROOT = os.path.dirname(os.path.dirname(os.path.dirname(os.path.abspath(__file__))))


def get_cors_origins():
    """Allowed front-end origins, from CORS_ORIGINS or the local dev server."""
    origins = os.environ.get("CORS_ORIGINS", "")
    if not origins:
        return DEFAULT_CORS_ORIGINS
    return [o.strip() for o in origins.split(",") if o.strip()]


def configure_logging(app):
    level_name = os.environ.get("LOG_LEVEL", "INFO").upper()
    level = getattr(logging, level_name, logging.INFO)
    logging.basicConfig(
        level=level,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s"
    )
    app.logger.setLevel(level)


def get_config_store(app):
    """Config store for the app's configured path."""
    return ConfigStore(app.config.get("DASHBOARD_CONFIG_PATH"))


def create_app(test_config=None):
    """Create and configure the Flask application."""
    app = Flask(__name__)
    app.config["DASHBOARD_CONFIG_PATH"] = os.environ.get("EPIC_DASHBOARD_CONFIG")
    # Only legacy installs under this directory can be migrated
    app.config["LEGACY_DATA_DIR"] = os.environ.get("EPIC_DASHBOARD_LEGACY_DIR")
    app.config["README_PATH"] = os.path.join(PROJECT_ROOT, "README.md")
    if test_config:
        app.config.update(test_config)

    # Count mappings are ordered by count, keep that order in responses
    app.json.sort_keys = False

    configure_logging(app)

    # Enable CORS for frontend
    CORS(app, resources={
        r"/api/*": {
            "origins": get_cors_origins(),
            "methods": ["GET", "POST", "PUT", "DELETE", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization"]
        }
    })

    # Register blueprints
    from app.api import auth, config, dashboard, proxy
    app.register_blueprint(auth.bp)
    app.register_blueprint(config.bp)
    app.register_blueprint(dashboard.bp)
    app.register_blueprint(proxy.bp)

    store = get_config_store(app)
    if os.path.exists(store.path):
        app.logger.info(f"Using dashboard config at {store.path}")
    else:
        app.logger.info("No dashboard config found, setup required before searching")

    # Health check endpoint
    @app.route("/health")
    def health():
        return {"status": "ok"}

    @app.route("/api/readme")
    def readme():
        """Project README, shown as help text by the front end."""
        try:
            with open(app.config["README_PATH"], "r", encoding="utf-8") as f:
                return {"data": {"content": f.read()}}
        except FileNotFoundError:
            return {"error": "README.md file not found"}, 404
        except OSError as e:
            app.logger.error(f"Failed to read README.md: {e}")
            return {"error": "Failed to read README.md file"}, 500

    return app
