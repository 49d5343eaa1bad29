"""Local dashboard configuration storage.

Holds the Shortcut API token, the canonical workflow mapping and the
tracked epics with their team rosters in a single versioned JSON file.
This is intended for local use only - the token is stored in plain text.
"""

import json
import logging
import os
import re
from dataclasses import asdict, dataclass, field
from typing import Optional

import yaml

logger = logging.getLogger(__name__)

SCHEMA_VERSION = 1

DEFAULT_CONFIG_FILE = os.path.join(
    os.path.dirname(os.path.dirname(__file__)),
    "config",
    "dashboard-config.json"
)


class ConfigError(Exception):
    """Invalid configuration change."""


class UnknownEpicError(ConfigError):
    """The named epic is not in the tracked list."""


class ConfigMissingError(ConfigError):
    """Required configuration has not been set up yet."""

    def __init__(self, missing: list):
        super().__init__(f"Missing configuration: {', '.join(missing)}")
        self.missing = missing


@dataclass
class TrackedEpic:
    name: str
    team: list = field(default_factory=list)


@dataclass
class WorkflowConfig:
    workflow_id: object
    workflow_name: str = ""
    states: list = field(default_factory=list)


@dataclass
class DashboardConfig:
    schema_version: int = SCHEMA_VERSION
    api_token: str = ""
    workflow: Optional[WorkflowConfig] = None
    epics: list = field(default_factory=list)

    def missing_parts(self) -> list:
        missing = []
        if not self.api_token:
            missing.append("apiToken")
        if self.workflow is None or not self.workflow.states:
            missing.append("workflow")
        if not self.epics:
            missing.append("epics")
        return missing

    def require_complete(self) -> None:
        """Raise ConfigMissingError unless token, workflow and epics are set."""
        missing = self.missing_parts()
        if missing:
            raise ConfigMissingError(missing)

    def find_epic(self, name: str) -> Optional[TrackedEpic]:
        key = _epic_key(name)
        for epic in self.epics:
            if _epic_key(epic.name) == key:
                return epic
        return None

    def to_dict(self, mask_token: bool = False) -> dict:
        token = self.api_token
        if mask_token and token:
            token = f"{'*' * max(len(token) - 4, 0)}{token[-4:]}"
        return {
            "schemaVersion": self.schema_version,
            "apiToken": token,
            "workflow": asdict(self.workflow) if self.workflow else None,
            "epics": [asdict(epic) for epic in self.epics]
        }


def _epic_key(name) -> str:
    return (name or "").strip().lower()


def _clean_team(team) -> list:
    if not team:
        return []
    if isinstance(team, str):
        team = [team]
    return [str(member).strip() for member in team if str(member).strip()]


def parse_epics(raw_epics) -> list:
    """Build TrackedEpic objects from a list of {name, team} dicts.

    Raises:
        ConfigError: on a missing or duplicate name
    """
    epics = []
    seen = set()
    for raw in raw_epics or []:
        if isinstance(raw, str):
            raw = {"name": raw}
        if not isinstance(raw, dict):
            raise ConfigError(f"Invalid epic entry: {raw!r}")
        name = str(raw.get("name") or "").strip()
        if not name:
            raise ConfigError("Epic name is required")
        if _epic_key(name) in seen:
            raise ConfigError(f"Duplicate epic name: {name}")
        seen.add(_epic_key(name))
        epics.append(TrackedEpic(name=name, team=_clean_team(raw.get("team"))))
    return epics


def parse_workflow(raw) -> Optional[WorkflowConfig]:
    if not raw:
        return None
    return WorkflowConfig(
        workflow_id=raw.get("workflow_id"),
        workflow_name=raw.get("workflow_name") or "",
        states=[
            {"id": state.get("id"), "name": state.get("name", "")}
            for state in raw.get("states") or []
        ]
    )


def workflow_from_remote(workflow: dict) -> WorkflowConfig:
    """WorkflowConfig from a Shortcut workflow ({id, name, states})."""
    return WorkflowConfig(
        workflow_id=workflow.get("id"),
        workflow_name=workflow.get("name") or "",
        states=[
            {"id": state.get("id"), "name": state.get("name", "")}
            for state in workflow.get("states") or []
        ]
    )


def migrate_config(raw: dict) -> dict:
    """Upgrade a stored config document to the current schema.

    Version 0 is the legacy flat layout with apiToken, workflowConfig and
    epicsConfig ({epics: [...]}) keys.
    """
    raw = dict(raw or {})
    version = raw.get("schemaVersion", 0)

    if version > SCHEMA_VERSION:
        raise ConfigError(f"Config schema version {version} is newer than supported ({SCHEMA_VERSION})")

    if version == 0:
        epics_config = raw.get("epicsConfig") or {}
        raw = {
            "schemaVersion": 1,
            "apiToken": raw.get("apiToken", ""),
            "workflow": raw.get("workflowConfig"),
            "epics": epics_config.get("epics", []) if isinstance(epics_config, dict) else []
        }

    return raw


def config_from_dict(raw: dict) -> DashboardConfig:
    data = migrate_config(raw)
    return DashboardConfig(
        schema_version=SCHEMA_VERSION,
        api_token=data.get("apiToken") or "",
        workflow=parse_workflow(data.get("workflow")),
        epics=parse_epics(data.get("epics"))
    )


def epics_to_yaml(epics: list) -> str:
    """Render epics in the epics.yml layout."""
    return yaml.safe_dump(
        {"epics": [asdict(epic) for epic in epics]},
        sort_keys=False,
        allow_unicode=True
    )


def epics_from_yaml(content: str) -> list:
    """Parse epics.yml content.

    Raises:
        ConfigError: on invalid YAML or epic entries
    """
    try:
        data = yaml.safe_load(content) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML format: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError("epics.yml must contain a mapping with an 'epics' list")
    return parse_epics(data.get("epics"))


class ConfigStore:
    """Reads and writes the dashboard config file.

    Each write replaces the whole file; there is no locking between
    processes.
    """

    def __init__(self, path: str = None):
        self.path = path or os.environ.get("EPIC_DASHBOARD_CONFIG", DEFAULT_CONFIG_FILE)

    def load(self) -> DashboardConfig:
        if not os.path.exists(self.path):
            return DashboardConfig()
        try:
            with open(self.path, "r") as f:
                raw = json.load(f)
            return config_from_dict(raw)
        except (json.JSONDecodeError, IOError, ConfigError) as e:
            logger.warning(f"Failed to load dashboard config from {self.path}: {e}")
            return DashboardConfig()

    def save(self, config: DashboardConfig) -> DashboardConfig:
        config_dir = os.path.dirname(self.path)
        if config_dir and not os.path.exists(config_dir):
            os.makedirs(config_dir)
        with open(self.path, "w") as f:
            json.dump(config.to_dict(), f, indent=2)
        return config

    def clear(self) -> None:
        if os.path.exists(self.path):
            os.remove(self.path)

    def set_token(self, token: str) -> DashboardConfig:
        config = self.load()
        config.api_token = (token or "").strip()
        return self.save(config)

    def set_workflow(self, workflow: WorkflowConfig) -> DashboardConfig:
        config = self.load()
        config.workflow = workflow
        return self.save(config)

    def replace_epics(self, raw_epics: list) -> DashboardConfig:
        config = self.load()
        config.epics = parse_epics(raw_epics)
        return self.save(config)

    def add_epic(self, name: str, team: list = None) -> DashboardConfig:
        config = self.load()
        name = (name or "").strip()
        if not name:
            raise ConfigError("Epic name is required")
        if config.find_epic(name):
            raise ConfigError(f"Epic already tracked: {name}")
        config.epics.append(TrackedEpic(name=name, team=_clean_team(team)))
        return self.save(config)

    def update_epic(self, name: str, new_name: str = None, team: list = None) -> DashboardConfig:
        """Rename an epic and/or replace its team, keeping its position."""
        config = self.load()
        epic = config.find_epic(name)
        if epic is None:
            raise UnknownEpicError(f"Epic not tracked: {name}")

        if new_name is not None:
            new_name = new_name.strip()
            if not new_name:
                raise ConfigError("Epic name is required")
            other = config.find_epic(new_name)
            if other is not None and other is not epic:
                raise ConfigError(f"Epic already tracked: {new_name}")
            epic.name = new_name

        if team is not None:
            epic.team = _clean_team(team)

        return self.save(config)

    def remove_epic(self, name: str) -> DashboardConfig:
        config = self.load()
        epic = config.find_epic(name)
        if epic is None:
            raise UnknownEpicError(f"Epic not tracked: {name}")
        config.epics.remove(epic)
        return self.save(config)

    def move_epic(self, name: str, position: int) -> DashboardConfig:
        """Move an epic to `position`, clamped to the list bounds."""
        config = self.load()
        epic = config.find_epic(name)
        if epic is None:
            raise UnknownEpicError(f"Epic not tracked: {name}")
        config.epics.remove(epic)
        position = max(0, min(int(position), len(config.epics)))
        config.epics.insert(position, epic)
        return self.save(config)

    def import_epics_yaml(self, content: str) -> DashboardConfig:
        config = self.load()
        config.epics = epics_from_yaml(content)
        return self.save(config)

    def export_epics_yaml(self) -> str:
        return epics_to_yaml(self.load().epics)

    def migrate_legacy_files(self, directory: str) -> dict:
        """Import settings from a legacy install directory.

        Reads SHORTCUT_API_TOKEN from .env, the workflow mapping from
        shortcut.yml and the epic list from epics.yml. Files that are
        absent are skipped; existing settings are only replaced by values
        that were found.

        Returns:
            Dict with the names of the imported parts
        """
        config = self.load()
        imported = []

        env_path = os.path.join(directory, ".env")
        if os.path.exists(env_path):
            with open(env_path, "r") as f:
                match = re.search(r"^SHORTCUT_API_TOKEN=(.+)$", f.read(), re.MULTILINE)
            if match:
                config.api_token = match.group(1).strip()
                imported.append("apiToken")

        workflow_path = os.path.join(directory, "shortcut.yml")
        if os.path.exists(workflow_path):
            try:
                with open(workflow_path, "r") as f:
                    workflow = parse_workflow(yaml.safe_load(f))
            except yaml.YAMLError as e:
                logger.warning(f"Skipping invalid shortcut.yml: {e}")
                workflow = None
            if workflow is not None:
                config.workflow = workflow
                imported.append("workflow")

        epics_path = os.path.join(directory, "epics.yml")
        if os.path.exists(epics_path):
            with open(epics_path, "r") as f:
                content = f.read()
            try:
                config.epics = epics_from_yaml(content)
                imported.append("epics")
            except ConfigError as e:
                logger.warning(f"Skipping invalid epics.yml: {e}")

        if imported:
            self.save(config)
            logger.info(f"Migrated legacy settings: {', '.join(imported)}")

        return {"imported": imported}
