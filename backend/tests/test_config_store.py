"""Tests for the dashboard config store."""

import json
import os

import pytest

from services.config_store import (
    SCHEMA_VERSION,
    ConfigError,
    ConfigMissingError,
    ConfigStore,
    DashboardConfig,
    UnknownEpicError,
    epics_from_yaml,
    migrate_config,
    parse_workflow,
)


@pytest.fixture
def store(config_path):
    return ConfigStore(config_path)


@pytest.fixture
def store_with_epics(store):
    store.replace_epics([
        {"name": "Alpha", "team": ["Ana"]},
        {"name": "Beta", "team": []},
        {"name": "Gamma", "team": ["Dave", "Dan"]}
    ])
    return store


def epic_names(config):
    return [epic.name for epic in config.epics]


class TestLoadAndSave:
    """Test persistence."""

    def test_missing_file_loads_empty_config(self, store):
        config = store.load()
        assert config.api_token == ""
        assert config.epics == []
        assert config.workflow is None

    def test_round_trip(self, store, workflow_config):
        store.set_token("abc123")
        store.set_workflow(parse_workflow(workflow_config))
        store.add_epic("Alpha", ["Ana"])

        config = store.load()

        assert config.api_token == "abc123"
        assert config.workflow.workflow_name == "Engineering"
        assert config.epics[0].team == ["Ana"]

    def test_file_has_schema_version(self, store, config_path):
        store.set_token("abc123")
        with open(config_path) as f:
            raw = json.load(f)
        assert raw["schemaVersion"] == SCHEMA_VERSION

    def test_corrupt_file_loads_empty(self, store, config_path):
        """An unreadable file should not raise."""
        os.makedirs(os.path.dirname(config_path))
        with open(config_path, "w") as f:
            f.write("{not json")
        assert store.load().epics == []

    def test_clear(self, store, config_path):
        store.set_token("abc123")
        store.clear()
        assert not os.path.exists(config_path)


class TestMigrateConfig:
    """Test schema migration."""

    def test_legacy_layout(self, workflow_config):
        """Version 0 flat keys should be moved to the current layout."""
        legacy = {
            "apiToken": "legacy-token",
            "workflowConfig": workflow_config,
            "epicsConfig": {"epics": [{"name": "Alpha", "team": ["Ana"]}]}
        }
        migrated = migrate_config(legacy)

        assert migrated["schemaVersion"] == 1
        assert migrated["apiToken"] == "legacy-token"
        assert migrated["workflow"] == workflow_config
        assert migrated["epics"] == [{"name": "Alpha", "team": ["Ana"]}]

    def test_legacy_file_is_loaded(self, store, config_path):
        os.makedirs(os.path.dirname(config_path))
        with open(config_path, "w") as f:
            json.dump({"apiToken": "t", "epicsConfig": {"epics": [{"name": "A", "team": []}]}}, f)

        config = store.load()

        assert config.api_token == "t"
        assert epic_names(config) == ["A"]

    def test_newer_version_rejected(self):
        with pytest.raises(ConfigError):
            migrate_config({"schemaVersion": SCHEMA_VERSION + 1})


class TestEpicEditing:
    """Test tracked epic edits keep the configured order."""

    def test_add_appends(self, store_with_epics):
        config = store_with_epics.add_epic("Delta", ["Zoe"])
        assert epic_names(config) == ["Alpha", "Beta", "Gamma", "Delta"]

    def test_add_duplicate_rejected(self, store_with_epics):
        """Names are unique ignoring case."""
        with pytest.raises(ConfigError):
            store_with_epics.add_epic("alpha")

    def test_rename_keeps_position(self, store_with_epics):
        config = store_with_epics.update_epic("Beta", new_name="Beta Two", team=["Ana", " "])
        assert epic_names(config) == ["Alpha", "Beta Two", "Gamma"]
        assert config.epics[1].team == ["Ana"]

    def test_rename_to_existing_rejected(self, store_with_epics):
        with pytest.raises(ConfigError):
            store_with_epics.update_epic("Beta", new_name="Gamma")

    def test_update_unknown(self, store_with_epics):
        with pytest.raises(UnknownEpicError):
            store_with_epics.update_epic("Nope", team=[])

    def test_remove(self, store_with_epics):
        config = store_with_epics.remove_epic("beta")
        assert epic_names(config) == ["Alpha", "Gamma"]

    def test_move(self, store_with_epics):
        config = store_with_epics.move_epic("Gamma", 0)
        assert epic_names(config) == ["Gamma", "Alpha", "Beta"]

    def test_move_clamps_position(self, store_with_epics):
        config = store_with_epics.move_epic("Alpha", 99)
        assert epic_names(config) == ["Beta", "Gamma", "Alpha"]

    def test_replace_rejects_duplicates(self, store):
        with pytest.raises(ConfigError):
            store.replace_epics([{"name": "A"}, {"name": "a"}])


class TestYaml:
    """Test epics.yml import and export."""

    def test_export_then_import(self, store_with_epics):
        content = store_with_epics.export_epics_yaml()
        assert content.startswith("epics:")

        config = store_with_epics.import_epics_yaml(content)
        assert epic_names(config) == ["Alpha", "Beta", "Gamma"]
        assert config.epics[2].team == ["Dave", "Dan"]

    def test_invalid_yaml(self):
        with pytest.raises(ConfigError):
            epics_from_yaml("epics: [unclosed")


class TestLegacyMigration:
    """Test importing a legacy install directory."""

    def test_reads_env_and_yaml_files(self, store, tmp_path, workflow_config):
        legacy = tmp_path / "legacy"
        legacy.mkdir()
        (legacy / ".env").write_text("PORT=3001\nSHORTCUT_API_TOKEN=legacy-token\n")
        (legacy / "epics.yml").write_text("epics:\n  - name: Alpha\n    team:\n      - Ana\n")
        (legacy / "shortcut.yml").write_text(json.dumps(workflow_config))

        result = store.migrate_legacy_files(str(legacy))
        config = store.load()

        assert result["imported"] == ["apiToken", "workflow", "epics"]
        assert config.api_token == "legacy-token"
        assert config.workflow.workflow_id == workflow_config["workflow_id"]
        assert epic_names(config) == ["Alpha"]

    def test_empty_directory(self, store, tmp_path):
        assert store.migrate_legacy_files(str(tmp_path)) == {"imported": []}


class TestRequireComplete:
    """Test the setup check run before searching."""

    def test_lists_missing_parts(self):
        with pytest.raises(ConfigMissingError) as exc_info:
            DashboardConfig().require_complete()
        assert exc_info.value.missing == ["apiToken", "workflow", "epics"]

    def test_masked_token(self):
        config = DashboardConfig(api_token="abcd1234")
        assert config.to_dict(mask_token=True)["apiToken"] == "****1234"
