"""Tests for placement configuration (YAML + env overrides)."""
import sys
from pathlib import Path

import pytest
from pydantic import ValidationError

sys.path.insert(0, str(Path(__file__).resolve().parent.parent.parent))

from modules.placements.config import (
    DEFAULT_DB_PATH,
    PlacementConfig,
    get_config,
    load_config,
    reload_config,
)


@pytest.fixture
def config_file(tmp_path):
    path = tmp_path / "placements.yml"
    path.write_text(
        "limits:\n"
        "  max_active_applications: 4\n"
        "  max_slots: 8\n"
        "database:\n"
        "  echo: true\n"
    )
    return path


class TestLoadConfig:

    def test_defaults(self, clean_env, tmp_path):
        config = load_config(str(tmp_path / "missing.yml"))
        assert config.limits.max_active_applications == 3
        assert config.limits.max_slots == 10
        assert config.limits.max_internships_per_rep == 5
        assert config.database.path == DEFAULT_DB_PATH
        assert config.database.echo is False

    def test_yaml_values(self, clean_env, config_file):
        config = load_config(str(config_file))
        assert config.limits.max_active_applications == 4
        assert config.limits.max_slots == 8
        assert config.limits.max_internships_per_rep == 5
        assert config.database.echo is True

    def test_env_overrides_yaml(self, clean_env, config_file):
        clean_env.setenv("PLACEMENT__LIMITS__MAX_ACTIVE_APPLICATIONS", "6")
        clean_env.setenv("PLACEMENT__DATABASE__ECHO", "false")
        config = load_config(str(config_file))
        assert config.limits.max_active_applications == 6
        assert config.database.echo is False

    def test_db_path_env(self, clean_env, tmp_path):
        clean_env.setenv("PLACEMENT_DB_PATH", str(tmp_path / "x.db"))
        config = load_config(str(tmp_path / "missing.yml"))
        assert config.database.path == str(tmp_path / "x.db")

    def test_config_path_env(self, clean_env, config_file):
        clean_env.setenv("PLACEMENT_CONFIG_PATH", str(config_file))
        assert load_config().limits.max_slots == 8

    def test_invalid_limit_rejected(self, clean_env, tmp_path):
        path = tmp_path / "bad.yml"
        path.write_text("limits:\n  max_slots: 0\n")
        with pytest.raises(ValidationError):
            load_config(str(path))

    def test_slot_limit_capped(self, clean_env, tmp_path):
        clean_env.setenv("PLACEMENT__LIMITS__MAX_SLOTS", "50")
        with pytest.raises(ValidationError):
            load_config(str(tmp_path / "missing.yml"))

    def test_empty_yaml(self, clean_env, tmp_path):
        path = tmp_path / "empty.yml"
        path.write_text("")
        assert isinstance(load_config(str(path)), PlacementConfig)


class TestCachedConfig:

    def test_reload_replaces_cached(self, clean_env, config_file, tmp_path):
        reload_config(str(tmp_path / "missing.yml"))
        assert get_config().limits.max_slots == 10
        reload_config(str(config_file))
        assert get_config().limits.max_slots == 8
        reload_config(str(tmp_path / "missing.yml"))
