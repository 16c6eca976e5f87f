"""Configuration for the placement office.

Loads from YAML config file with environment variable overrides.
Pattern: PLACEMENT__{SECTION}__{KEY} overrides nested YAML keys.
Example: PLACEMENT__LIMITS__MAX_ACTIVE_APPLICATIONS=5
"""
import os
from pathlib import Path
from typing import Optional

import yaml
from pydantic import BaseModel, Field

DEFAULT_CONFIG_PATH = "config/placements.yml"
DEFAULT_DB_PATH = "/tmp/placements.db"


class LimitsConfig(BaseModel):
    max_active_applications: int = Field(
        default=3, ge=1, description="Active applications per student"
    )
    max_slots: int = Field(default=10, ge=1, le=10, description="Slots per internship")
    max_internships_per_rep: int = Field(
        default=5, ge=1, description="Postings per company representative"
    )


class DatabaseConfig(BaseModel):
    path: str = ""  # from env: PLACEMENT_DB_PATH
    echo: bool = False


class PlacementConfig(BaseModel):
    limits: LimitsConfig = LimitsConfig()
    database: DatabaseConfig = DatabaseConfig()


def _apply_env_overrides(config_dict: dict, prefix: str = "PLACEMENT") -> dict:
    """Apply environment variable overrides to config dict.

    Pattern: PLACEMENT__SECTION__KEY=value maps to config[section][key] = value
    """
    for key, value in os.environ.items():
        if not key.startswith(f"{prefix}__"):
            continue
        parts = key[len(prefix) + 2 :].lower().split("__")
        target = config_dict
        for part in parts[:-1]:
            target = target.setdefault(part, {})
        if value.lower() in ("true", "false"):
            value = value.lower() == "true"
        elif value.isdigit():
            value = int(value)
        target[parts[-1]] = value
    return config_dict


def load_config(config_path: Optional[str] = None) -> PlacementConfig:
    """Load configuration from YAML file with env overrides.

    Priority: env vars > YAML file > defaults
    """
    config_dict = {}

    if config_path is None:
        config_path = os.getenv("PLACEMENT_CONFIG_PATH", DEFAULT_CONFIG_PATH)
    path = Path(config_path)
    if path.exists():
        with open(path) as f:
            config_dict = yaml.safe_load(f) or {}

    config_dict = _apply_env_overrides(config_dict)

    # DB path from dedicated env var, shared with database.get_db_path()
    if "database" not in config_dict:
        config_dict["database"] = {}
    if not config_dict["database"].get("path"):
        config_dict["database"]["path"] = os.getenv(
            "PLACEMENT_DB_PATH", DEFAULT_DB_PATH
        )

    return PlacementConfig(**config_dict)


_config: Optional[PlacementConfig] = None


def get_config() -> PlacementConfig:
    global _config
    if _config is None:
        _config = load_config()
    return _config


def reload_config(config_path: Optional[str] = None) -> PlacementConfig:
    global _config
    _config = load_config(config_path)
    return _config
