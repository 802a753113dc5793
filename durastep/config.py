from __future__ import annotations

import os
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, field_validator

from .constants import DEFAULT_CONFIG_FILE, DEFAULT_LOG_LEVEL, DEFAULT_TABLE_NAME


class DurastepConfig(BaseModel):
    """Top-level configuration model."""

    database_url: Optional[str] = None
    table_name: str = DEFAULT_TABLE_NAME
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = DEFAULT_LOG_LEVEL

    @field_validator("log_level", mode="before")
    @classmethod
    def _upper_log_level(cls, value):
        return value.upper() if isinstance(value, str) else value


def load_config(path: Optional[str] = None) -> DurastepConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to DURASTEP_CONFIG env
            variable or 'durastep.yaml' in the current directory.
    """

    config_path = path or os.getenv("DURASTEP_CONFIG", DEFAULT_CONFIG_FILE)
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = DurastepConfig(**data)
    else:
        config = DurastepConfig()

    env_db_url = os.getenv("DURASTEP_DATABASE_URL") or os.getenv("DATABASE_URL")
    if env_db_url:
        config.database_url = env_db_url
    return config
