from __future__ import annotations

import os
from typing import Literal, Optional

import yaml
from pydantic import BaseModel, ConfigDict

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class StepwiseConfig(BaseModel):
    """Top-level configuration model."""

    model_config = ConfigDict(validate_assignment=True)

    database_url: Optional[str] = None
    log_level: LogLevel = "INFO"


def load_config(path: Optional[str] = None) -> StepwiseConfig:
    """Load configuration from YAML file.

    Args:
        path: Optional path to config file. Falls back to STEPWISE_CONFIG env
            variable or 'stepwise.yaml' in the current directory.
    """

    config_path = path or os.getenv("STEPWISE_CONFIG", "stepwise.yaml")
    if os.path.exists(config_path):
        with open(config_path) as f:
            data = yaml.safe_load(f) or {}
        config = StepwiseConfig(**data)
    else:
        config = StepwiseConfig()

    env_db_url = os.getenv("STEPWISE_DATABASE_URL") or os.getenv("DATABASE_URL")
    if env_db_url:
        config.database_url = env_db_url
    env_level = os.getenv("STEPWISE_LOG_LEVEL")
    if env_level:
        config.log_level = env_level.upper()
    return config
