"""
Persisted tool configuration.

Stored as YAML at ``~/.gcp-emulator/config.yaml`` unless
``GCP_EMULATOR_CONFIG`` points elsewhere.
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Literal

import yaml
from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError

from .codec import PolicyError

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "GCP_EMULATOR_CONFIG"
DEFAULT_CONFIG_PATH = "~/.gcp-emulator/config.yaml"

IAM_MODES = ("off", "permissive", "strict")


class ConfigError(PolicyError):
    """Raised for unreadable config files and invalid settings."""
    pass


def default_config_path() -> Path:
    return Path(os.environ.get(CONFIG_ENV_VAR, DEFAULT_CONFIG_PATH)).expanduser()


class PortConfig(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    iam: int = 8080
    secret_manager: int = Field(default=9090, alias="secret-manager")
    kms: int = 9091


class Config(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    iam_mode: Literal["off", "permissive", "strict"] = Field(default="permissive", alias="iam-mode")
    trace: bool = False
    pull_on_start: bool = Field(default=False, alias="pull-on-start")
    policy_file: str = Field(default="./policy.yaml", alias="policy-file")
    ports: PortConfig = Field(default_factory=PortConfig)

    @classmethod
    def load(cls, path: Path | str | None = None) -> Config:
        """Load the config file, falling back to defaults when it does not exist."""
        path = Path(path) if path else default_config_path()
        if not path.exists():
            logger.debug("No config file at %s, using defaults", path)
            return cls()

        try:
            with open(path) as f:
                data = yaml.safe_load(f)
        except OSError as e:
            raise ConfigError(f"failed to read config {path}: {e}") from e
        except yaml.YAMLError as e:
            raise ConfigError(f"failed to parse config {path}: {e}") from e

        try:
            return cls.model_validate(data or {})
        except PydanticValidationError as e:
            raise ConfigError(f"invalid config {path}: {e}") from e

    def save(self, path: Path | str | None = None) -> Path:
        path = Path(path) if path else default_config_path()
        path.parent.mkdir(parents=True, exist_ok=True)
        with open(path, "w") as f:
            f.write(self.display())
        logger.debug("Saved config to %s", path)
        return path

    def display(self) -> str:
        return yaml.safe_dump(self.model_dump(by_alias=True), sort_keys=False)

    def set_value(self, key: str, value: str) -> None:
        """Update a setting from its command-line key and string value."""
        if key == "iam-mode":
            if value not in IAM_MODES:
                raise ConfigError(
                    f"invalid iam-mode: {value} (must be off, permissive, or strict)"
                )
            self.iam_mode = value
        elif key == "trace":
            self.trace = value == "true"
        elif key == "pull-on-start":
            self.pull_on_start = value == "true"
        elif key == "policy-file":
            self.policy_file = value
        else:
            raise ConfigError(f"unknown config key: {key}")
