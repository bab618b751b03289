"""
Settings management for gpgpipe.

Settings live in a small YAML file:

    gpg_path: /usr/bin/gpg        # optional; discovered when omitted
    homedir: ~/.gnupg             # optional
    timeout: 30                   # seconds per invocation; 0 or null waits forever
    trust_model: always
    batch: true
    encoding: utf-8
    error_patterns: []            # extra failure patterns, see error_handler
"""

from __future__ import annotations

import logging
import os
from pathlib import Path
from typing import Any, Dict, List, Optional

import yaml
from pydantic import BaseModel, Field, ValidationError, field_validator

from .enums import TrustModel
from ..core.errors import ConfigurationError

logger = logging.getLogger(__name__)

CONFIG_ENV = "GPGPIPE_CONFIG"
DEFAULT_CONFIG_PATH = Path("gpgpipe_data") / "config.yaml"
DEFAULT_TIMEOUT = 30.0


class GpgSettings(BaseModel):
    gpg_path: Optional[str] = None
    homedir: Optional[str] = None
    timeout: Optional[float] = DEFAULT_TIMEOUT
    trust_model: TrustModel = TrustModel.ALWAYS
    batch: bool = True
    encoding: str = "utf-8"
    error_patterns: List[Dict[str, Any]] = Field(default_factory=list)

    @field_validator("timeout")
    @classmethod
    def normalize_timeout(cls, v: Optional[float]) -> Optional[float]:
        if v is not None and v < 0:
            raise ValueError("timeout must be >= 0 (0 or null to wait forever)")
        if v == 0:
            return None
        return v

    @field_validator("gpg_path", "homedir")
    @classmethod
    def expand_user(cls, v: Optional[str]) -> Optional[str]:
        if v is None:
            return v
        return str(Path(v).expanduser())


class ConfigurationLoader:
    """YAML settings loader and validator."""

    def __init__(self, config_path: Optional[Path] = None):
        self.config_path = resolve_config_path(config_path)

    def load(self) -> GpgSettings:
        if not self.config_path.exists():
            logger.debug(f"No settings file at {self.config_path}; using defaults")
            return GpgSettings()

        logger.info(f"Loading settings from {self.config_path}")
        try:
            with open(self.config_path, "r") as f:
                raw = yaml.safe_load(f) or {}
        except (OSError, yaml.YAMLError) as e:
            raise ConfigurationError(f"Cannot read settings file {self.config_path}: {e}") from e

        if not isinstance(raw, dict):
            raise ConfigurationError(f"Settings file {self.config_path} must contain a mapping")
        try:
            return GpgSettings.model_validate(raw)
        except ValidationError as e:
            raise ConfigurationError(f"Invalid settings in {self.config_path}: {e}") from e


def resolve_config_path(config_path: Optional[Path] = None) -> Path:
    if config_path is not None:
        return Path(config_path)
    env = os.environ.get(CONFIG_ENV)
    if env:
        return Path(env)
    return DEFAULT_CONFIG_PATH


def load_settings(config_path: Optional[Path] = None) -> GpgSettings:
    return ConfigurationLoader(config_path).load()
