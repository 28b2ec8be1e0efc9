import logging
from datetime import timedelta
from pathlib import Path

import yaml
from pydantic import ValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from .core.exceptions import ConfigurationError
from .models import RotationTechnique, RotatorConfig
from .utils.units import GIB, MIB


class Settings(BaseSettings):
    # Rotation configuration (YAML)
    config_path: str = "/etc/rotator/config.yaml"

    # Metrics and health server
    listen_host: str = "0.0.0.0"
    listen_port: int = 9102

    # Scan loop
    scan_interval_seconds: int = 30
    shutdown_timeout_seconds: float = 5.0

    # Rotation state
    journal_path: str = "/var/lib/rotator/state.json"
    copy_chunk_size_kb: int = 1024  # Chunk size for copytruncate copies

    # Logging konfiguration
    log_level: str = "INFO"
    log_file_path: str = "logs/rotator.log"
    log_retention_days: int = 7

    model_config = SettingsConfigDict(env_prefix="ROTATOR_", env_file=".env", extra="ignore")

    @property
    def log_directory(self) -> Path:
        """Returnerer log directory som Path objekt"""
        return Path(self.log_file_path).parent


DEFAULT_DISCOVERY_PATH = "/pang/logs"
DEFAULT_MAX_DEPTH = 8
DEFAULT_SIZE_THRESHOLD = 100 * MIB
DEFAULT_AGE_THRESHOLD = timedelta(hours=24)
DEFAULT_INACTIVITY_THRESHOLD = timedelta(hours=6)
DEFAULT_KEEP_FILES = 5
DEFAULT_KEEP_DAYS = 3
DEFAULT_COMPRESS_AFTER = timedelta(hours=1)
DEFAULT_NAMESPACE_BUDGET = 10 * GIB


def apply_defaults(config: RotatorConfig) -> RotatorConfig:
    """Fill unset (zero) default fields. Overrides are left untouched."""
    defaults = config.defaults

    discovery_updates = {}
    if not defaults.discovery.path:
        discovery_updates["path"] = DEFAULT_DISCOVERY_PATH
    if defaults.discovery.max_depth == 0:
        discovery_updates["max_depth"] = DEFAULT_MAX_DEPTH

    policy = defaults.policy
    policy_updates = {}
    if not policy.size_threshold:
        policy_updates["size_threshold"] = DEFAULT_SIZE_THRESHOLD
    if not policy.age_threshold:
        policy_updates["age_threshold"] = DEFAULT_AGE_THRESHOLD
    if not policy.inactivity_threshold:
        policy_updates["inactivity_threshold"] = DEFAULT_INACTIVITY_THRESHOLD
    if not policy.keep_files:
        policy_updates["keep_files"] = DEFAULT_KEEP_FILES
    if not policy.keep_days:
        policy_updates["keep_days"] = DEFAULT_KEEP_DAYS
    if not policy.compress_after:
        policy_updates["compress_after"] = DEFAULT_COMPRESS_AFTER
    if policy.rotation_technique is None:
        policy_updates["rotation_technique"] = RotationTechnique.RENAME

    budget_updates = {}
    if not defaults.budgets.per_namespace_bytes:
        budget_updates["per_namespace_bytes"] = DEFAULT_NAMESPACE_BUDGET

    new_defaults = defaults.model_copy(
        update={
            "discovery": defaults.discovery.model_copy(update=discovery_updates),
            "policy": policy.model_copy(update=policy_updates),
            "budgets": defaults.budgets.model_copy(update=budget_updates),
        }
    )
    return config.model_copy(update={"defaults": new_defaults})


def parse_rotator_config(text: str, source: str = "<string>") -> RotatorConfig:
    try:
        data = yaml.safe_load(text)
    except yaml.YAMLError as e:
        raise ConfigurationError(source, f"YAML parse error: {e}") from e

    if data is None:
        data = {}
    if not isinstance(data, dict):
        raise ConfigurationError(source, "top level must be a mapping")

    try:
        config = RotatorConfig.model_validate(data)
    except ValidationError as e:
        raise ConfigurationError(source, str(e)) from e

    return apply_defaults(config)


def load_rotator_config(path: str) -> RotatorConfig:
    """
    Load the YAML rotation configuration and apply defaults.

    Raises ConfigurationError if the file cannot be read or is invalid.
    """
    config_file = Path(path)
    try:
        text = config_file.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigurationError(path, f"cannot read file: {e}") from e

    config = parse_rotator_config(text, source=path)

    logging.info(
        f"Rotation config loaded from {path}: root={config.defaults.discovery.path}, "
        f"{len(config.overrides.namespaces)} namespace overrides, "
        f"{len(config.overrides.paths)} path overrides"
    )
    return config
