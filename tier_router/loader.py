"""Load the provider configuration file.

Supports JSON (``.json``) and YAML (``.yaml`` / ``.yml``). The parsed
mapping is validated by RouterConfig.from_mapping; every failure along
the way surfaces as ConfigurationError so the application refuses to
start with a broken configuration.
"""

from __future__ import annotations

import json
from pathlib import Path

import structlog
import yaml

from tier_router.exceptions import ConfigurationError
from tier_router.routing.providers import RouterConfig

log = structlog.get_logger(__name__)

_YAML_SUFFIXES = {".yaml", ".yml"}


def load_router_config(path: str | Path) -> RouterConfig:
    """Read and validate a provider configuration file.

    Args:
        path: Path to a .json, .yaml or .yml file

    Returns:
        Validated RouterConfig

    Raises:
        ConfigurationError: If the file is missing, unreadable, unparseable
            or does not describe a valid configuration
    """
    config_path = Path(path)

    try:
        text = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigurationError(f"Cannot read provider config {config_path}: {exc}") from exc

    try:
        if config_path.suffix.lower() in _YAML_SUFFIXES:
            data = yaml.safe_load(text)
        else:
            data = json.loads(text)
    except (json.JSONDecodeError, yaml.YAMLError) as exc:
        raise ConfigurationError(f"Cannot parse provider config {config_path}: {exc}") from exc

    config = RouterConfig.from_mapping(data)
    log.info("router_config.file_loaded", path=str(config_path))
    return config
