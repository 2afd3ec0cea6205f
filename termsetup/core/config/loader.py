"""
Configuration loader — reads config.yml into Settings.

Lookup order:
    --config flag  >  TERMSETUP_CONFIG env var  >  ~/.config/termsetup/config.yml

The file is optional. If nothing is found at the default location the
built-in defaults are used; an explicitly named file that does not
exist is an error.
"""

from __future__ import annotations

import logging
import os
from collections.abc import Mapping
from pathlib import Path

import yaml
from pydantic import ValidationError

from termsetup.core.errors import ConfigError
from termsetup.core.models.settings import Settings

logger = logging.getLogger(__name__)

CONFIG_ENV_VAR = "TERMSETUP_CONFIG"
DEFAULT_CONFIG_PATH = "~/.config/termsetup/config.yml"


def find_settings_file(environ: Mapping[str, str] | None = None) -> tuple[Path, bool]:
    """Locate the config file.

    Returns:
        ``(path, explicit)`` — ``explicit`` is True when the path came
        from the environment rather than the default location.
    """
    env = os.environ if environ is None else environ
    from_env = env.get(CONFIG_ENV_VAR)
    if from_env:
        return Path(os.path.expanduser(from_env)), True
    return Path(os.path.expanduser(DEFAULT_CONFIG_PATH)), False


def load_settings(
    path: Path | None = None,
    environ: Mapping[str, str] | None = None,
) -> Settings:
    """Load and validate settings.

    Args:
        path: Explicit path to config.yml. If None, uses the lookup order.
        environ: Environment to read ``TERMSETUP_CONFIG`` from.

    Raises:
        ConfigError: If an explicit file is missing, or any file is invalid.
    """
    explicit = path is not None
    if path is None:
        path, explicit = find_settings_file(environ)

    if not path.is_file():
        if explicit:
            raise ConfigError(f"Config file not found: {path}")
        logger.debug("No config at %s, using defaults", path)
        return Settings()

    logger.debug("Loading settings from %s", path)

    try:
        raw = path.read_text(encoding="utf-8")
    except OSError as e:
        raise ConfigError(f"Cannot read {path}: {e}") from e

    try:
        data = yaml.safe_load(raw)
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e

    if data is None:
        return Settings()
    if not isinstance(data, dict):
        raise ConfigError(f"Expected a YAML mapping in {path}, got {type(data).__name__}")

    try:
        settings = Settings.model_validate(data)
    except ValidationError as e:
        raise ConfigError(f"Invalid configuration in {path}: {e}") from e

    logger.info("Loaded settings from %s", path)
    return settings
