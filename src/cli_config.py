"""CLI configuration: YAML settings file plus command-line overrides.

Precedence is CLI flag > YAML setting > built-in default. Loading never
raises; a missing or malformed settings file is logged and ignored.
"""

from __future__ import annotations

import logging
import os
from typing import Any, Dict, Optional

import yaml

from constants import Constants
from registry.rubygems import ClientConfig

logger = logging.getLogger(__name__)

SETTINGS_KEYS = ("registry_url", "request_timeout", "pool_maxsize")


def load_settings(config_path: Optional[str]) -> Dict[str, Any]:
    """Load client settings from a YAML file.

    Args:
        config_path: Path to YAML file, or None.

    Returns:
        Settings dict limited to known keys; empty when unavailable.
    """
    if not config_path:
        return {}

    if not os.path.isfile(config_path):
        logger.warning("Config file not found: %s", config_path)
        return {}

    try:
        with open(config_path, "r", encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except (OSError, yaml.YAMLError) as e:
        logger.error("Failed to load config: %s", e)
        return {}

    if not isinstance(data, dict):
        return {}
    # Accept settings either at top level or under a "gemfetch" section
    section = data.get("gemfetch", data)
    if not isinstance(section, dict):
        return {}
    return {k: section[k] for k in SETTINGS_KEYS if section.get(k) is not None}


def build_client_config(args, settings: Optional[Dict[str, Any]] = None) -> ClientConfig:
    """Merge CLI arguments over YAML settings into a ClientConfig."""
    settings = settings or {}

    base_url = getattr(args, "SOURCE", None) or settings.get("registry_url") or Constants.REGISTRY_URL_RUBYGEMS

    timeout = getattr(args, "TIMEOUT", None)
    if timeout is None:
        timeout = settings.get("request_timeout", Constants.REQUEST_TIMEOUT)

    pool_maxsize = settings.get("pool_maxsize", Constants.HTTP_POOL_MAXSIZE)

    try:
        timeout = float(timeout)
    except (TypeError, ValueError):
        logger.warning("Invalid request_timeout %r; using default.", timeout)
        timeout = Constants.REQUEST_TIMEOUT
    try:
        pool_maxsize = int(pool_maxsize)
    except (TypeError, ValueError):
        logger.warning("Invalid pool_maxsize %r; using default.", pool_maxsize)
        pool_maxsize = Constants.HTTP_POOL_MAXSIZE

    return ClientConfig(base_url=str(base_url), timeout=timeout, pool_maxsize=pool_maxsize)
