"""Reader for Bundler's ``.bundle/config`` files.

Bundler writes a flat YAML document:

    ---
    BUNDLE_RUBYGEMS__PKG__GITHUB__COM: "any:ghp_xxx"
    BUNDLE_JOBS: "4"

Only ``BUNDLE_``-prefixed keys are kept. Parsing is line-oriented and
tolerant: unreadable files and malformed lines are skipped, never raised.
"""
from __future__ import annotations

import logging
import os
from typing import Dict, Mapping, Optional

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled

logger = logging.getLogger(__name__)


def trim_quotes(value: str) -> str:
    """Remove one layer of matching surrounding single or double quotes."""
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ("'", '"'):
        return value[1:-1]
    return value


def parse_bundle_config(text: str) -> Dict[str, str]:
    """Parse the simplified YAML config format into a key -> value mapping.

    Args:
        text: Full contents of a config file.

    Returns:
        dict: ``BUNDLE_*`` keys mapped to their unquoted string values.
    """
    result: Dict[str, str] = {}
    for raw in text.splitlines():
        line = raw.strip()
        if not line or line.startswith("#") or line == "---":
            continue

        key, sep, value = line.partition(":")
        if not sep:
            continue

        key = key.strip()
        if key.startswith(Constants.BUNDLE_KEY_PREFIX):
            result[key] = trim_quotes(value.strip())
    return result


def read_config_file(path: str) -> Dict[str, str]:
    """Read and parse a config file; any read failure yields an empty mapping."""
    try:
        with open(path, "r", encoding="utf-8") as fh:
            text = fh.read()
    except (OSError, UnicodeDecodeError) as exc:
        if is_debug_enabled(logger):
            logger.debug(
                "Bundle config not readable",
                extra=extra_context(
                    event="config_read",
                    component="bundle_config",
                    action="read",
                    outcome="skipped",
                    target=path,
                    reason=type(exc).__name__,
                )
            )
        return {}
    return parse_bundle_config(text)


def global_config_path(environ: Optional[Mapping[str, str]] = None) -> Optional[str]:
    """Return the path of the user-wide config file, or None if no home is known.

    Checks ``$BUNDLE_USER_HOME/.bundle/config`` then ``$HOME/.bundle/config``.
    """
    env = os.environ if environ is None else environ
    base = env.get(Constants.ENV_BUNDLE_USER_HOME) or env.get(Constants.ENV_HOME)
    if not base:
        return None
    return os.path.join(base, Constants.BUNDLE_CONFIG_DIR, Constants.BUNDLE_CONFIG_FILE)
