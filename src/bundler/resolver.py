"""Credential resolution across local config, environment and global config.

Resolution order follows Bundler:

1. ``.bundle/config`` in the current working directory
2. ``BUNDLE_<HOST>`` environment variable
3. ``~/.bundle/config`` (or ``$BUNDLE_USER_HOME/.bundle/config``)

A ``CredentialResolver`` parses each file at most once and keeps the parsed
stores for its lifetime; ``reset()`` forgets them so the next lookup re-reads.
"""
from __future__ import annotations

import logging
import os
import threading
from types import MappingProxyType
from typing import Dict, Iterator, Mapping, Optional

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled

from .config_file import global_config_path, read_config_file
from .credentials import Credentials, credentials_from_env, host_to_env_key, parse_credential_value

logger = logging.getLogger(__name__)


class ConfigStore(Mapping[str, Credentials]):
    """Read-only mapping of lookup key to Credentials from one config file."""

    def __init__(self, credentials: Mapping[str, Credentials], source: Optional[str] = None):
        self._credentials = MappingProxyType(dict(credentials))
        self.source = source

    @classmethod
    def from_values(cls, values: Mapping[str, str], source: Optional[str] = None) -> Optional["ConfigStore"]:
        """Build a store from raw key/value pairs.

        Values that do not parse into credentials are dropped. Returns None
        when nothing usable remains, so an empty file behaves like a missing one.
        """
        parsed: Dict[str, Credentials] = {}
        for key, value in values.items():
            creds = parse_credential_value(value)
            if creds is not None:
                parsed[key] = creds
        if not parsed:
            return None
        return cls(parsed, source=source)

    @classmethod
    def load(cls, path: Optional[str]) -> Optional["ConfigStore"]:
        """Read ``path`` and build a store, or None if absent/unreadable/empty."""
        if not path:
            return None
        return cls.from_values(read_config_file(path), source=path)

    def credentials_for_host(self, host: str) -> Optional[Credentials]:
        """Look up the credentials stored for ``host``."""
        return self._credentials.get(host_to_env_key(host))

    def __getitem__(self, key: str) -> Credentials:
        return self._credentials[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._credentials)

    def __len__(self) -> int:
        return len(self._credentials)

    def __repr__(self) -> str:
        return f"ConfigStore(source={self.source!r}, keys={sorted(self._credentials)!r})"


class CredentialResolver:
    """Resolution context holding the parsed local and global config stores.

    Construct one at startup and pass it to the clients that need it. Both
    config files are loaded together on first access, under a lock, so
    concurrent first lookups parse each file exactly once.
    """

    def __init__(
        self,
        local_path: Optional[str] = Constants.LOCAL_BUNDLE_CONFIG,
        global_path: Optional[str] = None,
        environ: Optional[Mapping[str, str]] = None,
    ):
        """Initialize the resolver.

        Args:
            local_path: Project config path, relative paths resolve against
                the working directory at load time. None disables it.
            global_path: User config path; when None it is derived from
                BUNDLE_USER_HOME / HOME in ``environ``.
            environ: Environment mapping; defaults to ``os.environ``.
        """
        self._local_path = local_path
        self._global_path = global_path
        self._environ = os.environ if environ is None else environ
        self._lock = threading.Lock()
        self._loaded = False
        self._local: Optional[ConfigStore] = None
        self._global: Optional[ConfigStore] = None

    def _ensure_loaded(self) -> None:
        if self._loaded:
            return
        with self._lock:
            if self._loaded:
                return
            global_path = self._global_path or global_config_path(self._environ)
            self._local = ConfigStore.load(self._local_path)
            self._global = ConfigStore.load(global_path)
            if is_debug_enabled(logger):
                logger.debug(
                    "Bundle configs loaded",
                    extra=extra_context(
                        event="config_load",
                        component="credential_resolver",
                        action="load",
                        local_entries=len(self._local) if self._local else 0,
                        global_entries=len(self._global) if self._global else 0,
                    )
                )
            self._loaded = True

    def reset(self) -> None:
        """Forget the parsed config files; the next access reloads them."""
        with self._lock:
            self._local = None
            self._global = None
            self._loaded = False

    def local_config(self) -> Optional[ConfigStore]:
        """Credentials from the project-local ``.bundle/config``."""
        self._ensure_loaded()
        return self._local

    def global_config(self) -> Optional[ConfigStore]:
        """Credentials from the user-wide ``.bundle/config``."""
        self._ensure_loaded()
        return self._global

    def merged_config(self) -> Optional[ConfigStore]:
        """Both config files merged, local entries overriding global ones.

        Ignores the environment; prefer ``resolve`` for lookups.
        """
        local, global_ = self.local_config(), self.global_config()
        if local is None and global_ is None:
            return None
        merged: Dict[str, Credentials] = {}
        if global_ is not None:
            merged.update(global_)
        if local is not None:
            merged.update(local)
        return ConfigStore(merged)

    def resolve(self, host: str) -> Optional[Credentials]:
        """Resolve credentials for ``host``: local config, then env, then global config."""
        local = self.local_config()
        if local is not None:
            creds = local.credentials_for_host(host)
            if creds is not None:
                self._log_hit(host, "local_config")
                return creds

        creds = credentials_from_env(host, self._environ)
        if creds is not None:
            self._log_hit(host, "environment")
            return creds

        global_ = self.global_config()
        if global_ is not None:
            creds = global_.credentials_for_host(host)
            if creds is not None:
                self._log_hit(host, "global_config")
                return creds

        return None

    def _log_hit(self, host: str, source: str) -> None:
        if is_debug_enabled(logger):
            logger.debug(
                "Credentials resolved",
                extra=extra_context(
                    event="decision",
                    component="credential_resolver",
                    action="resolve",
                    outcome=source,
                    target=host,
                )
            )


_default_resolver: Optional[CredentialResolver] = None
_default_lock = threading.Lock()


def default_resolver() -> CredentialResolver:
    """Return the process-wide resolver, creating it on first use."""
    global _default_resolver  # pylint: disable=global-statement
    with _default_lock:
        if _default_resolver is None:
            _default_resolver = CredentialResolver()
        return _default_resolver


def credentials_for(host: str) -> Optional[Credentials]:
    """Resolve credentials for ``host`` with the process-wide resolver."""
    return default_resolver().resolve(host)
