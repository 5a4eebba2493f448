"""RubyGems registry client: gem metadata and version lists over the v1 JSON API."""
from __future__ import annotations

import json
import logging
from dataclasses import dataclass, replace
from typing import Any, Dict, List, Optional, Sequence
from urllib.parse import quote, urlsplit

import requests
from requests.auth import HTTPBasicAuth

from constants import Constants
from common.http_client import build_session
from common.logging_utils import extra_context, is_debug_enabled, safe_url
from bundler import Credentials, CredentialResolver, default_resolver

import registry.rubygems as rubygems_pkg
from .batch import fetch_all
from .errors import GemFetchError
from .models import GemInfo, GemInfoRequest, GemInfoResult

logger = logging.getLogger(__name__)

HEADERS_JSON = {"Accept": "application/json"}


@dataclass(frozen=True)
class ClientConfig:
    """Immutable settings for a RubyGems client."""
    base_url: str = Constants.REGISTRY_URL_RUBYGEMS
    credentials: Optional[Credentials] = None
    timeout: float = Constants.REQUEST_TIMEOUT
    pool_maxsize: int = Constants.HTTP_POOL_MAXSIZE

    def __post_init__(self) -> None:
        parts = urlsplit(self.base_url)
        if parts.scheme not in ("http", "https") or not parts.hostname:
            raise ValueError(f"gem server URL must be http(s)://host[:port][/path], got {self.base_url!r}")

    @property
    def api_url(self) -> str:
        return self.base_url.rstrip("/") + Constants.API_PATH

    @property
    def host(self) -> str:
        """Host (with port, if any) used for credential lookup."""
        return urlsplit(self.base_url).netloc.rpartition("@")[2]


class RubyGemsClient:
    """Client for a RubyGems-compatible gem server.

    A single pooled session is shared by all calls, including the worker
    threads used by ``get_multiple_gem_info``.
    """

    def __init__(self, config: Optional[ClientConfig] = None, session: Optional[requests.Session] = None):
        self.config = config or ClientConfig()
        self._session = session or build_session(pool_maxsize=self.config.pool_maxsize)

    @classmethod
    def for_source(
        cls,
        base_url: str = Constants.REGISTRY_URL_RUBYGEMS,
        resolver: Optional[CredentialResolver] = None,
        **overrides: Any,
    ) -> "RubyGemsClient":
        """Build a client for ``base_url`` with Bundler credentials for its host.

        Args:
            base_url: Gem server root, e.g. ``https://rubygems.pkg.github.com/acme``.
            resolver: Resolution context; the process default when omitted.
            **overrides: Other ClientConfig fields (timeout, pool_maxsize).
        """
        config = ClientConfig(base_url=base_url, **overrides)
        if config.credentials is None:
            creds = (resolver or default_resolver()).resolve(config.host)
            if creds is not None:
                config = replace(config, credentials=creds)
        return cls(config)

    @property
    def api_url(self) -> str:
        return self.config.api_url

    def close(self) -> None:
        self._session.close()

    def __enter__(self) -> "RubyGemsClient":
        return self

    def __exit__(self, *exc: Any) -> None:
        self.close()

    def _auth_kwargs(self) -> Dict[str, Any]:
        """Request kwargs carrying the configured credentials, if any."""
        headers = dict(HEADERS_JSON)
        creds = self.config.credentials
        if creds is None:
            return {"headers": headers}
        if creds.is_token:
            headers["Authorization"] = "Bearer " + creds.bearer_token
            return {"headers": headers}
        if creds.username:
            return {"headers": headers, "auth": HTTPBasicAuth(creds.username, creds.password)}
        return {"headers": headers}

    def _get_json(self, url: str, name: str, what: str) -> Any:
        """GET ``url`` and decode its JSON body, raising GemFetchError on failure."""
        try:
            res = rubygems_pkg.safe_get(
                url,
                context="rubygems",
                session=self._session,
                timeout=self.config.timeout,
                **self._auth_kwargs(),
            )
        except requests.RequestException as exc:
            raise GemFetchError(f"failed to fetch {what}: {exc}", url=safe_url(url)) from exc

        if res.status_code != 200:
            logger.warning(
                "HTTP non-200 received",
                extra=extra_context(
                    event="http_response",
                    outcome="handled_non_200",
                    status_code=res.status_code,
                    target=safe_url(url),
                    package_manager="rubygems"
                )
            )
            raise GemFetchError(
                f"RubyGems API returned status {res.status_code} for {name}",
                status_code=res.status_code,
                url=safe_url(url),
            )

        try:
            return json.loads(res.text)
        except json.JSONDecodeError as exc:
            raise GemFetchError(f"failed to decode {what}: {exc}", status_code=200, url=safe_url(url)) from exc

    def get_gem_info(self, name: str, version: Optional[str] = None) -> GemInfo:
        """Fetch gem metadata.

        The registry only serves the latest version's dependencies; the
        returned record carries the requested name and version regardless.

        Args:
            name: Gem name.
            version: Requested version; the registry's latest when None.

        Returns:
            GemInfo: Parsed metadata.
        """
        url = f"{self.api_url}/gems/{quote(name, safe='')}.json"
        data = self._get_json(url, name, "gem info")
        if not isinstance(data, dict):
            raise GemFetchError(f"failed to decode gem info: unexpected {type(data).__name__}", status_code=200, url=safe_url(url))

        try:
            info = GemInfo.from_json(data)
        except ValueError as exc:
            raise GemFetchError(f"failed to decode gem info: {exc}", status_code=200, url=safe_url(url)) from exc
        info.name = name
        if version:
            info.version = version
        if is_debug_enabled(logger):
            logger.debug(
                "Gem info fetched",
                extra=extra_context(
                    event="function_exit",
                    component="client",
                    action="get_gem_info",
                    outcome="success",
                    target=name,
                    count=len(info.dependencies.runtime),
                    package_manager="rubygems"
                )
            )
        return info

    def get_gem_versions(self, name: str) -> List[str]:
        """Fetch version numbers for a gem, newest first, capped at MAX_VERSIONS."""
        url = f"{self.api_url}/versions/{quote(name, safe='')}.json"
        data = self._get_json(url, name, "gem versions")
        if not isinstance(data, list):
            raise GemFetchError(f"failed to decode gem versions: unexpected {type(data).__name__}", status_code=200, url=safe_url(url))

        versions = data[:Constants.MAX_VERSIONS]
        return [str(v.get("number", "")) if isinstance(v, dict) else str(v) for v in versions]

    def get_multiple_gem_info(self, requests_: Sequence[GemInfoRequest]) -> List[GemInfoResult]:
        """Fetch metadata for many gems in parallel; see ``batch.fetch_all``."""
        logger.info("RubyGems registry engaged for %d gem(s).", len(requests_))
        return fetch_all(requests_, self.get_gem_info)
