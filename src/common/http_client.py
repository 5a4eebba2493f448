"""Shared HTTP helpers used by the registry client.

Encapsulates session construction and common request/timeout error handling
so callers avoid duplicating try/except blocks. This module is
dependency-light and can be imported by registry/* without cycles.
"""
from __future__ import annotations

import logging
from typing import Any, Optional

import requests
from requests.adapters import HTTPAdapter

from constants import Constants
from common.logging_utils import extra_context, is_debug_enabled, redact, safe_url, Timer

logger = logging.getLogger(__name__)


def build_session(
    pool_connections: int = Constants.HTTP_POOL_CONNECTIONS,
    pool_maxsize: int = Constants.HTTP_POOL_MAXSIZE,
) -> requests.Session:
    """Create a pooled requests.Session shared by concurrent workers.

    Args:
        pool_connections: Number of per-host connection pools to cache.
        pool_maxsize: Maximum connections kept per host pool.

    Returns:
        requests.Session: Session with HTTP and HTTPS adapters mounted.
    """
    session = requests.Session()
    adapter = HTTPAdapter(pool_connections=pool_connections, pool_maxsize=pool_maxsize)
    session.mount("https://", adapter)
    session.mount("http://", adapter)
    session.headers.update({"User-Agent": Constants.USER_AGENT})
    return session


def safe_get(
    url: str,
    *,
    context: str,
    session: Optional[requests.Session] = None,
    timeout: float = Constants.REQUEST_TIMEOUT,
    **kwargs: Any,
) -> requests.Response:
    """Perform a GET request with consistent error logging and DEBUG traces.

    Timeouts and connection errors are logged and re-raised; there is no
    retry. Callers decide whether a failure is fatal.

    Args:
        url: Target URL.
        context: Human-readable source tag for logs (e.g., "rubygems").
        session: Optional session to issue the request on.
        timeout: Per-call timeout in seconds.
        **kwargs: Passed through to requests.get / Session.get.

    Returns:
        requests.Response: The HTTP response object.
    """
    safe_target = safe_url(url)
    getter = session.get if session is not None else requests.get
    with Timer() as t:
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP request",
                extra=extra_context(
                    event="http_request",
                    component="http_client",
                    action="GET",
                    target=safe_target,
                    context=context
                )
            )
        try:
            res = getter(url, timeout=timeout, **kwargs)
        except requests.Timeout:
            logger.error(
                "%s request timed out after %s seconds",
                context,
                timeout,
            )
            raise
        except requests.RequestException as exc:  # includes ConnectionError
            logger.error("%s connection error: %s", context, redact(str(exc)))
            raise
        if is_debug_enabled(logger):
            logger.debug(
                "HTTP response",
                extra=extra_context(
                    event="http_response",
                    component="http_client",
                    action="GET",
                    outcome="success" if res.status_code == 200 else "non_200",
                    status_code=res.status_code,
                    duration_ms=t.duration_ms(),
                    target=safe_target,
                    context=context
                )
            )
        return res
