"""Bundler-style credential values and host lookup keys.

Bundler stores per-source credentials under a key derived from the source
host, e.g. ``rubygems.pkg.github.com`` -> ``BUNDLE_RUBYGEMS__PKG__GITHUB__COM``.
The same key names the environment variable and the entry in the local and
global ``.bundle/config`` files. Values take one of three forms:

- ``token``: bare token, sent as a Bearer token
- ``any:token``: token paired with the placeholder username ``any``
- ``user:password``: HTTP basic auth
"""
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Mapping, Optional

from constants import Constants


@dataclass(frozen=True)
class Credentials:
    """Authentication for a gem source: either a token or a basic-auth pair."""

    username: str = ""
    password: str = ""
    token: str = ""

    @property
    def is_token(self) -> bool:
        """True for token credentials (explicit token or the ``any`` username)."""
        return bool(self.token) or self.username == Constants.TOKEN_USERNAME

    @property
    def bearer_token(self) -> str:
        """Token value to send as ``Authorization: Bearer``; empty for basic auth."""
        if self.token:
            return self.token
        if self.username == Constants.TOKEN_USERNAME:
            return self.password
        return ""

    def __repr__(self) -> str:
        kind = "token" if self.is_token else "basic"
        return f"Credentials(kind={kind!r}, username={self.username!r})"


def host_to_env_key(host: str) -> str:
    """Convert a host (optionally with port) to Bundler's lookup key.

    ``my-gems.example.com:8443`` -> ``BUNDLE_MY___GEMS__EXAMPLE__COM``.
    Bracketed IPv6 literals lose their brackets and port. An unbracketed
    host with several colons is ambiguous with a raw IPv6 literal and is
    left untouched.
    """
    if host.startswith("["):
        end = host.find("]")
        host = host[1:end] if end != -1 else host[1:]
    elif host.count(":") == 1:
        host = host.split(":", 1)[0]

    key = host.replace(".", "__").replace("-", "___")
    return Constants.BUNDLE_KEY_PREFIX + key.upper()


def parse_credential_value(value: str) -> Optional[Credentials]:
    """Parse a Bundler credential string.

    Only the first colon separates username from password, so passwords
    may contain colons. Returns None for an empty value.
    """
    if not value:
        return None

    username, sep, password = value.partition(":")
    if not sep:
        return Credentials(token=value)

    if username == Constants.TOKEN_USERNAME:
        return Credentials(username=username, password=password, token=password)

    return Credentials(username=username, password=password)


def credentials_from_env(host: str, environ: Optional[Mapping[str, str]] = None) -> Optional[Credentials]:
    """Resolve credentials from the ``BUNDLE_<HOST>`` environment variable only."""
    env = os.environ if environ is None else environ
    value = env.get(host_to_env_key(host), "")
    if not value:
        return None
    return parse_credential_value(value)
