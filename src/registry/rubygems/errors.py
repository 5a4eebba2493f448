"""Exceptions raised by the RubyGems client."""
from __future__ import annotations

from typing import Optional


class GemFetchError(Exception):
    """A registry request failed: network error, non-200 status or bad JSON."""

    def __init__(self, message: str, *, status_code: Optional[int] = None, url: Optional[str] = None):
        super().__init__(message)
        self.status_code = status_code
        self.url = url
