"""RubyGems registry package.

This package provides RubyGems support:
- models.py: gem metadata and batch request/result records
- client.py: HTTP interactions with the RubyGems v1 JSON API
- batch.py: bounded-concurrency batch fetching

Public API is preserved at registry.rubygems without shims.
"""

# Patch point exposed for tests (e.g., monkeypatch in tests)
from common.http_client import safe_get  # noqa: F401

# Public API re-exports
from .errors import GemFetchError  # noqa: F401
from .models import (  # noqa: F401
    Dependency,
    DependencyCategories,
    GemInfo,
    GemInfoRequest,
    GemInfoResult,
)
from .batch import fetch_all  # noqa: F401
from .client import ClientConfig, RubyGemsClient  # noqa: F401

__all__ = [
    # Models
    "Dependency",
    "DependencyCategories",
    "GemInfo",
    "GemInfoRequest",
    "GemInfoResult",
    # Client/batch
    "ClientConfig",
    "RubyGemsClient",
    "GemFetchError",
    "fetch_all",
    # Patch points for tests
    "safe_get",
]
