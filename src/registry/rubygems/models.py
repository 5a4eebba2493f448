"""Data models for RubyGems metadata and batch requests."""

from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional


@dataclass(frozen=True)
class Dependency:
    """A single gem dependency and its version requirement string."""
    name: str
    requirements: str = ""

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "Dependency":
        return cls(name=str(data.get("name") or ""), requirements=str(data.get("requirements", "") or ""))


@dataclass
class DependencyCategories:
    """Dependencies grouped the way the RubyGems API returns them."""
    runtime: List[Dependency] = field(default_factory=list)
    development: List[Dependency] = field(default_factory=list)

    @classmethod
    def from_json(cls, data: Optional[Dict[str, Any]]) -> "DependencyCategories":
        """Parse the ``dependencies`` object; raises ValueError on an unexpected shape."""
        if data is None:
            return cls()
        if not isinstance(data, dict):
            raise ValueError(f"dependencies must be an object, got {type(data).__name__}")
        groups = {}
        for group in ("runtime", "development"):
            entries = data.get(group) or []
            if not isinstance(entries, list):
                raise ValueError(f"dependencies.{group} must be a list, got {type(entries).__name__}")
            groups[group] = [Dependency.from_json(d) for d in entries if isinstance(d, dict)]
        return cls(**groups)


@dataclass
class GemInfo:
    """Gem metadata as returned by ``/api/v1/gems/<name>.json``."""
    name: str
    version: str
    dependencies: DependencyCategories = field(default_factory=DependencyCategories)

    @classmethod
    def from_json(cls, data: Dict[str, Any]) -> "GemInfo":
        return cls(
            name=str(data.get("name") or ""),
            version=str(data.get("version") or ""),
            dependencies=DependencyCategories.from_json(data.get("dependencies")),
        )

    def to_dict(self) -> Dict[str, Any]:
        """Serialize to the API's JSON shape."""
        return {
            "name": self.name,
            "version": self.version,
            "dependencies": {
                "development": [{"name": d.name, "requirements": d.requirements} for d in self.dependencies.development],
                "runtime": [{"name": d.name, "requirements": d.requirements} for d in self.dependencies.runtime],
            },
        }


@dataclass(frozen=True)
class GemInfoRequest:
    """Batch input: a gem name and the version the caller asked for."""
    name: str
    version: Optional[str] = None


@dataclass
class GemInfoResult:
    """Batch output: the original request with either ``info`` or ``error`` set."""
    request: GemInfoRequest
    info: Optional[GemInfo] = None
    error: Optional[BaseException] = None

    @property
    def ok(self) -> bool:
        return self.error is None
