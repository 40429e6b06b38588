"""Package identity: a name plus a version requirement."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from ..parsers.semver import VersionReq

if TYPE_CHECKING:
    from ..graph import Package


@dataclass(frozen=True, order=True)
class PackageId:
    """Identify one or more packages by name and version requirement.

    Ordered by name first, then by requirement, so sorted sequences can be
    searched with :mod:`bisect`.
    """

    name: str
    version: VersionReq = field(default_factory=VersionReq.any)

    def __post_init__(self) -> None:
        if not self.name:
            raise ValueError("Package name must be non-empty")

    def __str__(self) -> str:
        if self.version.is_any:
            return self.name
        return f"{self.name}@{self.version}"

    def matches(self, package: Package) -> bool:
        return package.name == self.name and self.version.matches(package.version)

    def to_dict(self) -> dict[str, str]:
        return {"name": self.name, "version": str(self.version)}

    @classmethod
    def parse(cls, spec: str) -> PackageId:
        """Parse ``name`` or ``name@range``; scoped names keep their leading ``@``."""
        spec = spec.strip()
        idx = spec.find("@", 1)
        if idx == -1:
            return cls(name=spec)
        return cls(name=spec[:idx], version=VersionReq.parse(spec[idx + 1:]))


@dataclass(frozen=True)
class TreeSkip:
    """Skip a package and its transitive dependencies, optionally to a depth."""

    id: PackageId
    depth: int | None = None

    def __post_init__(self) -> None:
        if self.depth is not None and self.depth < 0:
            raise ValueError("depth must be non-negative")

    def to_dict(self) -> dict[str, object]:
        data: dict[str, object] = self.id.to_dict()
        if self.depth is not None:
            data["depth"] = self.depth
        return data
