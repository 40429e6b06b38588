"""Resolved dependency graph.

Nodes are resolved packages, kept in a canonical order (name, version,
source, manifest path) so that node ids are stable for a given input. Edges
point from the consumer to the dependency and carry the dependency kind.
"""

from __future__ import annotations

from collections.abc import Iterable, Iterator, Sequence
from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import TYPE_CHECKING

from packaging.version import InvalidVersion, Version

if TYPE_CHECKING:
    from .models.package_id import PackageId

NodeId = int


class DependencyKind(str, Enum):
    NORMAL = "normal"
    DEV = "dev"
    BUILD = "build"

    @property
    def label(self) -> str:
        """Short tag shown in trees; empty for normal dependencies."""
        return "" if self is DependencyKind.NORMAL else self.value


def _version_key(version: str) -> tuple[int, Version | str]:
    # Versions packaging cannot parse sort after all parseable ones.
    try:
        return (0, Version(version))
    except InvalidVersion:
        return (1, version)


@dataclass(frozen=True)
class Package:
    """A single resolved package instance."""

    name: str
    version: str
    manifest_path: Path
    source: str | None = None

    @property
    def sort_key(self) -> tuple:
        return (self.name, _version_key(self.version), self.source or "", str(self.manifest_path))

    @property
    def location(self) -> str:
        """The registry source, or the directory holding the manifest for local packages."""
        if self.source is not None:
            return self.source
        return str(self.manifest_path.parent)

    def __str__(self) -> str:
        return f"{self.name} v{self.version}"


@dataclass(frozen=True)
class Edge:
    """Directed edge from a consumer to one of its dependencies."""

    source: NodeId
    target: NodeId
    kind: DependencyKind = DependencyKind.NORMAL


class ResolvedGraph:
    """Read-only dependency graph over resolved packages."""

    __slots__ = ("_packages", "_edges", "_out", "_in")

    def __init__(self, packages: Sequence[Package], edges: Iterable[Edge]) -> None:
        self._packages: tuple[Package, ...] = tuple(packages)
        self._edges: tuple[Edge, ...] = tuple(edges)
        self._out: list[list[Edge]] = [[] for _ in self._packages]
        self._in: list[list[Edge]] = [[] for _ in self._packages]
        for edge in self._edges:
            if not (0 <= edge.source < len(self._packages) and 0 <= edge.target < len(self._packages)):
                raise ValueError(f"Edge {edge.source}->{edge.target} references an unknown node")
            self._out[edge.source].append(edge)
            self._in[edge.target].append(edge)

    # -- queries ------------------------------------------------------------

    def __len__(self) -> int:
        return len(self._packages)

    def __getitem__(self, node_id: NodeId) -> Package:
        return self._packages[node_id]

    def nodes(self) -> Iterator[tuple[NodeId, Package]]:
        """Enumerate nodes in canonical order."""
        return enumerate(self._packages)

    def packages(self) -> tuple[Package, ...]:
        return self._packages

    @property
    def edges(self) -> tuple[Edge, ...]:
        return self._edges

    def incoming(self, node_id: NodeId) -> list[Edge]:
        return list(self._in[node_id])

    def outgoing(self, node_id: NodeId) -> list[Edge]:
        return list(self._out[node_id])

    def node_for(self, package_id: PackageId) -> NodeId | None:
        """Return the first node in canonical order matching ``package_id``."""
        for nid, package in enumerate(self._packages):
            if package_id.matches(package):
                return nid
        return None


class GraphBuilder:
    """Accumulate packages and edges in any order, then freeze them."""

    def __init__(self) -> None:
        self._packages: list[Package] = []
        self._handles: dict[Package, int] = {}
        self._edges: list[tuple[int, int, DependencyKind]] = []

    def add_package(self, package: Package) -> int:
        handle = self._handles.get(package)
        if handle is None:
            handle = len(self._packages)
            self._packages.append(package)
            self._handles[package] = handle
        return handle

    def add_edge(
        self, consumer: int, dependency: int, kind: DependencyKind = DependencyKind.NORMAL
    ) -> None:
        self._edges.append((consumer, dependency, kind))

    def build(self) -> ResolvedGraph:
        order = sorted(range(len(self._packages)), key=lambda h: self._packages[h].sort_key)
        remap = {handle: nid for nid, handle in enumerate(order)}

        edges: list[Edge] = []
        seen: set[Edge] = set()
        for consumer, dependency, kind in self._edges:
            edge = Edge(source=remap[consumer], target=remap[dependency], kind=kind)
            if edge in seen:
                continue
            seen.add(edge)
            edges.append(edge)

        return ResolvedGraph([self._packages[h] for h in order], edges)
