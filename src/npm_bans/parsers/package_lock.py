"""Parse npm package-lock.json into a resolved dependency graph."""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any

from ..graph import DependencyKind, GraphBuilder, Package, ResolvedGraph

logger = logging.getLogger(__name__)

_SECTIONS = (
    ("dependencies", DependencyKind.NORMAL),
    ("optionalDependencies", DependencyKind.NORMAL),
    ("peerDependencies", DependencyKind.NORMAL),
    ("devDependencies", DependencyKind.DEV),
)
_OPTIONAL_SECTIONS = {"optionalDependencies", "peerDependencies"}

_NODE_MODULES = "node_modules/"


class LockfileError(RuntimeError):
    """Raised when a lockfile cannot be read or has an unsupported layout."""


def _package_name(key: str, meta: dict[str, Any]) -> str:
    name = meta.get("name")
    if isinstance(name, str) and name:
        return name
    idx = key.rfind(_NODE_MODULES)
    if idx != -1:
        return key[idx + len(_NODE_MODULES):]
    return key.rsplit("/", 1)[-1]


def _resolve(packages: dict[str, Any], from_key: str, name: str) -> str | None:
    """Find the install location of ``name`` as seen from ``from_key``.

    Mirrors node's module lookup: the package's own node_modules first, then
    each enclosing node_modules up to the project root.
    """
    base = from_key
    while True:
        candidate = f"{base}/{_NODE_MODULES}{name}" if base else f"{_NODE_MODULES}{name}"
        if candidate in packages:
            return candidate
        if not base:
            return None
        idx = base.rfind(f"/{_NODE_MODULES}")
        base = base[:idx] if idx != -1 else ""


def _follow_link(packages: dict[str, Any], key: str) -> str:
    meta = packages.get(key)
    if isinstance(meta, dict) and meta.get("link"):
        target = meta.get("resolved")
        if isinstance(target, str) and target in packages:
            return target
    return key


def parse(path: Path) -> ResolvedGraph:
    """Build the dependency graph recorded in a lockfile.

    Supports npm v2+ ("packages" map). Workspace links are followed to the
    workspace package they point at.
    """
    try:
        data = json.loads(path.read_text(encoding="utf-8"))
    except OSError as exc:
        raise LockfileError(f"Failed to read lockfile: {exc}") from exc
    except json.JSONDecodeError as exc:
        raise LockfileError(f"Invalid JSON in lockfile {path}: {exc}") from exc

    packages = data.get("packages") if isinstance(data, dict) else None
    if not isinstance(packages, dict):
        raise LockfileError(
            f"{path} has no 'packages' map; only lockfileVersion 2 and later are supported"
        )

    root_dir = path.parent
    builder = GraphBuilder()
    handles: dict[str, int] = {}

    for key, meta in packages.items():
        if not isinstance(meta, dict) or meta.get("link"):
            continue
        if key == "":
            name = str(meta.get("name") or data.get("name") or root_dir.name)
        else:
            name = _package_name(key, meta)
        package = Package(
            name=name,
            version=str(meta.get("version") or "0.0.0"),
            manifest_path=root_dir / key / "package.json" if key else root_dir / "package.json",
            source=meta.get("resolved"),
        )
        handles[key] = builder.add_package(package)

    for key, handle in handles.items():
        meta = packages[key]
        for section, kind in _SECTIONS:
            for dep_name in meta.get(section) or {}:
                dep_key = _resolve(packages, key, dep_name)
                if dep_key is not None:
                    dep_key = _follow_link(packages, dep_key)
                if dep_key is None or dep_key not in handles:
                    level = logging.DEBUG if section in _OPTIONAL_SECTIONS else logging.WARNING
                    logger.log(level, "unable to resolve %s (%s) required by %r", dep_name, section, key)
                    continue
                builder.add_edge(handle, handles[dep_key], kind)

    graph = builder.build()
    logger.debug("parsed %s: %d packages, %d edges", path, len(graph), len(graph.edges))
    return graph
