from pathlib import Path

import pytest

from npm_bans.graph import DependencyKind, GraphBuilder, Package, ResolvedGraph

REGISTRY = "https://registry.npmjs.org"


def registry_package(name: str, version: str) -> Package:
    return Package(
        name=name,
        version=version,
        manifest_path=Path("/ws/app/node_modules") / name / "package.json",
        source=f"{REGISTRY}/{name}/-/{name}-{version}.tgz",
    )


def local_package(name: str, version: str) -> Package:
    return Package(name=name, version=version, manifest_path=Path("/ws") / name / "package.json")


@pytest.fixture
def diamond_graph() -> ResolvedGraph:
    """app -> lib@1.0.0 -> dep@2.0.0, and app -> dep@2.0.0 directly."""
    builder = GraphBuilder()
    app = builder.add_package(local_package("app", "0.1.0"))
    lib = builder.add_package(registry_package("lib", "1.0.0"))
    dep = builder.add_package(registry_package("dep", "2.0.0"))
    builder.add_edge(app, lib)
    builder.add_edge(lib, dep)
    builder.add_edge(app, dep)
    return builder.build()


@pytest.fixture
def kinds_graph() -> ResolvedGraph:
    builder = GraphBuilder()
    app = builder.add_package(local_package("app", "0.1.0"))
    tester = builder.add_package(registry_package("tester", "1.0.0"))
    bundler = builder.add_package(registry_package("bundler", "3.2.1"))
    builder.add_edge(app, tester, DependencyKind.DEV)
    builder.add_edge(app, bundler, DependencyKind.BUILD)
    builder.add_edge(tester, bundler)
    return builder.build()


@pytest.fixture
def make_registry_package():
    return registry_package


@pytest.fixture
def make_local_package():
    return local_package
