"""Inverted dependency trees: how a package is pulled into the graph.

This is a simplified take on what ``npm explain`` / ``cargo tree -i`` show.
We only care about the inverted form, ie, not what the dependencies of a
package are, but rather which consumers pull it in, all the way up to the
roots of the graph.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass

from .graph import Edge, NodeId, ResolvedGraph
from .models.package_id import PackageId

logger = logging.getLogger(__name__)

DWN = "│"
TEE = "├"
ELL = "└"
RGT = "─"

REVISIT_MARKER = " (*)"


class GraphLookupError(LookupError):
    """Raised when the queried package has no node in the graph."""


@dataclass(frozen=True)
class _Frame:
    node_id: NodeId
    # Empty for the root and for normal dependencies.
    kind: str
    # One entry per ancestor level: does that level still have siblings to print?
    levels: tuple[bool, ...]


class Grapher:
    """Render provenance trees for packages of a single graph snapshot."""

    def __init__(self, graph: ResolvedGraph) -> None:
        self._graph = graph

    def write_graph(self, target: PackageId) -> str:
        node_id = self._graph.node_for(target)
        if node_id is None:
            logger.debug("no node in the graph matches %s", target)
            raise GraphLookupError(f"unable to find node for {target}")
        return self.write_node(node_id)

    def write_node(self, node_id: NodeId) -> str:
        out: list[str] = []
        visited: set[NodeId] = set()
        # Children are pushed in reverse so they pop in sorted order, which
        # yields the same pre-order as a recursive walk.
        stack = [_Frame(node_id, "", ())]

        while stack:
            frame = stack.pop()
            new = frame.node_id not in visited
            visited.add(frame.node_id)
            self._write_line(frame, new, out)

            if not new:
                continue

            parents = self._parents(frame.node_id)
            last = len(parents) - 1
            for i in range(last, -1, -1):
                edge = parents[i]
                stack.append(_Frame(edge.source, edge.kind.label, frame.levels + (i < last,)))

        return "".join(out)

    def _parents(self, node_id: NodeId) -> list[Edge]:
        edges = self._graph.incoming(node_id)
        # Edges are stored in insertion order but we want consistent output ordering
        edges.sort(key=lambda e: (self._graph[e.source].sort_key, e.kind.value))
        return edges

    def _write_line(self, frame: _Frame, new: bool, out: list[str]) -> None:
        if frame.levels:
            *rest, last_continues = frame.levels
            for continues in rest:
                out.append(f"{DWN if continues else ' '}   ")
            out.append(f"{TEE if last_continues else ELL}{RGT}{RGT} ")

        package = self._graph[frame.node_id]
        if frame.kind:
            out.append(f"({frame.kind}) ")
        out.append(f"{package.name} v{package.version}")
        if not new:
            out.append(REVISIT_MARKER)
        out.append("\n")
