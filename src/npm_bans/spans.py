"""Synthesized lockfile text with one span per resolved package.

Nothing in a user's configuration names most packages in the graph, so
diagnostics about a package are anchored to a line of this synthetic text
instead: ``<name> <version> <source-or-manifest-dir>``.
"""

from __future__ import annotations

from .diag import FileId, Label
from .graph import NodeId, ResolvedGraph
from .models.spanned import Span


class SpanIndex:
    """Byte spans into the synthesized text, indexed by node id."""

    __slots__ = ("_spans",)

    def __init__(self, spans: list[Span]) -> None:
        self._spans = tuple(spans)

    @classmethod
    def build(cls, graph: ResolvedGraph) -> tuple[SpanIndex, str]:
        lines: list[str] = []
        spans: list[Span] = []
        offset = 0
        for _, package in graph.nodes():
            line = f"{package.name} {package.version} {package.location}"
            size = len(line.encode("utf-8"))
            spans.append(Span(offset, offset + size))
            lines.append(line + "\n")
            offset += size + 1

        return cls(spans), "".join(lines)

    def __getitem__(self, node_id: NodeId) -> Span:
        return self._spans[node_id]

    def __len__(self) -> int:
        return len(self._spans)

    def label_for(self, file_id: FileId, node_id: NodeId, message: str = "") -> Label:
        return Label(file_id=file_id, span=self._spans[node_id], message=message)
