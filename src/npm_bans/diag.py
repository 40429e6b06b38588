"""Diagnostic model shared by config validation and graph inspection.

A :class:`Diagnostic` is the renderable message (severity, primary label and
secondary labels). A :class:`Diag` wraps one together with the graph nodes it
concerns, and a :class:`Pack` collects the diags raised while processing a
single package. Rendering is left to the caller; ``to_dict`` gives a
JSON-friendly shape.
"""

from __future__ import annotations

import bisect
from collections.abc import Iterable, Iterator
from dataclasses import dataclass, field, replace
from enum import Enum

from .graph import NodeId
from .models.spanned import Span

FileId = int


class Severity(str, Enum):
    BUG = "bug"
    ERROR = "error"
    WARNING = "warning"
    NOTE = "note"
    HELP = "help"


@dataclass(frozen=True)
class Label:
    """A message attached to a span of a registered file."""

    file_id: FileId
    span: Span
    message: str = ""

    def to_dict(self, files: Files | None = None) -> dict[str, object]:
        data: dict[str, object] = {
            "fileId": self.file_id,
            "span": self.span.to_dict(),
            "message": self.message,
        }
        if files is not None:
            line, column = files.location(self.file_id, self.span.start)
            data["file"] = files.name(self.file_id)
            data["line"] = line
            data["column"] = column
        return data


@dataclass(frozen=True)
class Diagnostic:
    severity: Severity
    message: str
    primary_label: Label
    secondary_labels: tuple[Label, ...] = ()

    @classmethod
    def error(cls, message: str, label: Label) -> Diagnostic:
        return cls(severity=Severity.ERROR, message=message, primary_label=label)

    @classmethod
    def warning(cls, message: str, label: Label) -> Diagnostic:
        return cls(severity=Severity.WARNING, message=message, primary_label=label)

    def with_secondary_labels(self, labels: Iterable[Label]) -> Diagnostic:
        return replace(self, secondary_labels=self.secondary_labels + tuple(labels))

    def to_dict(self, files: Files | None = None) -> dict[str, object]:
        return {
            "severity": self.severity.value,
            "message": self.message,
            "primaryLabel": self.primary_label.to_dict(files),
            "secondaryLabels": [label.to_dict(files) for label in self.secondary_labels],
        }


@dataclass
class Diag:
    """A diagnostic plus the (at most two) graph nodes it is about."""

    diag: Diagnostic
    ids: list[NodeId] = field(default_factory=list)

    def __post_init__(self) -> None:
        if len(self.ids) > 2:
            raise ValueError("A diag can be associated with at most two packages")

    @classmethod
    def new(cls, diag: Diagnostic) -> Diag:
        return cls(diag=diag)

    @classmethod
    def coerce(cls, value: Diag | Diagnostic) -> Diag:
        if isinstance(value, Diag):
            return value
        return cls.new(value)

    def to_dict(self, files: Files | None = None) -> dict[str, object]:
        data = self.diag.to_dict(files)
        data["ids"] = list(self.ids)
        return data


class Pack:
    """Ordered diags raised while processing one package.

    A pack created with :meth:`with_id` attributes the first unattributed
    diag pushed to it to that node, and only the first.
    """

    def __init__(self, default_id: NodeId | None = None) -> None:
        self._diags: list[Diag] = []
        self._default_id = default_id

    @classmethod
    def new(cls) -> Pack:
        return cls()

    @classmethod
    def with_id(cls, node_id: NodeId) -> Pack:
        return cls(default_id=node_id)

    @classmethod
    def from_diag(cls, value: Diag | Diagnostic) -> Pack:
        pack = cls()
        pack._diags.append(Diag.coerce(value))
        return pack

    @property
    def default_id(self) -> NodeId | None:
        return self._default_id

    def push(self, value: Diag | Diagnostic) -> Pack:
        diag = Diag.coerce(value)
        if not diag.ids and self._default_id is not None:
            diag.ids.append(self._default_id)
            self._default_id = None
        self._diags.append(diag)
        return self

    def is_empty(self) -> bool:
        return not self._diags

    def __len__(self) -> int:
        return len(self._diags)

    def __iter__(self) -> Iterator[Diag]:
        return iter(self._diags)

    def drain(self) -> list[Diag]:
        diags, self._diags = self._diags, []
        return diags


@dataclass(frozen=True)
class SourceFile:
    name: str
    source: str
    _encoded: bytes = field(init=False, repr=False)
    _line_starts: tuple[int, ...] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        encoded = self.source.encode("utf-8")
        starts = [0]
        starts.extend(i + 1 for i, b in enumerate(encoded) if b == 0x0A)
        object.__setattr__(self, "_encoded", encoded)
        object.__setattr__(self, "_line_starts", tuple(starts))

    def location(self, offset: int) -> tuple[int, int]:
        """Return the 1-based (line, column) of a byte offset."""
        if not 0 <= offset <= len(self._encoded):
            raise IndexError(f"Offset {offset} is outside of {self.name}")
        line = bisect.bisect_right(self._line_starts, offset) - 1
        prefix = self._encoded[self._line_starts[line]:offset]
        return line + 1, len(prefix.decode("utf-8", errors="replace")) + 1

    def snippet(self, span: Span) -> str:
        return self._encoded[span.as_slice()].decode("utf-8")


class Files:
    """Registry of source texts that labels point into."""

    def __init__(self) -> None:
        self._files: list[SourceFile] = []

    def add(self, name: str, source: str) -> FileId:
        self._files.append(SourceFile(name=name, source=source))
        return len(self._files) - 1

    def get(self, file_id: FileId) -> SourceFile:
        if not 0 <= file_id < len(self._files):
            raise KeyError(f"Unknown file id: {file_id}")
        return self._files[file_id]

    def name(self, file_id: FileId) -> str:
        return self.get(file_id).name

    def source(self, file_id: FileId) -> str:
        return self.get(file_id).source

    def location(self, file_id: FileId, offset: int) -> tuple[int, int]:
        return self.get(file_id).location(offset)

    def snippet(self, file_id: FileId, span: Span) -> str:
        return self.get(file_id).snippet(span)

    def __len__(self) -> int:
        return len(self._files)
