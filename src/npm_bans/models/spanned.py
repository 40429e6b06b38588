"""Byte spans and span-tagged values used to anchor diagnostics."""

from __future__ import annotations

from dataclasses import dataclass
from functools import total_ordering
from typing import Any, Generic, TypeVar

T = TypeVar("T")


@dataclass(frozen=True, order=True)
class Span:
    """Half-open byte range ``[start, end)`` into a source text."""

    start: int
    end: int

    def __post_init__(self) -> None:
        if self.start < 0 or self.end < self.start:
            raise ValueError(f"Invalid span: {self.start}..{self.end}")

    def __len__(self) -> int:
        return self.end - self.start

    def as_slice(self) -> slice:
        return slice(self.start, self.end)

    def to_dict(self) -> dict[str, int]:
        return {"start": self.start, "end": self.end}


@total_ordering
@dataclass(frozen=True, eq=False)
class Spanned(Generic[T]):
    """A value paired with the span it was read from.

    Equality, ordering and hashing only consider the value, so sorted lists
    of spanned values can be bisected by value.
    """

    value: T
    span: Span

    def __eq__(self, other: Any) -> bool:
        if isinstance(other, Spanned):
            return self.value == other.value
        return NotImplemented

    def __lt__(self, other: Any) -> bool:
        if isinstance(other, Spanned):
            return self.value < other.value
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self.value)
