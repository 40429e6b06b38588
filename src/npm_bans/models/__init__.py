"""Value types shared across the bans engine."""

from __future__ import annotations

from .package_id import PackageId, TreeSkip
from .spanned import Span, Spanned

__all__ = [
    "PackageId",
    "Span",
    "Spanned",
    "TreeSkip",
]
