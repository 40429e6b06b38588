"""Bans configuration: raw user lists and their validated form."""

from __future__ import annotations

import bisect
import logging
from collections.abc import Sequence
from dataclasses import dataclass, field
from enum import Enum

from ..diag import Diag, Diagnostic, FileId, Label
from ..graph import Package
from ..models.package_id import PackageId, TreeSkip
from ..models.spanned import Spanned

logger = logging.getLogger(__name__)


class ConfigError(RuntimeError):
    """Raised when the bans configuration cannot be loaded or is invalid."""


class ConfigValidationError(ConfigError):
    """Raised when validation finds conflicting entries; carries every diag found."""

    def __init__(self, diagnostics: list[Diag]) -> None:
        self.diagnostics = diagnostics
        noun = "entry" if len(diagnostics) == 1 else "entries"
        super().__init__(f"{len(diagnostics)} conflicting {noun} in the bans configuration")


class LintLevel(str, Enum):
    ALLOW = "allow"
    WARN = "warn"
    DENY = "deny"


class GraphHighlight(str, Enum):
    # Highlights the path to a duplicate dependency with the fewest number
    # of total edges, which tends to make it the best candidate for removing
    SIMPLEST_PATH = "simplest-path"
    # Highlights the path to the duplicate dependency with the lowest version
    LOWEST_VERSION = "lowest-version"
    ALL = "all"

    def simplest(self) -> bool:
        return self in (GraphHighlight.SIMPLEST_PATH, GraphHighlight.ALL)

    def lowest_version(self) -> bool:
        return self in (GraphHighlight.LOWEST_VERSION, GraphHighlight.ALL)


SpannedId = Spanned[PackageId]


@dataclass
class RawConfig:
    """Bans configuration exactly as the user wrote it: unsorted and unchecked."""

    # How to handle multiple versions of the same package
    multiple_versions: LintLevel = LintLevel.WARN
    # How the duplicate graphs are highlighted
    highlight: GraphHighlight = GraphHighlight.ALL
    # The packages that will cause us to emit failures
    deny: list[SpannedId] = field(default_factory=list)
    # If specified, means only the listed packages are allowed
    allow: list[SpannedId] = field(default_factory=list)
    # If specified, disregards the package completely
    skip: list[SpannedId] = field(default_factory=list)
    # If specified, disregards the package's transitive dependencies
    # down to a certain depth
    skip_tree: list[Spanned[TreeSkip]] = field(default_factory=list)

    def validate(self, file_id: FileId) -> ValidConfig:
        """Sort the package lists and check them against each other.

        Raises:
            ConfigValidationError: with one diag per conflicting pair, after
                all pairs have been checked.
        """
        denied = sorted(self.deny)
        allowed = sorted(self.allow)
        skipped = sorted(self.skip)

        diagnostics: list[Diag] = []

        def add_diag(first: tuple[SpannedId, str], second: tuple[SpannedId, str]) -> None:
            flabel = Label(file_id, first[0].span, f"marked as `{first[1]}`")
            slabel = Label(file_id, second[0].span, f"marked as `{second[1]}`")

            # Put the one that occurs last as the primary label to make it clear
            # that the first one was "ok" until we noticed this other one
            if flabel.span.start > slabel.span.start:
                earlier, later = (slabel, second[1]), (flabel, first[1])
            else:
                earlier, later = (flabel, first[1]), (slabel, second[1])

            diag = Diagnostic.error(
                f"a package was specified in both `{earlier[1]}` and `{later[1]}`",
                later[0],
            ).with_secondary_labels([earlier[0]])
            diagnostics.append(Diag.new(diag))

        passes = (
            (denied, "deny", allowed, "allow"),
            (denied, "deny", skipped, "skip"),
            (allowed, "allow", skipped, "skip"),
        )
        for left, left_kind, right, right_kind in passes:
            for entry in left:
                hit = _search(right, entry)
                if hit is not None:
                    add_diag((entry, left_kind), (hit, right_kind))

        if diagnostics:
            logger.info("bans configuration has %d conflicting entries", len(diagnostics))
            raise ConfigValidationError(diagnostics)

        logger.debug(
            "validated bans configuration: %d denied, %d allowed, %d skipped, %d tree skipped",
            len(denied),
            len(allowed),
            len(skipped),
            len(self.skip_tree),
        )
        return ValidConfig(
            file_id=file_id,
            multiple_versions=self.multiple_versions,
            highlight=self.highlight,
            denied=tuple(denied),
            allowed=tuple(allowed),
            skipped=tuple(skipped),
            tree_skipped=tuple(self.skip_tree),
        )


def _search(entries: Sequence[SpannedId], needle: SpannedId) -> SpannedId | None:
    i = bisect.bisect_left(entries, needle)
    if i < len(entries) and entries[i] == needle:
        return entries[i]
    return None


def _find_matching(entries: Sequence[SpannedId], package: Package) -> SpannedId | None:
    i = bisect.bisect_left(entries, package.name, key=lambda s: s.value.name)
    while i < len(entries) and entries[i].value.name == package.name:
        if entries[i].value.version.matches(package.version):
            return entries[i]
        i += 1
    return None


@dataclass(frozen=True)
class ValidConfig:
    """Validated bans configuration; only produced by :meth:`RawConfig.validate`.

    ``denied``, ``allowed`` and ``skipped`` are sorted and free of conflicts
    with each other. ``tree_skipped`` keeps the order it was declared in.
    """

    file_id: FileId
    multiple_versions: LintLevel
    highlight: GraphHighlight
    denied: tuple[SpannedId, ...]
    allowed: tuple[SpannedId, ...]
    skipped: tuple[SpannedId, ...]
    tree_skipped: tuple[Spanned[TreeSkip], ...]

    def is_denied(self, package: Package) -> SpannedId | None:
        """Return the deny entry matching ``package``, if any."""
        return _find_matching(self.denied, package)

    def is_allowed(self, package: Package) -> SpannedId | None:
        return _find_matching(self.allowed, package)

    def is_skipped(self, package: Package) -> SpannedId | None:
        return _find_matching(self.skipped, package)
