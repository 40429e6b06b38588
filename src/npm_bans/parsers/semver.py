"""Minimal semver range handling built atop packaging.version.

Supported expressions:
- any version ("*" or an empty string)
- exact versions (e.g., "1.2.3", "=1.2.3", "==1.2.3")
- caret ranges ^x.y.z → >=x.y.z,<x+1.0.0 (^0.y.z → <0.y+1.0, ^0.0.z → <0.0.z+1)
- tilde ranges ~x.y.z → >=x.y.z,<x.y+1.0
- basic comparator sets split by spaces or commas, e.g., ">=1.0.0 <2.0.0"

Pre-releases follow semver rather than PEP 440 ordering: "2.0.0-rc.1" only
satisfies a range with a pre-release comparator on the same 2.0.0 release.

This is containment only; no attempt is made to intersect or simplify ranges.
"""

from __future__ import annotations

from dataclasses import dataclass

from packaging.version import InvalidVersion, Version

# Longest operators first so ">=" is not read as ">".
_OPERATORS = (">=", "<=", "==", ">", "<", "=", "^", "~")


class VersionReqError(ValueError):
    """Raised when a version requirement expression cannot be parsed."""


def _parse_version(v: str) -> Version:
    try:
        return Version(v)
    except InvalidVersion as exc:
        raise VersionReqError(f"Invalid version: {v!r}") from exc


def _release(v: Version) -> tuple[int, ...]:
    return (v.release + (0, 0, 0))[:3]


def _next_major(v: Version) -> Version:
    return Version(f"{v.major + 1}.0.0")


def _next_minor(v: Version) -> Version:
    return Version(f"{v.major}.{v.minor + 1}.0")


def _next_patch(v: Version) -> Version:
    return Version(f"{v.major}.{v.minor}.{v.micro + 1}")


@dataclass(frozen=True, order=True)
class Comparator:
    """A single ``<op><version>`` term of a requirement."""

    op: str
    version: Version

    def matches(self, v: Version) -> bool:
        base = self.version
        if self.op == "=":
            return v == base
        if self.op == ">":
            return v > base
        if self.op == ">=":
            return v >= base
        if self.op == "<":
            return v < base
        if self.op == "<=":
            return v <= base
        if self.op == "~":
            return base <= v < _next_minor(base)
        # caret
        if base.major > 0:
            upper = _next_major(base)
        elif base.minor > 0:
            upper = _next_minor(base)
        else:
            upper = _next_patch(base)
        return base <= v < upper

    def __str__(self) -> str:
        return f"{self.op}{self.version}"

    @classmethod
    def parse(cls, token: str) -> Comparator:
        for op in _OPERATORS:
            if token.startswith(op):
                rest = token[len(op):].strip()
                if not rest:
                    raise VersionReqError(f"Missing version after operator {op!r}")
                return cls(op="=" if op == "==" else op, version=_parse_version(rest))
        return cls(op="=", version=_parse_version(token))


@dataclass(frozen=True, order=True)
class VersionReq:
    """An ordered set of comparators; the empty set matches any version."""

    comparators: tuple[Comparator, ...] = ()

    @classmethod
    def any(cls) -> VersionReq:
        return cls()

    @property
    def is_any(self) -> bool:
        return not self.comparators

    @classmethod
    def parse(cls, expr: str) -> VersionReq:
        expr = expr.strip()
        if expr in ("", "*"):
            return cls.any()

        tokens = expr.replace(",", " ").split()
        comparators: list[Comparator] = []
        pending_op = ""
        for token in tokens:
            # ">= 1.0.0" splits the operator from its version
            if token in _OPERATORS:
                pending_op = token
                continue
            comparators.append(Comparator.parse(pending_op + token))
            pending_op = ""
        if pending_op:
            raise VersionReqError(f"Missing version after operator {pending_op!r} in {expr!r}")
        return cls(comparators=tuple(comparators))

    def matches(self, version: str | Version) -> bool:
        if self.is_any:
            return True
        if isinstance(version, str):
            try:
                version = Version(version)
            except InvalidVersion:
                return False
        if not all(c.matches(version) for c in self.comparators):
            return False
        if version.is_prerelease:
            # Pre-releases only satisfy ranges that opt into pre-releases of
            # the same major.minor.patch, e.g. ">=2.0.0-rc.1".
            return any(
                c.version.is_prerelease and _release(c.version) == _release(version)
                for c in self.comparators
            )
        return True

    def __str__(self) -> str:
        if self.is_any:
            return "*"
        return " ".join(str(c) for c in self.comparators)


def satisfies(installed: str, expr: str) -> bool:
    return VersionReq.parse(expr).matches(installed)
