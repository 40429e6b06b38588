"""Report aggregation and schema-friendly output."""

from __future__ import annotations

from collections.abc import Iterable
from typing import Any

from .diag import Diag, Files, Severity


def aggregate(diags: Iterable[Diag], files: Files | None = None) -> dict[str, Any]:
    """Aggregate diags into a single JSON-friendly report.

    When ``files`` is given, every label also carries the file name and the
    1-based line/column its span starts at.
    """
    diags = list(diags)
    errors = sum(1 for d in diags if d.diag.severity in (Severity.ERROR, Severity.BUG))
    warnings = sum(1 for d in diags if d.diag.severity is Severity.WARNING)

    report: dict[str, Any] = {
        "version": "1",
        "hasFindings": bool(diags),
        "diagnostics": [d.to_dict(files) for d in diags],
        "totals": {
            "diagnostics": len(diags),
            "errors": errors,
            "warnings": warnings,
        },
    }

    return report
