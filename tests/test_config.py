from collections import Counter
from pathlib import Path

import pytest

from npm_bans.bans import ConfigValidationError, GraphHighlight, LintLevel, RawConfig
from npm_bans.graph import Package
from npm_bans.models import PackageId, Span, Spanned, TreeSkip


def _entry(spec: str, start: int) -> Spanned[PackageId]:
    return Spanned(PackageId.parse(spec), Span(start, start + len(spec)))


def _package(name: str, version: str) -> Package:
    return Package(name, version, Path("/p/node_modules") / name / "package.json")


def test_deny_and_allow_conflict_points_at_later_entry() -> None:
    raw = RawConfig(deny=[_entry("foo", 10)], allow=[_entry("foo", 50)])

    with pytest.raises(ConfigValidationError) as excinfo:
        raw.validate(file_id=0)

    (diag,) = excinfo.value.diagnostics
    assert diag.diag.message == "a package was specified in both `deny` and `allow`"
    assert diag.diag.primary_label.span.start == 50
    assert diag.diag.primary_label.message == "marked as `allow`"
    (secondary,) = diag.diag.secondary_labels
    assert secondary.span.start == 10
    assert secondary.message == "marked as `deny`"


def test_earlier_category_is_named_first() -> None:
    raw = RawConfig(allow=[_entry("foo", 5)], deny=[_entry("foo", 40)])

    with pytest.raises(ConfigValidationError) as excinfo:
        raw.validate(file_id=0)

    (diag,) = excinfo.value.diagnostics
    assert diag.diag.message == "a package was specified in both `allow` and `deny`"
    assert diag.diag.primary_label.span.start == 40
    assert diag.diag.primary_label.message == "marked as `deny`"


def test_every_conflict_is_reported() -> None:
    raw = RawConfig(
        deny=[_entry("foo", 0), _entry("bar", 10)],
        allow=[_entry("foo", 20)],
        skip=[_entry("foo", 30), _entry("bar", 40)],
    )

    with pytest.raises(ConfigValidationError) as excinfo:
        raw.validate(file_id=3)

    diags = excinfo.value.diagnostics
    assert [d.diag.message for d in diags] == [
        "a package was specified in both `deny` and `allow`",
        "a package was specified in both `deny` and `skip`",
        "a package was specified in both `deny` and `skip`",
        "a package was specified in both `allow` and `skip`",
    ]
    assert [d.diag.primary_label.span.start for d in diags] == [20, 40, 30, 30]
    assert all(d.diag.primary_label.file_id == 3 for d in diags)
    assert "4 conflicting entries" in str(excinfo.value)


def test_different_version_requirements_do_not_conflict() -> None:
    raw = RawConfig(deny=[_entry("foo@=1.0.0", 0)], allow=[_entry("foo@=2.0.0", 20)])
    valid = raw.validate(file_id=0)
    assert [e.value for e in valid.denied] == [PackageId.parse("foo@=1.0.0")]


def test_valid_config_is_sorted_and_complete() -> None:
    raw = RawConfig(
        multiple_versions=LintLevel.DENY,
        highlight=GraphHighlight.SIMPLEST_PATH,
        deny=[_entry("zlib", 0), _entry("ansi@<2", 10), _entry("ansi", 20)],
        allow=[_entry("react", 30), _entry("left-pad", 40)],
        skip=[_entry("rand@=0.6.5", 50)],
        skip_tree=[Spanned(TreeSkip(PackageId("zz"), 2), Span(60, 62)), Spanned(TreeSkip(PackageId("aa")), Span(70, 72))],
    )

    valid = raw.validate(file_id=1)

    assert valid.file_id == 1
    assert valid.multiple_versions is LintLevel.DENY
    assert valid.highlight is GraphHighlight.SIMPLEST_PATH
    for entries in (valid.denied, valid.allowed, valid.skipped):
        assert list(entries) == sorted(entries)
    assert [e.value for e in valid.denied] == [
        PackageId("ansi"),
        PackageId.parse("ansi@<2"),
        PackageId("zlib"),
    ]

    supplied = Counter(e.value for e in raw.deny + raw.allow + raw.skip)
    kept = Counter(e.value for e in valid.denied + valid.allowed + valid.skipped)
    assert supplied == kept
    # tree skips keep their declaration order
    assert [e.value.id.name for e in valid.tree_skipped] == ["zz", "aa"]


def test_tree_skips_are_not_checked_against_other_lists() -> None:
    raw = RawConfig(
        deny=[_entry("foo", 0)],
        skip_tree=[Spanned(TreeSkip(PackageId("foo")), Span(10, 13))],
    )
    valid = raw.validate(file_id=0)
    assert len(valid.tree_skipped) == 1


def test_lookup_helpers_match_versions() -> None:
    raw = RawConfig(
        deny=[_entry("lodash@<4.17.21", 0)],
        allow=[_entry("debug", 20)],
        skip=[_entry("ms@=2.0.0", 30), _entry("ms@=2.1.3", 40)],
    )
    valid = raw.validate(file_id=0)

    assert valid.is_denied(_package("lodash", "4.17.20")) is not None
    assert valid.is_denied(_package("lodash", "4.17.21")) is None
    assert valid.is_allowed(_package("debug", "4.3.4")) is not None
    assert valid.is_allowed(_package("ms", "2.1.3")) is None
    hit = valid.is_skipped(_package("ms", "2.1.3"))
    assert hit is not None and hit.span.start == 40


def test_defaults() -> None:
    valid = RawConfig().validate(file_id=0)
    assert valid.multiple_versions is LintLevel.WARN
    assert valid.highlight is GraphHighlight.ALL
    assert valid.denied == valid.allowed == valid.skipped == valid.tree_skipped == ()


def test_graph_highlight_predicates() -> None:
    assert GraphHighlight.ALL.simplest() and GraphHighlight.ALL.lowest_version()
    assert GraphHighlight.SIMPLEST_PATH.simplest()
    assert not GraphHighlight.SIMPLEST_PATH.lowest_version()
    assert GraphHighlight.LOWEST_VERSION.lowest_version()
    assert not GraphHighlight.LOWEST_VERSION.simplest()


def test_lookup_helpers_skip_prereleases_of_the_next_release() -> None:
    valid = RawConfig(deny=[_entry("next@<14.0.0", 0)]).validate(file_id=0)

    assert valid.is_denied(_package("next", "13.5.6")) is not None
    assert valid.is_denied(_package("next", "14.0.0-rc.1")) is None
