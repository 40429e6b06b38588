from pathlib import Path

import pytest

from npm_bans.bans import (
    ConfigError,
    ConfigValidationError,
    GraphHighlight,
    LintLevel,
    load_config,
    parse_config,
)
from npm_bans.bans.loader import CONFIG_PATH_ENV_VAR
from npm_bans.diag import Files
from npm_bans.models import PackageId

BANS_YAML = """\
licenses:
  unrelated: true
bans:
  multiple-versions: deny
  highlight: simplest-path
  deny:
    - name: specific-versiond
      version: "=0.1.9"
    - all-versionsd
  allow:
    - name: all-versionsa
    - specific-versiona@<0.1.1
  skip:
    - rand@=0.6.5
  skip-tree:
    - name: blah
      depth: 20
"""


def test_parse_full_config() -> None:
    files = Files()
    raw, file_id = parse_config(BANS_YAML, files, name="bans.yaml")

    assert files.name(file_id) == "bans.yaml"
    assert raw.multiple_versions is LintLevel.DENY
    assert raw.highlight is GraphHighlight.SIMPLEST_PATH
    assert [e.value for e in raw.deny] == [
        PackageId.parse("specific-versiond@=0.1.9"),
        PackageId("all-versionsd"),
    ]
    assert [e.value for e in raw.allow] == [
        PackageId("all-versionsa"),
        PackageId.parse("specific-versiona@<0.1.1"),
    ]
    assert [e.value for e in raw.skip] == [PackageId.parse("rand@=0.6.5")]
    (tree_skip,) = raw.skip_tree
    assert tree_skip.value.id == PackageId("blah")
    assert tree_skip.value.depth == 20

    valid = raw.validate(file_id)
    assert [e.value for e in valid.allowed] == [
        PackageId("all-versionsa"),
        PackageId.parse("specific-versiona@<0.1.1"),
    ]
    assert [e.value for e in valid.denied] == [
        PackageId("all-versionsd"),
        PackageId.parse("specific-versiond@=0.1.9"),
    ]


def test_spans_cover_the_entry_text() -> None:
    files = Files()
    raw, file_id = parse_config(BANS_YAML, files)

    assert files.snippet(file_id, raw.deny[1].span) == "all-versionsd"
    assert files.snippet(file_id, raw.skip[0].span) == "rand@=0.6.5"

    mapping = files.snippet(file_id, raw.deny[0].span)
    assert mapping.startswith("name: specific-versiond")
    assert mapping.endswith('version: "=0.1.9"')

    assert files.location(file_id, raw.allow[1].span.start) == (12, 7)


def test_conflict_diagnostic_points_into_the_file() -> None:
    text = "deny:\n  - foo\nallow:\n  - foo@*\n"
    files = Files()
    raw, file_id = parse_config(text, files)

    with pytest.raises(ConfigValidationError) as excinfo:
        raw.validate(file_id)

    (diag,) = excinfo.value.diagnostics
    primary = diag.diag.primary_label
    assert files.location(file_id, primary.span.start) == (4, 5)
    assert files.snippet(file_id, primary.span) == "foo@*"


def test_spans_stop_before_comments() -> None:
    text = (
        "deny:\n"
        "  - name: foo\n"
        '    version: "=1.0.0"\n'
        "  # keep bar until the migration lands\n"
        "  - bar\n"
        "allow:\n"
        "  - name: foo\n"
        '    version: "=1.0.0"\n'
        "  # trailing note\n"
    )
    files = Files()
    raw, file_id = parse_config(text, files)

    assert files.snippet(file_id, raw.deny[0].span) == 'name: foo\n    version: "=1.0.0"'
    assert files.snippet(file_id, raw.deny[1].span) == "bar"
    assert files.snippet(file_id, raw.allow[0].span) == 'name: foo\n    version: "=1.0.0"'

    with pytest.raises(ConfigValidationError) as excinfo:
        raw.validate(file_id)

    (diag,) = excinfo.value.diagnostics
    primary = diag.diag.primary_label
    assert files.location(file_id, primary.span.start) == (7, 5)
    assert "#" not in files.snippet(file_id, primary.span)


def test_json_documents_are_accepted() -> None:
    files = Files()
    raw, _ = parse_config('{"deny": [{"name": "foo", "version": "^1.0.0"}]}', files)
    assert [e.value for e in raw.deny] == [PackageId.parse("foo@^1.0.0")]


def test_empty_document_uses_defaults() -> None:
    raw, _ = parse_config("", Files())
    assert raw.multiple_versions is LintLevel.WARN
    assert raw.deny == [] and raw.skip_tree == []


def test_unknown_fields_are_rejected() -> None:
    with pytest.raises(ConfigError) as excinfo:
        parse_config("bans:\n  denyy:\n    - foo\n", Files())
    assert "denyy" in str(excinfo.value)


def test_bad_lint_level_is_rejected() -> None:
    with pytest.raises(ConfigError) as excinfo:
        parse_config("multiple-versions: sometimes\n", Files())
    assert "multiple-versions" in str(excinfo.value)


def test_invalid_version_requirement() -> None:
    with pytest.raises(ConfigError) as excinfo:
        parse_config("deny:\n  - name: foo\n    version: '^banana'\n", Files())
    message = str(excinfo.value)
    assert "'deny'" in message
    assert "<memory>:2:5" in message


def test_invalid_yaml() -> None:
    with pytest.raises(ConfigError):
        parse_config("deny: [foo\n", Files())


def test_load_config_from_env(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> None:
    path = tmp_path / "policy.yaml"
    path.write_text("skip:\n  - ms@=2.0.0\n", encoding="utf-8")
    monkeypatch.setenv(CONFIG_PATH_ENV_VAR, str(path))

    files = Files()
    raw, file_id = load_config(files)

    assert files.name(file_id) == str(path)
    assert [e.value for e in raw.skip] == [PackageId.parse("ms@=2.0.0")]


def test_missing_file(tmp_path: Path) -> None:
    with pytest.raises(ConfigError, match="not found"):
        load_config(Files(), tmp_path / "nope.yaml")
