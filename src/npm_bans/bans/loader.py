"""Configuration loader for the bans policy.

Reads the policy from a YAML (or JSON) file, checks its structure against
``schemas/bans.schema.json`` and records the byte span of every package entry
so that validation diagnostics can point back at the text the user wrote.

Entries are either a mapping (``{name, version}``; ``depth`` is also accepted
under ``skip-tree``) or a shorthand string such as ``"lodash@<4.17.21"``.
A top-level ``bans`` table is used when present, so the policy can live next
to unrelated sections; otherwise the whole document is the policy.
"""

from __future__ import annotations

import json
import logging
import os
from collections.abc import Iterable
from pathlib import Path
from typing import Any

import yaml
from jsonschema import Draft202012Validator

from ..diag import FileId, Files
from ..models.package_id import PackageId, TreeSkip
from ..models.spanned import Span, Spanned
from ..parsers.semver import VersionReqError
from .config import ConfigError, GraphHighlight, LintLevel, RawConfig

logger = logging.getLogger(__name__)

DEFAULT_CONFIG_PATH = Path("bans.yaml")
CONFIG_PATH_ENV_VAR = "NPM_BANS_CONFIG"
SCHEMA_PATH = Path(__file__).resolve().parents[1] / "schemas" / "bans.schema.json"


def _resolve_config_path(path: Path | str | None = None) -> Path:
    """Resolve the configuration file path.

    Priority:
    1. Explicit path argument
    2. NPM_BANS_CONFIG environment variable
    3. Default path (bans.yaml in the working directory)
    """
    if path is not None:
        return Path(path)

    env_path = os.environ.get(CONFIG_PATH_ENV_VAR)
    if env_path:
        return Path(env_path)

    return DEFAULT_CONFIG_PATH


def _format_errors(errors: Iterable) -> str:
    messages = []
    for error in errors:
        pointer = "/".join(str(p) for p in error.path)
        messages.append(f"- {pointer or '<root>'}: {error.message}")
    return "\n".join(messages)


def _validate_structure(section: Any) -> None:
    schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
    validator = Draft202012Validator(schema)
    errors = sorted(validator.iter_errors(section), key=lambda e: [str(p) for p in e.path])
    if errors:
        raise ConfigError("Invalid bans configuration:\n" + _format_errors(errors))


def _mapping_value(node: yaml.Node, key: str) -> yaml.Node | None:
    """Return the value node for ``key``; the last one wins like safe_load."""
    found = None
    if isinstance(node, yaml.MappingNode):
        for key_node, value_node in node.value:
            if isinstance(key_node, yaml.ScalarNode) and key_node.value == key:
                found = value_node
    return found


def _end_index(node: yaml.Node) -> int:
    # Block collections end at the next token, which may follow comment lines.
    if isinstance(node, yaml.CollectionNode) and not node.flow_style and node.value:
        last = node.value[-1]
        return _end_index(last[1] if isinstance(node, yaml.MappingNode) else last)
    return node.end_mark.index


def _span(text: str, node: yaml.Node) -> Span:
    start = node.start_mark.index
    end = _end_index(node)
    while True:
        while end > start and text[end - 1].isspace():
            end -= 1
        line_start = text.rfind("\n", start, end) + 1
        if line_start > start and text[line_start:end].lstrip().startswith("#"):
            end = line_start
            continue
        break
    return Span(len(text[:start].encode("utf-8")), len(text[:end].encode("utf-8")))


def _package_id(entry: str | dict[str, Any]) -> PackageId:
    if isinstance(entry, str):
        return PackageId.parse(entry)
    return PackageId.parse(f"{entry['name']}@{entry.get('version', '*')}")


def _spanned_entries(
    text: str, section: dict[str, Any], node: yaml.Node, key: str
) -> list[tuple[Any, Span]]:
    entries = section.get(key) or []
    if not entries:
        return []
    seq = _mapping_value(node, key)
    if not isinstance(seq, yaml.SequenceNode) or len(seq.value) != len(entries):
        raise ConfigError(f"Unable to locate the entries of '{key}' in the source")
    return [(entry, _span(text, item)) for entry, item in zip(entries, seq.value)]


def parse_config(text: str, files: Files, name: str = "<memory>") -> tuple[RawConfig, FileId]:
    """Parse policy text, registering it in ``files`` for later diagnostics.

    Raises:
        ConfigError: If the text is not valid YAML, does not match the schema,
            or contains an invalid version requirement.
    """
    try:
        data = yaml.safe_load(text)
        root = yaml.compose(text, Loader=yaml.SafeLoader)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in configuration file: {exc}") from exc

    file_id = files.add(name, text)
    if data is None:
        logger.debug("%s is empty, using the default bans configuration", name)
        return RawConfig(), file_id

    if not isinstance(data, dict):
        raise ConfigError("Configuration must be a mapping")

    section: Any = data
    node = root
    if "bans" in data:
        section = data["bans"] or {}
        node = _mapping_value(root, "bans")

    _validate_structure(section)

    current_key = ""
    current_span: Span | None = None
    try:
        lists: dict[str, list[Spanned[PackageId]]] = {}
        for key in ("deny", "allow", "skip"):
            lists[key] = []
            current_key = key
            for entry, span in _spanned_entries(text, section, node, key):
                current_span = span
                lists[key].append(Spanned(_package_id(entry), span))

        current_key = "skip-tree"
        skip_tree: list[Spanned[TreeSkip]] = []
        for entry, span in _spanned_entries(text, section, node, "skip-tree"):
            current_span = span
            depth = entry.get("depth") if isinstance(entry, dict) else None
            skip_tree.append(Spanned(TreeSkip(id=_package_id(entry), depth=depth), span))
    except VersionReqError as exc:
        where = ""
        if current_span is not None:
            line, column = files.location(file_id, current_span.start)
            where = f" at {name}:{line}:{column}"
        raise ConfigError(f"Invalid version requirement in '{current_key}'{where}: {exc}") from exc

    config = RawConfig(
        multiple_versions=LintLevel(section.get("multiple-versions", LintLevel.WARN.value)),
        highlight=GraphHighlight(section.get("highlight", GraphHighlight.ALL.value)),
        deny=lists["deny"],
        allow=lists["allow"],
        skip=lists["skip"],
        skip_tree=skip_tree,
    )
    logger.debug(
        "loaded bans configuration from %s: %d deny, %d allow, %d skip, %d skip-tree",
        name,
        len(config.deny),
        len(config.allow),
        len(config.skip),
        len(config.skip_tree),
    )
    return config, file_id


def load_config(files: Files, path: Path | str | None = None) -> tuple[RawConfig, FileId]:
    """Load the bans policy from disk.

    Args:
        files: Registry the configuration text is added to.
        path: Optional path to the config file. If not provided, uses the
            NPM_BANS_CONFIG env var or falls back to bans.yaml.

    Raises:
        ConfigError: If the file cannot be read or contains invalid data.
    """
    config_path = _resolve_config_path(path)

    if not config_path.exists():
        raise ConfigError(f"Configuration file not found: {config_path}")

    try:
        text = config_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"Failed to read configuration file: {exc}") from exc

    return parse_config(text, files, name=str(config_path))
