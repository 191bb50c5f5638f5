#!/usr/bin/env python3
"""
Cursor Plugin Bundle Validation - Common Module

Shared validation infrastructure for the bundle validator.
This module contains:
- Type definitions (Level, ValidationResult, ValidationReport)
- The bundle schema (manifest fields, entry kinds) and its YAML override loader
- The frontmatter scanner used for every Markdown entry
- Terminal color helpers

The validator script imports from this module so the report model and the
frontmatter rules stay in one place.
"""

from __future__ import annotations

import json
import re
from dataclasses import dataclass, field, replace
from pathlib import Path
from typing import Any, Literal

import yaml

# =============================================================================
# Type Definitions
# =============================================================================

# Validation result levels
# - ERROR: missing required structure, blocks validation (non-zero exit code)
# - WARNING: optional but recommended structure is missing, never blocks
# - INFO: progress notes, shown in verbose mode only
Level = Literal["ERROR", "WARNING", "INFO"]

# =============================================================================
# Exit Codes
# =============================================================================

EXIT_OK = 0  # No errors (warnings allowed)
EXIT_FAILURE = 1  # Errors recorded, or the run itself failed

# =============================================================================
# Bundle Layout Constants
# =============================================================================

# Manifest location relative to the bundle root
MANIFEST_PATH = ".cursor-plugin/plugin.json"

# Fields every manifest must carry
MANIFEST_REQUIRED_FIELDS = ("name", "description", "version", "author", "license")

# Plugin name: lowercase alphanumerics, interior dots/hyphens, no edge separators
NAME_PATTERN = re.compile(r"^[a-z0-9](?:[a-z0-9.-]*[a-z0-9])?$")

# =============================================================================
# Frontmatter Constants
# =============================================================================

FRONTMATTER_DELIMITER = "---"

# `key: value` on a single line. Keys start with a word character and may
# contain hyphens. Indented (nested) keys never match.
FRONTMATTER_FIELD_PATTERN = re.compile(r"(\w[\w-]*):\s*(.+)", re.ASCII)

# =============================================================================
# Data Classes
# =============================================================================


@dataclass
class ValidationResult:
    """Single validation record.

    Attributes:
        level: Severity level (ERROR, WARNING, INFO)
        category: Area of the bundle the record belongs to
            (manifest, skills, rules, commands, agents)
        message: Human-readable description of the result
        file: Optional bundle-relative path related to the result
    """

    level: Level
    category: str
    message: str
    file: str | None = None

    def to_dict(self) -> dict[str, str]:
        """Convert to dictionary for JSON serialization."""
        result = {"level": self.level, "category": self.category, "message": self.message}
        if self.file is not None:
            result["file"] = self.file
        return result


@dataclass
class ValidationReport:
    """Run-scoped collection of validation records.

    Records are appended in the order checks run and never removed, so the
    rendered report is stable for an unchanged bundle.
    """

    results: list[ValidationResult] = field(default_factory=list)
    entry_counts: dict[str, int] = field(default_factory=dict)
    manifest_loaded: bool = False
    plugin_name: str | None = None

    def add(self, level: Level, category: str, message: str, file: str | None = None) -> None:
        """Add a validation result."""
        self.results.append(ValidationResult(level, category, message, file))

    def error(self, category: str, message: str, file: str | None = None) -> None:
        """Add an error — blocks validation."""
        self.add("ERROR", category, message, file)

    def warning(self, category: str, message: str, file: str | None = None) -> None:
        """Add a warning — always reported, never blocks validation."""
        self.add("WARNING", category, message, file)

    def info(self, category: str, message: str, file: str | None = None) -> None:
        """Add an info message."""
        self.add("INFO", category, message, file)

    def by_level(self, level: Level) -> list[ValidationResult]:
        """Get all results of a specific level, in recording order."""
        return [r for r in self.results if r.level == level]

    @property
    def errors(self) -> list[ValidationResult]:
        return self.by_level("ERROR")

    @property
    def warnings(self) -> list[ValidationResult]:
        return self.by_level("WARNING")

    @property
    def has_errors(self) -> bool:
        """Check if any ERROR results exist."""
        return any(r.level == "ERROR" for r in self.results)

    @property
    def exit_code(self) -> int:
        """Get exit code. WARNING and INFO never affect it."""
        return EXIT_FAILURE if self.has_errors else EXIT_OK

    def count_by_level(self) -> dict[str, int]:
        """Get count of results by level."""
        counts: dict[str, int] = {"ERROR": 0, "WARNING": 0, "INFO": 0}
        for r in self.results:
            counts[r.level] += 1
        return counts

    def to_dict(self) -> dict[str, object]:
        """Convert to dictionary for JSON serialization."""
        return {
            "plugin": self.plugin_name,
            "manifest_loaded": self.manifest_loaded,
            "passed": not self.has_errors,
            "exit_code": self.exit_code,
            "counts": self.count_by_level(),
            "entries": dict(self.entry_counts),
            "results": [r.to_dict() for r in self.results],
        }

    def to_json(self, indent: int = 2) -> str:
        """Convert report to JSON string.

        Args:
            indent: JSON indentation level (default 2)

        Returns:
            JSON string representation of the report
        """
        return json.dumps(self.to_dict(), indent=indent, ensure_ascii=False)


@dataclass(frozen=True)
class EntryKind:
    """One kind of documentation entry living in its own bundle subdirectory.

    Attributes:
        label: Singular name used in messages ("Skill", "Rule", ...)
        directory: Subdirectory name relative to the bundle root
        required_directory: Whether a missing subdirectory is an error
        extensions: File suffixes that count as entries; empty means every
            directory entry counts and the document lives inside it
        document: File name inside a directory-style entry
        required_keys: Frontmatter keys that must carry a non-empty value
        bare_is_missing_keys: Report a document without frontmatter as missing
            each required key instead of as missing frontmatter
    """

    label: str
    directory: str
    required_directory: bool = False
    extensions: tuple[str, ...] = ()
    document: str | None = None
    required_keys: tuple[str, ...] = ("name", "description")
    bare_is_missing_keys: bool = False


@dataclass(frozen=True)
class BundleSchema:
    """Everything the validator requires of a bundle."""

    manifest_path: str = MANIFEST_PATH
    manifest_required: tuple[str, ...] = MANIFEST_REQUIRED_FIELDS
    entry_kinds: tuple[EntryKind, ...] = ()


DEFAULT_ENTRY_KINDS = (
    EntryKind(label="Skill", directory="skills", required_directory=True, document="SKILL.md"),
    EntryKind(
        label="Rule",
        directory="rules",
        extensions=(".md", ".mdc"),
        required_keys=("description",),
        bare_is_missing_keys=True,
    ),
    EntryKind(label="Command", directory="commands", extensions=(".md",)),
    EntryKind(label="Agent", directory="agents", extensions=(".md",)),
)

DEFAULT_SCHEMA = BundleSchema(entry_kinds=DEFAULT_ENTRY_KINDS)


# =============================================================================
# Schema Overrides
# =============================================================================


class SchemaError(ValueError):
    """Raised when a schema override file cannot be applied."""


def _required_list(section: str, value: Any) -> tuple[str, ...]:
    if not isinstance(value, list) or not all(isinstance(v, str) and v.strip() for v in value):
        raise SchemaError(f"'{section}.required' must be a list of non-empty strings")
    return tuple(value)


def load_schema(schema_path: Path | None = None, base: BundleSchema = DEFAULT_SCHEMA) -> BundleSchema:
    """Load required-key overrides from a YAML file.

    The file is a mapping whose top-level keys are ``manifest`` or an entry
    directory name (``skills``, ``rules``, ``commands``, ``agents``), each
    holding a ``required`` list. Anything not mentioned keeps its default.

    Args:
        schema_path: YAML file to read, or None for the defaults
        base: Schema the overrides are applied to

    Returns:
        The resulting BundleSchema

    Raises:
        SchemaError: If the file is not valid YAML or has an unexpected shape
    """
    if schema_path is None:
        return base

    try:
        data = yaml.safe_load(schema_path.read_text(encoding="utf-8"))
    except yaml.YAMLError as e:
        raise SchemaError(f"Invalid YAML in {schema_path}: {e}") from e

    if data is None:
        return base
    if not isinstance(data, dict):
        raise SchemaError(f"{schema_path} must contain a YAML mapping")

    kinds = {kind.directory: kind for kind in base.entry_kinds}
    known_sections = {"manifest", *kinds}
    for section in data:
        if section not in known_sections:
            raise SchemaError(f"Unknown schema section '{section}' (expected one of: {', '.join(sorted(known_sections))})")

    manifest_required = base.manifest_required
    for section, body in data.items():
        if body is None:
            continue
        if not isinstance(body, dict):
            raise SchemaError(f"Schema section '{section}' must be a mapping")
        if "required" not in body:
            continue
        required = _required_list(section, body["required"])
        if section == "manifest":
            manifest_required = required
        else:
            kinds[section] = replace(kinds[section], required_keys=required)

    return replace(
        base,
        manifest_required=manifest_required,
        entry_kinds=tuple(kinds[kind.directory] for kind in base.entry_kinds),
    )


# =============================================================================
# Frontmatter Scanner
# =============================================================================


def parse_frontmatter(content: str) -> dict[str, str] | None:
    """Extract the flat ``key: value`` mapping from a leading frontmatter block.

    Scans line by line in two states. Outside the block, only a first line of
    exactly ``---`` opens it. Inside the block, a line of exactly ``---``
    closes it; ``key: value`` lines are captured with the value trimmed, and
    every other line (multi-line continuations, comments, indented keys) is
    skipped. This is deliberately shallow: nested YAML is invisible here.

    Returns:
        The captured mapping, or None when the document has no complete block
    """
    lines = content.replace("\r\n", "\n").split("\n")

    inside = False
    fields: dict[str, str] = {}
    for index, line in enumerate(lines):
        if not inside:
            if index > 0 or line != FRONTMATTER_DELIMITER:
                return None
            inside = True
            continue

        if line == FRONTMATTER_DELIMITER:
            return fields

        match = FRONTMATTER_FIELD_PATTERN.fullmatch(line)
        if match is None:
            continue
        fields[match.group(1)] = match.group(2).strip()

    # Ran out of lines without a closing delimiter
    return None


# =============================================================================
# Color Formatting (for terminal output)
# =============================================================================

# ANSI color codes
COLORS = {
    "ERROR": "\033[91m",  # Red
    "WARNING": "\033[93m",  # Yellow — never blocks, always reported
    "INFO": "\033[90m",  # Gray
    "PASSED": "\033[92m",  # Green
    "RESET": "\033[0m",  # Reset
    "BOLD": "\033[1m",  # Bold
}


def colorize(text: str, level: str) -> str:
    """Apply color to text based on level."""
    color = COLORS.get(level, "")
    return f"{color}{text}{COLORS['RESET']}"
