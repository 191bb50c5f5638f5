#!/usr/bin/env python3
"""Tests for bundle_validation_common.py - frontmatter scanner, report model, schema loading."""

import json
from pathlib import Path

import pytest

from bundle_validation_common import (
    DEFAULT_SCHEMA,
    EXIT_FAILURE,
    EXIT_OK,
    NAME_PATTERN,
    SchemaError,
    ValidationReport,
    load_schema,
    parse_frontmatter,
)


class TestParseFrontmatter:
    """Tests for the two-state frontmatter scanner."""

    def test_simple_block(self) -> None:
        """Key/value lines between the delimiters are captured."""
        content = "---\nname: my-skill\ndescription: Does things\n---\n# Body\n"
        assert parse_frontmatter(content) == {"name": "my-skill", "description": "Does things"}

    def test_values_are_trimmed(self) -> None:
        """Surrounding whitespace is removed from values."""
        assert parse_frontmatter("---\nname:    spaced   \n---\n") == {"name": "spaced"}

    def test_crlf_line_endings(self) -> None:
        """Windows line endings are normalized before scanning."""
        content = "---\r\nname: win\r\ndescription: crlf\r\n---\r\nbody\r\n"
        assert parse_frontmatter(content) == {"name": "win", "description": "crlf"}

    def test_must_start_with_delimiter(self) -> None:
        """A document not starting with a '---' line has no frontmatter."""
        assert parse_frontmatter("# Title\n---\nname: x\n---\n") is None

    def test_leading_blank_line_is_not_frontmatter(self) -> None:
        """The opening delimiter must be the very first line."""
        assert parse_frontmatter("\n---\nname: x\n---\n") is None

    def test_opening_delimiter_must_be_exact(self) -> None:
        """Trailing characters on the opening line do not count as a delimiter."""
        assert parse_frontmatter("--- \nname: x\n---\n") is None
        assert parse_frontmatter("----\nname: x\n---\n") is None

    def test_unclosed_block(self) -> None:
        """Without a closing delimiter there is no frontmatter."""
        assert parse_frontmatter("---\nname: x\ndescription: y\n") is None

    def test_empty_document(self) -> None:
        assert parse_frontmatter("") is None

    def test_empty_block(self) -> None:
        """An empty but closed block yields an empty mapping."""
        assert parse_frontmatter("---\n---\nbody\n") == {}

    def test_closing_delimiter_at_end_of_file(self) -> None:
        """A closing delimiter without a trailing newline still closes the block."""
        assert parse_frontmatter("---\nname: x\n---") == {"name": "x"}

    def test_non_matching_lines_are_ignored(self) -> None:
        """Continuation lines, comments and blank lines are skipped, not errors."""
        content = (
            "---\n"
            "name: folded\n"
            "description: >\n"
            "  first continuation line\n"
            "  second continuation line\n"
            "# a comment\n"
            "\n"
            "version: 1.0.0\n"
            "---\n"
        )
        assert parse_frontmatter(content) == {"name": "folded", "description": ">", "version": "1.0.0"}

    def test_nested_fields_are_invisible(self) -> None:
        """Indented keys under a parent key are not captured."""
        content = "---\nname: x\nmetadata:\n  tags: a, b\n---\n"
        assert parse_frontmatter(content) == {"name": "x"}

    def test_key_without_value_is_skipped(self) -> None:
        """A bare 'key:' line has no value and is not captured."""
        assert parse_frontmatter("---\nname:\ndescription: d\n---\n") == {"description": "d"}

    def test_hyphenated_keys(self) -> None:
        assert parse_frontmatter("---\nallowed-tools: Read\n---\n") == {"allowed-tools": "Read"}

    def test_key_must_start_with_word_character(self) -> None:
        assert parse_frontmatter("---\n-name: x\n---\n") == {}

    def test_value_keeps_inner_colons(self) -> None:
        """Only the first colon separates key from value."""
        assert parse_frontmatter("---\ndescription: Use when: tests fail\n---\n") == {
            "description": "Use when: tests fail"
        }

    def test_later_duplicate_wins(self) -> None:
        assert parse_frontmatter("---\nname: first\nname: second\n---\n") == {"name": "second"}

    def test_stops_at_first_closing_delimiter(self) -> None:
        """Key/value lines in the body after the block are not captured."""
        content = "---\nname: x\n---\ndescription: in body\n---\n"
        assert parse_frontmatter(content) == {"name": "x"}


class TestNamePattern:
    """Tests for the plugin name pattern."""

    @pytest.mark.parametrize("name", ["a", "my-plugin", "ts-rules.v2", "plugin2", "0"])
    def test_accepts(self, name: str) -> None:
        assert NAME_PATTERN.fullmatch(name)

    @pytest.mark.parametrize("name", ["", "My_Plugin", "-lead", "trail-", "trail.", "has space", "UPPER"])
    def test_rejects(self, name: str) -> None:
        assert not NAME_PATTERN.fullmatch(name)


class TestValidationReport:
    """Tests for result accumulation and exit codes."""

    def test_empty_report_passes(self) -> None:
        report = ValidationReport()
        assert not report.has_errors
        assert report.exit_code == EXIT_OK

    def test_warnings_do_not_fail(self) -> None:
        report = ValidationReport()
        report.warning("manifest", "Logo file not found: logo.png")
        report.info("skills", "Found 2 skill entries")
        assert report.exit_code == EXIT_OK
        assert [r.message for r in report.warnings] == ["Logo file not found: logo.png"]

    def test_errors_fail(self) -> None:
        report = ValidationReport()
        report.error("skills", "skills/ directory is missing")
        assert report.has_errors
        assert report.exit_code == EXIT_FAILURE

    def test_results_keep_recording_order(self) -> None:
        report = ValidationReport()
        report.error("rules", "second")
        report.error("manifest", "first")
        assert [r.message for r in report.errors] == ["second", "first"]

    def test_to_json_is_structured(self) -> None:
        report = ValidationReport(plugin_name="demo")
        report.entry_counts["skills"] = 1
        report.error("skills", "Skill a is missing SKILL.md", "skills/a")
        report.warning("manifest", "Logo file not found: x.png")

        data = json.loads(report.to_json())
        assert data["plugin"] == "demo"
        assert data["manifest_loaded"] is False
        assert data["passed"] is False
        assert data["exit_code"] == EXIT_FAILURE
        assert data["counts"] == {"ERROR": 1, "WARNING": 1, "INFO": 0}
        assert data["entries"] == {"skills": 1}
        assert data["results"][0] == {
            "level": "ERROR",
            "category": "skills",
            "message": "Skill a is missing SKILL.md",
            "file": "skills/a",
        }
        assert "file" not in data["results"][1]


class TestLoadSchema:
    """Tests for YAML schema overrides."""

    def test_none_returns_defaults(self) -> None:
        assert load_schema(None) is DEFAULT_SCHEMA

    def test_empty_file_returns_defaults(self, tmp_path: Path) -> None:
        schema_file = tmp_path / "schema.yaml"
        schema_file.write_text("")
        assert load_schema(schema_file) == DEFAULT_SCHEMA

    def test_overrides_required_keys(self, tmp_path: Path) -> None:
        schema_file = tmp_path / "schema.yaml"
        schema_file.write_text(
            "manifest:\n  required: [name, version]\nrules:\n  required: [description, globs]\n"
        )
        schema = load_schema(schema_file)

        assert schema.manifest_required == ("name", "version")
        kinds = {kind.directory: kind for kind in schema.entry_kinds}
        assert kinds["rules"].required_keys == ("description", "globs")
        assert kinds["skills"].required_keys == ("name", "description")
        assert [kind.directory for kind in schema.entry_kinds] == ["skills", "rules", "commands", "agents"]

    def test_section_without_required_keeps_defaults(self, tmp_path: Path) -> None:
        schema_file = tmp_path / "schema.yaml"
        schema_file.write_text("agents: {}\ncommands:\n")
        assert load_schema(schema_file) == DEFAULT_SCHEMA

    def test_unknown_section(self, tmp_path: Path) -> None:
        schema_file = tmp_path / "schema.yaml"
        schema_file.write_text("hooks:\n  required: [name]\n")
        with pytest.raises(SchemaError, match="Unknown schema section 'hooks'"):
            load_schema(schema_file)

    def test_required_must_be_string_list(self, tmp_path: Path) -> None:
        schema_file = tmp_path / "schema.yaml"
        schema_file.write_text("skills:\n  required: name\n")
        with pytest.raises(SchemaError, match="skills.required"):
            load_schema(schema_file)

    def test_not_a_mapping(self, tmp_path: Path) -> None:
        schema_file = tmp_path / "schema.yaml"
        schema_file.write_text("- name\n- description\n")
        with pytest.raises(SchemaError, match="must contain a YAML mapping"):
            load_schema(schema_file)

    def test_invalid_yaml(self, tmp_path: Path) -> None:
        schema_file = tmp_path / "schema.yaml"
        schema_file.write_text("skills: [unclosed\n")
        with pytest.raises(SchemaError, match="Invalid YAML"):
            load_schema(schema_file)
