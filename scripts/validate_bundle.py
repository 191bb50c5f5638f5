#!/usr/bin/env python3
"""
Cursor Plugin Bundle Validator

Checks that a plugin bundle is well-formed before it is packaged or published:
- .cursor-plugin/plugin.json exists, is a JSON object, and carries the
  required fields with a well-formed name
- the optional logo file exists
- skills/<name>/SKILL.md, rules/*.md|*.mdc, commands/*.md and agents/*.md
  carry frontmatter with their required keys

Usage:
    python scripts/validate_bundle.py
    python scripts/validate_bundle.py path/to/bundle
    python scripts/validate_bundle.py --json
    python scripts/validate_bundle.py --schema bundle-schema.yaml

Exit codes:
    0 - No errors (warnings are allowed)
    1 - Errors found, or validation could not run
"""

from __future__ import annotations

import argparse
import json
import sys
from pathlib import Path
from typing import Any

from bundle_validation_common import (
    COLORS,
    DEFAULT_SCHEMA,
    EXIT_FAILURE,
    NAME_PATTERN,
    BundleSchema,
    EntryKind,
    ValidationReport,
    colorize,
    load_schema,
    parse_frontmatter,
)


def _is_blank(value: Any) -> bool:
    # null, "", false and 0 all count as missing
    if value is None or value is False or value == "":
        return True
    return isinstance(value, (int, float)) and value == 0


def load_manifest(bundle_root: Path, schema: BundleSchema = DEFAULT_SCHEMA) -> dict[str, Any] | None:
    """Read the manifest, or None if it is missing, unreadable, or not a JSON object."""
    manifest_path = bundle_root / schema.manifest_path
    if not manifest_path.is_file():
        return None

    try:
        manifest = json.loads(manifest_path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError, json.JSONDecodeError):
        return None

    if not isinstance(manifest, dict):
        return None
    return manifest


def validate_manifest(
    bundle_root: Path, report: ValidationReport, schema: BundleSchema = DEFAULT_SCHEMA
) -> dict[str, Any] | None:
    """Validate plugin.json.

    Args:
        bundle_root: Path to the bundle directory
        report: ValidationReport to add results to
        schema: Required fields and manifest location

    Returns:
        The manifest dict if it could be loaded, None otherwise. None means
        no further checks can run.
    """
    manifest = load_manifest(bundle_root, schema)
    if manifest is None:
        report.error("manifest", f"{schema.manifest_path} is missing or invalid", schema.manifest_path)
        return None

    report.manifest_loaded = True

    name = manifest.get("name")
    if name is not None:
        report.plugin_name = str(name)
        if not isinstance(name, str) or not NAME_PATTERN.fullmatch(name):
            report.error("manifest", f'plugin.json name "{name}" doesn\'t match pattern', schema.manifest_path)

    for fld in schema.manifest_required:
        if _is_blank(manifest.get(fld)):
            report.error("manifest", f"plugin.json missing required field: {fld}", schema.manifest_path)

    logo = manifest.get("logo")
    # Leading separators are dropped so "/assets/logo.png" still resolves under the root
    if logo and not (isinstance(logo, str) and (bundle_root / logo.lstrip("/\\")).exists()):
        report.warning("manifest", f"Logo file not found: {logo}", str(logo))

    return manifest


def _list_entries(directory: Path, kind: EntryKind) -> list[Path]:
    """List a kind's entries, sorted by name."""
    entries = sorted(directory.iterdir(), key=lambda p: p.name)
    if not kind.extensions:
        return entries
    return [p for p in entries if p.name.endswith(kind.extensions) and p.is_file()]


def validate_entry(entry: Path, kind: EntryKind, report: ValidationReport) -> None:
    """Validate one skill/rule/command/agent entry."""
    category = kind.directory
    if kind.document:
        document = entry / kind.document
        subject = f"{entry.name}/{kind.document}"
        if not document.is_file():
            report.error(category, f"{kind.label} {entry.name} is missing {kind.document}", f"{category}/{entry.name}")
            return
    else:
        document = entry
        subject = entry.name

    rel_path = f"{category}/{subject}"
    frontmatter = parse_frontmatter(document.read_text(encoding="utf-8"))

    if frontmatter is None:
        if not kind.bare_is_missing_keys:
            verb = "is missing" if kind.document else "missing"
            report.error(category, f"{kind.label} {subject} {verb} frontmatter", rel_path)
            return
        frontmatter = {}

    for key in kind.required_keys:
        if not frontmatter.get(key):
            report.error(category, f"{kind.label} {subject} missing {key} in frontmatter", rel_path)


def validate_entries(bundle_root: Path, kind: EntryKind, report: ValidationReport) -> None:
    """Validate every entry in one bundle subdirectory."""
    directory = bundle_root / kind.directory
    if not directory.is_dir():
        if kind.required_directory:
            report.error(kind.directory, f"{kind.directory}/ directory is missing", f"{kind.directory}/")
        return

    entries = _list_entries(directory, kind)
    for entry in entries:
        validate_entry(entry, kind, report)

    report.entry_counts[kind.directory] = len(entries)
    report.info(kind.directory, f"Found {len(entries)} {kind.label.lower()} entr{'y' if len(entries) == 1 else 'ies'}")


def validate_bundle(bundle_root: Path, schema: BundleSchema = DEFAULT_SCHEMA) -> ValidationReport:
    """Run every bundle check and return the report.

    A missing or invalid manifest stops the run after a single error.
    """
    report = ValidationReport()

    if validate_manifest(bundle_root, report, schema) is None:
        return report

    for kind in schema.entry_kinds:
        validate_entries(bundle_root, kind, report)

    return report


# =============================================================================
# Output Functions
# =============================================================================


def print_results(report: ValidationReport, verbose: bool = False) -> None:
    """Print validation results in human-readable format."""
    if report.manifest_loaded:
        name = report.plugin_name if report.plugin_name is not None else "(unnamed)"
        print(f"{COLORS['BOLD']}Validating plugin: {name}{COLORS['RESET']}\n")
        for directory, count in report.entry_counts.items():
            print(f"  {directory.capitalize()}: {count} found")
        print()

    if verbose:
        infos = report.by_level("INFO")
        if infos:
            print(f"Info ({len(infos)}):")
            for r in infos:
                print(f"  {colorize(f'· {r.message}', 'INFO')}")
            print()

    warnings = report.warnings
    if warnings:
        print(f"Warnings ({len(warnings)}):")
        for r in warnings:
            print(f"  {colorize(f'⚠ {r.message}', 'WARNING')}")
        print()

    errors = report.errors
    if errors:
        print(f"Errors ({len(errors)}):")
        for r in errors:
            print(f"  {colorize(f'✗ {r.message}', 'ERROR')}")
        print()
        return

    print(colorize("✓ Plugin validation passed", "PASSED"))


def print_json(report: ValidationReport) -> None:
    """Print validation results as JSON."""
    print(report.to_json())


# =============================================================================
# Main
# =============================================================================


def main(argv: list[str] | None = None) -> int:
    """Main entry point."""
    parser = argparse.ArgumentParser(description="Validate a Cursor plugin bundle")
    parser.add_argument("path", nargs="?", help="Bundle root path (default: current directory)")
    parser.add_argument("--verbose", "-v", action="store_true", help="Also show informational results")
    parser.add_argument("--json", action="store_true", help="Output as JSON")
    parser.add_argument("--schema", metavar="FILE", help="YAML file overriding required manifest/frontmatter keys")
    args = parser.parse_args(argv)

    bundle_root = Path(args.path) if args.path else Path.cwd()
    if not bundle_root.is_dir():
        print(f"Error: {bundle_root} is not a directory", file=sys.stderr)
        return EXIT_FAILURE

    try:
        schema = load_schema(Path(args.schema) if args.schema else None)
        report = validate_bundle(bundle_root, schema)

        if args.json:
            print_json(report)
        else:
            print_results(report, args.verbose)

    except Exception as exc:
        print(f"Validation failed: {exc}", file=sys.stderr)
        return EXIT_FAILURE

    return report.exit_code


if __name__ == "__main__":
    sys.exit(main())
