"""Changelog validation for dependency bumps.

Checks, package by package, whether each detected bump already has a
changelog entry for its exact new version. Read-only: nothing is written.
"""

from __future__ import annotations

import sys
from collections.abc import Mapping
from pathlib import Path
from typing import TextIO

from .changelog import ChangelogError, parse_changelog
from .matcher import entry_matches
from .models import DependencyChange, PackageChangeSet, ValidationResult

CHANGELOG_FILENAME = "CHANGELOG.md"
CHANGE_CATEGORY = "Changed"


def changelog_path(
    project_root: Path, package: str, packages_dir: str = "packages"
) -> Path:
    return project_root / packages_dir / package / CHANGELOG_FILENAME


def validate_package(
    change_set: PackageChangeSet, path: Path, repo_url: str
) -> ValidationResult:
    """Validate one package's changelog against its dependency bumps.

    A missing file, an unreadable file and an unparseable file all mean
    every bump is reported missing. Entries are looked up in the Changed
    category of the Unreleased section, or of the release section when
    the package's own version changed in the same diff.
    """
    all_missing = ValidationResult(
        package=change_set.package,
        has_changelog_file=False,
        has_target_section=False,
        missing_entries=change_set.dependency_changes,
    )
    if not path.exists():
        return all_missing

    try:
        changelog = parse_changelog(
            path.read_text(),
            repo_url=repo_url,
            tag_prefix=change_set.tag_prefix,
        )
    except (ChangelogError, UnicodeDecodeError, OSError):
        return all_missing.model_copy(update={"has_changelog_file": True})

    section = changelog.get_changes(change_set.target_section)
    entries = section.get(CHANGE_CATEGORY, [])

    matched: list[str] = []
    missing: list[DependencyChange] = []
    for change in change_set.dependency_changes:
        if any(entry_matches(entry, change) for entry in entries):
            matched.append(change.dependency)
        else:
            missing.append(change)

    return ValidationResult(
        package=change_set.package,
        has_changelog_file=True,
        has_target_section=bool(section),
        missing_entries=tuple(missing),
        matched_dependency_names=tuple(matched),
    )


def validate_changelogs(
    changes: Mapping[str, PackageChangeSet],
    project_root: Path,
    repo_url: str,
    *,
    packages_dir: str = "packages",
    stderr: TextIO | None = None,
) -> list[ValidationResult]:
    """Validate the changelog of every package with dependency bumps.

    Args:
        changes: Map of package directory name → PackageChangeSet.
        project_root: Root of the monorepo.
        repo_url: Repository HTTPS URL, for the changelog parser.
        packages_dir: Directory holding workspace packages.
        stderr: Stream for warnings. Defaults to sys.stderr.

    Returns:
        One ValidationResult per package, in input order.
    """
    stderr = stderr or sys.stderr
    results: list[ValidationResult] = []
    for package, change_set in changes.items():
        path = changelog_path(project_root, package, packages_dir)
        if not path.exists():
            print(f"⚠️  No CHANGELOG.md found for {package}", file=stderr)
        results.append(validate_package(change_set, path, repo_url))
    return results
