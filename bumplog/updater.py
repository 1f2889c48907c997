"""Changelog updates for dependency bumps.

For each package, bumps are sorted into three buckets against the target
section's Changed entries:

- up to date: an entry already names the dependency and its new version
- stale: an entry names the dependency with an older version
- absent: no entry names the dependency at all

Stale entries are patched in the raw file text, so unrelated content is
not reformatted. Absent entries are then added through the changelog
parser, which re-reads the patched file first.
"""

from __future__ import annotations

import sys
from collections.abc import Mapping
from pathlib import Path
from typing import TextIO

from .changelog import ChangelogError, parse_changelog
from .matcher import (
    find_matching_entry,
    find_referencing_entry,
    format_entry,
    patch_entry,
)
from .models import DependencyChange, PackageChangeSet
from .shell import plural
from .validator import CHANGE_CATEGORY, changelog_path


def _patch_stale_entries(content: str, stale: list[tuple[str, str]]) -> str:
    for entry, patched in stale:
        content = content.replace(entry, patched, 1)
    return content


def _insertion_order(absent: list[DependencyChange]) -> list[DependencyChange]:
    """Order new entries for insertion.

    The changelog prepends each new entry to its category, so entries are
    issued in reverse: direct bumps first, breaking peer bumps last. The
    resulting document lists breaking bumps on top and keeps each group
    in diff order.
    """
    direct = [change for change in absent if not change.is_breaking]
    peer = [change for change in absent if change.is_breaking]
    return [*reversed(direct), *reversed(peer)]


def _summary(package: str, updated: int, added: int) -> str:
    if updated and added:
        return f"✅ {package}: Updated {updated} and added {added} changelog entries"
    if updated:
        return (
            f"✅ {package}: Updated {updated} existing "
            f"{plural(updated, 'entry', 'entries')}"
        )
    return f"✅ {package}: Added {added} changelog {plural(added, 'entry', 'entries')}"


def update_package(
    change_set: PackageChangeSet,
    path: Path,
    *,
    repo_url: str,
    pr_number: str | None = None,
    stdout: TextIO | None = None,
) -> bool:
    """Bring one package's changelog in line with its dependency bumps.

    Args:
        change_set: The package's bumps.
        path: Path to the package's CHANGELOG.md (must exist).
        repo_url: Repository HTTPS URL for PR links.
        pr_number: PR number for new references; XXXXX when omitted.
        stdout: Stream for the status message. Defaults to sys.stdout.

    Returns:
        True if any entry was patched or added.

    Raises:
        ChangelogError: If the changelog cannot be parsed, or the release
            section for the package's new version is missing.
        UnicodeDecodeError: If the file is not valid UTF-8.
        OSError: If the file cannot be read or written.
    """
    stdout = stdout or sys.stdout
    section = change_set.target_section
    content = path.read_text()
    changelog = parse_changelog(
        content, repo_url=repo_url, tag_prefix=change_set.tag_prefix
    )
    entries = changelog.get_changes(section).get(CHANGE_CATEGORY, [])

    # (entry as written, patched entry)
    stale: list[tuple[str, str]] = []
    absent: list[DependencyChange] = []
    for change in change_set.dependency_changes:
        if find_matching_entry(entries, change) is not None:
            continue
        existing = find_referencing_entry(entries, change.dependency)
        if existing is None:
            absent.append(change)
            continue
        patched = patch_entry(existing, change, pr_number, repo_url)
        if patched != existing:
            stale.append((existing, patched))

    if not stale and not absent:
        print(f"✅ {change_set.package}: All entries already exist", file=stdout)
        return False

    if stale:
        path.write_text(_patch_stale_entries(content, stale))
        if absent:
            # Insert against what's on disk now, not the pre-patch document
            changelog = parse_changelog(
                path.read_text(),
                repo_url=repo_url,
                tag_prefix=change_set.tag_prefix,
            )

    if absent:
        for change in _insertion_order(absent):
            changelog.add_change(
                category=CHANGE_CATEGORY,
                description=format_entry(change, pr_number, repo_url),
                version=section.version,
            )
        path.write_text(changelog.to_string())

    print(_summary(change_set.package, len(stale), len(absent)), file=stdout)
    return True


def update_changelogs(
    changes: Mapping[str, PackageChangeSet],
    *,
    project_root: Path,
    repo_url: str,
    pr_number: str | None = None,
    packages_dir: str = "packages",
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
) -> int:
    """Add or patch changelog entries for every package with bumps.

    A package without a changelog is skipped with a warning. Errors while
    reading, parsing or writing one package's changelog are reported and
    do not stop the others.

    Returns:
        Number of changelogs that were changed.
    """
    stdout = stdout or sys.stdout
    stderr = stderr or sys.stderr
    updated_count = 0

    for package, change_set in changes.items():
        path = changelog_path(project_root, package, packages_dir)
        if not path.exists():
            print(f"⚠️  No CHANGELOG.md found for {package} at {path}", file=stderr)
            continue

        try:
            changed = update_package(
                change_set,
                path,
                repo_url=repo_url,
                pr_number=pr_number,
                stdout=stdout,
            )
        except (ChangelogError, UnicodeDecodeError, OSError) as exc:
            print(f"⚠️  Error updating CHANGELOG.md for {package}: {exc}", file=stderr)
            continue

        if changed:
            updated_count += 1

    return updated_count
