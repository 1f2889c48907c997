"""Keep a Changelog parsing and serialization.

Per-package changelogs in the monorepo look like:

    # Changelog
    All notable changes to this project will be documented in this file.

    ## [Unreleased]

    ### Changed

    - Bump `@scope/dep` from `^1.0.0` to `^2.0.0` ([#12](https://github.com/org/repo/pull/12))

    ## [1.0.0]

    ### Added

    - Initial release

    [Unreleased]: https://github.com/org/repo/compare/@scope/pkg@1.0.0...HEAD
    [1.0.0]: https://github.com/org/repo/releases/tag/@scope/pkg@1.0.0

Entries are kept as raw text (everything after "- ", continuation lines
joined with newlines) so callers can locate them verbatim in the file.
Link reference definitions are regenerated on serialization from the
repository URL and the package's tag prefix.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from .models import ChangelogSection
from .versions import parse_version

TITLE = "# Changelog"
CATEGORIES = (
    "Uncategorized",
    "Added",
    "Changed",
    "Deprecated",
    "Removed",
    "Fixed",
    "Security",
)

UNRELEASED_RE = re.compile(r"^## \[Unreleased\]\s*$")
RELEASE_RE = re.compile(r"^## \[([^\]]+)\](.*)$")
CATEGORY_RE = re.compile(r"^### (.+?)\s*$")
LINK_DEFINITION_RE = re.compile(r"^\[[^\]]+\]:\s*\S+")


class ChangelogError(ValueError):
    """Raised when a changelog is malformed or an edit cannot be applied."""


@dataclass
class Release:
    """A released version's section. suffix holds anything after "]"."""

    version: str
    suffix: str = ""
    changes: dict[str, list[str]] = field(default_factory=dict)


class Changelog:
    """A parsed changelog document.

    Owned by whoever parsed it; edits through add_change() only become
    visible on disk once to_string() output is written back.
    """

    def __init__(
        self,
        *,
        repo_url: str,
        tag_prefix: str,
        description: str = "",
        unreleased: dict[str, list[str]] | None = None,
        releases: list[Release] | None = None,
    ) -> None:
        self.repo_url = repo_url.rstrip("/")
        self.tag_prefix = tag_prefix
        self.description = description
        self._unreleased: dict[str, list[str]] = unreleased or {}
        # Newest first, in document order
        self._releases: list[Release] = releases or []

    def get_releases(self) -> list[str]:
        return [release.version for release in self._releases]

    def get_unreleased_changes(self) -> dict[str, list[str]]:
        return {cat: list(entries) for cat, entries in self._unreleased.items()}

    def get_release_changes(self, version: str) -> dict[str, list[str]]:
        """Changes filed under a released version; empty if it doesn't exist."""
        release = self._find_release(version)
        if release is None:
            return {}
        return {cat: list(entries) for cat, entries in release.changes.items()}

    def get_changes(self, section: ChangelogSection) -> dict[str, list[str]]:
        if section.version is None:
            return self.get_unreleased_changes()
        return self.get_release_changes(section.version)

    def add_change(
        self, *, category: str, description: str, version: str | None = None
    ) -> None:
        """Prepend an entry to a category of Unreleased or of a release.

        Raises:
            ChangelogError: If the category is unknown or the release
                version has no section in this changelog.
        """
        if category not in CATEGORIES:
            raise ChangelogError(f"Invalid change category: '{category}'")
        if version is None:
            changes = self._unreleased
        else:
            release = self._find_release(version)
            if release is None:
                raise ChangelogError(
                    f"Specified release version does not exist: '{version}'"
                )
            changes = release.changes
        changes.setdefault(category, []).insert(0, description)

    def to_string(self) -> str:
        head = f"{TITLE}\n{self.description}" if self.description else TITLE
        blocks = [head, _stringify_section("## [Unreleased]", self._unreleased)]
        for release in self._releases:
            header = f"## [{release.version}]{release.suffix}"
            blocks.append(_stringify_section(header, release.changes))
        blocks.append("\n".join(self._link_definitions()))
        return "\n\n".join(blocks) + "\n"

    def _find_release(self, version: str) -> Release | None:
        for release in self._releases:
            if release.version == version:
                return release
        return None

    def _link_definitions(self) -> list[str]:
        repo, prefix = self.repo_url, self.tag_prefix
        versions = self.get_releases()
        if versions:
            links = [f"[Unreleased]: {repo}/compare/{prefix}{versions[0]}...HEAD"]
        else:
            links = [f"[Unreleased]: {repo}/"]
        for newer, older in zip(versions, versions[1:]):
            links.append(f"[{newer}]: {repo}/compare/{prefix}{older}...{prefix}{newer}")
        if versions:
            oldest = versions[-1]
            links.append(f"[{oldest}]: {repo}/releases/tag/{prefix}{oldest}")
        return links


def _stringify_section(header: str, changes: dict[str, list[str]]) -> str:
    lines = [header]
    for category in CATEGORIES:
        entries = changes.get(category)
        if entries:
            lines.extend(["", f"### {category}", ""])
            lines.extend(f"- {entry}" for entry in entries)
    return "\n".join(lines)


def parse_changelog(content: str, *, repo_url: str, tag_prefix: str) -> Changelog:
    """Parse changelog text into a Changelog.

    Args:
        content: Full CHANGELOG.md text.
        repo_url: Repository HTTPS URL, used to regenerate link definitions.
        tag_prefix: Prefix of this package's release tags, e.g. "@scope/pkg@".

    Raises:
        ChangelogError: If the title or Unreleased header is missing, a
            release header has an invalid or duplicate version, a category
            is unknown, or an entry appears outside any category.
    """
    lines = content.splitlines()
    if not lines or lines[0].rstrip() != TITLE:
        raise ChangelogError(f"Failed to find title '{TITLE}'")

    index = 1
    description: list[str] = []
    while index < len(lines) and not lines[index].startswith("## "):
        description.append(lines[index])
        index += 1

    unreleased: dict[str, list[str]] | None = None
    releases: list[Release] = []
    section: dict[str, list[str]] | None = None
    entries: list[str] | None = None
    # Index of the entry that continuation lines attach to, if any
    open_entry: int | None = None

    for line_number, line in enumerate(lines[index:], start=index + 1):
        if not line.strip():
            open_entry = None
            continue

        if UNRELEASED_RE.match(line):
            if unreleased is not None or releases:
                raise ChangelogError(
                    f"Unexpected Unreleased header on line {line_number}"
                )
            section = unreleased = {}
            entries = open_entry = None
            continue

        release_header = RELEASE_RE.match(line)
        if release_header:
            if unreleased is None:
                raise ChangelogError("Failed to find Unreleased header")
            version, suffix = release_header.groups()
            try:
                parse_version(version)
            except ValueError as exc:
                raise ChangelogError(
                    f"Invalid release version '{version}' on line {line_number}"
                ) from exc
            if any(release.version == version for release in releases):
                raise ChangelogError(f"Duplicate release version '{version}'")
            release = Release(version=version, suffix=suffix.rstrip())
            releases.append(release)
            section = release.changes
            entries = open_entry = None
            continue

        if line.startswith("#"):
            category_header = CATEGORY_RE.match(line)
            if not category_header or section is None:
                raise ChangelogError(f"Unrecognized header on line {line_number}")
            category = category_header.group(1)
            if category not in CATEGORIES:
                raise ChangelogError(
                    f"Invalid change category '{category}' on line {line_number}"
                )
            entries = section.setdefault(category, [])
            open_entry = None
            continue

        if LINK_DEFINITION_RE.match(line):
            entries = open_entry = None
            continue

        if line.startswith("- "):
            if entries is None:
                raise ChangelogError(
                    f"Entry outside of a change category on line {line_number}"
                )
            entries.append(line[2:])
            open_entry = len(entries) - 1
            continue

        if entries is not None and open_entry is not None:
            entries[open_entry] += "\n" + line
            continue

        raise ChangelogError(f"Unrecognized line {line_number}: {line!r}")

    if unreleased is None:
        raise ChangelogError("Failed to find Unreleased header")

    return Changelog(
        repo_url=repo_url,
        tag_prefix=tag_prefix,
        description="\n".join(description).strip("\n"),
        unreleased=unreleased,
        releases=releases,
    )
