"""Data models for bumplog.

These Pydantic models represent the records passed between the diff
scanner, the changelog validator and the changelog updater. They are
frozen: a scan produces them once and every consumer only reads them.
"""

from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class DependencyKind(str, Enum):
    """Which manifest field a dependency bump was found in.

    DIRECT is "dependencies" and PEER is "peerDependencies".
    devDependencies are never represented; the scanner drops them before
    any record is created.
    """

    DIRECT = "direct"
    PEER = "peer"


class DependencyChange(BaseModel):
    """One detected version change of one dependency in one package manifest.

    Attributes:
        package: Directory name of the owning package (e.g. "controller-utils").
        dependency: Name of the dependency being bumped.
        kind: Manifest field the dependency lives in.
        old_version: Version range before the change, as written in the manifest.
        new_version: Version range after the change, as written in the manifest.
    """

    model_config = ConfigDict(frozen=True)

    package: str
    dependency: str
    kind: DependencyKind
    old_version: str
    new_version: str

    @property
    def is_breaking(self) -> bool:
        return self.kind is DependencyKind.PEER


class ChangelogSection(BaseModel):
    """A target section of a changelog: Unreleased, or one released version."""

    model_config = ConfigDict(frozen=True)

    version: str | None = None


class PackageChangeSet(BaseModel):
    """All dependency bumps found for a single package in one diff.

    Attributes:
        package: Directory name of the package under the packages directory.
        dependency_changes: Bumps in the order they appear in the diff.
        published_name: Public package name from its manifest. Filled in
            after scanning, since the scanner only sees diff text.
        new_version: The package's own new version, present only when its
            manifest "version" field changed in the same diff. Signals that
            entries belong under that release instead of Unreleased.
    """

    model_config = ConfigDict(frozen=True)

    package: str
    dependency_changes: tuple[DependencyChange, ...] = ()
    published_name: str | None = None
    new_version: str | None = None

    @property
    def tag_prefix(self) -> str:
        """Prefix of this package's release tags, e.g. "@scope/name@"."""
        return f"{self.published_name or self.package}@"

    @property
    def target_section(self) -> ChangelogSection:
        return ChangelogSection(version=self.new_version)


class ValidationResult(BaseModel):
    """Report on whether a package's changelog documents its bumps.

    Attributes:
        package: Directory name of the package.
        has_changelog_file: Whether CHANGELOG.md exists.
        has_target_section: Whether the Unreleased (or release) section
            exists, parses, and holds at least one category.
        missing_entries: Bumps with no entry for their exact new version.
        matched_dependency_names: Dependencies whose bump is documented.
    """

    model_config = ConfigDict(frozen=True)

    package: str
    has_changelog_file: bool
    has_target_section: bool
    missing_entries: tuple[DependencyChange, ...] = ()
    matched_dependency_names: tuple[str, ...] = ()

    @property
    def is_valid(self) -> bool:
        return (
            self.has_changelog_file
            and self.has_target_section
            and not self.missing_entries
        )


class CheckResult(BaseModel):
    """Outcome of a full check run.

    Attributes:
        changes: Map of package directory name → detected bumps.
        validation_results: One result per package in changes.
        updated_count: Number of changelogs rewritten in fix mode.
    """

    changes: dict[str, PackageChangeSet] = Field(default_factory=dict)
    validation_results: list[ValidationResult] = Field(default_factory=list)
    updated_count: int = 0

    @property
    def has_errors(self) -> bool:
        return any(not result.is_valid for result in self.validation_results)
