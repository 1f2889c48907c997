"""Dependency bump check: diff → scan → validate → report → fix.

This module orchestrates a check run:
1. Pick the starting ref (given, or the merge base with the default branch)
2. Diff every package.json between the starting ref and the target ref
3. Extract dependency bumps per package
4. Resolve each package's published name and the repository URL
5. Validate that every bump has a changelog entry and report the result
6. In fix mode, add or patch the missing entries

The check never fails part-way because of one package's changelog; each
package is reported on its own.
"""

from __future__ import annotations

import json
import sys
from collections.abc import Mapping
from pathlib import Path
from typing import TextIO

from .config import Settings
from .diff_scanner import parse_diff
from .manifest import get_repository_url, read_manifest, resolve_published_names
from .models import CheckResult, PackageChangeSet, ValidationResult
from .repo import get_current_branch, get_manifest_diff, get_merge_base
from .shell import plural, step
from .updater import update_changelogs
from .validator import validate_changelogs

PROTECTED_BRANCHES = ("main", "master")


def resolve_from_ref(
    project_root: Path, default_branch: str, stdout: TextIO, stderr: TextIO
) -> str | None:
    """Find the ref to diff from when none was given.

    Returns:
        The merge-base commit with the default branch, or None when on
        main/master or when no merge base exists.
    """
    current_branch = get_current_branch(project_root)
    print(f"\n📌 Current branch: {current_branch}", file=stdout)

    if current_branch in PROTECTED_BRANCHES:
        print(
            "⚠️  You are on the main/master branch. Please specify commits to "
            "compare or switch to a feature branch.",
            file=stdout,
        )
        return None

    try:
        merge_base = get_merge_base(default_branch, project_root)
    except RuntimeError:
        print(
            f"❌ Could not find merge base with {default_branch}. Please specify "
            "commits manually using --from, or use --default-branch to specify "
            "a different branch.",
            file=stderr,
        )
        return None

    print(
        f"📍 Comparing against merge base with {default_branch}: {merge_base[:8]}...",
        file=stdout,
    )
    return merge_base


def resolve_repository_url(project_root: Path, settings: Settings) -> str:
    """Repository URL from settings, the root manifest, or the git remote."""
    if settings.repository_url:
        return settings.repository_url.rstrip("/")
    manifest_path = project_root / "package.json"
    manifest = read_manifest(manifest_path) if manifest_path.exists() else {}
    return get_repository_url(manifest, project_root)


def changes_as_json(changes: Mapping[str, PackageChangeSet]) -> str:
    return json.dumps(
        {
            package: change_set.model_dump(mode="json", exclude_none=True)
            for package, change_set in changes.items()
        },
        indent=2,
    )


def report_validation(
    results: list[ValidationResult],
    *,
    fix: bool,
    stdout: TextIO,
    stderr: TextIO,
) -> bool:
    """Print a line per package describing its changelog state.

    Returns:
        True if any package has a problem.
    """
    has_errors = False
    for result in results:
        package = result.package
        if not result.has_changelog_file:
            print(f"❌ {package}: CHANGELOG.md not found", file=stderr)
        elif not result.has_target_section:
            print(f"❌ {package}: No [Unreleased] section found", file=stderr)
        elif result.missing_entries:
            count = len(result.missing_entries)
            print(
                f"❌ {package}: Missing {count} changelog "
                f"{plural(count, 'entry', 'entries')}:",
                file=stderr,
            )
            for change in result.missing_entries:
                print(f"   - {change.dependency}", file=stderr)
        else:
            print(f"✅ {package}: All entries present", file=stdout)
            continue
        has_errors = True

    if has_errors and not fix:
        print("\n💡 Run with --fix to automatically update changelogs", file=stderr)
    return has_errors


def check_dependency_bumps(
    project_root: Path,
    *,
    from_ref: str | None = None,
    to_ref: str = "HEAD",
    default_branch: str | None = None,
    fix: bool = False,
    pr_number: str | None = None,
    settings: Settings | None = None,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
) -> CheckResult:
    """Run the dependency bump check.

    Args:
        project_root: Root of the monorepo.
        from_ref: Ref to diff from. Defaults to the merge base of HEAD with
            the default branch.
        to_ref: Ref to diff to.
        default_branch: Overrides settings.default_branch.
        fix: Add or patch missing changelog entries.
        pr_number: PR number for new references; XXXXX placeholders when
            omitted.
        settings: Project settings. Defaults to built-in defaults.
        stdout: Stream for progress and success messages.
        stderr: Stream for warnings and errors.

    Returns:
        The detected changes, their validation results and, in fix mode,
        the number of changelogs updated. Empty when there is nothing to
        compare or nothing changed.
    """
    settings = settings or Settings()
    stdout = stdout or sys.stdout
    stderr = stderr or sys.stderr
    default_branch = default_branch or settings.default_branch

    if not from_ref:
        from_ref = resolve_from_ref(project_root, default_branch, stdout, stderr)
        if not from_ref:
            return CheckResult()

    print(
        f"\n🔍 Checking dependency changes from {from_ref[:8]} to {to_ref}...\n",
        file=stdout,
    )

    diff = get_manifest_diff(from_ref, to_ref, project_root)
    if not diff:
        print("No package.json changes found.", file=stdout)
        return CheckResult()

    changes = parse_diff(diff, settings.packages_dir)
    if not changes:
        print("No dependency version bumps found.", file=stdout)
        return CheckResult()

    changes = resolve_published_names(changes, project_root, settings.packages_dir)
    repo_url = resolve_repository_url(project_root, settings)

    step("📊 JSON Output:", file=stdout)
    print(changes_as_json(changes), file=stdout)

    step("🔍 Validating changelogs...", file=stdout)
    results = validate_changelogs(
        changes,
        project_root,
        repo_url,
        packages_dir=settings.packages_dir,
        stderr=stderr,
    )
    report_validation(results, fix=fix, stdout=stdout, stderr=stderr)

    updated_count = 0
    if fix:
        step("🔧 Updating changelogs...", file=stdout)
        updated_count = update_changelogs(
            changes,
            project_root=project_root,
            repo_url=repo_url,
            pr_number=pr_number,
            packages_dir=settings.packages_dir,
            stdout=stdout,
            stderr=stderr,
        )
        if updated_count > 0:
            print(
                f"\n✅ Updated {updated_count} "
                f"{plural(updated_count, 'changelog', 'changelogs')}",
                file=stdout,
            )
            if not pr_number:
                print(
                    "\n💡 Note: Placeholder PR numbers (XXXXX) were used. Update "
                    "them manually or run with --pr <number>",
                    file=stdout,
                )
        else:
            print("\n✅ All changelogs are up to date", file=stdout)

    return CheckResult(
        changes=changes, validation_results=results, updated_count=updated_count
    )
