"""Shared test fixtures."""

from __future__ import annotations

import json
from pathlib import Path

import pytest

from bumplog.models import DependencyChange, DependencyKind, PackageChangeSet

REPO_URL = "https://github.com/example-org/example-repo"

BUMP_DIFF = """\
diff --git a/packages/controller-utils/package.json b/packages/controller-utils/package.json
index 1234567..890abcd 100644
--- a/packages/controller-utils/package.json
+++ b/packages/controller-utils/package.json
@@ -10,7 +10,7 @@
   },
   "dependencies": {
-    "@metamask/transaction-controller": "^61.0.0"
+    "@metamask/transaction-controller": "^62.0.0"
   }
 }
"""

EMPTY_CHANGELOG = """\
# Changelog
All notable changes to this project will be documented in this file.

## [Unreleased]

## [1.0.0]

### Added

- Initial release ([#1](https://github.com/example-org/example-repo/pull/1))

[Unreleased]: https://github.com/example-org/example-repo/compare/@metamask/controller-utils@1.0.0...HEAD
[1.0.0]: https://github.com/example-org/example-repo/releases/tag/@metamask/controller-utils@1.0.0
"""


def make_change(
    dependency: str = "@metamask/transaction-controller",
    old_version: str = "^61.0.0",
    new_version: str = "^62.0.0",
    kind: DependencyKind = DependencyKind.DIRECT,
    package: str = "controller-utils",
) -> DependencyChange:
    return DependencyChange(
        package=package,
        dependency=dependency,
        kind=kind,
        old_version=old_version,
        new_version=new_version,
    )


def make_change_set(
    *changes: DependencyChange,
    package: str = "controller-utils",
    new_version: str | None = None,
) -> PackageChangeSet:
    return PackageChangeSet(
        package=package,
        dependency_changes=changes or (make_change(package=package),),
        published_name=f"@metamask/{package}",
        new_version=new_version,
    )


def changelog_with(
    *entries: str, section: str = "Unreleased", category: str = "Changed"
) -> str:
    """Build a changelog with entries under one section's category."""
    body = "\n".join(f"- {entry}" for entry in entries)
    unreleased = "## [Unreleased]"
    release = "## [1.0.0]\n\n### Added\n\n- Initial release"
    if section == "Unreleased":
        unreleased += f"\n\n### {category}\n\n{body}"
    else:
        release = f"## [{section}]\n\n### {category}\n\n{body}\n\n" + release
    return f"# Changelog\n\n{unreleased}\n\n{release}\n"


@pytest.fixture
def repo_url() -> str:
    return REPO_URL


@pytest.fixture
def project_root(tmp_path: Path) -> Path:
    """A monorepo with one package, controller-utils, and no changelog yet."""
    (tmp_path / "package.json").write_text(
        json.dumps(
            {
                "name": "example-monorepo",
                "repository": {"type": "git", "url": f"git+{REPO_URL}.git"},
            }
        )
    )
    package_dir = tmp_path / "packages" / "controller-utils"
    package_dir.mkdir(parents=True)
    (package_dir / "package.json").write_text(
        json.dumps({"name": "@metamask/controller-utils", "version": "1.0.0"})
    )
    return tmp_path


@pytest.fixture
def changelog_file(project_root: Path) -> Path:
    """Path to controller-utils' CHANGELOG.md (not created)."""
    return project_root / "packages" / "controller-utils" / "CHANGELOG.md"
