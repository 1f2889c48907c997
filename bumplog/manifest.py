"""package.json reading utilities.

Resolves the published name of each workspace package (used to build the
changelog tag prefix) and the repository URL (used for PR links).
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from pathlib import Path
from typing import Any

from .models import PackageChangeSet
from .repo import get_repository_https_url
from .shell import fatal

GITHUB_SHORTHAND_RE = re.compile(r"^(?:github:)?([\w.-]+/[\w.-]+)$")


def read_manifest(path: Path) -> dict[str, Any]:
    """Load and parse a package.json file.

    Raises:
        SystemExit: If the file cannot be read or is not a JSON object.
    """
    try:
        data = json.loads(path.read_text())
    except (OSError, json.JSONDecodeError) as exc:
        fatal(f"Could not read {path}: {exc}")
    if not isinstance(data, dict):
        fatal(f"Invalid manifest {path}: expected a JSON object")
    return data


def get_published_name(package_dir: Path) -> str:
    """Return the "name" from a package's manifest, or its directory name."""
    manifest = read_manifest(package_dir / "package.json")
    name = manifest.get("name")
    return name if isinstance(name, str) and name else package_dir.name


def resolve_published_names(
    changes: Mapping[str, PackageChangeSet],
    project_root: Path,
    packages_dir: str = "packages",
) -> dict[str, PackageChangeSet]:
    """Return a copy of changes with published_name set for every package.

    Every package here had its package.json show up in the diff, so the
    manifest must exist; a missing one is fatal.
    """
    return {
        package: change_set.model_copy(
            update={
                "published_name": get_published_name(
                    project_root / packages_dir / package
                )
            }
        )
        for package, change_set in changes.items()
    }


def normalize_repository_url(url: str) -> str | None:
    """Convert a manifest "repository" value to an HTTPS GitHub URL.

    Examples:
        "git+https://github.com/org/repo.git" → "https://github.com/org/repo"
        "git@github.com:org/repo.git" → "https://github.com/org/repo"
        "github:org/repo" → "https://github.com/org/repo"
        "org/repo" → "https://github.com/org/repo"

    Returns None for URLs that don't point at GitHub.
    """
    url = url.strip()
    shorthand = GITHUB_SHORTHAND_RE.match(url)
    if shorthand:
        return f"https://github.com/{shorthand.group(1)}"

    url = url.removeprefix("git+")
    url = re.sub(r"^(?:ssh://)?git@github\.com[:/]", "https://github.com/", url)
    url = url.removesuffix("/").removesuffix(".git")
    if url.startswith("https://github.com/"):
        return url
    return None


def get_repository_url(manifest: Mapping[str, Any], project_root: Path) -> str:
    """Resolve the repository HTTPS URL for PR links.

    Uses the root manifest's "repository" field (a string or an object
    with "url"), falling back to the git "origin" remote.
    """
    repository = manifest.get("repository")
    if isinstance(repository, Mapping):
        repository = repository.get("url")
    if isinstance(repository, str):
        url = normalize_repository_url(repository)
        if url:
            return url
    return get_repository_https_url(project_root)
