"""Git queries used by the dependency bump check.

All functions take the project root explicitly and run git inside it.
"""

from __future__ import annotations

import re
import subprocess
from pathlib import Path

from .shell import git

HTTPS_PREFIX = "https://github.com"
SSH_PREFIX_RE = re.compile(r"^git@github\.com:")
SSH_SUFFIX_RE = re.compile(r"\.git$")


def get_current_branch(project_root: Path) -> str:
    """Return the name of the checked-out branch ("HEAD" when detached)."""
    return git("rev-parse", "--abbrev-ref", "HEAD", cwd=project_root)


def get_merge_base(default_branch: str, project_root: Path) -> str:
    """Find the merge base between HEAD and the default branch.

    Tries the local branch first, then origin/<branch> for checkouts
    (e.g. CI) where only the remote-tracking branch exists.

    Raises:
        RuntimeError: If neither ref has a merge base with HEAD.
    """
    for ref in (default_branch, f"origin/{default_branch}"):
        try:
            return git("merge-base", "HEAD", ref, cwd=project_root)
        except subprocess.CalledProcessError:
            continue
    raise RuntimeError(
        f"Could not find merge base with {default_branch} or origin/{default_branch}"
    )


def get_manifest_diff(from_ref: str, to_ref: str, project_root: Path) -> str:
    """Return the diff of every package.json between two refs.

    Uses maximum context so that each hunk includes the field openers
    ("dependencies": {) the scanner relies on.

    Returns:
        Raw diff text, or "" when git reports no differences.

    Raises:
        subprocess.CalledProcessError: For any other git failure.
    """
    try:
        return git(
            "diff",
            "-U9999",
            from_ref,
            to_ref,
            "--",
            "**/package.json",
            cwd=project_root,
        )
    except subprocess.CalledProcessError as exc:
        # Exit code 1 with no output means "no differences"
        if exc.returncode == 1 and not exc.stdout:
            return ""
        raise


def get_repository_https_url(project_root: Path) -> str:
    """Get the HTTPS URL of the "origin" remote.

    Accepts remotes of the form:
    - https://github.com/OrganizationName/RepositoryName
    - git@github.com:OrganizationName/RepositoryName.git

    Raises:
        ValueError: If the origin URL matches neither form.
    """
    url = git("config", "--get", "remote.origin.url", cwd=project_root)
    if url.startswith(HTTPS_PREFIX):
        return SSH_SUFFIX_RE.sub("", url)
    if SSH_PREFIX_RE.match(url) and SSH_SUFFIX_RE.search(url):
        path = SSH_SUFFIX_RE.sub("", SSH_PREFIX_RE.sub("", url))
        return f"{HTTPS_PREFIX}/{path}"
    raise ValueError(f'Unrecognized URL for git remote "origin": {url}')
