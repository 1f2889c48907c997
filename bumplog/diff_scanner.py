"""Dependency bump detection from unified diffs of package.json files.

The scanner walks the diff text one line at a time, tracking which file it
is in and which manifest field ("dependencies", "peerDependencies", ...)
the current line belongs to. It is a textual best-effort scan, not a JSON
parser: lines that do not look like `"name": "version"` are ignored.

The diff is expected to carry enough context (e.g. `git diff -U9999`) for
field openers like `"dependencies": {` to be visible inside each hunk.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field
from enum import Enum

from .models import DependencyChange, DependencyKind, PackageChangeSet

FILE_HEADER_RE = re.compile(r"^diff --git a/\S+ b/(\S+)")
HUNK_HEADER_RE = re.compile(r"^@@ -\d+(?:,\d+)? \+(\d+)")
ENTRY_RE = re.compile(r'^"([^"]+)":\s*"([^"]+)",?$')
FIELD_OPENER_RE = re.compile(r'^"([^"]+)":\s*\{$')


class FieldContext(Enum):
    """The manifest field the scanner is currently inside."""

    NONE = "none"
    DIRECT = "dependencies"
    PEER = "peerDependencies"
    DEV = "devDependencies"

    @property
    def kind(self) -> DependencyKind | None:
        if self is FieldContext.DIRECT:
            return DependencyKind.DIRECT
        if self is FieldContext.PEER:
            return DependencyKind.PEER
        return None


_OPENERS = {ctx.value: ctx for ctx in FieldContext if ctx is not FieldContext.NONE}


@dataclass
class _ScanState:
    """Mutable state of one scan. Never escapes parse_diff()."""

    package: str | None = None
    context: FieldContext = FieldContext.NONE
    # Object nesting of the new file; 1 is the manifest's top level
    depth: int = 0
    # (kind, dependency) → old version, for removals in the current hunk
    removed: dict[tuple[DependencyKind, str], str] = field(default_factory=dict)

    def reset_hunk(self, depth: int = 0) -> None:
        self.context = FieldContext.NONE
        self.depth = depth
        self.removed.clear()


def package_for_path(path: str, packages_dir: str = "packages") -> str | None:
    """Return the package directory name if path is a package manifest.

    Only `<packages_dir>/<name>/package.json` qualifies; the root manifest
    and nested manifests deeper in a package do not.

    Examples:
        "packages/controller-utils/package.json" → "controller-utils"
        "package.json" → None
    """
    prefix = packages_dir.strip("/") + "/"
    if not path.startswith(prefix):
        return None
    parts = path[len(prefix) :].split("/")
    if len(parts) == 2 and parts[0] and parts[1] == "package.json":
        return parts[0]
    return None


def _next_depth(content: str, depth: int) -> int:
    if content.endswith("{"):
        return depth + 1
    if content in ("}", "},"):
        return max(depth - 1, 0)
    return depth


def _next_context(content: str, current: FieldContext) -> FieldContext:
    """Compute the field context after a line with the given trimmed content."""
    if content in ("}", "},"):
        return FieldContext.NONE
    opener = FIELD_OPENER_RE.match(content)
    if opener:
        return _OPENERS.get(opener.group(1), FieldContext.NONE)
    return current


def parse_diff(diff: str, packages_dir: str = "packages") -> dict[str, PackageChangeSet]:
    """Extract dependency bumps from a unified diff of package.json files.

    A bump is a removed `"dep": "old"` line followed, later in the same
    hunk, by an added `"dep": "new"` line for the same dependency inside
    the same "dependencies" or "peerDependencies" block. Identical old and
    new versions are formatting noise and are dropped. Additions without a
    removal (new deps) and removals without an addition are not bumps.

    At most one change is kept per (package, dependency, kind); when a
    dependency is bumped in several hunks, the first new version wins.

    A package's own top-level "version" change is recorded as its
    new_version, but only for packages that have at least one dependency
    bump. "version" keys inside nested objects such as "engines" are not
    the package version.

    Args:
        diff: Raw `git diff` output.
        packages_dir: Directory holding workspace packages.

    Returns:
        Map of package directory name → PackageChangeSet, in order of first
        appearance in the diff.
    """
    state = _ScanState()
    changes: dict[str, list[DependencyChange]] = {}
    seen: set[tuple[str, DependencyKind, str]] = set()
    new_versions: dict[str, str] = {}

    for line in diff.splitlines():
        if line.startswith("diff --git"):
            header = FILE_HEADER_RE.match(line)
            path = header.group(1) if header else ""
            state.package = package_for_path(path, packages_dir)
            state.reset_hunk()
            continue
        if line.startswith("@@"):
            hunk = HUNK_HEADER_RE.match(line)
            # A hunk past the opening brace starts at the top level
            state.reset_hunk(0 if hunk is None or hunk.group(1) == "1" else 1)
            continue
        if line.startswith(("---", "+++")) or not line:
            continue

        marker, content = line[0], line[1:].strip()
        if marker not in " +-":
            # "index ...", "new file mode", "\ No newline at end of file"
            continue

        if marker != "-":
            state.depth = _next_depth(content, state.depth)

        previous = state.context
        state.context = _next_context(content, previous)
        if state.package is None or state.context is not previous:
            continue

        if state.context is FieldContext.NONE:
            if marker == "+" and state.depth == 1:
                entry = ENTRY_RE.match(content)
                if entry and entry.group(1) == "version":
                    new_versions[state.package] = entry.group(2)
            continue

        kind = state.context.kind
        if kind is None or marker == " ":
            continue

        entry = ENTRY_RE.match(content)
        if not entry:
            continue
        dependency, version = entry.groups()

        if marker == "-":
            state.removed[(kind, dependency)] = version
            continue

        old_version = state.removed.get((kind, dependency))
        if old_version is None or old_version == version:
            continue

        key = (state.package, kind, dependency)
        if key in seen:
            continue
        seen.add(key)
        changes.setdefault(state.package, []).append(
            DependencyChange(
                package=state.package,
                dependency=dependency,
                kind=kind,
                old_version=old_version,
                new_version=version,
            )
        )

    return {
        package: PackageChangeSet(
            package=package,
            dependency_changes=tuple(package_changes),
            new_version=new_versions.get(package),
        )
        for package, package_changes in changes.items()
    }
