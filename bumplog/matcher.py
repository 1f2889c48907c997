"""Matching changelog entries against dependency bumps.

Changelog bullets are human-written prose following the convention

    Bump `<dependency>` from `<old>` to `<new>` ([#<pr>](<repo>/pull/<pr>))

so matching is a substring test rather than a structured parse. An entry
documents a bump when it names the dependency in backticks and contains
the exact new version; an entry that names the dependency with some other
version documents an earlier bump and is stale.
"""

from __future__ import annotations

import re
from collections.abc import Iterable

from .models import DependencyChange

PLACEHOLDER_PR = "XXXXX"
BREAKING_PREFIX = "**BREAKING:** "

PR_TOKEN_RE = re.compile(r"\[#(\d+|XXXXX)\]")
# Last "to `<version>`" in the entry; the greedy head skips earlier ones
TO_VERSION_RE = re.compile(r"(.*)\bto `[^`]*`", re.DOTALL)
# Trailing "([#1](...), [#2](...))" group of PR links
PR_GROUP_RE = re.compile(r"\s*\((?:\[#[^\]]+\]\([^)]*\)(?:,\s*)?)+\)\s*$")


def entry_references(entry: str, dependency: str) -> bool:
    """Return True if the entry names the dependency in backticks."""
    return f"`{dependency}`" in entry


def entry_matches(entry: str, change: DependencyChange) -> bool:
    """Return True if the entry documents this exact bump."""
    return entry_references(entry, change.dependency) and change.new_version in entry


def find_matching_entry(entries: Iterable[str], change: DependencyChange) -> str | None:
    return next((e for e in entries if entry_matches(e, change)), None)


def find_referencing_entry(entries: Iterable[str], dependency: str) -> str | None:
    return next((e for e in entries if entry_references(e, dependency)), None)


def pr_link(token: str, repo_url: str) -> str:
    """Format a PR reference, e.g. "[#12](https://github.com/o/r/pull/12)"."""
    return f"[#{token}]({repo_url}/pull/{token})"


def extract_pr_tokens(entry: str) -> list[str]:
    """Collect PR numbers (and XXXXX placeholders) in order, without repeats."""
    tokens: list[str] = []
    for token in PR_TOKEN_RE.findall(entry):
        if token not in tokens:
            tokens.append(token)
    return tokens


def _describe(change: DependencyChange, links: str) -> str:
    prefix = BREAKING_PREFIX if change.is_breaking else ""
    return (
        f"{prefix}Bump `{change.dependency}` from `{change.old_version}` "
        f"to `{change.new_version}` ({links})"
    )


def format_entry(change: DependencyChange, pr_number: str | None, repo_url: str) -> str:
    """Build the canonical changelog description for a bump.

    Peer dependency bumps are breaking for consumers and get the
    **BREAKING:** prefix. Without a PR number, the XXXXX placeholder is
    used so the entry can be completed later.
    """
    return _describe(change, pr_link(pr_number or PLACEHOLDER_PR, repo_url))


def patch_entry(
    entry: str, change: DependencyChange, pr_number: str | None, repo_url: str
) -> str:
    """Rewrite a stale entry so it documents the bump's new version.

    The final "to `<version>`" is replaced with the new version, and the
    trailing PR-link group is rebuilt from every PR already referenced plus
    the current one. A placeholder left by an earlier run is kept next to a
    real PR number, since both are distinct references. An entry with no
    "to `<version>`" clause is replaced by the canonical description,
    carrying over its PR references.
    """
    tokens = extract_pr_tokens(entry)
    current = pr_number or PLACEHOLDER_PR
    if current not in tokens:
        tokens.append(current)
    links = ", ".join(pr_link(token, repo_url) for token in tokens)

    if not TO_VERSION_RE.search(entry):
        return _describe(change, links)

    patched = TO_VERSION_RE.sub(
        lambda m: f"{m.group(1)}to `{change.new_version}`", entry, count=1
    )
    if PR_GROUP_RE.search(patched):
        patched = PR_GROUP_RE.sub(lambda _: f" ({links})", patched, count=1)
    else:
        patched = f"{patched.rstrip()} ({links})"

    if change.is_breaking and not patched.startswith(BREAKING_PREFIX):
        patched = BREAKING_PREFIX + patched
    return patched
