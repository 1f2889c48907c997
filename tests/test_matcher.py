"""Tests for bumplog.matcher."""

from __future__ import annotations

from conftest import REPO_URL, make_change

from bumplog.matcher import (
    entry_matches,
    entry_references,
    extract_pr_tokens,
    find_matching_entry,
    find_referencing_entry,
    format_entry,
    patch_entry,
    pr_link,
)
from bumplog.models import DependencyKind

CURRENT = (
    "Bump `@metamask/transaction-controller` from `^61.0.0` to `^62.0.0` "
    f"([#1234]({REPO_URL}/pull/1234))"
)
STALE = (
    "Bump `@metamask/transaction-controller` from `^61.0.0` to `^61.1.0` "
    f"([#1234]({REPO_URL}/pull/1234))"
)


class TestEntryMatches:
    def test_exact_bump(self) -> None:
        assert entry_matches(CURRENT, make_change())

    def test_older_version_is_not_a_match(self) -> None:
        assert not entry_matches(STALE, make_change())

    def test_other_dependency(self) -> None:
        entry = CURRENT.replace("transaction-controller", "network-controller")
        assert not entry_matches(entry, make_change())

    def test_name_must_be_backticked(self) -> None:
        entry = "Bump @metamask/transaction-controller to ^62.0.0"
        assert not entry_matches(entry, make_change())

    def test_free_form_prose(self) -> None:
        entry = "Upgrade `@metamask/transaction-controller` to ^62.0.0 for fixes"
        assert entry_matches(entry, make_change())

    def test_version_substring_counts(self) -> None:
        # Substring matching: ^62.0.0 is contained in ^62.0.0-beta.1
        entry = "Bump `@metamask/transaction-controller` to `^62.0.0-beta.1`"
        assert entry_matches(entry, make_change())


class TestEntryReferences:
    def test_any_version(self) -> None:
        assert entry_references(STALE, "@metamask/transaction-controller")

    def test_prefix_of_other_name(self) -> None:
        assert not entry_references(STALE, "@metamask/transaction")


class TestFind:
    def test_find_matching_entry(self) -> None:
        assert find_matching_entry([STALE, CURRENT], make_change()) == CURRENT
        assert find_matching_entry([STALE], make_change()) is None

    def test_find_referencing_entry(self) -> None:
        entries = ["Unrelated entry", STALE]
        dependency = "@metamask/transaction-controller"
        assert find_referencing_entry(entries, dependency) == STALE
        assert find_referencing_entry(entries, "@metamask/other") is None


class TestPrTokens:
    def test_pr_link(self) -> None:
        assert pr_link("42", REPO_URL) == f"[#42]({REPO_URL}/pull/42)"

    def test_extract_in_order_without_repeats(self) -> None:
        entry = (
            f"Bump `a` from `1` to `2` ([#3]({REPO_URL}/pull/3), "
            f"[#XXXXX]({REPO_URL}/pull/XXXXX), [#1]({REPO_URL}/pull/1), "
            f"[#3]({REPO_URL}/pull/3))"
        )
        assert extract_pr_tokens(entry) == ["3", "XXXXX", "1"]

    def test_no_tokens(self) -> None:
        assert extract_pr_tokens("Bump `a` from `1` to `2`") == []


class TestFormatEntry:
    def test_direct(self) -> None:
        assert format_entry(make_change(), "1234", REPO_URL) == CURRENT

    def test_placeholder_without_pr(self) -> None:
        entry = format_entry(make_change(), None, REPO_URL)
        assert entry.endswith(f"([#XXXXX]({REPO_URL}/pull/XXXXX))")

    def test_peer_is_breaking(self) -> None:
        change = make_change(kind=DependencyKind.PEER)
        assert format_entry(change, "1234", REPO_URL) == f"**BREAKING:** {CURRENT}"


class TestPatchEntry:
    def test_updates_version_and_appends_pr(self) -> None:
        patched = patch_entry(STALE, make_change(), "5678", REPO_URL)

        assert patched == (
            "Bump `@metamask/transaction-controller` from `^61.0.0` to `^62.0.0` "
            f"([#1234]({REPO_URL}/pull/1234), [#5678]({REPO_URL}/pull/5678))"
        )

    def test_merges_many_prs_once_each(self) -> None:
        entry = (
            "Bump `@metamask/transaction-controller` from `^61.0.0` to `^61.2.0` "
            f"([#1]({REPO_URL}/pull/1), [#2]({REPO_URL}/pull/2), "
            f"[#3]({REPO_URL}/pull/3))"
        )

        patched = patch_entry(entry, make_change(), "4", REPO_URL)

        for token in ("1", "2", "3", "4"):
            assert patched.count(f"[#{token}]") == 1
        assert "to `^62.0.0`" in patched

    def test_does_not_duplicate_existing_pr(self) -> None:
        patched = patch_entry(STALE, make_change(), "1234", REPO_URL)

        assert patched.count("[#1234]") == 1
        assert patched.endswith(f"([#1234]({REPO_URL}/pull/1234))")

    def test_placeholder_without_pr(self) -> None:
        patched = patch_entry(STALE, make_change(), None, REPO_URL)

        assert "[#1234]" in patched
        assert "[#XXXXX]" in patched

    def test_preserves_placeholder_alongside_real_pr(self) -> None:
        entry = STALE.replace("1234", "XXXXX")

        patched = patch_entry(entry, make_change(), "1234", REPO_URL)

        assert patched.endswith(
            f"([#XXXXX]({REPO_URL}/pull/XXXXX), [#1234]({REPO_URL}/pull/1234))"
        )

    def test_entry_without_pr_links(self) -> None:
        entry = "Bump `@metamask/transaction-controller` from `^61.0.0` to `^61.1.0`"

        patched = patch_entry(entry, make_change(), "9", REPO_URL)

        assert patched == (
            "Bump `@metamask/transaction-controller` from `^61.0.0` to `^62.0.0` "
            f"([#9]({REPO_URL}/pull/9))"
        )

    def test_entry_without_version_clause_is_rewritten(self) -> None:
        entry = (
            "Update `@metamask/transaction-controller` "
            f"([#1234]({REPO_URL}/pull/1234))"
        )

        patched = patch_entry(entry, make_change(), "1234", REPO_URL)

        assert patched == CURRENT
        assert entry_matches(patched, make_change())

    def test_version_clause_fallback_keeps_pr_references(self) -> None:
        entry = f"Update `@metamask/transaction-controller` ([#7]({REPO_URL}/pull/7))"

        patched = patch_entry(entry, make_change(), None, REPO_URL)

        assert patched.endswith(
            f"([#7]({REPO_URL}/pull/7), [#XXXXX]({REPO_URL}/pull/XXXXX))"
        )

    def test_keeps_breaking_prefix(self) -> None:
        change = make_change(kind=DependencyKind.PEER)

        patched = patch_entry(f"**BREAKING:** {STALE}", change, "5678", REPO_URL)

        assert patched.startswith("**BREAKING:** Bump")
        assert patched.count("**BREAKING:**") == 1

    def test_adds_breaking_prefix_for_peer(self) -> None:
        change = make_change(kind=DependencyKind.PEER)

        patched = patch_entry(STALE, change, "5678", REPO_URL)

        assert patched.startswith("**BREAKING:** Bump")

    def test_direct_never_gains_breaking_prefix(self) -> None:
        assert not patch_entry(STALE, make_change(), "5678", REPO_URL).startswith(
            "**BREAKING:**"
        )
