"""CLI entry point for bumplog."""

from __future__ import annotations

import subprocess
from pathlib import Path

import click

from bumplog.check import check_dependency_bumps
from bumplog.config import load_settings


@click.group()
@click.version_option(package_name="bumplog")
def cli() -> None:
    """Keep monorepo changelogs in sync with dependency bumps."""


@cli.command()
@click.option(
    "--from",
    "from_ref",
    default=None,
    help="Ref to compare from. Defaults to the merge base with the default branch.",
)
@click.option(
    "--to", "to_ref", default="HEAD", show_default=True, help="Ref to compare to."
)
@click.option(
    "--default-branch",
    default=None,
    help="Branch to find the merge base against. (default: main)",
)
@click.option("--fix", is_flag=True, help="Add or update missing changelog entries.")
@click.option(
    "--pr",
    "pr_number",
    default=None,
    help="PR number for changelog entries. Uses XXXXX placeholders if omitted.",
)
@click.option(
    "--project-root",
    type=click.Path(exists=True, file_okay=False, path_type=Path),
    default=".",
    show_default=True,
    help="Root directory of the monorepo.",
)
@click.option(
    "--repository-url",
    default=None,
    help="Repository URL for PR links. Detected from package.json or git if omitted.",
)
def check(
    from_ref: str | None,
    to_ref: str,
    default_branch: str | None,
    fix: bool,
    pr_number: str | None,
    project_root: Path,
    repository_url: str | None,
) -> None:
    """Check that every dependency bump has a changelog entry."""
    root = project_root.resolve()
    settings = load_settings(root)
    if repository_url:
        settings = settings.model_copy(update={"repository_url": repository_url})

    try:
        result = check_dependency_bumps(
            root,
            from_ref=from_ref,
            to_ref=to_ref,
            default_branch=default_branch,
            fix=fix,
            pr_number=pr_number,
            settings=settings,
        )
    except subprocess.CalledProcessError as exc:
        detail = (exc.stderr or "").strip() or f"exit status {exc.returncode}"
        raise click.ClickException(f"git {exc.cmd[1]} failed: {detail}") from exc
    except (RuntimeError, ValueError) as exc:
        raise click.ClickException(str(exc)) from exc

    if result.has_errors and not fix:
        raise SystemExit(1)
