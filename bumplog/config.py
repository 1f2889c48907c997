"""Project settings from .bumplog.toml.

Parsed with tomlkit. The file is optional; every key has a default.

    default-branch = "main"
    packages-dir = "packages"
    repository-url = "https://github.com/org/repo"
"""

from __future__ import annotations

from pathlib import Path

import tomlkit
from pydantic import BaseModel, ConfigDict, ValidationError
from tomlkit.exceptions import ParseError

from .shell import fatal

CONFIG_FILENAME = ".bumplog.toml"


class Settings(BaseModel):
    """Resolved settings for a check run.

    Attributes:
        default_branch: Branch to find the merge base against when no
            starting ref is given.
        packages_dir: Directory (relative to the project root) holding
            workspace packages, one per subdirectory.
        repository_url: HTTPS URL used for PR links. Resolved from the root
            manifest or git remote when not set.
    """

    model_config = ConfigDict(frozen=True, extra="forbid")

    default_branch: str = "main"
    packages_dir: str = "packages"
    repository_url: str | None = None


def load_settings(project_root: Path) -> Settings:
    """Load settings from <project_root>/.bumplog.toml, if present.

    Keys are written in kebab-case in the file.

    Raises:
        SystemExit: If the file is not valid TOML, has unknown keys, or
            has values of the wrong type.
    """
    path = project_root / CONFIG_FILENAME
    if not path.exists():
        return Settings()

    try:
        doc = tomlkit.parse(path.read_text())
    except ParseError as exc:
        fatal(f"Invalid {CONFIG_FILENAME}: {exc}")

    values = {key.replace("-", "_"): value for key, value in doc.unwrap().items()}
    try:
        return Settings(**values)
    except ValidationError as exc:
        fatal(f"Invalid {CONFIG_FILENAME}:\n{exc}")
