"""Version parsing utilities.

Release headers in a changelog (`## [1.2.3]`) must carry a full semantic
version, including any prerelease or build metadata npm allows.
"""

from __future__ import annotations

import semver


def parse_version(version_str: str) -> semver.Version:
    """Parse a strict semver string into a semver.Version object.

    Unlike manifest version ranges ("^1.2.0"), release versions must be
    complete: "1.2.3", "2.0.0-beta.1".

    Raises:
        ValueError: If the string is not a valid semantic version.
    """
    return semver.Version.parse(version_str)
