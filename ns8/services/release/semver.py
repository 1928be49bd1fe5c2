from __future__ import annotations

import re

from ns8.core.result import Err, Ok, Result
from ns8.services.release.errors import ReleaseError

# https://semver.org/#is-there-a-suggested-regular-expression-regex-to-check-a-semver-string
_SEMVER_RE = re.compile(
    r"^(0|[1-9][0-9]*)\.(0|[1-9][0-9]*)\.(0|[1-9][0-9]*)"
    r"(?:-((?:0|[1-9][0-9]*|[0-9]*[a-zA-Z-][0-9a-zA-Z-]*)(?:\.(?:0|[1-9][0-9]*|[0-9]*[a-zA-Z-][0-9a-zA-Z-]*))*))?"
    r"(?:\+([0-9a-zA-Z-]+(?:\.[0-9a-zA-Z-]+)*))?$"
)
_TESTING_RE = re.compile(r"^(.*-testing\.)([0-9]+)$")
_CORE_RE = re.compile(r"^([0-9]+)\.([0-9]+)\.([0-9]+)")


def is_valid_version(version: str) -> bool:
    return _SEMVER_RE.fullmatch(version) is not None


def is_prerelease_name(version: str) -> bool:
    return "-" in version


def next_testing_version(latest_tag: str, latest_is_prerelease: bool) -> Result[str, ReleaseError]:
    """Derive the next testing release name from the latest release.

    ``1.0.1-testing.9`` (pre-release) becomes ``1.0.1-testing.10``;
    ``1.0.0`` (stable) becomes ``1.0.1-testing.1``.
    """
    if latest_is_prerelease:
        m = _TESTING_RE.match(latest_tag)
        if m is None:
            return Err(
                ReleaseError(
                    kind="invalid_version",
                    message=f"invalid testing version format: {latest_tag}",
                    hint="Expected: MAJOR.MINOR.PATCH-testing.N",
                )
            )
        return Ok(f"{m.group(1)}{int(m.group(2)) + 1}")

    m = _CORE_RE.match(latest_tag)
    if m is None:
        return Err(
            ReleaseError(
                kind="invalid_version",
                message=f"invalid semver format: {latest_tag}",
                hint="Expected: MAJOR.MINOR.PATCH",
            )
        )
    major, minor, patch = m.group(1), m.group(2), int(m.group(3))
    return Ok(f"{major}.{minor}.{patch + 1}-testing.1")
