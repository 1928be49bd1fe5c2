"""Lookups over a repository's release list.

Releases are ordered by creation time, newest first, never by semantic
version: a hotfix tagged after a newer minor is still "after" it.
"""

from __future__ import annotations

from ns8.core.result import Err, Ok, Result
from ns8.services.release.errors import ReleaseError
from ns8.services.release.model import ReleaseTag


def sort_by_recency(releases: list[ReleaseTag]) -> list[ReleaseTag]:
    return sorted(releases, key=lambda r: r.created_at, reverse=True)


def find_release(releases: list[ReleaseTag], tag: str) -> ReleaseTag | None:
    for r in releases:
        if r.tag == tag:
            return r
    return None


def find_previous_release(releases: list[ReleaseTag], current_tag: str) -> Result[str, ReleaseError]:
    """Tag of the release preceding ``current_tag``.

    A pre-release is preceded by the release right before it, whatever its
    kind. A stable release is preceded by the nearest older stable release.
    """
    ordered = sort_by_recency(releases)
    index = next((i for i, r in enumerate(ordered) if r.tag == current_tag), None)
    if index is None:
        return Err(
            ReleaseError(
                kind="no_release_found",
                message=f"current release not found in release list: {current_tag}",
            )
        )

    current = ordered[index]
    older = ordered[index + 1 :]
    if not older:
        return Err(ReleaseError(kind="no_release_found", message="no previous release found"))

    if current.prerelease:
        return Ok(older[0].tag)

    for r in older:
        if not r.prerelease:
            return Ok(r.tag)

    return Err(ReleaseError(kind="no_release_found", message="no previous stable release found"))


def prereleases_between(
    releases: list[ReleaseTag],
    start_tag: str,
    end_tag: str,
) -> Result[list[str], ReleaseError]:
    """Pre-releases created after ``start_tag`` and up to ``end_tag``, oldest first."""
    start = find_release(releases, start_tag)
    end = find_release(releases, end_tag)
    if start is None or end is None:
        return Err(
            ReleaseError(
                kind="no_release_found",
                message="could not find start or end release",
                hint=f"{start_tag}..{end_tag}",
            )
        )

    window = [
        r
        for r in releases
        if r.prerelease and start.created_at < r.created_at <= end.created_at
    ]
    return Ok([r.tag for r in sorted(window, key=lambda r: r.created_at)])
