from __future__ import annotations

import re

from ns8.core.result import Err, Ok, Result
from ns8.services.release.errors import ReleaseError
from ns8.services.release.hosting import HostingApi
from ns8.services.release.model import CommitRef, ReleaseTag


def module_pattern(module_prefix: str) -> re.Pattern[str]:
    return re.compile(rf"^[^/]+/{re.escape(module_prefix)}-")


def resolve_repository(
    api: HostingApi,
    explicit: str,
    *,
    module_prefix: str,
) -> Result[str, ReleaseError]:
    """Return the module repository to operate on.

    Falls back to the repository of the current directory when ``explicit``
    is empty, then checks the ``<owner>/<prefix>-*`` naming convention and
    that the repository is reachable.
    """
    repo = explicit.strip()
    if not repo:
        current = api.current_repository()
        if isinstance(current, Err) or current.value is None:
            return Err(
                ReleaseError(
                    kind="ambiguous_repo",
                    message="could not determine the repo",
                    hint="Provide the repo name using the --repo flag",
                )
            )
        repo = current.value

    if module_pattern(module_prefix).match(repo) is None:
        return Err(
            ReleaseError(
                kind="naming_convention",
                message=f"invalid module name: {repo} (must match owner/{module_prefix}-*)",
            )
        )

    found = api.get_repository(repo)
    if isinstance(found, Err):
        return Err(
            ReleaseError(
                kind="not_found",
                message=f"invalid repo: {repo}",
                hint=found.error.hint or found.error.message,
            )
        )

    return Ok(found.value.slug)


def default_branch_sha(api: HostingApi, repo: str) -> Result[str, ReleaseError]:
    info = api.get_repository(repo)
    if isinstance(info, Err):
        return Err(info.error.wrap("failed to get repository info"))

    branch = info.value.default_branch
    sha = api.get_ref_sha(repo, f"heads/{branch}")
    if isinstance(sha, Err):
        return Err(sha.error.wrap(f"failed to get {branch} branch sha"))
    return sha


def resolve_commit(api: HostingApi, repo: str, explicit_sha: str) -> Result[CommitRef, ReleaseError]:
    """Resolve the commit a release should point at.

    Without ``explicit_sha`` the default branch tip is used and no release
    target is set. An explicit sha must be reachable from the default branch;
    it is then carried as the release target.
    """
    sha = explicit_sha.strip()
    if not sha:
        tip = default_branch_sha(api, repo)
        if isinstance(tip, Err):
            return Err(
                ReleaseError(
                    kind=tip.error.kind,
                    message="could not determine the latest commit sha",
                    hint="Provide the commit sha using the --release-refs flag",
                )
            )
        return Ok(CommitRef(sha=tip.value))

    info = api.get_repository(repo)
    if isinstance(info, Err):
        return Err(info.error.wrap("failed to get repository info"))
    branch = info.value.default_branch

    merge_base = api.get_merge_base(repo, branch, sha)
    if isinstance(merge_base, Err):
        return Err(merge_base.error.wrap("failed to check if commit is on the default branch"))

    if merge_base.value != sha:
        return Err(
            ReleaseError(
                kind="not_ancestor",
                message=f"the commit sha is not on the default branch: {branch}",
                hint=sha,
            )
        )

    return Ok(CommitRef(sha=sha, target=sha))


def latest_release(
    api: HostingApi,
    repo: str,
    *,
    exclude_prereleases: bool,
) -> Result[ReleaseTag, ReleaseError]:
    releases = api.list_releases(repo, limit=1, exclude_prereleases=exclude_prereleases)
    if isinstance(releases, Err):
        return Err(releases.error.wrap("failed to list releases"))

    if not releases.value:
        what = "stable releases" if exclude_prereleases else "releases"
        return Err(ReleaseError(kind="no_release_found", message=f"no {what} found in {repo}"))
    return Ok(releases.value[0])


def release_commit_sha(api: HostingApi, repo: str, tag: str) -> Result[str, ReleaseError]:
    sha = api.get_ref_sha(repo, f"tags/{tag}")
    if isinstance(sha, Err):
        return Err(sha.error.wrap(f"failed to get commit sha for tag {tag}"))
    return sha
