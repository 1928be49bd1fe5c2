"""Data-access collaborator used by the release engine.

The engine never talks to the network directly. It calls a ``HostingApi``,
which ``GhHostingApi`` implements over the ``gh`` CLI and tests implement in
memory. Every method is synchronous and returns a Result; a failure is an
opaque ``ReleaseError`` the engine only wraps with context.
"""

from __future__ import annotations

from typing import Protocol

from ns8.core.result import Result
from ns8.services.release.errors import ReleaseError
from ns8.services.release.model import Issue, PullRequest, ReleaseTag, Repository


class HostingApi(Protocol):
    def current_repository(self) -> Result[str | None, ReleaseError]:
        """Repository (``owner/name``) of the current working directory, if any."""
        ...

    def get_repository(self, repo: str) -> Result[Repository, ReleaseError]: ...

    def compare_commits(self, repo: str, base: str, head: str) -> Result[list[str], ReleaseError]:
        """Commit shas reachable from ``head`` but not from ``base``, oldest first."""
        ...

    def pull_requests_for_commit(self, repo: str, sha: str) -> Result[list[int], ReleaseError]: ...

    def get_pull_request(self, repo: str, number: int) -> Result[PullRequest, ReleaseError]: ...

    def get_issue(self, repo: str, number: int) -> Result[Issue, ReleaseError]: ...

    def get_parent_issue(self, repo: str, number: int) -> Result[int | None, ReleaseError]: ...

    def list_releases(
        self, repo: str, *, limit: int, exclude_prereleases: bool
    ) -> Result[list[ReleaseTag], ReleaseError]:
        """Releases ordered newest first."""
        ...

    def view_release(self, repo: str, tag: str) -> Result[ReleaseTag, ReleaseError]: ...

    def get_ref_sha(self, repo: str, ref: str) -> Result[str, ReleaseError]:
        """Commit sha of a git ref such as ``heads/main`` or ``tags/1.0.0``."""
        ...

    def get_merge_base(self, repo: str, base: str, head: str) -> Result[str, ReleaseError]: ...

    def create_release(
        self,
        repo: str,
        *,
        tag: str,
        title: str,
        draft: bool,
        prerelease: bool,
        target: str | None = None,
        notes: str | None = None,
    ) -> Result[None, ReleaseError]: ...

    def delete_release(self, repo: str, tag: str) -> Result[None, ReleaseError]: ...

    def create_issue_comment(
        self, repo: str, number: int, body: str
    ) -> Result[str, ReleaseError]:
        """Post a comment and return its URL."""
        ...
