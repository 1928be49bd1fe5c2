"""Release readiness check.

Builds a ``CheckSummary`` for the commits between the latest stable release
and the default branch tip:

- pull requests without linked issues (unlinked) or carrying the translation
  label (translation),
- commits that belong to no pull request (orphans),
- the linked issues, with their parents, as a forest keyed by issue number.

The summary is built for one run and discarded after display.
"""

from __future__ import annotations

from dataclasses import dataclass, field

from ns8.core.result import Err, Ok, Result
from ns8.services.release.errors import ReleaseError
from ns8.services.release.hosting import HostingApi
from ns8.services.release.model import (
    TESTING_LABEL,
    VERIFIED_LABEL,
    Issue,
    IssueStatus,
    ProgressTier,
    SkippedItem,
)
from ns8.services.release.repo import default_branch_sha, latest_release, release_commit_sha
from ns8.services.release.scan import extract_linked_issues, fetch_pull_requests, scan_pull_requests


@dataclass(slots=True)
class IssueInfo:
    number: int
    status: IssueStatus
    progress: ProgressTier
    labels: str
    ref_count: int = 1
    parent_number: int | None = None
    children: list[int] = field(default_factory=list)

    @classmethod
    def from_issue(cls, issue: Issue, *, ref_count: int) -> IssueInfo:
        labels = set(issue.labels)
        if VERIFIED_LABEL in labels:
            progress = ProgressTier.VERIFIED
        elif TESTING_LABEL in labels:
            progress = ProgressTier.TESTING
        else:
            progress = ProgressTier.IN_PROGRESS

        shown = [name for name in issue.labels if name not in (VERIFIED_LABEL, TESTING_LABEL)]
        return cls(
            number=issue.number,
            status=IssueStatus.CLOSED if issue.is_closed else IssueStatus.OPEN,
            progress=progress,
            labels=" ".join(shown),
            ref_count=ref_count,
        )

    @property
    def is_verified(self) -> bool:
        return self.progress is ProgressTier.VERIFIED


@dataclass(frozen=True, slots=True)
class NothingToRelease:
    """The latest stable release already points at the default branch tip."""

    tag: str
    sha: str


@dataclass(slots=True)
class CheckSummary:
    repo: str
    issues_repo: str
    since_tag: str = ""
    host: str = "github.com"
    unlinked_prs: list[int] = field(default_factory=list)
    translation_prs: list[int] = field(default_factory=list)
    orphan_commits: list[str] = field(default_factory=list)
    issues: dict[int, IssueInfo] = field(default_factory=dict)
    skipped: list[SkippedItem] = field(default_factory=list)

    # -- issue processing ------------------------------------------------

    def process_issue(self, api: HostingApi, number: int) -> Result[IssueInfo, ReleaseError]:
        """Add a linked issue (and its ancestors) to the summary.

        An issue already in the summary only gets its reference count bumped.
        Parents are resolved upward until a known issue, an issue without a
        parent, or a revisit (cycle) is reached.
        """
        existing = self.issues.get(number)
        if existing is not None:
            existing.ref_count += 1
            return Ok(existing)

        fetched = self._fetch_issue(api, number, ref_count=1)
        if isinstance(fetched, Err):
            return fetched

        info = fetched.value
        self.issues[number] = info
        self._attach_ancestors(api, info)
        return Ok(info)

    def _fetch_issue(
        self, api: HostingApi, number: int, *, ref_count: int
    ) -> Result[IssueInfo, ReleaseError]:
        issue = api.get_issue(self.issues_repo, number)
        if isinstance(issue, Err):
            return Err(issue.error.wrap(f"failed to get issue {number}"))
        return Ok(IssueInfo.from_issue(issue.value, ref_count=ref_count))

    def _attach_ancestors(self, api: HostingApi, info: IssueInfo) -> None:
        child = info
        visited = {info.number}
        while True:
            parent_r = api.get_parent_issue(self.issues_repo, child.number)
            if isinstance(parent_r, Err):
                self.skipped.append(
                    SkippedItem(kind="parent", ref=f"#{child.number}", reason=parent_r.error.message)
                )
                return

            parent_number = parent_r.value
            if parent_number is None or parent_number <= 0:
                return

            if parent_number in visited:
                self.skipped.append(
                    SkippedItem(
                        kind="parent",
                        ref=f"#{child.number}",
                        reason=f"parent cycle through #{parent_number}",
                    )
                )
                return
            visited.add(parent_number)

            parent = self.issues.get(parent_number)
            if parent is not None:
                child.parent_number = parent_number
                parent.children.append(child.number)
                return

            # ref_count counts PR references only; ancestry-only parents report zero.
            fetched = self._fetch_issue(api, parent_number, ref_count=0)
            if isinstance(fetched, Err):
                self.skipped.append(
                    SkippedItem(kind="parent", ref=f"#{parent_number}", reason=fetched.error.message)
                )
                return

            parent = fetched.value
            self.issues[parent_number] = parent
            child.parent_number = parent_number
            parent.children.append(child.number)
            child = parent

    # -- verdict and display helpers -------------------------------------

    def is_ready(self) -> bool:
        """True when nothing blocks a release.

        No unlinked pull requests, every leaf issue verified, and for issues
        with children every child verified (the parent's own tier is ignored).
        """
        if self.unlinked_prs:
            return False

        for info in self.issues.values():
            if info.children:
                for child in info.children:
                    child_info = self.issues.get(child)
                    if child_info is None or not child_info.is_verified:
                        return False
            elif not info.is_verified:
                return False
        return True

    def roots(self) -> list[IssueInfo]:
        """Top-level issues with children, in processing order."""
        return [i for i in self.issues.values() if i.parent_number is None and i.children]

    def standalone(self) -> list[IssueInfo]:
        return [i for i in self.issues.values() if i.parent_number is None and not i.children]

    def children_of(self, info: IssueInfo) -> list[IssueInfo]:
        return [self.issues[c] for c in info.children if c in self.issues]

    def pull_url(self, number: int) -> str:
        return f"https://{self.host}/{self.repo}/pull/{number}"

    def commit_url(self, sha: str) -> str:
        return f"https://{self.host}/{self.repo}/commit/{sha}"

    def issue_url(self, number: int) -> str:
        return f"https://{self.host}/{self.issues_repo}/issues/{number}"


type CheckOutcome = NothingToRelease | CheckSummary


def check_release_readiness(
    api: HostingApi,
    repo: str,
    *,
    issues_repo: str,
    translation_label: str = "translation",
    host: str = "github.com",
) -> Result[CheckOutcome, ReleaseError]:
    """Audit the default branch of ``repo`` against its latest stable release."""
    latest = latest_release(api, repo, exclude_prereleases=True)
    if isinstance(latest, Err):
        return latest
    tag = latest.value.tag

    tag_sha = release_commit_sha(api, repo, tag)
    if isinstance(tag_sha, Err):
        return tag_sha

    tip_sha = default_branch_sha(api, repo)
    if isinstance(tip_sha, Err):
        return tip_sha

    if tag_sha.value == tip_sha.value:
        return Ok(NothingToRelease(tag=tag, sha=tip_sha.value))

    repository = api.get_repository(repo)
    if isinstance(repository, Err):
        return Err(repository.error.wrap("failed to get repository info"))

    scan = scan_pull_requests(api, repo, tag, repository.value.default_branch)
    if isinstance(scan, Err):
        return Err(scan.error.wrap("error processing PRs"))

    summary = CheckSummary(repo=repo, issues_repo=issues_repo, since_tag=tag, host=host)
    summary.skipped.extend(scan.value.skipped)

    fetched = fetch_pull_requests(api, repo, scan.value.pull_requests)
    summary.skipped.extend(fetched.skipped)

    for number, pr in fetched.pull_requests.items():
        linked = extract_linked_issues(pr.body, issues_repo, host=host)
        if not linked:
            if pr.has_label(translation_label):
                summary.translation_prs.append(number)
            else:
                summary.unlinked_prs.append(number)
            continue

        for issue_number in linked:
            processed = summary.process_issue(api, issue_number)
            if isinstance(processed, Err):
                summary.skipped.append(
                    SkippedItem(
                        kind="issue",
                        ref=f"#{issue_number}",
                        reason=processed.error.message,
                    )
                )

    summary.orphan_commits.extend(scan.value.orphan_commits)
    return Ok(summary)
