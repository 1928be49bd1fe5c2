"""Linkage scanning: commits -> pull requests -> linked issues.

Per-item lookups that fail are skipped and recorded, never fatal. A commit
whose pull request lookup fails is treated as not belonging to any pull
request, so it shows up as an orphan rather than disappearing.
"""

from __future__ import annotations

import re
from dataclasses import dataclass, field

from ns8.core.result import Err, Ok, Result
from ns8.services.release.errors import ReleaseError
from ns8.services.release.hosting import HostingApi
from ns8.services.release.model import PullRequest, SkippedItem


@dataclass(frozen=True, slots=True)
class ScanResult:
    commits: tuple[str, ...]
    pull_requests: tuple[int, ...]
    commits_in_prs: frozenset[str]
    skipped: tuple[SkippedItem, ...] = ()

    @property
    def orphan_commits(self) -> tuple[str, ...]:
        return tuple(sha for sha in self.commits if sha not in self.commits_in_prs)


@dataclass(slots=True)
class LinkedPullRequests:
    """Pull request details fetched for a scan, keyed by number."""

    pull_requests: dict[int, PullRequest] = field(default_factory=dict)
    skipped: list[SkippedItem] = field(default_factory=list)


def scan_pull_requests(
    api: HostingApi,
    repo: str,
    start_ref: str,
    end_ref: str,
) -> Result[ScanResult, ReleaseError]:
    """Collect the pull requests that touched ``start_ref..end_ref``.

    Returns:
        Ok(ScanResult) with unique PR numbers in discovery order, or
        Err with kind ``empty_range`` / ``no_prs_found``.
    """
    compared = api.compare_commits(repo, start_ref, end_ref)
    if isinstance(compared, Err):
        return Err(compared.error.wrap("failed to compare commits"))

    commits = tuple(compared.value)
    if not commits:
        return Err(
            ReleaseError(
                kind="empty_range",
                message="no commits found in the specified range",
                hint=f"{start_ref}...{end_ref}",
            )
        )

    seen: dict[int, None] = {}
    in_prs: set[str] = set()
    skipped: list[SkippedItem] = []
    for sha in commits:
        prs = api.pull_requests_for_commit(repo, sha)
        if isinstance(prs, Err):
            skipped.append(SkippedItem(kind="commit", ref=sha, reason=prs.error.message))
            continue
        if prs.value:
            in_prs.add(sha)
        for number in prs.value:
            seen.setdefault(number, None)

    if not seen:
        return Err(
            ReleaseError(
                kind="no_prs_found",
                message="no pull requests found for the commits in the specified range",
                hint=f"{start_ref}...{end_ref}",
            )
        )

    return Ok(
        ScanResult(
            commits=commits,
            pull_requests=tuple(seen),
            commits_in_prs=frozenset(in_prs),
            skipped=tuple(skipped),
        )
    )


def issue_patterns(issues_repo: str, *, host: str = "github.com") -> list[re.Pattern[str]] | None:
    parts = issues_repo.split("/")
    if len(parts) != 2:
        return None
    owner, name = (re.escape(p) for p in parts)
    return [
        re.compile(rf"{owner}/issues/([0-9]+)"),
        re.compile(rf"{owner}/{name}#([0-9]+)"),
        re.compile(rf"https://{re.escape(host)}/{owner}/{name}/issues/([0-9]+)"),
    ]


def extract_linked_issues(pr_body: str, issues_repo: str, *, host: str = "github.com") -> list[int]:
    """Issue numbers of ``issues_repo`` referenced in a pull request body.

    Recognized forms: ``owner/issues/N``, ``owner/name#N`` and
    ``https://<host>/owner/name/issues/N``. Matches are collected pattern by
    pattern and duplicates are kept; callers dedupe.
    """
    patterns = issue_patterns(issues_repo, host=host)
    if patterns is None:
        return []

    numbers: list[int] = []
    for pattern in patterns:
        for m in pattern.finditer(pr_body):
            n = int(m.group(1))
            if n > 0:
                numbers.append(n)
    return numbers


def fetch_pull_requests(
    api: HostingApi,
    repo: str,
    numbers: tuple[int, ...],
) -> LinkedPullRequests:
    out = LinkedPullRequests()
    for number in numbers:
        pr = api.get_pull_request(repo, number)
        if isinstance(pr, Err):
            out.skipped.append(
                SkippedItem(kind="pull_request", ref=f"#{number}", reason=pr.error.message)
            )
            continue
        out.pull_requests[number] = pr.value
    return out


def collect_linked_issues(
    api: HostingApi,
    repo: str,
    scan: ScanResult,
    issues_repo: str,
    *,
    host: str = "github.com",
) -> tuple[list[int], list[SkippedItem]]:
    """Unique linked issue numbers across all scanned pull requests, first seen first."""
    fetched = fetch_pull_requests(api, repo, scan.pull_requests)
    seen: dict[int, None] = {}
    for pr in fetched.pull_requests.values():
        for number in extract_linked_issues(pr.body, issues_repo, host=host):
            seen.setdefault(number, None)
    return list(seen), [*scan.skipped, *fetched.skipped]
