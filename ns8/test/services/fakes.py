"""In-memory HostingApi for service and CLI tests."""

from __future__ import annotations

from dataclasses import dataclass, field

from ns8.core.result import Err, Ok, Result
from ns8.services.release.errors import ReleaseError
from ns8.services.release.model import Issue, PullRequest, ReleaseTag, Repository

REPO = "NethServer/ns8-mail"
ISSUES_REPO = "NethServer/dev"
MAIN_SHA = "c" * 40
TAG_SHA = "a" * 40


def _fail(what: str) -> Err[ReleaseError]:
    return Err(ReleaseError(kind="gh_failed", message=f"gh failed: {what}"))


def ts(n: int) -> str:
    return f"2024-01-{n:02d}T00:00:00Z"


@dataclass
class CreatedReleaseCall:
    repo: str
    tag: str
    title: str
    draft: bool
    prerelease: bool
    target: str | None
    notes: str | None


@dataclass
class FakeHostingApi:
    current: str | None = REPO
    repos: dict[str, Repository] = field(default_factory=dict)
    refs: dict[str, str] = field(default_factory=dict)
    compares: dict[tuple[str, str], list[str]] = field(default_factory=dict)
    merge_bases: dict[tuple[str, str], str] = field(default_factory=dict)
    commit_prs: dict[str, list[int]] = field(default_factory=dict)
    pull_requests: dict[int, PullRequest] = field(default_factory=dict)
    issues: dict[int, Issue] = field(default_factory=dict)
    parents: dict[int, int] = field(default_factory=dict)
    releases: list[ReleaseTag] = field(default_factory=list)
    failing: set[str] = field(default_factory=set)

    created: list[CreatedReleaseCall] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    comments: list[tuple[str, int, str]] = field(default_factory=list)
    calls: list[str] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.repos:
            owner, name = REPO.split("/")
            self.repos[REPO] = Repository(owner=owner, name=name, default_branch="main")

    # -- builders --------------------------------------------------------

    def add_pr(self, number: int, body: str = "", labels: tuple[str, ...] = ()) -> None:
        self.pull_requests[number] = PullRequest(number=number, body=body, labels=labels)

    def add_issue(
        self,
        number: int,
        *,
        labels: tuple[str, ...] = (),
        state: str = "open",
        title: str | None = None,
        parent: int | None = None,
    ) -> None:
        self.issues[number] = Issue(
            number=number,
            title=title if title is not None else f"Issue {number}",
            state=state,
            labels=labels,
        )
        if parent is not None:
            self.parents[number] = parent

    def add_release(self, tag: str, *, prerelease: bool, day: int) -> None:
        self.releases.append(ReleaseTag(tag=tag, prerelease=prerelease, created_at=ts(day)))

    # -- HostingApi ------------------------------------------------------

    def current_repository(self) -> Result[str | None, ReleaseError]:
        if "current" in self.failing:
            return _fail("repo view")
        return Ok(self.current)

    def get_repository(self, repo: str) -> Result[Repository, ReleaseError]:
        self.calls.append(f"repo:{repo}")
        found = self.repos.get(repo)
        if found is None:
            return _fail(f"repos/{repo}")
        return Ok(found)

    def compare_commits(self, repo: str, base: str, head: str) -> Result[list[str], ReleaseError]:
        self.calls.append(f"compare:{base}...{head}")
        if "compare" in self.failing:
            return _fail("compare")
        return Ok(list(self.compares.get((base, head), [])))

    def pull_requests_for_commit(self, repo: str, sha: str) -> Result[list[int], ReleaseError]:
        self.calls.append(f"pulls:{sha}")
        if f"commit:{sha}" in self.failing:
            return _fail(f"commits/{sha}/pulls")
        return Ok(list(self.commit_prs.get(sha, [])))

    def get_pull_request(self, repo: str, number: int) -> Result[PullRequest, ReleaseError]:
        self.calls.append(f"pr:{number}")
        pr = self.pull_requests.get(number)
        if pr is None or f"pr:{number}" in self.failing:
            return _fail(f"pulls/{number}")
        return Ok(pr)

    def get_issue(self, repo: str, number: int) -> Result[Issue, ReleaseError]:
        self.calls.append(f"issue:{number}")
        issue = self.issues.get(number)
        if issue is None or f"issue:{number}" in self.failing:
            return _fail(f"issues/{number}")
        return Ok(issue)

    def get_parent_issue(self, repo: str, number: int) -> Result[int | None, ReleaseError]:
        self.calls.append(f"parent:{number}")
        if f"parent:{number}" in self.failing:
            return _fail(f"parent {number}")
        return Ok(self.parents.get(number))

    def list_releases(
        self, repo: str, *, limit: int, exclude_prereleases: bool
    ) -> Result[list[ReleaseTag], ReleaseError]:
        if "releases" in self.failing:
            return _fail("release list")
        items = sorted(self.releases, key=lambda r: r.created_at, reverse=True)
        if exclude_prereleases:
            items = [r for r in items if not r.prerelease]
        return Ok(items[:limit])

    def view_release(self, repo: str, tag: str) -> Result[ReleaseTag, ReleaseError]:
        for r in self.releases:
            if r.tag == tag:
                return Ok(r)
        return _fail(f"release view {tag}")

    def get_ref_sha(self, repo: str, ref: str) -> Result[str, ReleaseError]:
        sha = self.refs.get(ref)
        if sha is None:
            return _fail(f"git/ref/{ref}")
        return Ok(sha)

    def get_merge_base(self, repo: str, base: str, head: str) -> Result[str, ReleaseError]:
        sha = self.merge_bases.get((base, head))
        if sha is None:
            return _fail(f"merge base {base}...{head}")
        return Ok(sha)

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
    ) -> Result[None, ReleaseError]:
        if "create" in self.failing:
            return _fail("release create")
        self.created.append(
            CreatedReleaseCall(
                repo=repo,
                tag=tag,
                title=title,
                draft=draft,
                prerelease=prerelease,
                target=target,
                notes=notes,
            )
        )
        return Ok(None)

    def delete_release(self, repo: str, tag: str) -> Result[None, ReleaseError]:
        if f"delete:{tag}" in self.failing:
            return _fail(f"release delete {tag}")
        self.deleted.append(tag)
        return Ok(None)

    def create_issue_comment(self, repo: str, number: int, body: str) -> Result[str, ReleaseError]:
        if f"comment:{number}" in self.failing:
            return _fail(f"issue comment {number}")
        self.comments.append((repo, number, body))
        return Ok(f"https://github.com/{repo}/issues/{number}#issuecomment-{len(self.comments)}")


def release_ready_api() -> FakeHostingApi:
    """Repo with stable 1.0.0 behind main, three commits and two PRs."""
    api = FakeHostingApi()
    api.add_release("1.0.0", prerelease=False, day=1)
    api.refs["tags/1.0.0"] = TAG_SHA
    api.refs["heads/main"] = MAIN_SHA
    api.compares[("1.0.0", "main")] = ["s1", "s2", "s3"]
    api.commit_prs = {"s1": [10], "s2": [11], "s3": [11]}
    return api
