from __future__ import annotations

from dataclasses import dataclass, field

from ns8.core.config import ModuleReleaseOptions
from ns8.core.result import Err, Ok, Result
from ns8.output.console import ConsoleProtocol, Style
from ns8.services.release.errors import ReleaseError
from ns8.services.release.hosting import HostingApi
from ns8.services.release.model import CommitRef, Issue, ReleaseTag, SkippedItem
from ns8.services.release.history import find_previous_release, prereleases_between
from ns8.services.release.notes import compose_linked_issues_notes
from ns8.services.release.repo import (
    default_branch_sha,
    latest_release,
    release_commit_sha,
    resolve_commit,
    resolve_repository,
)
from ns8.services.release.scan import collect_linked_issues, scan_pull_requests
from ns8.services.release.semver import is_prerelease_name, is_valid_version, next_testing_version


@dataclass(frozen=True, slots=True)
class CreatedRelease:
    repo: str
    tag: str
    prerelease: bool
    draft: bool
    commit: CommitRef
    notes: str | None


@dataclass(frozen=True, slots=True)
class PostedComment:
    issue: int
    url: str
    parent_of: int | None = None


@dataclass(slots=True)
class CommentReport:
    repo: str
    tag: str
    linked_issues: list[int] = field(default_factory=list)
    posted: list[PostedComment] = field(default_factory=list)
    skipped: list[SkippedItem] = field(default_factory=list)


@dataclass(slots=True)
class CleanReport:
    repo: str
    stable_tag: str
    previous_tag: str
    candidates: list[str] = field(default_factory=list)
    deleted: list[str] = field(default_factory=list)
    skipped: list[SkippedItem] = field(default_factory=list)


def _resolve_repo(api: HostingApi, options: ModuleReleaseOptions) -> Result[str, ReleaseError]:
    return resolve_repository(api, options.repo, module_prefix=options.config.module_prefix)


def _all_releases(
    api: HostingApi, repo: str, options: ModuleReleaseOptions
) -> Result[list[ReleaseTag], ReleaseError]:
    releases = api.list_releases(
        repo, limit=options.config.release_list_limit, exclude_prereleases=False
    )
    if isinstance(releases, Err):
        return Err(releases.error.wrap("failed to list releases"))
    return releases


def next_testing_release(api: HostingApi, repo: str) -> Result[str, ReleaseError]:
    """Name of the next testing release, refusing when there is nothing new."""
    latest = latest_release(api, repo, exclude_prereleases=False)
    if isinstance(latest, Err):
        return latest
    release = latest.value

    if not is_valid_version(release.tag):
        return Err(
            ReleaseError(
                kind="invalid_version",
                message=f"invalid semver format for the latest release: {release.tag}",
            )
        )

    tag_sha = release_commit_sha(api, repo, release.tag)
    if isinstance(tag_sha, Err):
        return tag_sha

    tip_sha = default_branch_sha(api, repo)
    if isinstance(tip_sha, Err):
        return tip_sha

    if tag_sha.value == tip_sha.value:
        return Err(
            ReleaseError(
                kind="nothing_to_release",
                message="the latest release tag is the HEAD of the default branch",
                hint=release.tag,
            )
        )

    return next_testing_version(release.tag, release.prerelease)


def create_release(
    api: HostingApi,
    options: ModuleReleaseOptions,
    *,
    console: ConsoleProtocol,
) -> Result[CreatedRelease, ReleaseError]:
    repo_r = _resolve_repo(api, options)
    if isinstance(repo_r, Err):
        return repo_r
    repo = repo_r.value

    commit = resolve_commit(api, repo, options.release_refs)
    if isinstance(commit, Err):
        return commit

    name = options.release_name.strip()
    prerelease = options.testing or is_prerelease_name(name)

    if options.testing and not name:
        generated = next_testing_release(api, repo)
        if isinstance(generated, Err):
            return Err(generated.error.wrap("failed to generate testing release name"))
        name = generated.value
        console.print(f"next testing release: {name}", Style.DIM)

    if not name:
        return Err(
            ReleaseError(
                kind="invalid_input",
                message="missing release name",
                hint="Provide the release name using the --release-name flag",
            )
        )

    if not is_valid_version(name):
        return Err(
            ReleaseError(
                kind="invalid_version",
                message=f"invalid semver format for release name: {name}",
            )
        )

    notes: str | None = None
    if options.with_linked_issues:
        previous = latest_release(api, repo, exclude_prereleases=not prerelease)
        repository = api.get_repository(repo)
        if isinstance(previous, Ok) and isinstance(repository, Ok):
            notes = (
                compose_linked_issues_notes(
                    api,
                    repo,
                    previous.value.tag,
                    options.effective_issues_repo,
                    end_ref=repository.value.default_branch,
                    host=options.config.host,
                )
                or None
            )
        if notes is None:
            console.warning("no linked issues found for the release notes")

    created = api.create_release(
        repo,
        tag=name,
        title=name,
        draft=options.draft,
        prerelease=prerelease,
        target=commit.value.target,
        notes=notes,
    )
    if isinstance(created, Err):
        return created

    return Ok(
        CreatedRelease(
            repo=repo,
            tag=name,
            prerelease=prerelease,
            draft=options.draft,
            commit=commit.value,
            notes=notes,
        )
    )


def release_comment_body(repo: str, tag: str, *, prerelease: bool, host: str = "github.com") -> str:
    kind = "Testing release" if prerelease else "Release"
    return f"{kind} `{repo}` [{tag}](https://{host}/{repo}/releases/tag/{tag})"


def _fetch_open_issue(
    api: HostingApi, issues_repo: str, number: int, report: CommentReport
) -> Issue | None:
    issue = api.get_issue(issues_repo, number)
    if isinstance(issue, Err):
        report.skipped.append(SkippedItem(kind="issue", ref=f"#{number}", reason=issue.error.message))
        return None
    if issue.value.is_closed:
        return None
    return issue.value


def comment_release(
    api: HostingApi,
    options: ModuleReleaseOptions,
    *,
    console: ConsoleProtocol,
    release_name: str = "",
) -> Result[CommentReport, ReleaseError]:
    """Announce a release on the open issues it resolves, and on their open parents."""
    repo_r = _resolve_repo(api, options)
    if isinstance(repo_r, Err):
        return repo_r
    repo = repo_r.value
    issues_repo = options.effective_issues_repo

    tag = release_name.strip()
    if not tag:
        latest = latest_release(api, repo, exclude_prereleases=False)
        if isinstance(latest, Err):
            return latest
        tag = latest.value.tag

    release = api.view_release(repo, tag)
    if isinstance(release, Err):
        return Err(release.error.wrap("failed to view release"))

    releases = _all_releases(api, repo, options)
    if isinstance(releases, Err):
        return releases

    previous = find_previous_release(releases.value, tag)
    if isinstance(previous, Err):
        return Err(previous.error.wrap("failed to find previous release"))

    scan = scan_pull_requests(api, repo, previous.value, tag)
    if isinstance(scan, Err):
        return Err(scan.error.wrap("failed to scan PRs"))

    linked, skipped = collect_linked_issues(
        api, repo, scan.value, issues_repo, host=options.config.host
    )
    report = CommentReport(repo=repo, tag=tag, linked_issues=linked, skipped=skipped)
    if not linked:
        return Ok(report)

    body = release_comment_body(
        repo, tag, prerelease=release.value.prerelease, host=options.config.host
    )
    for number in linked:
        if _fetch_open_issue(api, issues_repo, number, report) is None:
            continue

        url = api.create_issue_comment(issues_repo, number, body)
        if isinstance(url, Err):
            report.skipped.append(
                SkippedItem(kind="comment", ref=f"#{number}", reason=url.error.message)
            )
            continue
        report.posted.append(PostedComment(issue=number, url=url.value))
        console.success(f"commented on issue {issues_repo}#{number}")
        console.print(f"   {url.value}", Style.DIM)

        parent = api.get_parent_issue(issues_repo, number)
        if isinstance(parent, Err) or parent.value is None:
            continue
        parent_number = parent.value
        if _fetch_open_issue(api, issues_repo, parent_number, report) is None:
            continue

        parent_url = api.create_issue_comment(issues_repo, parent_number, body)
        if isinstance(parent_url, Err):
            report.skipped.append(
                SkippedItem(kind="comment", ref=f"#{parent_number}", reason=parent_url.error.message)
            )
            continue
        report.posted.append(PostedComment(issue=parent_number, url=parent_url.value, parent_of=number))
        console.success(f"commented on parent issue {issues_repo}#{parent_number}")
        console.print(f"   {parent_url.value}", Style.DIM)

    return Ok(report)


def plan_prerelease_cleanup(
    api: HostingApi,
    options: ModuleReleaseOptions,
) -> Result[CleanReport, ReleaseError]:
    """Find the pre-releases superseded by a stable release.

    The stable release is ``options.release_name`` or the latest stable one;
    candidates are the pre-releases created after the previous stable release.
    """
    repo_r = _resolve_repo(api, options)
    if isinstance(repo_r, Err):
        return repo_r
    repo = repo_r.value

    stable = options.release_name.strip()
    if not stable:
        latest = latest_release(api, repo, exclude_prereleases=True)
        if isinstance(latest, Err):
            return Err(
                ReleaseError(
                    kind="no_release_found",
                    message="no stable release found in the repository",
                )
            )
        stable = latest.value.tag

    releases = _all_releases(api, repo, options)
    if isinstance(releases, Err):
        return releases

    previous = find_previous_release(releases.value, stable)
    if isinstance(previous, Err):
        return Err(previous.error.wrap("failed to find previous release"))

    candidates = prereleases_between(releases.value, previous.value, stable)
    if isinstance(candidates, Err):
        return Err(candidates.error.wrap("failed to get pre-releases"))

    return Ok(
        CleanReport(
            repo=repo,
            stable_tag=stable,
            previous_tag=previous.value,
            candidates=candidates.value,
        )
    )


def delete_prereleases(
    api: HostingApi,
    report: CleanReport,
    *,
    console: ConsoleProtocol,
) -> CleanReport:
    """Delete every candidate; failures are recorded and the rest continue."""
    for tag in report.candidates:
        deleted = api.delete_release(report.repo, tag)
        if isinstance(deleted, Err):
            report.skipped.append(SkippedItem(kind="release", ref=tag, reason=deleted.error.message))
            console.error(f"failed to delete {tag}: {deleted.error.message}")
            continue
        report.deleted.append(tag)
        console.success(f"deleted {tag}")

    return report


def clean_prereleases(
    api: HostingApi,
    options: ModuleReleaseOptions,
    *,
    console: ConsoleProtocol,
) -> Result[CleanReport, ReleaseError]:
    """Plan and, unless ``options.dry_run``, delete superseded pre-releases."""
    planned = plan_prerelease_cleanup(api, options)
    if isinstance(planned, Err) or options.dry_run:
        return planned
    return Ok(delete_prereleases(api, planned.value, console=console))
