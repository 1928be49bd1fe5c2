from __future__ import annotations

import json
import shutil
from pathlib import Path
from time import sleep

from ns8.core.result import Err, Ok, Result
from ns8.core.structured import (
    as_obj_list,
    as_str_dict,
    get_bool,
    get_int,
    get_str,
    get_table,
    label_names,
)
from ns8.output.console import ConsoleProtocol
from ns8.platform.process import ProcessError
from ns8.platform.process import run as run_process
from ns8.services.release.errors import ReleaseError
from ns8.services.release.model import Issue, PullRequest, ReleaseTag, Repository
from ns8.services.release.timeouts import (
    GH_READ_RETRY_ATTEMPTS,
    GH_READ_RETRY_DELAY_SECONDS,
    GH_TIMEOUT_SECONDS,
)

_RELEASE_FIELDS = "tagName,isPrerelease,createdAt"

_PARENT_ISSUE_QUERY = """
query($owner: String!, $repo: String!, $issueNumber: Int!) {
  repository(owner: $owner, name: $repo) {
    issue(number: $issueNumber) {
      parent {
        number
      }
    }
  }
}
"""


def _is_transient_gh_error(error: ProcessError) -> bool:
    text = f"{error.stderr}\n{error.stdout}".lower()
    markers = (
        "timed out",
        "timeout",
        "connection reset",
        "connection refused",
        "temporarily unavailable",
        "service unavailable",
        "bad gateway",
        "gateway timeout",
        "tls handshake timeout",
        "network is unreachable",
        "http 429",
        "http 500",
        "http 502",
        "http 503",
        "http 504",
    )
    if error.returncode == -1 and "timed out" in text:
        return True
    return any(marker in text for marker in markers)


def ensure_gh_available() -> Result[None, ReleaseError]:
    if shutil.which("gh") is None:
        return Err(
            ReleaseError(
                kind="gh_missing",
                message="gh: missing",
                hint="Install GitHub CLI: https://cli.github.com/",
            )
        )
    return Ok(None)


def split_repo(repo: str) -> tuple[str, str] | None:
    parts = repo.split("/")
    if len(parts) != 2 or not parts[0] or not parts[1]:
        return None
    return parts[0], parts[1]


def _parse_json(text: str, *, what: str) -> Result[object, ReleaseError]:
    try:
        obj: object = json.loads(text)
    except json.JSONDecodeError as e:
        return Err(
            ReleaseError(
                kind="invalid_payload",
                message=f"gh returned invalid JSON: {e}",
                hint=what,
            )
        )
    return Ok(obj)


def _parse_release(obj: object) -> ReleaseTag | None:
    d = as_str_dict(obj)
    if d is None:
        return None
    tag = get_str(d, "tagName")
    prerelease = get_bool(d, "isPrerelease")
    if tag is None or prerelease is None:
        return None
    return ReleaseTag(tag=tag, prerelease=prerelease, created_at=get_str(d, "createdAt") or "")


class GhHostingApi:
    """``HostingApi`` backed by the GitHub CLI.

    Reads are retried on transient failures (timeouts, 5xx, rate limits);
    writes are executed once.
    """

    def __init__(
        self,
        *,
        workspace_root: Path,
        console: ConsoleProtocol | None = None,
        timeout: float = GH_TIMEOUT_SECONDS,
        retry_attempts: int = GH_READ_RETRY_ATTEMPTS,
    ) -> None:
        self._root = workspace_root
        self._console = console
        self._timeout = timeout
        self._retry_attempts = retry_attempts

    # -- transport -------------------------------------------------------

    def _trace(self, cmd: list[str]) -> None:
        if self._console is not None:
            self._console.debug(" ".join(cmd))

    def _read(self, cmd: list[str], *, message: str) -> Result[str, ReleaseError]:
        attempts = max(1, self._retry_attempts)
        for attempt in range(attempts):
            self._trace(cmd)
            result = run_process(cmd, cwd=self._root, timeout=self._timeout)
            if isinstance(result, Ok):
                return result

            error = result.error
            if attempt < attempts - 1 and _is_transient_gh_error(error):
                sleep(GH_READ_RETRY_DELAY_SECONDS * (attempt + 1))
                continue

            return Err(
                ReleaseError(
                    kind="gh_failed",
                    message=message,
                    hint=error.stderr.strip() or None,
                )
            )

        return Err(ReleaseError(kind="gh_failed", message=message))

    def _write(
        self, cmd: list[str], *, message: str, input_text: str | None = None
    ) -> Result[str, ReleaseError]:
        self._trace(cmd)
        result = run_process(cmd, cwd=self._root, timeout=self._timeout, input_text=input_text)
        if isinstance(result, Err):
            return Err(
                ReleaseError(
                    kind="gh_failed",
                    message=message,
                    hint=result.error.stderr.strip() or None,
                )
            )
        return result

    def _api_json(self, endpoint: str) -> Result[object, ReleaseError]:
        out = self._read(["gh", "api", endpoint], message=f"gh api failed: {endpoint}")
        if isinstance(out, Err):
            return out
        return _parse_json(out.value, what=endpoint)

    def _api_dict(self, endpoint: str) -> Result[dict[str, object], ReleaseError]:
        obj = self._api_json(endpoint)
        if isinstance(obj, Err):
            return obj
        data = as_str_dict(obj.value)
        if data is None:
            return Err(
                ReleaseError(kind="invalid_payload", message=f"unexpected payload: {endpoint}")
            )
        return Ok(data)

    # -- repository ------------------------------------------------------

    def current_repository(self) -> Result[str | None, ReleaseError]:
        out = self._read(
            ["gh", "repo", "view", "--json", "owner,name", "--jq", '.owner.login + "/" + .name'],
            message="failed to determine the current repository",
        )
        if isinstance(out, Err):
            return out
        repo = out.value.strip()
        return Ok(repo or None)

    def get_repository(self, repo: str) -> Result[Repository, ReleaseError]:
        data = self._api_dict(f"repos/{repo}")
        if isinstance(data, Err):
            return data

        owner_tbl = get_table(data.value, "owner")
        owner = get_str(owner_tbl, "login") if owner_tbl is not None else None
        name = get_str(data.value, "name")
        branch = get_str(data.value, "default_branch")
        if owner is None or name is None or branch is None:
            return Err(
                ReleaseError(kind="invalid_payload", message=f"incomplete repository payload: {repo}")
            )
        return Ok(Repository(owner=owner, name=name, default_branch=branch))

    # -- commits ---------------------------------------------------------

    def compare_commits(self, repo: str, base: str, head: str) -> Result[list[str], ReleaseError]:
        data = self._api_dict(f"repos/{repo}/compare/{base}...{head}")
        if isinstance(data, Err):
            return data

        raw = as_obj_list(data.value.get("commits"))
        if raw is None:
            return Err(
                ReleaseError(kind="invalid_payload", message=f"missing compare commits: {repo}")
            )

        shas: list[str] = []
        for item in raw:
            d = as_str_dict(item)
            if d is None:
                continue
            sha = get_str(d, "sha")
            if sha is not None:
                shas.append(sha)
        return Ok(shas)

    def pull_requests_for_commit(self, repo: str, sha: str) -> Result[list[int], ReleaseError]:
        obj = self._api_json(f"repos/{repo}/commits/{sha}/pulls")
        if isinstance(obj, Err):
            return obj

        raw = as_obj_list(obj.value)
        if raw is None:
            return Err(
                ReleaseError(kind="invalid_payload", message=f"unexpected pulls payload: {sha}")
            )

        numbers: list[int] = []
        for item in raw:
            d = as_str_dict(item)
            if d is None:
                continue
            number = get_int(d, "number")
            if number is not None:
                numbers.append(number)
        return Ok(numbers)

    def get_ref_sha(self, repo: str, ref: str) -> Result[str, ReleaseError]:
        data = self._api_dict(f"repos/{repo}/git/ref/{ref}")
        if isinstance(data, Err):
            return data

        obj_tbl = get_table(data.value, "object")
        sha = get_str(obj_tbl, "sha") if obj_tbl is not None else None
        if obj_tbl is None or sha is None:
            return Err(ReleaseError(kind="invalid_payload", message=f"missing sha for ref: {ref}"))

        # Annotated tags point at a tag object; peel it to the commit.
        if get_str(obj_tbl, "type") == "tag":
            tag_data = self._api_dict(f"repos/{repo}/git/tags/{sha}")
            if isinstance(tag_data, Err):
                return tag_data
            target = get_table(tag_data.value, "object")
            peeled = get_str(target, "sha") if target is not None else None
            if peeled is None:
                return Err(
                    ReleaseError(kind="invalid_payload", message=f"cannot peel tag ref: {ref}")
                )
            return Ok(peeled)

        return Ok(sha)

    def get_merge_base(self, repo: str, base: str, head: str) -> Result[str, ReleaseError]:
        data = self._api_dict(f"repos/{repo}/compare/{base}...{head}")
        if isinstance(data, Err):
            return data

        merge_base = get_table(data.value, "merge_base_commit")
        sha = get_str(merge_base, "sha") if merge_base is not None else None
        if sha is None:
            return Err(
                ReleaseError(kind="invalid_payload", message=f"missing merge base: {base}...{head}")
            )
        return Ok(sha)

    # -- pull requests and issues ----------------------------------------

    def get_pull_request(self, repo: str, number: int) -> Result[PullRequest, ReleaseError]:
        data = self._api_dict(f"repos/{repo}/pulls/{number}")
        if isinstance(data, Err):
            return data

        body = data.value.get("body")
        return Ok(
            PullRequest(
                number=number,
                body=body if isinstance(body, str) else "",
                labels=label_names(data.value),
            )
        )

    def get_issue(self, repo: str, number: int) -> Result[Issue, ReleaseError]:
        data = self._api_dict(f"repos/{repo}/issues/{number}")
        if isinstance(data, Err):
            return data

        state = get_str(data.value, "state")
        if state is None:
            return Err(
                ReleaseError(kind="invalid_payload", message=f"missing issue state: #{number}")
            )
        return Ok(
            Issue(
                number=number,
                title=get_str(data.value, "title") or "",
                state=state,
                labels=label_names(data.value),
            )
        )

    def get_parent_issue(self, repo: str, number: int) -> Result[int | None, ReleaseError]:
        parts = split_repo(repo)
        if parts is None:
            return Err(ReleaseError(kind="invalid_input", message=f"invalid repo format: {repo}"))
        owner, name = parts

        out = self._read(
            [
                "gh",
                "api",
                "graphql",
                "-H",
                "GraphQL-Features: sub_issues",
                "-f",
                f"query={_PARENT_ISSUE_QUERY}",
                "-F",
                f"owner={owner}",
                "-F",
                f"repo={name}",
                "-F",
                f"issueNumber={number}",
            ],
            message=f"failed to query parent issue: #{number}",
        )
        if isinstance(out, Err):
            return out

        obj = _parse_json(out.value, what="graphql parent issue")
        if isinstance(obj, Err):
            return obj

        node = as_str_dict(obj.value)
        for key in ("data", "repository", "issue"):
            node = get_table(node, key) if node is not None else None
        if node is None:
            return Err(
                ReleaseError(kind="invalid_payload", message=f"unexpected graphql payload: #{number}")
            )

        parent = get_table(node, "parent")
        if parent is None:
            return Ok(None)
        return Ok(get_int(parent, "number"))

    def create_issue_comment(self, repo: str, number: int, body: str) -> Result[str, ReleaseError]:
        out = self._write(
            ["gh", "issue", "comment", str(number), "--repo", repo, "--body", body],
            message=f"failed to comment on {repo}#{number}",
        )
        if isinstance(out, Err):
            return out

        # gh prints the comment URL on success.
        lines = [line.strip() for line in out.value.splitlines() if line.strip()]
        if lines and lines[-1].startswith("https://"):
            return Ok(lines[-1])

        comments = self._api_json(f"repos/{repo}/issues/{number}/comments?per_page=100")
        if isinstance(comments, Err):
            return comments
        raw = as_obj_list(comments.value) or []
        if not raw:
            return Err(
                ReleaseError(kind="invalid_payload", message="no comments found after creation")
            )
        last = as_str_dict(raw[-1])
        url = get_str(last, "html_url") if last is not None else None
        if url is None:
            return Err(ReleaseError(kind="invalid_payload", message="missing comment html_url"))
        return Ok(url)

    # -- releases --------------------------------------------------------

    def list_releases(
        self, repo: str, *, limit: int, exclude_prereleases: bool
    ) -> Result[list[ReleaseTag], ReleaseError]:
        cmd = [
            "gh",
            "release",
            "list",
            "--repo",
            repo,
            "--json",
            _RELEASE_FIELDS,
            "--limit",
            str(limit),
        ]
        if exclude_prereleases:
            cmd.append("--exclude-pre-releases")

        out = self._read(cmd, message=f"failed to list releases: {repo}")
        if isinstance(out, Err):
            return out

        obj = _parse_json(out.value, what="gh release list")
        if isinstance(obj, Err):
            return obj

        raw = as_obj_list(obj.value)
        if raw is None:
            return Err(
                ReleaseError(kind="invalid_payload", message=f"unexpected releases payload: {repo}")
            )

        releases: list[ReleaseTag] = []
        for item in raw:
            parsed = _parse_release(item)
            if parsed is not None:
                releases.append(parsed)
        return Ok(releases)

    def view_release(self, repo: str, tag: str) -> Result[ReleaseTag, ReleaseError]:
        out = self._read(
            ["gh", "release", "view", tag, "--repo", repo, "--json", _RELEASE_FIELDS],
            message=f"failed to view release: {tag}",
        )
        if isinstance(out, Err):
            return out

        obj = _parse_json(out.value, what="gh release view")
        if isinstance(obj, Err):
            return obj

        parsed = _parse_release(obj.value)
        if parsed is None:
            return Err(
                ReleaseError(kind="invalid_payload", message=f"unexpected release payload: {tag}")
            )
        return Ok(parsed)

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
        cmd = [
            "gh",
            "release",
            "create",
            tag,
            "--repo",
            repo,
            "--title",
            title,
            "--generate-notes",
        ]
        if draft:
            cmd.append("--draft")
        if prerelease:
            cmd.append("--prerelease")
        if target:
            cmd.extend(["--target", target])
        if notes:
            cmd.extend(["--notes-file", "-"])

        out = self._write(cmd, message=f"failed to create release: {tag}", input_text=notes or None)
        if isinstance(out, Err):
            return out
        return Ok(None)

    def delete_release(self, repo: str, tag: str) -> Result[None, ReleaseError]:
        out = self._write(
            ["gh", "release", "delete", tag, "--repo", repo, "--yes"],
            message=f"failed to delete release: {tag}",
        )
        if isinstance(out, Err):
            return out
        return Ok(None)
