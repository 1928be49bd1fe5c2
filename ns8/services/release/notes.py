from __future__ import annotations

from ns8.core.result import Err
from ns8.services.release.hosting import HostingApi
from ns8.services.release.scan import extract_linked_issues, fetch_pull_requests, scan_pull_requests

LINKED_ISSUES_HEADING = "## Linked Issues"


def render_linked_issues(titles: dict[int, str], *, issues_repo: str, host: str = "github.com") -> str:
    if not titles:
        return ""

    lines = [LINKED_ISSUES_HEADING]
    for number, title in titles.items():
        url = f"https://{host}/{issues_repo}/issues/{number}"
        lines.append(f"- [{issues_repo}#{number}]({url}): {title}")
    return "\n".join(lines) + "\n"


def compose_linked_issues_notes(
    api: HostingApi,
    repo: str,
    previous_tag: str,
    issues_repo: str,
    *,
    end_ref: str,
    host: str = "github.com",
) -> str:
    """Release notes fragment listing the issues linked since ``previous_tag``.

    Returns "" when nothing is linked or when the scan fails; release
    creation goes ahead without the fragment in both cases.
    """
    # TODO: surface scan failures to the caller once `create` can report
    # partial notes; today an API error and "no linked issues" look the same.
    scan = scan_pull_requests(api, repo, previous_tag, end_ref)
    if isinstance(scan, Err):
        return ""

    fetched = fetch_pull_requests(api, repo, scan.value.pull_requests)

    titles: dict[int, str] = {}
    for pr in fetched.pull_requests.values():
        for number in extract_linked_issues(pr.body, issues_repo, host=host):
            if number in titles:
                continue
            issue = api.get_issue(issues_repo, number)
            if isinstance(issue, Err):
                continue
            titles[number] = issue.value.title

    return render_linked_issues(titles, issues_repo=issues_repo, host=host)
