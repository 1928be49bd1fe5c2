"""Console rendering of a readiness check."""

from __future__ import annotations

from ns8.output.console import ConsoleProtocol, Style
from ns8.services.release.check import CheckSummary, IssueInfo
from ns8.services.release.model import IssueStatus, ProgressTier

STATUS_MARK = {
    IssueStatus.OPEN: "🟢",
    IssueStatus.CLOSED: "🟣",
}

PROGRESS_MARK = {
    ProgressTier.IN_PROGRESS: "🚧",
    ProgressTier.TESTING: "🔨",
    ProgressTier.VERIFIED: "✅",
}


def issue_line(summary: CheckSummary, info: IssueInfo, *, nested: bool) -> str:
    prefix = "└─" if nested else ""
    url = summary.issue_url(info.number)
    line = (
        f"{prefix:<6}{STATUS_MARK[info.status]} {PROGRESS_MARK[info.progress]} "
        f"{url:<45} ({info.ref_count}) {info.labels}"
    )
    return line.rstrip()


def _section(console: ConsoleProtocol, title: str, style: Style, lines: list[str]) -> None:
    if not lines:
        return
    console.print(title, style)
    for line in lines:
        console.print(line)
    console.newline()


def render_check_summary(summary: CheckSummary, console: ConsoleProtocol) -> None:
    console.print("Summary:", Style.BOLD)
    console.print("--------")

    _section(
        console,
        "PRs without linked issues:",
        Style.UNLINKED,
        [summary.pull_url(n) for n in summary.unlinked_prs],
    )
    _section(
        console,
        "Translation PRs:",
        Style.TRANSLATION,
        [summary.pull_url(n) for n in summary.translation_prs],
    )
    _section(
        console,
        "Commits outside PRs:",
        Style.ORPHAN,
        [summary.commit_url(sha) for sha in summary.orphan_commits],
    )

    console.print("Issues:", Style.BOLD)
    # Children are shown one level deep under their top-level parent.
    for root in summary.roots():
        console.print(issue_line(summary, root, nested=False))
        for child in summary.children_of(root):
            console.print(issue_line(summary, child, nested=True))
    for info in summary.standalone():
        console.print(issue_line(summary, info, nested=False))

    if summary.is_ready():
        console.newline()
        console.success("All checks passed! Ready to release.")

    for item in summary.skipped:
        console.warning(f"skipped {item.describe()}")

    console.print("---", Style.DIM)
    console.print(
        f"Issue status:    {STATUS_MARK[IssueStatus.OPEN]} Open    "
        f"{STATUS_MARK[IssueStatus.CLOSED]} Closed",
        Style.DIM,
    )
    console.print(
        f"Progress status: {PROGRESS_MARK[ProgressTier.IN_PROGRESS]} In Progress    "
        f"{PROGRESS_MARK[ProgressTier.TESTING]} Testing    "
        f"{PROGRESS_MARK[ProgressTier.VERIFIED]} Verified",
        Style.DIM,
    )
