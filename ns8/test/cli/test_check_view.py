from __future__ import annotations

from ns8.cli.check_view import issue_line, render_check_summary
from ns8.output.console import MockConsole, Style
from ns8.services.release.check import CheckSummary, IssueInfo
from ns8.services.release.model import IssueStatus, ProgressTier, SkippedItem
from ns8.test.services.fakes import ISSUES_REPO, REPO


def _info(number: int, progress: ProgressTier, **kwargs: object) -> IssueInfo:
    info = IssueInfo(number=number, status=IssueStatus.OPEN, progress=progress, labels="")
    for key, value in kwargs.items():
        setattr(info, key, value)
    return info


def _summary() -> CheckSummary:
    summary = CheckSummary(repo=REPO, issues_repo=ISSUES_REPO, since_tag="1.0.0")
    summary.issues[1] = _info(1, ProgressTier.IN_PROGRESS, children=[5], ref_count=0)
    summary.issues[5] = _info(5, ProgressTier.VERIFIED, parent_number=1, labels="bug")
    summary.issues[9] = _info(9, ProgressTier.TESTING, ref_count=2)
    return summary


def test_issue_line_contains_marks_url_and_count() -> None:
    summary = _summary()
    line = issue_line(summary, summary.issues[9], nested=False)
    assert "🟢 🔨" in line
    assert "https://github.com/NethServer/dev/issues/9" in line
    assert line.endswith("(2)")


def test_nested_issue_line_is_indented() -> None:
    summary = _summary()
    line = issue_line(summary, summary.issues[5], nested=True)
    assert line.startswith("└─")
    assert line.endswith("bug")


def test_render_groups_children_under_parent() -> None:
    console = MockConsole()
    render_check_summary(_summary(), console)

    lines = console.messages
    parent = next(i for i, m in enumerate(lines) if "/issues/1 " in m)
    assert "/issues/5" in lines[parent + 1]
    assert "/issues/9" in lines[parent + 2]
    assert not console.has_success()


def test_render_sections_only_when_populated() -> None:
    console = MockConsole()
    summary = _summary()
    summary.unlinked_prs.append(11)
    summary.orphan_commits.append("abc")

    render_check_summary(summary, console)

    assert [o.message for o in console.outputs if o.style is Style.UNLINKED] == [
        "PRs without linked issues:"
    ]
    assert console.find("https://github.com/NethServer/ns8-mail/pull/11")
    assert console.find("https://github.com/NethServer/ns8-mail/commit/abc")
    assert not console.find("Translation PRs:")


def test_render_ready_summary_and_skipped_items() -> None:
    console = MockConsole()
    summary = CheckSummary(repo=REPO, issues_repo=ISSUES_REPO)
    summary.issues[3] = _info(3, ProgressTier.VERIFIED)
    summary.skipped.append(SkippedItem(kind="issue", ref="#4", reason="gh failed"))

    render_check_summary(summary, console)

    assert console.find("All checks passed! Ready to release.")
    assert console.find("skipped issue #4: gh failed")
    assert console.find("Progress status:")
