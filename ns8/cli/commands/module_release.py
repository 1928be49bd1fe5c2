from __future__ import annotations

import typer

from ns8.cli.check_view import render_check_summary
from ns8.cli.commands.release_common import (
    build_options,
    exit_on_release_error,
    exit_release,
    print_skipped,
)
from ns8.cli.context import build_context
from ns8.core.errors import ErrorCode
from ns8.core.result import Err
from ns8.output.console import Style
from ns8.services.release.check import NothingToRelease, check_release_readiness
from ns8.services.release.repo import resolve_repository
from ns8.services.release.service import (
    comment_release,
    create_release,
    delete_prereleases,
    plan_prerelease_cleanup,
)

module_release_app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    help="Manage releases for NethServer 8 modules.",
)

_REPO_HELP = "The GitHub NethServer 8 module repository (e.g. owner/ns8-module)"
_ISSUES_REPO_HELP = "Issues repository (default from config: NethServer/dev)"


@module_release_app.command()
def create(
    repo: str = typer.Option("", "--repo", help=_REPO_HELP),
    issues_repo: str = typer.Option("", "--issues-repo", help=_ISSUES_REPO_HELP),
    release_refs: str = typer.Option(
        "", "--release-refs", help="Commit SHA to associate with the release"
    ),
    release_name: str = typer.Option(
        "", "--release-name", help="Release name (must follow semver format)"
    ),
    testing: bool = typer.Option(False, "--testing", help="Create a testing release"),
    draft: bool = typer.Option(False, "--draft", help="Create a draft release"),
    with_linked_issues: bool = typer.Option(
        False, "--with-linked-issues", help="Include linked issues from PRs in release notes"
    ),
) -> None:
    """Create a new release with automatic version generation and release notes."""
    ctx = build_context()
    options = build_options(
        ctx.config,
        repo=repo,
        issues_repo=issues_repo,
        release_name=release_name,
        release_refs=release_refs,
        testing=testing,
        draft=draft,
        with_linked_issues=with_linked_issues,
    )

    created = create_release(ctx.api, options, console=ctx.console)
    if isinstance(created, Err):
        exit_on_release_error(created.error)

    release = created.value
    kind = "testing release" if release.prerelease else "release"
    ctx.console.success(f"{kind} {release.tag} created successfully ({release.repo})")
    if release.commit.target is not None:
        ctx.console.print(f"target: {release.commit.sha}", Style.DIM)


@module_release_app.command()
def check(
    repo: str = typer.Option("", "--repo", help=_REPO_HELP),
    issues_repo: str = typer.Option("", "--issues-repo", help=_ISSUES_REPO_HELP),
    strict: bool = typer.Option(
        False, "--strict", help="Exit with an error when the branch is not ready to release"
    ),
) -> None:
    """Check PRs and issues since the latest release and verify release readiness."""
    ctx = build_context()
    options = build_options(ctx.config, repo=repo, issues_repo=issues_repo)

    resolved = resolve_repository(ctx.api, options.repo, module_prefix=ctx.config.module_prefix)
    if isinstance(resolved, Err):
        exit_on_release_error(resolved.error)

    outcome = check_release_readiness(
        ctx.api,
        resolved.value,
        issues_repo=options.effective_issues_repo,
        translation_label=ctx.config.translation_label,
        host=ctx.config.host,
    )
    if isinstance(outcome, Err):
        exit_on_release_error(outcome.error)

    result = outcome.value
    if isinstance(result, NothingToRelease):
        ctx.console.success(
            f"the latest release tag ({result.tag}) is the HEAD of the default branch, "
            "there is nothing to release"
        )
        return

    ctx.console.print(f"Checking PRs and issues since {result.since_tag}...", Style.DIM)
    ctx.console.newline()
    render_check_summary(result, ctx.console)

    if strict and not result.is_ready():
        raise typer.Exit(code=int(ErrorCode.USER_ERROR))


@module_release_app.command()
def comment(
    version: str = typer.Argument("", help="Release to announce (default: latest release)"),
    repo: str = typer.Option("", "--repo", help=_REPO_HELP),
    issues_repo: str = typer.Option("", "--issues-repo", help=_ISSUES_REPO_HELP),
) -> None:
    """Post release notifications on open linked issues and their parent issues."""
    ctx = build_context()
    options = build_options(ctx.config, repo=repo, issues_repo=issues_repo)

    report_r = comment_release(ctx.api, options, console=ctx.console, release_name=version)
    if isinstance(report_r, Err):
        exit_on_release_error(report_r.error)

    report = report_r.value
    print_skipped(ctx.console, report.skipped)
    if not report.linked_issues:
        ctx.console.info("no linked issues found for this release")
        return

    if not report.posted:
        ctx.console.info("no open issues to comment on")
        return

    ctx.console.newline()
    ctx.console.success(f"posted {len(report.posted)} comment(s) for {report.tag}")


@module_release_app.command()
def clean(
    repo: str = typer.Option("", "--repo", help=_REPO_HELP),
    release_name: str = typer.Option(
        "", "--release-name", help="Stable release whose pre-releases are removed (default: latest)"
    ),
    dry_run: bool = typer.Option(False, "--dry-run", help="List pre-releases without deleting"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Remove pre-releases between the previous and the given stable release."""
    ctx = build_context()
    options = build_options(
        ctx.config, repo=repo, issues_repo="", release_name=release_name, dry_run=dry_run
    )

    planned = plan_prerelease_cleanup(ctx.api, options)
    if isinstance(planned, Err):
        exit_on_release_error(planned.error)

    plan = planned.value
    if not plan.candidates:
        ctx.console.info(f"no pre-releases found between {plan.previous_tag} and {plan.stable_tag}")
        return

    ctx.console.header(
        f"{len(plan.candidates)} pre-release(s) between {plan.previous_tag} and {plan.stable_tag}"
    )
    for tag in plan.candidates:
        ctx.console.print(f"  - {tag}")

    if dry_run:
        ctx.console.info("dry run: nothing deleted")
        return

    if not yes and not typer.confirm("Delete these pre-releases?", default=False):
        exit_release("aborted", code=ErrorCode.USER_ERROR)

    report = delete_prereleases(ctx.api, plan, console=ctx.console)
    ctx.console.newline()
    ctx.console.success(f"deleted {len(report.deleted)} pre-release(s)")
    if report.skipped:
        exit_release(
            f"{len(report.skipped)} pre-release(s) could not be deleted",
            code=ErrorCode.NETWORK_ERROR,
        )
