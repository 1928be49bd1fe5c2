from __future__ import annotations

from typing import NoReturn

import typer

from ns8.core.config import ModuleReleaseConfig, ModuleReleaseOptions
from ns8.core.errors import ErrorCode
from ns8.output.console import ConsoleProtocol
from ns8.services.release.errors import ReleaseError
from ns8.services.release.model import SkippedItem


def exit_release(err: str, *, code: ErrorCode, hint: str | None = None) -> NoReturn:
    typer.echo(f"error: {err}", err=True)
    if hint:
        typer.echo(f"hint: {hint}", err=True)
    raise typer.Exit(code=int(code))


def release_error_code(kind: str) -> ErrorCode:
    if kind == "gh_missing":
        return ErrorCode.ENV_ERROR
    if kind in {"gh_failed", "invalid_payload"}:
        return ErrorCode.NETWORK_ERROR
    return ErrorCode.USER_ERROR


def exit_on_release_error(error: ReleaseError) -> NoReturn:
    exit_release(error.message, code=release_error_code(error.kind), hint=error.hint)


def build_options(
    config: ModuleReleaseConfig,
    *,
    repo: str,
    issues_repo: str,
    release_name: str = "",
    release_refs: str = "",
    testing: bool = False,
    draft: bool = False,
    with_linked_issues: bool = False,
    dry_run: bool = False,
) -> ModuleReleaseOptions:
    return ModuleReleaseOptions(
        repo=repo.strip(),
        issues_repo=issues_repo.strip(),
        release_name=release_name.strip(),
        release_refs=release_refs.strip(),
        testing=testing,
        draft=draft,
        with_linked_issues=with_linked_issues,
        dry_run=dry_run,
        config=config,
    )


def print_skipped(console: ConsoleProtocol, skipped: list[SkippedItem]) -> None:
    for item in skipped:
        console.warning(f"skipped {item.describe()}")
