from __future__ import annotations

import os
from dataclasses import dataclass
from pathlib import Path

import typer

from ns8.core.config import ModuleReleaseConfig, load_config
from ns8.core.errors import ErrorCode
from ns8.core.result import Err
from ns8.output.console import ConsoleProtocol, RichConsole
from ns8.services.release.gh import GhHostingApi, ensure_gh_available
from ns8.services.release.hosting import HostingApi


@dataclass(frozen=True, slots=True)
class CLIContext:
    workspace_root: Path
    config: ModuleReleaseConfig
    console: ConsoleProtocol
    api: HostingApi


def debug_enabled() -> bool:
    return os.environ.get("NS8_DEBUG") == "1"


def build_context() -> CLIContext:
    config_result = load_config()
    if isinstance(config_result, Err):
        err = config_result.error
        where = f" ({err.path})" if err.path is not None else ""
        typer.echo(f"error: {err.message}{where}", err=True)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    gh = ensure_gh_available()
    if isinstance(gh, Err):
        typer.echo(f"error: {gh.error.message}", err=True)
        if gh.error.hint:
            typer.echo(f"hint: {gh.error.hint}", err=True)
        raise typer.Exit(code=int(ErrorCode.ENV_ERROR))

    root = Path.cwd()
    console = RichConsole(debug=debug_enabled())
    return CLIContext(
        workspace_root=root,
        config=config_result.value,
        console=console,
        api=GhHostingApi(workspace_root=root, console=console),
    )
