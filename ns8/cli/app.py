from __future__ import annotations

import os

import typer

from ns8 import __version__
from ns8.cli.commands.module_release import module_release_app


app = typer.Typer(
    add_completion=False,
    no_args_is_help=True,
    invoke_without_command=True,
    rich_markup_mode="rich",
    help="GitHub CLI companion for NethServer 8 module management.",
)

# Sub-apps
app.add_typer(module_release_app, name="module-release")


@app.callback()
def _main(  # pyright: ignore[reportUnusedFunction]
    ctx: typer.Context,
    version: bool = typer.Option(False, "--version", help="Show version and exit."),
    debug: bool = typer.Option(False, "--debug", help="Print each gh invocation."),
) -> None:
    if version:
        typer.echo(__version__)
        raise typer.Exit(code=0)

    if debug:
        os.environ["NS8_DEBUG"] = "1"

    if ctx.invoked_subcommand is None:
        typer.echo(ctx.get_help())
        raise typer.Exit(code=0)


def main() -> None:
    app()
