"""CLI interface for the neon kubectl plugin."""

import json
from typing import List, Optional

import click
from rich.table import Table

from kubectl_neon import __version__, launcher
from kubectl_neon.cluster import cluster
from kubectl_neon.config import HELM_VERSION, NEON_CLI_VERSION, Settings
from kubectl_neon.login import login, logout
from kubectl_neon.utils import console, setup_logging

VERSION_MESSAGE = f"%(prog)s %(version)s (neon-cli {NEON_CLI_VERSION}, helm {HELM_VERSION})"


class PassThroughCommand(click.Command):
    """Command whose arguments reach the callback exactly as typed.

    Nothing is parsed, not even [--help] or [--].
    """

    def parse_args(self, ctx: click.Context, args: List[str]) -> List[str]:
        ctx.params["args"] = tuple(args)
        return []


@click.group()
@click.version_option(version=__version__, message=VERSION_MESSAGE)
@click.option("--debug", is_flag=True, help="Log diagnostic messages to stderr")
@click.pass_context
def main(ctx: click.Context, debug: bool) -> None:
    """neon - Deploy and manage NEONKUBE clusters."""
    if ctx.obj is None:
        ctx.obj = Settings()
    setup_logging("DEBUG" if debug else ctx.obj.log_level)


@main.command(cls=PassThroughCommand, add_help_option=False)
@click.pass_obj
def helm(settings: Settings, args: tuple[str, ...]) -> None:
    """Run helm, passing all arguments through unchanged."""
    launcher.exec_helm(settings, list(args))


@main.command()
@click.option(
    "--output",
    "-o",
    type=click.Choice(["json"]),
    default=None,
    help="Output format",
)
def version(output: Optional[str]) -> None:
    """Print the plugin, neon-cli and helm versions."""
    versions = {
        "kubectl-neon": __version__,
        "neon-cli": NEON_CLI_VERSION,
        "helm": HELM_VERSION,
    }

    if output == "json":
        click.echo(json.dumps(versions, indent=2))
        return

    table = Table(show_header=False, box=None)
    for name, value in versions.items():
        table.add_row(f"[cyan]{name}[/cyan]", value)
    console.print(table)


main.add_command(cluster)
main.add_command(login)
main.add_command(logout)


if __name__ == "__main__":
    main()
