"""[neon login] and [neon logout] commands."""

from typing import Optional

import click

from kubectl_neon import launcher
from kubectl_neon.config import OUTPUT_FORMATS, Settings


@click.group(invoke_without_command=True)
@click.pass_context
def login(ctx: click.Context) -> None:
    """Log into a NEONKUBE cluster or manage NEONKUBE contexts.

    Without a subcommand this runs the interactive login flow.
    """
    if ctx.invoked_subcommand is None:
        # Interactive SSO login needs the terminal, so neon-cli takes over
        launcher.exec_neon_cli(ctx.obj, ["login"], replace=True)


@login.command()
@click.argument("context_name", metavar="[CONTEXTNAME]", required=False)
@click.option("--force", is_flag=True, help="Don't prompt for permission and ignore missing contexts")
@click.pass_obj
def delete(settings: Settings, context_name: Optional[str], force: bool) -> None:
    """Remove the current NEONKUBE cluster context or a context by name."""
    args = ["login", "delete"]
    if context_name:
        args.append(context_name)
    if force:
        args.append("--force")

    launcher.exec_neon_cli(settings, args)


@login.command()
@click.argument("path", metavar="[PATH]", required=False)
@click.option("--context", "context_name", default=None, help="Name of the context to export")
@click.pass_obj
def export(settings: Settings, path: Optional[str], context_name: Optional[str]) -> None:
    """Export the current context or a context by name to STDOUT or a file."""
    args = ["login", "export"]
    if path:
        args.append(path)
    if context_name:
        args.append(f"--context={context_name}")

    launcher.exec_neon_cli(settings, args)


@login.command(name="import")
@click.argument("path", metavar="PATH")
@click.option("--force", is_flag=True, help="Don't prompt for permission to replace an existing context")
@click.option("--no-login", is_flag=True, help="Don't login to the new context")
@click.pass_obj
def import_(settings: Settings, path: str, force: bool, no_login: bool) -> None:
    """Import a NEONKUBE cluster context."""
    args = ["login", "import", path]
    if force:
        args.append("--force")
    if no_login:
        args.append("--no-login")

    launcher.exec_neon_cli(settings, args)


@login.command(name="list")
@click.option("--output", "-o", type=click.Choice(OUTPUT_FORMATS), default=None, help="Output format")
@click.pass_obj
def list_(settings: Settings, output: Optional[str]) -> None:
    """List the NEONKUBE contexts."""
    args = ["login", "list"]
    if output:
        args.append(f"--output={output}")

    launcher.exec_neon_cli(settings, args)


@click.command()
@click.pass_obj
def logout(settings: Settings) -> None:
    """Log out of the current NEONKUBE context."""
    launcher.exec_neon_cli(settings, ["logout"])
