"""[neon cluster] commands.

Each command builds the neon-cli argument vector in a fixed order: the
[cluster] and subcommand tokens, the positional argument when present, then
the flags in the order they are declared here.
"""

from typing import Callable, List, Optional

import click

from kubectl_neon import launcher
from kubectl_neon.config import CLUSTER_PURPOSES, DEFAULT_CLUSTER_DEPLOY_PARALLEL, NO_FLAG_VALUE, Settings
from kubectl_neon.utils import append_use_staged

EPILOG_LOCKED = """\b
All clusters besides NEONDESKTOP clusters are locked by default when they're
deployed.  You can disable this by setting [IsLocked=false] in your cluster
definition or by executing:

    neon cluster unlock"""


class UseStagedCommand(click.Command):
    """Command whose [--use-staged] takes a branch only as [--use-staged=BRANCH].

    A bare [--use-staged] never consumes the next token, so
    [deploy --use-staged my-cluster.yaml] still sees the cluster definition.
    """

    def parse_args(self, ctx: click.Context, args: List[str]) -> List[str]:
        rewritten = []
        for index, arg in enumerate(args):
            if arg == "--":
                rewritten.extend(args[index:])
                break
            if arg == "--use-staged":
                arg = f"--use-staged={NO_FLAG_VALUE}"
            rewritten.append(arg)
        return super().parse_args(ctx, rewritten)


def max_parallel_option(func: Callable) -> Callable:
    """Add the [--max-parallel] option."""
    return click.option(
        "--max-parallel",
        type=click.IntRange(min=1),
        default=DEFAULT_CLUSTER_DEPLOY_PARALLEL,
        show_default=True,
        help="Maximum number of node related operations to perform in parallel",
    )(func)


def use_staged_option(func: Callable) -> Callable:
    """Add the [--use-staged[=BRANCH]] option; use with UseStagedCommand."""
    return click.option(
        "--use-staged",
        default=None,
        metavar="[=BRANCH]",
        help="MAINTAINER ONLY: Deploy from an internal build, optionally specifying a GitHub source branch",
    )(func)


def no_telemetry_option(func: Callable) -> Callable:
    """Add the [--no-telemetry] option."""
    return click.option(
        "--no-telemetry",
        is_flag=True,
        help="Disable telemetry uploads for failed deployments, overriding NEONKUBE_DISABLE_TELEMETRY",
    )(func)


def quiet_option(func: Callable) -> Callable:
    """Add the [--quiet] option."""
    return click.option(
        "--quiet",
        is_flag=True,
        help="Only print the currently executing step rather than detailed setup status",
    )(func)


@click.group()
def cluster() -> None:
    """Deploy and manage NEONKUBE clusters."""


@cluster.command()
@click.option("--all", "check_all", is_flag=True, help="Perform all checks (implied when no other options are present)")
@click.option("--container-images", is_flag=True, help="Verify that all running container images are in the cluster manifest")
@click.option("--priority-class", is_flag=True, help="Verify that all running pods have a non-zero PriorityClass")
@click.option("--resources", is_flag=True, help="Verify that all pod containers specify resource requests and limits")
@click.option("--details", is_flag=True, help="Include additional information even when there are no errors")
@click.pass_obj
def check(
    settings: Settings,
    check_all: bool,
    container_images: bool,
    priority_class: bool,
    resources: bool,
    details: bool,
) -> None:
    """Perform maintainer checks against the current NEONKUBE cluster."""
    args = ["cluster", "check"]
    if check_all:
        args.append("--all")
    if container_images:
        args.append("--container-images")
    if priority_class:
        args.append("--priority-class")
    if resources:
        args.append("--resources")
    if details:
        args.append("--details")

    launcher.exec_neon_cli(settings, args)


@cluster.command()
@click.argument("dashboard", required=False)
@click.pass_obj
def dashboard(settings: Settings, dashboard: Optional[str]) -> None:
    """List the cluster dashboards or open one by name."""
    args = ["cluster", "dashboard"]
    if dashboard:
        args.append(dashboard)

    launcher.exec_neon_cli(settings, args)


@cluster.command(epilog=EPILOG_LOCKED)
@click.argument("cluster_name", metavar="[CLUSTERNAME]", required=False)
@click.option("--force", is_flag=True, help="Don't prompt or require the cluster be unlocked before removal")
@click.pass_obj
def delete(settings: Settings, cluster_name: Optional[str], force: bool) -> None:
    """Permanently delete the current NEONKUBE cluster or a specific cluster."""
    args = ["cluster", "delete"]
    if cluster_name:
        args.append(cluster_name)
    if force:
        args.append("--force")

    launcher.exec_neon_cli(settings, args)


cluster.add_command(delete, name="rm")


@cluster.command(cls=UseStagedCommand)
@click.argument("cluster_def", metavar="CLUSTERDEF")
@click.option("--check", is_flag=True, help="Run development checks after deployment; failures produce a non-zero exit code")
@click.option("--force", is_flag=True, help="Don't prompt before removing contexts that reference the target cluster")
@max_parallel_option
@no_telemetry_option
@click.option("--package-cache", default=None, help="APT package cache servers as HOST:PORT, separated by commas")
@quiet_option
@click.option("--upload-charts", is_flag=True, help="MAINTAINER ONLY: Upload Helm charts from this workstation")
@click.option("--use-preview", is_flag=True, help="Provision using the preview VM image from the Azure Marketplace")
@use_staged_option
@click.pass_obj
def deploy(
    settings: Settings,
    cluster_def: str,
    check: bool,
    force: bool,
    max_parallel: int,
    no_telemetry: bool,
    package_cache: Optional[str],
    quiet: bool,
    upload_charts: bool,
    use_preview: bool,
    use_staged: Optional[str],
) -> None:
    """Deploy a NEONKUBE cluster from a cluster definition YAML file.

    \b
    Example:
        neon cluster deploy my-cluster.yaml
    """
    args = ["cluster", "deploy", cluster_def]
    if check:
        args.append("--check")
    if force:
        args.append("--force")
    if max_parallel != DEFAULT_CLUSTER_DEPLOY_PARALLEL:
        args.append(f"--max-parallel={max_parallel}")
    if no_telemetry:
        args.append("--no-telemetry")
    if package_cache:
        args.append(f"--package-cache={package_cache}")
    if quiet:
        args.append("--quiet")
    if upload_charts:
        args.append("--upload-charts")
    if use_preview:
        args.append("--use-preview")
    append_use_staged(args, use_staged)

    launcher.exec_neon_cli(settings, args)


@cluster.command()
@click.pass_obj
def health(settings: Settings) -> None:
    """Print health information for the current cluster."""
    launcher.exec_neon_cli(settings, ["cluster", "health"])


@cluster.command()
@click.pass_obj
def info(settings: Settings) -> None:
    """Print information about the current cluster."""
    launcher.exec_neon_cli(settings, ["cluster", "info"])


@cluster.command()
@click.pass_obj
def islocked(settings: Settings) -> None:
    """Determine whether the current NEONKUBE cluster is locked.

    Prints the lock status and exits with 0=locked, 1=fetch error, 2=unlocked.
    """
    launcher.exec_neon_cli(settings, ["cluster", "islocked"])


@cluster.command()
@click.pass_obj
def lock(settings: Settings) -> None:
    """Lock the current cluster against pause, remove, reset and stop."""
    launcher.exec_neon_cli(settings, ["cluster", "lock"])


@cluster.command()
@click.pass_obj
def pause(settings: Settings) -> None:
    """Pause the current NEONKUBE cluster.

    Puts the cluster virtual machines to sleep.  This is not supported by all
    hosting environments.
    """
    launcher.exec_neon_cli(settings, ["cluster", "pause"])


@cluster.command(cls=UseStagedCommand)
@click.argument("cluster_def", metavar="CLUSTERDEF")
@click.option("--base-image-name", default=None, help="Base image name to use in --debug mode")
@click.option("--debug", is_flag=True, help="Set up from the base rather than the node image")
@click.option("--disable-pending", is_flag=True, help="Disable parallelization of setup tasks across steps")
@click.option("--insecure", is_flag=True, help="MAINTAINER ONLY: Keep an insecure sysadmin password and enable SSH password auth")
@max_parallel_option
@click.option("--node-image-path", default=None, help="Use the node image at PATH rather than downloading it")
@click.option("--node-image-uri", default=None, help="Override the default node image URI")
@no_telemetry_option
@click.option("--package-cache", default=None, help="APT package cache servers as HOST:PORT, separated by commas")
@quiet_option
@click.option("--unredacted", is_flag=True, help="Don't redact secrets from logs; not for production clusters")
@use_staged_option
@click.pass_obj
def prepare(
    settings: Settings,
    cluster_def: str,
    base_image_name: Optional[str],
    debug: bool,
    disable_pending: bool,
    insecure: bool,
    max_parallel: int,
    node_image_path: Optional[str],
    node_image_uri: Optional[str],
    no_telemetry: bool,
    package_cache: Optional[str],
    quiet: bool,
    unredacted: bool,
    use_staged: Optional[str],
) -> None:
    """MAINTAINERS ONLY: Provision the infrastructure for a NEONKUBE cluster.

    Provisions networks, load balancers, virtual machines, etc.  Once the
    infrastructure is ready, use [neon cluster setup] to set up the cluster.

    \b
    Example:
        neon cluster prepare my-cluster.yaml
        neon cluster setup root@CLUSTERNAME
    """
    args = ["cluster", "prepare", cluster_def]
    if base_image_name:
        args.append(f"--base-image-name={base_image_name}")
    if debug:
        args.append("--debug")
    if disable_pending:
        args.append("--disable-pending")
    if insecure:
        args.append("--insecure")
    if max_parallel != DEFAULT_CLUSTER_DEPLOY_PARALLEL:
        args.append(f"--max-parallel={max_parallel}")
    if node_image_path:
        args.append(f"--node-image-path={node_image_path}")
    if node_image_uri:
        args.append(f"--node-image-uri={node_image_uri}")
    if no_telemetry:
        args.append("--no-telemetry")
    if package_cache:
        args.append(f"--package-cache={package_cache}")
    if quiet:
        args.append("--quiet")
    if unredacted:
        args.append("--unredacted")
    append_use_staged(args, use_staged)

    launcher.exec_neon_cli(settings, args)


@cluster.command()
@click.argument("purpose", required=False, type=click.Choice(CLUSTER_PURPOSES))
@click.pass_obj
def purpose(settings: Settings, purpose: Optional[str]) -> None:
    """Print or set the purpose of the current cluster."""
    args = ["cluster", "purpose"]
    if purpose:
        args.append(purpose)

    launcher.exec_neon_cli(settings, args)


@cluster.command(epilog=EPILOG_LOCKED)
@click.option("--auth", is_flag=True, help="Reset authentication (Dex, Glauth)")
@click.option("--crio", is_flag=True, help="Reset container registries and remove non-system images")
@click.option("--force", is_flag=True, help="Don't prompt or require the cluster be unlocked before reset")
@click.option("--harbor", is_flag=True, help="Reset Harbor components")
@click.option("--keep-namespaces", default=None, help="Comma separated non-system namespaces to retain, or * for all")
@click.option("--minio", is_flag=True, help="Reset Minio")
@click.option("--monitoring", is_flag=True, help="Clear monitoring data and non-system dashboards and alerts")
@click.pass_obj
def reset(
    settings: Settings,
    auth: bool,
    crio: bool,
    force: bool,
    harbor: bool,
    keep_namespaces: Optional[str],
    minio: bool,
    monitoring: bool,
) -> None:
    """Reset the current cluster to its factory new condition."""
    args = ["cluster", "reset"]
    if auth:
        args.append("--auth")
    if crio:
        args.append("--crio")
    if force:
        args.append("--force")
    if harbor:
        args.append("--harbor")
    if keep_namespaces:
        args.append(f"--keep-namespaces={keep_namespaces}")
    if minio:
        args.append("--minio")
    if monitoring:
        args.append("--monitoring")

    launcher.exec_neon_cli(settings, args)


@cluster.command(cls=UseStagedCommand)
@click.argument("context_name", metavar="CONTEXTNAME")
@click.option("--check", is_flag=True, help="Run development checks after setup (disabled with --debug)")
@click.option("--debug", is_flag=True, help="Set up from the base rather than the node image")
@click.option("--disable-pending", is_flag=True, help="Disable parallelization of setup tasks across steps")
@click.option("--force", is_flag=True, help="Don't prompt before removing contexts that reference the target cluster")
@max_parallel_option
@no_telemetry_option
@quiet_option
@click.option("--upload-charts", is_flag=True, help="Upload Helm charts from this workstation")
@click.option("--unredacted", is_flag=True, help="Don't redact secrets from logs; not for production clusters")
@use_staged_option
@click.pass_obj
def setup(
    settings: Settings,
    context_name: str,
    check: bool,
    debug: bool,
    disable_pending: bool,
    force: bool,
    max_parallel: int,
    no_telemetry: bool,
    quiet: bool,
    upload_charts: bool,
    unredacted: bool,
    use_staged: Optional[str],
) -> None:
    """MAINTAINERS ONLY: Set up a prepared NEONKUBE cluster."""
    args = ["cluster", "setup", context_name]
    if check:
        args.append("--check")
    if debug:
        args.append("--debug")
    if disable_pending:
        args.append("--disable-pending")
    if force:
        args.append("--force")
    if max_parallel != DEFAULT_CLUSTER_DEPLOY_PARALLEL:
        args.append(f"--max-parallel={max_parallel}")
    if no_telemetry:
        args.append("--no-telemetry")
    if quiet:
        args.append("--quiet")
    if upload_charts:
        args.append("--upload-charts")
    if unredacted:
        args.append("--unredacted")
    append_use_staged(args, use_staged)

    launcher.exec_neon_cli(settings, args)


@cluster.command()
@click.pass_obj
def start(settings: Settings) -> None:
    """Start the current stopped or paused NEONKUBE cluster."""
    launcher.exec_neon_cli(settings, ["cluster", "start"])


@cluster.command(epilog=EPILOG_LOCKED)
@click.option("--force", is_flag=True, help="Don't prompt or require the cluster be unlocked before stopping")
@click.option("--turnoff", is_flag=True, help="Turn the nodes off without a graceful shutdown; may cause data loss")
@click.pass_obj
def stop(settings: Settings, force: bool, turnoff: bool) -> None:
    """Stop the current NEONKUBE cluster."""
    args = ["cluster", "stop"]
    if force:
        args.append("--force")
    if turnoff:
        args.append("--turnoff")

    launcher.exec_neon_cli(settings, args)


@cluster.command()
@click.pass_obj
def unlock(settings: Settings) -> None:
    """Unlock the current NEONKUBE cluster."""
    launcher.exec_neon_cli(settings, ["cluster", "unlock"])


@cluster.command()
@click.argument("cluster_def", metavar="CLUSTERDEF")
@click.pass_obj
def validate(settings: Settings, cluster_def: str) -> None:
    """Validate a NEONKUBE cluster definition YAML file."""
    launcher.exec_neon_cli(settings, ["cluster", "validate", cluster_def])
