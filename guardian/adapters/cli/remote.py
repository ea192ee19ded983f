"""
Remote operation CLI commands
"""
import shlex

import typer
from pathlib import Path
from typing import List, Optional

from ...core.constants import DEFAULT_RELEASE_NAME, DEFAULT_NAMESPACE
from ...core.logging import get_logger, get_stdout_console
from .context import build_host_service, build_deploy_service, cli_errors, prompt_provider, target_name

logger = get_logger(__name__)
stdout_console = get_stdout_console()

HOST_OPTION_HELP = "Target host (default: the selected target)"


def register_remote_commands(app: typer.Typer) -> None:
    """Register ssh sub-app and top-level remote commands"""
    ssh_app = typer.Typer(name="ssh", help="SSH key and connectivity management", add_completion=False)
    ssh_app.command(name="test")(ssh_test)
    ssh_app.command(name="reset")(ssh_reset)
    app.add_typer(ssh_app, name="ssh")
    
    app.command(name="exec")(exec_run)
    app.command(name="push")(push_run)
    app.command(name="deploy")(deploy_run)
    app.command(name="status")(status_run)


def _print_output(output: str) -> None:
    if output:
        stdout_console.print(output.rstrip("\n"), markup=False, highlight=False)


def ssh_test(
    ctx: typer.Context,
    name: Optional[str] = typer.Argument(None, help=HOST_OPTION_HELP),
):
    """Check key-based login by listing the remote root directory"""
    service = build_host_service(ctx)
    with cli_errors("SSH test", target_name(service, name)):
        result = service.test_host(name)
    _print_output(result.output)
    prompt_provider.success("SSH key authentication works")


def ssh_reset(
    ctx: typer.Context,
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
):
    """Delete the SSH key pair, known hosts and all targets"""
    service = build_host_service(ctx)
    if not yes:
        prompt_provider.warning("This will reset your SSH keys and delete all of your target hosts.")
        if not prompt_provider.confirm("Are you sure you want to proceed?", default=False):
            raise typer.Exit(0)
    with cli_errors("SSH reset"):
        service.reset()
    prompt_provider.success("SSH keys and targets removed")


def exec_run(
    ctx: typer.Context,
    command: List[str] = typer.Argument(..., help="Command to run remotely"),
    name: Optional[str] = typer.Option(None, "--host", "-H", help=HOST_OPTION_HELP),
    sudo: bool = typer.Option(
        False, "--sudo", help="Run with sudo, answering its password prompt ($GUARDIAN_SUDO_PASSWORD_<NAME>)"
    ),
):
    """
    Run a command on a target host.
    
    Examples:
        guardian exec -- uptime
        guardian exec --host box --sudo -- systemctl restart e2guardian
    """
    service = build_host_service(ctx)
    with cli_errors("Remote command", target_name(service, name)):
        result = service.run_command(name, shlex.join(command), sudo=sudo)
    if not sudo:
        # relay mode already logged each line
        _print_output(result.output)


def push_run(
    ctx: typer.Context,
    src: Path = typer.Argument(..., exists=True, help="Local file or directory"),
    dst: str = typer.Argument(..., help="Remote destination path"),
    name: Optional[str] = typer.Option(None, "--host", "-H", help=HOST_OPTION_HELP),
):
    """Upload a file or directory tree to a target host"""
    service = build_host_service(ctx)
    with cli_errors("Upload", target_name(service, name)):
        host = service.push(name, src, dst)
    prompt_provider.success(f"Uploaded {src} to {host.name}:{dst}")


def deploy_run(
    ctx: typer.Context,
    chart_dir: Path = typer.Argument(..., exists=True, file_okay=False, help="Local Helm chart directory"),
    name: Optional[str] = typer.Option(None, "--host", "-H", help=HOST_OPTION_HELP),
    release: str = typer.Option(DEFAULT_RELEASE_NAME, "--release", "-r", help="Helm release name"),
    namespace: str = typer.Option(DEFAULT_NAMESPACE, "--namespace", "-n", help="Kubernetes namespace"),
    sudo: bool = typer.Option(False, "--sudo", help="Run helm with sudo"),
):
    """Upload a Helm chart and install or upgrade it on the target"""
    service = build_deploy_service(ctx)
    with cli_errors("Deploy", target_name(service.hosts, name)):
        result = service.deploy(name, chart_dir, release=release, namespace=namespace, sudo=sudo)
    if not sudo:
        _print_output(result.output)
    prompt_provider.success(f"Release '{release}' deployed")


def status_run(
    ctx: typer.Context,
    name: Optional[str] = typer.Option(None, "--host", "-H", help=HOST_OPTION_HELP),
    release: str = typer.Option(DEFAULT_RELEASE_NAME, "--release", "-r", help="Helm release name"),
    namespace: str = typer.Option(DEFAULT_NAMESPACE, "--namespace", "-n", help="Kubernetes namespace"),
):
    """Show the Helm release status on the target"""
    service = build_deploy_service(ctx)
    with cli_errors("Status", target_name(service.hosts, name)):
        result = service.status(name, release=release, namespace=namespace)
    _print_output(result.output)
    if not result.success:
        raise typer.Exit(result.exit_code)
