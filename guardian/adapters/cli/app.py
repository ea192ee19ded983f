"""
Main CLI application
"""
import typer
from pathlib import Path
from typing import Optional

from ...core.logging import setup_logging, get_logger
from ...core.paths import WorkspacePaths
from .backup import register_backup_commands
from .hosts import register_host_app
from .remote import register_remote_commands

logger = get_logger(__name__)

app = typer.Typer(
    name="guardian",
    add_completion=False,
    help="Provision and configure a remote content-filtering appliance",
    no_args_is_help=True,
    rich_markup_mode="rich",
)

register_host_app(app)
register_remote_commands(app)
register_backup_commands(app)


@app.callback()
def main(
    ctx: typer.Context,
    log_level: str = typer.Option(
        "INFO",
        "--log-level",
        "-l",
        help="Logging level (DEBUG, INFO, WARNING, ERROR, CRITICAL)",
    ),
    log_file: Optional[Path] = typer.Option(
        None,
        "--log-file",
        help="Log file path",
    ),
    home: Optional[Path] = typer.Option(
        None,
        "--home",
        envvar="GUARDIAN_HOME",
        help="Workspace directory (default: ~/.guardian)",
    ),
    connect_timeout: Optional[float] = typer.Option(
        None,
        "--connect-timeout",
        help="SSH connect timeout in seconds",
    ),
    command_timeout: Optional[float] = typer.Option(
        None,
        "--command-timeout",
        help="Remote command timeout in seconds",
    ),
):
    """
    Guardian - provision a content-filtering appliance over SSH
    
    - host / target: manage the roster of target hosts
    - ssh: test connectivity, reset keys
    - exec / push: run commands and upload files
    - deploy / status: install the Helm chart and check on it
    - export / import: back up and restore the workspace
    """
    setup_logging(level=log_level, log_file=log_file)
    paths = WorkspacePaths(home=home.expanduser()) if home else WorkspacePaths.from_env()
    ctx.obj = {
        "paths": paths,
        "overrides": {
            "connect_timeout": connect_timeout,
            "command_timeout": command_timeout,
        },
    }


def run():
    """CLI entry point"""
    app()


if __name__ == "__main__":
    run()
