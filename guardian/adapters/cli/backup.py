"""
Workspace export/import CLI commands
"""
import typer
from pathlib import Path

from ...core.logging import get_logger
from .context import build_backup_service, cli_errors, prompt_provider

logger = get_logger(__name__)


def register_backup_commands(app: typer.Typer) -> None:
    """Register export and import commands"""
    app.command(name="export")(export_run)
    app.command(name="import")(import_run)


def export_run(
    ctx: typer.Context,
    output: Path = typer.Argument(..., dir_okay=False, help="Archive to write (.tar.gz)"),
):
    """
    Back up hosts, host data, SSH keys and known hosts into one archive.

    The archive holds the private key; keep it somewhere safe.
    """
    service = build_backup_service(ctx)
    with cli_errors("Export"):
        count = service.export_archive(output)
    prompt_provider.success(f"Exported {count} entries to {output}")


def import_run(
    ctx: typer.Context,
    archive: Path = typer.Argument(..., exists=True, dir_okay=False, help="Archive created by 'guardian export'"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask before overwriting the workspace"),
):
    """Restore a workspace archive, replacing files with the same name"""
    service = build_backup_service(ctx)
    if not yes and service.paths.config_file.exists():
        prompt_provider.warning(f"This will overwrite the workspace at {service.paths.home}.")
        if not prompt_provider.confirm("Are you sure you want to proceed?", default=False):
            raise typer.Exit(0)
    with cli_errors("Import"):
        count = service.import_archive(archive)
    prompt_provider.success(f"Imported {count} entries into {service.paths.home}")
