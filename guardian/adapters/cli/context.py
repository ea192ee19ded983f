"""
Shared CLI plumbing: service construction and error reporting
"""
from contextlib import contextmanager
from typing import Any, Dict, Iterator, Optional

import typer
from rich.markup import escape

from ...core.exceptions import GuardianError, RemoteCommandError
from ...core.logging import get_logger, get_stderr_console
from ...core.paths import WorkspacePaths
from ...domain.backup import BackupService
from ...domain.deploy import DeployService
from ...domain.hosts import HostService
from ..config.loader import ConfigLoader
from .prompts import RichPromptProvider

logger = get_logger(__name__)
stderr_console = get_stderr_console()
prompt_provider = RichPromptProvider()


def _state(ctx: typer.Context) -> Dict[str, Any]:
    return ctx.find_root().obj or {}


def workspace_paths(ctx: typer.Context) -> WorkspacePaths:
    """Workspace selected in the app callback"""
    return _state(ctx).get("paths") or WorkspacePaths.from_env()


def build_host_service(ctx: typer.Context) -> HostService:
    """HostService for the workspace selected in the app callback"""
    paths = workspace_paths(ctx)
    settings = ConfigLoader().load(paths.settings_file, cli_overrides=_state(ctx).get("overrides"))
    return HostService(paths, settings, prompt_provider)


def build_deploy_service(ctx: typer.Context) -> DeployService:
    return DeployService(build_host_service(ctx))


def build_backup_service(ctx: typer.Context) -> BackupService:
    return BackupService(workspace_paths(ctx))


def target_name(service: HostService, name: Optional[str]) -> Optional[str]:
    """Host named on the command line, else the selected target"""
    return name or service.show_target()


@contextmanager
def cli_errors(operation: str, host: Optional[str] = None) -> Iterator[None]:
    """
    Turn GuardianError into a logged message and a non-zero exit.
    
    A failing remote command exits with the remote exit status.
    """
    where = f" on '{host}'" if host else ""
    try:
        yield
    except RemoteCommandError as e:
        logger.error("%s%s failed: remote command exited with status %d", operation, where, e.exit_code)
        if e.output:
            stderr_console.print(e.output, markup=False, highlight=False)
        raise typer.Exit(e.exit_code or 1)
    except GuardianError as e:
        logger.error("%s%s failed: %s", operation, where, e)
        stderr_console.print(f"[red]Error:[/red] {escape(str(e))}")
        raise typer.Exit(1)
