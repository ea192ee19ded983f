"""
Host and target CLI commands
"""
import typer
from typing import Optional

from rich.table import Table

from ...core.logging import get_logger, get_stdout_console
from .context import build_host_service, cli_errors, prompt_provider

logger = get_logger(__name__)
stdout_console = get_stdout_console()


def register_host_app(app: typer.Typer) -> None:
    """Register host and target subcommand apps"""
    host_app = typer.Typer(name="host", help="Manage target hosts", add_completion=False)
    host_app.command(name="add")(host_add)
    host_app.command(name="update")(host_update)
    host_app.command(name="delete")(host_delete)
    host_app.command(name="list")(host_list)
    app.add_typer(host_app, name="host")
    
    target_app = typer.Typer(name="target", help="Select the target host for operations", add_completion=False)
    target_app.command(name="select")(target_select)
    target_app.command(name="show")(target_show)
    target_app.command(name="clear")(target_clear)
    app.add_typer(target_app, name="target")


def host_add(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Name for the new target"),
    address: str = typer.Argument(..., help="Hostname or IP address"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="SSH port (default: settings default_port)"),
    user: Optional[str] = typer.Option(None, "--user", "-u", help="SSH username"),
    home_path: str = typer.Option("", "--home-path", help="Remote home directory (default: /home/<user>)"),
    no_password: bool = typer.Option(
        False, "--no-password", help="Authenticate with the existing key instead of a password"
    ),
):
    """
    Add a target host and install the local public key on it.
    
    The password is read from $NEWHOST_PASSWORD_<NAME> when set, otherwise prompted for.
    """
    service = build_host_service(ctx)
    with cli_errors("Adding host", name):
        host = service.add_host(
            name,
            address,
            user or service.settings.default_user,
            port or service.settings.default_port,
            home_path=home_path,
            no_password=no_password,
        )
    prompt_provider.success(f"Successfully added host '{host.name}' ({host.address}) as a target.")


def host_update(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Target to update"),
    address: Optional[str] = typer.Option(None, "--address", "-a", help="New hostname or IP address"),
    port: Optional[int] = typer.Option(None, "--port", "-p", help="New SSH port"),
    user: Optional[str] = typer.Option(None, "--user", "-u", help="New SSH username"),
    home_path: Optional[str] = typer.Option(None, "--home-path", help="New remote home directory"),
    no_password: bool = typer.Option(
        False, "--no-password", help="Authenticate with the existing key instead of a password"
    ),
):
    """Update a target host and reinstall the public key"""
    service = build_host_service(ctx)
    with cli_errors("Updating host", name):
        service.update_host(
            name,
            address=address,
            username=user,
            port=port,
            home_path=home_path,
            no_password=no_password,
        )
    prompt_provider.success(f"Successfully updated host '{name}' in targets.")


def host_delete(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Target to delete"),
):
    """Delete a target host"""
    service = build_host_service(ctx)
    with cli_errors("Deleting host", name):
        deleted = service.delete_host(name)
    if deleted:
        prompt_provider.success(f"Successfully deleted host '{name}' from targets.")
    else:
        prompt_provider.warning(f"No target named '{name}'.")


def host_list(ctx: typer.Context):
    """List configured target hosts"""
    service = build_host_service(ctx)
    with cli_errors("Listing hosts"):
        hosts = service.list_hosts()
        selected = service.show_target()
    
    table = Table(title="Configured Target Hosts")
    table.add_column("Name", style="cyan")
    table.add_column("Hostname/IP")
    table.add_column("SSH port", justify="right")
    table.add_column("User")
    table.add_column("Home")
    for host in hosts:
        marker = " *" if host.name == selected else ""
        table.add_row(host.name + marker, host.address, str(host.port), host.username, host.home_path)
    stdout_console.print(table)


def target_select(
    ctx: typer.Context,
    name: str = typer.Argument(..., help="Target to use when --host is omitted"),
):
    """Select the target host for subsequent operations"""
    service = build_host_service(ctx)
    with cli_errors("Selecting target", name):
        service.select_target(name)
    prompt_provider.success(f"Selected target '{name}' for operations")


def target_show(ctx: typer.Context):
    """Show the selected target"""
    service = build_host_service(ctx)
    with cli_errors("Reading target selection"):
        name = service.show_target()
    if name is None:
        prompt_provider.info("No target currently selected")
    else:
        prompt_provider.info(f"Target '{name}' is currently selected")


def target_clear(ctx: typer.Context):
    """Unselect the current target"""
    service = build_host_service(ctx)
    with cli_errors("Clearing target selection"):
        service.clear_target()
    prompt_provider.success("Unselected target")
