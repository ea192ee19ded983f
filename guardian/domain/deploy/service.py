"""
Chart deployment onto a target host
"""
import posixpath
import shlex
from pathlib import Path
from typing import Optional

from ...core.constants import REMOTE_CHART_DIR, DEFAULT_RELEASE_NAME, DEFAULT_NAMESPACE
from ...core.exceptions import ConfigError
from ...core.logging import get_logger
from ...ssh.models import CommandResult, HostTarget
from ...ssh.runner import CommandRunner
from ...ssh.transfer import FileTransfer
from ..hosts.service import HostService

logger = get_logger(__name__)


class DeployService:
    """
    Pushes a local Helm chart to the host and installs or upgrades it there.
    
    Every run uploads the whole chart again and lets `helm upgrade --install`
    work out what changed.
    """
    
    def __init__(self, hosts: HostService):
        self.hosts = hosts
    
    def remote_chart_path(self, host: HostTarget, chart_dir: Path) -> str:
        return posixpath.join(host.home_path, REMOTE_CHART_DIR, chart_dir.name)
    
    def deploy(
        self,
        name: Optional[str],
        chart_dir: Path,
        release: str = DEFAULT_RELEASE_NAME,
        namespace: str = DEFAULT_NAMESPACE,
        sudo: bool = False,
    ) -> CommandResult:
        chart_dir = Path(chart_dir)
        if not (chart_dir / "Chart.yaml").is_file():
            raise ConfigError(f"{chart_dir} is not a Helm chart (no Chart.yaml)")
        
        host = self.hosts.registry.resolve(name)
        remote_path = self.remote_chart_path(host, chart_dir)
        command = " ".join([
            "helm", "upgrade", "--install", shlex.quote(release), shlex.quote(remote_path),
            "--namespace", shlex.quote(namespace), "--create-namespace",
        ])
        password = self.hosts.credentials.resolve_elevation(host) if sudo else None
        timeout = self.hosts.settings.command_timeout
        
        with self.hosts.session(host, "key") as session:
            logger.info("Uploading chart %s to %s:%s", chart_dir, host.name, remote_path)
            FileTransfer(session).put_dir(chart_dir, remote_path)
            
            logger.info("Installing release '%s' in namespace '%s' on %s", release, namespace, host.name)
            runner = CommandRunner(session)
            if password is not None:
                return runner.run_sudo(command, password, timeout=timeout)
            return runner.run(command, timeout=timeout)
    
    def status(
        self,
        name: Optional[str],
        release: str = DEFAULT_RELEASE_NAME,
        namespace: str = DEFAULT_NAMESPACE,
    ) -> CommandResult:
        host = self.hosts.registry.resolve(name)
        command = f"helm status {shlex.quote(release)} --namespace {shlex.quote(namespace)}"
        with self.hosts.session(host, "key") as session:
            return CommandRunner(session).run(command, timeout=self.hosts.settings.command_timeout, check=False)
