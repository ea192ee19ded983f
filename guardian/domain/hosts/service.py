"""
Host registration and remote operations service
"""
import os
import shlex
from contextlib import contextmanager
from pathlib import Path
from typing import Iterator, List, Mapping, Optional

from ...adapters.config.loader import Settings
from ...core.exceptions import HostExistsError
from ...core.interfaces import PromptProvider
from ...core.logging import get_logger
from ...core.paths import WorkspacePaths
from ...infrastructure.state.host_store import HostRegistry
from ...ssh.connection import RemoteSession, open_session
from ...ssh.credentials import CredentialResolver
from ...ssh.keys import KeyManager
from ...ssh.models import AuthMode, CommandResult, HostTarget
from ...ssh.runner import CommandRunner
from ...ssh.transfer import FileTransfer
from ...ssh.trust import HostKeyPolicy, TrustStore, policy_from_env

logger = get_logger(__name__)


def authorize_key_commands(public_key: str) -> List[str]:
    """Shell steps that add a key to ~/.ssh/authorized_keys once"""
    key = shlex.quote(public_key)
    return [
        "mkdir -p ~/.ssh",
        "chmod 700 ~/.ssh",
        "touch ~/.ssh/authorized_keys",
        "chmod 600 ~/.ssh/authorized_keys",
        f"(grep -qxF {key} ~/.ssh/authorized_keys || echo {key} >> ~/.ssh/authorized_keys)",
    ]


class HostService:
    """Manages target hosts and runs operations against them"""
    
    def __init__(
        self,
        paths: WorkspacePaths,
        settings: Settings,
        prompt_provider: PromptProvider,
        environ: Optional[Mapping[str, str]] = None,
        policy: Optional[HostKeyPolicy] = None,
        session_factory=RemoteSession,
    ):
        """
        Initialize host service.
        
        Args:
            paths: Workspace layout
            settings: Loaded settings
            prompt_provider: Used for password and host key prompts
            environ: Environment for overrides (default: os.environ)
            policy: Host key policy (default: chosen from the environment)
            session_factory: RemoteSession class, replaceable in tests
        """
        env = os.environ if environ is None else environ
        self.paths = paths
        self.settings = settings
        self.registry = HostRegistry(paths)
        self.key_manager = KeyManager(paths, bits=settings.key_bits)
        self.trust_store = TrustStore(paths.known_hosts, policy or policy_from_env(prompt_provider, env))
        self.credentials = CredentialResolver(self.key_manager, prompt_provider, env)
        self.session_factory = session_factory
    
    @contextmanager
    def session(self, host: HostTarget, mode: AuthMode = "key") -> Iterator[RemoteSession]:
        """Fresh authenticated session for one operation"""
        auth = self.credentials.resolve(host, mode)
        with open_session(
            host,
            auth,
            self.trust_store,
            timeout=self.settings.connect_timeout,
            session_factory=self.session_factory,
        ) as session:
            yield session
    
    # --------------------
    # Registry
    # --------------------
    def add_host(
        self,
        name: str,
        address: str,
        username: str,
        port: int,
        home_path: str = "",
        no_password: bool = False,
    ) -> HostTarget:
        """Register a host after installing our public key on it"""
        if self.registry.find(name) is not None:
            raise HostExistsError(f"Host with name '{name}' already exists, did you mean to update it?")
        
        host = HostTarget(name=name, address=address, username=username, port=port, home_path=home_path)
        self.paths.ensure()

        self.push_public_key(host, "key" if no_password else "password")
        self.registry.add(host)
        self.paths.host_data(name).mkdir(parents=True, exist_ok=True)
        logger.info("Added host '%s' (%s:%d) as a target", name, address, port)
        return host
    
    def update_host(
        self,
        name: str,
        address: Optional[str] = None,
        username: Optional[str] = None,
        port: Optional[int] = None,
        home_path: Optional[str] = None,
        no_password: bool = False,
    ) -> HostTarget:
        """Change a host's connection details and reinstall the key"""
        existing = self.registry.get(name)
        new_username = username or existing.username
        if home_path is None:
            home_path = existing.home_path if new_username == existing.username else ""
        host = HostTarget(
            name=name,
            address=address or existing.address,
            username=new_username,
            port=port or existing.port,
            home_path=home_path,
        )
        
        self.push_public_key(host, "key" if no_password else "password")
        self.registry.update(name, host)
        logger.info("Updated host '%s'", name)
        return host
    
    def delete_host(self, name: str) -> bool:
        deleted = self.registry.remove(name)
        if deleted:
            logger.info("Deleted host '%s' from targets", name)
        else:
            logger.warning("Host '%s' was not configured", name)
        return deleted
    
    def list_hosts(self) -> List[HostTarget]:
        return self.registry.load()
    
    def select_target(self, name: str) -> HostTarget:
        host = self.registry.select(name)
        logger.info("Selected target '%s' for operations", name)
        return host
    
    def show_target(self) -> Optional[str]:
        return self.registry.selected()
    
    def clear_target(self) -> None:
        self.registry.clear_selection()
        logger.info("Unselected target")
    
    def reset(self) -> None:
        """Delete the key pair, the known hosts ledger and every host"""
        self.key_manager.reset()
        self.registry.clear()
        logger.info("Reset SSH keys and removed all targets")
    
    # --------------------
    # Remote operations
    # --------------------
    def push_public_key(self, host: HostTarget, mode: AuthMode = "password") -> None:
        """Install the operator public key on the host"""
        self.key_manager.ensure_key_pair()
        public_key = self.key_manager.public_key_text()
        with self.session(host, mode) as session:
            CommandRunner(session).run(authorize_key_commands(public_key), timeout=self.settings.command_timeout)
        logger.info("Installed public key on %s", host.address)
    
    def test_host(self, name: Optional[str] = None) -> CommandResult:
        """Key-authenticated smoke test: list the remote root directory"""
        host = self.registry.resolve(name)
        with self.session(host, "key") as session:
            return CommandRunner(session).run("ls -lh /", timeout=self.settings.command_timeout)
    
    def run_command(
        self,
        name: Optional[str],
        command: str,
        sudo: bool = False,
        check: bool = True,
    ) -> CommandResult:
        """Run a command on a host, relaying sudo's password prompt when asked to"""
        host = self.registry.resolve(name)
        password = self.credentials.resolve_elevation(host) if sudo else None
        with self.session(host, "key") as session:
            runner = CommandRunner(session)
            if password is not None:
                return runner.run_sudo(command, password, timeout=self.settings.command_timeout, check=check)
            return runner.run(command, timeout=self.settings.command_timeout, check=check)
    
    def push(self, name: Optional[str], src: Path, dst: str) -> HostTarget:
        """Upload a local file or directory"""
        host = self.registry.resolve(name)
        with self.session(host, "key") as session:
            FileTransfer(session).put(src, dst)
        return host
