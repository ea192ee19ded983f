"""
Workspace path layout
"""
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Mapping, Optional

from .constants import (
    GUARDIAN_HOME_ENV,
    DEFAULT_GUARDIAN_HOME,
    CONFIG_FILE_NAME,
    SETTINGS_FILE_NAME,
    TARGET_FILE_NAME,
    HOST_DATA_DIR_NAME,
    SSH_KEYS_DIR_NAME,
    PRIVATE_KEY_FILE_NAME,
    PUBLIC_KEY_FILE_NAME,
    KNOWN_HOSTS_FILE_NAME,
)


@dataclass(frozen=True)
class WorkspacePaths:
    """
    Every on-disk location used by the tool, derived from a single home directory.
    
    Build it once with `from_env()` and hand it to the components that need it.
    """
    home: Path

    @classmethod
    def from_env(cls, environ: Optional[Mapping[str, str]] = None) -> "WorkspacePaths":
        """Resolve the home directory from $GUARDIAN_HOME, falling back to ~/.guardian"""
        env = os.environ if environ is None else environ
        home = env.get(GUARDIAN_HOME_ENV) or DEFAULT_GUARDIAN_HOME
        return cls(home=Path(home).expanduser())

    @property
    def config_file(self) -> Path:
        return self.home / CONFIG_FILE_NAME

    @property
    def settings_file(self) -> Path:
        return self.home / SETTINGS_FILE_NAME

    @property
    def target_file(self) -> Path:
        return self.home / TARGET_FILE_NAME

    @property
    def host_data_dir(self) -> Path:
        return self.home / HOST_DATA_DIR_NAME

    @property
    def ssh_keys_dir(self) -> Path:
        return self.home / SSH_KEYS_DIR_NAME

    @property
    def private_key(self) -> Path:
        return self.ssh_keys_dir / PRIVATE_KEY_FILE_NAME

    @property
    def public_key(self) -> Path:
        return self.ssh_keys_dir / PUBLIC_KEY_FILE_NAME

    @property
    def known_hosts(self) -> Path:
        return self.ssh_keys_dir / KNOWN_HOSTS_FILE_NAME

    def host_data(self, name: str) -> Path:
        """Per-host data directory"""
        return self.host_data_dir / name

    def ensure(self) -> None:
        """Create the workspace directories if missing"""
        self.home.mkdir(parents=True, exist_ok=True)
        self.host_data_dir.mkdir(parents=True, exist_ok=True)
        self.ssh_keys_dir.mkdir(parents=True, exist_ok=True)
