"""
Remote execution domain models
"""
from __future__ import annotations

from dataclasses import dataclass, field, asdict
from typing import Any, Dict, Literal, Optional

import paramiko

from ..core.constants import DEFAULT_SSH_PORT


AuthMode = Literal["password", "key"]


@dataclass
class HostTarget:
    """A registered target host"""
    name: str
    address: str
    username: str
    port: int = DEFAULT_SSH_PORT
    home_path: str = ""

    def __post_init__(self) -> None:
        if not self.home_path:
            self.home_path = f"/home/{self.username}"
        self.port = int(self.port)

    def to_dict(self) -> Dict[str, Any]:
        """Convert to dictionary"""
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "HostTarget":
        """Create from dictionary"""
        return cls(
            name=data["name"],
            address=data["address"],
            username=data["username"],
            port=data.get("port", DEFAULT_SSH_PORT),
            home_path=data.get("home_path", ""),
        )


@dataclass
class AuthMethod:
    """
    Credential for exactly one authentication attempt.
    
    Never persisted. `forget()` drops the secret once the attempt is over.
    """
    kind: AuthMode
    password: Optional[str] = field(default=None, repr=False)
    pkey: Optional[paramiko.PKey] = field(default=None, repr=False)

    @classmethod
    def with_password(cls, password: str) -> "AuthMethod":
        return cls(kind="password", password=password)

    @classmethod
    def with_key(cls, pkey: paramiko.PKey) -> "AuthMethod":
        return cls(kind="key", pkey=pkey)

    def connect_kwargs(self) -> Dict[str, Any]:
        """Keyword arguments for paramiko.SSHClient.connect"""
        if self.kind == "password":
            return {"password": self.password}
        return {"pkey": self.pkey}

    def forget(self) -> None:
        self.password = None


@dataclass
class CommandResult:
    """Outcome of a remote command"""
    exit_code: int
    output: str = ""

    @property
    def success(self) -> bool:
        return self.exit_code == 0


@dataclass(frozen=True)
class TransferEntry:
    """One entry of an expanded directory transfer"""
    relative_path: str
    is_dir: bool


@dataclass(frozen=True)
class PromptResponder:
    """Secret to send when the in-progress output line looks like a known prompt"""
    prefix: str
    suffix: str
    secret: str = field(repr=False)

    def matches(self, line: str) -> bool:
        return (
            len(line) >= len(self.prefix) + len(self.suffix)
            and line.startswith(self.prefix)
            and line.endswith(self.suffix)
        )
