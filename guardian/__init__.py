"""
guardian - provisioning CLI for a remote content-filtering appliance

Provides the remote execution and trust layer used by the CLI:
- Operator SSH key pair lifecycle
- Trust-on-first-use host key verification
- Password / key credential resolution
- Batch and interactive (sudo prompt relay) remote commands
- File and directory upload over SFTP
"""

__version__ = "0.1.0"

from .core import WorkspacePaths

from .ssh import (
    HostTarget,
    AuthMethod,
    CommandResult,
    KeyManager,
    TrustStore,
    AutoAcceptPolicy,
    InteractivePromptPolicy,
    StaticPolicy,
    CredentialResolver,
    RemoteSession,
    open_session,
    CommandRunner,
    FileTransfer,
)

__all__ = [
    "__version__",
    "WorkspacePaths",
    "HostTarget",
    "AuthMethod",
    "CommandResult",
    "KeyManager",
    "TrustStore",
    "AutoAcceptPolicy",
    "InteractivePromptPolicy",
    "StaticPolicy",
    "CredentialResolver",
    "RemoteSession",
    "open_session",
    "CommandRunner",
    "FileTransfer",
]
