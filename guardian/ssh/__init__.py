"""
Remote execution and trust: keys, host verification, credentials, sessions,
commands and file transfer
"""
from .models import HostTarget, AuthMethod, CommandResult, TransferEntry, PromptResponder
from .keys import KeyManager, format_public_key
from .trust import (
    TrustStore,
    HostKeyPolicy,
    HostKeyCandidate,
    AutoAcceptPolicy,
    InteractivePromptPolicy,
    StaticPolicy,
    TrustStoreHostKeyPolicy,
    policy_from_env,
    fingerprint_md5,
    fingerprint_sha256,
)
from .credentials import CredentialResolver
from .connection import RemoteSession, open_session
from .runner import CommandRunner, PromptScanner, ScanState, join_commands, sudo_responder
from .transfer import FileTransfer, walk_tree

__all__ = [
    "HostTarget",
    "AuthMethod",
    "CommandResult",
    "TransferEntry",
    "PromptResponder",
    "KeyManager",
    "format_public_key",
    "TrustStore",
    "HostKeyPolicy",
    "HostKeyCandidate",
    "AutoAcceptPolicy",
    "InteractivePromptPolicy",
    "StaticPolicy",
    "TrustStoreHostKeyPolicy",
    "policy_from_env",
    "fingerprint_md5",
    "fingerprint_sha256",
    "CredentialResolver",
    "RemoteSession",
    "open_session",
    "CommandRunner",
    "PromptScanner",
    "ScanState",
    "join_commands",
    "sudo_responder",
    "FileTransfer",
    "walk_tree",
]
