"""
Core infrastructure layer
"""
from .constants import *
from .exceptions import *
from .logging import setup_logging, get_logger, get_stdout_console, get_stderr_console
from .interfaces import PromptProvider
from .paths import WorkspacePaths

__all__ = [
    "setup_logging",
    "get_logger",
    "get_stdout_console",
    "get_stderr_console",
    "PromptProvider",
    "WorkspacePaths",
    "GuardianError",
    "ConfigError",
    "HostNotFoundError",
    "HostExistsError",
    "KeyGenerationError",
    "KeyPersistError",
    "UntrustedHostError",
    "CredentialUnavailableError",
    "AuthError",
    "DialError",
    "RemoteCommandError",
    "CommandTimeoutError",
    "TransferError",
    "BackupError",
]
