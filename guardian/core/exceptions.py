"""
Unified exception definitions
"""
from typing import Optional


class GuardianError(Exception):
    """Base exception class"""
    pass


class ConfigError(GuardianError):
    """Configuration error"""
    pass


class HostNotFoundError(GuardianError):
    """Host is not in the registry"""
    pass


class HostExistsError(GuardianError):
    """Host is already in the registry"""
    pass


class KeyGenerationError(GuardianError):
    """Key pair could not be generated"""
    pass


class KeyPersistError(GuardianError):
    """Key pair could not be written to disk"""
    pass


class UntrustedHostError(GuardianError):
    """Remote host identity was rejected"""

    def __init__(self, hostname: str, fingerprint: str):
        super().__init__(f"Host key for '{hostname}' was not accepted (fingerprint {fingerprint})")
        self.hostname = hostname
        self.fingerprint = fingerprint


class CredentialUnavailableError(GuardianError):
    """No credential could be obtained"""
    pass


class AuthError(GuardianError):
    """Credentials were rejected by the remote host"""
    pass


class DialError(GuardianError):
    """Network-level connection failure"""
    pass


class RemoteCommandError(GuardianError):
    """Remote command ran but exited non-zero"""

    def __init__(self, exit_code: int, command: str = "", output: str = ""):
        super().__init__(f"Remote command exited with status {exit_code}: {command}")
        self.exit_code = exit_code
        self.command = command
        self.output = output


class CommandTimeoutError(GuardianError):
    """Remote command did not finish in time"""
    pass


class TransferError(GuardianError):
    """Transfer error"""

    def __init__(self, path: str, cause: Optional[BaseException] = None):
        message = f"Transfer failed for {path}"
        if cause is not None:
            message = f"{message}: {cause}"
        super().__init__(message)
        self.path = path
        self.cause = cause


class BackupError(GuardianError):
    """Workspace archive could not be written or restored"""
    pass
