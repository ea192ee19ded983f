"""
Credential resolution for connection attempts
"""
import os
import re
from typing import Mapping, Optional

from ..core.constants import HOST_PASSWORD_ENV, SUDO_PASSWORD_ENV, KEY_PASSPHRASE_ENV
from ..core.exceptions import CredentialUnavailableError
from ..core.interfaces import PromptProvider
from ..core.logging import get_logger
from .keys import KeyManager
from .models import AuthMethod, AuthMode, HostTarget

logger = get_logger(__name__)


def env_key(prefix: str, host_name: str) -> str:
    """`NEWHOST_PASSWORD` + `my-box` -> `NEWHOST_PASSWORD_MY_BOX`"""
    suffix = re.sub(r"[^A-Za-z0-9]", "_", host_name).upper()
    return f"{prefix}_{suffix}"


class CredentialResolver:
    """Supplies a password or key credential for one authentication attempt"""
    
    def __init__(
        self,
        key_manager: KeyManager,
        prompt_provider: PromptProvider,
        environ: Optional[Mapping[str, str]] = None,
    ):
        self.key_manager = key_manager
        self.prompt_provider = prompt_provider
        self.environ = os.environ if environ is None else environ
    
    def resolve(self, host: HostTarget, mode: AuthMode) -> AuthMethod:
        """
        Build an AuthMethod for the given host.
        
        Args:
            host: Target host
            mode: "password" or "key"
        
        Raises:
            CredentialUnavailableError: If no credential can be obtained
        """
        if mode == "password":
            password = self._lookup(
                env_key(HOST_PASSWORD_ENV, host.name),
                HOST_PASSWORD_ENV,
                f"Password for {host.username}@{host.address}",
            )
            return AuthMethod.with_password(password)
        if mode == "key":
            passphrase = self.environ.get(KEY_PASSPHRASE_ENV, "")
            return AuthMethod.with_key(self.key_manager.load_private_key(passphrase))
        raise ValueError(f"Unsupported auth method: {mode}")
    
    def resolve_elevation(self, host: HostTarget) -> str:
        """Password for the remote privilege-elevation prompt"""
        return self._lookup(
            env_key(SUDO_PASSWORD_ENV, host.name),
            None,
            f"sudo password for {host.username}@{host.address}",
        )
    
    def _lookup(self, host_var: str, generic_var: Optional[str], prompt: str) -> str:
        value = self.environ.get(host_var)
        if value:
            logger.debug("Using password from $%s", host_var)
            return value
        if generic_var and self.environ.get(generic_var):
            logger.debug("Using password from $%s", generic_var)
            return self.environ[generic_var]
        
        if not self.prompt_provider.is_interactive():
            raise CredentialUnavailableError(
                f"No terminal to prompt for a password and ${host_var} is not set"
            )
        try:
            return self.prompt_provider.prompt(prompt, password=True)
        except (EOFError, KeyboardInterrupt, OSError) as e:
            raise CredentialUnavailableError(f"Password prompt failed: {e}") from e
