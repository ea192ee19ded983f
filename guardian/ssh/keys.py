"""
Local operator key pair management
"""
import os
import shutil
from pathlib import Path
from typing import Optional, Tuple

import paramiko

from ..core.constants import (
    DEFAULT_KEY_BITS,
    MIN_KEY_BITS,
    KEY_COMMENT,
    PRIVATE_KEY_MODE,
    PUBLIC_KEY_MODE,
)
from ..core.exceptions import KeyGenerationError, KeyPersistError, CredentialUnavailableError
from ..core.logging import get_logger
from ..core.paths import WorkspacePaths

logger = get_logger(__name__)


def format_public_key(key: paramiko.PKey, comment: str = KEY_COMMENT) -> str:
    """Single-line authorized_keys form: `keytype base64 comment`"""
    return f"{key.get_name()} {key.get_base64()} {comment}"


class KeyManager:
    """
    Owns the one RSA key pair used for every target host.
    
    The pair is created once and never rotated; `ensure_key_pair()` is safe to
    call before every operation.
    """
    
    def __init__(self, paths: WorkspacePaths, bits: int = DEFAULT_KEY_BITS):
        self.paths = paths
        self.bits = bits
    
    @property
    def private_key_path(self) -> Path:
        return self.paths.private_key
    
    @property
    def public_key_path(self) -> Path:
        return self.paths.public_key
    
    def ensure_key_pair(self) -> Tuple[Path, Path]:
        """
        Make sure both key files exist, generating a fresh pair if either is missing.
        
        Returns:
            (private_key_path, public_key_path)
        
        Raises:
            KeyGenerationError: If the key could not be generated
            KeyPersistError: If the key files could not be written
        """
        private_path, public_path = self.private_key_path, self.public_key_path
        if private_path.is_file() and public_path.is_file():
            return private_path, public_path
        
        logger.info("SSH key pair not present, generating a new one in %s", private_path.parent)
        key = self._generate()
        self._persist(key)
        return private_path, public_path
    
    def _generate(self) -> paramiko.RSAKey:
        if self.bits < MIN_KEY_BITS:
            raise KeyGenerationError(f"RSA keys must be at least {MIN_KEY_BITS} bits, got {self.bits}")
        try:
            return paramiko.RSAKey.generate(bits=self.bits)
        except Exception as e:
            raise KeyGenerationError(f"Failed generating RSA key: {e}") from e
    
    def _persist(self, key: paramiko.RSAKey) -> None:
        """Write both files or neither"""
        private_path, public_path = self.private_key_path, self.public_key_path
        tmp_private = private_path.with_name(private_path.name + ".tmp")
        tmp_public = public_path.with_name(public_path.name + ".tmp")
        installed_private = False
        
        try:
            private_path.parent.mkdir(parents=True, exist_ok=True, mode=0o700)
            
            key.write_private_key_file(str(tmp_private))
            tmp_private.chmod(PRIVATE_KEY_MODE)
            
            tmp_public.write_text(format_public_key(key) + "\n", encoding="utf-8")
            tmp_public.chmod(PUBLIC_KEY_MODE)
            
            os.replace(tmp_private, private_path)
            installed_private = True
            os.replace(tmp_public, public_path)
        except (OSError, paramiko.SSHException) as e:
            for leftover in (tmp_private, tmp_public):
                leftover.unlink(missing_ok=True)
            if installed_private:
                private_path.unlink(missing_ok=True)
            raise KeyPersistError(f"Failed writing key pair to {private_path.parent}: {e}") from e
        
        logger.info("Wrote SSH key pair %s", private_path)
    
    def load_private_key(self, passphrase: Optional[str] = None) -> paramiko.RSAKey:
        """
        Load the private key for key-based authentication.
        
        Args:
            passphrase: Optional passphrase; empty string means unencrypted
        
        Raises:
            CredentialUnavailableError: If the key is missing, unreadable or locked
        """
        path = self.private_key_path
        try:
            return paramiko.RSAKey.from_private_key_file(str(path), password=passphrase or None)
        except paramiko.PasswordRequiredException as e:
            raise CredentialUnavailableError(f"Private key {path} is encrypted and no passphrase was given") from e
        except (OSError, paramiko.SSHException) as e:
            raise CredentialUnavailableError(f"Failed to load private key at {path}: {e}") from e
    
    def public_key_text(self) -> str:
        """Authorized-keys line of the public key"""
        try:
            return self.public_key_path.read_text(encoding="utf-8").strip()
        except OSError as e:
            raise KeyPersistError(f"Failed to read public key {self.public_key_path}: {e}") from e
    
    def reset(self) -> None:
        """Delete the key directory, including the known hosts ledger"""
        keys_dir = self.paths.ssh_keys_dir
        if keys_dir.exists():
            shutil.rmtree(keys_dir)
            logger.info("Removed %s", keys_dir)
