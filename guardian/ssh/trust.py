"""
Trust-on-first-use host key verification

The ledger is an OpenSSH-style known_hosts file that is only ever appended to.
Unknown keys are handed to a HostKeyPolicy which decides whether to trust them.
"""
import base64
import fcntl
import hashlib
import os
from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, List, Mapping, Optional, Tuple

import paramiko

from ..core.constants import AUTO_ACCEPT_HOSTKEY_ENV, DEFAULT_SSH_PORT
from ..core.exceptions import UntrustedHostError
from ..core.interfaces import PromptProvider
from ..core.logging import get_logger

logger = get_logger(__name__)


# ============================================================
# Fingerprints and ledger lines
# ============================================================

def fingerprint_md5(key: paramiko.PKey) -> str:
    """Colon-grouped hex MD5 of the key blob, e.g. `9f:1c:...`"""
    digest = hashlib.md5(key.asbytes()).hexdigest()
    return ":".join(digest[i:i + 2] for i in range(0, len(digest), 2))


def fingerprint_sha256(key: paramiko.PKey) -> str:
    """OpenSSH-style `SHA256:<base64>` fingerprint"""
    digest = hashlib.sha256(key.asbytes()).digest()
    return "SHA256:" + base64.b64encode(digest).decode("ascii").rstrip("=")


def host_field(hostname: str, port: int = DEFAULT_SSH_PORT) -> str:
    """Host column as OpenSSH writes it"""
    if port == DEFAULT_SSH_PORT:
        return hostname
    return f"[{hostname}]:{port}"


def ledger_line(hostname: str, key: paramiko.PKey, port: int = DEFAULT_SSH_PORT) -> str:
    return f"{host_field(hostname, port)} {key.get_name()} {key.get_base64()}"


def _parse_line(line: str) -> Optional[Tuple[str, str, str]]:
    fields = line.split()
    if len(fields) < 3 or fields[0].startswith("#"):
        return None
    return fields[0], fields[1], fields[2]


# ============================================================
# Policies for unknown keys
# ============================================================

@dataclass
class HostKeyCandidate:
    """What a policy gets to see about an unknown key"""
    hostname: str
    port: int
    key_type: str
    fingerprint: str
    sha256: str
    previously_known: bool = False


class HostKeyPolicy(ABC):
    """Decides whether an unknown host key becomes trusted"""
    
    @abstractmethod
    def decide(self, candidate: HostKeyCandidate) -> bool:
        pass


class AutoAcceptPolicy(HostKeyPolicy):
    """Trust every new key (non-interactive automation)"""
    
    def decide(self, candidate: HostKeyCandidate) -> bool:
        logger.warning(
            "Auto-accepting %s host key for %s: %s",
            candidate.key_type,
            candidate.hostname,
            candidate.fingerprint,
        )
        return True


@dataclass
class StaticPolicy(HostKeyPolicy):
    """
    Fixed allow/deny lists of host names or fingerprints.
    
    Reject entries win over accept entries; anything not listed is rejected.
    """
    accept: Iterable[str] = field(default_factory=list)
    reject: Iterable[str] = field(default_factory=list)
    
    def decide(self, candidate: HostKeyCandidate) -> bool:
        names = {candidate.hostname, candidate.fingerprint, candidate.sha256}
        if names & set(self.reject):
            return False
        return bool(names & set(self.accept))


class InteractivePromptPolicy(HostKeyPolicy):
    """Ask the operator, requiring an explicit `yes`"""
    
    def __init__(self, prompt_provider: PromptProvider):
        self.prompt_provider = prompt_provider
    
    def decide(self, candidate: HostKeyCandidate) -> bool:
        if not self.prompt_provider.is_interactive():
            logger.error("Cannot confirm host key for %s: no terminal attached", candidate.hostname)
            return False
        
        if candidate.previously_known:
            logger.warning(
                "Host %s presented a key that differs from the one on record, "
                "this may indicate a man-in-the-middle attack",
                candidate.hostname,
            )
        message = (
            f"Remote target '{candidate.hostname}' sent {candidate.key_type} public key with fingerprint: "
            f"{candidate.fingerprint} ({candidate.sha256})\n"
            "Do you wish to accept this key and continue?"
        )
        try:
            answer = self.prompt_provider.choose(message, ["yes", "no"], default="no")
        except (EOFError, KeyboardInterrupt, OSError) as e:
            logger.error("Host key prompt failed: %s", e)
            return False
        return answer == "yes"


def policy_from_env(
    prompt_provider: PromptProvider,
    environ: Optional[Mapping[str, str]] = None,
) -> HostKeyPolicy:
    """AutoAccept when $GUARDIAN_AUTO_ACCEPT_HOSTKEY is truthy, otherwise prompt"""
    env = os.environ if environ is None else environ
    if env.get(AUTO_ACCEPT_HOSTKEY_ENV, "").strip().lower() in ("1", "true", "yes", "on"):
        return AutoAcceptPolicy()
    return InteractivePromptPolicy(prompt_provider)


# ============================================================
# Trust store
# ============================================================

class TrustStore:
    """Append-only ledger of accepted host identities"""
    
    def __init__(self, ledger_path: Path, policy: HostKeyPolicy):
        self.ledger_path = Path(ledger_path)
        self.policy = policy
    
    def entries(self) -> List[Tuple[str, str, str]]:
        """Parsed (host, key type, base64 key) lines"""
        if not self.ledger_path.exists():
            return []
        result = []
        with open(self.ledger_path, "r", encoding="utf-8") as f:
            for line in f:
                parsed = _parse_line(line)
                if parsed:
                    result.append(parsed)
        return result
    
    def is_trusted(self, hostname: str, key: paramiko.PKey, port: int = DEFAULT_SSH_PORT) -> bool:
        wanted = (host_field(hostname, port), key.get_name(), key.get_base64())
        return wanted in self.entries()
    
    def verify(self, hostname: str, key: paramiko.PKey, port: int = DEFAULT_SSH_PORT) -> bool:
        """
        Check a presented host key, consulting the policy for unknown keys.
        
        Returns:
            True if the key is (now) trusted, False if it was rejected
        """
        entries = self.entries()
        host = host_field(hostname, port)
        if (host, key.get_name(), key.get_base64()) in entries:
            logger.debug("Host key for %s already trusted", host)
            return True
        
        candidate = HostKeyCandidate(
            hostname=hostname,
            port=port,
            key_type=key.get_name(),
            fingerprint=fingerprint_md5(key),
            sha256=fingerprint_sha256(key),
            previously_known=any(entry[0] == host for entry in entries),
        )
        if not self.policy.decide(candidate):
            logger.warning("Rejected host key for %s (%s)", host, candidate.fingerprint)
            return False
        
        self._append(ledger_line(hostname, key, port))
        logger.info("Added host key for %s to %s", host, self.ledger_path)
        return True
    
    def _append(self, line: str) -> None:
        self.ledger_path.parent.mkdir(parents=True, exist_ok=True)
        with open(self.ledger_path, "a", encoding="utf-8") as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_EX)
            try:
                f.write(line + "\n")
                f.flush()
            finally:
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)


class TrustStoreHostKeyPolicy(paramiko.MissingHostKeyPolicy):
    """
    Routes paramiko's host key check through a TrustStore.
    
    The SSH client is given no host keys of its own, so paramiko calls this for
    every connection.
    """
    
    def __init__(self, trust_store: TrustStore, port: int = DEFAULT_SSH_PORT):
        self.trust_store = trust_store
        self.port = port
    
    def missing_host_key(self, client, hostname, key):
        # paramiko passes "[host]:port" for non-default ports
        if hostname.startswith("[") and "]:" in hostname:
            hostname = hostname[1:hostname.index("]:")]
        if not self.trust_store.verify(hostname, key, self.port):
            raise UntrustedHostError(hostname, fingerprint_md5(key))
