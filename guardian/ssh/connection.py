"""
One authenticated SSH session per logical operation
"""
from __future__ import annotations

import socket
from contextlib import contextmanager
from typing import Iterator, Optional

import paramiko

from ..core.constants import DEFAULT_SSH_TIMEOUT
from ..core.exceptions import AuthError, DialError, UntrustedHostError
from ..core.logging import get_logger
from .models import AuthMethod, HostTarget
from .trust import TrustStore, TrustStoreHostKeyPolicy

logger = get_logger(__name__)


class RemoteSession:
    """
    Wraps a paramiko SSHClient for a single operation:
    - one connect attempt, no retry
    - host key checked by a TrustStore
    - password or key login, never agent or ~/.ssh keys
    - channel / SFTP helpers for the runner and transfer
    - always closed via the context manager
    """
    
    def __init__(
        self,
        host: HostTarget,
        auth: AuthMethod,
        trust_store: TrustStore,
        timeout: float = DEFAULT_SSH_TIMEOUT,
    ) -> None:
        self.host = host
        self.auth = auth
        self.trust_store = trust_store
        self.timeout = timeout
        
        self.client = paramiko.SSHClient()
        self.client.set_missing_host_key_policy(TrustStoreHostKeyPolicy(trust_store, host.port))
    
    # --------------------
    # Connection management
    # --------------------
    def connect(self) -> None:
        """
        Dial, verify the host and authenticate.
        
        Raises:
            DialError: Network or SSH negotiation failure
            AuthError: Credentials rejected
            UntrustedHostError: Host key rejected
        """
        host = self.host
        logger.debug("Connecting to %s@%s:%d (%s auth)", host.username, host.address, host.port, self.auth.kind)
        try:
            self.client.connect(
                hostname=host.address,
                port=host.port,
                username=host.username,
                timeout=self.timeout,
                banner_timeout=self.timeout,
                auth_timeout=self.timeout,
                allow_agent=False,
                look_for_keys=False,
                **self.auth.connect_kwargs(),
            )
        except UntrustedHostError:
            raise
        except paramiko.AuthenticationException as e:
            raise AuthError(f"Authentication to {host.username}@{host.address} failed: {e}") from e
        except (socket.error, socket.timeout, paramiko.SSHException, EOFError) as e:
            raise DialError(f"Dial to {host.address}:{host.port} failed: {e}") from e
        finally:
            self.auth.forget()
    
    def close(self) -> None:
        self.client.close()
    
    # --------------------
    # Helpers
    # --------------------
    def open_channel(self) -> paramiko.Channel:
        """New session channel on the authenticated transport"""
        transport = self.client.get_transport()
        if transport is None or not transport.is_active():
            raise DialError(f"Connection to {self.host.address} is not active")
        return transport.open_session(timeout=self.timeout)
    
    def open_sftp(self) -> paramiko.SFTPClient:
        """SFTP client layered on the same transport; caller closes it"""
        try:
            return self.client.open_sftp()
        except paramiko.SSHException as e:
            raise DialError(f"Failed to start SFTP on {self.host.address}: {e}") from e
    
    # --------------------
    # Context manager
    # --------------------
    def __enter__(self) -> RemoteSession:
        return self
    
    def __exit__(self, exc_type, exc_value, traceback) -> None:
        self.close()


@contextmanager
def open_session(
    host: HostTarget,
    auth: AuthMethod,
    trust_store: TrustStore,
    timeout: float = DEFAULT_SSH_TIMEOUT,
    session_factory=RemoteSession,
) -> Iterator[RemoteSession]:
    """
    Acquire an authenticated session, yield it, and always release it.
    
    Example:
        with open_session(host, auth, trust_store) as session:
            CommandRunner(session).run("uptime")
    """
    session = session_factory(host, auth, trust_store, timeout)
    try:
        session.connect()
        yield session
    finally:
        session.close()
        logger.debug("Closed connection to %s", host.address)
