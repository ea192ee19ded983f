"""Shared fixtures: fake SSH channel / SFTP / session and a cached RSA key."""

import os
import socket
import threading
import time
from pathlib import Path
from typing import List, Optional

import paramiko
import pytest

from guardian.core.interfaces import PromptProvider
from guardian.core.paths import WorkspacePaths
from guardian.ssh.models import HostTarget


# ---------------------------------------------------------------------------
# Keys
# ---------------------------------------------------------------------------


@pytest.fixture(scope="session")
def rsa_key() -> paramiko.RSAKey:
    return paramiko.RSAKey.generate(bits=4096)


@pytest.fixture(scope="session")
def other_key() -> paramiko.RSAKey:
    return paramiko.RSAKey.generate(bits=1024)


@pytest.fixture
def fast_keygen(monkeypatch, rsa_key):
    """Make RSAKey.generate return the cached key; records requested sizes."""
    calls = []

    def generate(bits, progress_func=None):
        calls.append(bits)
        return rsa_key

    monkeypatch.setattr(paramiko.RSAKey, "generate", staticmethod(generate))
    return calls


@pytest.fixture
def paths(tmp_path) -> WorkspacePaths:
    return WorkspacePaths(home=tmp_path / "guardian-home")


@pytest.fixture
def host() -> HostTarget:
    return HostTarget(name="box", address="10.0.0.5", username="user")


# ---------------------------------------------------------------------------
# Prompts
# ---------------------------------------------------------------------------


class ScriptedPrompts(PromptProvider):
    """Answers prompts from a list; an Exception instance is raised instead."""

    def __init__(self, answers=None, interactive=True):
        self.answers = list(answers or [])
        self.interactive = interactive
        self.asked: List[str] = []

    def _next(self, message):
        self.asked.append(message)
        answer = self.answers.pop(0)
        if isinstance(answer, BaseException):
            raise answer
        return answer

    def prompt(self, message, default=None, password=False):
        return self._next(message)

    def choose(self, message, choices, default=None):
        return self._next(message)

    def confirm(self, message, default=False):
        return self._next(message)

    def is_interactive(self):
        return self.interactive


# ---------------------------------------------------------------------------
# Channel
# ---------------------------------------------------------------------------


class FakeChannel:
    """
    Scripted paramiko.Channel stand-in.

    `chunks` are returned by recv() in order. A chunk may be a callable taking
    the list of sent payloads and returning bytes or None (not ready yet), which
    lets a script wait for the secret before continuing. After the script runs
    out, recv() returns b"" (EOF) unless `hang` is set, in which case it times
    out forever and the command never exits.
    """

    def __init__(self, chunks=None, exit_code=0, hang=False, recv_timeout_error=False):
        self.chunks = list(chunks or [])
        self.exit_code = exit_code
        self.hang = hang
        self.recv_timeout_error = recv_timeout_error
        self.sent: List[bytes] = []
        self.command: Optional[str] = None
        self.pty = None
        self.combine_stderr = False
        self.timeout = None
        self.closed = False
        self._eof = False
        self._lock = threading.Lock()

    def get_pty(self, term="vt100", width=80, height=24, width_pixels=0, height_pixels=0):
        self.pty = (term, width, height)

    def settimeout(self, timeout):
        self.timeout = timeout

    def set_combine_stderr(self, combine):
        self.combine_stderr = combine

    def exec_command(self, command):
        self.command = command

    def recv(self, nbytes):
        if self.recv_timeout_error:
            raise socket.timeout()
        if self.closed:
            return b""
        with self._lock:
            while self.chunks:
                chunk = self.chunks[0]
                if callable(chunk):
                    data = chunk(self.sent)
                    if data is None:
                        break
                else:
                    data = chunk
                self.chunks.pop(0)
                return data
            else:
                if not self.hang:
                    self._eof = True
                    return b""
        time.sleep(0.01)
        raise socket.timeout()

    def sendall(self, data):
        self.sent.append(data)

    def exit_status_ready(self):
        return self._eof and not self.hang

    def recv_exit_status(self):
        return self.exit_code

    def close(self):
        self.closed = True


# ---------------------------------------------------------------------------
# SFTP
# ---------------------------------------------------------------------------


class FakeSFTP:
    """SFTP client writing into a local directory; records mkdir/open order."""

    def __init__(self, root: Path, fail_on: Optional[str] = None):
        self.root = root
        self.fail_on = fail_on
        self.ops: List[tuple] = []
        self.closed = False

    def _local(self, path: str) -> Path:
        return self.root / path.lstrip("/")

    def mkdir(self, path, mode=0o777):
        local = self._local(path)
        if local.exists():
            raise IOError(f"{path} exists")
        local.mkdir()
        self.ops.append(("mkdir", path))

    def stat(self, path):
        local = self._local(path)
        if not local.exists():
            raise IOError(2, "No such file")
        return os.stat(local)

    def open(self, path, mode="r"):
        if self.fail_on is not None and path.endswith(self.fail_on):
            raise IOError(13, "Permission denied")
        self.ops.append(("open", path))
        return open(self._local(path), mode)

    def close(self):
        self.closed = True


# ---------------------------------------------------------------------------
# Session
# ---------------------------------------------------------------------------


class FakeSession:
    """Stands in for RemoteSession, both directly and as a session_factory."""

    def __init__(self, host, auth=None, trust_store=None, timeout=None, channels=None, sftp=None):
        self.host = host
        self.auth = auth
        self.trust_store = trust_store
        self.timeout = timeout
        self.channels = channels if channels is not None else []
        self.opened: List[FakeChannel] = []
        self.sftp = sftp
        self.connected = False
        self.closed = False

    def connect(self):
        self.connected = True

    def close(self):
        self.closed = True

    def open_channel(self):
        channel = self.channels.pop(0) if self.channels else FakeChannel()
        self.opened.append(channel)
        return channel

    def open_sftp(self):
        return self.sftp

    def __enter__(self):
        return self

    def __exit__(self, *exc):
        self.close()


@pytest.fixture
def remote_root(tmp_path) -> Path:
    root = tmp_path / "remote"
    root.mkdir()
    return root


@pytest.fixture
def fake_sftp(remote_root) -> FakeSFTP:
    return FakeSFTP(remote_root)
