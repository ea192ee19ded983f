"""
Remote command execution

Two modes:
- batch: run to completion, return combined output and exit status
- interactive relay: PTY attached, a scanner thread watches the output for
  registered prompts and answers them with the matching secret
"""
import socket
import threading
import time
from enum import Enum
from typing import Callable, Iterable, List, Optional, Sequence, Union

from ..core.constants import (
    PTY_TERM,
    PTY_WIDTH,
    PTY_HEIGHT,
    SUDO_PROMPT_PREFIX,
    SUDO_PROMPT_SUFFIX,
    RECV_CHUNK_SIZE,
    POLL_INTERVAL,
    SCANNER_RECV_TIMEOUT,
)
from ..core.exceptions import CommandTimeoutError, RemoteCommandError
from ..core.logging import get_logger
from .models import CommandResult, PromptResponder

logger = get_logger(__name__)

REDACTED = "********"
SCANNER_DRAIN_TIMEOUT = 5.0


def join_commands(commands: Union[str, Sequence[str]]) -> str:
    """A single command, or a sequence chained with `&&`"""
    if isinstance(commands, str):
        return commands
    return " && ".join(commands)


def sudo_responder(secret: str) -> PromptResponder:
    """Responder for the `[sudo] password for <user>: ` prompt"""
    return PromptResponder(prefix=SUDO_PROMPT_PREFIX, suffix=SUDO_PROMPT_SUFFIX, secret=secret)


# ============================================================
# Prompt scanner
# ============================================================

class ScanState(Enum):
    READING_LINE = "reading-line"
    LINE_COMPLETE = "line-complete"
    PROMPT_MATCHED = "prompt-matched"


class PromptScanner:
    """
    Byte-at-a-time line assembler that spots prompts in the in-progress line.
    
    `feed()` returns the responder whose prompt just completed, at most once per
    prompt occurrence; the caller is responsible for sending its secret.
    """
    
    def __init__(
        self,
        responders: Iterable[PromptResponder],
        on_line: Optional[Callable[[str], None]] = None,
    ):
        self.responders: List[PromptResponder] = list(responders)
        # the full line is only decoded once it ends like a prompt
        self._suffixes = [(r, r.suffix.encode("utf-8")) for r in self.responders]
        self.on_line = on_line
        self.state = ScanState.READING_LINE
        self.lines: List[str] = []
        self._line = bytearray()
        self._output = bytearray()
    
    @property
    def output(self) -> str:
        return self.redact(self._output.decode("utf-8", errors="replace"))
    
    def redact(self, text: str) -> str:
        for responder in self.responders:
            if responder.secret:
                text = text.replace(responder.secret, REDACTED)
        return text
    
    def feed(self, byte: int) -> Optional[PromptResponder]:
        self._output.append(byte)
        
        if byte == 0x0A:
            self._complete_line()
            self.state = ScanState.LINE_COMPLETE
            return None
        
        self._line.append(byte)
        self.state = ScanState.READING_LINE
        candidates = [r for r, suffix in self._suffixes if self._line.endswith(suffix)]
        if not candidates:
            return None
        current = self._line.decode("utf-8", errors="replace")
        for responder in candidates:
            if responder.matches(current):
                self.state = ScanState.PROMPT_MATCHED
                # the prompt is done; later bytes start a fresh line
                self._complete_line()
                return responder
        return None
    
    def finish(self) -> None:
        """Flush a trailing line without newline"""
        if self._line:
            self._complete_line()
    
    def _complete_line(self) -> None:
        line = self.redact(self._line.decode("utf-8", errors="replace").rstrip("\r"))
        self._line.clear()
        self.lines.append(line)
        if self.on_line:
            self.on_line(line)


# ============================================================
# Runner
# ============================================================

class CommandRunner:
    """Runs commands over an open RemoteSession, one channel per command"""
    
    def __init__(self, session, log_output: bool = True):
        self.session = session
        self.log_output = log_output
    
    def _log_line(self, line: str) -> None:
        if self.log_output:
            logger.info("[%s] %s", self.session.host.name, line)
    
    def run(
        self,
        commands: Union[str, Sequence[str]],
        timeout: Optional[float] = None,
        check: bool = True,
    ) -> CommandResult:
        """
        Run a command (or `&&`-joined sequence) to completion.
        
        Args:
            commands: Command string or sequence of commands
            timeout: Seconds to wait on output before giving up
            check: Raise RemoteCommandError on non-zero exit
        
        Returns:
            CommandResult with combined stdout/stderr
        
        Raises:
            RemoteCommandError: Non-zero exit and check is set
            CommandTimeoutError: No output/exit within timeout
        """
        command = join_commands(commands)
        logger.debug("Running on %s: %s", self.session.host.name, command)
        
        chunks = []
        channel = self.session.open_channel()
        try:
            channel.set_combine_stderr(True)
            channel.settimeout(timeout)
            channel.exec_command(command)
            try:
                while True:
                    data = channel.recv(RECV_CHUNK_SIZE)
                    if not data:
                        break
                    chunks.append(data)
                exit_code = channel.recv_exit_status()
            except socket.timeout as e:
                raise CommandTimeoutError(f"Command timed out after {timeout}s: {command}") from e
        finally:
            channel.close()
        
        output = b"".join(chunks).decode("utf-8", errors="replace")
        return self._finish(command, exit_code, output, check)
    
    def run_interactive(
        self,
        command: str,
        responders: Iterable[PromptResponder],
        timeout: Optional[float] = None,
        check: bool = True,
    ) -> CommandResult:
        """
        Run a command with a PTY, answering registered prompts as they appear.
        
        Output lines are forwarded to the log with secrets masked. A prompt that
        repeats (wrong password) is answered again.
        
        Raises:
            RemoteCommandError: Non-zero exit and check is set
            CommandTimeoutError: Command still running after timeout
        """
        scanner = PromptScanner(responders, on_line=self._log_line)
        stop = threading.Event()
        errors: List[BaseException] = []
        
        channel = self.session.open_channel()
        try:
            channel.get_pty(term=PTY_TERM, width=PTY_WIDTH, height=PTY_HEIGHT)
            channel.settimeout(SCANNER_RECV_TIMEOUT)
            
            worker = threading.Thread(
                target=self._scan,
                args=(channel, scanner, stop, errors),
                name=f"relay-{self.session.host.name}",
                daemon=True,
            )
            worker.start()
            try:
                logger.debug("Running interactively on %s: %s", self.session.host.name, command)
                # the PTY echoes input unless told not to
                channel.exec_command(f"stty -echo 2>/dev/null; {command}")
                exit_code = self._wait_for_exit(channel, command, timeout)
                worker.join(SCANNER_DRAIN_TIMEOUT)
            finally:
                stop.set()
                channel.close()
                worker.join()
        finally:
            channel.close()
        
        if errors:
            raise errors[0]
        return self._finish(command, exit_code, scanner.output, check)
    
    def run_sudo(
        self,
        command: str,
        password: str,
        timeout: Optional[float] = None,
        check: bool = True,
    ) -> CommandResult:
        """Run `sudo <command>`, feeding the password to sudo's prompt"""
        return self.run_interactive(f"sudo {command}", [sudo_responder(password)], timeout, check)
    
    @staticmethod
    def _scan(channel, scanner: PromptScanner, stop: threading.Event, errors: List[BaseException]) -> None:
        try:
            while not stop.is_set():
                try:
                    data = channel.recv(RECV_CHUNK_SIZE)
                except socket.timeout:
                    continue
                except (OSError, EOFError):
                    break
                if not data:
                    break
                for byte in data:
                    responder = scanner.feed(byte)
                    if responder is None:
                        continue
                    try:
                        channel.sendall((responder.secret + "\n").encode("utf-8"))
                    except (OSError, EOFError):
                        return
            scanner.finish()
        except Exception as e:
            errors.append(e)
    
    @staticmethod
    def _wait_for_exit(channel, command: str, timeout: Optional[float]) -> int:
        deadline = None if timeout is None else time.monotonic() + timeout
        while not channel.exit_status_ready():
            if deadline is not None and time.monotonic() >= deadline:
                raise CommandTimeoutError(f"Command timed out after {timeout}s: {command}")
            time.sleep(POLL_INTERVAL)
        return channel.recv_exit_status()
    
    def _finish(self, command: str, exit_code: int, output: str, check: bool) -> CommandResult:
        result = CommandResult(exit_code=exit_code, output=output)
        if exit_code != 0:
            logger.warning("Command on %s exited with status %d", self.session.host.name, exit_code)
            if check:
                raise RemoteCommandError(exit_code, command, output)
        return result
