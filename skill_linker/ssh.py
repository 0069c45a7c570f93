"""Run commands on a remote server through the system ``ssh`` client.

The session only executes. Callers decide what a failed command means for
them; connection-level failures always surface as ``TransportError`` and
leave the session in the ``error`` state until the next successful call.
"""

from __future__ import annotations

import logging
import shlex
import subprocess
import time
from dataclasses import dataclass
from typing import Callable, Optional

from skill_linker.errors import RemoteCommandError, TransportError
from skill_linker.models import AuthMethod, ConnectionStatus, RemoteServer

logger = logging.getLogger(__name__)

SSH_UNREACHABLE_EXIT = 255
TIMEOUT_EXIT = 124

Runner = Callable[..., subprocess.CompletedProcess]


@dataclass(frozen=True)
class ExecResult:
    exit_code: int
    stdout: str
    stderr: str
    duration_ms: int
    error_code: Optional[str] = None


def classify_ssh_error(*, exit_code: int, stderr: str, timed_out: bool) -> Optional[str]:
    if timed_out:
        return "SSH_TIMEOUT"
    if exit_code == 0:
        return None
    s = (stderr or "").lower()
    if "permission denied" in s and exit_code == SSH_UNREACHABLE_EXIT:
        return "SSH_AUTH_FAILED"
    if "connection timed out" in s or "operation timed out" in s:
        return "SSH_TIMEOUT"
    if "could not resolve hostname" in s:
        return "SSH_HOST_UNREACHABLE"
    if "no route to host" in s or "connection refused" in s:
        return "SSH_HOST_UNREACHABLE"
    if exit_code == SSH_UNREACHABLE_EXIT:
        return "SSH_HOST_UNREACHABLE"
    return "SSH_EXEC_FAILED"


def remote_path(path: str) -> str:
    """Quote a remote path, keeping a leading ``~`` expandable."""
    if path == "~":
        return '"$HOME"'
    if path.startswith("~/"):
        return '"$HOME"/' + shlex.quote(path[2:])
    return shlex.quote(path)


class SshSession:
    def __init__(self, server: RemoteServer, runner: Optional[Runner] = None) -> None:
        self.server = server
        self._runner: Runner = runner or subprocess.run
        self.status = ConnectionStatus.DISCONNECTED
        self.last_error: Optional[str] = None

    @property
    def user_host(self) -> str:
        if self.server.username:
            return f"{self.server.username}@{self.server.host}"
        return self.server.host

    def ssh_args(self, command: str) -> list[str]:
        key_args: list[str] = []
        if self.server.auth == AuthMethod.KEY and self.server.private_key_path:
            key_args = ["-i", self.server.private_key_path, "-o", "IdentitiesOnly=yes"]
        return [
            "ssh",
            "-p",
            str(int(self.server.port)),
            "-o",
            "BatchMode=yes",
            "-o",
            f"ConnectTimeout={max(1, int(self.server.connect_timeout_secs))}",
            "-o",
            "StrictHostKeyChecking=accept-new",
            *key_args,
            self.user_host,
            command,
        ]

    def exec(self, command: str, input_text: Optional[str] = None) -> ExecResult:
        started = time.time()
        timeout = max(0.1, float(self.server.command_timeout_secs))
        try:
            cp = self._runner(
                self.ssh_args(command),
                input=input_text,
                check=False,
                capture_output=True,
                text=True,
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as exc:
            stderr = exc.stderr if isinstance(exc.stderr, str) else ""
            return ExecResult(
                exit_code=TIMEOUT_EXIT,
                stdout="",
                stderr=stderr,
                duration_ms=int((time.time() - started) * 1000),
                error_code=classify_ssh_error(
                    exit_code=TIMEOUT_EXIT, stderr=stderr, timed_out=True
                ),
            )
        except OSError as exc:
            return ExecResult(
                exit_code=SSH_UNREACHABLE_EXIT,
                stdout="",
                stderr=str(exc),
                duration_ms=int((time.time() - started) * 1000),
                error_code="SSH_CLIENT_MISSING",
            )
        exit_code = int(cp.returncode)
        return ExecResult(
            exit_code=exit_code,
            stdout=cp.stdout or "",
            stderr=cp.stderr or "",
            duration_ms=int((time.time() - started) * 1000),
            error_code=classify_ssh_error(
                exit_code=exit_code, stderr=cp.stderr or "", timed_out=False
            ),
        )

    def run(self, command: str, input_text: Optional[str] = None) -> str:
        """Execute ``command`` and return its stdout.

        A non-zero exit with an empty stderr is accepted, since commands like
        ``ls`` on an empty directory exit non-zero without failing.
        """
        if self.status != ConnectionStatus.CONNECTED:
            self.status = ConnectionStatus.CONNECTING
        result = self.exec(command, input_text=input_text)
        logger.debug(
            "ssh %s exit=%s in %sms: %s",
            self.user_host,
            result.exit_code,
            result.duration_ms,
            command,
        )
        if result.exit_code in (SSH_UNREACHABLE_EXIT, TIMEOUT_EXIT):
            detail = result.stderr.strip() or result.error_code or "unreachable"
            self.status = ConnectionStatus.ERROR
            self.last_error = detail
            raise TransportError(self.server.host, detail, error_code=result.error_code)

        self.status = ConnectionStatus.CONNECTED
        self.last_error = None
        if result.exit_code != 0 and result.stderr.strip():
            raise RemoteCommandError(result.exit_code, result.stderr.strip())
        return result.stdout

    def test_connection(self) -> ConnectionStatus:
        try:
            self.run("echo ok")
        except TransportError:
            return self.status
        except RemoteCommandError as exc:
            self.status = ConnectionStatus.ERROR
            self.last_error = str(exc)
        return self.status

    def disconnect(self) -> None:
        self.status = ConnectionStatus.DISCONNECTED
        self.last_error = None
