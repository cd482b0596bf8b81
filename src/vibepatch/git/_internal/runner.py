"""Blocking git command execution with a bounded timeout."""

from __future__ import annotations

import subprocess
from collections.abc import Sequence
from dataclasses import dataclass
from pathlib import Path

from vibepatch.core.logging import get_logger

log = get_logger("git.runner")

DEFAULT_TIMEOUT_SEC = 30.0

# Output is decoded losslessly so a diff can be fed back through stdin byte-for-byte.
_ENCODING = "utf-8"
_ERRORS = "surrogateescape"


@dataclass(frozen=True, slots=True)
class CommandResult:
    """Result of running one git command."""

    args: tuple[str, ...]
    success: bool
    stdout: str
    stderr: str
    returncode: int | None = None
    timed_out: bool = False
    timeout_sec: float | None = None
    error: OSError | None = None


class GitRunner:
    """Runs git commands in a fixed working directory. Never raises for process failures.

    ``success`` is True iff the process spawned and exited with status 0.
    Timeouts and spawn errors are reported on the result, logged, and not retried.
    """

    def __init__(
        self,
        cwd: Path | str,
        *,
        timeout_sec: float = DEFAULT_TIMEOUT_SEC,
        executable: str = "git",
    ) -> None:
        self._cwd = Path(cwd)
        self._timeout_sec = timeout_sec
        self._executable = executable

    @property
    def cwd(self) -> Path:
        return self._cwd

    @property
    def timeout_sec(self) -> float:
        return self._timeout_sec

    def execute(
        self,
        args: Sequence[str],
        *,
        timeout_sec: float | None = None,
        input: str | None = None,  # noqa: A002
        quiet: bool = False,
    ) -> CommandResult:
        """Run ``git <args>`` and capture its output.

        Args:
            args: Arguments after the git executable
            timeout_sec: Override for the runner's default timeout
            input: Payload written to the command's stdin
            quiet: The command is a lookup that may legitimately fail;
                log a non-zero exit at debug instead of warning
        """
        argv = tuple(args)
        timeout = self._timeout_sec if timeout_sec is None else timeout_sec
        payload = input.encode(_ENCODING, _ERRORS) if input is not None else None

        try:
            proc = subprocess.run(
                [self._executable, *argv],
                cwd=self._cwd,
                input=payload,
                stdin=None if payload is not None else subprocess.DEVNULL,
                capture_output=True,
                timeout=timeout,
                check=False,
            )
        except subprocess.TimeoutExpired as e:
            log.error("git_command_timeout", args=argv, timeout_sec=timeout, cwd=str(self._cwd))
            return CommandResult(
                args=argv,
                success=False,
                stdout=_decode(e.stdout),
                stderr=_decode(e.stderr),
                timed_out=True,
                timeout_sec=timeout,
            )
        except OSError as e:
            log.error("git_command_spawn_failed", args=argv, error=str(e), cwd=str(self._cwd))
            return CommandResult(
                args=argv,
                success=False,
                stdout="",
                stderr="",
                timeout_sec=timeout,
                error=e,
            )

        stdout = _decode(proc.stdout)
        stderr = _decode(proc.stderr)
        if proc.returncode != 0:
            log_failure = log.debug if quiet else log.warning
            log_failure(
                "git_command_failed",
                args=argv,
                returncode=proc.returncode,
                stderr=stderr.strip(),
            )
        else:
            log.debug("git_command", args=argv)

        return CommandResult(
            args=argv,
            success=proc.returncode == 0,
            stdout=stdout,
            stderr=stderr,
            returncode=proc.returncode,
            timeout_sec=timeout,
        )


def _decode(output: bytes | str | None) -> str:
    """Bytes mode avoids newline translation, so CRLF content survives a round trip."""
    if output is None:
        return ""
    if isinstance(output, str):
        return output
    return output.decode(_ENCODING, _ERRORS)
