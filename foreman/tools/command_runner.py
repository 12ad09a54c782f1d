#!/usr/bin/env python3
# -*- coding: utf-8 -*-
"""
Asynchronous subprocess execution for verification checks.

Every call resolves to a CommandResult; spawn failures, nonzero exits and
timeouts are reported in the result instead of raised.

Execution Design:
- A string command runs through the system shell (check commands come from
  project configuration and may contain pipes or ``&&``)
- A list command is executed directly without a shell
- stdout/stderr are read incrementally and only the last
  ``max_buffer_bytes`` of each stream is retained
- On timeout the whole process group is killed so shell children do not
  outlive the check
"""

import asyncio
import os
import signal
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, List, Optional, Tuple, Union

from foreman import config
from foreman.debug_logger import get_logger


logger = get_logger()

_READ_CHUNK = 64 * 1024
_DRAIN_TIMEOUT = 5.0


@dataclass(frozen=True)
class CommandResult:
    """Captured outcome of a subprocess."""
    success: bool
    stdout: str
    stderr: str
    duration_ms: int
    exit_code: Optional[int] = None
    timed_out: bool = False
    truncated: bool = False
    error: Optional[str] = None

    @property
    def combined_output(self) -> str:
        parts = [part for part in (self.stdout, self.stderr) if part]
        if self.error:
            parts.append(self.error)
        return "\n".join(parts)


async def _read_bounded(stream: Optional[asyncio.StreamReader], limit: int) -> Tuple[bytes, bool]:
    """Read a stream to EOF, keeping only the last ``limit`` bytes."""
    if stream is None:
        return b"", False
    buffer = bytearray()
    truncated = False
    while True:
        chunk = await stream.read(_READ_CHUNK)
        if not chunk:
            break
        buffer.extend(chunk)
        if len(buffer) > limit:
            del buffer[:len(buffer) - limit]
            truncated = True
    return bytes(buffer), truncated


async def _feed_stdin(proc: asyncio.subprocess.Process, data: bytes) -> None:
    if proc.stdin is None:
        return
    try:
        proc.stdin.write(data)
        await proc.stdin.drain()
    except (BrokenPipeError, ConnectionResetError):
        # Process exited without consuming its input
        pass
    finally:
        proc.stdin.close()


def _kill(proc: asyncio.subprocess.Process) -> None:
    try:
        if os.name != "nt":
            os.killpg(proc.pid, signal.SIGKILL)
        else:
            proc.kill()
    except (ProcessLookupError, PermissionError, OSError):
        try:
            proc.kill()
        except ProcessLookupError:
            pass


def _elapsed_ms(started: float) -> int:
    return int((time.monotonic() - started) * 1000)


async def execute(
    cwd: Union[str, Path],
    command: Union[str, List[str]],
    env_overlay: Optional[Dict[str, str]] = None,
    max_buffer_bytes: Optional[int] = None,
    timeout_ms: Optional[int] = None,
    stdin_data: Optional[str] = None,
) -> CommandResult:
    """Run a command and capture its output.

    Args:
        cwd: Working directory for the command
        command: Shell command string, or an argv list executed without a shell
        env_overlay: Variables layered over the current environment
        max_buffer_bytes: Bytes of stdout/stderr to retain per stream
        timeout_ms: Kill the command after this many milliseconds
        stdin_data: Text written to the process's stdin

    Returns:
        CommandResult; ``success`` is True only for exit code 0.
    """
    limit = max_buffer_bytes or config.get_max_buffer_bytes()
    timeout_s = (timeout_ms or config.get_check_timeout_ms()) / 1000.0
    env = dict(os.environ)
    if env_overlay:
        env.update(env_overlay)

    started = time.monotonic()
    stdin_pipe = asyncio.subprocess.PIPE if stdin_data is not None else asyncio.subprocess.DEVNULL
    spawn_kwargs = dict(
        cwd=str(cwd),
        env=env,
        stdin=stdin_pipe,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    if os.name != "nt":
        spawn_kwargs["start_new_session"] = True

    display = command if isinstance(command, str) else " ".join(command)
    try:
        if isinstance(command, str):
            proc = await asyncio.create_subprocess_shell(command, **spawn_kwargs)
        else:
            if not command:
                return CommandResult(False, "", "", 0, exit_code=None, error="empty command")
            proc = await asyncio.create_subprocess_exec(*command, **spawn_kwargs)
    except FileNotFoundError:
        name = command if isinstance(command, str) else command[0]
        return CommandResult(
            False, "", "", _elapsed_ms(started), error=f"command not found: {name}"
        )
    except (OSError, ValueError) as e:
        return CommandResult(False, "", "", _elapsed_ms(started), error=f"OS error: {e}")

    stdout_task = asyncio.ensure_future(_read_bounded(proc.stdout, limit))
    stderr_task = asyncio.ensure_future(_read_bounded(proc.stderr, limit))
    stdin_task = None
    if stdin_data is not None:
        stdin_task = asyncio.ensure_future(_feed_stdin(proc, stdin_data.encode("utf-8")))

    timed_out = False
    try:
        await asyncio.wait_for(proc.wait(), timeout=timeout_s)
    except asyncio.TimeoutError:
        timed_out = True
        logger.warning(f"Command timed out after {timeout_s:.0f}s: {display}")
        _kill(proc)
        await proc.wait()

    readers = [stdout_task, stderr_task] + ([stdin_task] if stdin_task else [])
    done, pending = await asyncio.wait(readers, timeout=_DRAIN_TIMEOUT)
    for task in pending:
        task.cancel()

    def _collected(task: "asyncio.Future") -> Tuple[bytes, bool]:
        if task in done and not task.cancelled() and task.exception() is None:
            return task.result()
        return b"", False

    stdout_bytes, stdout_truncated = _collected(stdout_task)
    stderr_bytes, stderr_truncated = _collected(stderr_task)
    duration = _elapsed_ms(started)

    error = None
    if timed_out:
        error = f"command exceeded {timeout_s:.0f}s timeout (timed out)"

    result = CommandResult(
        success=(not timed_out and proc.returncode == 0),
        stdout=stdout_bytes.decode("utf-8", errors="replace"),
        stderr=stderr_bytes.decode("utf-8", errors="replace"),
        duration_ms=duration,
        exit_code=proc.returncode,
        timed_out=timed_out,
        truncated=stdout_truncated or stderr_truncated,
        error=error,
    )
    logger.debug(f"[command] rc={proc.returncode} {duration}ms: {display}")
    return result
