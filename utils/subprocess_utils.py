"""
Shared subprocess utilities for driving the render CLI
"""

import asyncio
import subprocess
import logging
from typing import Optional, Any

logger = logging.getLogger(__name__)


class SubprocessError(Exception):
    """
    Custom exception for subprocess errors.

    Raised when a CLI command fails to start, exits non-zero or times out.
    """

    def __init__(self, message, command=None, returncode=None, stderr=None):
        """
        Initialize the exception with error details.

        Args:
            message: Primary error message
            command: Optional command that was executed (list or str)
            returncode: Optional exit code from the process
            stderr: Optional error output from the process
        """
        self.message = message
        self.command = command
        self.returncode = returncode
        self.stderr = stderr
        super().__init__(self.message)

    def __str__(self):
        """Format the error message with available details."""
        parts = [self.message]
        if self.command:
            cmd_str = (
                " ".join(str(c) for c in self.command)
                if isinstance(self.command, (list, tuple))
                else self.command
            )
            parts.append(f"Command: {cmd_str}")
        if self.returncode is not None:
            parts.append(f"Exit code: {self.returncode}")
        if self.stderr:
            stderr = str(self.stderr)
            if len(stderr) > 500:  # Limit stderr length
                stderr = "[truncated] ..." + stderr[-500:]
            parts.append(f"Error output: {stderr}")

        return "\n".join(parts)


async def kill_process(proc) -> None:
    """Kill a child started with asyncio.create_subprocess_exec and reap it"""
    if proc.returncode is None:
        try:
            proc.kill()
        except ProcessLookupError:
            pass
    await proc.wait()


async def safe_subprocess_run(
    cmd,
    operation_name="Remotion command",
    custom_logger: Optional[Any] = None,
    *,
    cwd: Optional[str] = None,
    timeout: Optional[float] = None,
):
    """
    Safely run subprocess with proper error handling

    The child is killed before this coroutine returns on timeout or
    cancellation, so no CLI process outlives its caller.

    Args:
        cmd: Command to run as list of strings
        operation_name: Descriptive name for the operation (for logging)
        custom_logger: Optional logger to use instead of default
        cwd: Working directory for the command
        timeout: Seconds before the process is killed

    Returns:
        subprocess.CompletedProcess result with decoded stdout/stderr

    Raises:
        SubprocessError: If the command fails, times out or cannot be found
    """
    active_logger = custom_logger or logger

    active_logger.debug("Running %s: %s", operation_name, " ".join(str(x) for x in cmd))
    try:
        proc = await asyncio.create_subprocess_exec(
            *cmd,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
            cwd=cwd,
        )
    except OSError as e:
        if isinstance(e, FileNotFoundError):
            error_msg = (
                f"{operation_name} failed: {cmd[0]} not found. "
                "Please ensure Node.js and the Remotion CLI are installed."
            )
        else:
            error_msg = f"{operation_name} failed with OS/Permission error: {e}"
        active_logger.error(error_msg)
        raise SubprocessError(error_msg, cmd) from e

    try:
        stdout, stderr = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except asyncio.TimeoutError as e:
        await kill_process(proc)
        error_msg = f"{operation_name} timed out after {timeout:g}s"
        active_logger.error(error_msg)
        raise SubprocessError(error_msg, cmd) from e
    except asyncio.CancelledError:
        active_logger.warning("%s cancelled; killing process %s", operation_name, proc.pid)
        await kill_process(proc)
        raise

    out = (stdout or b"").decode("utf-8", errors="replace")
    err = (stderr or b"").decode("utf-8", errors="replace")
    if proc.returncode != 0:
        error_msg = f"{operation_name} failed with return code {proc.returncode}"
        active_logger.error(error_msg)
        raise SubprocessError(error_msg, cmd, proc.returncode, err or out)
    return subprocess.CompletedProcess(cmd, proc.returncode, out, err)
