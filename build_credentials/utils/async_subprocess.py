"""Non-blocking execution of external tools (keytool).

Example:
    >>> from build_credentials.utils.async_subprocess import run_command
    >>> stdout, stderr, code = await run_command("keytool", "-help", check=False)
"""

import asyncio
import subprocess
from pathlib import Path


def _decode(output: bytes | None) -> str:
    return (output or b"").decode("utf-8", errors="replace")


async def run_command(
    *args: str,
    cwd: Path | str | None = None,
    check: bool = True,
    timeout: float | None = None,
) -> tuple[str, str, int]:
    """Run ``args[0]`` with the remaining arguments, never through a shell.

    Passwords are passed as plain arguments, so nothing here may interpolate
    them.

    Args:
        *args: Executable followed by its arguments
        cwd: Working directory, None for the current one
        check: Raise CalledProcessError on a non-zero exit code
        timeout: Seconds to wait before the process is killed; None waits forever

    Returns:
        (stdout, stderr, returncode), decoded as UTF-8 with invalid bytes replaced

    Raises:
        subprocess.CalledProcessError: If check is set and the command failed
        TimeoutError: If the timeout expired
        FileNotFoundError: If the executable does not exist
    """
    process = await asyncio.create_subprocess_exec(
        *args,
        cwd=cwd,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        raw_out, raw_err = await asyncio.wait_for(process.communicate(), timeout=timeout)
    except TimeoutError:
        process.kill()
        await process.wait()
        raise

    stdout, stderr = _decode(raw_out), _decode(raw_err)
    returncode = process.returncode or 0
    if check and returncode != 0:
        raise subprocess.CalledProcessError(returncode, args, stdout, stderr)
    return stdout, stderr, returncode
