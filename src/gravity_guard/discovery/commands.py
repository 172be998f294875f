# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Gravity Guard Contributors

"""
Async shell command runner for platform discovery commands.
"""

import asyncio
import logging

from ..core.constants import COMMAND_TIMEOUT, LIB_LOGGER_NAME
from ..core.errors import CommandError

lib_logger = logging.getLogger(LIB_LOGGER_NAME)


async def run_command(command: str, timeout: float = COMMAND_TIMEOUT) -> str:
    """
    Run a shell command and return its stdout.

    A non-zero exit with empty stdout is the grep/findstr "no match" case
    and returns an empty string.

    Args:
        command: Shell command line
        timeout: Seconds to wait before killing the process

    Returns:
        Decoded stdout

    Raises:
        CommandError: If the command cannot be started or times out
    """
    lib_logger.debug(f"Executing: {command}")
    try:
        process = await asyncio.create_subprocess_shell(
            command,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as e:
        raise CommandError(f"Failed to start command: {e}", command) from e

    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout)
    except asyncio.TimeoutError as e:
        process.kill()
        await process.wait()
        raise CommandError(f"Command timed out after {timeout}s", command) from e

    out = stdout.decode("utf-8", errors="replace")
    err = stderr.decode("utf-8", errors="replace").strip()

    if err:
        lib_logger.warning(f"Command stderr: {err}")
    if process.returncode != 0 and not out.strip():
        lib_logger.debug(f"Command exited with {process.returncode} and no output")
        return ""

    lib_logger.debug(f"Raw output ({len(out)} chars)")
    return out
