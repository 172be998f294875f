# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Gravity Guard Contributors

"""
Discovery engine.

Locates the running language server and produces a validated
EndpointInfo: parse the process command line for the extension port and
CSRF token, list the process's listening ports, then probe them until one
answers the API.
"""

import asyncio
import logging
import time
from typing import Awaitable, Callable, List, Optional

from ..core.constants import (
    DEFAULT_DISCOVERY_RETRIES,
    DISCOVERY_RETRY_DELAY,
    LIB_LOGGER_NAME,
)
from ..core.errors import CommandError, mask_token
from ..core.types import EndpointInfo
from .commands import run_command
from .platforms import PlatformSelection, select_platform
from .probe import PortProbe

lib_logger = logging.getLogger(LIB_LOGGER_NAME)

CommandRunner = Callable[[str], Awaitable[str]]


class DiscoveryEngine:
    """
    Orchestrates a PlatformStrategy to find the language server endpoint.

    Every failure mode (process not found, unparseable output, no ports, no
    port validates, command errors) is logged and counted as a failed
    attempt; discover() returns None once the attempts are used up.
    """

    def __init__(
        self,
        selection: Optional[PlatformSelection] = None,
        probe: Optional[PortProbe] = None,
        run: CommandRunner = run_command,
        retry_delay: float = DISCOVERY_RETRY_DELAY,
    ):
        """
        Initialize the discovery engine.

        Args:
            selection: Strategy and process name; detected from the host when None
            probe: Port health probe
            run: Coroutine that executes a shell command and returns stdout
            retry_delay: Seconds to wait between attempts
        """
        self._selection = selection or select_platform()
        self._probe = probe or PortProbe()
        self._run = run
        self._retry_delay = retry_delay

    @property
    def process_name(self) -> str:
        return self._selection.process_name

    async def discover(
        self, max_retries: int = DEFAULT_DISCOVERY_RETRIES
    ) -> Optional[EndpointInfo]:
        """
        Find and validate the language server endpoint.

        Args:
            max_retries: Maximum number of attempts (process-list invocations)

        Returns:
            EndpointInfo from the first fully successful attempt, or None
        """
        lib_logger.info(
            f"Starting process detection for {self.process_name} "
            f"(max retries: {max_retries})"
        )
        started = time.monotonic()

        for attempt in range(max_retries):
            lib_logger.debug(f"Attempt {attempt + 1}/{max_retries}")
            try:
                endpoint = await self._attempt()
            except CommandError as e:
                lib_logger.error(
                    f"Attempt {attempt + 1} failed: {e} "
                    f"(command={e.command!r}, returncode={e.returncode})"
                )
                endpoint = None

            if endpoint:
                lib_logger.debug(
                    f"Detection took {time.monotonic() - started:.2f}s"
                )
                return endpoint

            if attempt < max_retries - 1:
                lib_logger.debug(f"Waiting {self._retry_delay}s before retry...")
                await asyncio.sleep(self._retry_delay)

        lib_logger.error(f"Process detection failed after {max_retries} attempts")
        return None

    async def _attempt(self) -> Optional[EndpointInfo]:
        strategy = self._selection.strategy

        output = await self._run(strategy.list_processes_command(self.process_name))
        if not output.strip():
            lib_logger.warning(f"No running {self.process_name} process found")
            return None

        info = strategy.parse_process_info(output)
        if not info:
            lib_logger.warning("Failed to parse process info from output")
            return None

        lib_logger.info(
            f"Process found: pid={info.pid}, extension_port={info.extension_port}, "
            f"csrf_token={mask_token(info.csrf_token)}"
        )

        ports = await self._listening_ports(info.pid)
        if not ports:
            lib_logger.warning(f"No listening ports found for PID {info.pid}")
            return None
        lib_logger.debug(f"Found {len(ports)} listening port(s): {ports}")

        port = await self._probe.find_working_port(ports, info.csrf_token)
        if port is None:
            lib_logger.warning("No ports responded to health check")
            return None

        lib_logger.info(f"Valid API port found: {port}")
        return EndpointInfo(
            extension_port=info.extension_port,
            connect_port=port,
            csrf_token=info.csrf_token,
        )

    async def _listening_ports(self, pid: int) -> List[int]:
        strategy = self._selection.strategy
        output = await self._run(strategy.list_listening_ports_command(pid))
        return strategy.parse_listening_ports(output, pid)
