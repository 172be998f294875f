# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Gravity Guard Contributors

"""
Port health probe.

The port advertised on the command line may belong to another internal
service, so every candidate listening port is checked with an
authenticated capability request before it is used.
"""

import logging
from typing import Iterable, Optional

import httpx

from ..core.constants import (
    API_SCHEME,
    CSRF_HEADER,
    HEALTH_REQUEST_BODY,
    HEALTH_RPC_PATH,
    LIB_LOGGER_NAME,
    LOOPBACK_HOST,
    PROBE_TIMEOUT,
    PROTOCOL_VERSION,
    PROTOCOL_VERSION_HEADER,
)

lib_logger = logging.getLogger(LIB_LOGGER_NAME)


def build_headers(csrf_token: str) -> dict:
    """Headers shared by the health probe and the status query."""
    return {
        "Content-Type": "application/json",
        PROTOCOL_VERSION_HEADER: PROTOCOL_VERSION,
        CSRF_HEADER: csrf_token,
    }


def build_url(port: int, path: str, scheme: str = API_SCHEME) -> str:
    return f"{scheme}://{LOOPBACK_HOST}:{port}{path}"


class PortProbe:
    """Sequential health checker for candidate ports."""

    def __init__(self, timeout: float = PROBE_TIMEOUT, scheme: str = API_SCHEME):
        """
        Args:
            timeout: Seconds allowed per candidate port
            scheme: URL scheme of the language server API
        """
        self._timeout = timeout
        self._scheme = scheme

    async def is_working(
        self, client: httpx.AsyncClient, port: int, csrf_token: str
    ) -> bool:
        """
        True if the port answers the health RPC with HTTP 200 and a JSON body.
        """
        url = build_url(port, HEALTH_RPC_PATH, self._scheme)
        lib_logger.debug(f"Testing {url}")
        try:
            response = await client.post(
                url,
                headers=build_headers(csrf_token),
                json=HEALTH_REQUEST_BODY,
                timeout=self._timeout,
            )
        except httpx.HTTPError as e:
            lib_logger.debug(f"Port {port} error: {type(e).__name__}: {e}")
            return False

        lib_logger.debug(f"Port {port} responded with status {response.status_code}")
        if response.status_code != 200:
            return False
        try:
            response.json()
        except ValueError:
            lib_logger.debug(f"Port {port}: 200 but invalid JSON")
            return False
        return True

    async def find_working_port(
        self, ports: Iterable[int], csrf_token: str
    ) -> Optional[int]:
        """
        Probe ports one at a time in order and return the first working one.

        Remaining ports are not probed once one works.
        """
        async with httpx.AsyncClient(verify=False) as client:
            for port in ports:
                if await self.is_working(client, port, csrf_token):
                    lib_logger.info(f"Port {port} is working")
                    return port
                lib_logger.debug(f"Port {port} did not respond")
        return None
