# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Gravity Guard Contributors

"""
Base interface for platform strategies.

Each operating system implements the same four operations: build the
process-list command, parse its output into connection parameters, build
the port-list command, and parse its output into listening ports. Parsers
are pure text-in/structure-out functions and fail soft by returning None
or an empty list.
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import Iterable, List, Optional

from ...core.constants import LIB_LOGGER_NAME
from ...core.errors import mask_token
from ...core.types import ProcessConnectionParams

lib_logger = logging.getLogger(LIB_LOGGER_NAME)

UUID_PATTERN = r"[a-f0-9]{8}-[a-f0-9]{4}-[a-f0-9]{4}-[a-f0-9]{4}-[a-f0-9]{12}"

# Tried in order, first match wins
PORT_FLAG_PATTERNS = (
    re.compile(r"--extension_server_port[=\s]+(\d+)"),
    re.compile(r"--grpc_server_port[=\s]+(\d+)"),
)

CSRF_FLAG_PATTERN = re.compile(r"--csrf_token[=\s]+([a-f0-9-]+)", re.IGNORECASE)
API_SERVER_URL_PATTERN = re.compile(
    rf"--api_server_url[=\s]+https?://[^/\s]+/({UUID_PATTERN})", re.IGNORECASE
)
ANY_UUID_PATTERN = re.compile(rf"({UUID_PATTERN})", re.IGNORECASE)

_LOOPBACK_HOSTS = frozenset(
    {"localhost", "::1", "[::1]", "0.0.0.0", "*", "::", "[::]"}
)


def extract_port(command_line: str) -> Optional[int]:
    """Extract the extension port from a command line, or None."""
    for pattern in PORT_FLAG_PATTERNS:
        match = pattern.search(command_line)
        if match:
            port = int(match.group(1))
            if 0 < port < 65536:
                return port
    return None


def extract_csrf_token(command_line: str) -> Optional[str]:
    """
    Extract the CSRF token from a command line, or None.

    Priority: explicit --csrf_token flag, then a UUID path segment of
    --api_server_url, then the first UUID-shaped substring anywhere.
    """
    match = CSRF_FLAG_PATTERN.search(command_line)
    if match and match.group(1).strip("-"):
        return match.group(1)

    match = API_SERVER_URL_PATTERN.search(command_line)
    if match:
        return match.group(1)

    match = ANY_UUID_PATTERN.search(command_line)
    if match:
        # Ambiguous when several UUIDs are present; best effort only
        lib_logger.debug("Using first UUID in command line as CSRF token")
        return match.group(1)

    return None


def extract_connection_params(
    command_line: str, pid: int
) -> Optional[ProcessConnectionParams]:
    """
    Build ProcessConnectionParams from one command line.

    Returns None if either the port or the token is missing.
    """
    port = extract_port(command_line)
    if port is None:
        lib_logger.debug(f"PID {pid}: no extension_server_port in command line")
        return None

    token = extract_csrf_token(command_line)
    if not token:
        lib_logger.warning(f"PID {pid}: could not find CSRF token in command line")
        return None

    lib_logger.debug(
        f"Parsed process: pid={pid}, port={port}, token={mask_token(token)}"
    )
    return ProcessConnectionParams(pid=pid, extension_port=port, csrf_token=token)


def is_loopback_reachable(host: str) -> bool:
    """True if a socket bound to host accepts loopback connections."""
    host = host.strip().lower()
    if host in _LOOPBACK_HOSTS:
        return True
    if host.startswith("[::ffff:"):
        host = host[len("[::ffff:"):].rstrip("]")
    return host.startswith("127.")


def split_address(address: str) -> Optional[tuple]:
    """Split 'host:port' (IPv4, [IPv6] or '*') into (host, port)."""
    host, sep, port = address.rpartition(":")
    if not sep or not port.isdigit():
        return None
    return host, int(port)


def dedupe(ports: Iterable[int]) -> List[int]:
    """Deduplicate while keeping first-seen order."""
    seen = set()
    result = []
    for port in ports:
        if port not in seen:
            seen.add(port)
            result.append(port)
    return result


class PlatformStrategy(ABC):
    """
    Abstract base class for per-OS discovery recipes.

    Callers never branch on the operating system; they pick a strategy
    once via select_platform() and use only these four operations.
    """

    @property
    @abstractmethod
    def name(self) -> str:
        """Name of this platform."""
        ...

    @abstractmethod
    def list_processes_command(self, process_name: str) -> str:
        """Shell command that lists candidate processes by image name."""
        ...

    @abstractmethod
    def parse_process_info(self, raw_output: str) -> Optional[ProcessConnectionParams]:
        """
        Parse process-list output into connection parameters.

        Args:
            raw_output: stdout of list_processes_command()

        Returns:
            Parameters of the first process that yields both a port and a
            token, or None
        """
        ...

    @abstractmethod
    def list_listening_ports_command(self, pid: int) -> str:
        """Shell command that lists the listening sockets of a process."""
        ...

    @abstractmethod
    def parse_listening_ports(self, raw_output: str, pid: int) -> List[int]:
        """
        Parse port-list output into loopback-reachable listening ports.

        Args:
            raw_output: stdout of list_listening_ports_command()
            pid: Process whose sockets are wanted; lines naming another
                 process are skipped

        Returns:
            Deduplicated ports in the order the tool listed them
        """
        ...
