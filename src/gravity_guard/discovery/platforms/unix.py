# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Gravity Guard Contributors

"""
Unix strategies (macOS and Linux) using ps, lsof, ss and netstat.

Both platforms find the process with `ps aux`; they differ only in how
listening sockets are listed.
"""

import logging
import re
import shlex
from typing import List, Optional

from ...core.constants import LIB_LOGGER_NAME
from ...core.types import ProcessConnectionParams
from .base import (
    PlatformStrategy,
    dedupe,
    extract_connection_params,
    is_loopback_reachable,
    split_address,
)

lib_logger = logging.getLogger(LIB_LOGGER_NAME)

# lsof: COMMAND PID USER FD TYPE DEVICE SIZE/OFF NODE NAME
LSOF_LINE = re.compile(r"^\S+\s+(\d+)\s+.*\s(\S+)\s+\(LISTEN\)\s*$")
# ss: LISTEN 0 4096 127.0.0.1:42100 0.0.0.0:* users:(("language_server",pid=1234,fd=9))
SS_LINE = re.compile(r"^LISTEN\s+\d+\s+\d+\s+(\S+)\s+\S+(.*)$")
SS_PID = re.compile(r"pid=(\d+)")
# netstat: tcp 0 0 127.0.0.1:42100 0.0.0.0:* LISTEN 1234/language_serv
NETSTAT_LINE = re.compile(r"^tcp6?\s+\d+\s+\d+\s+(\S+)\s+\S+\s+LISTEN\s+(\d+|-)", re.IGNORECASE)


class UnixStrategy(PlatformStrategy):
    """Shared ps-based process discovery for macOS and Linux."""

    def list_processes_command(self, process_name: str) -> str:
        return f"ps aux | grep -i {shlex.quote(process_name)} | grep -v grep"

    def parse_process_info(self, raw_output: str) -> Optional[ProcessConnectionParams]:
        for line in raw_output.splitlines():
            # USER PID %CPU %MEM VSZ RSS TTY STAT START TIME COMMAND...
            parts = line.split()
            if len(parts) < 11 or not parts[1].isdigit():
                continue
            params = extract_connection_params(" ".join(parts[10:]), int(parts[1]))
            if params:
                return params
        return None

    def _accept(self, address: str, ports: List[int]) -> None:
        split = split_address(address)
        if split is None:
            return
        host, port = split
        if is_loopback_reachable(host):
            ports.append(port)
        else:
            lib_logger.debug(f"Skipping non-loopback listener {address}")


class MacOSStrategy(UnixStrategy):
    """Discovery recipes for macOS."""

    @property
    def name(self) -> str:
        return "macos"

    def list_listening_ports_command(self, pid: int) -> str:
        return f"lsof -nP -iTCP -sTCP:LISTEN -a -p {pid}"

    def parse_listening_ports(self, raw_output: str, pid: int) -> List[int]:
        ports: List[int] = []
        for line in raw_output.splitlines():
            match = LSOF_LINE.match(line.strip())
            if not match or int(match.group(1)) != pid:
                continue
            self._accept(match.group(2), ports)
        return dedupe(ports)


class LinuxStrategy(UnixStrategy):
    """Discovery recipes for Linux, preferring ss and falling back to netstat."""

    @property
    def name(self) -> str:
        return "linux"

    def list_listening_ports_command(self, pid: int) -> str:
        return (
            f"ss -tlnp 2>/dev/null | grep 'pid={pid},' "
            f"|| netstat -tlnp 2>/dev/null | grep ' {pid}/'"
        )

    def parse_listening_ports(self, raw_output: str, pid: int) -> List[int]:
        ports: List[int] = []
        for line in raw_output.splitlines():
            line = line.strip()

            match = SS_LINE.match(line)
            if match:
                owners = SS_PID.findall(match.group(2))
                if owners and str(pid) not in owners:
                    continue
                self._accept(match.group(1), ports)
                continue

            match = NETSTAT_LINE.match(line)
            if match:
                if match.group(2) != str(pid):
                    continue
                self._accept(match.group(1), ports)
        return dedupe(ports)
