# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Gravity Guard Contributors

"""
Windows strategy using wmic and netstat.
"""

import logging
from typing import Dict, List, Optional

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


def _split_wmic_records(raw_output: str) -> List[Dict[str, str]]:
    """
    Split `wmic ... /format:list` output into one dict per process.

    A record ends on a blank line or when a key repeats.
    """
    records: List[Dict[str, str]] = []
    current: Dict[str, str] = {}
    for line in raw_output.splitlines():
        line = line.strip()
        if not line:
            if current:
                records.append(current)
                current = {}
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        if key in current:
            records.append(current)
            current = {}
        current[key] = value.strip()
    if current:
        records.append(current)
    return records


class WindowsStrategy(PlatformStrategy):
    """Discovery recipes for Windows."""

    @property
    def name(self) -> str:
        return "windows"

    def list_processes_command(self, process_name: str) -> str:
        return (
            f"wmic process where \"name='{process_name}'\" "
            f"get ProcessId,CommandLine /format:list"
        )

    def parse_process_info(self, raw_output: str) -> Optional[ProcessConnectionParams]:
        for record in _split_wmic_records(raw_output):
            command_line = record.get("CommandLine", "")
            pid_text = record.get("ProcessId", "")
            if not command_line or not pid_text.isdigit():
                continue
            params = extract_connection_params(command_line, int(pid_text))
            if params:
                return params
        return None

    def list_listening_ports_command(self, pid: int) -> str:
        return f"netstat -ano | findstr {pid} | findstr LISTENING"

    def parse_listening_ports(self, raw_output: str, pid: int) -> List[int]:
        # TCP    127.0.0.1:42100    0.0.0.0:0    LISTENING    1234
        ports = []
        for line in raw_output.splitlines():
            parts = line.split()
            if len(parts) < 5 or parts[3].upper() != "LISTENING":
                continue
            if parts[4] != str(pid):
                continue
            address = split_address(parts[1])
            if address is None:
                continue
            host, port = address
            if not is_loopback_reachable(host):
                lib_logger.debug(f"Skipping non-loopback listener {parts[1]}")
                continue
            ports.append(port)
        return dedupe(ports)
