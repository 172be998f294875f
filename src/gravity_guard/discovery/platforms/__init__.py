# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Gravity Guard Contributors

"""Per-OS process and port discovery strategies."""

import logging
import platform as _platform
from dataclasses import dataclass
from typing import Optional

from ...core.constants import LIB_LOGGER_NAME
from .base import PlatformStrategy, extract_connection_params
from .unix import UnixStrategy, MacOSStrategy, LinuxStrategy
from .windows import WindowsStrategy

lib_logger = logging.getLogger(LIB_LOGGER_NAME)

_ARM_MACHINES = frozenset({"arm64", "aarch64", "armv8", "armv8l"})


@dataclass(frozen=True)
class PlatformSelection:
    """Strategy plus the language server image name to look for."""

    strategy: PlatformStrategy
    process_name: str


def select_platform(
    system: Optional[str] = None,
    machine: Optional[str] = None,
) -> PlatformSelection:
    """
    Pick the strategy and target process name for this host.

    Args:
        system: platform.system() value; detected when None
        machine: platform.machine() value; detected when None

    Returns:
        PlatformSelection for Windows, macOS, or Linux (the default)
    """
    system = (system or _platform.system()).lower()
    machine = (machine or _platform.machine()).lower()
    is_arm = machine in _ARM_MACHINES

    if system.startswith("win"):
        selection = PlatformSelection(WindowsStrategy(), "language_server_windows_x64.exe")
    elif system == "darwin":
        name = "language_server_macos_arm" if is_arm else "language_server_macos"
        selection = PlatformSelection(MacOSStrategy(), name)
    else:
        name = "language_server_linux_arm" if is_arm else "language_server_linux_x64"
        selection = PlatformSelection(LinuxStrategy(), name)

    lib_logger.info(
        f"Platform {system}/{machine}: strategy={selection.strategy.name}, "
        f"target process={selection.process_name}"
    )
    return selection


__all__ = [
    "PlatformStrategy",
    "PlatformSelection",
    "UnixStrategy",
    "MacOSStrategy",
    "LinuxStrategy",
    "WindowsStrategy",
    "extract_connection_params",
    "select_platform",
]
