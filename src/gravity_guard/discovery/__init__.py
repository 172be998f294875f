# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Gravity Guard Contributors

"""Process and endpoint discovery."""

from .commands import run_command
from .engine import DiscoveryEngine
from .platforms import (
    PlatformStrategy,
    PlatformSelection,
    MacOSStrategy,
    LinuxStrategy,
    WindowsStrategy,
    select_platform,
)
from .probe import PortProbe

__all__ = [
    "DiscoveryEngine",
    "PortProbe",
    "PlatformStrategy",
    "PlatformSelection",
    "MacOSStrategy",
    "LinuxStrategy",
    "WindowsStrategy",
    "select_platform",
    "run_command",
]
