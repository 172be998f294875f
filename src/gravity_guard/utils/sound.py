# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Gravity Guard Contributors

"""
OS-native alert sounds.

Uses sounds already present on the system, so no audio files are
bundled. Playback is fire-and-forget behind a monotonic cooldown gate.
"""

import asyncio
import logging
import platform
import time
from typing import Dict, Optional

from ..core.constants import LIB_LOGGER_NAME, SOUND_COOLDOWN

lib_logger = logging.getLogger(LIB_LOGGER_NAME)

_FREEDESKTOP = "/usr/share/sounds/freedesktop/stereo"


def _linux_command(icon: str, description: str) -> str:
    sound = f"{_FREEDESKTOP}/{icon}.oga"
    return " || ".join(
        [
            f'canberra-gtk-play -i {icon} --description="{description}" 2>/dev/null',
            f"pw-play --volume=0.15 {sound} 2>/dev/null",
            f"paplay {sound} 2>/dev/null",
            f"ffplay -nodisp -autoexit -loglevel quiet -volume 30 {sound} 2>/dev/null",
        ]
    )


SOUND_COMMANDS: Dict[str, Dict[str, str]] = {
    "linux": {
        "warning": _linux_command("dialog-warning", "Gravity Warning"),
        "critical": _linux_command("dialog-error", "Gravity Alert"),
    },
    "darwin": {
        "warning": "afplay /System/Library/Sounds/Funk.aiff",
        "critical": "afplay /System/Library/Sounds/Sosumi.aiff",
    },
    "windows": {
        "warning": 'powershell -c "[System.Media.SystemSounds]::Exclamation.Play()"',
        "critical": 'powershell -c "[System.Media.SystemSounds]::Hand.Play()"',
    },
}


class SoundPlayer:
    """Plays warning/critical sounds at most once per cooldown period."""

    def __init__(
        self,
        system: Optional[str] = None,
        cooldown: float = SOUND_COOLDOWN,
    ):
        self._system = (system or platform.system()).lower()
        self._cooldown = cooldown
        self._last_played: Optional[float] = None
        self._tasks = set()

    def play(self, kind: str) -> bool:
        """
        Start playing a sound without waiting for it.

        Args:
            kind: "warning" or "critical"

        Returns:
            True if playback was started
        """
        now = time.monotonic()
        if self._last_played is not None and now - self._last_played < self._cooldown:
            lib_logger.debug(f"Sound cooldown active, skipping {kind} sound")
            return False

        command = SOUND_COMMANDS.get(self._system, {}).get(kind)
        if not command:
            lib_logger.debug(f"No {kind} sound command for platform: {self._system}")
            return False

        try:
            loop = asyncio.get_running_loop()
        except RuntimeError:
            lib_logger.debug("No running event loop, skipping sound")
            return False

        self._last_played = now
        lib_logger.debug(f"Playing {kind} sound on {self._system}")
        task = loop.create_task(self._run(command))
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return True

    async def _run(self, command: str) -> None:
        try:
            process = await asyncio.create_subprocess_shell(
                command,
                stdout=asyncio.subprocess.DEVNULL,
                stderr=asyncio.subprocess.DEVNULL,
            )
            await process.wait()
        except OSError as e:
            lib_logger.debug(f"Sound playback failed (non-critical): {e}")
