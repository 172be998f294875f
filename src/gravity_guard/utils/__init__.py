# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Gravity Guard Contributors

"""Utilities."""

from .sound import SoundPlayer, SOUND_COMMANDS

__all__ = ["SoundPlayer", "SOUND_COMMANDS"]
