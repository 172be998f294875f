# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Gravity Guard Contributors

"""Quota polling and payload normalization."""

from .parser import (
    format_time_until_reset,
    parse_prompt_credits,
    parse_reset_time,
    parse_user_status,
)
from .source import QuotaSource

__all__ = [
    "QuotaSource",
    "parse_user_status",
    "parse_prompt_credits",
    "parse_reset_time",
    "format_time_until_reset",
]
