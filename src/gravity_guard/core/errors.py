# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Gravity Guard Contributors

"""
Error types for the quota guard.

Discovery and polling failures are reported, retried or delivered to
callbacks; none of these escape the polling loop. Business conditions in
the guard (exhausted quota, disabled guard) are states, not exceptions.
"""

from typing import Optional


class GravityError(Exception):
    """Base class for all quota guard errors."""


class ConfigurationError(GravityError):
    """Raised when a GravityConfig violates its invariants."""


class CommandError(GravityError):
    """
    A platform shell command could not be run to completion.

    Attributes:
        command: The command line that was executed
        returncode: Exit status, or None if the process never finished
        stderr: Captured standard error text
    """

    def __init__(
        self,
        message: str,
        command: str,
        returncode: Optional[int] = None,
        stderr: str = "",
    ):
        super().__init__(message)
        self.command = command
        self.returncode = returncode
        self.stderr = stderr


class QuotaFetchError(GravityError):
    """
    The status query failed: transport error, timeout, bad status or body.

    Attributes:
        status_code: HTTP status if a response was received
    """

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class NotConnectedError(GravityError):
    """Raised when polling is attempted before an endpoint is attached."""


def mask_token(token: Optional[str], visible: int = 8) -> str:
    """
    Mask a CSRF token for logging.

    Args:
        token: The token to mask
        visible: Number of leading characters to keep

    Returns:
        The first `visible` characters followed by '...'
    """
    if not token:
        return "<none>"
    if len(token) <= visible:
        return "..."
    return f"{token[:visible]}..."


__all__ = [
    "GravityError",
    "ConfigurationError",
    "CommandError",
    "QuotaFetchError",
    "NotConnectedError",
    "mask_token",
]
