# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Gravity Guard Contributors

"""
Core package for the quota guard.

Provides shared infrastructure used by discovery, the quota source and
the guard:
- types: Shared dataclasses and enums
- errors: All custom exceptions
- config: GravityConfig and the environment-driven ConfigLoader
- constants: Default values and protocol constants
"""

from .types import (
    GuardLevel,
    BlockChoice,
    WarningChoice,
    ProcessConnectionParams,
    EndpointInfo,
    ModelQuotaInfo,
    PromptCreditsInfo,
    QuotaSnapshot,
    GuardState,
    GuardCheckResult,
    Acknowledgment,
)

from .errors import (
    GravityError,
    ConfigurationError,
    CommandError,
    QuotaFetchError,
    NotConnectedError,
    mask_token,
)

from .config import GravityConfig, ConfigLoader

__all__ = [
    # Types
    "GuardLevel",
    "BlockChoice",
    "WarningChoice",
    "ProcessConnectionParams",
    "EndpointInfo",
    "ModelQuotaInfo",
    "PromptCreditsInfo",
    "QuotaSnapshot",
    "GuardState",
    "GuardCheckResult",
    "Acknowledgment",
    # Errors
    "GravityError",
    "ConfigurationError",
    "CommandError",
    "QuotaFetchError",
    "NotConnectedError",
    "mask_token",
    # Config
    "GravityConfig",
    "ConfigLoader",
]
