# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Gravity Guard Contributors

"""
Gravity quota guard.

Finds the locally running language server, polls its quota status and
warns before a model's quota runs out.
"""

from .core import (
    GravityConfig,
    ConfigLoader,
    GuardLevel,
    GuardState,
    QuotaSnapshot,
    ModelQuotaInfo,
    PromptCreditsInfo,
    EndpointInfo,
    BlockChoice,
    WarningChoice,
    GravityError,
)
from .discovery import DiscoveryEngine, select_platform
from .guard import AlertPresenter, QuotaGuard
from .monitor import GravityMonitor
from .quota import QuotaSource

__version__ = "0.1.0"

__all__ = [
    "GravityMonitor",
    "GravityConfig",
    "ConfigLoader",
    "DiscoveryEngine",
    "QuotaSource",
    "QuotaGuard",
    "AlertPresenter",
    "GuardLevel",
    "GuardState",
    "QuotaSnapshot",
    "ModelQuotaInfo",
    "PromptCreditsInfo",
    "EndpointInfo",
    "BlockChoice",
    "WarningChoice",
    "GravityError",
    "select_platform",
]
