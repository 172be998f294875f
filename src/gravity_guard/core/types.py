# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Gravity Guard Contributors

"""
Shared type definitions for the quota guard.

Discovery produces ProcessConnectionParams and EndpointInfo, the quota
source produces QuotaSnapshot, and the guard derives GuardState from the
latest snapshot.
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Dict, List, Optional


# =============================================================================
# ENUMS
# =============================================================================


class GuardLevel(str, Enum):
    """Severity of the lowest quota, ordered normal < warning < critical < blocked."""

    NORMAL = "normal"
    WARNING = "warning"
    CRITICAL = "critical"
    BLOCKED = "blocked"

    @property
    def severity(self) -> int:
        return _LEVEL_SEVERITY[self]

    def is_worse_than(self, other: "GuardLevel") -> bool:
        return self.severity > other.severity


_LEVEL_SEVERITY: Dict[GuardLevel, int] = {
    GuardLevel.NORMAL: 0,
    GuardLevel.WARNING: 1,
    GuardLevel.CRITICAL: 2,
    GuardLevel.BLOCKED: 3,
}


class BlockChoice(str, Enum):
    """Answer to a blocking prompt."""

    PROCEED = "proceed"
    WAIT = "wait"


class WarningChoice(str, Enum):
    """Answer to a non-blocking warning prompt."""

    CONTINUE = "continue"
    SHOW_DETAILS = "show_details"


# =============================================================================
# DISCOVERY TYPES
# =============================================================================


@dataclass(frozen=True)
class ProcessConnectionParams:
    """Connection parameters parsed from one process's command line."""

    pid: int
    extension_port: int
    csrf_token: str


@dataclass(frozen=True)
class EndpointInfo:
    """
    Validated discovery result.

    connect_port is the listening port that answered the health probe; it
    is not necessarily the extension port advertised on the command line.
    """

    extension_port: int
    connect_port: int
    csrf_token: str


# =============================================================================
# QUOTA TYPES
# =============================================================================


@dataclass(frozen=True)
class ModelQuotaInfo:
    """
    Quota for a single model, re-created on every poll.

    remaining_percentage is None when the upstream service did not report
    a fraction; None means "unknown", never healthy or exhausted.
    time_until_reset is in seconds and negative once the reset is due.
    """

    label: str
    model_id: str
    remaining_percentage: Optional[float]
    is_exhausted: bool
    reset_time: Optional[datetime]
    time_until_reset: Optional[float]
    formatted_time_until_reset: str
    remaining_fraction: Optional[float] = None


@dataclass(frozen=True)
class PromptCreditsInfo:
    """Shared prompt credit pool, evaluated by the guard as a synthetic model."""

    available: float
    monthly: float
    remaining_percentage: float
    used_percentage: float


@dataclass(frozen=True)
class QuotaSnapshot:
    """Result of one successful poll."""

    timestamp: datetime
    models: List[ModelQuotaInfo] = field(default_factory=list)
    prompt_credits: Optional[PromptCreditsInfo] = None


# =============================================================================
# GUARD TYPES
# =============================================================================


@dataclass
class GuardState:
    """Guard view of the latest snapshot. Recomputed, never patched."""

    level: GuardLevel = GuardLevel.NORMAL
    models_at_risk: List[ModelQuotaInfo] = field(default_factory=list)
    lowest_quota: float = 100.0
    lowest_quota_model: Optional[ModelQuotaInfo] = None
    guard_active: bool = True


@dataclass(frozen=True)
class GuardCheckResult:
    """Classification of the single worst model for an alert decision."""

    should_warn: bool
    should_block: bool
    level: GuardLevel
    model: ModelQuotaInfo
    message: str


@dataclass
class Acknowledgment:
    """Record that a level has already been communicated for a model."""

    level: GuardLevel
    timestamp: float  # time.time() when acknowledged
    percentage_at_ack: float
