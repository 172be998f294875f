# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Gravity Guard Contributors

"""
Quota level classification.

Thresholds are inclusive on their upper bound:
    p <= 0                       -> blocked
    0 < p <= block_threshold     -> critical
    block < p <= warning         -> warning
    otherwise                    -> normal
"""

from typing import Optional

from ..core.constants import (
    PROMPT_CREDITS_ID,
    PROMPT_CREDITS_LABEL,
    PROMPT_CREDITS_RESET_TEXT,
)
from ..core.types import (
    GuardCheckResult,
    GuardLevel,
    ModelQuotaInfo,
    PromptCreditsInfo,
)


def classify(
    percentage: Optional[float],
    warning_threshold: float,
    block_threshold: float,
) -> GuardLevel:
    """Level implied by a remaining percentage. Unknown is normal."""
    if percentage is None:
        return GuardLevel.NORMAL
    if percentage <= 0:
        return GuardLevel.BLOCKED
    if percentage <= block_threshold:
        return GuardLevel.CRITICAL
    if percentage <= warning_threshold:
        return GuardLevel.WARNING
    return GuardLevel.NORMAL


def prompt_credits_model(credits: PromptCreditsInfo) -> ModelQuotaInfo:
    """Represent the prompt credit pool as a synthetic model."""
    pct = credits.remaining_percentage
    return ModelQuotaInfo(
        label=PROMPT_CREDITS_LABEL,
        model_id=PROMPT_CREDITS_ID,
        remaining_percentage=pct,
        is_exhausted=pct <= 0,
        reset_time=None,
        time_until_reset=None,
        formatted_time_until_reset=PROMPT_CREDITS_RESET_TEXT,
    )


def check_model(
    model: ModelQuotaInfo,
    warning_threshold: float,
    block_threshold: float,
) -> GuardCheckResult:
    """Classify one model and build the message shown to the user."""
    pct = model.remaining_percentage
    level = classify(pct, warning_threshold, block_threshold)
    reset = model.formatted_time_until_reset

    if level == GuardLevel.BLOCKED:
        message = f"{model.label} quota is EXHAUSTED!\nReset in: {reset}"
    elif level == GuardLevel.CRITICAL:
        message = (
            f"CRITICAL: {model.label} is at {pct:.1f}%!\n"
            f"Continuing may trigger a cooldown penalty.\n"
            f"Reset in: {reset}"
        )
    elif level == GuardLevel.WARNING:
        message = f"Warning: {model.label} is at {pct:.1f}%\nReset in: {reset}"
    else:
        message = ""

    return GuardCheckResult(
        should_warn=level == GuardLevel.WARNING,
        should_block=level in (GuardLevel.CRITICAL, GuardLevel.BLOCKED),
        level=level,
        model=model,
        message=message,
    )
