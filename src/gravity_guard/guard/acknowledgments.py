# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Gravity Guard Contributors

"""
Acknowledgment store and alert-suppression gate.

An acknowledgment records that a level was already communicated for a
model. Critical and blocked acknowledgments last until a reset is
detected; warning acknowledgments expire after an hour and are re-shown
after ten minutes or a further drop of more than five points.
"""

import logging
import time
from typing import Dict, Optional

from ..core.constants import (
    LIB_LOGGER_NAME,
    PROMPT_CREDITS_ID,
    WARNING_ACK_TTL,
    WARNING_REALERT_DROP,
    WARNING_REALERT_INTERVAL,
)
from ..core.types import Acknowledgment, GuardCheckResult, GuardLevel

lib_logger = logging.getLogger(LIB_LOGGER_NAME)


class AcknowledgmentStore:
    """Per-model acknowledgments, keyed by model id or 'prompt_credits'."""

    def __init__(
        self,
        realert_interval: float = WARNING_REALERT_INTERVAL,
        realert_drop: float = WARNING_REALERT_DROP,
        warning_ttl: float = WARNING_ACK_TTL,
    ):
        self._acks: Dict[str, Acknowledgment] = {}
        self._realert_interval = realert_interval
        self._realert_drop = realert_drop
        self._warning_ttl = warning_ttl

    def get(self, model_id: str) -> Optional[Acknowledgment]:
        return self._acks.get(model_id)

    def __contains__(self, model_id: str) -> bool:
        return model_id in self._acks

    def __len__(self) -> int:
        return len(self._acks)

    def record(self, check: GuardCheckResult, now: Optional[float] = None) -> Acknowledgment:
        """Remember that check.level was communicated for check.model."""
        ack = Acknowledgment(
            level=check.level,
            timestamp=time.time() if now is None else now,
            percentage_at_ack=check.model.remaining_percentage or 0.0,
        )
        self._acks[check.model.model_id] = ack
        lib_logger.debug(
            f"Acknowledged {check.level.value} for {check.model.label} "
            f"at {ack.percentage_at_ack:.1f}%"
        )
        return ack

    def clear_for_reset(self, model_id: str) -> None:
        """
        Drop the model's acknowledgment after a detected reset.

        The prompt credits acknowledgment is dropped as well, since any
        reset may leave it stale.
        """
        self._acks.pop(model_id, None)
        self._acks.pop(PROMPT_CREDITS_ID, None)

    def should_show(self, check: GuardCheckResult, now: Optional[float] = None) -> bool:
        """
        Decide whether an alert for `check` should be presented.

        - No acknowledgment: show.
        - Level worse than acknowledged: always show.
        - Critical or blocked: suppress until a reset clears it.
        - Warning: show again after the re-alert interval or a further drop
          of more than the re-alert threshold.
        """
        ack = self._acks.get(check.model.model_id)
        if ack is None:
            return True

        if check.level.is_worse_than(ack.level):
            return True

        if check.level in (GuardLevel.CRITICAL, GuardLevel.BLOCKED):
            return False

        now = time.time() if now is None else now
        been_long_enough = now - ack.timestamp > self._realert_interval
        current = check.model.remaining_percentage or 0.0
        dropped = ack.percentage_at_ack - current > self._realert_drop
        return been_long_enough or dropped

    def clear_dismissed_warnings(self, now: Optional[float] = None) -> int:
        """
        Drop warning acknowledgments older than the warning TTL.

        Returns:
            Number of acknowledgments removed
        """
        now = time.time() if now is None else now
        expired = [
            model_id
            for model_id, ack in self._acks.items()
            if ack.level == GuardLevel.WARNING and now - ack.timestamp > self._warning_ttl
        ]
        for model_id in expired:
            del self._acks[model_id]
        if expired:
            lib_logger.debug(f"Expired warning acknowledgments: {expired}")
        return len(expired)

    def clear(self) -> None:
        self._acks.clear()
