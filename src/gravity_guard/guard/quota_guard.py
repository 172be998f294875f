# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Gravity Guard Contributors

"""
Quota guard.

Stateful decision engine that classifies quota levels, detects quota
resets, and decides when to alert vs. suppress. The guard state is always
recomputed from the latest snapshot; acknowledgments and last-observed
percentages are the only memory carried between snapshots.
"""

import logging
import time
from typing import Dict, List, Optional, Protocol

from ..core.config import GravityConfig
from ..core.constants import (
    BLOCK_PROMPT_COOLDOWN,
    LIB_LOGGER_NAME,
    RESET_JUMP_THRESHOLD,
)
from ..core.types import (
    BlockChoice,
    GuardCheckResult,
    GuardLevel,
    GuardState,
    ModelQuotaInfo,
    QuotaSnapshot,
    WarningChoice,
)
from .acknowledgments import AcknowledgmentStore
from .levels import check_model, classify, prompt_credits_model
from .presenter import AlertPresenter, SilentPresenter

lib_logger = logging.getLogger(LIB_LOGGER_NAME)

_LEVEL_MARKERS = {
    GuardLevel.BLOCKED: "⛔",
    GuardLevel.CRITICAL: "\U0001f6a8",
    GuardLevel.WARNING: "⚠️",
    GuardLevel.NORMAL: "✅",
}


class AlertSound(Protocol):
    def play(self, kind: str) -> bool: ...


class QuotaGuard:
    """
    Warn/block decision engine.

    Usage:
        guard = QuotaGuard(config, presenter)
        state = guard.update_snapshot(snapshot)
        allowed = await guard.check_and_warn()

    Must be driven from a single logical owner (the polling pipeline);
    it is not safe to mutate from two call sites concurrently.
    """

    def __init__(
        self,
        config: GravityConfig,
        presenter: Optional[AlertPresenter] = None,
        sound: Optional[AlertSound] = None,
        acknowledgments: Optional[AcknowledgmentStore] = None,
        block_cooldown: float = BLOCK_PROMPT_COOLDOWN,
    ):
        """
        Initialize the guard.

        Args:
            config: Thresholds and switches
            presenter: Collaborator that shows prompts; a SilentPresenter
                       is used when None
            sound: Optional alert sound player
            acknowledgments: Acknowledgment store (a fresh one when None)
            block_cooldown: Seconds during which a second blocking prompt
                            is replaced by a notice
        """
        self._config = config
        self._presenter = presenter or SilentPresenter()
        self._sound = sound
        self._acks = acknowledgments or AcknowledgmentStore()
        self._block_cooldown = block_cooldown

        self._guard_active = config.guard_enabled
        self._last_snapshot: Optional[QuotaSnapshot] = None
        self._last_seen: Dict[str, float] = {}
        self._last_block_shown: Optional[float] = None
        self._state = GuardState(guard_active=self._guard_active)

    # =========================================================================
    # STATE
    # =========================================================================

    @property
    def config(self) -> GravityConfig:
        return self._config

    @property
    def acknowledgments(self) -> AcknowledgmentStore:
        return self._acks

    def update_config(self, config: GravityConfig) -> GuardState:
        """Apply new thresholds and re-derive the state from the last snapshot."""
        self._config = config
        self._guard_active = config.guard_enabled
        if self._last_snapshot is not None:
            self._state = self._analyze(self._last_snapshot)
        else:
            self._state = GuardState(guard_active=self._guard_active)
        lib_logger.debug(f"Config updated: {config}")
        return self._state

    def update_snapshot(self, snapshot: QuotaSnapshot) -> GuardState:
        """
        Consume a new snapshot: detect resets, then recompute the state.
        """
        self._detect_resets(snapshot)
        self._last_snapshot = snapshot
        self._state = self._analyze(snapshot)

        lib_logger.debug(
            f"Guard state updated: level={self._state.level.value}, "
            f"lowest={self._state.lowest_quota:.1f}%, "
            f"at_risk={[m.label for m in self._state.models_at_risk]}"
        )
        return self._state

    def get_state(self) -> GuardState:
        return self._state

    def get_last_snapshot(self) -> Optional[QuotaSnapshot]:
        return self._last_snapshot

    def is_guard_active(self) -> bool:
        return self._guard_active

    def toggle_guard(self) -> bool:
        """Flip protection on/off. Returns the new state."""
        self._guard_active = not self._guard_active
        self._state.guard_active = self._guard_active
        lib_logger.info(f"Guard {'enabled' if self._guard_active else 'disabled'}")
        return self._guard_active

    def clear_dismissed_warnings(self) -> int:
        return self._acks.clear_dismissed_warnings()

    # =========================================================================
    # DECISION GATE
    # =========================================================================

    async def check_and_warn(self) -> bool:
        """
        Decide whether a model action may proceed, prompting if needed.

        Returns:
            True to allow the action, False to hold it
        """
        if not self._guard_active:
            return True

        at_risk = self.models_requiring_attention()
        if not at_risk:
            return True

        worst = min(at_risk, key=lambda m: m.remaining_percentage)
        check = check_model(
            worst, self._config.warning_threshold, self._config.block_threshold
        )

        if not self.should_show_alert(check):
            lib_logger.debug(f"Alert for {worst.label} suppressed by acknowledgment")
            return True

        if check.should_block:
            return await self._show_block(check)
        if check.should_warn:
            return await self._show_warning(check)
        return True

    def should_show_alert(self, check: GuardCheckResult) -> bool:
        return self._acks.should_show(check)

    def models_requiring_attention(self) -> List[ModelQuotaInfo]:
        """Models (and prompt credits) at or below the warning threshold."""
        if self._last_snapshot is None:
            return []
        threshold = self._config.warning_threshold
        return [
            model
            for model in self._evaluated_models(self._last_snapshot)
            if model.remaining_percentage is not None
            and model.remaining_percentage <= threshold
        ]

    async def _show_block(self, check: GuardCheckResult) -> bool:
        now = time.monotonic()
        if (
            self._last_block_shown is not None
            and now - self._last_block_shown < self._block_cooldown
        ):
            self._presenter.notify(
                f"Gravity: {check.model.label} at "
                f"{check.model.remaining_percentage:.1f}%"
            )
            return False

        # Claimed before awaiting so a concurrent check sees the cooldown
        self._last_block_shown = now
        self._play_sound("critical")

        choice = await self._presenter.show_block(check)
        self._acks.record(check)

        if choice == BlockChoice.PROCEED:
            lib_logger.warning(f"User forced through block for {check.model.label}")
            return True

        lib_logger.info(f"User blocked action for {check.model.label}")
        return False

    async def _show_warning(self, check: GuardCheckResult) -> bool:
        self._play_sound("warning")

        choice = await self._presenter.show_warning(check)
        if choice == WarningChoice.SHOW_DETAILS:
            self._presenter.show_details(check)
            return False

        self._acks.record(check)
        return True

    def _play_sound(self, kind: str) -> None:
        if self._config.sound_enabled and self._sound is not None:
            self._sound.play(kind)

    # =========================================================================
    # ANALYSIS
    # =========================================================================

    def _evaluated_models(self, snapshot: QuotaSnapshot) -> List[ModelQuotaInfo]:
        models = list(snapshot.models)
        if snapshot.prompt_credits is not None:
            models.append(prompt_credits_model(snapshot.prompt_credits))
        return models

    def _detect_resets(self, snapshot: QuotaSnapshot) -> None:
        for model in self._evaluated_models(snapshot):
            current = model.remaining_percentage
            if current is None:
                continue
            last = self._last_seen.get(model.model_id)
            if last is not None and current >= last + RESET_JUMP_THRESHOLD:
                lib_logger.info(
                    f"Quota reset detected for {model.label} "
                    f"({last:.1f}% -> {current:.1f}%)"
                )
                self._acks.clear_for_reset(model.model_id)
            self._last_seen[model.model_id] = current

    def _analyze(self, snapshot: QuotaSnapshot) -> GuardState:
        threshold = self._config.warning_threshold
        at_risk: List[ModelQuotaInfo] = []
        lowest = 100.0
        lowest_model: Optional[ModelQuotaInfo] = None

        for model in self._evaluated_models(snapshot):
            pct = model.remaining_percentage
            if pct is None:
                continue
            if lowest_model is None or pct < lowest:
                lowest = pct
                lowest_model = model
            if pct <= threshold:
                at_risk.append(model)

        level = (
            classify(lowest, threshold, self._config.block_threshold)
            if lowest_model is not None
            else GuardLevel.NORMAL
        )
        return GuardState(
            level=level,
            models_at_risk=at_risk,
            lowest_quota=lowest,
            lowest_quota_model=lowest_model,
            guard_active=self._guard_active,
        )

    # =========================================================================
    # SUMMARY
    # =========================================================================

    def get_summary_message(self) -> str:
        """Multi-line status summary for a tooltip or status view."""
        snapshot = self._last_snapshot
        if snapshot is None or not snapshot.models:
            return "No quota data available"

        lines = [
            "\U0001f6e1️ Protection: Active"
            if self._guard_active
            else "⚠️ Protection: Disabled",
            "",
            "Model Quotas:",
        ]
        for model in snapshot.models:
            pct = model.remaining_percentage
            if pct is None:
                lines.append(f"? {model.label}: unknown")
                continue
            level = classify(
                pct, self._config.warning_threshold, self._config.block_threshold
            )
            lines.append(f"{_LEVEL_MARKERS[level]} {model.label}: {pct:.1f}%")

        if snapshot.prompt_credits is not None:
            credits = snapshot.prompt_credits
            lines.append(
                f"Prompt Credits: {credits.available:,.0f} / {credits.monthly:,.0f} "
                f"({credits.remaining_percentage:.1f}%)"
            )

        if self._state.lowest_quota_model is not None:
            lines.append("")
            lines.append(
                f"Reset: {self._state.lowest_quota_model.formatted_time_until_reset}"
            )
        return "\n".join(lines)
