# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Gravity Guard Contributors

"""Quota guard: level classification, alert suppression and the decision gate."""

from .acknowledgments import AcknowledgmentStore
from .levels import check_model, classify, prompt_credits_model
from .presenter import AlertPresenter, SilentPresenter
from .quota_guard import QuotaGuard

__all__ = [
    "QuotaGuard",
    "AcknowledgmentStore",
    "AlertPresenter",
    "SilentPresenter",
    "classify",
    "check_model",
    "prompt_credits_model",
]
