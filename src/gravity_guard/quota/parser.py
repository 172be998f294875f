# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Gravity Guard Contributors

"""
Normalization of GetUserStatus payloads into QuotaSnapshot.

Missing upstream values stay unknown (None) rather than defaulting to a
number, so the guard never sees false reassurance or a false alarm.
"""

import math
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from ..core.types import ModelQuotaInfo, PromptCreditsInfo, QuotaSnapshot

UNKNOWN_RESET_TEXT = "Unknown"
READY_TEXT = "Ready"


def parse_reset_time(value: Any) -> Optional[datetime]:
    """
    Parse an ISO-8601 string or epoch (seconds or milliseconds) into an
    aware datetime. Returns None for missing or unparseable values.
    """
    if value is None or value == "" or isinstance(value, bool):
        return None

    if isinstance(value, (int, float)) or (isinstance(value, str) and _is_number(value)):
        epoch = float(value)
        if epoch > 1e11:  # milliseconds
            epoch /= 1000.0
        try:
            return datetime.fromtimestamp(epoch, tz=timezone.utc)
        except (OverflowError, OSError, ValueError):
            return None

    if isinstance(value, str):
        text = value.strip()
        if text.endswith("Z"):
            text = text[:-1] + "+00:00"
        try:
            parsed = datetime.fromisoformat(text)
        except ValueError:
            return None
        if parsed.tzinfo is None:
            parsed = parsed.replace(tzinfo=timezone.utc)
        return parsed

    return None


def _is_number(text: str) -> bool:
    try:
        float(text)
    except ValueError:
        return False
    return True


def format_time_until_reset(seconds: Optional[float], reset_time: Optional[datetime]) -> str:
    """
    Human-readable time until reset.

    'Ready' once due; otherwise '45m', '2h', or '2h 5m' followed by the
    local reset date and time, e.g. '2h 5m (17/10 14:30)'.
    """
    if seconds is None or reset_time is None:
        return UNKNOWN_RESET_TEXT
    if seconds <= 0:
        return READY_TEXT

    minutes = math.ceil(seconds / 60)
    if minutes < 60:
        duration = f"{minutes}m"
    else:
        hours, rem = divmod(minutes, 60)
        duration = f"{hours}h {rem}m" if rem else f"{hours}h"

    local = reset_time.astimezone()
    return f"{duration} ({local:%d/%m %H:%M})"


def _as_dict(value: Any) -> Dict[str, Any]:
    return value if isinstance(value, dict) else {}


def _as_text(value: Any, default: str) -> str:
    return value if isinstance(value, str) and value else default


def _to_float(value: Any) -> Optional[float]:
    if value is None or isinstance(value, bool):
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    return number if math.isfinite(number) else None


def parse_model(config: Dict[str, Any], now: datetime) -> Optional[ModelQuotaInfo]:
    """
    Build ModelQuotaInfo from one clientModelConfigs entry.

    Entries without quotaInfo are not quota-bearing models and yield None.
    """
    quota = config.get("quotaInfo")
    if not isinstance(quota, dict):
        return None

    fraction = _to_float(quota.get("remainingFraction"))
    if fraction is not None:
        fraction = min(max(fraction, 0.0), 1.0)
    percentage = fraction * 100 if fraction is not None else None

    reset_time = parse_reset_time(quota.get("resetTime"))
    until = (reset_time - now).total_seconds() if reset_time else None

    model_or_alias = _as_dict(config.get("modelOrAlias"))
    return ModelQuotaInfo(
        label=_as_text(config.get("label"), "Unknown"),
        model_id=_as_text(model_or_alias.get("model"), "unknown"),
        remaining_percentage=percentage,
        is_exhausted=fraction == 0,
        reset_time=reset_time,
        time_until_reset=until,
        formatted_time_until_reset=format_time_until_reset(until, reset_time),
        remaining_fraction=fraction,
    )


def parse_prompt_credits(user_status: Dict[str, Any]) -> Optional[PromptCreditsInfo]:
    """Prompt credits, only when a positive monthly allotment is reported."""
    plan_status = _as_dict(user_status.get("planStatus"))
    plan_info = _as_dict(plan_status.get("planInfo"))

    monthly = _to_float(plan_info.get("monthlyPromptCredits"))
    available = _to_float(plan_status.get("availablePromptCredits"))
    if monthly is None or available is None or monthly <= 0:
        return None

    remaining = min(max(available / monthly * 100, 0.0), 100.0)
    return PromptCreditsInfo(
        available=available,
        monthly=monthly,
        remaining_percentage=remaining,
        used_percentage=100.0 - remaining,
    )


def parse_user_status(data: Dict[str, Any], now: Optional[datetime] = None) -> QuotaSnapshot:
    """
    Normalize a GetUserStatus response.

    Args:
        data: Decoded JSON response
        now: Reference time for time-until-reset (defaults to current UTC)

    Returns:
        QuotaSnapshot with one ModelQuotaInfo per quota-bearing model
    """
    now = now or datetime.now(timezone.utc)
    user_status = _as_dict(_as_dict(data).get("userStatus"))

    cascade = _as_dict(user_status.get("cascadeModelConfigData"))
    configs = cascade.get("clientModelConfigs")
    models: List[ModelQuotaInfo] = []
    for config in configs if isinstance(configs, list) else []:
        if not isinstance(config, dict):
            continue
        model = parse_model(config, now)
        if model:
            models.append(model)

    return QuotaSnapshot(
        timestamp=now,
        models=models,
        prompt_credits=parse_prompt_credits(user_status),
    )
