# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Gravity Guard Contributors

"""
Configuration for the quota guard.

GravityConfig is read-only to the guard and the monitor; changes are made
by building a new config (with_updates) and handing it to
GravityMonitor.update_config().

ConfigLoader builds a GravityConfig from:
1. System defaults (from core/constants.py)
2. Environment variables (ALWAYS override defaults)
"""

import logging
import os
from dataclasses import dataclass, field, replace
from typing import Any, Dict, List, Mapping, Optional

from .constants import (
    DEFAULT_ENABLED,
    DEFAULT_WARNING_THRESHOLD,
    DEFAULT_BLOCK_THRESHOLD,
    DEFAULT_GUARD_ENABLED,
    DEFAULT_SOUND_ENABLED,
    DEFAULT_POLLING_INTERVAL,
    ENV_PREFIX,
    LIB_LOGGER_NAME,
)
from .errors import ConfigurationError

lib_logger = logging.getLogger(LIB_LOGGER_NAME)

_TRUE_VALUES = frozenset({"1", "true", "yes", "on"})
_FALSE_VALUES = frozenset({"0", "false", "no", "off"})


@dataclass(frozen=True)
class GravityConfig:
    """
    User-facing settings consumed by the monitor and the guard.

    Thresholds are percentages of remaining quota. polling_interval is in
    seconds.
    """

    enabled: bool = DEFAULT_ENABLED
    warning_threshold: float = DEFAULT_WARNING_THRESHOLD
    block_threshold: float = DEFAULT_BLOCK_THRESHOLD
    guard_enabled: bool = DEFAULT_GUARD_ENABLED
    sound_enabled: bool = DEFAULT_SOUND_ENABLED
    polling_interval: float = DEFAULT_POLLING_INTERVAL
    pinned_models: List[str] = field(default_factory=list)

    def __post_init__(self):
        for name in ("warning_threshold", "block_threshold"):
            value = getattr(self, name)
            if not 0 <= value <= 100:
                raise ConfigurationError(f"{name} must be within [0, 100], got {value}")
        if self.block_threshold > self.warning_threshold:
            raise ConfigurationError(
                f"block_threshold ({self.block_threshold}) must not exceed "
                f"warning_threshold ({self.warning_threshold})"
            )
        if self.polling_interval <= 0:
            raise ConfigurationError(
                f"polling_interval must be positive, got {self.polling_interval}"
            )

    def with_updates(self, **changes: Any) -> "GravityConfig":
        """Return a copy with the given fields replaced (validated again)."""
        return replace(self, **changes)

    def toggle_pinned_model(self, model_id: str) -> "GravityConfig":
        """Return a copy with model_id added to or removed from pinned_models."""
        if model_id in self.pinned_models:
            pinned = [m for m in self.pinned_models if m != model_id]
        else:
            pinned = [*self.pinned_models, model_id]
        return replace(self, pinned_models=pinned)

    def is_pinned(self, model_id: str) -> bool:
        return model_id in self.pinned_models


class ConfigLoader:
    """
    Environment-driven configuration loader.

    Recognised variables (prefix GRAVITY_):
        ENABLED, WARNING_THRESHOLD, BLOCK_THRESHOLD, GUARD_ENABLED,
        SOUND_ENABLED, POLLING_INTERVAL, PINNED_MODELS (comma-separated)

    Usage:
        loader = ConfigLoader()
        config = loader.load()
    """

    def __init__(self, environ: Optional[Mapping[str, str]] = None):
        """
        Initialize the ConfigLoader.

        Args:
            environ: Mapping to read variables from. Defaults to os.environ,
                     read at load time.
        """
        self._environ = environ
        self._cache: Optional[GravityConfig] = None

    def load(self, force_reload: bool = False) -> GravityConfig:
        """
        Load the configuration, using the cached copy unless force_reload.

        Invalid values are logged and ignored. A block threshold above the
        warning threshold is clamped down to the warning threshold.
        """
        if self._cache is not None and not force_reload:
            return self._cache

        env = self._environ if self._environ is not None else os.environ
        values: Dict[str, Any] = {}

        for key in ("enabled", "guard_enabled", "sound_enabled"):
            parsed = self._parse_bool(env, key)
            if parsed is not None:
                values[key] = parsed

        for key in ("warning_threshold", "block_threshold"):
            parsed = self._parse_float(env, key)
            if parsed is None:
                continue
            if not 0 <= parsed <= 100:
                lib_logger.warning(
                    f"Ignoring {ENV_PREFIX}{key.upper()}={parsed}: must be within [0, 100]"
                )
                continue
            values[key] = parsed

        interval = self._parse_float(env, "polling_interval")
        if interval is not None:
            if interval > 0:
                values["polling_interval"] = interval
            else:
                lib_logger.warning(
                    f"Ignoring {ENV_PREFIX}POLLING_INTERVAL={interval}: must be positive"
                )

        pinned = env.get(f"{ENV_PREFIX}PINNED_MODELS")
        if pinned is not None:
            values["pinned_models"] = [m.strip() for m in pinned.split(",") if m.strip()]

        warning = values.get("warning_threshold", DEFAULT_WARNING_THRESHOLD)
        block = values.get("block_threshold", DEFAULT_BLOCK_THRESHOLD)
        if block > warning:
            lib_logger.warning(
                f"Block threshold {block}% exceeds warning threshold {warning}%, "
                f"clamping block threshold to {warning}%"
            )
            values["block_threshold"] = warning

        self._cache = GravityConfig(**values)
        lib_logger.debug(f"Loaded config: {self._cache}")
        return self._cache

    def clear_cache(self) -> None:
        self._cache = None

    # =========================================================================
    # INTERNAL METHODS
    # =========================================================================

    @staticmethod
    def _parse_bool(env: Mapping[str, str], key: str) -> Optional[bool]:
        name = f"{ENV_PREFIX}{key.upper()}"
        raw = env.get(name)
        if raw is None:
            return None
        value = raw.strip().lower()
        if value in _TRUE_VALUES:
            return True
        if value in _FALSE_VALUES:
            return False
        lib_logger.warning(f"Ignoring {name}={raw!r}: not a boolean")
        return None

    @staticmethod
    def _parse_float(env: Mapping[str, str], key: str) -> Optional[float]:
        name = f"{ENV_PREFIX}{key.upper()}"
        raw = env.get(name)
        if raw is None:
            return None
        try:
            return float(raw)
        except ValueError:
            lib_logger.warning(f"Ignoring {name}={raw!r}: not a number")
            return None
