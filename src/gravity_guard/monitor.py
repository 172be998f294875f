# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Gravity Guard Contributors

"""
Gravity monitor: the owner object wiring discovery, polling and the guard.

=============================================================================
USAGE
=============================================================================

    monitor = GravityMonitor(presenter=my_presenter)
    monitor.on_snapshot(lambda snapshot, state: render(snapshot, state))
    monitor.on_error(lambda err: render_error(err))

    if await monitor.connect():
        ...
        if await monitor.check_and_warn():
            run_model_action()

    await monitor.aclose()

=============================================================================
OWNERSHIP
=============================================================================

The monitor is the single owner of the guard state. Snapshots are applied
to the guard from the polling loop only, and reconnect() supersedes any
discovery still in flight so a stale endpoint is never attached.
"""

import asyncio
import logging
from typing import Callable, List, Optional, Tuple

from .core.config import ConfigLoader, GravityConfig
from .core.constants import DEFAULT_DISCOVERY_RETRIES, LIB_LOGGER_NAME
from .core.errors import mask_token
from .core.types import EndpointInfo, GuardState, QuotaSnapshot
from .discovery.engine import DiscoveryEngine
from .guard.presenter import AlertPresenter
from .guard.quota_guard import AlertSound, QuotaGuard
from .quota.source import QuotaSource
from .utils.sound import SoundPlayer

lib_logger = logging.getLogger(LIB_LOGGER_NAME)

StateCallback = Callable[[QuotaSnapshot, GuardState], None]
ErrorCallback = Callable[[Exception], None]


class GravityMonitor:
    """Explicit owner of the discovery -> polling -> guard pipeline."""

    def __init__(
        self,
        config: Optional[GravityConfig] = None,
        presenter: Optional[AlertPresenter] = None,
        discovery: Optional[DiscoveryEngine] = None,
        source: Optional[QuotaSource] = None,
        sound: Optional[AlertSound] = None,
    ):
        """
        Initialize the monitor.

        Args:
            config: Settings; loaded from the environment when None
            presenter: Collaborator that shows guard prompts
            discovery: Discovery engine (detected from the host when None)
            source: Quota source
            sound: Alert sound player (OS-native sounds when None)
        """
        self._config = config or ConfigLoader().load()
        self._discovery = discovery or DiscoveryEngine()
        self._source = source or QuotaSource()
        self._guard = QuotaGuard(
            self._config,
            presenter=presenter,
            sound=sound if sound is not None else SoundPlayer(),
        )

        self._snapshot_callbacks: List[StateCallback] = []
        self._error_callbacks: List[ErrorCallback] = []
        self._discovery_task: Optional[asyncio.Task] = None
        self._generation = 0

        self._source.on_update(self._handle_snapshot)
        self._source.on_error(self._handle_error)

    async def __aenter__(self) -> "GravityMonitor":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        await self.aclose()

    # =========================================================================
    # PROPERTIES
    # =========================================================================

    @property
    def config(self) -> GravityConfig:
        return self._config

    @property
    def guard(self) -> QuotaGuard:
        return self._guard

    @property
    def endpoint(self) -> Optional[EndpointInfo]:
        return self._source.endpoint

    @property
    def is_connected(self) -> bool:
        return self._source.endpoint is not None

    @property
    def is_polling(self) -> bool:
        return self._source.is_polling

    # =========================================================================
    # DISCOVERY / CONNECTION
    # =========================================================================

    async def discover(
        self, max_retries: int = DEFAULT_DISCOVERY_RETRIES
    ) -> Optional[EndpointInfo]:
        """
        Run discovery, superseding any discovery already in flight.

        Returns:
            The endpoint, or None if discovery failed or was superseded
        """
        generation, endpoint = await self._run_discovery(max_retries)
        if generation != self._generation:
            return None
        return endpoint

    async def _run_discovery(
        self, max_retries: int
    ) -> Tuple[int, Optional[EndpointInfo]]:
        """Returns the generation this run belongs to and its result."""
        self._cancel_discovery()
        self._generation += 1
        generation = self._generation

        task = asyncio.get_running_loop().create_task(
            self._discovery.discover(max_retries)
        )
        self._discovery_task = task
        try:
            endpoint = await task
        except asyncio.CancelledError:
            if generation != self._generation:
                lib_logger.debug(f"Discovery #{generation} superseded")
                return generation, None
            raise
        finally:
            if self._discovery_task is task:
                self._discovery_task = None

        if generation != self._generation:
            lib_logger.debug(f"Ignoring stale result of discovery #{generation}")
            return generation, None
        return generation, endpoint

    async def connect(self, max_retries: int = DEFAULT_DISCOVERY_RETRIES) -> bool:
        """
        Discover the endpoint, attach it and start polling if enabled.

        Returns:
            True when connected, False when reported as "not connected" or
            superseded by a newer connect
        """
        generation, endpoint = await self._run_discovery(max_retries)
        if generation != self._generation:
            lib_logger.debug(f"Connect #{generation} superseded by a newer connect")
            return False
        if endpoint is None:
            lib_logger.error("Language server not found; not connected")
            return False

        lib_logger.info(
            f"Connected: extension_port={endpoint.extension_port}, "
            f"connect_port={endpoint.connect_port}, "
            f"csrf_token={mask_token(endpoint.csrf_token)}"
        )
        self._source.attach(endpoint)
        if self._config.enabled:
            self.start_polling()
        return True

    async def reconnect(self, max_retries: int = DEFAULT_DISCOVERY_RETRIES) -> bool:
        """Drop the current session and connect again."""
        lib_logger.info("Reconnect triggered")
        self._source.detach()
        return await self.connect(max_retries)

    def _cancel_discovery(self) -> None:
        if self._discovery_task is not None and not self._discovery_task.done():
            self._discovery_task.cancel()

    # =========================================================================
    # POLLING
    # =========================================================================

    def start_polling(self, interval: Optional[float] = None) -> None:
        self._source.start_polling(interval or self._config.polling_interval)

    def stop_polling(self) -> None:
        self._source.stop_polling()

    async def refresh(self) -> Optional[QuotaSnapshot]:
        """Poll once now."""
        lib_logger.info("Manual refresh triggered")
        return await self._source.fetch_quota()

    def on_snapshot(self, callback: StateCallback) -> None:
        self._snapshot_callbacks.append(callback)

    def on_error(self, callback: ErrorCallback) -> None:
        self._error_callbacks.append(callback)

    def _handle_snapshot(self, snapshot: QuotaSnapshot) -> None:
        state = self._guard.update_snapshot(snapshot)
        for callback in list(self._snapshot_callbacks):
            try:
                callback(snapshot, state)
            except Exception as e:
                lib_logger.error(f"Snapshot callback failed: {e}")
        self._guard.clear_dismissed_warnings()

    def _handle_error(self, error: Exception) -> None:
        for callback in list(self._error_callbacks):
            try:
                callback(error)
            except Exception as e:
                lib_logger.error(f"Error callback failed: {e}")

    # =========================================================================
    # GUARD
    # =========================================================================

    async def check_and_warn(self) -> bool:
        return await self._guard.check_and_warn()

    def toggle_guard(self) -> bool:
        active = self._guard.toggle_guard()
        self._config = self._config.with_updates(guard_enabled=active)
        return active

    def get_state(self) -> GuardState:
        return self._guard.get_state()

    def get_last_snapshot(self) -> Optional[QuotaSnapshot]:
        return self._source.get_last_snapshot()

    def get_summary_message(self) -> str:
        return self._guard.get_summary_message()

    def update_config(self, config: GravityConfig) -> GuardState:
        """
        Apply new settings: re-derive the guard state and start, restart or
        stop polling as needed.
        """
        previous = self._config
        self._config = config
        state = self._guard.update_config(config)

        if not config.enabled:
            self.stop_polling()
        elif self.is_connected and (
            not self.is_polling or config.polling_interval != previous.polling_interval
        ):
            self.start_polling()
        return state

    async def aclose(self) -> None:
        self._generation += 1
        self._cancel_discovery()
        await self._source.aclose()
