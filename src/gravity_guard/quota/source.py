# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Gravity Guard Contributors

"""
Quota source: polls the language server status RPC.

Failed polls are reported through error callbacks and leave the last good
snapshot in place.
"""

import asyncio
import logging
from typing import Callable, List, Optional

import httpx

from ..core.constants import (
    API_SCHEME,
    LIB_LOGGER_NAME,
    STATUS_REQUEST_METADATA,
    STATUS_RPC_PATH,
    STATUS_TIMEOUT,
)
from ..core.errors import NotConnectedError, QuotaFetchError
from ..core.types import EndpointInfo, QuotaSnapshot
from ..discovery.probe import build_headers, build_url
from .parser import parse_user_status

lib_logger = logging.getLogger(LIB_LOGGER_NAME)

SnapshotCallback = Callable[[QuotaSnapshot], None]
ErrorCallback = Callable[[Exception], None]


class QuotaSource:
    """
    Issues status queries against a discovered endpoint.

    Usage:
        source = QuotaSource()
        source.attach(endpoint)
        source.on_update(handle_snapshot)
        source.start_polling(120)
    """

    def __init__(
        self,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = STATUS_TIMEOUT,
        scheme: str = API_SCHEME,
    ):
        """
        Initialize the quota source.

        Args:
            client: Shared httpx client; one with certificate verification
                    disabled is created (and owned) when None
            timeout: Seconds allowed per status query
            scheme: URL scheme of the language server API
        """
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(verify=False)
        self._timeout = timeout
        self._scheme = scheme

        self._endpoint: Optional[EndpointInfo] = None
        self._last_snapshot: Optional[QuotaSnapshot] = None
        self._update_callbacks: List[SnapshotCallback] = []
        self._error_callbacks: List[ErrorCallback] = []
        self._polling_task: Optional[asyncio.Task] = None

    # =========================================================================
    # SESSION
    # =========================================================================

    def attach(self, endpoint: EndpointInfo) -> None:
        """Use this endpoint for subsequent queries."""
        self._endpoint = endpoint
        lib_logger.info(f"Quota source attached to port {endpoint.connect_port}")

    def detach(self) -> None:
        self.stop_polling()
        self._endpoint = None

    @property
    def endpoint(self) -> Optional[EndpointInfo]:
        return self._endpoint

    def get_last_snapshot(self) -> Optional[QuotaSnapshot]:
        return self._last_snapshot

    def on_update(self, callback: SnapshotCallback) -> None:
        self._update_callbacks.append(callback)

    def on_error(self, callback: ErrorCallback) -> None:
        self._error_callbacks.append(callback)

    async def aclose(self) -> None:
        self.stop_polling()
        if self._owns_client:
            await self._client.aclose()

    # =========================================================================
    # POLLING
    # =========================================================================

    @property
    def is_polling(self) -> bool:
        return self._polling_task is not None and not self._polling_task.done()

    def start_polling(self, interval: float) -> None:
        """
        Fetch immediately, then every `interval` seconds.

        Replaces any running polling loop. Must be called from a running
        event loop.
        """
        self.stop_polling()
        lib_logger.info(f"Starting polling with interval {interval}s")
        self._polling_task = asyncio.get_running_loop().create_task(
            self._poll_loop(interval)
        )

    def stop_polling(self) -> None:
        if self._polling_task is not None:
            self._polling_task.cancel()
            self._polling_task = None
            lib_logger.info("Polling stopped")

    async def _poll_loop(self, interval: float) -> None:
        while True:
            try:
                await self.fetch_quota()
            except Exception as e:
                lib_logger.error(f"Unexpected polling error: {e}")
                self._emit_error(e)
            await asyncio.sleep(interval)

    # =========================================================================
    # FETCHING
    # =========================================================================

    async def fetch_quota(self) -> Optional[QuotaSnapshot]:
        """
        Query the status RPC once.

        Returns:
            The new snapshot, or None if the query failed (error callbacks
            are notified and the previous snapshot is kept)
        """
        try:
            data = await self._request_status()
            snapshot = self._parse(data)
        except (QuotaFetchError, NotConnectedError) as e:
            lib_logger.error(f"Fetch error: {e}")
            self._emit_error(e)
            return None

        self._last_snapshot = snapshot
        lib_logger.debug(
            f"Quota fetched: {len(snapshot.models)} model(s), "
            f"prompt_credits={snapshot.prompt_credits is not None}"
        )
        for callback in list(self._update_callbacks):
            try:
                callback(snapshot)
            except Exception as e:
                lib_logger.error(f"Snapshot callback failed: {e}")
        return snapshot

    async def _request_status(self) -> dict:
        if self._endpoint is None:
            raise NotConnectedError("No endpoint attached; run discovery first")

        url = build_url(self._endpoint.connect_port, STATUS_RPC_PATH, self._scheme)
        lib_logger.debug(f"Fetching quota from {url}")
        try:
            response = await self._client.post(
                url,
                headers=build_headers(self._endpoint.csrf_token),
                json={"metadata": STATUS_REQUEST_METADATA},
                timeout=self._timeout,
            )
        except httpx.TimeoutException as e:
            raise QuotaFetchError("Request timeout") from e
        except httpx.HTTPError as e:
            raise QuotaFetchError(f"Request failed: {e}") from e

        if response.status_code != 200:
            raise QuotaFetchError(
                f"HTTP {response.status_code}", status_code=response.status_code
            )
        try:
            data = response.json()
        except ValueError as e:
            raise QuotaFetchError(
                "Invalid JSON response", status_code=response.status_code
            ) from e
        if not isinstance(data, dict):
            raise QuotaFetchError(
                "Unexpected response shape", status_code=response.status_code
            )
        return data

    @staticmethod
    def _parse(data: dict) -> QuotaSnapshot:
        try:
            return parse_user_status(data)
        except (AttributeError, TypeError, ValueError) as e:
            raise QuotaFetchError(f"Malformed status payload: {e}") from e

    def _emit_error(self, error: Exception) -> None:
        for callback in list(self._error_callbacks):
            try:
                callback(error)
            except Exception as e:
                lib_logger.error(f"Error callback failed: {e}")
