# SPDX-License-Identifier: LGPL-3.0-only
# Copyright (c) 2026 Gravity Guard Contributors

"""
Collaborator interfaces used by the guard to talk to the user.

Rendering lives outside this library. The guard only needs a presenter
that can ask a blocking or non-blocking question, show a one-off notice,
and open the detailed status view.
"""

from abc import ABC, abstractmethod
from typing import Optional

from ..core.types import BlockChoice, GuardCheckResult, WarningChoice


class AlertPresenter(ABC):
    """
    Presentation collaborator for guard alerts.

    The show_* coroutines may stay suspended for as long as the user takes
    to answer; the guard awaits them without blocking the event loop.
    Returning None means the prompt was dismissed.
    """

    @abstractmethod
    async def show_block(self, check: GuardCheckResult) -> Optional[BlockChoice]:
        """Blocking prompt offering PROCEED or WAIT."""
        ...

    @abstractmethod
    async def show_warning(self, check: GuardCheckResult) -> Optional[WarningChoice]:
        """Non-blocking prompt offering CONTINUE or SHOW_DETAILS."""
        ...

    @abstractmethod
    def notify(self, message: str) -> None:
        """Brief non-blocking notice."""
        ...

    def show_details(self, check: GuardCheckResult) -> None:
        """
        Open the full status view. Default implementation does nothing -
        override if the presenter has one.
        """
        pass


class SilentPresenter(AlertPresenter):
    """
    Presenter for headless use: blocks are answered WAIT, warnings CONTINUE.
    """

    async def show_block(self, check: GuardCheckResult) -> Optional[BlockChoice]:
        return BlockChoice.WAIT

    async def show_warning(self, check: GuardCheckResult) -> Optional[WarningChoice]:
        return WarningChoice.CONTINUE

    def notify(self, message: str) -> None:
        pass
