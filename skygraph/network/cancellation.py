"""Cooperative cancellation for long-running metric computations."""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from skygraph.exceptions import CancellationError

logger = logging.getLogger(__name__)

ProgressCallback = Callable[[str, int, int], None]


class CancellationToken:
    """Thread-safe flag checked between iterations of the expensive passes.

    A caller (usually on another thread) calls ``cancel()``; the running
    computation notices at its next checkpoint and raises
    ``CancellationError``.
    """

    def __init__(self) -> None:
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def cancelled(self) -> bool:
        return self._event.is_set()

    def raise_if_cancelled(self, stage: str) -> None:
        if self._event.is_set():
            logger.info("Computation cancelled during %s", stage)
            raise CancellationError(
                f"Computation cancelled during {stage}",
                stage=stage,
                details="A fresh call may be issued to retry",
            )


def checkpoint(token: Optional[CancellationToken], stage: str) -> None:
    """Raise CancellationError if ``token`` has been cancelled."""
    if token is not None:
        token.raise_if_cancelled(stage)


def report(
    callback: Optional[ProgressCallback], operation: str, current: int, total: int
) -> None:
    if callback:
        callback(operation, current, total)
