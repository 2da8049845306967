"""Timed emphasis of a single marker."""

from __future__ import annotations

import logging
from typing import Callable, Optional

from ..config import HIGHLIGHT_DURATION_MS
from ..utils.scheduling import TimerHandle, TimerScheduler

_LOGGER = logging.getLogger(__name__)


class HighlightController:
    """Track at most one highlighted marker and expire it after a fixed window.

    A new :meth:`highlight` call cancels the pending expiry before scheduling
    its own, so only one timer is ever live.
    """

    def __init__(
        self,
        scheduler: TimerScheduler,
        *,
        marker_exists: Callable[[str], bool],
        on_changed: Callable[[Optional[str]], None],
        duration_ms: int = HIGHLIGHT_DURATION_MS,
    ) -> None:
        self._scheduler = scheduler
        self._marker_exists = marker_exists
        self._on_changed = on_changed
        self._duration_ms = int(duration_ms)
        self._marker_id: Optional[str] = None
        self._timer: Optional[TimerHandle] = None

    @property
    def highlighted_id(self) -> Optional[str]:
        return self._marker_id

    @property
    def duration_ms(self) -> int:
        return self._duration_ms

    def is_highlighted(self, marker_id: str) -> bool:
        return self._marker_id is not None and self._marker_id == marker_id

    def highlight(self, marker_id: str) -> bool:
        if not self._marker_exists(marker_id):
            _LOGGER.warning("Marker %s not found, cannot highlight.", marker_id)
            return False
        self._cancel_timer()
        self._marker_id = marker_id
        self._on_changed(marker_id)
        self._timer = self._scheduler.call_later(self._duration_ms, self._expire)
        return True

    def clear(self) -> None:
        self._cancel_timer()
        if self._marker_id is None:
            return
        self._marker_id = None
        self._on_changed(None)

    def _expire(self) -> None:
        self._timer = None
        if self._marker_id is None:
            return
        self._marker_id = None
        self._on_changed(None)

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None


__all__ = ["HighlightController"]
