"""Cancelable one-shot timers.

Timed behaviour (the marker highlight) is expressed against the small
:class:`TimerScheduler` protocol so that it can run on the Qt event loop in
the application and on a virtual clock in headless rendering and tests.
"""

from __future__ import annotations

import heapq
import itertools
from typing import Callable, Optional, Protocol


class TimerHandle(Protocol):
    @property
    def active(self) -> bool: ...

    def cancel(self) -> None: ...


class TimerScheduler(Protocol):
    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> TimerHandle: ...


class _ManualHandle:
    __slots__ = ("due_ms", "callback", "_active")

    def __init__(self, due_ms: int, callback: Callable[[], None]) -> None:
        self.due_ms = due_ms
        self.callback = callback
        self._active = True

    @property
    def active(self) -> bool:
        return self._active

    def cancel(self) -> None:
        self._active = False


class ManualScheduler:
    """Virtual clock: callbacks only fire when :meth:`advance` moves time."""

    def __init__(self) -> None:
        self._now_ms = 0
        self._counter = itertools.count()
        self._queue: list[tuple[int, int, _ManualHandle]] = []

    @property
    def now_ms(self) -> int:
        return self._now_ms

    @property
    def pending(self) -> int:
        return sum(1 for _, _, handle in self._queue if handle.active)

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> _ManualHandle:
        handle = _ManualHandle(self._now_ms + max(0, int(delay_ms)), callback)
        heapq.heappush(self._queue, (handle.due_ms, next(self._counter), handle))
        return handle

    def advance(self, delta_ms: int) -> int:
        """Move the clock forward and run due callbacks; return how many ran."""

        target = self._now_ms + max(0, int(delta_ms))
        fired = 0
        while self._queue and self._queue[0][0] <= target:
            due, _, handle = heapq.heappop(self._queue)
            self._now_ms = due
            if not handle.active:
                continue
            handle.cancel()
            handle.callback()
            fired += 1
        self._now_ms = target
        return fired


class _QtHandle:
    def __init__(self, timer) -> None:
        self._timer = timer

    @property
    def active(self) -> bool:
        return self._timer is not None and self._timer.isActive()

    def cancel(self) -> None:
        if self._timer is None:
            return
        self._timer.stop()
        self._timer.deleteLater()
        self._timer = None


class QtTimerScheduler:
    """Schedule callbacks on the Qt event loop of the owning thread."""

    def __init__(self, parent=None) -> None:
        self._parent = parent

    def call_later(self, delay_ms: int, callback: Callable[[], None]) -> _QtHandle:
        from PySide6.QtCore import QTimer

        timer = QTimer(self._parent)
        timer.setSingleShot(True)
        handle = _QtHandle(timer)

        def _fire() -> None:
            handle.cancel()
            callback()

        timer.timeout.connect(_fire)
        timer.start(max(0, int(delay_ms)))
        return handle


__all__ = ["ManualScheduler", "QtTimerScheduler", "TimerHandle", "TimerScheduler"]
