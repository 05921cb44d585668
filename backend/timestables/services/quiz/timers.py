"""Cancellable timers driving the quiz countdowns and delayed transitions.

Two schedulers share the ``call_later`` interface:

- ``SocketIOScheduler`` sleeps in a Socket.IO background task and runs
  the callback inside an application context.
- ``ManualScheduler`` keeps a virtual clock that tests advance by hand.

``TimerSlots`` keeps at most one live handle per timer kind.
"""

import heapq
import itertools
import time
from typing import Callable, Dict, Optional


class TimerHandle:
    """Cancellation token for one scheduled callback."""

    def __init__(self, kind: Optional[str], due: float):
        self.kind = kind
        self.due = due
        self.cancelled = False

    def cancel(self) -> None:
        self.cancelled = True

    def __repr__(self):
        state = 'cancelled' if self.cancelled else 'active'
        return f"<TimerHandle kind={self.kind} due={self.due:.2f} {state}>"


class SocketIOScheduler:
    def __init__(self, app, socketio):
        self.app = app
        self.socketio = socketio

    def call_later(self, delay: float, callback: Callable[[], None], kind: Optional[str] = None) -> TimerHandle:
        handle = TimerHandle(kind, time.time() + delay)

        def _worker():
            self.socketio.sleep(delay)
            if handle.cancelled:
                return
            with self.app.app_context():
                callback()

        self.socketio.start_background_task(_worker)
        return handle


class ManualScheduler:
    """Deterministic scheduler: nothing fires until ``advance`` is called."""

    def __init__(self):
        self.now = 0.0
        self._queue = []
        self._seq = itertools.count()

    def call_later(self, delay: float, callback: Callable[[], None], kind: Optional[str] = None) -> TimerHandle:
        handle = TimerHandle(kind, self.now + delay)
        heapq.heappush(self._queue, (handle.due, next(self._seq), handle, callback))
        return handle

    def advance(self, seconds: float) -> None:
        target = self.now + seconds
        while self._queue and self._queue[0][0] <= target:
            due, _, handle, callback = heapq.heappop(self._queue)
            self.now = due
            if not handle.cancelled:
                callback()
        self.now = target

    def pending(self, kind: Optional[str] = None) -> int:
        return sum(
            1 for _, _, handle, _ in self._queue
            if not handle.cancelled and (kind is None or handle.kind == kind)
        )


class TimerSlots:
    """One active timer per kind; starting a kind cancels its predecessor."""

    def __init__(self, scheduler):
        self.scheduler = scheduler
        self._handles: Dict[str, TimerHandle] = {}

    def start(self, kind: str, delay: float, callback: Callable[[TimerHandle], None]) -> TimerHandle:
        self.cancel(kind)
        holder = {}

        def _fire():
            callback(holder['handle'])

        handle = self.scheduler.call_later(delay, _fire, kind=kind)
        holder['handle'] = handle
        self._handles[kind] = handle
        return handle

    def cancel(self, kind: str) -> None:
        handle = self._handles.pop(kind, None)
        if handle is not None:
            handle.cancel()

    def cancel_all(self) -> None:
        for kind in list(self._handles):
            self.cancel(kind)

    def is_current(self, handle: TimerHandle) -> bool:
        return not handle.cancelled and self._handles.get(handle.kind) is handle

    def finish(self, handle: TimerHandle) -> None:
        """Forget a handle that has fired."""
        if self._handles.get(handle.kind) is handle:
            del self._handles[handle.kind]

    def active(self, kind: str) -> bool:
        handle = self._handles.get(kind)
        return handle is not None and not handle.cancelled
