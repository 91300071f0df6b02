from __future__ import annotations

import threading
from contextlib import contextmanager
from typing import Iterator, Optional

from .errors import BusyError


class ActionGate:
    """
    At most one AI action in flight.

    A second `hold()` while one is active fails right away with `BusyError`;
    callers are expected to disable the trigger rather than queue.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._current: Optional[str] = None

    @property
    def busy(self) -> bool:
        return self._lock.locked()

    @property
    def current(self) -> Optional[str]:
        return self._current

    @contextmanager
    def hold(self, label: str = "") -> Iterator[None]:
        if not self._lock.acquire(blocking=False):
            raise BusyError(f"{self._current or 'another action'} is still running")
        self._current = label or "action"
        try:
            yield
        finally:
            self._current = None
            self._lock.release()


# Shared by the CLI commands that talk to the AI service.
AI_GATE = ActionGate()
