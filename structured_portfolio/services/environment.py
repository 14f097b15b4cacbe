"""Runtime collaborators: the time source and the external pause gate."""

from __future__ import annotations

import time
from typing import Protocol


class Clock(Protocol):
    def now(self) -> int:
        ...


class SystemClock:
    """Wall-clock seconds since the epoch."""

    def now(self) -> int:
        return int(time.time())


class ManualClock:
    """Clock that only moves when told to; used by tests and simulations."""

    def __init__(self, start: int = 0) -> None:
        self._now = start

    def now(self) -> int:
        return self._now

    def set(self, timestamp: int) -> None:
        if timestamp < self._now:
            raise ValueError("clock cannot move backwards")
        self._now = timestamp

    def advance(self, seconds: int) -> int:
        self.set(self._now + seconds)
        return self._now


class LifecycleGate(Protocol):
    def is_paused(self) -> bool:
        ...


class PauseSwitch:
    """Simple pause flag satisfying ``LifecycleGate``."""

    def __init__(self, paused: bool = False) -> None:
        self._paused = paused

    def pause(self) -> None:
        self._paused = True

    def unpause(self) -> None:
        self._paused = False

    def is_paused(self) -> bool:
        return self._paused


__all__ = [
    "Clock",
    "SystemClock",
    "ManualClock",
    "LifecycleGate",
    "PauseSwitch",
]
