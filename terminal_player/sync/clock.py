from __future__ import annotations

import time
from typing import Callable


class PausableClock:
    """
    Wall-clock accumulator that stops counting while paused.

    playtime = (now - started_at) - paused_accum - (open pause interval, if any)

    pause()/resume() are idempotent: a second pause() does not restart the
    open interval, and resume() while running is a no-op.
    """

    def __init__(self, now: Callable[[], float] = time.monotonic, paused: bool = False):
        self._now = now
        self.started_at = now()
        self.paused_accum = 0.0
        self.paused_since: float | None = self.started_at if paused else None

    @property
    def is_paused(self) -> bool:
        return self.paused_since is not None

    def pause(self) -> None:
        if self.paused_since is None:
            self.paused_since = self._now()

    def resume(self) -> None:
        if self.paused_since is None:
            return
        self.paused_accum += self._now() - self.paused_since
        self.paused_since = None

    def playtime(self) -> float:
        """Seconds of unpaused time since creation."""
        now = self._now()
        paused = self.paused_accum
        if self.paused_since is not None:
            paused += now - self.paused_since
        return max(now - self.started_at - paused, 0.0)

    def playtime_ms(self) -> int:
        return int(self.playtime() * 1000)
