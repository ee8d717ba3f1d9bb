from __future__ import annotations

import time
from dataclasses import dataclass, field
from typing import Callable


@dataclass(slots=True)
class Timer:
    """
    Single-shot countdown. Re-armed by `rebuild()`, never ticks on its own.
    """

    length_s: float
    now: Callable[[], float] = time.monotonic
    start: float = field(init=False)

    def __post_init__(self) -> None:
        self.start = self.now()

    def reset(self) -> None:
        self.start = self.now()

    def rebuild(self, length_s: float) -> None:
        self.length_s = length_s
        self.reset()

    def expired(self) -> bool:
        return self.now() - self.start >= self.length_s
