from __future__ import annotations

from enum import Enum

import regex

_GRAPHEME_RE = regex.compile(r"\X")


class ScrollDirection(Enum):
    LEFT_TO_RIGHT = "ltr"
    RIGHT_TO_LEFT = "rtl"


class ScrollAnimator:
    """
    Bounce-scrolls `text` through a window of `visible_len` cells.

    Frames are taken from text positions [step, step + visible_len); positions
    outside the text render as spaces. Text is split into grapheme clusters
    so combined characters move as one cell.

    >>> s = ScrollAnimator("Hello, world!", 6, ScrollDirection.LEFT_TO_RIGHT)
    >>> s.current_frame()
    '      '
    >>> s.next_frame(); s.current_frame()
    '!     '
    >>> s.next_frame(); s.current_frame()
    'd!    '
    """

    def __init__(self, text: str, visible_len: int, direction: ScrollDirection = ScrollDirection.LEFT_TO_RIGHT):
        if visible_len < 0:
            raise ValueError(f"visible_len must be >= 0, got {visible_len}")
        self.text = text
        self._cells: list[str] = _GRAPHEME_RE.findall(text)
        self.visible_len = visible_len
        self.direction = direction
        self.step = self._start_step()

    @property
    def text_len(self) -> int:
        return len(self._cells)

    def _start_step(self) -> int:
        if self.direction is ScrollDirection.LEFT_TO_RIGHT:
            return self.text_len
        return -self.visible_len

    def current_frame(self) -> str:
        out: list[str] = []
        for i in range(self.step, self.step + self.visible_len):
            out.append(self._cells[i] if 0 <= i < self.text_len else " ")
        return "".join(out)

    def next_frame(self) -> None:
        # Must not be called once is_finished() is true.
        if self.direction is ScrollDirection.LEFT_TO_RIGHT:
            self.step -= 1
        else:
            self.step += 1

    def reset(self) -> None:
        self.step = self._start_step()

    def swap_direction(self) -> None:
        if self.direction is ScrollDirection.LEFT_TO_RIGHT:
            self.direction = ScrollDirection.RIGHT_TO_LEFT
        else:
            self.direction = ScrollDirection.LEFT_TO_RIGHT
        self.reset()

    def is_finished(self) -> bool:
        if self.direction is ScrollDirection.LEFT_TO_RIGHT:
            return self.step == -self.visible_len - 1
        return self.step == self.text_len + 1
