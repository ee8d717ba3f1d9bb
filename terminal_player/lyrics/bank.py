from __future__ import annotations

import logging
from dataclasses import dataclass

from .model import LyricsDocument, LyricsLine

logger = logging.getLogger(__name__)

DEFAULT_WINDOW = 10


@dataclass(frozen=True, slots=True)
class LyricsBank:
    """
    Forward-only window [start, end) over a LyricsDocument.

    Lookups only scan the window, so a tick costs O(window) regardless of
    document size. Playtime passed in must not decrease between calls;
    `advance()` handles the one case where it does (see there).
    """

    document: LyricsDocument
    start: int
    end: int
    window: int = DEFAULT_WINDOW

    def __len__(self) -> int:
        return self.end - self.start

    def lines(self) -> tuple[LyricsLine, ...]:
        return self.document.lines[self.start : self.end]

    def is_expired(self, playtime_ms: int) -> bool:
        """True once playtime reaches the end of the last line in the window."""
        if self.end <= self.start:
            return True
        return playtime_ms >= self.document.end_of(self.end - 1)

    def next_available(self) -> bool:
        return self.end < len(self.document.lines)

    def is_behind(self, playtime_ms: int) -> bool:
        """
        True if playtime went back before the lines this bank skipped.

        The bank was advanced only after playtime reached the end of line
        `start - 1`, so anything earlier means the clock moved backwards.
        """
        if self.start == 0:
            return False
        return playtime_ms < self.document.end_of(self.start - 1)

    def get_active(self, playtime_ms: int) -> LyricsLine | None:
        # half-open: a line is active from its start up to, not including, its end
        doc = self.document
        for i in range(self.start, self.end):
            line = doc.lines[i]
            if line.start_ms > playtime_ms:
                return None
            if playtime_ms < doc.end_of(i):
                return line
        return None


def get_bank(document: LyricsDocument, previous: LyricsBank | None = None, window: int = DEFAULT_WINDOW) -> LyricsBank:
    """
    The only way to obtain a bank.

    Without `previous` the bank starts at line 0. Otherwise it starts where
    `previous` ended, so lines already passed are never looked at again.
    """
    if window < 1:
        raise ValueError(f"window must be >= 1, got {window}")
    total = len(document.lines)
    if previous is None:
        return LyricsBank(document=document, start=0, end=min(window, total), window=window)
    start = previous.end
    return LyricsBank(document=document, start=start, end=min(start + window, total), window=previous.window)


def advance(document: LyricsDocument, bank: LyricsBank | None, playtime_ms: int, window: int = DEFAULT_WINDOW) -> LyricsBank:
    """
    Return the bank to use for `playtime_ms`, moving forward as far as needed.

    A playtime earlier than what the bank has already skipped (a seek back)
    rebuilds from line 0 and moves forward again.
    """
    if bank is None:
        bank = get_bank(document, None, window)
    elif bank.is_behind(playtime_ms):
        logger.debug("Playtime went back to %d ms, rebuilding lyrics bank", playtime_ms)
        bank = get_bank(document, None, bank.window)

    while bank.is_expired(playtime_ms) and bank.next_available():
        bank = get_bank(document, bank)
    return bank
