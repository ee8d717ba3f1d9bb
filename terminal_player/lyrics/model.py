from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class LyricsLine:
    start_ms: int
    end_ms: int
    text: str

    @property
    def has_valid_end(self) -> bool:
        # sources without per-line end times send "0"
        return self.end_ms > self.start_ms


@dataclass(frozen=True, slots=True)
class LyricsDocument:
    """
    Normalized lyrics: sorted by start, unique starts, no placeholder lines.
    """

    lines: tuple[LyricsLine, ...]
    sync_type: str = "LINE_SYNCED"

    def __len__(self) -> int:
        return len(self.lines)

    def end_of(self, index: int) -> float:
        """
        End of the interval during which line `index` is active.

        Lines without a valid end run until the next line starts; the last
        one never ends.
        """
        line = self.lines[index]
        if line.has_valid_end:
            return line.end_ms
        if index + 1 < len(self.lines):
            return self.lines[index + 1].start_ms
        return float("inf")
