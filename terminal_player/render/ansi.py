from __future__ import annotations

import codecs
import os
import select
import shutil
import signal
import sys
import termios
import tty
from dataclasses import dataclass
from typing import Callable, TextIO

from colorama import Fore, Style, just_fix_windows_console

from terminal_player.audio.info import AudioMeta
from terminal_player.commands import KEY_GUIDE

CSI = "\x1b["

HEADER = "[ Terminal Player ]"
EXIT_GUIDE = "[Q] Exit"
PROGRESS_BLOCK = "▇"

# rows used by the fixed layout: lyrics box ends at row 11, bottom block needs 6
MIN_LAYOUT_ROWS = 18


class TerminalTooSmall(RuntimeError):
    def __init__(self, min_cols: int, min_rows: int):
        super().__init__(f"Terminal is too small! The minimum required size is {min_cols}x{min_rows}")
        self.min_cols = min_cols
        self.min_rows = min_rows


def _sgr(*codes: int) -> str:
    return CSI + ";".join(str(c) for c in codes) + "m"


@dataclass(frozen=True, slots=True)
class Theme:
    title: str = Fore.CYAN + Style.BRIGHT
    current: str = Fore.GREEN + Style.BRIGHT
    dim: str = Style.DIM
    italic: str = _sgr(3)
    standout: str = _sgr(7)
    reset: str = Style.RESET_ALL


def format_time(seconds: float) -> str:
    seconds = max(seconds, 0.0)
    return f"{int(seconds // 60):02d}:{int(seconds % 60):02d}"


def progress_blocks(played: float, total: float, width: int) -> int:
    """Map played/total onto [0, width] blocks."""
    if width <= 0 or total <= 0:
        return 0
    blocks = int(played * width / total)
    return max(0, min(blocks, width))


def _fit(text: str, width: int) -> str:
    if width <= 0:
        return ""
    return text[:width]


class AnsiRenderer:
    """
    Whole-screen player UI drawn with ANSI escapes.

    Setters only record state; `refresh()` composes the frame and writes it
    when it differs from the last one written. Key input is read in cbreak
    mode without blocking.
    """

    def __init__(
        self,
        use_alt_screen: bool = True,
        theme: Theme | None = None,
        *,
        out: TextIO | None = None,
        stdin: TextIO | None = None,
        min_size: tuple[int, int] = (60, MIN_LAYOUT_ROWS),
    ):
        self.use_alt_screen = use_alt_screen
        self.theme = theme or Theme()
        self.min_cols, self.min_rows = min_size
        self._out = out or sys.stdout
        self._in = stdin or sys.stdin
        self._entered = False
        self._resize_handler: Callable[..., None] | None = None
        self._stdin_fd: int | None = None
        self._old_termios: list | None = None
        self._last_frame: list[str] | None = None
        self._pending = ""
        self._decoder = codecs.getincrementaldecoder("utf-8")(errors="ignore")

        # screen state
        self.meta = AudioMeta()
        self.quality = ""
        self.track_length_s = 0.0
        self.playtime_s = 0.0
        self.playing = False
        self.scroll_frame = ""
        self.lyrics_available = True
        self.active_line: str | None = None
        self.status_message: str | None = None

    def __enter__(self):
        self.enter()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.exit()

    @staticmethod
    def size() -> tuple[int, int]:
        cols, rows = shutil.get_terminal_size(fallback=(80, 24))
        return cols, rows

    def sizecheck(self) -> bool:
        cols, rows = self.size()
        return cols >= self.min_cols and rows >= self.min_rows

    @property
    def scroll_width(self) -> int:
        return max(self.size()[0] - 8, 1)

    def enter(self) -> None:
        if self._entered:
            return
        just_fix_windows_console()
        if self.use_alt_screen:
            self._out.write(CSI + "?1049h")  # alt screen
        self._out.write(CSI + "?25l")  # hide cursor
        self._out.write(CSI + "H" + CSI + "2J")  # home + clear
        self._out.flush()
        self._entered = True
        self._enter_cbreak()

        # Register SIGWINCH handler for resize
        def _on_resize(signum=None, frame=None):
            self.refresh(force=True)

        self._resize_handler = _on_resize
        signal.signal(signal.SIGWINCH, _on_resize)

    def _enter_cbreak(self) -> None:
        try:
            fd = self._in.fileno()
            self._old_termios = termios.tcgetattr(fd)
        except (OSError, ValueError, termios.error):
            # not a tty (pipes, pytest capture): no key input
            self._stdin_fd = None
            self._old_termios = None
            return
        tty.setcbreak(fd)
        self._stdin_fd = fd

    def exit(self) -> None:
        if not self._entered:
            return
        # Restore default SIGWINCH handler
        if self._resize_handler:
            signal.signal(signal.SIGWINCH, signal.SIG_DFL)
            self._resize_handler = None
        if self._stdin_fd is not None and self._old_termios is not None:
            termios.tcsetattr(self._stdin_fd, termios.TCSADRAIN, self._old_termios)
        self._stdin_fd = None
        self._old_termios = None
        self._pending = ""
        self._decoder.reset()
        self._out.write(self.theme.reset)
        self._out.write(CSI + "?25h")  # show cursor
        if self.use_alt_screen:
            self._out.write(CSI + "?1049l")  # normal screen
        self._out.flush()
        self._entered = False
        self._last_frame = None

    def read_key(self) -> str | None:
        """
        One pending key, or None. Never blocks.

        Keys that arrive together (fast typing, paste) are buffered and
        handed out one per call.
        """
        if not self._pending:
            if self._stdin_fd is None:
                return None
            ready, _, _ = select.select([self._stdin_fd], [], [], 0)
            if not ready:
                return None
            self._pending = self._decoder.decode(os.read(self._stdin_fd, 32))
        key, self._pending = self._pending[:1], self._pending[1:]
        return key or None

    # --- state setters -------------------------------------------------

    def set_track_info(self, meta: AudioMeta) -> None:
        self.meta = meta

    def set_file_quality(self, quality: str) -> None:
        self.quality = quality

    def set_track_length(self, seconds: float) -> None:
        self.track_length_s = seconds

    def set_playback_status(self, playing: bool) -> None:
        self.playing = playing

    def update_progress(self, playtime_s: float, total_s: float) -> None:
        self.playtime_s = playtime_s
        self.track_length_s = total_s

    def set_scroll_frame(self, frame: str) -> None:
        self.scroll_frame = frame

    def set_unavailable(self) -> None:
        self.lyrics_available = False
        self.active_line = None

    def set_active_line(self, text: str | None) -> None:
        self.active_line = text

    def set_status_message(self, message: str) -> None:
        self.status_message = message

    def clear_status_message(self) -> None:
        self.status_message = None

    # --- drawing -------------------------------------------------------

    def compose(self, cols: int, rows: int) -> list[str]:
        th = self.theme
        inner = max(cols - 8, 1)
        screen = [""] * rows

        def put(row: int, text: str) -> None:
            if 0 <= row < rows:
                screen[row] = text

        put(0, " " * max((cols - len(HEADER)) // 2, 0) + f"{th.title}{HEADER}{th.reset}")
        put(2, "    " + _fit(f"{'Track:':<11}{self.meta.title}", inner))
        put(3, "    " + _fit(f"{'Album:':<11}{self.meta.album}", inner))
        put(4, "    " + _fit(f"{'Artist(s):':<11}{self.meta.artist}", inner))
        put(6, "    " + _fit(self.quality, inner))
        put(7, "    " + f"{th.dim}{self.scroll_frame}{th.reset}")

        box_w = max(cols - 8, 4)
        label = "[ Lyrics ]"
        put(9, "    ┌─" + label + "─" * max(box_w - len(label) - 3, 0) + "┐")
        if not self.lyrics_available:
            body = f"{th.italic}Unavailable{th.reset}"
            pad = box_w - 2 - len(" Unavailable")
        elif self.active_line:
            line = _fit(self.active_line, box_w - 6)
            body = f"{th.current}-> {line}{th.reset}"
            pad = box_w - 2 - len(" -> " + line)
        else:
            body = ""
            pad = box_w - 3
        put(10, "    │ " + body + " " * max(pad, 0) + "│")
        put(11, "    └" + "─" * max(box_w - 2, 0) + "┘")

        # bottom block is laid out as if the screen had at least MIN_LAYOUT_ROWS;
        # on shorter screens its lower rows fall off instead of covering the lyrics
        bottom = max(rows, MIN_LAYOUT_ROWS)

        if self.status_message:
            msg = f"[ {self.status_message} ]"
            put(bottom - 6, " " * max((cols - len(msg)) // 2, 0) + f"{th.standout}{msg}{th.reset}")

        indicator = "||" if self.playing else "|>"
        played = format_time(self.playtime_s)
        total = format_time(self.track_length_s)
        bar_w = max(cols - 27, 0)
        n = progress_blocks(self.playtime_s, self.track_length_s, bar_w)
        bar = PROGRESS_BLOCK * n + " " * (bar_w - n)
        put(bottom - 5, f"─[{indicator}]─[{played}]─[{bar}]─[{total}]─")

        guide = " │ ".join(f"[{key}] {label}" for key, label in KEY_GUIDE)
        gap = max(cols - 4 - len(guide) - len(EXIT_GUIDE), 1)
        put(bottom - 3, "  " + guide + " " * gap + EXIT_GUIDE)
        return screen

    def refresh(self, force: bool = False) -> None:
        cols, rows = self.size()
        frame = self.compose(cols, rows)
        if not force and frame == self._last_frame:
            return
        self._last_frame = frame
        # move home, overwrite each row, clear its tail
        self._out.write(CSI + "H")
        self._out.write("\r\n".join(row + CSI + "K" for row in frame))
        self._out.write(self.theme.reset)
        self._out.flush()
