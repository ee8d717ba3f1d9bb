from __future__ import annotations

import logging
import time
from enum import Enum
from pathlib import Path
from typing import Callable, Protocol

from terminal_player.audio.info import AudioFile
from terminal_player.commands import Command, map_key, unknown_message
from terminal_player.config import AppConfig
from terminal_player.lyrics.bank import LyricsBank, advance
from terminal_player.lyrics.errors import LyricsError
from terminal_player.lyrics.model import LyricsDocument
from terminal_player.lyrics.parse import load_lyrics, lyrics_path_for
from terminal_player.render.ansi import AnsiRenderer, TerminalTooSmall
from terminal_player.render.scroll import ScrollAnimator, ScrollDirection
from terminal_player.sync.clock import PausableClock
from terminal_player.sync.timer import Timer

logger = logging.getLogger(__name__)


class PlaybackBackend(Protocol):
    def play(self) -> None: ...
    def pause(self) -> None: ...
    def is_paused(self) -> bool: ...
    def is_finished(self) -> bool: ...
    def mute(self) -> None: ...
    def unmute(self) -> None: ...
    def is_muted(self) -> bool: ...
    def get_volume(self) -> int: ...
    def inc_volume(self) -> None: ...
    def dec_volume(self) -> None: ...
    def destroy(self) -> None: ...


class SessionState(Enum):
    PAUSED = "paused"
    PLAYING = "playing"
    FINISHED = "finished"


def try_load_lyrics(audio_path: Path) -> LyricsDocument | None:
    """
    Load the sibling lyrics file once. Any lyrics failure only disables
    lyric sync for the session.
    """
    path = lyrics_path_for(audio_path)
    try:
        doc = load_lyrics(path)
    except LyricsError as e:
        logger.info("Lyrics disabled for %s: %s", audio_path.name, e)
        return None
    logger.info("Loaded %d lyric lines from %s", len(doc.lines), path)
    return doc


class PlaybackSession:
    """
    One play-through of one file.

    Owns the playtime clock, the current lyrics bank, the file-name scroller
    and both timers; everything is mutated from `tick()` only.
    """

    def __init__(
        self,
        cfg: AppConfig,
        audio: AudioFile,
        player: PlaybackBackend,
        renderer: AnsiRenderer,
        lyrics: LyricsDocument | None,
        *,
        now: Callable[[], float] = time.monotonic,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.cfg = cfg
        self.audio = audio
        self.player = player
        self.renderer = renderer
        self.lyrics = lyrics
        self.bank: LyricsBank | None = None
        self._now = now
        self._sleep = sleep

        # the player starts paused, so does the clock
        self.clock = PausableClock(now=now, paused=True)
        self.state = SessionState.PAUSED
        self.quit_requested = False

        self.scroller = ScrollAnimator(audio.path.name, renderer.scroll_width, ScrollDirection.LEFT_TO_RIGHT)
        self.scroll_timer = Timer(cfg.scroll_short_ms / 1000, now=now)
        self.message_timer: Timer | None = None

    # --- playback transitions -----------------------------------------

    def _play(self) -> None:
        # player and clock move together or playtime drifts from the audio
        self.player.play()
        self.clock.resume()
        self.state = SessionState.PLAYING
        self.renderer.set_playback_status(True)

    def _pause(self) -> None:
        self.player.pause()
        self.clock.pause()
        self.state = SessionState.PAUSED
        self.renderer.set_playback_status(False)

    def start(self) -> None:
        r = self.renderer
        r.set_track_info(self.audio.metadata)
        r.set_track_length(self.audio.length_s)
        r.set_file_quality(self.audio.quality)
        if self.lyrics is None:
            r.set_unavailable()
        self._play()
        r.refresh()

    # --- per-tick work ------------------------------------------------

    def status(self, message: str) -> None:
        self.renderer.set_status_message(message)
        self.message_timer = Timer(self.cfg.status_message_s, now=self._now)

    def _status_tick(self) -> None:
        if self.message_timer is not None and self.message_timer.expired():
            self.renderer.clear_status_message()
            self.message_timer = None

    def _scroll_tick(self) -> None:
        if not self.scroll_timer.expired():
            return
        self.renderer.set_scroll_frame(self.scroller.current_frame())
        if self.scroller.is_finished():
            self.scroller.swap_direction()
            self.scroll_timer.rebuild(self.cfg.scroll_pause_ms / 1000)
        else:
            self.scroll_timer.rebuild(self.cfg.scroll_short_ms / 1000)
        self.scroller.next_frame()

    def _lyrics_tick(self, playtime_ms: int) -> None:
        if self.lyrics is None:
            return
        self.bank = advance(self.lyrics, self.bank, playtime_ms, self.cfg.bank_window)
        active = self.bank.get_active(playtime_ms)
        self.renderer.set_active_line(active.text if active else None)

    def apply(self, command: Command, key: str = "") -> None:
        p = self.player
        if command is Command.PLAY:
            self._play()
            self.status("Resumed")
        elif command is Command.PAUSE:
            self._pause()
            self.status("Paused")
        elif command is Command.TOGGLE_MUTE:
            if p.is_muted():
                p.unmute()
                self.status("Unmuted")
            else:
                p.mute()
                self.status("Muted")
        elif command is Command.VOLUME_UP:
            p.inc_volume()
            self.status(f"+ Volume ({p.get_volume()}%)")
        elif command is Command.VOLUME_DOWN:
            p.dec_volume()
            self.status(f"- Volume ({p.get_volume()}%)")
        elif command is Command.QUIT:
            self.quit_requested = True
        else:
            self.status(unknown_message(key))

    def tick(self) -> None:
        if self.state is SessionState.PLAYING:
            # sampled once; lyrics and progress see the same value
            playtime_ms = self.clock.playtime_ms()
            self.renderer.update_progress(playtime_ms / 1000, self.audio.length_s)
            self._scroll_tick()
            self._lyrics_tick(playtime_ms)

        self._status_tick()

        key = self.renderer.read_key()
        if key is not None:
            event = map_key(key)
            self.apply(event.command, event.key)

        self.renderer.refresh()

        if self.quit_requested or self.player.is_finished():
            self.state = SessionState.FINISHED

    def run(self) -> SessionState:
        self.start()
        tick_s = self.cfg.tick_ms / 1000
        while self.state is not SessionState.FINISHED:
            self.tick()
            if self.state is SessionState.FINISHED:
                break
            self._sleep(tick_s)
        return self.state


def play(cfg: AppConfig, audio: AudioFile, player: PlaybackBackend, renderer: AnsiRenderer) -> int:
    """
    Run one session to completion. The renderer and player are torn down
    here whatever happens.
    """
    lyrics = try_load_lyrics(audio.path)
    renderer.enter()
    try:
        if not renderer.sizecheck():
            raise TerminalTooSmall(renderer.min_cols, renderer.min_rows)
        session = PlaybackSession(cfg, audio, player, renderer, lyrics)
        session.run()
        return 0
    finally:
        player.destroy()
        renderer.exit()
