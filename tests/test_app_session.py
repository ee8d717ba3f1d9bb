from __future__ import annotations

import io
import json
from dataclasses import replace
from pathlib import Path

import pytest

from terminal_player.app import PlaybackSession, SessionState, play, try_load_lyrics
from terminal_player.audio.info import AudioFile, AudioFormat, AudioMeta
from terminal_player.commands import Command
from terminal_player.config import AppConfig
from terminal_player.lyrics.model import LyricsDocument, LyricsLine
from terminal_player.render.ansi import AnsiRenderer, TerminalTooSmall
from tests.mocks.fake_clock import FakeClock
from tests.mocks.player_mock import MockPlayer


@pytest.fixture(autouse=True)
def _terminal_size(monkeypatch):
    monkeypatch.setenv("COLUMNS", "100")
    monkeypatch.setenv("LINES", "30")


@pytest.fixture
def cfg(tmp_path) -> AppConfig:
    return AppConfig(
        config_dir=tmp_path / "config",
        tick_ms=10,
        scroll_short_ms=200,
        scroll_pause_ms=3000,
        status_message_s=2.0,
        use_alt_screen=False,
        min_cols=60,
        min_rows=18,
        bank_window=2,
        volume_step=10,
        initial_volume=100,
        log_file=None,
    )


@pytest.fixture
def audio(tmp_path) -> AudioFile:
    return AudioFile(
        path=tmp_path / "song.flac",
        format=AudioFormat.FLAC,
        length_s=10.0,
        sample_rate=44100,
        stereo=True,
        metadata=AudioMeta(title="Song", album="Album", artist="Artist"),
    )


LYRICS = LyricsDocument(
    lines=(
        LyricsLine(0, 1000, "a"),
        LyricsLine(1000, 2000, "b"),
        LyricsLine(3000, 4000, "c"),
        LyricsLine(4000, 0, "d"),
    )
)


class KeyedRenderer(AnsiRenderer):
    """Real renderer writing to a buffer, with scripted key presses."""

    def __init__(self, keys: list[str] | None = None):
        super().__init__(use_alt_screen=False, out=io.StringIO(), stdin=io.StringIO())
        self.keys = list(keys or [])

    def read_key(self) -> str | None:
        return self.keys.pop(0) if self.keys else None


def _session(cfg, audio, lyrics=LYRICS, keys=None, player=None):
    clock = FakeClock()
    renderer = KeyedRenderer(keys)
    player = player or MockPlayer()
    s = PlaybackSession(cfg, audio, player, renderer, lyrics, now=clock, sleep=clock.sleep)
    return s, clock, renderer, player


class TestTicks:
    def test_start_plays_and_draws(self, cfg, audio):
        s, clock, r, player = _session(cfg, audio)
        s.start()
        assert s.state is SessionState.PLAYING
        assert player.calls == ["play"]
        assert r.playing
        assert r.meta.title == "Song"
        assert "Song" in r._out.getvalue()

    def test_active_line_follows_playtime(self, cfg, audio):
        s, clock, r, _ = _session(cfg, audio)
        s.start()
        seen = []
        for t in (0.5, 1.0, 2.5, 3.0, 3.999, 4.0, 9.0):
            clock.t = 100.0 + t
            s.tick()
            seen.append(r.active_line)
        assert seen == ["a", "b", None, "c", "c", "d", "d"]
        assert s.bank is not None and s.bank.start == 2

    def test_progress_uses_same_sample(self, cfg, audio):
        s, clock, r, _ = _session(cfg, audio)
        s.start()
        clock.advance(1.25)
        s.tick()
        assert r.playtime_s == pytest.approx(1.25)
        assert r.track_length_s == 10.0

    def test_pause_freezes_playtime_and_lyrics(self, cfg, audio):
        s, clock, r, player = _session(cfg, audio)
        s.start()
        clock.advance(0.5)
        s.tick()
        s.apply(Command.PAUSE)
        assert s.state is SessionState.PAUSED
        assert player.paused and s.clock.is_paused
        clock.advance(30)
        s.tick()
        assert r.active_line == "a"
        assert s.clock.playtime() == pytest.approx(0.5)

        s.apply(Command.PLAY)
        assert not player.paused and not s.clock.is_paused
        clock.advance(0.6)
        s.tick()
        assert r.active_line == "b"
        assert player.calls == ["play", "pause", "play"]

    def test_no_lyrics_shows_unavailable(self, cfg, audio):
        s, clock, r, _ = _session(cfg, audio, lyrics=None)
        s.start()
        clock.advance(1)
        s.tick()
        assert not r.lyrics_available
        assert r.active_line is None
        assert s.bank is None
        assert "Unavailable" in r._out.getvalue()

    def test_finished_when_player_is_done(self, cfg, audio):
        s, clock, r, player = _session(cfg, audio)
        s.start()
        s.tick()
        assert s.state is SessionState.PLAYING
        player.finished = True
        s.tick()
        assert s.state is SessionState.FINISHED


class TestScroll:
    # steps slightly over the timer lengths keep float clocks on the safe side
    def test_scroll_frames(self, cfg, audio):
        s, clock, r, _ = _session(cfg, audio)
        s.start()
        s.tick()
        assert r.scroll_frame == ""  # short timer not expired yet

        clock.advance(0.21)
        s.tick()
        first = r.scroll_frame
        assert len(first) == s.scroller.visible_len
        assert first.strip() == ""

        clock.advance(0.21)
        s.tick()
        assert r.scroll_frame.startswith("c")  # last char of "song.flac"

    def test_long_pause_after_direction_swap(self, cfg, audio):
        s, clock, r, _ = _session(cfg, audio)
        s.start()
        steps = len("song.flac") + s.scroller.visible_len + 1
        for _ in range(steps + 1):
            clock.advance(0.21)
            s.tick()
        assert s.scroll_timer.length_s == pytest.approx(3.0)
        frame = r.scroll_frame
        clock.advance(2.9)
        s.tick()
        assert r.scroll_frame == frame
        clock.advance(0.2)
        s.tick()
        assert s.scroll_timer.length_s == pytest.approx(0.2)


class TestCommands:
    def test_keys_are_applied(self, cfg, audio):
        s, clock, r, player = _session(cfg, audio, keys=["v"])
        s.start()
        s.tick()
        assert player.muted
        assert r.status_message == "Muted"

    def test_toggle_mute_back(self, cfg, audio):
        s, clock, r, player = _session(cfg, audio)
        s.start()
        s.apply(Command.TOGGLE_MUTE)
        s.apply(Command.TOGGLE_MUTE)
        assert not player.muted
        assert r.status_message == "Unmuted"

    def test_volume_messages(self, cfg, audio):
        s, clock, r, player = _session(cfg, audio)
        s.start()
        s.apply(Command.VOLUME_UP)
        assert r.status_message == "+ Volume (100%)"
        s.apply(Command.VOLUME_DOWN)
        s.apply(Command.VOLUME_DOWN)
        assert r.status_message == "- Volume (80%)"

    def test_unknown_key(self, cfg, audio):
        s, clock, r, _ = _session(cfg, audio, keys=["z"])
        s.start()
        s.tick()
        assert r.status_message == "Unknown command 'z'"
        s.apply(Command.UNKNOWN, "\x1b")
        assert r.status_message == "Unknown command"

    def test_status_message_expires(self, cfg, audio):
        s, clock, r, _ = _session(cfg, audio)
        s.start()
        s.apply(Command.PAUSE)
        clock.advance(1.9)
        s.tick()
        assert r.status_message == "Paused"
        clock.advance(0.2)
        s.tick()
        assert r.status_message is None

    def test_quit_finishes_after_current_tick(self, cfg, audio):
        s, clock, r, player = _session(cfg, audio, keys=["q"])
        s.start()
        s.tick()
        assert s.state is SessionState.FINISHED
        assert s.quit_requested


class TestRun:
    def test_run_until_player_finishes(self, cfg, audio):
        player = MockPlayer(finish_after=50)
        s, clock, r, _ = _session(cfg, audio, player=player)
        start = clock.t
        assert s.run() is SessionState.FINISHED
        # 49 sleeps of 10ms between 50 ticks
        assert clock.t - start == pytest.approx(0.49)
        assert r.active_line == "a"

    def test_play_tears_down(self, cfg, audio, tmp_path):
        renderer = KeyedRenderer(["q"])
        player = MockPlayer()
        assert play(cfg, audio, player, renderer) == 0
        assert player.destroyed
        assert not renderer._entered

    def test_play_too_small(self, cfg, audio, monkeypatch):
        monkeypatch.setenv("COLUMNS", "20")
        player = MockPlayer()
        renderer = KeyedRenderer()
        with pytest.raises(TerminalTooSmall):
            play(replace(cfg, min_cols=60), audio, player, renderer)
        assert player.destroyed
        assert not renderer._entered


class TestLoadLyrics:
    def _write(self, path: Path, payload) -> None:
        path.write_text(payload if isinstance(payload, str) else json.dumps(payload), encoding="utf-8")

    def test_missing(self, tmp_path):
        assert try_load_lyrics(tmp_path / "song.flac") is None

    def test_error_flag(self, tmp_path):
        self._write(tmp_path / "song.json", {"error": True, "syncType": "LINE_SYNCED", "lines": []})
        assert try_load_lyrics(tmp_path / "song.flac") is None

    def test_malformed(self, tmp_path):
        self._write(tmp_path / "song.json", "{oops")
        assert try_load_lyrics(tmp_path / "song.flac") is None

    def test_loaded(self, tmp_path):
        self._write(
            tmp_path / "song.json",
            {"error": False, "syncType": "LINE_SYNCED", "lines": [{"startTimeMs": "0", "endTimeMs": "0", "words": "hi"}]},
        )
        doc = try_load_lyrics(tmp_path / "song.flac")
        assert doc is not None
        assert doc.lines[0].text == "hi"
