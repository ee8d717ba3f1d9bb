from __future__ import annotations

import logging
import threading
from pathlib import Path
from typing import Any, Callable

import numpy as np
import sounddevice as sd
import soundfile as sf

from .errors import AudioDeviceError, AudioError

logger = logging.getLogger(__name__)

VOLUME_MIN = 0
VOLUME_MAX = 100


def _read_file(path: str) -> tuple[np.ndarray, int]:
    return sf.read(path, dtype="float32", always_2d=True)


class Player:
    """
    Plays one decoded file through a sounddevice output stream.

    Starts paused. Pausing keeps the stream open and feeds silence without
    moving the read position, so resuming continues where it stopped.
    `is_finished()` turns true once the stream has played the last frame.
    """

    def __init__(
        self,
        path: str | Path,
        *,
        volume: int = VOLUME_MAX,
        volume_step: int = 10,
        reader: Callable[[str], tuple[np.ndarray, int]] = _read_file,
        stream_factory: Callable[..., Any] = sd.OutputStream,
    ):
        try:
            data, samplerate = reader(str(path))
        except RuntimeError as e:
            raise AudioError(f"cannot decode {path}: {e}") from e

        self._data = data
        self.samplerate = samplerate
        self._pos = 0
        self._paused = True
        self._muted = False
        self._volume = _clamp(volume)
        self.volume_step = volume_step
        self._finished = threading.Event()
        self._started = False

        try:
            self._stream = stream_factory(
                samplerate=samplerate,
                channels=data.shape[1],
                dtype="float32",
                callback=self._callback,
                finished_callback=self._finished.set,
            )
        except sd.PortAudioError as e:
            raise AudioDeviceError(f"unable to open audio device: {e}") from e

    def _callback(self, outdata: np.ndarray, frames: int, time_info: Any, status: sd.CallbackFlags) -> None:
        if status:
            logger.debug("Audio callback status: %s", status)
        if self._paused:
            outdata.fill(0)
            return

        chunk = self._data[self._pos : self._pos + frames]
        n = len(chunk)
        gain = 0.0 if self._muted else self._volume / VOLUME_MAX
        outdata[:n] = chunk * gain
        self._pos += n
        if n < frames:
            outdata[n:] = 0
            raise sd.CallbackStop

    def play(self) -> None:
        self._paused = False
        if not self._started:
            self._stream.start()
            self._started = True

    def pause(self) -> None:
        self._paused = True

    def is_paused(self) -> bool:
        return self._paused

    def is_finished(self) -> bool:
        return self._finished.is_set()

    def mute(self) -> None:
        self._muted = True

    def unmute(self) -> None:
        self._muted = False

    def is_muted(self) -> bool:
        return self._muted

    def get_volume(self) -> int:
        return self._volume

    def set_volume(self, volume: int) -> None:
        self._volume = _clamp(volume)

    def inc_volume(self) -> None:
        self.set_volume(self._volume + self.volume_step)

    def dec_volume(self) -> None:
        self.set_volume(self._volume - self.volume_step)

    def destroy(self) -> None:
        try:
            self._stream.stop()
            self._stream.close()
        except sd.PortAudioError as e:
            logger.warning("Error closing audio stream: %s", e)
        self._finished.set()


def _clamp(volume: int) -> int:
    return max(VOLUME_MIN, min(VOLUME_MAX, int(volume)))
