from __future__ import annotations

import numpy as np
import pytest
import soundfile as sf

from terminal_player.audio.errors import AudioError, UnsupportedFormat
from terminal_player.audio.info import AudioFormat, audio_format, probe


@pytest.mark.parametrize("name, fmt", [("a.flac", AudioFormat.FLAC), ("b.WAV", AudioFormat.WAV), ("c.Ogg", AudioFormat.OGG)])
def test_audio_format(name, fmt):
    assert audio_format(name) is fmt


@pytest.mark.parametrize("name", ["a.mp3", "noext"])
def test_unsupported_format(name):
    with pytest.raises(UnsupportedFormat):
        audio_format(name)


def test_probe_wav(tmp_path):
    path = tmp_path / "tone.wav"
    sf.write(str(path), np.zeros((8000, 2), dtype="float32"), 8000)
    info = probe(path)
    assert info.format is AudioFormat.WAV
    assert info.sample_rate == 8000
    assert info.length_s == pytest.approx(1.0)
    assert info.stereo
    assert info.lossless
    assert info.metadata.title == "Unknown"
    assert info.quality == "8000 Hz, Stereo, Lossless WAV"


def test_probe_unreadable(tmp_path):
    path = tmp_path / "broken.flac"
    path.write_bytes(b"not audio")
    with pytest.raises(AudioError):
        probe(path)
