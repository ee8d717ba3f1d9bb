from __future__ import annotations

import logging
from dataclasses import dataclass
from enum import Enum
from pathlib import Path

import soundfile as sf

from .errors import AudioError, UnsupportedFormat

logger = logging.getLogger(__name__)

UNKNOWN = "Unknown"


class AudioFormat(Enum):
    FLAC = "flac"
    WAV = "wav"
    OGG = "ogg"


SUPPORTED_FORMATS: tuple[str, ...] = tuple(f.value for f in AudioFormat)


@dataclass(frozen=True, slots=True)
class AudioMeta:
    title: str = UNKNOWN
    album: str = UNKNOWN
    artist: str = UNKNOWN


@dataclass(frozen=True, slots=True)
class AudioFile:
    path: Path
    format: AudioFormat
    length_s: float
    sample_rate: int
    stereo: bool
    metadata: AudioMeta

    @property
    def lossless(self) -> bool:
        return self.format in (AudioFormat.FLAC, AudioFormat.WAV)

    @property
    def quality(self) -> str:
        return (
            f"{self.sample_rate} Hz, "
            f"{'Stereo' if self.stereo else 'Mono'}, "
            f"{'Lossless' if self.lossless else 'Lossy'} {self.format.name}"
        )


def audio_format(path: str | Path) -> AudioFormat:
    """Format from the file extension, case-insensitive."""
    ext = Path(path).suffix.lstrip(".").lower()
    try:
        return AudioFormat(ext)
    except ValueError:
        raise UnsupportedFormat(
            f"unsupported format '{ext or '?'}' (supported: {', '.join(s.upper() for s in SUPPORTED_FORMATS)})"
        ) from None


def _tag(f: sf.SoundFile, name: str) -> str:
    try:
        value = getattr(f, name)
    except (AttributeError, RuntimeError):
        return UNKNOWN
    return value or UNKNOWN


def probe(path: str | Path) -> AudioFile:
    p = Path(path)
    fmt = audio_format(p)
    try:
        with sf.SoundFile(str(p)) as f:
            sample_rate = f.samplerate
            frames = f.frames
            channels = f.channels
            meta = AudioMeta(title=_tag(f, "title"), album=_tag(f, "album"), artist=_tag(f, "artist"))
    except RuntimeError as e:  # LibsndfileError
        raise AudioError(f"cannot open {p}: {e}") from e

    logger.debug("Probed %s: %d Hz, %d ch, %d frames", p, sample_rate, channels, frames)
    return AudioFile(
        path=p,
        format=fmt,
        length_s=frames / sample_rate if sample_rate else 0.0,
        sample_rate=sample_rate,
        stereo=channels > 1,
        metadata=meta,
    )
