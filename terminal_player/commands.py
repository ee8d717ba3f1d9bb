from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class Command(Enum):
    PLAY = "play"
    PAUSE = "pause"
    TOGGLE_MUTE = "toggle_mute"
    VOLUME_UP = "volume_up"
    VOLUME_DOWN = "volume_down"
    QUIT = "quit"
    UNKNOWN = "unknown"


KEYMAP: dict[str, Command] = {
    "g": Command.PLAY,
    "b": Command.PAUSE,
    "v": Command.TOGGLE_MUTE,
    "+": Command.VOLUME_UP,
    "=": Command.VOLUME_UP,
    "-": Command.VOLUME_DOWN,
    "q": Command.QUIT,
}

# (key, label) pairs for the on-screen guide
KEY_GUIDE: tuple[tuple[str, str], ...] = (
    ("G", "Play"),
    ("B", "Pause"),
    ("V", "Mute"),
    ("+/-", "Volume"),
)


@dataclass(frozen=True, slots=True)
class KeyEvent:
    command: Command
    key: str


def map_key(key: str) -> KeyEvent:
    return KeyEvent(command=KEYMAP.get(key.lower(), Command.UNKNOWN), key=key)


def unknown_message(key: str) -> str:
    if key.isascii() and key.isalnum():
        return f"Unknown command '{key}'"
    return "Unknown command"
