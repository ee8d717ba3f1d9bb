import pytest

from terminal_player.commands import Command, map_key, unknown_message


@pytest.mark.parametrize(
    "key, command",
    [
        ("g", Command.PLAY),
        ("G", Command.PLAY),
        ("b", Command.PAUSE),
        ("v", Command.TOGGLE_MUTE),
        ("+", Command.VOLUME_UP),
        ("=", Command.VOLUME_UP),
        ("-", Command.VOLUME_DOWN),
        ("q", Command.QUIT),
        ("x", Command.UNKNOWN),
        ("\x1b", Command.UNKNOWN),
    ],
)
def test_map_key(key, command):
    event = map_key(key)
    assert event.command is command
    assert event.key == key


def test_unknown_message():
    assert unknown_message("x") == "Unknown command 'x'"
    assert unknown_message("7") == "Unknown command '7'"
    assert unknown_message("é") == "Unknown command"
    assert unknown_message(" ") == "Unknown command"
