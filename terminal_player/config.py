from __future__ import annotations

import json
import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

logger = logging.getLogger(__name__)

_ENV_PREFIX = "TERMINAL_PLAYER_"


def _config_dir() -> Path:
    xdg = os.getenv("XDG_CONFIG_HOME")
    if xdg:
        return Path(xdg) / "terminal-player"
    return Path.home() / ".config" / "terminal-player"


def _config_file() -> Path:
    return _config_dir() / "config.json"


@dataclass(frozen=True)
class AppConfig:
    config_dir: Path

    # Tick loop
    tick_ms: int

    # Rendering
    scroll_short_ms: int
    scroll_pause_ms: int
    status_message_s: float
    use_alt_screen: bool
    min_cols: int
    min_rows: int

    # Lyrics
    bank_window: int

    # Audio
    volume_step: int
    initial_volume: int

    # Logging
    log_file: Path | None


# field -> (env suffix, default)
_DEFAULTS: dict[str, tuple[str, Any]] = {
    "tick_ms": ("TICK_MS", 10),
    "scroll_short_ms": ("SCROLL_SHORT_MS", 200),
    "scroll_pause_ms": ("SCROLL_PAUSE_MS", 3000),
    "status_message_s": ("STATUS_MESSAGE_S", 2.0),
    "use_alt_screen": ("ALT_SCREEN", True),
    "min_cols": ("MIN_COLS", 60),
    "min_rows": ("MIN_ROWS", 18),
    "bank_window": ("BANK_WINDOW", 10),
    "volume_step": ("VOLUME_STEP", 10),
    "initial_volume": ("INITIAL_VOLUME", 100),
}

SETTABLE: tuple[str, ...] = (*_DEFAULTS, "log_file")


def _coerce(raw: Any, default: Any) -> Any:
    if isinstance(default, bool):
        if isinstance(raw, bool):
            return raw
        return str(raw) not in ("0", "false", "False", "no")
    return type(default)(raw)


def load_config() -> AppConfig:
    # Priority: config.json -> TERMINAL_PLAYER_* env -> defaults
    config_dir = _config_dir()
    file_values = _load_file(config_dir / "config.json")

    values: dict[str, Any] = {}
    for name, (env_suffix, default) in _DEFAULTS.items():
        raw = file_values.get(name, os.getenv(_ENV_PREFIX + env_suffix))
        if raw is None:
            values[name] = default
            continue
        try:
            values[name] = _coerce(raw, default)
        except (TypeError, ValueError):
            logger.warning("Invalid value %r for %s, using %r", raw, name, default)
            values[name] = default

    log_file = file_values.get("log_file") or os.getenv(_ENV_PREFIX + "LOG_FILE")
    return AppConfig(
        config_dir=config_dir,
        log_file=Path(log_file).expanduser() if log_file else None,
        **values,
    )


def _load_file(cfg_path: Path) -> dict[str, Any]:
    if not cfg_path.exists():
        return {}
    try:
        data = json.loads(cfg_path.read_text(encoding="utf-8"))
    except (OSError, ValueError) as e:
        logger.warning("Ignoring unreadable config %s: %s", cfg_path, e)
        return {}
    if not isinstance(data, dict):
        return {}
    return {k: v for k, v in data.items() if k in SETTABLE}


def save_config_value(name: str, value: Any) -> None:
    if name not in SETTABLE:
        raise KeyError(name)
    cfg_path = _config_file()
    cfg_path.parent.mkdir(parents=True, exist_ok=True)
    data: dict[str, Any] = {}
    if cfg_path.exists():
        try:
            data = json.loads(cfg_path.read_text(encoding="utf-8"))
        except ValueError:
            pass
    data[name] = value
    cfg_path.write_text(json.dumps(data, indent=2, ensure_ascii=False), encoding="utf-8")
