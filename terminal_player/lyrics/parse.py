from __future__ import annotations

import json
import logging
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any

from .errors import LyricsUnavailable, MalformedLyrics
from .model import LyricsDocument, LyricsLine

logger = logging.getLogger(__name__)

PLACEHOLDER_GLYPH = "♪"
LYRICS_SUFFIX = ".json"


@dataclass(frozen=True, slots=True)
class LyricsParseStats:
    lines_raw: int
    lines_total: int
    placeholders_merged: int
    duplicates_dropped: int
    sync_type: str


def lyrics_path_for(audio_path: str | Path) -> Path:
    """song.flac -> song.json, next to the audio file."""
    return Path(audio_path).with_suffix(LYRICS_SUFFIX)


def is_placeholder(text: str) -> bool:
    """
    Empty or "♪"-only text. Surrounding whitespace is ignored, so a
    whitespace-only line or " ♪ " is a placeholder too: it would render blank.
    """
    stripped = text.strip()
    return stripped == "" or stripped == PLACEHOLDER_GLYPH


def _parse_ms(value: Any, field: str, index: int) -> int:
    # bool is an int subclass, reject it explicitly
    if isinstance(value, bool) or not isinstance(value, (str, int)):
        raise MalformedLyrics(f"line {index}: {field} must be a decimal string, got {value!r}")
    try:
        ms = int(value)
    except ValueError as e:
        raise MalformedLyrics(f"line {index}: invalid {field} {value!r}") from e
    if ms < 0:
        raise MalformedLyrics(f"line {index}: negative {field} {ms}")
    return ms


def fix_end_times(lines: list[LyricsLine]) -> tuple[list[LyricsLine], int]:
    """
    Merge placeholder lines (empty or "♪") into their predecessor.

    The predecessor is extended over the placeholder and the same index is
    examined again, since the new successor may be a placeholder too.
    Returns the new list and the number of lines merged away.
    """
    out = list(lines)
    merged = 0

    # nothing to merge a leading placeholder into
    while out and is_placeholder(out[0].text):
        out.pop(0)
        merged += 1

    i = 0
    while i + 1 < len(out):
        cur, nxt = out[i], out[i + 1]
        if is_placeholder(nxt.text):
            new_end = nxt.end_ms if nxt.has_valid_end else nxt.start_ms
            out[i] = replace(cur, end_ms=max(cur.end_ms, new_end))
            del out[i + 1]
            merged += 1
            continue
        i += 1
    return out, merged


def _build(data: Any) -> tuple[LyricsDocument, LyricsParseStats]:
    if not isinstance(data, dict):
        raise MalformedLyrics("lyrics root must be an object")
    if data.get("error"):
        raise LyricsUnavailable("lyrics source reported an error")

    sync_type = str(data.get("syncType") or "LINE_SYNCED")
    if sync_type.upper() == "UNSYNCED":
        raise LyricsUnavailable("lyrics are not time-synced")

    raw_lines = data.get("lines")
    if not isinstance(raw_lines, list):
        raise MalformedLyrics("'lines' must be a list")

    lines: list[LyricsLine] = []
    for i, raw in enumerate(raw_lines):
        if not isinstance(raw, dict):
            raise MalformedLyrics(f"line {i}: expected an object")
        words = raw.get("words", "")
        if not isinstance(words, str):
            raise MalformedLyrics(f"line {i}: 'words' must be a string")
        lines.append(
            LyricsLine(
                start_ms=_parse_ms(raw.get("startTimeMs"), "startTimeMs", i),
                end_ms=_parse_ms(raw.get("endTimeMs", "0"), "endTimeMs", i),
                text=words,
            )
        )

    # stable: equal starts keep source order, first one wins
    lines.sort(key=lambda ln: ln.start_ms)
    unique: list[LyricsLine] = []
    for ln in lines:
        if unique and unique[-1].start_ms == ln.start_ms:
            continue
        unique.append(ln)
    dropped = len(lines) - len(unique)
    if dropped:
        logger.debug("Dropped %d lines with duplicate start times", dropped)

    fixed, merged = fix_end_times(unique)
    doc = LyricsDocument(lines=tuple(fixed), sync_type=sync_type)
    stats = LyricsParseStats(
        lines_raw=len(raw_lines),
        lines_total=len(doc.lines),
        placeholders_merged=merged,
        duplicates_dropped=dropped,
        sync_type=sync_type,
    )
    return doc, stats


def parse_lyrics_with_stats(text: str) -> tuple[LyricsDocument, LyricsParseStats]:
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        raise MalformedLyrics(f"invalid JSON: {e}") from e
    return _build(data)


def parse_lyrics(text: str) -> LyricsDocument:
    """
    Parse the lyrics JSON document:
    { "error": bool, "syncType": str,
      "lines": [{"startTimeMs": "1000", "endTimeMs": "0", "words": "..."}] }

    Raises LyricsUnavailable when the source flags an error, MalformedLyrics
    on bad JSON, schema or timestamps.
    """
    doc, _stats = parse_lyrics_with_stats(text)
    return doc


def load_lyrics(path: Path) -> LyricsDocument:
    try:
        text = path.read_text(encoding="utf-8")
    except FileNotFoundError as e:
        raise LyricsUnavailable(f"no lyrics file at {path}") from e
    except (OSError, UnicodeDecodeError) as e:
        raise MalformedLyrics(f"cannot read {path}: {e}") from e
    return parse_lyrics(text)
