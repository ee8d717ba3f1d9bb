from __future__ import annotations

import json

from .model import LyricsDocument


def export_json(doc: LyricsDocument) -> str:
    # same schema the player reads, so exports can be fed back in
    return json.dumps(
        {
            "error": False,
            "syncType": doc.sync_type,
            "lines": [
                {"startTimeMs": str(ln.start_ms), "endTimeMs": str(ln.end_ms), "words": ln.text}
                for ln in doc.lines
            ],
        },
        ensure_ascii=False,
        indent=2,
    )


def _fmt_lrc_time(ms: int) -> str:
    m, rem = divmod(ms, 60_000)
    s, ms2 = divmod(rem, 1_000)
    # keep 2 decimals for compatibility
    return f"{m:02d}:{s:02d}.{ms2 // 10:02d}"


def export_lrc(doc: LyricsDocument) -> str:
    out = [f"[{_fmt_lrc_time(ln.start_ms)}]{ln.text}" for ln in doc.lines]
    return "\n".join(out) + ("\n" if out else "")


def _fmt_srt_time(ms: int) -> str:
    # HH:MM:SS,mmm
    h, rem = divmod(ms, 3_600_000)
    m, rem = divmod(rem, 60_000)
    s, ms2 = divmod(rem, 1_000)
    return f"{h:02d}:{m:02d}:{s:02d},{ms2:03d}"


def export_srt(doc: LyricsDocument, last_line_duration_ms: int = 2000) -> str:
    """
    Lines with a valid end keep it. Others end at the next start, and the
    last one at +last_line_duration_ms.
    """
    lines = doc.lines
    if not lines:
        return ""
    out: list[str] = []
    for i, ln in enumerate(lines):
        end = doc.end_of(i)
        if end == float("inf"):
            end = ln.start_ms + last_line_duration_ms
        out.append(str(i + 1))
        out.append(f"{_fmt_srt_time(ln.start_ms)} --> {_fmt_srt_time(int(end))}")
        out.append(ln.text)
        out.append("")
    return "\n".join(out)
