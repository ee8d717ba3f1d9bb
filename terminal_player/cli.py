from __future__ import annotations

from dataclasses import replace
from pathlib import Path

import typer

from terminal_player.app import play as play_session
from terminal_player.audio.errors import AudioError
from terminal_player.audio.info import SUPPORTED_FORMATS, audio_format, probe
from terminal_player.config import load_config, save_config_value
from terminal_player.logging_setup import setup_logging
from terminal_player.lyrics.errors import LyricsError
from terminal_player.lyrics.export import export_json, export_lrc, export_srt
from terminal_player.lyrics.parse import lyrics_path_for, parse_lyrics_with_stats
from terminal_player.render.ansi import AnsiRenderer, TerminalTooSmall


app = typer.Typer(no_args_is_help=True, add_completion=False)


def _fail(message: str) -> None:
    typer.echo(message, err=True)
    raise typer.Exit(code=1)


def _check_audio_path(file: Path) -> None:
    if not file.is_file():
        _fail(f"No such file: {file}")
    try:
        audio_format(file)
    except AudioError as e:
        _fail(f"{e}\nUsage: terminal-player play FILE\nSupported formats: {', '.join(s.upper() for s in SUPPORTED_FORMATS)}")


@app.command()
def play(
    file: Path = typer.Argument(..., help="Audio file (WAV, FLAC or OGG)"),
    debug: bool = typer.Option(False, "--debug", help="Enable debug logging"),
    tick_ms: int | None = typer.Option(None, "--tick-ms", help="Polling interval in milliseconds"),
    no_alt_screen: bool = typer.Option(False, "--no-alt-screen", help="Do not use alternate screen buffer"),
):
    """
    Play FILE and show its synced lyrics (FILE with a .json extension).
    """
    _check_audio_path(file)

    cfg = load_config()
    if tick_ms is not None:
        cfg = replace(cfg, tick_ms=tick_ms)
    if no_alt_screen:
        cfg = replace(cfg, use_alt_screen=False)

    setup_logging(debug, cfg.log_file)

    from terminal_player.audio.player import Player

    typer.echo("Launching...")
    try:
        # load everything before the UI comes up
        audio = probe(file)
        player = Player(file, volume=cfg.initial_volume, volume_step=cfg.volume_step)
    except AudioError as e:
        _fail(str(e))

    renderer = AnsiRenderer(use_alt_screen=cfg.use_alt_screen, min_size=(cfg.min_cols, cfg.min_rows))
    try:
        code = play_session(cfg, audio, player, renderer)
    except TerminalTooSmall as e:
        _fail(str(e))
    except KeyboardInterrupt:
        code = 130
    raise typer.Exit(code=code)


@app.command()
def info(file: Path):
    """Print audio file info and where lyrics are looked up."""
    _check_audio_path(file)
    try:
        audio = probe(file)
    except AudioError as e:
        _fail(str(e))
    lyrics_path = lyrics_path_for(file)
    typer.echo(f"title={audio.metadata.title}")
    typer.echo(f"album={audio.metadata.album}")
    typer.echo(f"artist={audio.metadata.artist}")
    typer.echo(f"length_s={audio.length_s:.2f}")
    typer.echo(f"quality={audio.quality}")
    typer.echo(f"lyrics={lyrics_path}{'' if lyrics_path.exists() else ' (missing)'}")


@app.command()
def lyrics(lyrics_path: Path):
    """Parse a lyrics JSON file and print stats."""
    text = lyrics_path.read_text(encoding="utf-8")
    try:
        doc, stats = parse_lyrics_with_stats(text)
    except LyricsError as e:
        _fail(f"{type(e).__name__}: {e}")
    typer.echo(f"sync_type={stats.sync_type}")
    typer.echo(f"lines_raw={stats.lines_raw}")
    typer.echo(f"lines_total={stats.lines_total}")
    typer.echo(f"placeholders_merged={stats.placeholders_merged}")
    typer.echo(f"duplicates_dropped={stats.duplicates_dropped}")
    typer.echo(f"lines_without_end={sum(1 for ln in doc.lines if not ln.has_valid_end)}")


@app.command()
def export(
    lyrics_path: Path,
    fmt: str = typer.Option("srt", "--format", case_sensitive=False, help="lrc|srt|json"),
    out: Path | None = typer.Option(None, "--out", help="Output file (default: stdout)"),
):
    """Export normalized lyrics to SRT/JSON/LRC."""
    text = lyrics_path.read_text(encoding="utf-8")
    try:
        doc, _stats = parse_lyrics_with_stats(text)
    except LyricsError as e:
        _fail(f"{type(e).__name__}: {e}")
    fmt_l = fmt.lower()
    if fmt_l == "json":
        data = export_json(doc)
    elif fmt_l == "lrc":
        data = export_lrc(doc)
    elif fmt_l == "srt":
        data = export_srt(doc)
    else:
        raise typer.BadParameter("format must be one of: lrc, srt, json")

    if out:
        out.write_text(data, encoding="utf-8")
    else:
        typer.echo(data, nl=False)


@app.command()
def config(
    name: str = typer.Argument(..., help="Setting name, e.g. scroll_pause_ms"),
    value: str = typer.Argument(..., help="New value"),
):
    """Persist a setting to config.json."""
    try:
        save_config_value(name, value)
    except KeyError:
        _fail(f"Unknown setting: {name}")
    typer.echo(f"{name}={value}")


def main() -> None:
    app()


if __name__ == "__main__":
    main()
