"""CLI startup entrypoint for the music player."""

from __future__ import annotations

import typer
from rich import print
from rich.markup import escape

from music_player.config import settings
from music_player.errors import SpawnError, UpstreamError
from music_player.lookup import YtDlpSongLookup, YtDlpStreamResolver
from music_player.player import MusicPlayer
from music_player.supervisor import PlayerSupervisor
from music_player.telemetry import configure_logging

app = typer.Typer(help="Play music from YouTube through mpv")


def _build_player() -> MusicPlayer:
    configure_logging(settings.log_level)
    return MusicPlayer(
        lookup=YtDlpSongLookup(settings.resolver_binary, limit=settings.search_results),
        resolver=YtDlpStreamResolver(settings.resolver_binary),
        supervisor=PlayerSupervisor(
            settings.player_binary,
            ipc_path=settings.ipc_path,
            settle_seconds=settings.settle_seconds,
            quit_grace_seconds=settings.quit_grace_seconds,
        ),
        initial_volume=settings.initial_volume,
        preview_count=settings.search_results,
    )


def _fail(prefix: str, exc: Exception) -> None:
    print(f"[red]{prefix}:[/red] {escape(str(exc))}")
    raise typer.Exit(code=1)


@app.command()
def play(song: str = typer.Argument(..., help="Free-text song query")) -> None:
    """Search for a song and play the best match."""
    player = _build_player()
    try:
        player.play(song)
    except UpstreamError as exc:
        _fail("Error", exc)
    except SpawnError as exc:
        _fail("Failed to start mpv", exc)


@app.command("play-url")
def play_url(url: str = typer.Argument(..., help="Directly playable stream URL")) -> None:
    """Play an already resolved stream URL."""
    player = _build_player()
    try:
        player.play_url(url)
    except UpstreamError as exc:
        _fail("Error", exc)
    except SpawnError as exc:
        _fail("Failed to start mpv", exc)


if __name__ == "__main__":
    app()
