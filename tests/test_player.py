from __future__ import annotations

import io

import pytest
from rich.console import Console

from music_player.controls import LoopExit
from music_player.errors import UpstreamError
from music_player.lookup import SongResult
from music_player.player import MusicPlayer
from music_player.protocol import Quit


class StubLookup:
    def __init__(self, results: list[SongResult]) -> None:
        self.results = results
        self.queries: list[str] = []

    def search(self, query: str) -> list[SongResult]:
        self.queries.append(query)
        return self.results


class StubResolver:
    def __init__(self, stream_url: str) -> None:
        self.stream_url = stream_url
        self.urls: list[str] = []

    def resolve(self, url: str) -> str:
        self.urls.append(url)
        return self.stream_url


class FakeSession:
    def __init__(self, ipc_path: str) -> None:
        self.ipc_path = ipc_path
        self.alive = True
        self.terminate_calls = 0

    def is_alive(self) -> bool:
        return self.alive

    def terminate(self) -> None:
        self.terminate_calls += 1
        self.alive = False

    def __enter__(self) -> FakeSession:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        if self.terminate_calls == 0:
            self.terminate()


class FakeSupervisor:
    def __init__(self) -> None:
        self.spawned: list[str] = []
        self.sessions: list[FakeSession] = []

    def spawn(self, source_url: str) -> FakeSession:
        self.spawned.append(source_url)
        session = FakeSession("/tmp/test-mpvsocket")
        self.sessions.append(session)
        return session


class RecordingChannel:
    def __init__(self, path: str, error: Exception | None = None) -> None:
        self.path = path
        self.error = error
        self.sent: list = []

    def send(self, command) -> None:
        self.sent.append(command)
        if self.error is not None:
            raise self.error


SONGS = [
    SongResult(video_id="abc123", title="One More Time", artist="Daft Punk"),
    SongResult(video_id="def456", title="Digital Love", artist="Daft Punk"),
    SongResult(video_id="ghi789", title="Aerodynamic", artist=None),
    SongResult(video_id="jkl000", title="Too Far Down", artist="Someone"),
]


def _player(lookup, resolver, supervisor, text: str, channels: list | None = None, channel_error=None):
    out = io.StringIO()
    channels = channels if channels is not None else []

    def _factory(path: str) -> RecordingChannel:
        channel = RecordingChannel(path, channel_error)
        channels.append(channel)
        return channel

    player = MusicPlayer(
        lookup=lookup,
        resolver=resolver,
        supervisor=supervisor,
        channel_factory=_factory,
        console=Console(file=out, highlight=False, width=120),
        input_stream=io.StringIO(text),
    )
    return player, out


def test_play_searches_resolves_spawns_and_quits() -> None:
    resolver = StubResolver("https://stream.example/audio")
    supervisor = FakeSupervisor()
    channels: list[RecordingChannel] = []
    player, out = _player(StubLookup(SONGS), resolver, supervisor, "q\n", channels)

    assert player.play("daft punk") is LoopExit.QUIT

    assert resolver.urls == ["https://www.youtube.com/watch?v=abc123"]
    assert supervisor.spawned == ["https://stream.example/audio"]
    assert channels[0].path == "/tmp/test-mpvsocket"
    assert channels[0].sent == [Quit()]
    assert supervisor.sessions[0].terminate_calls == 1

    output = out.getvalue()
    assert "Searching for: daft punk" in output
    assert "1. One More Time - Daft Punk" in output
    assert "3. Aerodynamic - Unknown" in output
    assert "Too Far Down" not in output
    assert "Found: One More Time (ID: abc123)" in output
    assert "p - pause/play" in output
    assert "[ - volume down" in output


def test_no_search_results_aborts_before_spawn() -> None:
    supervisor = FakeSupervisor()
    resolver = StubResolver("https://stream.example/audio")
    player, _ = _player(StubLookup([]), resolver, supervisor, "q\n")

    with pytest.raises(UpstreamError, match="No search results"):
        player.play("nothing")

    assert resolver.urls == []
    assert supervisor.spawned == []


def test_empty_stream_url_aborts_before_spawn() -> None:
    supervisor = FakeSupervisor()
    player, _ = _player(StubLookup(SONGS), StubResolver("  "), supervisor, "q\n")

    with pytest.raises(UpstreamError, match="stream URL"):
        player.play("daft punk")

    assert supervisor.spawned == []


def test_end_of_input_still_cleans_up_session() -> None:
    supervisor = FakeSupervisor()
    player, _ = _player(StubLookup(SONGS), StubResolver(""), supervisor, "p\n")

    assert player.play_url("https://stream.example/direct") is LoopExit.END_OF_INPUT
    assert supervisor.sessions[0].terminate_calls == 1


def test_unexpected_loop_error_still_cleans_up_session() -> None:
    supervisor = FakeSupervisor()
    player, _ = _player(
        StubLookup(SONGS),
        StubResolver(""),
        supervisor,
        "p\n",
        channel_error=RuntimeError("broken channel"),
    )

    with pytest.raises(RuntimeError):
        player.play_url("https://stream.example/direct")

    assert supervisor.sessions[0].terminate_calls == 1
