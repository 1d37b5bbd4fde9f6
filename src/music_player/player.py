"""Playback startup sequence: search, resolve, spawn, then hand over to the controls."""

from __future__ import annotations

import logging
from typing import Callable, TextIO

from rich.console import Console
from rich.markup import escape

from .channel import IpcControlChannel
from .controls import CONTROLS_HELP, ControlChannel, InteractiveLoop, LoopExit, VolumeState
from .errors import UpstreamError
from .lookup import SongLookup, SongResult, StreamResolver, watch_url
from .supervisor import PlayerSupervisor


class MusicPlayer:
    def __init__(
        self,
        *,
        lookup: SongLookup,
        resolver: StreamResolver,
        supervisor: PlayerSupervisor,
        channel_factory: Callable[[str], ControlChannel] = IpcControlChannel,
        console: Console | None = None,
        input_stream: TextIO | None = None,
        initial_volume: int = 100,
        preview_count: int = 3,
        logger: logging.Logger | None = None,
    ) -> None:
        self.lookup = lookup
        self.resolver = resolver
        self.supervisor = supervisor
        self._channel_factory = channel_factory
        self._console = console or Console(highlight=False)
        self._input_stream = input_stream
        self._initial_volume = initial_volume
        self._preview_count = preview_count
        self._logger = logger or logging.getLogger("music_player.player")

    def find_song(self, query: str) -> SongResult:
        self._console.print(f"Searching for: {escape(query)}")
        results = self.lookup.search(query)
        if not results:
            raise UpstreamError("No search results found")

        self._console.print("Search results:")
        for index, song in enumerate(results[: self._preview_count], start=1):
            self._console.print(f"  {index}. {escape(song.title)} - {escape(song.artist or 'Unknown')}")

        song = results[0]
        self._console.print(f"Found: {escape(song.title)} (ID: {escape(song.video_id)})")
        return song

    def resolve_stream(self, song: SongResult) -> str:
        stream_url = self.resolver.resolve(watch_url(song.video_id)).strip()
        if not stream_url:
            raise UpstreamError("Failed to get stream URL")
        return stream_url

    def play(self, query: str) -> LoopExit:
        """Search for ``query``, then play the best match until the loop ends."""
        song = self.find_song(query)
        return self.play_url(self.resolve_stream(song))

    def play_url(self, stream_url: str) -> LoopExit:
        """Play an already resolved stream URL under interactive control."""
        if not stream_url or not stream_url.strip():
            raise UpstreamError("Failed to get stream URL")

        self._console.print("Starting playback...")
        session = self.supervisor.spawn(stream_url)
        with session:
            self._console.print()
            for line in CONTROLS_HELP:
                self._console.print(escape(line))
            self._console.print()

            loop = InteractiveLoop(
                session,
                self._channel_factory(session.ipc_path),
                input_stream=self._input_stream,
                console=self._console,
                volume=VolumeState(level=self._initial_volume),
            )
            outcome = loop.run()

        self._logger.info("playback_ended", extra={"reason": outcome.value})
        return outcome
