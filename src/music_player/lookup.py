"""Song search and stream resolution backed by the ``yt-dlp`` command-line tool.

Both collaborators shell out to ``yt-dlp`` instead of importing it, so the
binary only needs to be on PATH (or configured via ``MUSIC_PLAYER_RESOLVER_BINARY``).
"""

from __future__ import annotations

import json
import logging
import subprocess
from dataclasses import dataclass
from typing import Protocol, Sequence

from music_player.errors import UpstreamError

WATCH_URL_TEMPLATE = "https://www.youtube.com/watch?v={video_id}"
COMMON_FLAGS = ("--ignore-config", "--no-cache-dir")


@dataclass(frozen=True, slots=True)
class SongResult:
    video_id: str
    title: str
    artist: str | None = None


class SongLookup(Protocol):
    def search(self, query: str) -> list[SongResult]:
        """Return matching songs, best match first."""


class StreamResolver(Protocol):
    def resolve(self, url: str) -> str:
        """Return one directly playable URL, or an empty string on failure."""


def watch_url(video_id: str) -> str:
    return WATCH_URL_TEMPLATE.format(video_id=video_id)


class YtDlpSongLookup:
    """Runs a ``ytsearchN:`` query and reads one JSON entry per output line."""

    def __init__(
        self,
        binary: str | Sequence[str] = "yt-dlp",
        *,
        limit: int = 3,
        logger: logging.Logger | None = None,
    ) -> None:
        self._command = [binary] if isinstance(binary, str) else list(binary)
        self._limit = max(1, limit)
        self._logger = logger or logging.getLogger("music_player.lookup")

    def search(self, query: str) -> list[SongResult]:
        query = " ".join(query.split())
        if not query:
            raise UpstreamError("A search query is required")

        cmd = [*self._command, *COMMON_FLAGS, "--flat-playlist", "--dump-json", f"ytsearch{self._limit}:{query}"]
        try:
            result = subprocess.run(cmd, check=True, text=True, capture_output=True)
        except FileNotFoundError as exc:
            raise UpstreamError(f"Search tool not found: {self._command[0]}") from exc
        except subprocess.CalledProcessError as exc:
            self._logger.warning("song_search_failed", extra={"returncode": exc.returncode, "stderr": exc.stderr})
            raise UpstreamError(f"Song search failed with status: {exc.returncode}") from exc

        songs: list[SongResult] = []
        for line in result.stdout.splitlines():
            if not line.strip():
                continue
            try:
                payload = json.loads(line)
            except json.JSONDecodeError:
                self._logger.warning("song_search_unparsable_line", extra={"line": line[:200]})
                continue
            if not isinstance(payload, dict) or not payload.get("id"):
                continue

            video_id = str(payload["id"])
            songs.append(
                SongResult(
                    video_id=video_id,
                    title=str(payload.get("title") or video_id),
                    artist=payload.get("channel") or payload.get("uploader"),
                )
            )

        self._logger.info("song_search_completed", extra={"query": query, "result_count": len(songs)})
        return songs


class YtDlpStreamResolver:
    """Asks ``yt-dlp -g`` for the best audio-only stream of a watch URL."""

    def __init__(
        self,
        binary: str | Sequence[str] = "yt-dlp",
        *,
        audio_format: str = "bestaudio",
        logger: logging.Logger | None = None,
    ) -> None:
        self._command = [binary] if isinstance(binary, str) else list(binary)
        self._audio_format = audio_format
        self._logger = logger or logging.getLogger("music_player.lookup")

    def resolve(self, url: str) -> str:
        cmd = [*self._command, *COMMON_FLAGS, "-f", self._audio_format, "-g", url]
        try:
            result = subprocess.run(cmd, check=False, text=True, capture_output=True)
        except FileNotFoundError:
            self._logger.error("stream_resolver_missing", extra={"binary": self._command[0]})
            return ""

        if result.returncode != 0:
            self._logger.error(
                "stream_resolution_failed",
                extra={"url": url, "returncode": result.returncode, "stderr": result.stderr.strip()},
            )
            return ""

        lines = result.stdout.splitlines()
        return lines[0].strip() if lines else ""
