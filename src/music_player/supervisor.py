"""Spawning and lifetime management of the external mpv process."""

from __future__ import annotations

import logging
import subprocess
import tempfile
import time
from pathlib import Path
from typing import Callable, Sequence

from music_player.errors import PlayerNotFoundError, ProcessExitedEarly, SpawnError

PLAYER_FLAGS = ("--no-video", "--force-window=no")


class PlayerSession:
    """Owns one spawned player process and the IPC path it listens on.

    Use as a context manager: leaving the block always terminates the process,
    whichever way the block is left.
    """

    def __init__(
        self,
        process: subprocess.Popen,
        ipc_path: str,
        *,
        output_path: Path | None = None,
        quit_grace_seconds: float = 0.1,
        kill_timeout_seconds: float = 2.0,
        sleep: Callable[[float], None] = time.sleep,
        logger: logging.Logger | None = None,
    ) -> None:
        self._process = process
        self.ipc_path = ipc_path
        self._output_path = output_path
        self._quit_grace_seconds = quit_grace_seconds
        self._kill_timeout_seconds = kill_timeout_seconds
        self._sleep = sleep
        self._logger = logger or logging.getLogger("music_player.supervisor")
        self._terminated = False

    @property
    def pid(self) -> int:
        return self._process.pid

    @property
    def returncode(self) -> int | None:
        return self._process.poll()

    @property
    def terminated(self) -> bool:
        return self._terminated

    def is_alive(self) -> bool:
        """Poll the process without waiting for it."""
        return self._process.poll() is None

    def captured_output(self, max_chars: int = 2_000) -> str:
        """Return the tail of everything the player wrote to stdout/stderr."""
        if self._output_path is None or not self._output_path.exists():
            return ""
        text = self._output_path.read_text(encoding="utf-8", errors="replace").strip()
        return text[-max_chars:]

    def terminate(self, *, wait_for_quit: bool = True) -> None:
        """Stop the player if it still runs. Safe to call any number of times.

        With ``wait_for_quit=False`` the process is killed without the grace interval.
        """
        if self._terminated:
            return
        self._terminated = True

        try:
            if wait_for_quit and self.is_alive():
                # Give a protocol-level quit sent just before this a chance to land.
                self._sleep(self._quit_grace_seconds)
            if self.is_alive():
                self._process.kill()
                self._logger.info("player_killed", extra={"pid": self.pid})
            self._process.wait(timeout=self._kill_timeout_seconds)
        except (OSError, subprocess.TimeoutExpired) as exc:
            self._logger.debug("player_terminate_ignored", extra={"pid": self.pid, "error": repr(exc)})
        finally:
            self._discard_output()

        self._logger.info("player_stopped", extra={"pid": self.pid, "returncode": self._process.returncode})

    def _discard_output(self) -> None:
        if self._output_path is None:
            return
        try:
            self._output_path.unlink(missing_ok=True)
        except OSError:
            pass
        self._output_path = None

    def __enter__(self) -> PlayerSession:
        return self

    def __exit__(self, exc_type, exc, tb) -> None:
        self.terminate()


class PlayerSupervisor:
    """Launches mpv in audio-only mode with its JSON IPC server enabled."""

    def __init__(
        self,
        player: str | Sequence[str] = "mpv",
        *,
        ipc_path: str,
        settle_seconds: float = 1.0,
        quit_grace_seconds: float = 0.1,
        sleep: Callable[[float], None] = time.sleep,
        logger: logging.Logger | None = None,
    ) -> None:
        self._player = [player] if isinstance(player, str) else list(player)
        self.ipc_path = ipc_path
        self._settle_seconds = settle_seconds
        self._quit_grace_seconds = quit_grace_seconds
        self._sleep = sleep
        self._logger = logger or logging.getLogger("music_player.supervisor")

    def build_args(self, source_url: str) -> list[str]:
        return [*self._player, *PLAYER_FLAGS, f"--input-ipc-server={self.ipc_path}", source_url]

    def spawn(self, source_url: str) -> PlayerSession:
        """Start the player on ``source_url`` and fail fast if it dies while settling."""
        if not source_url or not source_url.strip():
            raise SpawnError("A playable stream URL is required")

        args = self.build_args(source_url.strip())
        with tempfile.NamedTemporaryFile(prefix="mpv-", suffix=".log", delete=False) as output:
            output_path = Path(output.name)
            try:
                process = subprocess.Popen(
                    args,
                    stdin=subprocess.DEVNULL,
                    stdout=output,
                    stderr=subprocess.STDOUT,
                )
            except FileNotFoundError as exc:
                output_path.unlink(missing_ok=True)
                raise PlayerNotFoundError(self._player[0]) from exc
            except OSError as exc:
                output_path.unlink(missing_ok=True)
                raise SpawnError(f"Failed to start {self._player[0]}: {exc}") from exc

        session = PlayerSession(
            process,
            self.ipc_path,
            output_path=output_path,
            quit_grace_seconds=self._quit_grace_seconds,
            sleep=self._sleep,
            logger=self._logger,
        )
        self._logger.info("player_spawned", extra={"pid": process.pid, "ipc_path": self.ipc_path})

        try:
            # No readiness handshake exists; mpv gets a fixed interval to create the endpoint.
            self._sleep(self._settle_seconds)
            status = process.poll()
        except BaseException:
            session.terminate(wait_for_quit=False)
            raise

        if status is not None:
            output_text = session.captured_output()
            session.terminate()
            self._logger.warning("player_exited_early", extra={"pid": process.pid, "returncode": status})
            raise ProcessExitedEarly(status, output_text)

        return session
