"""Fire-and-forget writer for the player's JSON IPC endpoint.

mpv exposes ``--input-ipc-server`` as a named pipe on Windows and as a Unix
domain socket elsewhere. Each command opens the endpoint, writes one message
and closes it again; no reply is read.
"""

from __future__ import annotations

import logging
import socket

from music_player.errors import ChannelDenied, ChannelError, ChannelUnavailable
from music_player.protocol import Command, encode

WINDOWS_PIPE_PREFIX = "\\\\.\\pipe\\"

_UNAVAILABLE_ERRORS = (FileNotFoundError, ConnectionRefusedError, TimeoutError)


def is_named_pipe(path: str) -> bool:
    return path.startswith(WINDOWS_PIPE_PREFIX)


class IpcControlChannel:
    """Writes encoded player commands to the IPC endpoint at ``path``."""

    def __init__(
        self,
        path: str,
        *,
        named_pipe: bool | None = None,
        timeout_seconds: float = 1.0,
        logger: logging.Logger | None = None,
    ) -> None:
        self.path = path
        self._named_pipe = is_named_pipe(path) if named_pipe is None else named_pipe
        self._timeout_seconds = timeout_seconds
        self._logger = logger or logging.getLogger("music_player.channel")

    def send(self, command: Command) -> None:
        """Deliver one command, raising ``ChannelError`` when the endpoint rejects it."""
        message = encode(command).encode("utf-8")
        try:
            if self._named_pipe:
                self._write_pipe(message)
            else:
                self._write_socket(message)
        except _UNAVAILABLE_ERRORS as exc:
            raise self._failure(ChannelUnavailable, command, exc) from exc
        except OSError as exc:
            raise self._failure(ChannelDenied, command, exc) from exc

        self._logger.debug("channel_sent", extra={"path": self.path, "command": type(command).__name__})

    def _write_pipe(self, message: bytes) -> None:
        with open(self.path, "r+b", buffering=0) as pipe:
            pipe.write(message)

    def _write_socket(self, message: bytes) -> None:
        with socket.socket(socket.AF_UNIX, socket.SOCK_STREAM) as sock:
            sock.settimeout(self._timeout_seconds)
            sock.connect(self.path)
            sock.sendall(message)

    def _failure(self, error_type: type[ChannelError], command: Command, exc: OSError) -> ChannelError:
        reason = exc.strerror or str(exc) or type(exc).__name__
        self._logger.debug(
            "channel_send_failed",
            extra={"path": self.path, "command": type(command).__name__, "reason": reason},
        )
        return error_type(self.path, reason)
