"""Exception hierarchy for playback startup and interactive control."""

from __future__ import annotations


class MusicPlayerError(Exception):
    """Base exception for all music-player failures."""


class SpawnError(MusicPlayerError):
    """Raised when the external player cannot be started."""


class PlayerNotFoundError(SpawnError):
    """Raised when the player binary is not installed or not on PATH."""

    def __init__(self, binary: str) -> None:
        self.binary = binary
        super().__init__(f"Player binary not found: {binary}")


class ProcessExitedEarly(SpawnError):
    """Raised when the player dies during the settle interval after spawn."""

    def __init__(self, status: int, output: str = "") -> None:
        self.status = status
        self.output = output
        message = f"mpv exited early with status: {status}"
        if output:
            message = f"{message}\n{output}"
        super().__init__(message)


class ChannelError(MusicPlayerError):
    """Raised when a command cannot be written to the control channel."""

    def __init__(self, path: str, reason: str) -> None:
        self.path = path
        self.reason = reason
        super().__init__(f"Failed to reach control channel {path}: {reason}")


class ChannelUnavailable(ChannelError):
    """The endpoint does not exist yet or refuses connections; retrying may work."""


class ChannelDenied(ChannelError):
    """The endpoint exists but the OS rejected the write."""


class ParseError(MusicPlayerError):
    """Raised for operator input that maps to no action."""

    def __init__(self, text: str) -> None:
        self.text = text
        super().__init__(f"Unknown command: {text}")


class UpstreamError(MusicPlayerError):
    """Raised when song lookup or stream resolution yields nothing usable."""
