"""Encoding of player actions into mpv JSON IPC messages."""

from __future__ import annotations

import json
from dataclasses import dataclass
from typing import Union

MIN_VOLUME = 0
MAX_VOLUME = 150


@dataclass(frozen=True, slots=True)
class TogglePause:
    pass


@dataclass(frozen=True, slots=True)
class Seek:
    """Relative seek; negative ``delta`` moves backwards."""

    delta: int


@dataclass(frozen=True, slots=True)
class SetVolume:
    level: int

    def __post_init__(self) -> None:
        if not MIN_VOLUME <= self.level <= MAX_VOLUME:
            raise ValueError(f"Volume must be within {MIN_VOLUME}..{MAX_VOLUME}, got {self.level}")


@dataclass(frozen=True, slots=True)
class Quit:
    pass


Command = Union[TogglePause, Seek, SetVolume, Quit]


def command_args(command: Command) -> list[str | int]:
    """Return the mpv ``command`` array for a logical action."""
    if isinstance(command, TogglePause):
        return ["cycle", "pause"]
    if isinstance(command, Seek):
        return ["seek", int(command.delta), "relative"]
    if isinstance(command, SetVolume):
        return ["set_property", "volume", int(command.level)]
    if isinstance(command, Quit):
        return ["quit"]
    raise TypeError(f"Unsupported player command: {command!r}")


def encode(command: Command) -> str:
    """Serialize a command into one newline-terminated IPC message."""
    return json.dumps({"command": command_args(command)}) + "\n"
