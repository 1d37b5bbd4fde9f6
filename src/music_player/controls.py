"""Line-oriented operator controls for a running player session."""

from __future__ import annotations

import logging
import sys
from dataclasses import dataclass
from enum import Enum
from typing import Protocol, TextIO

from rich.console import Console
from rich.markup import escape

from music_player.errors import ChannelError, ParseError
from music_player.protocol import MAX_VOLUME, MIN_VOLUME, Command, Quit, Seek, SetVolume, TogglePause

CONTROLS_HELP = (
    "Controls:",
    "  p - pause/play",
    "  f - forward 10s",
    "  b - backward 10s",
    "  ] - volume up",
    "  [ - volume down",
    "  q - quit",
)


class LoopState(str, Enum):
    IDLE = "idle"
    DISPATCHING = "dispatching"
    EXITED = "exited"


class LoopExit(str, Enum):
    """Why the control loop stopped."""

    QUIT = "quit"
    PLAYBACK_FINISHED = "playback_finished"
    END_OF_INPUT = "end_of_input"


class OperatorAction(str, Enum):
    TOGGLE_PAUSE = "p"
    SEEK_FORWARD = "f"
    SEEK_BACKWARD = "b"
    VOLUME_UP = "]"
    VOLUME_DOWN = "["
    QUIT = "q"
    NOOP = ""


def parse_action(line: str) -> OperatorAction:
    """Map one input line to an action, raising ``ParseError`` for anything unknown."""
    text = line.strip()
    try:
        return OperatorAction(text)
    except ValueError:
        raise ParseError(text) from None


@dataclass(slots=True)
class VolumeState:
    """Operator-side volume; the player itself is never queried."""

    level: int = 100
    step: int = 10

    def __post_init__(self) -> None:
        self.level = self._clamp(self.level)

    def up(self) -> int:
        self.level = self._clamp(self.level + self.step)
        return self.level

    def down(self) -> int:
        self.level = self._clamp(self.level - self.step)
        return self.level

    @staticmethod
    def _clamp(level: int) -> int:
        return max(MIN_VOLUME, min(MAX_VOLUME, level))


class SupervisedSession(Protocol):
    def is_alive(self) -> bool: ...

    def terminate(self) -> None: ...


class ControlChannel(Protocol):
    def send(self, command: Command) -> None: ...


class InteractiveLoop:
    """Reads operator lines and dispatches player commands one at a time."""

    def __init__(
        self,
        session: SupervisedSession,
        channel: ControlChannel,
        *,
        input_stream: TextIO | None = None,
        console: Console | None = None,
        volume: VolumeState | None = None,
        seek_seconds: int = 10,
        logger: logging.Logger | None = None,
    ) -> None:
        self._session = session
        self._channel = channel
        self._input = input_stream or sys.stdin
        self._console = console or Console(highlight=False)
        self._volume = volume or VolumeState()
        self._seek_seconds = seek_seconds
        self._logger = logger or logging.getLogger("music_player.controls")
        self._state = LoopState.IDLE

    @property
    def state(self) -> LoopState:
        return self._state

    @property
    def volume(self) -> VolumeState:
        return self._volume

    def run(self) -> LoopExit:
        """Drive the session until quit, playback end, or end of input."""
        while True:
            outcome = self.step()
            if outcome is not None:
                self._logger.info("control_loop_exited", extra={"reason": outcome.value})
                return outcome

    def step(self) -> LoopExit | None:
        """Run one iteration; returns the exit reason once the loop is done."""
        if self._state is LoopState.EXITED:
            raise RuntimeError("Control loop has already exited")

        if not self._session.is_alive():
            return self._finish()

        line = self._input.readline()
        if not line:
            self._state = LoopState.EXITED
            return LoopExit.END_OF_INPUT

        try:
            action = parse_action(line)
        except ParseError as exc:
            self._console.print(escape(str(exc)))
            return None

        if action is OperatorAction.NOOP:
            return None

        # The player may have exited while we were blocked on input.
        if not self._session.is_alive():
            return self._finish()

        if action is OperatorAction.QUIT:
            return self._quit()

        command, feedback = self._command_for(action)
        self._dispatch(command, feedback)
        return None

    def _command_for(self, action: OperatorAction) -> tuple[Command, str]:
        if action is OperatorAction.TOGGLE_PAUSE:
            return TogglePause(), "Toggled pause"
        if action is OperatorAction.SEEK_FORWARD:
            return Seek(self._seek_seconds), f"Seeked forward {self._seek_seconds}s"
        if action is OperatorAction.SEEK_BACKWARD:
            return Seek(-self._seek_seconds), f"Seeked backward {self._seek_seconds}s"
        if action is OperatorAction.VOLUME_UP:
            level = self._volume.up()
            return SetVolume(level), f"Volume: {level}%"
        if action is OperatorAction.VOLUME_DOWN:
            level = self._volume.down()
            return SetVolume(level), f"Volume: {level}%"
        raise ValueError(f"No player command for action {action!r}")

    def _dispatch(self, command: Command, feedback: str) -> None:
        self._state = LoopState.DISPATCHING
        try:
            self._channel.send(command)
        except ChannelError as exc:
            self._report(exc)
        else:
            self._console.print(feedback)
        finally:
            self._state = LoopState.IDLE

    def _quit(self) -> LoopExit:
        self._state = LoopState.DISPATCHING
        self._console.print("Stopping...")
        try:
            self._channel.send(Quit())
        except ChannelError as exc:
            self._report(exc)
        finally:
            self._session.terminate()
            self._state = LoopState.EXITED
        return LoopExit.QUIT

    def _finish(self) -> LoopExit:
        self._console.print("Playback finished!")
        self._state = LoopState.EXITED
        return LoopExit.PLAYBACK_FINISHED

    def _report(self, exc: ChannelError) -> None:
        self._logger.info("command_dispatch_failed", extra={"error_type": type(exc).__name__})
        self._console.print(f"[red]Error:[/red] {escape(str(exc))}")
