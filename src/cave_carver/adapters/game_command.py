"""Boundary for game command transport integrations."""

from dataclasses import dataclass
from typing import Protocol


@dataclass(slots=True)
class MinescriptCommand:
    """Canonical command payload directed to the game integration layer."""

    command: str


class GameCommandAdapter(Protocol):
    """Interface to send commands to Minecraft via minescript."""

    def send(self, payload: MinescriptCommand) -> str | None:
        """Dispatch a command payload to the running game instance."""


class EchoGameCommandAdapter:
    """Fallback adapter for local CLI runs and tests; remembers what it was asked to do."""

    def __init__(self) -> None:
        self.sent: list[str] = []

    def send(self, payload: MinescriptCommand) -> str:
        self.sent.append(payload.command)
        return f"executed: {payload.command}"
