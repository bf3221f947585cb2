"""Request senders: who asked, what they may do, and where they stand."""

from __future__ import annotations

import logging
from typing import Callable, Protocol

from cave_carver.models import Anchor


class Actor(Protocol):
    """A request sender as seen by the dispatcher."""

    name: str

    def has_permission(self, capability: str) -> bool:
        ...

    def send_message(self, text: str) -> None:
        ...

    def resolve_anchor(self) -> Anchor | None:
        """Current position, or ``None`` for senders that cannot place caves."""


class ConsoleActor:
    """Server console: holds every capability but has no position."""

    name = "console"

    def __init__(self, logger: logging.Logger | None = None) -> None:
        self._logger = logger or logging.getLogger("cave_carver.console")
        self.messages: list[str] = []

    def has_permission(self, capability: str) -> bool:
        return True

    def send_message(self, text: str) -> None:
        self.messages.append(text)
        self._logger.info(text)

    def resolve_anchor(self) -> Anchor | None:
        return None


class PlayerActor:
    """Placement-capable actor with an explicit permission set."""

    def __init__(
        self,
        name: str,
        position: Callable[[], Anchor | None],
        *,
        permissions: set[str] | frozenset[str] = frozenset(),
        sink: Callable[[str], None] | None = None,
    ) -> None:
        self.name = name
        self._position = position
        self._permissions = frozenset(permissions)
        self._sink = sink
        self.messages: list[str] = []

    def has_permission(self, capability: str) -> bool:
        return capability in self._permissions

    def send_message(self, text: str) -> None:
        self.messages.append(text)
        if self._sink is not None:
            self._sink(text)

    def resolve_anchor(self) -> Anchor | None:
        return self._position()
