"""Live Minecraft command adapter.

World mutations and position lookups go through minescript when the mod is
installed; tests substitute a fake module under the same import name.
"""

from __future__ import annotations

import importlib
from typing import Callable

from cave_carver.adapters.game_command import MinescriptCommand

_EXECUTOR_NAMES = ("execute", "run", "command", "chat_command")


class MinescriptUnavailableError(RuntimeError):
    """Raised when minescript is not installed or has no supported command API."""


class MinescriptGameCommandAdapter:
    """Sends commands through the first callable API found on the `minescript` module."""

    def __init__(self, command_prefix: str = "/", *, module_name: str = "minescript") -> None:
        self.command_prefix = command_prefix
        self._executor = self._resolve_executor(module_name)

    def send(self, payload: MinescriptCommand) -> str | None:
        command = payload.command
        if self.command_prefix and not command.startswith(self.command_prefix):
            command = self.command_prefix + command
        result = self._executor(command)
        return "" if result is None else str(result)

    @staticmethod
    def _resolve_executor(module_name: str) -> Callable[[str], str | None]:
        try:
            module = importlib.import_module(module_name)
        except Exception as exc:  # noqa: BLE001
            raise MinescriptUnavailableError(
                f"Unable to import {module_name}. Install it and ensure Minecraft + the mod are running."
            ) from exc

        executor = next(
            (fn for fn in (getattr(module, attr, None) for attr in _EXECUTOR_NAMES) if callable(fn)),
            None,
        )
        if executor is None:
            raise MinescriptUnavailableError(
                f"Imported {module_name} but found no supported API (expected {'/'.join(_EXECUTOR_NAMES)})."
            )
        return executor
