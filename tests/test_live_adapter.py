from __future__ import annotations

import sys
import types

import pytest

from cave_carver.adapters import EchoGameCommandAdapter, MinescriptCommand
from cave_carver.adapters.live_minecraft import MinescriptGameCommandAdapter, MinescriptUnavailableError
from cave_carver.models import BlockPosition
from cave_carver.world import CommandWorld


class _FakeMinescriptModule(types.SimpleNamespace):
    def __init__(self):
        super().__init__()
        self.calls: list[str] = []

    def execute(self, command: str) -> str:
        self.calls.append(command)
        return f"ok:{command}"


def test_minescript_adapter_dispatches_command(monkeypatch) -> None:
    fake = _FakeMinescriptModule()
    monkeypatch.setitem(sys.modules, "minescript", fake)

    adapter = MinescriptGameCommandAdapter(command_prefix="/")
    response = adapter.send(MinescriptCommand(command="setblock 1 2 3 minecraft:air"))

    assert response == "ok:/setblock 1 2 3 minecraft:air"
    assert fake.calls == ["/setblock 1 2 3 minecraft:air"]


def test_minescript_adapter_requires_the_module(monkeypatch) -> None:
    monkeypatch.setitem(sys.modules, "minescript", None)

    with pytest.raises(MinescriptUnavailableError, match="Unable to import"):
        MinescriptGameCommandAdapter()


def test_minescript_adapter_requires_a_command_api(monkeypatch) -> None:
    monkeypatch.setitem(sys.modules, "minescript", types.SimpleNamespace(version="4.0"))

    with pytest.raises(MinescriptUnavailableError, match="no supported API"):
        MinescriptGameCommandAdapter()


def test_command_world_clears_with_setblock() -> None:
    adapter = EchoGameCommandAdapter()
    world = CommandWorld(adapter, min_height=-64, max_height=320)

    world.clear_block(BlockPosition(-6, 62, -6))

    assert adapter.sent == ["setblock -6 62 -6 minecraft:air"]
    assert (world.min_height, world.max_height) == (-64, 320)
