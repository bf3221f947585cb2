from __future__ import annotations

from cave_carver.adapters.game_command import MinescriptCommand
from cave_carver.game_state import PlayerPositionResolver, parse_position
from cave_carver.models import Anchor


class StubAdapter:
    def __init__(self, responses: dict[str, str] | None = None, fail: bool = False) -> None:
        self.responses = responses or {}
        self.fail = fail

    def send(self, payload: MinescriptCommand) -> str | None:
        if self.fail:
            raise RuntimeError("no game")
        return self.responses.get(payload.command)


def test_parse_position_variants() -> None:
    assert parse_position("Steve has the following entity data: [1.5d, 64.0d, -3.25d]") == Anchor(1.5, 64.0, -3.25)
    assert parse_position("[10, 70, 10]") == Anchor(10, 70, 10)
    assert parse_position("No entity was found") is None
    assert parse_position(None) is None


def test_resolver_queries_named_player() -> None:
    adapter = StubAdapter({"data get entity Alex Pos": "Alex has the following entity data: [0.0d, 64.0d, 0.0d]"})

    assert PlayerPositionResolver(adapter, "Alex").resolve() == Anchor(0.0, 64.0, 0.0)
    assert PlayerPositionResolver(adapter, "Steve").resolve() is None


def test_resolver_tolerates_dead_game() -> None:
    assert PlayerPositionResolver(StubAdapter(fail=True)).resolve() is None
