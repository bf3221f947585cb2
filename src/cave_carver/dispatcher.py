"""Maps cave commands onto the repository, orchestrator and placement engine."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from pathlib import Path

from cave_carver.actors import Actor
from cave_carver.errors import EmptyLibraryError, MissingDependencyError
from cave_carver.orchestrator import GenerationOrchestrator
from cave_carver.placement import PlacementEngine
from cave_carver.repository import SampleRepository

PLAYERS_ONLY_MESSAGE = "Only players may use this command."
NO_RELOAD_PERMISSION_MESSAGE = "You don't have permission to reload caves."


class CaveCommandDispatcher:
    """Handles ``reload``, ``new`` and the bare random-placement request.

    Every call is expected on the world-mutation owner.
    """

    def __init__(
        self,
        *,
        repository: SampleRepository,
        orchestrator: GenerationOrchestrator,
        placement: PlacementEngine,
        library_dir: str | Path,
        reload_permission: str = "caves.reload",
        logger: logging.Logger | None = None,
    ) -> None:
        self._repository = repository
        self._orchestrator = orchestrator
        self._placement = placement
        self._library_dir = Path(library_dir)
        self._reload_permission = reload_permission
        self._logger = logger or logging.getLogger("cave_carver.dispatcher")

    def dispatch(self, actor: Actor, args: Sequence[str] = ()) -> bool:
        subcommand = args[0].lower() if args else ""
        self._logger.debug("dispatch", extra={"actor": actor.name, "subcommand": subcommand or "random"})
        if subcommand == "reload":
            self.reload(actor)
        elif subcommand == "new":
            self.generate_new(actor)
        else:
            self.generate_random(actor)
        return True

    def reload(self, actor: Actor) -> int | None:
        if not actor.has_permission(self._reload_permission):
            actor.send_message(NO_RELOAD_PERMISSION_MESSAGE)
            return None

        count = self._repository.load_directory(self._library_dir)
        if count == 0:
            actor.send_message("Reloaded caves, but no samples were found. Check your JSON files.")
        else:
            actor.send_message(f"Reloaded {count} cave samples.")
        return count

    def generate_new(self, actor: Actor) -> None:
        anchor = actor.resolve_anchor()
        if anchor is None:
            actor.send_message(PLAYERS_ONLY_MESSAGE)
            return
        try:
            self._orchestrator.submit(actor, anchor)
        except MissingDependencyError:
            # Already logged and reported to the actor by the orchestrator.
            return

    def generate_random(self, actor: Actor) -> None:
        anchor = actor.resolve_anchor()
        if anchor is None:
            actor.send_message(PLAYERS_ONLY_MESSAGE)
            return

        sample = self._repository.pick_random()
        if sample is None:
            error = EmptyLibraryError("Random placement requested but the sample library is empty")
            self._logger.warning("%s", error, extra={"actor": actor.name, "failure": type(error).__name__})
            actor.send_message(error.user_message)
            return

        self._placement.place(anchor, sample)
        actor.send_message("Cave generated!")
