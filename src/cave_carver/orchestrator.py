"""Asynchronous orchestration of the external cave generator."""

from __future__ import annotations

import asyncio
import contextlib
import logging
import os
import re
import signal
from dataclasses import dataclass
from pathlib import Path
from uuid import uuid4

from cave_carver.actors import Actor
from cave_carver.errors import (
    CaveCarverError,
    DecodeError,
    MissingDependencyError,
    MissingOutputError,
    ProcessExitError,
)
from cave_carver.models import Anchor, CaveSample, GenerationJob, JobState, PlacementReport
from cave_carver.placement import PlacementEngine
from cave_carver.repository import SampleRepository
from cave_carver.world_queue import WorldTaskQueue

ACK_MESSAGE = "Generating a new AI cave, please wait..."
SUCCESS_MESSAGE = "New AI cave generated!"

_OUTPUT_CHUNK_SIZE = 1 << 16
_OUTPUT_LINE_LIMIT = 1 << 20
_LOGGED_LINE_LIMIT = 4096
_LINE_BREAK_RE = re.compile(rb"\r\n|\r|\n")


@dataclass(slots=True, frozen=True)
class GeneratorSpec:
    """Where the generator lives and how it is invoked."""

    executable: Path
    weights: Path
    output_dir: Path
    z_dim: int = 64
    timeout_seconds: float = 600.0
    kill_grace_seconds: float = 5.0
    output_prefix: str = "realtime_cave"

    @classmethod
    def from_settings(cls, settings) -> GeneratorSpec:
        root = Path(settings.generator_root)
        return cls(
            executable=root / settings.generator_executable,
            weights=root / settings.generator_weights,
            output_dir=Path(settings.library_dir),
            z_dim=settings.generator_z_dim,
            timeout_seconds=settings.generator_timeout_seconds,
            output_prefix=settings.realtime_output_prefix,
        )

    def output_path_for(self, job_id: str) -> Path:
        return self.output_dir / f"{self.output_prefix}_{job_id}.json"

    def check_dependencies(self) -> None:
        if not self.executable.is_file():
            raise MissingDependencyError(f"Generator executable not found at: {self.executable.resolve()}")
        if not self.weights.is_file():
            raise MissingDependencyError(
                f"Weights file not found at: {self.weights.resolve()}",
                user_message=f"Weights file not found. Check {self.weights}.",
            )

    def command(self, output_path: Path) -> list[str]:
        return [
            str(self.executable.resolve()),
            "--weights",
            str(self.weights.resolve()),
            "--z-dim",
            str(self.z_dim),
            "--num-samples",
            "1",
            "--out",
            str(output_path.resolve()),
        ]


class GenerationOrchestrator:
    """Runs generator jobs on asyncio tasks and hands results to the world task queue."""

    def __init__(
        self,
        spec: GeneratorSpec,
        *,
        repository: SampleRepository,
        placement: PlacementEngine,
        world_queue: WorldTaskQueue,
        max_jobs: int = 100,
        logger: logging.Logger | None = None,
        output_logger: logging.Logger | None = None,
    ) -> None:
        self._spec = spec
        self._repository = repository
        self._placement = placement
        self._world_queue = world_queue
        self._max_jobs = max_jobs
        self._logger = logger or logging.getLogger("cave_carver.orchestrator")
        self._output_logger = output_logger or logging.getLogger("cave_carver.generator")

        self._jobs: dict[str, GenerationJob] = {}
        self._tasks: set[asyncio.Task[None]] = set()

    @property
    def spec(self) -> GeneratorSpec:
        return self._spec

    def submit(self, actor: Actor, anchor: Anchor) -> GenerationJob:
        """Accept a generate-new request; call from the world-mutation owner.

        Raises ``MissingDependencyError`` after telling the actor when the
        generator or its weights are absent. No process is started in that case.
        """
        job_id = uuid4().hex
        job = GenerationJob(id=job_id, output_path=self._spec.output_path_for(job_id))
        self._remember(job)
        self._logger.info(
            "generation_submitted",
            extra={"job_id": job.id, "actor": actor.name, "anchor": anchor},
        )

        try:
            self._spec.check_dependencies()
        except MissingDependencyError as exc:
            job.fail(type(exc).__name__, str(exc))
            self._logger.error("%s", exc, extra={"job_id": job.id, "failure": job.failure})
            actor.send_message(exc.user_message)
            raise

        actor.send_message(ACK_MESSAGE)
        task = asyncio.create_task(self._run_job(job, actor, anchor), name=f"generation-{job.id}")
        self._tasks.add(task)
        task.add_done_callback(self._tasks.discard)
        return job

    def get_job(self, job_id: str) -> GenerationJob:
        if job_id not in self._jobs:
            raise KeyError(f"Unknown generation job id: {job_id}")
        return self._jobs[job_id]

    def list_recent_jobs(self, limit: int = 20) -> list[GenerationJob]:
        return sorted(self._jobs.values(), key=lambda job: job.submitted_at, reverse=True)[:limit]

    async def join(self) -> None:
        """Wait until every in-flight job has finished."""
        while self._tasks:
            await asyncio.gather(*list(self._tasks), return_exceptions=True)

    async def _run_job(self, job: GenerationJob, actor: Actor, anchor: Anchor) -> None:
        try:
            sample = await self._generate(job)
            report = await self._world_queue.submit(
                lambda: self._place_and_notify(actor, anchor, sample),
                name=f"place-{job.id}",
            )
            job.advance(JobState.PLACED)
            self._logger.info(
                "generation_placed",
                extra={"job_id": job.id, "sample_id": sample.sample_id, "cleared": report.cleared},
            )
        except CaveCarverError as exc:
            self._fail(job, actor, exc)
        except asyncio.CancelledError:
            job.fail("Cancelled", "Generation job was cancelled during shutdown")
            self._logger.warning("generation_cancelled", extra={"job_id": job.id})
            raise
        except Exception as exc:  # noqa: BLE001 - a broken job must never take the host down.
            self._logger.exception("generation_job_crashed", extra={"job_id": job.id})
            self._fail(job, actor, CaveCarverError(f"{type(exc).__name__}: {exc}"))
        finally:
            self._clean_up(job)

    async def _generate(self, job: GenerationJob) -> CaveSample:
        executable = self._spec.executable
        command = self._spec.command(job.output_path)
        job.output_path.parent.mkdir(parents=True, exist_ok=True)

        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                cwd=str(executable.resolve().parent),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.STDOUT,
                start_new_session=os.name == "posix",
            )
        except OSError as exc:
            raise ProcessExitError(f"Could not launch {executable}: {exc}") from exc

        job.advance(JobState.PROCESS_LAUNCHED)
        self._logger.info("generator_launched", extra={"job_id": job.id, "pid": process.pid, "command": command})

        try:
            exit_code = await asyncio.wait_for(self._stream_output(job, process), timeout=self._spec.timeout_seconds)
        except asyncio.TimeoutError:
            job.exit_code = await self._terminate(process)
            raise ProcessExitError(
                f"{executable.name} timed out after {self._spec.timeout_seconds}s and was killed",
                exit_code=job.exit_code,
                user_message="Failed to generate cave (generator timed out). Check server console.",
            ) from None
        except BaseException:
            await self._terminate(process)
            raise

        job.exit_code = exit_code
        if exit_code != 0:
            raise ProcessExitError(f"{executable.name} exited with code {exit_code}", exit_code=exit_code)
        job.advance(JobState.PROCESS_COMPLETED)

        if not job.output_path.exists():
            raise MissingOutputError(f"{executable.name} exited cleanly but {job.output_path} was not created")

        sample = await asyncio.to_thread(self._repository.decode_single, job.output_path)
        if sample is None:
            raise DecodeError(f"No cave sample could be decoded from {job.output_path}")
        job.advance(JobState.RESULT_DECODED)
        return sample

    async def _stream_output(self, job: GenerationJob, process: asyncio.subprocess.Process) -> int:
        # Fixed-size reads: progress bars may emit megabytes separated only by \r.
        assert process.stdout is not None
        pending = b""
        while chunk := await process.stdout.read(_OUTPUT_CHUNK_SIZE):
            *lines, pending = _LINE_BREAK_RE.split(pending + chunk)
            if len(pending) > _OUTPUT_LINE_LIMIT:
                lines.append(pending)
                pending = b""
            for raw in lines:
                self._log_output_line(job, raw)
        self._log_output_line(job, pending)
        return await process.wait()

    def _log_output_line(self, job: GenerationJob, raw: bytes) -> None:
        line = raw[:_LOGGED_LINE_LIMIT].decode("utf-8", errors="replace").rstrip()
        if line:
            self._output_logger.info("[%s] %s", self._spec.executable.name, line, extra={"job_id": job.id})

    async def _terminate(self, process: asyncio.subprocess.Process) -> int | None:
        """Kill the generator and everything it spawned; never waits longer than the grace period."""
        self._kill_process_tree(process)
        try:
            return await asyncio.wait_for(process.wait(), timeout=self._spec.kill_grace_seconds)
        except asyncio.TimeoutError:
            self._logger.warning("generator_kill_unconfirmed", extra={"pid": process.pid})

        # Something outside the process group still holds the pipe open.
        transport = getattr(process, "_transport", None)
        if transport is not None:
            transport.close()
        with contextlib.suppress(asyncio.TimeoutError):
            await asyncio.wait_for(process.wait(), timeout=self._spec.kill_grace_seconds)
        return process.returncode

    @staticmethod
    def _kill_process_tree(process: asyncio.subprocess.Process) -> None:
        with contextlib.suppress(ProcessLookupError, PermissionError):
            if os.name == "posix":
                # The group outlives its leader while any child still runs.
                os.killpg(process.pid, signal.SIGKILL)
            elif process.returncode is None:
                process.kill()

    def _place_and_notify(self, actor: Actor, anchor: Anchor, sample: CaveSample) -> PlacementReport:
        report = self._placement.place(anchor, sample)
        actor.send_message(SUCCESS_MESSAGE)
        return report

    def _fail(self, job: GenerationJob, actor: Actor, exc: CaveCarverError) -> None:
        job.fail(type(exc).__name__, str(exc))
        self._logger.error(
            "%s", exc, extra={"job_id": job.id, "failure": job.failure, "exit_code": job.exit_code}
        )
        notified = self._world_queue.submit(lambda: actor.send_message(exc.user_message), name=f"notify-{job.id}")
        notified.add_done_callback(lambda future: self._log_notify_failure(job, future))

    def _log_notify_failure(self, job: GenerationJob, future: asyncio.Future[None]) -> None:
        if future.cancelled() or future.exception() is None:
            return
        self._logger.error(
            "failure_notification_failed",
            exc_info=future.exception(),
            extra={"job_id": job.id, "failure": job.failure},
        )

    def _clean_up(self, job: GenerationJob) -> None:
        try:
            job.output_path.unlink(missing_ok=True)
        except OSError as exc:
            warning = f"Could not delete {job.output_path}: {exc}"
            job.warnings.append(warning)
            self._logger.warning(warning, extra={"job_id": job.id, "failure": "CleanupWarning"})

        if job.state is JobState.PLACED:
            job.advance(JobState.CLEANED_UP)
        self._logger.info("generation_finished", extra={"job_id": job.id, "state": job.state.value})

    def _remember(self, job: GenerationJob) -> None:
        self._jobs[job.id] = job
        if len(self._jobs) <= self._max_jobs:
            return
        for stale in [j for j in self.list_recent_jobs(limit=len(self._jobs))[self._max_jobs :] if j.done]:
            self._jobs.pop(stale.id, None)
