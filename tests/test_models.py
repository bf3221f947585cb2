from __future__ import annotations

from pathlib import Path

import pytest

from cave_carver.models import GenerationJob, JobState


def _job() -> GenerationJob:
    return GenerationJob(id="abc", output_path=Path("realtime_cave_abc.json"))


def test_job_walks_success_path() -> None:
    job = _job()
    for state in (
        JobState.PROCESS_LAUNCHED,
        JobState.PROCESS_COMPLETED,
        JobState.RESULT_DECODED,
        JobState.PLACED,
    ):
        job.advance(state)
        assert not job.done

    job.advance(JobState.CLEANED_UP)
    assert job.done
    assert job.finished_at is not None


def test_job_rejects_skipped_states() -> None:
    job = _job()
    with pytest.raises(ValueError, match="Illegal transition"):
        job.advance(JobState.RESULT_DECODED)


def test_failed_job_is_terminal() -> None:
    job = _job()
    job.advance(JobState.PROCESS_LAUNCHED)
    job.fail("ProcessExitError", "exited with code 2")

    assert job.state is JobState.FAILED
    assert job.failure == "ProcessExitError"
    with pytest.raises(ValueError):
        job.advance(JobState.PROCESS_COMPLETED)
    with pytest.raises(ValueError):
        job.fail("DecodeError", "again")
