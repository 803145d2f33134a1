import pytest

from stepwise import ActionError, ExecutionManager, StepFailedError, UnknownRunError
from stepwise.persistence import InMemoryStateStore
from stepwise.utils import retry
from stepwise.utils.retry import compute_backoff, resume_until_complete


def test_compute_backoff_growth():
    first = compute_backoff(1, base=2, jitter=0)
    second = compute_backoff(2, base=2, jitter=0)
    assert second > first


def _flaky_manager(failures: int) -> ExecutionManager:
    remaining = {"n": failures}

    def flaky(ctx, input):
        if remaining["n"] > 0:
            remaining["n"] -= 1
            raise ActionError("not yet")
        return {"done": True}

    return ExecutionManager({"flaky": flaky}, InMemoryStateStore())


async def _failed_run(manager: ExecutionManager) -> str:
    with pytest.raises(StepFailedError) as exc_info:
        await manager.execute_event({}, ["flaky"])
    return exc_info.value.run_id


@pytest.mark.asyncio
async def test_resume_until_complete_counts_attempts(monkeypatch):
    sleeps = []

    async def fake_sleep(attempt):
        sleeps.append(attempt)

    monkeypatch.setattr(retry, "schedule_retry", fake_sleep)
    manager = _flaky_manager(failures=3)
    run_id = await _failed_run(manager)

    attempts = await resume_until_complete(manager, run_id, max_attempts=5, backoff=True)

    assert attempts == 3
    assert sleeps == [1, 2]
    assert (await manager.get_record(run_id)).completed is True


@pytest.mark.asyncio
async def test_resume_until_complete_reraises_last_error():
    manager = _flaky_manager(failures=10)
    run_id = await _failed_run(manager)

    with pytest.raises(StepFailedError):
        await resume_until_complete(manager, run_id, max_attempts=3)

    record = await manager.get_record(run_id)
    assert record.step(0).attempts == 4


@pytest.mark.asyncio
async def test_resume_until_complete_does_not_retry_unknown_run():
    manager = _flaky_manager(failures=0)

    with pytest.raises(UnknownRunError):
        await resume_until_complete(manager, "nope", max_attempts=5)


@pytest.mark.asyncio
async def test_resume_until_complete_validates_attempts():
    with pytest.raises(ValueError):
        await resume_until_complete(_flaky_manager(0), "x", max_attempts=0)
