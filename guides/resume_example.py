"""Run a flaky workflow against SQLite and resume it until it completes."""

import asyncio
import tempfile
from pathlib import Path

from demo_actions import REGISTRY

from stepwise import ExecutionManager, StepFailedError
from stepwise.persistence import SQLiteStateStore
from stepwise.utils.retry import resume_until_complete


async def main():
    db_path = Path(tempfile.mkdtemp()) / "runs.db"
    manager = ExecutionManager(REGISTRY, SQLiteStateStore(db_path))

    event = {
        "print": {"name": "first"},
        "add_random_value": {"name": "second"},
        "fail_random": {"random": True},
        "other": "some other info",
    }

    try:
        run_id = await manager.execute_event(
            event, ["print", "add_random_value", "fail_random"]
        )
        print(f"Run {run_id} completed on the first try")
        return
    except StepFailedError as exc:
        print(f"Run {exc.run_id} failed at step {exc.step}: {exc}")
        run_id = exc.run_id

    # a brand new manager over the same database simulates a restarted process
    restarted = ExecutionManager(REGISTRY, SQLiteStateStore(db_path))
    attempts = await resume_until_complete(restarted, run_id, max_attempts=100)
    record = await restarted.get_record(run_id)
    print(f"Run {run_id} {record.status} after {attempts} resume(s)")
    for action, state in zip(record.actions, record.action_states):
        print(f"  {action}: {state.status.value} attempts={state.attempts} output={state.output}")


if __name__ == "__main__":
    asyncio.run(main())
