# tests/test_scheduler.py
from datetime import timedelta

from yieldpilot.jobs.scheduler import _run_rank, build_scheduler


def test_rank_job_registers_coroutine_directly():
    sched = build_scheduler(interval_minutes=15)
    job = sched.get_job("rank_recalculate")

    # awaited by the scheduler itself, so max_instances actually guards overlap
    assert job.func is _run_rank
    assert job.max_instances == 1
    assert job.coalesce is True
    assert job.trigger.interval == timedelta(minutes=15)
