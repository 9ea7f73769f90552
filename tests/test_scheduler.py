import pytest

from warning_tracker.escalation.infrastructure import EscalationScheduler
from warning_tracker.escalation.infrastructure.scheduler import JOB_ID


@pytest.mark.asyncio
async def test_start_registers_single_interval_job():
    async def check():
        return None

    scheduler = EscalationScheduler(interval_seconds=300)
    await scheduler.start(check)
    try:
        assert scheduler.is_running
        job = scheduler._scheduler.get_job(JOB_ID)
        assert job.max_instances == 1
        assert job.coalesce is True
        assert job.trigger.interval.total_seconds() == 300
    finally:
        await scheduler.stop()

    assert not scheduler.is_running


@pytest.mark.asyncio
async def test_stop_without_start_is_noop():
    await EscalationScheduler(interval_seconds=60).stop()


def test_interval_must_be_positive():
    with pytest.raises(ValueError):
        EscalationScheduler(interval_seconds=0)
