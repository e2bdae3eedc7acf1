from unittest.mock import MagicMock, patch

import pytest
import schedule

from jobs import scheduled_tasks

pytestmark = pytest.mark.unit


@patch("jobs.scheduled_tasks.schedule")
def test_init(schedule_mock):
    """Test that init schedules the maintenance jobs at the configured interval."""
    service = MagicMock()

    scheduled_tasks.init(service, interval_seconds=15)

    schedule_mock.every.assert_any_call(15)
    schedule_mock.every.assert_any_call(scheduled_tasks.HEARTBEAT_MINUTES)

    seconds_do_calls = [
        c for c in schedule_mock.mock_calls if c[0].endswith(".seconds.do")
    ]
    assert len(seconds_do_calls) == 3
    for _name, _args, kwargs in seconds_do_calls:
        assert kwargs == {"service": service}

    minutes_do_calls = [
        c for c in schedule_mock.mock_calls if c[0].endswith(".minutes.do")
    ]
    assert len(minutes_do_calls) == 1
    assert minutes_do_calls[0][2] == {"service": service}


def test_init_and_clear_real_scheduler():
    service = MagicMock()
    schedule.clear()

    scheduled_tasks.init(service, interval_seconds=30)
    assert len(schedule.get_jobs(scheduled_tasks.JOB_TAG)) == 4

    scheduled_tasks.clear()
    assert schedule.get_jobs(scheduled_tasks.JOB_TAG) == []


def test_reap_expired_leases():
    service = MagicMock()
    service.reap_expired_leases.return_value = 2

    assert scheduled_tasks.reap_expired_leases(service) == 2


def test_purge_idempotency_records():
    service = MagicMock()
    service.purge_idempotency_records.return_value = 0

    assert scheduled_tasks.purge_idempotency_records(service) == 0


def test_purge_status_records():
    service = MagicMock()
    service.purge_status_records.return_value = 5

    assert scheduled_tasks.purge_status_records(service) == 5


@patch("jobs.scheduled_tasks.logger")
def test_safe_run_logs_and_swallows(mock_logger):
    def failing_job(service):
        raise RuntimeError("store down")

    result = scheduled_tasks.safe_run(failing_job)(service=MagicMock())

    assert result is None
    mock_logger.error.assert_called_once_with(
        "scheduled_job_failed", job="failing_job", error="store down"
    )


def test_safe_run_keeps_job_name():
    assert scheduled_tasks.safe_run(scheduled_tasks.purge_status_records).__name__ == (
        "purge_status_records"
    )


@patch("jobs.scheduled_tasks.logger")
def test_scheduler_heartbeat(mock_logger):
    """The heartbeat reports queue depths."""
    service = MagicMock()
    service.queues.stats.return_value = {"high_ready": 1, "low_ready": 0}

    scheduled_tasks.scheduler_heartbeat(service)

    mock_logger.info.assert_called_once_with(
        "scheduler_heartbeat", queues={"high_ready": 1, "low_ready": 0}
    )


@patch("jobs.scheduled_tasks.schedule")
def test_run_continuously(schedule_mock):
    stop_event = scheduled_tasks.run_continuously(interval=0.01)
    try:
        assert not stop_event.is_set()
    finally:
        stop_event.set()
