"""Tests for scheduled backups."""

import asyncio

import pytest

from carestore.backup.schedule import BackupScheduler
from carestore.exceptions import ExportFailed


@pytest.mark.asyncio
async def test_scheduler_runs_and_prunes(coordinator):
    scheduler = BackupScheduler(coordinator, interval_seconds=0.05, keep_last=2, max_runs=3)

    await scheduler.start()
    await asyncio.wait_for(scheduler.wait(), timeout=5)
    await scheduler.stop()

    assert len(scheduler.history) == 3
    assert all(a.label == "scheduled" for a in scheduler.history)
    listed = coordinator.list_artifacts()
    assert len(listed) == 2
    assert {a.filename for a in listed} == {a.filename for a in scheduler.history[-2:]}
    assert not scheduler.is_running


@pytest.mark.asyncio
async def test_scheduler_keeps_going_after_failure(coordinator, fake_tool):
    fake_tool.export_error = ExportFailed("store unreachable")
    scheduler = BackupScheduler(coordinator, interval_seconds=0.02, max_runs=3)

    await scheduler.start()
    await asyncio.wait_for(scheduler.wait(), timeout=5)

    assert scheduler.failures == 3
    assert fake_tool.exports == 3
    assert scheduler.history == []
    assert coordinator.list_artifacts() == []


@pytest.mark.asyncio
async def test_stop_cancels_waiting_loop(coordinator, fake_tool):
    scheduler = BackupScheduler(coordinator, interval_seconds=60)

    await scheduler.start()
    assert scheduler.is_running
    await scheduler.stop()

    assert not scheduler.is_running
    assert fake_tool.exports == 0


@pytest.mark.asyncio
async def test_run_once(coordinator):
    scheduler = BackupScheduler(coordinator, interval_seconds=60)
    artifact = await scheduler.run_once()
    assert artifact.label == "scheduled"
    assert coordinator.list_artifacts()[0].filename == artifact.filename


def test_interval_must_be_positive(coordinator):
    with pytest.raises(ValueError):
        BackupScheduler(coordinator, interval_seconds=0)
