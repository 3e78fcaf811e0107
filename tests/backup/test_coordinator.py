"""Tests for the backup coordinator, against a fake dump tool."""

import asyncio
import re
from datetime import datetime, timedelta
from pathlib import Path

import pytest

from carestore.exceptions import (
    ArtifactNotFound,
    ExportFailed,
    ExternalToolUnavailable,
    RestoreFailed,
)

NAME_RE = re.compile(r"^clinic_backup_(\d{8}_\d{6})(_\d+)?\.sql$")


def _visible_files(directory):
    if not directory.exists():
        return []
    return sorted(p.name for p in directory.iterdir())


# ── export_snapshot ─────────────────────────────────────────────


@pytest.mark.asyncio
async def test_export_creates_named_artifact(coordinator, fake_tool, backup_dir):
    before = datetime.now().replace(microsecond=0)
    artifact = await coordinator.export_snapshot("manual")
    after = datetime.now()

    match = NAME_RE.match(artifact.filename)
    assert match is not None
    stamp = datetime.strptime(match.group(1), "%Y%m%d_%H%M%S")
    assert before <= stamp <= after
    assert artifact.path == backup_dir / artifact.filename
    assert artifact.path.read_bytes() == fake_tool.payload
    assert artifact.size == len(fake_tool.payload)
    assert artifact.label == "manual"


@pytest.mark.asyncio
async def test_listing_after_export_has_exactly_one_new_entry(coordinator):
    assert coordinator.list_artifacts() == []

    artifact = await coordinator.export_snapshot("nightly")
    listed = coordinator.list_artifacts()

    assert [a.filename for a in listed] == [artifact.filename]
    assert listed[0].size == artifact.path.stat().st_size
    assert listed[0].label == "nightly"


@pytest.mark.asyncio
async def test_exports_in_same_second_get_distinct_names(coordinator):
    names = {(await coordinator.export_snapshot()).filename for _ in range(3)}
    assert len(names) == 3
    assert len(coordinator.list_artifacts()) == 3


@pytest.mark.asyncio
async def test_failed_export_leaves_nothing_behind(coordinator, fake_tool, backup_dir):
    fake_tool.export_error = ExportFailed("mysqldump exited with status 2: Access denied")

    with pytest.raises(ExportFailed, match="Access denied"):
        await coordinator.export_snapshot()

    assert _visible_files(backup_dir) == []
    assert coordinator.list_artifacts() == []


@pytest.mark.asyncio
async def test_missing_tool_leaves_nothing_behind(coordinator, fake_tool, backup_dir):
    fake_tool.export_error = ExternalToolUnavailable("mysqldump")

    with pytest.raises(ExternalToolUnavailable):
        await coordinator.export_snapshot()

    assert _visible_files(backup_dir) == []


@pytest.mark.asyncio
async def test_unexpected_tool_error_becomes_export_failed(coordinator, fake_tool, backup_dir):
    fake_tool.export_error = RuntimeError("disk on fire")

    with pytest.raises(ExportFailed, match="disk on fire"):
        await coordinator.export_snapshot()

    assert _visible_files(backup_dir) == []


@pytest.mark.asyncio
async def test_sidecar_write_failure_keeps_artifact(coordinator, backup_dir, monkeypatch, caplog):
    real_write_text = Path.write_text

    def failing_write_text(self, *args, **kwargs):
        if self.name.endswith(".meta.json"):
            raise OSError(28, "No space left on device")
        return real_write_text(self, *args, **kwargs)

    monkeypatch.setattr(Path, "write_text", failing_write_text)

    artifact = await coordinator.export_snapshot("nightly")

    assert artifact.label == "nightly"
    assert _visible_files(backup_dir) == [artifact.filename]
    assert "No space left" in caplog.text
    listed = coordinator.list_artifacts()
    assert [a.filename for a in listed] == [artifact.filename]
    assert listed[0].label == ""


@pytest.mark.asyncio
async def test_cancelled_export_leaves_no_partial_artifact(coordinator, fake_tool, backup_dir):
    fake_tool.block_export = asyncio.Event()

    task = asyncio.create_task(coordinator.export_snapshot())
    await asyncio.wait_for(fake_tool.export_started.wait(), timeout=5)
    # The half-written dump is only visible as a hidden temporary
    assert all(name.startswith(".") for name in _visible_files(backup_dir))
    assert coordinator.list_artifacts() == []

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task

    assert _visible_files(backup_dir) == []


# ── restore_snapshot ────────────────────────────────────────────


@pytest.mark.asyncio
async def test_restore_streams_artifact_into_tool(coordinator, fake_tool):
    artifact = await coordinator.export_snapshot()

    restored = await coordinator.restore_snapshot(artifact.filename)

    assert fake_tool.imported == [fake_tool.payload]
    assert restored.filename == artifact.filename


@pytest.mark.asyncio
async def test_restore_missing_artifact(coordinator, fake_tool):
    with pytest.raises(ArtifactNotFound, match="clinic_backup_20200101_000000.sql"):
        await coordinator.restore_snapshot("clinic_backup_20200101_000000.sql")
    assert fake_tool.imported == []


@pytest.mark.asyncio
@pytest.mark.parametrize("ref", ["../clinic.db", "/etc/passwd", "", "notes.txt"])
async def test_restore_rejects_paths_outside_retention(coordinator, ref):
    with pytest.raises(ArtifactNotFound):
        await coordinator.restore_snapshot(ref)


@pytest.mark.asyncio
async def test_restore_failure_propagates(coordinator, fake_tool):
    artifact = await coordinator.export_snapshot()
    fake_tool.import_error = RestoreFailed("mysql exited with status 1: syntax error")

    with pytest.raises(RestoreFailed, match="syntax error"):
        await coordinator.restore_snapshot(artifact.filename)


@pytest.mark.asyncio
async def test_restore_unexpected_error_becomes_restore_failed(coordinator, fake_tool):
    artifact = await coordinator.export_snapshot()
    fake_tool.import_error = ValueError("bad bytes")

    with pytest.raises(RestoreFailed, match=artifact.filename):
        await coordinator.restore_snapshot(artifact.filename)


# ── list / delete ───────────────────────────────────────────────


def test_list_without_directory(coordinator, backup_dir):
    assert not backup_dir.exists()
    assert coordinator.list_artifacts() == []


def test_list_reads_directory_live(coordinator, backup_dir):
    backup_dir.mkdir()
    (backup_dir / "clinic_backup_20250101_080000.sql").write_bytes(b"old")
    (backup_dir / "clinic_backup_20250102_080000.sql").write_bytes(b"newer")
    (backup_dir / ".clinic_backup_20250103_080000.sql.partial").write_bytes(b"half")
    (backup_dir / "README.txt").write_text("not a backup")

    listed = coordinator.list_artifacts()

    assert [a.filename for a in listed] == [
        "clinic_backup_20250102_080000.sql",
        "clinic_backup_20250101_080000.sql",
    ]
    assert listed[0].size == 5
    assert listed[0].created_at == datetime(2025, 1, 2, 8, 0, 0)
    assert listed[0].label == ""

    (backup_dir / "clinic_backup_20250102_080000.sql").unlink()
    assert len(coordinator.list_artifacts()) == 1


def test_list_orders_collision_counters_numerically(coordinator, backup_dir):
    backup_dir.mkdir()
    for name in (
        "clinic_backup_20250101_080000.sql",
        "clinic_backup_20250101_080000_2.sql",
        "clinic_backup_20250101_080000_10.sql",
        "clinic_backup_20250101_080001.sql",
    ):
        (backup_dir / name).write_bytes(b"x")

    assert [a.filename for a in coordinator.list_artifacts()] == [
        "clinic_backup_20250101_080001.sql",
        "clinic_backup_20250101_080000_10.sql",
        "clinic_backup_20250101_080000_2.sql",
        "clinic_backup_20250101_080000.sql",
    ]


@pytest.mark.asyncio
async def test_delete_removes_artifact_and_sidecar(coordinator, backup_dir):
    artifact = await coordinator.export_snapshot()

    coordinator.delete_artifact(artifact.filename)

    assert coordinator.list_artifacts() == []
    assert _visible_files(backup_dir) == []


def test_delete_missing_artifact(coordinator):
    with pytest.raises(ArtifactNotFound):
        coordinator.delete_artifact("clinic_backup_20200101_000000.sql")


# ── prune ───────────────────────────────────────────────────────


@pytest.mark.asyncio
async def test_prune_keeps_newest(coordinator, backup_dir):
    backup_dir.mkdir()
    start = datetime(2025, 1, 1, 12, 0, 0)
    names = []
    for day in range(5):
        name = f"clinic_backup_{(start + timedelta(days=day)).strftime('%Y%m%d_%H%M%S')}.sql"
        (backup_dir / name).write_bytes(b"x")
        names.append(name)

    removed = await coordinator.prune(keep_last=2)

    assert sorted(removed) == names[:3]
    assert [a.filename for a in coordinator.list_artifacts()] == [names[4], names[3]]


@pytest.mark.asyncio
async def test_prune_zero_keeps_everything(coordinator):
    await coordinator.export_snapshot()
    assert await coordinator.prune(keep_last=0) == []
    assert len(coordinator.list_artifacts()) == 1
