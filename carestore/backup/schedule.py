"""Scheduled backups: periodic export plus retention pruning.

Runs as an asyncio task next to the application. A failed backup is
logged and counted; the loop keeps going and tries again next interval.
"""

from __future__ import annotations

import asyncio

import structlog

from carestore.backup.coordinator import BackupCoordinator
from carestore.backup.models import BackupArtifact
from carestore.exceptions import CarestoreError

logger = structlog.get_logger()


class BackupScheduler:
    """Fires `export_snapshot("scheduled")` every `interval_seconds`.

    keep_last: prune to this many artifacts after each backup (0 = never)
    max_runs: stop after N backups (0 = unlimited)
    """

    def __init__(
        self,
        coordinator: BackupCoordinator,
        interval_seconds: float,
        keep_last: int = 0,
        max_runs: int = 0,
    ) -> None:
        if interval_seconds <= 0:
            raise ValueError("interval_seconds must be positive")
        self._coordinator = coordinator
        self._interval = interval_seconds
        self._keep_last = keep_last
        self._max_runs = max_runs
        self._runs = 0
        self._failures = 0
        self._history: list[BackupArtifact] = []
        self._running = False
        self._task: asyncio.Task | None = None

    async def start(self) -> None:
        if self._running:
            return
        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.info("backup_scheduler_started", interval_seconds=self._interval)

    async def stop(self) -> None:
        self._running = False
        if self._task and not self._task.done():
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
        self._task = None
        logger.info("backup_scheduler_stopped", runs=self._runs, failures=self._failures)

    async def wait(self) -> None:
        """Block until the loop ends (max_runs reached, or stop())."""
        if self._task:
            try:
                await self._task
            except asyncio.CancelledError:
                pass

    async def run_once(self) -> BackupArtifact:
        """One scheduled backup, then pruning."""
        artifact = await self._coordinator.export_snapshot("scheduled")
        self._history.append(artifact)
        if self._keep_last > 0:
            removed = await self._coordinator.prune(self._keep_last)
            if removed:
                logger.info("backup_pruned", removed=removed)
        return artifact

    @property
    def is_running(self) -> bool:
        return self._running

    @property
    def history(self) -> list[BackupArtifact]:
        return list(self._history)

    @property
    def failures(self) -> int:
        return self._failures

    async def _run_loop(self) -> None:
        while self._running:
            await asyncio.sleep(self._interval)
            if not self._running:
                break

            self._runs += 1
            try:
                artifact = await self.run_once()
                logger.info(
                    "scheduled_backup_written",
                    filename=artifact.filename,
                    size=artifact.size,
                )
            except (CarestoreError, OSError) as e:
                self._failures += 1
                logger.error("scheduled_backup_failed", error=str(e))

            if self._max_runs > 0 and self._runs >= self._max_runs:
                self._running = False
                break
