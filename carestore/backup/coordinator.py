"""Backup/restore coordinator: owns the retention directory.

Exports are written to a hidden `.partial` file next to their final name
and renamed into place only once the dump tool succeeded, so a listing
never shows a half-written artifact, even after a crash or a cancelled
task. The directory is re-read on every listing; artifacts may be added or
removed by hand.
"""

from __future__ import annotations

import asyncio
import logging
import os
from datetime import datetime
from pathlib import Path

from carestore.backup.models import (
    SIDECAR_SUFFIX,
    TIMESTAMP_FORMAT,
    BackupArtifact,
    artifact_name,
    name_pattern,
    sort_key,
)
from carestore.backup.tools import DumpTool
from carestore.exceptions import (
    ArtifactNotFound,
    BackupError,
    ExportFailed,
    RestoreFailed,
)

_logger = logging.getLogger(__name__)

PARTIAL_SUFFIX = ".partial"


class BackupCoordinator:
    """Produces, restores and manages dump artifacts for one store.

    Export, restore and prune share a lock: at most one of them runs at a
    time for this coordinator.
    """

    def __init__(
        self,
        tool: DumpTool,
        retention_dir: str | Path,
        prefix: str = "carestore_backup",
        extension: str = "sql",
    ) -> None:
        self._tool = tool
        self._dir = Path(retention_dir)
        self._prefix = prefix
        self._extension = extension
        self._pattern = name_pattern(prefix, extension)
        self._lock = asyncio.Lock()

    @property
    def retention_dir(self) -> Path:
        return self._dir

    # ── helpers ─────────────────────────────────────────────────

    def _resolve(self, ref: str) -> Path:
        """Map an artifact name to its path; anything else is not found."""
        if not ref or Path(ref).name != ref or not self._pattern.match(ref):
            raise ArtifactNotFound(ref)
        path = self._dir / ref
        if not path.is_file():
            raise ArtifactNotFound(ref)
        return path

    def _next_name(self, when: datetime) -> str:
        counter = 0
        while True:
            name = artifact_name(self._prefix, self._extension, when, counter)
            if not (self._dir / name).exists() and not (self._dir / f".{name}{PARTIAL_SUFFIX}").exists():
                return name
            counter += 1

    def _describe(self, path: Path) -> BackupArtifact:
        """Build the descriptor from the sidecar if present, else from name + stat."""
        size = path.stat().st_size
        sidecar = path.with_name(path.name + SIDECAR_SUFFIX)
        if sidecar.is_file():
            try:
                artifact = BackupArtifact.model_validate_json(sidecar.read_text(encoding="utf-8"))
                return artifact.model_copy(update={"path": path, "size": size})
            except ValueError as e:
                _logger.warning("Ignoring unreadable sidecar %s: %s", sidecar.name, e)

        match = self._pattern.match(path.name)
        created = datetime.strptime(match.group("stamp"), TIMESTAMP_FORMAT)
        return BackupArtifact(filename=path.name, size=size, created_at=created, path=path)

    # ── operations ──────────────────────────────────────────────

    async def export_snapshot(self, label: str = "manual") -> BackupArtifact:
        """Dump the store into a new artifact and return its descriptor."""
        async with self._lock:
            self._dir.mkdir(parents=True, exist_ok=True)
            created = datetime.now().replace(microsecond=0)
            filename = self._next_name(created)
            final = self._dir / filename
            partial = self._dir / f".{filename}{PARTIAL_SUFFIX}"

            _logger.info("Creating backup %s (%s) with %s", filename, label, self._tool.name)
            try:
                with open(partial, "wb") as sink:
                    await self._tool.export_to(sink)
                    sink.flush()
                    os.fsync(sink.fileno())
                os.replace(partial, final)
            except BackupError:
                raise
            except Exception as e:
                raise ExportFailed(f"could not write {filename}: {e}") from e
            finally:
                # No-op after a successful rename
                partial.unlink(missing_ok=True)

            artifact = BackupArtifact(
                filename=filename,
                size=final.stat().st_size,
                label=label,
                created_at=created,
                path=final,
            )
            sidecar = final.with_name(filename + SIDECAR_SUFFIX)
            try:
                sidecar.write_text(artifact.model_dump_json(indent=2), encoding="utf-8")
            except OSError as e:
                # The dump is already in place; listing falls back to name and stat
                _logger.warning("Could not write sidecar for %s: %s", filename, e)

            _logger.info("Backup %s written (%.2f MB)", filename, artifact.size_mb)
            return artifact

    async def restore_snapshot(self, ref: str) -> BackupArtifact:
        """Replay an artifact into the store.

        This replaces the store's contents and is NOT transactional: if the
        load fails part-way the store is left in a mixed state. Treat it as
        an offline maintenance action.
        """
        async with self._lock:
            path = self._resolve(ref)
            artifact = self._describe(path)

            _logger.warning("Restoring store from %s with %s", ref, self._tool.name)
            try:
                with open(path, "rb") as source:
                    await self._tool.import_from(source)
            except BackupError:
                raise
            except Exception as e:
                raise RestoreFailed(f"could not replay {ref}: {e}") from e

            _logger.info("Store restored from %s", ref)
            return artifact

    def list_artifacts(self) -> list[BackupArtifact]:
        """All artifacts in the retention directory, newest first."""
        if not self._dir.is_dir():
            return []

        artifacts = []
        for path in self._dir.iterdir():
            if not self._pattern.match(path.name) or not path.is_file():
                continue
            try:
                artifacts.append(self._describe(path))
            except FileNotFoundError:
                # Deleted between iterdir() and stat()
                continue
        artifacts.sort(key=lambda a: sort_key(self._pattern, a.filename), reverse=True)
        return artifacts

    def delete_artifact(self, ref: str) -> None:
        path = self._resolve(ref)
        path.unlink()
        path.with_name(path.name + SIDECAR_SUFFIX).unlink(missing_ok=True)
        _logger.info("Deleted backup %s", ref)

    async def prune(self, keep_last: int) -> list[str]:
        """Delete all but the newest `keep_last` artifacts. 0 keeps everything."""
        if keep_last <= 0:
            return []
        async with self._lock:
            removed = []
            for artifact in self.list_artifacts()[keep_last:]:
                try:
                    self.delete_artifact(artifact.filename)
                except ArtifactNotFound:
                    continue
                removed.append(artifact.filename)
            if removed:
                _logger.info("Pruned %d old backup(s)", len(removed))
            return removed
