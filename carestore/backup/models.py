"""Backup artifact descriptor and file naming."""

from __future__ import annotations

import re
from datetime import datetime
from pathlib import Path

from pydantic import BaseModel

TIMESTAMP_FORMAT = "%Y%m%d_%H%M%S"
SIDECAR_SUFFIX = ".meta.json"


class BackupArtifact(BaseModel):
    """One produced dump file in the retention directory."""

    filename: str
    size: int
    label: str = ""
    created_at: datetime
    path: Path

    @property
    def size_mb(self) -> float:
        return self.size / (1024 * 1024)


def artifact_name(prefix: str, extension: str, when: datetime, counter: int = 0) -> str:
    """`{prefix}_{YYYYMMDD}_{HHMMSS}.{ext}`, with `_N` when the second is taken."""
    stamp = when.strftime(TIMESTAMP_FORMAT)
    suffix = f"_{counter}" if counter else ""
    return f"{prefix}_{stamp}{suffix}.{extension}"


def name_pattern(prefix: str, extension: str) -> re.Pattern[str]:
    return re.compile(
        rf"^{re.escape(prefix)}_(?P<stamp>\d{{8}}_\d{{6}})(?:_(?P<counter>\d+))?\.{re.escape(extension)}$"
    )


def sort_key(pattern: re.Pattern[str], filename: str) -> tuple[str, int]:
    """Creation order of an artifact name: timestamp, then collision counter."""
    match = pattern.match(filename)
    return match.group("stamp"), int(match.group("counter") or 0)
