"""Migration data model: definitions and what the ledger has recorded."""

from __future__ import annotations

import hashlib
from datetime import datetime
from typing import Any, Awaitable, Callable

from pydantic import BaseModel, ConfigDict, Field, model_validator

from carestore.migrations.sql import split_statements

UpgradeFn = Callable[[Any], Awaitable[None]]


class MigrationRecord(BaseModel):
    """One versioned schema change.

    Set exactly one of ``script`` (SQL, one or more `;`-separated statements)
    or ``upgrade`` (an async callable receiving the open connection). Either
    way the step must be idempotent: after a crash mid-script the ledger
    reruns it in full.
    """

    model_config = ConfigDict(frozen=True)

    version: int = Field(gt=0)
    description: str = ""
    script: str | tuple[str, ...] | None = None
    upgrade: UpgradeFn | None = None

    @model_validator(mode="after")
    def _one_body(self) -> MigrationRecord:
        if (self.script is None) == (self.upgrade is None):
            raise ValueError(
                f"Migration v{self.version} must define exactly one of script or upgrade"
            )
        return self

    @property
    def statements(self) -> tuple[str, ...]:
        if self.script is None:
            return ()
        chunks = (self.script,) if isinstance(self.script, str) else self.script
        return tuple(stmt for chunk in chunks for stmt in split_statements(chunk))

    @property
    def checksum(self) -> str:
        if self.upgrade is not None:
            fn = self.upgrade
            body = f"{getattr(fn, '__module__', '')}.{getattr(fn, '__qualname__', repr(fn))}"
        else:
            body = "\n".join(self.statements)
        return hashlib.sha256(body.encode("utf-8")).hexdigest()


class AppliedVersion(BaseModel):
    """A row of the `schema_version` bookkeeping table."""

    version: int
    description: str = ""
    checksum: str | None = None
    applied_at: datetime | None = None


class LedgerStatus(BaseModel):
    current_version: int = 0
    applied: list[AppliedVersion] = Field(default_factory=list)
    pending: list[MigrationRecord] = Field(default_factory=list)

    @property
    def up_to_date(self) -> bool:
        return not self.pending
