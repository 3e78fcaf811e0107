"""SQL script splitting.

Statement boundaries follow sqlite3.complete_statement, so semicolons
inside string literals and trigger bodies do not end a statement.
"""

from __future__ import annotations

import sqlite3
from typing import Iterator


def _is_blank(sql: str) -> bool:
    """True if the text holds nothing but whitespace and `--` comments."""
    for line in sql.splitlines():
        line = line.strip()
        if line and not line.startswith("--"):
            return False
    return True


class StatementSplitter:
    """Incremental splitter: feed text as it arrives, get whole statements back."""

    def __init__(self) -> None:
        self._pending = ""

    def feed(self, text: str) -> list[str]:
        statements: list[str] = []
        segments = text.split(";")
        for segment in segments[:-1]:
            self._pending += segment + ";"
            if sqlite3.complete_statement(self._pending):
                statement = self._pending.strip()
                self._pending = ""
                if not _is_blank(statement.rstrip(";")):
                    statements.append(statement)
        self._pending += segments[-1]
        return statements

    def close(self) -> list[str]:
        """Flush whatever is left (a final statement without `;`)."""
        tail = self._pending.strip()
        self._pending = ""
        if _is_blank(tail):
            return []
        return [tail]


def split_statements(text: str) -> Iterator[str]:
    """Yield each complete statement in a SQL script."""
    splitter = StatementSplitter()
    yield from splitter.feed(text)
    yield from splitter.close()
