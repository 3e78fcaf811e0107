"""CLI runtime context: bridges sync CLI to the async core."""

from __future__ import annotations

import asyncio
from typing import Any, Coroutine

import typer
from rich.console import Console

from carestore.bootstrap import Runtime, bootstrap
from carestore.config import settings
from carestore.exceptions import CarestoreError

console = Console()


def run_async(coro: Coroutine) -> Any:
    """Run an async coroutine from sync CLI code."""
    try:
        loop = asyncio.get_running_loop()
    except RuntimeError:
        loop = None

    if loop and loop.is_running():
        # Already inside an event loop (e.g. called from a notebook)
        import concurrent.futures
        with concurrent.futures.ThreadPoolExecutor() as pool:
            return pool.submit(asyncio.run, coro).result()
    else:
        return asyncio.run(coro)


def get_runtime(migrate: bool = False) -> Runtime:
    return run_async(bootstrap(settings, migrate=migrate))


def fail(error: CarestoreError) -> None:
    """Print an operator-facing error and exit non-zero."""
    console.print(f"[red]{error}[/red]")
    raise typer.Exit(code=1)
