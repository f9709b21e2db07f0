from __future__ import annotations

import asyncio
import contextlib
import logging
from collections.abc import Callable, Coroutine
from pathlib import Path
from typing import Any

from watchfiles import awatch

logger = logging.getLogger(__name__)

# Policies plus the JSON(C) documents they are evaluated against
WATCHED_SUFFIXES: frozenset[str] = frozenset({".rego", ".json", ".jsonc"})


def _is_watched_file(path: Path) -> bool:
    return path.suffix in WATCHED_SUFFIXES


class WatchfilesWatcher:
    """Watch a policy file or directory and report changed policy documents.

    Implements the ``FileWatcherPort`` protocol.
    """

    def __init__(
        self,
        *paths: str | Path,
        on_change: Callable[[set[Path]], Coroutine[Any, Any, None]],
    ) -> None:
        if not paths:
            raise ValueError("at least one path to watch is required")
        self._paths = tuple(Path(p) for p in paths)
        self._on_change = on_change
        self._task: asyncio.Task[None] | None = None

    async def start(self) -> None:
        if self._task is not None:
            return
        self._task = asyncio.create_task(self._watch())
        logger.info("Watcher started for %s", ", ".join(str(p) for p in self._paths))

    async def stop(self) -> None:
        if self._task is None:
            return
        self._task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await self._task
        self._task = None
        logger.info("Watcher stopped")

    async def wait(self) -> None:
        """Block until the watch loop ends."""
        if self._task is not None:
            await self._task

    async def _watch(self) -> None:
        async for changes in awatch(*self._paths):
            paths = {Path(p) for _, p in changes if _is_watched_file(Path(p))}
            if paths:
                logger.info("Detected changes in %d file(s)", len(paths))
                try:
                    await self._on_change(paths)
                except Exception:
                    logger.exception("Error in watcher callback")
