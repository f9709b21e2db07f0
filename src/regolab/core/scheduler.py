"""Debounced, single-flight background linting for one document.

Every edit bumps a version counter. After a quiet period the latest text is
sent to the linter; at most one call is outstanding at a time. A response is
published only if no edit arrived while it was in flight, otherwise it is
dropped and the newest text is linted instead.
"""

from __future__ import annotations

import asyncio
import contextlib
import enum
import logging
from collections.abc import Callable, Iterable

from regolab.core.diagnostics import DEFAULT_SUPPRESSED_RULES, map_diagnostics
from regolab.core.ports.linter import Linter
from regolab.models import Diagnostic

logger = logging.getLogger(__name__)

DEFAULT_DEBOUNCE = 0.75
DEFAULT_MIN_LENGTH = 10

Publish = Callable[[list[Diagnostic]], None]


class SchedulerState(enum.Enum):
    IDLE = "idle"
    PENDING = "pending"
    IN_FLIGHT = "in_flight"


class LintScheduler:
    def __init__(
        self,
        linter: Linter,
        publish: Publish,
        *,
        debounce: float = DEFAULT_DEBOUNCE,
        min_length: int = DEFAULT_MIN_LENGTH,
        suppressed_rules: Iterable[str] = DEFAULT_SUPPRESSED_RULES,
    ) -> None:
        self._linter = linter
        self._publish = publish
        self._debounce = debounce
        self._min_length = min_length
        self._suppressed = frozenset(suppressed_rules)
        self._version = 0
        self._text = ""
        self._timer: asyncio.TimerHandle | None = None
        self._task: asyncio.Task[None] | None = None
        self._idle = asyncio.Event()
        self._idle.set()
        self._closed = False

    @property
    def version(self) -> int:
        return self._version

    @property
    def state(self) -> SchedulerState:
        if self._task is not None:
            return SchedulerState.IN_FLIGHT
        if self._timer is not None:
            return SchedulerState.PENDING
        return SchedulerState.IDLE

    def _lintable(self, text: str) -> bool:
        return len(text.strip()) >= self._min_length

    def notify_edit(self, text: str) -> None:
        """Record a new document version and (re)start the quiet-period timer.

        Must be called from a running event loop.
        """
        self._version += 1
        self._text = text
        self._cancel_timer()

        if not self._lintable(text):
            # Any call still in flight now carries an old version and is dropped.
            self._publish([])
            self._update_idle()
            return

        loop = asyncio.get_running_loop()
        self._timer = loop.call_later(self._debounce, self._on_timer)
        self._idle.clear()

    def _cancel_timer(self) -> None:
        if self._timer is not None:
            self._timer.cancel()
            self._timer = None

    def _on_timer(self) -> None:
        self._timer = None
        if self._task is None:
            self._dispatch()
        # Otherwise the running call re-dispatches when it sees a newer version.

    def _dispatch(self) -> None:
        self._task = asyncio.get_running_loop().create_task(self._run(self._version, self._text))
        self._idle.clear()

    async def _run(self, version: int, text: str) -> None:
        try:
            try:
                report = await self._linter.lint(text)
            except Exception:
                logger.warning("Lint call for version %d failed", version, exc_info=True)
                diagnostics: list[Diagnostic] = []
            else:
                diagnostics = map_diagnostics(report.violations, text, self._suppressed)

            if version == self._version:
                self._publish(diagnostics)
            else:
                logger.debug("Discarding lint result for version %d (latest is %d)", version, self._version)
        finally:
            self._task = None
            if not self._closed and self._version != version and self._timer is None and self._lintable(self._text):
                self._dispatch()
            else:
                self._update_idle()

    def _update_idle(self) -> None:
        if self._timer is None and self._task is None:
            self._idle.set()

    async def wait_idle(self) -> None:
        """Wait until no timer is pending and no lint call is in flight."""
        while self.state is not SchedulerState.IDLE:
            await self._idle.wait()

    async def aclose(self) -> None:
        self._closed = True
        self._cancel_timer()
        task, self._task = self._task, None
        if task is not None:
            task.cancel()
            with contextlib.suppress(asyncio.CancelledError):
                await task
        self._idle.set()
