"""TaskSupervisor — background coroutines whose outcome is always recorded.

Work scheduled after a tool call, such as auditing, must not block the caller,
but its failures must not vanish either.  Every spawned task gets a
:class:`TaskOutcome` that is filled in once the task ends; failures are also
logged with their traceback.
"""

from __future__ import annotations

import asyncio
import enum
import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING, Any

if TYPE_CHECKING:
    from collections.abc import Coroutine

logger = logging.getLogger(__name__)


class TaskStatus(enum.Enum):
    PENDING = "pending"
    COMPLETED = "completed"
    FAILED = "failed"
    CANCELLED = "cancelled"


@dataclass
class TaskOutcome:
    """The recorded result of one supervised task."""

    name: str
    status: TaskStatus = TaskStatus.PENDING
    result: Any = None
    error: BaseException | None = None
    _task: asyncio.Task[Any] | None = field(default=None, repr=False, compare=False)

    @property
    def done(self) -> bool:
        return self.status is not TaskStatus.PENDING

    async def wait(self) -> TaskOutcome:
        """Wait for the task to finish; never raises the task's exception."""
        if self._task is not None and not self._task.done():
            await asyncio.wait({self._task})
        return self


class TaskSupervisor:
    """Owns background tasks until they finish and records how they ended."""

    def __init__(self) -> None:
        self._running: dict[asyncio.Task[Any], TaskOutcome] = {}
        self._finished: list[TaskOutcome] = []

    @property
    def pending(self) -> int:
        return len(self._running)

    @property
    def outcomes(self) -> list[TaskOutcome]:
        """Outcomes of finished tasks, in completion order."""
        return list(self._finished)

    def spawn(self, coro: Coroutine[Any, Any, Any], *, name: str) -> TaskOutcome:
        """Schedule *coro* and return its (initially pending) outcome."""
        task = asyncio.create_task(coro, name=name)
        outcome = TaskOutcome(name=name, _task=task)
        self._running[task] = outcome
        task.add_done_callback(self._record)
        return outcome

    async def drain(self) -> list[TaskOutcome]:
        """Wait for every running task, then return all finished outcomes."""
        while self._running:
            await asyncio.wait(set(self._running))
        return self.outcomes

    async def shutdown(self) -> None:
        """Cancel running tasks and wait until each has recorded its outcome."""
        for task in list(self._running):
            task.cancel()
        await self.drain()

    def _record(self, task: asyncio.Task[Any]) -> None:
        outcome = self._running.pop(task)
        if task.cancelled():
            outcome.status = TaskStatus.CANCELLED
            logger.debug("Background task %s cancelled", outcome.name)
        elif (exc := task.exception()) is not None:
            outcome.status = TaskStatus.FAILED
            outcome.error = exc
            logger.error("Background task %s failed: %s", outcome.name, exc, exc_info=exc)
        else:
            outcome.status = TaskStatus.COMPLETED
            outcome.result = task.result()
        self._finished.append(outcome)
