"""Dependency-ordered task graph runner."""

from __future__ import annotations

import asyncio
import time
from dataclasses import dataclass
from typing import Awaitable, Callable, Dict, List, Optional, Sequence, Tuple

from .errors import TaskFailed, TaskGraphError
from .logging import get_logger

Action = Callable[[], Awaitable[object]]


@dataclass(frozen=True)
class Task:
    """A named build step with the tasks that must complete before it."""

    name: str
    prerequisites: Tuple[str, ...] = ()
    action: Optional[Action] = None
    sequential: bool = False
    description: str = ""


class TaskGraph:
    """Registry of tasks; ``run`` executes a task after its prerequisites.

    Prerequisites run concurrently unless the task is declared sequential,
    in which case each one completes before the next starts. Within a single
    ``run`` call every task executes at most once.
    """

    def __init__(self) -> None:
        self._tasks: Dict[str, Task] = {}
        self.logger = get_logger("tasks")

    def add(
        self,
        name: str,
        prerequisites: Sequence[str] = (),
        action: Optional[Action] = None,
        *,
        sequential: bool = False,
        description: str = "",
    ) -> Task:
        if name in self._tasks:
            raise TaskGraphError(f"Task '{name}' is already defined")
        task = Task(
            name=name,
            prerequisites=tuple(prerequisites),
            action=action,
            sequential=sequential,
            description=description,
        )
        self._tasks[name] = task
        return task

    def sequence(self, name: str, steps: Sequence[str], *, description: str = "") -> Task:
        """Register ``name`` as running ``steps`` strictly one after another."""
        return self.add(name, steps, sequential=True, description=description)

    def get(self, name: str) -> Task:
        try:
            return self._tasks[name]
        except KeyError:
            raise TaskGraphError(f"Unknown task '{name}'") from None

    def names(self) -> List[str]:
        return list(self._tasks)

    def __contains__(self, name: object) -> bool:
        return name in self._tasks

    def validate(self) -> None:
        """Raise TaskGraphError for unknown prerequisites or cycles."""
        visiting: set[str] = set()
        done: set[str] = set()

        def _visit(name: str, trail: List[str]) -> None:
            if name in done:
                return
            if name in visiting:
                cycle = " -> ".join([*trail[trail.index(name):], name])
                raise TaskGraphError(f"Task cycle detected: {cycle}")
            task = self._tasks.get(name)
            if task is None:
                owner = trail[-1] if trail else "<root>"
                raise TaskGraphError(f"Task '{owner}' depends on unknown task '{name}'")
            visiting.add(name)
            for prerequisite in task.prerequisites:
                _visit(prerequisite, [*trail, name])
            visiting.discard(name)
            done.add(name)

        for name in self._tasks:
            _visit(name, [])

    async def run(self, *names: str) -> None:
        """Run each named task (and its prerequisites) concurrently."""
        for name in names:
            self.get(name)
        self.validate()
        started: Dict[str, asyncio.Future[None]] = {}
        try:
            await asyncio.gather(*(self._schedule(name, started) for name in names))
        finally:
            for future in started.values():
                if not future.done():
                    future.cancel()
            await asyncio.gather(*started.values(), return_exceptions=True)

    def _schedule(self, name: str, started: Dict[str, asyncio.Future[None]]) -> asyncio.Future[None]:
        future = started.get(name)
        if future is None:
            future = asyncio.ensure_future(self._execute(self._tasks[name], started))
            started[name] = future
        return future

    async def _execute(self, task: Task, started: Dict[str, asyncio.Future[None]]) -> None:
        if task.sequential:
            for prerequisite in task.prerequisites:
                await self._schedule(prerequisite, started)
        elif task.prerequisites:
            await asyncio.gather(*(self._schedule(name, started) for name in task.prerequisites))

        if task.action is None:
            return
        self.logger.info("Starting '%s'...", task.name)
        began = time.perf_counter()
        try:
            await task.action()
        except asyncio.CancelledError:
            raise
        except Exception as exc:
            raise TaskFailed(task.name, exc) from exc
        self.logger.info("Finished '%s' after %.2fs", task.name, time.perf_counter() - began)


__all__ = ["Action", "Task", "TaskGraph"]
