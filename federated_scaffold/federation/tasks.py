"""Deferred tasks and the engine that runs them.

Tasks are submitted to a :class:`Scheduler` during the synchronous scaffold
run and executed afterwards, once the virtual tree has been committed.  The
only ordering guarantee is an explicit dependency edge: a task never starts
before every task it depends on has completed, and tasks without a path
between them may run concurrently.
"""

from __future__ import annotations

import asyncio
import inspect
from abc import ABC, abstractmethod
from collections.abc import Callable, Sequence
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Protocol

from rich.markup import escape

from federated_scaffold.utils import print_error, print_info, print_success, print_warning, run_command


class TaskFailedError(Exception):
    """A task's command exited with a non-zero status."""


# ---------------------------------------------------------------------------
# Task payloads
# ---------------------------------------------------------------------------


class Task(ABC):
    """A unit of deferred, side-effecting work."""

    @abstractmethod
    def describe(self) -> str:
        """One-line human-readable description."""

    @abstractmethod
    async def run(self, cwd: Path, timeout: int) -> Any:
        """Execute the task in *cwd*; raise on failure."""


@dataclass(frozen=True)
class PackageInstallTask(Task):
    """Install one package (or all declared packages when ``package_name`` is ``None``)."""

    package_name: str | None = None
    package_manager: str = "npm"

    def command(self) -> list[str]:
        cmd = [self.package_manager, "install"]
        if self.package_name:
            cmd.append(self.package_name)
        return cmd

    def describe(self) -> str:
        return f"install {self.package_name or 'dependencies'}"

    async def run(self, cwd: Path, timeout: int) -> str:
        returncode, stdout, stderr = await run_command(self.command(), cwd=cwd, timeout=timeout)
        if returncode != 0:
            raise TaskFailedError(stderr or stdout or f"exit code {returncode}")
        return stdout


@dataclass(frozen=True)
class RunGeneratorTask(Task):
    """Run generator *generator* from package *collection* through the Angular CLI."""

    collection: str
    generator: str
    options: dict[str, Any] = field(default_factory=dict)

    def command(self) -> list[str]:
        cmd = ["npx", "ng", "generate", f"{self.collection}:{self.generator}"]
        for key, value in self.options.items():
            if isinstance(value, bool):
                cmd.append(f"--{key}" if value else f"--no-{key}")
            else:
                cmd.append(f"--{key}={value}")
        return cmd

    def describe(self) -> str:
        return f"run {self.collection}:{self.generator}"

    async def run(self, cwd: Path, timeout: int) -> str:
        returncode, stdout, stderr = await run_command(self.command(), cwd=cwd, timeout=timeout)
        if returncode != 0:
            raise TaskFailedError(stderr or stdout or f"exit code {returncode}")
        return stdout


@dataclass(frozen=True)
class CallableTask(Task):
    """Run an in-process callable; its (awaited) return value is the result."""

    name: str
    func: Callable[[], Any]

    def describe(self) -> str:
        return self.name

    async def run(self, cwd: Path, timeout: int) -> Any:
        result = self.func()
        if inspect.isawaitable(result):
            result = await asyncio.wait_for(result, timeout=timeout)
        return result


# ---------------------------------------------------------------------------
# Handles & scheduler interface
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class TaskHandle:
    """Opaque reference to a submitted task, used only for dependency edges."""

    id: int
    description: str = ""


class Scheduler(Protocol):
    def submit(self, task: Task, depends_on: Sequence[TaskHandle] = ()) -> TaskHandle:
        ...


class TaskStatus(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"
    SKIPPED = "skipped"


@dataclass(frozen=True)
class TaskResult:
    handle: TaskHandle
    status: TaskStatus
    value: Any = None
    error: str = ""


class TaskEngine(Scheduler, Protocol):
    """A scheduler that can also execute what was submitted to it."""

    async def run(self) -> list[TaskResult]:
        ...

    def describe_plan(self) -> list[str]:
        ...


@dataclass(frozen=True)
class Submission:
    handle: TaskHandle
    task: Task
    depends_on: tuple[TaskHandle, ...]


# ---------------------------------------------------------------------------
# Local engine
# ---------------------------------------------------------------------------


class LocalTaskEngine:
    """Runs submitted tasks with asyncio once :meth:`run` is awaited.

    Each task waits for its dependencies and starts as soon as they have all
    completed.  A failed task is reported and every task depending on it,
    directly or transitively, is skipped.  Nothing is retried.
    """

    def __init__(self, cwd: str | Path, timeout: int = 300) -> None:
        self.cwd = Path(cwd)
        self.timeout = timeout
        self._submissions: dict[int, Submission] = {}
        self._issued = 0

    @property
    def submissions(self) -> list[Submission]:
        return list(self._submissions.values())

    def submit(self, task: Task, depends_on: Sequence[TaskHandle] = ()) -> TaskHandle:
        for dep in depends_on:
            if dep.id not in self._submissions:
                raise ValueError(f"Unknown task handle: {dep}")
        self._issued += 1
        handle = TaskHandle(self._issued, task.describe())
        self._submissions[handle.id] = Submission(handle, task, tuple(depends_on))
        return handle

    def describe_plan(self) -> list[str]:
        lines = []
        for sub in self._submissions.values():
            after = ", ".join(f"#{dep.id}" for dep in sub.depends_on) or "-"
            lines.append(f"#{sub.handle.id} {sub.handle.description} (after: {after})")
        return lines

    async def run(self) -> list[TaskResult]:
        """Execute every submitted task and return results in submission order.

        The queue is emptied first, so a later run only executes tasks
        submitted after this one started.
        """
        submissions, self._submissions = self._submissions, {}
        running: dict[int, asyncio.Task[TaskResult]] = {}
        # Dependencies are always submitted earlier, so they are already scheduled.
        for sub in submissions.values():
            deps = [running[dep.id] for dep in sub.depends_on]
            running[sub.handle.id] = asyncio.create_task(self._run_after(sub, deps))
        return list(await asyncio.gather(*running.values()))

    async def _run_after(
        self, sub: Submission, deps: list[asyncio.Task[TaskResult]]
    ) -> TaskResult:
        if deps:
            dep_results = await asyncio.gather(*deps)
            blocked = [r.handle for r in dep_results if r.status is not TaskStatus.COMPLETED]
            if blocked:
                reason = ", ".join(f"#{h.id}" for h in blocked)
                print_warning(f"Skipping #{sub.handle.id} {sub.handle.description}: {reason} did not complete")
                return TaskResult(sub.handle, TaskStatus.SKIPPED, error=f"blocked by {reason}")
        return await self._execute(sub)

    async def _execute(self, sub: Submission) -> TaskResult:
        print_info(f"Running #{sub.handle.id} {sub.handle.description}")
        try:
            value = await sub.task.run(self.cwd, self.timeout)
        except Exception as exc:
            print_error(f"Task #{sub.handle.id} {sub.handle.description} failed: {escape(str(exc))}")
            return TaskResult(sub.handle, TaskStatus.FAILED, error=str(exc))
        print_success(f"Task #{sub.handle.id} {sub.handle.description} completed")
        return TaskResult(sub.handle, TaskStatus.COMPLETED, value=value)
