import copy
import inspect
import logging
from contextlib import nullcontext
from dataclasses import dataclass
from enum import Enum
from types import MappingProxyType
from typing import TYPE_CHECKING

import anyio
import sniffio
from anyio import CapacityLimiter, create_task_group, to_thread

from .config import Config
from .dependency import DependencyKind
from .exceptions import (
    EventLoopRunningError,
    ScheduleAlreadyRunError,
    ScheduleFailedError,
    TaskExecutionError,
    UnsatisfiedDependencyError,
    UpstreamTaskFailedError,
)
from .inspector import default_inspector
from .topology import Topology

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Mapping
    from typing import Any

    from anyio.abc import TaskGroup

    from .dependency import DependencyDescriptor, ProcessedDependency
    from .inspector import FieldInspector
    from .task import Task

_logger = logging.getLogger(__name__)

_UNSET = object()


class TaskState(Enum):
    PENDING = "pending"
    READY = "ready"
    RUNNING = "running"
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass(kw_only=True, frozen=True, slots=True)
class ScheduleResult:
    states: dict[str, TaskState]
    outputs: dict[str, dict[str, "Any"]]
    failures: dict[str, TaskExecutionError]
    unsatisfied: dict[str, UnsatisfiedDependencyError]

    @property
    def successful(self) -> bool:
        return not self.failures and not self.unsatisfied

    def raise_for_failures(self) -> None:
        if not self.successful:
            raise ScheduleFailedError(self.failures, self.unsatisfied)


class Schedule:
    """
    An executable schedule of task instances and their resolved dependencies.

    Tasks whose dependencies are all satisfied run concurrently in a single task
    group. When a task completes its outputs are recorded, then its direct
    consumers are re-evaluated and dispatched once ready. A failed task fails
    everything downstream of it without running it; unrelated tasks carry on.
    """

    def __init__(
        self,
        task_instances: "Mapping[str, Task]",
        processed_dependencies: "Mapping[str, list[ProcessedDependency]]",
        *,
        inspector: "FieldInspector | None" = None,
        logger: logging.Logger | None = None,
        **settings: "Any",
    ) -> None:
        self.config = Config(**settings)
        self.inspector = inspector or default_inspector
        self.logger = logger or _logger

        self._task_instances = dict(task_instances)
        self._processed_dependencies = {
            task_id: list(processed_dependencies.get(task_id, ()))
            for task_id in self._task_instances
        }
        self._topology: Topology | None = None

        self._states = {task_id: TaskState.PENDING for task_id in self._task_instances}
        self._outputs: dict[str, dict[str, "Any"]] = {}
        self._failures: dict[str, TaskExecutionError] = {}
        self._history: list[tuple[str, TaskState]] = []
        self._limiter: CapacityLimiter | None = None
        self._started = False

    @property
    def task_instances(self) -> "Mapping[str, Task]":
        return MappingProxyType(self._task_instances)

    @property
    def processed_dependencies(self) -> "Mapping[str, list[ProcessedDependency]]":
        return MappingProxyType(self._processed_dependencies)

    @property
    def topology(self) -> Topology:
        if self._topology is None:
            self._topology = Topology.from_dependencies(self._processed_dependencies)

        return self._topology

    @property
    def states(self) -> dict[str, TaskState]:
        return dict(self._states)

    @property
    def history(self) -> list[tuple[str, TaskState]]:
        """Every state transition so far, in the order it happened."""
        return list(self._history)

    def run(self) -> ScheduleResult:
        """Run the schedule to completion from synchronous code."""
        try:
            sniffio.current_async_library()
            raise EventLoopRunningError()
        except sniffio.AsyncLibraryNotFoundError:
            return anyio.run(self.run_async, backend=self.config.backend)

    async def run_async(self) -> ScheduleResult:
        if self._started:
            raise ScheduleAlreadyRunError()

        self._started = True
        if self.config.max_concurrent_tasks is not None:
            self._limiter = CapacityLimiter(self.config.max_concurrent_tasks)

        async with create_task_group() as tg:
            for task_id in self.topology.order:
                if not self._processed_dependencies[task_id]:
                    self._dispatch(tg, task_id)

        unsatisfied: dict[str, UnsatisfiedDependencyError] = {}
        for task_id in self.topology.order:
            if self._states[task_id] is TaskState.PENDING:
                unsatisfied[task_id] = UnsatisfiedDependencyError(
                    task_id, self._unresolved(task_id)
                )
                self.logger.warning("%s", unsatisfied[task_id])

        return ScheduleResult(
            states=dict(self._states),
            outputs={task_id: dict(out) for task_id, out in self._outputs.items()},
            failures=dict(self._failures),
            unsatisfied=unsatisfied,
        )

    def _transition(self, task_id: str, state: TaskState) -> None:
        self._states[task_id] = state
        self._history.append((task_id, state))
        self.logger.debug("Task '%s' is %s", task_id, state.value)

    def _unresolved(self, task_id: str) -> list["DependencyDescriptor"]:
        unresolved = []

        for dependency in self._processed_dependencies[task_id]:
            descriptor = dependency.descriptor
            producer = descriptor.producer_task_id

            if self._states[producer] is not TaskState.COMPLETED or (
                descriptor.kind is DependencyKind.OUTPUT_TO_INPUT
                and descriptor.output_name not in self._outputs[producer]
            ):
                unresolved.append(descriptor)

        return unresolved

    def _dispatch(self, tg: "TaskGroup", task_id: str) -> None:
        self._transition(task_id, TaskState.READY)
        tg.start_soon(self._execute, tg, task_id, name=f"dagscheduler:{task_id}")

    async def _execute(self, tg: "TaskGroup", task_id: str) -> None:
        task = self._task_instances[task_id]

        async with self._limiter or nullcontext():
            try:
                self._populate_inputs(task_id, task)
                self._transition(task_id, TaskState.RUNNING)

                if inspect.iscoroutinefunction(task.run):
                    await task.run()
                else:
                    await to_thread.run_sync(task.run)

                produced = self._collect_outputs(task_id, task)
            except Exception as e:
                self._fail(task_id, e)
                return

            # outputs must be visible before the state flips to completed
            self._outputs[task_id] = produced
            self._transition(task_id, TaskState.COMPLETED)

        for consumer in self.topology.consumers_of(task_id):
            if self._states[consumer] is TaskState.PENDING and not self._unresolved(
                consumer
            ):
                self._dispatch(tg, consumer)

    def _populate_inputs(self, task_id: str, task: "Task") -> None:
        for dependency in self._processed_dependencies[task_id]:
            descriptor = dependency.descriptor
            if descriptor.kind is not DependencyKind.OUTPUT_TO_INPUT:
                continue

            value = self._outputs[descriptor.producer_task_id][descriptor.output_name]
            if self.config.copy_inputs:
                value = copy.deepcopy(value)

            setattr(task, descriptor.input_name, value)

    def _collect_outputs(self, task_id: str, task: "Task") -> dict[str, "Any"]:
        produced: dict[str, "Any"] = {}

        for name in self.inspector.inspect(type(task)).outputs:
            value = getattr(task, name, _UNSET)
            if value is _UNSET:
                self.logger.debug(
                    "Task '%s' did not produce output '%s'", task_id, name
                )
            else:
                produced[name] = value

        return produced

    def _fail(self, task_id: str, exc: Exception) -> None:
        self.logger.error("Task '%s' failed", task_id, exc_info=exc)

        error = TaskExecutionError(task_id)
        error.__cause__ = exc
        self._failures[task_id] = error
        self._transition(task_id, TaskState.FAILED)

        downstream = self.topology.downstream_of(task_id)
        for consumer in self.topology.order:
            if consumer in downstream and self._states[consumer] is TaskState.PENDING:
                self._failures[consumer] = UpstreamTaskFailedError(consumer, task_id)
                self._transition(consumer, TaskState.FAILED)
