from typing import TYPE_CHECKING

if TYPE_CHECKING:  # pragma: no cover
    from typing import Any

    from .dependency import DependencyDescriptor


class DagSchedulerError(Exception):
    def __init__(self, *args: "Any", **kwargs: "Any") -> None:
        super().__init__(*args, **kwargs)


##
## SCHEDULE CONSTRUCTION
##


class ScheduleBuildError(DagSchedulerError):
    def __init__(self, message: str) -> None:
        super().__init__(message)


class DuplicateTaskIdError(ScheduleBuildError):
    def __init__(self, task_id: str) -> None:
        self.task_id = task_id
        super().__init__(f"Task '{task_id}' is already added to the schedule.")


class UnknownProducerError(ScheduleBuildError):
    def __init__(self, task_id: str, producer_task_id: str) -> None:
        self.task_id = task_id
        self.producer_task_id = producer_task_id
        super().__init__(
            f"Task '{producer_task_id}' does not exist in the schedule."
            f" Task '{task_id}' can't depend on it."
        )


class ProducerNotFoundError(ScheduleBuildError):
    def __init__(self, producer_task_id: str) -> None:
        self.producer_task_id = producer_task_id
        super().__init__(f"Task '{producer_task_id}' not found in schedule builder.")


class CycleDetectedError(ScheduleBuildError):
    def __init__(self, cycle: list[str]) -> None:
        self.cycle = cycle
        super().__init__(
            "Schedules cannot contain dependency cycles. Offending cycle:\n"
            f"  {' -> '.join(cycle)}"
        )


class DependencyMismatchError(ScheduleBuildError):
    def __init__(self, task_id: str, problems: list[str]) -> None:
        self.task_id = task_id
        self.problems = problems
        problem_str = "\n  ".join(problems)
        super().__init__(
            f"Dependencies of task '{task_id}' do not match its inputs:\n"
            f"  {problem_str}"
        )


class NoUsableConstructorError(ScheduleBuildError):
    def __init__(self, task_type: type, reason: str) -> None:
        self.task_type = task_type
        type_name = getattr(task_type, "__qualname__", repr(task_type))
        super().__init__(
            f"Task type '{type_name}' cannot be instantiated with a task id: {reason}"
        )


class BuilderConsumedError(ScheduleBuildError):
    def __init__(self) -> None:
        super().__init__(
            "This builder has already built a schedule and cannot be reused."
        )


##
## SCHEDULE EXECUTION
##


class ScheduleExecutionError(DagSchedulerError):
    def __init__(self, message: str) -> None:
        super().__init__(message)


class TaskExecutionError(ScheduleExecutionError):
    def __init__(self, task_id: str, message: str | None = None) -> None:
        self.task_id = task_id
        super().__init__(message or f"Task '{task_id}' failed while running.")


class UpstreamTaskFailedError(TaskExecutionError):
    def __init__(self, task_id: str, failed_task_id: str) -> None:
        self.failed_task_id = failed_task_id
        super().__init__(
            task_id,
            f"Task '{task_id}' was not run because upstream task"
            f" '{failed_task_id}' failed.",
        )


class UnsatisfiedDependencyError(ScheduleExecutionError):
    def __init__(
        self, task_id: str, missing: list["DependencyDescriptor"]
    ) -> None:
        self.task_id = task_id
        self.missing = missing
        missing_str = ", ".join(str(dep) for dep in missing)
        super().__init__(
            f"Task '{task_id}' never became ready. Unresolved dependencies:"
            f" {missing_str}"
        )


class ScheduleFailedError(ScheduleExecutionError):
    def __init__(
        self,
        failures: dict[str, TaskExecutionError],
        unsatisfied: dict[str, UnsatisfiedDependencyError],
    ) -> None:
        self.failures = failures
        self.unsatisfied = unsatisfied
        lines = [str(err) for err in failures.values()]
        lines.extend(str(err) for err in unsatisfied.values())
        detail_str = "\n  ".join(lines)
        super().__init__(f"Schedule did not complete successfully:\n  {detail_str}")


class ScheduleAlreadyRunError(ScheduleExecutionError):
    def __init__(self) -> None:
        super().__init__("Schedules can only be run once.")


class EventLoopRunningError(ScheduleExecutionError):
    def __init__(self) -> None:
        super().__init__(
            "Calling `Schedule.run` within an event loop is forbidden. Use"
            " `await Schedule.run_async()` instead."
        )
