import anyio
import pytest

from dagscheduler import (
    Input,
    Output,
    ScheduleBuilder,
    Task,
    TaskState,
    completion_of,
    declare,
    output_of,
)
from dagscheduler.exceptions import CycleDetectedError, UnknownProducerError


# a root task that outputs 'start_out'
class Begin(Task):
    start_out: Output[int]

    async def run(self) -> None:
        self.start_out = 5


# consumes 'a_int' and outputs 'a_out'
class Square(Task):
    a_int: Input[int]
    a_out: Output[int]

    def run(self) -> None:
        self.a_out = self.a_int**2


def test_self_dependency_rejected():
    builder = ScheduleBuilder.start_with(declare("Start", Begin))

    with pytest.raises(CycleDetectedError):
        builder.add(
            declare(
                "A",
                Square,
                output_of("Start", "start_out", as_input="a_int"),
                completion_of("A"),
            )
        )


def test_producer_must_be_added_first():
    with pytest.raises(UnknownProducerError):
        ScheduleBuilder.start_with(
            declare("A", Square, output_of("B", "start_out", as_input="a_int"))
        )


@pytest.mark.anyio
async def test_start_then_a():
    schedule = (
        ScheduleBuilder.start_with(declare("Start", Begin))
        .add(declare("A", Square, output_of("Start", "start_out", as_input="a_int")))
        .build()
    )

    assert schedule.task_instances.keys() == {"Start", "A"}

    with anyio.fail_after(1):
        result = await schedule.run_async()

    result.raise_for_failures()
    assert result.outputs == {"Start": {"start_out": 5}, "A": {"a_out": 25}}

    # A only becomes ready once Start has completed and recorded its output
    history = schedule.history
    assert history.index(("Start", TaskState.COMPLETED)) < history.index(
        ("A", TaskState.READY)
    )
    assert [state for task_id, state in history if task_id == "A"] == [
        TaskState.READY,
        TaskState.RUNNING,
        TaskState.COMPLETED,
    ]
