import logging

import pytest

from dagscheduler import (
    ScheduleBuilder,
    TaskFactoryRegistry,
    completion_of,
    declare,
    output_of,
)
from dagscheduler.exceptions import (
    BuilderConsumedError,
    CycleDetectedError,
    DependencyMismatchError,
    DuplicateTaskIdError,
    NoUsableConstructorError,
    UnknownProducerError,
)

from .tasks import Double, Incomplete, Noop, Start, Sum


def test_start_with_duplicate_ids():
    with pytest.raises(DuplicateTaskIdError):
        ScheduleBuilder.start_with(declare("start", Start), declare("start", Noop))


def test_add_duplicate_id():
    start = declare("start", Start)
    builder = ScheduleBuilder.start_with(start)

    # even an identical declaration is rejected
    with pytest.raises(DuplicateTaskIdError):
        builder.add(start)


def test_add_unknown_producer():
    builder = ScheduleBuilder.start_with(declare("start", Start))

    with pytest.raises(UnknownProducerError) as exc_info:
        builder.add(declare("a", Double, output_of("b", "a_out", as_input="a_int")))

    assert exc_info.value.producer_task_id == "b"
    assert builder.task_ids == {"start"}


def test_forward_reference_rejected():
    builder = ScheduleBuilder.start_with()

    with pytest.raises(UnknownProducerError):
        builder.add(declare("a", Noop, completion_of("b")))

    builder.add(declare("b", Noop))
    builder.add(declare("a", Noop, completion_of("b")))

    assert builder.task_ids == {"a", "b"}


def test_self_dependency_is_a_cycle():
    builder = ScheduleBuilder.start_with(declare("start", Start))

    with pytest.raises(CycleDetectedError) as exc_info:
        builder.add(
            declare(
                "a",
                Double,
                output_of("start", "start_out", as_input="a_int"),
                completion_of("a"),
            )
        )

    assert exc_info.value.cycle == ["a", "a"]
    # a rejected declaration leaves no trace
    assert builder.task_ids == {"start"}
    assert builder.dependencies_between("a", "start") == []


def test_add_is_chainable():
    builder = ScheduleBuilder.start_with(declare("start", Start))

    assert builder.add(declare("noop", Noop)) is builder


def test_index_keeps_every_descriptor_between_a_pair():
    feed = output_of("start", "start_out", as_input="a_int")
    after = completion_of("start")

    builder = ScheduleBuilder.start_with(declare("start", Start)).add(
        declare("a", Double, feed, after)
    )

    assert builder.dependencies_between("a", "start") == [feed, after]
    assert builder.dependencies_between("start", "a") == []


def test_build_instantiates_each_task_once():
    schedule = (
        ScheduleBuilder.start_with(declare("start", Start), declare("noop", Noop))
        .add(declare("a", Double, output_of("start", "start_out", as_input="a_int")))
        .add(declare("b", Noop, completion_of("a"), completion_of("noop")))
        .build()
    )

    assert schedule.task_instances.keys() == {"start", "noop", "a", "b"}
    assert isinstance(schedule.task_instances["a"], Double)
    assert all(
        instance.task_id == task_id
        for task_id, instance in schedule.task_instances.items()
    )

    [processed] = schedule.processed_dependencies["a"]
    assert processed.producer_type is Start
    assert processed.descriptor.input_name == "a_int"


def test_build_forwards_settings():
    schedule = ScheduleBuilder.start_with(declare("start", Start)).build(
        max_concurrent_tasks=2, copy_inputs=False
    )

    assert schedule.config.max_concurrent_tasks == 2
    assert schedule.config.copy_inputs is False


def test_builder_cannot_be_reused():
    builder = ScheduleBuilder.start_with(declare("start", Start))
    builder.build()

    with pytest.raises(BuilderConsumedError):
        builder.add(declare("noop", Noop))

    with pytest.raises(BuilderConsumedError):
        builder.build()


def test_build_missing_input():
    builder = ScheduleBuilder.start_with(declare("a", Double))

    with pytest.raises(DependencyMismatchError) as exc_info:
        builder.build()

    assert exc_info.value.task_id == "a"
    assert "input 'a_int' is not supplied" in exc_info.value.problems[0]


def test_build_undeclared_producer_output():
    builder = ScheduleBuilder.start_with(declare("start", Start)).add(
        declare("a", Double, output_of("start", "missing", as_input="a_int"))
    )

    with pytest.raises(DependencyMismatchError, match="declares no output 'missing'"):
        builder.build()


def test_build_incompatible_types():
    builder = ScheduleBuilder.start_with(declare("start", Start)).add(
        declare("sum", Sum, output_of("start", "start_out", as_input="values"))
    )

    with pytest.raises(DependencyMismatchError, match="not compatible"):
        builder.build()


def test_build_abstract_task():
    builder = ScheduleBuilder.start_with(declare("incomplete", Incomplete))

    with pytest.raises(NoUsableConstructorError):
        builder.build()


def test_build_failing_factory():
    registry = TaskFactoryRegistry()

    @registry.factory(Noop)
    def _noop(task_id: str) -> Noop:
        raise ValueError("no can do")

    builder = ScheduleBuilder.start_with(declare("noop", Noop), registry=registry)

    with pytest.raises(NoUsableConstructorError, match="no can do") as exc_info:
        builder.build()

    assert isinstance(exc_info.value.__cause__, ValueError)


def test_build_uses_registered_factory():
    registry = TaskFactoryRegistry()
    created = []

    @registry.factory(Noop)
    def _noop(task_id: str) -> Noop:
        created.append(task_id)
        return Noop(task_id)

    ScheduleBuilder.start_with(
        declare("one", Noop), declare("two", Noop), registry=registry
    ).build()

    assert sorted(created) == ["one", "two"]


def test_builder_logs_to_injected_logger(caplog):
    logger = logging.getLogger("tests.builder")

    with caplog.at_level(logging.DEBUG, logger="tests.builder"):
        ScheduleBuilder.start_with(declare("start", Start), logger=logger).build()

    assert "Added task 'start'" in caplog.text
    assert "Built schedule with 1 tasks" in caplog.text
