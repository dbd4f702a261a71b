"""
Schedule builder for the dagscheduler framework.
"""

import logging
from typing import TYPE_CHECKING

from .dependency import ProcessedDependency
from .exceptions import (
    BuilderConsumedError,
    DuplicateTaskIdError,
    ProducerNotFoundError,
    UnknownProducerError,
)
from .graph import DependencyGraph, DependencyIndex
from .inspector import default_inspector
from .registry import TaskFactoryRegistry
from .schedule import Schedule
from .validator import DependencyValidator

if TYPE_CHECKING:  # pragma: no cover
    from typing import Any

    from .declaration import TaskDeclaration
    from .dependency import DependencyDescriptor
    from .inspector import FieldInspector
    from .task import Task

_logger = logging.getLogger(__name__)


class ScheduleBuilder:
    """
    Accumulates task declarations and turns them into a validated `Schedule`.

    ```python
    schedule = (
        ScheduleBuilder.start_with(declare("start", Start))
        .add(declare("a", A, output_of("start", "start_out", as_input="a_int")))
        .build()
    )
    ```

    Dependencies may only reference tasks that were added earlier. A builder is
    consumed by `build` and cannot be reused.
    """

    def __init__(
        self,
        registry: TaskFactoryRegistry | None = None,
        inspector: "FieldInspector | None" = None,
        logger: logging.Logger | None = None,
    ) -> None:
        self.registry = registry or TaskFactoryRegistry()
        self.inspector = inspector or default_inspector
        self.logger = logger or _logger
        self._schedule_logger = logger

        self._declarations: dict[str, "TaskDeclaration"] = {}
        self._graph = DependencyGraph()
        self._index = DependencyIndex()
        self._consumed = False

    @classmethod
    def start_with(
        cls,
        *declarations: "TaskDeclaration",
        registry: TaskFactoryRegistry | None = None,
        inspector: "FieldInspector | None" = None,
        logger: logging.Logger | None = None,
    ) -> "ScheduleBuilder":
        builder = cls(registry=registry, inspector=inspector, logger=logger)
        for declaration in declarations:
            builder.add(declaration)

        return builder

    def add(self, declaration: "TaskDeclaration") -> "ScheduleBuilder":
        if self._consumed:
            raise BuilderConsumedError()

        task_id = declaration.task_id
        if task_id in self._declarations:
            raise DuplicateTaskIdError(task_id)

        # check every dependency before touching the graph so a rejected
        # declaration leaves the builder unchanged
        for dependency in declaration.dependencies:
            producer = dependency.producer_task_id
            if producer != task_id and producer not in self._declarations:
                raise UnknownProducerError(task_id, producer)

            self._graph.check_edge(task_id, producer)

        self._declarations[task_id] = declaration
        self._graph.add_vertex(task_id)
        for dependency in declaration.dependencies:
            self._graph.add_edge(task_id, dependency.producer_task_id)
            self._index.append(task_id, dependency.producer_task_id, dependency)

        self.logger.debug(
            "Added task '%s' (%s) with %d dependencies",
            task_id,
            declaration.task_type.__qualname__,
            len(declaration.dependencies),
        )
        return self

    def dependencies_between(
        self, consumer: str, producer: str
    ) -> list["DependencyDescriptor"]:
        return self._index.between(consumer, producer)

    @property
    def task_ids(self) -> frozenset[str]:
        return frozenset(self._declarations)

    def build(self, **settings: "Any") -> Schedule:
        """
        Resolve, validate and instantiate every declared task. Extra keyword
        arguments are passed through to the schedule's `Config`.
        """
        if self._consumed:
            raise BuilderConsumedError()

        # a failed build also consumes the builder
        self._consumed = True
        validator = DependencyValidator(self.inspector)
        task_instances: dict[str, "Task"] = {}
        processed_dependencies: dict[str, list[ProcessedDependency]] = {}

        for task_id, declaration in self._declarations.items():
            dependencies = self._process(declaration.dependencies)
            validator.validate(task_id, declaration.task_type, dependencies)

            processed_dependencies[task_id] = dependencies
            task_instances[task_id] = self.registry.create(
                declaration.task_type, task_id
            )

        self.logger.info("Built schedule with %d tasks", len(task_instances))

        return Schedule(
            task_instances,
            processed_dependencies,
            inspector=self.inspector,
            logger=self._schedule_logger,
            **settings,
        )

    def _process(
        self, dependencies: tuple["DependencyDescriptor", ...]
    ) -> list[ProcessedDependency]:
        return [
            ProcessedDependency(
                producer_type=self._type_of(dependency.producer_task_id),
                descriptor=dependency,
            )
            for dependency in dependencies
        ]

    def _type_of(self, task_id: str) -> type["Task"]:
        if declaration := self._declarations.get(task_id):
            return declaration.task_type

        raise ProducerNotFoundError(task_id)
