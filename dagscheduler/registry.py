import inspect
import warnings
from typing import TYPE_CHECKING

from .exceptions import NoUsableConstructorError
from .task import Task

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Callable

    TaskFactory = Callable[[str], Task]


class TaskFactoryRegistry:
    """
    Maps task types to the factories used to instantiate them at build time.

    A concrete `Task` subclass with no registered factory is instantiated by
    calling the type with the task id. Register a factory for anything else,
    for example a task that needs extra constructor arguments:

    ```python
    registry = TaskFactoryRegistry()

    @registry.factory(Download)
    def _download(task_id: str) -> Download:
        return Download(task_id, session=session)
    ```
    """

    def __init__(self) -> None:
        self._factories: dict[type, "TaskFactory"] = {}

    def register(self, task_type: type, factory: "TaskFactory") -> "TaskFactory":
        if task_type in self._factories:
            warnings.warn(
                f"A factory for '{task_type.__qualname__}' is already registered."
                " This will override that factory.",
                stacklevel=2,
            )

        self._factories[task_type] = factory
        return factory

    def factory(
        self, task_type: type
    ) -> "Callable[[TaskFactory], TaskFactory]":
        def _register(factory: "TaskFactory") -> "TaskFactory":
            return self.register(task_type, factory)

        return _register

    def factory_for(self, task_type: type) -> "TaskFactory":
        if factory := self._factories.get(task_type):
            return factory

        if not (isinstance(task_type, type) and issubclass(task_type, Task)):
            raise NoUsableConstructorError(
                task_type, "no factory is registered and it is not a Task"
            )
        elif inspect.isabstract(task_type):
            raise NoUsableConstructorError(
                task_type, "the type is abstract and no factory is registered"
            )

        return task_type

    def create(self, task_type: type, task_id: str) -> Task:
        factory = self.factory_for(task_type)

        try:
            instance = factory(task_id)
        except Exception as e:
            raise NoUsableConstructorError(task_type, f"{type(e).__name__}: {e}") from e

        if not isinstance(instance, Task):
            raise NoUsableConstructorError(
                task_type, f"the factory returned {type(instance).__name__}, not a Task"
            )

        return instance
