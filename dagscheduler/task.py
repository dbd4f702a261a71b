from abc import ABC, abstractmethod
from enum import Enum
from typing import TYPE_CHECKING, Annotated, TypeVar

if TYPE_CHECKING:  # pragma: no cover
    from collections.abc import Awaitable

T = TypeVar("T")


class FieldRole(Enum):
    INPUT = "input"
    OUTPUT = "output"


Input = Annotated[T, FieldRole.INPUT]
"""Marks a task attribute as a named input, populated before the task runs."""

Output = Annotated[T, FieldRole.OUTPUT]
"""Marks a task attribute as a named output, assigned by the task while it runs."""


class Task(ABC):
    """
    A unit of work in a schedule.

    Inputs and outputs are declared as annotated class attributes:

    ```python
    class Add(Task):
        a: Input[int]
        b: Input[int]
        total: Output[int]

        async def run(self) -> None:
            self.total = self.a + self.b
    ```

    Inputs are set on the instance before `run` is called. An output counts as
    produced once it is readable on the instance, so a class-level default also
    counts. `run` may be a coroutine function or a plain method, in which case it
    is run in a worker thread.
    """

    def __init__(self, task_id: str) -> None:
        self.task_id = task_id

    @abstractmethod
    def run(self) -> "Awaitable[None] | None":
        raise NotImplementedError()

    def __repr__(self) -> str:
        return f"{type(self).__name__}(task_id={self.task_id!r})"
