from enum import Enum
from typing import TYPE_CHECKING

from pydantic import BaseModel, ConfigDict, model_validator

from .task import Task

if TYPE_CHECKING:  # pragma: no cover
    from typing import Self


class DependencyKind(Enum):
    OUTPUT_TO_INPUT = "output_to_input"
    COMPLETION_ONLY = "completion_only"


class DependencyDescriptor(BaseModel):
    """
    One edge of a schedule: either "feed output `output_name` of task
    `producer_task_id` into input `input_name`", or "run after task
    `producer_task_id` completes".
    """

    kind: DependencyKind
    producer_task_id: str
    output_name: str | None = None
    input_name: str | None = None

    model_config = ConfigDict(extra="forbid", frozen=True)

    @model_validator(mode="after")
    def _check_names(self) -> "Self":
        has_names = self.output_name is not None and self.input_name is not None
        no_names = self.output_name is None and self.input_name is None

        if self.kind is DependencyKind.OUTPUT_TO_INPUT and not has_names:
            raise ValueError("Output dependencies must name an output and an input.")
        elif self.kind is DependencyKind.COMPLETION_ONLY and not no_names:
            raise ValueError("Completion dependencies cannot name outputs or inputs.")

        return self

    @classmethod
    def output_of(
        cls, producer_task_id: str, output_name: str, as_input: str
    ) -> "DependencyDescriptor":
        return cls(
            kind=DependencyKind.OUTPUT_TO_INPUT,
            producer_task_id=producer_task_id,
            output_name=output_name,
            input_name=as_input,
        )

    @classmethod
    def completion_of(cls, producer_task_id: str) -> "DependencyDescriptor":
        return cls(
            kind=DependencyKind.COMPLETION_ONLY, producer_task_id=producer_task_id
        )

    def __str__(self) -> str:
        if self.kind is DependencyKind.COMPLETION_ONLY:
            return f"completion of '{self.producer_task_id}'"

        return (
            f"output '{self.output_name}' of '{self.producer_task_id}'"
            f" as input '{self.input_name}'"
        )


output_of = DependencyDescriptor.output_of
completion_of = DependencyDescriptor.completion_of


class ProcessedDependency(BaseModel):
    """A descriptor paired with the type of the task that produces it."""

    producer_type: type[Task]
    descriptor: DependencyDescriptor

    model_config = ConfigDict(extra="forbid", frozen=True)
