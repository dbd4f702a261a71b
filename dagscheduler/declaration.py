from pydantic import BaseModel, ConfigDict, Field

from .dependency import DependencyDescriptor
from .task import Task


class TaskDeclaration(BaseModel):
    task_id: str
    task_type: type[Task]
    dependencies: tuple[DependencyDescriptor, ...] = Field(default_factory=tuple)

    model_config = ConfigDict(extra="forbid", frozen=True)


def declare(
    task_id: str, task_type: type[Task], *dependencies: DependencyDescriptor
) -> TaskDeclaration:
    return TaskDeclaration(
        task_id=task_id, task_type=task_type, dependencies=dependencies
    )
