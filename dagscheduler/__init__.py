from .builder import ScheduleBuilder
from .declaration import TaskDeclaration, declare
from .dependency import (
    DependencyDescriptor,
    DependencyKind,
    ProcessedDependency,
    completion_of,
    output_of,
)
from .inspector import FieldInspector
from .registry import TaskFactoryRegistry
from .schedule import Schedule, ScheduleResult, TaskState
from .task import Input, Output, Task

__all__ = [
    "DependencyDescriptor",
    "DependencyKind",
    "FieldInspector",
    "Input",
    "Output",
    "ProcessedDependency",
    "Schedule",
    "ScheduleBuilder",
    "ScheduleResult",
    "Task",
    "TaskDeclaration",
    "TaskFactoryRegistry",
    "TaskState",
    "completion_of",
    "declare",
    "output_of",
]
