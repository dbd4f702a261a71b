from dataclasses import dataclass
from typing import TYPE_CHECKING, Annotated, get_args, get_origin, get_type_hints

from .task import FieldRole

if TYPE_CHECKING:  # pragma: no cover
    from typing import Any

    from .task import Task


@dataclass(frozen=True, slots=True)
class TaskFields:
    inputs: dict[str, "Any"]
    outputs: dict[str, "Any"]


class FieldInspector:
    """
    Reports the declared inputs and outputs of task types.

    Results are memoized per type. Entries are written once, on the first
    inspection of a type, and never changed afterwards.
    """

    def __init__(self) -> None:
        self._cache: dict[type, TaskFields] = {}

    def inspect(self, task_type: type["Task"]) -> TaskFields:
        if fields := self._cache.get(task_type):
            return fields

        inputs: dict[str, "Any"] = {}
        outputs: dict[str, "Any"] = {}

        for name, hint in get_type_hints(task_type, include_extras=True).items():
            if get_origin(hint) is not Annotated:
                continue

            field_type, *metadata = get_args(hint)
            if FieldRole.INPUT in metadata:
                inputs[name] = field_type
            elif FieldRole.OUTPUT in metadata:
                outputs[name] = field_type

        fields = TaskFields(inputs=inputs, outputs=outputs)
        return self._cache.setdefault(task_type, fields)

    def describe_inputs(self, task_type: type["Task"]) -> list[tuple[str, "Any"]]:
        return list(self.inspect(task_type).inputs.items())

    def describe_outputs(self, task_type: type["Task"]) -> list[tuple[str, "Any"]]:
        return list(self.inspect(task_type).outputs.items())


default_inspector = FieldInspector()
