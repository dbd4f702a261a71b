from types import UnionType
from typing import TYPE_CHECKING, Any, Union, get_args, get_origin

from .dependency import DependencyKind
from .exceptions import DependencyMismatchError
from .inspector import default_inspector

if TYPE_CHECKING:  # pragma: no cover
    from .dependency import ProcessedDependency
    from .inspector import FieldInspector
    from .task import Task


def _is_union(tp: Any) -> bool:
    return get_origin(tp) in (Union, UnionType)


def is_compatible(output_type: Any, input_type: Any) -> bool:
    """Whether an `output_type` value can be supplied where `input_type` is declared."""
    if input_type is Any or output_type is Any or output_type == input_type:
        return True

    # every member of a produced union must fit the input
    if _is_union(output_type):
        return all(is_compatible(out, input_type) for out in get_args(output_type))
    elif _is_union(input_type):
        return any(is_compatible(output_type, in_) for in_ in get_args(input_type))

    output_origin = get_origin(output_type) or output_type
    input_origin = get_origin(input_type) or input_type
    if not (isinstance(output_origin, type) and isinstance(input_origin, type)):
        return False
    elif not issubclass(output_origin, input_origin):
        return False

    output_args, input_args = get_args(output_type), get_args(input_type)
    if not (output_args and input_args):
        return True

    return len(output_args) == len(input_args) and all(
        is_compatible(out_arg, in_arg)
        for out_arg, in_arg in zip(output_args, input_args, strict=True)
    )


def _type_name(tp: Any) -> str:
    return tp.__name__ if isinstance(tp, type) else repr(tp)


class DependencyValidator:
    """
    Cross-checks a task's declared inputs against the dependencies supplying them.

    Every declared input must be fed by exactly one output dependency whose
    producer declares that output with a compatible type. All problems found for
    a task are reported together.
    """

    def __init__(self, inspector: "FieldInspector | None" = None) -> None:
        self.inspector = inspector or default_inspector

    def validate(
        self,
        task_id: str,
        task_type: type["Task"],
        dependencies: list["ProcessedDependency"],
    ) -> None:
        inputs = self.inspector.inspect(task_type).inputs
        suppliers: dict[str, list[str]] = {name: [] for name in inputs}
        problems: list[str] = []

        for dependency in dependencies:
            descriptor = dependency.descriptor
            if descriptor.kind is not DependencyKind.OUTPUT_TO_INPUT:
                continue

            outputs = self.inspector.inspect(dependency.producer_type).outputs

            if descriptor.input_name not in inputs:
                problems.append(
                    f"{descriptor}: '{_type_name(task_type)}' declares no input"
                    f" '{descriptor.input_name}'"
                )
                continue

            suppliers[descriptor.input_name].append(descriptor.producer_task_id)

            if descriptor.output_name not in outputs:
                problems.append(
                    f"{descriptor}: '{_type_name(dependency.producer_type)}' declares"
                    f" no output '{descriptor.output_name}'"
                )
            elif not is_compatible(
                outputs[descriptor.output_name], inputs[descriptor.input_name]
            ):
                problems.append(
                    f"{descriptor}: output type"
                    f" '{_type_name(outputs[descriptor.output_name])}' is not"
                    f" compatible with input type"
                    f" '{_type_name(inputs[descriptor.input_name])}'"
                )

        for input_name, producers in suppliers.items():
            if not producers:
                problems.append(f"input '{input_name}' is not supplied by a dependency")
            elif len(producers) > 1:
                problems.append(
                    f"input '{input_name}' is supplied more than once (by"
                    f" {', '.join(repr(p) for p in producers)})"
                )

        if problems:
            raise DependencyMismatchError(task_id, problems)
