from typing import TYPE_CHECKING

from .exceptions import CycleDetectedError

if TYPE_CHECKING:  # pragma: no cover
    from .dependency import DependencyDescriptor


class DependencyGraph:
    """
    Build-time graph of a schedule. Each edge points from a consumer task to the
    producer it depends on.

    The graph is acyclic at all times: an edge that would close a cycle is
    rejected before it is inserted.
    """

    def __init__(self) -> None:
        self._producers: dict[str, set[str]] = {}

    def __contains__(self, task_id: str) -> bool:
        return task_id in self._producers

    def __len__(self) -> int:
        return len(self._producers)

    def add_vertex(self, task_id: str) -> None:
        self._producers.setdefault(task_id, set())

    def producers_of(self, task_id: str) -> frozenset[str]:
        return frozenset(self._producers.get(task_id, ()))

    def check_edge(self, consumer: str, producer: str) -> None:
        """Raise `CycleDetectedError` if `consumer -> producer` would close a cycle."""
        if consumer == producer:
            raise CycleDetectedError([consumer, consumer])

        # a cycle closes iff the consumer is already reachable from the producer
        if path := self._find_path(producer, consumer):
            raise CycleDetectedError([consumer, *path])

    def add_edge(self, consumer: str, producer: str) -> None:
        self.check_edge(consumer, producer)
        self.add_vertex(producer)
        self.add_vertex(consumer)
        self._producers[consumer].add(producer)

    def _find_path(self, start: str, target: str) -> list[str] | None:
        stack: list[tuple[str, list[str]]] = [(start, [start])]
        visited: set[str] = set()

        while stack:
            node, path = stack.pop()
            if node == target:
                return path
            if node in visited:
                continue

            visited.add(node)
            for producer in self._producers.get(node, ()):
                if producer not in visited:
                    stack.append((producer, [*path, producer]))

        return None


class DependencyIndex:
    """Descriptors between each (consumer, producer) pair, in insertion order."""

    def __init__(self) -> None:
        self._entries: dict[tuple[str, str], list["DependencyDescriptor"]] = {}

    def append(
        self, consumer: str, producer: str, descriptor: "DependencyDescriptor"
    ) -> None:
        self._entries.setdefault((consumer, producer), []).append(descriptor)

    def between(self, consumer: str, producer: str) -> list["DependencyDescriptor"]:
        return list(self._entries.get((consumer, producer), ()))

    def __len__(self) -> int:
        return len(self._entries)
