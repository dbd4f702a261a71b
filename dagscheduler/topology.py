from typing import TYPE_CHECKING

import networkx as nx
from networkx import generate_network_text

if TYPE_CHECKING:  # pragma: no cover
    from networkx import DiGraph

    from .dependency import ProcessedDependency


class Topology:
    """
    Runtime view of a built schedule. Edges point from producers to their
    consumers and carry the descriptors between the pair.
    """

    def __init__(self, *, digraph: "DiGraph", order: list[str]) -> None:
        self.digraph = digraph
        self.order = order

    @classmethod
    def from_dependencies(
        cls, dependencies: dict[str, list["ProcessedDependency"]]
    ) -> "Topology":
        digraph = nx.DiGraph()
        digraph.add_nodes_from(dependencies)

        for consumer, processed in dependencies.items():
            for dependency in processed:
                producer = dependency.descriptor.producer_task_id
                if not digraph.has_edge(producer, consumer):
                    digraph.add_edge(producer, consumer, descriptors=[])

                digraph.edges[producer, consumer]["descriptors"].append(
                    dependency.descriptor
                )

        return cls(digraph=digraph, order=list(nx.topological_sort(digraph)))

    def consumers_of(self, task_id: str) -> list[str]:
        return list(self.digraph.successors(task_id))

    def downstream_of(self, task_id: str) -> set[str]:
        return nx.descendants(self.digraph, task_id)

    def __str__(self) -> str:
        return "\n".join(generate_network_text(self.digraph, vertical_chains=True))
