# SPDX-FileCopyrightText: © 2025 Tenstorrent AI ULC
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations
import logging
from typing import Iterator

import networkx as nx

from .diagnostics import DependencyCycleError
from .node import Node

log = logging.getLogger(__name__)


def _declaration_order(node: Node) -> int:
    return node.index


class DependencyGraph:
    """
    "Must build after" relation between nodes.

    Stored as a ``networkx.DiGraph`` with edges pointing from a dependency to its dependents, so a topological sort
    yields a valid build order directly.
    """

    def __init__(self):
        self._graph = nx.DiGraph()

    def __contains__(self, node: Node) -> bool:
        return node in self._graph

    def __len__(self) -> int:
        return self._graph.number_of_nodes()

    def add_node(self, node: Node):
        self._graph.add_node(node)

    def add_dependency(self, dependent: Node, dependency: Node):
        "``dependent`` is built strictly after ``dependency``"
        log.debug(f"{dependent.full_path} depends on {dependency.full_path}")
        self._graph.add_edge(dependency, dependent)

    def dependencies_of(self, node: Node) -> list[Node]:
        if node not in self._graph:
            return []
        return sorted(self._graph.predecessors(node), key=_declaration_order)

    def dependents_of(self, node: Node) -> list[Node]:
        if node not in self._graph:
            return []
        return sorted(self._graph.successors(node), key=_declaration_order)

    def edges(self) -> Iterator[tuple[Node, Node]]:
        "``(dependent, dependency)`` pairs"
        for dependency, dependent in self._graph.edges():
            yield dependent, dependency

    def schedule(self) -> list[Node]:
        """
        Deterministic build order. A node becomes eligible once all of its dependencies are scheduled; among eligible
        nodes the one declared first goes first, so the same tree always yields the same order.

        :raises DependencyCycleError: when nodes remain that can never become eligible
        """
        try:
            order = list(nx.lexicographical_topological_sort(self._graph, key=_declaration_order))
        except nx.NetworkXUnfeasible:
            cycle = self.find_cycle()
            raise DependencyCycleError([n.full_path for n in cycle], node=cycle[0]) from None
        log.debug("Build order: " + ", ".join(n.full_path for n in order))
        return order

    def find_cycle(self) -> list[Node]:
        """
        One cycle of the graph, as nodes where each depends on the next; the first node is repeated at the end.
        Empty if the graph is acyclic.
        """
        try:
            edges = nx.find_cycle(self._graph)
        except nx.NetworkXNoCycle:
            return []
        # edges run dependency -> dependent, walk them backwards to read "depends on"
        nodes = [dependency for dependency, _ in edges]
        nodes.reverse()
        return nodes + nodes[:1]
