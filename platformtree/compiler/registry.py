# SPDX-FileCopyrightText: © 2025 Tenstorrent AI ULC
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Callable, Iterable, Mapping, Optional, Union

from .diagnostics import InternalContractError, PlatformTreeError, StructuralError
from .node import Forest, Node

if TYPE_CHECKING:
    from .builder import Builder

log = logging.getLogger(__name__)

VerifyFn = Callable[["Builder", Node], None]
BuildFn = Callable[["Builder", Node], None]
DependencyRule = Callable[[Forest, Node], Iterable[Node]]  # returns the nodes ``node`` must be built after
ChildKinds = Union[None, str, Mapping[str, str]]


def no_build(builder: Builder, node: Node):
    "Build handler for purely structural nodes"
    pass


@dataclass(frozen=True)
class Materializer:
    """
    Capability pair for one node kind: ``verify`` checks structure and attributes, ``build`` emits statements and
    handles. Each kind is its own independent variant, there is no inheritance between kinds.

    :param kind: node kind this materializer handles
    :param verify: called in tree order, may add dependencies
    :param build: called in dependency order, may emit statements and bind handles
    :param dependency_rules: structural dependencies applied to every node of the kind when the tree is attached
    :param children: kind given to child blocks when a tree is loaded; a single kind or a keyword to kind mapping
    """

    kind: str
    verify: VerifyFn
    build: BuildFn
    dependency_rules: tuple[DependencyRule, ...] = ()
    children: ChildKinds = None

    def child_kind(self, keyword: str) -> str:
        if self.children is None:
            return keyword
        if isinstance(self.children, str):
            return self.children
        return self.children.get(keyword, keyword)


class MaterializerRegistry:
    """
    Maps node kinds to their :class:`Materializer`. Driver modules populate it before anything is compiled;
    the first compilation freezes it, after which the set of kinds is closed.

    .. code-block:: python

        from platformtree.compiler import MaterializerRegistry

        registry = MaterializerRegistry()
        registry.register("pin", verify_pin, build_pin, dependency_rules=[depends_on_parent])

    """

    def __init__(self):
        self._map: dict[str, Materializer] = {}
        self._frozen = False

    def __contains__(self, kind: str) -> bool:
        return kind in self._map

    def __len__(self) -> int:
        return len(self._map)

    @property
    def kinds(self) -> list[str]:
        return list(self._map)

    @property
    def frozen(self) -> bool:
        return self._frozen

    def register(
        self,
        kind: str,
        verify: VerifyFn,
        build: BuildFn,
        dependency_rules: Iterable[DependencyRule] = (),
        children: ChildKinds = None,
    ) -> Materializer:
        """
        Register a node kind.

        :raises InternalContractError: kind registered twice, or registry already frozen by a compilation
        """
        if self._frozen:
            raise InternalContractError(f"can't register kind `{kind}`, registry is frozen once compilation starts")
        if kind in self._map:
            raise InternalContractError(f"kind `{kind}` is already registered")
        materializer = Materializer(kind=kind, verify=verify, build=build, dependency_rules=tuple(dependency_rules), children=children)
        self._map[kind] = materializer
        log.debug(f"Registered node kind {kind}")
        return materializer

    def get(self, kind: str) -> Optional[Materializer]:
        return self._map.get(kind)

    def child_kind(self, parent_kind: str, keyword: str) -> str:
        "Kind for a child block called ``keyword`` under a node of ``parent_kind``"
        parent = self._map.get(parent_kind)
        if parent is None:
            return keyword
        return parent.child_kind(keyword)

    def freeze(self):
        self._frozen = True

    def attach(self, builder: Builder, forest: Forest):
        """
        Bind a materializer to every node of ``forest`` and apply the dependency rules of its kind.

        A node whose kind has no driver is reported as a recoverable :class:`StructuralError` and left unbound,
        so the build phase skips it.
        """
        for node in forest.walk():
            materializer = self._map.get(node.kind)
            if materializer is None:
                builder.fail(node, StructuralError(f"no driver registered for node kind `{node.kind}`", node))
                continue
            builder.bind(node, materializer)
            for rule in materializer.dependency_rules:
                try:
                    for dependency in rule(forest, node):
                        builder.add_dependency(node, dependency)
                except PlatformTreeError as e:
                    builder.fail(node, e)
