# SPDX-FileCopyrightText: © 2025 Tenstorrent AI ULC
# SPDX-License-Identifier: Apache-2.0

from __future__ import annotations
import weakref
from dataclasses import dataclass
from typing import Iterable, Iterator, Mapping, Optional, Union

from platformtree.lib.enums import AttributeKind
from .diagnostics import StructuralError, TypeMismatchError


@dataclass(frozen=True)
class Ref:
    """
    Reference to the handle another node produces, written ``&name`` in a description.
    Resolved at build time, so it may point at a node declared later in the file.
    """

    name: str

    def __str__(self) -> str:
        return f"&{self.name}"


Value = Union[int, str, bool, Ref]


def attribute_kind(value: object) -> AttributeKind:
    """
    Kind of an attribute value. ``bool`` is checked before ``int`` since it subclasses it.

    :raises TypeError: if ``value`` is not an attribute value
    """
    if isinstance(value, bool):
        return AttributeKind.BOOL
    if isinstance(value, int):
        return AttributeKind.INT
    if isinstance(value, str):
        return AttributeKind.STR
    if isinstance(value, Ref):
        return AttributeKind.REF
    raise TypeError(f"{value!r} ({type(value).__name__}) is not an attribute value")


class Node:
    """
    One block of a hardware description.

    Parents own their children through :attr:`children`; :attr:`parent` is a weak back-reference used for upward
    lookups only. Nodes are pure data: per-compilation state (bound materializer, resolved type) lives in the
    :class:`~platformtree.compiler.builder.Builder`, so the same tree can be compiled any number of times.

    Lookups never report diagnostics themselves, they raise :class:`StructuralError` / :class:`TypeMismatchError`
    and the caller decides what to do with them.

    :param kind: semantic role, e.g. ``pin``. Dispatch key into the materializer registry
    :param name: identifier of the handle the node produces, e.g. ``led1``
    :param path: slot within the parent, e.g. ``1`` for ``led1@1``
    :param attributes: ``key = value`` statements of the block
    """

    def __init__(self, kind: str, name: Optional[str] = None, path: Optional[str] = None, attributes: Optional[Mapping[str, Value]] = None):
        self.kind = kind
        self.name = name
        self.path = path
        self.attributes: dict[str, Value] = {}
        self.children: list[Node] = []
        self.index = -1  # declaration order, assigned by Forest
        self._parent: Optional[weakref.ReferenceType[Node]] = None
        for key, value in (attributes or {}).items():
            self.set_attribute(key, value)

    def __repr__(self) -> str:
        return f"Node({self.kind}, {self.full_path})"

    def set_attribute(self, key: str, value: Value):
        attribute_kind(value)  # rejects anything that isn't a Value
        self.attributes[key] = value

    def add_child(self, child: Node) -> Node:
        "Append ``child``, declaration order is kept. Returns the child"
        if child.parent is not None:
            raise StructuralError(f"node already has a parent ({child.parent.full_path})", child)
        child._parent = weakref.ref(self)
        self.children.append(child)
        return child

    # navigation
    @property
    def parent(self) -> Optional[Node]:
        if self._parent is None:
            return None
        return self._parent()

    @property
    def label(self) -> str:
        "Segment as written in the description: ``name@path``, ``name``, ``@path`` or the kind for anonymous nodes"
        if self.name is not None and self.path is not None:
            return f"{self.name}@{self.path}"
        if self.name is not None:
            return self.name
        if self.path is not None:
            return f"@{self.path}"
        return self.kind

    @property
    def full_path(self) -> str:
        "Source location of the node, e.g. ``gpio/PortA/led1@1``"
        return "/".join(n.label for n in reversed([self, *self.ancestors()]))

    def ancestors(self) -> Iterator[Node]:
        node = self.parent
        while node is not None:
            yield node
            node = node.parent

    def root(self) -> Node:
        node = self
        while node.parent is not None:
            node = node.parent
        return node

    def walk(self) -> Iterator[Node]:
        "Pre-order walk, parent before children, children in declaration order"
        yield self
        for child in self.children:
            yield from child.walk()

    def child(self, name: str) -> Optional[Node]:
        for child in self.children:
            if child.name == name:
                return child
        return None

    # attribute lookups
    def attribute(self, key: str) -> Optional[Value]:
        return self.attributes.get(key)

    def expect_no_attributes(self):
        "Purely structural nodes, e.g. a port container"
        if self.attributes:
            keys = ", ".join(f"`{k}`" for k in sorted(self.attributes))
            raise StructuralError(f"node doesn't accept attributes, found {keys}", self)

    def expect_no_children(self):
        if self.children:
            raise StructuralError(f"node doesn't accept nested blocks, found `{self.children[0].label}`", self)

    def expect_unique_paths(self):
        "Sibling slots must be unique, e.g. no two pins of a port share an index"
        seen: dict[str, Node] = {}
        for child in self.children:
            if child.path is None:
                continue
            if child.path in seen:
                raise StructuralError(f"`{child.label}` reuses slot @{child.path} already taken by `{seen[child.path].label}`", child)
            seen[child.path] = child

    def require_attribute(self, key: str, kind: AttributeKind) -> Value:
        """
        Attribute ``key`` of the given kind.

        :raises StructuralError: attribute is missing
        :raises TypeMismatchError: attribute has another kind
        """
        if key not in self.attributes:
            raise StructuralError(f"missing attribute `{key}`", self)
        return self._checked(key, kind)

    def optional_attribute(self, key: str, kind: AttributeKind, default: Optional[Value] = None) -> Optional[Value]:
        if key not in self.attributes:
            return default
        return self._checked(key, kind)

    def require_string(self, key: str) -> str:
        value = self.require_attribute(key, AttributeKind.STR)
        assert isinstance(value, str)
        return value

    def require_int(self, key: str, valid: Optional[range] = None) -> int:
        value = self.require_attribute(key, AttributeKind.INT)
        assert isinstance(value, int)
        if valid is not None:
            check_range(self, key, value, valid)
        return value

    def expect_only(self, keys: Iterable[str]):
        "Reject attributes outside ``keys``"
        allowed = set(keys)
        unknown = sorted(k for k in self.attributes if k not in allowed)
        if unknown:
            raise StructuralError(f"unknown attribute `{unknown[0]}`, allowed: " + ", ".join(f"`{k}`" for k in sorted(allowed)), self)

    def _checked(self, key: str, kind: AttributeKind) -> Value:
        value = self.attributes[key]
        actual = attribute_kind(value)
        if actual is not kind:
            raise TypeMismatchError(f"attribute `{key}` must be {kind.describe()}, got {actual.describe()} `{value}`", self)
        return value


def check_range(node: Node, what: str, value: int, valid: range):
    "Raise :class:`TypeMismatchError` citing ``valid`` as ``first..last``"
    if value not in valid:
        raise TypeMismatchError(f"invalid {what} `{value}`, valid range {valid.start}..{valid.stop - 1}", node)


def numeric_slot(node: Node, what: str, valid: range) -> int:
    """
    Slot number from the node path, ``led1@1`` -> ``1``. Only the canonical spelling is accepted, so ``@01`` can't alias
    ``@1`` past :meth:`Node.expect_unique_paths`.

    :raises StructuralError: node has no slot
    :raises TypeMismatchError: slot is not a canonical number in ``valid``
    """
    if node.path is None:
        raise StructuralError(f"{what} `{node.label}` needs a slot, e.g. `{node.label}@{valid.start}`", node)
    if not (node.path.isascii() and node.path.isdigit()) or str(int(node.path)) != node.path:
        raise TypeMismatchError(f"invalid {what} `{node.path}`, valid range {valid.start}..{valid.stop - 1}", node)
    index = int(node.path)
    check_range(node, what, index, valid)
    return index


class Forest:
    """
    The whole description: an ordered list of root sections.

    Assigns every node a declaration index (pre-order) used to break ties deterministically when scheduling.

    :param roots: top-level sections in declaration order
    """

    def __init__(self, roots: Iterable[Node] = ()):
        self.roots: list[Node] = []
        for root in roots:
            self.add_root(root)

    def __iter__(self) -> Iterator[Node]:
        return self.walk()

    def __len__(self) -> int:
        return sum(1 for _ in self.walk())

    def add_root(self, root: Node) -> Node:
        if root.parent is not None:
            raise StructuralError("a root section can't have a parent", root)
        self.roots.append(root)
        self.reindex()
        return root

    def reindex(self):
        for index, node in enumerate(self.walk()):
            node.index = index

    def walk(self) -> Iterator[Node]:
        for root in self.roots:
            yield from root.walk()

    def find(self, kind: str) -> Optional[Node]:
        "First node of ``kind`` in declaration order"
        return next((n for n in self.walk() if n.kind == kind), None)

    def find_all(self, kind: str) -> list[Node]:
        return [n for n in self.walk() if n.kind == kind]

    def named(self, name: str) -> Optional[Node]:
        "First node called ``name`` in declaration order"
        return next((n for n in self.walk() if n.name == name), None)
