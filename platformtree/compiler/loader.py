# SPDX-FileCopyrightText: © 2025 Tenstorrent AI ULC
# SPDX-License-Identifier: Apache-2.0

"""
Build a :class:`~platformtree.compiler.node.Forest` from a nested mapping, as loaded from a YAML or JSON description.

.. code-block:: yaml

    clock: {source: MOSC, source_frequency: 16000000}
    gpio:
      PortA:
        led1@1: {direction: out}
    os:
      single_task:
        loop: run
        args: {led1: "&led1"}

A mapping value is a nested block and a scalar value is an attribute. Block keys are ``name@path``, ``name`` or
``@path``; strings starting with ``&`` are references.
"""

from __future__ import annotations
import json
import logging
import re
from pathlib import Path
from typing import Any, Mapping, Optional, Union

import yaml

from .diagnostics import TreeLoadError
from .node import Forest, Node, Ref, Value
from .registry import MaterializerRegistry

log = logging.getLogger(__name__)

_HEADER = re.compile(r"^(?P<name>[A-Za-z_][A-Za-z0-9_]*)?(?:@(?P<path>[A-Za-z0-9_]+))?$")
_IDENTIFIER = re.compile(r"^[A-Za-z_][A-Za-z0-9_]*$")


def _parse_header(key: str, where: str) -> tuple[Optional[str], Optional[str]]:
    match = _HEADER.match(key)
    if match is None or not key:
        raise TreeLoadError(f"{where}: invalid block header `{key}`, expected `name`, `name@path` or `@path`")
    return match.group("name"), match.group("path")


def _parse_value(value: Any, where: str) -> Value:
    if isinstance(value, (bool, int)):
        return value
    if isinstance(value, str):
        if value.startswith("&"):
            name = value[1:]
            if not _IDENTIFIER.match(name):
                raise TreeLoadError(f"{where}: invalid reference `{value}`")
            return Ref(name)
        return value
    if value is None:
        # YAML reads an unquoted `&name` as an anchor on an empty value
        raise TreeLoadError(f"{where}: missing value, quote references as `\"&name\"` in YAML")
    raise TreeLoadError(f"{where}: unsupported value `{value}` ({type(value).__name__}), attributes are integers, strings, booleans or `&name` references")


def _load_block(node: Node, body: Mapping[Any, Any], registry: MaterializerRegistry, where: str):
    for key, value in body.items():
        key = str(key)
        location = f"{where}/{key}"
        if isinstance(value, Mapping):
            node.add_child(_child(node, key, value, registry, location))
        else:
            node.set_attribute(key, _parse_value(value, location))


def _child(parent: Node, key: str, body: Mapping[Any, Any], registry: MaterializerRegistry, where: str) -> Node:
    keyword, path = _parse_header(key, where)
    materializer = registry.get(parent.kind)
    if materializer is not None and isinstance(materializer.children, str):
        # every child has the same kind, the keyword is the handle name
        node = Node(materializer.children, name=keyword, path=path)
    else:
        if keyword is None:
            raise TreeLoadError(f"{where}: block `{key}` under `{parent.kind}` needs a keyword")
        node = Node(registry.child_kind(parent.kind, keyword), path=path)
    _load_block(node, body, registry, where)
    return node


def load_tree(document: Mapping[Any, Any], registry: MaterializerRegistry) -> Forest:
    """
    Forest described by ``document``. Root keys name the section kinds; child kinds come from the parent kind's
    ``children`` rule in ``registry``.

    :raises TreeLoadError: malformed document
    """
    if not isinstance(document, Mapping):
        raise TreeLoadError(f"description must be a mapping of sections, got {type(document).__name__}")
    forest = Forest()
    for key, body in document.items():
        key = str(key)
        if not isinstance(body, Mapping):
            raise TreeLoadError(f"{key}: top-level entries must be sections, got `{body}`")
        kind, path = _parse_header(key, key)
        if kind is None:
            raise TreeLoadError(f"{key}: top-level section needs a kind")
        root = Node(kind, path=path)
        _load_block(root, body, registry, key)
        forest.add_root(root)
    log.debug(f"Loaded {len(forest)} nodes in {len(forest.roots)} sections")
    return forest


def load_file(path: Union[str, Path], registry: MaterializerRegistry) -> Forest:
    """
    Load a ``.yaml``/``.yml`` or ``.json`` description.

    :raises FileNotFoundError: ``path`` doesn't exist
    :raises TreeLoadError: unknown suffix, unparsable or malformed document
    """
    path = Path(path)
    if not path.exists():
        raise FileNotFoundError(f"Description file {path} does not exist")
    suffix = path.suffix.lower()
    try:
        with open(path, "r") as f:
            if suffix == ".json":
                document = json.load(f)
            elif suffix in (".yaml", ".yml"):
                document = yaml.safe_load(f)
            else:
                raise TreeLoadError(f"{path}: unknown description format `{suffix}`, expected .yaml, .yml or .json")
    except json.JSONDecodeError as e:
        raise TreeLoadError(f"{path}: invalid JSON: {e}") from e
    except yaml.YAMLError as e:
        raise TreeLoadError(f"{path}: invalid YAML: {e}") from e
    log.info(f"Loading description {path}")
    if document is None:
        raise TreeLoadError(f"{path}: description is empty")
    return load_tree(document, registry)
