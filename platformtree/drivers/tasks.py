# SPDX-FileCopyrightText: © 2025 Tenstorrent AI ULC
# SPDX-License-Identifier: Apache-2.0

"""
``os`` section: the application entry task.

A ``single_task`` names the loop routine started after init. Its optional ``args`` block lists the handles passed to
it; every attribute is a reference and the task builds after each node it names.

.. code-block:: yaml

    os:
      single_task:
        loop: run
        args: {led: "&led1", tick: "&timer"}

"""

from __future__ import annotations
import logging

from platformtree.compiler.builder import Builder
from platformtree.compiler.diagnostics import StructuralError, TypeMismatchError, UnresolvedReferenceError
from platformtree.compiler.node import Node, Ref
from platformtree.lib.enums import AttributeKind
from .emit import check_c_name

log = logging.getLogger(__name__)


def task_args(node: Node) -> dict[str, Ref]:
    "Argument references of a task, sorted by argument name"
    args = next((c for c in node.children if c.kind == "task_args"), None)
    if args is None:
        return {}
    refs = {}
    for key in sorted(args.attributes):
        value = args.attributes[key]
        if isinstance(value, Ref):
            refs[key] = value
    return refs


def verify_os(builder: Builder, node: Node):
    node.expect_no_attributes()
    tasks = [c for c in node.children if c.kind == "single_task"]
    for child in node.children:
        if child.kind != "single_task":
            raise StructuralError(f"unknown os block `{child.label}`, expected `single_task`", child)
    if len(tasks) > 1:
        raise StructuralError(f"only one task allowed, `{tasks[1].label}` is extra", tasks[1])


def verify_single_task(builder: Builder, node: Node):
    node.expect_only(("loop",))
    loop = node.require_string("loop")
    check_c_name(node, "loop", loop)
    if loop == builder.options.entry_name:
        raise TypeMismatchError(f"loop `{loop}` has the name of the generated init function", node)
    args = [c for c in node.children if c.kind == "task_args"]
    for child in node.children:
        if child.kind != "task_args":
            raise StructuralError(f"unknown task block `{child.label}`, expected `args`", child)
    if len(args) > 1:
        raise StructuralError("task has more than one args block", args[1])

    for name, ref in task_args(node).items():
        check_c_name(node, "argument", name)
        # unknown names are reported when the task builds
        for target in builder.lookup(ref.name):
            if target is not node:
                builder.add_dependency(node, target)


def verify_task_args(builder: Builder, node: Node):
    node.expect_no_children()
    for key, value in sorted(node.attributes.items()):
        if not isinstance(value, Ref):
            raise TypeMismatchError(f"task argument `{key}` must be {AttributeKind.REF.describe()} like `&{key}`, got `{value}`", node)


def build_single_task(builder: Builder, node: Node):
    refs = task_args(node)
    handles = {}
    unresolved = []
    for name, ref in refs.items():
        try:
            handles[name] = builder.resolve(ref, node)
        except UnresolvedReferenceError:
            unresolved.append(ref.name)
    if unresolved:
        names = ", ".join(f"`&{n}`" for n in unresolved)
        raise UnresolvedReferenceError(f"unresolved reference {names}", unresolved, node)

    for name, handle in handles.items():
        builder.bind_arg(name, handle, node)
    loop = node.require_string("loop")
    builder.set_entry(loop, node)
    log.debug(f"task {loop} takes " + ", ".join(f"{k}={h.name}" for k, h in handles.items()))
