# SPDX-FileCopyrightText: © 2025 Tenstorrent AI ULC
# SPDX-License-Identifier: Apache-2.0

import unittest

from platformtree.compiler import CompilerOptions, Node, Ref
from platformtree.drivers.tasks import task_args
from platformtree.lib.enums import DiagnosticKind
from tests.drivers.base_driver import DriverTestCase

HARDWARE = {
    "gpio": {"PortF": {"led1@1": {"direction": "out"}}},
    "timer": {"tick@w0": {"prescale": 1, "mode": "periodic"}},
}


class TaskDriverTest(DriverTestCase):
    """Test suite for :mod:`platformtree.drivers.tasks`."""

    def test_entry_and_args(self):
        program = self.compile_ok({**HARDWARE, "os": {"single_task": {"loop": "run", "args": {"tick": "&tick", "led": "&led1"}}}})
        self.assertEqual(program.entry, "run")
        self.assertEqual(list(program.args), ["led", "tick"])
        self.assertIs(program.args["led"], program.handles["led1"])
        self.assertIs(program.args["tick"], program.handles["tick"])

        code = program.emit()
        self.assertIn("    tiva_c_pin_t *led;", code)
        self.assertIn("extern void run(const struct run_args *args);", code)
        self.assertIn("struct run_args platformtree_args = {.led = &led1, .tick = &tick};", code)

    def test_task_declared_first(self):
        program = self.compile_ok({"os": {"single_task": {"loop": "run", "args": {"led": "&led1"}}}, **HARDWARE})
        self.assertEqual(program.args["led"].name, "led1")

    def test_handle_named_like_a_port(self):
        document = {
            "os": {"single_task": {"loop": "run", "args": {"c": "&PortF"}}},
            "gpio": {"PortF": {"led@1": {"direction": "out"}}},
            "uart": {"PortF@0": {"mode": "115200,8n1"}},
        }
        program = self.compile_ok(document)
        self.assertEqual(program.args["c"].path, "uart/PortF@0")
        self.assertEqual(program.args["c"].type, "tiva_c_uart_t")

    def test_no_args(self):
        program = self.compile_ok({"os": {"single_task": {"loop": "main_loop"}}})
        self.assertEqual(program.entry, "main_loop")
        self.assertIn("    main_loop();", program.emit())

    def test_unresolved_references(self):
        result = self.compile({**HARDWARE, "os": {"single_task": {"loop": "run", "args": {"a": "&nope", "b": "&gone"}}}})
        self.assertFalse(result.ok)
        self.assertEqual(len(result.errors), 1)
        error = result.errors[0]
        self.assertIs(error.kind, DiagnosticKind.REFERENCE)
        self.assertEqual(error.message, "unresolved reference `&nope`, `&gone`")

    def test_value_arg(self):
        error = self.compile_error({"os": {"single_task": {"loop": "run", "args": {"led": 3}}}})
        self.assertIs(error.kind, DiagnosticKind.TYPE_MISMATCH)
        self.assertIn("must be a reference like `&led`", error.message)

    def test_loop_identifier(self):
        error = self.compile_error({"os": {"single_task": {"loop": "3run"}}})
        self.assertIn("not a C identifier", error.message)

    def test_pin_named_args(self):
        program = self.compile_ok(
            {
                "gpio": {"PortF": {"args@1": {"direction": "out"}}},
                "os": {"single_task": {"loop": "run", "args": {"led": "&args"}}},
            }
        )
        code = program.emit()
        self.assertEqual(code.count(" args ="), 1)
        self.assertIn("struct run_args platformtree_args = {.led = &args};", code)

    def test_keyword_argument(self):
        error = self.compile_error({**HARDWARE, "os": {"single_task": {"loop": "run", "args": {"int": "&led1"}}}})
        self.assertIn("argument `int` is a C keyword", error.message)

    def test_keyword_loop(self):
        error = self.compile_error({"os": {"single_task": {"loop": "while"}}})
        self.assertIn("loop `while` is a C keyword", error.message)

    def test_loop_named_like_init(self):
        error = self.compile_error({"os": {"single_task": {"loop": "board_init"}}}, CompilerOptions(entry_name="board_init"))
        self.assertIn("name of the generated init function", error.message)

    def test_unknown_task_block(self):
        result = self.compile({"os": {"single_task": {"loop": "run", "stack": {"size": 4}}}})
        self.assertFalse(result.ok)
        self.assertTrue(any("unknown task block `stack`" in d.message for d in result.errors))

    def test_one_task(self):
        result = self.compile({"os": {"single_task": {"loop": "a"}, "single_task@1": {"loop": "b"}}})
        self.assertFalse(result.ok)
        self.assertTrue(any("only one task allowed" in d.message for d in result.errors))


class TaskArgsTest(unittest.TestCase):
    def test_sorted_refs(self):
        task = Node("single_task", attributes={"loop": "run"})
        task.add_child(Node("task_args", attributes={"z": Ref("z1"), "a": Ref("a1")}))
        self.assertEqual(list(task_args(task).items()), [("a", Ref("a1")), ("z", Ref("z1"))])

    def test_no_args_block(self):
        self.assertEqual(task_args(Node("single_task")), {})


if __name__ == "__main__":
    unittest.main(verbosity=2)
