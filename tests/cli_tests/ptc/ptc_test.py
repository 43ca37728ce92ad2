# SPDX-FileCopyrightText: © 2025 Tenstorrent AI ULC
# SPDX-License-Identifier: Apache-2.0

import io
import json
import tempfile
import unittest
from contextlib import redirect_stderr
from pathlib import Path
from unittest import mock

import platformtree.lib.logger as PtLogger
from platformtree.compiler import CompilerOptions, TreeLoadError
from platformtree.ptc import Ptc, main

DATA = Path(__file__).parent / "data"
EXAMPLE_CONF = Path(__file__).parents[2] / "compiler/config/data/example_conf.py"
MISSING_SETUP_CONF = Path(__file__).parents[2] / "compiler/config/data/conf_missing_setup.py"


class PtcTest(unittest.TestCase):
    """
    Runs ``ptc`` through its command line entry point.
    """

    def setUp(self):
        self.tmp = tempfile.TemporaryDirectory()
        self.run_dir = Path(self.tmp.name)

    def tearDown(self):
        PtLogger.close_logger()
        self.tmp.cleanup()

    def run_ptc(self, *args: str):
        command = ["--run_dir", str(self.run_dir), "--logger_no_tee", *args]
        stderr = io.StringIO()
        with redirect_stderr(stderr):
            result = Ptc.run_cli(command)
        return result, stderr.getvalue()

    def test_blink(self):
        result, stderr = self.run_ptc("-i", str(DATA / "blink.yaml"))
        self.assertTrue(result.ok, stderr)
        output = self.run_dir / "blink.c"
        self.assertTrue(output.exists())
        code = output.read_text()
        self.assertIn('#include "platformtree/tiva_c.h"', code)
        self.assertIn("void platformtree_init(void)", code)
        self.assertIn("    run(&platformtree_args);", code)
        self.assertLess(code.index("HWREG(0x400FE060u)"), code.index("tiva_c_pin_new"))
        self.assertTrue((self.run_dir / "blink.log").exists())
        self.assertFalse((self.run_dir / "blink.json").exists())

    def test_json_output(self):
        output = self.run_dir / "gen" / "board.c"
        result, _ = self.run_ptc("-i", str(DATA / "blink.yaml"), "-o", str(output), "--json")
        self.assertTrue(result.ok)
        with open(output.with_suffix(".json")) as f:
            program = json.load(f)
        self.assertEqual(program["target"], "tiva_c")
        self.assertEqual(program["entry"], "run")
        self.assertEqual(list(program["args"]), ["button", "console", "led", "tick"])
        self.assertEqual(program["handles"]["led1"], {"type": "tiva_c_pin_t", "path": "gpio/PortF/led1@1"})

    def test_compiler_arguments(self):
        result, _ = self.run_ptc("-i", str(DATA / "blink.yaml"), "--max_lock_polls", "1000", "--entry_name", "board_init")
        self.assertTrue(result.ok)
        code = (self.run_dir / "blink.c").read_text()
        self.assertIn("void board_init(void)", code)
        self.assertIn("tiva_c_lock_timeout();", code)

    def test_conf(self):
        result, _ = self.run_ptc("-i", str(DATA / "blink.yaml"), "--conf", str(EXAMPLE_CONF))
        self.assertTrue(result.ok)
        self.assertIn("uint32_t polls = 1000u;", (self.run_dir / "blink.c").read_text())

    def test_errors_reported(self):
        result, stderr = self.run_ptc("-i", str(DATA / "broken.json"))
        self.assertFalse(result.ok)
        self.assertIn("error: gpio/PortA/led@9: invalid pin index `9`, valid range 0..7", stderr)
        self.assertFalse((self.run_dir / "broken.c").exists())

    def test_missing_input(self):
        with self.assertRaises(FileNotFoundError):
            Ptc(input_file=self.run_dir / "nothing.yaml")

    def test_unknown_format(self):
        text_file = self.run_dir / "board.txt"
        text_file.write_text("clock: {}\n")
        with self.assertRaises(TreeLoadError):
            Ptc(input_file=text_file, run_dir=self.run_dir).compile()

    def test_compile_api(self):
        ptc = Ptc(input_file=DATA / "blink.yaml", run_dir=self.run_dir)
        result = ptc.compile(CompilerOptions(max_lock_polls=10))
        program = result.raise_for_errors()
        self.assertEqual(ptc.options.max_lock_polls, 10)
        self.assertIn("console", program.handles)

    def test_main_exit_code(self):
        argv = ["ptc", "-i", str(DATA / "broken.json"), "-rd", str(self.run_dir), "--logger_no_tee"]
        with mock.patch("sys.argv", argv), redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit) as cm:
                main()
        self.assertEqual(cm.exception.code, 1)

    def test_main_bad_option(self):
        argv = ["ptc", "-i", str(DATA / "blink.yaml"), "-rd", str(self.run_dir), "--logger_no_tee", "--max_lock_polls", "0"]
        stderr = io.StringIO()
        with mock.patch("sys.argv", argv), redirect_stderr(stderr):
            with self.assertRaises(SystemExit) as cm:
                main()
        self.assertEqual(cm.exception.code, 1)
        self.assertIn("error: max_lock_polls must be positive, got 0", stderr.getvalue())

    def test_main_bad_conf(self):
        argv = ["ptc", "-i", str(DATA / "blink.yaml"), "-rd", str(self.run_dir), "--logger_no_tee", "--conf", str(MISSING_SETUP_CONF)]
        stderr = io.StringIO()
        with mock.patch("sys.argv", argv), redirect_stderr(stderr):
            with self.assertRaises(SystemExit) as cm:
                main()
        self.assertEqual(cm.exception.code, 1)
        self.assertIn("does not contain a setup() method", stderr.getvalue())


if __name__ == "__main__":
    unittest.main(verbosity=2)
