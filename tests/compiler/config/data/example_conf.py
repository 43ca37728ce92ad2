# SPDX-FileCopyrightText: © 2025 Tenstorrent AI ULC
# SPDX-License-Identifier: Apache-2.0

"""
Example Conf
"""

from dataclasses import replace

from platformtree.compiler import Builder, CompilerOptions, Conf, MaterializerRegistry, Node, Program, no_build


def verify_led_bar(builder: Builder, node: Node) -> None:
    node.expect_no_attributes()


class BoardConf(Conf):
    """
    Example Conf. Adds a ``led_bar`` section holding pins and bounds the clock lock polls.
    """

    def __init__(self):
        self.programs = []

    def add_drivers(self, registry: MaterializerRegistry) -> None:
        registry.register("led_bar", verify_led_bar, no_build, children="pin")

    def pre_compile(self, options: CompilerOptions) -> CompilerOptions:
        return replace(options, max_lock_polls=1000)

    def post_compile(self, program: Program) -> None:
        self.programs.append(program)


def setup() -> Conf:
    return BoardConf()
