# SPDX-FileCopyrightText: © 2025 Tenstorrent AI ULC
# SPDX-License-Identifier: Apache-2.0

# pyright: strict

from __future__ import annotations
import importlib.util
from pathlib import Path
from typing import TYPE_CHECKING


if TYPE_CHECKING:
    from platformtree.compiler.registry import MaterializerRegistry
    from platformtree.compiler.builder import Program
    from .options import CompilerOptions


class Conf:
    """
    User configuration for platformtree. Lets a project plug extra drivers into the registry and adjust options or
    inspect the program around a compilation.

    E.g. to support a board-specific ``led_bar`` section:

    .. code-block:: python

        from platformtree.compiler import Builder, Conf, MaterializerRegistry, Node, no_build

        def verify_led_bar(builder: Builder, node: Node) -> None:
            node.expect_no_attributes()

        class BoardConf(Conf):
            def add_drivers(self, registry: MaterializerRegistry) -> None:
                registry.register("led_bar", verify_led_bar, no_build, children="pin")

        def setup() -> Conf:
            return BoardConf()

    E.g. to force bounded lock polls on every build:

    .. code-block:: python

        from dataclasses import replace

        class BoundedConf(Conf):
            def pre_compile(self, options: CompilerOptions) -> CompilerOptions:
                return replace(options, max_lock_polls=100_000)

    """

    def __init__(self):
        pass

    def add_drivers(self, registry: MaterializerRegistry) -> None:
        """
        Called after the default drivers are registered, before the description is loaded.

        :param registry: registry to add node kinds to
        """
        pass

    def pre_compile(self, options: CompilerOptions) -> CompilerOptions:
        """
        Called right before compiling. Returns the options to compile with.

        :param options: options built from the command line
        """
        return options

    def post_compile(self, program: Program) -> None:
        """
        Called after a successful compilation, before anything is written.

        :param program: the compiled program
        """
        pass

    @staticmethod
    def load_conf_from_path(path: Path) -> Conf:
        """
        Dynamically loads a ``Conf`` from a ``.py`` script.
        The file must define a ``setup()`` function that returns an initialized ``Conf`` object.

        Used by ``ptc`` for the ``--conf`` command-line option.

        :raises FileNotFoundError: If the configuration file does not exist
        :raises ImportError: If the configuration module cannot be imported
        :raises RuntimeError: If the configuration module does not contain a ``setup()`` method that returns a ``Conf`` object.

        """
        if not path.exists():
            raise FileNotFoundError(f"Configuration file {path} does not exist")

        spec = importlib.util.spec_from_file_location("platformtree_conf", str(path))
        if spec is None or spec.loader is None:
            raise ImportError(f"Configuration file {path} cannot be imported: {spec=}")
        module = importlib.util.module_from_spec(spec)
        spec.loader.exec_module(module)

        if not hasattr(module, "setup"):
            raise RuntimeError(f"Configuration file {path} does not contain a setup() method. Define a setup() method that returns a Conf object.")
        conf_obj = module.setup()
        if not isinstance(conf_obj, Conf):
            raise RuntimeError(f"Configuration file {path} setup() method did not return a Conf object. Returned {type(conf_obj)}")
        return conf_obj
