# SPDX-FileCopyrightText: © 2025 Tenstorrent AI ULC
# SPDX-License-Identifier: Apache-2.0

import os
import sys
import logging
import argparse
from pathlib import Path
from typing import Optional, Union

PACKAGE_LOGGER = "platformtree"


class LoggerError(Exception):
    "Generic Error for logger setup"

    pass


class MaxSizeHandler(logging.Handler):
    """
    File handler that checks the file size before every write.
    Raises ``LoggerError`` once the log file grows past ``max_bytes``.

    :param filename: Path to log file
    :param max_bytes: Largest size the file may reach before writes fail
    :param mode: File open mode
    """

    def __init__(self, filename: Union[str, Path], max_bytes: int, mode: str = "a"):
        super().__init__()
        self.filename = Path(filename)
        self.max_bytes = max_bytes
        self.stream = open(self.filename, mode)

    def emit(self, record: logging.LogRecord):
        if self.stream is None:
            raise LoggerError("Stream is not open but emit was called")
        self.stream.flush()
        size = os.path.getsize(self.filename)
        if size > self.max_bytes:
            raise LoggerError(f"Log file {self.filename} exceeded its size limit - wrote {size} / {self.max_bytes} bytes")
        self.stream.write(self.format(record) + "\n")

    def close(self):
        if self.stream is not None:
            self.stream.close()
            self.stream = None
        super().close()


def log_format(verbose: bool = False, timestamp: bool = True) -> logging.Formatter:
    """
    Formatter for log messages. Verbose output includes filename and function name.

    :param verbose: include filename and function name
    :param timestamp: prefix each line with an ISO timestamp
    """
    if verbose:
        fmt = "%(levelname)s %(name)s %(filename)s:%(lineno)d %(funcName)s(): %(message)s"
    else:
        fmt = "%(levelname)s %(name)s:%(lineno)d  %(message)s"
    if timestamp:
        fmt = "[%(asctime)s]" + fmt
    return logging.Formatter(fmt, datefmt="%Y-%m-%dT%H:%M:%S")


def add_arguments(parser: argparse.ArgumentParser):
    """Add logger arguments to parser.

    :param parser: ArgumentParser to add logger arguments to
    :type parser: argparse.ArgumentParser
    """
    logger_parser = parser.add_argument_group("Logger", description="Arguments that affect Logger behavior")
    logger_parser.add_argument("--logger_level", type=str.upper, default="INFO", choices=["DEBUG", "INFO", "WARNING", "ERROR"], help="Logger level")
    logger_parser.add_argument("--logger_file", type=Path, default=None, help="Logger file path")
    logger_parser.add_argument("--logger_no_tee", dest="logger_tee", action="store_false", default=True, help="Do not tee log output. Default command line behavior is to tee to stderr")
    logger_parser.add_argument("--logger_no_timestamp", dest="logger_timestamp", action="store_false", default=True, help="Do not include timestamp in log messages")
    logger_parser.add_argument("--logger_max_file_size_gb", type=float, default=1, help="Max size of log file in GB. Throws error if exceeded")
    logger_parser.add_argument("--logger_verbose", dest="verbose_logging", action="store_true", default=False, help="Enable verbose logging (filename, function name)")


def from_clargs(args: argparse.Namespace, default_logger_file: Optional[Path] = None):
    "Initialize the package logger from command-line arguments. ``default_logger_file`` is used when ``--logger_file`` isn't passed"
    logger_file = args.logger_file
    if logger_file is None:
        if default_logger_file is None:
            raise LoggerError("No --logger_file specified and no default_logger_file set")
        logger_file = default_logger_file
    init_logger(
        logger_file,
        level=args.logger_level,
        max_log_size=args.logger_max_file_size_gb,
        tee_to_stderr=args.logger_tee,
        logger_timestamp=args.logger_timestamp,
        verbose=args.verbose_logging,
    )


def init_logger(
    log_path: Union[str, Path],
    level: str = "WARNING",
    max_log_size: float = 1,
    tee_to_stderr: bool = False,
    logger_timestamp: bool = True,
    verbose: bool = False,
) -> None:
    """
    Initializes the package-wide ``platformtree`` logger. Calling it again while handlers are attached does nothing;
    use :func:`close_logger` first to switch files.

    :param log_path: Path to log file
    :type log_path: str or Path
    :param level: Logging level name (DEBUG, INFO, WARNING, ERROR)
    :type level: str
    :param max_log_size: Maximum log file size in GB
    :type max_log_size: float
    :param tee_to_stderr: Also write records to stderr
    :param verbose: Enable verbose logging

    .. code-block:: python

        from platformtree.lib.logger import init_logger
        init_logger(log_path="blink.ptlog", level="DEBUG", tee_to_stderr=True)

        # in other modules
        import logging
        log = logging.getLogger(__name__)
        log.info("compiling")
    """

    logger = logging.getLogger(PACKAGE_LOGGER)
    if any(not isinstance(h, logging.NullHandler) for h in logger.handlers):
        return

    formatter = log_format(verbose=verbose, timestamp=logger_timestamp)

    if tee_to_stderr:
        stderr_handler = logging.StreamHandler(sys.stderr)
        stderr_handler.setFormatter(formatter)
        logger.addHandler(stderr_handler)

    file_handler = MaxSizeHandler(
        filename=log_path,
        mode="w",
        max_bytes=int(1024 * 1024 * 1024 * max_log_size),
    )
    file_handler.setFormatter(formatter)
    logger.addHandler(file_handler)

    logger.propagate = False  # package-wide logger, keep records out of the root logger
    logger.setLevel(getattr(logging, level.upper()))
    logging.getLogger(__name__).info(f"Logger initialized, writing {log_path} at level {level}")


def close_logger():
    """
    Close and detach every handler on the package logger so it can be initialized again with a new file.
    """

    logger = logging.getLogger(PACKAGE_LOGGER)
    for handler in logger.handlers[:]:
        if isinstance(handler, logging.NullHandler):
            continue
        handler.close()
        logger.removeHandler(handler)
    logger.setLevel(logging.NOTSET)
    logger.propagate = True


def set_package_log_level(package_name: str, level: int):
    """
    Set log level for a package and all of its already-loaded modules.
    Needed because the package logger does not propagate to the root logger.

    .. code-block:: python

        from platformtree.lib.logger import set_package_log_level
        set_package_log_level("platformtree.drivers", logging.DEBUG)

    """
    logging.getLogger(package_name).setLevel(level)
    prefix = package_name + "."
    for name in list(logging.Logger.manager.loggerDict.keys()):
        if name.startswith(prefix):
            logging.getLogger(name).setLevel(level)
