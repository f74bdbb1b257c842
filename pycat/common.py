#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-12 18:21:07 krylon>
#
# /data/code/python/pycat/common.py
# created on 02. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the PyCat network utility. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
pycat.common

(c) 2026 Benjamin Walkenhorst
"""

import logging
import logging.handlers
import os
import pathlib
import sys
from threading import Lock
from typing import Final, Optional

AppName: Final[str] = "PyCat"
AppVersion: Final[str] = "0.1.0"
Debug: Final[bool] = False
ExecEnabled: Final[bool] = True
BufSize: Final[int] = 8192
LookupTimeout: Final[float] = 5.0

log_level_tty: int = logging.ERROR


class CatError(Exception):
    """Base class for application-specific Exceptions.

    If the error was caused by a failing system call, <errno> holds the
    error number, and the system's error text is appended to the message.
    """

    errno: Optional[int]

    def __init__(self, msg: str, errno: Optional[int] = None) -> None:
        super().__init__(msg)
        self.errno = errno

    @property
    def msg(self) -> str:
        """Return the bare message, without the system error text."""
        return str(self.args[0]) if self.args else ""

    def __str__(self) -> str:
        if self.errno:
            return f"{self.msg}: {os.strerror(self.errno)}"
        return self.msg


class Path:
    """Holds the paths of folders and files used by the application"""

    __base: str

    def __init__(self, root: str = os.path.expanduser(f"~/.{AppName.lower()}.d")) -> None:  # noqa
        self.__base = root

    def base(self, folder: str = "") -> pathlib.Path:
        """
        Return the base directory for application specific files.

        If path is a non-empty string, set the base directory to its value.
        """
        if folder != "":
            self.__base = folder
        return pathlib.Path(self.__base)

    @property
    def log(self) -> pathlib.Path:
        """Return the path to the log file"""
        return pathlib.Path(os.path.join(self.__base, f"{AppName.lower()}.log"))

    @property
    def cache(self) -> pathlib.Path:
        """Return the path of the cache directory."""
        return pathlib.Path(os.path.join(self.__base, "cache"))

    @property
    def config(self) -> pathlib.Path:
        """Return the path of the configuration file"""
        return pathlib.Path(os.path.join(self.__base, f"{AppName.lower()}.toml"))


path: Path = Path(os.path.expanduser(f"~/.{AppName.lower()}.d"))

_lock: Final[Lock] = Lock()  # pylint: disable-msg=C0103
_cache: Final[dict[str, logging.Logger]] = {}  # pylint: disable-msg=C0103
_tty: Final[list[logging.Handler]] = []  # pylint: disable-msg=C0103


def set_basedir(folder: str) -> None:
    """Set the base dir to the speficied path."""
    path.base(str(folder))
    init_app()


def init_app() -> None:
    """Initialize the application environment"""
    if not os.path.isdir(path.base()):
        os.mkdir(path.base())
    if not os.path.isdir(path.cache):
        os.mkdir(path.cache)


def tty_level(verbosity: int) -> int:
    """Map a verbosity level (number of -v flags) to a logging level."""
    if verbosity <= 0:
        return logging.ERROR
    if verbosity == 1:
        return logging.INFO
    return logging.DEBUG


def set_verbosity(verbosity: int) -> None:
    """Adjust the level of all terminal log handlers, including future ones."""
    global log_level_tty  # pylint: disable-msg=W0603
    with _lock:
        log_level_tty = tty_level(verbosity)
        for handler in _tty:
            handler.setLevel(log_level_tty)


def get_logger(name: str, terminal: bool = True) -> logging.Logger:
    """Create and return a logger with the given name.

    The terminal handler writes to stderr, stdout belongs to the relayed data.
    """
    with _lock:
        init_app()

        if name in _cache:
            return _cache[name]

        log_format = "%(asctime)s (%(name)-16s / line %(lineno)-4d) " + \
            "- %(levelname)-8s %(message)s"
        max_log_size = 4 * 2**20  # 4 MiB
        max_log_count = 10

        log_obj = logging.getLogger(f"{AppName.lower()}.{name}")
        log_obj.setLevel(logging.DEBUG)
        log_obj.propagate = False
        log_file_handler = logging.handlers.RotatingFileHandler(path.log,
                                                                'a',
                                                                max_log_size,
                                                                max_log_count)

        log_fmt = logging.Formatter(log_format)
        log_file_handler.setFormatter(log_fmt)
        log_obj.addHandler(log_file_handler)

        if terminal:
            log_console_handler = logging.StreamHandler(sys.stderr)
            log_console_handler.setFormatter(
                logging.Formatter(f"{AppName.lower()}: %(message)s"))
            log_console_handler.setLevel(log_level_tty)
            log_obj.addHandler(log_console_handler)
            _tty.append(log_console_handler)

        _cache[name] = log_obj
        return log_obj


# Local Variables: #
# python-indent: 4 #
# End: #
