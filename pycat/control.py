#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-15 21:40:12 krylon>
#
# /data/code/python/pycat/control.py
# created on 03. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the PyCat network utility. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
pycat.control

(c) 2026 Benjamin Walkenhorst

This file contains data types for controlling worker threads and the
blocking operations of the connection engine.

Every place where we might block (accept, connect, reads on sockets, pipes,
or stdin) waits through a CancelToken. The token owns a pipe; setting the
token writes a byte into it, which makes every select() that includes the
read end return immediately. The pipe is never drained, so a token stays
set once it has been set.
"""

import os
import select
from enum import Enum, auto
from typing import Any, Optional

from pycat.common import CatError


class Cancelled(CatError):
    """Cancelled is raised when a wait is interrupted by its CancelToken."""

    def __init__(self, msg: str = "Operation was cancelled") -> None:
        super().__init__(msg)


class RelayState(Enum):
    """RelayState is the state of a relay or shell-bridge session."""

    Active = auto()
    PeerClosed = auto()
    LocalClosed = auto()
    Keyword = auto()
    Error = auto()
    Cancelled = auto()
    Terminated = auto()


class CancelToken:
    """CancelToken signals cancellation to any number of waiting threads.

    set() does not take any locks, so it is safe to call from a signal
    handler.
    """

    __slots__ = [
        "_flag",
        "_rfd",
        "_wfd",
        "parent",
    ]

    _flag: bool
    _rfd: int
    _wfd: int
    parent: Optional['CancelToken']

    def __init__(self, parent: Optional['CancelToken'] = None) -> None:
        self._flag = False
        self.parent = parent
        self._rfd, self._wfd = os.pipe()
        os.set_blocking(self._rfd, False)
        os.set_blocking(self._wfd, False)

    def child(self) -> 'CancelToken':
        """Return a new token that is also cancelled when this one is."""
        return CancelToken(parent=self)

    def fileno(self) -> int:
        """Return the file descriptor that becomes readable on cancellation."""
        return self._rfd

    def is_set(self) -> bool:
        """Return True if this token or one of its ancestors was set."""
        if self._flag:
            return True
        return self.parent is not None and self.parent.is_set()

    def set(self) -> None:
        """Cancel all waits on this token."""
        if self._flag:
            return
        self._flag = True
        try:
            os.write(self._wfd, b"!")
        except (BlockingIOError, OSError):
            pass

    def _fds(self) -> list[int]:
        fds: list[int] = []
        token: Optional[CancelToken] = self
        while token is not None:
            fds.append(token.fileno())
            token = token.parent
        return fds

    def wait_readable(self, obj: Any, timeout: Optional[float] = None) -> bool:
        """Wait until <obj> is readable.

        Return False if <timeout> expired, raise Cancelled if the token was set.
        """
        if self.is_set():
            raise Cancelled()
        rlist, _, _ = select.select([obj, *self._fds()], [], [], timeout)
        if self.is_set():
            raise Cancelled()
        return obj in rlist

    def wait_writable(self, obj: Any, timeout: Optional[float] = None) -> bool:
        """Wait until <obj> is writable, e.g. a non-blocking connect has finished.

        Return False if <timeout> expired, raise Cancelled if the token was set.
        """
        if self.is_set():
            raise Cancelled()
        _, wlist, _ = select.select(self._fds(), [obj], [], timeout)
        if self.is_set():
            raise Cancelled()
        return obj in wlist

    def close(self) -> None:
        """Release the token's pipe."""
        for fd in (self._rfd, self._wfd):
            try:
                os.close(fd)
            except OSError:
                pass
        self._rfd = self._wfd = -1


# Local Variables: #
# python-indent: 4 #
# End: #
