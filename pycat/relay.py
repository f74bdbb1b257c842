#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-19 14:26:01 krylon>
#
# /data/code/python/pycat/relay.py
# created on 06. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the PyCat network utility. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
pycat.relay

(c) 2026 Benjamin Walkenhorst

The Relay shovels bytes between a socket and a pair of local file
descriptors, one worker thread per direction. Whichever direction ends
first ends the whole Session.
"""

import logging
import os
from contextlib import contextmanager
from dataclasses import dataclass, field
from threading import Lock, Thread
from typing import Any, Final, Iterator, Optional, Union

from pycat import common
from pycat.common import CatError
from pycat.connection import Session
from pycat.control import CancelToken, Cancelled, RelayState


class RelayError(CatError):
    """Base class for errors while moving data."""


class ReadFailed(RelayError):
    """Reading from the socket or the local input failed."""


class WriteFailed(RelayError):
    """Writing to the socket or the local output failed."""


class PeerClosed(RelayError):
    """The peer closed the connection."""


@dataclass(kw_only=True, slots=True)
class RelayStats:
    """RelayStats is the outcome of a Relay run."""

    sent: int = 0
    received: int = 0
    state: RelayState = RelayState.Active
    error: Optional[RelayError] = None


def fileno(stream: Union[int, Any]) -> int:
    """Return the file descriptor of <stream>, which may already be one."""
    if isinstance(stream, int):
        return stream
    return stream.fileno()


@contextmanager
def nonblocking(*fds: int) -> Iterator[None]:
    """Put <fds> into non-blocking mode for the duration of the block.

    Each descriptor gets its previous mode back afterwards, unless it has been
    closed in the meantime.
    """
    modes: Final[dict[int, bool]] = {fd: os.get_blocking(fd) for fd in fds}
    for fd in modes:
        os.set_blocking(fd, False)
    try:
        yield
    finally:
        for fd, mode in modes.items():
            try:
                os.set_blocking(fd, mode)
            except OSError:
                pass


@dataclass(kw_only=True, slots=True)
class Relay:
    """Relay copies data between a Session and local input/output."""

    cancel: CancelToken = field(default_factory=CancelToken)
    bufsize: int = common.BufSize
    log: logging.Logger = field(default_factory=lambda: common.get_logger("relay"))
    lock: Lock = field(default_factory=Lock)
    stats: RelayStats = field(default_factory=RelayStats)
    stop: Optional[CancelToken] = None

    def run(self, session: Session, local_in: Union[int, Any], local_out: Union[int, Any]) -> RelayStats:
        """Relay data until either side is done. The Session is closed afterwards."""
        infd: Final[int] = fileno(local_in)
        outfd: Final[int] = fileno(local_out)

        self.stats = RelayStats()
        self.stop = self.cancel.child()

        workers: Final[list[Thread]] = [
            Thread(target=self._net_to_local,
                   name="relay_net_in",
                   args=(session, outfd),
                   daemon=False),
            Thread(target=self._local_to_net,
                   name="relay_net_out",
                   args=(session, infd),
                   daemon=False),
        ]

        # Every wait, for reading or writing, has to notice the stop token.
        session.sock.setblocking(False)
        with nonblocking(infd, outfd):
            try:
                for w in workers:
                    w.start()
                for w in workers:
                    w.join()
            finally:
                self.stop.set()
                for w in workers:
                    if w.ident is not None:
                        w.join()
                session.sent += self.stats.sent
                session.received += self.stats.received
                session.close()
                self.stop.close()

        self.log.debug("Relay finished in state %s, sent %d, received %d",
                       self.stats.state.name,
                       self.stats.sent,
                       self.stats.received)
        return self.stats

    def _finish(self, state: RelayState, err: Optional[RelayError] = None) -> None:
        """Record why the relay ended and tell the other worker to stop."""
        with self.lock:
            if self.stats.state == RelayState.Active:
                self.stats.state = state
                self.stats.error = err
        assert self.stop is not None
        self.stop.set()

    def _write(self, outfd: int, data: bytes) -> None:
        """Write all of <data> to the local output.

        Each write is counted as soon as it has succeeded. Errors are not
        retried, they are raised to the caller.
        """
        assert self.stop is not None
        pos: int = 0
        while pos < len(data):
            self.stop.wait_writable(outfd)
            try:
                cnt: int = os.write(outfd, data[pos:])
            except BlockingIOError:
                continue
            pos += cnt
            self.stats.received += cnt

    def _send(self, session: Session, data: bytes) -> None:
        """Send all of <data> to the peer, see _write."""
        assert self.stop is not None
        pos: int = 0
        while pos < len(data):
            self.stop.wait_writable(session.sock)
            try:
                cnt: int = session.sock.send(data[pos:])
            except BlockingIOError:
                continue
            pos += cnt
            self.stats.sent += cnt

    def _net_to_local(self, session: Session, outfd: int) -> None:
        assert self.stop is not None
        try:
            while True:
                self.stop.wait_readable(session.sock)
                try:
                    data: bytes = session.sock.recv(self.bufsize)
                except BlockingIOError:
                    continue
                except ConnectionError as err:
                    self._finish(RelayState.PeerClosed,
                                 PeerClosed("Connection closed by peer", err.errno))
                    return
                except OSError as err:
                    self._finish(RelayState.Error,
                                 ReadFailed("Error reading from network", err.errno))
                    return

                if not data:
                    self.log.info("Network connection closed")
                    self._finish(RelayState.PeerClosed)
                    return

                try:
                    self._write(outfd, data)
                except OSError as err:
                    self._finish(RelayState.Error,
                                 WriteFailed("Error writing to local output", err.errno))
                    return
        except Cancelled:
            self._finish(RelayState.Cancelled)

    def _local_to_net(self, session: Session, infd: int) -> None:
        assert self.stop is not None
        try:
            while True:
                self.stop.wait_readable(infd)
                try:
                    data: bytes = os.read(infd, self.bufsize)
                except BlockingIOError:
                    continue
                except OSError as err:
                    self._finish(RelayState.Error,
                                 ReadFailed("Error reading local input", err.errno))
                    return

                if not data:
                    self.log.info("Local input closed")
                    self._finish(RelayState.LocalClosed)
                    return

                try:
                    self._send(session, data)
                except ConnectionError as err:
                    self._finish(RelayState.PeerClosed,
                                 PeerClosed("Connection closed by peer", err.errno))
                    return
                except OSError as err:
                    self._finish(RelayState.Error,
                                 WriteFailed("Error writing to network", err.errno))
                    return
        except Cancelled:
            self._finish(RelayState.Cancelled)


def run(session: Session,
        local_in: Union[int, Any],
        local_out: Union[int, Any],
        cancel: Optional[CancelToken] = None) -> RelayStats:
    """Relay data between <session> and the local streams."""
    if cancel is not None:
        return Relay(cancel=cancel).run(session, local_in, local_out)

    token: Final[CancelToken] = CancelToken()
    try:
        return Relay(cancel=token).run(session, local_in, local_out)
    finally:
        token.close()


# Local Variables: #
# python-indent: 4 #
# End: #
