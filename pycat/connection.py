#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-19 14:21:02 krylon>
#
# /data/code/python/pycat/connection.py
# created on 04. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the PyCat network utility. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
pycat.connection

(c) 2026 Benjamin Walkenhorst

Create sockets, and either connect them to a remote host or wait for a
peer to connect to us.
"""

import errno
import logging
import socket
from dataclasses import dataclass, field
from threading import Lock
from typing import Final, Optional

from pycat import common
from pycat.common import CatError
from pycat.control import CancelToken, RelayState
from pycat.model import Config, Direction, HostRecord, PortSpec, Transport

any_addr: Final[str] = "0.0.0.0"


class SocketError(CatError):
    """Base class for errors establishing a connection."""


class CreateFailed(SocketError):
    """The socket could not be created."""


class BindFailed(SocketError):
    """The socket could not be bound to the requested address/port."""


class ConnectFailed(SocketError):
    """Connecting to the remote end failed."""


class ListenFailed(SocketError):
    """The socket could not be put into the listening state."""


class AcceptFailed(SocketError):
    """Waiting for an inbound connection failed."""


class ConnectTimeout(SocketError):
    """Connecting took longer than we were willing to wait."""


def _errno(err: OSError) -> Optional[int]:
    if isinstance(err, socket.timeout):
        return errno.ETIMEDOUT
    return err.errno


@dataclass(kw_only=True, slots=True)
class Session:
    """Session is a live connection, or a socket waiting for one."""

    sock: socket.socket
    direction: Direction
    transport: Transport
    peer: Optional[tuple[str, int]] = None
    listening: bool = False
    sent: int = 0
    received: int = 0
    state: RelayState = RelayState.Active
    log: logging.Logger = field(default_factory=lambda: common.get_logger("session"))
    lock: Lock = field(default_factory=Lock)
    _closed: bool = False

    @property
    def closed(self) -> bool:
        """Return True if the Session's socket has been closed."""
        with self.lock:
            return self._closed

    @property
    def local(self) -> tuple[str, int]:
        """Return the local address and port of the socket."""
        return self.sock.getsockname()

    def fileno(self) -> int:
        """Return the socket's file descriptor."""
        return self.sock.fileno()

    def accept(self, cancel: CancelToken) -> 'Session':
        """Wait for a peer to connect. Return the Session for that connection.

        The listening socket is closed once a peer has connected.
        """
        assert self.listening, "accept() is only valid on a listening Session"

        while not cancel.wait_readable(self.sock):
            pass

        try:
            if self.transport == Transport.UDP:
                sock = self._accept_datagram()
            else:
                sock, _ = self.sock.accept()
        except OSError as err:
            self.close()
            raise AcceptFailed("accept failed", _errno(err)) from err

        self.close()
        peer = sock.getpeername()
        self.log.debug("Accepted connection from %s:%d", peer[0], peer[1])
        return Session(sock=sock,
                       direction=Direction.Inbound,
                       transport=self.transport,
                       peer=peer)

    def _accept_datagram(self) -> socket.socket:
        """Emulate accept for UDP: connect to the sender of the first datagram.

        The datagram is only peeked at, so it is still there for the relay.
        """
        _, peer = self.sock.recvfrom(common.BufSize, socket.MSG_PEEK)
        sock = self.sock.dup()
        sock.connect(peer)
        return sock

    def drain(self) -> int:
        """Discard data the peer has sent that nobody is going to read.

        A TCP socket that is closed with unread data resets the connection
        instead of closing it cleanly. Only what has already arrived is
        discarded, up to one buffer full. Return the number of bytes dropped.
        """
        if self.closed:
            return 0
        try:
            data: Final[bytes] = self.sock.recv(common.BufSize, socket.MSG_DONTWAIT)
        except OSError:
            return 0
        if data:
            self.log.debug("Discarded %d unread bytes from peer", len(data))
        return len(data)

    def close(self) -> None:
        """Shut down and close the socket. Only the first call has any effect."""
        with self.lock:
            if self._closed:
                return
            self._closed = True
            self.state = RelayState.Terminated

        if not self.listening and self.transport == Transport.TCP:
            try:
                self.sock.shutdown(socket.SHUT_RDWR)
            except OSError:
                pass
        self.sock.close()


@dataclass(kw_only=True, slots=True)
class Establisher:
    """Establisher creates the socket for a run and connects it or makes it listen."""

    cfg: Config
    cancel: CancelToken = field(default_factory=CancelToken)
    log: logging.Logger = field(default_factory=lambda: common.get_logger("establish"))

    def establish(self,
                  remote: Optional[HostRecord],
                  remote_port: Optional[PortSpec]) -> Session:
        """Return a listening Session in listen mode, a connected one otherwise.

        In zero-I/O mode, the connected Session is closed before it is returned.
        """
        if self.cfg.listen:
            return self.listen()

        if remote is None or remote_port is None:
            raise ConnectFailed("No destination to connect to")

        session: Final[Session] = self.connect(remote, remote_port)
        if self.cfg.zero_io:
            self.log.debug("Zero-I/O mode, closing connection to %s:%d",
                           remote.astr,
                           remote_port.num)
            session.close()
        return session

    def _socket(self) -> socket.socket:
        transport: Final[Transport] = self.cfg.transport
        try:
            sock = socket.socket(socket.AF_INET, transport.socktype)
        except OSError as err:
            raise CreateFailed("Can't get socket", _errno(err)) from err

        try:
            sock.setsockopt(socket.SOL_SOCKET, socket.SO_REUSEADDR, 1)
        except OSError as err:
            self.log.info("setsockopt reuseaddr failed: %s", err)

        laddr: Final[Optional[str]] = self.cfg.local_addr
        lport: Final[PortSpec] = self.cfg.local_port
        if laddr is not None or lport.valid:
            try:
                sock.bind((laddr or any_addr, lport.num))
            except OSError as err:
                sock.close()
                raise BindFailed(f"Can't bind to {laddr or any_addr}:{lport.num}",
                                 _errno(err)) from err

        return sock

    def listen(self) -> Session:
        """Create a socket and prepare it for accepting a connection."""
        sock: Final[socket.socket] = self._socket()
        if self.cfg.transport == Transport.TCP:
            try:
                sock.listen(1)
            except OSError as err:
                sock.close()
                raise ListenFailed("listen failed", _errno(err)) from err

        return Session(sock=sock,
                       direction=Direction.Inbound,
                       transport=self.cfg.transport,
                       listening=True)

    def connect(self, remote: HostRecord, port: PortSpec) -> Session:
        """Connect to the first address of <remote>.

        If a wait time is configured, give up after that many seconds.
        """
        if not port.valid:
            raise ConnectFailed(f"Can't connect to {remote.astr}: no port given")

        sock: Final[socket.socket] = self._socket()
        target: Final[tuple[str, int]] = (remote.astr, port.num)
        timeout: Final[Optional[float]] = self.cfg.wait_seconds or None

        self.log.debug("Connecting to %s:%d", target[0], target[1])

        try:
            sock.setblocking(False)
            err: int = sock.connect_ex(target)
            if err in (errno.EINPROGRESS, errno.EWOULDBLOCK, errno.EALREADY):
                if not self.cancel.wait_writable(sock, timeout):
                    raise ConnectTimeout(f"Can't connect to {target[0]}:{target[1]}",
                                         errno.ETIMEDOUT)
                err = sock.getsockopt(socket.SOL_SOCKET, socket.SO_ERROR)
            if err != 0:
                raise ConnectFailed(f"Can't connect to {target[0]}:{target[1]}", err)
            sock.setblocking(True)
        except CatError:
            sock.close()
            raise
        except OSError as oerr:
            sock.close()
            raise ConnectFailed(f"Can't connect to {target[0]}:{target[1]}",
                                _errno(oerr)) from oerr

        return Session(sock=sock,
                       direction=Direction.Outbound,
                       transport=self.cfg.transport,
                       peer=target)


def establish(cfg: Config,
              remote: Optional[HostRecord],
              remote_port: Optional[PortSpec],
              cancel: Optional[CancelToken] = None) -> Session:
    """Create an Establisher for <cfg> and establish a Session."""
    token: Final[CancelToken] = cancel or CancelToken()
    try:
        est = Establisher(cfg=cfg, cancel=token)
        return est.establish(remote, remote_port)
    finally:
        if cancel is None:
            token.close()


# Local Variables: #
# python-indent: 4 #
# End: #
