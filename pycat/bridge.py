#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-19 14:26:01 krylon>
#
# /data/code/python/pycat/bridge.py
# created on 07. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the PyCat network utility. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
pycat.bridge

(c) 2026 Benjamin Walkenhorst

The ShellBridge runs a program and connects its standard input and output
to the network connection instead of our own.

Output from the program has its line endings converted to CRLF before it
goes out on the network. Input from the network is passed to the program a
line at a time; a carriage return is followed by a line feed, and a line
consisting of "exit" (in any case) ends the session without ever reaching
the program.
"""

import logging
import os
import subprocess
from dataclasses import dataclass, field
from threading import Lock, Thread
from typing import Final, Optional

from pycat import common
from pycat.common import CatError
from pycat.connection import Session
from pycat.control import CancelToken, Cancelled, RelayState

CR: Final[int] = 0x0d
LF: Final[int] = 0x0a
exit_keyword: Final[bytes] = b"exit\r\n"


class BridgeError(CatError):
    """Base class for errors in the shell bridge."""


class SpawnFailed(BridgeError):
    """The program could not be started."""


class FeatureDisabled(BridgeError):
    """Running programs on connect has been disabled."""


def to_crlf(data: bytes, prev: int = 0) -> bytes:
    """Insert a CR before every LF in <data> that does not follow a CR already.

    <prev> is the last byte of the previous chunk, if any, so a CRLF that was
    split across two reads is left alone. Applying this twice changes nothing.
    """
    if not data:
        return data

    head: bytes = b""
    if prev == CR and data[0] == LF:
        head, data = data[:1], data[1:]

    return head + data.replace(b"\r\n", b"\n").replace(b"\n", b"\r\n")


@dataclass(kw_only=True, slots=True)
class LineEncoder:
    """LineEncoder applies to_crlf to a stream of chunks."""

    prev: int = 0

    def encode(self, chunk: bytes) -> bytes:
        """Convert one chunk."""
        out: Final[bytes] = to_crlf(chunk, self.prev)
        if chunk:
            self.prev = chunk[-1]
        return out


@dataclass(kw_only=True, slots=True)
class LineAssembler:
    """LineAssembler collects bytes from the network into lines for the program."""

    limit: int = common.BufSize - 1
    buf: bytearray = field(default_factory=bytearray)
    after_cr: bool = False

    def feed(self, byte: int) -> Optional[bytes]:
        """Add one byte. Return a line if one is complete, None otherwise."""
        if byte == LF and self.after_cr:
            # The LF for this CR has been added already.
            self.after_cr = False
            return None

        self.after_cr = byte == CR
        self.buf.append(byte)
        if byte == CR:
            self.buf.append(LF)

        if byte in (CR, LF) or len(self.buf) >= self.limit:
            line: Final[bytes] = bytes(self.buf)
            self.buf.clear()
            return line

        return None


def is_exit(line: bytes) -> bool:
    """Return True if <line> is the exit keyword, in any case."""
    return line.lower() == exit_keyword


@dataclass(kw_only=True, slots=True)
class ShellSession:
    """ShellSession is a running program and the state of both directions."""

    proc: subprocess.Popen
    encoder: LineEncoder = field(default_factory=LineEncoder)
    assembler: LineAssembler = field(default_factory=LineAssembler)

    @property
    def pid(self) -> int:
        """Return the process ID of the program."""
        return self.proc.pid

    @property
    def stdin(self) -> int:
        """Return the file descriptor we write the program's input to."""
        assert self.proc.stdin is not None
        return self.proc.stdin.fileno()

    @property
    def stdout(self) -> int:
        """Return the file descriptor we read the program's output from."""
        assert self.proc.stdout is not None
        return self.proc.stdout.fileno()

    def terminate(self) -> None:
        """Ask the program to quit, unless it already has."""
        if self.proc.poll() is None:
            try:
                self.proc.terminate()
            except ProcessLookupError:
                pass

    def reap(self, grace: float) -> int:
        """Wait for the program to exit, kill it if it takes longer than <grace> seconds."""
        try:
            return self.proc.wait(grace)
        except subprocess.TimeoutExpired:
            self.proc.kill()
            return self.proc.wait()

    def close(self) -> None:
        """Close our ends of the pipes."""
        for pipe in (self.proc.stdin, self.proc.stdout):
            if pipe is not None:
                try:
                    pipe.close()
                except OSError:
                    pass


@dataclass(kw_only=True, slots=True)
class ShellBridge:
    """ShellBridge connects a program to a Session."""

    enabled: bool = common.ExecEnabled
    cancel: CancelToken = field(default_factory=CancelToken)
    grace: float = 2.0
    log: logging.Logger = field(default_factory=lambda: common.get_logger("bridge"))
    lock: Lock = field(default_factory=Lock)
    shell: Optional[ShellSession] = None
    state: RelayState = RelayState.Active
    stop: Optional[CancelToken] = None

    def spawn(self, command: str) -> ShellSession:
        """Start <command>, with its stdin, stdout and stderr connected to pipes.

        The program gets its own basename as its only argument.
        """
        argv0: Final[str] = os.path.basename(command)
        try:
            proc = subprocess.Popen([argv0],
                                    executable=command,
                                    stdin=subprocess.PIPE,
                                    stdout=subprocess.PIPE,
                                    stderr=subprocess.STDOUT,
                                    bufsize=0,
                                    close_fds=True)
        except OSError as err:
            raise SpawnFailed(f"Can't execute {command}", err.errno) from err

        self.log.debug("Started %s, PID %d", command, proc.pid)
        return ShellSession(proc=proc)

    def bridge(self, session: Session, command: str) -> bool:
        """Run <command> on the other end of <session>.

        Return False if running programs is disabled; the caller is expected
        to close the Session then. Otherwise, return True once the program
        and the Session have been torn down.
        """
        if not self.enabled:
            err: Final[FeatureDisabled] = FeatureDisabled("Running programs on connect is disabled")
            self.log.error("%s, closing connection", err)
            return False

        shell: Final[ShellSession] = self.spawn(command)
        self.shell = shell
        self.state = RelayState.Active
        self.stop = self.cancel.child()

        workers: Final[list[Thread]] = [
            Thread(target=self._shell_to_net,
                   name="bridge_shell_out",
                   args=(session, shell),
                   daemon=False),
            Thread(target=self._net_to_shell,
                   name="bridge_shell_in",
                   args=(session, shell),
                   daemon=False),
        ]

        # The pipes are ours alone, they are closed when we are done.
        session.sock.setblocking(False)
        os.set_blocking(shell.stdin, False)
        os.set_blocking(shell.stdout, False)

        try:
            for w in workers:
                w.start()
            for w in workers:
                w.join()
        finally:
            shell.terminate()
            self.stop.set()
            for w in workers:
                if w.ident is not None:
                    w.join()
            status: int = shell.reap(self.grace)
            shell.close()
            if self.state == RelayState.Keyword:
                # The LF after "exit\r" may still be waiting.
                session.drain()
            session.close()
            self.stop.close()

        self.log.info("Shell session ended (%s), %s exited with status %d",
                      self.state.name,
                      command,
                      status)
        return True

    def _finish(self, state: RelayState) -> None:
        """Record why the session ended, then stop the program and the other worker."""
        with self.lock:
            if self.state == RelayState.Active:
                self.state = state
        assert self.shell is not None and self.stop is not None
        self.shell.terminate()
        self.stop.set()

    def _send(self, session: Session, data: bytes) -> None:
        """Send all of <data> to the peer, waiting for room in the socket buffer as needed."""
        assert self.stop is not None
        pos: int = 0
        while pos < len(data):
            self.stop.wait_writable(session.sock)
            try:
                cnt: int = session.sock.send(data[pos:])
            except BlockingIOError:
                continue
            pos += cnt
            session.sent += cnt

    def _write(self, session: Session, shell: ShellSession, line: bytes) -> None:
        """Pass <line> on to the program, see _send."""
        assert self.stop is not None
        pos: int = 0
        while pos < len(line):
            self.stop.wait_writable(shell.stdin)
            try:
                cnt: int = os.write(shell.stdin, line[pos:])
            except BlockingIOError:
                continue
            pos += cnt
            session.received += cnt

    def _shell_to_net(self, session: Session, shell: ShellSession) -> None:
        assert self.stop is not None
        try:
            while True:
                self.stop.wait_readable(shell.stdout)
                try:
                    data: bytes = os.read(shell.stdout, common.BufSize)
                except BlockingIOError:
                    continue
                except OSError as err:
                    self.log.info("Error reading from program: %s", err)
                    self._finish(RelayState.Error)
                    return

                if not data:
                    self.log.info("Program closed its output")
                    self._finish(RelayState.LocalClosed)
                    return

                try:
                    self._send(session, shell.encoder.encode(data))
                except OSError as err:
                    self.log.info("Error sending to network: %s", err)
                    self._finish(RelayState.PeerClosed)
                    return
        except Cancelled:
            self._finish(RelayState.Cancelled)

    def _net_to_shell(self, session: Session, shell: ShellSession) -> None:
        assert self.stop is not None
        try:
            while True:
                self.stop.wait_readable(session.sock)
                try:
                    b: bytes = session.sock.recv(1)
                except BlockingIOError:
                    continue
                except OSError as err:
                    self.log.info("Error receiving from network: %s", err)
                    self._finish(RelayState.PeerClosed)
                    return

                if not b:
                    self.log.info("Network connection closed")
                    self._finish(RelayState.PeerClosed)
                    return

                line: Optional[bytes] = shell.assembler.feed(b[0])
                if line is None:
                    continue
                if is_exit(line):
                    self.log.info("Received exit keyword")
                    self._finish(RelayState.Keyword)
                    return

                try:
                    self._write(session, shell, line)
                except OSError as err:
                    self.log.info("Error writing to program: %s", err)
                    self._finish(RelayState.LocalClosed)
                    return
        except Cancelled:
            self._finish(RelayState.Cancelled)


# Local Variables: #
# python-indent: 4 #
# End: #
