#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-18 21:30:55 krylon>
#
# /data/code/python/pycat/supervisor.py
# created on 08. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the PyCat network utility. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
pycat.supervisor

(c) 2026 Benjamin Walkenhorst
"""

import logging
import signal
import sys
from dataclasses import dataclass, field
from typing import Any, Final, Optional

from pycat import common
from pycat.bridge import ShellBridge
from pycat.cache import LookupCache
from pycat.common import CatError
from pycat.connection import ConnectFailed, Establisher, Session
from pycat.control import CancelToken, Cancelled
from pycat.model import Config, HostRecord
from pycat.relay import PeerClosed, Relay, RelayStats
from pycat.resolver import Resolver

handled_signals: Final[tuple[signal.Signals, ...]] = (signal.SIGINT, signal.SIGTERM)


@dataclass(kw_only=True, slots=True)
class Supervisor:
    """Supervisor brings together all the moving parts of a run.

    It owns the active Session and the CancelToken all blocking operations
    wait on. Fatal errors end up in fail(), signals in abort(); finish()
    releases everything and is safe to call more than once.
    """

    verbose: int = 0
    log: logging.Logger = field(default_factory=lambda: common.get_logger("supervisor"))
    cancel: CancelToken = field(default_factory=CancelToken)
    session: Optional[Session] = None
    signum: Optional[int] = None
    _handlers: dict[int, Any] = field(default_factory=dict)
    _finished: bool = False

    def __post_init__(self) -> None:
        common.set_verbosity(self.verbose)

    @property
    def sent(self) -> int:
        """Return the number of bytes sent to the network."""
        return self.session.sent if self.session is not None else 0

    @property
    def received(self) -> int:
        """Return the number of bytes received from the network and delivered locally."""
        return self.session.received if self.session is not None else 0

    @property
    def interrupted(self) -> bool:
        """Return True if we caught a signal."""
        return self.signum is not None

    def install_signals(self) -> None:
        """Catch SIGINT and SIGTERM."""
        for sig in handled_signals:
            self._handlers[sig] = signal.signal(sig, self._catch)

    def _catch(self, signum: int, _frame: Any) -> None:
        self.signum = signum
        self.cancel.set()

    def run(self, cfg: Config) -> int:
        """Perform one run as described by <cfg>, return the exit status.

        Errors are raised, not handled, so they can be passed to fail().
        """
        self.verbose = cfg.verbose_level
        common.set_verbosity(self.verbose)

        cache: Optional[LookupCache] = None
        if cfg.cache_lookups:
            cache = LookupCache.with_ttl(cfg.cache_ttl)

        res: Final[Resolver] = Resolver(verbose=self.verbose > 0,
                                        timeout=cfg.lookup_timeout,
                                        cache=cache)
        try:
            return self._run(cfg, res)
        finally:
            if cache is not None:
                cache.purge()
                cache.close()

    def _run(self, cfg: Config, res: Resolver) -> int:
        remote: Optional[HostRecord] = None

        if not cfg.listen:
            if cfg.host is None:
                raise ConnectFailed("No destination to connect to")
            remote = res.resolve_host(cfg.host, cfg.numeric_only)
            if len(remote.addrs) > 1:
                self.log.debug("%s has %d addresses, using %s",
                               cfg.host,
                               len(remote.addrs),
                               remote.astr)

        est: Final[Establisher] = Establisher(cfg=cfg, cancel=self.cancel)
        self.session = est.establish(remote, cfg.remote_port)

        if cfg.listen:
            laddr, lport = self.session.local
            self.log.info("Listening on [%s] %d ...", laddr, lport)
            self.session = self.session.accept(self.cancel)
            assert self.session.peer is not None
            peer: Final[HostRecord] = res.resolve_host(self.session.peer[0], cfg.numeric_only)
            self.log.info("Connect to [%s] from %s [%s] %d",
                          self.session.local[0],
                          peer.name,
                          peer.astr,
                          self.session.peer[1])
        else:
            assert remote is not None and cfg.remote_port is not None
            self.log.info("%s [%s] %s open",
                          remote.name,
                          remote.astr,
                          cfg.remote_port)

        if cfg.zero_io:
            self.session.close()
            return 0

        if cfg.shell_path is not None:
            bridge: Final[ShellBridge] = ShellBridge(enabled=cfg.exec_enabled,
                                                     cancel=self.cancel)
            if not bridge.bridge(self.session, cfg.shell_path):
                self.session.close()
            if self.interrupted:
                raise Cancelled()
            return 0

        stats: Final[RelayStats] = Relay(cancel=self.cancel).run(self.session,
                                                                 sys.stdin.fileno(),
                                                                 sys.stdout.fileno())
        if self.interrupted:
            raise Cancelled()
        if stats.error is not None:
            if not isinstance(stats.error, PeerClosed):
                raise stats.error
            self.log.info("%s", stats.error)

        self.log.info("Total: sent %d, received %d", self.sent, self.received)
        return 0

    def fail(self, err: CatError) -> int:
        """Report a fatal error, release all resources, return the exit status.

        Errors are logged at a level that is shown regardless of verbosity.
        """
        self.log.error("%s", err)
        self.finish()
        return 1

    def abort(self) -> int:
        """Report that we were interrupted by a signal, release all resources."""
        if self.verbose > 1 and self.signum is not None:
            self.log.error("Caught signal %d, sent %d, rcvd %d",
                           self.signum,
                           self.sent,
                           self.received)
        else:
            self.log.error("Interrupted!")
        self.finish()
        return 1

    def finish(self) -> None:
        """Close the active Session, restore signal handlers, release the CancelToken."""
        if self._finished:
            return
        self._finished = True

        if self.session is not None:
            self.session.close()
        for sig, handler in self._handlers.items():
            signal.signal(sig, handler)
        self._handlers.clear()
        self.cancel.close()


# Local Variables: #
# python-indent: 4 #
# End: #
