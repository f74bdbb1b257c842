#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-16 17:52:30 krylon>
#
# /data/code/python/pycat/cache.py
# created on 05. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the PyCat network utility. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
pycat.cache

(c) 2026 Benjamin Walkenhorst

Name lookups can be slow, so the Resolver may keep its results in an LMDB
environment between runs. Entries expire after a configurable TTL.
"""

import logging
import pickle
import traceback
from contextlib import contextmanager
from dataclasses import dataclass, field
from datetime import datetime, timedelta
from enum import Enum, auto
from typing import Any, Final, Optional, Union

import lmdb

from pycat import common
from pycat.common import CatError


class CacheError(CatError):
    """Exception class to indicate errors in the caching layer"""


class TxError(CacheError):
    """TxError indicates an error related to transaction-handling."""


class CacheType(Enum):
    """CacheType identifies the different types of lookup we cache."""

    Forward = auto()
    Reverse = auto()


@dataclass(kw_only=True, slots=True)
class CacheItem:
    """CacheItem is a lookup result, plus an expiration timestamp."""

    item: Any
    expires: Optional[datetime] = None

    @property
    def valid(self) -> bool:
        """Return True if the Item's expiration time has not passed, yet."""
        return self.expires is None or self.expires > datetime.now()


@dataclass(kw_only=True, slots=True)
class Tx:
    """Tx wraps a database transaction."""

    tx: lmdb.Transaction
    rw: bool
    ttl: Optional[timedelta]

    def __getitem__(self, key: str) -> Optional[Any]:
        raw = self.tx.get(key.encode())
        if raw is None:
            return None

        item: CacheItem = pickle.loads(raw)
        if item.valid:
            return item.item
        if self.rw:
            self.tx.delete(key.encode())

        return None

    def __setitem__(self, key: str, val: Any) -> None:
        if not self.rw:
            raise TxError("Cannot change the cache in a readonly transaction!")

        exp: Optional[datetime] = None
        if self.ttl is not None:
            exp = datetime.now() + self.ttl

        raw: Final[bytes] = pickle.dumps(CacheItem(item=val, expires=exp))
        self.tx.put(key.encode(), raw, overwrite=True)

    def __contains__(self, key: str) -> bool:
        return self[key] is not None


@dataclass(kw_only=True, slots=True)
class LookupCache:
    """LookupCache stores the results of name lookups in LMDB."""

    root: str = ""
    ttl: Optional[timedelta] = field(default_factory=lambda: timedelta(seconds=300))
    log: logging.Logger = field(default_factory=lambda: common.get_logger("cache"))
    env: lmdb.Environment = field(init=False)
    dbs: dict[CacheType, Any] = field(init=False)

    def __post_init__(self) -> None:
        if self.root == "":
            self.root = str(common.path.cache.joinpath("lmdb"))
        self.log.debug("Open lookup cache in %s", self.root)
        self.env = lmdb.Environment(self.root,
                                    subdir=True,
                                    map_size=1 << 24,
                                    metasync=False,
                                    create=True,
                                    max_dbs=len(CacheType))
        self.dbs = {t: self.env.open_db(t.name.encode()) for t in CacheType}

    @classmethod
    def with_ttl(cls, ttl: Union[int, float, timedelta], root: str = "") -> 'LookupCache':
        """Open the cache with the given TTL (in seconds, or as a timedelta)."""
        if not isinstance(ttl, timedelta):
            ttl = timedelta(seconds=ttl)
        return cls(root=root, ttl=ttl)

    @contextmanager
    def tx(self, kind: CacheType, rw: bool = False):
        """Perform a transaction on one of the caches. Unless rw is True, no changes are permitted."""
        tx: lmdb.Transaction = self.env.begin(write=rw, db=self.dbs[kind])
        try:
            yield Tx(tx=tx, rw=rw, ttl=self.ttl)
        except lmdb.Error as err:
            cname: Final[str] = err.__class__.__name__
            self.log.error("Abort %s cache transaction due to %s: %s\n%s",
                           kind.name,
                           cname,
                           err,
                           "\n".join(traceback.format_exception(err)))
            tx.abort()
        except CacheError:
            tx.abort()
            raise
        else:
            tx.commit()

    def get(self, kind: CacheType, key: str) -> Optional[Any]:
        """Return the cached value for <key>, or None."""
        with self.tx(kind, True) as tx:
            val = tx[key.lower()]
        if val is not None:
            self.log.debug("%s cache hit for %s", kind.name, key)
        return val

    def put(self, kind: CacheType, key: str, val: Any) -> None:
        """Store <val> under <key>."""
        with self.tx(kind, True) as tx:
            tx[key.lower()] = val

    def purge(self, complete: bool = False) -> None:
        """Remove stale entries from the Cache. If <complete> is True, remove ALL entries."""
        for kind, db in self.dbs.items():
            self.log.debug("Purge %s cache", kind.name)
            with self.env.begin(write=True, db=db) as tx:
                stale: list[bytes] = []
                for key, val in tx.cursor():
                    try:
                        item: CacheItem = pickle.loads(val)
                    except pickle.PickleError as err:
                        self.log.error("PickleError trying to de-serialize cache item %s: %s",
                                       key,
                                       err)
                        stale.append(key)
                    else:
                        if complete or not item.valid:
                            stale.append(key)
                for key in stale:
                    tx.delete(key)

    def close(self) -> None:
        """Close the LMDB environment."""
        self.env.close()


# Local Variables: #
# python-indent: 4 #
# End: #
