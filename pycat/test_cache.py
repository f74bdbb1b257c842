#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-16 18:10:44 krylon>
#
# /data/code/python/pycat/test_cache.py
# created on 05. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the PyCat network utility. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
pycat.test_cache

(c) 2026 Benjamin Walkenhorst
"""

import os
import shutil
import unittest
from datetime import datetime, timedelta
from typing import Final, Optional

from pycat import common
from pycat.cache import CacheType, LookupCache, TxError

test_dir: Final[str] = os.path.join(
    "/tmp",
    datetime.now().strftime(f"{common.AppName.lower()}_test_cache_%Y%m%d_%H%M%S"))


class TestLookupCache(unittest.TestCase):
    """Test the LookupCache."""

    _cache: Optional[LookupCache] = None

    @classmethod
    def setUpClass(cls) -> None:
        """Prepare the testing environment."""
        common.set_basedir(test_dir)

    @classmethod
    def tearDownClass(cls) -> None:
        """Clean up afterwards."""
        if cls._cache is not None:
            cls._cache.close()
        shutil.rmtree(test_dir, ignore_errors=True)

    @classmethod
    def cache(cls, c: Optional[LookupCache] = None) -> LookupCache:
        """Set or return the LookupCache."""
        if c is not None:
            cls._cache = c
        if cls._cache is not None:
            return cls._cache

        raise ValueError("LookupCache instance is None")

    def test_01_open(self) -> None:
        """Attempt to open the cache."""
        c: LookupCache = LookupCache.with_ttl(60)
        self.assertIsNotNone(c)
        self.assertEqual(c.ttl, timedelta(seconds=60))
        self.cache(c)

    def test_02_put_get(self) -> None:
        """Store a few values and get them back."""
        c: Final[LookupCache] = self.cache()
        c.put(CacheType.Forward, "www.example.com", ("www.example.com", ["192.0.2.1"]))
        c.put(CacheType.Reverse, "192.0.2.1", "www.example.com")

        self.assertEqual(c.get(CacheType.Forward, "WWW.Example.COM"),
                         ("www.example.com", ["192.0.2.1"]))
        self.assertEqual(c.get(CacheType.Reverse, "192.0.2.1"), "www.example.com")
        # The two kinds of lookups do not share their keys.
        self.assertIsNone(c.get(CacheType.Reverse, "www.example.com"))
        self.assertIsNone(c.get(CacheType.Forward, "nonexistent.example.com"))

    def test_03_readonly(self) -> None:
        """Writing in a readonly transaction must fail."""
        c: Final[LookupCache] = self.cache()
        with self.assertRaises(TxError):
            with c.tx(CacheType.Forward) as tx:
                tx["foo"] = "bar"
        self.assertIsNone(c.get(CacheType.Forward, "foo"))

    def test_04_expire(self) -> None:
        """Items past their expiration are not returned, purge removes them."""
        c: Final[LookupCache] = LookupCache.with_ttl(timedelta(seconds=-1),
                                                     os.path.join(test_dir, "expired"))
        try:
            c.put(CacheType.Forward, "old.example.com", ("old.example.com", ["192.0.2.2"]))
            c.put(CacheType.Forward, "older.example.com", ("older.example.com", ["192.0.2.3"]))

            db = c.dbs[CacheType.Forward]
            with c.env.begin(db=db) as tx:
                self.assertEqual(tx.stat(db)["entries"], 2)

            c.purge()

            with c.env.begin(db=db) as tx:
                self.assertEqual(tx.stat(db)["entries"], 0)
            self.assertIsNone(c.get(CacheType.Forward, "old.example.com"))
        finally:
            c.close()

    def test_05_purge_complete(self) -> None:
        """A complete purge removes valid entries, too."""
        c: Final[LookupCache] = self.cache()
        c.purge(complete=True)
        self.assertIsNone(c.get(CacheType.Forward, "www.example.com"))
        self.assertIsNone(c.get(CacheType.Reverse, "192.0.2.1"))


# Local Variables: #
# python-indent: 4 #
# End: #
