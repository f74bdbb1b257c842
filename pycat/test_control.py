#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-15 21:58:03 krylon>
#
# /data/code/python/pycat/test_control.py
# created on 03. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the PyCat network utility. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
pycat.test_control

(c) 2026 Benjamin Walkenhorst
"""

import os
import threading
import time
import unittest
from typing import Final

from pycat.control import CancelToken, Cancelled


class TestCancelToken(unittest.TestCase):
    """Test the CancelToken."""

    def test_01_timeout(self) -> None:
        """Waiting on an idle pipe should time out."""
        tok: Final[CancelToken] = CancelToken()
        r, w = os.pipe()
        try:
            self.assertFalse(tok.wait_readable(r, 0.05))
            os.write(w, b"x")
            self.assertTrue(tok.wait_readable(r, 1))
        finally:
            os.close(r)
            os.close(w)
            tok.close()

    def test_02_cancel(self) -> None:
        """Setting the token should interrupt a blocked wait."""
        tok: Final[CancelToken] = CancelToken()
        r, w = os.pipe()
        caught: list[BaseException] = []

        def waiter() -> None:
            try:
                tok.wait_readable(r)
            except Cancelled as err:
                caught.append(err)

        thr = threading.Thread(target=waiter)
        try:
            thr.start()
            time.sleep(0.1)
            tok.set()
            thr.join(5)
            self.assertFalse(thr.is_alive())
            self.assertEqual(len(caught), 1)
            self.assertTrue(tok.is_set())
        finally:
            os.close(r)
            os.close(w)
            tok.close()

    def test_03_child(self) -> None:
        """A child token is cancelled along with its parent, but not the other way round."""
        parent: Final[CancelToken] = CancelToken()
        child: Final[CancelToken] = parent.child()
        other: Final[CancelToken] = parent.child()
        r, w = os.pipe()
        try:
            other.set()
            self.assertTrue(other.is_set())
            self.assertFalse(parent.is_set())
            self.assertFalse(child.is_set())

            parent.set()
            self.assertTrue(child.is_set())
            with self.assertRaises(Cancelled):
                child.wait_writable(w)
        finally:
            os.close(r)
            os.close(w)
            for tok in (child, other, parent):
                tok.close()


# Local Variables: #
# python-indent: 4 #
# End: #
