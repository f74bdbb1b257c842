#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-19 10:31:06 krylon>
#
# /data/code/python/pycat/test_main.py
# created on 19. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the PyCat network utility. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
pycat.test_main

(c) 2026 Benjamin Walkenhorst
"""

import io
import os
import shutil
import socket
import unittest
from contextlib import redirect_stderr, redirect_stdout
from datetime import datetime
from typing import Final

from pycat import common
from pycat.main import main

test_dir: Final[str] = os.path.join(
    "/tmp",
    datetime.now().strftime(f"{common.AppName.lower()}_test_main_%Y%m%d_%H%M%S"))


class TestMain(unittest.TestCase):
    """Test the command line interface and the exit status."""

    @classmethod
    def setUpClass(cls) -> None:
        """Prepare the testing environment."""
        common.set_basedir(test_dir)

    @classmethod
    def tearDownClass(cls) -> None:
        """Clean up afterwards."""
        shutil.rmtree(test_dir, ignore_errors=True)

    def test_01_usage(self) -> None:
        """Missing arguments in connect mode print the usage, exit status is 1."""
        err: Final[io.StringIO] = io.StringIO()
        with redirect_stderr(err):
            self.assertEqual(main(["-b", test_dir]), 1)
            self.assertEqual(main(["-b", test_dir, "192.0.2.1"]), 1)
        self.assertIn("usage:", err.getvalue())

    def test_02_bad_option(self) -> None:
        """Invalid options exit with status 1."""
        with redirect_stderr(io.StringIO()):
            with self.assertRaises(SystemExit) as ctx:
                main(["--no-such-option", "192.0.2.1", "80"])
        self.assertEqual(ctx.exception.code, 1)

    def test_03_version(self) -> None:
        """Asking for the version is not an error."""
        out: Final[io.StringIO] = io.StringIO()
        with redirect_stdout(out):
            with self.assertRaises(SystemExit) as ctx:
                main(["--version"])
        self.assertEqual(ctx.exception.code, 0)
        self.assertIn(common.AppVersion, out.getvalue())

    def test_04_zero_io(self) -> None:
        """A zero-I/O probe of an open port exits with status 0."""
        with socket.create_server(("127.0.0.1", 0)) as srv:
            port: Final[int] = srv.getsockname()[1]
            self.assertEqual(main(["-b", test_dir, "-n", "-z", "127.0.0.1", str(port)]), 0)

    def test_05_refused(self) -> None:
        """A failed connect exits with status 1."""
        with socket.socket(socket.AF_INET, socket.SOCK_STREAM) as s:
            s.bind(("127.0.0.1", 0))
            port: Final[int] = s.getsockname()[1]
        self.assertEqual(main(["-b", test_dir, "-n", "-z", "127.0.0.1", str(port)]), 1)

    def test_06_bad_config(self) -> None:
        """An invalid configuration file is a fatal error."""
        with open(common.path.config, "w", encoding="utf-8") as fh:
            fh.write("[pycat]\nwait = \"forever\"\n")
        try:
            self.assertEqual(main(["-b", test_dir, "-n", "-z", "127.0.0.1", "80"]), 1)
        finally:
            common.path.config.unlink()


# Local Variables: #
# python-indent: 4 #
# End: #
