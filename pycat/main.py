#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-19 10:14:38 krylon>
#
# /data/code/python/pycat/main.py
# created on 02. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the PyCat network utility. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
pycat.main

(c) 2026 Benjamin Walkenhorst
"""


import argparse
import pathlib
import sys
from typing import Any, Final, NoReturn, Optional

from pycat import common
from pycat.common import CatError
from pycat.config import load_file, make_config
from pycat.control import Cancelled
from pycat.model import Config
from pycat.resolver import Resolver
from pycat.supervisor import Supervisor


class ArgParser(argparse.ArgumentParser):
    """ArgParser exits with status 1 on invalid arguments."""

    def error(self, message: str) -> NoReturn:
        self.print_usage(sys.stderr)
        self.exit(1, f"{self.prog}: {message}\n")


def make_parser() -> ArgParser:
    """Create the parser for the command line."""
    argp: ArgParser = ArgParser(
        prog=common.AppName.lower(),
        description="Connect to a host, or wait for a connection, and relay data.",
        usage="%(prog)s [options] host port\n       %(prog)s -l [-p port] [options] [[host] port]")
    argp.add_argument("host",
                      nargs="?",
                      help="The host to connect to, or the local address in listen mode")
    argp.add_argument("port",
                      nargs="?",
                      help="The port (number or service name) to connect to or listen on")
    argp.add_argument("-l", "--listen",
                      action="store_true",
                      help="Listen for an inbound connection")
    argp.add_argument("-p", "--local-port",
                      help="Local port number")
    argp.add_argument("-s", "--source",
                      help="Local source address")
    argp.add_argument("-u", "--udp",
                      action="store_true",
                      help="Use UDP instead of TCP")
    argp.add_argument("-v", "--verbose",
                      action="count",
                      default=0,
                      help="Be verbose, use twice to be more verbose")
    argp.add_argument("-w", "--wait",
                      type=int,
                      help="Timeout for connects, in seconds")
    argp.add_argument("-z", "--zero",
                      action="store_true",
                      help="Zero-I/O mode, just check if the port is open")
    argp.add_argument("-n", "--numeric",
                      action="store_true",
                      help="Numeric-only addresses and ports, no name lookups")
    argp.add_argument("-e", "--execute",
                      metavar="PROG",
                      help="Program to run after connecting, with its I/O attached to the connection")
    argp.add_argument("-c", "--cache",
                      action="store_true",
                      help="Cache the results of name lookups")
    argp.add_argument("-b", "--basedir",
                      type=pathlib.Path,
                      default=common.path.base(),
                      help="Directory to store application data in")
    argp.add_argument("--version",
                      action="version",
                      version=f"{common.AppName} {common.AppVersion}")
    return argp


def main(argv: Optional[list[str]] = None) -> int:
    """Parse the command line, perform one run, return the exit status."""
    argp: Final[ArgParser] = make_parser()
    args = argp.parse_args(argv)

    if not args.listen and (args.host is None or args.port is None):
        argp.print_help(sys.stderr)
        return 1

    common.set_basedir(args.basedir)
    common.set_verbosity(args.verbose)

    sup: Final[Supervisor] = Supervisor(verbose=args.verbose)
    sup.install_signals()

    try:
        defaults: Final[dict[str, Any]] = load_file()
        cfg: Config = make_config(args,
                                  defaults,
                                  Resolver(timeout=defaults.get("lookup_timeout",
                                                                common.LookupTimeout)))
        return sup.run(cfg)
    except Cancelled:
        return sup.abort()
    except CatError as err:
        return sup.fail(err)
    finally:
        sup.finish()


if __name__ == '__main__':
    sys.exit(main())

# Local Variables: #
# python-indent: 4 #
# End: #
