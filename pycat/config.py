#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-18 23:02:17 krylon>
#
# /data/code/python/pycat/config.py
# created on 09. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the PyCat network utility. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
pycat.config

(c) 2026 Benjamin Walkenhorst

Build the Config for a run from the command line and the optional
configuration file. The file lives in the base directory and looks like this:

    [pycat]
    verbose = 1
    wait = 10
    numeric = false
    cache = true
    cache_ttl = 600
    lookup_timeout = 2.5
    exec = true

Values given on the command line take precedence.
"""

import argparse
import pathlib
import tomllib
from typing import Any, Final, Optional, Union

from pycat import common
from pycat.common import CatError
from pycat.model import Config, PortSpec
from pycat.resolver import Resolver

file_keys: Final[dict[str, Union[type, tuple[type, ...]]]] = {
    "verbose": int,
    "wait": int,
    "numeric": bool,
    "cache": bool,
    "cache_ttl": int,
    "lookup_timeout": (int, float),
    "exec": bool,
}


class ConfigError(CatError):
    """ConfigError indicates an invalid configuration file or option value."""


def load_file(path: Optional[pathlib.Path] = None) -> dict[str, Any]:
    """Load the [pycat] table from the configuration file.

    A missing file is not an error, it yields an empty dict.
    """
    cfg_path: Final[pathlib.Path] = path or common.path.config
    if not cfg_path.exists():
        return {}

    try:
        with open(cfg_path, "rb") as fh:
            data = tomllib.load(fh)
    except OSError as err:
        raise ConfigError(f"Cannot read {cfg_path}", err.errno) from err
    except tomllib.TOMLDecodeError as err:
        raise ConfigError(f"Cannot parse {cfg_path}: {err}") from err

    table = data.get(common.AppName.lower(), {})
    if not isinstance(table, dict):
        raise ConfigError(f"{cfg_path}: [{common.AppName.lower()}] must be a table")

    for key, val in table.items():
        if key not in file_keys:
            raise ConfigError(f"{cfg_path}: unknown option {key}")
        # bool is a subclass of int, but "wait = true" is still wrong.
        if isinstance(val, bool) and file_keys[key] is not bool:
            raise ConfigError(f"{cfg_path}: {key} must not be a boolean")
        if not isinstance(val, file_keys[key]):
            raise ConfigError(f"{cfg_path}: {key} has the wrong type ({type(val).__name__})")
        if isinstance(val, (int, float)) and not isinstance(val, bool) and val < 0:
            raise ConfigError(f"{cfg_path}: {key} must not be negative")

    return table


def make_config(args: argparse.Namespace,
                defaults: Optional[dict[str, Any]] = None,
                resolver: Optional[Resolver] = None) -> Config:
    """Combine the command line <args> and the <defaults> from the file into a Config.

    In listen mode, the positional arguments name the local address and port,
    unless -s and -p were given.
    """
    if defaults is None:
        defaults = load_file()
    res: Final[Resolver] = resolver or Resolver()

    numeric: Final[bool] = args.numeric or defaults.get("numeric", False)
    wait: Final[int] = args.wait if args.wait is not None else defaults.get("wait", 0)
    if wait < 0:
        raise ConfigError(f"Invalid wait time {wait}")

    host: Optional[str] = args.host
    port: Optional[str] = args.port
    laddr: Optional[str] = args.source
    lport: Optional[str] = args.local_port

    if args.listen:
        if port is None and host is not None:
            host, port = None, host
        laddr = laddr or host
        lport = lport or port
        host, port = None, None
    elif host is None or port is None:
        raise ConfigError("Connect mode requires a host and a port")

    local_port: PortSpec = PortSpec()
    if lport is not None:
        local_port = res.resolve_port(lport, args.udp, numeric)

    if laddr is not None:
        laddr = res.resolve_host(laddr, numeric).astr

    remote_port: Optional[PortSpec] = None
    if port is not None:
        remote_port = res.resolve_port(port, args.udp, numeric)

    return Config(listen=args.listen,
                  udp=args.udp,
                  numeric_only=numeric,
                  verbose_level=args.verbose or defaults.get("verbose", 0),
                  wait_seconds=wait,
                  zero_io=args.zero,
                  local_port=local_port,
                  local_addr=laddr,
                  host=host,
                  remote_port=remote_port,
                  shell_path=args.execute,
                  exec_enabled=defaults.get("exec", common.ExecEnabled),
                  cache_lookups=args.cache or defaults.get("cache", False),
                  cache_ttl=defaults.get("cache_ttl", 300),
                  lookup_timeout=float(defaults.get("lookup_timeout", common.LookupTimeout)))


# Local Variables: #
# python-indent: 4 #
# End: #
