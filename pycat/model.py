#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-14 20:03:51 krylon>
#
# /data/code/python/pycat/model.py
# created on 02. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the PyCat network utility. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
pycat.model

(c) 2026 Benjamin Walkenhorst
"""

import socket
from dataclasses import dataclass, field
from enum import Enum, auto
from ipaddress import IPv4Address
from typing import Final, Optional

from pycat import common

UnknownName: Final[str] = "(UNKNOWN)"
UnknownService: Final[str] = "?"
MaxAddrs: Final[int] = 8


class Transport(Enum):
    """Transport is the protocol used for the entire run."""

    TCP = "tcp"
    UDP = "udp"

    @property
    def socktype(self) -> int:
        """Return the socket type matching the Transport."""
        match self:
            case Transport.UDP:
                return socket.SOCK_DGRAM
            case _:
                return socket.SOCK_STREAM


class Direction(Enum):
    """Direction tells if we connected out or accepted a connection."""

    Outbound = auto()
    Inbound = auto()


@dataclass(kw_only=True, slots=True, frozen=True)
class HostRecord:
    """HostRecord is the result of resolving a hostname or address.

    It holds between one and MaxAddrs addresses, in the order the name
    service returned them.
    """

    name: str = UnknownName
    addrs: tuple[IPv4Address, ...]

    def __post_init__(self) -> None:
        assert 0 < len(self.addrs) <= MaxAddrs, \
            f"A HostRecord holds between 1 and {MaxAddrs} addresses"

    @property
    def addr(self) -> IPv4Address:
        """Return the first address."""
        return self.addrs[0]

    @property
    def astr(self) -> str:
        """Return the first address in dotted-decimal notation."""
        return str(self.addrs[0])

    @property
    def texts(self) -> list[str]:
        """Return all addresses in textual form."""
        return [str(a) for a in self.addrs]

    @property
    def packed(self) -> list[bytes]:
        """Return all addresses in binary (network byte order) form."""
        return [a.packed for a in self.addrs]


@dataclass(kw_only=True, slots=True, frozen=True)
class PortSpec:
    """PortSpec is a resolved port. A number of 0 means 'not specified'."""

    num: int = 0
    name: str = UnknownService

    def __post_init__(self) -> None:
        assert 0 <= self.num < 65536, "Port must be a number between 0 and 65535"

    @property
    def anum(self) -> str:
        """Return the port number as a string."""
        return str(self.num)

    @property
    def valid(self) -> bool:
        """Return True if the port may be used to bind or connect."""
        return self.num != 0

    def __str__(self) -> str:
        return f"{self.num} ({self.name})"


@dataclass(kw_only=True, slots=True, frozen=True)
class Config:
    """Config is the complete, validated set of options for one run."""

    listen: bool = False
    udp: bool = False
    numeric_only: bool = False
    verbose_level: int = 0
    wait_seconds: int = 0
    zero_io: bool = False
    local_port: PortSpec = field(default_factory=PortSpec)
    local_addr: Optional[str] = None
    host: Optional[str] = None
    remote_port: Optional[PortSpec] = None
    shell_path: Optional[str] = None
    exec_enabled: bool = common.ExecEnabled
    cache_lookups: bool = False
    cache_ttl: int = 300
    lookup_timeout: float = common.LookupTimeout

    @property
    def transport(self) -> Transport:
        """Return the Transport selected by the udp flag."""
        return Transport.UDP if self.udp else Transport.TCP


# Local Variables: #
# python-indent: 4 #
# End: #
