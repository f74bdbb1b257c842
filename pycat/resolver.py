#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-19 14:22:03 krylon>
#
# /data/code/python/pycat/resolver.py
# created on 04. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the PyCat network utility. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
pycat.resolver

(c) 2026 Benjamin Walkenhorst

The Resolver turns host names and port/service names into numbers.

Forward lookups ask DNS first, using dnspython, and fall back to the
system's resolver (which also knows about /etc/hosts) if DNS has nothing
to say. Reverse lookups are only done for display purposes, and failing
to find a name for an address is not an error.
"""

import logging
import socket
from dataclasses import dataclass, field
from ipaddress import AddressValueError, IPv4Address
from typing import Final, Optional, Union

from dns.exception import DNSException, Timeout
from dns.rcode import Rcode
from dns.rdatatype import RdataType
from dns.resolver import (NXDOMAIN, Answer, LifetimeTimeout, NoAnswer,
                          NoNameservers, Resolver as DNSResolver)

from pycat import common
from pycat.cache import CacheType, LookupCache
from pycat.common import CatError
from pycat.model import (HostRecord, MaxAddrs, PortSpec, Transport,
                         UnknownName, UnknownService)


class ResolutionError(CatError):
    """Base class for errors that occur while resolving names or ports."""


class NotNumeric(ResolutionError):
    """NotNumeric means a name lookup would be required, but is forbidden."""


class LookupFailed(ResolutionError):
    """LookupFailed means the name service did not know the name."""


def parse_ipv4(name: str) -> Optional[IPv4Address]:
    """Return <name> as an IPv4Address if it is in dotted-decimal notation, else None."""
    try:
        return IPv4Address(name)
    except (AddressValueError, ValueError):
        return None


@dataclass(kw_only=True, slots=True)
class Resolver:
    """Resolver looks up host addresses and port numbers."""

    verbose: bool = False
    timeout: float = common.LookupTimeout
    cache: Optional[LookupCache] = None
    log: logging.Logger = field(default_factory=lambda: common.get_logger("resolver"))
    _res: Optional[DNSResolver] = None
    _res_failed: bool = False

    @property
    def res(self) -> Optional[DNSResolver]:
        """Return the DNS resolver, creating it on first use.

        If the system has no usable DNS configuration, return None, and the
        system resolver is used exclusively.
        """
        if self._res is None and not self._res_failed:
            try:
                self._res = DNSResolver()
                self._res.timeout = self.timeout
                self._res.lifetime = self.timeout
            except DNSException as err:
                self.log.debug("Cannot set up DNS resolver: %s", err)
                self._res_failed = True
        return self._res

    def resolve_host(self, name: str, numeric_only: bool = False) -> HostRecord:
        """Resolve <name> into a HostRecord.

        If name is a dotted-decimal IPv4 address, no forward lookup is
        performed. If numeric_only is True, no lookups are performed at all,
        and a name that is not an address is an error.
        """
        addr: Final[Optional[IPv4Address]] = parse_ipv4(name)

        if addr is not None:
            canon: str = UnknownName
            if self.verbose and not numeric_only:
                canon = self.reverse_lookup(addr) or UnknownName
            return HostRecord(name=canon, addrs=(addr, ))

        if numeric_only:
            raise NotNumeric(f"Can't parse {name} as an IP address")

        if self.cache is not None:
            hit = self.cache.get(CacheType.Forward, name)
            if hit is not None:
                cname, alist = hit
                return HostRecord(name=cname,
                                  addrs=tuple(IPv4Address(a) for a in alist[:MaxAddrs]))

        result = self.forward_dns(name) or self.forward_system(name)
        if result is None:
            raise LookupFailed(f"{name}: forward host lookup failed")

        cname, addrs = result
        rec: Final[HostRecord] = HostRecord(name=cname, addrs=tuple(addrs[:MaxAddrs]))
        self.log.debug("Resolved %s to %s (%s)",
                       name,
                       ", ".join(rec.texts),
                       rec.name)

        if self.cache is not None:
            self.cache.put(CacheType.Forward, name, (rec.name, rec.texts))

        return rec

    def forward_dns(self, name: str) -> Optional[tuple[str, list[IPv4Address]]]:
        """Look up the A records for <name> via DNS."""
        res = self.res
        if res is None:
            return None

        try:
            answer: Answer = res.resolve(name, RdataType.A, search=True)
            match answer.response.rcode():
                case Rcode.NOERROR if answer.rrset is not None:
                    addrs = [IPv4Address(rr.address) for rr in answer]
                    if len(addrs) == 0:
                        return None
                    return answer.canonical_name.to_text(omit_final_dot=True), addrs
                case _:
                    self.log.debug("Unexpected response code %s looking up %s",
                                   answer.response.rcode(),
                                   name)
        except NXDOMAIN as nx:
            self.log.debug("DNS does not know %s: %s", name, nx)
        except NoNameservers as fail:
            self.log.debug("Failed to get a response for %s from upstream resolver(s): %s",
                           name,
                           fail)
        except (LifetimeTimeout, Timeout):
            self.log.debug("Timeout looking up %s", name)
        except NoAnswer:
            pass
        except DNSException as err:
            self.log.debug("%s looking up %s: %s",
                           err.__class__.__name__,
                           name,
                           err)
        return None

    def forward_system(self, name: str) -> Optional[tuple[str, list[IPv4Address]]]:
        """Look up <name> using the system's resolver."""
        try:
            cname, _aliases, alist = socket.gethostbyname_ex(name)
        except OSError as err:
            self.log.debug("System resolver failed to look up %s: %s", name, err)
            return None

        addrs: list[IPv4Address] = []
        for a in alist:
            addr = parse_ipv4(a)
            if addr is not None:
                addrs.append(addr)
        if len(addrs) == 0:
            return None
        return (cname or UnknownName), addrs

    def reverse_lookup(self, addr: IPv4Address) -> Optional[str]:
        """Attempt to find a name for <addr>. This is for display only."""
        astr: Final[str] = str(addr)

        if self.cache is not None:
            hit = self.cache.get(CacheType.Reverse, astr)
            if hit is not None:
                return hit

        name: Optional[str] = None
        res = self.res
        if res is not None:
            try:
                answer: Answer = res.resolve_address(astr)
                if answer.response.rcode() == Rcode.NOERROR and answer.rrset is not None:
                    name = answer.rrset[0].to_text().rstrip(".")
            except DNSException as err:
                self.log.debug("Couldn't resolve %s into hostname: %s", astr, err)

        if name is None:
            try:
                name = socket.gethostbyaddr(astr)[0]
            except OSError:
                pass

        if name is not None and self.cache is not None:
            self.cache.put(CacheType.Reverse, astr, name)

        return name

    def resolve_port(self,
                     spec: Union[str, int],
                     udp: bool = False,
                     numeric_only: bool = False) -> PortSpec:
        """Resolve a port number or service name.

        A numeric spec is used as-is, "0" stays 0, meaning "no port". A service
        name is looked up for the transport in use, unless numeric_only is set.
        """
        proto: Final[str] = (Transport.UDP if udp else Transport.TCP).value
        num: int = -1

        match spec:
            case int():
                num = spec
            case str() if spec.strip().isascii() and spec.strip().isdigit():
                num = int(spec.strip())

        if num >= 0:
            if num > 65535:
                raise LookupFailed(f"Invalid port {spec}")
            sname: str = UnknownService
            if num != 0 and not numeric_only:
                try:
                    sname = socket.getservbyport(num, proto)
                except OSError:
                    pass
            return PortSpec(num=num, name=sname)

        if numeric_only:
            raise NotNumeric(f"Can't parse {spec} as a port number")

        try:
            num = socket.getservbyname(str(spec), proto)
        except OSError as err:
            raise LookupFailed(f"{spec}/{proto}: unknown service") from err

        return PortSpec(num=num, name=str(spec))


# Local Variables: #
# python-indent: 4 #
# End: #
