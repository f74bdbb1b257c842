#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-19 14:22:02 krylon>
#
# /data/code/python/pycat/test_resolver.py
# created on 04. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the PyCat network utility. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
pycat.test_resolver

(c) 2026 Benjamin Walkenhorst
"""

import os
import shutil
import socket
import unittest
from datetime import datetime
from ipaddress import IPv4Address
from typing import Final
from unittest.mock import patch

from pycat import common
from pycat.cache import LookupCache
from pycat.model import HostRecord, MaxAddrs, PortSpec, UnknownName
from pycat.resolver import LookupFailed, NotNumeric, Resolver, parse_ipv4

test_dir: Final[str] = os.path.join(
    "/tmp",
    datetime.now().strftime(f"{common.AppName.lower()}_test_resolver_%Y%m%d_%H%M%S"))


class TestResolveHost(unittest.TestCase):
    """Test resolving host names and addresses.

    The name service is never asked for real, all lookups are mocked.
    """

    @classmethod
    def setUpClass(cls) -> None:
        """Prepare the testing environment."""
        common.set_basedir(test_dir)

    @classmethod
    def tearDownClass(cls) -> None:
        """Clean up afterwards."""
        shutil.rmtree(test_dir, ignore_errors=True)

    def test_01_parse_ipv4(self) -> None:
        """Recognize dotted-decimal addresses."""
        self.assertEqual(parse_ipv4("192.0.2.17"), IPv4Address("192.0.2.17"))
        for txt in ("www.example.com", "192.0.2", "256.1.1.1", "", "::1"):
            self.assertIsNone(parse_ipv4(txt), txt)

    def test_02_numeric_fast_path(self) -> None:
        """A numeric address must not cause any lookups."""
        with patch.object(Resolver, "forward_dns") as fdns, \
             patch.object(Resolver, "reverse_lookup") as rev, \
             patch.object(socket, "gethostbyname_ex") as ghbn:
            res = Resolver()
            for num_only in (False, True):
                rec: HostRecord = res.resolve_host("192.0.2.17", num_only)
                self.assertEqual(rec.addr, IPv4Address("192.0.2.17"))
                self.assertEqual(len(rec.addrs), 1)
                self.assertEqual(rec.name, UnknownName)
            fdns.assert_not_called()
            rev.assert_not_called()
            ghbn.assert_not_called()

    def test_03_numeric_verbose(self) -> None:
        """In verbose mode, a numeric address gets a reverse lookup, unless numeric_only is set."""
        with patch.object(Resolver, "reverse_lookup", return_value="mail.example.com") as rev:
            res = Resolver(verbose=True)
            rec: HostRecord = res.resolve_host("192.0.2.25")
            self.assertEqual(rec.name, "mail.example.com")
            self.assertEqual(rec.astr, "192.0.2.25")
            rev.assert_called_once()

            rec = res.resolve_host("192.0.2.25", numeric_only=True)
            self.assertEqual(rec.name, UnknownName)
            rev.assert_called_once()

    def test_04_not_numeric(self) -> None:
        """A host name with numeric_only set is an error, and nothing is looked up."""
        with patch.object(Resolver, "forward_dns") as fdns, \
             patch.object(socket, "gethostbyname_ex") as ghbn:
            res = Resolver()
            with self.assertRaises(NotNumeric):
                res.resolve_host("www.example.com", numeric_only=True)
            fdns.assert_not_called()
            ghbn.assert_not_called()

    def test_05_forward_capped(self) -> None:
        """Only the first MaxAddrs addresses are kept, in order."""
        addrs: Final[list[IPv4Address]] = [IPv4Address(f"10.0.0.{i+1}") for i in range(12)]
        with patch.object(Resolver,
                          "forward_dns",
                          return_value=("www.example.com", addrs)):
            rec: HostRecord = Resolver().resolve_host("www")
        self.assertEqual(rec.name, "www.example.com")
        self.assertEqual(len(rec.addrs), MaxAddrs)
        self.assertEqual(list(rec.addrs), addrs[:MaxAddrs])
        self.assertEqual(rec.astr, "10.0.0.1")

    def test_06_forward_fallback(self) -> None:
        """If DNS does not know a name, ask the system resolver."""
        with patch.object(Resolver, "forward_dns", return_value=None), \
             patch.object(socket,
                          "gethostbyname_ex",
                          return_value=("myhost.local", [], ["192.168.1.10"])) as ghbn:
            rec: HostRecord = Resolver().resolve_host("myhost")
        ghbn.assert_called_once_with("myhost")
        self.assertEqual(rec.name, "myhost.local")
        self.assertEqual(rec.addrs, (IPv4Address("192.168.1.10"), ))

    def test_07_lookup_failed(self) -> None:
        """A name nobody knows is an error."""
        with patch.object(Resolver, "forward_dns", return_value=None), \
             patch.object(socket,
                          "gethostbyname_ex",
                          side_effect=socket.gaierror(socket.EAI_NONAME, "Name or service not known")):
            with self.assertRaises(LookupFailed):
                Resolver().resolve_host("no.such.host.invalid")

    def test_08_cached(self) -> None:
        """With a cache, a name is only looked up once."""
        cache: Final[LookupCache] = LookupCache.with_ttl(60)
        try:
            with patch.object(Resolver,
                              "forward_dns",
                              return_value=("ftp.example.com", [IPv4Address("192.0.2.21")])) as fdns:
                res = Resolver(cache=cache)
                first: HostRecord = res.resolve_host("ftp.example.com")
                second: HostRecord = res.resolve_host("FTP.example.com")
            fdns.assert_called_once()
            self.assertEqual(first, second)
        finally:
            cache.close()


class TestResolvePort(unittest.TestCase):
    """Test resolving port numbers and service names."""

    @classmethod
    def setUpClass(cls) -> None:
        """Prepare the testing environment."""
        common.set_basedir(test_dir)

    @classmethod
    def tearDownClass(cls) -> None:
        """Clean up afterwards."""
        shutil.rmtree(test_dir, ignore_errors=True)

    def test_01_numeric(self) -> None:
        """Numeric ports are taken as they are."""
        with patch.object(socket, "getservbyport", return_value="http") as gsbp:
            p: PortSpec = Resolver().resolve_port("80")
            self.assertEqual(p.num, 80)
            self.assertEqual(p.name, "http")
            self.assertTrue(p.valid)
            gsbp.assert_called_once_with(80, "tcp")

            p = Resolver().resolve_port(53, udp=True, numeric_only=True)
            self.assertEqual(p.num, 53)
            self.assertEqual(p.name, "?")
            gsbp.assert_called_once()

    def test_02_zero(self) -> None:
        """Port 0 means 'no port'."""
        p: Final[PortSpec] = Resolver().resolve_port("0")
        self.assertEqual(p.num, 0)
        self.assertFalse(p.valid)

    def test_03_service(self) -> None:
        """Service names are looked up for the transport in use."""
        with patch.object(socket, "getservbyname", return_value=53) as gsbn:
            p: PortSpec = Resolver().resolve_port("domain", udp=True)
        gsbn.assert_called_once_with("domain", "udp")
        self.assertEqual(p.num, 53)
        self.assertEqual(p.name, "domain")
        self.assertEqual(str(p), "53 (domain)")

    def test_04_errors(self) -> None:
        """Unknown services, names in numeric mode and numbers out of range are errors."""
        with patch.object(socket, "getservbyname", side_effect=OSError("service/proto not found")):
            with self.assertRaises(LookupFailed):
                Resolver().resolve_port("no-such-service")
            # Digits outside of ASCII are not a port number.
            with self.assertRaises(LookupFailed):
                Resolver().resolve_port("\u00b2")
            with self.assertRaises(LookupFailed):
                Resolver().resolve_port("\u0663\u0663")
        with patch.object(socket, "getservbyname") as gsbn:
            with self.assertRaises(NotNumeric):
                Resolver().resolve_port("http", numeric_only=True)
            gsbn.assert_not_called()
        with self.assertRaises(LookupFailed):
            Resolver().resolve_port("70000")


# Local Variables: #
# python-indent: 4 #
# End: #
