#!/usr/bin/env python3
# -*- coding: utf-8 -*-
# Time-stamp: <2026-10-02 17:21:40 krylon>
#
# /data/code/python/pycat/__init__.py
# created on 02. 10. 2026
# (c) 2026 Benjamin Walkenhorst
#
# This file is part of the PyCat network utility. It is distributed under the
# terms of the GNU General Public License 3. See the file LICENSE for details
# or find a copy online at https://www.gnu.org/licenses/gpl-3.0

"""
pycat.__init__

(c) 2026 Benjamin Walkenhorst
"""

# Local Variables: #
# python-indent: 4 #
# End: #
