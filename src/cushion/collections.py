# -*- coding: utf-8 -*-
#
# Copyright (C) 2015-2026 Dubalu LLC. All rights reserved.
#
# Permission is hereby granted, free of charge, to any person obtaining a copy
# of this software and associated documentation files (the "Software"), to deal
# in the Software without restriction, including without limitation the rights
# to use, copy, modify, merge, publish, distribute, sublicense, and/or sell
# copies of the Software, and to permit persons to whom the Software is
# furnished to do so, subject to the following conditions:
#
# The above copyright notice and this permission notice shall be included in
# all copies or substantial portions of the Software.
#
# THE SOFTWARE IS PROVIDED "AS IS", WITHOUT WARRANTY OF ANY KIND, EXPRESS OR
# IMPLIED, INCLUDING BUT NOT LIMITED TO THE WARRANTIES OF MERCHANTABILITY,
# FITNESS FOR A PARTICULAR PURPOSE AND NONINFRINGEMENT. IN NO EVENT SHALL THE
# AUTHORS OR COPYRIGHT HOLDERS BE LIABLE FOR ANY CLAIM, DAMAGES OR OTHER
# LIABILITY, WHETHER IN AN ACTION OF CONTRACT, TORT OR OTHERWISE, ARISING FROM,
# OUT OF OR IN CONNECTION WITH THE SOFTWARE OR THE USE OR OTHER DEALINGS IN
# THE SOFTWARE.
#
"""Dict subclass with attribute-style access.

``DictObject`` is the ``object_pairs_hook`` used when decoding JSON
responses from the database server, so response fields can be read as
``response.ok`` or ``response['ok']``. The argument resolver also hands
back its bound call arguments as a ``DictObject``.

Example:
    >>> info = DictObject(total=2, offset=0)
    >>> info.total
    2
    >>> info == {'total': 2, 'offset': 0}
    True
"""
from __future__ import annotations


class DictObject(dict):
    """Dictionary with attribute-style access.

    Maps the instance ``__dict__`` to the dict itself, so keys and
    attributes are the same storage. Keys that are not valid identifiers
    remain reachable through item access.
    """

    def __init__(self, *args, **kwargs):
        dict.__init__(self, *args, **kwargs)
        self.__dict__ = self
