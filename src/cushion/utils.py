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
"""Path and query-string helpers for the database REST API.

View-like endpoints expect JSON in their query values (``key="x"``,
``limit=10``, ``descending=true``). The encoders here render a parameter
mapping into a ready-to-append query string, including the leading ``?``,
or an empty string when there is nothing to send.
"""
from __future__ import annotations

import json
from functools import partial
from typing import Any, Mapping
from urllib.parse import quote, urlencode


VIEW_JSON_PARAMS = frozenset((
    'key', 'keys', 'startkey', 'endkey', 'start_key', 'end_key',
))
"""Query parameters whose value is always JSON, even when it is a string."""

RESERVED_PREFIXES = ('_design/', '_local/')

quoteall = partial(quote, safe='')


def _dumps(value: Any) -> str:
    return json.dumps(value, separators=(',', ':'))


def _encode(items: list[tuple[str, str]]) -> str:
    if not items:
        return ''
    return '?' + urlencode(items, quote_via=quote)


def encode_query(params: Mapping[str, Any] | None,
        json_params: frozenset | set = frozenset()) -> str:
    """Encode *params* as a query string.

    Strings are sent verbatim unless their name is in *json_params*;
    every other value (numbers, booleans, lists, mappings, ``None``) is
    JSON-encoded so booleans come out as ``true``/``false``.

    Example:
        >>> encode_query({'limit': 10, 'descending': True})
        '?limit=10&descending=true'
    """
    if not params:
        return ''
    items = []
    for name, value in params.items():
        if name in json_params or not isinstance(value, str):
            value = _dumps(value)
        items.append((name, value))
    return _encode(items)


def encode_view_options(params: Mapping[str, Any] | None) -> str:
    """Encode view-like options (``_all_docs``, lists, temporary views)."""
    return encode_query(params, VIEW_JSON_PARAMS)


def encode_view_query(params: Mapping[str, Any] | None) -> str:
    """Encode a view query, JSON-encoding every value.

    Example:
        >>> encode_view_query({'key': 'x'})
        '?key=%22x%22'
    """
    if not params:
        return ''
    return _encode([(name, _dumps(value)) for name, value in params.items()])


def document_path(doc_id: str) -> str:
    """Return the URL path of a document id, percent-encoded.

    Ids under a reserved prefix keep their first slash, so
    ``_design/foo`` stays addressable as ``_design/foo`` while a plain
    ``a/b`` becomes ``a%2Fb``.
    """
    for prefix in RESERVED_PREFIXES:
        if doc_id.startswith(prefix):
            return prefix + quoteall(doc_id[len(prefix):])
    return quoteall(doc_id)
