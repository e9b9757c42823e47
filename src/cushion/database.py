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
"""Database handle.

``Database`` wraps the per-database endpoints of the REST API. It keeps
no server state; every method builds a path, sends a single request
through its connection and reshapes the parsed response for the
caller's continuation.

Errors are never interpreted here (``exists`` aside): whatever the
connection reports as an error reaches the continuation untouched, with
the result arguments forced to ``None``.
"""
from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from .arguments import Slot, resolve_arguments
from .collections import DictObject
from .document import DESIGN_PREFIX, Design, Document
from .utils import document_path, encode_query, encode_view_options, encode_view_query, quoteall


def _view_info(response):
    """Split a view response into ``({total, offset}, rows)``.

    A response that is not a JSON object has no paging info; it is
    handed back as the rows.
    """
    if not isinstance(response, dict):
        return DictObject(total=None, offset=None), response
    info = DictObject(total=dict.get(response, 'total_rows'), offset=dict.get(response, 'offset'))
    return info, dict.get(response, 'rows')


def _view_result(bound):
    """Continuation splitting a view response into info and rows."""
    def callback(error, response):
        if error is not None:
            return bound.callback(error, None, None)
        info, rows = _view_info(response)
        return bound.callback(None, info, rows)
    return callback


def _acknowledged(bound):
    """Continuation collapsing an ``{"ok": true}`` acknowledgement to ``True``."""
    def callback(error, response):
        if error is not None:
            return bound.callback(error, None)
        if isinstance(response, dict) and dict.get(response, 'ok') is True:
            response = True
        return bound.callback(None, response)
    return callback


def _revisions(rows):
    """Map ``_all_docs`` rows to ``{id: rev}``.

    Rows for ids that were requested by ``keys`` but do not exist carry
    an ``error`` instead of a ``value``; they map to ``None``.
    """
    documents = {}
    for row in rows:
        if not isinstance(row, dict):
            continue
        value = dict.get(row, 'value')
        doc_id = dict.get(row, 'id', dict.get(row, 'key'))
        documents[doc_id] = dict.get(value, 'rev') if isinstance(value, dict) else None
    return documents


def _passthrough(bound):
    def callback(error, response):
        return bound.callback(error, response if error is None else None)
    return callback


class Database:
    """Handle for a database called *name* on *connection*."""

    def __init__(self, name: str, connection) -> None:
        self._name = name
        self._connection = connection

    def __repr__(self):
        return f'<{type(self).__name__} {self._name!r}>'

    @property
    def name(self) -> str:
        return self._name

    @property
    def connection(self):
        return self._connection

    @property
    def path(self) -> str:
        """URL path of the database, percent-encoded."""
        return quoteall(self._name)

    def document(self, doc_id: str | None = None, revision: str | None = None) -> Document:
        """Return a handle for a document of this database.

        A ``Design`` handle is returned when *doc_id* starts with
        ``_design/``, a plain ``Document`` otherwise.
        """
        cls = Design if doc_id and doc_id.startswith(DESIGN_PREFIX) else Document
        return cls(self, doc_id or None, revision or None)

    def design(self, name: str, revision: str | None = None) -> Design:
        """Return a handle for the design document ``_design/<name>``."""
        return Design(self, f'{DESIGN_PREFIX}{name}', revision)

    async def all_documents(self, *args, **kwargs) -> Any:
        """Get all documents of the database.

        ``_all_docs`` is a special view, so it takes the same query
        parameters as normal views.

        Args:
            params (Mapping): View query parameters.
            callback: Continuation, ``callback(error, info, documents)``
                where *info* is ``{total, offset}`` and *documents* maps
                document ids to their current revisions.
        """
        bound = resolve_arguments(args, kwargs, Slot('params', Mapping))

        def callback(error, response):
            if error is not None:
                return bound.callback(error, None, None)
            info, rows = _view_info(response)
            return bound.callback(None, info, _revisions(rows if isinstance(rows, list) else []))

        return await self._connection.request(
            method='GET',
            path=f'{self.path}/_all_docs{encode_view_options(bound.params)}',
            callback=callback,
        )

    async def cleanup(self, *args, **kwargs) -> Any:
        """Remove index files no longer required by any view.

        Continuation: ``callback(error, started)``.
        """
        bound = resolve_arguments(args, kwargs)

        def callback(error, response):
            if error is not None:
                return bound.callback(error, None)
            return bound.callback(None, True)

        return await self._connection.request(
            method='POST',
            path=f'{self.path}/_view_cleanup',
            callback=callback,
        )

    async def compact(self, *args, **kwargs) -> Any:
        """Compact the database, or the views of a single design document.

        Args:
            design (str): Name of the design document whose views to
                compact (without ``_design/``).
            callback: Continuation, ``callback(error, started)``.
        """
        bound = resolve_arguments(args, kwargs, Slot('design', str))
        path = f'{self.path}/_compact'
        if bound.design:
            path += f'/{quoteall(bound.design)}'

        def callback(error, response):
            if error is not None:
                return bound.callback(error, None)
            return bound.callback(None, True)

        return await self._connection.request(method='POST', path=path, callback=callback)

    async def create(self, *args, **kwargs) -> Any:
        """Create the database.

        Continuation: ``callback(error, confirm)``.
        """
        bound = resolve_arguments(args, kwargs)
        return await self._connection.request(
            method='PUT',
            path=self.path,
            callback=_acknowledged(bound),
        )

    async def destroy(self, *args, **kwargs) -> Any:
        """Delete the database.

        Continuation: ``callback(error, deleted)``.
        """
        bound = resolve_arguments(args, kwargs)
        return await self._connection.request(
            method='DELETE',
            path=self.path,
            callback=_acknowledged(bound),
        )

    async def ensure_full_commit(self, *args, **kwargs) -> Any:
        """Flush uncommitted changes to disk.

        Continuation: ``callback(error, success)``.
        """
        bound = resolve_arguments(args, kwargs)

        def callback(error, response):
            if error is not None:
                return bound.callback(error, None)
            return bound.callback(None, isinstance(response, dict) and dict.get(response, 'ok') is True)

        return await self._connection.request(
            method='POST',
            path=f'{self.path}/_ensure_full_commit',
            callback=callback,
        )

    async def exists(self, *args, **kwargs) -> Any:
        """Check whether the database exists.

        A ``not_found`` error from the server is reported as a successful
        ``False``; any other error is passed through.

        Continuation: ``callback(error, exists)``.
        """
        bound = resolve_arguments(args, kwargs)

        def callback(error, response):
            if error is None:
                return bound.callback(None, True)
            if isinstance(error, dict) and dict.get(error, 'error') == 'not_found':
                return bound.callback(None, False)
            return bound.callback(error, None)

        return await self._connection.request(method='GET', path=self.path, callback=callback)

    async def info(self, *args, **kwargs) -> Any:
        """Get information about the database.

        Continuation: ``callback(error, info)``.
        """
        bound = resolve_arguments(args, kwargs)
        return await self._connection.request(
            method='GET',
            path=self.path,
            callback=_passthrough(bound),
        )

    async def list(self, design: str, list: str, view_or_other_design: str,
            *args, **kwargs) -> Any:
        """Request a list function.

        Args:
            design: Name of the design document (without ``_design/``).
            list: Name of the list function.
            view_or_other_design: Name of the view, or, when *view* is
                given too, the name of another design document holding it.
            view (str): Name of the view in the other design document.
            params (Mapping): Query parameters for the request.
            callback: Continuation, ``callback(error, response)``.
        """
        bound = resolve_arguments(
            args, kwargs,
            Slot('view', str),
            Slot('params', Mapping),
        )
        if bound.view is not None:
            view = f'{quoteall(view_or_other_design)}/{quoteall(bound.view)}'
        else:
            view = quoteall(view_or_other_design)
        path = (
            f'{self.path}/{DESIGN_PREFIX}{quoteall(design)}/_list/{quoteall(list)}/{view}'
            f'{encode_view_options(bound.params)}'
        )
        return await self._connection.request(method='GET', path=path, callback=_passthrough(bound))

    async def purge(self, documents: Mapping, *args, **kwargs) -> Any:
        """Permanently remove document revisions.

        Args:
            documents: Mapping of document ids to lists of revisions.
            callback: Continuation, ``callback(error, purged)``.
        """
        bound = resolve_arguments(args, kwargs)

        def callback(error, response):
            if error is not None:
                return bound.callback(error, None)
            return bound.callback(None, dict.get(response, 'purged') if isinstance(response, dict) else response)

        return await self._connection.request(
            method='POST',
            path=f'{self.path}/_purge',
            body=documents,
            callback=callback,
        )

    async def revision_limit(self, *args, **kwargs) -> Any:
        """Get or set the document revision limit.

        Args:
            limit (int): New revision limit. Without it, the current limit
                is fetched instead.
            callback: Continuation, ``callback(error, limit)`` when getting,
                ``callback(error, saved)`` when setting.
        """
        bound = resolve_arguments(args, kwargs, Slot('limit', int))
        setter = bound.limit is not None

        def callback(error, response):
            if error is not None:
                return bound.callback(error, None)
            return bound.callback(None, True if setter else response)

        return await self._connection.request(
            method='PUT' if setter else 'GET',
            path=f'{self.path}/_revs_limit',
            body=bound.limit,
            callback=callback,
        )

    async def show(self, design: str, show: str, *args, **kwargs) -> Any:
        """Request a show function.

        Args:
            design: Name of the design document (without ``_design/``).
            show: Name of the show function.
            doc_id (str): Id of the document to show.
            params (Mapping): Query parameters for the show function.
            callback: Continuation, ``callback(error, result)``.
        """
        bound = resolve_arguments(
            args, kwargs,
            Slot('doc_id', str),
            Slot('params', Mapping),
        )
        path = f'{self.path}/{DESIGN_PREFIX}{quoteall(design)}/_show/{quoteall(show)}'
        if bound.doc_id is not None:
            path += f'/{document_path(bound.doc_id)}'
        path += encode_query(bound.params)
        return await self._connection.request(method='GET', path=path, callback=_passthrough(bound))

    async def temporary_view(self, map: str, *args, **kwargs) -> Any:
        """Run a temporary view.

        Args:
            map: Source of the map function.
            reduce (str): Source of the reduce function.
            params (Mapping): View query parameters.
            callback: Continuation, ``callback(error, info, rows)``.
        """
        bound = resolve_arguments(
            args, kwargs,
            Slot('reduce', str),
            Slot('params', Mapping),
        )
        body = {'map': map}
        if bound.reduce is not None:
            body['reduce'] = bound.reduce
        return await self._connection.request(
            method='POST',
            path=f'{self.path}/_temp_view{encode_view_options(bound.params)}',
            body=body,
            callback=_view_result(bound),
        )

    async def view(self, design: str, view: str, *args, **kwargs) -> Any:
        """Query a view.

        Every query parameter value is JSON-encoded before URL-encoding,
        so ``{'key': 'x'}`` is sent as ``?key=%22x%22``.

        Args:
            design: Name of the design document (without ``_design/``).
            view: Name of the view.
            params (Mapping): View query parameters.
            callback: Continuation, ``callback(error, info, rows)``.
        """
        bound = resolve_arguments(args, kwargs, Slot('params', Mapping))
        return await self._connection.request(
            method='GET',
            path=f'{self.path}/{DESIGN_PREFIX}{quoteall(design)}/_view/{quoteall(view)}{encode_view_query(bound.params)}',
            callback=_view_result(bound),
        )
