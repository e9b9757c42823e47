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
"""Document and design document handles.

A ``Document`` holds a document id, the last revision the server
acknowledged and a local body. Body changes stay local until ``save``.
``Design`` is the variant for ids under the reserved ``_design/`` prefix;
it additionally manages the ``shows`` and ``views`` tables of its body.
"""
from __future__ import annotations

from typing import Any

from .arguments import Slot, resolve_arguments
from .utils import document_path, quoteall


DESIGN_PREFIX = '_design/'

RESERVED_FIELDS = ('_id', '_rev')


class Document:
    """Handle for a single document of a database.

    Attributes:
        id: Document id, or ``None`` until the server assigns one.
        revision: Last revision acknowledged by the server, or ``None``.
        body: Local document content, without ``_id``/``_rev``.
        deleted: ``True`` once ``destroy`` succeeded.
    """

    def __init__(self, database, id: str | None = None,
            revision: str | None = None, body: dict | None = None) -> None:
        self._database = database
        self._connection = database.connection
        self._id = id
        self._revision = revision
        self._body = {}
        self.deleted = False
        if body:
            self._replace_body(body)

    def __repr__(self):
        return f'<{type(self).__name__} {self._id}@{self._revision}>'

    def __getitem__(self, key):
        return self._body[key]

    def __setitem__(self, key, value):
        self._body[key] = value

    def __delitem__(self, key):
        del self._body[key]

    def __contains__(self, key):
        return key in self._body

    @property
    def id(self) -> str | None:
        return self._id

    @property
    def revision(self) -> str | None:
        return self._revision

    @property
    def body(self) -> dict:
        return self._body

    @property
    def database(self):
        return self._database

    @property
    def connection(self):
        return self._connection

    def _replace_body(self, body: dict) -> None:
        self._body = {k: v for k, v in dict.items(body) if k not in RESERVED_FIELDS}

    def _path(self) -> str:
        if self._id is None:
            raise ValueError("Document has no id")
        return f'{self._database.path}/{document_path(self._id)}'

    async def load(self, *args, **kwargs) -> Any:
        """Fetch the document from the server, replacing the local body.

        If the handle has a revision, that revision is fetched.

        Continuation: ``callback(error, document)``.

        Raises:
            ValueError: If the document has no id.
        """
        bound = resolve_arguments(args, kwargs)
        path = self._path()
        if self._revision is not None:
            path += f'?rev={quoteall(self._revision)}'

        def callback(error, response):
            if error is not None:
                return bound.callback(error, None)
            self._revision = dict.get(response, '_rev', self._revision)
            self._replace_body(response)
            return bound.callback(None, self)

        return await self._connection.request(method='GET', path=path, callback=callback)

    async def save(self, *args, **kwargs) -> Any:
        """Write the local body to the server.

        Uses ``PUT`` when the id is known and ``POST`` to the database
        otherwise, letting the server assign one. The current revision is
        sent along and replaced by the one the server answers with.

        Continuation: ``callback(error, document)``.
        """
        bound = resolve_arguments(args, kwargs)
        body = dict(self._body)
        if self._revision is not None:
            body['_rev'] = self._revision

        if self._id is None:
            method, path = 'POST', self._database.path
        else:
            method, path = 'PUT', self._path()

        def callback(error, response):
            if error is not None:
                return bound.callback(error, None)
            self._id = dict.get(response, 'id', self._id)
            self._revision = dict.get(response, 'rev')
            return bound.callback(None, self)

        return await self._connection.request(method=method, path=path, body=body, callback=callback)

    async def destroy(self, *args, **kwargs) -> Any:
        """Delete the document at its current revision.

        Continuation: ``callback(error, True)``.

        Raises:
            ValueError: If the document has no id.
        """
        bound = resolve_arguments(args, kwargs)
        path = self._path()
        if self._revision is not None:
            path += f'?rev={quoteall(self._revision)}'

        def callback(error, response):
            if error is not None:
                return bound.callback(error, None)
            self._revision = dict.get(response, 'rev', self._revision)
            self.deleted = True
            return bound.callback(None, True)

        return await self._connection.request(method='DELETE', path=path, callback=callback)

    async def copy(self, target_id: str, *args, **kwargs) -> Any:
        """Copy the document to *target_id* on the server.

        Args:
            target_id: Id of the destination document.
            target_revision (str): Current revision of the destination,
                required by the server when overwriting an existing document.
            callback: Continuation, ``callback(error, document)`` with a
                handle for the copy.

        Raises:
            ValueError: If the document has no id.
        """
        bound = resolve_arguments(args, kwargs, Slot('target_revision', str))
        path = self._path()
        destination = document_path(target_id)
        if bound.target_revision is not None:
            destination += f'?rev={quoteall(bound.target_revision)}'

        def callback(error, response):
            if error is not None:
                return bound.callback(error, None)
            return bound.callback(None, self._database.document(response['id'], dict.get(response, 'rev')))

        return await self._connection.request(
            method='COPY',
            path=path,
            headers={'destination': destination},
            callback=callback,
        )


class Design(Document):
    """Handle for a design document (id ``_design/<name>``).

    The ``shows`` and ``views`` tables are always present in the body,
    empty until filled.
    """

    def __init__(self, database, id: str | None = None,
            revision: str | None = None, body: dict | None = None) -> None:
        if id is not None and not id.startswith(DESIGN_PREFIX):
            raise ValueError(f"Design document id must start with {DESIGN_PREFIX!r}: {id!r}")
        super().__init__(database, id, revision, body)
        self._ensure_tables()

    def _ensure_tables(self) -> None:
        self._body.setdefault('shows', {})
        self._body.setdefault('views', {})

    def _replace_body(self, body: dict) -> None:
        super()._replace_body(body)
        self._ensure_tables()

    async def save(self, *args, **kwargs) -> Any:
        """Store the design document under its id.

        Raises:
            ValueError: If the design document has no id. A POST would let
                the server pick an id outside ``_design/``.
        """
        if self._id is None:
            raise ValueError("Design document has no id")
        return await super().save(*args, **kwargs)

    @property
    def name(self) -> str | None:
        """Design name, the part of the id after ``_design/``."""
        if self._id is None:
            return None
        return self._id[len(DESIGN_PREFIX):]

    @property
    def shows(self) -> dict:
        return self._body['shows']

    @property
    def views(self) -> dict:
        return self._body['views']

    def show(self, name: str, content: str | None = None):
        """Get, create or update a show function.

        Args:
            name: Name of the show function.
            content: Source of the show function.

        Returns:
            This design document when *content* is given, otherwise the
            stored source (``None`` when there is none).
        """
        if content:
            self.shows[name] = content
            return self
        return dict.get(self.shows, name)

    def view(self, name: str, map: str | None = None, reduce: str | None = None):
        """Get, create or update a view.

        Args:
            name: Name of the view.
            map: Source of the map function.
            reduce: Source of the reduce function.

        Returns:
            This design document when *map* is given, otherwise the
            ``{'map': ..., 'reduce': ...}`` mapping of the view (``None``
            when there is none).
        """
        if map:
            view = dict.setdefault(self.views, name, {})
            view['map'] = map
            if reduce:
                view['reduce'] = reduce
            return self
        return dict.get(self.views, name)
