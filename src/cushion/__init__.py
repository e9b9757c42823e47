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
"""CouchDB Python client library.

Provides the ``Connection`` async client class and the ``Database``,
``Document`` and ``Design`` handles built on top of it. Every I/O method
is a coroutine that reports its outcome through an error-first
continuation, ``callback(error, result)``; awaiting the method returns
whatever the continuation returns.

Configuration is read from environment variables (``COUCHDB_HOST``,
``COUCHDB_PORT``, ``COUCHDB_USERNAME``, ``COUCHDB_PASSWORD``), with
optional overrides from Django settings, and collected in
``DEFAULT_CONFIG``.

Example:
    >>> from cushion import Connection
    >>> connection = Connection(host='localhost', username='admin', password='secret')
    >>> error, created = await connection.database('mydb').create()
    >>> created
    True
"""
from __future__ import annotations

import os
import json
import logging
from base64 import b64encode
from collections import namedtuple
from typing import Any, Callable

try:
    import httpx
except ImportError:
    raise ImportError("Cushion requires the installation of the httpx module.")

from .arguments import Slot, collect, complete, resolve_arguments
from .collections import DictObject
from .database import Database
from .document import DESIGN_PREFIX, Design, Document


__version__ = '1.0.0'
__all__ = [
    'Connection',
    'Config',
    'Database',
    'Document',
    'Design',
    'DictObject',
    'TransportError',
    'DecodeError',
    'DEFAULT_CONFIG',
    'DESIGN_PREFIX',
    'COUCHDB_HOST',
    'COUCHDB_PORT',
    'COUCHDB_USERNAME',
    'COUCHDB_PASSWORD',
]

logger = logging.getLogger('cushion')

METHODS = frozenset(('GET', 'PUT', 'POST', 'DELETE', 'HEAD', 'COPY'))
DEFAULT_METHOD = 'GET'

COUCHDB_HOST = os.environ.get('COUCHDB_HOST', '127.0.0.1')
COUCHDB_PORT = os.environ.get('COUCHDB_PORT', 5984)
COUCHDB_USERNAME = os.environ.get('COUCHDB_USERNAME', '')
COUCHDB_PASSWORD = os.environ.get('COUCHDB_PASSWORD', '')

try:
    from django.conf import settings
    COUCHDB_HOST = getattr(settings, 'COUCHDB_HOST', COUCHDB_HOST)
    COUCHDB_PORT = getattr(settings, 'COUCHDB_PORT', COUCHDB_PORT)
    COUCHDB_USERNAME = getattr(settings, 'COUCHDB_USERNAME', COUCHDB_USERNAME)
    COUCHDB_PASSWORD = getattr(settings, 'COUCHDB_PASSWORD', COUCHDB_PASSWORD)
except Exception:
    settings = None


TransportError = httpx.TransportError
DecodeError = json.JSONDecodeError


class Config(namedtuple('Config', 'host port username password')):
    """Immutable connection settings.

    Attributes:
        host: Server hostname.
        port: Server port.
        username: Username sent with every request.
        password: Password sent with every request.
    """

    __slots__ = ()


DEFAULT_CONFIG = Config(COUCHDB_HOST, COUCHDB_PORT, COUCHDB_USERNAME, COUCHDB_PASSWORD)


class Connection:
    """Async client for a CouchDB server.

    Holds the static endpoint and credentials and acts as the single
    chokepoint for HTTP traffic: every handle method ends in
    ``request``, which builds the authenticated request, parses the JSON
    response and classifies it before invoking the continuation.

    Attributes:
        host: Server hostname.
        port: Server port.
        username: Username for basic authorization.
        password: Password for basic authorization.

    Example:
        >>> connection = Connection(host='localhost', port=5984)
        >>> db = connection.database('mydb')
        >>> await db.exists(lambda error, exists: print(exists))
        True
    """

    session = httpx.AsyncClient(
        trust_env=False,
        follow_redirects=False,
    )

    def __init__(self, host: str | None = None, port: str | int | None = None,
            username: str | None = None, password: str | None = None,
            config: Config | None = None) -> None:
        """Initialize the connection.

        Each field falls back to *config* when omitted, and *config*
        falls back to ``DEFAULT_CONFIG``.

        Args:
            host: Server hostname. If it contains a colon, the part after
                it is used as the port.
            port: Server port.
            username: Username for basic authorization.
            password: Password for basic authorization.
            config: Settings used for omitted fields.
        """
        if config is None:
            config = DEFAULT_CONFIG
        if host is None:
            host = config.host
        if port is None:
            port = config.port
        if username is None:
            username = config.username
        if password is None:
            password = config.password
        if host and ':' in host:
            host, _, port = host.partition(':')
        self._config = Config(host, port, username, password)

    def __repr__(self):
        return f'<{type(self).__name__} {self.host}:{self.port}>'

    @property
    def config(self) -> Config:
        return self._config

    @property
    def host(self) -> str:
        return self._config.host

    @property
    def port(self) -> str | int:
        return self._config.port

    @property
    def username(self) -> str:
        return self._config.username

    @property
    def password(self) -> str:
        return self._config.password

    def database(self, name: str) -> Database:
        """Return a handle for the database called *name*."""
        return Database(name, self)

    async def version(self, *args, **kwargs) -> Any:
        """Get the server version string.

        Continuation: ``callback(error, version)``.
        """
        bound = resolve_arguments(args, kwargs)

        def callback(error, response):
            if error is not None:
                return bound.callback(error, None)
            return bound.callback(None, response['version'])

        return await self.request(method='GET', callback=callback)

    async def list_databases(self, *args, **kwargs) -> Any:
        """List the names of all databases.

        Args:
            no_couch_related (bool): Drop the server's own databases (names
                starting with ``_``, like ``_replicator`` or ``_users``).
            callback: Continuation, ``callback(error, names)``.
        """
        bound = resolve_arguments(args, kwargs, Slot('no_couch_related', bool, False))

        def callback(error, response):
            if error is not None:
                return bound.callback(error, None)
            if bound.no_couch_related:
                response = [name for name in response if not name.startswith('_')]
            return bound.callback(None, response)

        return await self.request(method='GET', path='_all_dbs', callback=callback)

    def _build_url(self, path: str | None) -> str:
        return f'http://{self.host}:{self.port}/{path or ""}'

    def _build_headers(self, headers: dict | None) -> httpx.Headers:
        """Default headers, overridden by any caller-supplied *headers*."""
        result = httpx.Headers({
            'accept': 'application/json',
            'content-type': 'application/json',
        })
        if self.username or self.password:
            credentials = f'{self.username}:{self.password}'.encode('utf-8')
            result['authorization'] = f"Basic {b64encode(credentials).decode('ascii')}"
        if headers:
            result.update(headers)
        return result

    async def request(self, method: str | None = None, path: str | None = None,
            headers: dict | None = None, body: Any = None,
            callback: Callable | None = None) -> Any:
        """Send one request to the server and report it to *callback*.

        Central method through which all API operations are routed.

        Args:
            method: HTTP verb, one of ``GET``, ``PUT``, ``POST``,
                ``DELETE``, ``HEAD`` or ``COPY`` (case-insensitive). Any
                other value, or none at all, silently becomes ``GET``.
            path: Server-relative path, query string included. The
                request goes to ``/`` + *path*.
            headers: Additional headers; they override the defaults
                (``Accept``, ``Content-Type``, ``Authorization``).
            body: JSON-serializable request body, sent when not ``None``.
            callback: Continuation, invoked exactly once as
                ``callback(error, result)``. Defaults to ``collect``.

        Returns:
            Whatever *callback* returns (awaited if it is awaitable).

        The continuation receives one of:

        * ``(exc, None)`` for a transport failure (``TransportError``);
        * ``(exc, None)`` if the response is not JSON (``DecodeError``);
        * ``(response, None)`` if the response is a JSON object with a
          truthy ``error`` field;
        * ``(None, response)`` otherwise.

        HTTP status codes are not inspected.
        """
        if callback is None:
            callback = collect

        if isinstance(method, str) and method.upper() in METHODS:
            method = method.upper()
        else:
            method = DEFAULT_METHOD

        url = self._build_url(path)
        headers = self._build_headers(headers)

        content = None
        if body is not None:
            content = json.dumps(body)
            logger.debug(f"@@@>> {method} URL: {url}  ::  BODY: {content}")
        else:
            logger.debug(f"@@@>> {method} URL: {url}")

        try:
            res = await self.session.request(method, url, content=content, headers=headers)
        except httpx.TransportError as exc:
            logger.debug(f"@@@RES>> {method} URL: {url}  ::  TRANSPORT ERROR: {exc!r}")
            return await complete(callback, exc, None)

        try:
            response = json.loads(res.text, object_pairs_hook=DictObject)
        except ValueError as exc:
            logger.debug(f"@@@RES>> {method} URL: {url}  ::  DECODE ERROR: {exc}")
            return await complete(callback, exc, None)

        if isinstance(response, dict) and dict.get(response, 'error'):
            return await complete(callback, response, None)
        return await complete(callback, None, response)
