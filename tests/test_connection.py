"""Tests for cushion — Config and the Connection request dispatcher."""
from __future__ import annotations

import json
from base64 import b64encode
from unittest.mock import AsyncMock, MagicMock, patch

import pytest
import httpx

from cushion import (
    COUCHDB_HOST,
    COUCHDB_PORT,
    DEFAULT_CONFIG,
    Config,
    Connection,
    Database,
    DecodeError,
    DictObject,
    TransportError,
)


# ── helpers ────────────────────────────────────────────────────────────

def _mock_response(text='{}', status_code=200):
    resp = MagicMock(spec=httpx.Response)
    resp.status_code = status_code
    resp.text = text
    return resp


def _mock_transport(handler):
    return httpx.AsyncClient(transport=httpx.MockTransport(handler))


# ── Error aliases ──────────────────────────────────────────────────────

class TestErrorAliases:
    def test_transport_error(self):
        assert TransportError is httpx.TransportError

    def test_decode_error(self):
        assert DecodeError is json.JSONDecodeError
        assert issubclass(DecodeError, ValueError)


# ── Config / Connection.__init__ ───────────────────────────────────────

class TestConnectionInit:
    def test_defaults(self):
        c = Connection()
        assert c.host == COUCHDB_HOST
        assert c.port == COUCHDB_PORT
        assert c.config == DEFAULT_CONFIG

    def test_explicit_params(self):
        c = Connection(host='myhost', port=9999, username='foo', password='bar')
        assert c.host == 'myhost'
        assert c.port == 9999
        assert c.username == 'foo'
        assert c.password == 'bar'

    def test_host_with_port(self):
        c = Connection(host='myhost:1234')
        assert c.host == 'myhost'
        assert c.port == '1234'

    def test_config_fallback(self):
        config = Config('cfghost', 6000, 'cfguser', 'cfgpass')
        c = Connection(port=7000, config=config)
        assert c.host == 'cfghost'
        assert c.port == 7000
        assert c.username == 'cfguser'
        assert c.password == 'cfgpass'

    def test_read_only(self):
        c = Connection(host='myhost')
        with pytest.raises(AttributeError):
            c.host = 'other'

    def test_config_is_immutable(self):
        config = Config('h', 1, 'u', 'p')
        with pytest.raises(AttributeError):
            config.host = 'other'

    def test_repr(self):
        assert repr(Connection(host='h', port=1)) == '<Connection h:1>'

    def test_database_factory(self):
        c = Connection()
        db = c.database('foo')
        assert isinstance(db, Database)
        assert db.name == 'foo'
        assert db.connection is c


# ── Connection._build_url / _build_headers ─────────────────────────────

class TestBuildRequest:
    def setup_method(self):
        self.connection = Connection(host='localhost', port=5984, username='foo', password='bar')

    def test_url(self):
        assert self.connection._build_url('db/_all_docs') == 'http://localhost:5984/db/_all_docs'

    def test_empty_path(self):
        assert self.connection._build_url('') == 'http://localhost:5984/'
        assert self.connection._build_url(None) == 'http://localhost:5984/'

    def test_default_headers(self):
        headers = self.connection._build_headers(None)
        assert headers['accept'] == 'application/json'
        assert headers['content-type'] == 'application/json'
        expected = b64encode(b'foo:bar').decode('ascii')
        assert headers['authorization'] == f'Basic {expected}'

    def test_caller_headers_override(self):
        headers = self.connection._build_headers({'Content-Type': 'text/plain', 'Destination': 'x'})
        assert headers['content-type'] == 'text/plain'
        assert headers['destination'] == 'x'
        assert headers['accept'] == 'application/json'

    def test_no_credentials(self):
        c = Connection(host='localhost', username='', password='')
        assert 'authorization' not in c._build_headers(None)


# ── Connection.request ─────────────────────────────────────────────────

class TestRequest:
    def setup_method(self):
        self.connection = Connection(host='localhost', port=5984, username='foo', password='bar')

    def _patch_session(self, response=None, side_effect=None):
        mock_session = MagicMock()
        mock_session.request = AsyncMock(return_value=response, side_effect=side_effect)
        self.connection.session = mock_session
        return mock_session.request

    @pytest.mark.parametrize('method', ['GET', 'PUT', 'POST', 'DELETE', 'HEAD', 'COPY'])
    async def test_valid_methods_preserved(self, method):
        request = self._patch_session(_mock_response())
        await self.connection.request(method=method)
        assert request.call_args[0][0] == method

    @pytest.mark.parametrize('method', ['put', 'Post', 'copy'])
    async def test_methods_case_insensitive(self, method):
        request = self._patch_session(_mock_response())
        await self.connection.request(method=method)
        assert request.call_args[0][0] == method.upper()

    @pytest.mark.parametrize('method', [None, 'PATCH', 'FOO', '', 42, 'GETX'])
    async def test_invalid_methods_default_to_get(self, method):
        request = self._patch_session(_mock_response())
        await self.connection.request(method=method)
        assert request.call_args[0][0] == 'GET'

    async def test_path(self):
        request = self._patch_session(_mock_response())
        await self.connection.request(path='db/_compact')
        assert request.call_args[0][1] == 'http://localhost:5984/db/_compact'

    async def test_empty_path(self):
        request = self._patch_session(_mock_response())
        await self.connection.request()
        assert request.call_args[0][1] == 'http://localhost:5984/'

    async def test_body_serialized(self):
        request = self._patch_session(_mock_response())
        await self.connection.request(method='POST', path='db', body={'a': [1, 2]})
        assert json.loads(request.call_args.kwargs['content']) == {'a': [1, 2]}

    async def test_no_body(self):
        request = self._patch_session(_mock_response())
        await self.connection.request(method='GET', path='db')
        assert request.call_args.kwargs['content'] is None

    async def test_scalar_body(self):
        request = self._patch_session(_mock_response())
        await self.connection.request(method='PUT', path='db/_revs_limit', body=5)
        assert request.call_args.kwargs['content'] == '5'

    async def test_headers_sent(self):
        request = self._patch_session(_mock_response())
        await self.connection.request(headers={'destination': 'copy'})
        headers = request.call_args.kwargs['headers']
        assert headers['destination'] == 'copy'
        assert headers['authorization'].startswith('Basic ')

    async def test_success(self):
        self._patch_session(_mock_response('{"ok": true}'))
        cb = MagicMock(return_value='returned')
        result = await self.connection.request(callback=cb)
        cb.assert_called_once_with(None, {'ok': True})
        assert isinstance(cb.call_args[0][1], DictObject)
        assert result == 'returned'

    async def test_success_list(self):
        self._patch_session(_mock_response('["a", "b"]'))
        cb = MagicMock()
        await self.connection.request(callback=cb)
        cb.assert_called_once_with(None, ['a', 'b'])

    async def test_domain_error(self):
        self._patch_session(_mock_response('{"error": "not_found", "reason": "missing"}', 404))
        cb = MagicMock()
        await self.connection.request(callback=cb)
        cb.assert_called_once_with({'error': 'not_found', 'reason': 'missing'}, None)

    async def test_falsy_error_field_is_success(self):
        self._patch_session(_mock_response('{"error": false, "ok": true}'))
        cb = MagicMock()
        await self.connection.request(callback=cb)
        cb.assert_called_once_with(None, {'error': False, 'ok': True})

    async def test_keys_named_like_dict_methods(self):
        self._patch_session(_mock_response('{"get": 1, "items": [2], "keys": null}'))
        cb = MagicMock()
        await self.connection.request(callback=cb)
        cb.assert_called_once_with(None, {'get': 1, 'items': [2], 'keys': None})

    async def test_domain_error_with_dict_method_keys(self):
        self._patch_session(_mock_response('{"get": "x", "error": "forbidden"}', 403))
        cb = MagicMock()
        await self.connection.request(callback=cb)
        cb.assert_called_once_with({'get': 'x', 'error': 'forbidden'}, None)

    async def test_status_code_ignored(self):
        self._patch_session(_mock_response('{"ok": true}', 500))
        cb = MagicMock()
        await self.connection.request(callback=cb)
        cb.assert_called_once_with(None, {'ok': True})

    async def test_decode_error(self):
        self._patch_session(_mock_response('<html>nope</html>'))
        cb = MagicMock()
        await self.connection.request(callback=cb)
        error, result = cb.call_args[0]
        assert isinstance(error, DecodeError)
        assert result is None

    async def test_empty_response_is_decode_error(self):
        self._patch_session(_mock_response(''))
        cb = MagicMock()
        await self.connection.request(method='HEAD', callback=cb)
        assert isinstance(cb.call_args[0][0], ValueError)

    async def test_transport_error(self):
        exc = httpx.ConnectError('connection refused')
        self._patch_session(side_effect=exc)
        cb = MagicMock()
        await self.connection.request(callback=cb)
        cb.assert_called_once_with(exc, None)

    async def test_transport_error_not_retried(self):
        request = self._patch_session(side_effect=httpx.ConnectError('refused'))
        await self.connection.request(callback=MagicMock())
        assert request.await_count == 1

    async def test_default_callback(self):
        self._patch_session(_mock_response('{"ok": true}'))
        assert await self.connection.request() == (None, {'ok': True})

    async def test_async_callback_awaited(self):
        self._patch_session(_mock_response('{"ok": true}'))
        cb = AsyncMock(return_value='awaited')
        assert await self.connection.request(callback=cb) == 'awaited'
        cb.assert_awaited_once_with(None, {'ok': True})

    async def test_debug_logging(self):
        self._patch_session(_mock_response())
        with patch('cushion.logger') as mock_logger:
            await self.connection.request(method='POST', path='db', body={'a': 1})
            mock_logger.debug.assert_called()
            assert 'BODY' in mock_logger.debug.call_args[0][0]


# ── Connection.request over a mocked transport ─────────────────────────

class TestRequestTransport:
    def setup_method(self):
        self.connection = Connection(host='localhost', port=5984, username='foo', password='bar')
        self.requests = []

    def _serve(self, content=None, text=None):
        def handler(request):
            self.requests.append(request)
            if text is not None:
                return httpx.Response(200, text=text)
            return httpx.Response(200, json=content)
        self.connection.session = _mock_transport(handler)

    async def test_round_trip_body(self):
        body = {'name': 'cushion', 'tags': ['a', 'b'], 'nested': {'n': 1.5, 'flag': None}}
        self._serve({'ok': True})
        await self.connection.request(method='PUT', path='db/doc', body=body)
        assert json.loads(self.requests[0].content) == body

    async def test_wire_request(self):
        self._serve({'ok': True})
        await self.connection.request(method='post', path='db/_compact')
        request = self.requests[0]
        assert request.method == 'POST'
        assert request.url.path == '/db/_compact'
        assert request.headers['authorization'] == 'Basic ' + b64encode(b'foo:bar').decode()

    async def test_query_string_preserved(self):
        self._serve({'rows': []})
        await self.connection.request(path='db/_design/d/_view/v?key=%22x%22')
        assert self.requests[0].url.raw_path == b'/db/_design/d/_view/v?key=%22x%22'

    async def test_domain_error(self):
        self._serve({'error': 'conflict', 'reason': 'Document update conflict.'})
        error, result = await self.connection.request(method='PUT', path='db/doc', body={})
        assert error.error == 'conflict'
        assert result is None

    async def test_keys_named_like_dict_methods(self):
        self._serve({'items': {'a': 1}, 'get': True, 'values': []})
        error, result = await self.connection.request(path='db/doc')
        assert error is None
        assert result == {'items': {'a': 1}, 'get': True, 'values': []}

    async def test_decode_error(self):
        self._serve(text='not json')
        error, result = await self.connection.request()
        assert isinstance(error, DecodeError)
        assert result is None

    async def test_transport_error(self):
        def handler(request):
            raise httpx.ConnectError('connection refused', request=request)
        self.connection.session = _mock_transport(handler)
        error, result = await self.connection.request()
        assert isinstance(error, TransportError)
        assert result is None


# ── Connection API methods ─────────────────────────────────────────────

def _stub_request(connection, error=None, response=None):
    async def request(**properties):
        return properties['callback'](error, response)
    return patch.object(connection, 'request', side_effect=request)


class TestVersion:
    def setup_method(self):
        self.connection = Connection(host='localhost')

    async def test_version(self):
        cb = MagicMock()
        with _stub_request(self.connection, response=DictObject(couchdb='Welcome', version='3.3.3')) as m:
            await self.connection.version(cb)
        assert m.call_args.kwargs['method'] == 'GET'
        assert 'path' not in m.call_args.kwargs
        cb.assert_called_once_with(None, '3.3.3')

    async def test_version_error(self):
        error = httpx.ConnectError('refused')
        cb = MagicMock()
        with _stub_request(self.connection, error=error):
            await self.connection.version(cb)
        cb.assert_called_once_with(error, None)


class TestListDatabases:
    def setup_method(self):
        self.connection = Connection(host='localhost')

    async def test_list(self):
        cb = MagicMock()
        with _stub_request(self.connection, response=['a', '_replicator', 'b']) as m:
            await self.connection.list_databases(cb)
        assert m.call_args.kwargs['path'] == '_all_dbs'
        cb.assert_called_once_with(None, ['a', '_replicator', 'b'])

    async def test_no_couch_related(self):
        cb = MagicMock()
        with _stub_request(self.connection, response=['a', '_replicator', 'b']):
            await self.connection.list_databases(cb, True)
        cb.assert_called_once_with(None, ['a', 'b'])

    async def test_no_couch_related_keyword(self):
        with _stub_request(self.connection, response=['_users', 'a']):
            result = await self.connection.list_databases(no_couch_related=True)
        assert result == (None, ['a'])

    async def test_error(self):
        error = DictObject(error='unauthorized')
        cb = MagicMock()
        with _stub_request(self.connection, error=error):
            await self.connection.list_databases(cb, True)
        cb.assert_called_once_with(error, None)

    async def test_over_transport(self):
        connection = Connection(host='localhost', port=5984)
        connection.session = _mock_transport(
            lambda request: httpx.Response(200, json=['a', '_replicator', 'b']))
        cb = MagicMock()
        await connection.list_databases(cb, no_couch_related=True)
        cb.assert_called_once_with(None, ['a', 'b'])


# ── Module-level configuration ─────────────────────────────────────────

class TestModuleConfiguration:
    def test_httpx_import_error(self):
        """Verify ImportError is raised when httpx is not available."""
        import sys
        import importlib
        saved = {name: module for name, module in sys.modules.items()
                 if name == 'httpx' or name == 'cushion' or name.startswith('cushion.')}
        try:
            for name in saved:
                sys.modules.pop(name, None)
            sys.modules['httpx'] = None
            with pytest.raises(ImportError, match="Cushion requires"):
                importlib.import_module('cushion')
        finally:
            for name in list(sys.modules):
                if name == 'httpx' or name == 'cushion' or name.startswith('cushion.'):
                    sys.modules.pop(name, None)
            sys.modules.update(saved)

    def test_environment_variables(self, monkeypatch):
        import sys
        import importlib
        saved = {name: module for name, module in sys.modules.items()
                 if name == 'cushion' or name.startswith('cushion.')}
        monkeypatch.setenv('COUCHDB_HOST', 'env-host')
        monkeypatch.setenv('COUCHDB_USERNAME', 'env-user')
        try:
            for name in saved:
                sys.modules.pop(name, None)
            mod = importlib.import_module('cushion')
            assert mod.COUCHDB_HOST == 'env-host'
            assert mod.DEFAULT_CONFIG.username == 'env-user'
        finally:
            for name in list(sys.modules):
                if name == 'cushion' or name.startswith('cushion.'):
                    sys.modules.pop(name, None)
            sys.modules.update(saved)

    def test_django_settings_integration(self):
        """Verify Django settings override env vars when available."""
        import sys
        import importlib
        import types

        saved = {name: module for name, module in sys.modules.items()
                 if name == 'cushion' or name.startswith('cushion.')}
        saved_django = sys.modules.get('django', None)
        saved_django_conf = sys.modules.get('django.conf', None)

        try:
            django_mod = types.ModuleType('django')
            django_conf = types.ModuleType('django.conf')
            django_conf.settings = types.SimpleNamespace(
                COUCHDB_HOST='django-host',
                COUCHDB_PORT=9999,
                COUCHDB_USERNAME='django-user',
                COUCHDB_PASSWORD='django-pass',
            )
            sys.modules['django'] = django_mod
            sys.modules['django.conf'] = django_conf
            for name in saved:
                sys.modules.pop(name, None)

            mod = importlib.import_module('cushion')
            assert mod.COUCHDB_HOST == 'django-host'
            assert mod.COUCHDB_PORT == 9999
            assert mod.DEFAULT_CONFIG == ('django-host', 9999, 'django-user', 'django-pass')
        finally:
            for name in list(sys.modules):
                if name == 'cushion' or name.startswith('cushion.'):
                    sys.modules.pop(name, None)
            sys.modules.update(saved)
            for name, module in [('django', saved_django), ('django.conf', saved_django_conf)]:
                if module is not None:
                    sys.modules[name] = module
                else:
                    sys.modules.pop(name, None)
