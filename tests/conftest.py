import json
import logging
import re
from unittest.mock import AsyncMock, MagicMock

import aiohttp.web
import pytest

from kdd._cogs.clients.auth import APIContext
from kdd._cogs.configs.configuration import DatastoreSettings
from kdd._cogs.structs.credentials import ConnectionInfo
from kdd._core.datastore.client import KubeClient


@pytest.fixture()
def hostname():
    """ A fake hostname to be used in all aiohttp/aresponses tests. """
    return 'fake-host'


@pytest.fixture()
def settings():
    settings = DatastoreSettings()
    settings.networking.error_backoffs = []  # no retries unless explicitly requested
    return settings


@pytest.fixture()
def logger():
    return logging.getLogger('kdd.tests')


@pytest.fixture()
async def context(hostname):
    """
    A connection context with a real aiohttp session to a fake API server.

    All the requests go to `aresponses`, so every test must declare
    the responses it expects the datastore to request.
    """
    info = ConnectionInfo(server=f'https://{hostname}')
    context = APIContext(info)
    async with context.session:
        yield context


@pytest.fixture()
def client(context, settings):
    return KubeClient(context, settings=settings)


@pytest.fixture()
def resp_mocker(aresponses):
    """
    A factory of server-side callbacks for `aresponses` with mocking/spying.

    The value of the fixture is a function, which return a coroutine mock.
    That coroutine mock should be passed to `aresponses.add` as a response
    callback function. When called, it calls the mock defined by the function's
    arguments (specifically, return_value or side_effects).

    It is possible to assert on whether the response was handled by that
    callback at all (i.e. HTTP URL & method matched), and on the request's
    payload (as ``request.data``)::

        def test_me(resp_mocker):
            response = aiohttp.web.json_response({'a': 'b'})
            callback = resp_mocker(return_value=response)
            aresponses.add(hostname, '/path/', 'get', callback)
            do_something()
            assert callback.called
            assert callback.call_args[0][0].data == {...}
    """
    def resp_maker(*args, **kwargs):
        actual_response = MagicMock(*args, **kwargs)

        async def resp_mock_effect(request):
            # The request's content can be read inside of the handler only. We preserve
            # the data into a conventional field, so that they could be asserted later.
            text = await request.text()
            try:
                request.data = json.loads(text) if text else None
            except json.JSONDecodeError:
                request.data = text
            return actual_response()

        return AsyncMock(side_effect=resp_mock_effect)
    return resp_maker


@pytest.fixture()
def json_response():
    """ A shortcut for the JSON responses, both successful and erroneous. """
    def make(data, status=200):
        return aiohttp.web.json_response(data, status=status)
    return make


@pytest.fixture()
def assert_logs(caplog):
    """
    A function to assert the logs are present (by pattern).

    The listed message patterns MUST be present, in the order specified.
    Some other log messages can also be present, but they are ignored.
    """
    caplog.set_level(logging.DEBUG)

    def assert_logs_fn(patterns=(), prohibited=()):
        __traceback_hide__ = True
        remaining_patterns = list(patterns)
        for message in caplog.messages:
            if remaining_patterns and re.search(remaining_patterns[0], message):
                remaining_patterns[:1] = []
            for pattern in prohibited:
                if re.search(pattern, message):
                    raise AssertionError(f"Prohibited log pattern found: {message!r} ~ {pattern!r}")
        if remaining_patterns:
            raise AssertionError(f"Few patterns were missed: {remaining_patterns!r}")

    return assert_logs_fn


@pytest.fixture()
def status_response():
    """ A K8s-like error response with the ``Status`` payload, as K8s returns them. """
    def make(code, reason='', message='boo!'):
        payload = {'apiVersion': 'v1', 'kind': 'Status', 'status': 'Failure',
                   'code': code, 'reason': reason, 'message': message}
        return aiohttp.web.json_response(payload, status=code)
    return make
