import asyncio

import pytest

from botschema.compiler import generator
from botschema.compiler.generator import camel_to_snake
from botschema.errors import MissingRequired, RateLimited, TransportFailure
from botschema.runtime.client import Client
from botschema.runtime.result import Err, Ok


class FakeTransport:
    def __init__(self, response=b'{"ok":true,"result":{"id":1,"is_bot":true}}'):
        self.response = response
        self.calls = []

    def __call__(self, request, **options):
        self.calls.append((request, options))
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


def test_successful_call(bindings):
    transport = FakeTransport()
    client = Client(bindings, transport, timeout=10)

    result = client.call("getMe")

    assert isinstance(result, Ok)
    assert result.value.id == 1
    request, options = transport.calls[0]
    assert request.method == "getMe"
    assert options == {"timeout": 10}


def test_missing_required_never_reaches_transport(bindings):
    transport = FakeTransport()
    client = Client(bindings, transport)

    result = client.call("sendMessage", {"chat_id": 1})

    assert isinstance(result, Err)
    assert isinstance(result.error, MissingRequired)
    assert result.error.param == "text"
    assert transport.calls == []


def test_transport_errors_become_values(bindings):
    client = Client(bindings, FakeTransport(ConnectionResetError("reset")))

    result = client.call("getMe")

    assert isinstance(result.error, TransportFailure)
    assert isinstance(result.error.cause, ConnectionResetError)


def test_rate_limit_is_reported_not_retried(bindings):
    transport = FakeTransport(
        b'{"ok":false,"error_code":429,"description":"Too Many Requests",'
        b'"parameters":{"retry_after":5}}'
    )
    client = Client(bindings, transport)

    result = client.call("getMe")

    assert isinstance(result.error, RateLimited)
    assert result.error.retry_after == 5
    assert len(transport.calls) == 1


def test_unwrap_raises_the_error(bindings):
    client = Client(bindings, FakeTransport(TimeoutError()))

    with pytest.raises(TransportFailure):
        client.call("getMe").unwrap()


def test_keyword_arguments_and_attribute_access(bindings):
    transport = FakeTransport(b'{"ok":true,"result":true}')
    client = Client(bindings, transport)

    result = client.edit_message_text(text="edited")

    assert result.value is True
    request, _ = transport.calls[0]
    assert request.body == {"text": "edited"}


def test_unknown_attribute(bindings):
    client = Client(bindings, FakeTransport())

    with pytest.raises(AttributeError):
        client.send_sticker


def test_async_call(bindings):
    seen = []

    async def transport(request, **options):
        seen.append(request.method)
        return b'{"ok":true,"result":{"id":2,"is_bot":false}}'

    client = Client(bindings, transport)
    result = asyncio.run(client.acall("get_me"))

    assert result.value.id == 2
    assert seen == ["getMe"]


def test_async_transport_failure(bindings):
    async def transport(request, **options):
        raise OSError("network unreachable")

    client = Client(bindings, transport)
    result = asyncio.run(client.acall("getMe"))

    assert isinstance(result.error, TransportFailure)


def test_async_call_accepts_a_plain_transport(bindings):
    transport = FakeTransport()
    client = Client(bindings, transport)

    result = asyncio.run(client.acall("getMe"))

    assert isinstance(result, Ok)
    assert result.value.id == 1
    assert len(transport.calls) == 1


def test_snake_case_calls_reuse_generated_names(bindings, monkeypatch):
    renamed = []

    def counting_camel_to_snake(name):
        renamed.append(name)
        return camel_to_snake(name)

    monkeypatch.setattr(
        generator, "camel_to_snake", counting_camel_to_snake
    )
    transport = FakeTransport(
        b'{"ok":true,"result":{"message_id":1,"chat":{"id":1,'
        b'"type":"private"},"date":0}}'
    )
    client = Client(bindings, transport)

    result = client.send_photo(chat_id=1, photo=b"x")

    assert isinstance(result, Ok)
    assert renamed == []
    request, _ = transport.calls[0]
    assert request.method == "sendPhoto"
