import functools
import inspect
import logging
import typing

from botschema.compiler.generator import Bindings
from botschema.errors import EncodeError
from botschema.runtime.decoder import decode
from botschema.runtime.encoder import encode
from botschema.runtime.normalizer import normalize
from botschema.runtime.result import APIResult, Err

log = logging.getLogger(__name__)

Transport = typing.Callable[..., typing.Any]


class Client:
    """
    Runs calls through encode, the transport, and decode.

    ``transport`` is called as ``transport(request, **options)`` and must
    return the raw response body. Through :meth:`acall` it may also be a
    coroutine function, and a plain one still works there. ``options`` (a
    timeout, say) are handed to the transport untouched.

    Every failure comes back as an ``Err``; nothing is retried.
    """

    def __init__(self, bindings: Bindings, transport: Transport, **options):
        self.bindings = bindings
        self.transport = transport
        self.options = options

    def _prepare(
        self, method: str, arguments: dict | None, kwargs: dict
    ) -> tuple:
        descriptor = self.bindings.method(method)
        merged = dict(arguments or {})
        merged.update(kwargs)

        try:
            return descriptor, encode(descriptor, merged)
        except EncodeError as exc:
            log.debug("Rejected call of %s: %s", descriptor.name, exc)
            return descriptor, Err(exc)

    def call(
        self, method: str, arguments: dict | None = None, /, **kwargs
    ) -> APIResult:
        descriptor, request = self._prepare(method, arguments, kwargs)
        if isinstance(request, Err):
            return request

        try:
            raw = self.transport(request, **self.options)
        except Exception as exc:
            log.warning("Transport failed for %s: %r", descriptor.name, exc)
            return Err(normalize(exc))

        return decode(descriptor, raw)

    async def acall(
        self, method: str, arguments: dict | None = None, /, **kwargs
    ) -> APIResult:
        descriptor, request = self._prepare(method, arguments, kwargs)
        if isinstance(request, Err):
            return request

        try:
            raw = self.transport(request, **self.options)
            if inspect.isawaitable(raw):
                raw = await raw
        except Exception as exc:
            log.warning("Transport failed for %s: %r", descriptor.name, exc)
            return Err(normalize(exc))

        return decode(descriptor, raw)

    # client.send_message(chat_id=1, text="hi")
    def __getattr__(self, name: str):
        if name.startswith("_") or name in ("bindings", "transport", "options"):
            raise AttributeError(name)
        try:
            descriptor = self.bindings.method(name)
        except KeyError:
            raise AttributeError(name) from None
        return functools.partial(self.call, descriptor.name)
