"""
Response decoding.

Unwraps the ``{"ok": ..., "result": ...}`` envelope and decodes the payload
against the method's return type. Union candidates, explicit and through
abstract types, are tried in documentation order and the first structural
match wins.
"""

import collections.abc
import json
import logging
import typing

from botschema.compiler.generator import Bindings, GeneratedMethod
from botschema.compiler.resolver import (
    BOOLEAN,
    FLOAT,
    INPUT_FILE,
    INTEGER,
    STRING,
    TRUE,
    ArrayOf,
    Primitive,
    Ref,
    TypeExpr,
    UnionOf,
)
from botschema.errors import ShapeMismatch
from botschema.runtime.normalizer import normalize
from botschema.runtime.result import APIResult, Err, Ok
from botschema.runtime.values import ABSENT

log = logging.getLogger(__name__)


class _Mismatch(Exception):
    def __init__(self, path: str, expected: str, got: typing.Any):
        self.path = path
        self.expected = expected
        self.got = got
        super().__init__(path, expected, got)


def _describe(payload: typing.Any) -> str:
    if payload is None:
        return "null"
    return type(payload).__name__


def _primitive_matches(kind: str, payload: typing.Any) -> bool:
    if kind in (STRING, INPUT_FILE):
        # Files come back as file_id strings
        return isinstance(payload, str)
    if kind == INTEGER:
        return isinstance(payload, int) and not isinstance(payload, bool)
    if kind == FLOAT:
        return isinstance(payload, (int, float)) and not isinstance(
            payload, bool
        )
    if kind == BOOLEAN:
        return isinstance(payload, bool)
    if kind == TRUE:
        return payload is True
    return False


class Decoder:
    def __init__(self, registry: collections.abc.Mapping):
        self._registry = registry

    def decode(self, expr: TypeExpr, payload: typing.Any, path: str):
        if isinstance(expr, Primitive):
            if not _primitive_matches(expr.kind, payload):
                raise _Mismatch(path, str(expr), _describe(payload))
            return payload

        if isinstance(expr, ArrayOf):
            if not isinstance(payload, list):
                raise _Mismatch(path, str(expr), _describe(payload))
            # Tuples keep frozen records hashable
            return tuple(
                self.decode(expr.item, item, f"{path}[{i}]")
                for i, item in enumerate(payload)
            )

        if isinstance(expr, UnionOf):
            return self._first_match(expr.options, payload, path, str(expr))

        return self._record(expr, payload, path)

    def _first_match(self, options, payload, path, expected):
        for option in options:
            try:
                return self.decode(option, payload, path)
            except _Mismatch:
                continue

        raise _Mismatch(path, expected, _describe(payload))

    def _record(self, expr: Ref, payload: typing.Any, path: str):
        generated = self._registry[expr.name]

        if generated.is_abstract:
            return self._first_match(
                generated.node.variants, payload, path, expr.name
            )

        if not isinstance(payload, collections.abc.Mapping):
            raise _Mismatch(path, expr.name, _describe(payload))

        values = {}
        for field in generated.fields:
            if field.wire_name not in payload:
                if field.required:
                    raise _Mismatch(
                        f"{path}.{field.wire_name}", str(field.expr), "nothing"
                    )
                values[field.name] = ABSENT
                continue

            item = payload[field.wire_name]
            if item is None:
                if field.required:
                    raise _Mismatch(
                        f"{path}.{field.wire_name}", str(field.expr), "null"
                    )
                values[field.name] = None
                continue

            values[field.name] = self.decode(
                field.expr, item, f"{path}.{field.wire_name}"
            )

        if log.isEnabledFor(logging.DEBUG):
            known = {f.wire_name for f in generated.fields}
            unknown = sorted(k for k in payload if k not in known)
            if unknown:
                log.debug("Ignoring unknown keys %s at %s", unknown, path)

        return generated.record(**values)


def _load(raw: bytes | str | collections.abc.Mapping) -> typing.Any:
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8")
    if isinstance(raw, str):
        return json.loads(raw)
    return raw


def _shape_mismatch(method: str, path: str, expected: str, got: str) -> Err:
    error = ShapeMismatch(method, path, expected, got)
    log.error("Response does not match bindings: %s", error)
    return Err(error)


def decode(
    method: GeneratedMethod, raw: bytes | str | collections.abc.Mapping
) -> APIResult:
    """
    Decodes a raw response envelope for ``method``.

    Returns ``Ok(value)`` on success. Otherwise returns ``Err`` holding an
    ``ApiRejected`` (or a subclass) when the API refused the call, or a
    ``ShapeMismatch`` when the payload does not fit the bindings.
    """

    try:
        envelope = _load(raw)
    except (UnicodeDecodeError, json.JSONDecodeError) as exc:
        return _shape_mismatch(method.name, "envelope", "JSON", str(exc))

    if not isinstance(envelope, collections.abc.Mapping) or not isinstance(
        envelope.get("ok"), bool
    ):
        return _shape_mismatch(
            method.name, "envelope", "envelope", _describe(envelope)
        )

    if not envelope["ok"]:
        return Err(normalize(envelope))

    if "result" not in envelope:
        return _shape_mismatch(method.name, "result", str(method.returns), "nothing")

    try:
        value = Decoder(method.registry).decode(
            method.returns, envelope["result"], "result"
        )
    except _Mismatch as exc:
        return _shape_mismatch(method.name, exc.path, exc.expected, exc.got)

    return Ok(value)


def decode_object(
    bindings: Bindings, type_name: str, payload: typing.Any
) -> typing.Any:
    """
    Decodes a bare object such as an incoming ``Update``.

    Raises :class:`ShapeMismatch` when the payload does not fit.
    """

    generated = bindings.type(type_name)

    try:
        return Decoder(bindings.types).decode(
            Ref(type_name, generated.node), payload, type_name
        )
    except _Mismatch as exc:
        log.error("Object does not match bindings: %s at %s", type_name, exc.path)
        raise ShapeMismatch(type_name, exc.path, exc.expected, exc.got) from None
