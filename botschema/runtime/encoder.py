"""
Request encoding.

Validates caller arguments against a method descriptor and turns them
into a transport-agnostic request: a JSON body, or multipart parts when
the method may carry attachments.
"""

import collections.abc
import dataclasses
import json
import logging
import typing

from botschema.compiler.generator import GeneratedMethod
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
from botschema.errors import MissingRequired, TypeMismatch, UnexpectedParameter
from botschema.runtime.values import (
    ABSENT,
    InputFile,
    Object,
    is_binary,
    to_payload,
)

log = logging.getLogger(__name__)

JSON_CONTENT_TYPE = "application/json"
MULTIPART_CONTENT_TYPE = "multipart/form-data"

ATTACH_PREFIX = "attach://"


@dataclasses.dataclass(frozen=True)
class Part:
    """
    One multipart field. ``value`` is text for form fields and an
    :class:`InputFile` for file parts.
    """

    name: str
    value: str | InputFile

    @property
    def is_file(self) -> bool:
        return isinstance(self.value, InputFile)


@dataclasses.dataclass(frozen=True)
class EncodedRequest:
    method: str
    body: dict[str, typing.Any] | None = None
    parts: tuple[Part, ...] = ()

    @property
    def multipart(self) -> bool:
        return self.body is None

    @property
    def content_type(self) -> str:
        return MULTIPART_CONTENT_TYPE if self.multipart else JSON_CONTENT_TYPE

    def fields(self) -> dict[str, str]:
        return {p.name: p.value for p in self.parts if not p.is_file}

    def files(self) -> dict[str, InputFile]:
        return {p.name: p.value for p in self.parts if p.is_file}


class _Mismatch(Exception):
    def __init__(self, path: str, expected: str, got: str):
        self.path = path
        self.expected = expected
        self.got = got
        super().__init__(path, expected, got)


def _type_name(value: typing.Any) -> str:
    if isinstance(value, Object):
        return type(value).__binding__
    return type(value).__name__


def _check_primitive(kind: str, value: typing.Any) -> bool:
    if kind == STRING:
        return isinstance(value, str)
    if kind == INTEGER:
        return isinstance(value, int) and not isinstance(value, bool)
    if kind == FLOAT:
        return isinstance(value, (int, float)) and not isinstance(value, bool)
    if kind == BOOLEAN:
        return isinstance(value, bool)
    if kind == TRUE:
        return value is True
    if kind == INPUT_FILE:
        return is_binary(value)
    return False


class _ValueEncoder:
    """
    Validates one call's arguments and converts them to their wire form.

    Files found below the top level are collected as extra attachments and
    replaced with ``attach://`` references.
    """

    def __init__(self):
        self.attachments: list[Part] = []

    def convert(self, expr: TypeExpr, value: typing.Any, path: str, top: bool):
        if isinstance(expr, Primitive):
            if not _check_primitive(expr.kind, value):
                raise _Mismatch(path, str(expr), _type_name(value))
            if expr.kind == INPUT_FILE:
                return self._file(value, top)
            return value

        if isinstance(expr, ArrayOf):
            if not isinstance(value, (list, tuple)):
                raise _Mismatch(path, str(expr), _type_name(value))
            return [
                self.convert(expr.item, item, f"{path}[{i}]", False)
                for i, item in enumerate(value)
            ]

        if isinstance(expr, UnionOf):
            return self._first_match(expr.options, value, path, top, str(expr))

        return self._record(expr, value, path)

    def _file(self, value: typing.Any, top: bool):
        if not isinstance(value, InputFile):
            value = InputFile(value)
        if top:
            return value

        name = f"attach_{len(self.attachments) + 1}"
        self.attachments.append(Part(name, value))
        return ATTACH_PREFIX + name

    # Tries candidates in declared order, dropping attachments of failed ones
    def _first_match(self, options, value, path, top, expected):
        for option in options:
            mark = len(self.attachments)
            try:
                return self.convert(option, value, path, top)
            except _Mismatch:
                del self.attachments[mark:]

        raise _Mismatch(path, expected, _type_name(value))

    def _record(self, expr: Ref, value: typing.Any, path: str):
        node = expr.node

        if node.variants:
            return self._first_match(node.variants, value, path, False, expr.name)

        if isinstance(value, Object):
            if type(value).__binding__ != node.name:
                raise _Mismatch(path, node.name, _type_name(value))
            value = to_payload(value)

        if not isinstance(value, collections.abc.Mapping):
            raise _Mismatch(path, node.name, _type_name(value))

        known = {f.name for f in node.fields}
        for key in value:
            if key not in known:
                raise _Mismatch(f"{path}.{key}", node.name, "unknown key")

        result = {}
        for field in node.fields:
            item = value.get(field.name, ABSENT)
            if item is ABSENT or item is None:
                if field.required:
                    raise _Mismatch(
                        f"{path}.{field.name}", str(field.expr), "nothing"
                    )
                continue
            result[field.name] = self.convert(
                field.expr, item, f"{path}.{field.name}", False
            )

        return result


# Renders a converted value as a multipart text field
def form_value(value: typing.Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    return json.dumps(value, ensure_ascii=False, separators=(",", ":"))


def _collect(method: GeneratedMethod, arguments: collections.abc.Mapping) -> dict:
    by_name = {}
    for param in method.params:
        by_name[param.name] = param
        by_name[param.wire_name] = param

    for key in arguments:
        if key not in by_name:
            raise UnexpectedParameter(key, method.name)

    supplied = {}
    for param in method.params:
        value = arguments.get(param.name, ABSENT)
        if value is ABSENT:
            value = arguments.get(param.wire_name, ABSENT)

        if value is ABSENT or value is None:
            if param.required:
                raise MissingRequired(param.wire_name)
            continue

        supplied[param] = value

    return supplied


def encode(
    method: GeneratedMethod, arguments: collections.abc.Mapping[str, typing.Any]
) -> EncodedRequest:
    """
    Encodes a call of ``method``.

    Raises :class:`MissingRequired`, :class:`TypeMismatch` or
    :class:`UnexpectedParameter`; values are never coerced. Methods that
    may carry attachments are always encoded as multipart, even when the
    caller passed no file.
    """

    supplied = _collect(method, arguments)
    encoder = _ValueEncoder()

    values = {}
    for param, value in supplied.items():
        try:
            values[param.wire_name] = encoder.convert(
                param.expr, value, param.wire_name, top=True
            )
        except _Mismatch as exc:
            raise TypeMismatch(
                param.wire_name, exc.expected, exc.got, path=exc.path
            ) from None

    if not method.has_attachment:
        log.debug("Encoded %s as JSON with %d fields", method.name, len(values))
        return EncodedRequest(method=method.name, body=values)

    parts = [
        Part(name, value if isinstance(value, InputFile) else form_value(value))
        for name, value in values.items()
    ]
    parts.extend(encoder.attachments)

    log.debug(
        "Encoded %s as multipart with %d parts (%d files)",
        method.name,
        len(parts),
        sum(p.is_file for p in parts),
    )

    return EncodedRequest(method=method.name, parts=tuple(parts))
