import collections.abc
import dataclasses
import os
import pathlib
import typing


class Absent:
    """
    Marker for an optional field the API did not send at all.

    Distinct from ``None``, which stands for a key sent as JSON ``null``.
    There is exactly one instance, :data:`ABSENT`.
    """

    _instance = None

    __slots__ = ()

    def __new__(cls):
        if cls._instance is None:
            cls._instance = super().__new__(cls)
        return cls._instance

    def __bool__(self) -> bool:
        return False

    def __repr__(self) -> str:
        return "ABSENT"

    def __reduce__(self):
        return (Absent, ())


ABSENT = Absent()


class Object:
    """
    Base class of every generated record.

    Subclasses are frozen dataclasses. ``__binding__`` holds the
    documented type name and ``__wire_names__`` maps Python attribute
    names back to wire keys where the two differ.
    """

    __slots__ = ()

    __binding__: typing.ClassVar[str] = ""
    __wire_names__: typing.ClassVar[dict[str, str]] = {}


class InputFile:
    """
    Binary content to upload as a multipart file part.

    ``source`` may be raw bytes, a filesystem path or a binary file
    object.
    """

    def __init__(
        self,
        source: bytes | bytearray | str | os.PathLike | typing.BinaryIO,
        filename: str | None = None,
    ):
        if isinstance(source, (str, os.PathLike)):
            source = pathlib.Path(source)
            filename = filename or source.name
        elif not isinstance(source, (bytes, bytearray)):
            filename = filename or os.path.basename(
                getattr(source, "name", "") or ""
            )

        self.source = source
        self.filename = filename or "file"

    # Reads the whole content; paths are opened lazily
    def read(self) -> bytes:
        if isinstance(self.source, (bytes, bytearray)):
            return bytes(self.source)
        if isinstance(self.source, pathlib.Path):
            return self.source.read_bytes()
        return self.source.read()

    def __repr__(self) -> str:
        return f"InputFile(filename={self.filename!r})"


# True for any value the encoder may turn into an InputFile
def is_binary(value: typing.Any) -> bool:
    return isinstance(value, (InputFile, bytes, bytearray)) or (
        hasattr(value, "read") and not isinstance(value, str)
    )


def to_payload(value: typing.Any) -> typing.Any:
    """
    Converts generated records back into their wire JSON shape.

    ``ABSENT`` fields are dropped, ``None`` stays as an explicit null.
    Leaves that are not records, lists or mappings are returned as is.
    """

    if isinstance(value, Object):
        wire_names = type(value).__wire_names__
        result = {}
        for field in dataclasses.fields(value):
            item = getattr(value, field.name)
            if item is ABSENT:
                continue
            result[wire_names.get(field.name, field.name)] = to_payload(item)
        return result

    if isinstance(value, (list, tuple)):
        return [to_payload(x) for x in value]

    if isinstance(value, collections.abc.Mapping):
        return {
            k: to_payload(v) for k, v in value.items() if v is not ABSENT
        }

    return value
