from botschema.compiler.generator import (
    Bindings,
    GeneratedMethod,
    GeneratedType,
    build_bindings,
    generate,
)
from botschema.compiler.model import SchemaModel, load_schema
from botschema.compiler.resolver import resolve
from botschema.errors import (
    APIError,
    ApiRejected,
    BotSchemaError,
    ChatMigrated,
    DecodeError,
    EncodeError,
    MissingRequired,
    RateLimited,
    ResolutionError,
    ShapeMismatch,
    TransportFailure,
    TypeMismatch,
    UnexpectedParameter,
)
from botschema.runtime.client import Client
from botschema.runtime.decoder import decode, decode_object
from botschema.runtime.encoder import EncodedRequest, Part, encode
from botschema.runtime.normalizer import normalize
from botschema.runtime.result import APIResult, Err, Ok
from botschema.runtime.values import ABSENT, Absent, InputFile, Object, to_payload

__all__ = [
    "ABSENT",
    "APIError",
    "APIResult",
    "Absent",
    "ApiRejected",
    "Bindings",
    "BotSchemaError",
    "ChatMigrated",
    "Client",
    "DecodeError",
    "EncodeError",
    "EncodedRequest",
    "Err",
    "GeneratedMethod",
    "GeneratedType",
    "InputFile",
    "MissingRequired",
    "Object",
    "Ok",
    "Part",
    "RateLimited",
    "ResolutionError",
    "SchemaModel",
    "ShapeMismatch",
    "TransportFailure",
    "TypeMismatch",
    "UnexpectedParameter",
    "build_bindings",
    "decode",
    "decode_object",
    "encode",
    "generate",
    "load_schema",
    "normalize",
    "resolve",
    "to_payload",
]
