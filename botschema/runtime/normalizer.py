"""
Error normalization.

Maps the API's failure envelope and transport exceptions onto the closed
error taxonomy in :mod:`botschema.errors`. A pure classification: nothing
is stored and nothing is retried here.
"""

import collections.abc

from botschema.errors import (
    APIError,
    ApiRejected,
    ChatMigrated,
    RateLimited,
    ShapeMismatch,
    TransportFailure,
)


def normalize(source: collections.abc.Mapping | BaseException) -> APIError:
    if isinstance(source, APIError):
        return source

    if isinstance(source, BaseException):
        return TransportFailure(source)

    if not isinstance(source, collections.abc.Mapping):
        return ShapeMismatch(
            "?", "envelope", "JSON object", type(source).__name__
        )

    if source.get("ok") is True:
        raise ValueError("envelope reports success, there is no error")

    code = source.get("error_code")
    description = source.get("description") or ""
    parameters = source.get("parameters")
    if not isinstance(parameters, collections.abc.Mapping):
        parameters = {}

    retry_after = _int_parameter(parameters, "retry_after")
    if retry_after is not None:
        return RateLimited(code, description, retry_after, parameters)

    migrate_to_chat_id = _int_parameter(parameters, "migrate_to_chat_id")
    if migrate_to_chat_id is not None:
        return ChatMigrated(code, description, migrate_to_chat_id, parameters)

    return ApiRejected(code, description, parameters)


def _int_parameter(
    parameters: collections.abc.Mapping, name: str
) -> int | None:
    value = parameters.get(name)
    if isinstance(value, int) and not isinstance(value, bool):
        return value
    return None
