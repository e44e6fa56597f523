class BotSchemaError(Exception):
    """
    Base class for every error raised or returned by botschema.
    """


class ResolutionError(BotSchemaError):
    """
    The schema references names that do not exist.

    Raised once, at build time, listing every unresolved reference so a
    broken schema can be fixed in a single pass.
    """

    def __init__(self, problems: list[str]):
        self.problems = list(problems)
        super().__init__(
            f"{len(self.problems)} unresolved reference(s): "
            + "; ".join(self.problems)
        )


class EncodeError(BotSchemaError):
    """
    Caller-supplied arguments do not fit the method signature.
    """

    def __init__(self, param: str, message: str):
        self.param = param
        super().__init__(message)


class MissingRequired(EncodeError):
    def __init__(self, param: str):
        super().__init__(param, f"missing required parameter {param!r}")


class TypeMismatch(EncodeError):
    def __init__(
        self, param: str, expected: str, got: str, path: str | None = None
    ):
        self.expected = expected
        self.got = got
        self.path = path or param
        super().__init__(
            param, f"{self.path}: expected {expected}, got {got}"
        )


class UnexpectedParameter(EncodeError):
    def __init__(self, param: str, method: str):
        self.method = method
        super().__init__(param, f"{method} has no parameter {param!r}")


class APIError(BotSchemaError):
    """
    Call-time failure, normally carried inside an ``Err`` result.

    ``retryable`` tells the caller whether repeating the very same call
    can succeed. The library itself never retries.
    """

    retryable = False


class ApiRejected(APIError):
    """
    The remote API answered with ``"ok": false``.
    """

    def __init__(
        self,
        code: int | None,
        description: str,
        parameters: dict | None = None,
    ):
        self.code = code
        self.description = description
        self.parameters = dict(parameters or {})
        super().__init__(f"[{code}] {description}")


class RateLimited(ApiRejected):
    retryable = True

    def __init__(
        self,
        code: int | None,
        description: str,
        retry_after: int,
        parameters: dict | None = None,
    ):
        self.retry_after = retry_after
        super().__init__(code, description, parameters)


class ChatMigrated(ApiRejected):
    """
    The group was upgraded to a supergroup; repeat the call against
    ``migrate_to_chat_id`` instead.
    """

    def __init__(
        self,
        code: int | None,
        description: str,
        migrate_to_chat_id: int,
        parameters: dict | None = None,
    ):
        self.migrate_to_chat_id = migrate_to_chat_id
        super().__init__(code, description, parameters)


class TransportFailure(APIError):
    retryable = True

    def __init__(self, cause: BaseException):
        self.cause = cause
        super().__init__(f"transport failed: {cause!r}")


class DecodeError(APIError):
    """
    The response could not be decoded into the declared return type.
    """


class ShapeMismatch(DecodeError):
    """
    The payload matches none of the declared shapes.

    Repeating the call will not help: the compiled bindings disagree
    with the live API.
    """

    def __init__(self, method: str, path: str, expected: str, got: str):
        self.method = method
        self.path = path
        self.expected = expected
        self.got = got
        super().__init__(f"{method}: {path}: expected {expected}, got {got}")
