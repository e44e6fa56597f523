import dataclasses
import typing

from botschema.errors import BotSchemaError


@dataclasses.dataclass(frozen=True)
class Ok:
    value: typing.Any

    @property
    def ok(self) -> bool:
        return True

    def unwrap(self) -> typing.Any:
        return self.value


@dataclasses.dataclass(frozen=True)
class Err:
    error: BotSchemaError

    @property
    def ok(self) -> bool:
        return False

    # Raises the carried error; callers that prefer exceptions use this
    def unwrap(self) -> typing.NoReturn:
        raise self.error


APIResult = Ok | Err
