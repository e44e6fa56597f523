import logging
import pathlib

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

LOG_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


class Settings(BaseSettings):
    """
    Settings of the code generator, read from ``BOTSCHEMA_*`` variables
    or a local ``.env`` file.
    """

    model_config = SettingsConfigDict(
        env_prefix="BOTSCHEMA_",
        extra="ignore",
        case_sensitive=False,
        env_file=".env",
        env_file_encoding="utf-8",
    )

    schema_path: pathlib.Path = Field(
        default=pathlib.Path("telegram-bot-api-spec") / "api.min.json",
        description="Schema document in the telegram-bot-api-spec format.",
    )
    output_dir: pathlib.Path = Field(
        default=pathlib.Path("botapi"),
        description="Directory the generated package is written to.",
    )
    package: str = Field(
        default="botapi",
        min_length=1,
        description="Import name of the generated package.",
    )
    line_length: int = Field(
        default=79,
        ge=40,
        description="Line length black formats generated code with.",
    )
    log_level: str = Field(
        default="INFO",
        description="Logging level of the command line entry point.",
    )


def configure_logging(settings: Settings) -> None:
    logging.basicConfig(level=settings.log_level.upper(), format=LOG_FORMAT)
