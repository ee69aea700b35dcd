from pydantic import Field, PositiveInt
from pydantic_settings import BaseSettings, SettingsConfigDict


class BodyConfig(BaseSettings):
    """
    Configuration for request body encoding
    """

    STRICT_BODY: bool = Field(
        description="Raise SerializationError from body setters instead of leaving the body unset",
        default=False,
    )


class LoggingConfig(BaseSettings):
    """
    Configuration for the ``reqbuilder`` logger, applied by ``init_logging``
    """

    LOG_LEVEL: str = Field(
        description="Level of the reqbuilder logger",
        default="INFO",
    )

    LOG_FORMAT: str = Field(
        description="Format of records written by the reqbuilder handlers, may use %(trace_id)s",
        default="%(asctime)s %(levelname)s %(name)s [%(trace_id)s] %(message)s",
    )

    LOG_DATEFORMAT: str | None = Field(
        description="strftime format for %(asctime)s, None keeps the logging default",
        default=None,
    )

    LOG_FILE: str | None = Field(
        description="Also write reqbuilder records to this file, rotated by size",
        default=None,
    )

    LOG_FILE_MAX_SIZE: PositiveInt = Field(
        description="Rotate LOG_FILE after this many megabytes",
        default=10,
    )

    LOG_FILE_BACKUP_COUNT: PositiveInt = Field(
        description="Number of rotated LOG_FILE copies to keep",
        default=3,
    )

    LOG_PROPAGATE: bool = Field(
        description="Pass reqbuilder records on to the application's root handlers as well",
        default=False,
    )


class BuilderConfig(BodyConfig, LoggingConfig):
    model_config = SettingsConfigDict(
        env_prefix="REQBUILDER_",
        # read from dotenv format config file
        env_file=".env",
        env_file_encoding="utf-8",
        # ignore extra attributes
        extra="ignore",
    )


builder_config: BuilderConfig = BuilderConfig()

__all__ = ["BuilderConfig", "builder_config"]
