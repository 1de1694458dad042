from typing import Annotated

from pydantic import BaseModel, Field, field_validator
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict

LOG_LEVELS = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


class CodecSettings(BaseModel):
    always_transform: Annotated[
        bool,
        Field(
            description=(
                "Base64 encode every body, even when the serialized payload is\n"
                "already clean UTF-8 text. Useful for transports that mangle\n"
                "whitespace or non-ASCII characters."
            ),
            default=False
        )
    ]

    scan: Annotated[
        list[str],
        Field(
            description=(
                "Packages imported at start-up so that the message and stamp\n"
                "types they declare with @register are known to the codec.\n"
                "Payloads naming a type outside the registry are rejected."
            ),
            default_factory=list
        )
    ]


class CourierSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="COURIER_",
        env_nested_delimiter="__",
        extra="ignore"
    )

    codec: Annotated[
        CodecSettings,
        Field(
            description="Envelope codec configuration.",
            default_factory=CodecSettings
        )
    ]

    log_level: Annotated[
        str,
        Field(
            description="Logging verbosity: DEBUG, INFO, WARNING, ERROR or CRITICAL.",
            default="INFO"
        )
    ]

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        level = v.upper()
        if level not in LOG_LEVELS:
            raise ValueError(f"Invalid log level {v!r}, expected one of {', '.join(LOG_LEVELS)}")
        return level

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Init values come from the YAML file: environment variables win.
        return env_settings, init_settings
