from typing import Annotated

from pydantic import Field, PositiveFloat
from pydantic_settings import (
    BaseSettings,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    YamlConfigSettingsSource,
)

from pineipc.bootstrap.config.loader import get_configfile
from pineipc.core.memory.pool import DEFAULT_MAX_COMMANDS, MAX_BATCH_LIMIT
from pineipc.core.models.config import (
    DEFAULT_HOST,
    DEFAULT_PORT,
    DEFAULT_SOCKET_PATH,
    ClientConfig,
    TransportKind,
)


class PineSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="PINE_",
        extra="ignore"
    )

    transport: Annotated[
        TransportKind,
        Field(
            description=(
                "Socket family used to reach the relay endpoint.\n"
                "'auto' selects a Unix domain socket where the platform supports one\n"
                "and loopback TCP otherwise (Windows)."
            ),
            default=TransportKind.AUTO
        )
    ]

    socket_path: Annotated[
        str,
        Field(
            description="Path of the relay's Unix domain socket.",
            default=DEFAULT_SOCKET_PATH
        )
    ]

    host: Annotated[
        str,
        Field(
            description="Host of the relay's TCP endpoint.",
            default=DEFAULT_HOST
        )
    ]

    port: Annotated[
        int,
        Field(
            description="Port of the relay's TCP endpoint.",
            default=DEFAULT_PORT,
            gt=0,
            le=65535
        )
    ]

    timeout: Annotated[
        PositiveFloat | None,
        Field(
            description=(
                "Socket timeout in seconds applied to connect, write and read.\n"
                "Leave unset to block indefinitely."
            ),
            default=None
        )
    ]

    max_batch_commands: Annotated[
        int,
        Field(
            description=(
                "Maximum number of commands in one batch.\n"
                "The scratch buffers are preallocated for this many worst-case commands.\n"
                "The MultiCommand count field is 16 bits, hence the upper bound."
            ),
            default=DEFAULT_MAX_COMMANDS,
            gt=0,
            le=MAX_BATCH_LIMIT
        )
    ]

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        sources: tuple[PydanticBaseSettingsSource, ...] = (init_settings, env_settings)

        configfile = get_configfile()
        if configfile is not None:
            sources += (YamlConfigSettingsSource(settings_cls, yaml_file=configfile),)

        return sources

    def to_client_config(self) -> ClientConfig:
        return ClientConfig(
            transport=self.transport,
            socket_path=self.socket_path,
            host=self.host,
            port=self.port,
            timeout=self.timeout,
            max_batch_commands=self.max_batch_commands,
        )
