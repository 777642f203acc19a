from typing import Optional, Tuple, Type

from pydantic import Field
from pydantic_settings import (
    BaseSettings,
    JsonConfigSettingsSource,
    PydanticBaseSettingsSource,
    SettingsConfigDict,
    TomlConfigSettingsSource,
)


class CabinetSettings(BaseSettings):
    """Runtime settings for a resolver context."""

    model_config = SettingsConfigDict(env_prefix="CABINET_")

    log_level: str = Field(
        "WARNING",
        description='Level of the "cabinet" logger (DEBUG, INFO, WARNING, ...).',
    )
    ts_include_js: bool = Field(
        False,
        description=(
            "If True, the TypeScript engine is also tried for .js and .jsx files, "
            "ahead of the module-kind aware JavaScript lookup."
        ),
    )
    disable_ts_cache: bool = Field(
        False,
        description=(
            "Rebuild the TypeScript compiler host and resolution cache on every lookup. "
            "Only meant for tests."
        ),
    )
    commonjs_extensions: tuple[str, ...] = Field(
        default=(".js", ".jsx"),
        description="Extensions probed by the Node-style resolver.",
    )
    webpack_extensions: tuple[str, ...] = Field(
        default=(".js", ".json", ".node"),
        description="Extensions probed by the webpack resolver when the config has none.",
    )


def load_settings(
    env_prefix: Optional[str] = None,
    env_file: Optional[str] = None,
    toml_file: Optional[str] = None,
    json_file: Optional[str] = None,
    **kwargs,
) -> CabinetSettings:
    """Build :class:`CabinetSettings` from the environment and optional files."""
    config_dict = SettingsConfigDict(
        env_prefix = env_prefix if env_prefix is not None else "CABINET_",
        env_file = env_file,
        toml_file = toml_file,
        json_file = json_file,
    )

    class Settings(CabinetSettings):
        model_config = config_dict

        @classmethod
        def settings_customise_sources(
            cls,
            settings_cls: Type[BaseSettings],
            init_settings: PydanticBaseSettingsSource,
            env_settings: PydanticBaseSettingsSource,
            dotenv_settings: PydanticBaseSettingsSource,
            file_secret_settings: PydanticBaseSettingsSource,
        ) -> Tuple[PydanticBaseSettingsSource, ...]:
            # files rank below the environment
            sources: Tuple[PydanticBaseSettingsSource, ...] = (init_settings, env_settings, dotenv_settings)
            if toml_file:
                sources += (TomlConfigSettingsSource(settings_cls),)
            if json_file:
                sources += (JsonConfigSettingsSource(settings_cls),)
            return sources + (file_secret_settings,)

    return Settings(**kwargs)
