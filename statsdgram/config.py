"""
statsdgram - client configuration

Copyright (c) 2024 Aiven, Helsinki, Finland. https://aiven.io/
See LICENSE for details
"""
from typing import Any, Mapping, Optional, Sequence, Tuple, Union

from pydantic import (AliasChoices, BaseModel, ConfigDict, Field, ValidationError, field_validator, model_validator)

from statsdgram.errors import InvalidConfigurationError

DEFAULT_HOST = "localhost"
DEFAULT_PORT = 8125
DEFAULT_BUFFER_FLUSH_INTERVAL = 1000  # milliseconds
DEFAULT_SOCKET_REFRESH_INTERVAL = 60000  # milliseconds

TagsType = Union[Sequence[str], Mapping[str, Optional[str]]]


def format_tags(tags: Optional[TagsType]) -> Tuple[str, ...]:
    """Turn a sequence or a mapping of tags into an ordered tuple of wire strings

    Mappings are rendered the way datadog expects them: "key:value", or a
    bare "key" when the value is None.
    """
    if not tags:
        return ()
    if isinstance(tags, Mapping):
        return tuple(key if value is None else "{}:{}".format(key, value) for key, value in tags.items())
    if isinstance(tags, str):
        return (tags, )
    return tuple(str(tag) for tag in tags)


class ClientConfig(BaseModel):
    model_config = ConfigDict(
        # Unknown options are most likely typos, fail loudly instead of ignoring them
        extra="forbid",
        frozen=True,
        validate_default=True,
    )

    host: str = DEFAULT_HOST
    port: int = Field(DEFAULT_PORT, gt=0, lt=65536)
    prefix: str = ""
    suffix: str = ""
    global_tags: Tuple[str, ...] = Field((), validation_alias=AliasChoices("global_tags", "globalTags", "tags"))
    mock: bool = False
    cache_dns: bool = Field(False, validation_alias=AliasChoices("cache_dns", "cacheDns"))
    max_buffer_size: int = Field(0, ge=0, validation_alias=AliasChoices("max_buffer_size", "maxBufferSize"))
    buffer_flush_interval: int = Field(
        DEFAULT_BUFFER_FLUSH_INTERVAL, gt=0, validation_alias=AliasChoices("buffer_flush_interval", "bufferFlushInterval")
    )
    socket_refresh_interval: int = Field(
        DEFAULT_SOCKET_REFRESH_INTERVAL,
        gt=0,
        validation_alias=AliasChoices("socket_refresh_interval", "socketRefreshInterval"),
    )
    globalize: bool = False

    @model_validator(mode="before")
    @classmethod
    def drop_unset_options(cls, data: Any) -> Any:
        # None means "not given", fall back to the defaults
        if isinstance(data, Mapping):
            return {key: value for key, value in data.items() if value is not None}
        return data

    @field_validator("global_tags", mode="before")
    @classmethod
    def normalize_global_tags(cls, value: Any) -> Tuple[str, ...]:
        return format_tags(value)

    @property
    def buffering(self) -> bool:
        return self.max_buffer_size > 0


def load_config(options: Optional[Mapping[str, Any]] = None, **overrides: Any) -> ClientConfig:
    settings = dict(options or {})
    settings.update(overrides)
    try:
        return ClientConfig(**settings)
    except ValidationError as ex:
        raise InvalidConfigurationError("Invalid statsd client configuration: {}".format(ex)) from ex
