"""Engine version / capability descriptor.

The request format differs between engine generations: 1.x/2.x expect the
`filtered` query and the `missing` filter, 5.x+ use a `bool` query with a
`filter` clause. Instead of probing the server, callers describe it once
with an `EngineProfile` and hand it to the query builder and to the search
client.
"""

from typing import Literal

from pydantic import BaseModel, ConfigDict, field_validator

from .constants import Dialect
from .exceptions import InvalidConfigError
from .settings import settings as api_settings


class EngineProfile(BaseModel):
    model_config = ConfigDict(frozen=True)

    version: str = "8.0.0"

    @field_validator("version")
    @classmethod
    def check_version(cls, value: str) -> str:
        head = value.strip().split(".", 1)[0]
        if not head.isdigit():
            raise InvalidConfigError("Invalid engine version", config_key="ELASTICSEARCH_VERSION", value=value)
        return value.strip()

    @classmethod
    def from_settings(cls) -> "EngineProfile":
        return cls(version=api_settings.ELASTICSEARCH_VERSION)

    @property
    def major(self) -> int:
        return int(self.version.split(".", 1)[0])

    @property
    def dialect(self) -> Literal["bool", "filtered"]:
        return Dialect.BOOL if self.major >= 5 else Dialect.FILTERED

    @property
    def source_include_key(self) -> str:
        return "includes" if self.major >= 5 else "include"
