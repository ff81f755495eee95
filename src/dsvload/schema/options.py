from __future__ import annotations

from typing import Mapping

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from dsvload.errors import InvalidFieldValue


class DsvOptions(BaseModel):
    # Typed view of the compiled dsv_config section
    model_config = ConfigDict(frozen=True)

    version: str
    n_columns: int = Field(..., ge=1)
    delimiter: str = Field(default=",", min_length=1)
    header_exist: bool = False

    @classmethod
    def from_config(cls, config: Mapping[str, str]) -> "DsvOptions":
        try:
            return cls(**dict(config))
        except ValidationError as e:
            err = e.errors()[0]
            field = str(err["loc"][0]) if err["loc"] else ""
            path = field if field in ("", "version") else f"dsv_config.{field}"
            raise InvalidFieldValue(err["msg"], path, config.get(field)) from e
