"""Pydantic models describing Bitrix24 REST and placement payloads."""

from __future__ import annotations

import json
from typing import Any

from pydantic import BaseModel, ConfigDict, Field, field_validator


def _blank_to_none(value: object) -> object:
    if isinstance(value, str):
        stripped = value.strip()
        return stripped or None
    return value


class Bitrix24BaseModel(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class RestResponse(Bitrix24BaseModel):
    result: Any = None
    error: str | None = None
    error_description: str | None = None
    total: int | None = None
    next: int | None = None

    @property
    def is_error(self) -> bool:
        return self.error is not None


class PlacementRequest(Bitrix24BaseModel):
    """Form fields Bitrix24 POSTs to an application's placement handler."""

    placement: str = Field(default="", alias="PLACEMENT")
    placement_options: dict[str, Any] = Field(default_factory=dict, alias="PLACEMENT_OPTIONS")
    auth_id: str | None = Field(default=None, alias="AUTH_ID")
    auth_expires: int | None = Field(default=None, alias="AUTH_EXPIRES")
    refresh_id: str | None = Field(default=None, alias="REFRESH_ID")
    member_id: str | None = None
    domain: str | None = Field(default=None, alias="DOMAIN")
    protocol: int | None = Field(default=None, alias="PROTOCOL")
    lang: str | None = Field(default=None, alias="LANG")

    _normalize_blanks = field_validator(
        "auth_id", "refresh_id", "member_id", "domain", "lang", mode="before"
    )(_blank_to_none)

    @field_validator("placement_options", mode="before")
    @classmethod
    def _parse_options(cls, value: object) -> object:
        if value is None or value == "":
            return {}
        if isinstance(value, str):
            try:
                parsed = json.loads(value)
            except json.JSONDecodeError as exc:
                raise ValueError(f"PLACEMENT_OPTIONS is not valid JSON: {exc}") from exc
            return parsed if isinstance(parsed, dict) else {}
        return value

    @field_validator("auth_expires", "protocol", mode="before")
    @classmethod
    def _parse_int(cls, value: object) -> object:
        if value is None or value == "":
            return None
        return value

    @property
    def scheme(self) -> str:
        # PROTOCOL is 1 for https portals and 0 for plain http ones.
        return "http" if self.protocol == 0 else "https"
