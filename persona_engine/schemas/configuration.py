"""Configuration admin schemas."""

from datetime import datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


class ParameterUpsert(BaseModel):
    """POST /parameters request. ``type`` is inferred from the value when omitted."""

    key: str = Field(min_length=1)
    value: Any
    type: Literal["string", "number", "boolean", "json"] | None = None
    reason: str | None = None


class ListUpsert(BaseModel):
    """POST /lists request."""

    key: str = Field(min_length=1)
    values: list[str]
    reason: str | None = None


class MapUpsert(BaseModel):
    """POST /maps request."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    map_key: str = Field(min_length=1)
    lookup_key: str = Field(min_length=1)
    value: str
    reason: str | None = None


class RuleUpsert(BaseModel):
    """POST /rules request - condition tree validated at runtime."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    rule_id: str = Field(min_length=1)
    persona_id: str = Field(min_length=1)
    name: str
    priority: int = 0
    when: dict[str, Any]
    enabled: bool = True
    reason: str | None = None


class ParameterOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    key: str
    value: str
    data_type: str
    last_updated: datetime | None = None


class ListOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    key: str
    values: list[str]
    last_updated: datetime | None = None


class MapOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    map_key: str
    lookup_key: str
    value: str
    last_updated: datetime | None = None


class RuleOut(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    rule_id: str
    persona_id: str
    name: str
    priority: int
    condition: dict[str, Any]
    enabled: bool
    last_updated: datetime | None = None


class ConfigurationDump(BaseModel):
    """GET /configuration response."""

    parameters: list[ParameterOut]
    lists: list[ListOut]
    maps: list[MapOut]
    rules: list[RuleOut]
