"""Assignment request/response schemas."""

from datetime import datetime
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic import ValidationError as PydanticValidationError
from pydantic.alias_generators import to_camel

from persona_engine.errors import ValidationError


class ProfileInput(BaseModel):
    """Profile attributes fed to the evaluator - extra attributes allowed for rule paths."""

    model_config = ConfigDict(extra="allow")

    nationality: str | None = None
    age: int | float | None = None
    income: int | float | None = None
    gender: str | None = None
    consent: bool = False


class AssignPersonasRequest(BaseModel):
    """POST /profiles/{profileId}/assign-personas request.

    Attributes are normally nested under ``data``; attributes sent at the top
    level are accepted too, with ``data`` taking precedence.
    """

    model_config = ConfigDict(extra="allow")

    data: dict[str, Any] = Field(default_factory=dict)
    consent: bool | None = None

    def to_profile(self) -> ProfileInput:
        attrs = {**(self.model_extra or {}), **self.data}
        if self.consent is not None:
            attrs["consent"] = self.consent
        try:
            return ProfileInput.model_validate(attrs)
        except PydanticValidationError as exc:
            first = exc.errors()[0]
            field = ".".join(str(p) for p in first.get("loc", ()))
            raise ValidationError(f"{field}: {first.get('msg')}", field=field) from exc


class AssignPersonasResponse(BaseModel):
    """POST /profiles/{profileId}/assign-personas response."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    success: bool = True
    profile_id: str
    assigned_personas: list[str]
    timestamp: datetime


class SimulationResponse(BaseModel):
    """POST /simulate response - nothing is persisted."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    assigned_personas: list[str]
    config_fingerprint: str


class ManualAssignRequest(BaseModel):
    """POST /profiles/{profileId}/personas request."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    persona_id: str = Field(min_length=1)
    reason: str | None = None


class ObjectionRequest(BaseModel):
    """DELETE /profiles/{profileId}/personas body (optional)."""

    reason: str | None = None


class AssignmentOut(BaseModel):
    """One persona currently assigned to a profile."""

    model_config = ConfigDict(from_attributes=True)

    persona_id: str
    assigned_at: datetime
    method: str
    score: float
