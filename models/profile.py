"""
Profile Models.

Role-specific profile data schemas, the persisted profile record and the
request bodies accepted by the profile endpoints.

Wire format is camelCase (startupName, fundingAsk, ...); attributes are
snake_case.
"""

import json
from dataclasses import dataclass
from datetime import datetime
from enum import Enum
from typing import Annotated, Any, Literal

from pydantic import (
    AfterValidator,
    AnyHttpUrl,
    BaseModel,
    ConfigDict,
    Field,
    StringConstraints,
    TypeAdapter,
    ValidationError,
    model_validator,
)
from pydantic.alias_generators import to_camel

MIN_AMOUNT = 1000
PITCH_MIN_CHARS = 50
PITCH_MAX_CHARS = 500


class Role(str, Enum):
    """Profile role within an experience."""
    FOUNDER = "FOUNDER"
    INVESTOR = "INVESTOR"


# =============================================================================
# FIELD TYPES
# =============================================================================

_http_url = TypeAdapter(AnyHttpUrl)


def _check_url(value: str) -> str:
    try:
        _http_url.validate_python(value)
    except ValidationError:
        raise ValueError("Please enter a valid URL") from None
    # Keep the caller's spelling; AnyHttpUrl normalizes trailing slashes
    return value


def _dedupe(values: list[str]) -> list[str]:
    return list(dict.fromkeys(values))


UrlString = Annotated[str, AfterValidator(_check_url)]
PitchText = Annotated[
    str, StringConstraints(min_length=PITCH_MIN_CHARS, max_length=PITCH_MAX_CHARS)
]
Tag = Annotated[str, StringConstraints(min_length=1)]
TagSet = Annotated[list[Tag], Field(min_length=1), AfterValidator(_dedupe)]
Stage = Literal["idea", "mvp", "pmf"]


class _CamelModel(BaseModel):
    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        extra="ignore",
    )


class AmountRange(_CamelModel):
    """A {min, max} money range; both ends at least 1000."""
    min: int = Field(ge=MIN_AMOUNT)
    max: int = Field(ge=MIN_AMOUNT)

    @model_validator(mode="after")
    def _check_order(self) -> "AmountRange":
        if self.max < self.min:
            raise ValueError("max must be greater than or equal to min")
        return self


# =============================================================================
# ROLE DATA (complete + draft variants)
# =============================================================================


class FounderData(_CamelModel):
    """Complete founder profile."""
    startup_name: Annotated[str, StringConstraints(min_length=2)]
    industry: Annotated[str, StringConstraints(min_length=1)]
    stage: Stage
    funding_ask: AmountRange
    brief_pitch: PitchText
    website: UrlString
    location: Annotated[str, StringConstraints(min_length=2)]
    team_size: int | None = Field(default=None, ge=1)
    traction_metrics: str | None = None
    pitch_deck_url: UrlString | None = None


class FounderDraft(_CamelModel):
    """Founder profile in progress: any subset of fields, each still constrained."""
    startup_name: Annotated[str, StringConstraints(min_length=2)] | None = None
    industry: Annotated[str, StringConstraints(min_length=1)] | None = None
    stage: Stage | None = None
    funding_ask: AmountRange | None = None
    brief_pitch: PitchText | None = None
    website: UrlString | None = None
    location: Annotated[str, StringConstraints(min_length=2)] | None = None
    team_size: int | None = Field(default=None, ge=1)
    traction_metrics: str | None = None
    pitch_deck_url: UrlString | None = None


class InvestorData(_CamelModel):
    """Complete investor profile."""
    sectors: TagSet
    stages: TagSet
    geography: TagSet
    check_size: AmountRange
    intro_note: PitchText
    portfolio_links: list[str] | None = None
    theses: str | None = None


class InvestorDraft(_CamelModel):
    """Investor profile in progress."""
    sectors: TagSet | None = None
    stages: TagSet | None = None
    geography: TagSet | None = None
    check_size: AmountRange | None = None
    intro_note: PitchText | None = None
    portfolio_links: list[str] | None = None
    theses: str | None = None


@dataclass(frozen=True)
class RoleSchema:
    """Strict and draft schemas for one role."""
    complete: type[_CamelModel]
    draft: type[_CamelModel]

    def validate(self, data: dict[str, Any], is_complete: bool) -> dict[str, Any]:
        """
        Validate the whole data object and return its normalized wire form.

        Raises:
            pydantic.ValidationError: if the data does not satisfy the schema
        """
        model = self.complete if is_complete else self.draft
        return model.model_validate(data).model_dump(by_alias=True, exclude_none=True)


ROLE_SCHEMAS: dict[Role, RoleSchema] = {
    Role.FOUNDER: RoleSchema(complete=FounderData, draft=FounderDraft),
    Role.INVESTOR: RoleSchema(complete=InvestorData, draft=InvestorDraft),
}


def format_validation_errors(exc: ValidationError) -> list[dict[str, str]]:
    """Flatten pydantic errors into {location, message, type} entries."""
    return [
        {
            "location": ".".join(str(part) for part in error["loc"]),
            "message": error["msg"],
            "type": error["type"],
        }
        for error in exc.errors()
    ]


# =============================================================================
# PERSISTED RECORD
# =============================================================================


class ProfileRecord(_CamelModel):
    """A stored profile, unique per (user_id, experience_id)."""
    id: str
    user_id: str
    experience_id: str
    role: Role
    data: dict[str, Any] = Field(default_factory=dict)
    is_complete: bool = False
    created_at: datetime
    updated_at: datetime
    completed_at: datetime | None = None

    @classmethod
    def from_row(cls, row: dict[str, Any]) -> "ProfileRecord":
        """Build from a database row (JSON text or dict data, int or bool flags)."""
        values = dict(row)
        if isinstance(values.get("data"), str):
            values["data"] = json.loads(values["data"])
        values["is_complete"] = bool(values.get("is_complete"))
        return cls.model_validate(values)

    @property
    def was_ever_complete(self) -> bool:
        return self.completed_at is not None

    def to_response(self) -> dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json", exclude={"completed_at"})


@dataclass(frozen=True)
class ProfileStatus:
    """Answer to 'does the caller have a profile here?'."""
    has_profile: bool
    is_complete: bool
    role: Role | None

    def to_dict(self) -> dict[str, Any]:
        return {
            "hasProfile": self.has_profile,
            "isComplete": self.is_complete,
            "role": self.role.value if self.role else None,
        }


# =============================================================================
# INPUTS
# =============================================================================


class ProfileInput(_CamelModel):
    """Upsert input for the profile service."""
    user_id: str = Field(min_length=1)
    role: Role
    data: dict[str, Any]
    is_complete: bool = False


class ProfileCreateRequest(ProfileInput):
    """POST /api/profile/create body."""
    experience_id: str | None = None


class ProfilePatch(_CamelModel):
    """
    Partial update input.

    data keys are merged onto the stored data; a null value removes the key.
    """
    data: dict[str, Any] | None = None
    is_complete: bool | None = None


class ProfileUpdateRequest(ProfilePatch):
    """PATCH /api/profile/{userId} body."""
    experience_id: str | None = None
