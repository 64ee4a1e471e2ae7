# sportlink/schemas/user.py
from typing import Any, Literal

from pydantic import ConfigDict, EmailStr, Field, field_validator

from sportlink.schemas.base import CamelModel

# Closed set chosen at registration; never changed afterwards.
Role = Literal["athlete", "parent", "coach", "team", "league", "merchant"]

ROLES: tuple[str, ...] = ("athlete", "parent", "coach", "team", "league", "merchant")


class SessionUser(CamelModel):
    """
    Identity extracted from a verified bearer token.

    Passed explicitly into services instead of being read from ambient
    request state.
    """

    uid: str
    email: str | None = None
    name: str | None = None
    role: str | None = None


class LoginRequest(CamelModel):
    """Token exchange payload (the client signs in with Supabase directly)."""

    model_config = ConfigDict(extra="forbid")

    id_token: str


class RegisterRequest(CamelModel):
    """
    Registration payload.

    Creates the identity (Supabase Auth) and the user document, which is
    written to `users` and to the role collection.

    `profile` is the role sub-profile (coachProfile, teamProfile, ...)
    stored as sent; it is normalized on read.
    """

    model_config = ConfigDict(extra="forbid")

    email: EmailStr
    password: str = Field(min_length=6)
    first_name: str = Field(max_length=100)
    last_name: str = Field(max_length=100)
    role: Role
    profile: dict[str, Any] = Field(default_factory=dict)

    @field_validator("first_name", "last_name")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v


class ProfileUpdate(CamelModel):
    """
    Partial profile edit for the authenticated user.

    Role cannot be changed. `profile` keys are merged into the existing
    role sub-profile.
    """

    model_config = ConfigDict(extra="forbid")

    first_name: str | None = Field(default=None, max_length=100)
    last_name: str | None = Field(default=None, max_length=100)
    name: str | None = Field(default=None, max_length=200)
    profile: dict[str, Any] | None = None

    @field_validator("first_name", "last_name", "name")
    @classmethod
    def normalize_name(cls, v: str | None) -> str | None:
        if v is None:
            return v
        v = v.strip()
        if not v:
            raise ValueError("name cannot be empty")
        return v


class ProfileRead(CamelModel):
    """
    Normalized view of a user record and its role sub-profile.

    List-like fields are always lists of strings regardless of how they
    were stored. Remaining sub-profile fields are passed through in
    `details`.
    """

    id: str
    role: str | None = None
    display_name: str
    email: str | None = None
    first_name: str | None = None
    last_name: str | None = None
    location: str | None = None
    bio: str | None = None
    sports: list[str] = Field(default_factory=list)
    skills: list[str] = Field(default_factory=list)
    skills_by_sport: dict[str, list[str]] = Field(default_factory=dict)
    age_groups: list[str] = Field(default_factory=list)
    certifications: list[str] = Field(default_factory=list)
    experience: Any = None
    details: dict[str, Any] = Field(default_factory=dict)
