# sportlink/services/profile_resolver.py
"""
Display-name resolution and profile normalization.

User records are written by several client code paths and the same
logical field can arrive as a comma-separated string, a list, a map or
null. Everything here is pure: no I/O, no exceptions for bad shapes.
Invalid values degrade to empty defaults instead.
"""

from collections.abc import Mapping
from typing import Any

from sportlink.schemas.user import ProfileRead

# Shown when a record carries no usable name at all.
ROLE_FALLBACK_NAMES: dict[str, str] = {
    "athlete": "Athlete",
    "parent": "Parent",
    "coach": "Coach",
    "team": "Team",
    "league": "League",
    "merchant": "Merchant",
}

DEFAULT_NAME = "User"

# Name fields a role sub-profile may carry, checked in order.
PROFILE_NAME_FIELDS: tuple[str, ...] = ("name", "teamName", "leagueName", "businessName")

# Sub-profile keys lifted into ProfileRead; the rest go to `details`.
_NORMALIZED_KEYS = {
    "location",
    "bio",
    "sports",
    "sport",
    "skills",
    "ageGroups",
    "certifications",
    "experience",
}

# Top-level user keys; only relevant when a league profile is stored flat.
_RECORD_KEYS = {"id", "name", "firstName", "lastName", "email", "role", "createdAt"}


def clean_role(role: Any) -> str | None:
    """Role as a non-empty string, else None (stored roles can be any JSON value)."""
    if isinstance(role, str) and role.strip():
        return role.strip()
    return None


def profile_key(role: str | None) -> str | None:
    """Record key holding the role sub-profile, e.g. coach -> coachProfile."""
    role = clean_role(role)
    if not role:
        return None
    return f"{role}Profile"


def _clean_str(value: Any) -> str:
    if isinstance(value, str):
        return value.strip()
    return ""


def to_string_list(value: Any) -> list[str]:
    """
    Coerce a list-like field to a list of strings.

      - None / "" / 0 / empty container -> []
      - "a, b,,c"                         -> ["a", "b", "c"]
      - list / tuple / set                -> same items as strings
      - any other scalar                  -> [str(value)]
    """
    if not value:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    if isinstance(value, (list, tuple, set)):
        return [item if isinstance(item, str) else str(item) for item in value]
    return [str(value)]


def flatten_skills(skills: Any) -> list[str]:
    """
    Flatten skills stored either as a list or as {sport: list-or-string}.

    Map values are concatenated in key order, each value normalized with
    `to_string_list`.
    """
    if isinstance(skills, Mapping):
        flat: list[str] = []
        for sport_skills in skills.values():
            flat.extend(to_string_list(sport_skills))
        return flat
    return to_string_list(skills)


def skills_by_sport(skills: Any) -> dict[str, list[str]]:
    """Per-sport skills; a flat skill list has no sport breakdown."""
    if not isinstance(skills, Mapping):
        return {}
    return {str(sport): to_string_list(value) for sport, value in skills.items()}


def role_profile(record: Mapping[str, Any] | None, role: str | None) -> dict[str, Any]:
    """
    Return the role sub-profile of a record, or {} when it is missing.

    Leagues are also stored flat (fields directly on the record), in which
    case the record itself is the profile.
    """
    if not isinstance(record, Mapping):
        return {}
    role = clean_role(role)
    key = profile_key(role)
    sub = record.get(key) if key else None
    if isinstance(sub, Mapping):
        return dict(sub)
    if role == "league":
        return dict(record)
    return {}


def resolve_display_name(record: Mapping[str, Any] | None, role: str | None) -> str:
    """
    Resolve a display name.

    Order:
      1. explicit `name`
      2. `firstName lastName` (trimmed)
      3. name field of the role sub-profile (name, teamName, leagueName, ...)
      4. role fallback ("Coach", "Parent", ...), "User" for unknown roles
    """
    role = clean_role(role)
    if isinstance(record, Mapping):
        name = _clean_str(record.get("name"))
        if name:
            return name

        full = f"{_clean_str(record.get('firstName'))} {_clean_str(record.get('lastName'))}".strip()
        if full:
            return full

        sub = role_profile(record, role)
        for field in PROFILE_NAME_FIELDS:
            name = _clean_str(sub.get(field))
            if name:
                return name

    return ROLE_FALLBACK_NAMES.get(role or "", DEFAULT_NAME)


def resolve_profile(
    record: Mapping[str, Any] | None,
    role: str | None = None,
    user_id: str = "",
) -> ProfileRead:
    """
    Build a normalized ProfileRead from a raw user record.

    `role` defaults to the record's own `role` field.
    """
    data: Mapping[str, Any] = record if isinstance(record, Mapping) else {}
    role = clean_role(role) or clean_role(data.get("role"))
    sub = role_profile(data, role)

    # Teams store a single `sport`; coaches and athletes a `sports` list.
    sports = to_string_list(sub.get("sports")) or to_string_list(sub.get("sport"))

    details = {
        k: v
        for k, v in sub.items()
        if k not in _NORMALIZED_KEYS
        and k not in _RECORD_KEYS
        and not k.endswith("Profile")
    }

    return ProfileRead(
        id=user_id or _clean_str(data.get("id")),
        role=role,
        display_name=resolve_display_name(data, role),
        email=_clean_str(data.get("email")) or None,
        first_name=_clean_str(data.get("firstName")) or None,
        last_name=_clean_str(data.get("lastName")) or None,
        location=_clean_str(sub.get("location")) or None,
        bio=_clean_str(sub.get("bio")) or None,
        sports=sports,
        skills=flatten_skills(sub.get("skills")),
        skills_by_sport=skills_by_sport(sub.get("skills")),
        age_groups=to_string_list(sub.get("ageGroups")),
        certifications=to_string_list(sub.get("certifications")),
        experience=sub.get("experience"),
        details=details,
    )
