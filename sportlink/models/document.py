# sportlink/models/document.py
from datetime import datetime, timezone
from typing import Any

from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field


# Collection names (schema-in-code)
USERS = "users"
ATHLETES = "athletes"
PARENTS = "parents"
COACHES = "coaches"
TEAMS = "teams"
LEAGUES = "leagues"
MERCHANTS = "merchants"

# Application role -> role-specific collection
ROLE_COLLECTIONS: dict[str, str] = {
    "athlete": ATHLETES,
    "parent": PARENTS,
    "coach": COACHES,
    "team": TEAMS,
    "league": LEAGUES,
    "merchant": MERCHANTS,
}


class Document(SQLModel, table=True):
    """
    Schemaless document stored in a named collection.

    Identity:
      - (collection, id); for user records `id` is the identity provider's
        user id (JWT "sub"), shared by `users` and the role collection.

    `data` keeps the camelCase document shape written by the clients
    (firstName, lastName, role, coachProfile, ...). Replace the dict on
    update instead of mutating it in place so the JSON column is flushed.
    """

    __tablename__ = "documents"

    collection: str = Field(
        primary_key=True,
        description="Collection name, e.g. users | coaches | teams",
    )

    id: str = Field(
        primary_key=True,
        description="Document id within the collection",
    )

    data: dict[str, Any] = Field(
        default_factory=dict,
        sa_column=Column(JSON, nullable=False),
    )

    created_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Creation timestamp (UTC)",
    )

    updated_at: datetime = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        description="Last write timestamp (UTC)",
    )
