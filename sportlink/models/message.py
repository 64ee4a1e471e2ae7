# sportlink/models/message.py
from datetime import datetime, timezone

from sqlalchemy import Column, JSON
from sqlmodel import SQLModel, Field


class Message(SQLModel, table=True):
    """
    Direct message between two users. Append-only: rows are never
    updated or deleted.

    Identity:
      - id: integer assigned in insertion order; used as the arrival
        order when two timestamps collide.

    Conversation:
      - conversation_id: sorted participant ids joined with "_"
      - participants: exactly the two user ids

    Sender/receiver names and roles are denormalized at send time.
    """

    __tablename__ = "messages"

    id: int | None = Field(default=None, primary_key=True)

    sender_id: str = Field(index=True)
    sender_role: str | None = Field(default=None)
    sender_name: str | None = Field(default=None)

    receiver_id: str = Field(index=True)
    receiver_role: str | None = Field(default=None)
    receiver_name: str | None = Field(default=None)

    content: str = Field(description="Message body (trimmed)")

    conversation_id: str = Field(
        index=True,
        description="Canonical two-party id: sorted ids joined with '_'",
    )

    participants: list[str] = Field(
        default_factory=list,
        sa_column=Column(JSON, nullable=False),
    )

    # Server-assigned; clients never provide it
    timestamp: datetime | None = Field(
        default_factory=lambda: datetime.now(timezone.utc),
        index=True,
        description="Send timestamp (UTC)",
    )
