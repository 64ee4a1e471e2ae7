# sportlink/schemas/message.py
from datetime import datetime

from pydantic import ConfigDict, Field, field_validator

from sportlink.schemas.base import CamelModel


class MessageCreate(CamelModel):
    """
    Payload for sending a direct message.

    User provides:
      - receiverId
      - content
      - receiverRole / receiverName (optional; looked up otherwise)

    Backend derives:
      - sender fields from the token and the sender's user document
      - conversationId and participants
      - timestamp
    """

    model_config = ConfigDict(extra="forbid")

    receiver_id: str
    content: str
    receiver_role: str | None = None
    receiver_name: str | None = None

    @field_validator("receiver_id", "content")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("field cannot be empty")
        return v


class ReplyCreate(CamelModel):
    """Reply inside an existing conversation."""

    model_config = ConfigDict(extra="forbid")

    content: str

    @field_validator("content")
    @classmethod
    def not_empty(cls, v: str) -> str:
        v = v.strip()
        if not v:
            raise ValueError("content cannot be empty")
        return v


class MessageRead(CamelModel):
    id: int | None = None
    sender_id: str
    sender_role: str | None = None
    sender_name: str | None = None
    receiver_id: str
    receiver_role: str | None = None
    receiver_name: str | None = None
    content: str
    conversation_id: str
    participants: list[str] = Field(default_factory=list)
    timestamp: datetime | None = None

    @field_validator("participants", mode="before")
    @classmethod
    def coerce_participants(cls, v: object) -> list[str]:
        # Malformed values are kept readable; the aggregator falls back
        # to sender/receiver when there are not exactly two.
        if not isinstance(v, (list, tuple)):
            return []
        return [str(p) for p in v if p is not None]


class ConversationParty(CamelModel):
    """The participant of a conversation who is not the viewer."""

    id: str
    name: str
    role: str | None = None


class ConversationRead(CamelModel):
    """
    Derived view over all messages sharing one conversationId.

    Never persisted; recomputed from the message snapshot.
    """

    id: str
    messages: list[MessageRead]
    latest_message: MessageRead
    other_party: ConversationParty
