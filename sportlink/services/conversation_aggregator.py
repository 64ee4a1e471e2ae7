# sportlink/services/conversation_aggregator.py
"""
Group a flat message snapshot into conversations.

The store delivers the viewer's full message snapshot on every change,
so aggregation is recomputed from scratch each time: same snapshot in,
same ordered conversations out. Nothing here performs I/O except the
optional profile lookup callback, whose failures degrade to "User".
"""

import logging
from collections.abc import Callable, Iterable, Mapping
from datetime import datetime, timezone
from typing import Any, Protocol

from pydantic import ValidationError

from sportlink.schemas.message import ConversationParty, ConversationRead, MessageRead
from sportlink.services.profile_resolver import (
    DEFAULT_NAME,
    clean_role,
    resolve_display_name,
)

logger = logging.getLogger(__name__)

# (user_id, role) -> raw user record or None
ProfileLookup = Callable[[str, str | None], Mapping[str, Any] | None]

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


class MessageLike(Protocol):
    id: int | None
    sender_id: str
    receiver_id: str
    conversation_id: str
    participants: list[str]
    timestamp: datetime | None


def conversation_id_for(user_a: str, user_b: str) -> str:
    """Canonical two-party id; identical whichever side starts the thread."""
    return "_".join(sorted([user_a, user_b]))


def _timestamp_key(ts: datetime | None) -> datetime:
    # Pending server timestamps sort first; naive values are stored UTC.
    if ts is None:
        return _EPOCH
    if ts.tzinfo is None:
        return ts.replace(tzinfo=timezone.utc)
    return ts


def _valid_participants(message: MessageLike) -> list[str] | None:
    participants = message.participants
    if isinstance(participants, (list, tuple)) and len(participants) == 2:
        return list(participants)
    return None


def _involves(message: MessageLike, viewer_id: str) -> bool:
    participants = _valid_participants(message)
    if participants is not None:
        return viewer_id in participants
    return viewer_id in (message.sender_id, message.receiver_id)


def other_party_id(first: MessageLike, viewer_id: str) -> str:
    """
    Identify the non-viewer participant from the first message.

    Uses `participants` since the viewer can be sender on one message and
    receiver on the next. Malformed participants fall back to whichever of
    sender/receiver is not the viewer.
    """
    participants = _valid_participants(first)
    if participants is not None:
        for participant in participants:
            if participant != viewer_id:
                return participant

    logger.warning(
        "Malformed participants on conversation %s; falling back to sender/receiver",
        first.conversation_id,
    )
    if first.sender_id == viewer_id:
        return first.receiver_id
    return first.sender_id


def _cached_party(
    messages: list[MessageRead],
    party_id: str,
) -> tuple[str | None, str | None]:
    """Name and role denormalized on the most recent message naming party_id."""
    for message in reversed(messages):
        if message.sender_id == party_id:
            return message.sender_name, message.sender_role
        if message.receiver_id == party_id:
            return message.receiver_name, message.receiver_role
    return None, None


def _looked_up_party(
    party_id: str,
    role: str | None,
    profile_lookup: ProfileLookup,
) -> tuple[str, str | None]:
    """Name and role from the party's user record; any failure yields "User"."""
    try:
        record = profile_lookup(party_id, role)
        if not isinstance(record, Mapping) or not record:
            return DEFAULT_NAME, role
        role = role or clean_role(record.get("role"))
        return resolve_display_name(record, role), role
    except Exception:
        logger.warning("Profile lookup failed for user %s", party_id, exc_info=True)
        return DEFAULT_NAME, role


def resolve_other_party(
    messages: list[MessageRead],
    viewer_id: str,
    profile_lookup: ProfileLookup | None = None,
) -> ConversationParty:
    party_id = other_party_id(messages[0], viewer_id)
    name, role = _cached_party(messages, party_id)

    if not (name and name.strip()):
        name = DEFAULT_NAME
        if profile_lookup is not None:
            name, role = _looked_up_party(party_id, role, profile_lookup)

    return ConversationParty(id=party_id, name=name.strip(), role=role)


def aggregate_conversations(
    messages: Iterable[Any],
    viewer_id: str,
    profile_lookup: ProfileLookup | None = None,
) -> list[ConversationRead]:
    """
    Build the viewer's conversations from a message snapshot.

    Steps:
      1. Keep messages involving the viewer, partition by conversationId.
      2. Sort each partition by (timestamp, arrival order).
      3. latestMessage = last message of the partition.
      4. Sort conversations by latestMessage, newest first.
      5. Resolve the other party (participants, then cached names, then
         profile lookup, then "User").
    """
    partitions: dict[str, list[tuple[datetime, int, MessageRead]]] = {}

    for position, raw in enumerate(messages):
        try:
            message = MessageRead.model_validate(raw)
        except ValidationError as e:
            logger.warning("Skipping malformed message at position %s: %s", position, e)
            continue
        if not _involves(message, viewer_id):
            continue
        # Persisted ids follow insertion order; unsaved ones keep snapshot order.
        arrival = message.id if message.id is not None else position
        partitions.setdefault(message.conversation_id, []).append(
            (_timestamp_key(message.timestamp), arrival, message)
        )

    ranked: list[tuple[tuple[datetime, int], ConversationRead]] = []
    for conversation_id, entries in partitions.items():
        entries.sort(key=lambda entry: (entry[0], entry[1]))
        ordered = [entry[2] for entry in entries]
        latest_ts, latest_arrival, latest = entries[-1]

        conversation = ConversationRead(
            id=conversation_id,
            messages=ordered,
            latest_message=latest,
            other_party=resolve_other_party(ordered, viewer_id, profile_lookup),
        )
        ranked.append(((latest_ts, latest_arrival), conversation))

    ranked.sort(key=lambda item: item[0], reverse=True)
    return [conversation for _, conversation in ranked]
