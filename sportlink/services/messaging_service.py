# sportlink/services/messaging_service.py
import logging
from typing import Any

from fastapi import HTTPException, status
from sqlmodel import Session

from sportlink.core.realtime import MessageFeed
from sportlink.models.message import Message
from sportlink.repositories.message_repo import MessageRepository
from sportlink.schemas.message import (
    ConversationRead,
    MessageCreate,
    MessageRead,
    ReplyCreate,
)
from sportlink.schemas.user import SessionUser
from sportlink.services.conversation_aggregator import (
    ProfileLookup,
    aggregate_conversations,
    conversation_id_for,
)
from sportlink.services.profile_resolver import clean_role, resolve_display_name
from sportlink.services.user_service import UserService

logger = logging.getLogger(__name__)

# Sender role when neither the token nor the user document has one
DEFAULT_SENDER_ROLE = "athlete"


class MessagingService:
    """
    Business logic for direct messages.

    Responsibilities:
      - load the viewer's message snapshot and aggregate it
      - denormalize names/roles at send time
      - compute conversationId / participants for new messages
      - notify the live feed after every write
    """

    def __init__(
        self,
        message_repo: MessageRepository,
        users: UserService,
        feed: MessageFeed,
    ):
        self.message_repo = message_repo
        self.users = users
        self.feed = feed

    def _profile_lookup(self, session: Session) -> ProfileLookup:
        def lookup(user_id: str, role: str | None) -> dict[str, Any] | None:
            return self.users.load_user_record(session, user_id, role)

        return lookup

    # -------- Reads --------

    def list_conversations(
        self,
        session: Session,
        viewer: SessionUser,
    ) -> list[ConversationRead]:
        """
        All conversations of the viewer, most recent first.

        Recomputed from the full snapshot on every call.
        """
        snapshot = self.message_repo.list_for_participant(session, viewer.uid)
        return aggregate_conversations(snapshot, viewer.uid, self._profile_lookup(session))

    def get_conversation(
        self,
        session: Session,
        viewer: SessionUser,
        conversation_id: str,
    ) -> ConversationRead:
        """
        A single conversation the viewer takes part in.

        - 404 if it does not exist or the viewer is not a participant.
        """
        messages = self.message_repo.list_for_conversation(session, conversation_id)
        conversations = aggregate_conversations(
            messages, viewer.uid, self._profile_lookup(session)
        )
        if not conversations:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Conversation not found",
            )
        return conversations[0]

    # -------- Writes --------

    def send_message(
        self,
        session: Session,
        viewer: SessionUser,
        payload: MessageCreate,
    ) -> MessageRead:
        """
        Send a message to another user.

        Steps:
          1. Reject messages to oneself.
          2. Resolve the receiver's role and display name (payload first,
             then the receiver's user document).
          3. Write the message under the canonical conversation id.
        """
        if payload.receiver_id == viewer.uid:
            raise HTTPException(
                status_code=status.HTTP_400_BAD_REQUEST,
                detail="Cannot send a message to yourself",
            )

        receiver = self.users.load_user_record(
            session, payload.receiver_id, payload.receiver_role
        )
        if receiver is None and not payload.receiver_role:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="Recipient not found",
            )

        receiver_role = payload.receiver_role or clean_role((receiver or {}).get("role"))
        receiver_name = payload.receiver_name or resolve_display_name(receiver, receiver_role)

        return self._deliver(
            session,
            viewer,
            receiver_id=payload.receiver_id,
            receiver_role=receiver_role,
            receiver_name=receiver_name,
            content=payload.content,
            conversation_id=conversation_id_for(viewer.uid, payload.receiver_id),
        )

    def reply(
        self,
        session: Session,
        viewer: SessionUser,
        conversation_id: str,
        payload: ReplyCreate,
    ) -> MessageRead:
        """
        Reply inside an existing conversation.

        The receiver is the conversation's other party. The reply keeps
        the conversation's existing id.
        """
        conversation = self.get_conversation(session, viewer, conversation_id)
        party = conversation.other_party

        receiver = self.users.load_user_record(session, party.id, party.role)
        receiver_role = party.role or clean_role((receiver or {}).get("role"))
        receiver_name = (
            resolve_display_name(receiver, receiver_role) if receiver else party.name
        )

        return self._deliver(
            session,
            viewer,
            receiver_id=party.id,
            receiver_role=receiver_role,
            receiver_name=receiver_name,
            content=payload.content,
            conversation_id=conversation.id,
        )

    def _deliver(
        self,
        session: Session,
        viewer: SessionUser,
        *,
        receiver_id: str,
        receiver_role: str | None,
        receiver_name: str,
        content: str,
        conversation_id: str,
    ) -> MessageRead:
        sender = self.users.load_user_record(session, viewer.uid, viewer.role)
        sender_role = viewer.role or clean_role((sender or {}).get("role")) or DEFAULT_SENDER_ROLE
        sender_name = resolve_display_name(sender or {"name": viewer.name}, sender_role)

        message = Message(
            sender_id=viewer.uid,
            sender_role=sender_role,
            sender_name=sender_name,
            receiver_id=receiver_id,
            receiver_role=receiver_role,
            receiver_name=receiver_name,
            content=content,
            conversation_id=conversation_id,
            participants=[viewer.uid, receiver_id],
        )
        message = self.message_repo.create(session, message)
        logger.info(
            "Message %s stored in conversation %s", message.id, message.conversation_id
        )

        self.feed.notify(message.participants)
        return MessageRead.model_validate(message)
