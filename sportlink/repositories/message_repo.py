# sportlink/repositories/message_repo.py
from sqlmodel import Session, or_, select

from sportlink.models.message import Message


class MessageRepository:
    """
    Data access layer for the append-only messages table.

    There is no update or delete: messages are immutable once written.
    """

    def list_for_participant(self, session: Session, user_id: str) -> list[Message]:
        """
        Full message snapshot visible to `user_id`, newest first.

        Participant membership is matched on sender/receiver in SQL (JSON
        containment is not portable across backends) and then checked
        against `participants` in Python.
        """
        stmt = (
            select(Message)
            .where(or_(Message.sender_id == user_id, Message.receiver_id == user_id))
            .order_by(Message.timestamp.desc(), Message.id.desc())
        )
        rows = session.exec(stmt).all()
        return [
            m
            for m in rows
            if not (isinstance(m.participants, list) and len(m.participants) == 2)
            or user_id in m.participants
        ]

    def list_for_conversation(self, session: Session, conversation_id: str) -> list[Message]:
        stmt = (
            select(Message)
            .where(Message.conversation_id == conversation_id)
            .order_by(Message.timestamp, Message.id)
        )
        return session.exec(stmt).all()

    def create(self, session: Session, message: Message) -> Message:
        """Insert a new Message and return the persisted row."""
        session.add(message)
        session.commit()
        session.refresh(message)
        return message
