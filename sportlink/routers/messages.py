# sportlink/routers/messages.py
import asyncio
import logging

from fastapi import APIRouter, Depends, HTTPException, WebSocket, status
from fastapi.encoders import jsonable_encoder
from sqlmodel import Session
from starlette.concurrency import run_in_threadpool

from sportlink.core.auth import authenticate_token, require_auth
from sportlink.core.realtime import message_feed
from sportlink.database import engine, get_session
from sportlink.repositories.document_repo import DocumentRepository
from sportlink.repositories.message_repo import MessageRepository
from sportlink.schemas.message import (
    ConversationRead,
    MessageCreate,
    MessageRead,
    ReplyCreate,
)
from sportlink.schemas.user import SessionUser
from sportlink.services.messaging_service import MessagingService
from sportlink.services.user_service import UserService

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/messages", tags=["Messages"])

message_repo = MessageRepository()
user_service = UserService(DocumentRepository())
service = MessagingService(message_repo, user_service, message_feed)


# -------- Inbox --------


@router.get("/conversations", response_model=list[ConversationRead])
def list_conversations(
    session: Session = Depends(get_session),
    current_user: SessionUser = Depends(require_auth),
):
    """
    The authenticated user's conversations, most recent first.
    """
    return service.list_conversations(session, current_user)


@router.get("/conversations/{conversation_id}", response_model=ConversationRead)
def get_conversation(
    conversation_id: str,
    session: Session = Depends(get_session),
    current_user: SessionUser = Depends(require_auth),
):
    """
    A single conversation with its messages in chronological order.

    - 404 if the user is not a participant.
    """
    return service.get_conversation(session, current_user, conversation_id)


# -------- Sending --------


@router.post(
    "",
    response_model=MessageRead,
    status_code=status.HTTP_201_CREATED,
)
def send_message(
    payload: MessageCreate,
    session: Session = Depends(get_session),
    current_user: SessionUser = Depends(require_auth),
):
    """
    Send a direct message (e.g. "Contact coach", "Message team").

    The conversation id is derived from both user ids, so either side
    starting the thread lands in the same conversation.
    """
    return service.send_message(session, current_user, payload)


@router.post(
    "/conversations/{conversation_id}/messages",
    response_model=MessageRead,
    status_code=status.HTTP_201_CREATED,
)
def reply(
    conversation_id: str,
    payload: ReplyCreate,
    session: Session = Depends(get_session),
    current_user: SessionUser = Depends(require_auth),
):
    """
    Reply in an existing conversation (inbox composer).
    """
    return service.reply(session, current_user, conversation_id, payload)


# -------- Live inbox --------


def _inbox_snapshot(viewer: SessionUser) -> list[ConversationRead]:
    # Fresh session per push so each snapshot sees committed writes.
    with Session(engine) as session:
        return service.list_conversations(session, viewer)


async def _wait_for_disconnect(websocket: WebSocket) -> None:
    while True:
        message = await websocket.receive()
        if message["type"] == "websocket.disconnect":
            return


@router.websocket("/ws")
async def inbox_socket(
    websocket: WebSocket,
    token: str | None = None,
):
    """
    Push the aggregated inbox on connect and after every new message
    involving the user.

    Auth:
      - `?token=<Supabase JWT>`; invalid or missing tokens close with 1008.

    Each push is the full conversation list recomputed from the message
    snapshot. The feed subscription is dropped when the socket closes.
    """
    try:
        if not token:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED)
        viewer = authenticate_token(token)
    except HTTPException:
        await websocket.close(code=status.WS_1008_POLICY_VIOLATION)
        return

    await websocket.accept()

    loop = asyncio.get_running_loop()
    changed: asyncio.Queue[None] = asyncio.Queue()
    unsubscribe = message_feed.subscribe(
        viewer.uid,
        lambda: loop.call_soon_threadsafe(changed.put_nowait, None),
    )
    disconnect = asyncio.create_task(_wait_for_disconnect(websocket))

    try:
        while True:
            conversations = await run_in_threadpool(_inbox_snapshot, viewer)
            await websocket.send_json(jsonable_encoder(conversations))

            waiter = asyncio.create_task(changed.get())
            done, _ = await asyncio.wait(
                {waiter, disconnect},
                return_when=asyncio.FIRST_COMPLETED,
            )
            if disconnect in done:
                waiter.cancel()
                break
    finally:
        unsubscribe()
        disconnect.cancel()
        logger.info("Inbox socket closed for %s", viewer.uid)
