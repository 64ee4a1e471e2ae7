# sportlink/routers/users.py
from fastapi import APIRouter, Depends
from sqlmodel import Session

from sportlink.core.auth import require_auth
from sportlink.database import get_session
from sportlink.repositories.document_repo import DocumentRepository
from sportlink.schemas.user import ProfileRead, ProfileUpdate, SessionUser
from sportlink.services.user_service import UserService

router = APIRouter(prefix="/users", tags=["Users"])

repo = DocumentRepository()
service = UserService(repo)


# -------- Self profile --------


@router.get("/me", response_model=ProfileRead)
def read_me(
    session: Session = Depends(get_session),
    current_user: SessionUser = Depends(require_auth),
):
    """
    Return the authenticated user's normalized profile.

    Auth:
      - Requires valid Supabase JWT.
    """
    return service.get_me(session, current_user)


@router.patch("/me", response_model=ProfileRead)
def update_me(
    payload: ProfileUpdate,
    session: Session = Depends(get_session),
    current_user: SessionUser = Depends(require_auth),
):
    """
    Update the authenticated user's profile (partial update).

    Writes both `users` and the role collection. Role cannot change.

    Auth:
      - Requires valid Supabase JWT.
    """
    return service.update_me(session, current_user, payload)


# -------- Other users --------


@router.get(
    "/{user_id}",
    response_model=ProfileRead,
    dependencies=[Depends(require_auth)],
)
def get_user(
    user_id: str,
    session: Session = Depends(get_session),
):
    """
    Get another user's normalized profile (profile card / inbox header).
    """
    return service.get_user(session, user_id)
