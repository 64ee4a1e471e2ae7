# sportlink/routers/auth.py
from fastapi import APIRouter, Depends, status
from sqlmodel import Session
from supabase import Client

from sportlink.core.auth import authenticate_token, require_auth
from sportlink.core.supabase_client import get_identity_admin
from sportlink.database import get_session
from sportlink.repositories.document_repo import DocumentRepository
from sportlink.schemas.user import LoginRequest, ProfileRead, RegisterRequest, SessionUser
from sportlink.services.user_service import UserService

router = APIRouter(prefix="/auth", tags=["Auth"])

repo = DocumentRepository()
service = UserService(repo)


@router.post(
    "/register",
    response_model=ProfileRead,
    status_code=status.HTTP_201_CREATED,
)
def register(
    payload: RegisterRequest,
    session: Session = Depends(get_session),
    identity_admin: Client = Depends(get_identity_admin),
):
    """
    Register a user.

    Creates the Supabase Auth identity (role as custom claim) and writes
    the user document to `users` and the role collection.
    """
    return service.register(session, identity_admin, payload)


@router.post("/login", response_model=SessionUser)
def login(payload: LoginRequest):
    """
    Verify a token obtained from Supabase sign-in and return its user.

    Invalid tokens are rejected with 401.
    """
    return authenticate_token(payload.id_token)


@router.get("/me", response_model=SessionUser)
def read_session(current_user: SessionUser = Depends(require_auth)):
    """
    Return the identity carried by the bearer token.

    Auth:
      - Requires valid Supabase JWT.
    """
    return current_user
