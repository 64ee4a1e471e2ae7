# sportlink/services/user_service.py
import logging
from datetime import datetime, timezone
from typing import Any

from fastapi import HTTPException, status
from sqlalchemy.exc import SQLAlchemyError
from sqlmodel import Session
from supabase import Client

from sportlink.models.document import ROLE_COLLECTIONS, USERS
from sportlink.repositories.document_repo import DocumentRepository
from sportlink.schemas.user import ProfileRead, ProfileUpdate, RegisterRequest, SessionUser
from sportlink.services.profile_resolver import clean_role, profile_key, resolve_profile

logger = logging.getLogger(__name__)

# Shape written for a fresh coach profile; other roles are stored as sent.
COACH_PROFILE_DEFAULTS: dict[str, Any] = {
    "sports": [],
    "skills": {},
    "ageGroups": [],
    "certifications": [],
}


class UserService:
    """
    Business logic for user records.

    Responsibilities:
      - registration (identity provider + user document)
      - profile reads through the profile resolver
      - profile edits (role is immutable)
      - writing each record to `users` and to its role collection

    The two collection writes are separate commits. If the second one
    fails the first is NOT rolled back; the failure is logged and
    reported as 500.
    """

    def __init__(self, repo: DocumentRepository):
        self.repo = repo

    # ----- Record access -----

    def load_user_record(
        self,
        session: Session,
        user_id: str,
        role: str | None = None,
    ) -> dict[str, Any] | None:
        """
        Raw user record from `users`, falling back to the role collection.
        """
        record = self.repo.get_data(session, USERS, user_id)
        if record is None and role in ROLE_COLLECTIONS:
            record = self.repo.get_data(session, ROLE_COLLECTIONS[role], user_id)
        return record

    def _write_user_record(
        self,
        session: Session,
        user_id: str,
        role: str | None,
        record: dict[str, Any],
    ) -> None:
        self.repo.set(session, USERS, user_id, record)

        collection = ROLE_COLLECTIONS.get(role or "")
        if collection is None:
            return

        try:
            self.repo.set(session, collection, user_id, record)
        except SQLAlchemyError:
            session.rollback()
            logger.exception(
                "Partial profile write for %s: '%s' updated, '%s' failed",
                user_id,
                USERS,
                collection,
            )
            raise HTTPException(
                status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
                detail="Failed to update profile",
            )

    # ----- Registration -----

    def build_user_record(self, payload: RegisterRequest) -> dict[str, Any]:
        """
        Initial user document.

        Keys follow the client document shape (camelCase). `name` is
        derived from first/last name.
        """
        record: dict[str, Any] = {
            "firstName": payload.first_name,
            "lastName": payload.last_name,
            "email": str(payload.email),
            "role": payload.role,
            "name": f"{payload.first_name} {payload.last_name}",
            "createdAt": datetime.now(timezone.utc).isoformat(),
        }

        sub_profile = dict(payload.profile)
        if payload.role == "coach":
            for key, default in COACH_PROFILE_DEFAULTS.items():
                if sub_profile.get(key) is None:
                    sub_profile[key] = type(default)()

        record[profile_key(payload.role)] = sub_profile
        return record

    def register(
        self,
        session: Session,
        identity_admin: Client,
        payload: RegisterRequest,
    ) -> ProfileRead:
        """
        Create the auth user, then the user document.

        Steps:
          1. Create the identity with the role as a custom claim
             (app_metadata.role).
          2. Write the user document to `users` and the role collection.

        Raises:
            HTTPException(502): if the identity provider rejects the request.
        """
        display_name = f"{payload.first_name} {payload.last_name}"
        try:
            response = identity_admin.auth.admin.create_user(
                {
                    "email": str(payload.email),
                    "password": payload.password,
                    "email_confirm": True,
                    "user_metadata": {"name": display_name},
                    "app_metadata": {"role": payload.role},
                }
            )
        except Exception as e:
            logger.error(f"Identity provider rejected registration for {payload.email}: {e}")
            raise HTTPException(
                status_code=status.HTTP_502_BAD_GATEWAY,
                detail="Failed to register user",
            )

        user_id = str(response.user.id)
        record = self.build_user_record(payload)
        self._write_user_record(session, user_id, payload.role, record)

        logger.info("Registered %s %s", payload.role, user_id)
        return resolve_profile(record, payload.role, user_id)

    # ----- Profiles -----

    def get_me(self, session: Session, current_user: SessionUser) -> ProfileRead:
        """
        Profile of the authenticated user.

        Raises:
            HTTPException(404): if no user document exists yet.
        """
        return self.get_user(session, current_user.uid, current_user.role)

    def get_user(
        self,
        session: Session,
        user_id: str,
        role: str | None = None,
    ) -> ProfileRead:
        """
        Normalized profile of any user.

        Raises:
            HTTPException(404): if not found.
        """
        record = self.load_user_record(session, user_id, role)
        if record is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found",
            )
        return resolve_profile(record, clean_role(record.get("role")) or role, user_id)

    def update_me(
        self,
        session: Session,
        current_user: SessionUser,
        payload: ProfileUpdate,
    ) -> ProfileRead:
        """
        Partial update for profile edits.

        Rules:
          - role cannot be changed
          - changing first/last name without `name` re-derives `name`
          - `profile` keys are merged into the role sub-profile
        """
        record = self.load_user_record(session, current_user.uid, current_user.role)
        if record is None:
            raise HTTPException(
                status_code=status.HTTP_404_NOT_FOUND,
                detail="User not found",
            )

        role = clean_role(record.get("role")) or current_user.role
        updated = dict(record)

        if payload.first_name is not None:
            updated["firstName"] = payload.first_name
        if payload.last_name is not None:
            updated["lastName"] = payload.last_name

        if payload.name is not None:
            updated["name"] = payload.name
        elif payload.first_name is not None or payload.last_name is not None:
            full = f"{updated.get('firstName') or ''} {updated.get('lastName') or ''}".strip()
            if full:
                updated["name"] = full

        if payload.profile:
            key = profile_key(role)
            if key is None:
                raise HTTPException(
                    status_code=status.HTTP_400_BAD_REQUEST,
                    detail="User has no role profile",
                )
            current = updated.get(key)
            merged = dict(current) if isinstance(current, dict) else {}
            merged.update(payload.profile)
            updated[key] = merged

        self._write_user_record(session, current_user.uid, role, updated)
        return resolve_profile(updated, role, current_user.uid)
