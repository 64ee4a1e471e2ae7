# sportlink/routers/directory.py
from fastapi import APIRouter, Depends, Query
from sqlmodel import Session

from sportlink.database import get_session
from sportlink.repositories.document_repo import DocumentRepository
from sportlink.schemas.user import ProfileRead
from sportlink.services.directory_service import DirectoryService

router = APIRouter(tags=["Directory"])

repo = DocumentRepository()
service = DirectoryService(repo)


@router.get("/coaches", response_model=list[ProfileRead])
def list_coaches(
    session: Session = Depends(get_session),
    sports: list[str] = Query(default=[]),
    skills: list[str] = Query(default=[]),
    age_groups: list[str] = Query(default=[], alias="ageGroups"),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
):
    """
    Coach directory.

    - Public endpoint.
    - Repeat a filter to select several values (?sports=soccer&sports=baseball);
      a coach matches when it shares at least one value per filter.
    """
    return service.list_coaches(
        session,
        sports=sports,
        skills=skills,
        age_groups=age_groups,
        skip=skip,
        limit=limit,
    )


@router.get("/teams", response_model=list[ProfileRead])
def list_teams(
    session: Session = Depends(get_session),
    sports: list[str] = Query(default=[]),
    age_groups: list[str] = Query(default=[], alias="ageGroups"),
    team_types: list[str] = Query(default=[], alias="teamTypes"),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
):
    """
    Team directory (public).
    """
    return service.list_teams(
        session,
        sports=sports,
        age_groups=age_groups,
        team_types=team_types,
        skip=skip,
        limit=limit,
    )


@router.get("/leagues", response_model=list[ProfileRead])
def list_leagues(
    session: Session = Depends(get_session),
    sports: list[str] = Query(default=[]),
    skip: int = Query(default=0, ge=0),
    limit: int = Query(default=50, ge=1, le=200),
):
    """
    League directory (public). Sport matching ignores case.
    """
    return service.list_leagues(session, sports=sports, skip=skip, limit=limit)
