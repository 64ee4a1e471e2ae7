# sportlink/services/directory_service.py
from collections.abc import Iterable

from sqlmodel import Session

from sportlink.models.document import COACHES, LEAGUES, TEAMS
from sportlink.repositories.document_repo import DocumentRepository
from sportlink.schemas.user import ProfileRead
from sportlink.services.profile_resolver import resolve_profile, to_string_list


def _matches_any(selected: list[str], values: Iterable[str]) -> bool:
    """No selection matches everything; otherwise one shared value is enough."""
    if not selected:
        return True
    available = set(values)
    return any(value in available for value in selected)


def _page(items: list[ProfileRead], skip: int, limit: int) -> list[ProfileRead]:
    return items[skip : skip + limit]


class DirectoryService:
    """
    Public directories of coaches, teams and leagues.

    Filters are applied to normalized profiles, so string-or-list fields
    in stored documents behave the same as proper lists.
    """

    def __init__(self, repo: DocumentRepository):
        self.repo = repo

    def list_coaches(
        self,
        session: Session,
        sports: list[str] | None = None,
        skills: list[str] | None = None,
        age_groups: list[str] | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[ProfileRead]:
        """
        Coaches having a coachProfile, filtered by sport, skill and age group.
        """
        results: list[ProfileRead] = []
        for doc in self.repo.list(session, COACHES):
            if not isinstance(doc.data.get("coachProfile"), dict):
                continue
            profile = resolve_profile(doc.data, "coach", doc.id)
            if not _matches_any(sports or [], profile.sports):
                continue
            if not _matches_any(skills or [], profile.skills):
                continue
            if not _matches_any(age_groups or [], profile.age_groups):
                continue
            results.append(profile)
        return _page(results, skip, limit)

    def list_teams(
        self,
        session: Session,
        sports: list[str] | None = None,
        age_groups: list[str] | None = None,
        team_types: list[str] | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[ProfileRead]:
        """
        Teams having a teamProfile, filtered by sport, age group and
        team type (travel | no-travel).
        """
        results: list[ProfileRead] = []
        for doc in self.repo.list(session, TEAMS):
            if not isinstance(doc.data.get("teamProfile"), dict):
                continue
            profile = resolve_profile(doc.data, "team", doc.id)
            if not _matches_any(sports or [], profile.sports):
                continue
            if not _matches_any(age_groups or [], profile.age_groups):
                continue
            if not _matches_any(team_types or [], to_string_list(profile.details.get("teamType"))):
                continue
            results.append(profile)
        return _page(results, skip, limit)

    def list_leagues(
        self,
        session: Session,
        sports: list[str] | None = None,
        skip: int = 0,
        limit: int = 50,
    ) -> list[ProfileRead]:
        """
        Leagues (nested leagueProfile or flat records), filtered by sport
        case-insensitively.
        """
        wanted = [s.lower() for s in sports or []]
        results: list[ProfileRead] = []
        for doc in self.repo.list(session, LEAGUES):
            profile = resolve_profile(doc.data, "league", doc.id)
            if not _matches_any(wanted, (s.lower() for s in profile.sports)):
                continue
            results.append(profile)
        return _page(results, skip, limit)
