from datetime import datetime
from typing import Any, Dict, Optional
from stardash.domain.models import Contributor, RepositoryEntity, UNKNOWN_LANGUAGE


def _parse_datetime(raw: Optional[str]) -> Optional[datetime]:
    if not raw:
        return None
    return datetime.fromisoformat(raw.replace("Z", "+00:00"))


class GitHubTranslator:
    """
    Anti-corruption layer that translates raw GitHub REST/GraphQL JSON into domain models.
    """

    @staticmethod
    def to_domain(raw_repo: Dict[str, Any]) -> RepositoryEntity:
        """
        Transforms a raw repository object from the starred listing into a RepositoryEntity.
        
        Args:
            raw_repo (Dict[str, Any]): One element of the `/users/{username}/starred` response.
        
        Returns:
            RepositoryEntity: The domain model instance representing the repository.
        """
        
        # Extract nested fields with safe defaults
        owner_data = raw_repo.get('owner') or {}
        license_data = raw_repo.get('license') or {}

        created_at = _parse_datetime(raw_repo.get('created_at'))
        updated_at = _parse_datetime(raw_repo.get('updated_at'))
        if created_at is None or updated_at is None:
            raise ValueError("created_at and updated_at are required to build RepositoryEntity.")

        name = raw_repo.get('name', '')
        owner = owner_data.get('login', '')

        return RepositoryEntity(
            id=raw_repo['id'],
            owner=owner,
            name=name,
            full_name=raw_repo.get('full_name') or f"{owner}/{name}",
            description=raw_repo.get('description') or 'No description',
            html_url=raw_repo.get('html_url', ''),
            homepage=raw_repo.get('homepage') or None,
            stars=raw_repo.get('stargazers_count', 0),
            forks=raw_repo.get('forks_count', 0),
            watchers=raw_repo.get('watchers_count', 0),
            open_issues=raw_repo.get('open_issues_count', 0),
            language=raw_repo.get('language') or UNKNOWN_LANGUAGE,
            topics=raw_repo.get('topics') or [],
            license=license_data.get('name') or 'No license',
            created_at=created_at,
            updated_at=updated_at,
            pushed_at=_parse_datetime(raw_repo.get('pushed_at')),
        )

    @staticmethod
    def to_contributor(raw_user: Dict[str, Any]) -> Contributor:
        return Contributor(
            login=raw_user.get('login', ''),
            contributions=raw_user.get('contributions', 0),
            avatar_url=raw_user.get('avatar_url', ''),
            html_url=raw_user.get('html_url', ''),
        )

    @staticmethod
    def to_starred_at(raw_event: Dict[str, Any]) -> datetime:
        """Reads the timestamp of a REST stargazer event or a GraphQL stargazer edge."""
        raw_date = raw_event.get('starred_at') or raw_event.get('starredAt')
        if not raw_date:
            raise ValueError("Stargazer event carries no starred_at timestamp.")
        return _parse_datetime(raw_date)
