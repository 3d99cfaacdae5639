from dataclasses import dataclass, field
from typing import Dict, List, Optional, Set, Tuple

from stardash.domain.models import (
    Contributor,
    QueryState,
    RepositoryEntity,
    Summary,
    TrendRecord,
)

TRENDS = "trends"
CONTRIBUTORS = "contributors"


@dataclass
class SessionState:
    """
    Everything derived from one fetch of a user's starred repositories.

    Passed explicitly to the service and the query engine. A new top-level
    fetch calls reset(), which drops the collection and everything derived
    from it.
    """
    username: Optional[str] = None
    repositories: List[RepositoryEntity] = field(default_factory=list)
    summary: Optional[Summary] = None
    query: QueryState = field(default_factory=QueryState)
    trends: Dict[int, TrendRecord] = field(default_factory=dict)
    contributors: Dict[int, List[Contributor]] = field(default_factory=dict)
    notices: List[str] = field(default_factory=list)
    # (kind, repository id) pairs that are in flight or finished
    _pending: Set[Tuple[str, int]] = field(default_factory=set)
    _completed: Set[Tuple[str, int]] = field(default_factory=set)

    def reset(self, username: Optional[str] = None) -> None:
        self.username = username
        self.repositories = []
        self.summary = None
        self.trends = {}
        self.contributors = {}
        self.notices = []
        self._pending = set()
        self._completed = set()

    def claim(self, kind: str, repo_id: int) -> bool:
        """Marks a fetch as in flight. Returns False if it is already pending or done."""
        marker = (kind, repo_id)
        if marker in self._pending or marker in self._completed:
            return False
        self._pending.add(marker)
        return True

    def finish(self, kind: str, repo_id: int) -> None:
        marker = (kind, repo_id)
        self._pending.discard(marker)
        self._completed.add(marker)

    def is_pending(self, kind: str, repo_id: int) -> bool:
        return (kind, repo_id) in self._pending

    def is_completed(self, kind: str, repo_id: int) -> bool:
        return (kind, repo_id) in self._completed

    def repository(self, repo_id: int) -> Optional[RepositoryEntity]:
        for repo in self.repositories:
            if repo.id == repo_id:
                return repo
        return None
