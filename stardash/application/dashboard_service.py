import asyncio
import logging
from datetime import datetime, timedelta, timezone
from typing import Callable, Dict, List, Optional
import aiohttp

from stardash.application.aggregator import summarize
from stardash.application.growth import empirical_trend, estimate_for, recent_trend
from stardash.application.query import query
from stardash.application.session import CONTRIBUTORS, TRENDS, SessionState
from stardash.domain.exceptions import (
    CredentialRequiredError,
    PerRepositoryFetchError,
    StarsAnalyzerException,
    UserInputError,
)
from stardash.domain.models import (
    Contributor,
    RepositoryEntity,
    Summary,
    TrendRecord,
    TrendStrategy,
)
from stardash.infrastructure.acl import GitHubTranslator
from stardash.infrastructure.github_client import GitHubRestClient

logger = logging.getLogger(__name__)

INTER_REQUEST_DELAY = 1.0  # Seconds between trend fetches, to stay clear of secondary rate limits
DEFAULT_TOP_N = 10
RECENT_HISTORY_DAYS = 30
FULL_HISTORY_DAYS = 365


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def covered_since(starred_at: List[datetime], complete: bool) -> Optional[datetime]:
    """Oldest fetched event when the history was cut short, None when it is complete."""
    if complete or not starred_at:
        return None
    return min(starred_at)


class DashboardService:
    """
    Service responsible for loading a user's starred repositories into a
    session and enriching them with trend and contributor data.

    Trend fetches are serialized: at most one is outstanding at any time and a
    fixed delay separates two dispatches. A repository whose fetch is pending
    or done is never dispatched again within the session.
    """

    def __init__(
            self,
            github_client: GitHubRestClient,
            state: Optional[SessionState] = None,
            trend_delay: float = INTER_REQUEST_DELAY,
            trend_strategy: TrendStrategy = TrendStrategy.RECENT,
            clock: Callable[[], datetime] = utc_now,
    ):
        self.github_client = github_client
        self.state = state if state is not None else SessionState()
        self.trend_delay = trend_delay
        self.trend_strategy = trend_strategy
        self.clock = clock

    async def load(self, username: str) -> Summary:
        """
        Fetches the starred repositories of `username` and rebuilds the summary.
        Any previous session data is discarded first; on failure nothing is kept.
        """
        if not username or not username.strip():
            raise UserInputError("Please enter a GitHub username.")
        username = username.strip()

        self.state.reset(username)
        logger.info(f"Fetching starred repositories for '{username}'.")

        try:
            async with aiohttp.ClientSession() as session:
                raw_repos = await self.github_client.list_starred(session, username)
            repos = [GitHubTranslator.to_domain(raw) for raw in raw_repos if raw]
        except (StarsAnalyzerException, ValueError) as e:
            logger.error(f"Failed to fetch starred repositories for '{username}': {e}")
            self.state.reset()
            raise

        self.state.repositories = repos
        self.state.summary = summarize(repos)

        if not repos:
            self.state.notices.append("This user has no starred repositories.")

        logger.info(f"Loaded {len(repos)} starred repositories for '{username}'.")
        return self.state.summary

    def top_starred(self, top_n: int) -> List[RepositoryEntity]:
        return sorted(self.state.repositories, key=lambda repo: repo.stars, reverse=True)[:top_n]

    async def fetch_trends(self, top_n: int = DEFAULT_TOP_N) -> Dict[int, TrendRecord]:
        """
        Fetches star history for the `top_n` most-starred repositories, one at a time.

        Returns:
            Dict[int, TrendRecord]: The records produced by this call, by repository id.
        """
        if not self.github_client.authenticated:
            raise CredentialRequiredError()

        fetched: Dict[int, TrendRecord] = {}
        dispatched = 0

        async with aiohttp.ClientSession() as session:
            for repo in self.top_starred(top_n):
                if repo.id in self.state.trends or not self.state.claim(TRENDS, repo.id):
                    logger.debug(f"Skipping trend fetch for {repo.full_name}: already pending or done.")
                    continue

                if dispatched:
                    await asyncio.sleep(self.trend_delay)
                dispatched += 1

                try:
                    record = await self._fetch_trend(session, repo)
                except (StarsAnalyzerException, ValueError) as e:
                    self._report(PerRepositoryFetchError(repo.id, e), repo)
                    continue
                finally:
                    self.state.finish(TRENDS, repo.id)

                self.state.trends[repo.id] = record
                fetched[repo.id] = record
                logger.info(
                    f"[{repo.full_name}] {record.count(30)} stars in 30 days ({record.trend.value})."
                )

        logger.info(f"Trend fetch completed: {len(fetched)}/{dispatched} repositories.")
        return fetched

    async def _fetch_trend(self, session: aiohttp.ClientSession, repo: RepositoryEntity) -> TrendRecord:
        now = self.clock()
        client = self.github_client

        if self.trend_strategy == TrendStrategy.REST:
            events, complete = await client.fetch_stargazer_timestamps(
                session, repo.owner, repo.name, since=now - timedelta(days=FULL_HISTORY_DAYS)
            )
            starred_at = [GitHubTranslator.to_starred_at(event) for event in events]
            return empirical_trend(starred_at, now, covered_since(starred_at, complete))

        days = FULL_HISTORY_DAYS if self.trend_strategy == TrendStrategy.FULL else RECENT_HISTORY_DAYS
        edges, complete = await client.fetch_recent_stargazers(
            session, repo.owner, repo.name, since=now - timedelta(days=days)
        )
        starred_at = [GitHubTranslator.to_starred_at(edge) for edge in edges]
        if self.trend_strategy == TrendStrategy.FULL:
            return empirical_trend(starred_at, now, covered_since(starred_at, complete))
        return recent_trend(starred_at, now)

    def estimate_trends(self) -> Dict[int, TrendRecord]:
        """Fills in estimated records for every repository that has no trend yet."""
        now = self.clock()
        estimated: Dict[int, TrendRecord] = {}
        for repo in self.state.repositories:
            if repo.id in self.state.trends or self.state.is_pending(TRENDS, repo.id):
                continue
            record = estimate_for(repo, now)
            self.state.trends[repo.id] = record
            estimated[repo.id] = record
        logger.info(f"Estimated trends for {len(estimated)} repositories.")
        return estimated

    async def fetch_contributors(self, repo_id: int) -> Optional[List[Contributor]]:
        """
        Fetches the top contributors of one repository of the session.

        Returns:
            The contributors, or None when the fetch was skipped or failed.
        """
        repo = self.state.repository(repo_id)
        if repo is None:
            raise UserInputError(f"Repository {repo_id} is not part of the current session.")

        if not self.state.claim(CONTRIBUTORS, repo_id):
            return self.state.contributors.get(repo_id)

        try:
            async with aiohttp.ClientSession() as session:
                raw_users = await self.github_client.fetch_contributors(session, repo.owner, repo.name)
            contributors = [GitHubTranslator.to_contributor(raw) for raw in raw_users]
        except (StarsAnalyzerException, ValueError) as e:
            self._report(PerRepositoryFetchError(repo_id, e), repo)
            return None
        finally:
            self.state.finish(CONTRIBUTORS, repo_id)

        self.state.contributors[repo_id] = contributors
        return contributors

    def view(self) -> List[RepositoryEntity]:
        if self.state.summary is None:
            return []
        return query(self.state.repositories, self.state.summary, self.state.query, self.state.trends)

    def _report(self, error: PerRepositoryFetchError, repo: RepositoryEntity) -> None:
        logger.warning(f"[{repo.full_name}] {error}")
        self.state.notices.append(str(error))
