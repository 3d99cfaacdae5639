import aiohttp
import asyncio
import logging
import re
from datetime import datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple

from stardash.domain.exceptions import (
    CredentialRequiredError,
    NotFoundError,
    RateLimitError,
    TransportError,
)

logger = logging.getLogger(__name__)

API_URL = "https://api.github.com"
GRAPHQL_URL = f"{API_URL}/graphql"

# Stargazers of one repository, newest first, so paging can stop at a cutoff.
STARGAZERS_QUERY = """
query ($owner: String!, $name: String!, $cursor: String, $pageSize: Int!) {
  repository(owner: $owner, name: $name) {
    stargazers(first: $pageSize, after: $cursor, orderBy: {field: STARRED_AT, direction: DESC}) {
      pageInfo {
        endCursor
        hasNextPage
      }
      edges {
        starredAt
      }
    }
  }
}
"""

PAGE_SIZE = 100
MAX_STARRED_PAGES = 10
MAX_STARGAZER_PAGES = 100
CONTRIBUTORS_PER_PAGE = 5
REQUEST_TIMEOUT = aiohttp.ClientTimeout(total=60, connect=10)

ACCEPT_V3 = "application/vnd.github.v3+json"
# Includes starred_at in the stargazer listing
ACCEPT_STAR = "application/vnd.github.star+json"

BEARER_PREFIXES = ("github_pat_", "ghp_")


def authorization_header(token: Optional[str]) -> Optional[str]:
    """Fine-grained and classic personal tokens use Bearer, anything else the legacy scheme."""
    if not token or not token.strip():
        return None
    token = token.strip()
    if token.startswith(BEARER_PREFIXES):
        return f"Bearer {token}"
    return f"token {token}"


def parse_timestamp(raw: str) -> datetime:
    return datetime.fromisoformat(raw.replace("Z", "+00:00"))


_LAST_PAGE = re.compile(r'<[^>]*[?&]page=(\d+)[^>]*>;\s*rel="last"')


def last_page(link_header: Optional[str]) -> Optional[int]:
    """Reads the page number of the rel="last" link of a paginated response."""
    if not link_header:
        return None
    match = _LAST_PAGE.search(link_header)
    return int(match.group(1)) if match else None


class GitHubRestClient:
    """
    Client for the GitHub REST (and, for star history, GraphQL) API.
    Maps HTTP failures onto the domain exceptions; it never retries.
    """

    def __init__(self, token: Optional[str] = None, api_url: str = API_URL):
        self.api_url = api_url.rstrip("/")
        self.headers = {
            "Accept": ACCEPT_V3,
            "User-Agent": "stardash",
        }
        auth = authorization_header(token)
        if auth:
            self.headers["Authorization"] = auth

    @property
    def authenticated(self) -> bool:
        return "Authorization" in self.headers

    @staticmethod
    def _raise_for_status(response: aiohttp.ClientResponse, username: Optional[str] = None, path: str = "") -> None:
        if response.status == 404:
            if username:
                raise NotFoundError(username)
            raise NotFoundError(path, f"Not found: {path}")
        if response.status == 403:
            reset = response.headers.get("X-RateLimit-Reset")
            raise RateLimitError(reset_at=int(reset) if reset and reset.isdigit() else None)
        if not 200 <= response.status < 300:
            raise TransportError(response.status, response.reason or "")

    async def _get(
        self,
        session: aiohttp.ClientSession,
        path: str,
        params: Dict[str, Any],
        accept: str = ACCEPT_V3,
        username: Optional[str] = None,
    ) -> Tuple[Any, Mapping[str, str]]:
        """Performs one GET and returns the decoded body with the response headers."""
        headers = dict(self.headers, Accept=accept)
        url = f"{self.api_url}{path}"
        try:
            async with session.get(url, params=params, headers=headers, timeout=REQUEST_TIMEOUT) as response:
                self._raise_for_status(response, username, path)
                if response.status == 204:
                    return None, response.headers
                return await response.json(), response.headers
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            logger.warning(f"Request to {path} failed: {e}")
            raise TransportError(None, str(e) or type(e).__name__) from e

    async def _get_json(
        self,
        session: aiohttp.ClientSession,
        path: str,
        params: Dict[str, Any],
        accept: str = ACCEPT_V3,
        username: Optional[str] = None,
    ) -> Any:
        data, _ = await self._get(session, path, params, accept, username)
        return data

    async def fetch_starred_page(self, session: aiohttp.ClientSession, username: str, page: int) -> List[Dict]:
        """
        Fetches one page of a user's starred repositories.

        Returns:
            List[Dict]: Raw repository objects; empty once past the last page.
        """
        return await self._get_json(
            session,
            f"/users/{username}/starred",
            {"per_page": PAGE_SIZE, "page": page},
            username=username,
        )

    async def list_starred(
        self,
        session: aiohttp.ClientSession,
        username: str,
        max_pages: int = MAX_STARRED_PAGES,
    ) -> List[Dict]:
        """Walks the starred listing until an empty page or the page limit."""
        repos: List[Dict] = []
        for page in range(1, max_pages + 1):
            data = await self.fetch_starred_page(session, username, page)
            if not data:
                break
            repos.extend(data)
            logger.info(f"[{username}] Page {page}: {len(data)} repositories. Total: {len(repos)}.")
        return repos

    async def fetch_stargazer_timestamps(
        self,
        session: aiohttp.ClientSession,
        owner: str,
        name: str,
        since: datetime,
        max_pages: int = MAX_STARGAZER_PAGES,
    ) -> Tuple[List[Dict], bool]:
        """
        Fetches stargazer events with their starred_at timestamps over REST.

        The listing is oldest first, so after the first page it is read
        backwards from the last page named in the Link header, until a page
        starts at or before `since` or page 1 is reached.

        Returns:
            Tuple of (events, complete). complete is False when `max_pages`
            ran out before the history reached back to `since`.
        """
        path = f"/repos/{owner}/{name}/stargazers"
        first, headers = await self._get(session, path, {"per_page": PAGE_SIZE, "page": 1}, accept=ACCEPT_STAR)
        last = last_page(headers.get("Link"))
        if not first or last is None or last <= 1:
            return first or [], True

        pages: List[List[Dict]] = []
        complete = False
        for page in range(last, max(last - max_pages, 0), -1):
            if page == 1:
                data = first
            else:
                data, _ = await self._get(session, path, {"per_page": PAGE_SIZE, "page": page}, accept=ACCEPT_STAR)
                data = data or []
            pages.append(data)
            if page == 1 or (data and parse_timestamp(data[0]["starred_at"]) <= since):
                complete = True
                break

        if not complete:
            logger.warning(f"[{owner}/{name}] Stargazer history truncated after {max_pages} pages.")
        return [event for data in reversed(pages) for event in data], complete

    async def fetch_recent_stargazers(
        self,
        session: aiohttp.ClientSession,
        owner: str,
        name: str,
        since: datetime,
        max_pages: int = MAX_STARGAZER_PAGES,
    ) -> Tuple[List[Dict], bool]:
        """
        Fetches stargazer edges newest first over GraphQL, stopping at the first
        page whose oldest event is at or before `since`.

        Returns:
            Tuple of (edges, complete). Each edge carries a "starredAt"
            timestamp; complete is False when `max_pages` ran out first.
        """
        if not self.authenticated:
            raise CredentialRequiredError()

        edges: List[Dict] = []
        cursor = None
        complete = False
        for _ in range(max_pages):
            page_edges, cursor, has_next_page = await self._fetch_stargazer_page(session, owner, name, cursor)
            edges.extend(page_edges)
            if not page_edges or not has_next_page:
                complete = True
                break
            if parse_timestamp(page_edges[-1]["starredAt"]) <= since:
                complete = True
                break

        if not complete:
            logger.warning(f"[{owner}/{name}] Stargazer history truncated after {max_pages} pages.")
        return edges, complete

    async def _fetch_stargazer_page(
        self,
        session: aiohttp.ClientSession,
        owner: str,
        name: str,
        cursor: Optional[str],
    ) -> Tuple[List[Dict], Optional[str], bool]:
        payload = {
            "query": STARGAZERS_QUERY,
            "variables": {"owner": owner, "name": name, "cursor": cursor, "pageSize": PAGE_SIZE},
        }
        headers = dict(self.headers, Accept="application/json")
        try:
            async with session.post(GRAPHQL_URL, json=payload, headers=headers, timeout=REQUEST_TIMEOUT) as response:
                self._raise_for_status(response, path="/graphql")
                data = await response.json()
        except (aiohttp.ClientError, asyncio.TimeoutError) as e:
            raise TransportError(None, str(e) or type(e).__name__) from e

        # GraphQL reports errors with HTTP 200
        if data.get("errors") and not data.get("data"):
            raise TransportError(200, data["errors"][0].get("message", "Unknown GraphQL error"))

        repository = (data.get("data") or {}).get("repository")
        if repository is None:
            raise NotFoundError(f"{owner}/{name}", f"Repository {owner}/{name} not found.")

        stargazers = repository.get("stargazers", {})
        page_info = stargazers.get("pageInfo", {})
        return stargazers.get("edges", []), page_info.get("endCursor"), page_info.get("hasNextPage", False)

    async def fetch_contributors(self, session: aiohttp.ClientSession, owner: str, name: str) -> List[Dict]:
        data = await self._get_json(
            session,
            f"/repos/{owner}/{name}/contributors",
            {"per_page": CONTRIBUTORS_PER_PAGE},
        )
        # GitHub answers 204 with no body for empty repositories
        return data or []
