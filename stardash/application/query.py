"""
Filtering and ordering of the repository view.

The steps run in a fixed order: view-mode windowing, language filter, topic
filter, then sorting. Sorting only applies in the "all" view; the windowed
views keep the order their window was cut in.
"""
from typing import Any, Callable, Dict, List, Mapping, Optional, Sequence

from stardash.domain.models import (
    OTHERS_TOPIC,
    QueryState,
    RankBadge,
    RankedRepository,
    RepositoryEntity,
    SortDirection,
    SortKey,
    Summary,
    TrendRecord,
    ViewMode,
)
from stardash.domain.topics import TopicIndex

VIEW_WINDOW = 20

_VIEW_FIELDS: Dict[ViewMode, Callable[[RepositoryEntity], Any]] = {
    ViewMode.TOP_STARRED: lambda repo: repo.stars,
    ViewMode.TOP_FORKED: lambda repo: repo.forks,
    ViewMode.TOP_WATCHERS: lambda repo: repo.watchers,
    ViewMode.RECENT: lambda repo: repo.updated_at,
}

_BADGES = (RankBadge.GOLD, RankBadge.SILVER, RankBadge.BRONZE)


def apply_view_mode(repos: Sequence[RepositoryEntity], view_mode: ViewMode) -> List[RepositoryEntity]:
    field = _VIEW_FIELDS.get(view_mode)
    if field is None:
        return list(repos)
    return sorted(repos, key=field, reverse=True)[:VIEW_WINDOW]


def filter_language(repos: Sequence[RepositoryEntity], language: Optional[str]) -> List[RepositoryEntity]:
    if not language:
        return list(repos)
    return [repo for repo in repos if repo.language == language]


def filter_topics(
    repos: Sequence[RepositoryEntity],
    selected: Sequence[str],
    summary: Summary,
    index: Optional[TopicIndex] = None,
) -> List[RepositoryEntity]:
    """
    Keeps repositories matching any selected canonical key.

    The "others" key matches repositories whose topics all fall outside the
    summary's filter topics; a repository without topics never matches it.
    """
    if not selected:
        return list(repos)

    index = index or TopicIndex()
    wanted = {key for key in selected if key != OTHERS_TOPIC}
    want_others = OTHERS_TOPIC in selected
    listed = summary.filter_topic_keys

    def matches(repo: RepositoryEntity) -> bool:
        keys = index.keys_for(repo.topics)
        if wanted.intersection(keys):
            return True
        return want_others and bool(keys) and not listed.intersection(keys)

    return [repo for repo in repos if matches(repo)]


def sort_value(
    repo: RepositoryEntity,
    sort_key: SortKey,
    trends: Mapping[int, TrendRecord],
) -> Any:
    if sort_key == SortKey.STARS:
        return repo.stars
    if sort_key == SortKey.FORKS:
        return repo.forks
    if sort_key == SortKey.WATCHERS:
        return repo.watchers
    if sort_key == SortKey.UPDATED:
        return repo.updated_at
    if sort_key == SortKey.NAME:
        return repo.name.lower()
    if sort_key == SortKey.OPEN_ISSUES:
        return repo.open_issues

    # Repositories without a trend record sort as zero growth.
    trend = trends.get(repo.id)
    if trend is None:
        return 0
    if sort_key == SortKey.GROWTH_30:
        return trend.count(30)
    if sort_key == SortKey.GROWTH_90:
        return trend.count(90)
    return trend.momentum_percent or 0


def sort_repositories(
    repos: Sequence[RepositoryEntity],
    sort_key: SortKey,
    direction: SortDirection,
    trends: Optional[Mapping[int, TrendRecord]] = None,
) -> List[RepositoryEntity]:
    trends = trends or {}
    return sorted(
        repos,
        key=lambda repo: sort_value(repo, sort_key, trends),
        reverse=direction == SortDirection.DESC,
    )


def query(
    repos: Sequence[RepositoryEntity],
    summary: Summary,
    state: QueryState,
    trends: Optional[Mapping[int, TrendRecord]] = None,
) -> List[RepositoryEntity]:
    """
    Produces the ordered view of a repository collection for a query state.

    Args:
        repos: The full collection, in fetch order.
        summary: Summary of that same collection, used for the "others" topic bucket.
        state: View mode, filters and sort settings.
        trends: Trend records by repository id, for the growth sort keys.

    Returns:
        List[RepositoryEntity]: The repositories to display, in display order.
    """
    view = apply_view_mode(repos, state.view_mode)
    view = filter_language(view, state.language)
    view = filter_topics(view, sorted(state.topics), summary)
    if state.view_mode == ViewMode.ALL:
        view = sort_repositories(view, state.sort_key, state.sort_direction, trends)
    return view


def assign_ranks(repos: Sequence[RepositoryEntity]) -> List[RankedRepository]:
    """Positional ranks over a final ordering; the first three carry a badge."""
    return [
        RankedRepository(
            rank=position + 1,
            badge=_BADGES[position] if position < len(_BADGES) else None,
            repository=repo,
        )
        for position, repo in enumerate(repos)
    ]
