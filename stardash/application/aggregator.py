import logging
import math
from collections import Counter
from typing import List, Sequence, Tuple

from stardash.domain.models import (
    CanonicalTopic,
    LanguageCount,
    RepositoryEntity,
    Summary,
    UNKNOWN_LANGUAGE,
)
from stardash.domain.topics import TopicIndex

logger = logging.getLogger(__name__)

TOP_LANGUAGES = 5
TOP_TOPICS = 10
TOP_STARRED = 5
FILTER_TOPICS = 30


def round_half_up(value: float) -> int:
    """Round halves towards +inf, unlike the banker's rounding of round()."""
    return int(math.floor(value + 0.5))


def _ranked(counts: Counter, limit: int) -> List[Tuple[str, int]]:
    # most_common() sorts stably, so equal counts keep first-seen order
    return counts.most_common(limit)


def count_languages(repos: Sequence[RepositoryEntity]) -> Counter:
    return Counter(repo.language for repo in repos if repo.language != UNKNOWN_LANGUAGE)


def count_topics(repos: Sequence[RepositoryEntity], index: TopicIndex) -> Counter:
    """Count repositories per canonical topic; each repository counts once per key."""
    counts: Counter = Counter()
    for repo in repos:
        counts.update(index.keys_for(repo.topics))
    return counts


def summarize(repos: Sequence[RepositoryEntity]) -> Summary:
    """
    Builds the Summary for a repository collection.

    Args:
        repos (Sequence[RepositoryEntity]): The full, unfiltered collection.

    Returns:
        Summary: Totals, rankings and the filter vocabularies.
    """
    total_repos = len(repos)
    total_stars = sum(repo.stars for repo in repos)
    avg_stars = round_half_up(total_stars / total_repos) if total_repos else 0

    language_counts = count_languages(repos)
    index = TopicIndex()
    topic_counts = count_topics(repos, index)

    def canonical(limit: int) -> List[CanonicalTopic]:
        return [
            CanonicalTopic(topic=key, count=count, variations=index.variations(key))
            for key, count in _ranked(topic_counts, limit)
        ]

    most_starred = sorted(repos, key=lambda repo: repo.stars, reverse=True)[:TOP_STARRED]

    logger.debug(
        f"Summarized {total_repos} repositories: "
        f"{len(language_counts)} languages, {len(topic_counts)} canonical topics."
    )

    return Summary(
        total_repos=total_repos,
        total_stars=total_stars,
        avg_stars=avg_stars,
        top_languages=[
            LanguageCount(language=language, count=count)
            for language, count in _ranked(language_counts, TOP_LANGUAGES)
        ],
        top_topics=canonical(TOP_TOPICS),
        most_starred=list(most_starred),
        languages=sorted(language_counts),
        filter_topics=canonical(FILTER_TOPICS),
    )
