import unittest
from datetime import datetime, timezone

from stardash.application.aggregator import round_half_up, summarize
from stardash.domain.models import RepositoryEntity


def _repo(repo_id: int, stars: int = 0, language: str = "Unknown", topics=None) -> RepositoryEntity:
    return RepositoryEntity(
        id=repo_id,
        owner="octocat",
        name=f"repo-{repo_id}",
        full_name=f"octocat/repo-{repo_id}",
        stars=stars,
        language=language,
        topics=topics or [],
        created_at=datetime(2020, 1, 1, tzinfo=timezone.utc),
        updated_at=datetime(2024, 1, 1, tzinfo=timezone.utc),
    )


class TestSummarize(unittest.TestCase):
    def test_three_repository_scenario(self) -> None:
        repos = [
            _repo(1, stars=10, language="Go", topics=["ai"]),
            _repo(2, stars=30, language="Go", topics=["machine-learning"]),
            _repo(3, stars=5, language="Rust"),
        ]

        summary = summarize(repos)

        self.assertEqual(summary.total_repos, 3)
        self.assertEqual(summary.total_stars, 45)
        self.assertEqual(summary.avg_stars, 15)
        self.assertEqual(
            [(l.language, l.count) for l in summary.top_languages],
            [("Go", 2), ("Rust", 1)],
        )
        self.assertEqual(
            [(t.topic, t.count) for t in summary.top_topics],
            [("artificial-intelligence", 1), ("machine-learning", 1)],
        )
        self.assertEqual([r.id for r in summary.most_starred], [2, 1, 3])

    def test_empty_collection_has_zero_average(self) -> None:
        summary = summarize([])

        self.assertEqual(summary.total_repos, 0)
        self.assertEqual(summary.total_stars, 0)
        self.assertEqual(summary.avg_stars, 0)
        self.assertEqual(summary.top_languages, [])
        self.assertEqual(summary.filter_topics, [])

    def test_average_rounds_half_up(self) -> None:
        summary = summarize([_repo(1, stars=1), _repo(2, stars=2)])
        self.assertEqual(summary.avg_stars, 2)
        self.assertEqual(round_half_up(2.5), 3)
        self.assertEqual(round_half_up(2.4), 2)

    def test_topics_are_counted_once_per_repository(self) -> None:
        summary = summarize([_repo(1, topics=["ml", "machine-learning"])])

        self.assertEqual(len(summary.top_topics), 1)
        topic = summary.top_topics[0]
        self.assertEqual(topic.topic, "machine-learning")
        self.assertEqual(topic.count, 1)
        self.assertEqual(topic.variations, ["ml", "machine-learning"])

    def test_variations_are_unioned_across_repositories(self) -> None:
        summary = summarize([
            _repo(1, topics=["agents"]),
            _repo(2, topics=["ai-agent"]),
            _repo(3, topics=["agents", "agentic"]),
        ])

        topic = summary.top_topics[0]
        self.assertEqual(topic.topic, "ai-agent")
        self.assertEqual(topic.count, 3)
        self.assertEqual(topic.variations, ["agents", "ai-agent", "agentic"])

    def test_unknown_language_is_not_counted(self) -> None:
        summary = summarize([_repo(1), _repo(2, language="Python")])

        self.assertEqual([l.language for l in summary.top_languages], ["Python"])
        self.assertEqual(summary.languages, ["Python"])

    def test_ties_keep_first_encountered_order(self) -> None:
        repos = [
            _repo(1, language="Rust", topics=["zig"]),
            _repo(2, language="C", topics=["bash"]),
            _repo(3, language="Go", topics=["bash"]),
            _repo(4, language="Go", topics=["zig"]),
        ]

        summary = summarize(repos)

        self.assertEqual([l.language for l in summary.top_languages], ["Go", "Rust", "C"])
        self.assertEqual([t.topic for t in summary.top_topics], ["zig", "bash"])
        self.assertEqual(summary.languages, ["C", "Go", "Rust"])

    def test_ranking_limits(self) -> None:
        repos = [
            _repo(i, stars=i, language=f"Lang{i}", topics=[f"topic-{i}"])
            for i in range(40)
        ]

        summary = summarize(repos)

        self.assertEqual(len(summary.top_languages), 5)
        self.assertEqual(len(summary.top_topics), 10)
        self.assertEqual(len(summary.filter_topics), 30)
        self.assertEqual(len(summary.most_starred), 5)
        self.assertEqual(len(summary.languages), 40)
        self.assertEqual(summary.most_starred[0].stars, 39)
