import unittest
from datetime import datetime, timezone

from stardash.infrastructure.acl import GitHubTranslator


def _raw_repo(**overrides):
    raw = {
        "id": 42,
        "name": "example",
        "full_name": "octocat/example",
        "owner": {"login": "octocat"},
        "description": "An example",
        "html_url": "https://github.com/octocat/example",
        "homepage": "https://example.com",
        "stargazers_count": 123,
        "forks_count": 4,
        "watchers_count": 123,
        "open_issues_count": 2,
        "language": "Python",
        "topics": ["cli", "tools"],
        "license": {"name": "MIT License"},
        "created_at": "2020-01-02T03:04:05Z",
        "updated_at": "2024-01-02T03:04:05Z",
        "pushed_at": "2024-01-01T00:00:00Z",
    }
    raw.update(overrides)
    return raw


class TestGitHubTranslator(unittest.TestCase):
    def test_to_domain_parses_counts_and_timestamps(self) -> None:
        entity = GitHubTranslator.to_domain(_raw_repo())

        self.assertEqual(entity.id, 42)
        self.assertEqual(entity.stars, 123)
        self.assertEqual(entity.owner, "octocat")
        self.assertEqual(entity.full_name, "octocat/example")
        self.assertEqual(entity.license, "MIT License")
        self.assertEqual(entity.topics, ["cli", "tools"])
        self.assertEqual(
            entity.updated_at,
            datetime(2024, 1, 2, 3, 4, 5, tzinfo=timezone.utc),
        )
        self.assertEqual(entity.pushed_at, datetime(2024, 1, 1, tzinfo=timezone.utc))

    def test_nullable_fields_get_display_defaults(self) -> None:
        entity = GitHubTranslator.to_domain(_raw_repo(
            description=None, language=None, topics=None, license=None, homepage="", pushed_at=None,
        ))

        self.assertEqual(entity.description, "No description")
        self.assertEqual(entity.language, "Unknown")
        self.assertEqual(entity.topics, [])
        self.assertEqual(entity.license, "No license")
        self.assertIsNone(entity.homepage)
        self.assertIsNone(entity.pushed_at)

    def test_entity_is_immutable(self) -> None:
        entity = GitHubTranslator.to_domain(_raw_repo())
        with self.assertRaises(Exception):
            entity.stars = 1

    def test_missing_updated_at_raises(self) -> None:
        raw = _raw_repo()
        del raw["updated_at"]

        with self.assertRaises(ValueError):
            GitHubTranslator.to_domain(raw)

    def test_starred_at_from_rest_and_graphql(self) -> None:
        expected = datetime(2024, 5, 1, 12, 0, tzinfo=timezone.utc)
        self.assertEqual(GitHubTranslator.to_starred_at({"starred_at": "2024-05-01T12:00:00Z"}), expected)
        self.assertEqual(GitHubTranslator.to_starred_at({"starredAt": "2024-05-01T12:00:00Z"}), expected)
        with self.assertRaises(ValueError):
            GitHubTranslator.to_starred_at({"user": {}})

    def test_to_contributor(self) -> None:
        contributor = GitHubTranslator.to_contributor({"login": "hubot", "contributions": 17})
        self.assertEqual(contributor.login, "hubot")
        self.assertEqual(contributor.contributions, 17)
