import json
import unittest
from datetime import datetime, timezone

from stardash.application.aggregator import summarize
from stardash.domain.models import RepositoryEntity
from stardash.infrastructure.exporter import export_filename, to_csv, to_json


def _repo(repo_id: int, name: str, description: str = "No description") -> RepositoryEntity:
    return RepositoryEntity(
        id=repo_id,
        owner="octocat",
        name=name,
        full_name=f"octocat/{name}",
        description=description,
        html_url=f"https://github.com/octocat/{name}",
        stars=7,
        forks=2,
        language="Go",
        created_at=datetime(2020, 1, 1, tzinfo=timezone.utc),
        updated_at=datetime(2024, 3, 9, 10, 0, tzinfo=timezone.utc),
    )


class TestCsvExport(unittest.TestCase):
    def test_header_and_quoted_description(self) -> None:
        content = to_csv([_repo(1, "Foo", 'Say "hi"')])

        header, row = content.split("\n")
        self.assertEqual(header, "Name,Owner,Description,Stars,Forks,Language,URL,Updated")
        self.assertEqual(row, 'Foo,octocat,"Say ""hi""",7,2,Go,https://github.com/octocat/Foo,2024-03-09')

    def test_rows_follow_collection_order(self) -> None:
        content = to_csv([_repo(2, "b"), _repo(1, "a")])

        rows = content.split("\n")[1:]
        self.assertEqual([row.split(",")[0] for row in rows], ["b", "a"])

    def test_empty_collection_is_header_only(self) -> None:
        self.assertEqual(to_csv([]), "Name,Owner,Description,Stars,Forks,Language,URL,Updated")


class TestJsonExport(unittest.TestCase):
    def test_repositories_and_summary(self) -> None:
        repos = [_repo(1, "Foo")]
        document = json.loads(to_json(repos, summarize(repos)))

        self.assertEqual(set(document), {"repositories", "summary"})
        self.assertEqual(document["repositories"][0]["name"], "Foo")
        self.assertEqual(document["repositories"][0]["updated_at"], "2024-03-09T10:00:00Z")
        self.assertEqual(document["summary"]["total_stars"], 7)
        self.assertEqual(document["summary"]["top_languages"], [{"language": "Go", "count": 1}])

    def test_filename(self) -> None:
        self.assertEqual(export_filename("octocat", "csv"), "octocat-starred-repos.csv")
