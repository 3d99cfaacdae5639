import json
from typing import Any, Dict, Optional, Sequence

from stardash.domain.models import RepositoryEntity, Summary

CSV_HEADER = ["Name", "Owner", "Description", "Stars", "Forks", "Language", "URL", "Updated"]


def export_filename(username: str, fmt: str) -> str:
    return f"{username}-starred-repos.{fmt}"


def to_json(repos: Sequence[RepositoryEntity], summary: Optional[Summary]) -> str:
    """Serializes the collection and its summary as one JSON document."""
    document: Dict[str, Any] = {
        "repositories": [repo.model_dump(mode="json") for repo in repos],
        "summary": summary.model_dump(mode="json") if summary is not None else None,
    }
    return json.dumps(document, indent=2)


def _quote(value: str) -> str:
    return '"' + value.replace('"', '""') + '"'


def to_csv(repos: Sequence[RepositoryEntity]) -> str:
    """
    Renders one row per repository, in collection order.

    Only the description is quoted. The remaining fields are written verbatim,
    so a comma inside a name or URL shifts the columns of that row.
    """
    lines = [",".join(CSV_HEADER)]
    for repo in repos:
        row = [
            repo.name,
            repo.owner,
            _quote(repo.description),
            str(repo.stars),
            str(repo.forks),
            repo.language,
            repo.html_url,
            repo.updated_at.date().isoformat(),
        ]
        lines.append(",".join(row))
    return "\n".join(lines)
