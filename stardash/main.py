import asyncio
import sys
import logging
from pathlib import Path
from typing import List, Optional

import typer
from pydantic import ValidationError

from stardash.config import load_settings
from stardash.application.dashboard_service import DashboardService
from stardash.application.query import assign_ranks
from stardash.domain.exceptions import StarsAnalyzerException
from stardash.domain.models import ExportFormat, QueryState, SortDirection, SortKey, Summary, ViewMode
from stardash.infrastructure.exporter import export_filename, to_csv, to_json
from stardash.infrastructure.github_client import GitHubRestClient

logger = logging.getLogger(__name__)

app = typer.Typer(
    name="stardash",
    help="Analyze, filter and export a GitHub user's starred repositories.",
    add_completion=False,
)

BADGE_MARKS = {"gold": "(1st)", "silver": "(2nd)", "bronze": "(3rd)"}


def configure_logging(level: str) -> None:
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s [%(levelname)s] %(message)s",
        handlers=[
            logging.StreamHandler(sys.stdout)
        ]
    )


def print_summary(summary: Summary) -> None:
    typer.echo(f"Total repositories: {summary.total_repos:,}")
    typer.echo(f"Total stars:        {summary.total_stars:,}")
    typer.echo(f"Average stars/repo: {summary.avg_stars:,}")
    if summary.top_languages:
        typer.echo("Top languages: " + ", ".join(f"{l.language} ({l.count})" for l in summary.top_languages))
    if summary.top_topics:
        typer.echo("Popular topics: " + ", ".join(f"{t.topic} ({t.count})" for t in summary.top_topics))


def print_view(service: DashboardService) -> None:
    trends = service.state.trends
    for ranked in assign_ranks(service.view()):
        repo = ranked.repository
        mark = BADGE_MARKS.get(ranked.badge.value, "") if ranked.badge else ""
        line = f"{ranked.label:>5} {mark:<5} {repo.full_name}  *{repo.stars:,}  forks {repo.forks:,}  {repo.language}"
        trend = trends.get(repo.id)
        if trend is not None:
            line += f"  +{trend.count(30)}/30d {trend.trend.value}"
            if trend.momentum is not None:
                line += f" {trend.momentum.value} ({trend.momentum_percent:+d}%)"
            if trend.estimated:
                line += " (est.)"
        typer.echo(line)


async def run(
    service: DashboardService,
    username: str,
    top_n: int,
    estimate: bool,
) -> None:
    await service.load(username)
    if top_n:
        await service.fetch_trends(top_n)
    if estimate:
        service.estimate_trends()


@app.command()
def main(
    username: str = typer.Argument(..., help="GitHub username whose stars to analyze"),
    view: ViewMode = typer.Option(ViewMode.ALL, "--view", help="View preset"),
    language: Optional[str] = typer.Option(None, "--language", "-l", help="Keep only this language"),
    topic: Optional[List[str]] = typer.Option(None, "--topic", "-t", help="Canonical topic to keep (repeatable, 'others' allowed)"),
    sort: SortKey = typer.Option(SortKey.STARS, "--sort", help="Sort key, used with --view all"),
    direction: SortDirection = typer.Option(SortDirection.DESC, "--direction", help="Sort direction"),
    trends: bool = typer.Option(False, "--trends", help="Fetch star history for the most-starred repositories (needs a token)"),
    top: Optional[int] = typer.Option(None, "--top", min=1, help="How many repositories get a star-history fetch"),
    estimate: bool = typer.Option(False, "--estimate", help="Estimate growth for repositories without star history"),
    export: Optional[ExportFormat] = typer.Option(None, "--export", help="Export format"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Export file path"),
) -> None:
    try:
        settings = load_settings()
    except ValidationError as e:
        typer.echo(f"Invalid configuration: {e}", err=True)
        raise typer.Exit(code=1)
    configure_logging(settings.log_level)

    service = DashboardService(
        github_client=GitHubRestClient(token=settings.github_token),
        trend_delay=settings.trend_delay,
        trend_strategy=settings.trend_strategy,
    )
    service.state.query = QueryState(
        view_mode=view,
        language=language,
        topics=frozenset(topic or []),
        sort_key=sort,
        sort_direction=direction,
    )

    try:
        asyncio.run(run(service, username, (top or settings.trend_top_n) if trends else 0, estimate))
    except KeyboardInterrupt:
        logger.info("Interrupted by user. Exiting gracefully.")
        raise typer.Exit(code=130)
    except StarsAnalyzerException as e:
        typer.echo(str(e), err=True)
        raise typer.Exit(code=1)

    state = service.state
    if state.summary is not None:
        print_summary(state.summary)
    print_view(service)
    for notice in state.notices:
        typer.echo(notice, err=True)

    if export is not None:
        if export == ExportFormat.JSON:
            content = to_json(state.repositories, state.summary)
        else:
            content = to_csv(state.repositories)
        path = output or Path(export_filename(username.strip(), export.value))
        path.write_text(content, encoding="utf-8")
        logger.info(f"Exported {len(state.repositories)} repositories to {path}.")


if __name__ == "__main__":
    app()
