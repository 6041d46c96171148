#!/usr/bin/env python3
"""
Command-line interface for searching job boards.

Uses typer for clean CLI with subcommands.
"""

from pathlib import Path
from typing import List, Optional

import typer
from loguru import logger

from jobtrawl.contexts.scraping import (
    AllSourcesFailed,
    ScrapingError,
    SearchParams,
    load_source_profiles,
    search,
    setup_logger,
)
from jobtrawl.contexts.scraping.profiles import CONFIG_PATH
from jobtrawl.contexts.scraping.requests import RequestsPageFetcher
from jobtrawl.utils import jobs_to_df, merge_configs, relative_to_project

app = typer.Typer(
    add_completion=False,
    help="jobtrawl job board search",
)


@app.command("run")
def run_command(
    query: str = typer.Argument(..., help="Keywords to search for"),
    location: str = typer.Option("", "--location", "-l", help="Free-text location"),
    sources: Optional[List[str]] = typer.Option(
        None,
        "--source",
        "-s",
        help="Source(s) to search (e.g., hellowork). If none specified, searches all sources.",
    ),
    limit: int = typer.Option(50, "--limit", "-n", help="Maximum jobs per source", min=0),
    offset: int = typer.Option(0, "--offset", "-p", help="First listing page (0-based)", min=0),
    single_page: bool = typer.Option(False, "--single-page", help="Read only one listing page per source"),
    output: Optional[Path] = typer.Option(None, "--output", "-o", help="Write jobs to this CSV file"),
    quiet: bool = typer.Option(False, "--quiet", "-q", help="Hide progress bars"),
    fetch_overrides: Optional[List[Path]] = typer.Option(
        None,
        "--fetch-config",
        help="YAML file(s) merged over fetch.yaml, later files win",
    ),
):
    """
    Search job boards and print a per-source summary.

    Examples:

        # Search every configured board
        $ run_search.py run "développeur python" -l Lyon

        # Search two boards, 10 jobs each, save to CSV
        $ run_search.py run "data engineer" -s linkedin -s indeed -n 10 -o jobs.csv
    """
    profiles = load_source_profiles()

    if sources:
        invalid = [s for s in sources if s not in profiles]
        if invalid:
            typer.secho(
                f"Error: Unknown source(s): {', '.join(invalid)}",
                fg=typer.colors.RED,
                err=True,
            )
            typer.echo(f"\nAvailable sources: {', '.join(sorted(profiles))}", err=True)
            raise typer.Exit(code=1)

    log_file = setup_logger()
    logger.info(f"Logging to: {relative_to_project(log_file)}")

    fetch_config = merge_configs([CONFIG_PATH / "fetch.yaml", *(fetch_overrides or [])])
    params = SearchParams(
        query=query,
        location=location,
        limit=limit,
        offset=offset,
        single_page=single_page,
        sources=tuple(sources) if sources else "all",
    )

    try:
        result = search(
            params,
            profiles=profiles,
            fetcher_factory=lambda profile: RequestsPageFetcher.from_config(fetch_config),
            max_workers=fetch_config.get("max_workers"),
            show_progress=not quiet,
        )
    except AllSourcesFailed as e:
        for name, report in e.reports.items():
            typer.secho(f"  {name}: {report['error_type']}: {report['error']}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    except ScrapingError as e:
        typer.secho(f"Error: {type(e).__name__}: {e}", fg=typer.colors.RED, err=True)
        raise typer.Exit(code=1)
    except KeyboardInterrupt:
        typer.secho("\n\nInterrupted by user", fg=typer.colors.YELLOW, err=True)
        raise typer.Exit(code=130)

    for name, report in result.reports.items():
        if report["status"] == "success":
            typer.echo(f"  {name}: {report['jobs_found']} jobs ({report['time_elapsed']:.1f}s)")
        else:
            typer.secho(f"  {name}: {report['error_type']}: {report['error']}", fg=typer.colors.RED)

    typer.secho(f"Total: {len(result.jobs)} jobs", bold=True)

    if output is not None:
        jobs_to_df(result.jobs).to_csv(output, index=False)
        typer.echo(f"Saved to {relative_to_project(output)}")

    if result.failures:
        raise typer.Exit(code=1)


@app.command("list")
def list_command():
    """List all configured sources."""
    profiles = load_source_profiles()
    typer.secho(f"Available sources ({len(profiles)}):", fg=typer.colors.BLUE, bold=True)
    for name, profile in profiles.items():
        typer.echo(f"  • {name} ({profile.base_url})")


if __name__ == "__main__":
    app()
