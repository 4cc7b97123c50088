"""Repolens CLI - AI deployment analysis for repositories and project archives.

Usage:
    repolens analyze <owner/repo | github-url | project.zip> [options]
    repolens analyze octocat/Hello-World
    repolens analyze ./my-project.zip
"""

from __future__ import annotations

import json
import logging
from pathlib import Path

import click
from dotenv import load_dotenv
from rich.columns import Columns
from rich.console import Console
from rich.logging import RichHandler
from rich.panel import Panel
from rich.syntax import Syntax
from rich.table import Table

from . import __version__
from .actions import ActionResult, run_archive_action, run_repository_action
from .analysis import ProjectAnalyzer
from .config import Settings
from .github import GithubClient
from .model import GeminiClient
from .session import ProfileStore, Session

console = Console()


def _setup_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(message)s",
        datefmt="[%X]",
        handlers=[RichHandler(console=Console(stderr=True), show_path=False)],
        force=True,
    )


def _is_archive(target: str) -> bool:
    return target.lower().endswith(".zip") or Path(target).is_file()


def _load_session(settings: Settings) -> Session:
    return Session.load(ProfileStore(settings.home))


@click.group()
@click.version_option(version=__version__)
@click.option("--verbose", "-v", is_flag=True, help="Show debug logging")
@click.pass_context
def cli(ctx: click.Context, verbose: bool):
    """Repolens - AI deployment analysis for GitHub repositories and project archives.

    Looks up a repository (or reads a local .zip), then asks Gemini for a
    summary, key features, audience, stack rating and a GitHub Actions workflow.
    """
    load_dotenv()
    _setup_logging(verbose)
    ctx.obj = Settings.from_env()


@cli.command()
@click.argument("target")
@click.option("--model", "-m", default=None, help="Gemini model name")
@click.option("--output", "-O", default=None, type=click.Path(dir_okay=False), help="Write the result as JSON to this file")
@click.option("--json-only", is_flag=True, help="Output raw JSON to stdout (for piping)")
@click.option("--skip-ai", is_flag=True, help="Metadata only, no model call")
@click.pass_obj
def analyze(settings: Settings, target: str, model: str | None, output: str | None, json_only: bool, skip_ai: bool):
    """Analyze a GitHub repository or a local project archive.

    TARGET can be owner/repo shorthand, a GitHub URL, or a .zip file
    (archive analysis needs a Pro account, see `repolens upgrade`).

    Examples:

        repolens analyze octocat/Hello-World

        repolens analyze https://github.com/pallets/flask

        repolens analyze ./my-project.zip --output analysis.json
    """
    analyzer = None
    if not skip_ai:
        client = GeminiClient(
            api_key=settings.api_key,
            model=model or settings.model,
            base_url=settings.gemini_base_url,
        )
        analyzer = ProjectAnalyzer(client)
        if not json_only and not client.is_configured():
            console.print("[yellow]GEMINI_API_KEY is not set; the AI step will fail.[/]")

    status = console.status("Analyzing...") if not json_only else None
    if status:
        status.start()
    try:
        if _is_archive(target):
            result = run_archive_action(
                Path(target), None, _load_session(settings), analyzer
            )
        else:
            github = GithubClient(settings.github_api_url, settings.github_token)
            try:
                result = run_repository_action(target, github, analyzer)
            finally:
                github.close()
    finally:
        if status:
            status.stop()

    if output:
        Path(output).write_text(json.dumps(result.to_dict(), indent=2))

    if json_only:
        click.echo(json.dumps(result.to_dict(), indent=2))
    else:
        _print_result(result)
        if output:
            console.print(f"\n[green]Result written to {output}[/]")

    if not result.ok:
        raise click.ClickException(result.error)


@cli.command()
@click.argument("email")
@click.pass_obj
def login(settings: Settings, email: str):
    """Sign in with an email address (simulated, stored locally)."""
    session = _load_session(settings)
    try:
        user = session.login(email)
    except ValueError as e:
        raise click.ClickException(str(e))
    console.print(f"Signed in as [bold]{user.name}[/] ({user.email}), [cyan]{user.tier}[/] plan")


@cli.command()
@click.pass_obj
def logout(settings: Settings):
    """Sign out and forget the stored profile."""
    _load_session(settings).logout()
    console.print("Signed out")


@cli.command()
@click.pass_obj
def upgrade(settings: Settings):
    """Upgrade the signed-in account to Pro (simulated, no payment)."""
    session = _load_session(settings)
    if not session.is_authenticated:
        raise click.ClickException("Sign in first: repolens login <email>")
    user = session.upgrade()
    console.print(f"[bold purple]Pro plan active[/] for {user.email}")


@cli.command()
@click.pass_obj
def whoami(settings: Settings):
    """Show the signed-in user."""
    session = _load_session(settings)
    if session.user is None:
        console.print("Not signed in")
        return
    user = session.user
    console.print(f"{user.name} <{user.email}> [{'purple' if user.is_pro else 'dim'}]{user.tier.upper()} account[/]")


@cli.command()
@click.option("--host", default="127.0.0.1", help="Interface to bind")
@click.option("--port", "-p", default=8420, type=int, help="Port to serve on")
@click.option("--model", "-m", default=None, help="Gemini model name")
@click.pass_obj
def serve(settings: Settings, host: str, port: int, model: str | None):
    """Serve the analysis actions as a local JSON API."""
    from .serve import App, start_server

    client = GeminiClient(settings.api_key, model or settings.model, settings.gemini_base_url)
    app = App(
        session=_load_session(settings),
        github=GithubClient(settings.github_api_url, settings.github_token),
        analyzer=ProjectAnalyzer(client),
    )
    console.print(f"Repolens API on [bold]http://{host}:{port}[/] (Ctrl+C to stop)")
    start_server(app, host=host, port=port)


@cli.command()
def version():
    """Show version information."""
    console.print(f"repolens-cli v{__version__}")
    console.print("AI deployment analysis for repositories and project archives")


def _print_result(result: ActionResult) -> None:
    if result.context is not None:
        _print_context(result.context)
    if result.analysis is not None:
        _print_analysis(result.analysis)
    if result.error:
        console.print()
        console.print(Panel(result.error, title="Error", border_style="red"))


def _print_context(context) -> None:
    """Print project metadata."""
    table = Table(title="Project", show_header=False, border_style="dim")
    table.add_column("Key", style="bold")
    table.add_column("Value")

    data = context.data
    if context.kind == "github":
        table.add_row("Repository", data.full_name)
        table.add_row("Description", data.description or "No description provided")
        table.add_row("Language", data.language or "Unknown")
        table.add_row("Stars / Forks", f"{data.stargazers_count:,} / {data.forks_count:,}")
        if data.topics:
            table.add_row("Topics", ", ".join(data.topics))
        table.add_row("Updated", data.updated_at)
        table.add_row("URL", data.html_url)
    else:
        table.add_row("Project", data.name)
        table.add_row("Description", data.description or "")
        table.add_row("Files", f"{len(data.files):,}")
        if data.key_files:
            table.add_row("Key files", ", ".join(data.key_files))

    console.print(table)


def _print_analysis(analysis) -> None:
    """Print analysis panels and the generated workflow."""
    console.print()
    console.print(Panel(analysis.summary, title=f"Summary ({analysis.project_type})", border_style="cyan"))

    features = "\n".join(f"- {f}" for f in analysis.key_features)
    suggestions = "\n".join(f"{i}. {s}" for i, s in enumerate(analysis.suggestions, 1))
    console.print(Columns([
        Panel(features, title="Key Features", border_style="green"),
        Panel(suggestions, title="Suggestions", border_style="magenta"),
    ]))
    console.print(Panel(analysis.target_audience, title="Target Audience", border_style="dim"))
    console.print(Panel(analysis.tech_stack_rating, title="Tech Stack", border_style="dim"))

    console.print()
    console.print("[bold]GitHub Actions workflow:[/]")
    console.print(Syntax(analysis.github_actions_workflow, "yaml", theme="ansi_dark"))


if __name__ == "__main__":
    cli()
