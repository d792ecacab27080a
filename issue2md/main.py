"""issue2md command line interface."""

import logging
from pathlib import Path
from typing import Annotated

import typer
from pydantic import SecretStr, ValidationError
from rich import print as rprint
from rich.console import Console
from rich.logging import RichHandler
from rich.markup import escape
from rich.table import Table

from issue2md.github import (
    Fetcher,
    GitHubFetcher,
    is_auth_error,
    is_not_found_error,
    is_rate_limit_error,
)
from issue2md.github.discussion import accepted_answer
from issue2md.models import FetchOptions, IssueData, ResourceKind, ResourceRef
from issue2md.parser import InvalidURLError, parse_url
from issue2md.settings import CONFIG_PATH, ConfigError, Issue2mdSettings, get_settings

app = typer.Typer(help="issue2md: fetch GitHub issues, pull requests and discussions", no_args_is_help=True)
err_console = Console(stderr=True)

EXIT_OK = 0
EXIT_RUNTIME = 1
EXIT_INVALID_ARGUMENTS = 2
EXIT_AUTH = 3
EXIT_PARTIAL_SUCCESS = 4
EXIT_NOT_FOUND = 5
EXIT_RATE_LIMITED = 6

ProfileOpt = Annotated[
    str | None,
    typer.Option("--profile", "-p", help="Profile name from ~/.config/issue2md/config.toml"),
]
VerboseOpt = Annotated[bool, typer.Option("--verbose", "-v", help="Enable debug logging.")]
TokenOpt = Annotated[str | None, typer.Option("--token", help="GitHub token (overrides settings)")]


def configure_logging(verbose: bool = False) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format="%(message)s",
        handlers=[RichHandler(console=err_console, show_path=False)],
        force=True,
    )
    # httpx logs every request at INFO; keep that for --verbose only.
    logging.getLogger("httpx").setLevel(logging.DEBUG if verbose else logging.WARNING)


def exit_code_for(exc: BaseException) -> int:
    if isinstance(exc, (InvalidURLError, ConfigError, ValidationError)):
        return EXIT_INVALID_ARGUMENTS
    if is_not_found_error(exc):
        return EXIT_NOT_FOUND
    if is_rate_limit_error(exc):
        return EXIT_RATE_LIMITED
    if is_auth_error(exc):
        return EXIT_AUTH
    return EXIT_RUNTIME


# ---------------------------------------------------------------------------
# Fetcher factory
# ---------------------------------------------------------------------------


def load_settings(profile: str | None) -> Issue2mdSettings:
    try:
        return get_settings(profile=profile)
    except (ConfigError, ValidationError) as exc:
        err_console.print(f"[red]Invalid configuration: {escape(str(exc))}[/red]")
        raise typer.Exit(EXIT_INVALID_ARGUMENTS) from exc


def get_fetcher(settings: Issue2mdSettings, token: str | None = None) -> Fetcher:
    try:
        config = settings.to_fetcher_config()
        if token:
            config = config.model_copy(update={"token": SecretStr(token)})
        return GitHubFetcher(config)
    except (ConfigError, ValueError) as exc:
        err_console.print(f"[red]Invalid configuration: {escape(str(exc))}[/red]")
        raise typer.Exit(EXIT_INVALID_ARGUMENTS) from exc


def default_filename(ref: ResourceRef) -> str:
    return f"{ref.owner}-{ref.repo}-{ref.kind.value}-{ref.number}.json"


def _fetch_one(fetcher: Fetcher, url: str, opts: FetchOptions) -> tuple[ResourceRef, IssueData]:
    ref = parse_url(url)
    return ref, fetcher.fetch(ref, opts)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command("fetch")
def fetch_cmd(
    urls: Annotated[list[str], typer.Argument(help="GitHub issue, pull request or discussion URL(s)")],
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Output file (one URL) or directory (several URLs)"),
    ] = None,
    comments: Annotated[
        bool | None,
        typer.Option("--comments/--no-comments", help="Fetch comments, replies and review comments"),
    ] = None,
    token: TokenOpt = None,
    profile: ProfileOpt = None,
    verbose: VerboseOpt = False,
) -> None:
    """Fetch resources and write the normalized data as JSON."""
    configure_logging(verbose)
    settings = load_settings(profile)
    opts = FetchOptions(include_comments=settings.include_comments if comments is None else comments)
    fetcher = get_fetcher(settings, token)
    try:
        _run_fetch(fetcher, urls, opts, output)
    finally:
        fetcher.close()


def _run_fetch(fetcher: Fetcher, urls: list[str], opts: FetchOptions, output: Path | None) -> None:
    if len(urls) == 1:
        try:
            _, data = _fetch_one(fetcher, urls[0], opts)
        except Exception as exc:
            err_console.print(f"[red]✗ {escape(urls[0])}: {escape(str(exc))}[/red]")
            raise typer.Exit(exit_code_for(exc)) from exc
        rendered = data.model_dump_json(indent=2)
        if output:
            output.write_text(rendered + "\n")
            err_console.print(f"[green]✓[/green] Wrote {output}")
        else:
            typer.echo(rendered)
        return

    # Batch: one status line per URL, failures do not stop the run.
    out_dir = output or Path(".")
    out_dir.mkdir(parents=True, exist_ok=True)
    failed = 0
    for url in urls:
        try:
            ref, data = _fetch_one(fetcher, url, opts)
        except Exception as exc:
            failed += 1
            rprint(f"[red]FAILED[/red] {escape(url)}: {escape(str(exc))}")
            continue
        path = out_dir / default_filename(ref)
        path.write_text(data.model_dump_json(indent=2) + "\n")
        rprint(f"[green]OK[/green] {escape(url)} → {path}")

    rprint(f"{len(urls) - failed} succeeded, {failed} failed")
    if failed:
        raise typer.Exit(EXIT_PARTIAL_SUCCESS)


@app.command("show")
def show_cmd(
    url: Annotated[str, typer.Argument(help="GitHub issue, pull request or discussion URL")],
    comments: Annotated[
        bool | None,
        typer.Option("--comments/--no-comments", help="Fetch comments, replies and review comments"),
    ] = None,
    token: TokenOpt = None,
    profile: ProfileOpt = None,
    verbose: VerboseOpt = False,
) -> None:
    """Show a summary table for one resource."""
    configure_logging(verbose)
    settings = load_settings(profile)
    opts = FetchOptions(include_comments=settings.include_comments if comments is None else comments)
    fetcher = get_fetcher(settings, token)
    try:
        _, data = _fetch_one(fetcher, url, opts)
    except Exception as exc:
        err_console.print(f"[red]✗ {escape(url)}: {escape(str(exc))}[/red]")
        raise typer.Exit(exit_code_for(exc)) from exc
    finally:
        fetcher.close()

    meta = data.meta
    table = Table(title=f"#{meta.number}: {escape(meta.title)}")
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("Type", meta.kind.value)
    table.add_row("State", meta.state)
    table.add_row("Author", meta.author or "-")
    table.add_row("Created", meta.created_at)
    table.add_row("Updated", meta.updated_at)
    table.add_row("Labels", escape(", ".join(label.name for label in meta.labels)) or "none")
    table.add_row("Reactions", str(data.reactions.total))

    if meta.kind == ResourceKind.PULL_REQUEST:
        table.add_row("Merged", f"yes ({meta.merged_at})" if meta.merged else "no")
        table.add_row("Review comments", str(meta.review_count))
        table.add_row("Reviews", str(len(data.reviews)))
    if meta.kind == ResourceKind.DISCUSSION:
        table.add_row("Category", meta.category or "-")
        table.add_row("Answered", "yes" if meta.is_answered else "no")
        answer = accepted_answer(data)
        if answer is not None:
            table.add_row("Accepted answer", escape(f"{answer.author}: {answer.body}"))
    if meta.kind == ResourceKind.ISSUE:
        table.add_row("Timeline events", str(len(data.timeline)))

    table.add_row("Comments", str(len(data.thread)) if opts.include_comments else "omitted")
    table.add_row("URL", meta.url)
    rprint(table)


@app.command("config-show")
def config_show(profile: ProfileOpt = None) -> None:
    """Show resolved settings (token masked)."""
    settings = load_settings(profile)

    def _mask(secret: SecretStr | None) -> str:
        if not secret:
            return "(not set)"
        value = secret.get_secret_value()
        return value[:4] + "…" + value[-4:] if len(value) > 8 else "****"

    table = Table(title=f"Settings ({profile or 'default'})")
    table.add_column("Key", style="cyan")
    table.add_column("Value")

    table.add_row("config file", str(CONFIG_PATH))
    table.add_row("github_auth", settings.github_auth)
    table.add_row("github_token", _mask(settings.github_token))
    table.add_row("rest_base_url", settings.rest_base_url or "(default)")
    table.add_row("graphql_url", settings.graphql_url or "(default)")
    table.add_row("max_retries", "(default)" if settings.max_retries is None else str(settings.max_retries))
    table.add_row(
        "initial_backoff", "(default)" if settings.initial_backoff is None else f"{settings.initial_backoff}s"
    )
    table.add_row("include_comments", str(settings.include_comments))
    rprint(table)
