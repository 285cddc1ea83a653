"""relnotes CLI commands."""

import os
import uuid
from pathlib import Path
from typing import Annotated

import httpx
import tomlkit
import typer
from rich import print as rprint
from rich.markup import escape
from rich.table import Table

from relnotes.pipeline import annotate_commits, collect_release_versions, compile_ticket_pattern, generate_release_name
from relnotes.providers.base import ChatDirectory, Mailer, SourceControl, TicketTracker
from relnotes.providers.git import GitSource
from relnotes.providers.jira import JiraProvider
from relnotes.providers.ses import SesMailer
from relnotes.providers.slack import SlackDirectory
from relnotes.render import render_changelog, render_html
from relnotes.settings import CONFIG_PATH, RelnotesSettings, _list_profiles, get_settings
from relnotes.transform import transform_commit_logs

app = typer.Typer(help="relnotes: Jira-linked release changelogs from git history", no_args_is_help=True)

ProfileOpt = Annotated[
    str | None,
    typer.Option("--profile", "-p", help="Profile name from ~/.config/relnotes/config.toml"),
]


# ---------------------------------------------------------------------------
# Provider factories
# ---------------------------------------------------------------------------


def get_source(repo: Path) -> SourceControl:
    return GitSource(repo)


def get_tracker(settings: RelnotesSettings) -> TicketTracker:
    return JiraProvider(settings)


def get_directory(settings: RelnotesSettings) -> ChatDirectory | None:
    """Slack lookups are optional; without a token owners render as emails."""
    return SlackDirectory(settings) if settings.slack_token else None


def get_mailer(settings: RelnotesSettings) -> Mailer:
    return SesMailer(settings)


# ---------------------------------------------------------------------------
# GitHub Actions helpers
# ---------------------------------------------------------------------------


def _write_action_output(name: str, value: str) -> None:
    """Append a (possibly multi-line) step output when running under GitHub Actions."""
    output_path = os.environ.get("GITHUB_OUTPUT")
    if not output_path:
        return
    delimiter = f"ghadelimiter_{uuid.uuid4()}"
    with open(output_path, "a", encoding="utf-8") as fh:
        fh.write(f"{name}<<{delimiter}\n{value}\n{delimiter}\n")


def _check_mail_settings(settings: RelnotesSettings) -> None:
    missing = [
        name
        for name in ("email_to", "email_from", "aws_access_key", "aws_access_secret")
        if not getattr(settings, name)
    ]
    if missing:
        rprint(f"[red]Cannot send email, missing settings: {', '.join(missing)}[/red]")
        raise typer.Exit(1)


# ---------------------------------------------------------------------------
# Commands
# ---------------------------------------------------------------------------


@app.command("generate")
def generate(
    profile: ProfileOpt = None,
    repo: Annotated[Path, typer.Option("--repo", help="Path to the git repository")] = Path("."),
    range_from: Annotated[str | None, typer.Option("--from", help="Start of the commit range (exclusive)")] = None,
    range_to: Annotated[str | None, typer.Option("--to", help="End of the commit range")] = None,
    output: Annotated[
        Path | None,
        typer.Option("--output", "-o", help="Write to file instead of stdout"),
    ] = None,
    html: Annotated[bool, typer.Option("--html", help="Write HTML instead of Markdown")] = False,
    send: Annotated[bool, typer.Option("--send", help="Email the changelog via SES")] = False,
) -> None:
    """Build the changelog for a commit range and print, write or email it."""
    settings = get_settings(profile=profile)
    if send:
        _check_mail_settings(settings)

    start = settings.range_from if range_from is None else range_from
    end = settings.range_to if range_to is None else range_to

    # Any failure aborts before anything is written, exported or sent
    try:
        rprint(f"Getting range [cyan]{start}...{end}[/cyan] commit logs")
        commits = get_source(repo).get_commit_logs(start, end)
        rprint(f"Found {len(commits)} commit(s)")

        release = generate_release_name()
        rprint(f"Release: [bold]{release}[/bold]")

        rprint("Looking up Jira tickets from commit logs")
        commits = annotate_commits(
            commits,
            get_tracker(settings),
            compile_ticket_pattern(settings.ticket_id_pattern),
            directory=get_directory(settings),
            include_issue_types=settings.include_issue_types,
            exclude_issue_types=settings.exclude_issue_types,
        )

        data = transform_commit_logs(commits, settings.approval_statuses)
        rprint(
            f"{len(data.tickets.all)} ticket(s): {len(data.tickets.approved)} approved, "
            f"{len(data.tickets.pending)} pending"
        )
        message = render_changelog(
            data,
            base_url=settings.jira_base_url,
            release_versions=collect_release_versions(data.tickets.all),
            include_pending_approval_section=settings.include_pending_approval_section,
        )
        body = render_html(message) if (html or send) else ""
    except (RuntimeError, ValueError, httpx.HTTPError) as exc:
        rprint(f"[red]error:[/red] {escape(str(exc))}")
        raise typer.Exit(1) from exc

    _write_action_output("changelog_message", message)
    _write_action_output("release_name", release)

    if output:
        output.write_text(body if html else message)
        rprint(f"[green]✓[/green] Wrote changelog to {output}")
    else:
        typer.echo(body if html else message)

    if send:
        subject = f"{settings.app_name} Release Notes".strip()
        try:
            message_id = get_mailer(settings).send(settings.email_to, subject, body)
        except RuntimeError as exc:
            rprint(f"[red]error:[/red] {escape(str(exc))}")
            raise typer.Exit(1) from exc
        rprint(f"[green]✓[/green] Sent to {', '.join(settings.email_to)} (message id {message_id})")


@app.command("release-name")
def release_name() -> None:
    """Print the release name ($VERSION or a generated haiku name)."""
    typer.echo(generate_release_name(), nl=False)


@app.command("set-default")
def set_default(
    profile: Annotated[str, typer.Argument(help="Profile name to set as default")],
) -> None:
    """Set the default profile in ~/.config/relnotes/config.toml."""
    if not CONFIG_PATH.exists():
        CONFIG_PATH.parent.mkdir(parents=True, exist_ok=True)
        doc = tomlkit.document()
        doc.add("default_profile", profile)
        CONFIG_PATH.write_text(tomlkit.dumps(doc))
        rprint(f'[green]✓[/green] Default profile set to "{profile}" in {CONFIG_PATH}')
        return

    doc = tomlkit.load(CONFIG_PATH.open())
    profiles = _list_profiles(doc)
    if profile not in profiles:
        rprint(f"[red]Profile '{profile}' not found in {CONFIG_PATH}. Available: {profiles or '(none)'}[/red]")
        raise typer.Exit(1)

    doc["default_profile"] = profile
    CONFIG_PATH.write_text(tomlkit.dumps(doc))
    rprint(f'[green]✓[/green] Default profile set to "{profile}" in {CONFIG_PATH}')


@app.command("config-show")
def config_show(profile: ProfileOpt = None) -> None:
    """Show resolved configuration (masks credentials)."""
    # Settings errors print their own message and exit 1
    settings = get_settings(profile=profile)

    not_set = "[dim](not set)[/dim]"

    def mask(val: str | None) -> str:
        if val is None:
            return not_set
        if len(val) <= 5:
            return "***"
        return f"...{val[-5:]}"

    def secret(field: str) -> str:
        value = getattr(settings, field)
        return mask(value.get_secret_value() if value else None)

    def listing(values: list[str]) -> str:
        return ", ".join(values) if values else not_set

    table = Table(title="relnotes Configuration")
    table.add_column("Field", style="bold")
    table.add_column("Value")

    table.add_row("default_profile", settings.default_profile or not_set)
    table.add_row("jira_host", settings.jira_host or not_set)
    table.add_row("jira_email", settings.jira_email or not_set)
    table.add_row("jira_token", secret("jira_token"))
    table.add_row("jira_base_url", settings.jira_base_url or not_set)
    table.add_row("ticket_id_pattern", escape(settings.ticket_id_pattern))
    table.add_row("approval_statuses", listing(settings.approval_statuses))
    table.add_row("exclude_issue_types", listing(settings.exclude_issue_types))
    table.add_row("include_issue_types", listing(settings.include_issue_types))
    table.add_row("range", f"{settings.range_from or '(start)'}...{settings.range_to}")
    table.add_row("slack_token", secret("slack_token"))
    table.add_row("email_to", listing(settings.email_to))
    table.add_row("email_from", settings.email_from or not_set)
    table.add_row("aws_access_key", secret("aws_access_key"))
    table.add_row("aws_access_secret", secret("aws_access_secret"))
    table.add_row("aws_region", settings.aws_region)
    table.add_row("app_name", settings.app_name or not_set)
    table.add_row("include_pending_approval_section", str(settings.include_pending_approval_section))

    rprint(table)
