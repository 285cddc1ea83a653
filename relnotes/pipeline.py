"""Boundary steps around the transform: ticket-key extraction, commit annotation, release naming."""

import os
import re
from collections.abc import Iterable, Sequence

from haikunator import Haikunator

from relnotes.models import Commit, ReleaseVersion, Ticket
from relnotes.providers.base import ChatDirectory, TicketTracker

_REGEX_FLAGS = {"i": re.IGNORECASE, "m": re.MULTILINE, "s": re.DOTALL, "x": re.VERBOSE}


def compile_ticket_pattern(value: str) -> re.Pattern[str]:
    """Compile a ticket id pattern given either bare (`[A-Z]+-\\d+`) or as `/[a-z]+-\\d+/i`.

    The `g`, `u` and `y` flags of the slash form mean nothing to re and are ignored.
    """
    match = re.fullmatch(r"/(.+)/([a-z]*)", value, flags=re.DOTALL)
    if not match:
        return re.compile(value)
    flags = 0
    for flag in match.group(2):
        flags |= _REGEX_FLAGS.get(flag, 0)
    return re.compile(match.group(1), flags)


def find_ticket_keys(text: str, pattern: re.Pattern[str]) -> list[str]:
    """Return distinct ticket keys in text, in order of appearance."""
    if not text:
        return []
    return list(dict.fromkeys(m.group(0) for m in pattern.finditer(text)))


def _issue_type_allowed(ticket: Ticket, include: Sequence[str], exclude: Sequence[str]) -> bool:
    if include and ticket.issue_type not in include:
        return False
    return ticket.issue_type not in exclude


def annotate_commits(
    commits: Iterable[Commit],
    tracker: TicketTracker,
    pattern: re.Pattern[str],
    directory: ChatDirectory | None = None,
    include_issue_types: Sequence[str] = (),
    exclude_issue_types: Sequence[str] = (),
) -> list[Commit]:
    """Attach the tickets each commit message references.

    Keys the tracker does not know, and tickets of filtered issue types, are
    dropped. With a directory, each ticket's reporter is resolved to a Slack user.
    """
    annotated = []
    for commit in commits:
        tickets = []
        for key in find_ticket_keys(f"{commit.summary}\n{commit.body}", pattern):
            ticket = tracker.find_ticket(key)
            if ticket is None or not _issue_type_allowed(ticket, include_issue_types, exclude_issue_types):
                continue
            if directory and ticket.reporter and ticket.slack_user is None:
                ticket = ticket.model_copy(update={"slack_user": directory.find_user(ticket.reporter.email)})
            tickets.append(ticket)
        annotated.append(commit.model_copy(update={"tickets": tickets}))
    return annotated


def collect_release_versions(tickets: Iterable[Ticket]) -> list[ReleaseVersion]:
    """Distinct fix versions across tickets, first-seen order."""
    versions: dict[tuple[str, str], ReleaseVersion] = {}
    for ticket in tickets:
        for version in ticket.fix_versions:
            versions.setdefault((version.project_key, version.id), version)
    return list(versions.values())


def generate_release_name() -> str:
    """Use $VERSION when set, otherwise a random haiku name like `autumn-waterfall-1234`."""
    return os.environ.get("VERSION") or Haikunator().haikunate()
