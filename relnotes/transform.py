"""Commit log to changelog transform.

Pure functions over already-annotated commits:

- build_ticket_registry: one Ticket per key, with the commits that reference it
- sort_tickets / partition_by_approval: canonical ticket order, approved vs pending
- group_by_owner: pending tickets grouped by reporter email
- transform_commit_logs: all of the above assembled into a TransformOutput
"""

from collections.abc import Iterable, Sequence

from relnotes.models import Commit, CommitSets, OwnerGroup, SlackUser, Ticket, TicketSets, TransformOutput


def build_ticket_registry(commits: Sequence[Commit]) -> dict[str, Ticket]:
    """Merge ticket references by key, attaching referencing commits in first-seen order.

    The first reference to a key is the canonical record; later references only
    contribute their commit. The mapping itself is ordered by first occurrence.
    """
    canonical: dict[str, Ticket] = {}
    referenced_by: dict[str, list[Commit]] = {}
    for commit in commits:
        for ticket in commit.tickets:
            if ticket.key not in canonical:
                canonical[ticket.key] = ticket
                referenced_by[ticket.key] = []
            referenced_by[ticket.key].append(commit)
    return {key: ticket.model_copy(update={"commits": referenced_by[key]}) for key, ticket in canonical.items()}


def _status_set(approved_statuses: str | Iterable[str]) -> frozenset[str]:
    # A lone status name is a one-element allow-list, not a set of characters
    if isinstance(approved_statuses, str):
        return frozenset([approved_statuses])
    return frozenset(approved_statuses)


def sort_tickets(tickets: Iterable[Ticket]) -> list[Ticket]:
    """Return tickets ordered by issue type name; ties keep their input order."""
    return sorted(tickets, key=lambda ticket: ticket.issue_type)


def partition_by_approval(
    tickets: Sequence[Ticket],
    approved_statuses: str | Iterable[str],
) -> tuple[list[Ticket], list[Ticket]]:
    """Split tickets into (approved, pending) by exact status-name membership."""
    statuses = _status_set(approved_statuses)
    approved = [ticket for ticket in tickets if ticket.status in statuses]
    pending = [ticket for ticket in tickets if ticket.status not in statuses]
    return approved, pending


def group_by_owner(pending: Sequence[Ticket]) -> list[OwnerGroup]:
    """Group pending tickets by reporter email, in first-seen-owner order.

    Name and Slack user come from the first ticket seen for each email; later
    tickets for the same email are only appended.
    """
    owners: dict[str, tuple[str, SlackUser | None]] = {}
    owned: dict[str, list[Ticket]] = {}
    for ticket in pending:
        if ticket.reporter is None:
            raise ValueError(f"Ticket {ticket.key} has no reporter; cannot group it by owner")
        email = ticket.reporter.email
        if email not in owners:
            owners[email] = (ticket.reporter.display_name, ticket.slack_user)
            owned[email] = []
        owned[email].append(ticket)

    # Owners stay in first-seen order
    return [
        OwnerGroup(email=email, name=name, slack_user=slack_user, tickets=owned[email])
        for email, (name, slack_user) in owners.items()
    ]


def transform_commit_logs(
    commits: Sequence[Commit],
    approved_statuses: str | Iterable[str],
) -> TransformOutput:
    """Build the changelog report structure from annotated commits."""
    commits = list(commits)
    registry = build_ticket_registry(commits)
    all_tickets = sort_tickets(registry.values())
    approved, pending = partition_by_approval(all_tickets, approved_statuses)

    return TransformOutput(
        commits=CommitSets(
            all=commits,
            with_tickets=[commit for commit in commits if commit.tickets],
            without_tickets=[commit for commit in commits if not commit.tickets],
        ),
        tickets=TicketSets(
            all=all_tickets,
            approved=approved,
            pending=pending,
            pending_by_owner=group_by_owner(pending),
        ),
    )
