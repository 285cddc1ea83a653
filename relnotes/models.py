"""Shared pydantic models: the contract between providers, the transform and the renderer."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict


class Reporter(BaseModel):
    model_config = ConfigDict(frozen=True)

    email: str
    display_name: str


class SlackUser(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    name: str  # Slack handle, rendered as @name


class ReleaseVersion(BaseModel):
    """A Jira fix version."""

    model_config = ConfigDict(frozen=True)

    id: str
    name: str
    project_key: str


class Ticket(BaseModel):
    model_config = ConfigDict(frozen=True)

    key: str  # PROJ-123
    issue_type: str
    status: str
    summary: str
    reporter: Reporter | None = None
    slack_user: SlackUser | None = None
    fix_versions: list[ReleaseVersion] = []
    commits: list["Commit"] = []  # filled in by the transform, first-seen order


class Commit(BaseModel):
    model_config = ConfigDict(frozen=True)

    revision: str  # abbreviated hash
    full_hash: str
    date: datetime
    author_name: str
    author_email: str
    summary: str
    body: str = ""
    tickets: list[Ticket] = []


Ticket.model_rebuild()


class OwnerGroup(BaseModel):
    """Pending tickets sharing a reporter email."""

    model_config = ConfigDict(frozen=True)

    email: str
    name: str
    slack_user: SlackUser | None = None
    tickets: list[Ticket] = []


class CommitSets(BaseModel):
    model_config = ConfigDict(frozen=True)

    all: list[Commit] = []
    with_tickets: list[Commit] = []
    without_tickets: list[Commit] = []


class TicketSets(BaseModel):
    model_config = ConfigDict(frozen=True)

    all: list[Ticket] = []  # sorted by issue type
    approved: list[Ticket] = []
    pending: list[Ticket] = []
    pending_by_owner: list[OwnerGroup] = []


class TransformOutput(BaseModel):
    """Result of transform_commit_logs, handed as-is to the renderer."""

    model_config = ConfigDict(frozen=True)

    commits: CommitSets
    tickets: TicketSets
