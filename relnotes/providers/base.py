"""Abstract base classes for the collaborators around the transform."""

from abc import ABC, abstractmethod

from relnotes.models import Commit, SlackUser, Ticket


class SourceControl(ABC):
    @abstractmethod
    def get_commit_logs(self, range_from: str, range_to: str) -> list[Commit]: ...


class TicketTracker(ABC):
    @abstractmethod
    def find_ticket(self, key: str) -> Ticket | None:
        """Return the ticket for key, or None if the tracker has no such ticket."""


class ChatDirectory(ABC):
    @abstractmethod
    def find_user(self, email: str) -> SlackUser | None: ...


class Mailer(ABC):
    @abstractmethod
    def send(self, recipients: list[str], subject: str, html: str) -> str:
        """Send an HTML email and return the provider's message id."""
