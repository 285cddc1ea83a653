"""Shared test fixtures."""

import pytest

from relnotes.models import Commit, Ticket
from tests.factories import make_commit, make_ticket


@pytest.fixture
def done_ticket() -> Ticket:
    return make_ticket("PROJ-1", status="Done", issue_type="Story")


@pytest.fixture
def sample_commits() -> list[Commit]:
    """Four commits: a shared ticket, two owners, one commit without tickets."""
    proj1 = make_ticket("PROJ-1", status="Done", issue_type="Story")
    proj2 = make_ticket("PROJ-2", status="Open", issue_type="Bug", email="a@x.com", name="Alice")
    proj3 = make_ticket("PROJ-3", status="In Review", issue_type="Task", email="b@x.com", name="Bob")
    proj4 = make_ticket("PROJ-4", status="Open", issue_type="Bug", email="a@x.com", name="Alice A.")
    return [
        make_commit("aaa1111", [proj1, proj2]),
        make_commit("bbb2222", []),
        make_commit("ccc3333", [proj3, proj1]),
        make_commit("ddd4444", [proj4]),
    ]
