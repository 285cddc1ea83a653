"""Tests for relnotes.transform."""

import pytest

from relnotes.models import Commit, SlackUser
from relnotes.transform import (
    build_ticket_registry,
    group_by_owner,
    partition_by_approval,
    sort_tickets,
    transform_commit_logs,
)
from tests.factories import make_commit, make_ticket


def _keys(tickets) -> list[str]:
    return [t.key for t in tickets]


class TestBuildTicketRegistry:
    def test_empty_input(self) -> None:
        assert build_ticket_registry([]) == {}

    def test_merges_duplicate_keys(self) -> None:
        ticket = make_ticket("PROJ-1", status="Done")
        commits = [make_commit("a", [ticket]), make_commit("b", [ticket])]

        registry = build_ticket_registry(commits)

        assert list(registry) == ["PROJ-1"]
        assert [c.revision for c in registry["PROJ-1"].commits] == ["a", "b"]

    def test_first_reference_is_canonical(self) -> None:
        first = make_ticket("PROJ-1", status="Open", name="Alice")
        later = make_ticket("PROJ-1", status="Done", name="Someone else")
        registry = build_ticket_registry([make_commit("a", [first]), make_commit("b", [later])])

        assert registry["PROJ-1"].status == "Open"
        assert registry["PROJ-1"].reporter.display_name == "Alice"

    def test_ordered_by_first_occurrence(self, sample_commits: list[Commit]) -> None:
        registry = build_ticket_registry(sample_commits)
        assert list(registry) == ["PROJ-1", "PROJ-2", "PROJ-3", "PROJ-4"]

    def test_does_not_mutate_input(self) -> None:
        ticket = make_ticket("PROJ-1")
        commit = make_commit("a", [ticket])
        build_ticket_registry([commit])
        assert ticket.commits == []
        assert commit.tickets[0].commits == []

    def test_ignores_preexisting_commits_on_references(self) -> None:
        stale = make_ticket("PROJ-1").model_copy(update={"commits": [make_commit("old")]})
        registry = build_ticket_registry([make_commit("a", [stale])])
        assert [c.revision for c in registry["PROJ-1"].commits] == ["a"]


class TestSortTickets:
    def test_sorts_by_issue_type(self) -> None:
        tickets = [
            make_ticket("PROJ-1", issue_type="Task"),
            make_ticket("PROJ-2", issue_type="Bug"),
            make_ticket("PROJ-3", issue_type="Story"),
        ]
        assert _keys(sort_tickets(tickets)) == ["PROJ-2", "PROJ-3", "PROJ-1"]

    def test_ties_keep_input_order(self) -> None:
        tickets = [
            make_ticket("PROJ-9", issue_type="Bug"),
            make_ticket("PROJ-1", issue_type="Bug"),
            make_ticket("PROJ-5", issue_type="Bug"),
        ]
        assert _keys(sort_tickets(tickets)) == ["PROJ-9", "PROJ-1", "PROJ-5"]


class TestPartitionByApproval:
    def test_exact_membership(self) -> None:
        tickets = [
            make_ticket("PROJ-1", status="Done"),
            make_ticket("PROJ-2", status="done"),
            make_ticket("PROJ-3", status="Done "),
            make_ticket("PROJ-4", status="Closed"),
        ]
        approved, pending = partition_by_approval(tickets, {"Done", "Closed"})
        assert _keys(approved) == ["PROJ-1", "PROJ-4"]
        assert _keys(pending) == ["PROJ-2", "PROJ-3"]

    def test_empty_set_means_all_pending(self) -> None:
        tickets = [make_ticket("PROJ-1", status="Done"), make_ticket("PROJ-2", status="Open")]
        approved, pending = partition_by_approval(tickets, set())
        assert approved == []
        assert _keys(pending) == ["PROJ-1", "PROJ-2"]

    def test_single_status_string(self) -> None:
        tickets = [make_ticket("PROJ-1", status="Done"), make_ticket("PROJ-2", status="D")]
        approved, pending = partition_by_approval(tickets, "Done")
        assert _keys(approved) == ["PROJ-1"]
        assert _keys(pending) == ["PROJ-2"]


class TestGroupByOwner:
    def test_empty(self) -> None:
        assert group_by_owner([]) == []

    def test_groups_in_first_seen_order(self) -> None:
        tickets = [
            make_ticket("PROJ-1", email="b@x.com", name="Bob"),
            make_ticket("PROJ-2", email="a@x.com", name="Alice"),
            make_ticket("PROJ-3", email="b@x.com", name="Bob"),
        ]
        groups = group_by_owner(tickets)
        assert [g.email for g in groups] == ["b@x.com", "a@x.com"]
        assert _keys(groups[0].tickets) == ["PROJ-1", "PROJ-3"]
        assert _keys(groups[1].tickets) == ["PROJ-2"]

    def test_first_seen_metadata_wins(self) -> None:
        slack = SlackUser(id="U1", name="alice")
        tickets = [
            make_ticket("PROJ-1", email="a@x.com", name="Alice", slack_user=slack),
            make_ticket("PROJ-2", email="a@x.com", name="Alice Renamed", slack_user=SlackUser(id="U2", name="other")),
        ]
        (group,) = group_by_owner(tickets)
        assert group.name == "Alice"
        assert group.slack_user == slack

    def test_missing_slack_user_not_backfilled(self) -> None:
        tickets = [
            make_ticket("PROJ-1", email="a@x.com"),
            make_ticket("PROJ-2", email="a@x.com", slack_user=SlackUser(id="U1", name="alice")),
        ]
        (group,) = group_by_owner(tickets)
        assert group.slack_user is None

    def test_missing_reporter_raises(self) -> None:
        with pytest.raises(ValueError, match="PROJ-7"):
            group_by_owner([make_ticket("PROJ-7", email=None)])


class TestTransformCommitLogs:
    def test_scenario_a_commit_without_tickets(self) -> None:
        result = transform_commit_logs([make_commit("a")], set())
        assert result.tickets.all == []
        assert result.tickets.pending_by_owner == []
        assert len(result.commits.without_tickets) == 1
        assert result.commits.with_tickets == []

    def test_scenario_b_shared_approved_ticket(self) -> None:
        ticket = make_ticket("PROJ-1", status="Done")
        result = transform_commit_logs([make_commit("a", [ticket]), make_commit("b", [ticket])], {"Done"})

        assert _keys(result.tickets.all) == ["PROJ-1"]
        assert len(result.tickets.all[0].commits) == 2
        assert _keys(result.tickets.approved) == ["PROJ-1"]
        assert result.tickets.pending == []

    def test_scenario_c_same_owner_grouped(self) -> None:
        proj2 = make_ticket("PROJ-2", status="Open", email="a@x.com", name="Alice")
        proj3 = make_ticket("PROJ-3", status="Open", email="a@x.com", name="Alice")
        result = transform_commit_logs([make_commit("a", [proj2]), make_commit("b", [proj3])], {"Done"})

        (group,) = result.tickets.pending_by_owner
        assert group.email == "a@x.com"
        assert group.name == "Alice"
        assert _keys(group.tickets) == ["PROJ-2", "PROJ-3"]

    def test_scenario_d_empty_approved_set(self, sample_commits: list[Commit]) -> None:
        result = transform_commit_logs(sample_commits, [])
        assert result.tickets.approved == []
        assert result.tickets.pending == result.tickets.all

    def test_empty_input(self) -> None:
        result = transform_commit_logs([], {"Done"})
        assert result.commits.all == []
        assert result.commits.with_tickets == []
        assert result.commits.without_tickets == []
        assert result.tickets.all == []
        assert result.tickets.approved == []
        assert result.tickets.pending == []
        assert result.tickets.pending_by_owner == []

    def test_commit_partition(self, sample_commits: list[Commit]) -> None:
        result = transform_commit_logs(sample_commits, {"Done"})
        commits = result.commits

        assert len(commits.with_tickets) + len(commits.without_tickets) == len(commits.all)
        assert [c.revision for c in commits.with_tickets] == ["aaa1111", "ccc3333", "ddd4444"]
        assert [c.revision for c in commits.without_tickets] == ["bbb2222"]
        assert commits.all == sample_commits

    def test_ticket_keys_unique_and_complete(self, sample_commits: list[Commit]) -> None:
        result = transform_commit_logs(sample_commits, {"Done"})
        keys = _keys(result.tickets.all)
        referenced = {t.key for c in sample_commits for t in c.tickets}

        assert len(keys) == len(set(keys))
        assert set(keys) == referenced

    def test_all_sorted_by_issue_type(self, sample_commits: list[Commit]) -> None:
        result = transform_commit_logs(sample_commits, {"Done"})
        assert _keys(result.tickets.all) == ["PROJ-2", "PROJ-4", "PROJ-1", "PROJ-3"]

    def test_approved_and_pending_partition_all(self, sample_commits: list[Commit]) -> None:
        result = transform_commit_logs(sample_commits, {"Done"})
        approved = set(_keys(result.tickets.approved))
        pending = set(_keys(result.tickets.pending))

        assert approved | pending == set(_keys(result.tickets.all))
        assert approved & pending == set()
        assert _keys(result.tickets.approved) == ["PROJ-1"]
        assert _keys(result.tickets.pending) == ["PROJ-2", "PROJ-4", "PROJ-3"]

    def test_owner_groups(self, sample_commits: list[Commit]) -> None:
        result = transform_commit_logs(sample_commits, {"Done"})
        groups = result.tickets.pending_by_owner

        assert [g.email for g in groups] == ["a@x.com", "b@x.com"]
        # PROJ-2 precedes PROJ-4 in the sorted order, so its reporter name wins
        assert groups[0].name == "Alice"
        assert _keys(groups[0].tickets) == ["PROJ-2", "PROJ-4"]
        assert _keys(groups[1].tickets) == ["PROJ-3"]
        grouped = [t.key for g in groups for t in g.tickets]
        assert sorted(grouped) == sorted(_keys(result.tickets.pending))

    def test_approved_tickets_have_no_owner_group(self, sample_commits: list[Commit]) -> None:
        result = transform_commit_logs(sample_commits, {"Done", "Open", "In Review"})
        assert result.tickets.pending_by_owner == []

    def test_approved_ticket_without_reporter_is_fine(self) -> None:
        ticket = make_ticket("PROJ-1", status="Done", email=None)
        result = transform_commit_logs([make_commit("a", [ticket])], {"Done"})
        assert _keys(result.tickets.approved) == ["PROJ-1"]

    def test_idempotent(self, sample_commits: list[Commit]) -> None:
        first = transform_commit_logs(sample_commits, {"Done"})
        second = transform_commit_logs(sample_commits, {"Done"})
        assert first == second

    def test_ticket_commits_attached(self, sample_commits: list[Commit]) -> None:
        result = transform_commit_logs(sample_commits, {"Done"})
        proj1 = next(t for t in result.tickets.all if t.key == "PROJ-1")
        assert [c.revision for c in proj1.commits] == ["aaa1111", "ccc3333"]
