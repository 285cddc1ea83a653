"""Jira REST API v2 provider."""

import httpx

from relnotes.models import ReleaseVersion, Reporter, Ticket
from relnotes.providers.base import TicketTracker
from relnotes.settings import RelnotesSettings

ISSUE_FIELDS = "summary,issuetype,status,reporter,fixVersions"


def _normalize_host(host: str) -> str:
    host = host.rstrip("/")
    if not host.startswith(("https://", "http://")):
        host = f"https://{host}"
    return host


class JiraProvider(TicketTracker):
    def __init__(self, settings: RelnotesSettings) -> None:
        if not (settings.jira_host and settings.jira_email and settings.jira_token):
            raise RuntimeError("jira_host, jira_email and jira_token are required")
        self._base_url = _normalize_host(settings.jira_host)
        self._auth = (settings.jira_email, settings.jira_token.get_secret_value())
        self._cache: dict[str, Ticket | None] = {}

    def _get_issue(self, key: str) -> dict | None:
        response = httpx.get(
            f"{self._base_url}/rest/api/2/issue/{key}",
            params={"fields": ISSUE_FIELDS},
            auth=self._auth,
            headers={"Accept": "application/json"},
            timeout=30,
        )
        if response.status_code == 404:
            return None
        if response.status_code == 401:
            raise RuntimeError("Jira API returned 401. Check jira_email and jira_token for the active profile.")
        response.raise_for_status()
        return response.json()

    def _ticket_from_node(self, node: dict) -> Ticket:
        fields = node["fields"]
        reporter = fields.get("reporter")
        project_key = node["key"].split("-", 1)[0]
        return Ticket(
            key=node["key"],
            issue_type=fields["issuetype"]["name"],
            status=fields["status"]["name"],
            summary=fields.get("summary") or "",
            reporter=Reporter(email=reporter["emailAddress"], display_name=reporter["displayName"])
            if reporter and reporter.get("emailAddress")
            else None,
            fix_versions=[
                ReleaseVersion(id=str(v["id"]), name=v["name"], project_key=project_key)
                for v in fields.get("fixVersions") or []
            ],
        )

    def find_ticket(self, key: str) -> Ticket | None:
        if key not in self._cache:
            node = self._get_issue(key)
            self._cache[key] = self._ticket_from_node(node) if node else None
        return self._cache[key]
