"""Slack Web API provider for resolving reporters to Slack users."""

import httpx

from relnotes.models import SlackUser
from relnotes.providers.base import ChatDirectory
from relnotes.settings import RelnotesSettings

BASE_URL = "https://slack.com/api"


class SlackDirectory(ChatDirectory):
    def __init__(self, settings: RelnotesSettings) -> None:
        if not settings.slack_token:
            raise RuntimeError("slack_token is required")
        self._headers = {"Authorization": f"Bearer {settings.slack_token.get_secret_value()}"}
        self._cache: dict[str, SlackUser | None] = {}

    def _lookup(self, email: str) -> SlackUser | None:
        response = httpx.get(
            f"{BASE_URL}/users.lookupByEmail",
            params={"email": email},
            headers=self._headers,
            timeout=30,
        )
        response.raise_for_status()
        data = response.json()
        if not data.get("ok"):
            if data.get("error") == "users_not_found":
                return None
            raise RuntimeError(f"Slack API error: {data.get('error')}")
        user = data["user"]
        return SlackUser(id=user["id"], name=user["name"])

    def find_user(self, email: str) -> SlackUser | None:
        if email not in self._cache:
            self._cache[email] = self._lookup(email)
        return self._cache[email]
