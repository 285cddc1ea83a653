"""Settings resolution with profile precedence and env overrides."""

import os
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path
from typing import Annotated

import tomlkit
import typer
from pydantic import SecretStr, field_validator
from pydantic_settings import BaseSettings, NoDecode, PydanticBaseSettingsSource, SettingsConfigDict

CONFIG_PATH = Path.home() / ".config" / "relnotes" / "config.toml"

DEFAULT_TICKET_ID_PATTERN = r"[A-Z][A-Z0-9]+-\d+"

CsvList = Annotated[list[str], NoDecode]


class RelnotesSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="RELNOTES_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    default_profile: str | None = None

    # Jira
    jira_host: str | None = None
    jira_email: str | None = None
    jira_token: SecretStr | None = None
    jira_base_url: str = ""  # browse links, e.g. https://acme.atlassian.net
    ticket_id_pattern: str = DEFAULT_TICKET_ID_PATTERN
    approval_statuses: CsvList = []
    exclude_issue_types: CsvList = []
    include_issue_types: CsvList = []

    # Source control
    range_from: str = ""
    range_to: str = "HEAD"

    # Slack (optional, resolves reporters to @handles)
    slack_token: SecretStr | None = None

    # Email via SES
    email_to: CsvList = []
    email_from: str | None = None
    aws_access_key: SecretStr | None = None
    aws_access_secret: SecretStr | None = None
    aws_region: str = "us-east-1"
    app_name: str = ""

    include_pending_approval_section: bool = False

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        # Profile values arrive as init kwargs; env and .env must win over them
        return env_settings, dotenv_settings, init_settings, file_secret_settings

    @field_validator("approval_statuses", "exclude_issue_types", "include_issue_types", "email_to", mode="before")
    @classmethod
    def _split_csv(cls, value: object) -> object:
        # "Done,Closed" from env/.env; TOML arrays pass through untouched
        if isinstance(value, str):
            return [item for item in value.split(",") if item != ""]
        return value


@lru_cache(maxsize=1)
def _load_toml() -> tomlkit.TOMLDocument:
    """Load ~/.config/relnotes/config.toml, returning empty document if missing."""
    if not CONFIG_PATH.exists():
        return tomlkit.document()
    return tomlkit.load(CONFIG_PATH.open())


def _list_profiles(config: Mapping) -> list[str]:
    # tomlkit Table implements MutableMapping but not dict, so check Mapping
    return [k for k, v in config.items() if isinstance(v, Mapping)]


def get_settings(profile: str | None = None) -> RelnotesSettings:
    """Resolve the active profile and return a fully populated RelnotesSettings.

    Precedence (highest to lowest):
    1. profile argument (--profile CLI flag)
    2. RELNOTES_DEFAULT_PROFILE env var
    3. default_profile key in ~/.config/relnotes/config.toml
    4. First profile defined in ~/.config/relnotes/config.toml
    """
    toml_config = _load_toml()

    active = (
        profile
        or os.environ.get("RELNOTES_DEFAULT_PROFILE")
        or toml_config.get("default_profile")
        or ((_profiles := _list_profiles(toml_config)) and _profiles[0] or None)
    )

    profile_defaults: dict = {}
    if active:
        if active in toml_config and isinstance(toml_config[active], Mapping):
            # unwrap() turns tomlkit items (Bool, Array, ...) into plain Python values
            profile_defaults = toml_config[active].unwrap()
        elif active not in toml_config:
            profiles = _list_profiles(toml_config)
            typer.echo(f"Profile '{active}' not found in {CONFIG_PATH}. Available: {profiles or '(none)'}")
            raise typer.Exit(1)

    # env vars + .env always override profile defaults
    settings = RelnotesSettings(**profile_defaults)

    missing = [name for name in ("jira_host", "jira_email", "jira_token") if not getattr(settings, name)]
    if missing:
        env_names = ", ".join(f"RELNOTES_{name.upper()}" for name in missing)
        typer.echo(
            f"Missing Jira settings: {', '.join(missing)}. Set {env_names} or "
            f"add them to the [{active or 'profile'}] section of {CONFIG_PATH}"
        )
        raise typer.Exit(1)

    return settings
