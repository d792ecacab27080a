"""Settings resolution with named profile support."""

import os
import subprocess
from collections.abc import Mapping
from functools import lru_cache
from pathlib import Path

import tomlkit
from pydantic import AliasChoices, Field, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict

from issue2md.github.config import FetcherConfig

CONFIG_PATH = Path.home() / ".config" / "issue2md" / "config.toml"


class ConfigError(RuntimeError):
    """Settings could not be resolved into a usable configuration."""


class Issue2mdSettings(BaseSettings):
    model_config = SettingsConfigDict(
        env_prefix="ISSUE2MD_",
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # GitHub
    github_token: SecretStr | None = Field(
        None,
        validation_alias=AliasChoices("github_token", "ISSUE2MD_GITHUB_TOKEN", "GITHUB_TOKEN"),
    )
    github_auth: str = "token"  # "token" | "gh-cli"
    rest_base_url: str | None = None
    graphql_url: str | None = None

    # Fetch behavior
    max_retries: int | None = None
    initial_backoff: float | None = None  # seconds
    timeout: float | None = None
    include_comments: bool = True

    def to_fetcher_config(self) -> FetcherConfig:
        return FetcherConfig(
            token=resolve_token(self),
            max_retries=self.max_retries,
            initial_backoff=self.initial_backoff,
            rest_base_url=self.rest_base_url,
            graphql_url=self.graphql_url,
            timeout=self.timeout,
        )


def resolve_token(settings: Issue2mdSettings) -> SecretStr | None:
    """Token from settings, or from ``gh auth token`` when github_auth is "gh-cli".

    A missing token is allowed: public resources can be fetched anonymously.
    """
    if settings.github_auth == "gh-cli":
        try:
            result = subprocess.run(
                ["gh", "auth", "token"],
                capture_output=True,
                text=True,
            )
        except FileNotFoundError as exc:
            raise ConfigError('gh CLI not found. Install it or set github_auth = "token"') from exc
        if result.returncode != 0:
            raise ConfigError("gh auth token failed. Run: gh auth login")
        return SecretStr(result.stdout.strip())
    return settings.github_token


@lru_cache(maxsize=1)
def _load_toml() -> tomlkit.TOMLDocument:
    """Load ~/.config/issue2md/config.toml, returning empty document if missing."""
    if not CONFIG_PATH.exists():
        return tomlkit.document()
    with CONFIG_PATH.open() as fh:
        return tomlkit.load(fh)


def _list_profiles(config: Mapping) -> list[str]:
    # tomlkit Table implements MutableMapping but not dict, so check Mapping
    return [k for k, v in config.items() if isinstance(v, Mapping)]


def get_settings(profile: str | None = None) -> Issue2mdSettings:
    """Resolve the active profile and return a fully populated Issue2mdSettings.

    Profile precedence (highest to lowest):
    1. profile argument (--profile CLI flag)
    2. ISSUE2MD_PROFILE env var
    3. default_profile key in ~/.config/issue2md/config.toml
    4. none: top-level keys of the config file only

    Environment variables always override file values.
    """
    toml_config = _load_toml().unwrap()
    base = {k: v for k, v in toml_config.items() if not isinstance(v, Mapping) and k != "default_profile"}

    active = profile or os.environ.get("ISSUE2MD_PROFILE") or toml_config.get("default_profile")
    if active:
        if active not in toml_config or not isinstance(toml_config[active], Mapping):
            profiles = _list_profiles(toml_config)
            raise ConfigError(f"Profile '{active}' not found in {CONFIG_PATH}. Available: {profiles or '(none)'}")
        base.update(dict(toml_config[active]))

    # Drop file values that env vars or .env supply; init kwargs would beat them otherwise.
    from_env = _env_fields()
    defaults = {k: v for k, v in base.items() if k not in from_env}
    return Issue2mdSettings(**defaults)


def _env_fields() -> set[str]:
    """Names of the fields the environment or the .env file sets."""
    return set(Issue2mdSettings().model_fields_set)
