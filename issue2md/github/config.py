"""Immutable client configuration for the GitHub fetcher."""

from pydantic import BaseModel, ConfigDict, SecretStr

from issue2md.github.retry import DEFAULT_INITIAL_BACKOFF, DEFAULT_MAX_RETRIES

DEFAULT_REST_BASE_URL = "https://api.github.com"
DEFAULT_GRAPHQL_URL = "https://api.github.com/graphql"
DEFAULT_TIMEOUT = 30.0
USER_AGENT = "issue2md/0.1.0"


class FetcherConfig(BaseModel):
    """Built once at startup and handed to the client constructors.

    ``None`` means "not configured"; :meth:`with_defaults` fills those in.
    """

    model_config = ConfigDict(frozen=True)

    token: SecretStr | None = None
    max_retries: int | None = None
    initial_backoff: float | None = None  # seconds
    rest_base_url: str | None = None
    graphql_url: str | None = None
    timeout: float | None = None

    def with_defaults(self) -> "FetcherConfig":
        return self.model_copy(
            update={
                "max_retries": DEFAULT_MAX_RETRIES if self.max_retries is None else self.max_retries,
                "initial_backoff": DEFAULT_INITIAL_BACKOFF if self.initial_backoff is None else self.initial_backoff,
                "rest_base_url": self.rest_base_url or DEFAULT_REST_BASE_URL,
                "graphql_url": self.graphql_url or DEFAULT_GRAPHQL_URL,
                "timeout": DEFAULT_TIMEOUT if self.timeout is None else self.timeout,
            }
        )

    @property
    def token_value(self) -> str:
        return self.token.get_secret_value() if self.token else ""
