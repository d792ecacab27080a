from issue2md.github.base import Fetcher
from issue2md.github.classify import (
    http_status_for,
    is_auth_error,
    is_not_found_error,
    is_rate_limit_error,
    status_code,
)
from issue2md.github.config import FetcherConfig
from issue2md.github.errors import (
    FetchCanceledError,
    ResourceNotFoundError,
    RetryExhaustedError,
    StatusError,
    UnsupportedResourceTypeError,
)
from issue2md.github.fetcher import GitHubFetcher

__all__ = [
    "FetchCanceledError",
    "Fetcher",
    "FetcherConfig",
    "GitHubFetcher",
    "ResourceNotFoundError",
    "RetryExhaustedError",
    "StatusError",
    "UnsupportedResourceTypeError",
    "http_status_for",
    "is_auth_error",
    "is_not_found_error",
    "is_rate_limit_error",
    "status_code",
]
