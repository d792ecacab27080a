"""Shared test fixtures."""

import threading

import pytest

from issue2md.github.config import FetcherConfig
from issue2md.github.fetcher import GitHubFetcher
from issue2md.models import ResourceKind, ResourceRef


class RecordingSleep:
    """Stands in for the backoff sleep; records delays instead of waiting."""

    def __init__(self) -> None:
        self.calls: list[float] = []

    def __call__(self, seconds: float, cancel: threading.Event | None) -> None:
        self.calls.append(seconds)


@pytest.fixture
def sleeper() -> RecordingSleep:
    return RecordingSleep()


@pytest.fixture
def config() -> FetcherConfig:
    return FetcherConfig(token="ghp_test", max_retries=2, initial_backoff=1.0)  # type: ignore[arg-type]


@pytest.fixture
def fetcher(config: FetcherConfig, sleeper: RecordingSleep):
    with GitHubFetcher(config, sleep=sleeper) as f:
        yield f


@pytest.fixture
def issue_ref() -> ResourceRef:
    return ResourceRef(
        owner="octo",
        repo="hello",
        number=1,
        kind=ResourceKind.ISSUE,
        url="https://github.com/octo/hello/issues/1",
    )


@pytest.fixture
def pr_ref() -> ResourceRef:
    return ResourceRef(
        owner="octo",
        repo="hello",
        number=7,
        kind=ResourceKind.PULL_REQUEST,
        url="https://github.com/octo/hello/pull/7",
    )


@pytest.fixture
def discussion_ref() -> ResourceRef:
    return ResourceRef(
        owner="octo",
        repo="hello",
        number=3,
        kind=ResourceKind.DISCUSSION,
        url="https://github.com/octo/hello/discussions/3",
    )
