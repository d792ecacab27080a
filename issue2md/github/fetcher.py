"""Dispatch a resource reference to its fetcher, under the retry policy."""

import logging
import threading
from collections.abc import Callable
from types import TracebackType

import httpx

from issue2md.github.base import Fetcher
from issue2md.github.config import FetcherConfig
from issue2md.github.discussion import fetch_discussion
from issue2md.github.errors import FetchError, UnsupportedResourceTypeError
from issue2md.github.graphql import GraphQLClient
from issue2md.github.issue import fetch_issue
from issue2md.github.pull_request import fetch_pull_request
from issue2md.github.rest import RESTClient
from issue2md.github.retry import RetryPolicy, SleepFunc, sleep_with_cancel
from issue2md.models import FetchOptions, IssueData, ResourceKind, ResourceRef

logger = logging.getLogger(__name__)

ResourceFetch = Callable[
    [RESTClient, GraphQLClient, ResourceRef, FetchOptions, "threading.Event | None"],
    IssueData,
]


class GitHubFetcher(Fetcher):
    """Fetches one issue, pull request or discussion per call.

    The clients are built once from ``config``; nothing else is shared between
    calls, so every ``fetch`` owns its own buffers.
    """

    def __init__(
        self,
        config: FetcherConfig | None = None,
        *,
        http_client: httpx.Client | None = None,
        sleep: SleepFunc = sleep_with_cancel,
    ) -> None:
        config = (config or FetcherConfig()).with_defaults()
        if config.max_retries is not None and config.max_retries < 0:
            raise ValueError(f"invalid max_retries {config.max_retries}")
        if config.initial_backoff is not None and config.initial_backoff < 0:
            raise ValueError(f"invalid initial_backoff {config.initial_backoff}")

        self._config = config
        self._policy = RetryPolicy(
            max_retries=config.max_retries or 0,
            initial_backoff=config.initial_backoff or 0,
            sleep=sleep,
        )
        self.rest = RESTClient(config, http_client)
        self.gql = GraphQLClient(config, http_client)

    def __enter__(self) -> "GitHubFetcher":
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc_val: BaseException | None,
        exc_tb: TracebackType | None,
    ) -> None:
        self.close()

    def close(self) -> None:
        self.rest.close()
        self.gql.close()

    def fetch(
        self,
        ref: ResourceRef,
        opts: FetchOptions,
        cancel: threading.Event | None = None,
    ) -> IssueData:
        match ref.kind:
            case ResourceKind.ISSUE:
                return self._run("fetch issue", fetch_issue, ref, opts, cancel)
            case ResourceKind.PULL_REQUEST:
                return self._run("fetch pull request", fetch_pull_request, ref, opts, cancel)
            case ResourceKind.DISCUSSION:
                return self._run("fetch discussion", fetch_discussion, ref, opts, cancel)
            case _:
                raise FetchError(f"dispatch resource type {ref.kind!r}", UnsupportedResourceTypeError(ref.kind))

    def _run(
        self,
        op: str,
        fetch: ResourceFetch,
        ref: ResourceRef,
        opts: FetchOptions,
        cancel: threading.Event | None,
    ) -> IssueData:
        logger.debug("%s %s/%s#%d", op, ref.owner, ref.repo, ref.number)
        try:
            return self._policy.run(lambda: fetch(self.rest, self.gql, ref, opts, cancel), cancel)
        except Exception as exc:
            raise FetchError(op, exc) from exc
