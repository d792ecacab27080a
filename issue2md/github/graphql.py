"""GitHub GraphQL API v4 client with guarded cursor pagination."""

import logging
import threading
from collections.abc import Callable, Iterator
from typing import Any, NamedTuple

import httpx

from issue2md.github.config import USER_AGENT, FetcherConfig
from issue2md.github.errors import (
    DecodeError,
    FetchCanceledError,
    FetchError,
    GraphQLError,
    PaginationError,
    StatusError,
)

logger = logging.getLogger(__name__)

MAX_GRAPHQL_PAGES = 1000
MAX_ERROR_BODY = 16 * 1024


class PageInfo(NamedTuple):
    has_next: bool
    end_cursor: str = ""


class GraphQLClient:
    def __init__(self, config: FetcherConfig, http_client: httpx.Client | None = None) -> None:
        config = config.with_defaults()
        self._endpoint = config.graphql_url or ""
        self._token = config.token_value
        self._client = http_client or httpx.Client(timeout=config.timeout)

    def close(self) -> None:
        self._client.close()

    def _headers(self) -> dict[str, str]:
        headers = {"Content-Type": "application/json", "User-Agent": USER_AGENT}
        if self._token:
            headers["Authorization"] = f"Bearer {self._token}"
        return headers

    def _post(self, document: str, variables: dict[str, Any], cancel: threading.Event | None) -> dict[str, Any]:
        if cancel is not None and cancel.is_set():
            raise FetchCanceledError("graphql request canceled")

        logger.debug("POST %s variables=%s", self._endpoint, variables)
        try:
            response = self._client.post(
                self._endpoint,
                json={"query": document, "variables": variables},
                headers=self._headers(),
            )
        except httpx.HTTPError as exc:
            raise FetchError("execute graphql request", exc) from exc

        if response.status_code >= 400:
            body = response.content[:MAX_ERROR_BODY].decode("utf-8", errors="replace").strip()
            raise FetchError("graphql status error", StatusError(response.status_code, body))

        try:
            envelope = response.json()
        except ValueError as exc:
            raise FetchError("decode graphql response", DecodeError(str(exc))) from exc
        if not isinstance(envelope, dict):
            raise FetchError("decode graphql response", DecodeError("response is not a JSON object"))

        errors = envelope.get("errors")
        if errors:
            first = errors[0] if isinstance(errors, list) else errors
            message = first.get("message", "") if isinstance(first, dict) else str(first)
            raise GraphQLError(f"graphql returned errors: {message}")

        data = envelope.get("data")
        return data if isinstance(data, dict) else {}

    def query(
        self, document: str, variables: dict[str, Any] | None = None, cancel: threading.Event | None = None
    ) -> dict[str, Any]:
        """Run a single-page query and return its ``data`` object."""
        return self._post(document, dict(variables or {}), cancel)

    def iter_pages(
        self,
        document: str,
        variables: dict[str, Any] | None,
        page_info: Callable[[dict[str, Any]], PageInfo],
        cancel: threading.Event | None = None,
    ) -> Iterator[dict[str, Any]]:
        """Yield each page's ``data`` object, following ``after`` cursors.

        ``page_info`` is applied to a page once the consumer has processed it,
        and decides whether another page is requested. The walk stops with a
        PaginationError on a page ceiling, an empty cursor while more pages
        are announced, or a cursor that did not move.
        """
        current = dict(variables or {})
        previous_cursor = ""
        for page_index in range(MAX_GRAPHQL_PAGES):
            page = self._post(document, current, cancel)
            yield page

            info = page_info(page)
            logger.debug("graphql page %d: has_next=%s cursor=%r", page_index + 1, info.has_next, info.end_cursor)
            if not info.has_next:
                return
            if not info.end_cursor:
                raise PaginationError("graphql pagination returned empty cursor while hasNextPage=true")
            if info.end_cursor == previous_cursor:
                raise PaginationError(f"graphql pagination cursor stalled at {info.end_cursor!r}")
            current["after"] = info.end_cursor
            previous_cursor = info.end_cursor

        raise PaginationError(f"graphql pagination exceeded max page limit {MAX_GRAPHQL_PAGES}")

    def query_paginated(
        self,
        document: str,
        variables: dict[str, Any] | None,
        handler: Callable[[dict[str, Any]], PageInfo],
        cancel: threading.Event | None = None,
    ) -> None:
        """Call ``handler`` once per page; it returns the page's PageInfo."""
        handled: list[PageInfo] = []
        for page in self.iter_pages(document, variables, lambda _page: handled[-1], cancel):
            try:
                handled.append(handler(page))
            except Exception as exc:
                raise FetchError("handle paginated graphql page", exc) from exc
