"""GitHub REST API v3 client, narrowed to the calls the fetchers need."""

import logging
import threading

import httpx

from issue2md.github.config import USER_AGENT, FetcherConfig
from issue2md.github.errors import DecodeError, FetchCanceledError, FetchError, PaginationError, StatusError
from issue2md.github.payloads import (
    P,
    RestIssue,
    RestIssueComment,
    RestPullRequest,
    RestReview,
    RestReviewComment,
    decode,
    decode_list,
)

logger = logging.getLogger(__name__)

PER_PAGE = 100
MAX_REST_PAGES = 1000


def next_page(response: httpx.Response) -> int | None:
    """Page number advertised by the ``Link: <...>; rel="next"`` header, if any."""
    link = response.links.get("next")
    if not link or not link.get("url"):
        return None
    page = httpx.URL(link["url"]).params.get("page")
    if page is None or not page.isdigit():
        return None
    return int(page)


class RESTClient:
    def __init__(self, config: FetcherConfig, http_client: httpx.Client | None = None) -> None:
        config = config.with_defaults()
        headers = {
            "Accept": "application/vnd.github+json",
            "X-GitHub-Api-Version": "2022-11-28",
            "User-Agent": USER_AGENT,
        }
        if config.token_value:
            headers["Authorization"] = f"Bearer {config.token_value}"
        self._client = http_client or httpx.Client(timeout=config.timeout)
        # Renamed repositories and transferred issues answer 301 with the new location.
        self._client.follow_redirects = True
        self._client.headers.update(headers)
        self._base_url = (config.rest_base_url or "").rstrip("/")

    def close(self) -> None:
        self._client.close()

    def _get(self, path: str, params: dict | None = None, cancel: threading.Event | None = None) -> httpx.Response:
        if cancel is not None and cancel.is_set():
            raise FetchCanceledError("rest request canceled")
        url = f"{self._base_url}{path}"
        logger.debug("GET %s params=%s", url, params)
        response = self._client.get(url, params=params or {})
        if not response.is_success:
            raise StatusError(response.status_code, response.text.strip())
        return response

    def _get_one(self, op: str, path: str, model: type[P], cancel: threading.Event | None) -> P:
        try:
            return decode(model, self._get(path, cancel=cancel).json(), path)
        except (httpx.HTTPError, StatusError, DecodeError, ValueError) as exc:
            raise FetchError(op, exc) from exc

    def _list_all(self, op: str, path: str, model: type[P], cancel: threading.Event | None) -> list[P]:
        """Walk every page of a list endpoint; callers never see partial pages."""
        items: list[P] = []
        page: int | None = 1
        try:
            for _ in range(MAX_REST_PAGES):
                response = self._get(path, params={"per_page": PER_PAGE, "page": page}, cancel=cancel)
                items.extend(decode_list(model, response.json(), path))
                page = next_page(response)
                if page is None:
                    return items
        except (httpx.HTTPError, StatusError, DecodeError, ValueError) as exc:
            raise FetchError(op, exc) from exc
        raise FetchError(op, PaginationError(f"rest pagination exceeded max page limit {MAX_REST_PAGES}"))

    def get_issue(self, owner: str, repo: str, number: int, cancel: threading.Event | None = None) -> RestIssue:
        return self._get_one("get issue", f"/repos/{owner}/{repo}/issues/{number}", RestIssue, cancel)

    def get_pull_request(
        self, owner: str, repo: str, number: int, cancel: threading.Event | None = None
    ) -> RestPullRequest:
        return self._get_one("get pull request", f"/repos/{owner}/{repo}/pulls/{number}", RestPullRequest, cancel)

    def list_issue_comments(
        self, owner: str, repo: str, number: int, cancel: threading.Event | None = None
    ) -> list[RestIssueComment]:
        path = f"/repos/{owner}/{repo}/issues/{number}/comments"
        return self._list_all("list issue comments", path, RestIssueComment, cancel)

    def list_pull_request_reviews(
        self, owner: str, repo: str, number: int, cancel: threading.Event | None = None
    ) -> list[RestReview]:
        path = f"/repos/{owner}/{repo}/pulls/{number}/reviews"
        return self._list_all("list pull request reviews", path, RestReview, cancel)

    def list_pull_request_comments(
        self, owner: str, repo: str, number: int, cancel: threading.Event | None = None
    ) -> list[RestReviewComment]:
        path = f"/repos/{owner}/{repo}/pulls/{number}/comments"
        return self._list_all("list pull request comments", path, RestReviewComment, cancel)
