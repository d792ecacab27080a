"""Bounded exponential backoff around a fallible GitHub operation."""

import logging
import threading
from collections.abc import Callable
from dataclasses import dataclass
from typing import TypeVar

import httpx

from issue2md.github.errors import (
    FetchCanceledError,
    RetryExhaustedError,
    StatusError,
    find_in_chain,
    iter_error_chain,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_MAX_RETRIES = 3
DEFAULT_INITIAL_BACKOFF = 2.0  # seconds

SleepFunc = Callable[[float, "threading.Event | None"], None]


def sleep_with_cancel(seconds: float, cancel: threading.Event | None) -> None:
    """Wait ``seconds``, returning early with FetchCanceledError if ``cancel`` is set."""
    signal = cancel or threading.Event()
    if signal.wait(seconds):
        raise FetchCanceledError("sleep before retry: canceled")


def looks_like_rate_limit(cause: object) -> bool:
    # Upstream wording is the only signal available; there is no typed code.
    return "rate limit" in str(cause).lower()


def is_retryable(exc: BaseException) -> bool:
    """Report whether ``exc`` is a transient failure worth another attempt.

    429, 403 with rate-limit wording, and 5xx statuses are transient, as are
    transport timeouts and connection-level network faults. 401, plain 403,
    404 and everything else are not.
    """
    for item in iter_error_chain(exc):
        if isinstance(item, StatusError):
            if item.status_code == 429:
                return True
            if item.status_code == 403 and looks_like_rate_limit(item.cause):
                return True
            return 500 <= item.status_code <= 599
        if isinstance(item, (httpx.TimeoutException, httpx.NetworkError)):
            return True
    return False


@dataclass(frozen=True)
class RetryPolicy:
    """Runs an operation up to ``max_retries + 1`` times, doubling the delay each round."""

    max_retries: int = DEFAULT_MAX_RETRIES
    initial_backoff: float = DEFAULT_INITIAL_BACKOFF
    classifier: Callable[[BaseException], bool] = is_retryable
    sleep: SleepFunc = sleep_with_cancel

    def __post_init__(self) -> None:
        if self.max_retries < 0:
            raise ValueError(f"invalid max_retries {self.max_retries}")

    def run(self, operation: Callable[[], T], cancel: threading.Event | None = None) -> T:
        backoff = self.initial_backoff if self.initial_backoff > 0 else DEFAULT_INITIAL_BACKOFF

        for attempt in range(self.max_retries + 1):
            if cancel is not None and cancel.is_set():
                raise FetchCanceledError("retry canceled")

            try:
                return operation()
            except Exception as exc:
                if find_in_chain(exc, FetchCanceledError) is not None:
                    raise
                if attempt == self.max_retries or not self.classifier(exc):
                    raise RetryExhaustedError(exc) from exc
                logger.warning(
                    "Transient error (attempt %d/%d): %s. Retrying in %.1f seconds",
                    attempt + 1,
                    self.max_retries + 1,
                    exc,
                    backoff,
                )

            self.sleep(backoff, cancel)
            backoff *= 2

        raise RuntimeError("retry loop exited unexpectedly")  # pragma: no cover
