"""Error vocabulary shared by the GitHub clients, fetchers and callers.

Every layer wraps failures with ``raise FetchError(op, exc) from exc`` so the
original cause stays reachable through ``__cause__``; classification always
walks that chain rather than looking at the outermost exception.
"""

from collections.abc import Iterator
from contextlib import contextmanager


class StatusError(Exception):
    """A failed transport call with its numeric HTTP status."""

    def __init__(self, status_code: int, cause: BaseException | str) -> None:
        self.status_code = status_code
        self.cause = cause
        super().__init__(f"http status {status_code}: {cause}")
        if isinstance(cause, BaseException):
            self.__cause__ = cause


class FetchError(Exception):
    """Adds an operation name to a failure while keeping the cause chained."""

    def __init__(self, op: str, cause: BaseException) -> None:
        self.op = op
        super().__init__(f"{op}: {cause}")
        self.__cause__ = cause


class ResourceNotFoundError(Exception):
    """An expected node is missing from an otherwise successful response."""

    def __init__(self, message: str = "github resource not found") -> None:
        super().__init__(message)


class UnsupportedResourceTypeError(Exception):
    def __init__(self, kind: object) -> None:
        self.kind = kind
        super().__init__(f"unsupported github resource type {kind!r}")


class RetryExhaustedError(Exception):
    def __init__(self, last: BaseException) -> None:
        self.last = last
        super().__init__(f"retry exhausted: {last}")
        self.__cause__ = last


class FetchCanceledError(Exception):
    """The caller's cancel signal was set."""


class PaginationError(Exception):
    """Upstream pagination data cannot be followed safely."""


class GraphQLError(Exception):
    """A 2xx GraphQL response that carried an ``errors`` array."""


class DecodeError(Exception):
    """An upstream payload does not have the expected shape."""


def iter_error_chain(exc: BaseException | None) -> Iterator[BaseException]:
    """Yield ``exc`` and every exception reachable through its cause chain."""
    seen: set[int] = set()
    while exc is not None and id(exc) not in seen:
        seen.add(id(exc))
        yield exc
        exc = exc.__cause__ or exc.__context__


def find_in_chain(exc: BaseException | None, exc_type: type[BaseException]) -> BaseException | None:
    for item in iter_error_chain(exc):
        if isinstance(item, exc_type):
            return item
    return None


@contextmanager
def wrap_errors(op: str) -> Iterator[None]:
    """Re-raise any failure inside the block as ``FetchError(op, ...)``."""
    try:
        yield
    except Exception as exc:
        raise FetchError(op, exc) from exc
