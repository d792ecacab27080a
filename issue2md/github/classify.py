"""Predicates callers use to turn a fetch failure into an exit code or HTTP status.

Classification never mutates the error; it walks the ``__cause__`` chain so
the root cause is found however many layers wrapped it.
"""

from issue2md.github.errors import ResourceNotFoundError, StatusError, find_in_chain
from issue2md.github.retry import looks_like_rate_limit

_AUTH_WORDING = ("status 401", "status 403", "unauthorized", "forbidden")


def status_code(exc: BaseException | None) -> int | None:
    """HTTP status of the first StatusError in the chain, if any."""
    found = find_in_chain(exc, StatusError)
    return found.status_code if isinstance(found, StatusError) else None


def is_rate_limit_error(exc: BaseException | None) -> bool:
    if exc is None:
        return False
    found = find_in_chain(exc, StatusError)
    if isinstance(found, StatusError):
        if found.status_code == 429:
            return True
        if found.status_code == 403 and looks_like_rate_limit(found.cause):
            return True
    return looks_like_rate_limit(exc)


def is_auth_error(exc: BaseException | None) -> bool:
    if exc is None or is_rate_limit_error(exc):
        return False
    status = status_code(exc)
    if status is not None:
        return status in (401, 403)
    text = str(exc).lower()
    return any(word in text for word in _AUTH_WORDING)


def is_not_found_error(exc: BaseException | None) -> bool:
    return find_in_chain(exc, ResourceNotFoundError) is not None


def http_status_for(exc: BaseException | None) -> int:
    """Status an HTTP front end should answer with for a failed fetch."""
    if exc is None:
        return 200
    if is_not_found_error(exc):
        return 404
    if is_rate_limit_error(exc):
        return 429
    if is_auth_error(exc):
        return 403 if status_code(exc) == 403 or "forbidden" in str(exc).lower() else 401
    if status_code(exc) == 404:
        return 404
    return 502
