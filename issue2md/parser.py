"""Turn a github.com URL into a ResourceRef."""

from urllib.parse import urlparse

from issue2md.models import ResourceKind, ResourceRef

_KINDS = {
    "issues": ResourceKind.ISSUE,
    "pull": ResourceKind.PULL_REQUEST,
    "discussions": ResourceKind.DISCUSSION,
}


class InvalidURLError(ValueError):
    """The input is not a supported GitHub issue, pull request or discussion URL."""


def parse_url(raw_url: str) -> ResourceRef:
    """Parse ``https://github.com/{owner}/{repo}/{issues|pull|discussions}/{number}``.

    Query strings and fragments are ignored; the returned ``url`` is the
    canonical form without them.
    """
    parsed = urlparse(raw_url.strip())
    host = (parsed.hostname or "").lower()
    if host not in ("github.com", "www.github.com"):
        raise InvalidURLError(f"invalid GitHub URL {raw_url!r}: unsupported host {host!r}")

    path = parsed.path.strip("/")
    segments = path.split("/") if path else []
    if len(segments) != 4:
        raise InvalidURLError(f"invalid GitHub URL {raw_url!r}: path must be /owner/repo/kind/number")

    owner, repo, kind_segment, number_text = segments
    if not owner or not repo:
        raise InvalidURLError(f"invalid GitHub URL {raw_url!r}: owner/repo must not be empty")
    if not number_text.isdigit() or int(number_text) <= 0:
        raise InvalidURLError(f"invalid GitHub URL {raw_url!r}: resource number must be a positive integer")
    kind = _KINDS.get(kind_segment)
    if kind is None:
        raise InvalidURLError(f"invalid GitHub URL {raw_url!r}: unsupported resource kind {kind_segment!r}")

    number = int(number_text)
    return ResourceRef(
        owner=owner,
        repo=repo,
        number=number,
        kind=kind,
        url=f"https://github.com/{owner}/{repo}/{kind_segment}/{number}",
    )
