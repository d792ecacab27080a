"""Shared pydantic models: the contract between fetchers and callers."""

from enum import Enum

from pydantic import BaseModel, ConfigDict


class ResourceKind(str, Enum):
    ISSUE = "issue"
    PULL_REQUEST = "pull_request"
    DISCUSSION = "discussion"


class ResourceRef(BaseModel):
    """One remote resource, as produced by the URL parser."""

    model_config = ConfigDict(frozen=True)

    owner: str
    repo: str
    number: int
    kind: ResourceKind
    url: str  # canonical https://github.com/... form


class FetchOptions(BaseModel):
    model_config = ConfigDict(frozen=True)

    # Off means the comment/reply/review-comment calls are never made.
    include_comments: bool = True


class Label(BaseModel):
    model_config = ConfigDict(frozen=True)

    name: str


class ReactionSummary(BaseModel):
    model_config = ConfigDict(frozen=True)

    plus_one: int = 0
    minus_one: int = 0
    laugh: int = 0
    hooray: int = 0
    confused: int = 0
    heart: int = 0
    rocket: int = 0
    eyes: int = 0
    total: int = 0


class Metadata(BaseModel):
    model_config = ConfigDict(frozen=True)

    kind: ResourceKind
    title: str = ""
    number: int = 0
    state: str = ""
    author: str = ""
    created_at: str = ""  # ISO-8601, kept verbatim
    updated_at: str = ""
    url: str = ""
    labels: list[Label] = []

    # pull requests
    merged: bool = False
    merged_at: str = ""
    review_count: int = 0

    # discussions
    category: str = ""
    is_answered: bool = False
    accepted_answer_id: str = ""
    accepted_answer_author: str = ""


class TimelineEvent(BaseModel):
    """Frozen, so two events with the same four fields hash and compare equal."""

    model_config = ConfigDict(frozen=True)

    event_type: str
    actor: str = ""
    created_at: str = ""
    details: str = ""


class CommentNode(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    author: str = ""
    body: str = ""
    created_at: str = ""
    updated_at: str = ""
    url: str = ""
    reactions: ReactionSummary = ReactionSummary()
    replies: list["CommentNode"] = []


class ReviewData(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    state: str = ""
    author: str = ""
    body: str = ""
    created_at: str = ""
    reactions: ReactionSummary = ReactionSummary()
    comments: list[CommentNode] = []  # inline comments of this review only


class IssueData(BaseModel):
    """Normalized result of one fetch, handed over to the caller."""

    model_config = ConfigDict(frozen=True)

    meta: Metadata
    description: str = ""
    reactions: ReactionSummary = ReactionSummary()
    timeline: list[TimelineEvent] = []
    reviews: list[ReviewData] = []
    thread: list[CommentNode] = []
