"""Pydantic shapes of the upstream REST and GraphQL payloads.

These only describe what GitHub sends; the fetchers translate them into
``issue2md.models``. Unknown fields are ignored and nullable fields default to
empty values so a missing ``body`` or a deleted (ghost) author never fails
decoding.
"""

from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, Field, ValidationError
from pydantic.alias_generators import to_camel

from issue2md.github.errors import DecodeError
from issue2md.models import Label, ReactionSummary

P = TypeVar("P", bound=BaseModel)


def decode(model: type[P], raw: Any, what: str) -> P:
    try:
        return model.model_validate(raw)
    except ValidationError as exc:
        raise DecodeError(f"decode {what}: {exc}") from exc


def decode_list(model: type[P], raw: Any, what: str) -> list[P]:
    if not isinstance(raw, list):
        raise DecodeError(f"decode {what}: expected a JSON array, got {type(raw).__name__}")
    return [decode(model, item, what) for item in raw]


# ---------------------------------------------------------------------------
# REST v3
# ---------------------------------------------------------------------------


class _RestPayload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True)


class RestUser(_RestPayload):
    login: str = ""


class RestLabel(_RestPayload):
    name: str = ""


class RestReactions(_RestPayload):
    plus_one: int = Field(0, alias="+1")
    minus_one: int = Field(0, alias="-1")
    laugh: int = 0
    hooray: int = 0
    confused: int = 0
    heart: int = 0
    rocket: int = 0
    eyes: int = 0
    total_count: int = 0

    def to_summary(self) -> ReactionSummary:
        return ReactionSummary(
            plus_one=self.plus_one,
            minus_one=self.minus_one,
            laugh=self.laugh,
            hooray=self.hooray,
            confused=self.confused,
            heart=self.heart,
            rocket=self.rocket,
            eyes=self.eyes,
            total=self.total_count,
        )


def rest_reactions(reactions: RestReactions | None) -> ReactionSummary:
    return reactions.to_summary() if reactions else ReactionSummary()


def rest_login(user: RestUser | None) -> str:
    return user.login if user else ""


class RestIssue(_RestPayload):
    number: int
    title: str = ""
    state: str = ""
    body: str | None = None
    user: RestUser | None = None
    created_at: str | None = None
    updated_at: str | None = None
    html_url: str = ""
    labels: list[RestLabel] = []
    reactions: RestReactions | None = None

    def mapped_labels(self) -> list[Label]:
        return [Label(name=label.name) for label in self.labels]


class RestPullRequest(RestIssue):
    merged: bool = False
    merged_at: str | None = None
    review_comments: int = 0


class RestIssueComment(_RestPayload):
    id: int
    body: str | None = None
    user: RestUser | None = None
    created_at: str | None = None
    updated_at: str | None = None
    html_url: str = ""
    reactions: RestReactions | None = None


class RestReviewComment(RestIssueComment):
    pull_request_review_id: int | None = None


class RestReview(_RestPayload):
    id: int
    state: str = ""
    body: str | None = None
    user: RestUser | None = None
    submitted_at: str | None = None


# ---------------------------------------------------------------------------
# GraphQL v4
# ---------------------------------------------------------------------------


class _GqlPayload(BaseModel):
    model_config = ConfigDict(extra="ignore", populate_by_name=True, alias_generator=to_camel)


class GqlActor(_GqlPayload):
    login: str = ""


def gql_login(actor: GqlActor | None) -> str:
    return actor.login if actor else ""


class GqlPageInfo(_GqlPayload):
    has_next_page: bool = False
    end_cursor: str | None = None


class GqlReactions(_GqlPayload):
    plus_one: int = 0
    heart: int = 0
    total: int = 0

    def to_summary(self) -> ReactionSummary:
        return ReactionSummary(plus_one=self.plus_one, heart=self.heart, total=self.total)


class GqlNamed(_GqlPayload):
    name: str = ""


class GqlMilestone(_GqlPayload):
    title: str = ""


class GqlTimelineNode(_GqlPayload):
    typename: str = Field("", alias="__typename")
    created_at: str = ""
    actor: GqlActor | None = None
    label: GqlNamed | None = None
    assignee: GqlActor | None = None
    milestone: GqlMilestone | None = None
    milestone_title: str = ""


class GqlTimelineConnection(_GqlPayload):
    nodes: list[GqlTimelineNode | None] = []
    page_info: GqlPageInfo = GqlPageInfo()


class GqlTimelineIssue(_GqlPayload):
    timeline_items: GqlTimelineConnection = GqlTimelineConnection()


class GqlTimelineRepository(_GqlPayload):
    issue: GqlTimelineIssue | None = None


class GqlTimelinePage(_GqlPayload):
    repository: GqlTimelineRepository | None = None


class GqlReply(_GqlPayload):
    id: str
    body: str = ""
    created_at: str = ""
    updated_at: str = ""
    url: str = ""
    author: GqlActor | None = None
    reactions: GqlReactions = GqlReactions()


class GqlReplyConnection(_GqlPayload):
    nodes: list[GqlReply | None] = []
    page_info: GqlPageInfo = GqlPageInfo()


class GqlDiscussionComment(GqlReply):
    replies: GqlReplyConnection = GqlReplyConnection()


class GqlCommentConnection(_GqlPayload):
    nodes: list[GqlDiscussionComment | None] = []
    page_info: GqlPageInfo = GqlPageInfo()


class GqlAnswer(_GqlPayload):
    id: str = ""
    author: GqlActor | None = None


class GqlDiscussion(_GqlPayload):
    number: int = 0
    title: str = ""
    body: str = ""
    url: str = ""
    created_at: str = ""
    updated_at: str = ""
    closed: bool = False
    author: GqlActor | None = None
    category: GqlNamed | None = None
    is_answered: bool | None = None
    answer: GqlAnswer | None = None
    reactions: GqlReactions = GqlReactions()
    comments: GqlCommentConnection = GqlCommentConnection()


class GqlDiscussionRepository(_GqlPayload):
    discussion: GqlDiscussion | None = None


class GqlDiscussionPage(_GqlPayload):
    repository: GqlDiscussionRepository | None = None


class GqlRepliesNode(_GqlPayload):
    replies: GqlReplyConnection = GqlReplyConnection()


class GqlRepliesPage(_GqlPayload):
    node: GqlRepliesNode | None = None
