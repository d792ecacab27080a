"""Issue fetcher: REST envelope and comments, GraphQL timeline."""

import threading

from issue2md.github.errors import ResourceNotFoundError, wrap_errors
from issue2md.github.graphql import GraphQLClient, PageInfo
from issue2md.github.payloads import (
    GqlTimelineNode,
    GqlTimelinePage,
    RestIssueComment,
    decode,
    gql_login,
    rest_login,
    rest_reactions,
)
from issue2md.github.rest import RESTClient
from issue2md.models import (
    CommentNode,
    FetchOptions,
    IssueData,
    Metadata,
    ResourceKind,
    ResourceRef,
    TimelineEvent,
)

_ISSUE_TIMELINE = """
query IssueTimeline($owner: String!, $repo: String!, $number: Int!, $after: String) {
  repository(owner: $owner, name: $repo) {
    issue(number: $number) {
      timelineItems(first: 100, after: $after) {
        nodes {
          __typename
          ... on OpenedEvent { createdAt actor { login } }
          ... on ClosedEvent { createdAt actor { login } }
          ... on ReopenedEvent { createdAt actor { login } }
          ... on LabeledEvent { createdAt actor { login } label { name } }
          ... on AssignedEvent {
            createdAt
            actor { login }
            assignee {
              ... on User { login }
              ... on Bot { login }
              ... on Mannequin { login }
            }
          }
          ... on MilestonedEvent { createdAt actor { login } milestoneTitle }
          ... on LockedEvent { createdAt actor { login } }
        }
        pageInfo { hasNextPage endCursor }
      }
    }
  }
}
"""


def map_timeline_node(node: GqlTimelineNode) -> TimelineEvent | None:
    """Translate one timeline item; unsupported item types map to None."""
    actor = gql_login(node.actor)
    match node.typename:
        case "OpenedEvent":
            event_type, details = "opened", ""
        case "ClosedEvent":
            event_type, details = "closed", ""
        case "ReopenedEvent":
            event_type, details = "reopened", ""
        case "LabeledEvent":
            event_type, details = "labeled", node.label.name if node.label else ""
        case "AssignedEvent":
            event_type, details = "assigned", gql_login(node.assignee) or actor
        case "MilestonedEvent":
            milestone = node.milestone.title if node.milestone else ""
            event_type, details = "milestoned", node.milestone_title or milestone
        case "LockedEvent":
            event_type, details = "locked", ""
        case _:
            return None
    return TimelineEvent(event_type=event_type, actor=actor, created_at=node.created_at, details=details)


def dedupe_timeline(events: list[TimelineEvent]) -> list[TimelineEvent]:
    """Drop value-equal repeats, keeping the first occurrence in place."""
    return list(dict.fromkeys(events))


def map_issue_comment(comment: RestIssueComment) -> CommentNode:
    return CommentNode(
        id=str(comment.id),
        author=rest_login(comment.user),
        body=comment.body or "",
        created_at=comment.created_at or "",
        updated_at=comment.updated_at or "",
        url=comment.html_url,
        reactions=rest_reactions(comment.reactions),
    )


def fetch_issue_timeline(
    gql: GraphQLClient, ref: ResourceRef, cancel: threading.Event | None = None
) -> list[TimelineEvent]:
    events: list[TimelineEvent] = []

    def handle(raw: dict) -> PageInfo:
        page = decode(GqlTimelinePage, raw, "issue timeline page payload")
        issue = page.repository.issue if page.repository else None
        if issue is None:
            raise ResourceNotFoundError("issue timeline missing issue node")
        for node in issue.timeline_items.nodes:
            # Items the token cannot see come back as null.
            if node is None:
                continue
            event = map_timeline_node(node)
            if event is not None:
                events.append(event)
        cursor = issue.timeline_items.page_info
        return PageInfo(cursor.has_next_page, cursor.end_cursor or "")

    variables = {"owner": ref.owner, "repo": ref.repo, "number": ref.number}
    with wrap_errors("query timeline items"):
        gql.query_paginated(_ISSUE_TIMELINE, variables, handle, cancel)
    return events


def fetch_issue(
    rest: RESTClient,
    gql: GraphQLClient,
    ref: ResourceRef,
    opts: FetchOptions,
    cancel: threading.Event | None = None,
) -> IssueData:
    with wrap_errors("fetch issue resource"):
        issue = rest.get_issue(ref.owner, ref.repo, ref.number, cancel)

    meta = Metadata(
        kind=ResourceKind.ISSUE,
        title=issue.title,
        number=issue.number,
        state=issue.state,
        author=rest_login(issue.user),
        created_at=issue.created_at or "",
        updated_at=issue.updated_at or "",
        url=issue.html_url,
        labels=issue.mapped_labels(),
    )

    # The REST envelope always knows who opened the issue; the GraphQL
    # timeline may or may not repeat it.
    timeline = [TimelineEvent(event_type="opened", actor=meta.author, created_at=meta.created_at)]
    with wrap_errors("fetch issue timeline"):
        timeline.extend(fetch_issue_timeline(gql, ref, cancel))

    thread: list[CommentNode] = []
    if opts.include_comments:
        with wrap_errors("fetch issue comments"):
            comments = rest.list_issue_comments(ref.owner, ref.repo, ref.number, cancel)
        thread = [map_issue_comment(comment) for comment in comments]

    return IssueData(
        meta=meta,
        description=issue.body or "",
        reactions=rest_reactions(issue.reactions),
        timeline=dedupe_timeline(timeline),
        thread=thread,
    )
