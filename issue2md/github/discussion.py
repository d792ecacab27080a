"""Discussion fetcher and accepted-answer lookup (GraphQL only)."""

import threading

from issue2md.github.errors import ResourceNotFoundError, wrap_errors
from issue2md.github.graphql import GraphQLClient, PageInfo
from issue2md.github.payloads import (
    GqlDiscussion,
    GqlDiscussionComment,
    GqlDiscussionPage,
    GqlRepliesPage,
    GqlReply,
    decode,
    gql_login,
)
from issue2md.github.rest import RESTClient
from issue2md.models import CommentNode, FetchOptions, IssueData, Metadata, ResourceKind, ResourceRef

_DISCUSSION_FIELDS = """
      number
      title
      body
      url
      createdAt
      updatedAt
      closed
      author { login }
      category { name }
      isAnswered
      answer { id author { login } }
      reactions { plusOne heart total }
"""

_COMMENT_FIELDS = """
          id
          body
          createdAt
          updatedAt
          url
          author { login }
          reactions { plusOne heart total }
"""

_DISCUSSION_WITH_COMMENTS = f"""
query DiscussionPage($owner: String!, $repo: String!, $number: Int!, $after: String) {{
  repository(owner: $owner, name: $repo) {{
    discussion(number: $number) {{
{_DISCUSSION_FIELDS}
      comments(first: 50, after: $after) {{
        nodes {{
{_COMMENT_FIELDS}
          replies(first: 50) {{
            nodes {{
{_COMMENT_FIELDS}
            }}
            pageInfo {{ hasNextPage endCursor }}
          }}
        }}
        pageInfo {{ hasNextPage endCursor }}
      }}
    }}
  }}
}}
"""

_DISCUSSION_ONLY = f"""
query DiscussionPage($owner: String!, $repo: String!, $number: Int!) {{
  repository(owner: $owner, name: $repo) {{
    discussion(number: $number) {{
{_DISCUSSION_FIELDS}
    }}
  }}
}}
"""

_DISCUSSION_REPLIES = f"""
query DiscussionReplies($commentID: ID!, $after: String) {{
  node(id: $commentID) {{
    ... on DiscussionComment {{
      replies(first: 50, after: $after) {{
        nodes {{
{_COMMENT_FIELDS}
        }}
        pageInfo {{ hasNextPage endCursor }}
      }}
    }}
  }}
}}
"""


def discussion_query(include_comments: bool) -> str:
    return _DISCUSSION_WITH_COMMENTS if include_comments else _DISCUSSION_ONLY


def map_reply(reply: GqlReply, replies: list[CommentNode] | None = None) -> CommentNode:
    return CommentNode(
        id=reply.id,
        author=gql_login(reply.author),
        body=reply.body,
        created_at=reply.created_at,
        updated_at=reply.updated_at,
        url=reply.url,
        reactions=reply.reactions.to_summary(),
        replies=replies or [],
    )


def discussion_metadata(discussion: GqlDiscussion) -> Metadata:
    answer = discussion.answer
    return Metadata(
        kind=ResourceKind.DISCUSSION,
        title=discussion.title,
        number=discussion.number,
        state="closed" if discussion.closed else "open",
        author=gql_login(discussion.author),
        created_at=discussion.created_at,
        updated_at=discussion.updated_at,
        url=discussion.url,
        category=discussion.category.name if discussion.category else "",
        is_answered=bool(discussion.is_answered),
        accepted_answer_id=answer.id if answer else "",
        accepted_answer_author=gql_login(answer.author) if answer else "",
    )


def fetch_discussion_replies(
    gql: GraphQLClient, comment_id: str, after: str, cancel: threading.Event | None = None
) -> list[CommentNode]:
    """Exhaust the replies of one comment, starting after its inline page."""
    replies: list[CommentNode] = []

    def handle(raw: dict) -> PageInfo:
        page = decode(GqlRepliesPage, raw, "discussion replies payload")
        if page.node is None:
            raise ResourceNotFoundError(f"discussion reply node missing for comment {comment_id!r}")
        replies.extend(map_reply(reply) for reply in page.node.replies.nodes if reply is not None)
        cursor = page.node.replies.page_info
        return PageInfo(cursor.has_next_page, cursor.end_cursor or "")

    with wrap_errors("query discussion replies"):
        gql.query_paginated(_DISCUSSION_REPLIES, {"commentID": comment_id, "after": after}, handle, cancel)
    return replies


def map_discussion_comment(
    gql: GraphQLClient, comment: GqlDiscussionComment, cancel: threading.Event | None = None
) -> CommentNode:
    replies = [map_reply(reply) for reply in comment.replies.nodes if reply is not None]
    cursor = comment.replies.page_info
    if cursor.has_next_page:
        with wrap_errors("fetch additional discussion replies"):
            replies.extend(fetch_discussion_replies(gql, comment.id, cursor.end_cursor or "", cancel))
    return map_reply(comment, replies)


def fetch_discussion(
    rest: RESTClient,
    gql: GraphQLClient,
    ref: ResourceRef,
    opts: FetchOptions,
    cancel: threading.Event | None = None,
) -> IssueData:
    variables = {"owner": ref.owner, "repo": ref.repo, "number": ref.number}
    first: GqlDiscussion | None = None
    thread: list[CommentNode] = []

    def handle(raw: dict) -> PageInfo:
        nonlocal first
        page = decode(GqlDiscussionPage, raw, "discussion page payload")
        discussion = page.repository.discussion if page.repository else None
        if discussion is None:
            raise ResourceNotFoundError("discussion node missing")
        if first is None:
            first = discussion
        if not opts.include_comments:
            return PageInfo(has_next=False)

        for node in discussion.comments.nodes:
            if node is None:
                continue
            with wrap_errors(f"map discussion comment {node.id!r}"):
                thread.append(map_discussion_comment(gql, node, cancel))
        cursor = discussion.comments.page_info
        return PageInfo(cursor.has_next_page, cursor.end_cursor or "")

    with wrap_errors("fetch discussion pages"):
        gql.query_paginated(discussion_query(opts.include_comments), variables, handle, cancel)
    if first is None:
        raise ResourceNotFoundError("discussion node missing")

    return IssueData(
        meta=discussion_metadata(first),
        description=first.body,
        reactions=first.reactions.to_summary(),
        thread=thread,
    )


def _find_by_id(nodes: list[CommentNode], node_id: str) -> CommentNode | None:
    for node in nodes:
        if node.id == node_id:
            return node
        found = _find_by_id(node.replies, node_id)
        if found is not None:
            return found
    return None


def _find_by_author(nodes: list[CommentNode], author: str) -> CommentNode | None:
    for node in nodes:
        if node.author == author:
            return node
        found = _find_by_author(node.replies, author)
        if found is not None:
            return found
    return None


def resolve_accepted_answer(
    thread: list[CommentNode], accepted_id: str = "", accepted_author: str = ""
) -> CommentNode | None:
    """Locate the accepted answer in a discussion thread.

    An exact id match anywhere in the reply tree wins. The author is only
    consulted when no id is known or the id is not in the thread, since one
    author may have posted several comments; the first match in depth-first
    order is returned.
    """
    if accepted_id:
        found = _find_by_id(thread, accepted_id)
        if found is not None:
            return found
    if accepted_author:
        return _find_by_author(thread, accepted_author)
    return None


def accepted_answer(data: IssueData) -> CommentNode | None:
    if not data.meta.is_answered:
        return None
    return resolve_accepted_answer(data.thread, data.meta.accepted_answer_id, data.meta.accepted_answer_author)
