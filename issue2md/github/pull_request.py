"""Pull request fetcher.

A pull request lives at two REST addresses: ``/pulls/{n}`` carries the merge
state and review counters, ``/issues/{n}`` carries the aggregate reactions and
the conversation comments. Inline review comments are nested under the review
they belong to; comments whose review was not returned are kept in the
top-level thread after the conversation comments.
"""

import threading

from issue2md.github.errors import wrap_errors
from issue2md.github.graphql import GraphQLClient
from issue2md.github.issue import map_issue_comment
from issue2md.github.payloads import RestReview, RestReviewComment, rest_login, rest_reactions
from issue2md.github.rest import RESTClient
from issue2md.models import (
    CommentNode,
    FetchOptions,
    IssueData,
    Metadata,
    ResourceKind,
    ResourceRef,
    ReviewData,
)


def map_review(review: RestReview, comments: list[CommentNode]) -> ReviewData:
    return ReviewData(
        id=str(review.id),
        state=review.state,
        author=rest_login(review.user),
        body=review.body or "",
        created_at=review.submitted_at or "",
        comments=comments,
    )


def partition_review_comments(
    reviews: list[RestReview], comments: list[RestReviewComment]
) -> tuple[list[ReviewData], list[CommentNode]]:
    """Split review comments into per-review lists and orphans.

    Returns the reviews (in fetched order, each with its own comments) and the
    comments whose ``pull_request_review_id`` matched no fetched review.
    """
    nested: dict[int, list[CommentNode]] = {review.id: [] for review in reviews}
    orphans: list[CommentNode] = []
    for comment in comments:
        node = map_issue_comment(comment)
        if comment.pull_request_review_id is not None and comment.pull_request_review_id in nested:
            nested[comment.pull_request_review_id].append(node)
        else:
            orphans.append(node)
    return [map_review(review, nested[review.id]) for review in reviews], orphans


def fetch_pull_request(
    rest: RESTClient,
    gql: GraphQLClient,
    ref: ResourceRef,
    opts: FetchOptions,
    cancel: threading.Event | None = None,
) -> IssueData:
    with wrap_errors("fetch pull request resource"):
        pr = rest.get_pull_request(ref.owner, ref.repo, ref.number, cancel)
    with wrap_errors("fetch pull request issue envelope"):
        envelope = rest.get_issue(ref.owner, ref.repo, ref.number, cancel)

    meta = Metadata(
        kind=ResourceKind.PULL_REQUEST,
        title=pr.title,
        number=pr.number,
        state=pr.state,
        author=rest_login(pr.user),
        created_at=pr.created_at or "",
        updated_at=pr.updated_at or "",
        url=pr.html_url,
        labels=pr.mapped_labels(),
        merged=pr.merged,
        merged_at=pr.merged_at or "",
        review_count=pr.review_comments,
    )
    data = IssueData(meta=meta, description=pr.body or "", reactions=rest_reactions(envelope.reactions))
    if not opts.include_comments:
        return data

    with wrap_errors("fetch pull request conversation comments"):
        conversation = rest.list_issue_comments(ref.owner, ref.repo, ref.number, cancel)
    with wrap_errors("fetch pull request reviews"):
        reviews = rest.list_pull_request_reviews(ref.owner, ref.repo, ref.number, cancel)
    with wrap_errors("fetch pull request review comments"):
        review_comments = rest.list_pull_request_comments(ref.owner, ref.repo, ref.number, cancel)

    review_data, orphans = partition_review_comments(reviews, review_comments)
    thread = [map_issue_comment(comment) for comment in conversation] + orphans
    return data.model_copy(update={"reviews": review_data, "thread": thread})
