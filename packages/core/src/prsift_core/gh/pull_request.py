from __future__ import annotations

import logging

import requests
from github import Auth, Github, GithubException

from prsift_core.errors import FetchError
from prsift_core.models import Comment, ReviewContext, ReviewThread

logger = logging.getLogger(__name__)

NO_DESCRIPTION = "No description provided."
NO_TITLE = "(untitled)"
GHOST_AUTHOR = "ghost"

CONVERSATION_PAGE = 100
THREAD_PAGE = 100
THREAD_COMMENT_PAGE = 20

PR_CONTEXT_QUERY = """
query($owner: String!, $repo: String!, $pr: Int!) {
  repository(owner: $owner, name: $repo) {
    pullRequest(number: $pr) {
      number
      title
      body
      author { login }
      baseRefName
      headRefName
      baseRefOid
      headRefOid
      comments(first: %(conversation)d, orderBy: {field: UPDATED_AT, direction: ASC}) {
        nodes {
          author { login }
          body
          createdAt
        }
      }
      reviewThreads(first: %(threads)d) {
        nodes {
          isResolved
          isOutdated
          path
          line
          startLine
          comments(first: %(thread_comments)d) {
            nodes {
              author { login }
              body
              createdAt
            }
          }
        }
      }
    }
  }
}
""" % {
    "conversation": CONVERSATION_PAGE,
    "threads": THREAD_PAGE,
    "thread_comments": THREAD_COMMENT_PAGE,
}


def get_client(token: str) -> Github:
    return Github(auth=Auth.Token(token))


def get_repo(client: Github, repo_name: str):
    return client.get_repo(repo_name)


def get_pull(repo, pr_number: int):
    return repo.get_pull(pr_number)


def split_repo(repo_name: str) -> tuple[str, str]:
    owner, sep, name = repo_name.partition("/")
    if not sep or not owner or not name or "/" in name:
        raise ValueError(f"Repository must be in owner/name format, got {repo_name!r}")
    return owner, name


def _nodes(connection) -> list:
    if connection is None:
        return []
    return list(connection.get("nodes") or [])


def _login(node: dict) -> str:
    author = node.get("author") or {}
    return author.get("login") or GHOST_AUTHOR


def _comment(node: dict) -> Comment:
    return Comment(author=_login(node), body=node.get("body") or "", created_at=node.get("createdAt") or "")


def _thread(node: dict) -> ReviewThread:
    return ReviewThread(
        is_resolved=bool(node.get("isResolved")),
        is_outdated=bool(node.get("isOutdated")),
        path=node.get("path") or "",
        line=node.get("line"),
        start_line=node.get("startLine"),
        comments=tuple(_comment(c) for c in _nodes(node.get("comments"))),
    )


def parse_review_context(pr: dict, pr_number: int) -> ReviewContext:
    """Normalize the GraphQL ``pullRequest`` node into a ReviewContext.

    Resolved and outdated threads are kept: they tell the engine what was
    already raised.
    """
    return ReviewContext(
        title=pr.get("title") or NO_TITLE,
        body=pr.get("body") or NO_DESCRIPTION,
        author=_login(pr),
        base_ref=pr.get("baseRefName") or "",
        head_ref=pr.get("headRefName") or "",
        number=pr.get("number") or pr_number,
        base_sha=pr.get("baseRefOid") or "",
        head_sha=pr.get("headRefOid") or "",
        conversation_comments=tuple(_comment(c) for c in _nodes(pr.get("comments"))),
        review_threads=tuple(_thread(t) for t in _nodes(pr.get("reviewThreads"))),
    )


def fetch_review_context(client: Github, repo_name: str, pr_number: int) -> ReviewContext:
    """Fetch PR metadata, conversation comments and review threads in one query."""
    owner, name = split_repo(repo_name)
    variables = {"owner": owner, "repo": name, "pr": pr_number}
    try:
        _, payload = client.requester.graphql_query(PR_CONTEXT_QUERY, variables)
    except GithubException as e:
        raise FetchError(f"GraphQL query for {repo_name}#{pr_number} failed: {e}") from e

    try:
        pr = payload["data"]["repository"]["pullRequest"]
    except (KeyError, TypeError) as e:
        raise FetchError(f"Unexpected GraphQL response for {repo_name}#{pr_number}") from e
    if not pr:
        raise FetchError(f"PR #{pr_number} not found in {repo_name}.")

    try:
        return parse_review_context(pr, pr_number)
    except (AttributeError, TypeError) as e:
        raise FetchError(f"Malformed pull request data for {repo_name}#{pr_number}: {e}") from e


class GithubCommentPoster:
    """Submits inline review comments and reports the HTTP status.

    The reconciler only looks at the status, so GitHub's 422 for a line that
    is not part of the diff comes back as a value rather than an exception.
    A request that never gets a response reports status 0.
    """

    CREATED = 201
    NO_RESPONSE = 0

    def __init__(self, pr, commit):
        self.pr = pr
        self.commit = commit

    def post(self, request: dict) -> int:
        kwargs = {"line": request["line"], "side": request["side"]}
        if "start_line" in request:
            kwargs["start_line"] = request["start_line"]
            kwargs["start_side"] = request["start_side"]
        try:
            self.pr.create_review_comment(request["body"], self.commit, request["path"], **kwargs)
        except GithubException as e:
            logger.debug("Inline comment rejected (%s): %s", e.status, e.data)
            return e.status
        except requests.RequestException as e:
            logger.warning("Inline comment on %s:%s not delivered: %s", request["path"], request["line"], e)
            return self.NO_RESPONSE
        return self.CREATED


def post_issue_comment(pr, body: str) -> None:
    """Post a conversation-level comment on the PR."""
    pr.create_issue_comment(body)
