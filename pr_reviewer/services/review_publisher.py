"""Publishing validated comments to a GitHub pull request."""

import asyncio
import logging
from typing import Literal

from github.Commit import Commit
from github.PullRequest import PullRequest

from pr_reviewer.models.review import PublishResult, ValidatedComment
from pr_reviewer.utils.rate_limiter import ConcurrencyLimiter

logger = logging.getLogger(__name__)

PublishStrategy = Literal["per_comment", "batched"]


class ReviewPublishError(RuntimeError):
    """Raised when GitHub rejects a batched review submission."""


class ReviewPublisher:
    """
    Posts inline review comments on a pull request.

    Two strategies are supported:

    - ``per_comment`` (default): one ``create_review_comment`` call per
      comment, each holding a slot of the shared limiter. A rejected comment
      is logged and skipped; the others are still posted.
    - ``batched``: a single ``create_review`` call carrying all comments.
      GitHub accepts or rejects the review as a whole, and a rejection is
      raised as ``ReviewPublishError``.

    PyGithub is synchronous, so calls run in worker threads to keep the
    event loop free while the limiter bounds how many are in flight.
    """

    def __init__(
        self,
        pull_request: PullRequest,
        limiter: ConcurrencyLimiter,
        strategy: PublishStrategy = "per_comment",
    ) -> None:
        if strategy not in ("per_comment", "batched"):
            raise ValueError(f"Unknown publish strategy: {strategy!r}")
        self.pull_request = pull_request
        self.limiter = limiter
        self.strategy = strategy

    async def publish(
        self, comments: list[ValidatedComment], commit: Commit
    ) -> PublishResult:
        """Publish comments anchored to ``commit``.

        Args:
            comments: Capped list of validated comments
            commit: Commit of the pull request the comments refer to

        Returns:
            PublishResult with posted and failed counts

        Raises:
            ReviewPublishError: If the batched review is rejected
        """
        if not comments:
            logger.info("No comments to publish")
            return PublishResult(strategy=self.strategy)

        if self.strategy == "batched":
            return await self._publish_batched(comments, commit)
        return await self._publish_per_comment(comments, commit)

    async def _publish_batched(
        self, comments: list[ValidatedComment], commit: Commit
    ) -> PublishResult:
        try:
            async with self.limiter:
                await asyncio.to_thread(
                    self.pull_request.create_review,
                    commit=commit,
                    event="COMMENT",
                    comments=[comment.to_review_comment() for comment in comments],
                )
        except Exception as e:
            raise ReviewPublishError(
                f"GitHub rejected review with {len(comments)} comments on "
                f"PR #{self.pull_request.number}: {e}"
            ) from e

        logger.info(
            f"Posted review with {len(comments)} comments on PR #{self.pull_request.number}"
        )
        return PublishResult(strategy="batched", posted=len(comments))

    async def _post_comment(self, comment: ValidatedComment, commit: Commit) -> bool:
        try:
            async with self.limiter:
                await asyncio.to_thread(
                    self.pull_request.create_review_comment,
                    body=comment.body,
                    commit=commit,
                    path=comment.path,
                    line=comment.line,
                )
        except Exception as e:
            logger.error(
                f"Failed to post comment on {comment.path}:{comment.line}: "
                f"{type(e).__name__}: {e}"
            )
            return False

        logger.debug(f"Posted comment on {comment.path}:{comment.line}")
        return True

    async def _publish_per_comment(
        self, comments: list[ValidatedComment], commit: Commit
    ) -> PublishResult:
        outcomes = await asyncio.gather(
            *(self._post_comment(comment, commit) for comment in comments)
        )
        posted = sum(1 for ok in outcomes if ok)
        failed = len(outcomes) - posted
        logger.info(f"Posted {posted} comments, failed {failed}")
        return PublishResult(strategy="per_comment", posted=posted, failed=failed)
