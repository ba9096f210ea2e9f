"""Pull request review pipeline.

This module handles pull_request events (opened, reopened, synchronize):
split the diff into hunks, ask the model to review each hunk, keep only
findings that point at lines of that hunk, cap the total and publish.
"""

import asyncio
import logging
from typing import Any

from pr_reviewer.agents.review_oracle import ReviewOracleClient
from pr_reviewer.config.settings import Settings
from pr_reviewer.models.diff import Chunk, FileDiff
from pr_reviewer.models.review import PRMetadata, PublishResult, ValidatedComment
from pr_reviewer.prompts.review_prompt import build_review_prompt
from pr_reviewer.services.github_service import GitHubService, pr_coordinates_from_event
from pr_reviewer.services.review_publisher import ReviewPublisher
from pr_reviewer.utils.comment_aggregator import CommentAggregator
from pr_reviewer.utils.diff_parser import parse_diff
from pr_reviewer.utils.filters import filter_excluded_files
from pr_reviewer.utils.line_validator import validate_findings
from pr_reviewer.utils.rate_limiter import ConcurrencyLimiter

logger = logging.getLogger(__name__)

FULL_REVIEW_ACTIONS = {"opened", "reopened"}
INCREMENTAL_REVIEW_ACTIONS = {"synchronize"}


# === MAIN HANDLER ===


async def handle_pull_request_event(
    event: dict[str, Any],
    settings: Settings,
    github_service: GitHubService,
    oracle: ReviewOracleClient | None = None,
    limiter: ConcurrencyLimiter | None = None,
) -> PublishResult | None:
    """
    Review a pull request described by a GitHub Actions event payload.

    === BEHAVIOR ===

    Input:
        event: pull_request event payload (action, repository, number, before/after)
        settings: Review settings
        github_service: Source of PR metadata, diffs and commits
        oracle: Optional review client (default: built from settings)
        limiter: Optional limiter shared by model and comment calls
            (default: the oracle's limiter, else
            ConcurrencyLimiter(settings.max_concurrency))

    Output:
        PublishResult, or None when nothing was published

    Logic Flow:

    READ owner, repo, number FROM event
    IF action NOT IN {"opened", "reopened", "synchronize"} THEN
        LOG "Unsupported event" and RETURN

    FETCH PR metadata (title, description)

    IF action == "synchronize" THEN
        FETCH diff between event.before and event.after
    ELSE
        FETCH full PR diff

    IF diff is empty THEN LOG "No diff found" and RETURN

    RUN review_diff() -> capped comments
    IF no comments THEN RETURN

    RESOLVE latest commit of the PR
    PUBLISH comments with settings.publish_strategy

    Edge Cases:
        - Model unreachable: every hunk yields nothing, run ends with zero comments
        - Diff cannot be parsed: DiffParseError propagates
        - Batched review rejected: ReviewPublishError propagates
    """
    action = event.get("action")
    owner, repo, pull_number = pr_coordinates_from_event(event)
    review_key = f"{owner}/{repo}#{pull_number}"
    logger.info(f"Starting review for {review_key} (action={action})")

    if action not in FULL_REVIEW_ACTIONS | INCREMENTAL_REVIEW_ACTIONS:
        logger.info(f"Unsupported event action: {action}")
        return None

    metadata = await asyncio.to_thread(
        github_service.get_pr_metadata, owner, repo, pull_number
    )

    if action in INCREMENTAL_REVIEW_ACTIONS:
        base_sha, head_sha = event.get("before"), event.get("after")
        if not base_sha or not head_sha:
            raise ValueError("synchronize event is missing 'before'/'after' commits")
        diff_text = await github_service.compare_commits_diff(metadata, base_sha, head_sha)
    else:
        diff_text = await github_service.get_pr_diff(metadata)

    if not diff_text or not diff_text.strip():
        logger.info("No diff found")
        return None

    if limiter is None:
        if oracle is not None:
            limiter = oracle.limiter
        else:
            limiter = ConcurrencyLimiter(settings.max_concurrency)
    if oracle is None:
        oracle = ReviewOracleClient.from_settings(settings, limiter)

    comments = await review_diff(diff_text, metadata, oracle, settings)
    if not comments:
        logger.info(f"No comments to post for {review_key}")
        return None

    # PyGithub is synchronous
    pull_request = await asyncio.to_thread(github_service.get_pull_request, metadata)
    commit = await asyncio.to_thread(github_service.get_latest_commit, pull_request)

    publisher = ReviewPublisher(pull_request, limiter, strategy=settings.publish_strategy)
    result = await publisher.publish(comments, commit)

    logger.info(
        f"Review completed for {review_key}: {result.posted} comments posted, "
        f"{result.failed} failed ({result.strategy})"
    )
    return result


# === PIPELINE ===


async def review_diff(
    diff_text: str,
    pr: PRMetadata,
    oracle: ReviewOracleClient,
    settings: Settings,
) -> list[ValidatedComment]:
    """Run every hunk of a diff through the model and collect valid comments.

    Hunks are processed concurrently; the oracle's limiter bounds how many
    model calls are in flight. A hunk whose call fails contributes nothing
    and does not affect the others.

    Args:
        diff_text: Unified diff of the pull request
        pr: Pull request metadata used in prompts
        oracle: Review client
        settings: Review settings (exclude patterns, prompt, comment cap)

    Returns:
        Validated comments, at most ``settings.max_comments``

    Raises:
        DiffParseError: If the diff text cannot be parsed
    """
    files = parse_diff(diff_text)
    reviewable = filter_excluded_files(files, settings.exclude_patterns)
    if len(reviewable) < len(files):
        logger.info(f"Excluded {len(files) - len(reviewable)} files by pattern")

    aggregator = CommentAggregator(
        max_comments=settings.max_comments,
        preserve_diff_order=settings.preserve_diff_order,
    )

    tasks = []
    for file_index, file in enumerate(reviewable):
        if file.is_deleted:
            logger.warning(f"Skipping deleted or invalid file: {file.old_path}")
            continue
        for chunk_index, chunk in enumerate(file.chunks):
            tasks.append(
                _review_chunk(
                    file, chunk, (file_index, chunk_index), pr, oracle, aggregator,
                    settings.custom_prompt,
                )
            )

    logger.info(f"Reviewing {len(tasks)} hunks in {len(reviewable)} files")
    await asyncio.gather(*tasks)

    comments = aggregator.comments()
    logger.info(
        f"Collected {aggregator.received} valid comments, keeping {len(comments)}"
    )
    return comments


async def _review_chunk(
    file: FileDiff,
    chunk: Chunk,
    position: tuple[int, int],
    pr: PRMetadata,
    oracle: ReviewOracleClient,
    aggregator: CommentAggregator,
    instructions: str | None,
) -> None:
    """Prompt, call, validate and aggregate a single hunk."""
    if file.path is None:
        raise ValueError(f"Cannot review deleted file: {file.old_path}")
    try:
        prompt = build_review_prompt(file.path, chunk, pr, instructions)
        findings = await oracle.submit(prompt)

        if findings is None:
            logger.warning(f"AI response is null or empty for file: {file.path}")
            return

        comments = validate_findings(file.path, chunk, findings)
        if findings and not comments:
            logger.warning(
                f"No valid comments created for file: {file.path}, hunk: {chunk.header}"
            )
        aggregator.add(comments, position)
    except Exception:
        logger.exception(f"Error processing file: {file.path}, hunk: {chunk.header}")
