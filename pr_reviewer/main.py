"""Command line entry point for reviewing a pull request from a GitHub Actions run."""

import argparse
import asyncio
import logging
import os

import httpx
from pydantic import ValidationError

from pr_reviewer.config.settings import Settings
from pr_reviewer.handlers.review_handler import handle_pull_request_event
from pr_reviewer.services.github_service import GitHubService, load_event
from pr_reviewer.utils.logging import setup_logging, setup_observability

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="pr-reviewer",
        description="Post AI generated review comments on a GitHub pull request",
    )
    parser.add_argument(
        "--event-path",
        default=os.getenv("GITHUB_EVENT_PATH"),
        help="Path to the pull_request event payload (default: $GITHUB_EVENT_PATH)",
    )
    parser.add_argument(
        "--log-level",
        choices=["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"],
        default=None,
        help="Override LOG_LEVEL",
    )
    return parser


async def run(event_path: str, settings: Settings) -> None:
    """Load the event and run the review with a GitHub session."""
    event = load_event(event_path)
    async with httpx.AsyncClient(timeout=settings.http_timeout) as http_client:
        github_service = GitHubService(
            token=settings.github_token or "",
            http_client=http_client,
            api_url=settings.github_api_url,
        )
        await handle_pull_request_event(event, settings, github_service)


def main(argv: list[str] | None = None) -> int:
    """Run a review and return the process exit code."""
    args = build_parser().parse_args(argv)

    try:
        settings = Settings()
    except ValidationError as e:
        setup_logging(args.log_level or "INFO")
        logger.error(f"Invalid configuration: {e}")
        return 1

    if args.log_level:
        settings.log_level = args.log_level
    setup_observability(settings)

    if not args.event_path:
        logger.error("No event payload: pass --event-path or set GITHUB_EVENT_PATH")
        return 1

    missing = settings.missing_credentials()
    if missing:
        logger.error(f"Missing required environment variables: {', '.join(missing)}")
        return 1

    try:
        asyncio.run(run(args.event_path, settings))
    except Exception:
        logger.exception("Review failed")
        return 1

    return 0
