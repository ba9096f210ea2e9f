"""Services for external API interactions."""

from pr_reviewer.services.github_service import GitHubService
from pr_reviewer.services.review_publisher import ReviewPublisher, ReviewPublishError

__all__ = ["GitHubService", "ReviewPublisher", "ReviewPublishError"]
