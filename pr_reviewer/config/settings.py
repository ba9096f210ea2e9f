"""Application settings using Pydantic Settings for environment variable management."""

from typing import Literal

from pydantic import AliasChoices, Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from pr_reviewer.utils.filters import parse_exclude_patterns


class Settings(BaseSettings):
    """Review settings loaded from environment variables.

    Every option also accepts the ``INPUT_*`` name GitHub Actions uses to
    expose workflow ``with:`` inputs to the running step.
    """

    model_config = SettingsConfigDict(
        env_file=".env.local",
        env_file_encoding="utf-8",
        extra="ignore",
        case_sensitive=False,
        populate_by_name=True,
    )

    # GitHub Configuration
    github_token: str | None = Field(
        default=None,
        validation_alias=AliasChoices("GITHUB_TOKEN", "GH_TOKEN", "INPUT_GITHUB_TOKEN"),
        description="Token used to read the pull request and post review comments",
    )
    github_api_url: str = Field(
        default="https://api.github.com",
        validation_alias=AliasChoices("GITHUB_API_URL"),
        description="Base URL of the GitHub REST API",
    )

    # OpenAI Configuration
    openai_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("OPENAI_API_KEY", "INPUT_OPENAI_API_KEY"),
        description="OpenAI API key for the review model",
    )
    openai_model: str = Field(
        default="gpt-4o-mini",
        validation_alias=AliasChoices("OPENAI_API_MODEL", "INPUT_OPENAI_API_MODEL"),
        description="OpenAI model to use",
    )

    # Review Configuration
    custom_prompt: str | None = Field(
        default=None,
        validation_alias=AliasChoices("PROMPT", "INPUT_PROMPT"),
        description="Replaces the default review instructions",
    )
    exclude: str = Field(
        default="",
        validation_alias=AliasChoices("EXCLUDE", "INPUT_EXCLUDE"),
        description="Comma separated glob patterns of paths to skip",
    )
    max_concurrency: int = Field(
        default=5,
        ge=1,
        validation_alias=AliasChoices("MAX_CONCURRENCY", "INPUT_MAX_CONCURRENCY"),
        description="Maximum number of model/comment calls in flight",
    )
    max_comments: int = Field(
        default=10,
        ge=0,
        validation_alias=AliasChoices("MAX_COMMENTS", "INPUT_MAX_COMMENTS"),
        description="Maximum number of comments posted per run",
    )
    publish_strategy: Literal["per_comment", "batched"] = Field(
        default="per_comment",
        validation_alias=AliasChoices("PUBLISH_STRATEGY", "INPUT_PUBLISH_STRATEGY"),
        description="Post comments one by one or as a single review",
    )
    preserve_diff_order: bool = Field(
        default=True,
        validation_alias=AliasChoices("PRESERVE_DIFF_ORDER"),
        description="Sort comments by diff position before applying the comment cap",
    )
    review_temperature: float = Field(
        default=0.2,
        validation_alias=AliasChoices("REVIEW_TEMPERATURE"),
        description="Temperature for AI model responses",
    )
    review_max_tokens: int = Field(
        default=700,
        validation_alias=AliasChoices("REVIEW_MAX_TOKENS"),
        description="Upper bound on tokens generated per chunk review",
    )
    json_response_format: bool = Field(
        default=False,
        validation_alias=AliasChoices("JSON_RESPONSE_FORMAT", "INPUT_JSON_RESPONSE_FORMAT"),
        description="Ask the model for a JSON object reply (OpenAI JSON mode)",
    )
    oracle_max_retries: int = Field(
        default=2,
        ge=1,
        validation_alias=AliasChoices("ORACLE_MAX_RETRIES"),
        description="Attempts per model call when the error is transient",
    )
    http_timeout: float = Field(
        default=30.0,
        validation_alias=AliasChoices("HTTP_TIMEOUT"),
        description="Timeout in seconds for GitHub diff requests",
    )

    # Observability
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        validation_alias=AliasChoices("LOG_LEVEL"),
        description="Logging level",
    )
    logfire_token: str | None = Field(
        default=None,
        validation_alias=AliasChoices("LOGFIRE_TOKEN"),
        description="Pydantic Logfire token for observability",
    )

    @property
    def exclude_patterns(self) -> list[str]:
        """Glob patterns parsed from the raw ``exclude`` option."""
        return parse_exclude_patterns(self.exclude)

    def missing_credentials(self) -> list[str]:
        """Return the names of required secrets that are not configured."""
        missing = []
        if not self.github_token:
            missing.append("GITHUB_TOKEN")
        if not self.openai_api_key:
            missing.append("OPENAI_API_KEY")
        return missing
