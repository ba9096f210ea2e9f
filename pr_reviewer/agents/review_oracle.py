"""Review oracle: asks the language model to critique one diff hunk."""

import json
import logging
import re
from typing import Any

from pydantic import ValidationError
from pydantic_ai import Agent
from pydantic_ai.models.openai import OpenAIChatModel
from pydantic_ai.providers.openai import OpenAIProvider
from pydantic_ai.settings import ModelSettings

from pr_reviewer.config.settings import Settings
from pr_reviewer.models.review import OracleFinding, OracleReply
from pr_reviewer.utils.rate_limiter import ConcurrencyLimiter, with_exponential_backoff

logger = logging.getLogger(__name__)

_CODE_FENCE_RE = re.compile(r"^```[\w+-]*[ \t]*\n?(.*?)\n?```$", re.DOTALL)


class OracleResponseError(ValueError):
    """Raised when the model reply is not the expected ``{"reviews": [...]}`` JSON."""

    def __init__(self, message: str, raw_text: str) -> None:
        super().__init__(message)
        self.raw_text = raw_text


def strip_code_fence(text: str) -> str:
    """Remove a Markdown code fence wrapped around the whole reply."""
    text = text.strip()
    match = _CODE_FENCE_RE.match(text)
    if match:
        return match.group(1).strip()
    return text


def parse_oracle_reply(raw_text: str | None) -> OracleReply:
    """Parse and validate the model's text reply.

    Args:
        raw_text: Reply text, optionally wrapped in a ```json fence

    Returns:
        OracleReply holding the findings (possibly none). Entries without a
        ``lineNumber`` or with a non-string ``reviewComment`` are skipped with
        a warning; the others are kept.

    Raises:
        OracleResponseError: If the text is empty, not JSON, not an object,
            or its ``reviews`` field is missing or not a list
    """
    text = strip_code_fence(raw_text or "")
    if not text:
        raise OracleResponseError("Empty response", raw_text or "")

    try:
        payload = json.loads(text)
    except json.JSONDecodeError as e:
        raise OracleResponseError(f"Invalid JSON format received: {e}", text) from e

    if not isinstance(payload, dict):
        raise OracleResponseError(
            f"Expected a JSON object, got {type(payload).__name__}", text
        )
    if "reviews" not in payload:
        raise OracleResponseError("Missing 'reviews' field", text)
    entries = payload["reviews"]
    if not isinstance(entries, list):
        raise OracleResponseError(
            f"Expected 'reviews' to be a list, got {type(entries).__name__}", text
        )

    findings = []
    for index, entry in enumerate(entries):
        try:
            findings.append(OracleFinding.model_validate(entry))
        except ValidationError as e:
            logger.warning(
                f"Skipping malformed review entry {index} ({e.error_count()} errors): {entry!r}"
            )
    return OracleReply(reviews=findings)


def create_review_agent(model_name: str, api_key: str | None = None) -> Agent[None, str]:
    """Create the plain-text chat agent used for hunk reviews.

    Args:
        model_name: OpenAI chat model name, e.g. "gpt-4o-mini"
        api_key: OpenAI API key; the provider falls back to OPENAI_API_KEY when None

    Returns:
        Agent returning the model's raw text
    """
    model = OpenAIChatModel(model_name, provider=OpenAIProvider(api_key=api_key))
    return Agent(model=model, output_type=str)


class ReviewOracleClient:
    """
    Sends review prompts to the model through a shared concurrency limiter.

    ``submit`` never raises: a failed call or an unusable reply yields None,
    which callers must tell apart from ``[]`` (the model found nothing).
    """

    def __init__(
        self,
        agent: Agent[None, str],
        limiter: ConcurrencyLimiter,
        temperature: float = 0.2,
        max_tokens: int = 700,
        max_retries: int = 2,
        retry_delay: float = 1.0,
        json_response_format: bool = False,
    ) -> None:
        self.agent = agent
        self.limiter = limiter
        self.max_retries = max_retries
        self.retry_delay = retry_delay
        self.model_settings: ModelSettings = {
            "temperature": temperature,
            "max_tokens": max_tokens,
            "top_p": 1,
            "frequency_penalty": 0,
            "presence_penalty": 0,
        }
        if json_response_format:
            # OpenAI JSON mode; only some models accept it
            self.model_settings["extra_body"] = {"response_format": {"type": "json_object"}}

    @classmethod
    def from_settings(
        cls, settings: Settings, limiter: ConcurrencyLimiter
    ) -> "ReviewOracleClient":
        """Build a client backed by the configured OpenAI model."""
        agent = create_review_agent(settings.openai_model, settings.openai_api_key)
        return cls(
            agent=agent,
            limiter=limiter,
            temperature=settings.review_temperature,
            max_tokens=settings.review_max_tokens,
            max_retries=settings.oracle_max_retries,
            json_response_format=settings.json_response_format,
        )

    async def _complete(self, prompt: str) -> str:
        result: Any = await with_exponential_backoff(
            self.agent.run,
            prompt,
            model_settings=self.model_settings,
            max_retries=self.max_retries,
            initial_delay=self.retry_delay,
        )
        return str(result.output or "")

    async def submit(self, prompt: str) -> list[OracleFinding] | None:
        """Ask the model to review a prompt.

        Args:
            prompt: Prompt built by ``build_review_prompt``

        Returns:
            Findings from the reply, ``[]`` if the model reported none, or
            None if the call failed or the reply could not be parsed
        """
        async with self.limiter:
            try:
                raw_text = await self._complete(prompt)
            except Exception as e:
                logger.error(f"Error calling OpenAI API: {type(e).__name__}: {e}")
                return None

            try:
                reply = parse_oracle_reply(raw_text)
            except OracleResponseError as e:
                logger.error(f"Error parsing JSON response ({e}): {e.raw_text!r}")
                return None

        logger.debug(f"Model returned {len(reply.reviews)} findings")
        return reply.reviews
