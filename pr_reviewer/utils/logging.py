"""Logging and observability setup using Pydantic Logfire."""

import logging
import sys
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pr_reviewer.config.settings import Settings


def setup_logging(log_level: str = "INFO") -> None:
    """Configure application logging.

    Sets up structured logging with appropriate log levels and format.
    Reduces noise from verbose third-party libraries.

    Args:
        log_level: Name of the root log level, e.g. "INFO"
    """
    level = getattr(logging, log_level.upper(), logging.INFO)

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        stream=sys.stdout,
        force=True,  # Reconfigure if already setup
    )

    # Reduce noise from verbose libraries
    logging.getLogger("httpx").setLevel(logging.WARNING)
    logging.getLogger("httpcore").setLevel(logging.WARNING)
    logging.getLogger("urllib3").setLevel(logging.WARNING)
    logging.getLogger("openai").setLevel(logging.WARNING)
    logging.getLogger("github").setLevel(logging.WARNING)


def setup_observability(settings: "Settings") -> None:
    """Setup logging and observability with Logfire instrumentation.

    Configures standard logging and optionally enables Logfire for
    tracing of model and HTTP calls if a token is configured.
    """
    setup_logging(settings.log_level)

    logger = logging.getLogger(__name__)

    if settings.logfire_token:
        try:
            import logfire

            logfire.configure(token=settings.logfire_token)

            # Instrument Pydantic AI agents
            logfire.instrument_pydantic_ai()

            # Instrument httpx for HTTP tracing
            logfire.instrument_httpx()

            logger.info("Logfire observability enabled")

        except ImportError:
            logger.warning(
                "Logfire package not installed. Install with: pip install 'pr-reviewer[logfire]'"
            )
        except Exception as e:
            logger.error(f"Failed to setup Logfire observability: {e}")
    else:
        logger.debug("Logfire token not configured, skipping observability setup")
