"""Validation of model findings against the hunk they were produced for."""

import logging
from typing import Any

from pr_reviewer.models.diff import Chunk
from pr_reviewer.models.review import OracleFinding, ValidatedComment

logger = logging.getLogger(__name__)


def coerce_line_number(value: Any) -> int | None:
    """Convert a model-supplied line number to an int.

    Args:
        value: Line number as sent by the model ("11", 11, " 11 ", 11.0)

    Returns:
        The integer line number, or None if the value is not a whole number
        (booleans and null included)
    """
    if value is None or isinstance(value, bool):
        return None
    if isinstance(value, int):
        return value
    text = str(value).strip()
    try:
        return int(text)
    except ValueError:
        pass
    try:
        number = float(text)
    except ValueError:
        return None
    if not number.is_integer():
        return None
    return int(number)


def validate_finding(
    file_path: str, chunk: Chunk, finding: OracleFinding
) -> ValidatedComment | None:
    """Accept a finding only if its line is part of the hunk.

    GitHub can only anchor review comments on lines visible in the diff, and
    the model sometimes invents line numbers outside the hunk it was shown.

    Args:
        file_path: Destination path of the file
        chunk: The hunk the finding was generated for
        finding: Raw finding returned by the model

    Returns:
        ValidatedComment for a line present in the hunk, None otherwise
    """
    line = coerce_line_number(finding.line_number)
    if line is None:
        logger.warning(
            f"Invalid lineNumber {finding.line_number!r} for file {file_path}. "
            "It is not a line number."
        )
        return None

    if not chunk.contains_line(line):
        logger.warning(
            f"Invalid lineNumber {line} for file {file_path}. "
            "It does not exist in the diff hunk."
        )
        return None

    body = finding.review_comment.strip()
    if not body:
        logger.warning(f"Skipping empty review comment for {file_path}:{line}")
        return None

    return ValidatedComment(path=file_path, line=line, body=body)


def validate_findings(
    file_path: str, chunk: Chunk, findings: list[OracleFinding]
) -> list[ValidatedComment]:
    """Validate every finding of one hunk, dropping the rejected ones."""
    comments = []
    for finding in findings:
        comment = validate_finding(file_path, chunk, finding)
        if comment is not None:
            comments.append(comment)
    return comments
