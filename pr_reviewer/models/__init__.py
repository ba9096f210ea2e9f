"""Data models for the PR reviewer."""

from .diff import Chunk, FileDiff, LineChange
from .review import (
    OracleFinding,
    OracleReply,
    PRMetadata,
    PublishResult,
    ValidatedComment,
)

__all__ = [
    "Chunk",
    "FileDiff",
    "LineChange",
    "OracleFinding",
    "OracleReply",
    "PRMetadata",
    "PublishResult",
    "ValidatedComment",
]
