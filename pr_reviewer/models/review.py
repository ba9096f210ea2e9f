"""Models for pull request metadata, model findings and published comments."""

from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field


class PRMetadata(BaseModel):
    """Pull request coordinates and the text used as review context."""

    model_config = ConfigDict(frozen=True)

    owner: str
    repo: str
    pull_number: int = Field(gt=0)
    title: str = ""
    description: str = ""

    @property
    def full_name(self) -> str:
        """Repository name in ``owner/repo`` format."""
        return f"{self.owner}/{self.repo}"


class OracleFinding(BaseModel):
    """A review remark proposed by the model, before it is checked against the diff.

    The line number is kept exactly as the model sent it (string, number,
    boolean or null); the line validator decides whether it is usable.
    """

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    line_number: Any = Field(alias="lineNumber")
    review_comment: str = Field(alias="reviewComment")


class OracleReply(BaseModel):
    """The JSON envelope the review prompt asks the model to return."""

    model_config = ConfigDict(extra="ignore")

    reviews: list[OracleFinding]


class ValidatedComment(BaseModel):
    """A finding whose line number was confirmed against its hunk."""

    model_config = ConfigDict(frozen=True)

    path: str
    line: int
    body: str

    def to_review_comment(self) -> dict[str, str | int]:
        """Format the comment for the GitHub review API."""
        return {"path": self.path, "line": self.line, "body": self.body}


class PublishResult(BaseModel):
    """Outcome of publishing a set of comments."""

    strategy: Literal["per_comment", "batched"]
    posted: int = 0
    failed: int = 0

    @property
    def total(self) -> int:
        return self.posted + self.failed
