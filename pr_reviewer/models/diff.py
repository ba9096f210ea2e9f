"""Structured representation of a unified diff."""

from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

ChangeKind = Literal["added", "removed", "context"]


class LineChange(BaseModel):
    """A single line inside a diff hunk.

    Added lines only carry a new line number, removed lines only an old one,
    context lines carry both.
    """

    model_config = ConfigDict(frozen=True)

    kind: ChangeKind
    content: str
    old_line_number: int | None = None
    new_line_number: int | None = None

    @property
    def resolved_line_number(self) -> int | None:
        """Line number shown to the reviewer: new side first, old side for removals."""
        if self.new_line_number is not None:
            return self.new_line_number
        return self.old_line_number

    @property
    def marker(self) -> str:
        """Diff prefix character for this line."""
        return {"added": "+", "removed": "-", "context": " "}[self.kind]


class Chunk(BaseModel):
    """One contiguous hunk delimited by an ``@@ -a,b +c,d @@`` header."""

    model_config = ConfigDict(frozen=True)

    header: str
    old_start: int
    old_lines: int
    new_start: int
    new_lines: int
    changes: list[LineChange] = Field(default_factory=list)

    def line_numbers(self) -> set[int]:
        """All old and new line numbers that appear in this hunk."""
        numbers: set[int] = set()
        for change in self.changes:
            if change.old_line_number is not None:
                numbers.add(change.old_line_number)
            if change.new_line_number is not None:
                numbers.add(change.new_line_number)
        return numbers

    def contains_line(self, line_number: int) -> bool:
        return any(
            change.old_line_number == line_number
            or change.new_line_number == line_number
            for change in self.changes
        )


class FileDiff(BaseModel):
    """All hunks touching one file.

    ``path`` is the destination path and is None when the file was deleted
    or the diff names no destination.
    """

    model_config = ConfigDict(frozen=True)

    path: str | None
    old_path: str | None = None
    chunks: list[Chunk] = Field(default_factory=list)

    @property
    def is_deleted(self) -> bool:
        """Check if the file has no destination.

        Returns:
            True if the diff removes the file
        """
        return self.path is None
