"""Unified diff parsing.

Turns the raw text returned by ``git diff`` (or GitHub's ``.diff`` media type)
into ``FileDiff`` / ``Chunk`` / ``LineChange`` models with old and new line
numbers resolved for every line.
"""

import logging
import re

from pr_reviewer.models.diff import Chunk, FileDiff, LineChange

logger = logging.getLogger(__name__)

# Regex for hunk header: @@ -old_start[,old_len] +new_start[,new_len] @@ [section]
HUNK_HEADER_RE = re.compile(r"^@@ -(\d+)(?:,(\d+))? \+(\d+)(?:,(\d+))? @@")

DEV_NULL = "/dev/null"

# Extended git headers that carry no line content
_GIT_HEADER_PREFIXES = (
    "index ",
    "old mode ",
    "new mode ",
    "new file mode ",
    "deleted file mode ",
    "similarity index ",
    "dissimilarity index ",
    "copy from ",
    "copy to ",
    "rename old ",
    "rename new ",
    "Binary files ",
    "GIT binary patch",
)


class DiffParseError(ValueError):
    """Raised when diff text cannot be split into files and hunks."""

    def __init__(self, message: str, line_number: int | None = None) -> None:
        if line_number is not None:
            message = f"line {line_number}: {message}"
        super().__init__(message)
        self.line_number = line_number


def _strip_path(raw: str) -> str | None:
    """Normalise a path from a ``---``/``+++``/``diff --git`` header."""
    path = raw.split("\t", 1)[0].strip()
    if path.startswith('"') and path.endswith('"') and len(path) >= 2:
        path = path[1:-1]
    if not path or path == DEV_NULL:
        return None
    if path.startswith(("a/", "b/")):
        path = path[2:]
    return path or None


def _paths_from_git_header(line: str) -> tuple[str | None, str | None]:
    match = re.match(r"^diff --git a/(.+) b/(.+)$", line)
    if not match:
        return None, None
    return match.group(1), match.group(2)


class _FileBuilder:
    """Mutable accumulator for one file while its hunks are read."""

    def __init__(self, old_path: str | None = None, new_path: str | None = None):
        self.old_path = old_path
        self.new_path = new_path
        self.has_file_headers = False
        self.deleted = False
        self.chunks: list[Chunk] = []

    def build(self) -> FileDiff:
        path = None if self.deleted else self.new_path
        return FileDiff(path=path, old_path=self.old_path, chunks=self.chunks)


class _ChunkBuilder:
    def __init__(self, header: str, match: re.Match[str]) -> None:
        self.header = header
        self.old_start = int(match.group(1))
        self.old_lines = int(match.group(2)) if match.group(2) is not None else 1
        self.new_start = int(match.group(3))
        self.new_lines = int(match.group(4)) if match.group(4) is not None else 1
        self.old_cursor = self.old_start
        self.new_cursor = self.new_start
        self.old_remaining = self.old_lines
        self.new_remaining = self.new_lines
        self.changes: list[LineChange] = []

    @property
    def complete(self) -> bool:
        return self.old_remaining <= 0 and self.new_remaining <= 0

    def add(self, line: str, line_number: int) -> None:
        marker, content = line[:1], line[1:]
        if marker == "+":
            if self.new_remaining <= 0:
                raise DiffParseError("hunk has more added lines than declared", line_number)
            self.changes.append(
                LineChange(kind="added", content=content, new_line_number=self.new_cursor)
            )
            self.new_cursor += 1
            self.new_remaining -= 1
        elif marker == "-":
            if self.old_remaining <= 0:
                raise DiffParseError("hunk has more removed lines than declared", line_number)
            self.changes.append(
                LineChange(kind="removed", content=content, old_line_number=self.old_cursor)
            )
            self.old_cursor += 1
            self.old_remaining -= 1
        else:
            if self.old_remaining <= 0 or self.new_remaining <= 0:
                raise DiffParseError("hunk has more context lines than declared", line_number)
            self.changes.append(
                LineChange(
                    kind="context",
                    content=content,
                    old_line_number=self.old_cursor,
                    new_line_number=self.new_cursor,
                )
            )
            self.old_cursor += 1
            self.new_cursor += 1
            self.old_remaining -= 1
            self.new_remaining -= 1

    def build(self) -> Chunk:
        return Chunk(
            header=self.header,
            old_start=self.old_start,
            old_lines=self.old_lines,
            new_start=self.new_start,
            new_lines=self.new_lines,
            changes=self.changes,
        )


def parse_diff(diff_text: str) -> list[FileDiff]:
    """Parse unified diff text into per-file hunks.

    Args:
        diff_text: Full diff payload, possibly covering many files

    Returns:
        One ``FileDiff`` per file in diff order; deleted files have ``path=None``

    Raises:
        DiffParseError: If a hunk header is malformed, a hunk's body does not
            match the counts in its header, or hunk lines appear outside a file
    """
    if not diff_text or not diff_text.strip():
        return []

    files: list[FileDiff] = []
    current_file: _FileBuilder | None = None
    current_chunk: _ChunkBuilder | None = None

    def finish_chunk(line_number: int) -> None:
        nonlocal current_chunk
        if current_chunk is None:
            return
        if not current_chunk.complete:
            raise DiffParseError(
                f"hunk {current_chunk.header!r} ended early "
                f"({current_chunk.old_remaining} old / "
                f"{current_chunk.new_remaining} new lines missing)",
                line_number,
            )
        if current_file is None:
            raise DiffParseError("hunk outside of a file", line_number)
        current_file.chunks.append(current_chunk.build())
        current_chunk = None

    def finish_file(line_number: int) -> None:
        nonlocal current_file
        finish_chunk(line_number)
        if current_file is not None:
            files.append(current_file.build())
        current_file = None

    # Only "\n" ends a line; form feeds and other Unicode separators are content
    lines = [line.removesuffix("\r") for line in diff_text.split("\n")]
    if lines and lines[-1] == "":
        lines.pop()
    for index, line in enumerate(lines, start=1):
        # Hunk bodies are consumed first so "--- x" / "+++ x" content lines
        # are not mistaken for file headers.
        if current_chunk is not None and not current_chunk.complete:
            if line.startswith("\\"):
                continue
            if line[:1] in ("+", "-", " "):
                current_chunk.add(line, index)
                continue
            if line == "":
                # Some tools trim the trailing space of empty context lines
                current_chunk.add(" ", index)
                continue
            finish_chunk(index)

        if line.startswith("\\"):
            continue

        if line.startswith("diff --git "):
            finish_file(index)
            old_path, new_path = _paths_from_git_header(line)
            current_file = _FileBuilder(old_path, new_path)
            continue

        if line.startswith("--- "):
            if current_file is None or current_file.has_file_headers:
                finish_file(index)
                current_file = _FileBuilder()
            finish_chunk(index)
            current_file.old_path = _strip_path(line[4:])
            continue

        if line.startswith("+++ "):
            if current_file is None:
                raise DiffParseError("'+++' header without a preceding '---' header", index)
            finish_chunk(index)
            new_path = _strip_path(line[4:])
            current_file.has_file_headers = True
            current_file.new_path = new_path
            current_file.deleted = new_path is None
            continue

        if line.startswith("@@"):
            match = HUNK_HEADER_RE.match(line)
            if not match:
                raise DiffParseError(f"malformed hunk header {line!r}", index)
            if current_file is None:
                raise DiffParseError("hunk header before any file header", index)
            finish_chunk(index)
            current_chunk = _ChunkBuilder(line, match)
            continue

        if current_file is not None and current_chunk is None:
            if line.startswith("rename from "):
                current_file.old_path = line[len("rename from "):].strip()
                continue
            if line.startswith("rename to "):
                current_file.new_path = line[len("rename to "):].strip()
                continue
            if line.startswith("deleted file mode "):
                current_file.deleted = True
                continue
            if line.startswith(_GIT_HEADER_PREFIXES) or not line.strip():
                continue

        if current_chunk is not None and current_chunk.complete and not line.strip():
            continue

        if current_file is None and not line.startswith(("+", "-", " ")):
            # Free text before the first file header
            logger.debug(f"Ignoring diff preamble line {index}")
            continue

        raise DiffParseError(f"unexpected line outside of a hunk: {line!r}", index)

    finish_file(len(lines) + 1)

    logger.debug(
        f"Parsed diff: {len(files)} files, "
        f"{sum(len(f.chunks) for f in files)} hunks"
    )
    return files
