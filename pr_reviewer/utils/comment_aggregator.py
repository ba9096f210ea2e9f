"""Collection of validated comments across hunks with a global cap."""

import logging

from pr_reviewer.models.review import ValidatedComment

logger = logging.getLogger(__name__)

Position = tuple[int, int]


class CommentAggregator:
    """
    Collects validated comments from every hunk and enforces ``max_comments``.

    Hunks finish in whatever order their model calls complete. With
    ``preserve_diff_order`` (the default) comments are buffered and sorted by
    (file index, hunk index, line) before the cap is applied, so the kept
    comments do not depend on scheduling. Without it the first
    ``max_comments`` comments to arrive are kept and later ones are dropped
    on arrival.

    Args:
        max_comments: Maximum number of comments returned; 0 keeps none
        preserve_diff_order: Sort by diff position before truncating
    """

    def __init__(self, max_comments: int = 10, preserve_diff_order: bool = True) -> None:
        if max_comments < 0:
            raise ValueError(f"max_comments must be >= 0, got: {max_comments}")
        self.max_comments = max_comments
        self.preserve_diff_order = preserve_diff_order
        self._entries: list[tuple[Position, int, ValidatedComment]] = []
        self._received = 0
        self._discarded = 0
        self._limit_logged = False

    @property
    def received(self) -> int:
        """Number of comments handed to ``add``."""
        return self._received

    @property
    def discarded(self) -> int:
        """Number of comments dropped because of the cap."""
        if self.preserve_diff_order:
            return max(0, len(self._entries) - self.max_comments)
        return self._discarded

    def add(
        self, comments: list[ValidatedComment], position: Position = (0, 0)
    ) -> None:
        """Record the validated comments of one hunk.

        Args:
            comments: Comments produced by a single hunk
            position: (file index, hunk index) of that hunk in the diff
        """
        for comment in comments:
            self._received += 1
            if not self.preserve_diff_order and len(self._entries) >= self.max_comments:
                self._discarded += 1
                self._log_limit()
                continue
            self._entries.append((position, self._received, comment))

    def comments(self) -> list[ValidatedComment]:
        """Return the comments to publish, at most ``max_comments`` of them."""
        entries = self._entries
        if self.preserve_diff_order:
            entries = sorted(
                entries, key=lambda entry: (entry[0], entry[2].line, entry[1])
            )
            if len(entries) > self.max_comments:
                self._log_limit()
        return [comment for _, _, comment in entries[: self.max_comments]]

    def _log_limit(self) -> None:
        if self._limit_logged:
            return
        self._limit_logged = True
        logger.warning(f"Limiting comments to {self.max_comments}")
