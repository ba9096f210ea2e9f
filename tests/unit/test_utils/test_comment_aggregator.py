"""Unit tests for the comment aggregator and its cap."""

import logging

import pytest

from pr_reviewer.models.review import ValidatedComment
from pr_reviewer.utils.comment_aggregator import CommentAggregator


def _comment(path: str, line: int) -> ValidatedComment:
    return ValidatedComment(path=path, line=line, body=f"{path}:{line}")


class TestCommentAggregator:
    def test_under_cap_keeps_everything(self):
        aggregator = CommentAggregator(max_comments=10)
        aggregator.add([_comment("a.py", 1), _comment("a.py", 2)], (0, 0))

        assert len(aggregator.comments()) == 2
        assert aggregator.discarded == 0

    @pytest.mark.parametrize("preserve_diff_order", [True, False])
    def test_cap_is_never_exceeded(self, preserve_diff_order, caplog):
        aggregator = CommentAggregator(
            max_comments=10, preserve_diff_order=preserve_diff_order
        )

        with caplog.at_level(logging.WARNING):
            for i in range(15):
                aggregator.add([_comment(f"f{i}.py", 1)], (i, 0))
            comments = aggregator.comments()

        assert len(comments) == 10
        assert aggregator.received == 15
        assert aggregator.discarded == 5
        assert caplog.text.count("Limiting comments to 10") == 1

    def test_diff_order_is_restored(self):
        aggregator = CommentAggregator(max_comments=3, preserve_diff_order=True)

        # Hunks finish out of order
        aggregator.add([_comment("b.py", 7)], (1, 0))
        aggregator.add([_comment("a.py", 30), _comment("a.py", 4)], (0, 1))
        aggregator.add([_comment("a.py", 2)], (0, 0))

        comments = aggregator.comments()

        assert [(c.path, c.line) for c in comments] == [
            ("a.py", 2),
            ("a.py", 4),
            ("a.py", 30),
        ]

    def test_arrival_order_when_not_preserving_diff_order(self):
        aggregator = CommentAggregator(max_comments=2, preserve_diff_order=False)

        aggregator.add([_comment("b.py", 7)], (1, 0))
        aggregator.add([_comment("a.py", 2)], (0, 0))
        aggregator.add([_comment("a.py", 3)], (0, 1))

        assert [(c.path, c.line) for c in aggregator.comments()] == [
            ("b.py", 7),
            ("a.py", 2),
        ]

    def test_zero_cap_keeps_nothing(self):
        aggregator = CommentAggregator(max_comments=0)
        aggregator.add([_comment("a.py", 1)])

        assert aggregator.comments() == []

    def test_negative_cap_rejected(self):
        with pytest.raises(ValueError):
            CommentAggregator(max_comments=-1)
