"""Tests for the topic/rank catalog."""

import pytest

from learnsphere.catalog import (
    MAX_LEVEL_IN_RANK,
    RANKS,
    TOPICS,
    TOPICS_PER_RANK,
    display_topic,
    find_topic,
    level_progress_percent,
    next_rank,
    rank_index,
    topic_ids,
)
from learnsphere.models.user import Rank


def test_ten_unique_topics():
    assert len(TOPICS) == TOPICS_PER_RANK == 10
    assert len(topic_ids()) == 10


def test_rank_order():
    assert [r.value for r in RANKS] == ["Beginner", "Rare", "Epic", "Mythic", "Legendary"]
    assert rank_index(Rank.EPIC) == 2


def test_next_rank():
    assert next_rank(Rank.BEGINNER) is Rank.RARE
    assert next_rank(Rank.LEGENDARY) is None


def test_max_level():
    assert MAX_LEVEL_IN_RANK == 3


def test_find_and_display_topic():
    topic = find_topic("ProblemSolving")
    assert topic is not None
    assert topic.label_key == "topic.problem_solving"
    assert display_topic("Math") == "topic.math 🧮"
    assert display_topic("Astronomy") == "Astronomy"
    assert find_topic("Astronomy") is None


@pytest.mark.parametrize(
    "total_xp, level, expected",
    [
        (0, 1, 0.0),
        (50, 1, 50.0),
        (150, 2, 50.0),
        (250, 2, 100.0),
        (40, 2, 0.0),
    ],
)
def test_level_progress_percent(total_xp, level, expected):
    assert level_progress_percent(total_xp, level) == pytest.approx(expected)
