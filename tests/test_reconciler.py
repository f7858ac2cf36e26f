"""Tests for XP/rank reconciliation against backend responses."""

import pytest

from learnsphere.catalog import TOPICS
from learnsphere.models.responses import BonusResponse, XPUpdateResponse
from learnsphere.models.user import Rank, User
from learnsphere.progression.reconciler import apply_bonus, bonus_unlocked, reconcile_xp_update

ALL_TOPIC_IDS = [t.id for t in TOPICS]


def make_user(**overrides) -> User:
    data = {"id": 1, "username": "sara", "total_xp": 0, "level": 1, "rank": Rank.BEGINNER}
    data.update(overrides)
    return User(**data)


class TestReconcileXPUpdate:
    def test_first_quiz_scenario(self):
        user = make_user()
        response = XPUpdateResponse(new_xp=50, new_level=2, rank=Rank.BEGINNER)

        updated = reconcile_xp_update(user, response, "Math")

        assert updated.total_xp == 50
        assert updated.level == 2
        assert updated.rank is Rank.BEGINNER
        assert updated.completed_topics_in_rank == ["Math"]
        assert updated.topics_completed == 1

    def test_input_record_not_mutated(self):
        user = make_user(completed_topics_in_rank=["Art"], topics_completed=1)
        reconcile_xp_update(user, XPUpdateResponse(new_xp=90, new_level=1, rank=Rank.BEGINNER), "Math")
        assert user.completed_topics_in_rank == ["Art"]
        assert user.topics_completed == 1
        assert user.total_xp == 0

    @pytest.mark.parametrize(
        "existing, topic",
        [
            ([], "Math"),
            (["Math"], "Math"),
            (["Art", "Science"], "History"),
            (["Art", "Science"], "Science"),
        ],
    )
    def test_set_union_law(self, existing, topic):
        user = make_user(completed_topics_in_rank=existing)
        response = XPUpdateResponse(new_xp=10, new_level=1, rank=Rank.BEGINNER)

        updated = reconcile_xp_update(user, response, topic)

        result = set(updated.completed_topics_in_rank)
        assert result >= set(existing)
        assert topic in result
        assert len(updated.completed_topics_in_rank) == len(set(existing) | {topic})

    def test_recompleting_topic_is_idempotent(self):
        user = make_user(completed_topics_in_rank=["Math"], topics_completed=1, total_xp=50)
        first = reconcile_xp_update(
            user, XPUpdateResponse(new_xp=80, new_level=1, rank=Rank.BEGINNER), "Math"
        )
        second = reconcile_xp_update(
            first, XPUpdateResponse(new_xp=110, new_level=2, rank=Rank.BEGINNER), "Math"
        )

        assert second.completed_topics_in_rank == first.completed_topics_in_rank == ["Math"]
        assert second.topics_completed == first.topics_completed == 1
        assert second.total_xp == 110

    def test_rank_up_clears_in_rank_set(self):
        user = make_user(
            completed_topics_in_rank=ALL_TOPIC_IDS[:9], topics_completed=9, total_xp=290, level=3
        )
        response = XPUpdateResponse(new_xp=340, new_level=1, rank=Rank.RARE)

        updated = reconcile_xp_update(user, response, ALL_TOPIC_IDS[9])

        assert updated.completed_topics_in_rank == []
        assert updated.rank is Rank.RARE
        assert updated.level == 1
        assert updated.topics_completed == 10

    def test_full_set_without_rank_change_is_kept(self):
        user = make_user(completed_topics_in_rank=ALL_TOPIC_IDS[:9], topics_completed=9)
        response = XPUpdateResponse(new_xp=300, new_level=3, rank=Rank.BEGINNER)

        updated = reconcile_xp_update(user, response, ALL_TOPIC_IDS[9])

        assert set(updated.completed_topics_in_rank) == set(ALL_TOPIC_IDS)
        assert updated.rank is Rank.BEGINNER

    def test_rank_change_before_full_set_keeps_topics(self):
        user = make_user(completed_topics_in_rank=["Math"], topics_completed=1)
        response = XPUpdateResponse(new_xp=500, new_level=1, rank=Rank.EPIC)

        updated = reconcile_xp_update(user, response, "Art")

        assert updated.rank is Rank.EPIC
        assert updated.completed_topics_in_rank == ["Math", "Art"]

    def test_backend_values_adopted_verbatim(self):
        user = make_user(total_xp=500, level=3, rank=Rank.MYTHIC)
        response = XPUpdateResponse(new_xp=120, new_level=2, rank=Rank.RARE)

        updated = reconcile_xp_update(user, response, "Math")

        assert (updated.total_xp, updated.level, updated.rank) == (120, 2, Rank.RARE)


    @pytest.mark.parametrize("topic", ["", "Dinosaurs"])
    def test_topic_outside_catalog_rejected(self, topic):
        user = make_user()
        with pytest.raises(ValueError):
            reconcile_xp_update(user, XPUpdateResponse(new_xp=50, new_level=1, rank=Rank.BEGINNER), topic)
        assert user.completed_topics_in_rank == []


class TestBonus:
    def test_apply_bonus_replaces_xp_only(self):
        user = make_user(total_xp=200, level=2, completed_topics_in_rank=["Math"], topics_completed=3)
        updated = apply_bonus(user, BonusResponse(message="Aced it!", new_xp=240))

        assert updated.total_xp == 240
        assert updated.level == 2
        assert updated.rank is Rank.BEGINNER
        assert updated.completed_topics_in_rank == ["Math"]
        assert updated.topics_completed == 3

    @pytest.mark.parametrize("count", range(0, 12))
    def test_bonus_unlocked(self, count):
        assert bonus_unlocked(count) == (count >= 2)
