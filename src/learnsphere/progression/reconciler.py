"""Merge backend XP verdicts into the learner record.

The backend is the only authority on xp, level and rank. These functions never
recompute progression; they adopt the backend values and maintain the
per-rank topic set and the lifetime topic counter.
"""

import structlog

from learnsphere.catalog import BONUS_UNLOCK_THRESHOLD, find_topic, topic_ids
from learnsphere.models.responses import BonusResponse, XPUpdateResponse
from learnsphere.models.user import User

logger = structlog.get_logger()


def reconcile_xp_update(user: User, response: XPUpdateResponse, topic_id: str) -> User:
    """Apply an XP-update response for a completed topic.

    Args:
        user: Record before the quiz was submitted.
        response: Backend reply to the XP update.
        topic_id: Topic the quiz belonged to.

    Returns:
        A new User; `user` is left untouched.

    Raises:
        ValueError: `topic_id` is not in the catalog.
    """
    if find_topic(topic_id) is None:
        raise ValueError(f"Unknown topic id: {topic_id!r}")
    was_already_completed = topic_id in user.completed_topic_set
    updated_topics = list(dict.fromkeys([*user.completed_topics_in_rank, topic_id]))

    ranked_up = response.rank != user.rank
    if set(updated_topics) == topic_ids() and ranked_up:
        completed_in_rank: list[str] = []
        logger.info(
            "rank_up",
            username=user.username,
            old_rank=user.rank.value,
            new_rank=response.rank.value,
        )
    else:
        completed_in_rank = updated_topics

    topics_completed = user.topics_completed
    if not was_already_completed:
        topics_completed += 1

    return user.model_copy(
        update={
            "total_xp": response.new_xp,
            "level": response.new_level,
            "rank": response.rank,
            "completed_topics_in_rank": completed_in_rank,
            "topics_completed": topics_completed,
        }
    )


def apply_bonus(user: User, response: BonusResponse) -> User:
    """Adopt the bonus-round XP total. Rank, level and topics are unchanged."""
    return user.model_copy(update={"total_xp": response.new_xp})


def bonus_unlocked(topics_completed: int) -> bool:
    return topics_completed >= BONUS_UNLOCK_THRESHOLD
