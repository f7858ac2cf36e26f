"""Static topic and rank catalog."""

from pydantic import BaseModel

from learnsphere.models.user import Rank


class Topic(BaseModel):
    id: str
    label_key: str
    emoji: str


TOPICS: tuple[Topic, ...] = (
    Topic(id="Math", label_key="topic.math", emoji="🧮"),
    Topic(id="Science", label_key="topic.science", emoji="🔬"),
    Topic(id="History", label_key="topic.history", emoji="🏛️"),
    Topic(id="Geography", label_key="topic.geography", emoji="🌍"),
    Topic(id="Art", label_key="topic.art", emoji="🎨"),
    Topic(id="English", label_key="topic.english", emoji="📚"),
    Topic(id="Computer", label_key="topic.computer", emoji="💻"),
    Topic(id="Arabic", label_key="topic.arabic", emoji="📝"),
    Topic(id="Biology", label_key="topic.biology", emoji="🧬"),
    Topic(id="ProblemSolving", label_key="topic.problem_solving", emoji="💡"),
)

RANKS: tuple[Rank, ...] = tuple(Rank)

XP_PER_LEVEL = 100
MAX_LEVEL_IN_RANK = 3
TOPICS_PER_RANK = len(TOPICS)
BONUS_UNLOCK_THRESHOLD = 2

_TOPICS_BY_ID = {topic.id: topic for topic in TOPICS}


def topic_ids() -> frozenset[str]:
    return frozenset(_TOPICS_BY_ID)


def find_topic(topic_id: str) -> Topic | None:
    return _TOPICS_BY_ID.get(topic_id)


def display_topic(topic_id: str) -> str:
    """Label key and emoji for catalog topics, the raw id otherwise."""
    topic = find_topic(topic_id)
    if topic is None:
        return topic_id
    return f"{topic.label_key} {topic.emoji}"


def rank_index(rank: Rank) -> int:
    return RANKS.index(rank)


def next_rank(rank: Rank) -> Rank | None:
    """Rank above `rank`, or None at the top of the ladder."""
    idx = rank_index(rank)
    if idx >= len(RANKS) - 1:
        return None
    return RANKS[idx + 1]


def level_progress_percent(total_xp: int, level: int) -> float:
    """Progress-bar fill (0-100) for the XP earned inside the current level.

    Display-only arithmetic; level and rank themselves always come from the backend.
    """
    xp_for_current_level = (level - 1) * XP_PER_LEVEL
    xp_into_level = total_xp - xp_for_current_level
    return min(100.0, max(0.0, xp_into_level / XP_PER_LEVEL * 100))
