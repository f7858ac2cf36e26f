"""Learner record and progression enums."""

from enum import StrEnum

from pydantic import BaseModel, Field, field_validator


class Rank(StrEnum):
    """Ordered rank ladder, lowest first."""

    BEGINNER = "Beginner"
    RARE = "Rare"
    EPIC = "Epic"
    MYTHIC = "Mythic"
    LEGENDARY = "Legendary"


class Language(StrEnum):
    EN = "en"
    AR = "ar"

    @property
    def display_name(self) -> str:
        return "English" if self is Language.EN else "Arabic"


class User(BaseModel):
    """Learner progression record as returned by the backend."""

    id: int | str
    username: str
    avatar: str = ""
    total_xp: int = Field(default=0, ge=0)
    level: int = 1  # position within the current rank, 1..MAX_LEVEL_IN_RANK
    rank: Rank = Rank.BEGINNER
    topics_completed: int = 0  # lifetime unique topic completions
    completed_topics_in_rank: list[str] = Field(default_factory=list)
    school: str | None = None
    description: str | None = None

    @field_validator("completed_topics_in_rank")
    @classmethod
    def _dedupe_topics(cls, value: list[str]) -> list[str]:
        return list(dict.fromkeys(value))

    @property
    def completed_topic_set(self) -> frozenset[str]:
        return frozenset(self.completed_topics_in_rank)
