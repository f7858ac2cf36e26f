"""Generated learning content: quizzes, lessons and chat messages."""

from typing import Literal

from pydantic import BaseModel, Field


class QuizQuestion(BaseModel):
    """A multiple-choice question with its answer key."""

    q: str
    options: list[str]
    answer: str  # the correct option string


class AssistedLesson(BaseModel):
    lesson: str
    quiz: list[QuizQuestion] = Field(default_factory=list)


class BonusTrivia(BaseModel):
    quiz: list[QuizQuestion] = Field(default_factory=list)


class ChatMessage(BaseModel):
    """A single turn in the self-learning tutor chat."""

    author: Literal["user", "bot"]
    content: str


class TeamMember(BaseModel):
    name: str
    role: str
    photo: str = ""


class AboutInfo(BaseModel):
    school_description: str
    team: list[TeamMember] = Field(default_factory=list)
