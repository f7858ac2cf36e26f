"""Content provider interface and the backend-hosted implementation."""

from typing import Any, Protocol, TypeVar

import structlog
from pydantic import BaseModel

from learnsphere.backend.client import BackendClient
from learnsphere.config import Settings
from learnsphere.errors import BackendError, ContentGenerationError
from learnsphere.models.content import AssistedLesson, BonusTrivia, ChatMessage
from learnsphere.models.user import Language, Rank

logger = structlog.get_logger()

ModelT = TypeVar("ModelT", bound=BaseModel)


class ContentProvider(Protocol):
    """Source of lessons, quizzes and tutor replies."""

    async def generate_assisted_lesson(
        self, topic: str, language: Language, rank: Rank, level: int
    ) -> AssistedLesson: ...

    async def generate_self_lesson(
        self, topic: str, language: Language, rank: Rank, level: int
    ) -> str: ...

    async def continue_chat(
        self, lesson: str, messages: list[ChatMessage], language: Language
    ) -> str: ...

    async def generate_bonus_trivia(self, language: Language) -> BonusTrivia: ...


class _LessonReply(BaseModel):
    lesson: str


class _ChatReply(BaseModel):
    reply: str


class BackendContentProvider:
    """Delegates generation to the learning backend's AI endpoints.

    Args:
        client: Shared backend client.
        settings: Application settings (endpoint paths).
    """

    def __init__(self, client: BackendClient, settings: Settings):
        self.client = client
        self.settings = settings

    async def generate_assisted_lesson(
        self, topic: str, language: Language, rank: Rank, level: int
    ) -> AssistedLesson:
        body = {"topic": topic, "language": language.value, "rank": rank.value, "level": level}
        return await self._post(self.settings.endpoint_assisted_lesson, body, AssistedLesson)

    async def generate_self_lesson(
        self, topic: str, language: Language, rank: Rank, level: int
    ) -> str:
        body = {"topic": topic, "language": language.value, "rank": rank.value, "level": level}
        reply = await self._post(self.settings.endpoint_self_lesson, body, _LessonReply)
        return reply.lesson

    async def continue_chat(
        self, lesson: str, messages: list[ChatMessage], language: Language
    ) -> str:
        body = {
            "lessonContent": lesson,
            "messages": [m.model_dump() for m in messages],
            "language": language.value,
        }
        reply = await self._post(self.settings.endpoint_chat, body, _ChatReply)
        return reply.reply

    async def generate_bonus_trivia(self, language: Language) -> BonusTrivia:
        return await self._post(
            self.settings.endpoint_bonus_trivia, {"language": language.value}, BonusTrivia
        )

    async def _post(self, endpoint: str, body: dict[str, Any], model: type[ModelT]) -> ModelT:
        try:
            return await self.client.post(endpoint, body, model)
        except BackendError as e:
            logger.warning("content_generation_failed", endpoint=endpoint, error=str(e))
            raise ContentGenerationError(str(e)) from e


def build_content_provider(settings: Settings, client: BackendClient) -> ContentProvider:
    """Pick the content provider named by `settings.content_source`."""
    if settings.content_source == "openai":
        from learnsphere.content.openai_provider import OpenAIContentProvider

        if not settings.openai_api_key:
            raise ValueError("content_source is 'openai' but OPENAI_API_KEY is not set")
        return OpenAIContentProvider(
            api_key=settings.openai_api_key,
            lesson_model=settings.lesson_model,
            deep_lesson_model=settings.deep_lesson_model,
            chat_model=settings.chat_model,
        )
    return BackendContentProvider(client, settings)
