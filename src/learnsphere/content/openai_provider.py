"""OpenAI-backed lesson, quiz and tutor chat generation."""

import json

import structlog
from openai import AsyncOpenAI, OpenAIError
from pydantic import ValidationError

from learnsphere.content.prompts import (
    DEFAULT_CHAT_QUESTION,
    build_assisted_prompt,
    build_bonus_prompt,
    build_self_prompt,
    build_tutor_prompt,
)
from learnsphere.errors import ContentGenerationError
from learnsphere.models.content import AssistedLesson, BonusTrivia, ChatMessage
from learnsphere.models.user import Language, Rank

logger = structlog.get_logger()

MAX_CHAT_HISTORY = 20


class OpenAIContentProvider:
    """Generates content with OpenAI chat completions.

    Args:
        api_key: OpenAI API key.
        lesson_model: Model for assisted lessons, quizzes and trivia.
        deep_lesson_model: Model for long self-learning lessons.
        chat_model: Model for tutor chat replies.
    """

    def __init__(
        self,
        api_key: str,
        lesson_model: str = "gpt-4o-mini",
        deep_lesson_model: str = "gpt-4o",
        chat_model: str = "gpt-4o-mini",
    ):
        self.client = AsyncOpenAI(api_key=api_key)
        self.lesson_model = lesson_model
        self.deep_lesson_model = deep_lesson_model
        self.chat_model = chat_model

    async def generate_assisted_lesson(
        self, topic: str, language: Language, rank: Rank, level: int
    ) -> AssistedLesson:
        content = await self._complete_json(
            self.lesson_model, build_assisted_prompt(topic, language, rank, level)
        )
        try:
            return AssistedLesson.model_validate(content)
        except ValidationError as e:
            logger.error("assisted_lesson_invalid", topic=topic, error=str(e))
            raise ContentGenerationError("AI tutor failed to generate content.") from e

    async def generate_self_lesson(
        self, topic: str, language: Language, rank: Rank, level: int
    ) -> str:
        return await self._complete(
            self.deep_lesson_model,
            [{"role": "user", "content": build_self_prompt(topic, language, rank, level)}],
        )

    async def continue_chat(
        self, lesson: str, messages: list[ChatMessage], language: Language
    ) -> str:
        """Reply to the latest learner message with the lesson as context.

        Args:
            lesson: Lesson text the learner is studying.
            messages: Full transcript, oldest first.
            language: Reply language.
        """
        history = [
            {"role": "user" if m.author == "user" else "assistant", "content": m.content}
            for m in messages[-MAX_CHAT_HISTORY:]
        ]
        if not any(m["role"] == "user" for m in history):
            history.append({"role": "user", "content": DEFAULT_CHAT_QUESTION})
        return await self._complete(
            self.chat_model,
            [{"role": "system", "content": build_tutor_prompt(lesson, language)}, *history],
        )

    async def generate_bonus_trivia(self, language: Language) -> BonusTrivia:
        content = await self._complete_json(self.lesson_model, build_bonus_prompt(language))
        try:
            return BonusTrivia.model_validate(content)
        except ValidationError as e:
            logger.error("bonus_trivia_invalid", error=str(e))
            raise ContentGenerationError("Failed to fetch bonus trivia.") from e

    async def _complete(self, model: str, messages: list[dict]) -> str:
        try:
            response = await self.client.chat.completions.create(
                model=model,
                messages=messages,
                temperature=0.7,
            )
        except OpenAIError as e:
            logger.exception("openai_request_failed", model=model)
            raise ContentGenerationError(str(e)) from e
        return response.choices[0].message.content or ""

    async def _complete_json(self, model: str, prompt: str) -> dict:
        try:
            response = await self.client.chat.completions.create(
                model=model,
                messages=[{"role": "user", "content": prompt}],
                temperature=0.7,
                response_format={"type": "json_object"},
            )
        except OpenAIError as e:
            logger.exception("openai_request_failed", model=model)
            raise ContentGenerationError(str(e)) from e

        raw = response.choices[0].message.content
        if not raw:
            raise ContentGenerationError("AI tutor failed to generate content.")
        try:
            return json.loads(raw.strip())
        except json.JSONDecodeError as e:
            logger.error("openai_json_invalid", model=model)
            raise ContentGenerationError("AI tutor returned malformed content.") from e
