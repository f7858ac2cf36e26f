"""Prompt templates for AI-generated lessons, quizzes and tutor chat."""

from learnsphere.models.user import Language, Rank

ASSISTED_QUIZ_SIZE = 5
BONUS_QUIZ_SIZE = 10

_QUIZ_SCHEMA_HINT = """\
Each quiz item is an object {"q": "<question>", "options": ["<option>", ...], \
"answer": "<the correct option string, copied exactly from options>"}."""

ASSISTED_LESSON_PROMPT = """\
Act as a world-class educational tutor. Generate a lesson and a {quiz_size}-question \
multiple-choice quiz about "{topic}" for a student at the "{rank}" rank and level {level}.
Language: {language}.
Respond ONLY with a JSON object:
{{
    "lesson": "<detailed educational lesson in Markdown>",
    "quiz": [<{quiz_size} quiz items>]
}}
{schema}
"""

SELF_LESSON_PROMPT = """\
Generate a comprehensive, deep-dive educational lesson about "{topic}" for a student \
at the "{rank}" rank and level {level}.
Use Markdown formatting with headers, lists, and bold text.
Language: {language}.
"""

BONUS_TRIVIA_PROMPT = """\
Generate a fun {quiz_size}-question general knowledge trivia quiz for children in {language}.
Respond ONLY with a JSON object:
{{
    "quiz": [<{quiz_size} quiz items>]
}}
{schema}
"""

TUTOR_SYSTEM_PROMPT = """\
You are a helpful and encouraging AI tutor for children. \
The current lesson context is:
{lesson}

Respond in {language}. Keep answers short, friendly and age-appropriate.
"""

DEFAULT_CHAT_QUESTION = "Can you explain more?"


def build_assisted_prompt(topic: str, language: Language, rank: Rank, level: int) -> str:
    return ASSISTED_LESSON_PROMPT.format(
        topic=topic,
        rank=rank.value,
        level=level,
        language=language.display_name,
        quiz_size=ASSISTED_QUIZ_SIZE,
        schema=_QUIZ_SCHEMA_HINT,
    )


def build_self_prompt(topic: str, language: Language, rank: Rank, level: int) -> str:
    return SELF_LESSON_PROMPT.format(
        topic=topic, rank=rank.value, level=level, language=language.display_name
    )


def build_bonus_prompt(language: Language) -> str:
    return BONUS_TRIVIA_PROMPT.format(
        quiz_size=BONUS_QUIZ_SIZE, language=language.display_name, schema=_QUIZ_SCHEMA_HINT
    )


def build_tutor_prompt(lesson: str, language: Language) -> str:
    return TUTOR_SYSTEM_PROMPT.format(lesson=lesson, language=language.display_name)
