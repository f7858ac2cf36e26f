"""Single owner of one learner's session state."""

import contextlib
from collections.abc import Iterator, Mapping
from typing import Any, Literal

import structlog
from pydantic import BaseModel, Field

from learnsphere.backend.client import BackendClient
from learnsphere.catalog import MAX_LEVEL_IN_RANK, TOPICS, display_topic, level_progress_percent
from learnsphere.content.lesson import strip_markdown_fence
from learnsphere.content.prompts import ASSISTED_QUIZ_SIZE, BONUS_QUIZ_SIZE
from learnsphere.content.provider import ContentProvider
from learnsphere.errors import (
    AuthError,
    AuthErrorKind,
    BackendError,
    ContentGenerationError,
    IncompleteQuizError,
    LearnSphereError,
    NavigationError,
    RequestInFlightError,
)
from learnsphere.models.content import (
    AboutInfo,
    AssistedLesson,
    BonusTrivia,
    ChatMessage,
    QuizQuestion,
    TeamMember,
)
from learnsphere.models.responses import BonusResponse, XPUpdateResponse
from learnsphere.models.user import Language, User
from learnsphere.progression.reconciler import apply_bonus, bonus_unlocked, reconcile_xp_update
from learnsphere.progression.scorer import QuizScore, all_answered, score_quiz
from learnsphere.session.router import Screen, ViewRouter

logger = structlog.get_logger()

AUTH_MESSAGES: dict[AuthErrorKind, str] = {
    AuthErrorKind.USER_NOT_FOUND: "We couldn't find an account with that username. Try signing up!",
    AuthErrorKind.BAD_CREDENTIALS: "Incorrect username or password.",
    AuthErrorKind.GENERIC: "Something went wrong. Please try again.",
}
SCORE_SUBMIT_FAILED = "Could not update your score. Please check your connection."
BONUS_SUBMIT_FAILED = "Could not submit your bonus score. Please check your connection."
CHAT_FAILED = "Sorry, I'm having trouble connecting. Please try again in a moment."
PASSWORD_MISMATCH = "Passwords do not match."
SETTINGS_SAVED = "Settings updated!"

FALLBACK_ABOUT = AboutInfo(
    school_description=(
        "LearnSphere is a playful learning space where kids explore ten topics, "
        "earn XP and climb from Beginner to Legendary."
    ),
    team=[
        TeamMember(name="Mr. Teacher", role="Super Teacher 🎓", photo="https://api.multiavatar.com/Teacher.svg"),
        TeamMember(name="Alex", role="Code Wizard 💻", photo="https://api.multiavatar.com/Alex.svg"),
        TeamMember(name="Sarah", role="Design Artist 🎨", photo="https://api.multiavatar.com/Sarah.svg"),
    ],
)


class ErrorInfo(BaseModel):
    kind: str
    message: str


class QuizResult(BaseModel):
    """Outcome held between a successful submission and its dismissal."""

    kind: Literal["assisted", "bonus"]
    topic: str = ""
    score: QuizScore
    message: str
    xp_gained: int
    xp_update: XPUpdateResponse | None = None
    bonus: BonusResponse | None = None


class SettingsUpdate(BaseModel):
    username: str | None = None
    avatar: str | None = None
    school: str | None = None
    description: str | None = None
    new_password: str | None = None
    confirm_password: str | None = None


class SettingsResult(BaseModel):
    """Explicit outcome of a settings save; callers must inspect `ok`."""

    ok: bool
    message: str
    user: User | None = None
    error_kind: str | None = None


def _public_quiz(questions: list[QuizQuestion], reveal: bool) -> list[dict[str, Any]]:
    if reveal:
        return [q.model_dump() for q in questions]
    return [{"q": q.q, "options": q.options} for q in questions]


class SessionController:
    """Owns the learner record, active screen and per-screen content.

    Every mutation of the learner record goes through this object. Remote
    results are applied only after the call has succeeded, so a failed
    request never leaves a half-updated record.

    Args:
        client: Learning backend client.
        content: Lesson/quiz/chat provider.
        normalize_answers: Compare quiz answers case- and whitespace-insensitively.
    """

    def __init__(
        self,
        client: BackendClient,
        content: ContentProvider,
        normalize_answers: bool = False,
    ):
        self.client = client
        self.content = content
        self.normalize_answers = normalize_answers
        self.router = ViewRouter()
        self.language = Language.EN
        self.user: User | None = None
        self.is_loading = False
        self.is_chat_loading = False
        self.error: ErrorInfo | None = None
        self._reset_screen_content()

    def _reset_screen_content(self) -> None:
        self.assisted_lesson: AssistedLesson | None = None
        self.self_lesson: str | None = None
        self.chat: list[ChatMessage] = []
        self.trivia: BonusTrivia | None = None
        self.result: QuizResult | None = None
        self.answers: dict[int, str] = {}

    @property
    def screen(self) -> Screen:
        return self.router.screen

    @property
    def topic(self) -> str:
        return self.router.topic

    @contextlib.contextmanager
    def _busy(self) -> Iterator[None]:
        if self.is_loading:
            raise RequestInFlightError("Another request is still in progress")
        self.is_loading = True
        try:
            yield
        finally:
            self.is_loading = False

    def _fail(self, error: LearnSphereError, message: str | None = None) -> None:
        self.error = ErrorInfo(kind=error.kind, message=message or str(error))

    def _require_user(self) -> User:
        if self.user is None:
            raise NavigationError("Not signed in")
        return self.user

    def _require_screen(self, screen: Screen) -> None:
        if self.router.screen is not screen:
            raise NavigationError(f"Action requires the '{screen}' screen")

    def _check_quiz(self, questions: list[QuizQuestion], expected: int) -> None:
        if len(questions) != expected:
            logger.warning("quiz_size_invalid", expected=expected, received=len(questions))
            error = ContentGenerationError(
                f"Expected a {expected}-question quiz but received {len(questions)}."
            )
            self._fail(error)
            raise error

    # -- authentication ---------------------------------------------------

    async def authenticate(self, mode: Literal["sign_in", "sign_up"], username: str, password: str) -> User:
        """Sign in or sign up and move to the dashboard.

        Raises:
            AuthError: Classified failure; the session stays on the login screen.
        """
        self._require_screen(Screen.LOGIN)
        with self._busy():
            self.error = None
            try:
                if mode == "sign_in":
                    response = await self.client.sign_in(username, password)
                else:
                    response = await self.client.sign_up(username, password)
            except AuthError as e:
                if mode == "sign_in" and e.error_kind is not AuthErrorKind.GENERIC:
                    message = AUTH_MESSAGES[e.error_kind]
                else:
                    message = str(e) or AUTH_MESSAGES[AuthErrorKind.GENERIC]
                self.error = ErrorInfo(kind=e.error_kind.value, message=message)
                logger.warning("auth_failed", mode=mode, username=username, error_kind=e.error_kind.value)
                raise

        self.user = response.user
        self.router.authenticated()
        logger.info("auth_succeeded", mode=mode, username=username)
        return self.user

    def logout(self) -> None:
        self.router.logout()
        logger.info("logout", username=self.user.username if self.user else None)
        self.user = None
        self.error = None
        self._reset_screen_content()

    def set_language(self, language: Language) -> None:
        self.language = language

    # -- navigation -------------------------------------------------------

    def select_mode(self, mode: Screen, topic: str = "") -> None:
        user = self._require_user()
        self.router.open(mode, topic, bonus_unlocked=bonus_unlocked(user.topics_completed))
        self.error = None
        self._reset_screen_content()

    def back_to_dashboard(self) -> None:
        """Return to the dashboard; a pending quiz result is applied first."""
        if self.result is not None:
            self.dismiss_result()
            return
        self.router.back()
        self.error = None
        self._reset_screen_content()

    async def refresh_dashboard(self) -> User:
        """Re-fetch the learner record; only allowed on the dashboard."""
        user = self._require_user()
        self._require_screen(Screen.DASHBOARD)
        with self._busy():
            try:
                response = await self.client.get_dashboard(user.username)
            except BackendError as e:
                self._fail(e)
                logger.warning("dashboard_refresh_failed", username=user.username, error=str(e))
                raise
        self.user = response.user
        return self.user

    # -- assisted learning ------------------------------------------------

    async def load_assisted_lesson(self) -> AssistedLesson:
        user = self._require_user()
        self._require_screen(Screen.ASSISTED)
        with self._busy():
            self.error = None
            try:
                lesson = await self.content.generate_assisted_lesson(
                    self.topic, self.language, user.rank, user.level
                )
            except ContentGenerationError as e:
                self._fail(e)
                raise
        self._check_quiz(lesson.quiz, ASSISTED_QUIZ_SIZE)
        self.assisted_lesson = lesson
        self.answers = {}
        return lesson

    async def submit_assisted_quiz(self, answers: Mapping[int, str]) -> QuizResult:
        """Score the quiz and report it to the backend.

        The record is not touched here; the verdict is applied by
        `dismiss_result` once the learner has seen it.
        """
        user = self._require_user()
        self._require_screen(Screen.ASSISTED)
        if self.assisted_lesson is None:
            raise NavigationError("No lesson loaded")
        score = self._score(self.assisted_lesson.quiz, answers)

        with self._busy():
            try:
                response = await self.client.update_xp(
                    user.username, self.topic, score.score_percent, user.level
                )
            except BackendError as e:
                self._fail(e, SCORE_SUBMIT_FAILED)
                logger.warning("xp_update_failed", username=user.username, topic=self.topic, error=str(e))
                raise

        self.error = None
        self.answers = dict(answers)
        self.result = QuizResult(
            kind="assisted",
            topic=self.topic,
            score=score,
            message=f"Great effort! You got {score.correct_count}/{score.total_questions} correct!",
            xp_gained=response.new_xp - user.total_xp,
            xp_update=response,
        )
        logger.info(
            "assisted_quiz_submitted",
            username=user.username,
            topic=self.topic,
            score=score.score_percent,
            new_xp=response.new_xp,
        )
        return self.result

    # -- self learning ----------------------------------------------------

    async def load_self_lesson(self) -> str:
        user = self._require_user()
        self._require_screen(Screen.SELF)
        with self._busy():
            self.error = None
            try:
                lesson = await self.content.generate_self_lesson(
                    self.topic, self.language, user.rank, user.level
                )
            except ContentGenerationError as e:
                self._fail(e)
                raise
        self.self_lesson = strip_markdown_fence(lesson)
        self.chat = []
        return self.self_lesson

    async def send_chat(self, text: str) -> ChatMessage | None:
        """Ask the tutor a question. Blank input is ignored and returns None."""
        self._require_screen(Screen.SELF)
        if not text.strip() or self.self_lesson is None:
            return None
        if self.is_chat_loading:
            raise RequestInFlightError("The tutor is still answering")

        self.chat.append(ChatMessage(author="user", content=text))
        self.is_chat_loading = True
        try:
            reply = await self.content.continue_chat(self.self_lesson, list(self.chat), self.language)
            message = ChatMessage(author="bot", content=reply)
        except ContentGenerationError as e:
            logger.warning("chat_failed", error=str(e))
            message = ChatMessage(author="bot", content=str(e) or CHAT_FAILED)
        finally:
            self.is_chat_loading = False
        self.chat.append(message)
        return message

    # -- bonus zone -------------------------------------------------------

    async def load_bonus_trivia(self) -> BonusTrivia:
        self._require_user()
        self._require_screen(Screen.BONUS)
        with self._busy():
            self.error = None
            try:
                trivia = await self.content.generate_bonus_trivia(self.language)
            except ContentGenerationError as e:
                self._fail(e)
                raise
        self._check_quiz(trivia.quiz, BONUS_QUIZ_SIZE)
        self.trivia = trivia
        self.answers = {}
        return trivia

    async def submit_bonus_quiz(self, answers: Mapping[int, str]) -> QuizResult:
        user = self._require_user()
        self._require_screen(Screen.BONUS)
        if self.trivia is None:
            raise NavigationError("No trivia loaded")
        score = self._score(self.trivia.quiz, answers)

        with self._busy():
            try:
                response = await self.client.send_bonus_results(user.username, score.score_percent)
            except BackendError as e:
                self._fail(e, BONUS_SUBMIT_FAILED)
                logger.warning("bonus_submit_failed", username=user.username, error=str(e))
                raise

        self.error = None
        self.answers = dict(answers)
        self.result = QuizResult(
            kind="bonus",
            score=score,
            message=response.message,
            xp_gained=max(0, response.new_xp - user.total_xp),
            bonus=response,
        )
        return self.result

    # -- results ----------------------------------------------------------

    def dismiss_result(self) -> User:
        """Apply the held backend verdict and return to the dashboard."""
        user = self._require_user()
        result = self.result
        if result is None:
            raise NavigationError("No result to dismiss")

        if result.kind == "assisted" and result.xp_update is not None:
            self.user = reconcile_xp_update(user, result.xp_update, result.topic)
        elif result.bonus is not None:
            self.user = apply_bonus(user, result.bonus)

        self.router.back()
        self.error = None
        self._reset_screen_content()
        return self.user

    def _score(self, questions: list[QuizQuestion], answers: Mapping[int, str]) -> QuizScore:
        if self.result is not None:
            raise NavigationError("Quiz already submitted")
        if not all_answered(questions, answers):
            raise IncompleteQuizError("Answer every question before submitting")
        return score_quiz(questions, answers, normalize=self.normalize_answers)

    # -- settings & info --------------------------------------------------

    async def update_settings(self, update: SettingsUpdate) -> SettingsResult:
        user = self._require_user()
        if update.new_password and update.new_password != update.confirm_password:
            return SettingsResult(ok=False, message=PASSWORD_MISMATCH, error_kind="settings_invalid")

        fields: dict[str, Any] = update.model_dump(
            exclude_none=True, exclude={"new_password", "confirm_password"}
        )
        if update.new_password:
            fields["newPassword"] = update.new_password

        with self._busy():
            try:
                response = await self.client.update_settings(user.username, fields)
            except BackendError as e:
                logger.warning("settings_save_failed", username=user.username, error=str(e))
                return SettingsResult(ok=False, message=str(e), error_kind=e.kind)

        self.user = response.user
        logger.info("settings_saved", username=self.user.username)
        return SettingsResult(ok=True, message=response.message or SETTINGS_SAVED, user=self.user)

    async def about(self) -> AboutInfo:
        try:
            return await self.client.get_about(self.language)
        except BackendError as e:
            logger.warning("about_fetch_failed", error=str(e))
            return FALLBACK_ABOUT

    # -- rendering --------------------------------------------------------

    def view_state(self) -> dict[str, Any]:
        """JSON-ready snapshot of everything the active screen renders."""
        state: dict[str, Any] = {
            "screen": self.screen.value,
            "topic": self.topic,
            "display_topic": display_topic(self.topic) if self.topic else "",
            "language": self.language.value,
            "is_loading": self.is_loading,
            "error": self.error.model_dump() if self.error else None,
            "user": self.user.model_dump(mode="json") if self.user else None,
        }
        if self.user is not None:
            completed = self.user.completed_topic_set
            state["dashboard"] = {
                "progress_percent": level_progress_percent(self.user.total_xp, self.user.level),
                "max_level_in_rank": MAX_LEVEL_IN_RANK,
                "bonus_unlocked": bonus_unlocked(self.user.topics_completed),
                "topics": [
                    {**t.model_dump(), "completed": t.id in completed} for t in TOPICS
                ],
            }

        reveal = self.result is not None
        if self.screen is Screen.ASSISTED and self.assisted_lesson is not None:
            state["lesson"] = self.assisted_lesson.lesson
            state["quiz"] = _public_quiz(self.assisted_lesson.quiz, reveal)
        elif self.screen is Screen.SELF:
            state["lesson"] = self.self_lesson
            state["chat"] = [m.model_dump() for m in self.chat]
            state["is_chat_loading"] = self.is_chat_loading
        elif self.screen is Screen.BONUS and self.trivia is not None:
            state["quiz"] = _public_quiz(self.trivia.quiz, reveal)

        if self.result is not None:
            state["answers"] = {str(k): v for k, v in self.answers.items()}
            state["result"] = self.result.model_dump(
                mode="json", include={"kind", "score", "message", "xp_gained"}
            )
        return state
