"""REST API routes driving a learner session."""

from typing import Literal

import structlog
from fastapi import APIRouter, Depends, FastAPI, Request, Response
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field

from learnsphere.catalog import MAX_LEVEL_IN_RANK, RANKS, TOPICS, XP_PER_LEVEL
from learnsphere.errors import (
    AuthError,
    BackendError,
    BackendNotConfiguredError,
    BackendUnavailableError,
    ContentGenerationError,
    IncompleteQuizError,
    LearnSphereError,
    NavigationError,
    RequestInFlightError,
)
from learnsphere.models.user import Language
from learnsphere.session.controller import SessionController, SettingsUpdate
from learnsphere.session.registry import SessionRegistry
from learnsphere.session.router import Screen

logger = structlog.get_logger()
router = APIRouter(prefix="/api")


class AuthRequest(BaseModel):
    username: str = Field(min_length=1)
    password: str = ""


class NavigateRequest(BaseModel):
    topic: str = ""


class AnswersRequest(BaseModel):
    answers: dict[int, str]


class ChatRequest(BaseModel):
    text: str


class LanguageRequest(BaseModel):
    language: Language


def get_session(request: Request, response: Response) -> SessionController:
    """Resolve (or start) the caller's session from its cookie."""
    settings = request.app.state.settings
    registry: SessionRegistry = request.app.state.registry
    cookie = request.cookies.get(settings.session_cookie_name)
    session_id, controller = registry.get_or_create(cookie)
    if session_id != cookie:
        response.set_cookie(settings.session_cookie_name, session_id, httponly=True, samesite="lax")
    request.state.session = controller
    request.state.session_id = session_id
    return controller


def peek_session(request: Request) -> SessionController:
    """Caller's session for read-only requests; anonymous callers are not stored."""
    settings = request.app.state.settings
    registry: SessionRegistry = request.app.state.registry
    return registry.peek(request.cookies.get(settings.session_cookie_name))


def _status_for(exc: LearnSphereError) -> int:
    if isinstance(exc, AuthError):
        return 401
    if isinstance(exc, (NavigationError, RequestInFlightError)):
        return 409
    if isinstance(exc, IncompleteQuizError):
        return 422
    if isinstance(exc, (BackendUnavailableError, BackendNotConfiguredError)):
        return 503
    if isinstance(exc, (BackendError, ContentGenerationError)):
        return 502
    return 400


async def handle_app_error(request: Request, exc: LearnSphereError) -> JSONResponse:
    """Turn a session error into a JSON body the page can show."""
    message = str(exc)
    controller: SessionController | None = getattr(request.state, "session", None)
    if (
        isinstance(exc, (AuthError, BackendError, ContentGenerationError))
        and controller is not None
        and controller.error is not None
    ):
        message = controller.error.message
    kind = exc.error_kind.value if isinstance(exc, AuthError) else exc.kind
    logger.warning("request_failed", path=request.url.path, error_kind=kind, message=message)
    return JSONResponse({"error": kind, "message": message}, status_code=_status_for(exc))


def register_error_handlers(app: FastAPI) -> None:
    app.add_exception_handler(LearnSphereError, handle_app_error)


@router.get("/health")
async def health_check() -> dict:
    """Health check endpoint."""
    return {"status": "ok"}


@router.get("/catalog")
async def get_catalog() -> dict:
    return {
        "topics": [t.model_dump() for t in TOPICS],
        "ranks": [r.value for r in RANKS],
        "xp_per_level": XP_PER_LEVEL,
        "max_level_in_rank": MAX_LEVEL_IN_RANK,
    }


@router.get("/state")
async def get_state(session: SessionController = Depends(peek_session)) -> dict:
    return session.view_state()


@router.post("/auth/logout")
async def logout(request: Request, session: SessionController = Depends(get_session)) -> dict:
    session.logout()
    request.app.state.registry.discard(request.state.session_id)
    return {"screen": Screen.LOGIN.value}


@router.post("/auth/{mode}")
async def authenticate(
    mode: Literal["sign-in", "sign-up"],
    body: AuthRequest,
    session: SessionController = Depends(get_session),
) -> dict:
    await session.authenticate(mode.replace("-", "_"), body.username, body.password)
    return session.view_state()


@router.post("/language")
async def set_language(body: LanguageRequest, session: SessionController = Depends(get_session)) -> dict:
    session.set_language(body.language)
    return session.view_state()


@router.post("/navigate/back")
async def navigate_back(session: SessionController = Depends(get_session)) -> dict:
    session.back_to_dashboard()
    return session.view_state()


@router.post("/navigate/{mode}")
async def navigate(
    mode: Literal["assisted", "self", "bonus"],
    body: NavigateRequest | None = None,
    session: SessionController = Depends(get_session),
) -> dict:
    session.select_mode(Screen(mode), body.topic if body else "")
    return session.view_state()


@router.post("/dashboard/refresh")
async def refresh_dashboard(session: SessionController = Depends(get_session)) -> dict:
    await session.refresh_dashboard()
    return session.view_state()


@router.post("/assisted/lesson")
async def load_assisted_lesson(session: SessionController = Depends(get_session)) -> dict:
    await session.load_assisted_lesson()
    return session.view_state()


@router.post("/assisted/submit")
async def submit_assisted_quiz(
    body: AnswersRequest, session: SessionController = Depends(get_session)
) -> dict:
    await session.submit_assisted_quiz(body.answers)
    return session.view_state()


@router.post("/self/lesson")
async def load_self_lesson(session: SessionController = Depends(get_session)) -> dict:
    await session.load_self_lesson()
    return session.view_state()


@router.post("/self/chat")
async def send_chat(body: ChatRequest, session: SessionController = Depends(get_session)) -> dict:
    await session.send_chat(body.text)
    return session.view_state()


@router.post("/bonus/trivia")
async def load_bonus_trivia(session: SessionController = Depends(get_session)) -> dict:
    await session.load_bonus_trivia()
    return session.view_state()


@router.post("/bonus/submit")
async def submit_bonus_quiz(
    body: AnswersRequest, session: SessionController = Depends(get_session)
) -> dict:
    await session.submit_bonus_quiz(body.answers)
    return session.view_state()


@router.post("/result/dismiss")
async def dismiss_result(session: SessionController = Depends(get_session)) -> dict:
    session.dismiss_result()
    return session.view_state()


@router.post("/settings")
async def update_settings(
    body: SettingsUpdate,
    response: Response,
    session: SessionController = Depends(get_session),
) -> dict:
    result = await session.update_settings(body)
    if not result.ok:
        response.status_code = 422 if result.error_kind == "settings_invalid" else 502
    return result.model_dump(mode="json")


@router.get("/about")
async def get_about(session: SessionController = Depends(peek_session)) -> dict:
    about = await session.about()
    return about.model_dump()


@router.post("/test-connection")
async def test_connection(session: SessionController = Depends(peek_session)) -> dict:
    try:
        reply = await session.client.test_connection()
    except BackendError as e:
        logger.warning("connection_test_failed", error=str(e))
        return {"ok": False, "message": f"Failed to connect: {e}"}
    return {"ok": True, "message": f'Success! Backend says: "{reply.message}"'}
