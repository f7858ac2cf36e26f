"""HTTP client for the learning backend (auth, XP, bonus, settings)."""

from typing import Any, TypeVar

import httpx
import structlog
from pydantic import BaseModel

from learnsphere.config import Settings
from learnsphere.errors import (
    AuthError,
    AuthErrorKind,
    BackendError,
    BackendNotConfiguredError,
    BackendUnavailableError,
)
from learnsphere.models.content import AboutInfo
from learnsphere.models.responses import (
    AuthResponse,
    BonusResponse,
    ConnectionTestResponse,
    DashboardResponse,
    SettingsResponse,
    XPUpdateResponse,
)
from learnsphere.models.user import Language

logger = structlog.get_logger()

ModelT = TypeVar("ModelT", bound=BaseModel)

UNAVAILABLE_MESSAGE = (
    "Unable to connect to the learning server. "
    "The server may be waking up, please try again in a moment."
)

_NOT_FOUND_HINTS = ("not found", "does not exist")
_CREDENTIAL_HINTS = ("password", "credential")


def classify_auth_error(error: BackendError) -> AuthErrorKind:
    """Map a failed sign-in to a structured error kind.

    Status codes decide when present; the message text is only consulted
    for backends that report failures with a 2xx/5xx and a free-form body.
    """
    if error.status_code == 404:
        return AuthErrorKind.USER_NOT_FOUND
    if error.status_code in (401, 403):
        return AuthErrorKind.BAD_CREDENTIALS
    text = str(error).lower()
    if any(hint in text for hint in _NOT_FOUND_HINTS):
        return AuthErrorKind.USER_NOT_FOUND
    if any(hint in text for hint in _CREDENTIAL_HINTS):
        return AuthErrorKind.BAD_CREDENTIALS
    return AuthErrorKind.GENERIC


def _error_message(response: httpx.Response) -> str:
    message = f"Request failed with status {response.status_code}"
    try:
        body = response.json()
    except ValueError:
        return response.text or message
    if isinstance(body, dict):
        for key in ("detail", "message"):
            # FastAPI validation errors carry a list under "detail"
            if isinstance(body.get(key), str) and body[key]:
                return body[key]
    return message


class BackendClient:
    """Posts one JSON object per call and parses one JSON object back.

    Args:
        settings: Application settings (base URL, endpoint paths, timeout).
        transport: Optional httpx transport, used by tests to stub the backend.
    """

    def __init__(self, settings: Settings, transport: httpx.AsyncBaseTransport | None = None):
        self.settings = settings
        self._client = httpx.AsyncClient(
            base_url=settings.backend_url or "",
            timeout=settings.backend_timeout_seconds,
            headers={"Accept": "application/json"},
            transport=transport,
        )

    async def aclose(self) -> None:
        await self._client.aclose()

    async def post(self, endpoint: str, body: dict[str, Any], model: type[ModelT]) -> ModelT:
        """POST `body` to `endpoint` and validate the reply as `model`.

        Raises:
            BackendNotConfiguredError: No backend URL is configured.
            BackendUnavailableError: Network-level failure.
            BackendError: Non-2xx status or a malformed reply.
        """
        if not self.settings.backend_configured:
            raise BackendNotConfiguredError(
                "Learning backend is not configured. Set BACKEND_URL in your environment or .env file.",
                endpoint=endpoint,
            )
        try:
            response = await self._client.post(endpoint, json=body)
        except httpx.TransportError as e:
            logger.error("backend_unreachable", endpoint=endpoint, error=str(e))
            raise BackendUnavailableError(UNAVAILABLE_MESSAGE, endpoint=endpoint) from e

        if response.is_error:
            message = _error_message(response)
            logger.warning(
                "backend_request_failed",
                endpoint=endpoint,
                status_code=response.status_code,
                message=message,
            )
            raise BackendError(message, status_code=response.status_code, endpoint=endpoint)

        try:
            return model.model_validate(response.json())
        except ValueError as e:
            logger.error("backend_response_invalid", endpoint=endpoint, error=str(e))
            raise BackendError(
                f"Unexpected response from {endpoint}", status_code=response.status_code, endpoint=endpoint
            ) from e

    async def sign_in(self, username: str, password: str) -> AuthResponse:
        """Sign in; failures are re-raised as classified AuthError."""
        try:
            response = await self.post(
                self.settings.endpoint_sign_in,
                {"username": username, "password": password},
                AuthResponse,
            )
        except BackendError as e:
            raise AuthError(str(e), classify_auth_error(e)) from e
        if response.user is None:
            raise AuthError("User not found", AuthErrorKind.USER_NOT_FOUND)
        return response

    async def sign_up(self, username: str, password: str) -> AuthResponse:
        """Create an account; the server's message (e.g. username taken) is kept verbatim."""
        try:
            response = await self.post(
                self.settings.endpoint_sign_up,
                {"username": username, "password": password},
                AuthResponse,
            )
        except BackendError as e:
            raise AuthError(str(e), AuthErrorKind.GENERIC) from e
        if response.user is None:
            raise AuthError(response.message or "Sign up failed", AuthErrorKind.GENERIC)
        return response

    async def update_xp(self, username: str, topic: str, score: int, level: int) -> XPUpdateResponse:
        return await self.post(
            self.settings.endpoint_update_xp,
            {"username": username, "topic": topic, "score": score, "level": level},
            XPUpdateResponse,
        )

    async def send_bonus_results(self, username: str, score: int) -> BonusResponse:
        return await self.post(
            self.settings.endpoint_bonus,
            {"username": username, "score": score},
            BonusResponse,
        )

    async def update_settings(self, username: str, fields: dict[str, Any]) -> SettingsResponse:
        return await self.post(
            self.settings.endpoint_update_settings,
            {"username": username, **fields},
            SettingsResponse,
        )

    async def get_dashboard(self, username: str) -> DashboardResponse:
        return await self.post(self.settings.endpoint_dashboard, {"username": username}, DashboardResponse)

    async def get_about(self, language: Language) -> AboutInfo:
        return await self.post(self.settings.endpoint_about, {"language": language.value}, AboutInfo)

    async def test_connection(self) -> ConnectionTestResponse:
        return await self.post(
            self.settings.endpoint_test_connection, {"prompt": "ping"}, ConnectionTestResponse
        )
