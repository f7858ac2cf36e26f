"""Application configuration using pydantic-settings."""

import functools
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import Field
from pydantic_settings import BaseSettings, PydanticBaseSettingsSource, SettingsConfigDict


def _find_project_root() -> Path:
    """Find project root by locating pyproject.toml."""
    current = Path(__file__).resolve()
    for parent in [current] + list(current.parents):
        if (parent / "pyproject.toml").exists():
            return parent
    return Path(__file__).resolve().parent.parent.parent


class YamlSettingsSource(PydanticBaseSettingsSource):
    """Custom settings source that loads from config/settings.yaml."""

    def get_field_value(self, field_name: str) -> tuple[Any, str, bool]:
        """Not used - we implement __call__ instead."""
        return None, "", False

    def __call__(self) -> dict[str, Any]:
        yaml_path = _find_project_root() / "config" / "settings.yaml"
        if not yaml_path.exists():
            return {}

        with open(yaml_path, encoding='utf-8') as f:
            data = yaml.safe_load(f) or {}

        # Flatten nested structure to match Settings field names
        flattened = {}
        if 'server' in data:
            flattened['host'] = data['server'].get('host')
            flattened['port'] = data['server'].get('port')
            flattened['allowed_origins'] = data['server'].get('allowed_origins')
            flattened['session_cookie_name'] = data['server'].get('session_cookie_name')
            flattened['session_idle_timeout_seconds'] = data['server'].get('session_idle_timeout_seconds')
            flattened['max_sessions'] = data['server'].get('max_sessions')
        if 'backend' in data:
            backend = data['backend']
            flattened['backend_url'] = backend.get('url')
            flattened['backend_timeout_seconds'] = backend.get('timeout_seconds')
            for name, path in (backend.get('endpoints') or {}).items():
                flattened[f'endpoint_{name}'] = path
        if 'content' in data:
            content = data['content']
            flattened['content_source'] = content.get('source')
            flattened['lesson_model'] = content.get('lesson_model')
            flattened['deep_lesson_model'] = content.get('deep_lesson_model')
            flattened['chat_model'] = content.get('chat_model')
        if 'quiz' in data:
            flattened['answer_normalization'] = data['quiz'].get('answer_normalization')

        # Remove None values
        return {k: v for k, v in flattened.items() if v is not None}


class Settings(BaseSettings):
    """Application settings loaded from environment and config files."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        extra="ignore",
    )

    # Learning backend
    backend_url: str | None = Field(default=None, description="Base URL of the learning backend")
    backend_timeout_seconds: float = Field(default=30.0)
    endpoint_sign_in: str = Field(default="/signIn")
    endpoint_sign_up: str = Field(default="/signUp")
    endpoint_update_xp: str = Field(default="/updateXP")
    endpoint_bonus: str = Field(default="/getBonus")
    endpoint_update_settings: str = Field(default="/updateSettings")
    endpoint_dashboard: str = Field(default="/dashboard")
    endpoint_about: str = Field(default="/about")
    endpoint_test_connection: str = Field(default="/test-connection")
    endpoint_assisted_lesson: str = Field(default="/assisted-lesson")
    endpoint_self_lesson: str = Field(default="/self-lesson")
    endpoint_chat: str = Field(default="/chat")
    endpoint_bonus_trivia: str = Field(default="/bonus-trivia")

    # Content generation
    content_source: Literal["backend", "openai"] = Field(default="backend")
    openai_api_key: str | None = Field(default=None)
    lesson_model: str = Field(default="gpt-4o-mini")
    deep_lesson_model: str = Field(default="gpt-4o")
    chat_model: str = Field(default="gpt-4o-mini")

    # Quiz
    answer_normalization: bool = Field(default=False)

    # Server
    host: str = Field(default="0.0.0.0")
    port: int = Field(default=8000)
    allowed_origins: str = Field(default="http://localhost:5173,http://127.0.0.1:5173")
    session_cookie_name: str = Field(default="learnsphere_session")
    session_idle_timeout_seconds: float = Field(default=3600.0)
    max_sessions: int = Field(default=1000)

    # Paths
    project_root: Path = Field(default_factory=_find_project_root)

    @property
    def origins(self) -> list[str]:
        return [o.strip() for o in self.allowed_origins.split(",") if o.strip()]

    @property
    def backend_configured(self) -> bool:
        return bool(self.backend_url) and "YOUR_BACKEND_URL_HERE" not in self.backend_url

    @classmethod
    def settings_customise_sources(
        cls,
        settings_cls: type[BaseSettings],
        init_settings: PydanticBaseSettingsSource,
        env_settings: PydanticBaseSettingsSource,
        dotenv_settings: PydanticBaseSettingsSource,
        file_secret_settings: PydanticBaseSettingsSource,
    ) -> tuple[PydanticBaseSettingsSource, ...]:
        """Customise settings sources to include YAML file.

        Priority order (highest to lowest):
        1. init_settings (arguments passed to Settings())
        2. env_settings (environment variables)
        3. dotenv_settings (.env file)
        4. YamlSettingsSource (settings.yaml)
        5. file_secret_settings
        """
        return (
            init_settings,
            env_settings,
            dotenv_settings,
            YamlSettingsSource(settings_cls),
            file_secret_settings,
        )


@functools.lru_cache
def get_settings() -> Settings:
    """Get application settings singleton."""
    return Settings()
