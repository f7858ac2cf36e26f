"""Tests for settings loading."""

import pytest

from learnsphere import config
from learnsphere.config import Settings, YamlSettingsSource


@pytest.fixture
def yaml_root(tmp_path, monkeypatch):
    (tmp_path / "config").mkdir()
    monkeypatch.setattr(config, "_find_project_root", lambda: tmp_path)
    monkeypatch.delenv("BACKEND_URL", raising=False)
    monkeypatch.delenv("CONTENT_SOURCE", raising=False)
    return tmp_path


def write_yaml(root, text):
    (root / "config" / "settings.yaml").write_text(text, encoding="utf-8")


class TestYamlSource:
    def test_nested_sections_flattened(self, yaml_root):
        write_yaml(
            yaml_root,
            "backend:\n"
            "  url: http://yaml.test\n"
            "  endpoints:\n"
            "    sign_in: /login\n"
            "content:\n"
            "  source: openai\n"
            "quiz:\n"
            "  answer_normalization: true\n",
        )
        values = YamlSettingsSource(Settings)()
        assert values == {
            "backend_url": "http://yaml.test",
            "endpoint_sign_in": "/login",
            "content_source": "openai",
            "answer_normalization": True,
        }

    def test_missing_file(self, yaml_root):
        assert YamlSettingsSource(Settings)() == {}

    def test_yaml_feeds_settings(self, yaml_root):
        write_yaml(yaml_root, "backend:\n  url: http://yaml.test\n  timeout_seconds: 5\n")
        settings = Settings()
        assert settings.backend_url == "http://yaml.test"
        assert settings.backend_timeout_seconds == 5
        assert settings.endpoint_update_xp == "/updateXP"

    def test_env_beats_yaml(self, yaml_root, monkeypatch):
        write_yaml(yaml_root, "backend:\n  url: http://yaml.test\n")
        monkeypatch.setenv("BACKEND_URL", "http://env.test")
        assert Settings().backend_url == "http://env.test"

    def test_init_beats_env(self, yaml_root, monkeypatch):
        monkeypatch.setenv("BACKEND_URL", "http://env.test")
        assert Settings(backend_url="http://init.test").backend_url == "http://init.test"


class TestDerivedValues:
    def test_origins_split(self):
        settings = Settings(allowed_origins="http://a.test, http://b.test,")
        assert settings.origins == ["http://a.test", "http://b.test"]

    @pytest.mark.parametrize(
        "url, expected",
        [
            (None, False),
            ("", False),
            ("https://YOUR_BACKEND_URL_HERE", False),
            ("https://api.learnsphere.test", True),
        ],
    )
    def test_backend_configured(self, url, expected):
        assert Settings(backend_url=url).backend_configured is expected
