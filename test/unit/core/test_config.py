import pytest

from app.core.config import Settings


@pytest.fixture
def clean_env(monkeypatch):
    for name in ("ENVIRONMENT", "NODE_ENV", "PORT", "CORS_ORIGINS", "REMOTION_COMMAND"):
        monkeypatch.delenv(name, raising=False)
    return monkeypatch


def test_defaults(clean_env):
    s = Settings(_env_file=None)

    assert s.port == 10000
    assert s.environment == "development"
    assert s.is_production is False
    assert s.render_timeout_seconds == 300
    assert s.max_concurrent_renders == 1
    assert s.remotion_composition_id == "VideoShort"
    assert s.remotion_codec == "h264"
    assert s.output_directory == "out"
    assert s.max_request_body_size == 50 * 1024 * 1024


def test_node_env_is_accepted_for_environment(clean_env):
    clean_env.setenv("NODE_ENV", " Production ")

    s = Settings(_env_file=None)

    assert s.environment == "production"
    assert s.is_production is True


def test_port_and_cors_from_env(clean_env):
    clean_env.setenv("PORT", "8080")
    clean_env.setenv("CORS_ORIGINS", "http://a.test, http://b.test")

    s = Settings(_env_file=None)

    assert s.port == 8080
    assert s.cors_origins == ["http://a.test", "http://b.test"]


def test_remotion_command_split(clean_env):
    clean_env.setenv("REMOTION_COMMAND", "node ./node_modules/.bin/remotion")

    s = Settings(_env_file=None)

    assert s.remotion_command_args == ["node", "./node_modules/.bin/remotion"]
