import logging

import pytest
from fastapi.testclient import TestClient

import tasks_api.__main__ as entrypoint
from conftest import JWT_KEY
from tasks_api.main import create_app
from tasks_api.repositories import StoreError
from tasks_api.settings import Settings

DB_ENV = {
    "DB_ADDR": "db:5432",
    "DB_USER": "tasks",
    "DB_PASSWORD": "secret",
    "DB_DATABASE": "clinic",
}

OPTIONAL_VARS = ["DATABASE_URL", "HOST", "PORT", "AUTH_JWT_ALGORITHMS", "AUTH_JWT_AUDIENCE", "LOG_LEVEL"]


class TestSchemaBootstrapFailure:
    def test_unopenable_database_aborts_startup(self, tmp_path, caplog):
        settings = Settings(
            database_url=f"sqlite:///{tmp_path / 'missing' / 'dir' / 'tasks.db'}",
            auth_jwt_key=JWT_KEY,
        )
        app = create_app(settings)

        with caplog.at_level(logging.CRITICAL, logger="tasks_api"):
            with pytest.raises(StoreError):
                with TestClient(app):
                    pass

        assert "Failed to create the task schema" in caplog.text
        assert not hasattr(app.state, "task_service")


@pytest.fixture
def main_env(monkeypatch):
    for name in OPTIONAL_VARS:
        monkeypatch.delenv(name, raising=False)
    for name, value in DB_ENV.items():
        monkeypatch.setenv(name, value)
    monkeypatch.setenv("AUTH_JWT_KEY", "key")
    # Leave the test runner's logging configuration alone.
    monkeypatch.setattr(entrypoint, "setup_logging", lambda *args, **kwargs: None)

    served = []
    monkeypatch.setattr(entrypoint.uvicorn, "run", lambda app, **kwargs: served.append((app, kwargs)))
    return monkeypatch, served


class TestMain:
    def test_missing_configuration_exits_with_status_1(self, main_env, caplog):
        env, served = main_env
        env.delenv("AUTH_JWT_KEY")

        with caplog.at_level(logging.CRITICAL, logger="tasks_api"):
            with pytest.raises(SystemExit) as exc:
                entrypoint.main()

        assert exc.value.code == 1
        assert "AUTH_JWT_KEY" in caplog.text
        assert served == []

    @pytest.mark.parametrize("name, value", [("DB_ADDR", "db:abc"), ("LOG_LEVEL", "verbose")])
    def test_malformed_configuration_exits_with_status_1(self, main_env, name, value):
        env, served = main_env
        env.setenv(name, value)

        with pytest.raises(SystemExit) as exc:
            entrypoint.main()

        assert exc.value.code == 1
        assert served == []

    def test_serves_app_on_configured_address(self, main_env):
        env, served = main_env
        env.setenv("HOST", "127.0.0.1")
        env.setenv("PORT", "9191")

        entrypoint.main()

        assert len(served) == 1
        app, kwargs = served[0]
        assert app.title == "Tasks Service"
        assert kwargs["host"] == "127.0.0.1"
        assert kwargs["port"] == 9191
