import pytest
from fastapi.testclient import TestClient

from todo_api.main import create_app
from todo_api.repositories import InMemoryRepository
from todo_api.settings import Settings


def make_settings(**overrides) -> Settings:
    values = dict(
        env="test",
        persistence_backend="memory",
        mongodb_uri="mongodb://localhost:27017",
        mongodb_database="todo_test",
        mongodb_collection="todos",
        mongodb_timeout_ms=100,
        host="127.0.0.1",
        port=8000,
        cors_allow_origins=["*"],
        log_level="WARNING",
    )
    values.update(overrides)
    return Settings(**values)


@pytest.fixture
def settings():
    return make_settings()


@pytest.fixture
def repo():
    return InMemoryRepository()


@pytest.fixture
def client(repo, settings):
    # Each test gets its own app and storage handle
    app = create_app(repository=repo, settings=settings)
    with TestClient(app) as c:
        yield c
