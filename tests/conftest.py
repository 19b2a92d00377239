"""Shared pytest fixtures for all tests."""

import pytest
from fastapi.testclient import TestClient

from fragments.auth import hash_password
from fragments.config import Settings
from fragments.fragment import FragmentStore
from fragments.main import create_app
from fragments.repositories import MemoryBackend, SQLiteBackend
from fragments.type_registry import default_registry
from helpers import USER1, USER2, make_image


@pytest.fixture(scope="session")
def htpasswd_file(tmp_path_factory):
    """
    Write an htpasswd file with the two test users.

    Returns:
        Path to the htpasswd file
    """
    path = tmp_path_factory.mktemp("auth") / ".htpasswd"
    lines = ["# test users"]
    lines += [f"{username}:{hash_password(password, rounds=4)}" for username, password in (USER1, USER2)]
    path.write_text("\n".join(lines) + "\n")
    return path


@pytest.fixture
def settings(htpasswd_file, tmp_path):
    """
    Settings pointing at temporary storage paths.
    """
    return Settings(
        htpasswd_file=str(htpasswd_file),
        database_path=str(tmp_path / "fragments.db"),
        data_dir=str(tmp_path / "data"),
    )


@pytest.fixture
def app(settings):
    return create_app(settings)


@pytest.fixture
def client(app):
    """Create FastAPI test client."""
    return TestClient(app)


@pytest.fixture
def registry():
    return default_registry()


@pytest.fixture(params=["memory", "sqlite"])
def backend(request, tmp_path):
    """
    Each storage backend in turn.
    """
    if request.param == "sqlite":
        return SQLiteBackend(str(tmp_path / "fragments.db"), str(tmp_path / "data"))
    return MemoryBackend()


@pytest.fixture
def store(backend, registry):
    return FragmentStore(backend, registry)


@pytest.fixture
def png_bytes():
    return make_image("PNG")


@pytest.fixture
def jpeg_bytes():
    return make_image("JPEG")
