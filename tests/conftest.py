import pytest

from dobao.core.config import settings
from dobao.services.store import LocalStore


@pytest.fixture
def store():
    """Fresh in-memory store for each test."""
    return LocalStore()


@pytest.fixture
def admin_token(monkeypatch):
    monkeypatch.setattr(settings, "ADMIN_TOKEN", "test-admin-token")
    return "test-admin-token"
