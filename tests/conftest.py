"""Shared fixtures: throwaway SQLite database, storage root, cache and mail outbox."""
from __future__ import annotations

import sys
from pathlib import Path

import pytest

# Make the farwell package importable when running from a checkout
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

from farwell.core import cache as core_cache  # noqa: E402
from farwell.core import config as core_config  # noqa: E402
from farwell.core.rate_limiter import reset_rate_limits  # noqa: E402
from farwell.db import create_tables  # noqa: E402
from farwell.db import session as db_session  # noqa: E402
import farwell.services.auth_service as auth_service  # noqa: E402


class FakeClock:
    def __init__(self, start: float = 1_000.0) -> None:
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def _reset_caches() -> None:
    core_config.get_settings.cache_clear()
    db_session.get_engine.cache_clear()
    db_session._get_sessionmaker.cache_clear()  # type: ignore[attr-defined]


@pytest.fixture()
def clock():
    return FakeClock()


@pytest.fixture()
def settings_env(tmp_path, monkeypatch):
    """Point config at temp paths and reset every cached singleton."""
    monkeypatch.setenv("DATABASE_URL", f"sqlite:///{tmp_path / 'test.db'}")
    monkeypatch.setenv("STORAGE_ROOT", str(tmp_path / "storage"))
    monkeypatch.setenv("CACHE_BACKEND", "memory")
    monkeypatch.setenv("PUBLIC_BASE_URL", "http://testserver")
    for name in ("SMTP_HOST", "SMTP_USER", "SMTP_PASSWORD", "EXPOSE_ACTIVATION_TOKEN", "LOGIN_RATE_LIMIT",
                 "REGISTER_RATE_LIMIT", "EMPLOYEE_CACHE_TTL_SECONDS", "MAX_UPLOAD_KB"):
        monkeypatch.delenv(name, raising=False)
    _reset_caches()
    reset_rate_limits()
    yield tmp_path
    core_cache.set_cache(None)
    _reset_caches()


@pytest.fixture()
def db_env(settings_env, clock):
    """Fresh schema per test plus an in-memory cache driven by ``clock``."""
    engine = db_session.get_engine()
    create_tables.drop_all()
    create_tables.create_all()
    core_cache.set_cache(core_cache.InMemoryCacheBackend(clock=clock))

    yield settings_env

    create_tables.drop_all()
    engine.dispose()


@pytest.fixture()
def outbox(monkeypatch):
    """Capture activation mails instead of talking to SMTP."""
    sent: list[dict] = []

    def fake_send(subject, to_email, html_body, text_body=None):
        sent.append({"subject": subject, "to": to_email, "html": html_body, "text": text_body})
        return True

    monkeypatch.setattr(auth_service, "send_email", fake_send)
    return sent


@pytest.fixture()
def client(db_env, outbox):
    from fastapi.testclient import TestClient

    from farwell.app import create_app

    with TestClient(create_app()) as test_client:
        yield test_client
