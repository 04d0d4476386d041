"""Shared fixtures: a SQLite database and an application instance."""

from __future__ import annotations

import os
import sys
import tempfile
import threading
from pathlib import Path

import pytest

ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

TEST_DB_PATH = Path(tempfile.gettempdir()) / "careerzone_ledger_test.db"
os.environ["DATABASE_URL"] = f"sqlite:///{TEST_DB_PATH}"
os.environ["SECRET_KEY"] = "test-secret"
os.environ["INTERNAL_API_KEY"] = "internal-test-key"
os.environ["APP_TIMEZONE"] = "UTC"
os.environ["NOTIFICATION_SWEEP_INTERVAL_SECONDS"] = "0"
os.environ["LEDGER_RETRY_BACKOFF_SECONDS"] = "0"

from careerzone.config import get_settings  # noqa: E402

get_settings.cache_clear()

from careerzone.infrastructure.database import (  # noqa: E402
    Base,
    SessionLocal,
    engine,
    initialize_database,
)
from careerzone.infrastructure.security import create_access_token  # noqa: E402

INTERNAL_HEADERS = {"X-Internal-Key": "internal-test-key"}


@pytest.fixture(autouse=True)
def reset_database():
    """Ensure the test database starts from a clean state for each test."""

    Base.metadata.drop_all(bind=engine)
    initialize_database()
    yield
    Base.metadata.drop_all(bind=engine)
    engine.dispose()


@pytest.fixture()
def session():
    with SessionLocal() as db:
        yield db


@pytest.fixture()
def client():
    pytest.importorskip("httpx")
    from fastapi.testclient import TestClient

    from main import create_app

    with TestClient(create_app()) as test_client:
        yield test_client


@pytest.fixture()
def auth_headers():
    """Return a helper building bearer headers for a user id."""

    def _build(user_id: str) -> dict[str, str]:
        return {"Authorization": f"Bearer {create_access_token(user_id)}"}

    return _build


@pytest.fixture()
def internal_headers() -> dict[str, str]:
    return dict(INTERNAL_HEADERS)


@pytest.fixture()
def run_concurrently():
    """Return a helper starting ``count`` threads together and joining them.

    The first exception raised by a worker is re-raised in the test.
    """

    def _run(worker, count: int) -> None:
        barrier = threading.Barrier(count)
        errors: list[BaseException] = []

        def _target(index: int) -> None:
            barrier.wait()
            try:
                worker(index)
            except BaseException as exc:  # noqa: BLE001
                errors.append(exc)

        threads = [threading.Thread(target=_target, args=(index,)) for index in range(count)]
        for thread in threads:
            thread.start()
        for thread in threads:
            thread.join()
        if errors:
            raise errors[0]

    return _run
