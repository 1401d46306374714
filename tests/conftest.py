import os
import sys
from pathlib import Path

import pytest
from fastapi.testclient import TestClient

# Ensure project root is on sys.path so 'src' is importable during tests
ROOT = Path(__file__).resolve().parents[1]
if str(ROOT) not in sys.path:
    sys.path.insert(0, str(ROOT))

os.environ.setdefault("SUPABASE_DISABLED", "1")
os.environ.setdefault("PROCESSING_DELAY_SECONDS", "0")


@pytest.fixture()
def settings(tmp_path):
    from src.infrastructure.config import Settings

    return Settings(
        supabase_disabled=True,
        upload_dir=tmp_path / "public" / "uploads",
        processing_delay_seconds=0,
        log_level="DEBUG",
    )


@pytest.fixture()
def app(settings):
    # lazy import after env configured
    from src.main import create_app

    return create_app(settings)


@pytest.fixture()
def client(app) -> TestClient:
    with TestClient(app) as c:
        yield c


@pytest.fixture()
def auth_header() -> dict[str, str]:
    # any token is accepted in disabled mode
    return {"Authorization": "Bearer u1"}


@pytest.fixture()
def other_auth_header() -> dict[str, str]:
    return {"Authorization": "Bearer u2"}
