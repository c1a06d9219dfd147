import os
from pathlib import Path

import pytest
from dotenv import load_dotenv

# Load environment variables from .env files
# Priority: system env vars > .env (current dir) > ../.env (parent dir)
backend_dir = Path(__file__).parent.parent
for env_file in (backend_dir / ".env", backend_dir.parent / ".env"):
    if env_file.exists():
        load_dotenv(env_file, override=False)

# Tests run against an in-memory SQLite database unless told otherwise; this
# must be set before the app (and its engine) is imported
os.environ["DATABASE_URL"] = os.getenv("TEST_DATABASE_URL", "sqlite://")
os.environ.setdefault("LOG_LEVEL", "WARNING")
os.environ.setdefault("DEBUG", "false")

from fastapi.testclient import TestClient  # noqa: E402
from sqlalchemy import create_engine  # noqa: E402
from sqlalchemy.orm import sessionmaker  # noqa: E402
from sqlalchemy.pool import StaticPool  # noqa: E402

from app.core.config_file import Settings, get_settings  # noqa: E402
from app.core.db.deps import get_db  # noqa: E402
from app.core.db.session import Base  # noqa: E402
from app.core.reporting.service import ReportingService  # noqa: E402
from app.core.reporting.sources import get_data_source_registry  # noqa: E402
from app.main import app  # noqa: E402
from app.schemas.reporting import DataSource  # noqa: E402
from tests.helpers import SAMPLE_AGENTS, SAMPLE_ALERTS, FakeDataSource, make_registry  # noqa: E402

# Clear settings cache so the test database URL is picked up
get_settings.cache_clear()

USER_ID = "analyst-1"
OTHER_USER_ID = "analyst-2"


@pytest.fixture(scope="function")
def db_session():
    """Create a fresh in-memory database for each test."""
    engine = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    Base.metadata.create_all(bind=engine)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    db = TestingSessionLocal()
    try:
        yield db
    finally:
        db.close()
        Base.metadata.drop_all(bind=engine)
        engine.dispose()


@pytest.fixture
def alerts_source():
    return FakeDataSource(DataSource.WAZUH_ALERTS, SAMPLE_ALERTS)


@pytest.fixture
def agents_source():
    return FakeDataSource(DataSource.WAZUH_AGENTS, SAMPLE_AGENTS)


@pytest.fixture
def registry(alerts_source, agents_source):
    """Registry with fake alert and agent adapters (no IRIS adapter)."""
    return make_registry(alerts_source, agents_source)


@pytest.fixture
def test_settings():
    return Settings(
        DATABASE_URL="sqlite://",
        REPORT_WIDGET_TIMEOUT_SECONDS=5.0,
        REPORT_GENERATION_TIMEOUT_SECONDS=10.0,
        _env_file=None,
    )


@pytest.fixture
def reporting_service(db_session, registry, test_settings):
    return ReportingService(db_session, registry=registry, settings=test_settings)


@pytest.fixture(scope="function")
def client(db_session, registry):
    """Create a test client with database and data source overrides."""

    def override_get_db():
        try:
            yield db_session
        finally:
            pass

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_data_source_registry] = lambda: registry
    with TestClient(app) as test_client:
        yield test_client
    app.dependency_overrides.clear()


@pytest.fixture
def auth_headers():
    return {"X-User-Id": USER_ID}


@pytest.fixture
def other_headers():
    return {"X-User-Id": OTHER_USER_ID}
