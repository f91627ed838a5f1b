"""
Test configuration and fixtures for FastAPI URL shortener.
This centralizes all test setup, making individual tests clean.
"""

import pytest
from fastapi.testclient import TestClient
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from main import app
from shorturl_app.analytics.geo import GeoResolver, is_local_address, LOCAL_LOCATION
from shorturl_app.database.connection import Base, get_db
from shorturl_app.dependencies import get_geo_resolver, get_preview_fetcher
from shorturl_app.services.link_preview import OGMetadata, PreviewFetcher

# Test database configuration
SQLALCHEMY_DATABASE_URL = "sqlite:///./test.db"
engine = create_engine(SQLALCHEMY_DATABASE_URL, connect_args={"check_same_thread": False})
TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

FAKE_LOCATION = "台灣, 台北市"


class FakeGeoResolver(GeoResolver):
    """Answers every public IP with a fixed location, no network"""

    def __init__(self):
        super().__init__(api_url="http://geo.invalid/{ip}", timeout=5.0)
        self.lookups = []
        self.location = FAKE_LOCATION

    def lookup(self, ip: str) -> str:
        if is_local_address(ip):
            return LOCAL_LOCATION
        self.lookups.append(ip)
        return FAKE_LOCATION


class FakePreviewFetcher(PreviewFetcher):
    """Returns canned Open Graph data instead of scraping the target"""

    def __init__(self):
        super().__init__(timeout=5.0)
        self.fetched = []

    def fetch(self, target_url: str) -> OGMetadata:
        self.fetched.append(target_url)
        return OGMetadata(
            title="Example Domain",
            description="An example page",
            image="https://www.example.com/cover.png",
            site_name="Example",
        )


@pytest.fixture(scope="function")
def db_session():
    """
    Create a fresh database session for each test.
    This ensures tests are isolated and don't affect each other.
    """
    # Create tables
    Base.metadata.create_all(bind=engine)

    # Create session
    db = TestingSessionLocal()

    try:
        yield db
    finally:
        # Cleanup
        db.close()
        Base.metadata.drop_all(bind=engine)


@pytest.fixture
def geo_resolver():
    return FakeGeoResolver()


@pytest.fixture
def preview_fetcher():
    return FakePreviewFetcher()


@pytest.fixture(scope="function")
def client(db_session, geo_resolver, preview_fetcher):
    """
    Create a test client with database and outbound HTTP dependencies overridden.
    This is the main fixture that tests will use.
    """
    def override_get_db():
        yield db_session

    app.dependency_overrides[get_db] = override_get_db
    app.dependency_overrides[get_geo_resolver] = lambda: geo_resolver
    app.dependency_overrides[get_preview_fetcher] = lambda: preview_fetcher

    # Create test client
    with TestClient(app) as test_client:
        yield test_client

    # Clean up overrides
    app.dependency_overrides.clear()
