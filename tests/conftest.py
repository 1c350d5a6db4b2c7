import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from core.config import Settings
from database import Base
from services.http_client import HttpClient


class FakeResponse:
    """Stands in for aiohttp.ClientResponse inside `async with session.get(...)`."""

    def __init__(self, status=200, url=None, body="", json_body=None):
        self.status = status
        self.url = url
        self._body = body
        self._json = json_body

    async def text(self):
        return self._body

    async def json(self):
        return self._json


class _RequestContext:
    def __init__(self, outcome):
        self._outcome = outcome

    async def __aenter__(self):
        if isinstance(self._outcome, BaseException):
            raise self._outcome
        return self._outcome

    async def __aexit__(self, exc_type, exc, tb):
        return False


class FakeSession:
    """Routes are keyed by URL or by (METHOD, URL); unknown URLs answer 404."""

    def __init__(self, routes=None):
        self.routes = routes or {}
        self.calls = []

    def _request(self, method, url, **kwargs):
        self.calls.append((method, url))
        outcome = self.routes.get((method, url), self.routes.get(url))
        if outcome is None:
            outcome = FakeResponse(status=404)
        if isinstance(outcome, FakeResponse) and outcome.url is None:
            outcome = FakeResponse(outcome.status, url, outcome._body, outcome._json)
        return _RequestContext(outcome)

    def get(self, url, **kwargs):
        return self._request("GET", url, **kwargs)

    def head(self, url, **kwargs):
        return self._request("HEAD", url, **kwargs)

    def post(self, url, **kwargs):
        return self._request("POST", url, **kwargs)


@pytest.fixture
def settings():
    return Settings(
        validation_timeout=1,
        course_resolution_timeout=5,
        resolution_concurrency=2,
        enable_scrape_discovery=False,
        llm_api_key="test-key",
    )


@pytest.fixture
def make_client(settings):
    def _make(routes=None):
        return HttpClient(settings, session=FakeSession(routes))
    return _make


@pytest.fixture
def db_session():
    import models  # noqa: F401

    engine = create_engine("sqlite://", connect_args={"check_same_thread": False}, poolclass=StaticPool)
    Base.metadata.create_all(bind=engine)
    session = sessionmaker(bind=engine, autoflush=False, expire_on_commit=False)()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()
