"""
Pytest configuration and fixtures for Gemeinde Info tests.

Network access is replaced by httpx.MockTransport serving a dict of pages;
the generative model by a scripted TextGenerationInterface.
"""

from collections.abc import AsyncGenerator, Callable
from datetime import UTC, datetime, timedelta

import httpx
import pytest
import pytest_asyncio
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

from gemeinde_info.api.main import create_app
from gemeinde_info.core.config import Settings
from gemeinde_info.core.models import CanonicalAuthority
from gemeinde_info.db import Base
from gemeinde_info.db.seeder import load_seed_data
from gemeinde_info.services.ai import TextGenerationInterface
from gemeinde_info.services.authority_info import AuthorityInfoService
from gemeinde_info.services.cache import InMemoryInfoCache
from gemeinde_info.services.dataset import InMemoryAuthorityDataset
from gemeinde_info.services.discovery import DiscoveryManager
from gemeinde_info.services.extraction import AIExtractor
from gemeinde_info.services.resolver import MunicipalityResolver


def canonical_url(url: str | httpx.URL) -> str:
    """Bare-host URLs get a "/" path; httpx renders them either way depending on version."""
    parsed = httpx.URL(str(url))
    if parsed.raw_path in (b"", b"/") and not parsed.query:
        return f"{parsed.scheme}://{parsed.netloc.decode('ascii')}/"
    return str(parsed)


class FakeWeb:
    """Serves fixed pages by URL and records every request."""

    def __init__(self, pages: dict[str, str] | None = None, failing: set[str] | None = None):
        self.pages = {canonical_url(url): body for url, body in (pages or {}).items()}
        self.failing = {canonical_url(url) for url in failing or ()}
        self.requests: list[str] = []

    def handler(self, request: httpx.Request) -> httpx.Response:
        url = canonical_url(request.url)
        self.requests.append(url)
        if url in self.failing:
            raise httpx.ConnectTimeout("timed out", request=request)
        if url in self.pages:
            return httpx.Response(200, text=self.pages[url])
        return httpx.Response(404, text="Not Found")

    def client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=httpx.MockTransport(self.handler), follow_redirects=True)

    def fetched(self, prefix: str = "") -> list[str]:
        return [u for u in self.requests if u.startswith(prefix)]


class FakeGenerator(TextGenerationInterface):
    """Returns a scripted response (or raises it) and keeps the prompts."""

    def __init__(self, response: str | Exception = "{}"):
        self.response = response
        self.prompts: list[str] = []

    @property
    def model_name(self) -> str:
        return "fake-model"

    async def generate(self, prompt: str) -> str:
        self.prompts.append(prompt)
        if isinstance(self.response, Exception):
            raise self.response
        return self.response


class FakeClock:
    """Manually advanced UTC clock."""

    def __init__(self, start: datetime | None = None):
        self.now = start or datetime(2026, 3, 2, 9, 0, tzinfo=UTC)

    def __call__(self) -> datetime:
        return self.now

    def advance(self, **kwargs) -> None:
        self.now += timedelta(**kwargs)


@pytest.fixture
def settings() -> Settings:
    """Settings isolated from the environment, AI disabled."""
    return Settings(
        _env_file=None,
        ai_api_url=None,
        ai_api_key=None,
        storage_backend="memory",
        crawler_max_concurrent=3,
    )


@pytest.fixture
def authorities() -> list[CanonicalAuthority]:
    """The bundled municipality dataset."""
    return load_seed_data()


@pytest.fixture
def dataset(authorities: list[CanonicalAuthority]) -> InMemoryAuthorityDataset:
    return InMemoryAuthorityDataset(authorities)


@pytest.fixture
def resolver(dataset: InMemoryAuthorityDataset, settings: Settings) -> MunicipalityResolver:
    """Resolver without the open-data tier."""
    return MunicipalityResolver(dataset, settings=settings)


@pytest.fixture
def fake_web() -> FakeWeb:
    return FakeWeb()


@pytest_asyncio.fixture
async def web_client(fake_web: FakeWeb) -> AsyncGenerator[httpx.AsyncClient, None]:
    async with fake_web.client() as client:
        yield client


@pytest.fixture
def clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def make_page() -> Callable[..., str]:
    """Build a small HTML page."""

    def _make(
        title: str = "",
        h1: str = "",
        body: str = "",
        description: str | None = None,
        json_ld: str | None = None,
    ) -> str:
        meta = f'<meta name="description" content="{description}">' if description is not None else ""
        ld = f'<script type="application/ld+json">{json_ld}</script>' if json_ld is not None else ""
        return (
            f"<html><head><title>{title}</title>{meta}{ld}</head>"
            f"<body><h1>{h1}</h1><p>{body}</p></body></html>"
        )

    return _make


@pytest.fixture
def make_generator() -> Callable[..., FakeGenerator]:
    """FakeGenerator factory: make_generator('{"phone": "..."}')."""
    return FakeGenerator


@pytest.fixture
def make_web() -> Callable[..., FakeWeb]:
    """FakeWeb factory for tests needing their own page set."""
    return FakeWeb


@pytest_asyncio.fixture
async def session_factory() -> AsyncGenerator[async_sessionmaker[AsyncSession], None]:
    """In-memory SQLite with all tables created, one shared connection."""
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    yield async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False)

    await engine.dispose()


@pytest_asyncio.fixture
async def client(
    resolver: MunicipalityResolver,
    settings: Settings,
    clock: FakeClock,
    fake_web: FakeWeb,
) -> AsyncGenerator[httpx.AsyncClient, None]:
    """API client; the service is wired over the fake web with the model disabled."""
    app = create_app()
    async with fake_web.client() as web_client:
        app.state.authority_info_service = AuthorityInfoService(
            resolver=resolver,
            cache=InMemoryInfoCache(settings, clock),
            discovery=DiscoveryManager(web_client, settings),
            extractor=AIExtractor(None, settings),
            client=web_client,
            settings=settings,
        )
        transport = httpx.ASGITransport(app=app)
        async with httpx.AsyncClient(transport=transport, base_url="http://test") as ac:
            yield ac
