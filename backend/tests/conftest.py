"""
Natours Backend — Test Configuration (conftest.py)
===================================================

What:  Shared pytest fixtures for the entire test suite.
Why:   Every test builds its own app from explicit Settings, so mode, limits
       and CORS rules never leak between tests or in from the environment.
How:   create_app() + httpx.AsyncClient over ASGITransport (no server needed).

Fixture Hierarchy:
    Function-scoped (created fresh for each test):
    ├── fake_clock:     Manually advanced clock for rate limit windows
    ├── dev_settings / prod_settings
    ├── extra_groups:   Route groups that raise on purpose
    ├── dev_client / prod_client: AsyncClient bound to a fresh app
"""

import os
from typing import AsyncGenerator, List

import pytest
import pytest_asyncio
from fastapi import APIRouter, FastAPI
from httpx import ASGITransport, AsyncClient

# Before any natours import: keep test output quiet
os.environ["LOG_LEVEL"] = "WARNING"

from natours.config import Environment, Settings  # noqa: E402
from natours.exceptions import AppError  # noqa: E402
from natours.main import create_app  # noqa: E402
from natours.routes import RouteGroup, default_route_groups  # noqa: E402

SECRET_MESSAGE = "connection string postgres://admin:hunter2@db failed"


class FakeClock:
    """Callable clock whose time only moves when a test says so."""

    def __init__(self, start: float = 1_700_000_000.0):
        self.now = start

    def __call__(self) -> float:
        return self.now

    def advance(self, seconds: float) -> None:
        self.now += seconds


def build_failure_router() -> APIRouter:
    """Endpoints that fail in each of the ways the error responder distinguishes."""
    router = APIRouter()

    @router.get("/defect")
    async def defect():
        raise RuntimeError(SECRET_MESSAGE)

    @router.get("/operational")
    async def operational():
        raise AppError("No tour found with that ID", 404)

    @router.get("/validate")
    async def validate(limit: int):
        return {"limit": limit}

    return router


def make_client(app: FastAPI) -> AsyncClient:
    # raise_app_exceptions=False: errors must come back as responses, as in production
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    return AsyncClient(transport=transport, base_url="http://test")


@pytest.fixture
def fake_clock() -> FakeClock:
    return FakeClock()


@pytest.fixture
def secret_message() -> str:
    """Text only a leaky error handler would send to a client."""
    return SECRET_MESSAGE


@pytest.fixture
def dev_settings() -> Settings:
    return Settings(environment=Environment.DEVELOPMENT, log_level="WARNING")


@pytest.fixture
def prod_settings() -> Settings:
    return Settings(environment=Environment.PRODUCTION, log_level="WARNING")


@pytest.fixture
def extra_groups() -> List[RouteGroup]:
    return default_route_groups() + [
        RouteGroup("failures", "/api/v1/failures", build_failure_router()),
    ]


@pytest_asyncio.fixture
async def dev_client(dev_settings, extra_groups) -> AsyncGenerator[AsyncClient, None]:
    """
    HTTPX AsyncClient talking to a development-mode app.

    Usage:
        async def test_tours(dev_client):
            response = await dev_client.get("/api/v1/tours")
    """
    app = create_app(dev_settings, route_groups=extra_groups)
    async with make_client(app) as client:
        yield client


@pytest_asyncio.fixture
async def prod_client(prod_settings, extra_groups) -> AsyncGenerator[AsyncClient, None]:
    """Same as dev_client, but the app runs in production mode."""
    app = create_app(prod_settings, route_groups=extra_groups)
    async with make_client(app) as client:
        yield client


@pytest.fixture
def client_for():
    """
    Factory for clients bound to an app built from custom settings.

    Usage:
        async with client_for(Settings(cors_origins="https://a.dev")) as client:
            ...
    """

    def factory(settings: Settings, **create_kwargs) -> AsyncClient:
        return make_client(create_app(settings, **create_kwargs))

    return factory
