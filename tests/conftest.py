"""Global pytest configuration."""

from __future__ import annotations

import asyncio
import os
from collections.abc import AsyncGenerator

import inspect

import pytest

# Never reach a real database during tests even if .env sets credentials.
os.environ.setdefault("STORE_BACKEND", "memory")


@pytest.fixture(scope="session")
def event_loop() -> AsyncGenerator[asyncio.AbstractEventLoop, None]:
    """Provide a shared event loop for async tests and fixtures."""

    loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    try:
        yield loop
    finally:
        loop.close()


def _get_loop(request: pytest.FixtureRequest) -> asyncio.AbstractEventLoop:
    try:
        loop = request.getfixturevalue("event_loop")
    except pytest.FixtureLookupError:
        loop = asyncio.new_event_loop()
    if loop.is_closed():
        loop = asyncio.new_event_loop()
    asyncio.set_event_loop(loop)
    return loop


@pytest.hookimpl(tryfirst=True)
def pytest_pyfunc_call(pyfuncitem):  # type: ignore[override]
    if inspect.iscoroutinefunction(pyfuncitem.obj):
        testargs = {
            name: pyfuncitem.funcargs[name] for name in pyfuncitem._fixtureinfo.argnames
        }
        loop = testargs.get("event_loop") or asyncio.new_event_loop()
        asyncio.set_event_loop(loop)
        loop.run_until_complete(pyfuncitem.obj(**testargs))
        return True
    return None


@pytest.hookimpl(tryfirst=True)
def pytest_fixture_setup(fixturedef, request):  # type: ignore[override]
    func = fixturedef.func
    if inspect.iscoroutinefunction(func):
        loop = _get_loop(request)
        kwargs = {arg: request.getfixturevalue(arg) for arg in fixturedef.argnames}
        return loop.run_until_complete(func(**kwargs))

    if inspect.isasyncgenfunction(func):
        loop = _get_loop(request)
        kwargs = {arg: request.getfixturevalue(arg) for arg in fixturedef.argnames}
        agen = func(**kwargs)
        value = loop.run_until_complete(agen.__anext__())

        def finalize() -> None:
            try:
                loop.run_until_complete(agen.__anext__())
            except StopAsyncIteration:
                pass

        request.addfinalizer(finalize)
        return value

    return None


def pytest_configure(config: pytest.Config) -> None:
    config.addinivalue_line("markers", "asyncio: mark test as requiring asyncio support")


def sample_tree() -> dict:
    """Store contents shared by the dashboard tests."""
    return {
        "reports": {
            "r1": {
                "name": "Alice",
                "matterType": "Community",
                "description": "leak",
                "email": "alice@example.com",
                "phone": "555-0100",
                "userId": "u1",
                "status": "pending",
                "createdAt": 1700000000000,
            },
            "r2": {
                "name": "Bob",
                "matterType": "Safety",
                "description": "broken light",
                "email": "bob@example.com",
                "userId": "u2",
                "status": "resolved",
                "createdAt": 1700000100000,
                "resolvedAt": 1700000200000,
                "response": "Fixed",
            },
            "r3": {
                "name": "Alice",
                "matterType": "Community",
                "description": "leak2",
                "email": "alice@example.com",
                "userId": "u1",
                "createdAt": 1700000300000,
            },
        },
        "users": {
            "u1": {"name": "Alice"},
            "u2": {"name": "Bob"},
            "u3": {"name": "Carol"},
        },
    }


@pytest.fixture
def seed_tree() -> dict:
    return sample_tree()
