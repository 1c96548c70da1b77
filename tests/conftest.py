import asyncio
import inspect

import numpy as np
import pytest

from framescan.config import Settings, get_settings


@pytest.fixture(autouse=True)
def _reset_settings_cache():
    """Ensure cached settings do not leak between tests."""
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def image():
    """200x100 BGR image."""
    return np.full((100, 200, 3), 255, dtype=np.uint8)


@pytest.fixture
def mock_settings():
    return Settings(engine="mock", max_concurrency=4)


def pytest_pyfunc_call(pyfuncitem):
    """Run async tests marked with pytest.mark.asyncio without external plugins."""
    if "asyncio" not in pyfuncitem.keywords:
        return None
    if not inspect.iscoroutinefunction(pyfuncitem.obj):
        return None
    funcargs = {
        name: pyfuncitem.funcargs[name] for name in pyfuncitem._fixtureinfo.argnames
    }
    loop = asyncio.new_event_loop()
    try:
        asyncio.set_event_loop(loop)
        loop.run_until_complete(pyfuncitem.obj(**funcargs))
    finally:
        loop.close()
        asyncio.set_event_loop(None)
    return True
