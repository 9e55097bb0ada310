import os
from datetime import datetime, timezone

import pytest
from cropclass.config import get_settings

def pytest_configure():
    # variables CROP_* del entorno no deben filtrarse a los tests
    for k in [k for k in os.environ if k.startswith("CROP_")]:
        del os.environ[k]

@pytest.fixture(autouse=True)
def _reset_settings_cache():
    # evita fuga de estado entre tests
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()

@pytest.fixture
def fixed_clock():
    ts = datetime(2025, 7, 21, 10, 30, 0, tzinfo=timezone.utc)
    return lambda: ts

def pytest_collection_modifyitems(items):
    for item in items:
        if "integration" in item.keywords and os.environ.get("CI") == "true":
            # marca como slow en CI si quieres escalonar
            item.add_marker(pytest.mark.slow)
