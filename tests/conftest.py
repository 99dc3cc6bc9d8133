"""
Pytest configuration: default runs most tests; use --run-slow to include slow tests.
"""

import io

import pytest
from PIL import Image

from imagestudio.core.image_analysis import clear_description_cache
from imagestudio.logging_config import reset_logging
from imagestudio.utils.cache import clear_cache


def pytest_addoption(parser: pytest.Parser) -> None:
    parser.addoption(
        "--run-slow",
        action="store_true",
        default=False,
        help="Run slow tests (live Gemini/OpenRouter calls). Default: skip them.",
    )


def pytest_collection_modifyitems(config: pytest.Config, items: list[pytest.Item]) -> None:
    if config.getoption("--run-slow", False):
        return
    skip_slow = pytest.mark.skip(reason="Slow test; run with --run-slow to include")
    for item in items:
        if "slow" in item.keywords:
            item.add_marker(skip_slow)


@pytest.fixture(autouse=True)
def _clear_process_state():
    """Caches and logger levels are process-global; isolate tests."""
    clear_cache()
    clear_description_cache()
    yield
    clear_cache()
    clear_description_cache()
    reset_logging()


@pytest.fixture
def png_bytes() -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (2, 2), color=(200, 120, 40)).save(buf, format="PNG")
    return buf.getvalue()


@pytest.fixture
def jpeg_bytes() -> bytes:
    buf = io.BytesIO()
    Image.new("RGB", (2, 2), color=(200, 120, 40)).save(buf, format="JPEG")
    return buf.getvalue()
