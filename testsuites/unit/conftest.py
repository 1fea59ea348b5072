"""
Unit test fixtures (no browser, no network).
"""

from typing import Any, Dict, Generator, List

import pytest
from loguru import logger


@pytest.fixture
def captured_logs() -> Generator[List[Dict[str, Any]], None, None]:
    """Collect Loguru records emitted during the test."""
    records: List[Dict[str, Any]] = []
    handler_id = logger.add(lambda message: records.append(message.record), level="DEBUG")
    yield records
    logger.remove(handler_id)

