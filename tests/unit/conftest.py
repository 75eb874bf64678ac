"""Fixtures for unit tests."""

from typing import Generator

import pytest
import structlog

from tests.unit.utils import T0, FakeIssueSource, FakeIssueStore, FakeNotifier, FixedClock


@pytest.fixture(autouse=True)
def configure_structlog_for_caplog() -> Generator[None, None, None]:
    """Configure structlog for use with caplog."""
    structlog.configure(
        processors=[
            structlog.stdlib.filter_by_level,
            structlog.stdlib.add_logger_name,
            structlog.stdlib.add_log_level,
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.processors.format_exc_info,
            structlog.processors.UnicodeDecoder(),
            structlog.stdlib.ProcessorFormatter.wrap_for_formatter,
        ],
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
    yield
    structlog.reset_defaults()


@pytest.fixture
def source() -> FakeIssueSource:
    """An issue source with a single empty page."""
    return FakeIssueSource()


@pytest.fixture
def notifier() -> FakeNotifier:
    """A chat notifier accepting every message."""
    return FakeNotifier()


@pytest.fixture
def store() -> FakeIssueStore:
    """An empty issue store."""
    return FakeIssueStore()


@pytest.fixture
def clock() -> FixedClock:
    """A clock one hour after the reference instant."""
    return FixedClock(T0.replace(hour=13))
