"""
Shared fixtures for span_propagation tests.
"""

import pytest

from span_propagation import InMemoryReporter, Tracer


def pytest_configure(config):
    config.addinivalue_line("markers", "integration: end-to-end tests of the traced call chain")


@pytest.fixture
def reporter():
    """In-memory reporter collecting finished spans."""
    return InMemoryReporter()


@pytest.fixture
def tracer(reporter):
    """Tracer reporting synchronously to the in-memory reporter."""
    tracer = Tracer("test-service", reporter=reporter)
    yield tracer
    tracer.close(report_leaks=False)
