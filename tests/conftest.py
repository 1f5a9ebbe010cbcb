"""
Pytest configuration and shared fixtures for Skygraph tests.
"""
import pytest

from skygraph.models import MetricsOptions
from tests.fixtures.graphs import (
    create_bridged_triangles,
    create_dangling_graph,
    create_engagement_graph,
    create_ring_graph,
    create_star_graph,
)


@pytest.fixture
def ring_graph():
    """Five-node directed ring with unit weights."""
    return create_ring_graph(5)


@pytest.fixture
def star_graph():
    """Hub plus five leaves, reciprocal edges."""
    return create_star_graph(5)


@pytest.fixture
def bridged_triangles():
    return create_bridged_triangles()


@pytest.fixture
def dangling_graph():
    return create_dangling_graph()


@pytest.fixture
def engagement_graph():
    return create_engagement_graph()


@pytest.fixture
def metrics_options():
    """Tight convergence settings for comparisons against NetworkX."""
    return MetricsOptions(epsilon=1e-12, max_iterations=1000)


# Custom markers for different test categories
def pytest_configure(config):
    """Configure custom pytest markers."""
    config.addinivalue_line(
        "markers", "unit: marks tests as unit tests (fast, isolated)"
    )
    config.addinivalue_line(
        "markers", "performance: marks tests as performance tests (slow, large graphs)"
    )


def pytest_collection_modifyitems(config, items):
    """Add markers based on test location and name."""
    for item in items:
        if "unit" in str(item.fspath):
            item.add_marker(pytest.mark.unit)

        if "performance" in item.name or "perf" in item.name:
            item.add_marker(pytest.mark.performance)
