"""
Shared pytest fixtures and configuration for sessionview tests.
"""

import pytest

from sessionview import Scope
from tests.test_factories import create_subscription_tracker


@pytest.fixture
def scope():
    """Provide a fresh Scope, closed after the test."""
    scope = Scope()
    yield scope
    scope.close()


@pytest.fixture
def tracker():
    """Provide a subscription tracker recording every emitted value."""
    return create_subscription_tracker()
