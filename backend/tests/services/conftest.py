"""Service test fixtures — handler factories over the shared SQLite store.

Invariants:
    - Handlers under test talk to a real SqlCodeStore (in-memory SQLite) unless a
      test builds its own with FakeCodeStore
    - issue_batch seeds codes through the real generation path, never raw inserts

Design Decisions:
    - Small group size in fixtures: multi-group behaviour exercised with few rows
"""

import pytest

from redemption.services.code_generator import CodeGenerator
from redemption.services.handle_generation import GenerationHandlers
from redemption.services.handle_management import ManagementHandlers
from redemption.services.handle_redemption import RedemptionHandlers


@pytest.fixture
def generation(store):
    return GenerationHandlers(store, CodeGenerator(store, group_size=25))


@pytest.fixture
def redemption(store):
    return RedemptionHandlers(store)


@pytest.fixture
def management(store):
    return ManagementHandlers(store, default_limit=50)


@pytest.fixture
def issue_batch(generation):
    """Generate a batch and return the handler result."""
    async def _issue(actor, quantity=5, length=12, metadata=None):
        return await generation.generate_codes(actor, quantity, length, metadata)
    return _issue
