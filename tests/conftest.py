"""
Shared test fixtures and configuration.
"""

from __future__ import annotations

import pytest

from pineforge.adapters.base import Collaborators
from pineforge.adapters.mock import MockGeneration, MockSandbox, MockStorage
from pineforge.core.config.settings import PipelineSettings
from pineforge.core.models.response import Credential
from pineforge.core.persistence.activity_store import ActivityStore
from pineforge.core.persistence.reward_ledger import RewardLedger
from pineforge.core.services.broadcast import BroadcastHub


@pytest.fixture
def credential() -> Credential:
    return Credential(token="tok-alice", user_id="alice")


@pytest.fixture
def sandbox() -> MockSandbox:
    return MockSandbox()


@pytest.fixture
def storage() -> MockStorage:
    return MockStorage()


@pytest.fixture
def generation() -> MockGeneration:
    return MockGeneration()


@pytest.fixture
def ledger() -> RewardLedger:
    """In-memory ledger (no file)."""
    return RewardLedger()


@pytest.fixture
def activity_store() -> ActivityStore:
    return ActivityStore()


@pytest.fixture
def hub() -> BroadcastHub:
    return BroadcastHub()


@pytest.fixture
def settings() -> PipelineSettings:
    # Short bounds keep a misbehaving test from hanging the run
    return PipelineSettings(
        command_timeout_s=5.0,
        generation_timeout_s=5.0,
        storage_timeout_s=5.0,
    )


@pytest.fixture
def collaborators(
    generation: MockGeneration,
    sandbox: MockSandbox,
    storage: MockStorage,
    ledger: RewardLedger,
    activity_store: ActivityStore,
) -> Collaborators:
    return Collaborators(
        generation=generation,
        sandbox=sandbox,
        storage=storage,
        ledger=ledger,
        activity=activity_store,
    )

