"""Tests for holder observation and degradation."""

import pytest

from rostersync.errors import DirectoryError
from rostersync.sync.models import DegradedObservation, FullObservation
from rostersync.sync.observer import observe
from tests.fakes import GUILD_ID, ROLE_ID, FakeDirectory


@pytest.mark.asyncio
async def test_full_observation_collects_holders():
    directory = FakeDirectory({"1": {ROLE_ID}, "2": set(), "3": {ROLE_ID, "7"}})
    observation = await observe(directory, GUILD_ID, ROLE_ID)
    assert isinstance(observation, FullObservation)
    assert observation.holders == {"1", "3"}
    assert set(observation.members) == {"1", "2", "3"}


@pytest.mark.asyncio
async def test_enumeration_failure_degrades():
    directory = FakeDirectory({"1": {ROLE_ID}})
    directory.list_error = DirectoryError("HTTP 403", status_code=403)
    observation = await observe(directory, GUILD_ID, ROLE_ID)
    assert isinstance(observation, DegradedObservation)
    assert "403" in observation.reason


@pytest.mark.asyncio
async def test_enumeration_timeout_degrades():
    directory = FakeDirectory({"1": {ROLE_ID}})
    directory.list_delay = 1.0
    observation = await observe(directory, GUILD_ID, ROLE_ID, timeout=0.01)
    assert isinstance(observation, DegradedObservation)
    assert "timed out" in observation.reason


@pytest.mark.asyncio
async def test_disabled_enumeration_never_lists():
    directory = FakeDirectory({"1": {ROLE_ID}})
    observation = await observe(directory, GUILD_ID, ROLE_ID, high_fidelity=False)
    assert isinstance(observation, DegradedObservation)
    assert directory.calls == []


@pytest.mark.asyncio
async def test_unexpected_enumeration_error_degrades():
    directory = FakeDirectory({"1": {ROLE_ID}})
    directory.list_error = ValueError("Expecting value: line 1 column 1")
    observation = await observe(directory, GUILD_ID, ROLE_ID)
    assert isinstance(observation, DegradedObservation)
    assert "Expecting value" in observation.reason
