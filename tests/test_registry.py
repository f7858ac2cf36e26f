"""Tests for the per-browser session registry."""

from unittest.mock import MagicMock

import pytest

from learnsphere.session.registry import SessionRegistry


class FakeClock:
    def __init__(self):
        self.now = 0.0

    def __call__(self) -> float:
        return self.now


@pytest.fixture
def clock():
    return FakeClock()


def make_registry(clock, **kwargs):
    return SessionRegistry(lambda: MagicMock(name="controller"), clock=clock, **kwargs)


def test_unknown_id_creates_session(clock):
    registry = make_registry(clock)
    session_id, controller = registry.get_or_create("missing")
    assert session_id != "missing"
    assert registry.get(session_id) is controller
    assert len(registry) == 1


def test_existing_id_is_reused(clock):
    registry = make_registry(clock)
    session_id, controller = registry.get_or_create(None)
    assert registry.get_or_create(session_id) == (session_id, controller)
    assert len(registry) == 1


def test_discard(clock):
    registry = make_registry(clock)
    session_id, _ = registry.get_or_create(None)
    registry.discard(session_id)
    registry.discard(session_id)
    assert registry.get(session_id) is None
    assert len(registry) == 0


def test_peek_does_not_store(clock):
    registry = make_registry(clock)
    for _ in range(50):
        registry.peek(None)
    assert len(registry) == 0

    session_id, controller = registry.get_or_create(None)
    assert registry.peek(session_id) is controller


def test_idle_session_expires(clock):
    registry = make_registry(clock, idle_timeout_seconds=60)
    session_id, _ = registry.get_or_create(None)

    clock.now = 61
    assert registry.get(session_id) is None
    assert len(registry) == 0


def test_activity_keeps_session_alive(clock):
    registry = make_registry(clock, idle_timeout_seconds=60)
    session_id, controller = registry.get_or_create(None)

    for step in range(1, 5):
        clock.now = step * 50
        assert registry.get(session_id) is controller


def test_expired_sessions_swept_on_create(clock):
    registry = make_registry(clock, idle_timeout_seconds=60)
    for _ in range(5):
        registry.get_or_create(None)

    clock.now = 100
    registry.get_or_create(None)
    assert len(registry) == 1


def test_size_bounded_by_least_recently_used(clock):
    registry = make_registry(clock, max_sessions=3)
    first, _ = registry.get_or_create(None)
    second, _ = registry.get_or_create(None)
    third, _ = registry.get_or_create(None)
    registry.get(first)

    fourth, _ = registry.get_or_create(None)

    assert len(registry) == 3
    assert registry.get(second) is None
    assert all(registry.get(sid) is not None for sid in (first, third, fourth))


def test_many_anonymous_sessions_stay_bounded(clock):
    registry = make_registry(clock, max_sessions=10)
    for _ in range(50):
        registry.get_or_create(None)
    assert len(registry) == 10
