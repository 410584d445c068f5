"""Tests for the readiness flag gating mutating tool calls."""

import asyncio

import pytest

from toolgate.readiness import FlagAlreadyReadyError, Readiness, ReadinessFlag


def test_flag_without_subscribers_is_ready():
    flag = ReadinessFlag()

    assert flag.is_ready()
    # Ready is permanent: subscribing afterwards fails
    with pytest.raises(FlagAlreadyReadyError):
        flag.subscribe()


def test_subscribed_flag_is_not_ready():
    flag = ReadinessFlag()
    flag.subscribe()

    assert not flag.is_ready()


def test_mark_ready_requires_known_token():
    flag = ReadinessFlag()
    token = flag.subscribe()

    assert flag.mark_ready(token + 100) is False
    assert not flag.is_ready()

    assert flag.mark_ready(token) is True
    assert flag.is_ready()


def test_mark_ready_only_flips_once():
    flag = ReadinessFlag()
    first = flag.subscribe()
    second = flag.subscribe()

    assert first != second
    assert flag.mark_ready(first) is True
    assert flag.mark_ready(second) is False
    assert flag.mark_ready(first) is False


def test_subscribe_after_ready_fails():
    flag = ReadinessFlag()
    token = flag.subscribe()
    flag.mark_ready(token)

    with pytest.raises(FlagAlreadyReadyError):
        flag.subscribe()


def test_flag_satisfies_protocol():
    assert isinstance(ReadinessFlag(), Readiness)


@pytest.mark.asyncio
async def test_wait_ready_returns_immediately_when_ready():
    await asyncio.wait_for(ReadinessFlag().wait_ready(), timeout=1)


@pytest.mark.asyncio
async def test_wait_ready_unblocks_all_waiters():
    flag = ReadinessFlag()
    token = flag.subscribe()

    waiters = [asyncio.create_task(flag.wait_ready()) for _ in range(3)]
    await asyncio.sleep(0.01)
    assert not any(w.done() for w in waiters)

    flag.mark_ready(token)

    await asyncio.wait_for(asyncio.gather(*waiters), timeout=1)
