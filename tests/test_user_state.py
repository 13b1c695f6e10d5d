import pytest

from tests.utils import START_MS

USER = "5511999990000@s.whatsapp.net"


@pytest.mark.asyncio
async def test_record_activity_creates_and_updates_state(services, clock, redis):
    user_states = services.user_states

    first = await user_states.record_activity(USER)
    clock.advance(5_000)
    second = await user_states.record_activity(USER)

    assert (first.status, first.message_count, first.last_seen) == ("active", 1, START_MS)
    assert (second.message_count, second.last_seen) == (2, START_MS + 5_000)
    assert redis.ttl_of(f"chat:{USER}:user-state") == user_states.ttl_seconds * 1000


@pytest.mark.asyncio
async def test_status_follows_gate_outcome(services):
    user_states = services.user_states

    paused = await user_states.record_activity(USER, paused=True)
    assert paused.status == "paused"

    blocked = await user_states.record_activity(USER, rate_limited=True)
    assert (blocked.status, blocked.rate_limit_hits) == ("blocked", 1)

    active = await user_states.record_activity(USER)
    assert (active.status, active.rate_limit_hits) == ("active", 1)


@pytest.mark.asyncio
async def test_unreadable_state_starts_over(services, redis):
    await redis.set(f"chat:{USER}:user-state", "][")
    assert await services.user_states.get_state(USER) is None

    state = await services.user_states.record_activity(USER)

    assert state.message_count == 1
