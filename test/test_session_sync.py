from datetime import datetime, timezone

import pytest
from conftest import with_scores

from wheel_of_destiny.engine.actions import buy_vowel, guess_letter, spin
from wheel_of_destiny.engine.errors import Conflict, IllegalAction, InsufficientFunds, SessionNotFound, TransportFailure
from wheel_of_destiny.engine.scoring import FixedSpinner
from wheel_of_destiny.engine.state import LOSE_TURN
from wheel_of_destiny.sync.memory import InMemoryChannel, InMemorySessionStore
from wheel_of_destiny.sync.session_sync import SessionSync

T0 = datetime(2024, 1, 1, tzinfo=timezone.utc)


class RacingStore(InMemorySessionStore):
    """Runs a hook just before the next write, to simulate another client getting in first."""

    def __init__(self, channel=None):
        super().__init__(channel)
        self.before_write = None

    async def write_session(self, session):
        hook, self.before_write = self.before_write, None
        if hook is not None:
            await hook()
        return await super().write_session(session)


async def connect(session, store=None, spinner=None):
    channel = store.channel if store is not None else InMemoryChannel()
    store = store or InMemorySessionStore(channel)
    await store.create_session(session)
    sync = SessionSync(store, channel, session.id, spinner=spinner or FixedSpinner(500), clock=lambda: T0)
    await sync.start()
    return store, channel, sync


@pytest.mark.asyncio
async def test_submit_applies_writes_and_logs(session):
    store, _, sync = await connect(session)
    result = await sync.submit(spin("alice"))

    assert result.session.version == 1
    assert result.session.game_state.wheel_value == 500
    assert sync.view.version == 1
    assert result.move.move_data == {"value": 500}
    assert result.move.timestamp == T0
    assert [m.move_type for m in await store.list_moves(session.id)] == ["spin"]


@pytest.mark.asyncio
async def test_illegal_action_writes_nothing(session):
    store, _, sync = await connect(session)
    with pytest.raises(IllegalAction):
        await sync.submit(spin("bob"))
    assert (await store.read_session(session.id)).version == 0
    assert await store.list_moves(session.id) == []


@pytest.mark.asyncio
async def test_insufficient_funds_writes_nothing(session):
    with_scores(session, round1=200, phase="guessing", wheel_value=500)
    store, _, sync = await connect(session)
    with pytest.raises(InsufficientFunds):
        await sync.submit(buy_vowel("alice", "E"))
    assert (await store.read_session(session.id)).to_dict() == session.to_dict()
    assert await store.list_moves(session.id) == []


@pytest.mark.asyncio
async def test_conflict_refreshes_view_and_raises(session):
    store, channel, sync = await connect(session, store=RacingStore(InMemoryChannel()))
    other = SessionSync(store, channel, session.id, spinner=FixedSpinner(300))
    await other.start()

    async def other_client_spins_first():
        await other.submit(spin("alice"))

    store.before_write = other_client_spins_first
    with pytest.raises(Conflict):
        await sync.submit(spin("alice"))

    assert sync.view.version == 1
    assert sync.view.game_state.wheel_value == 300
    assert len(await store.list_moves(session.id)) == 1


@pytest.mark.asyncio
async def test_transport_failure_leaves_view_and_retry_applies_once(session):
    store, _, sync = await connect(session)
    store.fail_writes = 1
    action = spin("alice")
    with pytest.raises(TransportFailure):
        await sync.submit(action)
    assert sync.view.version == 0

    result = await sync.submit(action)
    assert not result.duplicate
    assert result.session.version == 1
    assert len(await store.list_moves(session.id)) == 1


@pytest.mark.asyncio
async def test_retry_after_lost_ack_is_coalesced(session):
    store, _, sync = await connect(session)
    store.lose_write_acks = 1
    action = spin("alice")
    with pytest.raises(TransportFailure):
        await sync.submit(action)
    assert (await store.read_session(session.id)).version == 1

    result = await sync.submit(action)
    assert result.duplicate
    assert result.session.version == 1
    assert sync.view.version == 1
    moves = await store.list_moves(session.id)
    assert len(moves) == 1
    assert moves[0].action_id == action.action_id


@pytest.mark.asyncio
async def test_failed_move_append_is_retried_with_the_action(session):
    store, _, sync = await connect(session)
    store.fail_appends = 1
    action = spin("alice")
    with pytest.raises(TransportFailure):
        await sync.submit(action)
    # The session write itself went through
    assert sync.view.version == 1
    assert await store.list_moves(session.id) == []

    result = await sync.submit(action)
    assert result.duplicate
    assert result.move is not None
    assert len(await store.list_moves(session.id)) == 1


@pytest.mark.asyncio
async def test_read_failure_propagates(session):
    store, _, sync = await connect(session)
    store.fail_reads = 1
    with pytest.raises(TransportFailure):
        await sync.submit(spin("alice"))
    assert (await store.read_session(session.id)).version == 0


@pytest.mark.asyncio
async def test_remote_changes_reach_other_clients(session):
    store, channel, alice = await connect(session)
    bob = SessionSync(store, channel, session.id)
    await bob.start()
    seen = []
    bob.add_listener(lambda s: seen.append(s.version))

    await alice.submit(spin("alice"))
    await alice.submit(guess_letter("alice", "Q"))
    await channel.drain()

    assert bob.view.version == 2
    assert bob.view.current_player == 2
    assert seen == [1, 2]


@pytest.mark.asyncio
async def test_stale_snapshot_is_ignored(session):
    store, channel, sync = await connect(session)
    old = await store.read_session(session.id)
    await sync.submit(spin("alice"))
    await channel.drain()

    await channel.publish(old)
    await channel.drain()
    assert sync.view.version == 1
    assert sync.view.game_state.game_phase == "guessing"


@pytest.mark.asyncio
async def test_stop_unsubscribes(session):
    store, channel, alice = await connect(session)
    bob = SessionSync(store, channel, session.id)
    await bob.start()
    await bob.stop()
    await alice.submit(spin("alice"))
    await channel.drain()
    assert bob.view.version == 0


@pytest.mark.asyncio
async def test_start_unknown_session():
    store = InMemorySessionStore()
    sync = SessionSync(store, InMemoryChannel(), "missing")
    with pytest.raises(SessionNotFound):
        await sync.start()


@pytest.mark.asyncio
async def test_action_chosen_on_outdated_view_conflicts(session):
    store, channel, alice = await connect(session)
    second_tab = SessionSync(store, channel, session.id, spinner=FixedSpinner(LOSE_TURN))
    await second_tab.start()

    await alice.submit(spin("alice"))
    # second_tab has not received the new snapshot yet
    with pytest.raises(Conflict):
        await second_tab.submit(spin("alice"))

    assert second_tab.view.version == 1
    assert second_tab.view.game_state.game_phase == "guessing"
    assert len(await store.list_moves(session.id)) == 1
