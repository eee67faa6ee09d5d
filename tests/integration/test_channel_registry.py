"""
Integration tests for ChannelRegistry.

Tests membership invariants, broadcast isolation and behavior under
concurrent access from many connection tasks.

Usage:
    pytest tests/integration/test_channel_registry.py
"""

import asyncio
import random
from datetime import datetime, timedelta, timezone

import pytest

from signaleur.domain.exceptions import IdSpaceExhausted
from signaleur.domain.services import ChannelIdGenerator


def _assert_consistent(registry, connections):
    """Every member points back at its channel; no connection is in two."""
    seen = set()
    for code in registry.get_all_channels():
        for member in registry.get_members(code):
            assert member.channel_code == code
            assert member not in seen
            seen.add(member)
    for conn in connections:
        if conn.channel_code is None:
            assert conn not in seen
        else:
            assert conn in registry.get_members(conn.channel_code)


class TestChannelRegistry:
    """Integration tests for ChannelRegistry."""

    # ================================================================
    # Creation and allocation
    # ================================================================

    @pytest.mark.asyncio
    async def test_create_channel(self, registry):
        """Test create_channel registers once."""
        assert await registry.create_channel("ABCD") is True
        assert await registry.create_channel("ABCD") is False
        assert "ABCD" in registry
        assert len(registry) == 1
        assert registry.get_channel_count("ABCD") == 0

    @pytest.mark.asyncio
    async def test_allocate_channel_registers_code(self, registry, generator):
        """Test allocate_channel returns a code that is now registered."""
        code = await registry.allocate_channel(generator)

        assert registry.channel_exists(code)

    @pytest.mark.asyncio
    async def test_concurrent_allocations_are_unique(self, registry):
        """Test concurrent requests never receive the same code."""
        generator = ChannelIdGenerator(
            alphabet="ABCDEFGH", length=2, max_attempts=500, rng=random.Random(5)
        )

        codes = await asyncio.gather(
            *(registry.allocate_channel(generator) for _ in range(40))
        )

        assert len(set(codes)) == 40
        assert len(registry) == 40

    @pytest.mark.asyncio
    async def test_allocate_propagates_exhaustion(self, registry):
        """Test a full id space raises and registers nothing new."""
        generator = ChannelIdGenerator(alphabet="A", length=1, max_attempts=2)
        await registry.create_channel("A")

        with pytest.raises(IdSpaceExhausted):
            await registry.allocate_channel(generator)

        assert len(registry) == 1

    # ================================================================
    # Join and leave
    # ================================================================

    @pytest.mark.asyncio
    async def test_join_creates_channel_implicitly(self, registry, make_connection):
        """Test joining an unseen code creates the channel."""
        conn = make_connection()

        channel = await registry.join("ROOM", conn)

        assert channel.code == "ROOM"
        assert conn.channel_code == "ROOM"
        assert registry.get_members("ROOM") == frozenset({conn})

    @pytest.mark.asyncio
    async def test_join_moves_between_channels(self, registry, make_connection):
        """Test leave-then-join when switching channels."""
        a, b = make_connection(), make_connection()
        await registry.join("ONE", a)
        await registry.join("ONE", b)

        await registry.join("TWO", a)

        assert a.channel_code == "TWO"
        assert registry.get_members("ONE") == frozenset({b})
        assert registry.get_members("TWO") == frozenset({a})
        _assert_consistent(registry, [a, b])

    @pytest.mark.asyncio
    async def test_switching_deletes_emptied_channel(self, registry, make_connection):
        """Test the channel left behind is deleted when it becomes empty."""
        conn = make_connection()
        await registry.join("ONE", conn)

        await registry.join("TWO", conn)

        assert not registry.channel_exists("ONE")

    @pytest.mark.asyncio
    async def test_rejoin_same_channel_is_noop(self, registry, make_connection):
        """Test joining the current channel changes nothing."""
        conn = make_connection()
        first = await registry.join("ROOM", conn)

        second = await registry.join("ROOM", conn)

        assert first is second
        assert registry.get_channel_count("ROOM") == 1

    @pytest.mark.asyncio
    async def test_leave_deletes_empty_channel(self, registry, make_connection):
        """Test the last member leaving deletes the channel."""
        a, b = make_connection(), make_connection()
        await registry.join("ROOM", a)
        await registry.join("ROOM", b)

        assert await registry.leave(a) is True
        assert registry.channel_exists("ROOM")

        assert await registry.leave(b) is True
        assert not registry.channel_exists("ROOM")
        assert b.channel_code is None

    @pytest.mark.asyncio
    async def test_leave_without_channel(self, registry, make_connection):
        """Test leave on a connection in no channel returns False."""
        assert await registry.leave(make_connection()) is False

    @pytest.mark.asyncio
    async def test_explicit_channel_survives_until_joined_and_left(
        self, registry, generator, make_connection
    ):
        """Test an allocated channel lives until its last member leaves."""
        code = await registry.allocate_channel(generator)
        conn = make_connection()

        await registry.join(code, conn)
        await registry.leave(conn)

        assert not registry.channel_exists(code)

    # ================================================================
    # Broadcast
    # ================================================================

    @pytest.mark.asyncio
    async def test_broadcast_excludes_sender(self, registry, make_connection):
        """Test every member but the excluded one receives the payload."""
        members = [make_connection() for _ in range(4)]
        for conn in members:
            await registry.join("ROOM", conn)

        delivered = await registry.broadcast("ROOM", {"n": 1}, exclude=members[0])
        for conn in members:
            await conn.flush()

        assert delivered == 3
        assert members[0].sent == []
        assert all(conn.sent == [{"n": 1}] for conn in members[1:])

    @pytest.mark.asyncio
    async def test_broadcast_to_unknown_channel(self, registry):
        """Test broadcasting to a missing channel delivers to nobody."""
        assert await registry.broadcast("NONE", {"n": 1}) == 0

    @pytest.mark.asyncio
    async def test_broadcast_skips_failing_recipient(self, registry, make_connection):
        """Test a full outbox affects only that recipient."""
        sender = make_connection()
        slow = make_connection(max_pending_messages=1, gate=asyncio.Event())
        healthy = make_connection()
        for conn in (sender, slow, healthy):
            await registry.join("ROOM", conn)

        results = []
        for i in range(5):
            results.append(await registry.broadcast("ROOM", {"n": i}, exclude=sender))
        await healthy.flush()

        assert [m["n"] for m in healthy.sent] == [0, 1, 2, 3, 4]
        assert results[0] == 2
        assert min(results) == 1

    @pytest.mark.asyncio
    async def test_broadcast_preserves_per_sender_order(
        self, registry, make_connection
    ):
        """Test each recipient sees one sender's messages in send order."""
        sender, receiver = make_connection(), make_connection()
        await registry.join("ROOM", sender)
        await registry.join("ROOM", receiver)

        for i in range(100):
            await registry.broadcast("ROOM", {"n": i}, exclude=sender)
        await receiver.flush()

        assert [m["n"] for m in receiver.sent] == list(range(100))

    # ================================================================
    # Concurrency
    # ================================================================

    @pytest.mark.asyncio
    async def test_concurrent_join_leave_keeps_invariants(
        self, registry, make_connection
    ):
        """Test random concurrent join/leave leaves a consistent registry."""
        rng = random.Random(42)
        connections = [make_connection() for _ in range(30)]
        codes = ["A", "B", "C", "D"]

        async def churn(conn):
            for _ in range(25):
                if rng.random() < 0.7:
                    await registry.join(rng.choice(codes), conn)
                else:
                    await registry.leave(conn)
                await asyncio.sleep(0)

        await asyncio.gather(*(churn(conn) for conn in connections))

        _assert_consistent(registry, connections)
        for code, count in registry.get_all_channels().items():
            assert count > 0
        assert registry.get_total_members() == sum(
            1 for conn in connections if conn.channel_code is not None
        )

        await asyncio.gather(*(registry.leave(conn) for conn in connections))
        assert len(registry) == 0

    # ================================================================
    # Unclaimed channel sweep
    # ================================================================

    @pytest.mark.asyncio
    async def test_cleanup_removes_only_old_empty_channels(
        self, registry, make_connection
    ):
        """Test the sweep keeps occupied and recent channels."""
        await registry.create_channel("OLD")
        await registry.create_channel("NEW")
        conn = make_connection()
        await registry.join("BUSY", conn)

        old = datetime.now(timezone.utc) - timedelta(hours=2)
        registry._channels["OLD"].created_at = old
        registry._channels["BUSY"].created_at = old

        removed = await registry.cleanup_unclaimed_channels(3600)

        assert removed == ["OLD"]
        assert registry.channel_exists("NEW")
        assert registry.channel_exists("BUSY")
