"""
Channel registry - shared channel-code to member-set mapping.
"""

import asyncio
from datetime import datetime, timezone
from typing import Any, Dict, FrozenSet, List, Optional

from signaleur.domain.entities import Channel, ConnectionHandle
from signaleur.domain.exceptions import SendFailure
from signaleur.domain.services import ChannelIdGenerator
from signaleur.infrastructure.monitoring import metrics
from signaleur.infrastructure.reporting import SystemReporter


class ChannelRegistry:
    """
    Owns every channel and the membership of every connection.

    All mutations, and the membership read of a broadcast, run under one
    registry-wide lock. Sends happen after the lock is released.

    Invariants:
        - every member of channel C has ``channel_code == C``
        - a connection belongs to at most one channel
        - a channel emptied by ``leave`` is deleted in the same step
    """

    def __init__(self, reporter: Optional[SystemReporter] = None):
        self._channels: Dict[str, Channel] = {}
        self._lock = asyncio.Lock()
        self.reporter = reporter

        if self.reporter:
            self.reporter.info(
                "ChannelRegistry initialized",
                context="Registry",
                verbose_level=2,
            )

    # ================================================================
    # Mutations
    # ================================================================

    async def create_channel(self, code: str) -> bool:
        """
        Register an empty channel.

        Returns:
            False if a channel with this code already exists
        """
        async with self._lock:
            return self._create_locked(code)

    async def allocate_channel(self, generator: ChannelIdGenerator) -> str:
        """
        Generate a free code and register its channel atomically.

        Args:
            generator: Code generator checked against current channels

        Returns:
            Newly registered channel code

        Raises:
            IdSpaceExhausted: If the generator ran out of attempts
        """
        async with self._lock:
            code = generator.generate(self._channels.__contains__)
            self._create_locked(code)

        metrics.channel_ids_allocated_total.inc()
        return code

    async def join(self, code: str, connection: ConnectionHandle) -> Channel:
        """
        Move a connection into a channel, creating the channel if needed.

        A connection already in another channel leaves it first. Joining
        the channel the connection is already in changes nothing.

        Args:
            code: Target channel code
            connection: Joining connection

        Returns:
            Channel the connection now belongs to
        """
        async with self._lock:
            current = connection.channel_code
            if current == code and code in self._channels:
                return self._channels[code]

            if current is not None:
                self._leave_locked(connection)

            is_new = code not in self._channels
            if is_new:
                self._create_locked(code)

            channel = self._channels[code]
            channel.add_member(connection)
            connection.channel_code = code
            member_count = channel.member_count

        if self.reporter:
            self.reporter.info(
                f"Joined channel: channel={code}, conn={connection.id}, "
                f"previous={current}, new_channel={is_new}, members={member_count}",
                context="Registry",
                verbose_level=2,
            )

        return channel

    async def leave(self, connection: ConnectionHandle) -> bool:
        """
        Remove a connection from its channel, deleting the channel if empty.

        Returns:
            False if the connection was not in any channel
        """
        async with self._lock:
            code = connection.channel_code
            removed = self._leave_locked(connection)

        if removed and self.reporter:
            self.reporter.info(
                f"Left channel: channel={code}, conn={connection.id}, "
                f"channel_deleted={code not in self._channels}",
                context="Registry",
                verbose_level=2,
            )

        return removed

    async def broadcast(
        self,
        code: str,
        payload: Dict[str, Any],
        exclude: Optional[ConnectionHandle] = None,
    ) -> int:
        """
        Queue a message for every member of a channel except ``exclude``.

        A failing recipient is logged and skipped; it never affects the
        others or the caller.

        Args:
            code: Target channel code
            payload: JSON-serializable message
            exclude: Usually the sender

        Returns:
            Number of recipients the message was queued for
        """
        async with self._lock:
            channel = self._channels.get(code)
            if channel is None:
                recipients: FrozenSet[ConnectionHandle] = frozenset()
            else:
                recipients = channel.snapshot()

        delivered = 0
        for member in recipients:
            if member is exclude:
                continue
            try:
                member.send(payload)
                delivered += 1
            except SendFailure as e:
                metrics.send_failures_total.inc()
                if self.reporter:
                    self.reporter.warning(
                        f"Broadcast skipped recipient: channel={code}, {e.message}",
                        context="Registry",
                        verbose_level=2,
                    )

        if delivered:
            metrics.messages_relayed_total.inc(delivered)

        if self.reporter:
            self.reporter.debug(
                f"Broadcast: channel={code}, delivered={delivered}, "
                f"members={len(recipients)}",
                context="Registry",
            )

        return delivered

    async def cleanup_unclaimed_channels(self, max_age_seconds: float) -> List[str]:
        """
        Delete empty channels older than ``max_age_seconds``.

        Channels handed out by ``allocate_channel`` that nobody ever joined
        are otherwise never removed.

        Returns:
            Codes of the removed channels
        """
        now = datetime.now(timezone.utc)

        async with self._lock:
            stale = [
                code
                for code, channel in self._channels.items()
                if channel.is_empty() and channel.age_seconds(now) >= max_age_seconds
            ]
            for code in stale:
                del self._channels[code]
            remaining = len(self._channels)

        if stale:
            metrics.channels_active.set(remaining)
            metrics.channels_reclaimed_total.inc(len(stale))
            if self.reporter:
                self.reporter.info(
                    f"Unclaimed channels cleaned: removed={len(stale)}, "
                    f"codes={stale}, remaining={remaining}",
                    context="Registry",
                    verbose_level=2,
                )

        return stale

    # ================================================================
    # Locked helpers (caller holds self._lock)
    # ================================================================

    def _create_locked(self, code: str) -> bool:
        if code in self._channels:
            return False

        self._channels[code] = Channel(code)
        metrics.channels_active.set(len(self._channels))

        if self.reporter:
            self.reporter.debug(f"Channel created: {code}", context="Registry")

        return True

    def _leave_locked(self, connection: ConnectionHandle) -> bool:
        code = connection.channel_code
        connection.channel_code = None

        channel = self._channels.get(code) if code is not None else None
        if channel is None or not channel.remove_member(connection):
            return False

        if channel.is_empty():
            del self._channels[code]
            metrics.channels_active.set(len(self._channels))

        return True

    # ================================================================
    # Queries
    # ================================================================

    def channel_exists(self, code: str) -> bool:
        """Check if channel exists."""
        return code in self._channels

    def get_members(self, code: str) -> FrozenSet[ConnectionHandle]:
        """Copy of a channel's members (empty if the channel is unknown)."""
        channel = self._channels.get(code)
        return channel.snapshot() if channel else frozenset()

    def get_channel_count(self, code: str) -> int:
        """Get member count for specific channel."""
        channel = self._channels.get(code)
        return channel.member_count if channel else 0

    def get_all_channels(self) -> Dict[str, int]:
        """Get all channels with member counts."""
        return {code: ch.member_count for code, ch in self._channels.items()}

    def get_total_members(self) -> int:
        return sum(ch.member_count for ch in self._channels.values())

    def __len__(self) -> int:
        return len(self._channels)

    def __contains__(self, code: object) -> bool:
        return code in self._channels
