"""
Channel entity - a full-mesh broadcast group.
"""

from datetime import datetime, timezone
from typing import TYPE_CHECKING, FrozenSet, Set

if TYPE_CHECKING:
    from signaleur.domain.entities.connection_handle import ConnectionHandle


class Channel:
    """
    Channel entity representing a signaling broadcast group.

    Every message sent by one member is delivered to all other members.
    The channel references its members but does not own their lifetime.

    Attributes:
        code: Short channel code (e.g. 'WXYZ')
        members: Connections currently joined to the channel
        created_at: Channel creation timestamp (UTC)
    """

    def __init__(self, code: str, created_at: datetime = None):
        """
        Initialize Channel entity.

        Args:
            code: Channel code
            created_at: Optional creation timestamp
        """
        self.code: str = code
        self.members: Set["ConnectionHandle"] = set()
        self.created_at: datetime = created_at or datetime.now(timezone.utc)

    def add_member(self, connection: "ConnectionHandle") -> None:
        """Add a connection to the member set."""
        self.members.add(connection)

    def remove_member(self, connection: "ConnectionHandle") -> bool:
        """Remove a connection. Returns False if it was not a member."""
        if connection not in self.members:
            return False
        self.members.discard(connection)
        return True

    def has_member(self, connection: "ConnectionHandle") -> bool:
        return connection in self.members

    def is_empty(self) -> bool:
        return not self.members

    @property
    def member_count(self) -> int:
        return len(self.members)

    def snapshot(self) -> FrozenSet["ConnectionHandle"]:
        """Immutable copy of the current members, safe to iterate while sending."""
        return frozenset(self.members)

    def age_seconds(self, now: datetime = None) -> float:
        now = now or datetime.now(timezone.utc)
        return (now - self.created_at).total_seconds()

    def __eq__(self, other) -> bool:
        """Check equality based on channel code."""
        if not isinstance(other, Channel):
            return False
        return self.code == other.code

    def __hash__(self) -> int:
        return hash(self.code)

    def __repr__(self) -> str:
        return f"Channel(code={self.code}, members={self.member_count})"
