"""Interfaces for the local mirror and the remote sync channel."""

from collections.abc import Callable
from typing import Protocol

from grumble.domain.grubs import Grub
from grumble.domain.sessions import SyncEvent

SyncListener = Callable[[SyncEvent], None]


class LocalMirror(Protocol):
    """On-device copy of the user's Grubs."""

    def load(self) -> dict[str, Grub]:
        """Return the stored Grubs, or an empty mapping when unreadable."""

    def clear(self) -> None:
        """Remove every stored Grub."""

    def put(self, fid: str, grub: Grub) -> None:
        """Insert or replace a Grub."""

    def delete(self, fid: str) -> None:
        """Remove a Grub if present."""


class Subscription(Protocol):
    """Handle returned by ``RemoteSyncChannel.subscribe``."""

    user_id: str


class RemoteSyncChannel(Protocol):
    """Per-user remote Grub collection with change notifications."""

    async def fetch_all(self, user_id: str | None) -> dict[str, Grub] | None:
        """Return every remote Grub for the user, or None without a user."""

    async def put(self, user_id: str, fid: str, grub: Grub) -> None:
        """Upsert one Grub remotely."""

    async def delete(self, user_id: str, fid: str) -> None:
        """Delete one Grub remotely."""

    async def subscribe(self, user_id: str, listener: SyncListener) -> Subscription:
        """Deliver existing Grubs as added events, then live changes."""

    async def unsubscribe(self, subscription: Subscription) -> None:
        """Stop delivering events for a subscription."""

    async def close(self) -> None:
        """Release remote connections held by the channel."""
