"""Supabase-backed remote sync channel.

Each Grub is one row of the ``food_list`` table keyed by ``(user_id, fid)``,
the relational form of the ``users/{user_id}/foodList/{fid}`` node. Change
notifications come from Supabase Realtime postgres changes.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

from supabase import AsyncClient

from grumble.domain.errors import GrubDecodeError
from grumble.domain.grubs import Grub
from grumble.domain.sessions import GrubAdded, GrubRemoved
from grumble.services.sync import RemoteSyncChannel, SyncListener

if TYPE_CHECKING:
    from realtime import AsyncRealtimeChannel

logger = logging.getLogger(__name__)


def item_path(user_id: str, fid: str) -> str:
    """Hierarchical address of a Grub, used in logs."""
    return f"users/{user_id}/foodList/{fid}"


@dataclass
class SupabaseSubscription:
    """Realtime channel registered for one user."""

    user_id: str
    channel: AsyncRealtimeChannel
    active: bool = True


@dataclass
class SupabaseSyncChannel(RemoteSyncChannel):
    """Supabase implementation of the remote Grub collection."""

    client: AsyncClient
    table: str = "food_list"
    _opened: bool = field(default=False, init=False, repr=False)

    async def fetch_all(self, user_id: str | None) -> dict[str, Grub] | None:
        """Return every remote Grub for the user."""
        if user_id is None:
            return None
        response = (
            await self.client.table(self.table)
            .select("fid, payload")
            .eq("user_id", user_id)
            .execute()
        )
        grubs: dict[str, Grub] = {}
        for row in response.data or []:
            grub = _decode_row(row)
            if grub is not None:
                grubs[grub.fid] = grub
        return grubs

    async def put(self, user_id: str, fid: str, grub: Grub) -> None:
        """Upsert one Grub row."""
        await (
            self.client.table(self.table)
            .upsert({"user_id": user_id, "fid": fid, "payload": grub.to_payload()})
            .execute()
        )
        logger.debug("Pushed %s", item_path(user_id, fid))

    async def delete(self, user_id: str, fid: str) -> None:
        """Delete one Grub row."""
        await (
            self.client.table(self.table)
            .delete()
            .eq("user_id", user_id)
            .eq("fid", fid)
            .execute()
        )
        logger.debug("Deleted %s", item_path(user_id, fid))

    async def subscribe(
        self, user_id: str, listener: SyncListener
    ) -> SupabaseSubscription:
        """Listen for row changes, then replay existing rows as added events.

        Realtime does not replay existing rows, so they are fetched after the
        channel is live. A row changed in between may be delivered twice,
        which the upsert semantics of added events absorb.
        """
        channel = self.client.channel(f"{self.table}:{user_id}")
        subscription = SupabaseSubscription(user_id=user_id, channel=channel)
        row_filter = f"user_id=eq.{user_id}"

        def on_upsert(payload: dict[str, object]) -> None:
            if not subscription.active:
                return
            row = _change_record(payload, "record", "new")
            grub = _decode_row(row) if row is not None else None
            if grub is None:
                return
            listener(GrubAdded(fid=grub.fid, grub=grub))

        def on_delete(payload: dict[str, object]) -> None:
            if not subscription.active:
                return
            row = _change_record(payload, "old_record", "old")
            if row is None or row.get("user_id") != user_id:
                return
            fid = row.get("fid")
            if not isinstance(fid, str) or not fid:
                logger.warning("Dropping delete event without fid for %s", user_id)
                return
            listener(GrubRemoved(fid=fid))

        channel.on_postgres_changes(
            "INSERT", callback=on_upsert, table=self.table, filter=row_filter
        )
        channel.on_postgres_changes(
            "UPDATE", callback=on_upsert, table=self.table, filter=row_filter
        )
        # Realtime cannot filter DELETE events; on_delete checks the owner.
        channel.on_postgres_changes("DELETE", callback=on_delete, table=self.table)
        self._opened = True
        try:
            await channel.subscribe()
            existing = await self.fetch_all(user_id) or {}
        except Exception:
            subscription.active = False
            await self.client.remove_channel(channel)
            raise

        for fid, grub in existing.items():
            if not subscription.active:
                break
            listener(GrubAdded(fid=fid, grub=grub))
        logger.info("Subscribed to %s rows for %s", self.table, user_id)
        return subscription

    async def unsubscribe(self, subscription: SupabaseSubscription) -> None:
        """Remove the realtime channel; repeated calls do nothing."""
        if not subscription.active:
            return
        subscription.active = False
        await self.client.remove_channel(subscription.channel)
        logger.info(
            "Unsubscribed from %s rows for %s", self.table, subscription.user_id
        )

    async def close(self) -> None:
        """Remove every realtime channel and close the socket."""
        if not self._opened:
            return
        self._opened = False
        await self.client.remove_all_channels()


def _change_record(
    payload: dict[str, object], *keys: str
) -> dict[str, object] | None:
    data = payload.get("data")
    if not isinstance(data, dict):
        data = payload
    for key in keys:
        record = data.get(key)
        if isinstance(record, dict):
            return record
    logger.warning("Dropping change event without a %s record", keys[0])
    return None


def _decode_row(row: dict[str, object]) -> Grub | None:
    fid = row.get("fid")
    try:
        return Grub.from_payload(
            row.get("payload"), fid=fid if isinstance(fid, str) else None
        )
    except GrubDecodeError as exc:
        logger.warning("Dropping undecodable remote grub %s: %s", fid, exc)
        return None
