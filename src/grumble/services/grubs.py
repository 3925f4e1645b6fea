"""Create, edit and remove Grubs for the logged-in user."""

import logging
import random
import string
from dataclasses import dataclass
from datetime import UTC, datetime

from grumble.domain.errors import GrubNotFoundError, NotLoggedInError
from grumble.domain.grubs import Grub, GrubDraft
from grumble.domain.sessions import UserSession
from grumble.services.dispatch import Dispatcher
from grumble.services.sync import LocalMirror, RemoteSyncChannel

logger = logging.getLogger(__name__)

_FID_ALPHABET = string.ascii_lowercase + string.digits


def generate_fid(name: str, created_at: datetime) -> str:
    """Build a Grub id from the name, a random suffix and the creation time."""
    prefix = name.strip().lower()[:3]
    suffix = "".join(random.choices(_FID_ALPHABET, k=4))  # noqa: S311
    return (
        f"{prefix}{suffix}{created_at.hour}_{created_at.minute}_{created_at.second}"
    )


def parse_price_field(text: str) -> float | None:
    """Parse a price typed as digits where the last two digits are cents."""
    digits = text.strip().replace("$", "").replace(".", "").lstrip("0")
    if not digits:
        return None
    digits = digits.rjust(3, "0")
    try:
        return float(f"{digits[:-2]}.{digits[-2:]}")
    except ValueError:
        return None


def _resolve_price(price: str | float | None) -> float | None:
    if price is None:
        return None
    if isinstance(price, str):
        return parse_price_field(price)
    return round(float(price), 2)


@dataclass
class GrubService:
    """Applies user mutations to the session, the mirror and the remote store."""

    session: UserSession
    mirror: LocalMirror
    channel: RemoteSyncChannel
    dispatcher: Dispatcher

    def list_grubs(self) -> list[Grub]:
        """Return the session's Grubs, newest first."""
        return sorted(
            self.session.grubs.values(),
            key=lambda grub: grub.created_at,
            reverse=True,
        )

    def get_grub(self, fid: str) -> Grub:
        grub = self.session.grubs.get(fid)
        if grub is None:
            raise GrubNotFoundError(fid)
        return grub

    def begin_edit(self, fid: str) -> Grub:
        """Point the edit cursor at an existing Grub."""
        grub = self.get_grub(fid)
        self.session.editing_fid = fid
        return grub

    def begin_create(self) -> None:
        self.session.editing_fid = None

    def save(self, draft: GrubDraft) -> Grub:
        """Create a Grub, or update the one under the edit cursor."""
        user_id = self._require_user()
        editing_fid = self.session.editing_fid
        if editing_fid is None:
            created_at = datetime.now(tz=UTC)
            fid = generate_fid(draft.name, created_at)
            while fid in self.session.grubs:
                fid = generate_fid(draft.name, created_at)
            image_ref = draft.image_ref
        else:
            existing = self.get_grub(editing_fid)
            fid, created_at = existing.fid, existing.created_at
            image_ref = draft.image_ref or existing.image_ref

        grub = Grub(
            fid=fid,
            name=draft.name,
            price=_resolve_price(draft.price),
            restaurant=draft.restaurant,
            address=draft.address,
            tags=draft.tags,
            created_at=created_at,
            image_ref=image_ref,
        )
        self.session.grubs[fid] = grub
        self.mirror.put(fid, grub)
        self.dispatcher.submit(self.channel.put(user_id, fid, grub), f"put {fid}")
        self.session.editing_fid = None
        logger.info("Saved grub %s", fid)
        return grub

    def remove(self, fid: str) -> bool:
        """Remove a Grub; returns False when it was not in the session."""
        user_id = self._require_user()
        if self.session.grubs.pop(fid, None) is None:
            return False
        self.mirror.delete(fid)
        if self.session.editing_fid == fid:
            self.session.editing_fid = None
        self.dispatcher.submit(self.channel.delete(user_id, fid), f"delete {fid}")
        logger.info("Removed grub %s", fid)
        return True

    def _require_user(self) -> str:
        if not self.session.logged_in or self.session.user_id is None:
            raise NotLoggedInError("No user is logged in")
        return self.session.user_id
