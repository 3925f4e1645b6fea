"""Domain models for the user session and sync events."""

from dataclasses import dataclass, field
from enum import StrEnum

from grumble.domain.grubs import Grub


class SessionState(StrEnum):
    """Login lifecycle states."""

    LOGGED_OUT = "LOGGED_OUT"
    LOGGING_IN = "LOGGING_IN"
    LOGGED_IN = "LOGGED_IN"


class Route(StrEnum):
    """Top-level views the presentation layer can be sent to."""

    LOGIN = "login"
    LIST = "list"


@dataclass(frozen=True)
class GrubAdded:
    """A Grub was added or replaced in the remote collection."""

    fid: str
    grub: Grub


@dataclass(frozen=True)
class GrubRemoved:
    """A Grub was removed from the remote collection."""

    fid: str


SyncEvent = GrubAdded | GrubRemoved


@dataclass
class UserSession:
    """In-memory state for the current user."""

    state: SessionState = SessionState.LOGGED_OUT
    user_id: str | None = None
    grubs: dict[str, Grub] = field(default_factory=dict)
    editing_fid: str | None = None

    @property
    def logged_in(self) -> bool:
        return self.state is SessionState.LOGGED_IN

    def mark_logged_in(self, user_id: str) -> None:
        self.state = SessionState.LOGGED_IN
        self.user_id = user_id

    def reset(self) -> None:
        """Drop everything held for the current user."""
        self.state = SessionState.LOGGED_OUT
        self.user_id = None
        self.grubs.clear()
        self.editing_fid = None
