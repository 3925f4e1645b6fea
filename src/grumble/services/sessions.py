"""Login/logout state machine and remote event handling."""

import logging
from dataclasses import dataclass, field
from typing import Protocol

from grumble.domain.errors import AuthenticationError, RemoteUnavailableError
from grumble.domain.sessions import (
    GrubAdded,
    GrubRemoved,
    Route,
    SessionState,
    SyncEvent,
    UserSession,
)
from grumble.services.sync import LocalMirror, RemoteSyncChannel, Subscription

logger = logging.getLogger(__name__)


class AuthProvider(Protocol):
    """External authentication provider."""

    async def current_user_id(self) -> str | None:
        """Return the signed-in user's id, if any."""

    async def sign_in(self, email: str, password: str) -> str:
        """Sign in and return the user id, raising AuthenticationError."""

    async def sign_out(self) -> None:
        """End the provider session."""


class Router(Protocol):
    """Presentation-layer navigation hook."""

    def route(self, target: Route) -> None:
        """Show the given top-level view."""


@dataclass
class RecordingRouter(Router):
    """Router that remembers where the presentation layer was sent."""

    current: Route = Route.LOGIN
    history: list[Route] = field(default_factory=list)

    def route(self, target: Route) -> None:
        self.current = target
        self.history.append(target)


@dataclass
class SessionLifecycle:
    """Owns the user session from startup through logout."""

    session: UserSession
    mirror: LocalMirror
    channel: RemoteSyncChannel
    auth: AuthProvider
    router: Router
    _subscription: Subscription | None = field(default=None, init=False)
    _generation: int = field(default=0, init=False)

    @property
    def subscribed(self) -> bool:
        return self._subscription is not None

    async def restore(self) -> None:
        """Load the local mirror and resume a persisted provider session."""
        self.session.grubs.clear()
        self.session.grubs.update(self.mirror.load())
        logger.info("Loaded %d grubs from local mirror", len(self.session.grubs))
        await self.on_authenticated()

    async def sign_in(self, email: str, password: str) -> None:
        """Authenticate with the provider and start the session."""
        if self.session.logged_in:
            await self.logout()
        self.session.state = SessionState.LOGGING_IN
        try:
            await self.auth.sign_in(email, password)
        except AuthenticationError:
            logger.warning("Sign-in rejected by provider")
            self.session.state = SessionState.LOGGED_OUT
            raise
        except Exception as exc:
            logger.exception("Sign-in request failed")
            self.session.state = SessionState.LOGGED_OUT
            raise RemoteUnavailableError("Authentication provider unavailable") from exc
        if not await self.on_authenticated():
            raise AuthenticationError("Sign-in did not produce a provider session")

    async def on_authenticated(self) -> bool:
        """Enter the logged-in state for the provider's current user."""
        user_id = await self.auth.current_user_id()
        if user_id is None:
            if self.session.state is SessionState.LOGGING_IN:
                self.session.state = SessionState.LOGGED_OUT
            return False
        if (
            self.session.logged_in
            and self.session.user_id == user_id
            and self._subscription is not None
        ):
            return True
        if self.session.user_id is not None and self.session.user_id != user_id:
            logger.info("Switching user; discarding previous session state")
            await self._drop_subscription()
            self._clear_local_state()

        self.session.mark_logged_in(user_id)
        self._generation += 1
        generation = self._generation

        def listener(event: SyncEvent) -> None:
            self._handle_event(generation, event)

        try:
            self._subscription = await self.channel.subscribe(user_id, listener)
        except Exception as exc:
            logger.exception("Failed to subscribe to remote grubs for %s", user_id)
            self._generation += 1
            self.session.state = SessionState.LOGGED_OUT
            raise RemoteUnavailableError("Remote sync unavailable") from exc
        self.router.route(Route.LIST)
        logger.info("User %s logged in", user_id)
        return True

    async def logout(self) -> None:
        """Tear down the subscription and clear all local state."""
        await self._drop_subscription()
        try:
            await self.auth.sign_out()
        except Exception:
            logger.exception("Provider sign-out failed; clearing local session")
        self._clear_local_state()
        self.router.route(Route.LOGIN)
        logger.info("User logged out")

    async def suspend(self) -> None:
        """Stop remote delivery but keep local state for the next start."""
        await self._drop_subscription()

    def apply_event(self, event: SyncEvent) -> None:
        """Apply a remote change to the session and the local mirror."""
        if isinstance(event, GrubAdded):
            self.session.grubs[event.fid] = event.grub
            self.mirror.put(event.fid, event.grub)
        elif isinstance(event, GrubRemoved):
            self.session.grubs.pop(event.fid, None)
            self.mirror.delete(event.fid)
            if self.session.editing_fid == event.fid:
                self.session.editing_fid = None

    def _handle_event(self, generation: int, event: SyncEvent) -> None:
        if generation != self._generation or not self.session.logged_in:
            logger.debug("Ignoring %s for %s", type(event).__name__, event.fid)
            return
        self.apply_event(event)

    async def _drop_subscription(self) -> None:
        self._generation += 1
        subscription, self._subscription = self._subscription, None
        if subscription is None:
            return
        try:
            await self.channel.unsubscribe(subscription)
        except Exception:
            logger.exception("Failed to unsubscribe for %s", subscription.user_id)

    def _clear_local_state(self) -> None:
        self.session.reset()
        self.mirror.clear()
