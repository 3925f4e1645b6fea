"""Shared test fixtures."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from pathlib import Path

import pytest

from grumble.adapters.plist_mirror import PlistMirrorStore
from grumble.config import Settings
from grumble.containers import AppContainer
from grumble.domain.errors import AuthenticationError
from grumble.domain.grubs import Grub
from grumble.domain.sessions import GrubAdded, GrubRemoved, SyncEvent, UserSession
from grumble.services.dispatch import Dispatcher
from grumble.services.grubs import GrubService
from grumble.services.sessions import (
    AuthProvider,
    RecordingRouter,
    SessionLifecycle,
)
from grumble.services.sync import RemoteSyncChannel, SyncListener


CREATED_AT = datetime(2024, 5, 1, 12, 30, 5, tzinfo=UTC)


def make_grub(
    fid: str = "tac1a2b12_30_5",
    name: str = "Taco",
    tags: dict[str, float] | None = None,
    **fields: object,
) -> Grub:
    """Build a Grub with sensible defaults."""
    return Grub(
        fid=fid,
        name=name,
        tags=tags if tags is not None else {"food": 1.0},
        created_at=fields.pop("created_at", CREATED_AT),
        **fields,
    )


@dataclass
class FakeSubscription:
    """Subscription handle recorded by the fake channel."""

    user_id: str
    listener: SyncListener
    active: bool = True


@dataclass
class FakeSyncChannel(RemoteSyncChannel):
    """In-memory remote collection that echoes writes to subscribers."""

    rows: dict[str, dict[str, Grub]] = field(default_factory=dict)
    subscriptions: list[FakeSubscription] = field(default_factory=list)
    puts: list[tuple[str, str]] = field(default_factory=list)
    deletes: list[tuple[str, str]] = field(default_factory=list)
    unsubscribe_calls: int = 0
    subscribe_error: Exception | None = None
    unsubscribe_error: Exception | None = None
    closed: bool = False

    async def fetch_all(self, user_id: str | None) -> dict[str, Grub] | None:
        if user_id is None:
            return None
        return dict(self.rows.get(user_id, {}))

    async def put(self, user_id: str, fid: str, grub: Grub) -> None:
        self.rows.setdefault(user_id, {})[fid] = grub
        self.puts.append((user_id, fid))
        self.emit(user_id, GrubAdded(fid=fid, grub=grub))

    async def delete(self, user_id: str, fid: str) -> None:
        self.rows.get(user_id, {}).pop(fid, None)
        self.deletes.append((user_id, fid))
        self.emit(user_id, GrubRemoved(fid=fid))

    async def subscribe(self, user_id: str, listener: SyncListener) -> FakeSubscription:
        if self.subscribe_error is not None:
            raise self.subscribe_error
        subscription = FakeSubscription(user_id=user_id, listener=listener)
        self.subscriptions.append(subscription)
        for fid, grub in self.rows.get(user_id, {}).items():
            listener(GrubAdded(fid=fid, grub=grub))
        return subscription

    async def unsubscribe(self, subscription: FakeSubscription) -> None:
        self.unsubscribe_calls += 1
        subscription.active = False
        if self.unsubscribe_error is not None:
            raise self.unsubscribe_error

    async def close(self) -> None:
        self.closed = True

    @property
    def active_subscriptions(self) -> list[FakeSubscription]:
        return [sub for sub in self.subscriptions if sub.active]

    def emit(
        self, user_id: str, event: SyncEvent, include_inactive: bool = False
    ) -> None:
        """Deliver an event, optionally to listeners that were unsubscribed."""
        for subscription in list(self.subscriptions):
            if subscription.user_id != user_id:
                continue
            if subscription.active or include_inactive:
                subscription.listener(event)


@dataclass
class FakeAuthProvider(AuthProvider):
    """Auth provider with a fixed set of accounts."""

    user_id: str | None = None
    accounts: dict[str, tuple[str, str]] = field(
        default_factory=lambda: {"ann@example.com": ("secret", "user-1")}
    )
    fail_sign_out: bool = False
    sign_out_calls: int = 0
    sign_in_error: Exception | None = None

    async def current_user_id(self) -> str | None:
        return self.user_id

    async def sign_in(self, email: str, password: str) -> str:
        if self.sign_in_error is not None:
            raise self.sign_in_error
        account = self.accounts.get(email)
        if account is None or account[0] != password:
            raise AuthenticationError("Invalid login credentials")
        self.user_id = account[1]
        return self.user_id

    async def sign_out(self) -> None:
        self.sign_out_calls += 1
        if self.fail_sign_out:
            raise RuntimeError("network unavailable")
        self.user_id = None


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        supabase_url="https://example.supabase.co",
        supabase_key="header.payload.signature",
        data_dir=tmp_path / "grumble",
    )


@pytest.fixture
def mirror(tmp_path: Path) -> PlistMirrorStore:
    return PlistMirrorStore(tmp_path / "data.plist")


@pytest.fixture
def channel() -> FakeSyncChannel:
    return FakeSyncChannel()


@pytest.fixture
def auth() -> FakeAuthProvider:
    return FakeAuthProvider()


@pytest.fixture
def session() -> UserSession:
    return UserSession()


@pytest.fixture
def router() -> RecordingRouter:
    return RecordingRouter()


@pytest.fixture
def dispatcher() -> Dispatcher:
    return Dispatcher()


@pytest.fixture
def lifecycle(
    session: UserSession,
    mirror: PlistMirrorStore,
    channel: FakeSyncChannel,
    auth: FakeAuthProvider,
    router: RecordingRouter,
) -> SessionLifecycle:
    return SessionLifecycle(
        session=session,
        mirror=mirror,
        channel=channel,
        auth=auth,
        router=router,
    )


@pytest.fixture
def grub_service(
    session: UserSession,
    mirror: PlistMirrorStore,
    channel: FakeSyncChannel,
    dispatcher: Dispatcher,
) -> GrubService:
    return GrubService(
        session=session,
        mirror=mirror,
        channel=channel,
        dispatcher=dispatcher,
    )


@pytest.fixture
def container(  # noqa: PLR0913
    settings: Settings,
    session: UserSession,
    mirror: PlistMirrorStore,
    channel: FakeSyncChannel,
    dispatcher: Dispatcher,
    router: RecordingRouter,
    lifecycle: SessionLifecycle,
    grub_service: GrubService,
) -> AppContainer:
    async def close_resources() -> None:
        await dispatcher.drain()
        await lifecycle.suspend()
        await channel.close()

    return AppContainer(
        settings=settings,
        session=session,
        mirror=mirror,
        channel=channel,
        dispatcher=dispatcher,
        router=router,
        lifecycle=lifecycle,
        grub_service=grub_service,
        close_resources=close_resources,
    )
