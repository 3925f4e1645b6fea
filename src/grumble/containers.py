"""Dependency container wiring for the application."""

from collections.abc import Awaitable, Callable
from dataclasses import dataclass

from supabase import AsyncClient

from grumble.adapters.plist_mirror import PlistMirrorStore
from grumble.adapters.supabase_auth_provider import SupabaseAuthProvider
from grumble.adapters.supabase_sync_channel import SupabaseSyncChannel
from grumble.config import Settings
from grumble.domain.sessions import UserSession
from grumble.services.dispatch import Dispatcher
from grumble.services.grubs import GrubService
from grumble.services.sessions import RecordingRouter, SessionLifecycle
from grumble.services.sync import LocalMirror, RemoteSyncChannel


@dataclass
class AppContainer:
    """Holds application-wide dependencies."""

    settings: Settings
    session: UserSession
    mirror: LocalMirror
    channel: RemoteSyncChannel
    dispatcher: Dispatcher
    router: RecordingRouter
    lifecycle: SessionLifecycle
    grub_service: GrubService
    close_resources: Callable[[], Awaitable[None]]


def build_container(settings: Settings | None = None) -> AppContainer:
    """Create the default dependency container."""
    resolved_settings = settings or Settings()
    supabase_client = AsyncClient(
        resolved_settings.supabase_url, resolved_settings.supabase_key
    )
    session = UserSession()
    mirror = PlistMirrorStore(resolved_settings.mirror_path)
    channel = SupabaseSyncChannel(supabase_client, table=resolved_settings.food_table)
    dispatcher = Dispatcher()
    router = RecordingRouter()
    lifecycle = SessionLifecycle(
        session=session,
        mirror=mirror,
        channel=channel,
        auth=SupabaseAuthProvider(supabase_client),
        router=router,
    )
    grub_service = GrubService(
        session=session,
        mirror=mirror,
        channel=channel,
        dispatcher=dispatcher,
    )

    async def close_resources() -> None:
        await dispatcher.drain()
        await lifecycle.suspend()
        await channel.close()

    return AppContainer(
        settings=resolved_settings,
        session=session,
        mirror=mirror,
        channel=channel,
        dispatcher=dispatcher,
        router=router,
        lifecycle=lifecycle,
        grub_service=grub_service,
        close_resources=close_resources,
    )
