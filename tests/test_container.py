"""Tests for container wiring."""

import asyncio

from grumble.config import Settings
from grumble.containers import build_container


def test_build_container_creates_services(settings: Settings) -> None:
    async def scenario() -> None:
        container = build_container(settings)
        assert container.lifecycle.session is container.session
        assert container.grub_service.session is container.session
        assert container.settings.mirror_path == settings.data_dir / "data.plist"
        await container.close_resources()

    asyncio.run(scenario())
