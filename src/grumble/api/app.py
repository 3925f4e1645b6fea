"""FastAPI application factory."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, HTTPException, Request, status

from grumble.api.grubs import router as grubs_router
from grumble.api.models import EditRequest, LoginRequest
from grumble.app_logging import configure_logging
from grumble.containers import AppContainer
from grumble.domain.errors import (
    AuthenticationError,
    GrubNotFoundError,
    RemoteUnavailableError,
)


def create_app(container: AppContainer) -> FastAPI:
    """Create a FastAPI app configured with dependencies."""
    configure_logging(container.settings.log_level)
    logger = logging.getLogger(__name__)

    @asynccontextmanager
    async def lifespan(app: FastAPI) -> AsyncIterator[None]:
        try:
            await app.state.container.lifecycle.restore()
        except Exception:
            logger.exception("Failed to restore the previous session")
        yield
        await app.state.container.close_resources()

    app = FastAPI(lifespan=lifespan)
    app.state.container = container

    app.include_router(grubs_router)

    @app.get("/health")
    async def health() -> dict[str, str]:
        """Simple health check endpoint."""
        return {"status": "ok"}

    @app.get("/session")
    async def session_view(request: Request) -> dict[str, object]:
        """Return the login state and the current view."""
        state_container: AppContainer = request.app.state.container
        return _session_payload(state_container)

    @app.post("/session/login")
    async def login(payload: LoginRequest, request: Request) -> dict[str, object]:
        """Sign in and start syncing the user's Grubs."""
        state_container: AppContainer = request.app.state.container
        try:
            await state_container.lifecycle.sign_in(payload.email, payload.password)
        except AuthenticationError as exc:
            raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED) from exc
        except RemoteUnavailableError as exc:
            raise HTTPException(
                status_code=status.HTTP_503_SERVICE_UNAVAILABLE
            ) from exc
        return _session_payload(state_container)

    @app.post("/session/logout")
    async def logout(request: Request) -> dict[str, object]:
        """Sign out and clear all local state."""
        state_container: AppContainer = request.app.state.container
        await state_container.lifecycle.logout()
        return _session_payload(state_container)

    @app.post("/session/edit")
    async def begin_edit(payload: EditRequest, request: Request) -> dict[str, object]:
        """Select a Grub for editing."""
        state_container: AppContainer = request.app.state.container
        try:
            grub = state_container.grub_service.begin_edit(payload.fid)
        except GrubNotFoundError as exc:
            raise HTTPException(status_code=status.HTTP_404_NOT_FOUND) from exc
        return {"grub": grub.to_payload()}

    @app.delete("/session/edit")
    async def end_edit(request: Request) -> dict[str, object]:
        """Return the form to create mode."""
        state_container: AppContainer = request.app.state.container
        state_container.grub_service.begin_create()
        return _session_payload(state_container)

    return app


def _session_payload(container: AppContainer) -> dict[str, object]:
    session = container.session
    return {
        "state": session.state.value,
        "user_id": session.user_id,
        "editing_fid": session.editing_fid,
        "route": container.router.current.value,
        "grub_count": len(session.grubs),
    }
