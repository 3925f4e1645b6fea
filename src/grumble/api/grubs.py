"""Grub endpoints for the presentation layer."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import APIRouter, HTTPException, Request, status

from grumble.domain.errors import GrubNotFoundError, NotLoggedInError
from grumble.domain.grubs import GrubDraft  # noqa: TC001

if TYPE_CHECKING:
    from grumble.containers import AppContainer

router = APIRouter(prefix="/grubs", tags=["grubs"])


@router.get("")
async def list_grubs(request: Request) -> dict[str, object]:
    """Return the session's Grubs, newest first."""
    container: AppContainer = request.app.state.container
    grubs = container.grub_service.list_grubs()
    return {"grubs": [grub.to_payload() for grub in grubs]}


@router.post("")
async def save_grub(draft: GrubDraft, request: Request) -> dict[str, object]:
    """Create a Grub, or update the one selected for editing."""
    container: AppContainer = request.app.state.container
    try:
        grub = container.grub_service.save(draft)
    except NotLoggedInError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT) from exc
    except GrubNotFoundError as exc:
        raise HTTPException(status_code=status.HTTP_404_NOT_FOUND) from exc
    return {"grub": grub.to_payload()}


@router.delete("/{fid}")
async def remove_grub(fid: str, request: Request) -> dict[str, object]:
    """Remove a Grub by id."""
    container: AppContainer = request.app.state.container
    try:
        removed = container.grub_service.remove(fid)
    except NotLoggedInError as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT) from exc
    return {"removed": removed}
