"""Pydantic request models for the HTTP API."""

from pydantic import BaseModel


class LoginRequest(BaseModel):
    """Credentials for email/password sign-in."""

    email: str
    password: str


class EditRequest(BaseModel):
    """Selects the Grub the next save should update."""

    fid: str
