"""Domain error kinds."""


class GrumbleError(Exception):
    """Base class for Grumble domain errors."""


class GrubDecodeError(GrumbleError):
    """Raised when a stored or remote payload cannot be decoded into a Grub."""

    def __init__(self, message: str, missing_fields: tuple[str, ...] = ()) -> None:
        super().__init__(message)
        self.missing_fields = missing_fields


class GrubNotFoundError(GrumbleError):
    """Raised when a Grub id is not present in the session."""

    def __init__(self, fid: str) -> None:
        super().__init__(f"Unknown grub: {fid}")
        self.fid = fid


class NotLoggedInError(GrumbleError):
    """Raised when a mutation is attempted without a logged-in user."""


class AuthenticationError(GrumbleError):
    """Raised when the authentication provider rejects a sign-in."""


class RemoteUnavailableError(GrumbleError):
    """Raised when the auth provider or the remote store cannot be reached."""
