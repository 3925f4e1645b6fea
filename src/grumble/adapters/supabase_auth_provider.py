"""Supabase Auth implementation of the authentication provider."""

from dataclasses import dataclass

from supabase import AsyncClient, AuthError

from grumble.domain.errors import AuthenticationError
from grumble.services.sessions import AuthProvider


@dataclass
class SupabaseAuthProvider(AuthProvider):
    """Authentication backed by Supabase Auth."""

    client: AsyncClient

    async def current_user_id(self) -> str | None:
        """Return the user id of the stored session, if any."""
        session = await self.client.auth.get_session()
        if session is None or session.user is None:
            return None
        return str(session.user.id)

    async def sign_in(self, email: str, password: str) -> str:
        """Sign in with email and password."""
        try:
            response = await self.client.auth.sign_in_with_password(
                {"email": email, "password": password}
            )
        except AuthError as exc:
            raise AuthenticationError(str(exc)) from exc
        if response.user is None:
            raise AuthenticationError("Supabase returned no user")
        return str(response.user.id)

    async def sign_out(self) -> None:
        """Sign out of Supabase Auth."""
        await self.client.auth.sign_out()
