"""Collaborators the auth stage depends on."""

from typing import Protocol


class TokenProvider(Protocol):
    """Source of bearer tokens."""

    async def get_access_token(self) -> str | None:
        """Return the current access token, if any."""
        ...

    async def has_valid_token(self) -> bool:
        """Check if the current token can be used."""
        ...

    async def refresh_token(self) -> str | None:
        """Obtain a new access token; None if refreshing is not possible."""
        ...


class UnauthorizedHandler(Protocol):
    """Reacts to unrecoverable 401s (e.g. signs the user out)."""

    async def handle_unauthorized(self) -> None:
        """Handle an unrecoverable 401."""
        ...


class NoAuthTokenProvider:
    """Token provider for clients without authentication."""

    async def get_access_token(self) -> str | None:
        return None

    async def has_valid_token(self) -> bool:
        return False

    async def refresh_token(self) -> str | None:
        return None


class NoOpUnauthorizedHandler:
    """Unauthorized handler that does nothing."""

    async def handle_unauthorized(self) -> None:
        return None
