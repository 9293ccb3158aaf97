"""Access token issuing and verification."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from uuid import uuid4

import jwt

from powergrid_backend.settings import BackendSettings, get_settings


class InvalidTokenError(Exception):
    """Raised when an access token cannot be decoded or has expired."""


@dataclass(slots=True)
class TokenPayload:
    """Represents encoded token metadata."""

    sub: str
    exp: datetime
    name: str | None = None


class AuthService:
    """Issues HS256 access tokens whose subject is the caller's player id."""

    def __init__(
        self,
        *,
        secret_key: str | None = None,
        algorithm: str = "HS256",
        access_token_ttl_minutes: int | None = None,
        settings: BackendSettings | None = None,
    ) -> None:
        config = settings or get_settings()
        self._secret_key = secret_key or config.auth_secret_key
        self._algorithm = algorithm
        self._access_token_ttl = timedelta(
            minutes=access_token_ttl_minutes or config.access_token_ttl_minutes
        )

    def create_access_token(self, subject: str, *, name: str | None = None) -> str:
        """Return a signed token for *subject*."""
        expires_at = datetime.now(tz=UTC) + self._access_token_ttl
        payload: dict[str, object] = {"sub": subject, "exp": expires_at}
        if name is not None:
            payload["name"] = name
        return jwt.encode(payload, self._secret_key, algorithm=self._algorithm)

    def decode_access_token(self, token: str) -> TokenPayload:
        """Return the payload of *token* or raise :class:`InvalidTokenError`."""
        try:
            data = jwt.decode(token, self._secret_key, algorithms=[self._algorithm])
        except jwt.PyJWTError as exc:
            msg = "Invalid access token"
            raise InvalidTokenError(msg) from exc
        return TokenPayload(
            sub=data["sub"],
            exp=datetime.fromtimestamp(data["exp"], tz=UTC),
            name=data.get("name"),
        )

    def issue_guest_token(self, name: str) -> tuple[str, str]:
        """Create a fresh player identity and return ``(player_id, token)``."""
        player_id = f"player-{uuid4().hex[:12]}"
        return player_id, self.create_access_token(player_id, name=name)


__all__ = ["AuthService", "InvalidTokenError", "TokenPayload"]
