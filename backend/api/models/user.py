"""
JWT claim models for authentication.

The authenticated user handed to route handlers is
shared.models.AuthenticatedUser; this module only describes the token.
"""

from typing import Any, Optional

from pydantic import BaseModel, ConfigDict


class TokenPayload(BaseModel):
    """Supabase JWT payload structure."""
    model_config = ConfigDict(extra="ignore")  # Ignore extra claims

    sub: str  # User ID
    email: str
    email_confirmed_at: Optional[str] = None
    aud: str  # Audience
    exp: int  # Expiration timestamp
    iat: int  # Issued at timestamp
    role: str = "authenticated"  # Postgres role, not the app role
    app_metadata: dict[str, Any] = {}

    @property
    def app_role(self) -> str:
        """Application role set server-side in app_metadata ('user' or 'admin')."""
        return str(self.app_metadata.get("role") or "user")
