"""
Supabase access - token verification and the auth provider health check.

The backend never signs users in; it only verifies the bearer tokens the
frontend obtained from Supabase.
"""
from dataclasses import asdict, dataclass
from typing import Any, Dict, Optional

import httpx
from postgrest.exceptions import APIError
from supabase import Client, ClientOptions, create_client

from aichat.ai.entitlements import USER_TYPES
from aichat.core.exceptions import AuthError, ConfigurationError
from aichat.core.health import HealthStatus
from aichat.core.logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_USER_TYPE = "free"


@dataclass(frozen=True)
class AuthenticatedUser:
    id: str
    email: Optional[str] = None
    user_type: str = DEFAULT_USER_TYPE

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "AuthenticatedUser":
        return cls(
            id=data["id"],
            email=data.get("email"),
            user_type=data.get("user_type", DEFAULT_USER_TYPE),
        )


def _user_type_from(user: Any) -> str:
    """Read the plan from the user's metadata, defaulting to the free tier."""
    for source in ("app_metadata", "user_metadata"):
        metadata = getattr(user, source, None) or {}
        tier = metadata.get("subscription_tier")
        if tier in USER_TYPES:
            return tier
    return DEFAULT_USER_TYPE


class SupabaseAuth:
    """
    Public and admin Supabase clients.

    The public client uses the anon key; the admin client uses the
    service-role key and never persists or refreshes a session.
    """

    def __init__(
        self,
        url: Optional[str] = None,
        anon_key: Optional[str] = None,
        service_role_key: Optional[str] = None,
        client: Optional[Client] = None,
        admin_client: Optional[Client] = None
    ):
        if client is None or admin_client is None:
            from aichat.core.config import get_settings
            settings = get_settings()
            url = url or settings.supabase_url
            anon_key = anon_key or settings.supabase_anon_key
            service_role_key = service_role_key or settings.supabase_service_role_key
            if not url or not anon_key:
                raise ConfigurationError("Missing SUPABASE_URL or SUPABASE_ANON_KEY environment variable")

        self.client = client or create_client(url, anon_key)
        if admin_client is None and service_role_key:
            admin_client = create_client(
                url,
                service_role_key,
                options=ClientOptions(auto_refresh_token=False, persist_session=False),
            )
        self.admin_client = admin_client

    def get_user(self, token: str) -> AuthenticatedUser:
        """
        Verify an access token and return the user it belongs to.

        Raises:
            AuthError: If the token is invalid, expired or cannot be verified
        """
        try:
            response = self.client.auth.get_user(token)
        except Exception as e:
            logger.warning(f"Token verification failed: {e}")
            raise AuthError("Invalid or expired token") from e

        user = getattr(response, "user", None)
        if user is None:
            raise AuthError("Invalid or expired token")

        return AuthenticatedUser(
            id=str(user.id),
            email=getattr(user, "email", None),
            user_type=_user_type_from(user),
        )

    def check_health(self) -> HealthStatus:
        try:
            self.client.table("profiles").select("count").limit(1).execute()
            return HealthStatus.ok()
        except APIError as e:
            logger.error(f"Supabase health check failed: {e.message}")
            return HealthStatus.failed(e.message)
        except httpx.HTTPError as e:
            logger.error(f"Supabase unreachable: {e}")
            return HealthStatus.failed()


_supabase_auth: Optional[SupabaseAuth] = None


def get_supabase_auth() -> SupabaseAuth:
    """Get or create the Supabase clients."""
    global _supabase_auth
    if _supabase_auth is None:
        _supabase_auth = SupabaseAuth()
    return _supabase_auth


def reset_supabase_auth() -> None:
    global _supabase_auth
    _supabase_auth = None
