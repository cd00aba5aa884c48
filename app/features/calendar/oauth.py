"""
OAuth 2.0 for calendar providers.

Google and Microsoft are both authorization-code providers with offline
refresh tokens. The authorize redirect carries an HMAC-signed `state` naming
the user and provider; the callback verifies it, exchanges the code and the
caller stores the tokens encrypted.
"""

import base64
import hashlib
import hmac
import logging
import secrets
from dataclasses import dataclass
from datetime import datetime, timedelta, timezone
from typing import Dict, Optional
from urllib.parse import urlencode

import httpx

from app.core.config import settings
from app.core.logging_utils import sanitize_for_logging
from app.services.http_client import http_client_manager
from app.shared.errors import ConfigurationError, ExternalServiceError, ValidationFailedError

logger = logging.getLogger("ReMember.Calendar.OAuth")

STATE_MAX_AGE_SECONDS = 600


@dataclass(frozen=True)
class OAuthProvider:
    name: str
    authorize_url: str
    token_url: str
    scope: str
    extra_params: tuple = ()

    @property
    def client_id(self) -> Optional[str]:
        return getattr(settings, f"{self.name.upper()}_CLIENT_ID")

    @property
    def client_secret(self) -> Optional[str]:
        return getattr(settings, f"{self.name.upper()}_CLIENT_SECRET")

    @property
    def redirect_uri(self) -> str:
        return f"{settings.BASE_URL}/api/v1/calendar/oauth/{self.name}/callback"


PROVIDERS: Dict[str, OAuthProvider] = {
    "google": OAuthProvider(
        name="google",
        authorize_url="https://accounts.google.com/o/oauth2/v2/auth",
        token_url="https://oauth2.googleapis.com/token",
        scope="https://www.googleapis.com/auth/calendar.readonly",
        # offline + consent so Google always returns a refresh token
        extra_params=(("access_type", "offline"), ("prompt", "consent")),
    ),
    "microsoft": OAuthProvider(
        name="microsoft",
        authorize_url="https://login.microsoftonline.com/common/oauth2/v2.0/authorize",
        token_url="https://login.microsoftonline.com/common/oauth2/v2.0/token",
        scope="Calendars.Read offline_access",
        extra_params=(("response_mode", "query"),),
    ),
}


def get_provider(name: str) -> OAuthProvider:
    provider = PROVIDERS.get(name)
    if provider is None:
        raise ValidationFailedError(f"Unsupported calendar provider: {name}")
    return provider


def _require_client(provider: OAuthProvider, need_secret: bool = True) -> None:
    if not provider.client_id or (need_secret and not provider.client_secret):
        raise ConfigurationError(
            f"{provider.name.capitalize()} OAuth not configured. "
            f"Set {provider.name.upper()}_CLIENT_ID and {provider.name.upper()}_CLIENT_SECRET."
        )


# =========================================================================
# STATE
# =========================================================================

def _state_secret() -> bytes:
    secret = settings.OAUTH_STATE_SECRET or settings.ENCRYPTION_KEY
    if not secret:
        raise ConfigurationError("OAUTH_STATE_SECRET (or ENCRYPTION_KEY) must be set to sign OAuth state")
    return secret.encode()


def _state_signature(provider_name: str, payload: str) -> str:
    message = f"{provider_name}.{payload}".encode()
    return hmac.new(_state_secret(), message, hashlib.sha256).hexdigest()


def sign_state(provider_name: str, user_id: str, now: Optional[datetime] = None) -> str:
    """`<user id b64>.<nonce>.<issued at>.<hmac>`, bound to the provider."""
    now = now or datetime.now(timezone.utc)
    encoded_user = base64.urlsafe_b64encode(user_id.encode()).decode().rstrip("=")
    payload = f"{encoded_user}.{secrets.token_urlsafe(12)}.{int(now.timestamp())}"
    return f"{payload}.{_state_signature(provider_name, payload)}"


def verify_state(provider_name: str, state: str, now: Optional[datetime] = None) -> str:
    """Return the user id carried by a state issued for this provider."""
    parts = (state or "").split(".")
    if len(parts) != 4:
        raise ValidationFailedError("Invalid OAuth state")

    payload, signature = ".".join(parts[:3]), parts[3]
    if not hmac.compare_digest(signature.encode(), _state_signature(provider_name, payload).encode()):
        raise ValidationFailedError("Invalid OAuth state")

    encoded_user, _, issued_at = parts[:3]
    now = now or datetime.now(timezone.utc)
    try:
        age = now.timestamp() - int(issued_at)
        user_id = base64.urlsafe_b64decode(encoded_user + "=" * (-len(encoded_user) % 4)).decode()
    except ValueError as exc:
        raise ValidationFailedError("Invalid OAuth state") from exc
    if age < 0 or age > STATE_MAX_AGE_SECONDS or not user_id:
        raise ValidationFailedError("OAuth state expired")
    return user_id


def build_authorization_url(provider_name: str, user_id: str) -> str:
    provider = get_provider(provider_name)
    _require_client(provider, need_secret=False)

    params = {
        "client_id": provider.client_id,
        "redirect_uri": provider.redirect_uri,
        "response_type": "code",
        "scope": provider.scope,
        **dict(provider.extra_params),
        "state": sign_state(provider_name, user_id),
    }
    return f"{provider.authorize_url}?{urlencode(params)}"


def token_expiry(expires_in: Optional[int], now: Optional[datetime] = None) -> str:
    now = now or datetime.now(timezone.utc)
    return (now + timedelta(seconds=int(expires_in or 3600))).isoformat()


async def _post_token_request(provider: OAuthProvider, form: Dict[str, str]) -> Dict:
    client = await http_client_manager.get_client()
    try:
        response = await client.post(
            provider.token_url,
            data=form,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
    except httpx.HTTPError as exc:
        logger.error(f"{provider.name} token request failed: {exc}")
        raise ExternalServiceError(provider.name, f"Token request failed: {exc}")

    if response.status_code >= 400:
        try:
            payload = response.json()
        except ValueError:
            payload = {"body": response.text}
        logger.error(
            f"{provider.name} token endpoint returned {response.status_code}: "
            f"{sanitize_for_logging(payload)}"
        )
        raise ExternalServiceError(
            provider.name,
            f"Token endpoint returned {response.status_code}",
            status_code=401 if response.status_code in (400, 401) else 502,
        )

    return response.json()


async def exchange_code(provider_name: str, code: str) -> Dict:
    """Trade an authorization code for access and refresh tokens."""
    provider = get_provider(provider_name)
    _require_client(provider)

    return await _post_token_request(provider, {
        "code": code,
        "client_id": provider.client_id,
        "client_secret": provider.client_secret,
        "redirect_uri": provider.redirect_uri,
        "grant_type": "authorization_code",
    })


async def refresh_access_token(provider_name: str, refresh_token: str) -> Dict:
    provider = get_provider(provider_name)
    _require_client(provider)

    form = {
        "refresh_token": refresh_token,
        "client_id": provider.client_id,
        "client_secret": provider.client_secret,
        "grant_type": "refresh_token",
    }
    if provider.name == "microsoft":
        form["scope"] = provider.scope

    return await _post_token_request(provider, form)
