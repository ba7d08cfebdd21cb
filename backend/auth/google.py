"""Google OAuth 2.0 sign-in.

Only the authorization-code flow is used: the browser is sent to Google's
consent page, Google redirects back with a one-time ``code``, and the code
is exchanged server-side for an access token that can read the user's
OpenID profile. Nothing is persisted here; callers decide what to do with
the returned identity.
"""
import logging
from urllib.parse import urlencode

import httpx
from pydantic import BaseModel

from backend.core import config

logger = logging.getLogger(__name__)

GOOGLE_AUTH_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_USERINFO_URL = "https://openidconnect.googleapis.com/v1/userinfo"
GOOGLE_SCOPES = "openid email profile"


class AuthProviderError(Exception):
    """The provider rejected the code or could not be reached."""


class GoogleIdentity(BaseModel):
    external_id: str
    email: str
    name: str
    avatar: str | None = None


def build_authorization_url(state: str) -> str:
    query = {
        "client_id": config.GOOGLE_CLIENT_ID,
        "redirect_uri": config.GOOGLE_REDIRECT_URI,
        "response_type": "code",
        "scope": GOOGLE_SCOPES,
        "state": state,
        "access_type": "online",
        "prompt": "select_account",
    }
    return f"{GOOGLE_AUTH_URL}?{urlencode(query)}"


async def exchange_code(code: str, client: httpx.AsyncClient | None = None) -> GoogleIdentity:
    if not code:
        raise AuthProviderError("Missing authorization code")

    owns_client = client is None
    if owns_client:
        client = httpx.AsyncClient(timeout=config.GOOGLE_TIMEOUT_SECONDS)

    try:
        token_response = await client.post(
            GOOGLE_TOKEN_URL,
            data={
                "code": code,
                "client_id": config.GOOGLE_CLIENT_ID,
                "client_secret": config.GOOGLE_CLIENT_SECRET,
                "redirect_uri": config.GOOGLE_REDIRECT_URI,
                "grant_type": "authorization_code",
            },
        )
        if token_response.status_code != 200:
            logger.warning("Google token exchange failed: status=%s", token_response.status_code)
            raise AuthProviderError("Authorization code was rejected")

        access_token = token_response.json().get("access_token")
        if not access_token:
            raise AuthProviderError("Token response did not include an access token")

        userinfo_response = await client.get(
            GOOGLE_USERINFO_URL,
            headers={"Authorization": f"Bearer {access_token}"},
        )
        if userinfo_response.status_code != 200:
            logger.warning("Google userinfo lookup failed: status=%s", userinfo_response.status_code)
            raise AuthProviderError("Could not load the Google profile")
        profile = userinfo_response.json()
    except httpx.HTTPError as exc:
        logger.warning("Google request failed: %s", exc)
        raise AuthProviderError("Google could not be reached") from exc
    finally:
        if owns_client:
            await client.aclose()

    email = (profile.get("email") or "").strip().lower()
    if not profile.get("sub") or not email:
        raise AuthProviderError("Google profile is missing an id or email")
    if profile.get("email_verified") is False:
        raise AuthProviderError("Google email address is not verified")

    return GoogleIdentity(
        external_id=str(profile["sub"]),
        email=email,
        name=profile.get("name") or email.split("@", 1)[0],
        avatar=profile.get("picture"),
    )
