"""
Authentication against Supabase Auth

Every backend function identifies its caller from the bearer token in the
Authorization header. The token is resolved to a user through
``GET /auth/v1/user``; nothing in the request body is trusted for identity.
"""

from abc import ABC, abstractmethod
from typing import Optional

import httpx

from vittas.config import get_settings
from vittas.config.settings import SupabaseSettings
from vittas.errors import AuthenticationError
from vittas.models.subscription import AuthenticatedUser


def bearer_token_from_header(authorization: Optional[str]) -> str:
    """
    Extract the token from an ``Authorization: Bearer <token>`` header.

    Raises:
        AuthenticationError: If the header is missing or empty
    """
    if not authorization:
        raise AuthenticationError("No authorization header provided")
    token = authorization.replace("Bearer ", "", 1).strip()
    if not token:
        raise AuthenticationError("No authorization header provided")
    return token


def _error_message(response: httpx.Response) -> str:
    try:
        data = response.json()
    except ValueError:
        return response.text or f"HTTP {response.status_code}"
    if not isinstance(data, dict):
        return str(data)
    return (
        data.get("error_description")
        or data.get("msg")
        or data.get("message")
        or f"HTTP {response.status_code}"
    )


class AuthServiceInterface(ABC):
    """Resolves bearer tokens to users."""

    @abstractmethod
    async def get_user(self, token: str) -> AuthenticatedUser:
        """
        Resolve a token to the user it was issued for.

        Raises:
            AuthenticationError: If the token is invalid or expired
        """
        pass

    async def authenticate(self, authorization: Optional[str]) -> AuthenticatedUser:
        """Resolve the caller from a raw Authorization header value."""
        return await self.get_user(bearer_token_from_header(authorization))


class SupabaseAuthService(AuthServiceInterface):
    """Supabase Auth over its REST API."""

    def __init__(
        self,
        settings: Optional[SupabaseSettings] = None,
        http_client: Optional[httpx.AsyncClient] = None,
    ):
        self._settings = settings or get_settings().supabase
        self._http_client = http_client

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        url = f"{self._settings.url}/auth/v1/{path}"
        try:
            if self._http_client is not None:
                return await self._http_client.request(method, url, **kwargs)
            async with httpx.AsyncClient() as client:
                return await client.request(method, url, **kwargs)
        except httpx.HTTPError as e:
            raise AuthenticationError(f"Authentication error: {e}")

    async def get_user(self, token: str) -> AuthenticatedUser:
        response = await self._request(
            "GET",
            "user",
            headers={
                "apikey": self._settings.anon_key,
                "Authorization": f"Bearer {token}",
            },
        )
        if response.status_code != 200:
            raise AuthenticationError(f"Authentication error: {_error_message(response)}")
        data = response.json()
        return AuthenticatedUser(id=data["id"], email=data.get("email"))

    async def sign_in(self, email: str, password: str) -> tuple[AuthenticatedUser, str]:
        """
        Sign in with email and password.

        Returns:
            The user and their access token
        """
        response = await self._request(
            "POST",
            "token",
            params={"grant_type": "password"},
            headers={"apikey": self._settings.anon_key},
            json={"email": email, "password": password},
        )
        if response.status_code != 200:
            raise AuthenticationError(f"Authentication error: {_error_message(response)}")
        data = response.json()
        user = data["user"]
        return (
            AuthenticatedUser(id=user["id"], email=user.get("email")),
            data["access_token"],
        )
