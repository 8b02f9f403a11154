"""Dashboard client holding the session token between calls."""

import time
import logging
from typing import MutableMapping, Optional

import httpx
from jose import JWTError, jwt

# Configure logging
logger = logging.getLogger(__name__)

AUTH_TOKEN_KEY = "authToken"
USER_DATA_KEY = "userData"


class ApiError(Exception):
    """A call answered with `success: false`."""

    def __init__(self, status_code: int, message: str):
        self.status_code = status_code
        self.message = message
        super().__init__(f"{status_code}: {message}")


class DashboardSession:
    """
    Client-side view of a dashboard session.

    The token and the user projection are cached in `storage`, a plain dict
    unless the caller provides something persistent. Expiry is checked
    locally from the token's `exp` claim without verifying the signature;
    the server verifies the signature on every protected call.

    Args:
        http: httpx client pointed at the API (FastAPI's TestClient works too)
        storage: Mapping used to cache the session between calls
    """

    def __init__(self, http: httpx.Client, storage: Optional[MutableMapping] = None):
        self.http = http
        self.storage = storage if storage is not None else {}

    def login(self, email: str, password: str) -> dict:
        """Authenticate and cache the token and user. Returns the user projection."""
        response = self.http.post("/api/auth", data={"email": email, "password": password})
        body = self._unwrap(response)
        self.storage[AUTH_TOKEN_KEY] = body["data"]["token"]
        self.storage[USER_DATA_KEY] = body["data"]["user"]
        logger.info(f"Session started for {body['data']['user']['email']}")
        return body["data"]["user"]

    def get_auth_token(self) -> Optional[str]:
        return self.storage.get(AUTH_TOKEN_KEY)

    def get_user_data(self) -> Optional[dict]:
        return self.storage.get(USER_DATA_KEY)

    def is_authenticated(self, now: Optional[float] = None) -> bool:
        """
        Whether the cached token is still fresh.

        Valid only while the current time is strictly before the token's
        expiry. An expired or undecodable token clears the cached session.
        """
        token = self.get_auth_token()
        if not token:
            return False

        try:
            expires_at = float(jwt.get_unverified_claims(token)["exp"])
        except (JWTError, KeyError, TypeError, ValueError):
            logger.warning("Cached token could not be decoded, clearing session")
            self.clear()
            return False

        current = time.time() if now is None else now
        if current >= expires_at:
            logger.info("Cached token expired, clearing session")
            self.clear()
            return False

        return True

    def clear(self) -> None:
        """Drop all cached session state."""
        self.storage.pop(AUTH_TOKEN_KEY, None)
        self.storage.pop(USER_DATA_KEY, None)

    def logout(self, revoke: bool = True) -> None:
        """
        End the session locally, and on the server when `revoke` is set.

        Local state is cleared even if the revocation call fails.
        """
        token = self.get_auth_token()
        try:
            if revoke and token and self.is_authenticated():
                self.http.post("/api/auth/logout", headers={"Authorization": f"Bearer {token}"})
        finally:
            self.clear()

    def request(self, method: str, resource: str, **kwargs) -> dict:
        """
        Call /api/<resource> with the session's bearer token.

        Raises:
            ApiError: If the session is gone (401 without a call) or the API
                answers with `success: false`
        """
        if not self.is_authenticated():
            raise ApiError(401, "Session expired, please log in again")

        headers = kwargs.pop("headers", {}) or {}
        headers["Authorization"] = f"Bearer {self.get_auth_token()}"
        response = self.http.request(method, f"/api/{resource}", headers=headers, **kwargs)
        if response.status_code == 401:
            self.clear()
        return self._unwrap(response)

    def fetch(self, resource: str, **params) -> dict:
        return self.request("GET", resource, params=params)

    def create(self, resource: str, fields: dict) -> dict:
        return self.request("POST", resource, json=fields)["data"]

    def update(self, resource: str, record_id: str, fields: dict) -> dict:
        return self.request("PUT", resource, json={**fields, "id": record_id})["data"]

    def delete(self, resource: str, record_id: str) -> None:
        self.request("DELETE", resource, json={"id": record_id})

    @staticmethod
    def _unwrap(response: httpx.Response) -> dict:
        try:
            body = response.json()
        except ValueError:
            raise ApiError(response.status_code, "Unexpected response from server")
        if not body.get("success"):
            raise ApiError(response.status_code, body.get("message", "Request failed"))
        return body
