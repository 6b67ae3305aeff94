"""Microsoft Graph stuff: application tokens and Teams app installations"""

import logging
import os
from typing import Optional

import httpx
import validators
from pydantic import BaseModel, ValidationError

logger = logging.getLogger(__name__)

GRAPH_API_ENDPOINT = os.getenv("GRAPH_API_ENDPOINT", "https://graph.microsoft.com/v1.0")
LOGIN_ENDPOINT = "https://login.microsoftonline.com"
GRAPH_SCOPE = "https://graph.microsoft.com/.default"
REQUEST_TIMEOUT = 10


class GraphError(Exception):
    """Graph returned a non-success status"""

    def __init__(self, message: str, status_code: Optional[int] = None):
        super().__init__(message)
        self.status_code = status_code


class InstalledAppNotFoundError(GraphError):
    """The bot is not installed in the user's personal scope"""


class ApplicationToken(BaseModel):
    """Client credentials token response"""

    access_token: str
    token_type: str = "Bearer"
    expires_in: int = 0


def _validate_user_id(user_id: str) -> None:
    if not validators.uuid(user_id):
        raise ValueError(f"Invalid AAD object id: {user_id!r}")


class GraphClient:
    """Thin async client over the Graph endpoints the retention sweep needs.

    Args:
        manifest_id (str): Teams app manifest id, used to find the bot's
            installation for a user.
        graph_endpoint (str, optional): Graph base URL.
        transport (httpx.AsyncBaseTransport, optional): Custom transport,
            mostly for tests.
    """

    def __init__(
        self,
        manifest_id: str,
        graph_endpoint: str = GRAPH_API_ENDPOINT,
        login_endpoint: str = LOGIN_ENDPOINT,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.manifest_id = manifest_id
        self.graph_endpoint = graph_endpoint.rstrip("/")
        self.login_endpoint = login_endpoint.rstrip("/")
        self._transport = transport

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(transport=self._transport, timeout=REQUEST_TIMEOUT)

    async def obtain_application_token(
        self, tenant_id: str, app_id: str, app_secret: str
    ) -> Optional[ApplicationToken]:
        """Get an application token for Graph using client credentials

        Args:
            tenant_id (str): AAD tenant the bot is registered in.
            app_id (str): Bot application id.
            app_secret (str): Bot application password.

        Returns:
            Optional[ApplicationToken]: The token, or None if it could not be acquired.
        """

        body = {
            "grant_type": "client_credentials",
            "client_id": app_id,
            "client_secret": app_secret,
            "scope": GRAPH_SCOPE,
        }

        try:
            async with self._client() as client:
                response = await client.post(
                    f"{self.login_endpoint}/{tenant_id}/oauth2/v2.0/token", data=body
                )
        except httpx.HTTPError:
            logger.warning("Token request for app %s failed", app_id, exc_info=True)
            return None

        if response.status_code != 200:
            logger.warning(
                "Token request for app %s returned %d: %s",
                app_id,
                response.status_code,
                response.text,
            )
            return None

        try:
            token = ApplicationToken.model_validate(response.json())
        except (ValueError, ValidationError):
            logger.warning(
                "Token response for app %s has no usable access_token", app_id, exc_info=True
            )
            return None

        if not token.access_token:
            logger.warning("Token response for app %s has an empty access_token", app_id)
            return None
        return token

    async def get_installed_app_id(self, token: str, user_id: str) -> str:
        """Find the id of the bot's installation in a user's personal scope

        Raises:
            ValueError: user_id is not an AAD object id.
            InstalledAppNotFoundError: The bot isn't installed for the user.
            GraphError: Graph API error.
        """

        _validate_user_id(user_id)

        params = {
            "$expand": "teamsApp",
            "$filter": f"teamsApp/externalId eq '{self.manifest_id}'",
        }
        async with self._client() as client:
            response = await client.get(
                f"{self.graph_endpoint}/users/{user_id}/teamwork/installedApps",
                params=params,
                headers={"Authorization": f"Bearer {token}"},
            )

        if response.status_code != 200:
            raise GraphError(
                f"Error fetching installed apps for {user_id}: {response.text}",
                response.status_code,
            )

        installations = response.json().get("value", [])
        if not installations or not installations[0].get("id"):
            raise InstalledAppNotFoundError(
                f"App {self.manifest_id} is not installed for {user_id}", 404
            )

        return installations[0]["id"]

    async def remove_app_from_user_scope(
        self, token: str, user_id: str, installed_app_id: str
    ) -> None:
        """Uninstall the bot from a user's personal scope

        Raises:
            ValueError: user_id is not an AAD object id.
            GraphError: Graph API error.
        """

        _validate_user_id(user_id)

        async with self._client() as client:
            response = await client.delete(
                f"{self.graph_endpoint}/users/{user_id}/teamwork/installedApps/{installed_app_id}",
                headers={"Authorization": f"Bearer {token}"},
            )

        if response.status_code not in (200, 204):
            raise GraphError(
                f"Error removing app {installed_app_id} for {user_id}: {response.text}",
                response.status_code,
            )

        logger.info("Removed app installation %s for user %s", installed_app_id, user_id)
