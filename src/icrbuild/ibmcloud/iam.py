"""IAM client for IBM Cloud token exchange and identity lookup."""

import logging
from dataclasses import dataclass
from typing import Any

import requests

from icrbuild.exceptions import CloudAPIError, CredentialError
from icrbuild.ibmcloud.http import raise_for_api_error

logger = logging.getLogger(__name__)

API_KEY_GRANT_TYPE = "urn:ibm:params:oauth:grant-type:apikey"
REFRESH_GRANT_TYPE = "refresh_token"

# Client ID the IBM Cloud CLI uses for refreshable tokens
CLIENT_AUTH = ("bx", "bx")


class IAMClient:
    """
    Thin client for the IBM Cloud IAM identity API.

    Parameters
    ----------
    http : requests.Session
        HTTP session from new_http_session().
    endpoint : str
        IAM base URL, e.g. "https://iam.cloud.ibm.com".
    timeout : tuple[float, float]
        (connect, read) timeout in seconds.
    """

    def __init__(self, http: requests.Session, endpoint: str, timeout: tuple[float, float]):
        self.http = http
        self.endpoint = endpoint.rstrip("/")
        self.timeout = timeout

    def _request(self, method: str, path: str, **kwargs) -> dict[str, Any]:
        url = f"{self.endpoint}{path}"
        try:
            response = self.http.request(method, url, timeout=self.timeout, **kwargs)
        except requests.RequestException as e:
            raise CloudAPIError(f"iam request failed: {e}", api="iam") from e

        raise_for_api_error(response, "iam")
        try:
            return response.json()
        except ValueError as e:
            raise CloudAPIError("iam returned an invalid response", api="iam") from e

    def _token(self, data: dict[str, str]) -> "IAMTokens":
        body = self._request(
            "POST",
            "/identity/token",
            data=data,
            auth=CLIENT_AUTH,
            headers={"Accept": "application/json"},
        )
        access_token = body.get("access_token")
        if not access_token:
            raise CloudAPIError("iam response has no access token", api="iam")
        return IAMTokens(access_token=access_token, refresh_token=body.get("refresh_token", ""))

    def token_from_api_key(self, api_key: str) -> "IAMTokens":
        """
        Exchange an API key for IAM tokens.

        Parameters
        ----------
        api_key : str
            IBM Cloud API key.

        Returns
        -------
        IAMTokens
            Access and refresh tokens.

        Raises
        ------
        CloudAPIError
            If IAM rejects the key or cannot be reached.
        """
        logger.debug("Exchanging API key for IAM token at %s", self.endpoint)
        return self._token({"grant_type": API_KEY_GRANT_TYPE, "apikey": api_key, "response_type": "cloud_iam"})

    def refresh(self, refresh_token: str) -> "IAMTokens":
        """
        Obtain fresh tokens with a refresh token.

        Parameters
        ----------
        refresh_token : str
            IAM refresh token.

        Returns
        -------
        IAMTokens
            New access and refresh tokens.
        """
        logger.debug("Refreshing IAM token")
        return self._token({"grant_type": REFRESH_GRANT_TYPE, "refresh_token": refresh_token})

    def user_info(self, access_token: str) -> dict[str, Any]:
        """
        Get identity information about the token owner.

        Parameters
        ----------
        access_token : str
            IAM access token without the "Bearer " prefix.

        Returns
        -------
        dict[str, Any]
            User information; ``account.bss`` holds the account ID.
        """
        return self._request(
            "GET",
            "/identity/userinfo",
            headers={"Authorization": f"Bearer {access_token}", "Accept": "application/json"},
        )

    def account_id(self, access_token: str) -> str:
        """
        Get the account ID the token belongs to.

        Raises
        ------
        CloudAPIError
            If the identity response does not name an account.
        """
        account = self.user_info(access_token).get("account") or {}
        account_id = account.get("bss")
        if not account_id:
            raise CloudAPIError("iam user info has no account", api="iam")
        return account_id


@dataclass
class IAMTokens:
    """
    IAM token pair, refreshable through an IAMClient.

    Attributes
    ----------
    access_token : str
        Access token without the "Bearer " prefix.
    refresh_token : str
        Refresh token, may be empty.
    iam : IAMClient or None
        Client used by refresh().
    """

    access_token: str
    refresh_token: str = ""
    iam: IAMClient | None = None

    @property
    def can_refresh(self) -> bool:
        return bool(self.refresh_token and self.iam)

    def authorization(self) -> str:
        return f"Bearer {self.access_token}"

    def refresh(self) -> None:
        """
        Replace the tokens with freshly issued ones.

        Raises
        ------
        CredentialError
            If there is no refresh token or IAM client.
        """
        if not self.can_refresh:
            raise CredentialError("IAM token expired and cannot be refreshed")

        fresh = self.iam.refresh(self.refresh_token)
        self.access_token = fresh.access_token
        self.refresh_token = fresh.refresh_token or self.refresh_token
