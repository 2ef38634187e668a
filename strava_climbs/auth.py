"""OAuth utilities for the Strava authorization-code flow.

This module builds the consent URL, derives the local callback path and
exchanges the temporary code returned by Strava for an access token. Failures
are mapped onto the :mod:`strava_climbs.errors` authorization taxonomy; tokens
are never logged in full.
"""

from __future__ import annotations

import logging
import urllib.parse
from typing import Any, Dict, List

import requests
from requests.adapters import HTTPAdapter
from urllib3.util.retry import Retry

from .config import OAUTH_SCOPE, REQUEST_TIMEOUT, STRAVA_AUTHORIZE_URL, STRAVA_OAUTH_URL
from .errors import (
    AuthorizationError,
    ConfigurationError,
    InvalidCodeError,
    InvalidCredentialsError,
    OAuthServerError,
)
from .models import AuthorizationResponse
from .utils import mask_token

LOGGER = logging.getLogger(__name__)


def _build_session() -> requests.Session:
    # Only connection failures are retried: the code is single-use, so a
    # request that reached Strava is never replayed.
    retry = Retry(
        total=2,
        connect=2,
        read=0,
        status=0,
        backoff_factor=0.5,
        allowed_methods=["POST"],
    )
    session = requests.Session()
    session.mount("https://", HTTPAdapter(max_retries=retry))
    session.mount("http://", HTTPAdapter(max_retries=retry))
    return session


class OAuthAuthenticator:
    """Application credentials plus the callback URL for one authorization attempt."""

    def __init__(
        self,
        client_id: int,
        client_secret: str,
        callback_url: str,
        *,
        session: requests.Session | None = None,
        timeout: int = REQUEST_TIMEOUT,
    ) -> None:
        if not client_id or not client_secret:
            raise ConfigurationError(
                "Client credentials not configured (client ID / client secret missing)"
            )
        self.client_id = client_id
        self.client_secret = client_secret
        self.callback_url = callback_url
        self._session = session or _build_session()
        self._timeout = timeout

    def authorization_url(
        self, state: str, scope: str = OAUTH_SCOPE, force: bool = True
    ) -> str:
        params = {
            "client_id": self.client_id,
            "response_type": "code",
            "redirect_uri": self.callback_url,
            "scope": scope,
            "state": state,
        }
        if force:
            params["approval_prompt"] = "force"
        return f"{STRAVA_AUTHORIZE_URL}?{urllib.parse.urlencode(params)}"

    def callback_path(self) -> str:
        path = urllib.parse.urlparse(self.callback_url).path
        if not path:
            raise ConfigurationError(
                f"Callback URL {self.callback_url!r} has no path component"
            )
        return path

    def exchange_code(self, code: str) -> AuthorizationResponse:
        """Exchange the temporary ``code`` for tokens.

        Raises:
            OAuthServerError: transport failure, 5xx, or an unparseable body.
            InvalidCredentialsError: Strava rejected the client ID/secret.
            InvalidCodeError: Strava rejected the code.
            AuthorizationError: any other 4xx.
        """
        payload = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "code": code,
            "grant_type": "authorization_code",
        }
        LOGGER.info("Exchanging authorisation code for tokens...")
        LOGGER.debug({"client_id": self.client_id, "grant_type": payload["grant_type"]})
        try:
            resp = self._session.post(
                STRAVA_OAUTH_URL, data=payload, timeout=self._timeout
            )
        except requests.exceptions.RequestException as exc:
            LOGGER.error("Token request transport error: %s", exc)
            raise OAuthServerError("Transport failure during code exchange") from exc

        status = resp.status_code
        LOGGER.debug("Token endpoint status=%s", status)
        if status >= 500:
            LOGGER.error("Token exchange failed status=%s", status)
            raise OAuthServerError(f"Strava token endpoint returned status {status}")
        if status >= 400:
            raise _classify_exchange_failure(resp)

        try:
            data = resp.json()
        except ValueError as exc:
            LOGGER.error("Invalid JSON in token response: %s", exc)
            raise OAuthServerError("Invalid JSON in token response") from exc
        if not isinstance(data, dict):
            LOGGER.error("Unexpected token response shape: %s", type(data).__name__)
            raise OAuthServerError("Unexpected token response shape")

        access_token = data.get("access_token") or ""
        athlete = data.get("athlete")
        LOGGER.info(
            "Token exchange succeeded: access_token=%s expires_at=%s",
            mask_token(access_token),
            data.get("expires_at"),
        )
        return AuthorizationResponse(
            access_token=access_token,
            refresh_token=data.get("refresh_token"),
            expires_at=data.get("expires_at"),
            athlete=athlete if isinstance(athlete, dict) else {},
        )


def _error_entries(
    resp: requests.Response,
) -> tuple[bool, str | None, List[Dict[str, Any]]]:
    """Return ``(parsed, message, errors)`` from a Strava error body."""

    try:
        data = resp.json()
    except ValueError:
        return False, None, []
    if not isinstance(data, dict):
        return False, None, []
    errors = data.get("errors")
    entries = [err for err in errors if isinstance(err, dict)] if isinstance(errors, list) else []
    message = data.get("message")
    return True, (str(message) if message else None), entries


def _classify_exchange_failure(resp: requests.Response) -> AuthorizationError:
    parsed, message, entries = _error_entries(resp)
    detail = " ".join(
        "/".join(filter(None, (err.get("resource"), err.get("field"), err.get("code"))))
        for err in entries
    )
    LOGGER.error(
        "Token exchange failed status=%s%s%s",
        resp.status_code,
        f" message={message}" if message else "",
        f" detail={detail}" if detail else "",
    )
    if not parsed:
        return OAuthServerError(
            f"Token exchange failed with status {resp.status_code}"
        )
    resource = entries[0].get("resource") if entries else None
    if resource == "Application":
        return InvalidCredentialsError("Strava rejected the client ID or secret")
    if resource == "RequestToken":
        return InvalidCodeError("Strava rejected the authorization code")
    return AuthorizationError(
        f"Token exchange failed with status {resp.status_code}: {detail or message}"
    )
