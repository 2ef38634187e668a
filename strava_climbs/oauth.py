"""Local Strava OAuth listener.

``authorize`` stands up a short-lived Flask app on a werkzeug server thread,
announces the consent URL and blocks until the callback route delivers either
an access token or an authorization error. The listener is shut down on every
exit path.

Only one authorization may run per process at a time: the application
credentials and the fixed listener port are shared by every attempt.
"""

from __future__ import annotations

import logging
import threading
from typing import Callable, Optional

from flask import Flask, abort, request
from flask.typing import ResponseReturnValue
from markupsafe import escape
from werkzeug.serving import BaseWSGIServer, make_server

from .auth import OAuthAuthenticator
from .config import (
    OAUTH_CALLBACK_PATH,
    OAUTH_HOST,
    OAUTH_PORT,
    OAUTH_SCOPE,
    OAUTH_STATE,
    OAUTH_WAIT_TIMEOUT,
)
from .errors import (
    AuthorizationDeniedError,
    AuthorizationError,
    AuthorizationTimeoutError,
    EmptyTokenError,
    InvalidCodeError,
)
from .utils import mask_token

LOGGER = logging.getLogger(__name__)

CONNECT_BUTTON_URL = "http://strava.github.io/api/images/ConnectWithStrava.png"

_AUTHORIZE_LOCK = threading.Lock()


class AuthorizationRendezvous:
    """Single-use hand-off of the callback outcome to the waiting caller.

    The first delivery wins; later deliveries are ignored and never block.
    """

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._done = threading.Event()
        self._token: Optional[str] = None
        self._error: Optional[BaseException] = None

    @property
    def delivered(self) -> bool:
        return self._done.is_set()

    def deliver_token(self, token: str) -> bool:
        return self._deliver(token=token)

    def deliver_error(self, error: BaseException) -> bool:
        return self._deliver(error=error)

    def _deliver(
        self, *, token: Optional[str] = None, error: Optional[BaseException] = None
    ) -> bool:
        with self._lock:
            if self._done.is_set():
                LOGGER.debug("Ignoring duplicate authorization outcome")
                return False
            self._token = token
            self._error = error
            self._done.set()
            return True

    def wait(self, timeout: Optional[float] = None) -> str:
        """Block until an outcome arrives; return the token or raise the error."""

        if not self._done.wait(timeout=timeout):
            raise AuthorizationTimeoutError(
                f"No authorization received within {timeout:g}s"
            )
        if self._error is not None:
            raise self._error
        return self._token or ""


def _render_failure(error: AuthorizationError) -> str:
    return (
        "<h1>Authorization Failure</h1>"
        f"<p>{escape(error.explanation)}</p>"
        f"<pre>{escape(str(error))}</pre>"
    )


def create_app(
    authenticator: OAuthAuthenticator,
    rendezvous: AuthorizationRendezvous,
    *,
    state: str = OAUTH_STATE,
    scope: str = OAUTH_SCOPE,
) -> Flask:
    """Build the consent/callback app for one authorization attempt."""

    app = Flask(__name__)

    @app.route("/")
    def index() -> ResponseReturnValue:
        auth_url = authenticator.authorization_url(state, scope, force=True)
        return f'<a href="{escape(auth_url)}"><img src="{CONNECT_BUTTON_URL}" /></a>'

    def callback() -> ResponseReturnValue:
        returned_state = request.args.get("state")
        if returned_state is not None and returned_state != state:
            LOGGER.error("Invalid OAuth state received; possible CSRF. Ignoring.")
            abort(400, description="Invalid state")

        if rendezvous.delivered:
            LOGGER.debug("Authorization already handled; ignoring repeated callback")
            return "<p>Authorization already handled. You can close this window now.</p>"

        error_code = request.args.get("error")
        code = request.args.get("code")
        try:
            if error_code == "access_denied":
                raise AuthorizationDeniedError("The athlete declined authorization")
            if error_code:
                raise AuthorizationError(f"Strava returned error={error_code}")
            if not code:
                raise InvalidCodeError("Callback did not include an authorization code")
            auth = authenticator.exchange_code(code)
            auth.state = returned_state
            if not auth.access_token:
                raise EmptyTokenError("No access token in Strava authorization response")
        except AuthorizationError as exc:
            LOGGER.error("Authorization failed: %s", exc)
            rendezvous.deliver_error(exc)
            return _render_failure(exc), 200

        LOGGER.info(
            "Authorization succeeded access_token=%s", mask_token(auth.access_token)
        )
        rendezvous.deliver_token(auth.access_token)
        athlete = auth.athlete
        athlete_name = " ".join(
            str(part) for part in (athlete.get("firstname"), athlete.get("lastname")) if part
        )
        return (
            "<h1>Authorization received!</h1>"
            f"<p>Athlete: {escape(athlete_name or '?')}</p>"
            f"<p>Access token: {escape(mask_token(auth.access_token))}</p>"
            "<p>You can close this window now.</p>"
        )

    app.add_url_rule(authenticator.callback_path(), "callback", callback)
    return app


def _announce(url: str) -> None:
    LOGGER.info("Waiting for authorisation via %s", url)
    print(f"Please visit {url} to authorize this application to access your account")


class Authorizer:
    """Runs one browser OAuth hand-off on a local listener."""

    def __init__(
        self,
        client_id: int,
        client_secret: str,
        *,
        host: str = OAUTH_HOST,
        port: int = OAUTH_PORT,
        callback_path: str = OAUTH_CALLBACK_PATH,
        wait_timeout: Optional[float] = OAUTH_WAIT_TIMEOUT,
        announce: Callable[[str], None] = _announce,
        authenticator_factory: Callable[..., OAuthAuthenticator] = OAuthAuthenticator,
    ) -> None:
        self.client_id = client_id
        self.client_secret = client_secret
        self.host = host
        self.port = port
        self.callback_path = callback_path
        self.wait_timeout = wait_timeout
        self._announce = announce
        self._authenticator_factory = authenticator_factory

    def authorize(self) -> str:
        if not _AUTHORIZE_LOCK.acquire(blocking=False):
            raise AuthorizationError("Another authorization is already in progress")
        try:
            return self._run()
        finally:
            _AUTHORIZE_LOCK.release()

    def _run(self) -> str:
        rendezvous = AuthorizationRendezvous()
        deferred = _DeferredApp()
        try:
            server: BaseWSGIServer = make_server(
                self.host, self.port, deferred, threaded=True
            )
        # werkzeug reports a port already in use via sys.exit after printing.
        except (OSError, SystemExit) as exc:
            raise AuthorizationError(
                f"Could not start OAuth listener on {self.host}:{self.port}: {exc}"
            ) from exc

        base_url = f"http://{self.host}:{server.server_port}"
        try:
            authenticator = self._authenticator_factory(
                self.client_id,
                self.client_secret,
                f"{base_url}{self.callback_path}",
            )
            deferred.bind(create_app(authenticator, rendezvous))
        except Exception:
            server.server_close()
            raise

        listener = threading.Thread(
            target=_serve,
            args=(server, rendezvous),
            name="oauth-listener",
            daemon=True,
        )
        listener.start()
        try:
            self._announce(base_url)
            token = rendezvous.wait(self.wait_timeout)
        finally:
            LOGGER.info("Shutting down local OAuth server.")
            server.shutdown()
            listener.join(timeout=5)
            server.server_close()
        if not token:
            raise EmptyTokenError("No access token in Strava authorization response")
        return token


class _DeferredApp:
    """WSGI shim so the app can be built after the port is known."""

    def __init__(self) -> None:
        self._app: Optional[Flask] = None

    def bind(self, app: Flask) -> None:
        self._app = app

    def __call__(self, environ, start_response):
        if self._app is None:
            start_response("503 Service Unavailable", [("Content-Type", "text/plain")])
            return [b"OAuth listener is starting"]
        return self._app(environ, start_response)


def _serve(server: BaseWSGIServer, rendezvous: AuthorizationRendezvous) -> None:
    try:
        server.serve_forever()
    except Exception as exc:
        LOGGER.error("OAuth listener exited abnormally: %s", exc)
        rendezvous.deliver_error(
            AuthorizationError(f"OAuth listener exited abnormally: {exc}")
        )


def authorize(client_id: int, client_secret: str, **kwargs) -> str:
    """Run the browser OAuth flow and return the athlete access token."""

    return Authorizer(client_id, client_secret, **kwargs).authorize()
