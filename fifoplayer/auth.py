import logging
import queue
import threading
import webbrowser
from urllib.parse import parse_qs, urlparse

from flask import Flask, request
from requests import RequestException
from spotipy.cache_handler import MemoryCacheHandler
from spotipy.oauth2 import SpotifyOAuth, SpotifyOauthError
from werkzeug.serving import make_server

from .exceptions import AuthorizationError

logger = logging.getLogger(__name__)

SPOTIFY_SCOPE = "user-read-currently-playing user-read-playback-state user-modify-playback-state"

# Seconds allowed for the callback server to stop once the code has arrived
SHUTDOWN_GRACE_SECONDS = 5.0


def build_oauth(config) -> SpotifyOAuth:
    # Tokens live in memory only, no .cache file on disk
    return SpotifyOAuth(
        client_id=config.client_id,
        client_secret=config.client_secret,
        redirect_uri=config.redirect_uri,
        scope=SPOTIFY_SCOPE,
        open_browser=False,
        cache_handler=MemoryCacheHandler(),
    )


def code_from_redirect(url: str) -> str:
    """Pull the authorization code out of a pasted redirect URL."""
    query = parse_qs(urlparse(url.strip()).query)
    if "error" in query:
        raise AuthorizationError(f"authorization denied: {query['error'][0]}")
    code = query.get("code", [""])[0]
    if not code:
        raise AuthorizationError("no authorization code in redirect URL")
    return code


def exchange_code(oauth: SpotifyOAuth, code: str) -> dict:
    """Trade an authorization code for a token_info dict."""
    try:
        oauth.get_access_token(code, as_dict=False, check_cache=False)
    except (SpotifyOauthError, RequestException) as e:
        raise AuthorizationError(f"could not get token: {e}") from e

    token_info = oauth.cache_handler.get_cached_token()
    if not token_info:
        raise AuthorizationError("token exchange returned no token")
    logger.info("Authorized with Spotify")
    return token_info


def authorize_manual(oauth: SpotifyOAuth, prompt=input) -> dict:
    url = oauth.get_authorize_url()
    print("Please log in to Spotify by visiting the following page in your browser:", url)
    redirect = prompt("Paste the redirect URL here: ")
    return exchange_code(oauth, code_from_redirect(redirect))


def create_callback_app(codes: queue.Queue, path: str = "/") -> Flask:
    """Flask app that hands the `code` query parameter to `codes` as (code, error)."""
    app = Flask(__name__)

    @app.route(path or "/")
    def callback():
        error = request.args.get("error")
        if error:
            codes.put((None, error))
            return f"Authorization failed: {error}", 400

        code = request.args.get("code")
        if not code:
            return "No code in callback", 400

        codes.put((code, None))
        return "Login successful! You may close this window."

    return app


def _shutdown(server, grace=SHUTDOWN_GRACE_SECONDS):
    stopper = threading.Thread(target=server.shutdown, daemon=True)
    stopper.start()
    stopper.join(grace)
    if stopper.is_alive():
        logger.warning("Callback server did not stop within %.0fs", grace)
    server.server_close()


def callback_port(redirect, port=None) -> int:
    """Port to listen on: the override if given, else the redirect URI's port."""
    default = redirect.port or (443 if redirect.scheme == "https" else 80)
    if port is None:
        return default
    if port != default:
        logger.warning("Listening on port %d but the redirect URI points at port %d", port, default)
    return port


def authorize_browser(oauth: SpotifyOAuth, port=None, timeout=None) -> dict:
    """Open the authorize URL and capture the redirect on a local listener."""
    redirect = urlparse(oauth.redirect_uri)
    host = redirect.hostname or "127.0.0.1"
    port = callback_port(redirect, port)
    codes = queue.Queue()

    app = create_callback_app(codes, redirect.path or "/")
    try:
        server = make_server(host, port, app)
    except (OSError, OverflowError) as e:
        raise AuthorizationError(f"could not start callback server on {host}:{port}: {e}") from e

    serving = threading.Thread(target=server.serve_forever, name="oauth-callback", daemon=True)
    serving.start()
    logger.info("Waiting for Spotify callback on http://%s:%d%s", host, port, redirect.path or "/")

    try:
        url = oauth.get_authorize_url()
        if not webbrowser.open(url):
            raise AuthorizationError(f"could not open the authorization URL: {url}")

        try:
            code, error = codes.get(timeout=timeout)
        except queue.Empty:
            raise AuthorizationError("timed out waiting for the Spotify callback") from None
    finally:
        _shutdown(server)

    if error:
        raise AuthorizationError(f"authorization denied: {error}")
    return exchange_code(oauth, code)


def authorize(config, oauth: SpotifyOAuth) -> dict:
    if config.auth_mode == "manual":
        return authorize_manual(oauth)
    return authorize_browser(oauth, port=config.callback_port)
