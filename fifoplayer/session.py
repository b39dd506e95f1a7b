import logging
import threading
import time

import spotipy

logger = logging.getLogger(__name__)


class TokenSession:
    """Single owner of the Spotify token shared by the publisher and listener.

    Every read goes through `client()`, which refreshes under the lock, so two
    loops seeing an expired token at the same time produce one refresh.
    """

    def __init__(self, oauth, token_info: dict, clock=time.time):
        self._oauth = oauth
        self._token_info = token_info
        self._clock = clock
        self._lock = threading.Lock()
        self._client = None
        self._client_token = None

    def is_expired(self, now=None) -> bool:
        if now is None:
            now = self._clock()
        return self._token_info["expires_at"] <= now

    def _refresh_locked(self) -> dict:
        refresh_token = self._token_info["refresh_token"]
        token_info = self._oauth.refresh_access_token(refresh_token)
        token_info.setdefault("refresh_token", refresh_token)
        self._token_info = token_info
        logger.info("Refreshed Spotify access token")
        return token_info

    def client(self) -> spotipy.Spotify:
        with self._lock:
            if self.is_expired():
                self._refresh_locked()

            access_token = self._token_info["access_token"]
            if self._client is None or self._client_token != access_token:
                self._client = spotipy.Spotify(auth=access_token)
                self._client_token = access_token
            return self._client
