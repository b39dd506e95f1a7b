import logging
import threading

from requests import RequestException
from spotipy.exceptions import SpotifyException
from spotipy.oauth2 import SpotifyOauthError

from .pipes import write_to_pipe
from .track import fetch_track_details, format_line

logger = logging.getLogger(__name__)

PUBLISH_ERRORS = (SpotifyException, SpotifyOauthError, RequestException, OSError)

MAX_BACKOFF_EXPONENT = 16


class TrackPublisher:
    """Writes the now-playing line to the track pipe on a fixed cadence."""

    def __init__(self, session, pipe_path, interval=3.0, formatter=format_line, max_backoff=60.0):
        self.session = session
        self.pipe_path = pipe_path
        self.interval = interval
        self.formatter = formatter
        self.max_backoff = max_backoff
        self.failures = 0

    def publish_once(self) -> str:
        details = fetch_track_details(self.session.client())
        text = self.formatter(details)
        write_to_pipe(self.pipe_path, text)
        return text

    def next_delay(self) -> float:
        if not self.failures:
            return self.interval
        # exponent capped so long outages can't overflow the float conversion
        return min(self.interval * 2 ** min(self.failures, MAX_BACKOFF_EXPONENT), self.max_backoff)

    def run(self, stop_event=None):
        stop_event = stop_event or threading.Event()
        while not stop_event.is_set():
            try:
                text = self.publish_once()
                self.failures = 0
                logger.debug("published %r", text)
            except PUBLISH_ERRORS as e:
                self.failures += 1
                logger.error("unable to publish track details (attempt %d): %s", self.failures, e)

            stop_event.wait(self.next_delay())
