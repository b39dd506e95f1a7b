"""Control pipe listener.

Reads one command word per pipe open and maps it to a Spotify transport call.
"""

import logging
import threading
from enum import Enum
from typing import Optional

from requests import RequestException
from spotipy.exceptions import SpotifyException
from spotipy.oauth2 import SpotifyOauthError

from .pipes import read_from_pipe

logger = logging.getLogger(__name__)

DISPATCH_ERRORS = (SpotifyException, SpotifyOauthError, RequestException)

# Pause after a failed pipe read before opening it again
READ_RETRY_SECONDS = 1.0


class ControlAction(str, Enum):
    PLAY = "play"
    PAUSE = "pause"
    NEXT = "next"


def parse_action(raw: str) -> Optional[ControlAction]:
    """Map a raw pipe payload to a ControlAction, or None if unrecognized."""
    try:
        return ControlAction(raw.strip())
    except ValueError:
        return None


class ControlListener:
    def __init__(self, session, pipe_path):
        self.session = session
        self.pipe_path = pipe_path

    def dispatch(self, action: ControlAction) -> bool:
        """Issue the API call for `action`. Failures are logged, never raised."""
        try:
            sp = self.session.client()
            if action is ControlAction.PLAY:
                sp.start_playback()
                logger.info("playing track")
            elif action is ControlAction.PAUSE:
                sp.pause_playback()
                logger.info("paused track")
            elif action is ControlAction.NEXT:
                sp.next_track()
                logger.info("skipped track")
        except DISPATCH_ERRORS as e:
            logger.error("failed to %s track: %s", action.value, e)
            return False
        return True

    def listen_once(self) -> Optional[ControlAction]:
        raw = read_from_pipe(self.pipe_path)
        action = parse_action(raw)
        if action is None:
            logger.debug("ignoring unknown control input %r", raw)
            return None

        self.dispatch(action)
        return action

    def run(self, stop_event=None):
        stop_event = stop_event or threading.Event()
        while not stop_event.is_set():
            try:
                self.listen_once()
            except OSError as e:
                logger.error("unable to read control pipe: %s", e)
                stop_event.wait(READ_RETRY_SECONDS)
