import threading

import pytest
from requests import ConnectionError as RequestsConnectionError
from spotipy.exceptions import SpotifyException

from conftest import playback
from fifoplayer.publisher import TrackPublisher
from fifoplayer.track import format_detailed


@pytest.fixture
def sp(mocker):
    sp = mocker.MagicMock()
    sp.current_user_playing_track.return_value = playback()
    return sp


@pytest.fixture
def session(mocker, sp):
    session = mocker.MagicMock()
    session.client.return_value = sp
    return session


@pytest.fixture
def written(mocker):
    return mocker.patch("fifoplayer.publisher.write_to_pipe")


def test_publish_track_line(session, written):
    publisher = TrackPublisher(session, "/tmp/fifoplayer-track")
    assert publisher.publish_once() == "Song A - X, Y"
    written.assert_called_once_with("/tmp/fifoplayer-track", "Song A - X, Y")


def test_publish_no_track(session, sp, written):
    sp.current_user_playing_track.return_value = None
    TrackPublisher(session, "/p").publish_once()
    written.assert_called_once_with("/p", "No track currently playing")


def test_publish_detailed_format(session, written):
    TrackPublisher(session, "/p", formatter=format_detailed).publish_once()
    assert written.call_args[0][1].startswith("Track: Song A\nArtists: X, Y\n")


def test_backoff_grows_and_caps(session):
    publisher = TrackPublisher(session, "/p", interval=3.0, max_backoff=20.0)
    assert publisher.next_delay() == 3.0
    publisher.failures = 1
    assert publisher.next_delay() == 6.0
    publisher.failures = 2
    assert publisher.next_delay() == 12.0
    publisher.failures = 5
    assert publisher.next_delay() == 20.0


def test_run_logs_errors_and_recovers(mocker, session, sp, written, caplog):
    sp.current_user_playing_track.side_effect = [
        SpotifyException(502, -1, "bad gateway"),
        RequestsConnectionError("network down"),
        playback(),
    ]
    stop = threading.Event()
    delays = []

    def fake_wait(timeout):
        delays.append(timeout)
        if len(delays) == 3:
            stop.set()
        return stop.is_set()

    mocker.patch.object(stop, "wait", side_effect=fake_wait)
    publisher = TrackPublisher(session, "/p", interval=3.0)
    publisher.run(stop)

    assert delays == [6.0, 12.0, 3.0]
    assert publisher.failures == 0
    written.assert_called_once_with("/p", "Song A - X, Y")
    assert "unable to publish track details" in caplog.text


def test_run_survives_pipe_write_error(mocker, session, written):
    written.side_effect = [BrokenPipeError("reader went away"), None]
    stop = threading.Event()
    waits = []

    def fake_wait(timeout):
        waits.append(timeout)
        if len(waits) == 2:
            stop.set()
        return stop.is_set()

    mocker.patch.object(stop, "wait", side_effect=fake_wait)
    TrackPublisher(session, "/p", interval=1.0).run(stop)
    assert written.call_count == 2
    assert waits == [2.0, 1.0]


def test_backoff_after_long_outage(session):
    publisher = TrackPublisher(session, "/p", interval=3.0, max_backoff=60.0)
    publisher.failures = 2000
    assert publisher.next_delay() == 60.0


def test_run_keeps_going_after_long_outage(mocker, session, sp, written):
    sp.current_user_playing_track.side_effect = RequestsConnectionError("still down")
    stop = threading.Event()
    delays = []

    def fake_wait(timeout):
        delays.append(timeout)
        if len(delays) == 2:
            stop.set()
        return stop.is_set()

    mocker.patch.object(stop, "wait", side_effect=fake_wait)
    publisher = TrackPublisher(session, "/p", interval=3.0, max_backoff=60.0)
    publisher.failures = 5000
    publisher.run(stop)

    assert delays == [60.0, 60.0]
    assert publisher.failures == 5002
    written.assert_not_called()
