# tests/conftest.py
import os
import sys

import pytest

# path to the repo root (one level up from tests/)
REPO_ROOT = os.path.dirname(os.path.dirname(os.path.abspath(__file__)))

# ensure repo root is importable so `import fifoplayer` works without installing
if REPO_ROOT not in sys.path:
    sys.path.insert(0, REPO_ROOT)


@pytest.fixture
def spotify_env(monkeypatch):
    monkeypatch.setenv("SPOTIPY_CLIENT_ID", "client-id")
    monkeypatch.setenv("SPOTIPY_CLIENT_SECRET", "client-secret")
    monkeypatch.setenv("SPOTIPY_REDIRECT_URI", "http://127.0.0.1:8080/callback")
    for var in (
        "FIFOPLAYER_PIPE_DIR",
        "FIFOPLAYER_POLL_SECONDS",
        "FIFOPLAYER_FORMAT",
        "FIFOPLAYER_AUTH_MODE",
        "FIFOPLAYER_CALLBACK_PORT",
        "LOG_LEVEL",
    ):
        monkeypatch.delenv(var, raising=False)


def playback(name="Song A", artists=("X", "Y"), album="Album", progress_ms=30000, duration_ms=120000):
    """Minimal currently-playing payload as returned by the Web API."""
    return {
        "progress_ms": progress_ms,
        "is_playing": True,
        "item": {
            "name": name,
            "artists": [{"name": a} for a in artists],
            "album": {"name": album},
            "duration_ms": duration_ms,
        },
    }
