#!/usr/bin/env python3
"""
Run fifoplayer from a checkout without installing it.

Reads SPOTIPY_CLIENT_ID / SPOTIPY_CLIENT_SECRET / SPOTIPY_REDIRECT_URI
from .env, then serves /tmp/fifoplayer-track and /tmp/fifoplayer-control.
"""

import sys

from fifoplayer.cli import main

if __name__ == "__main__":
    sys.exit(main())
