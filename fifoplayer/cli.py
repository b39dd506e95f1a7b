import argparse
import logging
import threading

from . import auth
from .config import FORMATS, LOG_LEVELS, load_config
from .control import ControlListener
from .exceptions import AuthorizationError, ConfigError
from .pipes import CONTROL_PIPE, TRACK_PIPE, create_named_pipe
from .publisher import TrackPublisher
from .session import TokenSession
from .track import FORMATTERS

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(asctime)s - %(name)s - %(levelname)s - %(message)s"


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="fifoplayer",
        description="Publish Spotify now-playing to a named pipe and take play/pause/next from another",
    )
    parser.add_argument("--pipe-dir", help="Directory for the track and control FIFOs (default /tmp)")
    parser.add_argument("--poll-seconds", type=float, help="Seconds between now-playing updates (default 3)")
    parser.add_argument("--format", dest="track_format", choices=FORMATS, help="Track pipe output format")
    parser.add_argument(
        "--manual",
        dest="auth_mode",
        action="store_const",
        const="manual",
        help="Paste the redirect URL instead of capturing it on a local server",
    )
    parser.add_argument("--log-level", type=str.upper, choices=LOG_LEVELS)
    return parser


def main(argv=None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(level=logging.INFO, format=LOG_FORMAT, datefmt="%Y-%m-%d %H:%M:%S")

    try:
        config = load_config(vars(args))
    except ConfigError as e:
        logger.error("Configuration error: %s", e)
        return 2
    logging.getLogger().setLevel(config.log_level_value)

    oauth = auth.build_oauth(config)
    try:
        token_info = auth.authorize(config, oauth)
    except AuthorizationError as e:
        logger.error("Authorization failed: %s", e)
        return 1
    session = TokenSession(oauth, token_info)

    try:
        track_pipe = create_named_pipe(TRACK_PIPE, config.pipe_dir)
        control_pipe = create_named_pipe(CONTROL_PIPE, config.pipe_dir)
    except OSError as e:
        logger.error("could not make named pipe: %s", e)
        return 1

    publisher = TrackPublisher(
        session,
        track_pipe,
        interval=config.poll_seconds,
        formatter=FORMATTERS[config.track_format],
    )
    threading.Thread(target=publisher.run, name="track-publisher", daemon=True).start()

    listener = ControlListener(session, control_pipe)
    try:
        listener.run()
    except KeyboardInterrupt:
        logger.info("Interrupted, exiting")
    return 0
