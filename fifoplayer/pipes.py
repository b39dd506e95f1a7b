import logging
import os

logger = logging.getLogger(__name__)

TRACK_PIPE = "fifoplayer-track"
CONTROL_PIPE = "fifoplayer-control"

# Enough for a single control word
READ_SIZE = 128


def create_named_pipe(name: str, directory: str = "/tmp") -> str:
    """Create a FIFO at directory/name, replacing whatever is there."""
    path = os.path.join(directory, name)
    try:
        os.remove(path)
    except FileNotFoundError:
        pass

    logger.info("creating named pipe")
    os.mkfifo(path)
    logger.info("created pipe %s", path)
    return path


def write_to_pipe(path: str, text: str) -> None:
    # Blocks until a reader opens the other end
    with open(path, "w", encoding="utf-8") as pipe:
        pipe.write(text)


def read_from_pipe(path: str, size: int = READ_SIZE) -> str:
    # Blocks until a writer opens the other end
    with open(path, "rb") as pipe:
        data = pipe.read1(size)
    return data.decode("utf-8", errors="replace")
