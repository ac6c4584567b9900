"""Root logger setup for the console front end."""

import logging
import sys
from typing import IO, Optional

LOG_FORMAT = "[%(asctime)s] %(levelname)s %(name)s: %(message)s"


def configure_logging(level: int = logging.WARNING, stream: Optional[IO[str]] = None) -> None:
    # stdout may carry a keyring document ("--db -"), so logs go to stderr.
    logging.basicConfig(
        level=level,
        format=LOG_FORMAT,
        datefmt="%H:%M:%S",
        stream=stream or sys.stderr,
        force=True,
    )
    # Library warnings (e.g. cryptography deprecations) end up in the same log.
    logging.captureWarnings(True)
