import logging
import os
import sys

from achievement_sync.core.cli import handle_cli_args

log = logging.getLogger(__name__)


def setup_logging():
    """One-time setup of logging for all modules."""

    FORMAT = "%(levelname)s:%(name)s:%(lineno)d %(message)s"
    log_level = logging.INFO

    if getattr(sys, "frozen", False) and hasattr(sys, "_MEIPASS"):
        location = "PyInstaller bundle"
    else:
        location = "normal Python process"

    # Prefer LOG_LEVEL env var if set
    env_log_level = os.environ.get("LOG_LEVEL")
    if env_log_level is not None:
        log_level = env_log_level.upper()

    # Configure root logger
    try:
        logging.basicConfig(format=FORMAT, level=log_level)
    except ValueError:
        logging.basicConfig(format=FORMAT, level=logging.INFO, force=True)
        # Only log after basicConfig!
        log.warning("Invalid LOG_LEVEL %s, defaulting to INFO", env_log_level)

    log.debug("Running in %s", location)


def main():
    setup_logging()
    sys.exit(handle_cli_args())


if __name__ == "__main__":
    main()
