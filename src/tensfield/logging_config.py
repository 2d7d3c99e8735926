"""
Logging Configuration
Attaches handlers to the 'tensfield' logger namespace.

The library itself only creates module loggers (logging.getLogger(__name__)).
Handlers are installed here, by the demo entry point or by the host app.
"""
import logging
import sys
from typing import Iterable, Optional, Union

# Third-party loggers that flood DEBUG output while plotting
NOISY_LOGGERS = ("matplotlib", "PIL")

LOG_FORMAT = '%(asctime)s.%(msecs)03d - %(name)s - %(levelname)s - %(message)s'
DATE_FORMAT = '%H:%M:%S'


def setup_logging(
    level: Union[int, str] = logging.INFO,
    log_file: Optional[str] = None,
    quiet: Iterable[str] = NOISY_LOGGERS,
) -> logging.Logger:
    """
    Configures the 'tensfield' logger.

    Args:
        level: Logging level, as a number or a name ("DEBUG", "info", ...).
        log_file: Optional path to save logs to a file.
        quiet: Loggers capped at WARNING so frame timings stay readable.

    Returns:
        The configured package logger.
    """
    if isinstance(level, str):
        level = logging.getLevelName(level.upper())
        if not isinstance(level, int):
            raise ValueError(f"Unknown logging level: {level!r}")

    logger = logging.getLogger("tensfield")
    logger.setLevel(level)

    # Re-running setup replaces the handlers instead of stacking them
    for handler in list(logger.handlers):
        logger.removeHandler(handler)
        handler.close()

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(level)
    console_handler.setFormatter(formatter)
    logger.addHandler(console_handler)

    if log_file:
        file_handler = logging.FileHandler(log_file, mode='w', encoding='utf-8')
        file_handler.setLevel(level)
        file_handler.setFormatter(formatter)
        logger.addHandler(file_handler)

    for name in quiet:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))

    logger.debug(f"Logging initialized at {logging.getLevelName(level)}.")
    return logger
