import os
import logging
from logging.handlers import RotatingFileHandler

EVENTS_LEVEL_NUM = 38
DEFAULT_LOG_BACKUP_COUNT = 10


def setup_events_logger(full_path, events_retention_size):
    """
    Setup the audit events logger writing to ``events.log``.

    One EVENT line is recorded per completed calculation and per submitted
    transfer. The file is never read back by the tool.

    Args:
        full_path: Directory for the log file (created if missing)
        events_retention_size: Maximum size of log files before rotation
    """
    logging.addLevelName(EVENTS_LEVEL_NUM, "EVENT")

    logger = logging.getLogger("lst_rewards.event")
    logger.setLevel(EVENTS_LEVEL_NUM)
    logger.propagate = False

    def event(self, message, *args, **kws):
        if self.isEnabledFor(EVENTS_LEVEL_NUM):
            self._log(EVENTS_LEVEL_NUM, message, args, **kws)

    logging.Logger.event = event

    log_file = os.path.join(full_path, "events.log")
    if any(getattr(h, "baseFilename", None) == os.path.abspath(log_file) for h in logger.handlers):
        return logger

    os.makedirs(full_path, exist_ok=True)

    formatter = logging.Formatter(
        "%(asctime)s | %(levelname)s | %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    file_handler = RotatingFileHandler(
        log_file,
        maxBytes=events_retention_size,
        backupCount=DEFAULT_LOG_BACKUP_COUNT,
    )
    file_handler.setFormatter(formatter)
    file_handler.setLevel(EVENTS_LEVEL_NUM)
    logger.addHandler(file_handler)

    return logger
