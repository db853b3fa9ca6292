import logging
import sys
from datetime import datetime
from pathlib import Path
from typing import Optional

from shelfiq.utils.constants import LOG_DIR, LOGGER_NAME

CONSOLE_FORMAT = '%(asctime)s | %(levelname)-8s | %(message)s'
FILE_FORMAT = '%(asctime)s | %(levelname)-8s | %(module)-15s | %(funcName)-20s | %(message)s'

class ShelfIQLogger:
    """Shared `shelfiq` logger: console on stdout plus an optional dated log file"""

    def __init__(self, log_dir: str = LOG_DIR, console_level: str = "INFO",
                 file_level: str = "DEBUG", log_to_file: bool = True):
        self.logger = logging.getLogger(LOGGER_NAME)
        self.logger.setLevel(logging.DEBUG)
        self.logger.propagate = False

        # Reconfiguring replaces whatever a previous instance attached
        for handler in list(self.logger.handlers):
            self.logger.removeHandler(handler)
            handler.close()

        console = logging.StreamHandler(sys.stdout)
        console.setLevel(console_level.upper())
        console.setFormatter(logging.Formatter(CONSOLE_FORMAT, datefmt='%H:%M:%S'))
        self.logger.addHandler(console)

        self.log_file = None
        if log_to_file:
            log_path = Path(log_dir)
            log_path.mkdir(parents=True, exist_ok=True)
            self.log_file = log_path / f"shelfiq_{datetime.now().strftime('%Y%m%d')}.log"
            file_handler = logging.FileHandler(self.log_file)
            file_handler.setLevel(file_level.upper())
            file_handler.setFormatter(logging.Formatter(FILE_FORMAT))
            self.logger.addHandler(file_handler)

        self.logger.debug(f"Logging initialized (console={console_level}, file={self.log_file})")

    def get_logger(self) -> logging.Logger:
        return self.logger

_logger_instance: Optional[ShelfIQLogger] = None

def configure_logging(console_level: str = "INFO", log_dir: str = LOG_DIR,
                      log_to_file: bool = True) -> logging.Logger:
    """Rebuild the shared logger, e.g. from CLI flags"""
    global _logger_instance
    _logger_instance = ShelfIQLogger(log_dir=log_dir, console_level=console_level,
                                     log_to_file=log_to_file)
    return _logger_instance.get_logger()

def get_logger() -> logging.Logger:
    """Get or create the shared logger"""
    if _logger_instance is None:
        return configure_logging()
    return _logger_instance.get_logger()
