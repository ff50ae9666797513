import logging
import logging.handlers
import sys
import re
from pathlib import Path
from typing import Optional, Dict, Any

ROOT_LOGGER_NAME = "moodmix"

class SafeFormatter(logging.Formatter):
    """Formatter that survives consoles without Unicode support (track titles, mix summaries)"""

    _NON_BMP = re.compile("[\U00010000-\U0010FFFF\u2600-\u27BF]+", flags=re.UNICODE)

    @classmethod
    def strip_symbols(cls, text: str) -> str:
        return cls._NON_BMP.sub('', text)

    def format(self, record):
        try:
            return super().format(record)
        except UnicodeEncodeError:
            message = record.getMessage()
            record.msg = self.strip_symbols(message)
            record.args = None
            return super().format(record)

class ColoredFormatter(SafeFormatter):
    COLORS = {
        'DEBUG': '\033[94m',
        'INFO': '\033[92m',
        'WARNING': '\033[93m',
        'ERROR': '\033[91m',
        'CRITICAL': '\033[95m',
        'RESET': '\033[0m'
    }

    def format(self, record):
        original_levelname = record.levelname
        log_color = self.COLORS.get(record.levelname, self.COLORS['RESET'])
        record.levelname = f"{log_color}{record.levelname}{self.COLORS['RESET']}"
        try:
            return super().format(record)
        finally:
            record.levelname = original_levelname

def setup_logging(level: str = "INFO", log_file: Optional[str] = None, max_bytes: int = 5 * 1024 * 1024,
                  backup_count: int = 3) -> logging.Logger:
    log_level = getattr(logging, level.upper(), logging.INFO)

    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.setLevel(log_level)

    if logger.handlers:
        logger.handlers.clear()

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setLevel(log_level)
    # Track titles routinely contain non-ASCII characters
    if hasattr(console_handler.stream, 'reconfigure'):
        console_handler.stream.reconfigure(encoding='utf-8', errors='replace')

    console_handler.setFormatter(ColoredFormatter(
        fmt='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    ))
    logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        # max_bytes 0 disables rotation
        file_handler = logging.handlers.RotatingFileHandler(
            log_path, maxBytes=max_bytes, backupCount=backup_count, encoding='utf-8'
        )
        file_handler.setLevel(log_level)
        file_handler.setFormatter(SafeFormatter(
            fmt='%(asctime)s - %(name)s - %(levelname)s - %(funcName)s:%(lineno)d - %(message)s',
            datefmt='%Y-%m-%d %H:%M:%S'
        ))
        logger.addHandler(file_handler)

    # spotipy and urllib3 log every retry at INFO
    for name in ("spotipy", "urllib3"):
        logging.getLogger(name).setLevel(max(log_level, logging.WARNING))

    logger.info(f"Logging initialized with level: {level}")
    return logger

def setup_logging_from_config(logging_config: Dict[str, Any]) -> logging.Logger:
    """Configure logging from the ``logging`` section of the app config"""
    return setup_logging(
        level=logging_config.get('level', 'INFO'),
        log_file=logging_config.get('path'),
        max_bytes=logging_config.get('max_bytes', 5 * 1024 * 1024),
        backup_count=logging_config.get('backup_count', 3)
    )

def get_logger(name: str) -> logging.Logger:
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{name}")
