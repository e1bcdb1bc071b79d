"""
Logging for tinydqn.

Everything logs under the 'tinydqn' logger. The numeric core stays silent;
the trainer reports episodes and checkpoint I/O reports saves and loads.

    logger = get_logger(__name__)
    logger.info("Training started")
"""

import logging
import sys
from datetime import datetime
from enum import Enum
from pathlib import Path
from typing import Optional, Tuple


ROOT_LOGGER_NAME = 'tinydqn'
LOG_FORMAT = '%(asctime)s | %(levelname)-8s | %(name)s | %(message)s'


class LogLevel(Enum):
    DEBUG = logging.DEBUG
    INFO = logging.INFO
    WARNING = logging.WARNING
    ERROR = logging.ERROR


_initialized = False
_file_handler: Optional[logging.FileHandler] = None
# (log_dir, level) of the active configuration
_settings: Optional[Tuple[Optional[str], LogLevel]] = None


class ColoredFormatter(logging.Formatter):
    """Colors the level name when writing to a terminal."""

    COLORS = {
        'DEBUG': '\033[36m',
        'INFO': '\033[32m',
        'WARNING': '\033[33m',
        'ERROR': '\033[31m',
        'CRITICAL': '\033[35m',
        'RESET': '\033[0m',
    }

    def __init__(self, fmt: str, use_colors: bool = True):
        super().__init__(fmt)
        self.use_colors = use_colors and sys.stdout.isatty()

    def format(self, record: logging.LogRecord) -> str:
        if self.use_colors:
            # Other handlers share the record
            record = logging.makeLogRecord(record.__dict__)
            color = self.COLORS.get(record.levelname, self.COLORS['RESET'])
            record.levelname = f"{color}{record.levelname}{self.COLORS['RESET']}"
        return super().format(record)


def setup_logging(
    log_dir: Optional[str] = None,
    level: LogLevel = LogLevel.INFO,
    console_output: bool = True,
    log_filename: Optional[str] = None,
    force: bool = False,
) -> None:
    """
    Configure the 'tinydqn' logger.

    Args:
        log_dir: Directory for a log file (None: no file)
        level: Minimum level
        console_output: Also log to stdout
        log_filename: File name inside log_dir (default: training_<timestamp>.log)
        force: Replace an existing configuration and its handlers
    """
    global _initialized, _file_handler, _settings

    if _initialized and not force:
        return

    root_logger = logging.getLogger(ROOT_LOGGER_NAME)
    root_logger.setLevel(level.value)
    for handler in list(root_logger.handlers):
        root_logger.removeHandler(handler)
        handler.close()
    _file_handler = None

    if console_output:
        console_handler = logging.StreamHandler(sys.stdout)
        console_handler.setLevel(level.value)
        console_handler.setFormatter(ColoredFormatter(LOG_FORMAT))
        root_logger.addHandler(console_handler)

    if log_dir is not None:
        path = Path(log_dir)
        path.mkdir(parents=True, exist_ok=True)
        if log_filename is None:
            log_filename = f"training_{datetime.now().strftime('%Y%m%d_%H%M%S')}.log"

        _file_handler = logging.FileHandler(path / log_filename, mode='a', encoding='utf-8')
        _file_handler.setLevel(logging.DEBUG)
        _file_handler.setFormatter(logging.Formatter(LOG_FORMAT))
        root_logger.addHandler(_file_handler)

    _initialized = True
    _settings = (log_dir, level)


def ensure_logging(log_dir: Optional[str] = None, level: LogLevel = LogLevel.INFO) -> None:
    """Reconfigure only if log_dir or level differ from the active setup."""
    if _initialized and _settings == (log_dir, level):
        return
    setup_logging(log_dir=log_dir, level=level, force=True)


def get_logger(name: str) -> logging.Logger:
    """Child of the 'tinydqn' logger; sets up console logging on first use."""
    if not _initialized:
        setup_logging()

    prefix = ROOT_LOGGER_NAME + '.'
    if name.startswith(prefix):
        name = name[len(prefix):]

    return logging.getLogger(f'{ROOT_LOGGER_NAME}.{name}')


def get_log_path() -> Optional[Path]:
    if _file_handler is not None:
        return Path(_file_handler.baseFilename)
    return None


def log_training_metrics(
    episode: int,
    reward: float,
    epsilon: float,
    loss: Optional[float] = None,
    steps: Optional[int] = None,
    buffer_size: Optional[int] = None,
) -> None:
    """One INFO line per reported episode on the 'training' logger."""
    fields = [
        ('ep', episode, 'd'),
        ('reward', reward, '.2f'),
        ('eps', epsilon, '.4f'),
        ('loss', loss, '.6f'),
        ('steps', steps, 'd'),
        ('buffer', buffer_size, 'd'),
    ]
    line = " | ".join(f"{key}={format(value, spec)}" for key, value, spec in fields if value is not None)
    get_logger('training').info(line)


def log_model_event(event: str, path: str, **kwargs) -> None:
    """One INFO line for a save, load or copy on the 'model' logger."""
    parts = [event.upper(), path]
    parts.extend(f"{k}={v}" for k, v in kwargs.items())
    get_logger('model').info(" | ".join(parts))
