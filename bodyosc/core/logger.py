"""
Logging setup
=============

One shared "bodyosc" logger for every module. Parameters come from the
`logging` and `paths` sections of system_config.json.

Priority (highest first):
1. Environment variable BODYOSC_LOG_LEVEL (level only)
2. Arguments to setup_logger()
3. system_config.json
4. Built-in defaults (INFO, console only)
"""
import logging
import os
from logging.handlers import RotatingFileHandler, TimedRotatingFileHandler
from pathlib import Path
from typing import Any, Dict, Optional

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - [%(threadName)s] %(message)s'
DATE_FORMAT = '%Y-%m-%d %H:%M:%S'

_DEFAULTS: Dict[str, Any] = {
    'level': 'INFO',
    'logs_dir': 'logs',
    'enable_console': True,
    'enable_file': False,
    'file_rotation': 'daily',
    'max_size_mb': 20,
}


def _find_config():
    """System config if one can be found, otherwise None"""
    try:
        # Deferred: config_loader is imported lazily to keep core/__init__ acyclic
        from bodyosc.core.config_loader import get_config

        project_root = Path(__file__).resolve().parent.parent.parent
        for candidate in (
            Path.cwd() / "system_config.json",
            project_root / "system_config.json",
            project_root / "config" / "system_config.json",
        ):
            if candidate.exists():
                return get_config(config_path=candidate)
    except Exception as e:
        print(f"Warning: system_config.json not usable, default logging applies: {e}")
    return None


def _config_settings(config) -> Dict[str, Any]:
    settings = dict(_DEFAULTS)
    if config is None:
        return settings

    logging_section = getattr(config, 'logging', None)
    if logging_section is not None:
        for key in ('level', 'enable_console', 'enable_file', 'file_rotation', 'max_size_mb'):
            settings[key] = logging_section.get(key, settings[key])

    paths_section = getattr(config, 'paths', None)
    if paths_section is not None:
        settings['logs_dir'] = paths_section.get('logs_dir', settings['logs_dir'])
    return settings


def _level_from_name(name: Optional[str]) -> int:
    if not name:
        return logging.INFO
    value = getattr(logging, str(name).upper(), None)
    return value if isinstance(value, int) else logging.INFO


def _file_handler(name: str, log_dir: str, rotation: str, max_size_mb: int) -> logging.Handler:
    log_path = Path(log_dir)
    log_path.mkdir(parents=True, exist_ok=True)
    log_file = log_path / f'{name}.log'

    if rotation == 'size':
        return RotatingFileHandler(
            log_file,
            maxBytes=int(max_size_mb) * 1024 * 1024,
            backupCount=5,
            encoding='utf-8',
        )
    # 'daily': roll over at midnight, keep a week
    return TimedRotatingFileHandler(log_file, when='midnight', backupCount=7, encoding='utf-8')


def setup_logger(
    name: str = 'bodyosc',
    level: Optional[int] = None,
    log_dir: Optional[str] = None,
    enable_console: Optional[bool] = None,
    enable_file: Optional[bool] = None,
    max_size_mb: Optional[int] = None,
    file_rotation: Optional[str] = None
) -> logging.Logger:
    """
    Configure and return the named logger

    Arguments left as None are taken from system_config.json. Handlers are
    attached on the first call only; later calls just adjust the level.

    Args:
        name: logger name
        level: logging level (int)
        log_dir: directory for the log file
        enable_console: log to stderr
        enable_file: log to {log_dir}/{name}.log
        max_size_mb: file size limit for 'size' rotation
        file_rotation: 'daily' or 'size'

    Returns:
        logger: the configured logger
    """
    settings = _config_settings(_find_config())

    env_level = os.getenv("BODYOSC_LOG_LEVEL")
    if env_level:
        level = _level_from_name(env_level)
    elif level is None:
        level = _level_from_name(settings['level'])

    logger = logging.getLogger(name)
    logger.setLevel(level)
    if logger.handlers:
        return logger

    formatter = logging.Formatter(LOG_FORMAT, datefmt=DATE_FORMAT)
    handlers = []

    if settings['enable_console'] if enable_console is None else enable_console:
        handlers.append(logging.StreamHandler())

    if settings['enable_file'] if enable_file is None else enable_file:
        handlers.append(_file_handler(
            name,
            log_dir or settings['logs_dir'],
            file_rotation or settings['file_rotation'],
            max_size_mb or settings['max_size_mb'],
        ))

    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        logger.addHandler(handler)

    return logger


# Shared logger, configured from system_config.json on first import
logger = setup_logger()
