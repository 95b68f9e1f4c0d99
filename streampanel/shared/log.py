import logging
import sys
from os import environ
from pathlib import Path

from loguru import logger


def format_error(ex: BaseException) -> str:
    from traceback import TracebackException

    return ''.join(TracebackException.from_exception(ex).format())


def get_console_info():
    project_root = Path(__file__).parent.parent.parent
    console_name = environ.get('CONSOLE_NAME', project_root.name)

    parts = environ.get('BUILD_COMMIT', '').split('-')
    commit_id = parts[1] if len(parts) > 1 else 'dev'

    return console_name, commit_id


def init_logger():
    from ..app_config import get_app_environ_config

    # httpx logs every request at INFO, our clients log what matters
    for name in ('httpx', 'httpcore'):
        logging.getLogger(name).setLevel(logging.WARNING)

    logger.remove()

    console_name, commit_id = get_console_info()

    if get_app_environ_config().DEBUG:
        logger_level = 'DEBUG'
        logger_format = (
            f'<yellow>{console_name}:{commit_id}</yellow> | '
            '<green>{time:MM-DD HH:mm:ss.SSS}</green> | '
            '<level>{level: <8}</level> | '
            '<cyan>{name}</cyan>:<cyan>{function}</cyan>:<cyan>{line}</cyan> | '
            '<level>{message}</level>'
        )
    else:
        logger_level = 'INFO'
        logger_format = (
            f'{console_name}:{commit_id} | '
            '{time:MM-DD HH:mm:ss.SSS} | '
            '{level: <8} | '
            '{name}:{function}:{line} | '
            '{message}'
        )
    logger.add(sys.stderr, level=logger_level, format=logger_format)
