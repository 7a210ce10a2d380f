"""
Logging setup for the matching service.

Every module logs through ``logging.getLogger(__name__)``; this module only
installs the root handler once at startup (``sociodent.main``). Matching
events are logged as dotted names (``matching.assigned``,
``matching.stale_write``) with their ids in ``extra``, so the format keeps
the logger name next to the level.

Under Fly.io, Kubernetes or Docker the runtime stamps each line itself, so
the timestamp is left out of the format there.
"""
import os
import sys
import logging
from typing import Union

IS_CONTAINERIZED = bool(
    os.environ.get('FLY_APP_NAME') or
    os.environ.get('KUBERNETES_SERVICE_HOST') or
    os.path.exists('/.dockerenv')
)

CONTAINER_FORMAT = "sociodent %(levelname)s %(name)s: %(message)s"
LOCAL_FORMAT = "%(asctime)s sociodent %(levelname)-7s %(name)s: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# HTTP client chatter from the Supabase client and per-run scheduler lines
NOISY_LOGGERS = (
    'httpx',
    'httpcore',
    'hpack',
    'apscheduler.executors.default',
    'apscheduler.scheduler',
)


def _resolve_level(level: Union[int, str]) -> int:
    """Accept MatchingSettings.log_level names as well as logging constants."""
    if isinstance(level, int):
        return level
    resolved = logging.getLevelName(level.upper())
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(level: Union[int, str] = logging.INFO, force: bool = False) -> None:
    """
    Install the stdout handler on the root logger.

    Args:
        level: Level as a logging constant or a name such as "DEBUG"
        force: Replace handlers that are already installed
    """
    root_logger = logging.getLogger()
    level = _resolve_level(level)

    if root_logger.handlers and not force:
        return

    if force:
        for handler in root_logger.handlers[:]:
            root_logger.removeHandler(handler)

    handler = logging.StreamHandler(sys.stdout)
    handler.setLevel(level)
    if IS_CONTAINERIZED:
        handler.setFormatter(logging.Formatter(CONTAINER_FORMAT))
    else:
        handler.setFormatter(logging.Formatter(LOCAL_FORMAT, datefmt=DATE_FORMAT))

    root_logger.setLevel(level)
    root_logger.addHandler(handler)

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)
