import logging
import sys

from erp_admin.config import settings


def get_logger(name: str) -> logging.Logger:
    """
    Return a named logger writing to stdout.
    The handler is attached once per logger so repeated imports don't duplicate output.
    """
    log = logging.getLogger(name)
    log.setLevel(settings.LOG_LEVEL.upper())
    if not log.handlers:
        h = logging.StreamHandler(sys.stdout)
        h.setFormatter(logging.Formatter(f"[{name.upper()}] %(levelname)s %(message)s"))
        log.addHandler(h)
    return log
