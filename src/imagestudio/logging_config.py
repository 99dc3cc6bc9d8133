"""
Logging setup for imagestudio.

Two loggers are configured together from one verbosity value:

- ``imagestudio``: module activity, timing and (at verbosity >= 1) prompt text.
- ``imagestudio.diagnostics``: the events LoggingSink forwards from the
  retrier, the request client and prompt enhancement. ``*.failed`` and
  ``*.fallback`` events are WARNING, ``*.succeeded`` INFO, the rest DEBUG.

=========  ===========  =======================  ===========
verbosity  imagestudio  imagestudio.diagnostics  prompt text
=========  ===========  =======================  ===========
quiet      ERROR        WARNING                  no
0          INFO         INFO                     no
1          INFO         INFO                     yes
2          DEBUG        DEBUG                    yes
=========  ===========  =======================  ===========

Quiet mode still reports failed requests and enhancement fallbacks.

Nothing is configured on import: library users who never call
configure_logging or set_verbosity keep full control of their own logging.
IMAGESTUDIO_VERBOSITY (0/1/2) is read by the CLI; its flags override it.
"""

import logging
import os
from dataclasses import dataclass

LOG_FORMAT = "%(levelname)s [%(name)s] %(message)s"
ROOT_LOGGER_NAME = "imagestudio"
DIAGNOSTICS_LOGGER_NAME = "imagestudio.diagnostics"
VERBOSITY_ENV = "IMAGESTUDIO_VERBOSITY"
MAX_VERBOSITY = 2


@dataclass(frozen=True)
class LogLevels:
    """Levels applied for one verbosity setting."""

    package: int
    diagnostics: int
    prompts: bool


QUIET_LEVELS = LogLevels(package=logging.ERROR, diagnostics=logging.WARNING, prompts=False)
_VERBOSITY_LEVELS = {
    0: LogLevels(package=logging.INFO, diagnostics=logging.INFO, prompts=False),
    1: LogLevels(package=logging.INFO, diagnostics=logging.INFO, prompts=True),
    2: LogLevels(package=logging.DEBUG, diagnostics=logging.DEBUG, prompts=True),
}

_log_prompts: bool = False
_handler: logging.Handler | None = None


def levels_for(verbose_level: int, quiet: bool = False) -> LogLevels:
    """Return the levels for a verbosity; out-of-range values are clamped to 0..2."""
    if quiet:
        return QUIET_LEVELS
    return _VERBOSITY_LEVELS[min(max(verbose_level, 0), MAX_VERBOSITY)]


def _ensure_handler() -> None:
    """Attach a stderr handler to the imagestudio logger unless one is already there."""
    global _handler
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if _handler is not None or root.handlers:
        return
    _handler = logging.StreamHandler()
    _handler.setFormatter(logging.Formatter(LOG_FORMAT))
    root.addHandler(_handler)


def _apply(levels: LogLevels) -> None:
    global _log_prompts
    _ensure_handler()
    logging.getLogger(ROOT_LOGGER_NAME).setLevel(levels.package)
    # Diagnostics propagate to the package handler even when the package level is higher
    logging.getLogger(DIAGNOSTICS_LOGGER_NAME).setLevel(levels.diagnostics)
    _log_prompts = levels.prompts


def set_verbosity(level: int) -> None:
    """Set logging verbosity (0=default, 1=prompt text, 2=debug)."""
    _apply(levels_for(level))


def configure_logging(verbose_level: int = 0, quiet: bool = False) -> None:
    """
    Configure logging from CLI or library.

    quiet overrides verbose_level: module activity is silenced but WARNING
    diagnostics (failed requests, enhancement fallbacks) still come through.
    """
    _apply(levels_for(verbose_level, quiet))


def reset_logging() -> None:
    """Undo configure_logging: remove our handler and return both loggers to NOTSET."""
    global _handler, _log_prompts
    root = logging.getLogger(ROOT_LOGGER_NAME)
    if _handler is not None:
        root.removeHandler(_handler)
        _handler = None
    root.setLevel(logging.NOTSET)
    logging.getLogger(DIAGNOSTICS_LOGGER_NAME).setLevel(logging.NOTSET)
    _log_prompts = False


def log_prompts() -> bool:
    """Return True if prompt text should be logged at INFO (verbosity 1 or 2)."""
    return _log_prompts


def get_verbosity_from_env() -> int:
    """Read IMAGESTUDIO_VERBOSITY; missing or non-numeric values give 0, others are clamped."""
    raw = os.environ.get(VERBOSITY_ENV, "").strip()
    try:
        level = int(raw)
    except ValueError:
        return 0
    return min(max(level, 0), MAX_VERBOSITY)


def get_logger(name: str) -> logging.Logger:
    """Return a child logger under imagestudio (e.g. imagestudio.core.image_gen)."""
    if name.startswith(ROOT_LOGGER_NAME + ".") or name == ROOT_LOGGER_NAME:
        return logging.getLogger(name)
    return logging.getLogger(ROOT_LOGGER_NAME + "." + name)


def get_diagnostics_logger() -> logging.Logger:
    return logging.getLogger(DIAGNOSTICS_LOGGER_NAME)


__all__ = [
    "DIAGNOSTICS_LOGGER_NAME",
    "LogLevels",
    "configure_logging",
    "get_diagnostics_logger",
    "get_logger",
    "get_verbosity_from_env",
    "levels_for",
    "log_prompts",
    "reset_logging",
    "set_verbosity",
]
