"""Centralized logging configuration for CLI and web entry points."""

from __future__ import annotations

import logging
import os

LOG_FORMAT: str = "%(asctime)s %(levelname)-8s %(name)s: %(message)s"

# LOG_LEVEL_<KEY> env vars tune these package loggers individually
_MODULE_LOGGERS: dict[str, str] = {
    "SERVICES": "Wealth_Flow.services",
    "WEB": "Wealth_Flow.web",
    "DATA": "Wealth_Flow.data",
    "ANALYSIS": "Wealth_Flow.analysis",
    "CLI": "Wealth_Flow.cli",
}


def resolve_level(*, level: str = "", verbose: bool = False, quiet: bool = False) -> int:
    """Pick the root level: verbose > quiet > *level* > ``LOG_LEVEL`` env > INFO."""
    if verbose:
        return logging.DEBUG
    if quiet:
        return logging.WARNING
    name = level or os.environ.get("LOG_LEVEL", "INFO")
    resolved = getattr(logging, name.upper(), logging.INFO)
    return resolved if isinstance(resolved, int) else logging.INFO


def configure_logging(
    *,
    level: str = "",
    verbose: bool = False,
    quiet: bool = False,
) -> None:
    """Configure root logger with consistent format across CLI and web.

    Uses force=True to override uvicorn's prior root logger config.
    """
    logging.basicConfig(
        level=resolve_level(level=level, verbose=verbose, quiet=quiet),
        format=LOG_FORMAT,
        force=True,
    )

    # Our request middleware replaces the access log
    logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
    # httpx logs every request URL at INFO, including the api_token query param
    logging.getLogger("httpx").setLevel(logging.WARNING)

    for key, logger_name in _MODULE_LOGGERS.items():
        module_level = os.environ.get(f"LOG_LEVEL_{key}")
        if not module_level:
            continue
        resolved = getattr(logging, module_level.upper(), None)
        if isinstance(resolved, int):
            logging.getLogger(logger_name).setLevel(resolved)
