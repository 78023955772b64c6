"""
structlog setup for the API server.

Stdlib loggers (uvicorn, boto3) keep their own handlers; only their levels
are adjusted here.
"""

from __future__ import annotations

import logging

import structlog

# AWS SDK loggers log every request at INFO
_NOISY_LOGGERS = ("boto3", "botocore", "s3transfer", "urllib3", "PIL")


def configure_logging(level: str = "info", fmt: str = "json") -> None:
    numeric_level = getattr(logging, level.upper(), logging.INFO)
    logging.basicConfig(level=numeric_level, format="%(message)s")
    for name in _NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(numeric_level, logging.WARNING))

    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
    ]
    if fmt == "json":
        processors += [structlog.processors.format_exc_info, structlog.processors.JSONRenderer()]
    else:
        processors.append(structlog.dev.ConsoleRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.make_filtering_bound_logger(numeric_level),
        cache_logger_on_first_use=True,
    )
