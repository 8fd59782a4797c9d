import logging
import sys

import structlog

# Loggers of the Azure SDK and its HTTP stack, quieted below DEBUG.
_HTTP_LOGGERS = [
    "azure.core.pipeline.policies.http_logging_policy",
    "azure.core.pipeline",
    "azure.identity",
    "azure.mgmt",
    "azure",
    "urllib3",
    "aiohttp",
]


def set_azure_http_log_level(log_level: str) -> None:
    """Set log levels for HTTP-related loggers to reduce noise."""
    target_level = logging.DEBUG if log_level == "DEBUG" else logging.WARNING
    for name in _HTTP_LOGGERS:
        logging.getLogger(name).setLevel(target_level)


def configure_logging(level: str = "INFO") -> None:
    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level.upper(), logging.INFO),
    )
    set_azure_http_log_level(level.upper())
    structlog.configure(
        processors=[
            structlog.processors.TimeStamper(fmt="iso"),
            structlog.stdlib.add_log_level,
            structlog.processors.StackInfoRenderer(),
            structlog.processors.format_exc_info,
            structlog.processors.JSONRenderer(),
        ],
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        wrapper_class=structlog.stdlib.BoundLogger,
        cache_logger_on_first_use=True,
    )
