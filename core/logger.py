"""
Service Logger Setup

Configures the stdlib logging tree for a microservice process from
LoggingConfig (console handler plus optional rotating file handler).

Usage:
    from core.logger import setup_service_logger
    logger = setup_service_logger("shipping_service")
"""

import logging
import sys
from logging.handlers import RotatingFileHandler
from typing import Optional

from core.config import LoggingConfig

_configured_services = set()


def setup_service_logger(
    service_name: str,
    level: Optional[str] = None,
    config: Optional[LoggingConfig] = None,
) -> logging.Logger:
    """
    Configure root handlers once per service and return the service logger.

    Args:
        service_name: Logger name, also used as the log record prefix
        level: Override for LOG_LEVEL
        config: Logging configuration (defaults to environment)

    Returns:
        Logger named after the service
    """
    config = config or LoggingConfig.from_env()
    log_level = getattr(logging, (level or config.log_level).upper(), logging.INFO)

    root = logging.getLogger()
    if service_name not in _configured_services:
        formatter = logging.Formatter(f"[{service_name}] {config.log_format}")

        if config.enable_console:
            console = logging.StreamHandler(sys.stdout)
            console.setFormatter(formatter)
            root.addHandler(console)

        if config.log_file:
            file_handler = RotatingFileHandler(
                config.log_file,
                maxBytes=config.log_file_max_bytes,
                backupCount=config.log_file_backups,
            )
            file_handler.setFormatter(formatter)
            root.addHandler(file_handler)

        # httpx logs every request at INFO
        logging.getLogger("httpx").setLevel(logging.WARNING)
        if config.carrier_log_level:
            logging.getLogger("microservices.shipping_service.carrier").setLevel(
                getattr(logging, config.carrier_log_level.upper(), logging.INFO)
            )
        _configured_services.add(service_name)

    root.setLevel(log_level)
    service_logger = logging.getLogger(service_name)
    service_logger.setLevel(log_level)
    return service_logger


__all__ = ["setup_service_logger"]
