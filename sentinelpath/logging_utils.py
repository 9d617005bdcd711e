"""
Logging utilities for sentinelpath.
"""

import logging
from typing import Any, Dict, Optional

_FORMAT = "%(asctime)s %(levelname)s %(name)s: %(message)s"


def get_logger(name: str):
    """Get a logger for the given module."""
    return logging.getLogger(name)


def configure_logging(verbose: bool = False, debug: bool = False) -> None:
    level = logging.DEBUG if debug else logging.INFO if verbose else logging.WARNING
    logging.basicConfig(level=level, format=_FORMAT)


def log_pipeline_step(step: str, status: str, metadata: Optional[Dict[str, Any]] = None):
    """Log a pipeline step with structured data."""
    logger = get_logger("sentinelpath.pipeline")

    log_data = {
        "step": step,
        "status": status,
        "metadata": metadata or {}
    }

    level = logging.INFO if status in ["started", "completed"] else logging.ERROR
    logger.log(level, f"Pipeline {step}: {status}", extra=log_data)
