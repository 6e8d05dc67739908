"""Logging setup for rendering runs, with optional GCP Cloud Logging."""

import logging
import sys
from pathlib import Path
from typing import Optional

LOG_FORMAT = "%(asctime)s | %(levelname)-8s | %(name)s | %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

# Third-party loggers that flood DEBUG output while decoding images
NOISY_LOGGERS = ("PIL", "urllib3")


def _stream_handler(formatter: logging.Formatter, level: int) -> logging.Handler:
    handler = logging.StreamHandler(sys.stdout)
    handler.setFormatter(formatter)
    handler.setLevel(level)
    return handler


def _file_handler(path: Path, formatter: logging.Formatter, level: int) -> logging.Handler:
    path.parent.mkdir(parents=True, exist_ok=True)
    handler = logging.FileHandler(path, encoding="utf-8")
    handler.setFormatter(formatter)
    handler.setLevel(level)
    return handler


def _attach_cloud_logging(project_id: str, level: int) -> None:
    try:
        import google.cloud.logging
    except ImportError:
        logging.warning("google-cloud-logging not installed. Skipping GCP integration.")
        return

    try:
        client = google.cloud.logging.Client(project=project_id)
        client.setup_logging(log_level=level)
    except Exception as e:
        logging.warning(f"Failed to setup GCP Cloud Logging: {e}")
        return
    logging.info(f"GCP Cloud Logging enabled for project: {project_id}")


def setup_logging(
    level: str = "INFO",
    gcp_project_id: Optional[str] = None,
    log_file: Optional[Path] = None,
) -> None:
    """
    Configure application logging for a render run.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR, CRITICAL)
        gcp_project_id: Optional GCP project ID for Cloud Logging integration
        log_file: Optional file that receives the same records as stdout
    """
    log_level = getattr(logging, level.upper(), logging.INFO)
    formatter = logging.Formatter(fmt=LOG_FORMAT, datefmt=DATE_FORMAT)

    root_logger = logging.getLogger()
    root_logger.setLevel(log_level)
    root_logger.handlers.clear()
    root_logger.addHandler(_stream_handler(formatter, log_level))
    if log_file:
        root_logger.addHandler(_file_handler(Path(log_file), formatter, log_level))

    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(log_level, logging.INFO))

    if gcp_project_id:
        _attach_cloud_logging(gcp_project_id, log_level)


def get_logger(name: str) -> logging.Logger:
    """Return the named logger (typically ``__name__``)."""
    return logging.getLogger(name)
