"""Retry decorators for remote image downloads."""

from tenacity import (
    retry,
    retry_if_exception_type,
    stop_after_attempt,
    wait_exponential,
    before_sleep_log,
)
import logging

from requests.exceptions import ConnectionError, Timeout

logger = logging.getLogger(__name__)

# Remote product image retry decorator
image_fetch_retry = retry(
    retry=retry_if_exception_type((ConnectionError, Timeout)),
    wait=wait_exponential(multiplier=0.5, min=0.5, max=8),
    stop=stop_after_attempt(3),
    before_sleep=before_sleep_log(logger, logging.WARNING),
    reraise=True,
)
