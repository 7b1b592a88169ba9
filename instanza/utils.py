"""
INSTANZA Utilities - Shared helpers for image sources and API retries.
"""

import base64
import logging
import time
from functools import wraps
from pathlib import Path
from typing import Union

logger = logging.getLogger(__name__)

ImageSource = Union[bytes, bytearray, str, Path]

# Substrings of error messages that indicate a temporary provider failure
RETRYABLE_MARKERS = (
    'rate limit',
    'quota',
    'too many requests',
    '429',
    'resource exhausted',
    'resource_exhausted',
    'timeout',
    'deadline exceeded',
    'temporarily unavailable',
    'service unavailable',
    '503',
    '500',
)


def is_retryable_error(error: Exception) -> bool:
    """Return True if the error message looks like a transient API failure."""
    error_msg = str(error).lower()
    return any(marker in error_msg for marker in RETRYABLE_MARKERS)


def retry_with_backoff(max_retries=3, initial_delay=2.0, backoff_factor=2.0):
    """
    Decorator to retry API calls with exponential backoff.

    Args:
        max_retries: Maximum number of retry attempts
        initial_delay: Initial delay in seconds before first retry
        backoff_factor: Multiplier for delay between retries
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            delay = initial_delay

            for attempt in range(max_retries + 1):
                try:
                    return func(*args, **kwargs)
                except Exception as e:
                    if not is_retryable_error(e) or attempt == max_retries:
                        raise

                    logger.warning(
                        "API error in %s (attempt %d/%d): %s - retrying in %.1fs",
                        func.__name__, attempt + 1, max_retries, e, delay
                    )
                    time.sleep(delay)
                    delay *= backoff_factor
        return wrapper
    return decorator


def read_image_bytes(source: ImageSource) -> bytes:
    """
    Read encoded image bytes from raw bytes, a data URI or a file path.

    Args:
        source: bytes, 'data:image/...;base64,...' string, or path

    Returns:
        The encoded image bytes

    Raises:
        ValueError: if a data URI is malformed
        OSError: if a path cannot be read
    """
    if isinstance(source, (bytes, bytearray)):
        return bytes(source)

    if isinstance(source, str) and source.startswith('data:'):
        header, _, payload = source.partition(',')
        if not payload or ';base64' not in header:
            raise ValueError("Malformed data URI: expected base64 payload")
        return base64.b64decode(payload, validate=True)

    return Path(source).read_bytes()


def to_data_uri(data: bytes, media_type: str = 'image/jpeg') -> str:
    """Encode image bytes as a base64 data URI."""
    encoded = base64.standard_b64encode(data).decode('utf-8')
    return f"data:{media_type};base64,{encoded}"
