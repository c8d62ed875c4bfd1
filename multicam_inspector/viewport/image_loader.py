"""
Fetch and decode tile images, retrying with cache-busting URLs.

Camera captures are written to disk while the inspector is already polling
for them, so a first fetch may return a truncated file. A decode that yields
no pixels is treated as a failure and retried like a network error.
"""

from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Callable, Optional

import cv2
import numpy as np
import requests

from multicam_inspector.camera_config import (
    IMAGE_FETCH_TIMEOUT_S,
    IMAGE_LOAD_ATTEMPTS,
    IMAGE_RETRY_BASE_DELAY_S,
)
from multicam_inspector.types import Pixels

logger = logging.getLogger(__name__)


class ImageLoadError(RuntimeError):
    """Raised when an image could not be fetched and decoded."""


@dataclass(frozen=True)
class LoadedImage:
    """A decoded tile image.

    Attributes:
        source_url: URL the image was requested from (without cache busting).
        width: Natural width in pixels.
        height: Natural height in pixels.
        pixels: BGR image array of shape (height, width, 3).
    """

    source_url: str
    width: Pixels
    height: Pixels
    pixels: np.ndarray

    @classmethod
    def from_array(cls, pixels: np.ndarray, source_url: str = "") -> LoadedImage:
        """Wrap an already decoded array."""
        if pixels.ndim < 2 or pixels.shape[0] == 0 or pixels.shape[1] == 0:
            raise ValueError(f"Image array has no pixels: shape={pixels.shape}")
        return cls(
            source_url=source_url,
            width=Pixels(int(pixels.shape[1])),
            height=Pixels(int(pixels.shape[0])),
            pixels=pixels,
        )


def fetch_bytes(url: str, timeout: float = IMAGE_FETCH_TIMEOUT_S) -> bytes:
    """Download raw image bytes over HTTP.

    Raises:
        RuntimeError: If the request fails or returns a non-200 status.
    """
    try:
        response = requests.get(url, timeout=timeout)
    except requests.RequestException as e:
        raise RuntimeError(f"Failed to fetch image: {e}") from e

    if response.status_code != 200:
        raise RuntimeError(f"Image server returned status {response.status_code}")
    return response.content


def decode_image(data: bytes) -> Optional[np.ndarray]:
    """Decode encoded image bytes; None if OpenCV yields no pixels."""
    if not data:
        return None
    buffer = np.frombuffer(data, dtype=np.uint8)
    pixels = cv2.imdecode(buffer, cv2.IMREAD_COLOR)
    if pixels is None or pixels.size == 0:
        return None
    return pixels


def cache_busted_url(url: str, attempt: int, now_ms: int) -> str:
    """URL for a given attempt; the first attempt uses the plain URL."""
    if attempt <= 1:
        return url
    separator = "&" if "?" in url else "?"
    return f"{url}{separator}_retry={attempt}&_cb={now_ms}"


class ImageLoader:
    """Load tile images with a bounded number of attempts.

    Args:
        fetch: Callable returning the encoded bytes for a URL.
        sleep: Delay function, injectable so tests do not wait.
        clock: Wall-clock seconds used for the cache-busting stamp.
        attempts: Total attempts before giving up.
        base_delay: Delay before retry ``n`` is ``base_delay * (n - 1)``.
    """

    def __init__(
        self,
        fetch: Callable[[str], bytes] = fetch_bytes,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.time,
        attempts: int = IMAGE_LOAD_ATTEMPTS,
        base_delay: float = IMAGE_RETRY_BASE_DELAY_S,
    ):
        if attempts < 1:
            raise ValueError(f"attempts must be at least 1, got {attempts}")
        self.fetch = fetch
        self.sleep = sleep
        self.clock = clock
        self.attempts = attempts
        self.base_delay = base_delay

    def load(self, url: str) -> LoadedImage:
        """Fetch and decode an image.

        Raises:
            ImageLoadError: If every attempt failed.
        """
        last_error = "no attempt made"
        for attempt in range(1, self.attempts + 1):
            if attempt > 1:
                self.sleep(self.base_delay * (attempt - 1))

            request_url = cache_busted_url(url, attempt, int(self.clock() * 1000))
            try:
                pixels = decode_image(self.fetch(request_url))
            except RuntimeError as e:
                last_error = str(e)
                logger.warning("Image load attempt %d/%d failed for %s: %s",
                               attempt, self.attempts, url, e)
                continue

            if pixels is None:
                last_error = "decoded image is empty"
                logger.warning("Image load attempt %d/%d for %s decoded to an empty image",
                               attempt, self.attempts, url)
                continue

            logger.debug("Loaded %s (%dx%d) on attempt %d",
                         url, pixels.shape[1], pixels.shape[0], attempt)
            return LoadedImage.from_array(pixels, source_url=url)

        raise ImageLoadError(
            f"Failed to load image {url} after {self.attempts} attempts: {last_error}"
        )
