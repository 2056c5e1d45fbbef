"""
Encoders - Next-gen format encoders backed by Pillow.
"""

import io
import logging
from abc import ABC, abstractmethod
from typing import Dict, Optional

from PIL import Image

from .derivative import TargetFormat


class Encoder(ABC):
    """
    Encodes a decoded image to one target format at a given quality.
    """

    target_format: TargetFormat

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def is_available(self) -> bool:
        """True if this Pillow build can write the target format."""
        Image.init()
        return self.target_format.pillow_format in Image.SAVE

    def encode(self, img: Image.Image, quality: int) -> bytes:
        """
        Encode an image in memory.

        Args:
            img: Decoded image (RGB or RGBA)
            quality: Quality percentage (0-100)

        Returns:
            Encoded file contents
        """
        output = io.BytesIO()
        img.save(output, format=self.target_format.pillow_format, **self.save_options(quality))
        return output.getvalue()

    @abstractmethod
    def save_options(self, quality: int) -> dict:
        """Keyword arguments passed to Image.save for this format."""

    def __repr__(self) -> str:
        return f"{self.__class__.__name__}()"


class WebpEncoder(Encoder):
    """Lossy WEBP with alpha."""

    target_format = TargetFormat.WEBP

    def __init__(self, method: int = 4, logger: Optional[logging.Logger] = None):
        """
        Args:
            method: libwebp effort, 0 (fast) to 6 (slowest, smallest)
            logger: Optional logger instance
        """
        super().__init__(logger)
        self.method = method

    def save_options(self, quality: int) -> dict:
        return {'quality': quality, 'method': self.method}


class AvifEncoder(Encoder):
    """AVIF via libavif. Noticeably slower than WEBP per attempt."""

    target_format = TargetFormat.AVIF

    def __init__(self, speed: int = 6, logger: Optional[logging.Logger] = None):
        """
        Args:
            speed: libavif speed, 0 (slowest, smallest) to 10 (fastest)
            logger: Optional logger instance
        """
        super().__init__(logger)
        self.speed = speed

    def save_options(self, quality: int) -> dict:
        return {'quality': quality, 'speed': self.speed}


def default_encoders(logger: Optional[logging.Logger] = None) -> Dict[TargetFormat, Encoder]:
    """Encoders for every target format, keyed by format."""
    return {
        TargetFormat.WEBP: WebpEncoder(logger=logger),
        TargetFormat.AVIF: AvifEncoder(logger=logger),
    }
