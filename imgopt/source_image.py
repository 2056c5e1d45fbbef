"""
SourceImage - Read-only snapshot of a source raster image.
"""

import logging
import os
from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError


SOURCE_EXTENSIONS = {'.png', '.jpg', '.jpeg'}


class SourceFormat(Enum):
    """Source formats derivatives can be generated from."""
    PNG = 'png'
    JPEG = 'jpeg'

    @classmethod
    def from_extension(cls, extension: str) -> Optional['SourceFormat']:
        """Map a file extension to a source format, case-insensitively."""
        ext = extension.lower().lstrip('.')
        if ext == 'png':
            return cls.PNG
        if ext in ('jpg', 'jpeg'):
            return cls.JPEG
        return None


@dataclass(frozen=True)
class SourceImage:
    """
    Snapshot of a source image taken at the start of a conversion.

    Attributes:
        path: Filesystem path of the source
        byte_size: Size in bytes (None if the file does not exist)
        modified_ns: Modification time in nanoseconds (None if unreadable)
        pixel_width: Width in pixels (None if the header can't be read)
        pixel_height: Height in pixels (None if the header can't be read)
        format: Source format derived from the extension (None if unsupported)
    """
    path: str
    byte_size: Optional[int]
    modified_ns: Optional[int]
    pixel_width: Optional[int] = None
    pixel_height: Optional[int] = None
    format: Optional[SourceFormat] = None

    @property
    def exists(self) -> bool:
        return self.byte_size is not None

    @property
    def is_empty(self) -> bool:
        return self.byte_size == 0

    @property
    def dimensions(self) -> Optional[Tuple[int, int]]:
        if self.pixel_width is None or self.pixel_height is None:
            return None
        return self.pixel_width, self.pixel_height


def _read_dimensions(path: str, logger: logging.Logger) -> Optional[Tuple[int, int]]:
    """Read pixel dimensions from the image header only."""
    try:
        with Image.open(path) as img:
            return img.size
    except (OSError, UnidentifiedImageError, ValueError) as e:
        logger.debug(f"Cannot read dimensions of {path}: {e}")
        return None


def inspect_source(path: str, logger: Optional[logging.Logger] = None) -> SourceImage:
    """
    Take a snapshot of a source image's filesystem metadata.

    Never raises for I/O problems: a missing file gives a snapshot with
    exists == False, an unreadable header leaves the dimensions unset.

    Args:
        path: Filesystem path of the source image
        logger: Optional logger instance

    Returns:
        SourceImage snapshot
    """
    logger = logger or logging.getLogger(__name__)
    path = str(path)
    source_format = SourceFormat.from_extension(os.path.splitext(path)[1])

    if not os.path.isfile(path):
        return SourceImage(path=path, byte_size=None, modified_ns=None, format=source_format)

    try:
        st = os.stat(path)
    except OSError as e:
        logger.debug(f"Cannot stat {path}: {e}")
        return SourceImage(path=path, byte_size=None, modified_ns=None, format=source_format)

    width = height = None
    # Only decode headers of files we could convert anyway
    if source_format is not None and st.st_size > 0:
        size = _read_dimensions(path, logger)
        if size:
            width, height = size

    return SourceImage(
        path=path,
        byte_size=st.st_size,
        modified_ns=st.st_mtime_ns,
        pixel_width=width,
        pixel_height=height,
        format=source_format,
    )
