"""
DerivativePathResolver - Canonical output paths for derivatives.
"""

import logging
import os
import posixpath
from dataclasses import dataclass
from typing import Dict, Optional, Tuple

from .derivative import TargetFormat


DEFAULT_SUBDIRS = {
    TargetFormat.WEBP: '/webp',
    TargetFormat.AVIF: '/avif',
}

DIRECTORY_MODE = 0o755


class DirectoryCreationError(OSError):
    """The output subdirectory for a derivative could not be created."""


@dataclass(frozen=True)
class ResolvedPath:
    """
    Location of a derivative.

    Attributes:
        full_path: Filesystem path
        short_path: Path relative to the root the source was given in
    """
    full_path: str
    short_path: str

    @property
    def directory(self) -> str:
        return os.path.dirname(self.full_path)


class DerivativePathResolver:
    """
    Resolves where a derivative of a source image is stored.

    Derivatives live in a format-specific subdirectory next to the source:
    /images/extra.png -> /images/webp/extra.webp
    /images/extra.png @ 576 -> /images/webp/extra@576x413.webp
    """

    def __init__(
        self,
        web_root: Optional[str] = None,
        subdirs: Optional[Dict[TargetFormat, Optional[str]]] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize resolver.

        Args:
            web_root: Directory sources are relative to (None = sources are
                filesystem paths)
            subdirs: Per-format subdirectory names, used verbatim
                (default: '/webp' and '/avif')
            logger: Optional logger instance
        """
        self.web_root = web_root
        self.subdirs = dict(DEFAULT_SUBDIRS)
        if subdirs:
            self.subdirs.update(subdirs)
        self.logger = logger or logging.getLogger(__name__)

    def source_path(self, src: str) -> str:
        """Filesystem path of a source given relative to the web root."""
        if self.web_root is None:
            return str(src)
        return os.path.join(self.web_root, str(src).lstrip('/'))

    def subdir(self, target_format: TargetFormat) -> str:
        return (self.subdirs.get(target_format) or '').strip('/')

    @staticmethod
    def derivative_name(
        stem: str,
        target_format: TargetFormat,
        size: Optional[Tuple[int, int]] = None
    ) -> str:
        """Filename of a derivative: stem.ext or stem@WxH.ext"""
        if size is None:
            return f"{stem}{target_format.extension}"
        width, height = size
        return f"{stem}@{width}x{height}{target_format.extension}"

    def resolve(
        self,
        src: str,
        target_format: TargetFormat,
        size: Optional[Tuple[int, int]] = None
    ) -> ResolvedPath:
        """
        Compute the derivative path for a source.

        Args:
            src: Source path as given by the caller
            target_format: Output format
            size: Resize target (width, height), or None for full size

        Returns:
            ResolvedPath with filesystem and caller-relative paths
        """
        src = str(src)
        stem = posixpath.splitext(posixpath.basename(src))[0]
        name = self.derivative_name(stem, target_format, size)
        subdir = self.subdir(target_format)

        short_dir = posixpath.dirname(src)
        short_path = posixpath.join(short_dir, subdir, name) if subdir else posixpath.join(short_dir, name)

        full_dir = os.path.dirname(self.source_path(src))
        full_path = os.path.join(full_dir, subdir, name) if subdir else os.path.join(full_dir, name)

        return ResolvedPath(full_path=full_path, short_path=short_path)

    def ensure_directory(self, resolved: ResolvedPath) -> None:
        """
        Create the derivative's subdirectory if it is missing.

        Raises:
            DirectoryCreationError: if the directory can't be created
        """
        directory = resolved.directory
        if os.path.isdir(directory):
            return
        try:
            os.mkdir(directory, DIRECTORY_MODE)
            self.logger.debug(f"Created directory: {directory}")
        except FileExistsError:
            if not os.path.isdir(directory):
                raise DirectoryCreationError(f"Path exists and is not a directory: {directory}")
        except OSError as e:
            raise DirectoryCreationError(f"Cannot create {directory}: {e}") from e
