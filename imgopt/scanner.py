"""
SourceScanner - Finds convertible source images under a web root.
"""

import logging
import os
from typing import Iterable, Iterator, Optional

from .source_image import SOURCE_EXTENSIONS


class SourceScanner:
    """
    Walks a directory tree and yields PNG/JPEG sources as web-root
    relative paths ('/images/product/extra.png').

    Derivative subdirectories are not descended into.
    """

    def __init__(
        self,
        web_root: str,
        exclude_dirs: Optional[Iterable[str]] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize scanner.

        Args:
            web_root: Directory to scan
            exclude_dirs: Directory names to skip (e.g. '/webp', '/avif')
            logger: Optional logger instance
        """
        self.web_root = web_root
        self.exclude_dirs = {d.strip('/') for d in (exclude_dirs or []) if d and d.strip('/')}
        self.logger = logger or logging.getLogger(__name__)

    def scan(self, limit: Optional[int] = None) -> Iterator[str]:
        """
        Yield source paths in sorted, stable order.

        Args:
            limit: Optional limit on number of sources (for testing)
        """
        count = 0
        for dirpath, dirnames, filenames in os.walk(self.web_root):
            dirnames[:] = sorted(d for d in dirnames if d not in self.exclude_dirs)
            for filename in sorted(filenames):
                if os.path.splitext(filename)[1].lower() not in SOURCE_EXTENSIONS:
                    continue
                yield self._relative(os.path.join(dirpath, filename))
                count += 1
                if limit and count >= limit:
                    self.logger.debug(f"Scan stopped at limit ({limit})")
                    return

    def _relative(self, path: str) -> str:
        rel = os.path.relpath(path, self.web_root)
        return '/' + rel.replace(os.sep, '/')
