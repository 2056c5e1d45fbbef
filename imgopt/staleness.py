"""
StalenessOracle - Decides whether an existing derivative can be reused.
"""

import logging
from typing import Optional

from .derivative import DerivativeArtifact
from .source_image import SourceImage


class StalenessOracle:
    """
    Decides if a derivative on disk is still valid for its source.

    A derivative is fresh only if it exists, is smaller than the source and
    its modification time equals the source's. The derivative's mtime is the
    cache-validity token: it is set to the source's mtime whenever the
    derivative is written.
    """

    def __init__(self, logger: Optional[logging.Logger] = None):
        self.logger = logger or logging.getLogger(__name__)

    def should_reuse(
        self,
        source: SourceImage,
        artifact: DerivativeArtifact,
        force_recreate: bool = False
    ) -> bool:
        """
        Check whether an artifact can be served without regenerating it.

        Args:
            source: Source image snapshot
            artifact: Candidate derivative
            force_recreate: Always regenerate when True

        Returns:
            True to reuse the artifact as-is, False to regenerate
        """
        if force_recreate:
            self.logger.debug(f"Recreate forced: {artifact.path}")
            return False

        if not artifact.exists:
            return False

        if source.byte_size is None or artifact.byte_size >= source.byte_size:
            self.logger.debug(
                f"Derivative not smaller than source ({artifact.byte_size} >= "
                f"{source.byte_size}): {artifact.path}"
            )
            return False

        if source.modified_ns is None or artifact.modified_ns is None:
            return False

        if artifact.modified_ns == source.modified_ns:
            return True

        self.logger.debug(f"Derivative is stale: {artifact.path}")
        return False
