"""
Outcome - Per-derivative conversion results.

Every stage of the pipeline reports a ConversionOutcome instead of raising:
either Usable (a valid, smaller, fresh derivative) or Skipped with a reason.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Union


class SkipReason(Enum):
    """Why no derivative is available and the original should be used."""
    DISABLED = 'disabled'
    MISSING_SOURCE = 'missing_source'
    EMPTY_SOURCE = 'empty_source'
    UNSUPPORTED_FORMAT = 'unsupported_format'
    INVALID_RESIZE_TARGET = 'invalid_resize_target'
    CAPABILITY_UNAVAILABLE = 'capability_unavailable'
    ENCODE_FAILURE = 'encode_failure'
    NO_SIZE_IMPROVEMENT = 'no_size_improvement'
    DIRECTORY_CREATION_FAILURE = 'directory_creation_failure'
    DEADLINE_EXCEEDED = 'deadline_exceeded'


@dataclass(frozen=True)
class Usable:
    """
    A derivative that can be served instead of the original.
    
    Attributes:
        path: Filesystem path of the derivative
        short_path: Path relative to the root the source was given in
        byte_size: Size of the derivative in bytes
        reused: True if an existing file was kept without re-encoding
        quality: Quality the file was encoded at (None when reused)
    """
    path: str
    short_path: str
    byte_size: int
    reused: bool = False
    quality: Optional[int] = None
    
    @property
    def is_usable(self) -> bool:
        return True


@dataclass(frozen=True)
class Skipped:
    """No derivative; the caller falls back to the original image."""
    reason: SkipReason
    detail: str = ''
    
    @property
    def is_usable(self) -> bool:
        return False
    
    def __str__(self) -> str:
        if self.detail:
            return f"{self.reason.value}: {self.detail}"
        return self.reason.value


ConversionOutcome = Union[Usable, Skipped]
