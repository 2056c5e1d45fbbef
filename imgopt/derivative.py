"""
Derivative - Target formats, derivative specs and on-disk artifacts.
"""

import os
from dataclasses import dataclass
from enum import Enum
from typing import Optional


class TargetFormat(Enum):
    """Next-gen output formats a derivative can be encoded to."""
    WEBP = 'webp'
    AVIF = 'avif'
    
    @property
    def extension(self) -> str:
        return f".{self.value}"
    
    @property
    def mime_type(self) -> str:
        return f"image/{self.value}"
    
    @property
    def pillow_format(self) -> str:
        """Format name as registered with Pillow's save handlers."""
        return self.value.upper()
    
    @classmethod
    def from_name(cls, name: str) -> 'TargetFormat':
        """Look up a format by name ('webp', 'AVIF', '.webp')."""
        key = name.strip().lstrip('.').lower()
        for fmt in cls:
            if fmt.value == key:
                return fmt
        raise ValueError(f"Unknown target format: {name!r}")


@dataclass(frozen=True)
class DerivativeSpec:
    """
    One requested output.
    
    Attributes:
        target_format: Format to encode to
        target_width: Requested width, or None for full size
    """
    target_format: TargetFormat
    target_width: Optional[int] = None
    
    def __post_init__(self):
        if self.target_width is not None and self.target_width <= 0:
            raise ValueError(f"Target width must be positive, got {self.target_width}")
    
    @property
    def width_key(self) -> int:
        """Key used in conversion results (0 means full size)."""
        return self.target_width or 0


@dataclass(frozen=True)
class DerivativeArtifact:
    """
    A derivative file that may or may not exist on disk.
    
    Attributes:
        path: Filesystem path of the derivative
        byte_size: Size in bytes (None if missing)
        modified_ns: Modification time in nanoseconds (None if missing)
    """
    path: str
    byte_size: Optional[int] = None
    modified_ns: Optional[int] = None
    
    @property
    def exists(self) -> bool:
        return self.byte_size is not None
    
    @classmethod
    def from_path(cls, path: str) -> 'DerivativeArtifact':
        """Stat a derivative path without raising."""
        try:
            st = os.stat(path)
        except OSError:
            return cls(path=str(path))
        if not os.path.isfile(path):
            return cls(path=str(path))
        return cls(path=str(path), byte_size=st.st_size, modified_ns=st.st_mtime_ns)
