"""
ImgOptConfig - Configuration for derivative generation.
"""

import os
from dataclasses import dataclass, field
from typing import Dict, List, Optional

from .derivative import TargetFormat


TRUE_VALUES = {'1', 'true', 'yes', 'on'}


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.environ.get(name)
    if value is None:
        return default
    return value.strip().lower() in TRUE_VALUES


def parse_sizes(value: str) -> List[int]:
    """Parse a comma separated width list, e.g. '576,768,992'."""
    sizes = []
    for part in value.split(','):
        part = part.strip()
        if part:
            sizes.append(int(part))
    return sizes


@dataclass
class ImgOptConfig:
    """
    Service-wide settings.

    Attributes:
        web_root: Directory sources are relative to (None = absolute paths)
        webp_dir: Subdirectory for WEBP derivatives, next to the source
        avif_dir: Subdirectory for AVIF derivatives, next to the source
        sizes: Default widths to generate in addition to full size
        recreate: Regenerate every derivative regardless of freshness
        disabled: Never generate or serve derivatives
        deadline_seconds: Optional time budget per derivative's quality ladder
    """
    web_root: Optional[str] = None
    webp_dir: str = '/webp'
    avif_dir: str = '/avif'
    sizes: List[int] = field(default_factory=list)
    recreate: bool = False
    disabled: bool = False
    deadline_seconds: Optional[float] = None

    @property
    def subdirs(self) -> Dict[TargetFormat, str]:
        return {
            TargetFormat.WEBP: self.webp_dir,
            TargetFormat.AVIF: self.avif_dir,
        }

    @classmethod
    def from_env(cls) -> 'ImgOptConfig':
        """Load configuration from IMGOPT_* environment variables."""
        deadline = os.environ.get('IMGOPT_DEADLINE')
        sizes = os.environ.get('IMGOPT_SIZES', '')
        return cls(
            web_root=os.environ.get('IMGOPT_WEB_ROOT') or None,
            webp_dir=os.environ.get('IMGOPT_WEBP_DIR', '/webp'),
            avif_dir=os.environ.get('IMGOPT_AVIF_DIR', '/avif'),
            sizes=parse_sizes(sizes) if sizes else [],
            recreate=_env_bool('IMGOPT_RECREATE'),
            disabled=_env_bool('IMGOPT_DISABLE'),
            deadline_seconds=float(deadline) if deadline else None,
        )

    def validate(self) -> List[str]:
        """Return a list of configuration errors (empty if valid)."""
        errors = []
        if self.web_root is not None and not os.path.isdir(self.web_root):
            errors.append(f"Web root does not exist: {self.web_root}")
        for size in self.sizes:
            if size <= 0:
                errors.append(f"Sizes must be positive, got {size}")
        if self.deadline_seconds is not None and self.deadline_seconds <= 0:
            errors.append(f"Deadline must be positive, got {self.deadline_seconds}")
        return errors
