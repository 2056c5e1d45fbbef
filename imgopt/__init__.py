"""
Next-gen image derivatives (WEBP/AVIF) for PNG and JPEG sources.

For each source image and requested width, either returns a derivative
that is fresh and smaller than the original, or tells the caller to keep
serving the original.

Derivatives are stored next to their source:
    /images/product/extra.png -> /images/product/webp/extra.webp
                                 /images/product/webp/extra@576x413.webp
"""

__version__ = "1.0.0"

from .config import ImgOptConfig
from .derivative import TargetFormat, DerivativeSpec, DerivativeArtifact
from .outcome import SkipReason, Usable, Skipped, ConversionOutcome
from .source_image import SourceFormat, SourceImage, inspect_source
from .resize_planner import plan_resize
from .path_resolver import DerivativePathResolver, ResolvedPath, DirectoryCreationError
from .staleness import StalenessOracle
from .encoders import Encoder, WebpEncoder, AvifEncoder, default_encoders
from .quality_ladder import QualityLadderEncoder
from .orchestrator import ConversionOrchestrator, ConversionRequest, ConversionResult
from .conversion_stats import ConversionStats
from .conversion_progress import ConversionProgress
from .scanner import SourceScanner
from .batch import BatchConverter

__all__ = [
    "ImgOptConfig",
    "TargetFormat",
    "DerivativeSpec",
    "DerivativeArtifact",
    "SkipReason",
    "Usable",
    "Skipped",
    "ConversionOutcome",
    "SourceFormat",
    "SourceImage",
    "inspect_source",
    "plan_resize",
    "DerivativePathResolver",
    "ResolvedPath",
    "DirectoryCreationError",
    "StalenessOracle",
    "Encoder",
    "WebpEncoder",
    "AvifEncoder",
    "default_encoders",
    "QualityLadderEncoder",
    "ConversionOrchestrator",
    "ConversionRequest",
    "ConversionResult",
    "ConversionStats",
    "ConversionProgress",
    "SourceScanner",
    "BatchConverter",
]
