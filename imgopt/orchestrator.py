"""
ConversionOrchestrator - Produces usable derivatives for a source image.
"""

import logging
import threading
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass, field
from typing import Dict, Iterable, List, Optional, Tuple

from .config import ImgOptConfig
from .derivative import DerivativeArtifact, DerivativeSpec, TargetFormat
from .encoders import Encoder, default_encoders
from .outcome import ConversionOutcome, SkipReason, Skipped, Usable
from .path_locks import PathLocks
from .path_resolver import DerivativePathResolver, DirectoryCreationError
from .quality_ladder import QualityLadderEncoder
from .resize_planner import plan_resize
from .source_image import SourceImage, inspect_source
from .staleness import StalenessOracle


@dataclass(frozen=True)
class ConversionRequest:
    """
    Derivatives wanted for one source in one format.

    Attributes:
        src: Source path (relative to the web root if one is configured)
        target_format: Output format
        widths: Resized widths wanted besides the full-size derivative
        force_recreate: Regenerate even if a fresh derivative exists
        disabled: Return no derivatives without touching the filesystem
    """
    src: str
    target_format: TargetFormat = TargetFormat.WEBP
    widths: Tuple[int, ...] = ()
    force_recreate: bool = False
    disabled: bool = False

    def __post_init__(self):
        if isinstance(self.target_format, str):
            object.__setattr__(self, 'target_format', TargetFormat.from_name(self.target_format))
        widths = sorted(set(int(w) for w in self.widths))
        for width in widths:
            if width <= 0:
                raise ValueError(f"Widths must be positive, got {width}")
        object.__setattr__(self, 'widths', tuple(widths))

    def specs(self) -> List[DerivativeSpec]:
        """Requested derivatives: each width ascending, then full size."""
        specs = [DerivativeSpec(self.target_format, width) for width in self.widths]
        specs.append(DerivativeSpec(self.target_format))
        return specs


@dataclass(frozen=True)
class ConversionResult:
    """
    Outcome of a ConversionRequest, keyed by width (0 = full size).
    """
    src: str
    target_format: TargetFormat
    outcomes: Dict[int, ConversionOutcome] = field(default_factory=dict)
    source_size: Optional[int] = None

    @property
    def paths(self) -> Dict[int, str]:
        """Caller-relative paths of usable derivatives."""
        return {
            key: outcome.short_path
            for key, outcome in self.outcomes.items()
            if outcome.is_usable
        }

    @property
    def is_empty(self) -> bool:
        """True when the original image should be used everywhere."""
        return not self.paths

    @property
    def skip_reasons(self) -> Dict[int, SkipReason]:
        return {
            key: outcome.reason
            for key, outcome in self.outcomes.items()
            if not outcome.is_usable
        }

    def path_for(self, width: int = 0) -> Optional[str]:
        """Derivative path for a width key, or None to use the original."""
        return self.paths.get(width)


class ConversionOrchestrator:
    """
    Composes inspection, resize planning, staleness checks and the quality
    ladder for each requested derivative.

    Holds no per-request state; one instance can serve many threads.
    """

    def __init__(
        self,
        config: Optional[ImgOptConfig] = None,
        encoders: Optional[Dict[TargetFormat, Encoder]] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize orchestrator.

        Args:
            config: Service configuration (default: ImgOptConfig())
            encoders: Encoder per target format (default: Pillow encoders)
            logger: Optional logger instance
        """
        self.config = config or ImgOptConfig()
        self.logger = logger or logging.getLogger(__name__)
        self.encoders = encoders if encoders is not None else default_encoders(self.logger)
        self.resolver = DerivativePathResolver(
            web_root=self.config.web_root,
            subdirs=self.config.subdirs,
            logger=self.logger,
        )
        self.oracle = StalenessOracle(self.logger)
        self._locks = PathLocks()
        self._capabilities: Dict[TargetFormat, bool] = {}
        self._capabilities_lock = threading.Lock()

    def is_available(self, target_format: TargetFormat) -> bool:
        """Whether the target format can be encoded; probed once per format."""
        with self._capabilities_lock:
            if target_format not in self._capabilities:
                encoder = self.encoders.get(target_format)
                available = encoder is not None and encoder.is_available()
                if not available:
                    self.logger.warning(f"{target_format.name} encoder is not available")
                self._capabilities[target_format] = available
            return self._capabilities[target_format]

    def build_request(
        self,
        src: str,
        target_format: TargetFormat = TargetFormat.WEBP,
        widths: Optional[Iterable[int]] = None,
        force_recreate: bool = False,
        disabled: bool = False
    ) -> ConversionRequest:
        """Create a request, falling back to the configured widths."""
        if widths is None:
            widths = self.config.sizes
        return ConversionRequest(
            src=src,
            target_format=target_format,
            widths=tuple(widths),
            force_recreate=force_recreate,
            disabled=disabled,
        )

    def convert(self, request: ConversionRequest) -> ConversionResult:
        """
        Get or create every derivative in a request.

        Never raises for conversion problems; each entry is either Usable
        or Skipped with a reason.

        Args:
            request: The conversion request

        Returns:
            ConversionResult keyed by width (0 = full size)
        """
        specs = request.specs()

        def skip_all(
            reason: SkipReason,
            detail: str = '',
            source_size: Optional[int] = None
        ) -> ConversionResult:
            self.logger.debug(f"Skipping {request.src} ({request.target_format.name}): {reason.value}")
            outcomes = {spec.width_key: Skipped(reason, detail) for spec in specs}
            return ConversionResult(request.src, request.target_format, outcomes, source_size)

        if request.disabled or self.config.disabled:
            return skip_all(SkipReason.DISABLED)

        if not self.is_available(request.target_format):
            return skip_all(SkipReason.CAPABILITY_UNAVAILABLE, request.target_format.name)

        source = inspect_source(self.resolver.source_path(request.src), self.logger)
        if not source.exists:
            return skip_all(SkipReason.MISSING_SOURCE, source.path)
        if source.is_empty:
            return skip_all(SkipReason.EMPTY_SOURCE, source.path, 0)
        if source.format is None:
            return skip_all(SkipReason.UNSUPPORTED_FORMAT, source.path, source.byte_size)

        force_recreate = request.force_recreate or self.config.recreate
        ladder = QualityLadderEncoder(
            self.encoders[request.target_format],
            deadline_seconds=self.config.deadline_seconds,
            logger=self.logger,
        )

        outcomes = {}
        for spec in specs:
            outcome = self._convert_one(request.src, source, spec, ladder, force_recreate)
            if not outcome.is_usable:
                self.logger.debug(f"{request.src} @{spec.width_key}: {outcome}")
            outcomes[spec.width_key] = outcome

        result = ConversionResult(request.src, request.target_format, outcomes, source.byte_size)
        self.logger.debug(
            f"{request.src} ({request.target_format.name}): "
            f"{len(result.paths)}/{len(specs)} derivatives usable"
        )
        return result

    def convert_many(
        self,
        requests: Iterable[ConversionRequest],
        workers: int = 1
    ) -> List[ConversionResult]:
        """Convert independent requests, optionally on a thread pool."""
        requests = list(requests)
        if workers <= 1 or len(requests) <= 1:
            return [self.convert(request) for request in requests]
        with ThreadPoolExecutor(max_workers=workers) as pool:
            return list(pool.map(self.convert, requests))

    def _convert_one(
        self,
        src: str,
        source: SourceImage,
        spec: DerivativeSpec,
        ladder: QualityLadderEncoder,
        force_recreate: bool
    ) -> ConversionOutcome:
        """Resolve, check and (re)generate a single derivative."""
        size = None
        if spec.target_width is not None:
            if source.dimensions is None:
                return Skipped(SkipReason.ENCODE_FAILURE, "cannot read image dimensions")
            size = plan_resize(source.pixel_width, source.pixel_height, spec.target_width)
            if size is None:
                return Skipped(
                    SkipReason.INVALID_RESIZE_TARGET,
                    f"{spec.target_width} >= {source.pixel_width}",
                )

        resolved = self.resolver.resolve(src, spec.target_format, size)
        try:
            self.resolver.ensure_directory(resolved)
        except DirectoryCreationError as e:
            self.logger.warning(str(e))
            return Skipped(SkipReason.DIRECTORY_CREATION_FAILURE, str(e))

        with self._locks.hold(resolved.full_path):
            artifact = DerivativeArtifact.from_path(resolved.full_path)
            if self.oracle.should_reuse(source, artifact, force_recreate):
                return Usable(
                    path=resolved.full_path,
                    short_path=resolved.short_path,
                    byte_size=artifact.byte_size,
                    reused=True,
                )
            return ladder.encode(source, resolved, size)
