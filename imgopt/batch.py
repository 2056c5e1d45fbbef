"""
BatchConverter - Converts every source found under a web root.
"""

import logging
import time
from concurrent.futures import ThreadPoolExecutor
from typing import Iterable, List, Optional

from .conversion_progress import ConversionProgress
from .conversion_stats import ConversionStats
from .derivative import TargetFormat
from .orchestrator import ConversionOrchestrator, ConversionRequest


class BatchConverter:
    """
    Pre-generates derivatives for many sources.

    Each source is converted once per target format; fresh derivatives are
    reused, so re-running a batch only re-encodes what changed.
    """

    def __init__(
        self,
        orchestrator: ConversionOrchestrator,
        formats: Iterable[TargetFormat] = (TargetFormat.WEBP,),
        widths: Optional[Iterable[int]] = None,
        cadence: float = 0.0,
        workers: int = 1,
        dry_run: bool = False,
        force_recreate: bool = False,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize batch converter.

        Args:
            orchestrator: Orchestrator doing the actual conversions
            formats: Target formats to produce for each source
            widths: Widths to produce (None = the orchestrator's configured sizes)
            cadence: Seconds to sleep between sources (sequential mode only)
            workers: Number of worker threads (1 = sequential)
            dry_run: If True, only report what would be converted
            force_recreate: Regenerate every derivative
            logger: Optional logger instance
        """
        self.orchestrator = orchestrator
        self.formats = list(formats)
        self.widths = widths
        self.cadence = cadence
        self.workers = max(1, workers)
        self.dry_run = dry_run
        self.force_recreate = force_recreate
        self.logger = logger or logging.getLogger(__name__)
        self.stats = ConversionStats()
        self._stop_requested = False

    def stop(self) -> None:
        """Request the converter to stop after the current source."""
        self._stop_requested = True

    def run(
        self,
        sources: Iterable[str],
        progress: Optional[ConversionProgress] = None,
        limit: Optional[int] = None
    ) -> ConversionStats:
        """
        Convert sources.

        Args:
            sources: Source paths (web-root relative)
            progress: Optional progress tracker
            limit: Optional limit on number of sources

        Returns:
            ConversionStats with results
        """
        if self._stop_requested:
            self.logger.info("Stop was requested before conversion started")
            self.stats = ConversionStats(total_to_process=0)
            return self.stats

        requests = self._build_requests(sources, limit)
        self.stats = ConversionStats(total_to_process=len(requests))

        mode_str = " [DRY RUN]" if self.dry_run else ""
        formats_str = ', '.join(f.name for f in self.formats)
        self.logger.info(
            f"Starting conversion: {len(requests)} requests ({formats_str}){mode_str}"
        )

        if self.workers > 1 and not self.dry_run:
            self._run_pool(requests, progress)
        else:
            self._run_sequential(requests, progress)

        self.logger.info(
            f"Conversion complete: {self.stats.encoded} encoded, "
            f"{self.stats.reused} reused, {self.stats.skipped} skipped, "
            f"{self.stats.errors} errors ({self.stats.elapsed_seconds:.1f}s)"
        )
        return self.stats

    def _build_requests(self, sources: Iterable[str], limit: Optional[int]) -> List[ConversionRequest]:
        requests = []
        for count, src in enumerate(sources, start=1):
            for fmt in self.formats:
                requests.append(self.orchestrator.build_request(
                    src,
                    target_format=fmt,
                    widths=self.widths,
                    force_recreate=self.force_recreate,
                ))
            if limit and count >= limit:
                self.logger.info(f"Stopping at limit ({limit})")
                break
        return requests

    def _run_sequential(
        self,
        requests: List[ConversionRequest],
        progress: Optional[ConversionProgress]
    ) -> None:
        for request in requests:
            if self._stop_requested:
                self.logger.info("Stop requested, halting conversion")
                break

            if self.dry_run:
                self._process_dry_run(request, progress)
            else:
                self._process_request(request, progress)

            if progress:
                progress.on_progress_update(self.stats)

            if self.cadence > 0 and not self.dry_run:
                time.sleep(self.cadence)

    def _run_pool(
        self,
        requests: List[ConversionRequest],
        progress: Optional[ConversionProgress]
    ) -> None:
        def work(request: ConversionRequest) -> None:
            if self._stop_requested:
                return
            self._process_request(request, progress)
            if progress:
                progress.on_progress_update(self.stats)

        with ThreadPoolExecutor(max_workers=self.workers) as pool:
            list(pool.map(work, requests))

    def _process_dry_run(
        self,
        request: ConversionRequest,
        progress: Optional[ConversionProgress]
    ) -> None:
        if progress:
            progress.on_dry_run(request.src, request.target_format.name)
        else:
            self.logger.info(f"[DRY RUN] Would convert: {request.src} ({request.target_format.name})")
        self.stats.sources_done += 1

    def _process_request(
        self,
        request: ConversionRequest,
        progress: Optional[ConversionProgress]
    ) -> bool:
        """Convert one request; unexpected faults are counted, not raised."""
        try:
            result = self.orchestrator.convert(request)
        except Exception as e:
            error_msg = f"Error processing {request.src}: {e}"
            self.logger.error(error_msg)
            self.stats.record_error(request.src, str(e))
            if progress:
                progress.on_source_failed(request.src, str(e))
            return False

        self.stats.record(result)
        if progress:
            progress.on_source_processed(result)
        else:
            self.logger.debug(
                f"Converted: {request.src} ({request.target_format.name}) "
                f"{len(result.paths)} usable [{self.stats.sources_done}/{self.stats.total_to_process}]"
            )
        return True
