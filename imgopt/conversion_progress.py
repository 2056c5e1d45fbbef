"""
ConversionProgress - Tracks and displays batch conversion progress.
"""

import logging
from typing import Optional

from .conversion_stats import ConversionStats
from .orchestrator import ConversionResult


class ConversionProgress:
    """
    Tracks and displays conversion progress with optional per-file output.
    """

    def __init__(
        self,
        show_files: bool = False,
        log_interval: int = 100,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize progress tracker.

        Args:
            show_files: If True, print each derivative as it's processed
            log_interval: Log summary progress every N sources (when not show_files)
            logger: Optional logger instance
        """
        self.show_files = show_files
        self.log_interval = log_interval
        self.logger = logger or logging.getLogger(__name__)
        self.last_logged = 0

    def on_source_processed(self, result: ConversionResult) -> None:
        """
        Called when every derivative of a source has been handled.

        Args:
            result: The conversion result
        """
        if not self.show_files:
            return

        fmt = result.target_format.name
        for key, outcome in result.outcomes.items():
            label = f"@{key}" if key else "full"
            if outcome.is_usable:
                action = "reused" if outcome.reused else f"encoded q{outcome.quality}"
                size_str = self._format_bytes(outcome.byte_size)
                print(f"  [OK] {result.src} {fmt} {label} -> {outcome.short_path} ({action}, {size_str})")
            else:
                print(f"  [SKIP] {result.src} {fmt} {label} -> {outcome}")

    def on_source_failed(self, src: str, error: str) -> None:
        """Called when a source could not be processed."""
        if self.show_files:
            print(f"  [ERROR] {src} -> {error}")

    def on_progress_update(self, stats: ConversionStats) -> None:
        """
        Called periodically to report overall progress.

        Args:
            stats: Current conversion statistics
        """
        done = stats.sources_done

        if not self.show_files and done - self.last_logged >= self.log_interval:
            self.last_logged = done

            eta_minutes = stats.estimated_remaining_seconds / 60

            self.logger.info(
                f"Progress: {stats.encoded} encoded, {stats.reused} reused, "
                f"{stats.skipped} skipped, {stats.errors} errors "
                f"({stats.rate_per_minute:.1f}/min, "
                f"~{eta_minutes:.0f}m remaining, {stats.remaining_count} left)"
            )

    def on_dry_run(self, src: str, fmt: str) -> None:
        """Called in dry-run mode."""
        if self.show_files:
            print(f"  [DRY RUN] {src} -> would convert to {fmt}")

    @staticmethod
    def _format_bytes(bytes_val: Optional[int]) -> str:
        """Format bytes as human-readable string."""
        if bytes_val is None:
            return "unknown"
        for unit in ['B', 'KB', 'MB', 'GB']:
            if bytes_val < 1024:
                return f"{bytes_val:.1f} {unit}"
            bytes_val /= 1024
        return f"{bytes_val:.1f} TB"

    def __call__(self, stats: ConversionStats) -> None:
        """Allow use as callback for stats updates."""
        self.on_progress_update(stats)
