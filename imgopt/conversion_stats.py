"""
ConversionStats - Statistics for a batch conversion run.
"""

import threading
import time
from collections import Counter
from dataclasses import dataclass, field
from typing import Dict, List

from .orchestrator import ConversionResult
from .outcome import SkipReason


@dataclass
class ConversionStats:
    """
    Statistics for a batch conversion run.

    Attributes:
        total_to_process: Requests to convert (one per source and format)
        sources_done: Requests completed
        encoded: Derivatives written in this run
        reused: Fresh derivatives kept as-is
        skipped: Derivatives skipped (original should be served)
        errors: Derivatives that failed to encode
        bytes_source: Total source bytes behind usable derivatives
        bytes_derivative: Total bytes of usable derivatives
        skip_reasons: Count of skips per reason
        start_time: Start timestamp
        error_details: List of error messages
    """
    total_to_process: int = 0
    sources_done: int = 0
    encoded: int = 0
    reused: int = 0
    skipped: int = 0
    errors: int = 0
    bytes_source: int = 0
    bytes_derivative: int = 0
    skip_reasons: Counter = field(default_factory=Counter)
    start_time: float = field(default_factory=time.time)
    error_details: List[str] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False, compare=False)

    def record(self, result: ConversionResult) -> None:
        """Tally every outcome of a conversion result."""
        source_size = result.source_size or 0
        with self._lock:
            self.sources_done += 1
            for key, outcome in result.outcomes.items():
                if outcome.is_usable:
                    if outcome.reused:
                        self.reused += 1
                    else:
                        self.encoded += 1
                    self.bytes_source += source_size
                    self.bytes_derivative += outcome.byte_size
                elif outcome.reason == SkipReason.ENCODE_FAILURE:
                    self.errors += 1
                    self.error_details.append(f"{result.src} @{key}: {outcome}")
                else:
                    self.skipped += 1
                if not outcome.is_usable:
                    self.skip_reasons[outcome.reason.value] += 1

    def record_error(self, src: str, error: str) -> None:
        """Record a source that could not be processed at all."""
        with self._lock:
            self.sources_done += 1
            self.errors += 1
            self.error_details.append(f"{src}: {error}")

    @property
    def bytes_saved(self) -> int:
        """Bytes saved by serving derivatives instead of originals."""
        return self.bytes_source - self.bytes_derivative

    @property
    def elapsed_seconds(self) -> float:
        """Elapsed time in seconds."""
        return time.time() - self.start_time

    @property
    def rate_per_second(self) -> float:
        """Processing rate in requests per second."""
        if self.elapsed_seconds > 0:
            return self.sources_done / self.elapsed_seconds
        return 0.0

    @property
    def rate_per_minute(self) -> float:
        """Processing rate in requests per minute."""
        return self.rate_per_second * 60

    @property
    def remaining_count(self) -> int:
        """Requests remaining to process."""
        return self.total_to_process - self.sources_done

    @property
    def estimated_remaining_seconds(self) -> float:
        """Estimated time remaining in seconds."""
        if self.rate_per_second > 0:
            return self.remaining_count / self.rate_per_second
        return 0.0

    def reason_counts(self) -> Dict[str, int]:
        return dict(self.skip_reasons)
