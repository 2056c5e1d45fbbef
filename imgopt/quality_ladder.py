"""
QualityLadderEncoder - Encodes a derivative at decreasing quality until it
is smaller than its source.
"""

import logging
import os
import tempfile
import time
from typing import List, Optional, Tuple

from PIL import Image

from .encoders import Encoder
from .outcome import ConversionOutcome, SkipReason, Skipped, Usable
from .path_resolver import ResolvedPath
from .source_image import SourceImage


RESAMPLE = Image.Resampling.BILINEAR
FILE_MODE = 0o644


class QualityLadderEncoder:
    """
    Produces one derivative file from a source image.

    Qualities 100, 95, ..., 70 are tried in order; the first encoding
    strictly smaller than the source wins. The written file gets the
    source's modification time so later calls can tell it is fresh.
    """

    START_QUALITY = 100
    QUALITY_STEP = 5
    MIN_QUALITY = 70

    def __init__(
        self,
        encoder: Encoder,
        start: int = START_QUALITY,
        step: int = QUALITY_STEP,
        floor: int = MIN_QUALITY,
        deadline_seconds: Optional[float] = None,
        logger: Optional[logging.Logger] = None
    ):
        """
        Initialize the encoder.

        Args:
            encoder: Format encoder to use for each attempt
            start: First quality tried
            step: Quality decrement between attempts
            floor: Lowest quality ever tried (inclusive)
            deadline_seconds: Optional time budget for the whole ladder;
                checked before each attempt after the first
            logger: Optional logger instance
        """
        if step <= 0:
            raise ValueError(f"Quality step must be positive, got {step}")
        if floor > start:
            raise ValueError(f"Quality floor {floor} is above start {start}")
        self.encoder = encoder
        self.start = start
        self.step = step
        self.floor = floor
        self.deadline_seconds = deadline_seconds
        self.logger = logger or logging.getLogger(__name__)

    def ladder(self) -> List[int]:
        """Qualities attempted, in order."""
        return list(range(self.start, self.floor - 1, -self.step))

    def encode(
        self,
        source: SourceImage,
        destination: ResolvedPath,
        size: Optional[Tuple[int, int]] = None
    ) -> ConversionOutcome:
        """
        Decode the source, optionally resize it, and write the derivative.

        Never raises: decode, encode and write failures are reported as
        Skipped(ENCODE_FAILURE).

        Args:
            source: Source image snapshot
            destination: Where to write the derivative
            size: Exact (width, height) to resample to, or None

        Returns:
            Usable on success, Skipped otherwise
        """
        try:
            img = self._decode(source.path, size)
        except Exception as e:
            self.logger.warning(f"Cannot decode {source.path}: {e}")
            return Skipped(SkipReason.ENCODE_FAILURE, str(e))

        try:
            outcome, data = self._search(img, source, destination)
        except Exception as e:
            self.logger.warning(
                f"{self.encoder.target_format.name} encoding failed for {source.path}: {e}"
            )
            return Skipped(SkipReason.ENCODE_FAILURE, str(e))
        finally:
            img.close()

        if data is None:
            return outcome

        try:
            self._write_atomic(destination.full_path, data, source.modified_ns)
        except OSError as e:
            self.logger.warning(f"Cannot write {destination.full_path}: {e}")
            return Skipped(SkipReason.ENCODE_FAILURE, str(e))

        return outcome

    def _decode(self, path: str, size: Optional[Tuple[int, int]]) -> Image.Image:
        """Load the source as RGB/RGBA, resampled to size if given."""
        with Image.open(path) as opened:
            img = opened.convert(self._target_mode(opened))

        if size is not None and img.size != size:
            resized = img.resize(size, RESAMPLE)
            img.close()
            img = resized

        return img

    @staticmethod
    def _target_mode(img: Image.Image) -> str:
        """Mode to normalize to; palette and alpha images keep transparency."""
        if img.mode in ('RGBA', 'LA', 'PA', 'P', 'RGBa', 'La'):
            return 'RGBA'
        if 'transparency' in img.info:
            return 'RGBA'
        return 'RGB'

    def _search(
        self,
        img: Image.Image,
        source: SourceImage,
        destination: ResolvedPath
    ) -> Tuple[ConversionOutcome, Optional[bytes]]:
        """Walk down the quality ladder until the output beats the source."""
        started = time.monotonic()
        data = b''
        attempts = []

        for quality in self.ladder():
            if attempts and self._deadline_passed(started):
                self.logger.info(
                    f"Deadline of {self.deadline_seconds}s passed after "
                    f"{len(attempts)} attempts: {destination.full_path}"
                )
                return Skipped(SkipReason.DEADLINE_EXCEEDED, f"after quality {attempts[-1]}"), None

            data = self.encoder.encode(img, quality)
            attempts.append(quality)
            if len(data) < source.byte_size:
                self.logger.debug(
                    f"Encoded {destination.full_path} at quality {quality} "
                    f"({len(data)} < {source.byte_size} bytes)"
                )
                outcome = Usable(
                    path=destination.full_path,
                    short_path=destination.short_path,
                    byte_size=len(data),
                    reused=False,
                    quality=quality,
                )
                return outcome, data

        self.logger.info(
            f"No size improvement at qualities {attempts[0]}-{attempts[-1]} "
            f"({len(data)} >= {source.byte_size} bytes): {source.path}"
        )
        self._remove_stale(destination.full_path)
        return Skipped(SkipReason.NO_SIZE_IMPROVEMENT, f"{len(data)} >= {source.byte_size} bytes"), None

    def _deadline_passed(self, started: float) -> bool:
        if self.deadline_seconds is None:
            return False
        return time.monotonic() - started > self.deadline_seconds

    def _remove_stale(self, path: str) -> None:
        """Remove an old derivative that can no longer be served."""
        try:
            os.remove(path)
            self.logger.debug(f"Removed stale derivative: {path}")
        except FileNotFoundError:
            pass
        except OSError as e:
            self.logger.warning(f"Cannot remove stale derivative {path}: {e}")

    @staticmethod
    def _write_atomic(path: str, data: bytes, modified_ns: Optional[int]) -> None:
        """Write via a temporary file and rename it into place."""
        fd, tmp_path = tempfile.mkstemp(prefix='.', suffix='.tmp', dir=os.path.dirname(path))
        try:
            with os.fdopen(fd, 'wb') as f:
                f.write(data)
            os.chmod(tmp_path, FILE_MODE)
            if modified_ns is not None:
                os.utime(tmp_path, ns=(time.time_ns(), modified_ns))
            os.replace(tmp_path, path)
        except BaseException:
            try:
                os.remove(tmp_path)
            except OSError:
                pass
            raise
