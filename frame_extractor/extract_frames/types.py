from dataclasses import dataclass, field
import numbers
from pathlib import Path
import threading
from typing import Callable, Iterator, List, Optional

import numpy as np

from .errors import InvalidConfigurationError

# Score assigned to every frame when quality scoring is disabled
UNSCORED_FRAME_SCORE = 50.0

MAX_INTERVAL_SECONDS = 10.0

ProgressCallback = Callable[[int, int, int, str], None]


class PixelBuffer:
    """
    Decoded frame pixels as a (height, width, channels) uint8 array in RGB or RGBA order.
    16-bit input, as decoded from high bit depth sources, is scaled down to 8 bits.

    The buffer is transient: the sampler releases it as soon as the frame has been
    scored and encoded, so at most one decoded frame is alive at a time.
    """

    def __init__(self, pixels: np.ndarray):
        pixels = np.asarray(pixels)
        if pixels.ndim == 2:
            pixels = np.repeat(pixels[:, :, np.newaxis], 3, axis=2)

        if pixels.ndim != 3 or pixels.shape[2] not in (3, 4):
            raise ValueError(f"Expected an RGB or RGBA image, got array of shape {pixels.shape}")

        if pixels.dtype == np.uint16:
            pixels = (pixels >> 8).astype(np.uint8)
        elif pixels.dtype != np.uint8:
            raise ValueError(f"Expected 8-bit or 16-bit pixels, got dtype {pixels.dtype}")

        self._pixels = pixels

    @classmethod
    def from_bytes(cls, data: bytes, width: int, height: int) -> "PixelBuffer":
        """Build a buffer from a flat RGB/RGBA byte sequence."""
        if width <= 0 or height <= 0:
            raise ValueError(f"Invalid frame dimensions: {width}x{height}")

        n_pixels = width * height
        if len(data) % n_pixels != 0 or len(data) // n_pixels not in (3, 4):
            raise ValueError(
                f"Buffer of {len(data)} bytes does not match a {width}x{height} RGB/RGBA frame"
            )

        channels = len(data) // n_pixels
        pixels = np.frombuffer(data, dtype=np.uint8).reshape(height, width, channels)

        return cls(pixels)

    @property
    def pixels(self) -> np.ndarray:
        if self._pixels is None:
            raise ValueError("Pixel buffer has already been released")
        return self._pixels

    @property
    def width(self) -> int:
        return self.pixels.shape[1]

    @property
    def height(self) -> int:
        return self.pixels.shape[0]

    @property
    def channels(self) -> int:
        return self.pixels.shape[2]

    @property
    def is_released(self) -> bool:
        return self._pixels is None

    def release(self) -> None:
        self._pixels = None


@dataclass
class VideoMetadata:
    """Source properties reported by the decoder when it is opened."""

    duration: float
    fps: float
    width: int
    height: int
    total_frames: int


@dataclass
class ExtractionConfig:
    interval_seconds: float
    quality_scoring: bool = True
    top_percentage: int = 30

    def validate(self) -> None:
        """Reject settings outside the supported ranges before a run starts."""
        interval = self.interval_seconds
        if (
            isinstance(interval, bool)
            or not isinstance(interval, numbers.Real)
            or not 0 < interval <= MAX_INTERVAL_SECONDS
        ):
            raise InvalidConfigurationError(
                f"Frame interval must be in (0, {MAX_INTERVAL_SECONDS:g}] seconds, got {interval!r}"
            )

        percentage = self.top_percentage
        if (
            isinstance(percentage, bool)
            or not isinstance(percentage, numbers.Integral)
            or not 1 <= percentage <= 100
        ):
            raise InvalidConfigurationError(
                f"Top frames percentage must be an integer in [1, 100], got {percentage!r}"
            )


@dataclass
class FrameRecord:
    """One sampled frame: its PNG bytes plus sampling metadata and quality score."""

    index: int
    timestamp: float
    width: int
    height: int
    raw_bytes: Optional[bytes]
    score: float = UNSCORED_FRAME_SCORE

    @property
    def is_released(self) -> bool:
        return self.raw_bytes is None

    def release(self) -> None:
        """Drop the encoded image bytes owned by this record."""
        self.raw_bytes = None


@dataclass
class ExtractionRun:
    """Ordered frame records of one sampling pass, plus the settings that produced them."""

    config: ExtractionConfig
    source_name: str = ""
    records: List[FrameRecord] = field(default_factory=list)
    cancelled: bool = False
    completed: bool = False
    invalidated: bool = False

    def __len__(self) -> int:
        return len(self.records)

    def __iter__(self) -> Iterator[FrameRecord]:
        return iter(self.records)

    def append(self, record: FrameRecord) -> None:
        if record.index != len(self.records):
            raise ValueError(
                f"Frame index {record.index} breaks the contiguous sequence "
                f"(expected {len(self.records)})"
            )
        self.records.append(record)

    def reorder(self, records: List[FrameRecord]) -> None:
        """Replace the record order. The new order must be a permutation of the current one."""
        if sorted(r.index for r in records) != sorted(r.index for r in self.records):
            raise ValueError("Reordering must keep every frame record exactly once")
        self.records = list(records)

    def invalidate(self) -> None:
        """Release every record's bytes. The run must not be used afterwards."""
        for record in self.records:
            record.release()
        self.invalidated = True


class CancellationToken:
    """Cooperative cancellation flag, polled by the sampler once per sample time."""

    def __init__(self):
        self._event = threading.Event()

    def cancel(self) -> None:
        self._event.set()

    @property
    def is_cancelled(self) -> bool:
        return self._event.is_set()


@dataclass
class FrameExtractionContext:
    video_path: Path
    config: ExtractionConfig
    decoder: "FrameDecoder"
    progress_callback: Optional[ProgressCallback] = None
    cancellation_token: CancellationToken = field(default_factory=CancellationToken)

    video_info: Optional[VideoMetadata] = None
    run: Optional[ExtractionRun] = None

    def __post_init__(self):
        self.video_path = Path(self.video_path)
        if not self.video_path.exists():
            raise FileNotFoundError(f"Video file does not exist at: {self.video_path}")


@dataclass
class ProcessingStats:
    """Statistics tracker for one extraction run."""

    frames_sampled: int = 0
    frames_extracted: int = 0
    frames_decode_failed: int = 0
    frames_encode_failed: int = 0
    cancelled: bool = False

    def update(
        self,
        *,
        sampled: bool = False,
        extracted: bool = False,
        decode_failed: bool = False,
        encode_failed: bool = False,
    ):
        """Update statistics counters."""
        if sampled:
            self.frames_sampled += 1
        if extracted:
            self.frames_extracted += 1
        if decode_failed:
            self.frames_decode_failed += 1
        if encode_failed:
            self.frames_encode_failed += 1

    @property
    def success_rate(self) -> float:
        """Percentage of sampled times that produced a frame record."""
        return (
            (self.frames_extracted / self.frames_sampled * 100) if self.frames_sampled > 0 else 0.0
        )

    def log_summary(self, logger, total_frames: int):
        """Log comprehensive statistics summary."""
        logger.info("Extraction statistics:")
        logger.info(f"  - Expected frames: {total_frames}")
        logger.info(f"  - Sample times visited: {self.frames_sampled}")
        logger.info(f"  - Frames extracted: {self.frames_extracted}")
        logger.info(f"  - Decode failures: {self.frames_decode_failed}")
        logger.info(f"  - Encode failures: {self.frames_encode_failed}")
        logger.info(f"  - Cancelled: {self.cancelled}")
        logger.info(f"  - Success rate: {self.success_rate:.1f}%")
