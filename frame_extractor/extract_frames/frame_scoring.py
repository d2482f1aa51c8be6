from dataclasses import dataclass
from typing import Union

import numpy as np

from .types import PixelBuffer

SHARPNESS_WEIGHT = 30.0
BRIGHTNESS_WEIGHT = 25.0
CONTRAST_WEIGHT = 25.0
COMPOSITION_WEIGHT = 20.0

# Laplacian energy that earns full sharpness credit
SHARPNESS_NORMALIZER = 1000.0
# Luma stddev that earns full contrast credit
CONTRAST_NORMALIZER = 50.0

BRIGHTNESS_RANGE = (50.0, 200.0)
BRIGHTNESS_CENTER = 125.0
BRIGHTNESS_FALLOFF = 5.0

EDGE_THRESHOLD = 50.0
EDGE_DENSITY_RANGE = (0.05, 0.15)
EDGE_DENSITY_FALLOFF = 0.1

LUMA_COEFFICIENTS = np.array([0.299, 0.587, 0.114])

FrameBuffer = Union[PixelBuffer, np.ndarray, bytes, bytearray, memoryview]


@dataclass
class QualityScores:
    """Weighted contribution of each quality factor for one frame."""

    sharpness: float
    brightness: float
    contrast: float
    composition: float

    @property
    def total(self) -> float:
        total = self.sharpness + self.brightness + self.contrast + self.composition
        return float(min(100.0, max(0.0, total)))


def _as_pixels(buffer: FrameBuffer, width: int, height: int) -> np.ndarray:
    if isinstance(buffer, PixelBuffer):
        return buffer.pixels

    if isinstance(buffer, np.ndarray):
        if buffer.ndim == 3:
            return buffer
        # Flat array, interpreted like a byte sequence
        buffer = buffer.astype(np.uint8, copy=False).tobytes()

    return PixelBuffer.from_bytes(bytes(buffer), width, height).pixels


def compute_luma(pixels: np.ndarray) -> np.ndarray:
    """Per-pixel luma (0-255 scale) from the RGB channels; alpha is ignored."""
    rgb = pixels[:, :, :3].astype(np.float64)
    return rgb @ LUMA_COEFFICIENTS


def compute_sharpness_score(luma: np.ndarray) -> float:
    """
    Sharpness contribution from the mean squared 4-neighbour Laplacian.

    Only interior pixels are evaluated, so frames narrower or shorter than
    3 pixels get no sharpness credit.
    """
    height, width = luma.shape
    if height < 3 or width < 3:
        return 0.0

    laplacian = (
        -4 * luma[1:-1, 1:-1]
        + luma[1:-1, :-2]
        + luma[1:-1, 2:]
        + luma[:-2, 1:-1]
        + luma[2:, 1:-1]
    )
    energy = float(np.mean(laplacian**2))

    return min(SHARPNESS_WEIGHT, (energy / SHARPNESS_NORMALIZER) * SHARPNESS_WEIGHT)


def compute_brightness_score(luma: np.ndarray) -> float:
    """Full credit inside the well-exposed band, linear falloff outside it."""
    mean = float(np.mean(luma))

    low, high = BRIGHTNESS_RANGE
    if low <= mean <= high:
        return BRIGHTNESS_WEIGHT

    return max(0.0, BRIGHTNESS_WEIGHT - abs(mean - BRIGHTNESS_CENTER) / BRIGHTNESS_FALLOFF)


def compute_contrast_score(luma: np.ndarray) -> float:
    stddev = float(np.std(luma))
    return min(CONTRAST_WEIGHT, (stddev / CONTRAST_NORMALIZER) * CONTRAST_WEIGHT)


def compute_edge_density(luma: np.ndarray) -> float:
    """Fraction of interior pixels whose right/below gradient magnitude exceeds the threshold."""
    height, width = luma.shape
    if height < 3 or width < 3:
        return 0.0

    current = luma[1:-1, 1:-1]
    dx = current - luma[1:-1, 2:]
    dy = current - luma[2:, 1:-1]
    magnitude = np.sqrt(dx**2 + dy**2)

    edge_count = int(np.count_nonzero(magnitude > EDGE_THRESHOLD))

    return edge_count / current.size


def compute_composition_score(luma: np.ndarray) -> float:
    """Reward edge densities inside the framing band; penalise flat or noisy frames."""
    height, width = luma.shape
    if height < 3 or width < 3:
        return 0.0

    density = compute_edge_density(luma)

    low, high = EDGE_DENSITY_RANGE
    if low <= density <= high:
        factor = 1.0
    elif density < low:
        factor = density / low
    else:
        factor = max(0.0, 1 - (density - high) / EDGE_DENSITY_FALLOFF)

    return factor * COMPOSITION_WEIGHT


def analyze_frame_quality(buffer: FrameBuffer, width: int, height: int) -> QualityScores:
    """
    Score the four quality factors of a decoded frame.

    :param buffer: PixelBuffer, (height, width, channels) array, or flat RGB/RGBA bytes.
    :param width: Frame width in pixels.
    :param height: Frame height in pixels.
    :return: QualityScores with each weighted contribution.
    """
    luma = compute_luma(_as_pixels(buffer, width, height))

    return QualityScores(
        sharpness=compute_sharpness_score(luma),
        brightness=compute_brightness_score(luma),
        contrast=compute_contrast_score(luma),
        composition=compute_composition_score(luma),
    )


def score_frame(buffer: FrameBuffer, width: int, height: int) -> float:
    """Reference-free quality score of a frame in [0, 100]."""
    return analyze_frame_quality(buffer, width, height).total
