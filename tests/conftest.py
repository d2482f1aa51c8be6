"""Shared fixtures: synthetic frames and an in-memory decoder."""

from pathlib import Path

import numpy as np
import pytest

from frame_extractor.extract_frames import (
    DecodeUnavailableError,
    FrameDecodeError,
    FrameDecoder,
    PixelBuffer,
    VideoMetadata,
)


def make_gray_frame(value: int, width: int = 8, height: int = 8) -> np.ndarray:
    return np.full((height, width, 3), value, dtype=np.uint8)


def make_checkerboard(width: int = 8, height: int = 8) -> np.ndarray:
    yy, xx = np.indices((height, width))
    board = np.where((xx + yy) % 2 == 0, 255, 0).astype(np.uint8)
    return np.repeat(board[:, :, np.newaxis], 3, axis=2)


class FakeFrameDecoder(FrameDecoder):
    """Decoder serving synthetic frames for a video of a given duration."""

    name = "fake"

    def __init__(
        self,
        duration: float,
        frame_factory=None,
        fail_at=(),
        unavailable_at=None,
        unavailable_on_open=False,
    ):
        super().__init__()
        self.duration = duration
        self.frame_factory = frame_factory or (lambda t: make_gray_frame(128))
        self.fail_at = set(fail_at)
        self.unavailable_at = unavailable_at
        self.unavailable_on_open = unavailable_on_open

        self.requested_times = []
        self.buffers = []
        self.opened = False
        self.closed = False

    def open(self, video_path: Path) -> VideoMetadata:
        if self.unavailable_on_open:
            raise DecodeUnavailableError("backend missing")

        self.opened = True
        self.video_path = Path(video_path)
        self.video_info = VideoMetadata(
            duration=self.duration,
            fps=10.0,
            width=8,
            height=8,
            total_frames=int(self.duration * 10),
        )
        return self.video_info

    def decode_frame_at(self, time_seconds: float) -> PixelBuffer:
        self.requested_times.append(time_seconds)

        if self.unavailable_at is not None and time_seconds >= self.unavailable_at:
            raise DecodeUnavailableError("backend crashed")
        if time_seconds in self.fail_at:
            raise FrameDecodeError(f"corrupt frame at {time_seconds}s")

        buffer = PixelBuffer(self.frame_factory(time_seconds))
        self.buffers.append(buffer)
        return buffer

    def close(self) -> None:
        self.closed = True


@pytest.fixture
def video_path(tmp_path) -> Path:
    path = tmp_path / "clip.mp4"
    path.write_bytes(b"")
    return path


@pytest.fixture
def fake_decoder_factory():
    def factory(duration: float = 9.6, **kwargs) -> FakeFrameDecoder:
        return FakeFrameDecoder(duration, **kwargs)

    return factory
