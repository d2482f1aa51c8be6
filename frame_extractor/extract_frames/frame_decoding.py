from abc import ABC, abstractmethod
import logging
from pathlib import Path
import shutil
import subprocess
from typing import Optional

import cv2
import numpy as np
import supervision as sv

from .errors import DecodeUnavailableError, FrameDecodeError, FrameEncodeError
from .types import PixelBuffer, VideoMetadata

logger = logging.getLogger(__name__)

DECODER_BACKENDS = ("auto", "ffmpeg", "opencv")


def probe_video(video_path: Path) -> VideoMetadata:
    """Read duration, frame rate and resolution of a video. Raise if it cannot be decoded."""
    try:
        video_info = sv.VideoInfo.from_video_path(str(video_path))
    except Exception as e:
        raise DecodeUnavailableError(f"Cannot open video {video_path}: {e}") from e

    if not video_info.total_frames or not video_info.fps:
        raise DecodeUnavailableError(f"Video has no frames: {video_path}")

    return VideoMetadata(
        duration=video_info.total_frames / video_info.fps,
        fps=float(video_info.fps),
        width=video_info.width,
        height=video_info.height,
        total_frames=video_info.total_frames,
    )


def _bgr_to_pixel_buffer(frame: np.ndarray) -> PixelBuffer:
    if frame.ndim == 3 and frame.shape[2] == 4:
        return PixelBuffer(cv2.cvtColor(frame, cv2.COLOR_BGRA2RGBA))
    if frame.ndim == 2:
        return PixelBuffer(cv2.cvtColor(frame, cv2.COLOR_GRAY2RGB))
    return PixelBuffer(cv2.cvtColor(frame, cv2.COLOR_BGR2RGB))


def encode_png(pixels: PixelBuffer) -> bytes:
    """Encode an RGB/RGBA pixel buffer as PNG bytes."""
    try:
        frame = pixels.pixels
        if frame.shape[2] == 4:
            frame = cv2.cvtColor(frame, cv2.COLOR_RGBA2BGRA)
        else:
            frame = cv2.cvtColor(frame, cv2.COLOR_RGB2BGR)

        ok, encoded = cv2.imencode(".png", frame)
    except (cv2.error, ValueError) as e:
        raise FrameEncodeError(f"PNG encoding failed: {e}") from e

    if not ok:
        raise FrameEncodeError("PNG encoding failed")

    return encoded.tobytes()


class FrameDecoder(ABC):
    """Capability to decode the frame shown at a given time of a video."""

    name = "base"

    def __init__(self):
        self.video_path: Optional[Path] = None
        self.video_info: Optional[VideoMetadata] = None

    def open(self, video_path: Path) -> VideoMetadata:
        """Prepare the source for decoding and return its metadata."""
        self.video_path = Path(video_path)
        self.video_info = probe_video(self.video_path)
        self._open_backend()

        logger.info(
            f"Opened {self.video_path.name} with {self.name} decoder - "
            f"Duration: {self.video_info.duration:.2f}s, FPS: {self.video_info.fps}, "
            f"Resolution: {self.video_info.width}x{self.video_info.height}"
        )
        return self.video_info

    def _open_backend(self) -> None:
        pass

    @abstractmethod
    def decode_frame_at(self, time_seconds: float) -> PixelBuffer:
        """Decode the frame at `time_seconds`. Raise FrameDecodeError on failure."""

    def close(self) -> None:
        pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc, tb):
        self.close()


class FfmpegFrameDecoder(FrameDecoder):
    """Native decode pipeline: one ffmpeg invocation per sample time, PNG over a pipe."""

    name = "ffmpeg"

    def __init__(self, ffmpeg_binary: str = "ffmpeg"):
        super().__init__()
        self.ffmpeg_binary = ffmpeg_binary

    @staticmethod
    def is_available(ffmpeg_binary: str = "ffmpeg") -> bool:
        return shutil.which(ffmpeg_binary) is not None

    def _open_backend(self) -> None:
        if not self.is_available(self.ffmpeg_binary):
            raise DecodeUnavailableError(f"{self.ffmpeg_binary} binary not found on PATH")

    def decode_frame_at(self, time_seconds: float) -> PixelBuffer:
        if self.video_path is None:
            raise DecodeUnavailableError("Decoder has not been opened")

        cmd = [
            self.ffmpeg_binary,
            "-v", "error",
            "-i", str(self.video_path),
            "-ss", f"{time_seconds:.3f}",
            "-frames:v", "1",
            "-pix_fmt", "rgb24",
            "-f", "image2pipe",
            "-vcodec", "png",
            "-",
        ]

        try:
            result = subprocess.run(cmd, capture_output=True, check=True)
        except subprocess.CalledProcessError as e:
            stderr = e.stderr.decode(errors="replace").strip()
            raise FrameDecodeError(f"ffmpeg failed at {time_seconds}s: {stderr}") from e
        except OSError as e:
            raise DecodeUnavailableError(f"Cannot run {self.ffmpeg_binary}: {e}") from e

        if not result.stdout:
            raise FrameDecodeError(f"ffmpeg returned no frame at {time_seconds}s")

        frame = cv2.imdecode(np.frombuffer(result.stdout, dtype=np.uint8), cv2.IMREAD_UNCHANGED)
        if frame is None:
            raise FrameDecodeError(f"Could not decode ffmpeg output at {time_seconds}s")

        return _bgr_to_pixel_buffer(frame)


class OpenCVFrameDecoder(FrameDecoder):
    """Seek-and-capture fallback built on cv2.VideoCapture."""

    name = "opencv"

    def __init__(self):
        super().__init__()
        self.capture: Optional[cv2.VideoCapture] = None

    def _open_backend(self) -> None:
        self.capture = cv2.VideoCapture(str(self.video_path))
        if not self.capture.isOpened():
            self.capture.release()
            self.capture = None
            raise DecodeUnavailableError(f"OpenCV cannot open video {self.video_path}")

    def decode_frame_at(self, time_seconds: float) -> PixelBuffer:
        if self.capture is None:
            raise DecodeUnavailableError("Decoder has not been opened")

        if self.video_info is not None and time_seconds >= self.video_info.duration:
            raise FrameDecodeError(
                f"Time {time_seconds}s is beyond video duration {self.video_info.duration:.2f}s"
            )

        self.capture.set(cv2.CAP_PROP_POS_MSEC, time_seconds * 1000.0)
        ok, frame = self.capture.read()
        if not ok or frame is None:
            raise FrameDecodeError(f"Failed to read frame at {time_seconds}s")

        return _bgr_to_pixel_buffer(frame)

    def close(self) -> None:
        if self.capture is not None:
            self.capture.release()
            self.capture = None


def select_frame_decoder(backend: str = "auto") -> FrameDecoder:
    """Pick the decode backend for a run: ffmpeg when available, OpenCV otherwise."""
    if backend not in DECODER_BACKENDS:
        raise ValueError(f"Unknown decoder backend '{backend}'. Expected one of {DECODER_BACKENDS}")

    if backend == "ffmpeg":
        return FfmpegFrameDecoder()
    if backend == "opencv":
        return OpenCVFrameDecoder()

    if FfmpegFrameDecoder.is_available():
        logger.info("Using ffmpeg frame decoder")
        return FfmpegFrameDecoder()

    logger.info("ffmpeg not available, falling back to OpenCV frame decoder")
    return OpenCVFrameDecoder()
