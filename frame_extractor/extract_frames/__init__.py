# extract_frames/__init__.py
from .errors import (
    DecodeUnavailableError,
    ExtractionInProgressError,
    FrameDecodeError,
    FrameEncodeError,
    FrameExtractorError,
    InvalidConfigurationError,
    NoFramesExtractedError,
)
from .frame_decoding import (
    FfmpegFrameDecoder,
    FrameDecoder,
    OpenCVFrameDecoder,
    encode_png,
    probe_video,
    select_frame_decoder,
)
from .frame_sampling import (
    extract_frames,
    get_sample_times,
    get_total_frames,
    interval_from_slider,
)
from .frame_scoring import QualityScores, analyze_frame_quality, score_frame
from .frame_selection import get_keep_count, rank_frames, select_all_frames, select_top_frames
from .session import ExtractionSession
from .types import (
    UNSCORED_FRAME_SCORE,
    CancellationToken,
    ExtractionConfig,
    ExtractionRun,
    FrameExtractionContext,
    FrameRecord,
    PixelBuffer,
    ProcessingStats,
    VideoMetadata,
)

__all__ = [
    # Decoding
    "FrameDecoder",
    "FfmpegFrameDecoder",
    "OpenCVFrameDecoder",
    "select_frame_decoder",
    "probe_video",
    "encode_png",
    # Scoring functionality
    "QualityScores",
    "analyze_frame_quality",
    "score_frame",
    # Sampling
    "extract_frames",
    "get_sample_times",
    "get_total_frames",
    "interval_from_slider",
    # Ranking and selection
    "rank_frames",
    "get_keep_count",
    "select_top_frames",
    "select_all_frames",
    # Session
    "ExtractionSession",
    # Data types
    "UNSCORED_FRAME_SCORE",
    "CancellationToken",
    "ExtractionConfig",
    "ExtractionRun",
    "FrameExtractionContext",
    "FrameRecord",
    "PixelBuffer",
    "ProcessingStats",
    "VideoMetadata",
    # Errors
    "FrameExtractorError",
    "DecodeUnavailableError",
    "FrameDecodeError",
    "FrameEncodeError",
    "InvalidConfigurationError",
    "NoFramesExtractedError",
    "ExtractionInProgressError",
]
