import logging
import math
from typing import Iterator, Optional

from .errors import (
    DecodeUnavailableError,
    FrameDecodeError,
    FrameEncodeError,
    InvalidConfigurationError,
    NoFramesExtractedError,
)
from .frame_decoding import encode_png
from .frame_scoring import score_frame
from .frame_selection import rank_frames
from .types import (
    UNSCORED_FRAME_SCORE,
    ExtractionRun,
    FrameExtractionContext,
    FrameRecord,
    ProcessingStats,
)

logger = logging.getLogger(__name__)


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def get_total_frames(duration: float, interval: float) -> int:
    """
    Progress denominator for a run.

    Computed from the whole seconds of the video, so it can be one short of the
    number of sample times when the interval does not divide the duration.
    """
    return math.floor(math.floor(duration) / interval)


def get_sample_times(duration: float, interval: float) -> Iterator[float]:
    """Yield 0, interval, 2*interval, ... while below the whole seconds of the video."""
    total_seconds = math.floor(duration)

    i = 0
    while i * interval < total_seconds:
        yield i * interval
        i += 1


def _initialize_decoder(ctx: FrameExtractionContext) -> None:
    """Open the decode backend and add the video info to context."""
    logger.info(f"Opening video with {ctx.decoder.name} decoder")

    try:
        ctx.video_info = ctx.decoder.open(ctx.video_path)
    except DecodeUnavailableError as e:
        logger.error(f"Decoder unavailable for {ctx.video_path}: {e}")
        raise


def _report_progress(ctx: FrameExtractionContext, frames_done: int, total_frames: int) -> None:
    if ctx.progress_callback is None:
        return

    if total_frames > 0:
        percent = round_half_up(frames_done / total_frames * 100)
    else:
        percent = 100

    status = f"Processing frame {frames_done}/{total_frames}..."
    ctx.progress_callback(percent, frames_done, total_frames, status)


def _extract_frame_record(
    ctx: FrameExtractionContext, time_seconds: float, index: int, stats: ProcessingStats
) -> Optional[FrameRecord]:
    """Decode, score and encode the frame at one sample time."""
    try:
        pixels = ctx.decoder.decode_frame_at(time_seconds)
    except FrameDecodeError as e:
        logger.warning(f"Error extracting frame at {time_seconds}s: {e}")
        stats.update(decode_failed=True)
        return None

    try:
        if ctx.config.quality_scoring:
            score = score_frame(pixels, pixels.width, pixels.height)
            logger.debug(f"Frame {index} ({time_seconds:.1f}s): Score {score:.1f}/100")
        else:
            score = UNSCORED_FRAME_SCORE

        width, height = pixels.width, pixels.height
        raw_bytes = encode_png(pixels)

    except FrameEncodeError as e:
        logger.warning(f"Error encoding frame at {time_seconds}s: {e}")
        stats.update(encode_failed=True)
        return None

    finally:
        pixels.release()

    return FrameRecord(
        index=index,
        timestamp=time_seconds,
        width=width,
        height=height,
        raw_bytes=raw_bytes,
        score=score,
    )


def _sample_frames(ctx: FrameExtractionContext) -> ProcessingStats:
    """Visit every sample time in order, appending one record per decoded frame."""
    logger.info("Starting frame sampling loop")

    stats = ProcessingStats()
    interval = ctx.config.interval_seconds
    duration = ctx.video_info.duration
    total_frames = get_total_frames(duration, interval)

    logger.info(
        f"Sampling {math.floor(duration)}s of video every {interval}s "
        f"({total_frames} frames expected)"
    )

    for time_seconds in get_sample_times(duration, interval):
        if ctx.cancellation_token.is_cancelled:
            logger.info(f"Extraction cancelled after {len(ctx.run)} frames")
            stats.cancelled = True
            break

        stats.update(sampled=True)

        record = _extract_frame_record(ctx, time_seconds, len(ctx.run), stats)
        if record is None:
            continue

        ctx.run.append(record)
        stats.update(extracted=True)

        _report_progress(ctx, len(ctx.run), total_frames)

    logger.info("Frame sampling loop completed")
    return stats


def _rank_run(ctx: FrameExtractionContext) -> None:
    """Sort the run by quality score when scoring is enabled."""
    if not ctx.config.quality_scoring or not ctx.run.records:
        return

    ctx.run.reorder(rank_frames(ctx.run.records))
    logger.info(
        f"Quality scoring results: {len(ctx.run)} frames processed, "
        f"top score: {ctx.run.records[0].score:.1f}"
    )


def extract_frames(ctx: FrameExtractionContext) -> ExtractionRun:
    """
    Sample the video at a fixed interval, scoring and encoding one frame per sample time.

    Frames that fail to decode or encode are skipped. A cancelled run keeps the
    frames captured so far and is returned as a valid partial result.

    Args:
        ctx: FrameExtractionContext with the source, settings, decoder and callbacks

    Returns:
        ExtractionRun: the run's records, ranked by score when scoring is enabled

    Raises:
        InvalidConfigurationError: settings are out of range
        DecodeUnavailableError: the decoder cannot read the source at all
        NoFramesExtractedError: the run finished without cancellation and produced no frames
    """
    logger.info(f"Starting frame extraction for: {ctx.video_path}")
    logger.info(
        f"Processing settings: interval={ctx.config.interval_seconds}s, "
        f"quality={ctx.config.quality_scoring}, top={ctx.config.top_percentage}%"
    )

    try:
        ctx.config.validate()
    except InvalidConfigurationError as e:
        logger.error(f"Invalid extraction settings: {e}")
        raise

    _initialize_decoder(ctx)
    ctx.run = ExtractionRun(config=ctx.config, source_name=ctx.video_path.name)

    try:
        stats = _sample_frames(ctx)
    except DecodeUnavailableError as e:
        logger.error(f"Decoder became unavailable during extraction: {e}")
        raise
    finally:
        ctx.decoder.close()

    _rank_run(ctx)

    ctx.run.cancelled = stats.cancelled
    ctx.run.completed = not stats.cancelled
    total_frames = get_total_frames(ctx.video_info.duration, ctx.config.interval_seconds)
    stats.log_summary(logger, total_frames)

    if ctx.run.completed and len(ctx.run) == 0:
        logger.error(f"No frames could be extracted from {ctx.video_path}")
        raise NoFramesExtractedError(f"No frames extracted from {ctx.video_path.name}")

    logger.info("Frame extraction completed successfully")
    return ctx.run


def interval_from_slider(value: int) -> float:
    """Convert an interval given in tenths of a second (1-100) to seconds."""
    return int(value) / 10
