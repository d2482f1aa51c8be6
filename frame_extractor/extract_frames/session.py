import logging
from pathlib import Path
import threading
from typing import Callable, List, Optional

from .errors import DecodeUnavailableError, ExtractionInProgressError, NoFramesExtractedError
from .frame_decoding import FrameDecoder, select_frame_decoder
from .frame_sampling import extract_frames
from .frame_selection import rank_frames, select_all_frames, select_top_frames
from .types import (
    CancellationToken,
    ExtractionConfig,
    ExtractionRun,
    FrameExtractionContext,
    FrameRecord,
    ProgressCallback,
)

logger = logging.getLogger(__name__)

SELECTIONS = ("all", "top")


class ExtractionSession:
    """
    Owns the extraction state for one source video.

    At most one run exists at a time: starting a new run releases the frames of
    the previous one, and a run cannot start while another is still extracting.

    Attributes:
        video_path (Path): Source video.
        run (ExtractionRun): Result of the latest run, or None.
        is_processing (bool): True while a run is extracting.
    """

    def __init__(
        self,
        video_path: Path,
        decoder_backend: str = "auto",
        decoder_factory: Optional[Callable[[], FrameDecoder]] = None,
    ):
        self.video_path = Path(video_path)
        self.decoder_backend = decoder_backend
        self.decoder_factory = decoder_factory or (lambda: select_frame_decoder(decoder_backend))

        self.run: Optional[ExtractionRun] = None
        self.is_processing = False

        self._cancellation_token: Optional[CancellationToken] = None
        self._lock = threading.Lock()

    def start_run(
        self, config: ExtractionConfig, progress_callback: Optional[ProgressCallback] = None
    ) -> ExtractionRun:
        """Extract frames with the given settings, replacing the previous run."""
        config.validate()

        with self._lock:
            if self.is_processing:
                raise ExtractionInProgressError("An extraction run is already in progress")
            self.is_processing = True
            self._cancellation_token = CancellationToken()

        try:
            self._release_run()

            ctx = FrameExtractionContext(
                video_path=self.video_path,
                config=config,
                decoder=self.decoder_factory(),
                progress_callback=progress_callback,
                cancellation_token=self._cancellation_token,
            )

            try:
                self.run = extract_frames(ctx)
            except (NoFramesExtractedError, DecodeUnavailableError):
                self.run = ctx.run
                raise

            return self.run

        finally:
            with self._lock:
                self.is_processing = False
                self._cancellation_token = None

    def cancel(self) -> None:
        """
        Ask the active run to stop before its next sample time.

        Does not take the session lock, so it is safe to call from a signal handler.
        """
        token = self._cancellation_token

        if token is None:
            logger.debug("Cancel requested with no active run")
            return

        token.cancel()
        logger.info("Processing cancelled")

    def rank(self) -> List[FrameRecord]:
        """Re-sort the current run by score. Idempotent."""
        run = self._require_run()
        run.reorder(rank_frames(run.records))
        return list(run.records)

    def select_all(self) -> List[FrameRecord]:
        return select_all_frames(self._require_run().records)

    def select_top(self, percentage: Optional[int] = None) -> List[FrameRecord]:
        run = self._require_run()
        if percentage is None:
            percentage = run.config.top_percentage
        return select_top_frames(run.records, percentage)

    def select(self, selection: str) -> List[FrameRecord]:
        """Frames for a download type. "top" keeps every frame when scoring was disabled."""
        if selection not in SELECTIONS:
            raise ValueError(f"Unknown selection '{selection}'. Expected one of {SELECTIONS}")

        run = self._require_run()
        if selection == "top" and run.config.quality_scoring:
            return self.select_top()

        return self.select_all()

    def close(self) -> None:
        self._release_run()

    def _require_run(self) -> ExtractionRun:
        if self.run is None or self.run.invalidated:
            raise NoFramesExtractedError("No extraction run available")
        return self.run

    def _release_run(self) -> None:
        if self.run is not None:
            logger.debug(f"Releasing {len(self.run)} frames of previous run")
            self.run.invalidate()
            self.run = None
