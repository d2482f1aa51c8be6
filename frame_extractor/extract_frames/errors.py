class FrameExtractorError(Exception):
    """Base error for frame extraction and export."""


class DecodeUnavailableError(FrameExtractorError):
    """The decode backend cannot produce any frame for the source."""


class FrameDecodeError(FrameExtractorError):
    """A single sample time could not be decoded."""


class FrameEncodeError(FrameExtractorError):
    """A decoded frame could not be encoded to image bytes."""


class InvalidConfigurationError(FrameExtractorError, ValueError):
    """Extraction settings are out of range."""


class NoFramesExtractedError(FrameExtractorError):
    """A completed, non-cancelled run produced no frames."""


class ExtractionInProgressError(FrameExtractorError):
    """A new run was requested while another one is still active."""
