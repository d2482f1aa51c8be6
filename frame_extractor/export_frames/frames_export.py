import io
import logging
from pathlib import PurePath
import posixpath
from typing import List, Sequence, Tuple
import zipfile

from frame_extractor.extract_frames import FrameRecord, NoFramesExtractedError
from frame_extractor.extract_frames.frame_sampling import round_half_up
from frame_extractor.utils import create_storage, write_bytes

from .types import FramesExportContext

logger = logging.getLogger(__name__)


def _source_base_name(source_name: str) -> str:
    return PurePath(str(source_name).replace("\\", "/")).name


def get_export_filename(ordinal: int, source_name: str, timestamp: float, score: float) -> str:
    """
    Self-describing archive member name for an exported frame.

    Args:
        ordinal: 1-based position of the frame within the exported selection
        source_name: Source video name or path; only the final component is used
        timestamp: Frame time in seconds
        score: Frame quality score, rounded half up

    Returns:
        str: e.g. "002_clip.mp4_4.2s_score88.png"
    """
    base_name = _source_base_name(source_name)
    return f"{ordinal:03d}_{base_name}_{timestamp:.1f}s_score{round_half_up(score)}.png"


def get_single_frame_filename(record: FrameRecord) -> str:
    """Name for downloading a single frame outside an archive."""
    return f"frame_{record.index:03d}_{record.timestamp:.1f}s_score{round_half_up(record.score)}.png"


def get_archive_filename(source_name: str, selection: str) -> str:
    stem = PurePath(_source_base_name(source_name)).stem
    return f"frames_{stem}_{selection}.zip"


def build_export_entries(
    records: Sequence[FrameRecord], source_name: str
) -> List[Tuple[str, bytes]]:
    """Pair each selected frame with its export filename. The records keep their bytes."""
    entries = []
    for ordinal, record in enumerate(records, start=1):
        if record.is_released:
            raise ValueError(f"Frame {record.index} has been released and cannot be exported")

        filename = get_export_filename(ordinal, source_name, record.timestamp, record.score)
        entries.append((filename, record.raw_bytes))

    return entries


def package_frames(entries: Sequence[Tuple[str, bytes]]) -> bytes:
    """Bundle (filename, bytes) pairs into an in-memory zip archive."""
    buffer = io.BytesIO()

    with zipfile.ZipFile(buffer, "w", compression=zipfile.ZIP_DEFLATED) as zf:
        for filename, data in entries:
            zf.writestr(filename, data)

    return buffer.getvalue()


def export_frames(ctx: FramesExportContext) -> str:
    """
    Package the selected frames of the session's run and write the archive to storage.

    Args:
        ctx: FramesExportContext with the session, selection type and storage settings

    Returns:
        str: Path of the written archive
    """
    records = ctx.session.select(ctx.selection)
    if not records:
        logger.warning("No frames to download")
        raise NoFramesExtractedError("No frames to export")

    source_name = ctx.session.video_path.name
    logger.info(f"Preparing {len(records)} frames for download...")

    entries = build_export_entries(records, source_name)
    archive = package_frames(entries)

    fs, resolve_path = create_storage(ctx.storage_config)
    archive_path = resolve_path(
        posixpath.join(ctx.output_folder, get_archive_filename(source_name, ctx.selection))
    )

    try:
        write_bytes(fs, archive_path, archive)
    except OSError as e:
        logger.error(f"Failed to write archive {archive_path}: {e}")
        raise

    logger.info(f"Exported {len(entries)} frames to {archive_path} ({len(archive)} bytes)")
    return archive_path
