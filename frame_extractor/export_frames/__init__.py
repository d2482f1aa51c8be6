# export_frames/__init__.py
from .frames_export import (
    build_export_entries,
    export_frames,
    get_archive_filename,
    get_export_filename,
    get_single_frame_filename,
    package_frames,
)
from .types import FramesExportContext

__all__ = [
    # Naming
    "get_export_filename",
    "get_single_frame_filename",
    "get_archive_filename",
    # Packaging
    "build_export_entries",
    "package_frames",
    "export_frames",
    # Data types
    "FramesExportContext",
]
