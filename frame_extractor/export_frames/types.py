from dataclasses import dataclass
from typing import Any, Dict

from frame_extractor.extract_frames import ExtractionSession
from frame_extractor.extract_frames.session import SELECTIONS


@dataclass
class FramesExportContext:
    session: ExtractionSession
    selection: str
    output_folder: str
    storage_config: Dict[str, Any]

    def __post_init__(self):
        if self.selection not in SELECTIONS:
            raise ValueError(
                f"Unknown export selection '{self.selection}'. Expected one of {SELECTIONS}"
            )
