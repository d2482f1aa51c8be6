from pathlib import Path
import signal

from tqdm import tqdm

from frame_extractor.config import DATA_DIR
from frame_extractor.utils import check_missing_keys, load_config, setup_logging

script_name = Path(__file__).parent.name
logger = setup_logging(script_name, DATA_DIR)

from frame_extractor.export_frames import FramesExportContext, export_frames
from frame_extractor.extract_frames import ExtractionConfig, ExtractionSession

logger.info("Starting frame extraction pipeline")

# Get script specific configs
CONFIG_PATH = Path(__file__).parent.resolve() / "config.yaml"

logger.info(f"Loading config from: {CONFIG_PATH}")
script_config = load_config(CONFIG_PATH)

required_keys = [
    "video_folder",
    "video_filename",
    "output_folder",
    "frame_interval",
    "quality_scoring",
    "top_frames_percentage",
    "storage",
]
check_missing_keys(required_keys, script_config)

FRAME_INTERVAL = float(script_config["frame_interval"])
QUALITY_SCORING = bool(script_config["quality_scoring"])
TOP_FRAMES_PERCENTAGE = int(script_config["top_frames_percentage"])

DECODER_BACKEND = script_config.get("decoder_backend", "auto")
EXPORT_SELECTION = script_config.get("export_selection", "top")

OUTPUT_FOLDER = script_config["output_folder"]
STORAGE_CONFIG = script_config["storage"]

# Construct video path
VIDEO_PATH = DATA_DIR / script_config["video_folder"] / script_config["video_filename"]
logger.info(f"Video path: {VIDEO_PATH}")

extraction_config = ExtractionConfig(
    interval_seconds=FRAME_INTERVAL,
    quality_scoring=QUALITY_SCORING,
    top_percentage=TOP_FRAMES_PERCENTAGE,
)
session = ExtractionSession(VIDEO_PATH, decoder_backend=DECODER_BACKEND)

# Ctrl+C stops the run cooperatively and keeps the frames captured so far
signal.signal(signal.SIGINT, lambda signum, frame: session.cancel())

with tqdm(desc="Extracting frames", unit="frame") as pbar:

    def on_progress(percent, frames_done, frames_total, status):
        pbar.total = frames_total
        pbar.n = frames_done
        pbar.set_postfix_str(f"{percent}%")
        pbar.refresh()

    run = session.start_run(extraction_config, progress_callback=on_progress)

if run.cancelled:
    logger.info(f"Run cancelled, exporting {len(run)} frames captured so far")

# Task main function
export_context = FramesExportContext(
    session=session,
    selection=EXPORT_SELECTION,
    output_folder=OUTPUT_FOLDER,
    storage_config=STORAGE_CONFIG,
)
archive_path = export_frames(export_context)
logger.info(f"Frames archive written to: {archive_path}")

session.close()
