"""Tests for export naming and archive packaging."""

import io
import zipfile

import pytest

from conftest import FakeFrameDecoder, make_checkerboard, make_gray_frame
from frame_extractor.export_frames import (
    FramesExportContext,
    build_export_entries,
    export_frames,
    get_archive_filename,
    get_export_filename,
    get_single_frame_filename,
    package_frames,
)
from frame_extractor.extract_frames import (
    ExtractionConfig,
    ExtractionSession,
    FrameRecord,
    NoFramesExtractedError,
)


def make_record(index, timestamp, score, raw_bytes=b"png-bytes"):
    return FrameRecord(
        index=index, timestamp=timestamp, width=4, height=4, raw_bytes=raw_bytes, score=score
    )


class TestFilenames:
    def test_export_filename(self):
        assert get_export_filename(2, "clip.mp4", 4.2, 87.6) == "002_clip.mp4_4.2s_score88.png"

    def test_export_filename_uses_base_name_only(self):
        assert (
            get_export_filename(1, "/videos/day one/clip.mp4", 0, 50)
            == "001_clip.mp4_0.0s_score50.png"
        )

    def test_score_rounds_half_up(self):
        assert get_export_filename(1, "a.mp4", 1.0, 72.5).endswith("_score73.png")
        assert get_export_filename(1, "a.mp4", 1.0, 71.5).endswith("_score72.png")

    def test_single_frame_filename(self):
        record = make_record(7, 3.5, 64.2)

        assert get_single_frame_filename(record) == "frame_007_3.5s_score64.png"

    def test_archive_filename(self):
        assert get_archive_filename("clip.mp4", "top") == "frames_clip_top.zip"


class TestPackaging:
    def test_entries_are_numbered_by_selection_position(self):
        records = [make_record(5, 4.2, 87.6, b"a"), make_record(0, 0.0, 40.0, b"b")]

        entries = build_export_entries(records, "clip.mp4")

        assert entries == [
            ("001_clip.mp4_4.2s_score88.png", b"a"),
            ("002_clip.mp4_0.0s_score40.png", b"b"),
        ]

    def test_export_borrows_bytes(self):
        record = make_record(0, 0.0, 50.0, b"data")

        build_export_entries([record], "clip.mp4")

        assert record.raw_bytes == b"data"

    def test_released_frames_cannot_be_exported(self):
        record = make_record(0, 0.0, 50.0)
        record.release()

        with pytest.raises(ValueError):
            build_export_entries([record], "clip.mp4")

    def test_package_frames_builds_zip(self):
        entries = [("001_a.png", b"first"), ("002_b.png", b"second")]

        archive = package_frames(entries)

        with zipfile.ZipFile(io.BytesIO(archive)) as zf:
            assert zf.namelist() == ["001_a.png", "002_b.png"]
            assert zf.read("002_b.png") == b"second"


class TestExportFrames:
    @pytest.fixture
    def session(self, video_path):
        def frames(t):
            return make_checkerboard() if t == 2 else make_gray_frame(128)

        session = ExtractionSession(
            video_path, decoder_factory=lambda: FakeFrameDecoder(4.0, frame_factory=frames)
        )
        session.start_run(ExtractionConfig(interval_seconds=1, top_percentage=25))
        return session

    def test_top_selection_written_to_storage(self, session, tmp_path):
        ctx = FramesExportContext(
            session=session,
            selection="top",
            output_folder="exports",
            storage_config={"type": "file", "base_data_dir": str(tmp_path / "out")},
        )

        archive_path = export_frames(ctx)

        assert archive_path == str(tmp_path / "out" / "exports" / "frames_clip_top.zip")
        with zipfile.ZipFile(archive_path) as zf:
            assert zf.namelist() == ["001_clip.mp4_2.0s_score80.png"]

    def test_all_selection_in_ranked_order(self, session, tmp_path):
        ctx = FramesExportContext(
            session=session,
            selection="all",
            output_folder="exports",
            storage_config={"type": "file", "base_data_dir": str(tmp_path)},
        )

        with zipfile.ZipFile(export_frames(ctx)) as zf:
            names = zf.namelist()

        assert names == [
            "001_clip.mp4_2.0s_score80.png",
            "002_clip.mp4_0.0s_score25.png",
            "003_clip.mp4_1.0s_score25.png",
            "004_clip.mp4_3.0s_score25.png",
        ]

    def test_memory_filesystem(self, session):
        ctx = FramesExportContext(
            session=session,
            selection="top",
            output_folder="exports",
            storage_config={"type": "memory", "base_data_dir": "/frames"},
        )

        archive_path = export_frames(ctx)

        assert archive_path == "memory:///frames/exports/frames_clip_top.zip"

    def test_empty_cancelled_run_has_nothing_to_export(self, video_path, tmp_path):
        class CancelOnOpenDecoder(FakeFrameDecoder):
            def open(self, path):
                info = super().open(path)
                session.cancel()
                return info

        session = ExtractionSession(video_path, decoder_factory=lambda: CancelOnOpenDecoder(4.0))
        run = session.start_run(ExtractionConfig(interval_seconds=1))
        assert run.cancelled and len(run) == 0

        ctx = FramesExportContext(
            session=session,
            selection="all",
            output_folder="exports",
            storage_config={"type": "file", "base_data_dir": str(tmp_path)},
        )

        with pytest.raises(NoFramesExtractedError):
            export_frames(ctx)

    def test_unknown_selection_is_rejected(self, session):
        with pytest.raises(ValueError):
            FramesExportContext(
                session=session, selection="best", output_folder="x", storage_config={}
            )
