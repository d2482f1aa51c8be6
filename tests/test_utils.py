"""Tests for shared config, storage and logging helpers."""

import logging

import pytest

from frame_extractor.utils import (
    check_missing_keys,
    create_storage,
    load_config,
    setup_logging,
    write_bytes,
)


class TestYamlConfig:
    def test_load_config(self, tmp_path):
        path = tmp_path / "config.yaml"
        path.write_text("frame_interval: 1.5\nquality_scoring: true\n")

        config = load_config(path)

        assert config == {"frame_interval": 1.5, "quality_scoring": True}

    def test_missing_file(self, tmp_path):
        with pytest.raises(FileNotFoundError):
            load_config(tmp_path / "missing.yaml")

    def test_check_missing_keys(self):
        check_missing_keys(["a"], {"a": 1})

        with pytest.raises(ValueError, match="frame_interval"):
            check_missing_keys(["a", "frame_interval"], {"a": 1})


class TestStorage:
    def test_local_path_resolution(self, tmp_path):
        fs, resolve_path = create_storage({"type": "file", "base_data_dir": str(tmp_path)})

        assert resolve_path("\\exports//frames.zip") == str(tmp_path / "exports" / "frames.zip")

    def test_remote_path_resolution(self):
        _, resolve_path = create_storage({"type": "memory", "base_data_dir": "bucket/data"})

        assert resolve_path("exports/a.zip") == "memory://bucket/data/exports/a.zip"

    def test_missing_base_dir(self):
        with pytest.raises(ValueError):
            create_storage({"type": "file", "base_data_dir": None})

    def test_write_bytes_creates_folders(self, tmp_path):
        fs, resolve_path = create_storage({"type": "file", "base_data_dir": str(tmp_path)})
        path = resolve_path("a/b/c.bin")

        write_bytes(fs, path, b"payload")

        assert (tmp_path / "a" / "b" / "c.bin").read_bytes() == b"payload"


class TestLogging:
    def test_setup_logging_writes_log_file(self, tmp_path):
        root = logging.getLogger()
        saved_handlers = root.handlers[:]
        saved_level = root.level
        root.handlers.clear()

        try:
            logger = setup_logging("extract_frames", tmp_path)
            logger.info("hello")
            for handler in root.handlers:
                handler.flush()

            log_path = tmp_path / "logs" / "extract_frames.log"
            assert log_path.exists()
            assert "hello" in log_path.read_text()

        finally:
            for handler in root.handlers:
                handler.close()
            root.handlers[:] = saved_handlers
            root.setLevel(saved_level)
