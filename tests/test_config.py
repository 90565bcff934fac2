"""
Smoke tests for configuration loading and validation.
"""

import logging

import pytest

from main import build_monitor, load_config, validate_config
from models.config import Config
from ops.logging import setup_logging


class TestValidateConfig:
    """Tests for validate_config function."""

    def test_valid_config_passes(self, valid_config):
        """A complete valid config passes validation."""
        is_valid, error = validate_config(valid_config)

        assert is_valid is True
        assert error is None

    @pytest.mark.parametrize("section", ["model", "video", "log_path", "log_level"])
    def test_missing_required_section(self, valid_config, section):
        del valid_config[section]

        is_valid, error = validate_config(valid_config)

        assert is_valid is False
        assert section in error

    def test_detector_section_optional(self, valid_config):
        del valid_config["detector"]
        del valid_config["scheduler"]
        assert validate_config(valid_config) == (True, None)

    def test_empty_model_path(self, valid_config):
        valid_config["model"]["path"] = ""
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "model.path" in error

    def test_invalid_num_threads(self, valid_config):
        valid_config["model"]["num_threads"] = 0
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "num_threads" in error

    @pytest.mark.parametrize("thr", [-0.1, 1.5, "high", True])
    def test_invalid_score_threshold(self, valid_config, thr):
        valid_config["detector"]["score_threshold"] = thr
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "score_threshold" in error

    @pytest.mark.parametrize("thr", [0, 1, 0.35])
    def test_threshold_bounds_inclusive(self, valid_config, thr):
        valid_config["detector"]["score_threshold"] = thr
        assert validate_config(valid_config)[0] is True

    @pytest.mark.parametrize("cls_id", [-1, 1.0, "1"])
    def test_invalid_target_class(self, valid_config, cls_id):
        valid_config["detector"]["target_class_id"] = cls_id
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "target_class_id" in error

    def test_invalid_interval(self, valid_config):
        valid_config["scheduler"]["interval_ms"] = 0
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "interval_ms" in error

    def test_missing_video_path(self, valid_config):
        valid_config["video"] = {}
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "video.path" in error

    def test_invalid_web_port(self, valid_config):
        valid_config["web"] = {"port": 70000}
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "web.port" in error

    def test_invalid_log_level(self, valid_config):
        valid_config["log_level"] = "VERBOSE"
        is_valid, error = validate_config(valid_config)
        assert is_valid is False
        assert "log_level" in error


class TestLoadConfig:
    """Tests for load_config function."""

    def test_loads_default_yaml(self, temp_config_dir):
        """Config loads from default.yaml when only it exists."""
        config = load_config(str(temp_config_dir / "config.yaml"))

        assert config["model"]["path"] == "models/pothole_model.tflite"
        assert config["detector"]["score_threshold"] == 0.5
        assert config["scheduler"]["interval_ms"] == 500

    def test_local_overrides_merge(self, temp_config_dir):
        """Local config.yaml overrides default.yaml."""
        config_yaml = temp_config_dir / "config.yaml"
        config_yaml.write_text("""
detector:
  score_threshold: 0.65
video:
  path: "data/road.mp4"
""")

        config = load_config(str(config_yaml))

        assert config["detector"]["score_threshold"] == 0.65
        assert config["video"]["path"] == "data/road.mp4"
        # Original values preserved
        assert config["detector"]["target_class_id"] == 1
        assert config["model"]["num_threads"] == 2

    def test_explicit_path_applied_last(self, temp_config_dir):
        (temp_config_dir / "config.yaml").write_text("""
scheduler:
  interval_ms: 250
""")
        explicit = temp_config_dir / "night.yaml"
        explicit.write_text("""
scheduler:
  interval_ms: 1000
detector:
  target_class_id: 0
""")

        config = load_config(str(explicit))

        assert config["scheduler"]["interval_ms"] == 1000
        assert config["detector"]["target_class_id"] == 0
        assert config["detector"]["score_threshold"] == 0.5

    def test_invalid_yaml_exits(self, temp_config_dir):
        (temp_config_dir / "config.yaml").write_text("detector: [unclosed\n")
        with pytest.raises(SystemExit):
            load_config(str(temp_config_dir / "config.yaml"))


class TestTypedConfig:
    def test_from_loaded_dict(self, temp_config_dir):
        cfg = Config.from_dict(load_config(str(temp_config_dir / "config.yaml")))
        assert cfg.model.path == "models/pothole_model.tflite"
        assert cfg.detector.score_threshold == 0.5
        assert cfg.scheduler.interval_s == pytest.approx(0.5)
        assert cfg.web is None

    def test_build_monitor_without_model(self, tmp_path, valid_config):
        valid_config["model"]["path"] = str(tmp_path / "missing.tflite")
        valid_config["video"]["path"] = str(tmp_path / "missing.mp4")
        valid_config["detector"]["target_class_id"] = 2
        monitor = build_monitor(Config.from_dict(valid_config))
        try:
            assert monitor.engine.scheduler.detector.enabled is False
            assert monitor.counter.target_class_id == 2
            assert monitor.engine.source.is_ready() is False
            assert monitor.playback.source is monitor.engine.source
        finally:
            monitor.engine.scheduler.shutdown()


class TestSetupLogging:
    def test_creates_log_directory(self, tmp_path):
        log_path = tmp_path / "logs" / "monitor.log"
        setup_logging(str(log_path), "DEBUG", console=False)
        logging.info("Pothole #1 at 0.50s")
        for handler in logging.getLogger().handlers:
            handler.flush()

        assert log_path.exists()
        assert "Pothole #1" in log_path.read_text()
        assert logging.getLogger("uvicorn.access").level == logging.WARNING
        for handler in logging.getLogger().handlers[:]:
            handler.close()
            logging.getLogger().removeHandler(handler)
