"""
Pothole Monitor: detect potholes in recorded road video.

Loads the TFLite detector, samples the video timeline every interval and
reports detections to the counters and the status API.

Usage:
    python src/main.py --config config/config.yaml --video data/demo.mp4 --autoplay

Arguments:
    --config: Path to configuration file
    --video: Override video.path
    --model: Override model.path
    --autoplay: Start playback immediately
    --no-web: Do not start the status API
"""

import os
import sys
import argparse
import logging
import threading
from typing import Dict, Any, Tuple, Optional

import uvicorn
import yaml

from detection.pothole import PotholeDetector
from inference.errors import ModelLoadError
from models.config import Config
from observation.opencv_source import OpenCVVideoSource, OpenCVSourceConfig
from ops.logging import setup_logging
from pipeline.engine import PipelineEngine, PipelineConfig
from presentation.counters import DetectionCounter
from presentation.playback import PlaybackController
from web.app import create_app
from web.state import MonitorState

VALID_LOG_LEVELS = ['DEBUG', 'INFO', 'WARNING', 'ERROR', 'CRITICAL']


def _deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Recursively merge override into base and return base."""
    for k, v in (override or {}).items():
        if isinstance(v, dict) and isinstance(base.get(k), dict):
            _deep_merge(base[k], v)
        else:
            base[k] = v
    return base


def _read_yaml(path: str) -> Dict[str, Any]:
    with open(path, "r") as f:
        return yaml.safe_load(f) or {}


def load_config(config_path: str) -> Dict[str, Any]:
    """
    Load configuration with layering:
    - `config/default.yaml` (checked in)
    - `config/config.yaml` (local overrides)
    - plus any explicitly provided `--config` path (treated as overrides)
    """
    try:
        config_dir = os.path.dirname(config_path)
        base_path = os.path.join(config_dir, "default.yaml")
        merged: Dict[str, Any] = _read_yaml(base_path) if os.path.exists(base_path) else {}

        local_overrides_path = os.path.join(config_dir, "config.yaml")
        if os.path.exists(local_overrides_path):
            merged = _deep_merge(merged, _read_yaml(local_overrides_path))

        if os.path.exists(config_path) and os.path.abspath(config_path) not in (
            os.path.abspath(local_overrides_path),
            os.path.abspath(base_path),
        ):
            merged = _deep_merge(merged, _read_yaml(config_path))

        return merged
    except (OSError, yaml.YAMLError) as e:
        logging.error(f"Failed to load configuration: {e}")
        sys.exit(1)


def validate_config(config: Dict[str, Any]) -> Tuple[bool, Optional[str]]:
    """
    Validate configuration file structure and values.

    Args:
        config: Configuration dictionary

    Returns:
        Tuple of (is_valid, error_message)
    """
    required_sections = ['model', 'video', 'log_path', 'log_level']
    for section in required_sections:
        if section not in config:
            return False, f"Missing required configuration section: {section}"

    model = config.get('model') or {}
    if not isinstance(model.get('path'), str) or not model.get('path'):
        return False, "model.path must be a non-empty string"
    if 'num_threads' in model:
        if not isinstance(model['num_threads'], int) or model['num_threads'] <= 0:
            return False, "model.num_threads must be a positive integer"

    detector = config.get('detector') or {}
    if 'score_threshold' in detector:
        thr = detector['score_threshold']
        if isinstance(thr, bool) or not isinstance(thr, (int, float)) or not (0 <= thr <= 1):
            return False, "detector.score_threshold must be a number between 0 and 1"
    if 'target_class_id' in detector:
        cls_id = detector['target_class_id']
        if isinstance(cls_id, bool) or not isinstance(cls_id, int) or cls_id < 0:
            return False, "detector.target_class_id must be a non-negative integer"

    scheduler = config.get('scheduler') or {}
    if 'interval_ms' in scheduler:
        interval = scheduler['interval_ms']
        if not isinstance(interval, int) or interval <= 0:
            return False, "scheduler.interval_ms must be a positive integer"

    video = config.get('video') or {}
    if not isinstance(video.get('path'), str) or not video.get('path'):
        return False, "video.path must be a non-empty string"

    web = config.get('web') or {}
    if 'port' in web:
        if not isinstance(web['port'], int) or not (0 < web['port'] < 65536):
            return False, "web.port must be a valid TCP port"

    if config['log_level'] not in VALID_LOG_LEVELS:
        return False, f"log_level must be one of: {', '.join(VALID_LOG_LEVELS)}"

    return True, None


def build_monitor(cfg: Config) -> MonitorState:
    """Wire detector, source, counters and engine from typed config."""
    detector = PotholeDetector(
        cfg.model.path,
        config=cfg.detector,
        num_threads=cfg.model.num_threads,
        strict=cfg.model.strict,
    )

    source = OpenCVVideoSource(
        OpenCVSourceConfig(source_id=cfg.video.source_id, path=cfg.video.path)
    )
    counter = DetectionCounter(target_class_id=cfg.detector.target_class_id)
    engine = PipelineEngine(
        source,
        detector,
        counter.on_detection_result,
        PipelineConfig.from_scheduler_config(cfg.scheduler, stop_at_end=cfg.video.stop_at_end),
        on_reset=counter.reset,
    )
    return MonitorState(engine, counter, PlaybackController(source, counter))


def main():
    """Main application function."""
    parser = argparse.ArgumentParser(description='Pothole Monitor')
    parser.add_argument('--config', type=str, default='config/config.yaml',
                        help='Path to configuration file')
    parser.add_argument('--video', type=str, default=None,
                        help='Video file to process (overrides video.path)')
    parser.add_argument('--model', type=str, default=None,
                        help='TFLite model (overrides model.path)')
    parser.add_argument('--autoplay', action='store_true',
                        help='Start playback immediately')
    parser.add_argument('--no-web', action='store_true',
                        help='Do not start the status API')
    args = parser.parse_args()

    config = load_config(args.config)
    if args.video:
        config.setdefault('video', {})['path'] = args.video
    if args.model:
        config.setdefault('model', {})['path'] = args.model

    is_valid, error_msg = validate_config(config)
    if not is_valid:
        logging.error(f"Configuration validation failed: {error_msg}")
        sys.exit(1)

    setup_logging(config['log_path'], config['log_level'])
    cfg = Config.from_dict(config)
    logging.info("Starting Pothole Monitor")

    try:
        monitor = build_monitor(cfg)
    except ModelLoadError as e:
        logging.error(f"Detector unavailable and model.strict is set: {e}")
        sys.exit(1)

    try:
        monitor.engine.source.open()
    except RuntimeError as e:
        logging.error(f"Error loading video: {e}")
        sys.exit(1)
    monitor.counter.set_status("Video feed ready - Press Play to start")

    web_cfg = cfg.web
    if web_cfg and web_cfg.enabled and not args.no_web:
        def run_web_app():
            uvicorn.run(
                create_app(monitor),
                host=web_cfg.host,
                port=web_cfg.port,
                log_level="info",
            )

        web_thread = threading.Thread(target=run_web_app, daemon=True)
        web_thread.start()
        logging.info(f"Web interface started on port {web_cfg.port}")

    if args.autoplay or cfg.video.autoplay:
        monitor.playback.play()

    monitor.engine.run()
    logging.info(f"Final counters: {monitor.counter.snapshot()}")


if __name__ == "__main__":
    main()
