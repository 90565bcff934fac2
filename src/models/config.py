"""
Typed configuration models matching the YAML config structure.
"""

from __future__ import annotations

import math
from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class DetectorConfig:
    """
    Detector tuning, swapped wholesale on change.

    The pipeline reads one snapshot at the start of each run, so a
    concurrent configure() never affects an in-flight call.
    """
    score_threshold: float = 0.50
    target_class_id: int = 1

    def __post_init__(self):
        if not math.isfinite(self.score_threshold):
            raise ValueError("score_threshold must be finite")
        if not isinstance(self.target_class_id, int) or isinstance(self.target_class_id, bool):
            raise ValueError("target_class_id must be an integer")

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "DetectorConfig":
        return cls(
            score_threshold=float(d.get("score_threshold", 0.50)),
            target_class_id=int(d.get("target_class_id", 1)),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "score_threshold": self.score_threshold,
            "target_class_id": self.target_class_id,
        }


@dataclass
class ModelConfig:
    """Model artifact configuration."""
    path: str = "models/pothole_model.tflite"
    num_threads: int = 2
    strict: bool = False

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "ModelConfig":
        return cls(
            path=d.get("path", "models/pothole_model.tflite"),
            num_threads=d.get("num_threads", 2),
            strict=d.get("strict", False),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "num_threads": self.num_threads,
            "strict": self.strict,
        }


@dataclass
class SchedulerConfig:
    """Sampling schedule configuration."""
    interval_ms: int = 500
    stats_log_interval: float = 60.0

    @property
    def interval_s(self) -> float:
        return self.interval_ms / 1000.0

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "SchedulerConfig":
        return cls(
            interval_ms=d.get("interval_ms", 500),
            stats_log_interval=d.get("stats_log_interval", 60.0),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "interval_ms": self.interval_ms,
            "stats_log_interval": self.stats_log_interval,
        }


@dataclass
class VideoConfig:
    """Video source configuration."""
    path: str = "data/demo.mp4"
    source_id: str = "demo"
    autoplay: bool = False
    stop_at_end: bool = True

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "VideoConfig":
        return cls(
            path=d.get("path", "data/demo.mp4"),
            source_id=d.get("source_id", "demo"),
            autoplay=d.get("autoplay", False),
            stop_at_end=d.get("stop_at_end", True),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {
            "path": self.path,
            "source_id": self.source_id,
            "autoplay": self.autoplay,
            "stop_at_end": self.stop_at_end,
        }


@dataclass
class WebConfig:
    """Status API configuration."""
    enabled: bool = True
    host: str = "0.0.0.0"
    port: int = 5000

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "WebConfig":
        return cls(
            enabled=d.get("enabled", True),
            host=d.get("host", "0.0.0.0"),
            port=d.get("port", 5000),
        )

    def to_dict(self) -> Dict[str, Any]:
        return {"enabled": self.enabled, "host": self.host, "port": self.port}


@dataclass
class Config:
    """
    Complete application configuration.

    This is a typed representation of the YAML config structure.
    """
    model: ModelConfig = field(default_factory=ModelConfig)
    detector: DetectorConfig = field(default_factory=DetectorConfig)
    scheduler: SchedulerConfig = field(default_factory=SchedulerConfig)
    video: VideoConfig = field(default_factory=VideoConfig)
    web: Optional[WebConfig] = None
    log_path: str = "logs/pothole_monitor.log"
    log_level: str = "INFO"

    @classmethod
    def from_dict(cls, d: Dict[str, Any]) -> "Config":
        """Adapter: Create Config from raw dictionary (e.g., from load_config)."""
        web_dict = d.get("web")
        return cls(
            model=ModelConfig.from_dict(d.get("model", {}) or {}),
            detector=DetectorConfig.from_dict(d.get("detector", {}) or {}),
            scheduler=SchedulerConfig.from_dict(d.get("scheduler", {}) or {}),
            video=VideoConfig.from_dict(d.get("video", {}) or {}),
            web=WebConfig.from_dict(web_dict) if web_dict else None,
            log_path=d.get("log_path", "logs/pothole_monitor.log"),
            log_level=d.get("log_level", "INFO"),
        )

    def to_dict(self) -> Dict[str, Any]:
        d: Dict[str, Any] = {
            "model": self.model.to_dict(),
            "detector": self.detector.to_dict(),
            "scheduler": self.scheduler.to_dict(),
            "video": self.video.to_dict(),
            "log_path": self.log_path,
            "log_level": self.log_level,
        }
        if self.web:
            d["web"] = self.web.to_dict()
        return d
