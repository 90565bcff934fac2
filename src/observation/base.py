"""
VideoSource interface for time-indexed video sources.

The detection scheduler only needs four things from a source: whether it is
ready, whether it is playing, the current playback position, and a decoded
frame at an arbitrary timestamp. Playback controls (play/pause/seek) are
part of the interface so the presentation layer can drive any source.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, Optional

from models.frame import FrameData


@dataclass
class VideoSourceConfig:
    """
    Base configuration for video sources.

    Attributes:
        source_id: Unique identifier for this source (e.g., "demo", "dashcam-01").
        path: Media location (file path or URL).
        metadata: Additional source-specific configuration.
    """
    source_id: str = "default"
    path: str = ""
    metadata: Dict[str, Any] = field(default_factory=dict)


class VideoSource(ABC):
    """
    Abstract base class for time-indexed video sources.

    Lifecycle:
        1. Create instance with config
        2. Call open() to initialize the source (is_ready() becomes True)
        3. play()/pause()/seek() to control playback
        4. frame_at() to decode frames at any position
        5. Call close() to release resources

    Can also be used as a context manager:
        with OpenCVVideoSource(config) as source:
            source.play()
            frame = source.frame_at(source.current_position_micros())
    """

    def __init__(self, config: VideoSourceConfig):
        self._config = config
        self._is_open = False

    @property
    def source_id(self) -> str:
        """Unique identifier for this source."""
        return self._config.source_id

    @property
    def is_open(self) -> bool:
        return self._is_open

    def is_ready(self) -> bool:
        """Whether the source is prepared and frames can be requested."""
        return self._is_open

    @abstractmethod
    def open(self) -> None:
        """
        Open/prepare the source.

        Raises:
            RuntimeError: If the source cannot be opened.
        """
        pass

    @abstractmethod
    def close(self) -> None:
        """Release resources. Safe to call multiple times."""
        pass

    @abstractmethod
    def is_playing(self) -> bool:
        pass

    @abstractmethod
    def current_position_micros(self) -> int:
        """Current playback position in microseconds."""
        pass

    @abstractmethod
    def frame_at(self, timestamp_us: int) -> Optional[FrameData]:
        """
        Decode the frame closest to timestamp_us.

        Returns:
            FrameData in RGB order, or None if no frame could be decoded.
        """
        pass

    @abstractmethod
    def play(self) -> None:
        pass

    @abstractmethod
    def pause(self) -> None:
        pass

    @abstractmethod
    def seek(self, timestamp_us: int) -> None:
        pass

    def restart(self) -> None:
        """Seek to the beginning and start playing."""
        self.seek(0)
        self.play()

    def is_ended(self) -> bool:
        """Whether playback has run past the end of the media."""
        return False

    def duration_micros(self) -> Optional[int]:
        """Media duration in microseconds, if known."""
        return None

    def __enter__(self) -> "VideoSource":
        """Context manager entry - opens the source."""
        self.open()
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        """Context manager exit - closes the source."""
        self.close()
