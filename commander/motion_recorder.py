"""
Motion Recording Module for the Sixi Commander

Records committed keyframes tick by tick so a jog session can be replayed
or compared offline. Recordings are saved as JSON.

Author: Sixi Team
Date: 2025-02-08
"""

import datetime
import json
import logging
import time
from dataclasses import asdict, dataclass
from pathlib import Path
from typing import Any, Dict, List, Optional

from armlib.kinematics import Keyframe

from .constants import RECORDING_MAX_SAMPLES, RECORDINGS_DIR_DEFAULT


@dataclass
class MotionSample:
    """Single committed keyframe"""
    timestamp_ms: float        # ms since recording start
    angles: List[float]        # joint angles, degrees
    finger: List[float]        # finger position in the arm base frame
    orientation: List[float]   # [U, V, W] degrees
    outcome: str               # tick outcome that produced the sample


class MotionRecorder:
    """
    Records committed keyframes during a commander session.

    With sample_rate_hz=None every call captures a sample; otherwise calls
    are throttled to the given rate (capped at 50Hz).
    """

    def __init__(self,
                 logger: Optional[logging.Logger] = None,
                 sample_rate_hz: Optional[float] = None,
                 recordings_dir: Optional[Path] = None,
                 max_samples: int = RECORDING_MAX_SAMPLES):
        """
        Initialize motion recorder.

        Args:
            logger: Logger instance
            sample_rate_hz: Capture rate, or None to capture every call
            recordings_dir: Directory to save recordings (default: motion_recordings/)
            max_samples: Auto-stop threshold
        """
        self.logger = logger or logging.getLogger(__name__)
        self.sample_rate_hz = min(sample_rate_hz, 50) if sample_rate_hz else None
        self.sample_interval_ms = 1000.0 / self.sample_rate_hz if self.sample_rate_hz else 0.0
        self.recordings_dir = Path(recordings_dir or RECORDINGS_DIR_DEFAULT)
        self._max_samples = max_samples

        # Recording state
        self._is_recording = False
        self._recording_name: Optional[str] = None
        self._recording_start_time: Optional[float] = None
        self._last_sample_time_ms: Optional[float] = None
        self._samples: List[MotionSample] = []

    def start_recording(self, name: Optional[str] = None) -> bool:
        """
        Start a new motion recording session.

        Returns:
            True if recording started, False if already recording
        """
        if self._is_recording:
            self.logger.warning("[MotionRecorder] Already recording, stop first")
            return False

        self._recording_name = name or f"motion_{datetime.datetime.now().strftime('%Y%m%d_%H%M%S')}"
        self._recording_start_time = time.time()
        self._last_sample_time_ms = None
        self._samples = []
        self._is_recording = True

        rate = f"{self.sample_rate_hz}Hz" if self.sample_rate_hz else "every tick"
        self.logger.info(f"[MotionRecorder] Started recording: {self._recording_name} @ {rate}")
        return True

    def stop_recording(self, save_to_file: bool = True) -> Optional[Dict[str, Any]]:
        """
        Stop recording and optionally save to file.

        Returns:
            The recording dict (with 'filename' set when saved), or None if not recording
        """
        if not self._is_recording:
            return None

        self._is_recording = False
        duration_s = time.time() - self._recording_start_time if self._recording_start_time else 0

        recording = {
            "metadata": {
                "name": self._recording_name,
                "timestamp": datetime.datetime.now().isoformat(),
                "sample_rate_hz": self.sample_rate_hz,
                "duration_s": round(duration_s, 3),
                "num_samples": len(self._samples),
            },
            "samples": [asdict(s) for s in self._samples],
            "filename": None,
        }

        self.logger.info(f"[MotionRecorder] Stopped recording: {len(self._samples)} samples, {duration_s:.2f}s")

        if save_to_file:
            filepath = self.recordings_dir / f"{self._recording_name}.json"
            self.recordings_dir.mkdir(parents=True, exist_ok=True)
            try:
                with open(filepath, 'w') as f:
                    json.dump(recording, f, indent=2)
                recording["filename"] = str(filepath)
                self.logger.info(f"[MotionRecorder] Saved to {filepath}")
            except OSError as e:
                self.logger.error(f"[MotionRecorder] Failed to save {filepath}: {e}")

        self._samples = []
        self._recording_name = None
        self._recording_start_time = None
        return recording

    def maybe_capture_sample(self, keyframe: Keyframe, outcome: str) -> bool:
        """
        Capture a sample if enough time has elapsed since the last one.
        Call this every control tick - it will self-throttle.

        Returns:
            True if sample was captured, False otherwise
        """
        if not self._is_recording:
            return False

        if len(self._samples) >= self._max_samples:
            self.logger.warning("[MotionRecorder] Max samples reached, auto-stopping")
            self.stop_recording()
            return False

        elapsed_ms = (time.time() - self._recording_start_time) * 1000
        if (self._last_sample_time_ms is not None
                and elapsed_ms - self._last_sample_time_ms < self.sample_interval_ms):
            return False

        self._samples.append(MotionSample(
            timestamp_ms=round(elapsed_ms, 2),
            angles=[float(a) for a in keyframe.angles],
            finger=[float(c) for c in keyframe.finger],
            orientation=[float(a) for a in keyframe.orientation],
            outcome=outcome,
        ))
        self._last_sample_time_ms = elapsed_ms
        return True

    @property
    def is_recording(self) -> bool:
        """Check if currently recording."""
        return self._is_recording

    @property
    def sample_count(self) -> int:
        """Get current sample count."""
        return len(self._samples)
