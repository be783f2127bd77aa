"""
config.py – Tunable constants for the recognition pipeline.

Every threshold the pipeline consults lives on :class:`PipelineConfig`.
The module-level names are the defaults, kept at one place so they can be
re-tuned without touching detection logic.
"""

from __future__ import annotations

import dataclasses
import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Mapping

from signscribe.errors import ConfigError

logger = logging.getLogger(__name__)

# ── Buffering ────────────────────────────────────────────────────────────────

WINDOW_CAPACITY = 30          # frames (~1 s @ 30 fps)
MIN_FRAMES = 15               # frames buffered before the classifier may run
FRAME_INTERVAL_MS = 33        # nominal detector cadence, used for durations

# ── Classification ───────────────────────────────────────────────────────────

CLASSIFY_INTERVAL_MS = 500    # throttle between classifier invocations
CONFIDENCE_FLOOR = 0.4        # below this a sign counts as noise

# ── Consolidation ────────────────────────────────────────────────────────────

MERGE_WINDOW_MS = 2000        # same-sign detections closer than this merge
MAX_DETECTIONS = 20           # running detection list cap

# ── Recording ────────────────────────────────────────────────────────────────

MIN_DURATION_S = 3            # shorter recordings get the fallback transcript
MAX_DURATION_S = 300          # recordings auto-stop after five minutes
CAPTURE_CONFIDENCE = 0.6      # keep the frame window for confident signs
MAX_CAPTURES = 10
RECENT_SIGNS = 8              # detections shown in live status

_COUNT_FIELDS = (
    "window_capacity", "min_frames", "max_detections", "max_captures", "recent_signs",
)


@dataclass(frozen=True)
class PipelineConfig:
    """Immutable bundle of pipeline thresholds.

    Use :func:`dataclasses.replace` (or :meth:`override`) to derive a
    variant; instances are shared freely between components.
    """

    window_capacity: int = WINDOW_CAPACITY
    min_frames: int = MIN_FRAMES
    frame_interval_ms: float = FRAME_INTERVAL_MS
    classify_interval_ms: float = CLASSIFY_INTERVAL_MS
    confidence_floor: float = CONFIDENCE_FLOOR
    merge_window_ms: float = MERGE_WINDOW_MS
    max_detections: int = MAX_DETECTIONS
    min_duration_s: float = MIN_DURATION_S
    max_duration_s: float = MAX_DURATION_S
    capture_confidence: float = CAPTURE_CONFIDENCE
    max_captures: int = MAX_CAPTURES
    recent_signs: int = RECENT_SIGNS

    def __post_init__(self) -> None:
        for f in dataclasses.fields(self):
            value = getattr(self, f.name)
            if isinstance(value, bool) or not isinstance(value, (int, float)):
                raise ConfigError(f"{f.name} must be a number, got {value!r}")
        for name in _COUNT_FIELDS:
            if not isinstance(getattr(self, name), int):
                raise ConfigError(f"{name} must be an integer, got {getattr(self, name)!r}")
        for name in ("window_capacity", "min_frames", "max_detections", "max_captures"):
            if getattr(self, name) < 1:
                raise ConfigError(f"{name} must be >= 1, got {getattr(self, name)}")
        if self.min_frames > self.window_capacity:
            raise ConfigError(
                f"min_frames ({self.min_frames}) exceeds window_capacity "
                f"({self.window_capacity})"
            )
        if not 0.0 <= self.confidence_floor <= 1.0:
            raise ConfigError(f"confidence_floor must be in [0, 1], got {self.confidence_floor}")
        for name in ("classify_interval_ms", "merge_window_ms", "min_duration_s", "max_duration_s"):
            if getattr(self, name) < 0:
                raise ConfigError(f"{name} must be non-negative, got {getattr(self, name)}")

    def override(self, **changes: Any) -> "PipelineConfig":
        """Return a copy with *changes* applied (unknown keys rejected)."""
        return PipelineConfig.from_dict({**dataclasses.asdict(self), **changes})

    def to_dict(self) -> dict[str, Any]:
        return dataclasses.asdict(self)

    @classmethod
    def from_dict(cls, values: Mapping[str, Any]) -> "PipelineConfig":
        known = {f.name for f in dataclasses.fields(cls)}
        unknown = sorted(set(values) - known)
        if unknown:
            raise ConfigError(f"unknown config keys: {', '.join(unknown)}")
        return cls(**dict(values))

    @classmethod
    def from_json(cls, path: str | Path) -> "PipelineConfig":
        """Load overrides from a JSON object file.

        A missing file is not an error: the defaults are returned and a
        warning is logged.
        """
        p = Path(path)
        if not p.exists():
            logger.warning("Config %s not found, using defaults", p)
            return cls()
        try:
            data = json.loads(p.read_text(encoding="utf-8"))
        except json.JSONDecodeError as exc:
            raise ConfigError(f"{p}: invalid JSON ({exc})") from exc
        if not isinstance(data, dict):
            raise ConfigError(f"{p}: expected a JSON object, got {type(data).__name__}")
        return cls.from_dict(data)


DEFAULT_CONFIG = PipelineConfig()
