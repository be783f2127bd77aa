"""
consolidator.py – Collapse the noisy per-interval classification stream.

A continuous gesture fires the same sign several times in a row. The
consolidator merges those repeats into one entry carrying the highest
confidence seen, keeps at most ``max_detections`` entries (oldest dropped
first) and, at finalize time, filters out entries below the confidence
floor.
"""

from __future__ import annotations

import dataclasses
import logging
from collections import deque
from dataclasses import dataclass
from typing import Any, Iterable

from signscribe.config import DEFAULT_CONFIG, PipelineConfig

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SignDetection:
    """One classifier output.

    ``timestamp_ms`` is when the sign first fired; ``last_seen_ms`` moves
    forward as later repeats are merged into it.
    """

    sign: str
    confidence: float
    timestamp_ms: float
    last_seen_ms: float | None = None

    @property
    def last_seen(self) -> float:
        return self.timestamp_ms if self.last_seen_ms is None else self.last_seen_ms

    def merged_with(self, other: "SignDetection") -> "SignDetection":
        return dataclasses.replace(
            self,
            confidence=max(self.confidence, other.confidence),
            last_seen_ms=max(self.last_seen, other.last_seen),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "sign": self.sign,
            "confidence": self.confidence,
            "timestamp_ms": self.timestamp_ms,
            "last_seen_ms": self.last_seen,
        }


# Consolidated entries are plain detections whose confidence is the max of their run.
ConsolidatedSign = SignDetection


class TemporalConsolidator:
    """Running, bounded list of sign detections for one session."""

    def __init__(
        self,
        merge_window_ms: float = DEFAULT_CONFIG.merge_window_ms,
        max_detections: int = DEFAULT_CONFIG.max_detections,
        confidence_floor: float = DEFAULT_CONFIG.confidence_floor,
    ) -> None:
        self.merge_window_ms = merge_window_ms
        self.confidence_floor = confidence_floor
        self._entries: deque[SignDetection] = deque(maxlen=max_detections)
        self._raw_count = 0

    @classmethod
    def from_config(cls, config: PipelineConfig) -> "TemporalConsolidator":
        return cls(config.merge_window_ms, config.max_detections, config.confidence_floor)

    @property
    def raw_count(self) -> int:
        """Every detection pushed since the last :meth:`clear`, merged or not."""
        return self._raw_count

    @property
    def detections(self) -> tuple[SignDetection, ...]:
        return tuple(self._entries)

    def __len__(self) -> int:
        return len(self._entries)

    def _mergeable(self, prev: SignDetection, detection: SignDetection) -> bool:
        return (
            prev.sign == detection.sign
            and detection.timestamp_ms - prev.last_seen < self.merge_window_ms
        )

    def push(self, detection: SignDetection) -> bool:
        """Record *detection*. Returns ``True`` if it was merged into the previous entry."""
        self._raw_count += 1
        if self._entries and self._mergeable(self._entries[-1], detection):
            self._entries[-1] = self._entries[-1].merged_with(detection)
            return True

        if len(self._entries) == self._entries.maxlen:
            logger.debug("Detection list full, dropping %r", self._entries[0])
        self._entries.append(detection)
        return False

    def extend(self, detections: Iterable[SignDetection]) -> None:
        for detection in detections:
            self.push(detection)

    def finalize(self) -> list[SignDetection]:
        """Entries at or above the confidence floor, in order.

        Dropping noise can leave two repeats of one sign next to each other;
        those are merged again so the result is stable under re-consolidation.
        """
        kept: list[SignDetection] = []
        for detection in self._entries:
            if detection.confidence < self.confidence_floor:
                logger.debug("Dropping low-confidence detection %r", detection)
                continue
            if kept and self._mergeable(kept[-1], detection):
                kept[-1] = kept[-1].merged_with(detection)
            else:
                kept.append(detection)
        return kept

    def clear(self) -> None:
        self._entries.clear()
        self._raw_count = 0


def consolidate(
    detections: Iterable[SignDetection],
    config: PipelineConfig = DEFAULT_CONFIG,
) -> list[SignDetection]:
    """Run merge + cap + floor filtering over a complete detection sequence."""
    consolidator = TemporalConsolidator.from_config(config)
    consolidator.extend(detections)
    return consolidator.finalize()
