"""transcript.py – Render a consolidated sign sequence as a complaint transcript.

Deterministic template rendering, no model involved. Two outcomes:

1. **Detection transcript** – each sign's first vocabulary keyword joined
   into a sentence fragment after a fixed opening sentence, followed by a
   metadata block (duration, detection counts, confidences).
2. **Fallback template** – used when nothing survived consolidation or the
   recording is shorter than the minimum duration. The metadata carries a
   status line instead of sign data; the caller completes the text by hand.

The metadata field order and formatting are an output contract: downstream
display code parses them.
"""

from __future__ import annotations

import logging
import math
from dataclasses import dataclass, field
from typing import Any, List, Mapping, Sequence

from signscribe.config import DEFAULT_CONFIG, PipelineConfig
from signscribe.consolidator import SignDetection
from signscribe.vocabulary import SIGN_VOCABULARY, SignPatternSpec, keyword_for

logger = logging.getLogger(__name__)

OPENING = "I want to make a complaint."
TECHNOLOGY = "Real-time AI sign language recognition"

STATUS_OK = "Signs detected"
STATUS_NO_SIGNS = "No specific signs detected clearly enough for automatic translation"
STATUS_TOO_SHORT = "Recording too short for automatic translation (minimum {minimum:g} seconds)"

_FALLBACK_TEMPLATE = (
    "{opening}\n"
    "\n"
    "Recording Details:\n"
    "- Duration: {duration}\n"
    "- Technology: {technology}\n"
    "- Status: {status}\n"
    "\n"
    "Please complete this template with the specific details from your sign language recording."
)

_DETECTION_TEMPLATE = (
    "{opening} {phrase}.\n"
    "\n"
    "Recording Details:\n"
    "- Duration: {duration}\n"
    "- Signs detected: {total} total\n"
    "- Unique signs: {unique}\n"
    "- Technology: {technology}\n"
    "- Average confidence: {average}%\n"
    "\n"
    "Detected signs: {listing}\n"
    "\n"
    "Please review and complete this transcript with additional details from your signing."
)


def format_duration(seconds: float) -> str:
    """``M:SS`` with unpadded minutes, e.g. ``0:04`` or ``12:30``."""
    total = max(0, int(seconds))
    return f"{total // 60}:{total % 60:02d}"


def percent(value: float) -> int:
    """Fraction → whole percent, rounding halves up."""
    return int(math.floor(value * 100 + 0.5))


@dataclass(frozen=True)
class RecognitionSummary:
    """Structured counterpart of the transcript metadata block."""

    duration_s: int
    total_detections: int
    unique_signs: int
    average_confidence: float
    signs: List[SignDetection] = field(default_factory=list)
    status: str = STATUS_OK
    fallback: bool = False

    def to_dict(self) -> dict[str, Any]:
        """Serialize to JSON-friendly dict."""
        return {
            "duration_s": self.duration_s,
            "duration": format_duration(self.duration_s),
            "total_detections": self.total_detections,
            "unique_signs": self.unique_signs,
            "average_confidence": self.average_confidence,
            "average_confidence_pct": percent(self.average_confidence),
            "signs": [
                {"sign": s.sign, "confidence": s.confidence, "confidence_pct": percent(s.confidence)}
                for s in self.signs
            ],
            "status": self.status,
            "fallback": self.fallback,
        }


@dataclass(frozen=True)
class TranscriptResult:
    text: str
    summary: RecognitionSummary


class TranscriptSynthesizer:
    """Turn consolidated signs into transcript text plus a summary.

    Parameters
    ----------
    min_duration_s:
        Recordings shorter than this always get the fallback template.
    vocabulary:
        Sign id → :class:`SignPatternSpec` used for keyword lookup.
    """

    def __init__(
        self,
        min_duration_s: float = DEFAULT_CONFIG.min_duration_s,
        vocabulary: Mapping[str, SignPatternSpec] = SIGN_VOCABULARY,
    ) -> None:
        self.min_duration_s = min_duration_s
        self.vocabulary = vocabulary

    @classmethod
    def from_config(cls, config: PipelineConfig) -> "TranscriptSynthesizer":
        return cls(min_duration_s=config.min_duration_s)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------

    def render(
        self,
        consolidated: Sequence[SignDetection],
        duration_s: float,
        total_detections: int | None = None,
    ) -> TranscriptResult:
        """Render *consolidated* signs for a recording of *duration_s* seconds.

        Parameters
        ----------
        consolidated:
            Output of :meth:`TemporalConsolidator.finalize`.
        duration_s:
            Recording length; fractional seconds are truncated.
        total_detections:
            Raw classifier hits before merging. Defaults to
            ``len(consolidated)``.

        Returns
        -------
        :class:`TranscriptResult` with the text and its summary.
        """
        duration = max(0, int(duration_s))
        total = len(consolidated) if total_detections is None else total_detections

        if not consolidated:
            return self._fallback(duration, total, STATUS_NO_SIGNS)
        # the minimum applies to the untruncated length
        if duration_s < self.min_duration_s:
            return self._fallback(duration, total, STATUS_TOO_SHORT.format(minimum=self.min_duration_s))

        signs = list(consolidated)
        average = sum(s.confidence for s in signs) / len(signs)
        phrase = " ".join(self.phrase_for(s.sign) for s in signs)
        listing = ", ".join(f"{s.sign} ({percent(s.confidence)}%)" for s in signs)

        text = _DETECTION_TEMPLATE.format(
            opening=OPENING,
            phrase=phrase,
            duration=format_duration(duration),
            total=total,
            unique=len(signs),
            technology=TECHNOLOGY,
            average=percent(average),
            listing=listing,
        )
        summary = RecognitionSummary(
            duration_s=duration,
            total_detections=total,
            unique_signs=len(signs),
            average_confidence=average,
            signs=signs,
        )
        logger.info("Transcript rendered from %d sign(s): %s", len(signs), phrase)
        return TranscriptResult(text, summary)

    def phrase_for(self, sign: str) -> str:
        return keyword_for(sign, self.vocabulary)

    # ------------------------------------------------------------------
    # Internal helpers
    # ------------------------------------------------------------------

    @staticmethod
    def _fallback(duration: int, total: int, status: str) -> TranscriptResult:
        logger.info("Fallback transcript: %s", status)
        text = _FALLBACK_TEMPLATE.format(
            opening=OPENING,
            duration=format_duration(duration),
            technology=TECHNOLOGY,
            status=status,
        )
        summary = RecognitionSummary(
            duration_s=duration,
            total_detections=total,
            unique_signs=0,
            average_confidence=0.0,
            status=status,
            fallback=True,
        )
        return TranscriptResult(text, summary)
