"""
session.py – One recording session of the gesture recognition pipeline.

The host drives a :class:`RecognitionSession` with control signals and one
:meth:`~RecognitionSession.push_frame` call per detector callback:

    idle ──model ready──► detecting ──start──► recording ──stop──► stopped
      ▲                                                              │
      │                                                          finalize
      │                                                              ▼
      └───────────────────────── discard ◄──────────────────── finalizing ──confirm──► confirmed

All per-session state (frame window, throttle timestamp, detection list,
captured gesture sequences) lives on the session object, so several sessions
can run side by side. Nothing here blocks or schedules: classification
happens synchronously inside ``push_frame`` when the throttle gate opens.
"""

from __future__ import annotations

import enum
import logging
import time
from collections import deque
from dataclasses import dataclass
from typing import Sequence

import numpy as np

from signscribe.config import DEFAULT_CONFIG, PipelineConfig
from signscribe.consolidator import SignDetection, TemporalConsolidator
from signscribe.errors import SessionStateError
from signscribe.features import FeatureExtractor, FeatureSet
from signscribe.landmarks import FrameWindow, LandmarkFrame
from signscribe.sign_classifier import SignClassifier, ThrottleGate
from signscribe.transcript import TranscriptResult, TranscriptSynthesizer
from signscribe.vocabulary import UNKNOWN_SIGN

logger = logging.getLogger(__name__)


class SessionState(str, enum.Enum):
    IDLE = "idle"
    DETECTING = "detecting"
    RECORDING = "recording"
    STOPPED = "stopped"
    FINALIZING = "finalizing"
    CONFIRMED = "confirmed"

    def __str__(self) -> str:
        return self.value


@dataclass(frozen=True)
class GestureSequence:
    """Window snapshot kept when a sign was recognised with high confidence."""

    frames: tuple[LandmarkFrame, ...]
    sign: str
    timestamp_ms: float
    duration_ms: float


@dataclass(frozen=True)
class FrameResult:
    """What one :meth:`RecognitionSession.push_frame` call produced.

    ``features`` is set whenever a hand was buffered (useful for overlays);
    ``detection`` only when the classifier ran and recognised a sign.
    """

    hand_present: bool
    features: FeatureSet | None = None
    classified: bool = False
    detection: SignDetection | None = None


_NO_HAND = FrameResult(hand_present=False)
_IGNORED = FrameResult(hand_present=True)


def _now_ms() -> float:
    return time.monotonic() * 1000.0


class RecognitionSession:
    """Frame-driven recogniser for a single recording.

    Parameters
    ----------
    config : PipelineConfig
        Thresholds; defaults to :data:`signscribe.config.DEFAULT_CONFIG`.
    classifier : SignClassifier or None
        Rule classifier; built from *config* when omitted.
    synthesizer : TranscriptSynthesizer or None
        Transcript renderer; built from *config* when omitted.
    model_available : bool or None
        Initial landmark-model readiness. ``None`` leaves the session idle
        until :meth:`set_model_available` is called.
    """

    def __init__(
        self,
        config: PipelineConfig = DEFAULT_CONFIG,
        classifier: SignClassifier | None = None,
        synthesizer: TranscriptSynthesizer | None = None,
        model_available: bool | None = None,
    ) -> None:
        self.config = config
        self.extractor = FeatureExtractor()
        self.classifier = classifier or SignClassifier.from_config(config)
        self.synthesizer = synthesizer or TranscriptSynthesizer.from_config(config)

        self.window = FrameWindow(config.window_capacity)
        self.gate = ThrottleGate.from_config(config)
        self.consolidator = TemporalConsolidator.from_config(config)
        self.gesture_sequences: deque[GestureSequence] = deque(maxlen=config.max_captures)

        self._state = SessionState.IDLE
        self._model_available = False
        self._model_warned = False
        self._started_ms: float | None = None
        self._stopped_ms: float | None = None
        self._result: TranscriptResult | None = None

        # live status for the host UI
        self.is_detecting = False
        self.current_sign: str | None = None
        self.current_confidence = 0.0

        if model_available is not None:
            self.set_model_available(model_available)

    # ── Properties ───────────────────────────────────────────────────────

    @property
    def state(self) -> SessionState:
        return self._state

    @property
    def model_available(self) -> bool:
        return self._model_available

    @property
    def is_recording(self) -> bool:
        return self._state is SessionState.RECORDING

    @property
    def detections(self) -> tuple[SignDetection, ...]:
        return self.consolidator.detections

    @property
    def result(self) -> TranscriptResult | None:
        return self._result

    @property
    def duration_s(self) -> int:
        """Whole seconds recorded so far (or in total once stopped)."""
        return int(self.elapsed_s)

    @property
    def elapsed_s(self) -> float:
        """Exact recorded time in seconds."""
        if self._started_ms is None:
            return 0.0
        end = self._stopped_ms
        if end is None:
            end = _now_ms()
        return max(0.0, (end - self._started_ms) / 1000.0)

    def recent_signs(self, n: int | None = None) -> list[SignDetection]:
        n = self.config.recent_signs if n is None else n
        if n <= 0:
            return []
        return list(self.detections[-n:])

    # ── Control signals ──────────────────────────────────────────────────

    def set_model_available(self, available: bool) -> None:
        """Record the landmark model's readiness.

        Unavailability is reported once as a warning; the session keeps
        accepting signals but produces no detections until it is restored.
        """
        self._model_available = bool(available)
        if available:
            self._model_warned = False
            if self._state is SessionState.IDLE:
                self._transition(SessionState.DETECTING)
        elif not self._model_warned:
            logger.warning("Landmark model unavailable – sign detection disabled")
            self._model_warned = True

    def start_recording(self, now_ms: float | None = None) -> None:
        if self._state not in (SessionState.IDLE, SessionState.DETECTING):
            raise SessionStateError("start recording", self._state)
        self._reset_buffers()
        self._started_ms = _now_ms() if now_ms is None else now_ms
        self._stopped_ms = None
        self._transition(SessionState.RECORDING)

    def stop_recording(self, now_ms: float | None = None) -> None:
        """Halt input. Collected detections stay available for :meth:`finalize`."""
        if self._state is not SessionState.RECORDING:
            raise SessionStateError("stop recording", self._state)
        self._stopped_ms = _now_ms() if now_ms is None else now_ms
        self._transition(SessionState.STOPPED)
        logger.info(
            "Recording stopped after %ds with %d detection(s)",
            self.duration_s, self.consolidator.raw_count,
        )

    def finalize(self, now_ms: float | None = None) -> TranscriptResult:
        """Consolidate the detections and render the transcript (once)."""
        if self._state is SessionState.RECORDING:
            self.stop_recording(now_ms)
        if self._state is not SessionState.STOPPED:
            raise SessionStateError("finalize", self._state)

        self._transition(SessionState.FINALIZING)
        consolidated = self.consolidator.finalize()
        self._result = self.synthesizer.render(
            consolidated,
            duration_s=self.elapsed_s,
            total_detections=self.consolidator.raw_count,
        )
        return self._result

    def confirm(self) -> TranscriptResult:
        if self._state is not SessionState.FINALIZING or self._result is None:
            raise SessionStateError("confirm", self._state)
        self._transition(SessionState.CONFIRMED)
        return self._result

    def discard(self) -> None:
        """Throw away everything collected and return to idle.

        With the landmark model ready the session moves straight on to
        detecting, so a retake gets live hand feedback again.
        """
        if self._state is SessionState.CONFIRMED:
            raise SessionStateError("discard", self._state)
        self._reset_buffers()
        self._started_ms = None
        self._stopped_ms = None
        self._transition(SessionState.IDLE)
        if self._model_available:
            self._transition(SessionState.DETECTING)

    # ── Frame input ──────────────────────────────────────────────────────

    def push_frame(
        self,
        landmarks: LandmarkFrame | Sequence[Sequence[float]] | np.ndarray | None,
        now_ms: float | None = None,
    ) -> FrameResult:
        """Feed one detector observation.

        Parameters
        ----------
        landmarks :
            21 ``(x, y, z)`` points (or a :class:`LandmarkFrame`), or ``None``
            when the detector saw no hand.
        now_ms :
            Observation time in milliseconds; defaults to a monotonic clock.
        """
        # "no hand" always clears the live status, whatever the state
        if landmarks is None:
            self.is_detecting = False
            self.current_confidence = 0.0
        if self._state not in (SessionState.DETECTING, SessionState.RECORDING):
            return _NO_HAND if landmarks is None else _IGNORED
        now = _now_ms() if now_ms is None else now_ms

        if self._state is SessionState.RECORDING and self._reached_max_duration(now):
            logger.info("Maximum duration of %ss reached", self.config.max_duration_s)
            self.stop_recording(now)
            return _NO_HAND if landmarks is None else _IGNORED

        if landmarks is None:
            return _NO_HAND

        frame = landmarks if isinstance(landmarks, LandmarkFrame) else LandmarkFrame(landmarks)
        self.window.push(frame)
        self.is_detecting = True
        features = self.extractor.extract(frame, self.window.reference())

        if not (self.is_recording and self._model_available):
            return FrameResult(hand_present=True, features=features)
        if not self.gate.try_acquire(len(self.window), now):
            return FrameResult(hand_present=True, features=features)

        sign, confidence = self.classifier.classify(features)
        if sign == UNKNOWN_SIGN:
            return FrameResult(hand_present=True, features=features, classified=True)

        detection = SignDetection(sign, confidence, now)
        self.consolidator.push(detection)
        self.current_sign = sign
        self.current_confidence = confidence
        logger.debug("Detected %s (%.2f) at %.0fms", sign, confidence, now)

        if confidence >= self.config.capture_confidence:
            frames = self.window.snapshot()
            self.gesture_sequences.append(
                GestureSequence(
                    frames=frames,
                    sign=sign,
                    timestamp_ms=now,
                    duration_ms=len(frames) * self.config.frame_interval_ms,
                )
            )

        return FrameResult(
            hand_present=True, features=features, classified=True, detection=detection
        )

    # ── Internal helpers ─────────────────────────────────────────────────

    def _reached_max_duration(self, now_ms: float) -> bool:
        if self._started_ms is None:
            return False
        return now_ms - self._started_ms >= self.config.max_duration_s * 1000.0

    def _reset_buffers(self) -> None:
        self.window.clear()
        self.gate.reset()
        self.consolidator.clear()
        self.gesture_sequences.clear()
        self._result = None
        self.is_detecting = False
        self.current_sign = None
        self.current_confidence = 0.0

    def _transition(self, new_state: SessionState) -> None:
        logger.debug("Session %s -> %s", self._state, new_state)
        self._state = new_state
