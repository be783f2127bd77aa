"""
sign_classifier.py – Map a :class:`FeatureSet` to a sign id.

Rule-based, no training. Each rule is an independent matcher with a pure
``matches(features) -> confidence | None``; the classifier evaluates them
in a fixed priority order and the first match wins. Order matters: more
specific poses come first so a general rule (e.g. "all fingers open")
cannot shadow a specific one (e.g. "all fingers open *and* moving
sideways").

Finger extension values come from :func:`signscribe.features.finger_extension`.
Thresholds and confidence weights are hand-tuned starting points, held on
the rule objects so they can be re-tuned per deployment.
"""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import NamedTuple, Sequence

from signscribe.config import DEFAULT_CONFIG, PipelineConfig
from signscribe.features import FeatureSet
from signscribe.vocabulary import UNKNOWN_SIGN

logger = logging.getLogger(__name__)

_FOUR_FINGERS = ("index", "middle", "ring", "pinky")


class Classification(NamedTuple):
    sign: str
    confidence: float


UNKNOWN = Classification(UNKNOWN_SIGN, 0.0)


# ── Rule variants ────────────────────────────────────────────────────────────


class SignRule(ABC):
    """Base class for one vocabulary rule.

    Subclasses set :attr:`sign` and :attr:`confidence` and implement
    :meth:`_conditions`.
    """

    sign: str = UNKNOWN_SIGN
    confidence: float = 0.0

    def matches(self, features: FeatureSet) -> float | None:
        """Return the rule's confidence when *features* satisfy it, else ``None``."""
        return self.confidence if self._conditions(features) else None

    @abstractmethod
    def _conditions(self, features: FeatureSet) -> bool:
        ...

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} sign={self.sign!r} confidence={self.confidence}>"


@dataclass(repr=False)
class WaveRule(SignRule):
    """hello – open hand moving sideways."""

    sign: str = "hello"
    confidence: float = 0.8
    min_extension: float = 0.7
    min_sideways: float = 0.02

    def _conditions(self, f: FeatureSet) -> bool:
        return (
            all(f.extension(n) > self.min_extension for n in _FOUR_FINGERS)
            and abs(float(f.movement[0])) > self.min_sideways
        )


@dataclass(repr=False)
class FingersToLipsRule(SignRule):
    """thank_you – index and middle open, hand high, moving down/away from the face."""

    sign: str = "thank_you"
    confidence: float = 0.7
    min_extension: float = 0.5
    max_palm_y: float = 0.4
    min_drop: float = 0.01

    def _conditions(self, f: FeatureSet) -> bool:
        return (
            f.index > self.min_extension
            and f.middle > self.min_extension
            and float(f.palm_position[1]) < self.max_palm_y
            and float(f.movement[1]) > self.min_drop
        )


@dataclass(repr=False)
class FistRule(SignRule):
    """help – four fingers closed."""

    sign: str = "help"
    confidence: float = 0.6
    max_extension: float = 0.3

    def _conditions(self, f: FeatureSet) -> bool:
        return all(f.extension(n) < self.max_extension for n in _FOUR_FINGERS)


@dataclass(repr=False)
class FlatHandChestRule(SignRule):
    """please – flat hand held at chest height."""

    sign: str = "please"
    confidence: float = 0.7
    min_extension: float = 0.6
    min_palm_y: float = 0.3
    max_palm_y: float = 0.7

    def _conditions(self, f: FeatureSet) -> bool:
        palm_y = float(f.palm_position[1])
        return (
            all(f.extension(n) > self.min_extension for n in _FOUR_FINGERS)
            and self.min_palm_y < palm_y < self.max_palm_y
        )


@dataclass(repr=False)
class IndexPointRule(SignRule):
    """problem – index alone open."""

    sign: str = "problem"
    confidence: float = 0.6
    min_index: float = 0.7
    max_other: float = 0.3

    def _conditions(self, f: FeatureSet) -> bool:
        return f.index > self.min_index and all(
            f.extension(n) < self.max_other for n in ("middle", "ring", "pinky")
        )


def default_rules() -> list[SignRule]:
    """Fresh rule objects in evaluation order."""
    return [
        WaveRule(),
        FingersToLipsRule(),
        FistRule(),
        FlatHandChestRule(),
        IndexPointRule(),
    ]


# ── Classifier ───────────────────────────────────────────────────────────────


class SignClassifier:
    """Ordered first-match evaluation over a rule list.

    Parameters
    ----------
    rules : sequence of SignRule or None
        Evaluation order is the sequence order. Defaults to
        :func:`default_rules`.
    confidence_floor : float or None
        Matches weaker than this are reported as unknown. Defaults to the
        pipeline config floor.
    """

    def __init__(
        self,
        rules: Sequence[SignRule] | None = None,
        confidence_floor: float | None = None,
    ) -> None:
        self.rules: tuple[SignRule, ...] = tuple(rules) if rules is not None else tuple(default_rules())
        self.confidence_floor = (
            DEFAULT_CONFIG.confidence_floor if confidence_floor is None else confidence_floor
        )

    @classmethod
    def from_config(cls, config: PipelineConfig) -> "SignClassifier":
        return cls(confidence_floor=config.confidence_floor)

    @property
    def signs(self) -> list[str]:
        return [rule.sign for rule in self.rules]

    def classify(self, features: FeatureSet) -> Classification:
        """Return ``(sign, confidence)`` for *features*, or ``("unknown", 0.0)``."""
        for rule in self.rules:
            confidence = rule.matches(features)
            if confidence is None:
                continue
            if confidence < self.confidence_floor:
                logger.debug("%r matched below floor (%.2f)", rule, confidence)
                return UNKNOWN
            return Classification(rule.sign, confidence)
        return UNKNOWN


# ── Throttle gate ────────────────────────────────────────────────────────────


class ThrottleGate:
    """Decide whether the classifier may run for the current frame.

    Open when the window holds at least ``min_frames`` frames and at least
    ``interval_ms`` have passed since the last invocation.
    """

    def __init__(self, min_frames: int, interval_ms: float) -> None:
        self.min_frames = min_frames
        self.interval_ms = interval_ms
        self.last_invocation_ms: float | None = None

    @classmethod
    def from_config(cls, config: PipelineConfig) -> "ThrottleGate":
        return cls(config.min_frames, config.classify_interval_ms)

    def is_open(self, window_len: int, now_ms: float) -> bool:
        if window_len < self.min_frames:
            return False
        if self.last_invocation_ms is None:
            return True
        return now_ms - self.last_invocation_ms >= self.interval_ms

    def mark(self, now_ms: float) -> None:
        self.last_invocation_ms = now_ms

    def try_acquire(self, window_len: int, now_ms: float) -> bool:
        """``is_open`` followed by ``mark`` when it is."""
        if not self.is_open(window_len, now_ms):
            return False
        self.mark(now_ms)
        return True

    def reset(self) -> None:
        self.last_invocation_ms = None
