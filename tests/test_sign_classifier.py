"""
tests/test_sign_classifier.py – Ordered rule matching and the throttle gate.
"""

from __future__ import annotations

import sys
from pathlib import Path

import numpy as np
import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from signscribe.features import FeatureSet, extract_features
from signscribe.sign_classifier import (
    UNKNOWN,
    FingersToLipsRule,
    FistRule,
    FlatHandChestRule,
    IndexPointRule,
    SignClassifier,
    SignRule,
    ThrottleGate,
    WaveRule,
    default_rules,
)
from signscribe.synthetic import make_hand


def _features(
    fingers: tuple[float, float, float, float],
    thumb: float = 0.5,
    palm: tuple[float, float, float] = (0.5, 0.5, 0.0),
    movement: tuple[float, float, float] = (0.0, 0.0, 0.0),
) -> FeatureSet:
    return FeatureSet(
        finger_extension=np.array([thumb, *fingers], dtype=np.float64),
        hand_orientation=-np.pi / 2,
        palm_position=np.array(palm, dtype=np.float64),
        movement=np.array(movement, dtype=np.float64),
    )


OPEN = (0.9, 0.9, 0.9, 0.9)
FIST = (0.1, 0.1, 0.1, 0.1)


@pytest.mark.parametrize(
    "features, expected",
    [
        (_features(OPEN, movement=(0.05, 0.0, 0.0)), ("hello", 0.8)),
        (_features(OPEN, movement=(-0.05, 0.0, 0.0)), ("hello", 0.8)),
        (_features((0.6, 0.6, 0.1, 0.1), palm=(0.5, 0.3, 0.0), movement=(0.0, 0.02, 0.0)),
         ("thank_you", 0.7)),
        (_features(FIST), ("help", 0.6)),
        (_features(OPEN, palm=(0.5, 0.5, 0.0)), ("please", 0.7)),
        (_features((0.9, 0.1, 0.1, 0.1)), ("problem", 0.6)),
        (_features((0.5, 0.5, 0.5, 0.5)), ("unknown", 0.0)),
        (_features(OPEN, palm=(0.5, 0.8, 0.0)), ("unknown", 0.0)),
    ],
)
def test_default_rules(features: FeatureSet, expected: tuple[str, float]) -> None:
    assert tuple(SignClassifier().classify(features)) == expected


def test_specific_rule_shadows_general_one() -> None:
    # open hand at chest height satisfies "please", but moving sideways it is "hello"
    f = _features(OPEN, palm=(0.5, 0.5, 0.0), movement=(0.03, 0.0, 0.0))
    assert FlatHandChestRule().matches(f) == 0.7
    assert SignClassifier().classify(f).sign == "hello"


def test_hello_wins_over_thank_you() -> None:
    f = _features(OPEN, palm=(0.5, 0.3, 0.0), movement=(0.05, 0.02, 0.0))
    assert FingersToLipsRule().matches(f) is not None
    assert SignClassifier().classify(f).sign == "hello"


def test_rule_order_is_fixed() -> None:
    assert SignClassifier().signs == ["hello", "thank_you", "help", "please", "problem"]
    assert [type(r) for r in default_rules()] == [
        WaveRule, FingersToLipsRule, FistRule, FlatHandChestRule, IndexPointRule,
    ]


def test_rules_are_independent() -> None:
    f = _features((0.9, 0.1, 0.1, 0.1))
    assert IndexPointRule().matches(f) == 0.6
    assert FistRule().matches(f) is None
    assert WaveRule().matches(f) is None


def test_match_below_floor_is_unknown() -> None:
    f = _features(FIST)
    assert SignClassifier(confidence_floor=0.65).classify(f) == UNKNOWN
    assert SignClassifier(rules=[FistRule(confidence=0.3)]).classify(f) == UNKNOWN


def test_rule_without_conditions_cannot_be_built() -> None:
    class Incomplete(SignRule):
        sign = "hello"
        confidence = 0.5

    with pytest.raises(TypeError):
        Incomplete()


def test_retuned_threshold() -> None:
    f = _features((0.4, 0.4, 0.4, 0.4))
    assert SignClassifier().classify(f) == UNKNOWN
    assert SignClassifier(rules=[FistRule(max_extension=0.45)]).classify(f) == ("help", 0.6)


def test_classifies_extracted_pose() -> None:
    # stationary open hand, palm around y = 0.52
    features = extract_features(make_hand([0.9] * 5, wrist=(0.5, 0.6)))
    assert SignClassifier().classify(features) == ("please", 0.7)

    fist = extract_features(make_hand([0.9, 0.05, 0.05, 0.05, 0.05]))
    assert SignClassifier().classify(fist) == ("help", 0.6)


# ── Throttle gate ────────────────────────────────────────────────────────────


def test_gate_needs_min_frames() -> None:
    gate = ThrottleGate(min_frames=15, interval_ms=500)
    assert not gate.is_open(14, 0.0)
    assert gate.is_open(15, 0.0)


def test_gate_enforces_interval() -> None:
    gate = ThrottleGate(min_frames=15, interval_ms=500)
    assert gate.try_acquire(15, 1000.0)
    assert not gate.try_acquire(30, 1499.0)
    assert gate.try_acquire(30, 1500.0)
    assert gate.last_invocation_ms == 1500.0


def test_gate_reset() -> None:
    gate = ThrottleGate(min_frames=1, interval_ms=500)
    gate.mark(100.0)
    assert not gate.is_open(1, 200.0)
    gate.reset()
    assert gate.is_open(1, 200.0)
