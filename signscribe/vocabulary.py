"""
vocabulary.py – The fixed catalogue of recognisable signs.

Each entry pairs a sign id with the keywords used to render it in a
transcript and the named hand-shape / motion patterns that describe it.
The catalogue is read-only and shared process-wide.
"""

from __future__ import annotations

from dataclasses import dataclass
from types import MappingProxyType
from typing import Mapping

UNKNOWN_SIGN = "unknown"


@dataclass(frozen=True)
class SignPatternSpec:
    """One vocabulary entry."""

    sign: str
    keywords: tuple[str, ...]
    patterns: tuple[str, ...]

    @property
    def label(self) -> str:
        """Text used when the sign appears in a transcript."""
        return self.keywords[0] if self.keywords else sign_display_name(self.sign)


def sign_display_name(sign: str) -> str:
    return sign.replace("_", " ")


_ENTRIES = (
    SignPatternSpec("hello", ("greeting", "hi", "wave"), ("open_palm_up", "wave_motion")),
    SignPatternSpec("help", ("assistance", "support"), ("fist_on_palm", "upward_motion")),
    SignPatternSpec("please", ("request", "polite"), ("flat_hand_chest", "circular_motion")),
    SignPatternSpec("thank_you", ("gratitude", "thanks"), ("fingers_to_lips", "forward_motion")),
    SignPatternSpec(
        "problem", ("issue", "trouble", "difficulty"), ("index_fingers_touch", "twist_motion")
    ),
    SignPatternSpec("complaint", ("complain", "dissatisfied"), ("claw_hand_chest", "outward_motion")),
    SignPatternSpec("money", ("payment", "cost", "expensive"), ("flat_hand_palm", "tap_motion")),
    SignPatternSpec(
        "service",
        ("help", "assistance", "customer_service"),
        ("flat_hands_alternating", "upward_motion"),
    ),
    SignPatternSpec("bad", ("poor", "terrible", "awful"), ("flat_hand_chin", "downward_motion")),
    SignPatternSpec("good", ("excellent", "great", "fine"), ("flat_hand_chin", "upward_motion")),
)

SIGN_VOCABULARY: Mapping[str, SignPatternSpec] = MappingProxyType(
    {entry.sign: entry for entry in _ENTRIES}
)


def keyword_for(sign: str, vocabulary: Mapping[str, SignPatternSpec] = SIGN_VOCABULARY) -> str:
    """First registered keyword of *sign*, or its id with underscores as spaces."""
    entry = vocabulary.get(sign)
    if entry is not None:
        return entry.label
    return sign_display_name(sign)
