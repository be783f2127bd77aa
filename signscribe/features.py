"""
features.py – Per-frame geometric hand features.

Everything here is a pure function of its inputs: the same
``(current, reference)`` pair always yields the same :class:`FeatureSet`.
Collapsed geometry (two joints on top of each other) is not an error; the
affected digit simply reports zero extension.
"""

from __future__ import annotations

import math
from dataclasses import dataclass
from typing import Any

import numpy as np

from signscribe.landmarks import (
    FINGER_JOINTS,
    FINGER_NAMES,
    MIDDLE_MCP_IDX,
    PALM_IDX,
    WRIST_IDX,
    LandmarkFrame,
)

_FINGER_INDEX = {name: i for i, name in enumerate(FINGER_NAMES)}


@dataclass(frozen=True, eq=False)
class FeatureSet:
    """Derived features for one frame.

    Attributes
    ----------
    finger_extension : np.ndarray
        Shape ``(5,)``, thumb → pinky, each in [0, 1].
    hand_orientation : float
        Angle (radians, −π..π) of the wrist → middle-MCP vector.
    palm_position : np.ndarray
        Shape ``(3,)`` centroid of the wrist and the four finger bases.
    movement : np.ndarray
        Shape ``(3,)`` palm displacement relative to the reference frame.
    """

    finger_extension: np.ndarray
    hand_orientation: float
    palm_position: np.ndarray
    movement: np.ndarray

    def extension(self, finger: str) -> float:
        return float(self.finger_extension[_FINGER_INDEX[finger]])

    @property
    def thumb(self) -> float:
        return self.extension("thumb")

    @property
    def index(self) -> float:
        return self.extension("index")

    @property
    def middle(self) -> float:
        return self.extension("middle")

    @property
    def ring(self) -> float:
        return self.extension("ring")

    @property
    def pinky(self) -> float:
        return self.extension("pinky")

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, FeatureSet):
            return NotImplemented
        return (
            np.array_equal(self.finger_extension, other.finger_extension)
            and self.hand_orientation == other.hand_orientation
            and np.array_equal(self.palm_position, other.palm_position)
            and np.array_equal(self.movement, other.movement)
        )

    __hash__ = None  # type: ignore[assignment]

    def to_dict(self) -> dict[str, Any]:
        """JSON-friendly view, keyed by finger name."""
        return {
            "finger_extension": {
                name: float(v) for name, v in zip(FINGER_NAMES, self.finger_extension)
            },
            "hand_orientation": self.hand_orientation,
            "palm_position": [float(v) for v in self.palm_position],
            "movement": [float(v) for v in self.movement],
        }


# ── Geometry helpers ─────────────────────────────────────────────────────────


def finger_extension(points: np.ndarray, joints: tuple[int, int, int, int]) -> float:
    """Angle between the proximal and distal segments of one digit, over π.

    Segments are taken in the image plane: ``joint1 - base`` and
    ``tip - joint2``. Returns 0.0 when either segment has zero length.
    """
    base, joint1, joint2, tip = (points[i, :2] for i in joints)
    v1 = joint1 - base
    v2 = tip - joint2

    mag1 = float(np.hypot(v1[0], v1[1]))
    mag2 = float(np.hypot(v2[0], v2[1]))
    if mag1 == 0.0 or mag2 == 0.0:
        return 0.0

    cosine = float(np.dot(v1, v2)) / (mag1 * mag2)
    cosine = max(-1.0, min(1.0, cosine))
    return math.acos(cosine) / math.pi


def hand_orientation(points: np.ndarray) -> float:
    """atan2 of the wrist → middle-MCP vector, full −π..π range."""
    dx, dy = points[MIDDLE_MCP_IDX, :2] - points[WRIST_IDX, :2]
    return math.atan2(float(dy), float(dx))


def palm_position(points: np.ndarray) -> np.ndarray:
    return points[list(PALM_IDX)].mean(axis=0)


def extract_features(
    current: LandmarkFrame,
    reference: LandmarkFrame | None = None,
) -> FeatureSet:
    """Compute the :class:`FeatureSet` of *current*.

    Parameters
    ----------
    current : LandmarkFrame
        Newest observation.
    reference : LandmarkFrame or None
        Earlier frame used for the movement delta. ``None`` (e.g. the first
        frame of a session) yields zero movement.
    """
    pts = current.points
    extension = np.array(
        [finger_extension(pts, FINGER_JOINTS[name]) for name in FINGER_NAMES],
        dtype=np.float64,
    )
    palm = palm_position(pts)

    if reference is None:
        movement = np.zeros(3, dtype=np.float64)
    else:
        movement = palm - palm_position(reference.points)

    for arr in (extension, palm, movement):
        arr.flags.writeable = False

    return FeatureSet(
        finger_extension=extension,
        hand_orientation=hand_orientation(pts),
        palm_position=palm,
        movement=movement,
    )


class FeatureExtractor:
    """Stateless façade over :func:`extract_features`.

    Kept as a class so a session can hold one next to its classifier and
    tests can swap it out.
    """

    def extract(
        self,
        current: LandmarkFrame,
        reference: LandmarkFrame | None = None,
    ) -> FeatureSet:
        return extract_features(current, reference)
