"""
synthetic.py – Deterministic hand poses for demos and tests.

Builds 21-point frames with a prescribed per-digit extension value, so the
pipeline can be exercised without a camera or landmark model. Each digit is
three equal segments; the last one is rotated by ``extension * π`` away from
the first, which is exactly what :func:`signscribe.features.finger_extension`
measures.
"""

from __future__ import annotations

import math
from typing import Mapping, Sequence

import numpy as np

from signscribe.landmarks import FINGER_JOINTS, FINGER_NAMES, NUM_HAND_JOINTS, LandmarkFrame

SEGMENT_LEN = 0.03

# base joint offsets from the wrist (image coords, y grows downward)
_BASE_OFFSETS: dict[str, tuple[float, float]] = {
    "thumb": (-0.06, -0.02),
    "index": (-0.04, -0.10),
    "middle": (0.0, -0.11),
    "ring": (0.03, -0.10),
    "pinky": (0.06, -0.08),
}
_UP = np.array([0.0, -1.0])
_THUMB_DIR = np.array([-1.0, -1.0]) / math.sqrt(2.0)


def _rotate(v: np.ndarray, theta: float) -> np.ndarray:
    c, s = math.cos(theta), math.sin(theta)
    return np.array([c * v[0] - s * v[1], s * v[0] + c * v[1]])


def make_hand(
    extensions: Sequence[float] | Mapping[str, float],
    wrist: tuple[float, float] = (0.5, 0.6),
    depth: float = 0.0,
) -> LandmarkFrame:
    """Hand with the given thumb → pinky extension values and wrist position."""
    if isinstance(extensions, Mapping):
        values = [float(extensions.get(name, 0.0)) for name in FINGER_NAMES]
    else:
        values = [float(v) for v in extensions]
    if len(values) != len(FINGER_NAMES):
        raise ValueError(f"expected {len(FINGER_NAMES)} extension values, got {len(values)}")

    pts = np.zeros((NUM_HAND_JOINTS, 3), dtype=np.float64)
    origin = np.array(wrist, dtype=np.float64)
    pts[0, :2] = origin

    for name, ext in zip(FINGER_NAMES, values):
        base_i, j1_i, j2_i, tip_i = FINGER_JOINTS[name]
        direction = _THUMB_DIR if name == "thumb" else _UP
        base = origin + np.array(_BASE_OFFSETS[name])
        joint1 = base + direction * SEGMENT_LEN
        joint2 = joint1 + direction * SEGMENT_LEN
        tip = joint2 + _rotate(direction, ext * math.pi) * SEGMENT_LEN
        for idx, p in zip((base_i, j1_i, j2_i, tip_i), (base, joint1, joint2, tip)):
            pts[idx, :2] = p

    pts[:, 2] = depth
    return LandmarkFrame(pts)


def waving_hand(
    n_frames: int,
    start: tuple[float, float] = (0.3, 0.6),
    step: float = 0.01,
    extension: float = 0.9,
) -> list[LandmarkFrame]:
    """Open hand drifting sideways by *step* per frame (the "hello" gesture)."""
    ext = [extension] * len(FINGER_NAMES)
    return [
        make_hand(ext, wrist=(start[0] + i * step, start[1]))
        for i in range(n_frames)
    ]
