"""
landmarks.py – Hand landmark containers and the sliding frame window.

A :class:`LandmarkFrame` holds the 21 normalised keypoints of one hand as
produced by the external detector (MediaPipe 21-point convention):

    0        wrist
    1 – 4    thumb   (CMC, MCP, IP, tip)
    5 – 8    index   (MCP, PIP, DIP, tip)
    9 – 12   middle
    13 – 16  ring
    17 – 20  pinky

x and y are in [0, 1] relative to the image; z is detector-relative depth.
Frames are read-only once built, so the :class:`FrameWindow` can hand out
snapshots without copying.
"""

from __future__ import annotations

from collections import deque
from typing import Iterator, NamedTuple, Sequence

import cv2
import numpy as np

from signscribe.config import WINDOW_CAPACITY
from signscribe.errors import InvalidLandmarksError

# ── Constants ────────────────────────────────────────────────────────────────

NUM_HAND_JOINTS = 21
WRIST_IDX = 0
MIDDLE_MCP_IDX = 9  # orientation reference

FINGER_NAMES: tuple[str, ...] = ("thumb", "index", "middle", "ring", "pinky")

# base → tip joint indices for each digit
FINGER_JOINTS: dict[str, tuple[int, int, int, int]] = {
    "thumb": (1, 2, 3, 4),
    "index": (5, 6, 7, 8),
    "middle": (9, 10, 11, 12),
    "ring": (13, 14, 15, 16),
    "pinky": (17, 18, 19, 20),
}

# wrist + finger bases; their centroid approximates the palm centre
PALM_IDX: tuple[int, ...] = (0, 5, 9, 13, 17)

HAND_CONNECTIONS: list[tuple[int, int]] = [
    (0, 1), (1, 2), (2, 3), (3, 4),         # thumb
    (0, 5), (5, 6), (6, 7), (7, 8),         # index
    (0, 9), (9, 10), (10, 11), (11, 12),    # middle
    (0, 13), (13, 14), (14, 15), (15, 16),  # ring
    (0, 17), (17, 18), (18, 19), (19, 20),  # pinky
    (5, 9), (9, 13), (13, 17),              # palm
]

# Colours (BGR) for drawing
_LINE_COLOUR = (0, 255, 0)
_POINT_COLOUR = (0, 0, 255)
_LABEL_COLOUR = (220, 220, 220)


class Landmark(NamedTuple):
    """One normalised keypoint."""

    x: float
    y: float
    z: float = 0.0


class LandmarkFrame:
    """The 21 keypoints of one tracked hand, stored as a read-only ``(21, 3)`` array.

    Parameters
    ----------
    points : array-like
        ``(21, 3)`` or ``(21, 2)`` coordinates. A missing z column is
        zero-filled.
    """

    __slots__ = ("_points",)

    def __init__(self, points: Sequence[Sequence[float]] | np.ndarray) -> None:
        try:
            arr = np.array(points, dtype=np.float64)
        except (TypeError, ValueError) as exc:
            raise InvalidLandmarksError(f"landmarks are not numeric: {exc}") from exc

        if arr.ndim != 2 or arr.shape[0] != NUM_HAND_JOINTS or arr.shape[1] not in (2, 3):
            raise InvalidLandmarksError(
                f"Expected {NUM_HAND_JOINTS} landmarks of (x, y[, z]), got shape {arr.shape}"
            )
        if arr.shape[1] == 2:
            arr = np.hstack([arr, np.zeros((NUM_HAND_JOINTS, 1))])
        if not np.all(np.isfinite(arr)):
            raise InvalidLandmarksError("landmarks contain NaN or infinite values")

        arr.flags.writeable = False
        self._points = arr

    @property
    def points(self) -> np.ndarray:
        """Read-only ``(21, 3)`` array view."""
        return self._points

    def __len__(self) -> int:
        return NUM_HAND_JOINTS

    def __getitem__(self, idx: int) -> Landmark:
        x, y, z = self._points[idx]
        return Landmark(float(x), float(y), float(z))

    def __iter__(self) -> Iterator[Landmark]:
        for i in range(NUM_HAND_JOINTS):
            yield self[i]

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, LandmarkFrame):
            return NotImplemented
        return bool(np.array_equal(self._points, other._points))

    def __hash__(self) -> int:
        return hash(self._points.tobytes())

    def __repr__(self) -> str:
        wx, wy, _ = self._points[WRIST_IDX]
        return f"<LandmarkFrame wrist=({wx:.3f}, {wy:.3f})>"

    def translated(self, dx: float, dy: float, dz: float = 0.0) -> "LandmarkFrame":
        """Return a copy with every landmark shifted by the same offset."""
        return LandmarkFrame(self._points + np.array([dx, dy, dz]))


# ── Sliding window ───────────────────────────────────────────────────────────


class FrameWindow:
    """Fixed-capacity FIFO of the most recent :class:`LandmarkFrame` objects.

    Pushing onto a full window evicts the oldest frame; that is normal
    operation, not an overflow.
    """

    def __init__(self, capacity: int = WINDOW_CAPACITY) -> None:
        if capacity < 1:
            raise ValueError(f"capacity must be >= 1, got {capacity}")
        self._buf: deque[LandmarkFrame] = deque(maxlen=capacity)

    @property
    def capacity(self) -> int:
        return self._buf.maxlen  # type: ignore[return-value]

    @property
    def is_full(self) -> bool:
        return len(self._buf) == self.capacity

    def __len__(self) -> int:
        return len(self._buf)

    def push(self, frame: LandmarkFrame) -> None:
        if not isinstance(frame, LandmarkFrame):
            raise TypeError(f"expected LandmarkFrame, got {type(frame).__name__}")
        self._buf.append(frame)

    def snapshot(self) -> tuple[LandmarkFrame, ...]:
        """Current contents, oldest first."""
        return tuple(self._buf)

    def latest(self) -> LandmarkFrame | None:
        return self._buf[-1] if self._buf else None

    def reference(self) -> LandmarkFrame | None:
        """Middle frame of the window, the movement reference for :meth:`latest`."""
        if not self._buf:
            return None
        return self._buf[len(self._buf) // 2]

    def clear(self) -> None:
        self._buf.clear()


# ── Drawing ──────────────────────────────────────────────────────────────────


def draw_hand(
    bgr_frame: np.ndarray,
    frame: LandmarkFrame,
    label: str | None = None,
    point_radius: int = 5,
    line_thickness: int = 2,
) -> np.ndarray:
    """Draw the hand skeleton onto *bgr_frame* (mutates in-place)."""
    h, w = bgr_frame.shape[:2]
    pts = (frame.points[:, :2] * [w, h]).astype(int)

    for a, b in HAND_CONNECTIONS:
        start = (int(pts[a][0]), int(pts[a][1]))
        end = (int(pts[b][0]), int(pts[b][1]))
        cv2.line(bgr_frame, start, end, _LINE_COLOUR, line_thickness)

    for x, y in pts:
        cv2.circle(bgr_frame, (int(x), int(y)), point_radius, _POINT_COLOUR, -1)

    if label:
        wrist = pts[WRIST_IDX]
        cv2.putText(
            bgr_frame, label,
            (int(wrist[0]) + 5, int(wrist[1]) - 10),
            cv2.FONT_HERSHEY_SIMPLEX, 0.5, _LABEL_COLOUR, 1, cv2.LINE_AA,
        )

    return bgr_frame
