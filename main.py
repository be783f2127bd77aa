#!/usr/bin/env python3
"""
main.py – SignScribe replay driver.

Pipeline:
  landmark frames  ──►  FrameWindow  ──►  FeatureExtractor  ──►  SignClassifier
                                                  (throttled)          │
  transcript  ◄──  TranscriptSynthesizer  ◄──  TemporalConsolidator  ◄──┘

Frames come from a recorded landmark file (JSON) or from a synthetic waving
hand; the live camera + landmark model belong to the host application.

Recording format
----------------
    {
      "start_ms": 0, "stop_ms": 4000,
      "frames": [{"t": 0, "landmarks": [[x, y, z], ... 21 points]},
                 {"t": 33, "landmarks": null}, ...]
    }

Usage
-----
    python main.py recording.json                # replay, print transcript
    python main.py --demo                        # synthetic "hello" wave
    python main.py --demo --display              # with OpenCV overlay
    python main.py rec.json --config tuned.json  # override thresholds
    python main.py rec.json --summary-json out.json
"""

from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path
from typing import Iterator

import cv2
import numpy as np

from signscribe.config import PipelineConfig
from signscribe.errors import SignScribeError
from signscribe.landmarks import LandmarkFrame, draw_hand
from signscribe.session import RecognitionSession
from signscribe.synthetic import waving_hand

_CANVAS_SIZE = (480, 640)  # h, w


def parse_args(argv: list[str] | None = None) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="SignScribe – landmark replay to complaint transcript")
    p.add_argument("recording", nargs="?", default=None, help="Path to a landmark recording (JSON)")
    p.add_argument("--demo", action="store_true", help="Use a synthetic waving hand instead of a file")
    p.add_argument("--demo-frames", type=int, default=150, help="Synthetic frames (~33 ms apart)")
    p.add_argument("--config", type=str, default=None, help="JSON file with PipelineConfig overrides")
    p.add_argument("--summary-json", type=str, default=None, help="Write the recognition summary here")
    p.add_argument("--display", action="store_true", help="Show an OpenCV overlay while replaying")
    p.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    args = p.parse_args(argv)
    if not args.demo and args.recording is None:
        p.error("a recording path is required unless --demo is given")
    return args


def load_recording(path: str | Path) -> tuple[list[tuple[float, list | None]], float | None, float | None]:
    """Return ``(frames, start_ms, stop_ms)`` from a recording file."""
    data = json.loads(Path(path).read_text(encoding="utf-8"))
    if not isinstance(data, dict):
        raise ValueError(f"expected a JSON object, got {type(data).__name__}")
    frames = [(float(f["t"]), f.get("landmarks")) for f in data.get("frames", [])]
    return frames, data.get("start_ms"), data.get("stop_ms")


def demo_recording(n_frames: int, interval_ms: float) -> list[tuple[float, LandmarkFrame]]:
    """Synthetic hand waving right then left, one frame every *interval_ms*."""
    half = max(1, n_frames // 2)
    right = waving_hand(half, start=(0.25, 0.6), step=0.004)
    left = list(reversed(right))
    frames = (right + left)[:n_frames]
    return [(i * interval_ms, frame) for i, frame in enumerate(frames)]


def _render(session: RecognitionSession, frame: LandmarkFrame | None) -> bool:
    """Draw one overlay frame. Returns False when the user asked to quit."""
    canvas = np.zeros((*_CANVAS_SIZE, 3), dtype=np.uint8)
    if frame is not None:
        draw_hand(canvas, frame, session.current_sign)

    info_lines = [
        f"State: {session.state}  ·  Hand: {'yes' if session.is_detecting else 'no'}",
        f"Buffer {len(session.window)}/{session.window.capacity}  ·  "
        f"Detections {session.consolidator.raw_count}",
    ]
    if session.current_sign:
        info_lines.append(
            f"Last: {session.current_sign.replace('_', ' ')} "
            f"({session.current_confidence * 100:.0f}%)"
        )
    for i, line in enumerate(info_lines):
        cv2.putText(
            canvas, line, (14, 22 + i * 20),
            cv2.FONT_HERSHEY_SIMPLEX, 0.48, (220, 220, 220), 1, cv2.LINE_AA,
        )

    cv2.imshow("SignScribe", canvas)
    key = cv2.waitKey(1) & 0xFF
    return not (key == ord("q") or key == 27)


def replay(
    session: RecognitionSession,
    frames: list[tuple[float, object]],
    start_ms: float,
    stop_ms: float,
    display: bool = False,
) -> Iterator[str]:
    """Feed *frames* through *session*; yields a line per recognised sign."""
    session.start_recording(start_ms)
    for t, landmarks in frames:
        if not session.is_recording:
            break
        result = session.push_frame(landmarks, t)
        if result.detection is not None:
            d = result.detection
            yield f"  >> SIGN: {d.sign} ({d.confidence:.2f}) at {d.timestamp_ms:.0f} ms"
        if display:
            shown = landmarks if isinstance(landmarks, LandmarkFrame) else None
            if shown is None and landmarks is not None:
                shown = LandmarkFrame(landmarks)
            if not _render(session, shown):
                break
    if session.is_recording:
        session.stop_recording(stop_ms)


def main(argv: list[str] | None = None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )

    try:
        config = PipelineConfig.from_json(args.config) if args.config else PipelineConfig()
    except SignScribeError as exc:
        print(f"[SignScribe] Bad config: {exc}", file=sys.stderr)
        return 1

    if args.demo:
        frames = demo_recording(args.demo_frames, config.frame_interval_ms)
        start_ms = 0.0
        stop_ms = frames[-1][0] + config.frame_interval_ms if frames else 0.0
        source = f"demo ({len(frames)} frames)"
    else:
        try:
            frames, start_ms, stop_ms = load_recording(args.recording)
        except (OSError, ValueError, KeyError, TypeError) as exc:
            print(f"[SignScribe] Cannot read recording {args.recording}: {exc}", file=sys.stderr)
            return 1
        if start_ms is None:
            start_ms = frames[0][0] if frames else 0.0
        if stop_ms is None:
            stop_ms = frames[-1][0] if frames else start_ms
        source = args.recording

    session = RecognitionSession(config, model_available=True)
    print(f"[SignScribe] Source     : {source}")
    print(f"[SignScribe] Rules      : {', '.join(session.classifier.signs)}")

    try:
        for line in replay(session, frames, start_ms, stop_ms, display=args.display):
            print(line)
        result = session.finalize()
    except SignScribeError as exc:
        print(f"[SignScribe] {exc}", file=sys.stderr)
        return 1
    finally:
        if args.display:
            cv2.destroyAllWindows()

    print(f"[SignScribe] Duration   : {session.duration_s}s")
    print(f"[SignScribe] Detections : {session.consolidator.raw_count}\n")
    print(result.text)

    if args.summary_json:
        Path(args.summary_json).write_text(
            json.dumps(result.summary.to_dict(), indent=2), encoding="utf-8"
        )
        print(f"\n[SignScribe] Summary saved to {args.summary_json}")

    return 0


if __name__ == "__main__":
    sys.exit(main())
