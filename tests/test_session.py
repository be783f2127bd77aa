"""
tests/test_session.py – End-to-end recording sessions and the state machine.

Frames are synthetic (see ``signscribe.synthetic``) and timestamps are
passed explicitly so the throttle gate is deterministic.
"""

from __future__ import annotations

import logging
import sys
from pathlib import Path

import pytest

sys.path.insert(0, str(Path(__file__).resolve().parent.parent))

from signscribe.config import PipelineConfig
from signscribe.errors import InvalidLandmarksError, SessionStateError
from signscribe.session import RecognitionSession, SessionState
from signscribe.synthetic import make_hand, waving_hand

NO_SIGNS_FALLBACK = (
    "I want to make a complaint.\n"
    "\n"
    "Recording Details:\n"
    "- Duration: 0:00\n"
    "- Technology: Real-time AI sign language recognition\n"
    "- Status: No specific signs detected clearly enough for automatic translation\n"
    "\n"
    "Please complete this template with the specific details from your sign language recording."
)


def _recording_session(**config) -> RecognitionSession:
    session = RecognitionSession(PipelineConfig(**config), model_available=True)
    session.start_recording(0.0)
    return session


# ── End-to-end scenarios ─────────────────────────────────────────────────────


def test_empty_session_yields_no_signs_fallback() -> None:
    session = _recording_session()
    result = session.finalize(0.0)
    assert result.text == NO_SIGNS_FALLBACK
    assert session.state is SessionState.FINALIZING


def test_consistent_wave_yields_single_hello() -> None:
    session = _recording_session()
    for i, frame in enumerate(waving_hand(20)):
        session.push_frame(frame, i * 200.0)
    session.stop_recording(4000.0)

    # window reaches 15 frames at 2800 ms; next gate opening is 3400 ms
    assert [(d.sign, d.timestamp_ms) for d in session.detections] == [("hello", 2800.0)]
    assert session.consolidator.raw_count == 2

    result = session.finalize()
    assert result.text.startswith("I want to make a complaint. greeting.")
    assert "- Duration: 0:04\n" in result.text
    assert "- Signs detected: 2 total\n" in result.text
    assert "- Unique signs: 1\n" in result.text
    assert "- Average confidence: 80%\n" in result.text
    assert "Detected signs: hello (80%)\n" in result.text
    assert result.summary.unique_signs == 1
    assert [(s.sign, s.confidence) for s in result.summary.signs] == [("hello", 0.8)]


def test_short_recording_falls_back_regardless_of_detections() -> None:
    session = _recording_session()
    for i, frame in enumerate(waving_hand(20)):
        session.push_frame(frame, i * 100.0)
    session.stop_recording(2000.0)

    assert session.consolidator.finalize()  # signs were recognised
    result = session.finalize()
    assert session.duration_s == 2
    assert result.summary.fallback
    assert result.text.startswith("I want to make a complaint.\n\nRecording Details:\n")
    assert "Recording too short" in result.text
    assert "greeting" not in result.text


# ── Frame handling ───────────────────────────────────────────────────────────


def test_no_hand_leaves_window_untouched() -> None:
    session = _recording_session()
    session.push_frame(make_hand([0.5] * 5), 0.0)
    assert session.is_detecting

    result = session.push_frame(None, 33.0)
    assert not result.hand_present
    assert len(session.window) == 1
    assert not session.is_detecting
    assert session.current_confidence == 0.0


def test_classification_skipped_until_window_fills() -> None:
    session = _recording_session()
    results = [session.push_frame(f, i * 600.0) for i, f in enumerate(waving_hand(15))]
    assert not any(r.classified for r in results[:14])
    assert results[14].classified
    assert results[14].detection is not None
    assert all(r.features is not None for r in results)


def test_frames_faster_than_throttle_are_not_classified() -> None:
    session = _recording_session()
    results = [session.push_frame(f, i * 10.0) for i, f in enumerate(waving_hand(30))]
    assert sum(r.classified for r in results) == 1


def test_accepts_raw_point_lists() -> None:
    session = _recording_session()
    points = make_hand([0.5] * 5).points.tolist()
    result = session.push_frame(points, 0.0)
    assert result.features is not None
    with pytest.raises(InvalidLandmarksError):
        session.push_frame(points[:20], 33.0)


def test_stop_halts_classification_but_keeps_detections() -> None:
    session = _recording_session()
    frames = waving_hand(30)
    for i, frame in enumerate(frames[:20]):
        session.push_frame(frame, i * 200.0)
    session.stop_recording(4000.0)
    before = session.consolidator.raw_count
    window_len = len(session.window)

    for i, frame in enumerate(frames[20:]):
        result = session.push_frame(frame, 5000.0 + i * 600.0)
        assert not result.classified
    assert session.consolidator.raw_count == before
    assert len(session.window) == window_len
    assert session.finalize().summary.total_detections == before


def test_max_duration_stops_recording() -> None:
    session = _recording_session(max_duration_s=1)
    session.push_frame(make_hand([0.5] * 5), 500.0)
    assert session.is_recording
    session.push_frame(make_hand([0.5] * 5), 1000.0)
    assert session.state is SessionState.STOPPED
    assert session.duration_s == 1


def test_confident_signs_capture_window() -> None:
    session = _recording_session()
    for i, frame in enumerate(waving_hand(20)):
        session.push_frame(frame, i * 200.0)
    assert len(session.gesture_sequences) == 2
    first = session.gesture_sequences[0]
    assert first.sign == "hello"
    assert len(first.frames) == 15
    assert first.duration_ms == 15 * 33


def test_recent_signs_and_live_status() -> None:
    session = _recording_session()
    for i, frame in enumerate(waving_hand(20)):
        session.push_frame(frame, i * 200.0)
    assert session.current_sign == "hello"
    assert session.current_confidence == 0.8
    assert [d.sign for d in session.recent_signs()] == ["hello"]
    assert session.recent_signs(0) == []


# ── Model availability ───────────────────────────────────────────────────────


def test_unavailable_model_produces_no_detections(caplog) -> None:
    with caplog.at_level(logging.WARNING, logger="signscribe.session"):
        session = RecognitionSession(model_available=False)
        session.set_model_available(False)
    assert len([r for r in caplog.records if "unavailable" in r.getMessage()]) == 1
    assert session.state is SessionState.IDLE

    session.start_recording(0.0)
    for i, frame in enumerate(waving_hand(20)):
        session.push_frame(frame, i * 200.0)
    assert len(session.window) == 20
    assert session.consolidator.raw_count == 0
    assert session.finalize(4000.0).summary.fallback


def test_model_ready_moves_idle_to_detecting() -> None:
    session = RecognitionSession()
    assert session.state is SessionState.IDLE
    session.set_model_available(True)
    assert session.state is SessionState.DETECTING

    result = session.push_frame(make_hand([0.5] * 5), 0.0)
    assert result.features is not None
    assert not result.classified


def test_frames_ignored_while_idle() -> None:
    session = RecognitionSession()
    result = session.push_frame(make_hand([0.5] * 5), 0.0)
    assert result.features is None
    assert len(session.window) == 0


# ── State machine ────────────────────────────────────────────────────────────


def test_start_clears_previous_buffers() -> None:
    session = RecognitionSession(model_available=True)
    for i, frame in enumerate(waving_hand(5)):
        session.push_frame(frame, i * 33.0)
    assert len(session.window) == 5
    session.start_recording(200.0)
    assert len(session.window) == 0
    assert session.detections == ()


def test_illegal_transitions_raise() -> None:
    session = RecognitionSession(model_available=True)
    with pytest.raises(SessionStateError):
        session.stop_recording(0.0)
    with pytest.raises(SessionStateError):
        session.finalize()
    with pytest.raises(SessionStateError):
        session.confirm()

    session.start_recording(0.0)
    with pytest.raises(SessionStateError):
        session.start_recording(10.0)

    session.finalize(5000.0)
    with pytest.raises(SessionStateError):
        session.finalize()
    with pytest.raises(SessionStateError):
        session.start_recording(6000.0)


def test_finalize_stops_implicitly() -> None:
    session = _recording_session()
    session.finalize(3500.0)
    assert session.duration_s == 3


def test_confirm_then_no_discard() -> None:
    session = _recording_session()
    result = session.finalize(0.0)
    assert session.confirm() is result
    assert session.state is SessionState.CONFIRMED
    with pytest.raises(SessionStateError):
        session.discard()


def test_discard_resets_buffers_and_allows_retake() -> None:
    session = _recording_session()
    for i, frame in enumerate(waving_hand(20)):
        session.push_frame(frame, i * 200.0)
    session.finalize(4000.0)

    session.discard()
    # model is ready, so the session passes through idle back to detecting
    assert session.state is SessionState.DETECTING
    assert len(session.window) == 0
    assert session.detections == ()
    assert session.result is None
    assert session.duration_s == 0

    session.start_recording(10_000.0)
    assert session.is_recording
    assert session.push_frame(make_hand([0.1] * 5), 10_100.0).features is not None


def test_retake_after_discard_gives_live_feedback() -> None:
    session = _recording_session()
    session.finalize(4000.0)
    session.discard()

    result = session.push_frame(make_hand([0.1] * 5), 5000.0)
    assert result.features is not None
    assert session.is_detecting


def test_discard_without_model_stays_idle() -> None:
    session = RecognitionSession()
    session.start_recording(0.0)
    session.discard()
    assert session.state is SessionState.IDLE


def test_no_hand_clears_live_status_after_stop() -> None:
    session = _recording_session()
    session.push_frame(make_hand([0.5] * 5), 10.0)
    assert session.is_detecting
    session.stop_recording(20.0)

    result = session.push_frame(None, 30.0)
    assert not result.hand_present
    assert not session.is_detecting
    assert session.current_confidence == 0.0
