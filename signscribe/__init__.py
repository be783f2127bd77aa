"""
SignScribe – hand-landmark gesture recognition to complaint transcripts.

Exposes the pipeline components, leaves first:
    FrameWindow            – sliding buffer of the latest landmark frames
    FeatureExtractor       – finger extension / orientation / palm / movement
    SignClassifier         – ordered rule matching against the vocabulary
    TemporalConsolidator   – merges repeated detections of one gesture
    TranscriptSynthesizer  – renders the consolidated signs as text
    RecognitionSession     – drives all of the above, one frame at a time
"""

from .config import DEFAULT_CONFIG, PipelineConfig
from .consolidator import ConsolidatedSign, SignDetection, TemporalConsolidator, consolidate
from .errors import ConfigError, InvalidLandmarksError, SessionStateError, SignScribeError
from .features import FeatureExtractor, FeatureSet, extract_features
from .landmarks import FrameWindow, Landmark, LandmarkFrame, draw_hand
from .session import FrameResult, GestureSequence, RecognitionSession, SessionState
from .sign_classifier import Classification, SignClassifier, SignRule, ThrottleGate
from .transcript import RecognitionSummary, TranscriptResult, TranscriptSynthesizer
from .vocabulary import SIGN_VOCABULARY, SignPatternSpec

__version__ = "0.1.0"

__all__ = [
    "DEFAULT_CONFIG",
    "PipelineConfig",
    "ConsolidatedSign",
    "SignDetection",
    "TemporalConsolidator",
    "consolidate",
    "ConfigError",
    "InvalidLandmarksError",
    "SessionStateError",
    "SignScribeError",
    "FeatureExtractor",
    "FeatureSet",
    "extract_features",
    "FrameWindow",
    "Landmark",
    "LandmarkFrame",
    "draw_hand",
    "FrameResult",
    "GestureSequence",
    "RecognitionSession",
    "SessionState",
    "Classification",
    "SignClassifier",
    "SignRule",
    "ThrottleGate",
    "RecognitionSummary",
    "TranscriptResult",
    "TranscriptSynthesizer",
    "SIGN_VOCABULARY",
    "SignPatternSpec",
]
