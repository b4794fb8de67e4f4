"""Response analysis: verdict classification and structural fingerprinting."""

from edgeprobe.analysis.classifier import (
    BLOCK_KEYWORDS,
    SUCCESS_MARKERS,
    ChallengeKind,
    Outcome,
    Verdict,
    classify,
    detect_challenge,
    has_success_marker,
)
from edgeprobe.analysis.skeleton import StructuralBaseline, skeleton_hash

__all__ = [
    "BLOCK_KEYWORDS",
    "SUCCESS_MARKERS",
    "ChallengeKind",
    "Outcome",
    "StructuralBaseline",
    "Verdict",
    "classify",
    "detect_challenge",
    "has_success_marker",
    "skeleton_hash",
]
