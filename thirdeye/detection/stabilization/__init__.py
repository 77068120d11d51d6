"""
Detection Stabilization - Temporal smoothing to reduce flickering

Modules:
- matching.py: Identidad cross-frame (label + IoU) - compartida con audio
- smoothing.py: Exponential moving average sobre objetos matcheados

Public API:
- stabilize, stabilize_with_stats, blend
- MatchingStrategy, LabelIoUMatcher
"""
from .matching import DEFAULT_IOU_THRESHOLD, LabelIoUMatcher, MatchingStrategy
from .smoothing import DEFAULT_NEW_WEIGHT, blend, stabilize, stabilize_with_stats

__all__ = [
    "MatchingStrategy",
    "LabelIoUMatcher",
    "DEFAULT_IOU_THRESHOLD",
    "DEFAULT_NEW_WEIGHT",
    "blend",
    "stabilize",
    "stabilize_with_stats",
]
