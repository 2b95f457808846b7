"""Motion input: capability sources and the shake classifier."""
from .motion import ClassifierState, MotionSignalClassifier
from .source import MotionSource, NullMotionSource, PushMotionSource

__all__ = [
    "ClassifierState",
    "MotionSignalClassifier",
    "MotionSource",
    "NullMotionSource",
    "PushMotionSource",
]
