"""
Orientation rules for video frames.

A frame counts as 16:9 or 9:16 when the cross-multiplied dimensions differ
by less than a fixed absolute tolerance, measured in integer product units
rather than as a ratio epsilon. 1920x1080 and 1280x720 match exactly;
1921x1080 (difference 9) still counts as landscape.
"""

from dataclasses import dataclass

from .models import Orientation

TOLERANCE = 10


@dataclass(frozen=True)
class StreamDimensions:
    """Width and height of one stream as reported by the frame probe."""
    width: int
    height: int


def classify_dimensions(width: int, height: int) -> Orientation:
    """
    Classify frame geometry as landscape, portrait or other.

    Landscape is checked first, so a degenerate 0x0 stream lands there
    (both differences are zero).
    """
    landscape_diff = abs(width * 9 - height * 16)
    portrait_diff = abs(width * 16 - height * 9)

    if landscape_diff < TOLERANCE:
        return Orientation.LANDSCAPE
    if portrait_diff < TOLERANCE:
        return Orientation.PORTRAIT
    return Orientation.OTHER
